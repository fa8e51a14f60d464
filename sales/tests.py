from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIClient

from common.exceptions import PersistenceError
from common.utils import to_money
from core.models import AuditLog, BusinessProfile
from inventory.models import Part
from sales.invoices import NO_TAX, compose_invoice, invoice_filename, render_invoice
from sales.models import Customer, Order, OrderLine
from sales.pricing import DraftOrder, add_line, remove_line, set_include_tax, set_line_price
from sales.services import build_draft, commit_order, compute_order_totals, next_order_number
from sales.sharing import email_link, email_message, share_payload, whatsapp_link, whatsapp_message
from udhaari.models import UdhaariRecord


def catalog_item(part_id="p1", **overrides):
    values = {
        "id": part_id,
        "part_name": "Brake Pad",
        "brand": "Bosch",
        "selling_price": Decimal("500.00"),
        "buying_price": Decimal("350.00"),
        "sgst_percentage": Decimal("9"),
        "cgst_percentage": Decimal("9"),
        "quantity": 10,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class PricingEngineTests(SimpleTestCase):
    def test_subtotal_with_and_without_tax(self):
        item = catalog_item(selling_price=Decimal("123.45"), sgst_percentage=Decimal("6"), cgst_percentage=Decimal("2.5"))

        taxed = add_line(DraftOrder(include_tax=True), item, 3).lines[0]
        untaxed = add_line(DraftOrder(include_tax=False), item, 3).lines[0]

        price = Decimal("123.45")
        expected = 3 * (price + price * Decimal("6") / 100 + price * Decimal("2.5") / 100)
        self.assertEqual(taxed.subtotal, expected)
        self.assertEqual(untaxed.subtotal, 3 * price)

    def test_brake_pad_line_with_tax(self):
        line = add_line(DraftOrder(include_tax=True), catalog_item(), 2).lines[0]

        self.assertEqual(line.part_name, "Brake Pad (Bosch)")
        self.assertEqual(line.sgst_per_unit, Decimal("45"))
        self.assertEqual(line.price, Decimal("590"))
        self.assertEqual(line.sgst_amount, Decimal("90"))
        self.assertEqual(line.total_gst, Decimal("180"))
        self.assertEqual(to_money(line.subtotal), Decimal("1180.00"))

    def test_merging_same_part_has_no_rounding_drift(self):
        item = catalog_item(selling_price=Decimal("100.025"), sgst_percentage=Decimal("0"), cgst_percentage=Decimal("0"))

        draft = add_line(add_line(DraftOrder(), item, 1), item, 1)

        self.assertEqual(len(draft.lines), 1)
        self.assertEqual(draft.lines[0].quantity, 2)
        self.assertEqual(to_money(draft.lines[0].subtotal), Decimal("200.05"))
        self.assertNotEqual(to_money(draft.lines[0].subtotal), to_money(Decimal("100.025")) * 2)

    def test_over_quantity_is_rejected_without_touching_draft(self):
        draft = add_line(DraftOrder(), catalog_item(quantity=3), 2)

        with self.assertRaises(ValidationError) as ctx:
            add_line(draft, catalog_item(quantity=3), 2)

        self.assertEqual(ctx.exception.get_codes(), {"quantity": ["quantity_out_of_range"]})
        self.assertEqual(len(draft.lines), 1)
        self.assertEqual(draft.lines[0].quantity, 2)

    def test_zero_and_negative_quantities_are_rejected(self):
        for quantity in (0, -1):
            with self.assertRaises(ValidationError):
                add_line(DraftOrder(), catalog_item(), quantity)

    def test_set_line_price_recomputes_tax_and_subtotal(self):
        draft = add_line(DraftOrder(include_tax=True), catalog_item(), 2)

        updated = set_line_price(draft, "p1", "450")

        line = updated.lines[0]
        self.assertEqual(line.quantity, 2)
        self.assertEqual(line.selling_price, Decimal("450"))
        self.assertEqual(line.total_gst, Decimal("162"))
        self.assertEqual(line.subtotal, Decimal("1062"))
        self.assertEqual(draft.lines[0].selling_price, Decimal("500.00"))

    def test_set_line_price_rejects_invalid_values(self):
        draft = add_line(DraftOrder(), catalog_item(), 1)

        for value in ("abc", "-5", None, "NaN", "1e30", "10000000000", "10.005"):
            with self.assertRaises(ValidationError) as ctx:
                set_line_price(draft, "p1", value)
            self.assertEqual(ctx.exception.get_codes(), {"unit_price": ["invalid_price"]})

    def test_set_line_price_accepts_largest_money_value(self):
        draft = add_line(DraftOrder(), catalog_item(), 1)

        updated = set_line_price(draft, "p1", "9999999999.99")

        self.assertEqual(updated.lines[0].selling_price, Decimal("9999999999.99"))
        self.assertEqual(updated.total_amount, Decimal("9999999999.99"))

    def test_set_line_price_on_unknown_part(self):
        with self.assertRaises(ValidationError) as ctx:
            set_line_price(DraftOrder(), "missing", "10")

        self.assertEqual(ctx.exception.get_codes(), {"part": ["unknown_part"]})

    def test_remove_line_only_drops_that_part(self):
        draft = add_line(add_line(DraftOrder(), catalog_item("p1"), 1), catalog_item("p2", part_name="Fuse"), 1)

        remaining = remove_line(draft, "p1")

        self.assertEqual([line.part_id for line in remaining.lines], ["p2"])
        self.assertEqual(len(draft.lines), 2)

    def test_toggling_tax_recomputes_every_line(self):
        draft = add_line(add_line(DraftOrder(), catalog_item("p1"), 2), catalog_item("p2", selling_price=Decimal("100")), 1)

        taxed = set_include_tax(draft, True)

        self.assertTrue(taxed.include_tax)
        self.assertEqual(taxed.total_amount, Decimal("1180") + Decimal("118"))
        self.assertEqual(set_include_tax(taxed, False).total_amount, Decimal("1100"))

    def test_order_aggregates_and_profit(self):
        draft = add_line(
            add_line(
                DraftOrder(),
                catalog_item("p1", selling_price=Decimal("100.00"), buying_price=Decimal("60"), sgst_percentage=0, cgst_percentage=0),
                1,
            ),
            catalog_item("p2", selling_price=Decimal("250.50"), buying_price=Decimal("150"), sgst_percentage=0, cgst_percentage=0),
            1,
        )

        totals = compute_order_totals(draft)

        self.assertEqual(totals["total_amount"], Decimal("350.50"))
        self.assertEqual(totals["total_buying_price"], Decimal("210.00"))
        self.assertEqual(totals["total_selling_price"], Decimal("350.50"))
        self.assertEqual(totals["profit_amount"], Decimal("140.50"))


class BillingFixtureMixin:
    def setUp(self):
        user_model = get_user_model()
        self.owner = user_model.objects.create_user(username="billing-owner", password="pass12345")
        self.other = user_model.objects.create_user(username="billing-other", password="pass12345")
        self.asha = Customer.objects.create(owner=self.owner, customer_code="CUST-004", name="Asha", phone="9876500000")
        self.brake_pad = Part.objects.create(
            owner=self.owner,
            hsn_code="HSN-001",
            part_name="Brake Pad",
            brand="Bosch",
            category="Brakes",
            buying_price=Decimal("350.00"),
            selling_price=Decimal("500.00"),
            sgst_percentage=Decimal("9"),
            cgst_percentage=Decimal("9"),
            quantity=10,
        )
        self.bulb = Part.objects.create(
            owner=self.owner,
            hsn_code="HSN-002",
            part_name="Head Lamp Bulb",
            brand="Philips",
            category="Electrical",
            buying_price=Decimal("80.00"),
            selling_price=Decimal("120.00"),
            quantity=5,
        )


class CommitOrderTests(BillingFixtureMixin, TestCase):
    def test_asha_brake_pad_scenario(self):
        draft = build_draft(self.owner, [{"part": self.brake_pad.id, "quantity": 2}], include_tax=True)

        order = commit_order(self.owner, draft, self.asha.id)

        self.assertEqual(order.order_number, "ORD-001")
        self.assertEqual(order.total_amount, Decimal("1180.00"))
        self.assertEqual(order.total_selling_price, Decimal("1000.00"))
        self.assertEqual(order.total_buying_price, Decimal("700.00"))
        self.assertEqual(order.profit_amount, Decimal("300.00"))
        self.assertTrue(order.tax_included)
        line = OrderLine.objects.get(order=order)
        self.assertEqual(line.part_name, "Brake Pad (Bosch)")
        self.assertEqual(line.price, Decimal("590.00"))
        self.assertEqual(line.subtotal, Decimal("1180.00"))
        self.assertEqual(line.sgst_amount, Decimal("90.00"))
        self.brake_pad.refresh_from_db()
        self.assertEqual(self.brake_pad.quantity, 8)

    def test_missing_customer_is_rejected_before_persistence(self):
        draft = build_draft(self.owner, [{"part": self.brake_pad.id, "quantity": 1}])

        with self.assertRaises(ValidationError) as ctx:
            commit_order(self.owner, draft, None)

        self.assertEqual(ctx.exception.get_codes(), {"customer": ["no_customer_selected"]})
        self.assertFalse(Order.objects.exists())

    def test_other_owners_customer_counts_as_missing(self):
        foreign = Customer.objects.create(owner=self.other, customer_code="CUST-001", name="Foreign")
        draft = build_draft(self.owner, [{"part": self.brake_pad.id, "quantity": 1}])

        with self.assertRaises(ValidationError) as ctx:
            commit_order(self.owner, draft, foreign.id)

        self.assertEqual(ctx.exception.get_codes(), {"customer": ["no_customer_selected"]})

    def test_empty_draft_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            commit_order(self.owner, DraftOrder(), self.asha.id)

        self.assertEqual(ctx.exception.get_codes(), {"items": ["empty_order"]})

    def test_unknown_part_in_payload(self):
        with self.assertRaises(ValidationError) as ctx:
            build_draft(self.other, [{"part": self.brake_pad.id, "quantity": 1}])

        self.assertEqual(ctx.exception.get_codes(), {"part": ["unknown_part"]})

    def test_stock_taken_after_drafting_rolls_back_everything(self):
        draft = build_draft(
            self.owner,
            [{"part": self.bulb.id, "quantity": 1}, {"part": self.brake_pad.id, "quantity": 2}],
        )
        Part.objects.filter(id=self.brake_pad.id).update(quantity=1)

        with self.assertRaises(ValidationError) as ctx:
            commit_order(self.owner, draft, self.asha.id)

        self.assertEqual(ctx.exception.get_codes(), {"quantity": ["insufficient_stock"]})
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderLine.objects.exists())
        self.bulb.refresh_from_db()
        self.assertEqual(self.bulb.quantity, 5)

    def test_order_numbers_increase_per_owner(self):
        draft = build_draft(self.owner, [{"part": self.bulb.id, "quantity": 1}])

        first = commit_order(self.owner, draft, self.asha.id)
        second = commit_order(self.owner, draft, self.asha.id)

        self.assertEqual([first.order_number, second.order_number], ["ORD-001", "ORD-002"])
        self.assertEqual(next_order_number(self.owner), "ORD-003")
        self.assertEqual(next_order_number(self.other), "ORD-001")

    def test_order_number_conflict_is_retried(self):
        draft = build_draft(self.owner, [{"part": self.bulb.id, "quantity": 1}])
        commit_order(self.owner, draft, self.asha.id)

        with patch("sales.services.next_order_number", side_effect=["ORD-001", "ORD-002"]):
            with self.assertLogs("sales.services", level="WARNING") as logs:
                order = commit_order(self.owner, draft, self.asha.id)

        self.assertEqual(order.order_number, "ORD-002")
        self.assertTrue(any("order_number_conflict_retry" in message for message in logs.output))

    @override_settings(ORDER_NUMBER_MAX_RETRIES=2)
    def test_exhausted_order_number_retries_raise_persistence_error(self):
        draft = build_draft(self.owner, [{"part": self.bulb.id, "quantity": 1}])
        commit_order(self.owner, draft, self.asha.id)

        with patch("sales.services.next_order_number", return_value="ORD-001"):
            with self.assertLogs("sales.services", level="WARNING"):
                with self.assertRaises(PersistenceError):
                    commit_order(self.owner, draft, self.asha.id)

        self.assertEqual(Order.objects.count(), 1)
        self.bulb.refresh_from_db()
        self.assertEqual(self.bulb.quantity, 4)

    def test_grand_total_matches_rounded_line_amounts(self):
        washers = [
            Part.objects.create(
                owner=self.owner,
                hsn_code=f"HSN-10{index}",
                part_name=f"Washer {index}",
                brand="Generic",
                category="Fasteners",
                buying_price=Decimal("0.10"),
                selling_price=Decimal("0.25"),
                sgst_percentage=Decimal("9"),
                cgst_percentage=Decimal("9"),
                quantity=5,
            )
            for index in (1, 2)
        ]
        draft = build_draft(
            self.owner,
            [{"part": washer.id, "quantity": 1} for washer in washers],
            include_tax=True,
        )

        order = commit_order(self.owner, draft, self.asha.id)
        lines = list(order.lines.all())
        layout = compose_invoice(order, lines, self.asha, BusinessProfile.for_owner(self.owner))

        self.assertEqual([line.subtotal for line in lines], [Decimal("0.30"), Decimal("0.30")])
        self.assertEqual(order.total_amount, Decimal("0.60"))
        self.assertEqual(order.total_amount, sum(line.subtotal for line in lines))
        self.assertEqual([row[6] for row in layout.rows], ["Rs.0.30", "Rs.0.30"])
        self.assertEqual(layout.summary[-1].value, "Rs.0.60")
        self.assertEqual(layout.summary[1].value, "Rs.0.10")


class OrderApiTests(BillingFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)

    def _create_order(self, **overrides):
        payload = {
            "customer": str(self.asha.id),
            "include_tax": True,
            "items": [{"part": str(self.brake_pad.id), "quantity": 2}],
        }
        payload.update(overrides)
        return self.client.post("/api/v1/orders/", payload, format="json")

    def test_preview_prices_without_persisting(self):
        response = self.client.post(
            "/api/v1/orders/preview/",
            {
                "include_tax": True,
                "items": [
                    {"part": str(self.brake_pad.id), "quantity": 1},
                    {"part": str(self.brake_pad.id), "quantity": 1},
                    {"part": str(self.bulb.id), "quantity": 1, "unit_price": "100"},
                ],
            },
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(len(payload["lines"]), 2)
        self.assertEqual(payload["lines"][0]["subtotal"], "1180.00")
        self.assertEqual(payload["lines"][1]["subtotal"], "100.00")
        self.assertEqual(payload["total_amount"], "1280.00")
        self.assertEqual(payload["profit_amount"], "320.00")
        self.assertFalse(Order.objects.exists())
        self.brake_pad.refresh_from_db()
        self.assertEqual(self.brake_pad.quantity, 10)

    def test_create_order_returns_lines_and_customer(self):
        response = self._create_order()

        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload["order_number"], "ORD-001")
        self.assertEqual(payload["total_amount"], "1180.00")
        self.assertEqual(payload["total_gst"], "180.00")
        self.assertEqual(payload["customer"]["customer_code"], "CUST-004")
        self.assertEqual(payload["lines"][0]["subtotal"], "1180.00")
        self.assertTrue(AuditLog.objects.filter(action="order.create", actor=self.owner).exists())
        self.brake_pad.refresh_from_db()
        self.assertEqual(self.brake_pad.quantity, 8)

    def test_create_order_validation_codes(self):
        no_customer = self._create_order(customer=None)
        empty = self._create_order(items=[])
        too_many = self._create_order(items=[{"part": str(self.brake_pad.id), "quantity": 11}])
        bad_price = self._create_order(items=[{"part": str(self.brake_pad.id), "quantity": 1, "unit_price": "abc"}])

        self.assertEqual(no_customer.status_code, 400)
        self.assertEqual(no_customer.json()["error_codes"], {"customer": ["no_customer_selected"]})
        self.assertEqual(empty.json()["error_codes"], {"items": ["empty_order"]})
        self.assertEqual(too_many.json()["error_codes"], {"quantity": ["quantity_out_of_range"]})
        self.assertEqual(bad_price.json()["error_codes"], {"unit_price": ["invalid_price"]})
        self.assertEqual(no_customer.json()["code"], "validation_error")
        self.assertFalse(Order.objects.exists())

    def test_missing_customer_is_reported_before_item_errors(self):
        unknown_part = self._create_order(customer=None, items=[{"part": str(self.other.id), "quantity": 1}])
        too_many = self._create_order(customer=None, items=[{"part": str(self.brake_pad.id), "quantity": 11}])

        self.assertEqual(unknown_part.json()["error_codes"], {"customer": ["no_customer_selected"]})
        self.assertEqual(too_many.json()["error_codes"], {"customer": ["no_customer_selected"]})

    def test_out_of_range_price_override_is_rejected(self):
        response = self.client.post(
            "/api/v1/orders/preview/",
            {"include_tax": False, "items": [{"part": str(self.bulb.id), "quantity": 1, "unit_price": "1e30"}]},
            format="json",
        )
        created = self._create_order(items=[{"part": str(self.bulb.id), "quantity": 1, "unit_price": "12345678901.00"}])

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error_codes"], {"unit_price": ["invalid_price"]})
        self.assertEqual(created.status_code, 400)
        self.assertEqual(created.json()["error_codes"], {"unit_price": ["invalid_price"]})
        self.assertFalse(Order.objects.exists())

    def test_orders_are_scoped_to_owner(self):
        order_id = self._create_order().json()["id"]
        self.client.force_authenticate(user=self.other)

        listing = self.client.get("/api/v1/orders/")
        detail = self.client.get(f"/api/v1/orders/{order_id}/")

        self.assertEqual(listing.json()["count"], 0)
        self.assertEqual(detail.status_code, 404)

    def test_next_number_preview(self):
        self._create_order()

        response = self.client.get("/api/v1/orders/next-number/")

        self.assertEqual(response.json(), {"order_number": "ORD-002"})

    def test_invoice_download_is_pdf(self):
        order_id = self._create_order().json()["id"]

        response = self.client.get(f"/api/v1/orders/{order_id}/invoice/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertIn('filename="Invoice-ORD-001.pdf"', response["Content-Disposition"])
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_share_links(self):
        order_id = self._create_order().json()["id"]

        whatsapp = self.client.get(f"/api/v1/orders/{order_id}/share/", {"channel": "whatsapp"})
        email = self.client.get(f"/api/v1/orders/{order_id}/share/", {"channel": "email"})
        invalid = self.client.get(f"/api/v1/orders/{order_id}/share/", {"channel": "sms"})

        self.assertTrue(whatsapp.json()["link"].startswith("https://wa.me/?text=Invoice%3A%20ORD-001"))
        self.assertEqual(email.json()["subject"], "Invoice ORD-001")
        self.assertTrue(email.json()["link"].startswith("mailto:?subject=Invoice%20ORD-001&body="))
        self.assertEqual(invalid.status_code, 400)

    def test_orders_cannot_be_edited_or_deleted(self):
        order_id = self._create_order().json()["id"]

        patch_res = self.client.patch(f"/api/v1/orders/{order_id}/", {"total_amount": "1"}, format="json")
        delete_res = self.client.delete(f"/api/v1/orders/{order_id}/")

        self.assertEqual(patch_res.status_code, 405)
        self.assertEqual(delete_res.status_code, 405)


class CustomerApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = get_user_model().objects.create_user(username="customer-owner", password="pass12345")
        self.client.force_authenticate(user=self.owner)

    def test_customer_codes_are_sequential(self):
        for name in ("Ravi", "Meena", "Kiran"):
            self.client.post("/api/v1/customers/", {"name": name}, format="json")

        preview = self.client.get("/api/v1/customers/next-code/")
        asha = self.client.post("/api/v1/customers/", {"name": "Asha", "phone": "9876500000"}, format="json")

        self.assertEqual(preview.json(), {"customer_code": "CUST-004"})
        self.assertEqual(asha.status_code, 201)
        self.assertEqual(asha.json()["customer_code"], "CUST-004")

    def test_customers_listed_newest_first_and_searchable(self):
        self.client.post("/api/v1/customers/", {"name": "Ravi"}, format="json")
        self.client.post("/api/v1/customers/", {"name": "Asha"}, format="json")

        listing = self.client.get("/api/v1/customers/")
        search = self.client.get("/api/v1/customers/", {"search": "rav"})

        self.assertEqual([item["name"] for item in listing.json()["results"]], ["Asha", "Ravi"])
        self.assertEqual(search.json()["count"], 1)

    def test_customer_with_orders_cannot_be_deleted(self):
        customer = Customer.objects.create(owner=self.owner, customer_code="CUST-001", name="Asha")
        Order.objects.create(owner=self.owner, customer=customer, order_number="ORD-001", total_amount=Decimal("10"))

        response = self.client.delete(f"/api/v1/customers/{customer.id}/")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error_codes"], {"customer": ["customer_has_orders"]})
        self.assertTrue(Customer.objects.filter(id=customer.id).exists())
        self.assertFalse(AuditLog.objects.filter(action="customer.delete").exists())

    def test_customer_without_orders_can_be_deleted(self):
        customer = Customer.objects.create(owner=self.owner, customer_code="CUST-001", name="Temp")

        response = self.client.delete(f"/api/v1/customers/{customer.id}/")

        self.assertEqual(response.status_code, 204)
        self.assertTrue(AuditLog.objects.filter(action="customer.delete", entity_id=customer.id).exists())


def invoice_fixture(tax_included=True):
    order = SimpleNamespace(
        order_number="ORD-004",
        created_at=datetime(2024, 3, 5, 10, 30, tzinfo=dt_timezone.utc),
        tax_included=tax_included,
        total_selling_price=Decimal("1120.00"),
        total_amount=Decimal("1300.00"),
        customer=SimpleNamespace(name="Asha", customer_code="CUST-004", phone="9876500000", address="MG Road", email=""),
    )
    taxed = SimpleNamespace(
        part_name="Brake Pad (Bosch)",
        quantity=2,
        selling_price=Decimal("500.00"),
        sgst_amount=Decimal("90.00"),
        cgst_amount=Decimal("90.00"),
        total_gst=Decimal("180.00"),
        subtotal=Decimal("1180.00"),
    )
    untaxed = SimpleNamespace(
        part_name="Head Lamp Bulb (Philips)",
        quantity=1,
        selling_price=Decimal("120.00"),
        sgst_amount=Decimal("0.00"),
        cgst_amount=Decimal("0.00"),
        total_gst=Decimal("0.00"),
        subtotal=Decimal("120.00"),
    )
    profile = SimpleNamespace(
        business_name="Vijaya Auto Spares",
        address="12 Market Street",
        contact_phone="080-1234567",
        contact_email="shop@example.com",
        gstin="29ABCDE1234F1Z5",
    )
    return order, [taxed, untaxed], order.customer, profile


class InvoiceCompositionTests(SimpleTestCase):
    def test_untaxed_line_shows_dash_and_total_is_sum_of_subtotals(self):
        order, lines, customer, profile = invoice_fixture()

        layout = compose_invoice(order, lines, customer, profile)

        taxed_row, untaxed_row = layout.rows
        self.assertEqual(taxed_row[4:6], ("Rs.90.00", "Rs.90.00"))
        self.assertEqual(untaxed_row[4:6], (NO_TAX, NO_TAX))
        self.assertEqual(layout.summary[-1].label, "Total Amount:")
        self.assertTrue(layout.summary[-1].bold)
        self.assertEqual(layout.summary[-1].value, "Rs.1300.00")
        self.assertEqual(sum(line.subtotal for line in lines), order.total_amount)

    def test_header_blocks(self):
        order, lines, customer, profile = invoice_fixture()

        layout = compose_invoice(order, lines, customer, profile)

        self.assertEqual(layout.business_name, "Vijaya Auto Spares")
        self.assertEqual(
            layout.header_lines,
            ["12 Market Street", "080-1234567 | shop@example.com", "GSTIN: 29ABCDE1234F1Z5"],
        )
        self.assertEqual(layout.bill_to, ["Asha", "ID: CUST-004", "Phone: 9876500000", "MG Road"])
        self.assertEqual(layout.details, ["Invoice #: ORD-004", "Date: 05/03/2024"])
        self.assertEqual(layout.table_header, ("#", "Description", "Qty", "Rate", "SGST", "CGST", "Amount"))
        self.assertEqual(layout.filename, "Invoice-ORD-004.pdf")
        self.assertEqual(layout.footer, "Thank you for your business!")

    def test_summary_lists_gst_only_when_charged(self):
        order, lines, customer, profile = invoice_fixture()
        taxed_labels = [row.label for row in compose_invoice(order, lines, customer, profile).summary]

        untaxed_only = compose_invoice(order, lines[1:], customer, profile)

        self.assertEqual(taxed_labels, ["Subtotal:", "Total GST:", "Total Amount:"])
        self.assertEqual([row.label for row in untaxed_only.summary], ["Subtotal:", "Total Amount:"])

    def test_tax_exclusive_bill_still_prints_line_tax(self):
        order, lines, customer, profile = invoice_fixture(tax_included=False)

        layout = compose_invoice(order, lines, customer, profile)

        self.assertEqual(layout.rows[0][4:6], ("Rs.90.00", "Rs.90.00"))
        self.assertEqual(layout.rows[1][4:6], (NO_TAX, NO_TAX))
        self.assertEqual(layout.summary[1].value, "Rs.180.00")

    def test_blank_profile_falls_back_to_default_name(self):
        order, lines, customer, _ = invoice_fixture()
        profile = SimpleNamespace(business_name="", address="", contact_phone="", contact_email="", gstin="")

        layout = compose_invoice(order, lines, customer, profile, currency_prefix="")

        self.assertEqual(layout.business_name, "Vijaya Auto Spares")
        self.assertEqual(layout.header_lines, [])
        self.assertEqual(layout.rows[0][6], "1180.00")

    def test_render_produces_pdf_bytes(self):
        order, lines, customer, profile = invoice_fixture()

        pdf = render_invoice(order, lines, customer, profile)

        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertEqual(invoice_filename(order), "Invoice-ORD-004.pdf")


class ShareMessageTests(SimpleTestCase):
    def setUp(self):
        self.order = invoice_fixture()[0]

    def test_whatsapp_message_and_link(self):
        self.assertEqual(
            whatsapp_message(self.order),
            "Invoice: ORD-004\nCustomer: Asha\nAmount: ₹1300.00\nDate: 05/03/2024",
        )
        self.assertEqual(
            whatsapp_link(self.order),
            "https://wa.me/?text=Invoice%3A%20ORD-004%0ACustomer%3A%20Asha%0AAmount%3A%20%E2%82%B91300.00"
            "%0ADate%3A%2005%2F03%2F2024",
        )

    def test_email_message_and_link(self):
        body = email_message(self.order)

        self.assertTrue(body.startswith("Dear Asha,\n\nPlease find your invoice details below:"))
        self.assertIn("Invoice Number: ORD-004\nAmount: ₹1300.00\nDate: 05/03/2024", body)
        self.assertTrue(body.endswith("Thank you for your business!"))
        self.assertTrue(email_link(self.order).startswith("mailto:?subject=Invoice%20ORD-004&body=Dear%20Asha%2C"))

    def test_email_link_addresses_customer_when_known(self):
        self.order.customer.email = "asha@example.com"

        payload = share_payload(self.order, "email")

        self.assertTrue(payload["link"].startswith("mailto:asha@example.com?subject="))


class ReportTests(BillingFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)

    def test_dashboard_summary(self):
        Part.objects.filter(id=self.bulb.id).update(quantity=2)
        UdhaariRecord.objects.create(owner=self.owner, customer=self.asha, amount=Decimal("500"))
        UdhaariRecord.objects.create(
            owner=self.owner,
            customer=self.asha,
            amount=Decimal("200"),
            paid_amount=Decimal("200"),
            status=UdhaariRecord.Status.PAID,
        )

        response = self.client.get("/api/v1/dashboard/summary/")

        payload = response.json()
        self.assertEqual(payload["total_parts"], 2)
        self.assertEqual(payload["low_stock_count"], 1)
        self.assertEqual(payload["total_customers"], 1)
        self.assertEqual(payload["pending_udhaari_count"], 1)
        self.assertEqual(len(payload["recent_parts"]), 2)

    def test_profit_report_over_date_range(self):
        draft = build_draft(self.owner, [{"part": self.brake_pad.id, "quantity": 2}], include_tax=True)
        commit_order(self.owner, draft, self.asha.id)
        today = timezone.localdate().isoformat()

        response = self.client.get("/api/v1/reports/profit/", {"date_from": today, "date_to": today})
        missing_end = self.client.get("/api/v1/reports/profit/", {"date_from": today})

        payload = response.json()
        self.assertEqual(payload["order_count"], 1)
        self.assertEqual(payload["revenue"], "1180.00")
        self.assertEqual(payload["profit_amount"], "300.00")
        self.assertEqual(missing_end.status_code, 400)

    def test_business_profile_feeds_invoice(self):
        profile = BusinessProfile.for_owner(self.owner)
        profile.business_name = "Sri Ram Motors"
        profile.save()
        draft = build_draft(self.owner, [{"part": self.bulb.id, "quantity": 1}])
        order = commit_order(self.owner, draft, self.asha.id)

        layout = compose_invoice(order, list(order.lines.all()), order.customer, BusinessProfile.for_owner(self.owner))

        self.assertEqual(layout.business_name, "Sri Ram Motors")
        self.assertEqual(layout.rows[0][4], NO_TAX)
        self.assertEqual(layout.summary[-1].value, "Rs.120.00")
