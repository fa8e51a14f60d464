from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIClient

from core.models import AuditLog
from sales.models import Customer
from udhaari.models import UdhaariRecord
from udhaari.services import ledger_summary, record_payment


class UdhaariServiceTests(TestCase):
    def setUp(self):
        self.owner = get_user_model().objects.create_user(username="credit-owner", password="pass12345")
        self.customer = Customer.objects.create(owner=self.owner, customer_code="CUST-001", name="Asha")
        self.record = UdhaariRecord.objects.create(owner=self.owner, customer=self.customer, amount=Decimal("1000.00"))

    def test_new_record_is_pending(self):
        self.assertEqual(self.record.status, UdhaariRecord.Status.PENDING)
        self.assertEqual(self.record.balance, Decimal("1000.00"))

    def test_partial_then_full_payment(self):
        partial = record_payment(self.record.id, "400")
        self.assertEqual(partial.paid_amount, Decimal("400.00"))
        self.assertEqual(partial.status, UdhaariRecord.Status.PARTIAL)

        paid = record_payment(self.record.id, Decimal("600.00"))
        self.assertEqual(paid.paid_amount, Decimal("1000.00"))
        self.assertEqual(paid.status, UdhaariRecord.Status.PAID)

    def test_overpayment_is_rejected(self):
        record_payment(self.record.id, "900")

        with self.assertRaises(ValidationError) as ctx:
            record_payment(self.record.id, "200")

        self.assertEqual(ctx.exception.get_codes(), {"amount": ["overpayment"]})
        self.record.refresh_from_db()
        self.assertEqual(self.record.paid_amount, Decimal("900.00"))

    def test_non_positive_payment_is_rejected(self):
        for amount in ("0", "-10", "abc"):
            with self.assertRaises(ValidationError) as ctx:
                record_payment(self.record.id, amount)
            self.assertEqual(ctx.exception.get_codes(), {"amount": ["invalid_amount"]})

    def test_ledger_summary(self):
        UdhaariRecord.objects.create(owner=self.owner, customer=self.customer, amount=Decimal("500.00"))
        record_payment(self.record.id, "250")

        summary = ledger_summary(UdhaariRecord.objects.filter(owner=self.owner))

        self.assertEqual(summary, {"total": Decimal("1500.00"), "paid": Decimal("250.00"), "pending": Decimal("1250.00")})


class UdhaariApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        user_model = get_user_model()
        self.owner = user_model.objects.create_user(username="credit-api-owner", password="pass12345")
        self.other = user_model.objects.create_user(username="credit-api-other", password="pass12345")
        self.customer = Customer.objects.create(
            owner=self.owner,
            customer_code="CUST-001",
            name="Asha",
            phone="9876500000",
        )
        self.foreign_customer = Customer.objects.create(owner=self.other, customer_code="CUST-001", name="Foreign")
        self.client.force_authenticate(user=self.owner)

    def test_create_and_list_with_customer_details(self):
        created = self.client.post(
            "/api/v1/udhaari/",
            {"customer": str(self.customer.id), "amount": "750.00", "description": "Clutch kit", "due_date": "2024-04-01"},
            format="json",
        )
        listing = self.client.get("/api/v1/udhaari/")

        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["status"], "pending")
        self.assertEqual(created.json()["paid_amount"], "0.00")
        item = listing.json()["results"][0]
        self.assertEqual(item["customer_name"], "Asha")
        self.assertEqual(item["customer_phone"], "9876500000")
        self.assertTrue(AuditLog.objects.filter(action="udhaari.create").exists())

    def test_cannot_attach_record_to_other_owners_customer(self):
        response = self.client.post(
            "/api/v1/udhaari/",
            {"customer": str(self.foreign_customer.id), "amount": "100"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("customer", response.json()["errors"])

    def test_amount_must_be_positive(self):
        response = self.client.post(
            "/api/v1/udhaari/",
            {"customer": str(self.customer.id), "amount": "0"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)

    def test_payment_endpoint_updates_status(self):
        record = UdhaariRecord.objects.create(owner=self.owner, customer=self.customer, amount=Decimal("300"))

        partial = self.client.post(f"/api/v1/udhaari/{record.id}/payments/", {"amount": "100"}, format="json")
        overpay = self.client.post(f"/api/v1/udhaari/{record.id}/payments/", {"amount": "500"}, format="json")
        paid = self.client.post(f"/api/v1/udhaari/{record.id}/payments/", {"amount": "200"}, format="json")

        self.assertEqual(partial.json()["status"], "partial")
        self.assertEqual(partial.json()["balance"], "200.00")
        self.assertEqual(overpay.status_code, 400)
        self.assertEqual(overpay.json()["error_codes"], {"amount": ["overpayment"]})
        self.assertEqual(paid.json()["status"], "paid")
        self.assertEqual(AuditLog.objects.filter(action="udhaari.payment").count(), 2)

    def test_summary_and_owner_scoping(self):
        UdhaariRecord.objects.create(
            owner=self.owner,
            customer=self.customer,
            amount=Decimal("400"),
            paid_amount=Decimal("150"),
            status=UdhaariRecord.Status.PARTIAL,
        )
        foreign = UdhaariRecord.objects.create(owner=self.other, customer=self.foreign_customer, amount=Decimal("999"))

        summary = self.client.get("/api/v1/udhaari/summary/")
        detail = self.client.get(f"/api/v1/udhaari/{foreign.id}/")

        self.assertEqual(summary.json(), {"total": "400.00", "paid": "150.00", "pending": "250.00"})
        self.assertEqual(detail.status_code, 404)

    def test_delete_record(self):
        record = UdhaariRecord.objects.create(owner=self.owner, customer=self.customer, amount=Decimal("50"))

        response = self.client.delete(f"/api/v1/udhaari/{record.id}/")

        self.assertEqual(response.status_code, 204)
        self.assertFalse(UdhaariRecord.objects.filter(id=record.id).exists())
