import io
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from PIL import Image
from rest_framework.test import APIClient

from core.models import AuditLog
from inventory.models import Part
from inventory.services import low_stock_parts, next_part_code, try_reserve


def make_part(owner, **overrides):
    values = {
        "hsn_code": "HSN-001",
        "part_name": "Brake Pad",
        "brand": "Bosch",
        "category": "Brakes",
        "buying_price": Decimal("350.00"),
        "selling_price": Decimal("500.00"),
        "sgst_percentage": Decimal("9"),
        "cgst_percentage": Decimal("9"),
        "quantity": 10,
    }
    values.update(overrides)
    return Part.objects.create(owner=owner, **values)


def png_upload(name="part.png"):
    buffer = io.BytesIO()
    Image.new("RGB", (2, 2), color=(200, 30, 30)).save(buffer, format="PNG")
    return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")


class PartApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        user_model = get_user_model()
        self.owner = user_model.objects.create_user(username="parts-owner", password="pass12345")
        self.other = user_model.objects.create_user(username="parts-other", password="pass12345")
        self.client.force_authenticate(user=self.owner)

    def _payload(self, **overrides):
        payload = {
            "part_name": "Clutch Plate",
            "brand": "Valeo",
            "category": "Transmission",
            "buying_price": "800.00",
            "selling_price": "1100.00",
            "sgst_percentage": "14",
            "cgst_percentage": "14",
            "quantity": 4,
        }
        payload.update(overrides)
        return payload

    def test_create_assigns_sequential_hsn_code_when_missing(self):
        first = self.client.post("/api/v1/parts/", self._payload(), format="json")
        second = self.client.post("/api/v1/parts/", self._payload(part_name="Oil Filter"), format="json")

        self.assertEqual(first.status_code, 201)
        self.assertEqual(first.json()["hsn_code"], "HSN-001")
        self.assertEqual(second.json()["hsn_code"], "HSN-002")
        self.assertEqual(first.json()["display_name"], "Clutch Plate (Valeo)")
        self.assertTrue(AuditLog.objects.filter(action="part.create", actor=self.owner).exists())

    def test_create_keeps_explicit_hsn_code_and_rejects_duplicates(self):
        created = self.client.post("/api/v1/parts/", self._payload(hsn_code="8708"), format="json")
        duplicate = self.client.post("/api/v1/parts/", self._payload(hsn_code="8708"), format="json")

        self.assertEqual(created.json()["hsn_code"], "8708")
        self.assertEqual(duplicate.status_code, 400)
        self.assertEqual(duplicate.json()["error_codes"], {"hsn_code": ["duplicate_hsn_code"]})

    def test_negative_price_is_rejected(self):
        response = self.client.post("/api/v1/parts/", self._payload(selling_price="-1"), format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error_codes"], {"selling_price": ["invalid_price"]})
        self.assertFalse(Part.objects.exists())

    def test_list_is_scoped_to_owner(self):
        own = make_part(self.owner)
        foreign = make_part(self.other)

        response = self.client.get("/api/v1/parts/")
        detail = self.client.get(f"/api/v1/parts/{foreign.id}/")

        ids = {item["id"] for item in response.json()["results"]}
        self.assertEqual(ids, {str(own.id)})
        self.assertEqual(detail.status_code, 404)

    def test_search_and_in_stock_filters(self):
        make_part(self.owner, hsn_code="HSN-001", part_name="Brake Pad", quantity=3)
        make_part(self.owner, hsn_code="HSN-002", part_name="Brake Shoe", quantity=0)
        make_part(self.owner, hsn_code="HSN-003", part_name="Spark Plug", brand="NGK", category="Ignition")

        search = self.client.get("/api/v1/parts/", {"search": "brake"})
        in_stock = self.client.get("/api/v1/parts/", {"search": "brake", "in_stock": "true"})
        by_brand = self.client.get("/api/v1/parts/", {"search": "ngk"})

        self.assertEqual(search.json()["count"], 2)
        self.assertEqual([item["part_name"] for item in in_stock.json()["results"]], ["Brake Pad"])
        self.assertEqual(by_brand.json()["count"], 1)

    def test_set_quantity_updates_stock_and_audits(self):
        part = make_part(self.owner, quantity=2)

        response = self.client.post(f"/api/v1/parts/{part.id}/set-quantity/", {"quantity": 25}, format="json")
        rejected = self.client.post(f"/api/v1/parts/{part.id}/set-quantity/", {"quantity": -1}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["quantity"], 25)
        self.assertEqual(rejected.status_code, 400)
        part.refresh_from_db()
        self.assertEqual(part.quantity, 25)
        log = AuditLog.objects.get(action="part.set_quantity")
        self.assertEqual(log.before_snapshot["quantity"], 2)

    def test_low_stock_lists_parts_at_or_below_threshold(self):
        make_part(self.owner, hsn_code="HSN-001", part_name="Fuse", quantity=5)
        make_part(self.owner, hsn_code="HSN-002", part_name="Bulb", quantity=1)
        make_part(self.owner, hsn_code="HSN-003", part_name="Horn", quantity=6)

        response = self.client.get("/api/v1/parts/low-stock/")
        csv_response = self.client.get("/api/v1/parts/low-stock/", {"format_type": "csv"})

        self.assertEqual([item["part_name"] for item in response.json()], ["Bulb", "Fuse"])
        self.assertEqual(csv_response["Content-Type"], "text/csv")
        self.assertIn("Bulb", csv_response.content.decode())

    def test_next_code_preview(self):
        make_part(self.owner, hsn_code="HSN-009")

        response = self.client.get("/api/v1/parts/next-code/")

        self.assertEqual(response.json(), {"hsn_code": "HSN-010"})

    def test_image_upload_sets_image_url(self):
        response = self.client.post("/api/v1/parts/", self._payload(image=png_upload()), format="multipart")

        self.assertEqual(response.status_code, 201)
        self.assertIn(f"part-images/{self.owner.id}/", response.json()["image_url"])
        self.assertTrue(response.json()["image_url"].endswith(".png"))

    def test_failed_image_upload_still_saves_part(self):
        with patch("common.storage.default_storage") as storage:
            storage.save.side_effect = OSError("bucket unavailable")
            with self.assertLogs("common.storage", level="WARNING"):
                response = self.client.post("/api/v1/parts/", self._payload(image=png_upload()), format="multipart")

        self.assertEqual(response.status_code, 201)
        self.assertIsNone(response.json()["image_url"])
        self.assertTrue(Part.objects.filter(owner=self.owner, part_name="Clutch Plate").exists())

    def test_delete_writes_audit_log(self):
        part = make_part(self.owner)

        response = self.client.delete(f"/api/v1/parts/{part.id}/")

        self.assertEqual(response.status_code, 204)
        self.assertFalse(Part.objects.filter(id=part.id).exists())
        self.assertTrue(AuditLog.objects.filter(action="part.delete", entity_id=part.id).exists())


class StockServiceTests(TestCase):
    def setUp(self):
        self.owner = get_user_model().objects.create_user(username="stock-owner", password="pass12345")

    def test_try_reserve_decrements_when_enough_stock(self):
        part = make_part(self.owner, quantity=10)

        self.assertTrue(try_reserve(part.id, 2))
        part.refresh_from_db()
        self.assertEqual(part.quantity, 8)

    def test_try_reserve_refuses_and_leaves_stock_untouched(self):
        part = make_part(self.owner, quantity=1)

        with self.assertLogs("inventory.services", level="WARNING"):
            self.assertFalse(try_reserve(part.id, 2))
        part.refresh_from_db()
        self.assertEqual(part.quantity, 1)

    def test_try_reserve_can_take_the_last_unit(self):
        part = make_part(self.owner, quantity=1)

        self.assertTrue(try_reserve(part.id, 1))
        part.refresh_from_db()
        self.assertEqual(part.quantity, 0)

    def test_low_stock_uses_each_parts_threshold(self):
        make_part(self.owner, hsn_code="HSN-001", quantity=3, low_stock_threshold=2)
        low = make_part(self.owner, hsn_code="HSN-002", quantity=3, low_stock_threshold=3)

        self.assertEqual(list(low_stock_parts(Part.objects.filter(owner=self.owner))), [low])

    def test_next_part_code_uses_latest_code(self):
        self.assertEqual(next_part_code(self.owner), "HSN-001")
        make_part(self.owner, hsn_code="HSN-041")
        self.assertEqual(next_part_code(self.owner), "HSN-042")
