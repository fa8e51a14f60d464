import json
import logging
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from common.logging import JsonFormatter
from core.models import AuditLog, BusinessProfile
from core.serializers import UserRegistrationSerializer


class RegistrationTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_creates_user_with_default_business_profile(self):
        response = self.client.post(
            "/api/v1/register/",
            {"username": "asha-owner", "email": "Owner@Example.com", "password": "pass12345"},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        user = get_user_model().objects.get(username="asha-owner")
        self.assertEqual(user.email, "owner@example.com")
        self.assertEqual(user.business_profile.business_name, "Vijaya Auto Spares")
        self.assertTrue(AuditLog.objects.filter(action="user.create", entity_id=user.id).exists())

    def test_registration_rejects_case_insensitive_duplicate_email(self):
        get_user_model().objects.create_user(username="first", email="dup@example.com", password="pass12345")
        serializer = UserRegistrationSerializer(
            data={"username": "second", "email": "DUP@example.com", "password": "pass12345"}
        )

        self.assertFalse(serializer.is_valid())
        self.assertIn("email", serializer.errors)

    def test_token_accepts_email_as_username(self):
        get_user_model().objects.create_user(username="mailer", email="mailer@example.com", password="pass12345")

        response = self.client.post(
            "/api/v1/token/",
            {"username": "mailer@example.com", "password": "pass12345"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn("access", response.json())


class BusinessProfileTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = get_user_model().objects.create_user(username="profile-owner", password="pass12345")
        self.client.force_authenticate(user=self.user)

    def test_profile_is_created_lazily_with_default_name(self):
        response = self.client.get("/api/v1/business-profile/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["business_name"], "Vijaya Auto Spares")
        self.assertEqual(BusinessProfile.objects.filter(owner=self.user).count(), 1)

    @override_settings(DEFAULT_BUSINESS_NAME="Sri Ram Motors")
    def test_default_business_name_is_configurable(self):
        response = self.client.get("/api/v1/business-profile/")

        self.assertEqual(response.json()["business_name"], "Sri Ram Motors")

    def test_update_profile_normalizes_gstin_and_writes_audit(self):
        response = self.client.patch(
            "/api/v1/business-profile/",
            {"business_name": "Vijaya Auto Spares", "gstin": " 29abcde1234f1z5 ", "contact_phone": "9876543210"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["gstin"], "29ABCDE1234F1Z5")
        log = AuditLog.objects.get(action="business_profile.update")
        self.assertEqual(log.after_snapshot["contact_phone"], "9876543210")

    def test_blank_business_name_is_rejected(self):
        response = self.client.patch("/api/v1/business-profile/", {"business_name": "   "}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "validation_error")

    def test_logo_upload_sets_logo_url(self):
        logo = SimpleUploadedFile("logo.png", b"not-really-a-png", content_type="image/png")

        response = self.client.patch("/api/v1/business-profile/", {"logo": logo}, format="multipart")

        self.assertEqual(response.status_code, 200)
        self.assertIn(f"business-logos/{self.user.id}/", response.json()["logo_url"])

    def test_failed_logo_upload_keeps_previous_logo(self):
        profile = BusinessProfile.for_owner(self.user)
        profile.logo_url = "https://cdn.example.com/old-logo.png"
        profile.save()
        logo = SimpleUploadedFile("logo.png", b"bytes", content_type="image/png")

        with patch("common.storage.default_storage") as storage:
            storage.save.side_effect = OSError("disk full")
            with self.assertLogs("common.storage", level="WARNING") as logs:
                response = self.client.patch(
                    "/api/v1/business-profile/",
                    {"logo": logo, "owner_name": "Ravi"},
                    format="multipart",
                )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["logo_url"], "https://cdn.example.com/old-logo.png")
        self.assertEqual(response.json()["owner_name"], "Ravi")
        self.assertTrue(any("upload_failed" in message for message in logs.output))


class AuditLogTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        user_model = get_user_model()
        self.user = user_model.objects.create_user(username="audit-owner", password="pass12345")
        self.other = user_model.objects.create_user(username="audit-other", password="pass12345")

    def test_audit_logs_are_scoped_to_actor_and_read_only(self):
        own = AuditLog.objects.create(actor=self.user, action="part.create", entity="part")
        AuditLog.objects.create(actor=self.other, action="part.create", entity="part")
        self.client.force_authenticate(user=self.user)

        response = self.client.get("/api/v1/audit-logs/")
        patch_res = self.client.patch(f"/api/v1/audit-logs/{own.id}/", {"action": "changed"}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["id"] for item in response.json()["results"]], [str(own.id)])
        self.assertEqual(patch_res.status_code, 405)

    def test_audit_log_export_returns_csv(self):
        AuditLog.objects.create(actor=self.user, action="customer.create", entity="customer")
        self.client.force_authenticate(user=self.user)

        response = self.client.get("/api/v1/audit-logs/export/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn("customer.create", response.content.decode())


class ErrorEnvelopeTests(TestCase):
    def test_unauthenticated_request_uses_error_envelope(self):
        response = APIClient().get("/api/v1/parts/")

        self.assertEqual(response.status_code, 401)
        payload = response.json()
        self.assertEqual(payload["code"], "not_authenticated")
        self.assertEqual(payload["status"], 401)
        self.assertIn("message", payload)

    def test_request_id_header_is_echoed(self):
        response = APIClient().get("/healthz/", HTTP_X_REQUEST_ID="req-123")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["X-Request-ID"], "req-123")
        self.assertEqual(response.json()["request_id"], "req-123")

    def test_readiness_pings_database(self):
        response = APIClient().get("/readyz/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ready")


class JsonFormatterTests(TestCase):
    def test_structured_extra_fields_are_lifted(self):
        record = logging.LogRecord("sales.services", logging.INFO, __file__, 1, "order_committed", None, None)
        record.order_number = "ORD-004"
        record.attempt = 2

        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["message"], "order_committed")
        self.assertEqual(payload["order_number"], "ORD-004")
        self.assertEqual(payload["attempt"], 2)
        self.assertNotIn("part_id", payload)
