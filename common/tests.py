from decimal import Decimal

from django.test import SimpleTestCase

from common.exceptions import PersistenceError, UploadError, custom_exception_handler, validation_error
from common.identifiers import CUSTOMER_PREFIX, ORDER_PREFIX, format_identifier, next_identifier, parse_sequence
from common.storage import build_upload_path
from common.utils import format_money, parse_decimal, to_money


class NextIdentifierTests(SimpleTestCase):
    def test_increments_numeric_suffix(self):
        self.assertEqual(next_identifier(ORDER_PREFIX, "ORD-007"), "ORD-008")
        self.assertEqual(next_identifier(CUSTOMER_PREFIX, "CUST-003"), "CUST-004")

    def test_missing_previous_value_starts_at_one(self):
        self.assertEqual(next_identifier(ORDER_PREFIX, None), "ORD-001")
        self.assertEqual(next_identifier(ORDER_PREFIX, ""), "ORD-001")

    def test_malformed_previous_value_starts_at_one(self):
        self.assertEqual(next_identifier(ORDER_PREFIX, "garbage"), "ORD-001")
        self.assertEqual(next_identifier(ORDER_PREFIX, "CUST-010"), "ORD-001")
        self.assertEqual(next_identifier(ORDER_PREFIX, "ORD-abc"), "ORD-001")
        self.assertEqual(next_identifier(ORDER_PREFIX, "ORD-12a"), "ORD-001")

    def test_width_grows_past_three_digits(self):
        self.assertEqual(next_identifier(ORDER_PREFIX, "ORD-999"), "ORD-1000")
        self.assertEqual(format_identifier("HSN", 42), "HSN-042")

    def test_parse_sequence(self):
        self.assertEqual(parse_sequence("CUST", "CUST-010"), 10)
        self.assertIsNone(parse_sequence("CUST", "CUST-"))


class MoneyTests(SimpleTestCase):
    def test_to_money_rounds_half_up(self):
        self.assertEqual(to_money("2.675"), Decimal("2.68"))
        self.assertEqual(to_money(Decimal("0.005")), Decimal("0.01"))
        self.assertEqual(to_money(None), Decimal("0.00"))

    def test_format_money_with_prefix(self):
        self.assertEqual(format_money(Decimal("1180"), "Rs."), "Rs.1180.00")
        self.assertEqual(format_money("90"), "90.00")

    def test_parse_decimal_rejects_non_numbers(self):
        self.assertEqual(parse_decimal("450.50"), Decimal("450.50"))
        self.assertIsNone(parse_decimal("abc"))
        self.assertIsNone(parse_decimal("NaN"))
        self.assertIsNone(parse_decimal(True))
        self.assertIsNone(parse_decimal(None))


class ExceptionHandlerTests(SimpleTestCase):
    def test_validation_error_envelope_carries_stable_code(self):
        response = custom_exception_handler(
            validation_error("customer", "Select a customer.", "no_customer_selected"),
            {"view": None},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "validation_error")
        self.assertEqual(response.data["message"], "Select a customer.")
        self.assertEqual(response.data["error_codes"], {"customer": ["no_customer_selected"]})

    def test_persistence_error_is_conflict(self):
        response = custom_exception_handler(PersistenceError("duplicate key"), {"view": None})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "persistence_error")
        self.assertEqual(response.data["message"], "duplicate key")

    def test_upload_error_is_bad_gateway(self):
        response = custom_exception_handler(UploadError(), {"view": None})

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data["code"], "upload_failed")


class UploadPathTests(SimpleTestCase):
    def test_path_uses_directory_owner_and_extension(self):
        path = build_upload_path("part-images", "owner-1", "Brake Pad.JPG", stem="1700000000000")

        self.assertEqual(path, "part-images/owner-1/1700000000000.jpg")

    def test_missing_extension_falls_back(self):
        self.assertTrue(build_upload_path("part-images/", "o", "noext").endswith(".bin"))
