import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum

from common.exceptions import validation_error
from common.utils import parse_decimal, to_money
from udhaari.models import UdhaariRecord

logger = logging.getLogger(__name__)


def status_for(amount, paid_amount):
    if paid_amount >= amount:
        return UdhaariRecord.Status.PAID
    if paid_amount > 0:
        return UdhaariRecord.Status.PARTIAL
    return UdhaariRecord.Status.PENDING


def record_payment(record_id, amount):
    """Apply a repayment to a credit record; the balance can never go negative."""
    value = parse_decimal(amount)
    if value is None or value <= 0:
        raise validation_error("amount", "Payment amount must be greater than zero.", "invalid_amount")

    with transaction.atomic():
        record = UdhaariRecord.objects.select_for_update().get(id=record_id)
        if value > record.balance:
            raise validation_error(
                "amount",
                "Payment amount cannot be greater than the remaining balance.",
                "overpayment",
            )
        record.paid_amount = to_money(record.paid_amount + value)
        record.status = status_for(record.amount, record.paid_amount)
        record.save(update_fields=["paid_amount", "status", "updated_at"])

    logger.info(
        "udhaari_payment_recorded",
        extra={"owner_id": str(record.owner_id), "detail": f"record={record.id} amount={to_money(value)}"},
    )
    return record


def ledger_summary(queryset):
    totals = queryset.aggregate(total=Sum("amount"), paid=Sum("paid_amount"))
    total = to_money(totals["total"] or Decimal("0"))
    paid = to_money(totals["paid"] or Decimal("0"))
    return {"total": total, "paid": paid, "pending": total - paid}
