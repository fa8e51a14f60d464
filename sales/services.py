import logging

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from common.exceptions import PersistenceError, validation_error
from common.identifiers import CUSTOMER_PREFIX, ORDER_PREFIX, next_identifier_for
from common.utils import to_money
from inventory.models import Part
from inventory.services import try_reserve
from sales.models import Customer, Order, OrderLine
from sales.pricing import DraftOrder, add_line, set_line_price

logger = logging.getLogger(__name__)


def next_order_number(owner):
    return next_identifier_for(Order.objects.filter(owner=owner), "order_number", ORDER_PREFIX)


def next_customer_code(owner):
    return next_identifier_for(Customer.objects.filter(owner=owner), "customer_code", CUSTOMER_PREFIX)


def resolve_customer(owner, customer_id):
    customer = Customer.objects.filter(owner=owner, id=customer_id).first() if customer_id else None
    if customer is None:
        raise validation_error("customer", "Select a customer before creating the bill.", "no_customer_selected")
    return customer


def build_draft(owner, items, include_tax=False):
    """Replay ``items`` through the pricing engine against the owner's catalog."""
    draft = DraftOrder(include_tax=bool(include_tax))
    part_ids = [item["part"] for item in items]
    parts = {str(part.id): part for part in Part.objects.filter(owner=owner, id__in=part_ids)}
    for item in items:
        part = parts.get(str(item["part"]))
        if part is None:
            raise validation_error("part", f"Unknown part {item['part']}.", "unknown_part")
        draft = add_line(draft, part, item["quantity"])
        if item.get("unit_price") is not None:
            draft = set_line_price(draft, part.id, item["unit_price"])
    return draft


def compute_order_totals(draft):
    return {
        "total_amount": to_money(draft.total_amount),
        "total_buying_price": to_money(draft.total_buying_price),
        "total_selling_price": to_money(draft.total_selling_price),
        "profit_amount": to_money(draft.profit_amount),
    }


def _create_order(owner, customer, draft, totals):
    max_retries = max(int(getattr(settings, "ORDER_NUMBER_MAX_RETRIES", 3)), 1)
    for attempt in range(1, max_retries + 1):
        order_number = next_order_number(owner)
        try:
            with transaction.atomic():
                return Order.objects.create(
                    owner=owner,
                    customer=customer,
                    order_number=order_number,
                    tax_included=draft.include_tax,
                    total_amount=totals["total_amount"],
                    total_buying_price=totals["total_buying_price"],
                    total_selling_price=totals["total_selling_price"],
                    profit_amount=totals["profit_amount"],
                )
        except IntegrityError:
            logger.warning(
                "order_number_conflict_retry",
                extra={"owner_id": str(owner.id), "order_number": order_number, "attempt": attempt},
            )
    raise PersistenceError("Could not allocate a unique order number.")


def commit_order(owner, draft, customer_id):
    """Persist ``draft`` as an order for ``customer_id`` and take its stock.

    Runs in one transaction: the order, its lines and every stock decrement
    are written together or not at all.
    """
    customer = resolve_customer(owner, customer_id)
    if draft.is_empty:
        raise validation_error("items", "Add at least one part to the bill.", "empty_order")

    part_ids = [line.part_id for line in draft.lines]
    owned = {str(pk) for pk in Part.objects.filter(owner=owner, id__in=part_ids).values_list("id", flat=True)}
    for line in draft.lines:
        if str(line.part_id) not in owned:
            raise validation_error("part", f"Unknown part {line.part_id}.", "unknown_part")

    totals = compute_order_totals(draft)
    try:
        with transaction.atomic():
            order = _create_order(owner, customer, draft, totals)
            OrderLine.objects.bulk_create(
                [
                    OrderLine(
                        order=order,
                        part_id=line.part_id,
                        part_name=line.part_name,
                        position=position,
                        quantity=line.quantity,
                        price=to_money(line.price),
                        buying_price=to_money(line.buying_price),
                        selling_price=to_money(line.selling_price),
                        sgst_amount=to_money(line.sgst_amount),
                        cgst_amount=to_money(line.cgst_amount),
                        total_gst=to_money(line.total_gst),
                        subtotal=to_money(line.subtotal),
                    )
                    for position, line in enumerate(draft.lines, start=1)
                ]
            )
            for line in draft.lines:
                if not try_reserve(line.part_id, line.quantity):
                    raise validation_error(
                        "quantity",
                        f"Not enough stock left for {line.part_name}.",
                        "insufficient_stock",
                    )
    except DatabaseError as exc:
        logger.exception("order_commit_failed", extra={"owner_id": str(owner.id)})
        raise PersistenceError(str(exc)) from exc

    logger.info(
        "order_committed",
        extra={
            "owner_id": str(owner.id),
            "order_id": str(order.id),
            "order_number": order.order_number,
            "detail": f"lines={len(draft.lines)} total={totals['total_amount']}",
        },
    )
    return order
