"""Line-item pricing for a bill being assembled.

A draft is an immutable value: every operation returns a new ``DraftOrder``
and leaves its input untouched, so a rejected edit can never leave a bill
half-changed. Amounts are kept at full ``Decimal`` precision here and only
rounded by ``common.utils.to_money`` when persisted or displayed. Order totals
are the sums of the rounded line amounts, so a bill always adds up to the
figures printed on it.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal

from common.exceptions import validation_error
from common.utils import MONEY_QUANT, parse_decimal, to_decimal, to_money

HUNDRED = Decimal("100")
# Upper bound of a 12-digit, 2-decimal money column.
MAX_PRICE = Decimal("1e10")


@dataclass(frozen=True)
class DraftLine:
    part_id: object
    part_name: str
    quantity: int
    selling_price: Decimal
    buying_price: Decimal
    sgst_percentage: Decimal
    cgst_percentage: Decimal
    include_tax: bool = False

    @property
    def sgst_per_unit(self) -> Decimal:
        return self.selling_price * self.sgst_percentage / HUNDRED

    @property
    def cgst_per_unit(self) -> Decimal:
        return self.selling_price * self.cgst_percentage / HUNDRED

    @property
    def tax_per_unit(self) -> Decimal:
        return self.sgst_per_unit + self.cgst_per_unit

    @property
    def price_with_tax(self) -> Decimal:
        return self.selling_price + self.tax_per_unit

    @property
    def price(self) -> Decimal:
        """Unit price actually charged."""
        return self.price_with_tax if self.include_tax else self.selling_price

    @property
    def sgst_amount(self) -> Decimal:
        return self.sgst_per_unit * self.quantity

    @property
    def cgst_amount(self) -> Decimal:
        return self.cgst_per_unit * self.quantity

    @property
    def total_gst(self) -> Decimal:
        return self.tax_per_unit * self.quantity

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class DraftOrder:
    lines: tuple[DraftLine, ...] = field(default_factory=tuple)
    include_tax: bool = False

    def find(self, part_id) -> DraftLine | None:
        for line in self.lines:
            if str(line.part_id) == str(part_id):
                return line
        return None

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def total_amount(self) -> Decimal:
        return sum((to_money(line.subtotal) for line in self.lines), Decimal("0.00"))

    @property
    def total_gst(self) -> Decimal:
        return sum((to_money(line.total_gst) for line in self.lines), Decimal("0.00"))

    @property
    def total_buying_price(self) -> Decimal:
        return sum((to_money(line.buying_price * line.quantity) for line in self.lines), Decimal("0.00"))

    @property
    def total_selling_price(self) -> Decimal:
        return sum((to_money(line.selling_price * line.quantity) for line in self.lines), Decimal("0.00"))

    @property
    def profit_amount(self) -> Decimal:
        return self.total_selling_price - self.total_buying_price


def _validate_quantity(quantity, available):
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise validation_error("quantity", "Quantity must be a whole number.", "quantity_out_of_range")
    if quantity <= 0 or quantity > available:
        raise validation_error(
            "quantity",
            f"Quantity must be between 1 and {available}.",
            "quantity_out_of_range",
        )


def _validate_price(value) -> Decimal:
    price = parse_decimal(value)
    if price is None or price < 0 or price >= MAX_PRICE or price != price.quantize(MONEY_QUANT):
        raise validation_error(
            "unit_price",
            "Price must be a non-negative amount with at most 2 decimal places.",
            "invalid_price",
        )
    return price


def _replace_line(draft: DraftOrder, part_id, new_line: DraftLine | None) -> DraftOrder:
    lines = []
    for line in draft.lines:
        if str(line.part_id) == str(part_id):
            if new_line is not None:
                lines.append(new_line)
        else:
            lines.append(line)
    return replace(draft, lines=tuple(lines))


def add_line(draft: DraftOrder, part, quantity) -> DraftOrder:
    """Add ``quantity`` units of ``part``, merging into an existing line for the same part.

    The merged quantity is checked against the part's on-hand stock too.
    """
    existing = draft.find(part.id)
    _validate_quantity(quantity, part.quantity)
    if existing is not None:
        _validate_quantity(existing.quantity + quantity, part.quantity)
        return _replace_line(draft, part.id, replace(existing, quantity=existing.quantity + quantity))

    line = DraftLine(
        part_id=part.id,
        part_name=f"{part.part_name} ({part.brand})",
        quantity=quantity,
        selling_price=to_decimal(part.selling_price),
        buying_price=to_decimal(part.buying_price),
        sgst_percentage=to_decimal(part.sgst_percentage),
        cgst_percentage=to_decimal(part.cgst_percentage),
        include_tax=draft.include_tax,
    )
    return replace(draft, lines=draft.lines + (line,))


def set_line_price(draft: DraftOrder, part_id, new_unit_price) -> DraftOrder:
    existing = draft.find(part_id)
    if existing is None:
        raise validation_error("part", "This part is not on the bill.", "unknown_part")
    price = _validate_price(new_unit_price)
    return _replace_line(draft, part_id, replace(existing, selling_price=price))


def remove_line(draft: DraftOrder, part_id) -> DraftOrder:
    return _replace_line(draft, part_id, None)


def set_include_tax(draft: DraftOrder, include_tax: bool) -> DraftOrder:
    include_tax = bool(include_tax)
    lines = tuple(replace(line, include_tax=include_tax) for line in draft.lines)
    return DraftOrder(lines=lines, include_tax=include_tax)
