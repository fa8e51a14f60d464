from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

MONEY_QUANT = Decimal("0.01")


def to_decimal(value):
    if isinstance(value, Decimal):
        return value
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def parse_decimal(value):
    """Return ``value`` as a Decimal, or None when it is not a finite number."""
    if isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def to_money(value):
    return to_decimal(value).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def format_money(value, prefix=""):
    amount = f"{to_money(value):.2f}"
    return f"{prefix}{amount}" if prefix else amount

