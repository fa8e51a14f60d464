"""Human-readable sequential business identifiers such as ``ORD-007``.

Identifiers are display values, not keys: the numeric suffix of the most
recent identifier is incremented and re-rendered with at least three digits.
Anything that does not look like ``<PREFIX>-<digits>`` restarts the sequence
at ``001``.
"""
import re

ORDER_PREFIX = "ORD"
CUSTOMER_PREFIX = "CUST"
PART_CODE_PREFIX = "HSN"

MIN_WIDTH = 3


def parse_sequence(prefix, identifier):
    if not identifier:
        return None
    match = re.fullmatch(rf"{re.escape(prefix)}-(\d+)", str(identifier).strip())
    if match is None:
        return None
    return int(match.group(1))


def format_identifier(prefix, number):
    return f"{prefix}-{number:0{MIN_WIDTH}d}"


def next_identifier(prefix, current_max_value=None):
    current = parse_sequence(prefix, current_max_value)
    if current is None:
        return format_identifier(prefix, 1)
    return format_identifier(prefix, current + 1)


def latest_identifier(queryset, field):
    """Latest non-empty ``field`` value by creation time, or None."""
    return (
        queryset.exclude(**{f"{field}__isnull": True})
        .exclude(**{field: ""})
        .order_by("-created_at")
        .values_list(field, flat=True)
        .first()
    )


def next_identifier_for(queryset, field, prefix):
    return next_identifier(prefix, latest_identifier(queryset, field))
