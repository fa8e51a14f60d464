import logging

from django.conf import settings
from django.db.models import F, Q

from common.exceptions import validation_error
from common.identifiers import PART_CODE_PREFIX, next_identifier_for
from common.storage import build_upload_path, upload_or_default
from inventory.models import Part

logger = logging.getLogger(__name__)


def next_part_code(owner):
    return next_identifier_for(Part.objects.filter(owner=owner), "hsn_code", PART_CODE_PREFIX)


def search_parts(queryset, term):
    term = (term or "").strip()
    if not term:
        return queryset
    return queryset.filter(
        Q(part_name__icontains=term)
        | Q(hsn_code__icontains=term)
        | Q(brand__icontains=term)
        | Q(category__icontains=term)
    )


def low_stock_parts(queryset):
    return queryset.filter(quantity__lte=F("low_stock_threshold"))


def try_reserve(part_id, quantity):
    """Atomically take ``quantity`` units off a part's stock.

    Returns False, leaving the row untouched, when fewer than ``quantity``
    units remain.
    """
    if quantity <= 0:
        return False
    updated = Part.objects.filter(id=part_id, quantity__gte=quantity).update(quantity=F("quantity") - quantity)
    if not updated:
        logger.warning("stock_reserve_failed", extra={"part_id": str(part_id), "detail": f"requested={quantity}"})
    return bool(updated)


def set_part_quantity(part, quantity):
    if quantity is None or int(quantity) < 0:
        raise validation_error("quantity", "Quantity must be zero or greater.", "invalid_quantity")
    part.quantity = int(quantity)
    part.save(update_fields=["quantity", "updated_at"])
    return part


def store_part_image(owner, image):
    if not image:
        return None
    path = build_upload_path(settings.PART_IMAGE_UPLOAD_DIR, owner.id, image.name)
    return upload_or_default(image, path, default=None, owner_id=owner.id)
