import uuid

from django.db import models

from core.models import User


class Part(models.Model):
    """A spare part in the owner's catalog (the stock row billed against)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name="parts")
    hsn_code = models.CharField(max_length=64)
    part_name = models.CharField(max_length=255)
    brand = models.CharField(max_length=255)
    category = models.CharField(max_length=255)
    car_company = models.CharField(max_length=255, null=True, blank=True)
    car_model = models.CharField(max_length=255, null=True, blank=True)
    car_name = models.CharField(max_length=255, null=True, blank=True)
    buying_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    selling_price = models.DecimalField(max_digits=12, decimal_places=2)
    sgst_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    cgst_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    quantity = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(default=5)
    image_url = models.URLField(max_length=500, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["owner", "created_at"], name="part_owner_created_idx"),
            models.Index(fields=["owner", "part_name"], name="part_owner_name_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["owner", "hsn_code"], name="uniq_part_hsn_code_per_owner"),
            models.CheckConstraint(condition=models.Q(quantity__gte=0), name="part_quantity_non_negative"),
        ]

    def __str__(self):
        return f"{self.part_name} ({self.brand})"

    @property
    def display_name(self):
        return str(self)

    @property
    def is_low_stock(self):
        return self.quantity <= self.low_stock_threshold
