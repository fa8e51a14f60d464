import uuid

from django.db import models

from core.models import User
from inventory.models import Part


class Customer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name="customers")
    customer_code = models.CharField(max_length=64)
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=64, null=True, blank=True)
    email = models.EmailField(null=True, blank=True)
    address = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["owner", "created_at"], name="customer_owner_created_idx"),
            models.Index(fields=["owner", "phone"], name="customer_owner_phone_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["owner", "customer_code"], name="uniq_customer_code_per_owner"),
        ]

    def __str__(self):
        return f"{self.name} ({self.customer_code})"


class Order(models.Model):
    """A committed bill. Totals and line snapshots never change after creation."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name="orders")
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name="orders")
    order_number = models.CharField(max_length=64)
    tax_included = models.BooleanField(default=False)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    total_buying_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_selling_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    profit_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["owner", "created_at"], name="order_owner_created_idx"),
            models.Index(fields=["customer", "created_at"], name="order_customer_created_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["owner", "order_number"], name="uniq_order_number_per_owner"),
        ]

    def __str__(self):
        return self.order_number

    @property
    def total_gst(self):
        return sum((line.total_gst for line in self.lines.all()), 0)


class OrderLine(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="lines")
    part = models.ForeignKey(Part, on_delete=models.SET_NULL, null=True, blank=True, related_name="order_lines")
    part_name = models.CharField(max_length=255)
    position = models.PositiveIntegerField(default=0)
    quantity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=12, decimal_places=2)
    buying_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    selling_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    sgst_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    cgst_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_gst = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ["position"]
        indexes = [
            models.Index(fields=["order", "position"], name="orderline_order_position_idx"),
            models.Index(fields=["part"], name="orderline_part_idx"),
        ]
