import uuid

from django.db import models

from core.models import User
from sales.models import Customer


class UdhaariRecord(models.Model):
    """Goods or money given to a customer on credit, settled over time."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        PARTIAL = "partial", "Partial"
        PAID = "paid", "Paid"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name="udhaari_records")
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name="udhaari_records")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    description = models.TextField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["owner", "created_at"], name="udhaari_owner_created_idx"),
            models.Index(fields=["owner", "status"], name="udhaari_owner_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gt=0), name="udhaari_amount_positive"),
            models.CheckConstraint(condition=models.Q(paid_amount__gte=0), name="udhaari_paid_non_negative"),
        ]

    @property
    def balance(self):
        return self.amount - self.paid_amount
