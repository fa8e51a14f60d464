import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("core", "0001_initial"),
        ("inventory", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("customer_code", models.CharField(max_length=64)),
                ("name", models.CharField(max_length=255)),
                ("phone", models.CharField(blank=True, max_length=64, null=True)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("address", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="customers",
                        to="core.user",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["owner", "created_at"], name="customer_owner_created_idx"),
                    models.Index(fields=["owner", "phone"], name="customer_owner_phone_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=["owner", "customer_code"], name="uniq_customer_code_per_owner"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number", models.CharField(max_length=64)),
                ("tax_included", models.BooleanField(default=False)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_buying_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("total_selling_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("profit_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="sales.customer",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="orders",
                        to="core.user",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["owner", "created_at"], name="order_owner_created_idx"),
                    models.Index(fields=["customer", "created_at"], name="order_customer_created_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=["owner", "order_number"], name="uniq_order_number_per_owner"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderLine",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("part_name", models.CharField(max_length=255)),
                ("position", models.PositiveIntegerField(default=0)),
                ("quantity", models.PositiveIntegerField()),
                ("price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("buying_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("selling_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("sgst_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("cgst_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("total_gst", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="sales.order",
                    ),
                ),
                (
                    "part",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="order_lines",
                        to="inventory.part",
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
                "indexes": [
                    models.Index(fields=["order", "position"], name="orderline_order_position_idx"),
                    models.Index(fields=["part"], name="orderline_part_idx"),
                ],
            },
        ),
    ]
