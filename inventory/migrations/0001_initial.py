import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Part",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("hsn_code", models.CharField(max_length=64)),
                ("part_name", models.CharField(max_length=255)),
                ("brand", models.CharField(max_length=255)),
                ("category", models.CharField(max_length=255)),
                ("car_company", models.CharField(blank=True, max_length=255, null=True)),
                ("car_model", models.CharField(blank=True, max_length=255, null=True)),
                ("car_name", models.CharField(blank=True, max_length=255, null=True)),
                ("buying_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("selling_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("sgst_percentage", models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                ("cgst_percentage", models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                ("quantity", models.PositiveIntegerField(default=0)),
                ("low_stock_threshold", models.PositiveIntegerField(default=5)),
                ("image_url", models.URLField(blank=True, max_length=500, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="parts",
                        to="core.user",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["owner", "created_at"], name="part_owner_created_idx"),
                    models.Index(fields=["owner", "part_name"], name="part_owner_name_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=["owner", "hsn_code"], name="uniq_part_hsn_code_per_owner"),
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 0)), name="part_quantity_non_negative"),
                ],
            },
        ),
    ]
