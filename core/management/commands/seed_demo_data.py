from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from core.models import BusinessProfile
from inventory.models import Part
from sales.models import Customer, Order
from sales.services import build_draft, commit_order
from udhaari.models import UdhaariRecord


class Command(BaseCommand):
    help = "Seed demo parts, customers, an order and a credit record for local development."

    def handle(self, *args, **options):
        User = get_user_model()

        owner, created = User.objects.get_or_create(
            username="demo",
            defaults={"email": "demo@example.com", "is_active": True},
        )
        if created:
            owner.set_password("demo1234")
            owner.save(update_fields=["password"])

        profile = BusinessProfile.for_owner(owner)
        profile.business_name = "Sharma Auto Spares"
        profile.owner_name = "R. Sharma"
        profile.address = "12 Transport Nagar, Jaipur"
        profile.gstin = "08ABCDE1234F1Z5"
        profile.contact_phone = "9876543210"
        profile.save()

        brake_pad, _ = Part.objects.get_or_create(
            owner=owner,
            hsn_code="HSN-001",
            defaults={
                "part_name": "Brake Pad",
                "brand": "Bosch",
                "category": "Brakes",
                "car_company": "Maruti",
                "car_model": "Swift",
                "buying_price": Decimal("350.00"),
                "selling_price": Decimal("500.00"),
                "sgst_percentage": Decimal("9"),
                "cgst_percentage": Decimal("9"),
                "quantity": 40,
            },
        )
        Part.objects.get_or_create(
            owner=owner,
            hsn_code="HSN-002",
            defaults={
                "part_name": "Oil Filter",
                "brand": "Purolator",
                "category": "Filters",
                "buying_price": Decimal("120.00"),
                "selling_price": Decimal("180.00"),
                "sgst_percentage": Decimal("6"),
                "cgst_percentage": Decimal("6"),
                "quantity": 3,
            },
        )
        wiper, _ = Part.objects.get_or_create(
            owner=owner,
            hsn_code="HSN-003",
            defaults={
                "part_name": "Wiper Blade",
                "brand": "Valeo",
                "category": "Accessories",
                "buying_price": Decimal("90.00"),
                "selling_price": Decimal("150.00"),
                "quantity": 25,
            },
        )

        customer, _ = Customer.objects.get_or_create(
            owner=owner,
            customer_code="CUST-001",
            defaults={"name": "Asha Verma", "phone": "9811122233", "email": "asha@example.com"},
        )

        if not Order.objects.filter(owner=owner).exists():
            draft = build_draft(
                owner,
                [{"part": brake_pad.id, "quantity": 2}, {"part": wiper.id, "quantity": 1}],
                include_tax=True,
            )
            order = commit_order(owner, draft, customer.id)
            self.stdout.write(f"Order: {order.order_number} | Total: {order.total_amount}")

        UdhaariRecord.objects.get_or_create(
            owner=owner,
            customer=customer,
            description="Clutch kit on credit",
            defaults={"amount": Decimal("1200.00")},
        )

        self.stdout.write(self.style.SUCCESS("Demo data seeded successfully."))
        self.stdout.write("Credentials: demo/demo1234")
