from rest_framework import serializers

from common.utils import to_money
from sales.models import Customer, Order, OrderLine
from sales.services import next_customer_code


class CustomerSerializer(serializers.ModelSerializer):
    customer_code = serializers.CharField(max_length=64, required=False, allow_blank=True)

    class Meta:
        model = Customer
        fields = ["id", "customer_code", "name", "phone", "email", "address", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Customer name is required.")
        return value

    def validate(self, attrs):
        for field_name in ("phone", "email", "address"):
            if self.initial_data.get(field_name, None) == "":
                attrs[field_name] = None

        code = (attrs.get("customer_code") or "").strip()
        if "customer_code" in attrs:
            attrs["customer_code"] = code
        request = self.context.get("request")
        owner = self.instance.owner if self.instance is not None else getattr(request, "user", None)
        if code and owner is not None:
            duplicates = Customer.objects.filter(owner=owner, customer_code__iexact=code)
            if self.instance is not None:
                duplicates = duplicates.exclude(id=self.instance.id)
            if duplicates.exists():
                raise serializers.ValidationError(
                    {"customer_code": ["A customer with this code already exists."]},
                    code="duplicate_customer_code",
                )
        return attrs

    def create(self, validated_data):
        if not validated_data.get("customer_code"):
            validated_data["customer_code"] = next_customer_code(validated_data["owner"])
        return super().create(validated_data)

    def update(self, instance, validated_data):
        if "customer_code" in validated_data and not validated_data["customer_code"]:
            validated_data.pop("customer_code")
        return super().update(instance, validated_data)


class CustomerSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ["id", "customer_code", "name", "phone", "email", "address"]


class OrderLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderLine
        fields = [
            "id",
            "part",
            "part_name",
            "quantity",
            "price",
            "buying_price",
            "selling_price",
            "sgst_amount",
            "cgst_amount",
            "total_gst",
            "subtotal",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    customer = CustomerSummarySerializer(read_only=True)
    lines = OrderLineSerializer(many=True, read_only=True)
    total_gst = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "tax_included",
            "total_amount",
            "total_gst",
            "total_buying_price",
            "total_selling_price",
            "profit_amount",
            "created_at",
            "lines",
        ]
        read_only_fields = fields

    def get_total_gst(self, obj):
        return str(to_money(obj.total_gst))


class DraftItemSerializer(serializers.Serializer):
    part = serializers.UUIDField()
    quantity = serializers.IntegerField()
    # Left as a raw value so the pricing engine reports invalid_price itself.
    unit_price = serializers.CharField(required=False, allow_null=True, allow_blank=False)


class DraftOrderInputSerializer(serializers.Serializer):
    include_tax = serializers.BooleanField(default=False)
    items = DraftItemSerializer(many=True, required=False, default=list)


class OrderCreateSerializer(DraftOrderInputSerializer):
    customer = serializers.UUIDField(required=False, allow_null=True)


def serialize_draft(draft):
    """Preview representation of a draft, rounded for display."""
    return {
        "include_tax": draft.include_tax,
        "lines": [
            {
                "part": str(line.part_id),
                "part_name": line.part_name,
                "quantity": line.quantity,
                "price": str(to_money(line.price)),
                "selling_price": str(to_money(line.selling_price)),
                "buying_price": str(to_money(line.buying_price)),
                "sgst_percentage": str(line.sgst_percentage),
                "cgst_percentage": str(line.cgst_percentage),
                "sgst_amount": str(to_money(line.sgst_amount)),
                "cgst_amount": str(to_money(line.cgst_amount)),
                "total_gst": str(to_money(line.total_gst)),
                "subtotal": str(to_money(line.subtotal)),
            }
            for line in draft.lines
        ],
        "total_amount": str(draft.total_amount),
        "total_gst": str(draft.total_gst),
        "total_buying_price": str(draft.total_buying_price),
        "total_selling_price": str(draft.total_selling_price),
        "profit_amount": str(draft.profit_amount),
    }
