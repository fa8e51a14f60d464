from decimal import Decimal

from rest_framework import serializers

from inventory.models import Part
from inventory.services import next_part_code, store_part_image


class PartSerializer(serializers.ModelSerializer):
    image = serializers.ImageField(write_only=True, required=False, allow_null=True)
    hsn_code = serializers.CharField(max_length=64, required=False, allow_blank=True)
    display_name = serializers.CharField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Part
        fields = [
            "id",
            "hsn_code",
            "part_name",
            "brand",
            "category",
            "car_company",
            "car_model",
            "car_name",
            "buying_price",
            "selling_price",
            "sgst_percentage",
            "cgst_percentage",
            "quantity",
            "low_stock_threshold",
            "image",
            "image_url",
            "display_name",
            "is_low_stock",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "image_url", "created_at", "updated_at"]

    def validate(self, attrs):
        # Multipart forms send empty strings for the optional vehicle fields.
        for field_name in ("car_company", "car_model", "car_name"):
            if self.initial_data.get(field_name, None) == "":
                attrs[field_name] = None

        for field_name in ("buying_price", "selling_price"):
            value = attrs.get(field_name)
            if value is not None and value < 0:
                raise serializers.ValidationError({field_name: ["Price cannot be negative."]}, code="invalid_price")

        for field_name in ("sgst_percentage", "cgst_percentage"):
            value = attrs.get(field_name)
            if value is not None and not (Decimal("0") <= value <= Decimal("100")):
                raise serializers.ValidationError(
                    {field_name: ["Tax percentage must be between 0 and 100."]},
                    code="invalid_tax_rate",
                )

        hsn_code = (attrs.get("hsn_code") or "").strip()
        if "hsn_code" in attrs:
            attrs["hsn_code"] = hsn_code
        owner = self._owner()
        if hsn_code and owner is not None:
            duplicates = Part.objects.filter(owner=owner, hsn_code__iexact=hsn_code)
            if self.instance is not None:
                duplicates = duplicates.exclude(id=self.instance.id)
            if duplicates.exists():
                raise serializers.ValidationError(
                    {"hsn_code": ["A part with this HSN code already exists."]},
                    code="duplicate_hsn_code",
                )
        return attrs

    def _owner(self):
        request = self.context.get("request")
        if self.instance is not None:
            return self.instance.owner
        return getattr(request, "user", None)

    def create(self, validated_data):
        image = validated_data.pop("image", None)
        owner = validated_data["owner"]
        if not validated_data.get("hsn_code"):
            validated_data["hsn_code"] = next_part_code(owner)
        validated_data["image_url"] = store_part_image(owner, image)
        return super().create(validated_data)

    def update(self, instance, validated_data):
        image = validated_data.pop("image", None)
        if "hsn_code" in validated_data and not validated_data["hsn_code"]:
            validated_data.pop("hsn_code")
        if image:
            validated_data["image_url"] = store_part_image(instance.owner, image) or instance.image_url
        return super().update(instance, validated_data)


class SetQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)
