# inventory/serializers.py

"""
INVENTORY SERIALIZERS

- ProductSerializer: catalogue entry + derived total quantity (sum of batches)
- BatchSerializer: one lot; quantity editable here only as a direct stock edit
"""

from __future__ import annotations

from django.conf import settings
from django.utils import timezone
from rest_framework import serializers

from inventory.models import Batch, Product
from vendors.models import Vendor


class BatchSerializer(serializers.ModelSerializer):
    product_id = serializers.PrimaryKeyRelatedField(
        source="product",
        queryset=Product.objects.all(),
    )
    product_name = serializers.CharField(source="product.name", read_only=True)

    quantity = serializers.IntegerField(min_value=0, required=False)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)

    is_low_stock = serializers.SerializerMethodField()
    is_expired = serializers.SerializerMethodField()

    class Meta:
        model = Batch
        fields = [
            "id",
            "product_id",
            "product_name",
            "batch_no",
            "quantity",
            "unit_cost",
            "unit_price",
            "expiry_date",
            "is_low_stock",
            "is_expired",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "product_name", "created_at", "updated_at"]
        # (product, batch_no) uniqueness is checked in validate() with a field-keyed error
        validators = []

    def validate_batch_no(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("batch_no is required")
        return value

    def validate(self, attrs):
        product = attrs.get("product") or getattr(self.instance, "product", None)
        batch_no = attrs.get("batch_no") or getattr(self.instance, "batch_no", None)
        if product and batch_no:
            clash = Batch.objects.filter(product=product, batch_no=batch_no)
            if self.instance is not None:
                clash = clash.exclude(pk=self.instance.pk)
            if clash.exists():
                raise serializers.ValidationError(
                    {"batch_no": "This batch number already exists for the product."}
                )
        return attrs

    def get_is_low_stock(self, obj) -> bool:
        return obj.quantity <= settings.STOCK_LOW_THRESHOLD

    def get_is_expired(self, obj) -> bool:
        return bool(obj.expiry_date and obj.expiry_date < timezone.localdate())


class ProductBatchSerializer(serializers.ModelSerializer):
    class Meta:
        model = Batch
        fields = ["id", "batch_no", "quantity", "unit_cost", "unit_price", "expiry_date"]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    """
    GUARANTEES:
    - total_quantity is derived from batches (never stored)
    - vendor is optional; vendor_name is read-only convenience
    """

    vendor = serializers.PrimaryKeyRelatedField(
        queryset=Vendor.objects.all(),
        required=False,
        allow_null=True,
    )
    vendor_name = serializers.CharField(source="vendor.name", read_only=True, default=None)
    tax_percent = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False
    )

    total_quantity = serializers.SerializerMethodField()
    batches = ProductBatchSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "unit",
            "tax_percent",
            "vendor",
            "vendor_name",
            "is_active",
            "total_quantity",
            "batches",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "vendor_name", "total_quantity", "batches", "created_at", "updated_at"]

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Product name is required")
        return value

    def get_total_quantity(self, obj) -> int:
        annotated = getattr(obj, "total_quantity", None)
        if annotated is not None:
            return int(annotated)
        return sum(b.quantity for b in obj.batches.all())
