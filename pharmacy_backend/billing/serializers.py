# billing/serializers.py

from rest_framework import serializers

from billing.models import Bill, BillItem, PaymentMethod


class BillItemSerializer(serializers.ModelSerializer):
    """
    Sold line (read-only snapshot).
    """

    batch_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = BillItem
        fields = [
            "id",
            "line_number",
            "batch_id",
            "product_name",
            "batch_no",
            "unit_price",
            "quantity",
            "line_total",
        ]
        read_only_fields = fields


class BillSummarySerializer(serializers.ModelSerializer):
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Bill
        fields = [
            "id",
            "bill_no",
            "customer_name",
            "doctor_name",
            "payment_method",
            "total_amount",
            "status",
            "created_at",
            "item_count",
        ]
        read_only_fields = fields

    def get_item_count(self, obj):
        return len(obj.items.all())


class BillSerializer(serializers.ModelSerializer):
    """
    Full bill (read-only). Bills are written by the billing coordinator only.
    """

    items = BillItemSerializer(many=True, read_only=True)
    doctor_id = serializers.UUIDField(read_only=True, allow_null=True)
    created_by = serializers.SerializerMethodField()
    cancelled_by = serializers.SerializerMethodField()

    class Meta:
        model = Bill
        fields = [
            "id",
            "bill_no",
            "customer_name",
            "customer_phone",
            "doctor_id",
            "doctor_name",
            "payment_method",
            "discount_percent",
            "subtotal",
            "discount_amount",
            "total_amount",
            "status",
            "created_at",
            "created_by",
            "cancelled_at",
            "cancelled_by",
            "cancel_reason",
            "items",
        ]
        read_only_fields = fields

    def get_created_by(self, obj):
        return getattr(obj.created_by, "username", None)

    def get_cancelled_by(self, obj):
        return getattr(obj.cancelled_by, "username", None)


# -----------------------------
# Input serializers (schema only)
# -----------------------------
# Request bodies are judged by billing.services.bill_builder.validate_bill so that
# every violation comes back in one VALIDATION_ERROR envelope.


class BillItemInputSerializer(serializers.Serializer):
    batch_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        required=False,
        help_text="Advisory only. The batch price at time of sale is charged.",
    )
    product_name = serializers.CharField(required=False, allow_blank=True)


class BillCreateSerializer(serializers.Serializer):
    customer_name = serializers.CharField()
    customer_phone = serializers.CharField(required=False, allow_blank=True)
    doctor_id = serializers.UUIDField(required=False, allow_null=True)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices,
        required=False,
        default=PaymentMethod.CASH,
    )
    discount_percent = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=0,
        max_value=100,
        required=False,
        default=0,
    )
    items = BillItemInputSerializer(many=True)


class BillCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class BillReceiptSerializer(serializers.Serializer):
    bill_id = serializers.UUIDField()
    bill_no = serializers.CharField()
    subtotal = serializers.CharField()
    discount_amount = serializers.CharField()
    total_amount = serializers.CharField()
    receipt = serializers.DictField()
    receipt_text = serializers.CharField()
