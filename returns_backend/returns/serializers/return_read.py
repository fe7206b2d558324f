# returns/serializers/return_read.py

from rest_framework import serializers

from returns.models import (
    RefundTransaction,
    Return,
    ReturnActivity,
    ReturnItem,
    ReturnItemSerial,
)


class ReturnItemSerialReadSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReturnItemSerial
        fields = ["serial_number", "marked_returned"]
        read_only_fields = fields


class ReturnItemReadSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    serials = ReturnItemSerialReadSerializer(many=True, read_only=True)

    class Meta:
        model = ReturnItem
        fields = [
            "id",
            "sale_item",
            "product",
            "product_name",
            "product_sku",
            "quantity_returned",
            "quantity_original",
            "unit_price",
            "total_amount",
            "condition",
            "restockable",
            "is_serialized",
            "reason",
            "serials",
        ]
        read_only_fields = fields


class RefundTransactionReadSerializer(serializers.ModelSerializer):
    class Meta:
        model = RefundTransaction
        fields = [
            "id",
            "transaction_type",
            "amount",
            "payment_method",
            "reference_number",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class ReturnActivityReadSerializer(serializers.ModelSerializer):
    actor_email = serializers.EmailField(source="actor.email", read_only=True, default=None)

    class Meta:
        model = ReturnActivity
        fields = ["action", "from_status", "to_status", "note", "actor_email", "created_at"]
        read_only_fields = fields


class ReturnListSerializer(serializers.ModelSerializer):
    """
    Compact row for list views.
    """

    sale_invoice_no = serializers.CharField(source="sale.invoice_no", read_only=True)

    class Meta:
        model = Return
        fields = [
            "id",
            "return_number",
            "sale",
            "sale_invoice_no",
            "status",
            "refund_method",
            "return_amount",
            "refund_amount",
            "store_credit_amount",
            "created_at",
        ]
        read_only_fields = fields


class ReturnSerializer(serializers.ModelSerializer):
    """
    Full aggregate: header, items (+ serials), refund transactions, activity.
    """

    sale_invoice_no = serializers.CharField(source="sale.invoice_no", read_only=True)
    settlement_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    items = ReturnItemReadSerializer(many=True, read_only=True)
    refund_transactions = RefundTransactionReadSerializer(many=True, read_only=True)
    activities = ReturnActivityReadSerializer(many=True, read_only=True)

    class Meta:
        model = Return
        fields = [
            "id",
            "return_number",
            "sale",
            "sale_invoice_no",
            "status",
            "reason",
            "refund_method",
            "return_amount",
            "processing_fee",
            "restocking_fee",
            "settlement_amount",
            "refund_amount",
            "store_credit_amount",
            "notes",
            "rejection_reason",
            "cancellation_reason",
            "created_by",
            "created_at",
            "approved_by",
            "approved_at",
            "rejected_by",
            "rejected_at",
            "cancelled_by",
            "cancelled_at",
            "completed_by",
            "completed_at",
            "updated_at",
            "items",
            "refund_transactions",
            "activities",
        ]
        read_only_fields = fields
