# returns/serializers/return_command.py

"""
Command serializers for return operations.

These serializers do NOT touch the database.
They only validate request shape; business rules live in ReturnService.
"""

from rest_framework import serializers

from returns.models import Return, ReturnItem

MONEY = {"max_digits": 12, "decimal_places": 2}


class ReturnItemCommandSerializer(serializers.Serializer):
    sale_line_id = serializers.UUIDField()
    product_id = serializers.UUIDField(required=False, allow_null=True)
    quantity_returned = serializers.IntegerField(min_value=1)
    condition = serializers.ChoiceField(
        choices=ReturnItem.Condition.choices,
        default=ReturnItem.Condition.NEW,
    )
    restockable = serializers.BooleanField(default=True)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    serial_numbers = serializers.ListField(
        child=serializers.CharField(max_length=128),
        required=False,
        default=list,
    )


class ReturnCreateCommandSerializer(serializers.Serializer):
    sale_id = serializers.UUIDField()
    reason = serializers.CharField(max_length=2000)
    refund_method = serializers.ChoiceField(choices=Return.RefundMethod.choices)
    items = ReturnItemCommandSerializer(many=True, allow_empty=False)
    processing_fee = serializers.DecimalField(**MONEY, required=False, allow_null=True)
    restocking_fee = serializers.DecimalField(**MONEY, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ReturnApproveCommandSerializer(serializers.Serializer):
    refund_amount = serializers.DecimalField(**MONEY)
    store_credit_amount = serializers.DecimalField(**MONEY, required=False, allow_null=True)
    processing_fee = serializers.DecimalField(**MONEY, required=False, allow_null=True)
    restocking_fee = serializers.DecimalField(**MONEY, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReturnRejectCommandSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=2000)


class ReturnCancelCommandSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=2000)
