# returns/admin.py

"""
Returns admin (audit view).

- Status changes are NOT made here; they go through ReturnService so the
  compare-and-set, inventory effects and activity log stay consistent.
- Items, serial links, refund transactions and activity are immutable.
"""

from django.contrib import admin

from returns.models import (
    RefundTransaction,
    Return,
    ReturnActivity,
    ReturnItem,
    ReturnItemSerial,
)


# ======================================================
# INLINES (READ-ONLY)
# ======================================================


class _ReadOnlyInline(admin.TabularInline):
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class ReturnItemInline(_ReadOnlyInline):
    model = ReturnItem
    fields = (
        "product",
        "sale_item",
        "quantity_returned",
        "quantity_original",
        "unit_price",
        "total_amount",
        "condition",
        "restockable",
        "is_serialized",
    )
    readonly_fields = fields


class RefundTransactionInline(_ReadOnlyInline):
    model = RefundTransaction
    fields = ("transaction_type", "amount", "payment_method", "reference_number", "status", "created_at")
    readonly_fields = fields


class ReturnActivityInline(_ReadOnlyInline):
    model = ReturnActivity
    fields = ("action", "from_status", "to_status", "actor", "note", "created_at")
    readonly_fields = fields


# ======================================================
# RETURN ADMIN
# ======================================================


@admin.register(Return)
class ReturnAdmin(admin.ModelAdmin):
    list_display = (
        "return_number",
        "sale",
        "status",
        "refund_method",
        "return_amount",
        "refund_amount",
        "store_credit_amount",
        "created_at",
    )
    list_filter = ("status", "refund_method", "created_at")
    search_fields = ("return_number", "sale__invoice_no", "reason")
    ordering = ("-created_at",)
    inlines = [ReturnItemInline, RefundTransactionInline, ReturnActivityInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ReturnItemSerial)
class ReturnItemSerialAdmin(admin.ModelAdmin):
    list_display = ("serial_number", "return_item", "marked_returned", "created_at")
    list_filter = ("marked_returned",)
    search_fields = ("serial_number",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
