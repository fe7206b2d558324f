# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (audit-safe inventory):

- Product is created once; stock_quantity is read-only here.
  Counter changes go through products.services.stock_reconciliation.
- SerialUnit status is read-only once created; lifecycle moves go through
  products.services.serial_ledger so every change is journaled.
- StockMovement rows are immutable and view-only.
"""

from __future__ import annotations

from django.contrib import admin

from products.models import Product, SerialUnit, StockMovement


# =====================================================
# SERIAL UNIT INLINE
# =====================================================

class SerialUnitInline(admin.TabularInline):
    model = SerialUnit
    extra = 0
    can_delete = False
    show_change_link = False

    fields = ("serial_number", "status", "updated_at")

    def get_readonly_fields(self, request, obj=None):
        # new rows may set serial_number + initial status; existing rows are frozen
        return ("updated_at",) if obj is None else ("serial_number", "status", "updated_at")


# =====================================================
# PRODUCT
# =====================================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "sku",
        "name",
        "unit_price",
        "is_serialized",
        "stock_quantity",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active", "is_serialized", "created_at")
    search_fields = ("sku", "name")
    ordering = ("-created_at",)
    readonly_fields = ("stock_quantity", "created_at", "updated_at")

    inlines = [SerialUnitInline]


# =====================================================
# SERIAL UNIT (VIEW-ONLY LIST)
# =====================================================

@admin.register(SerialUnit)
class SerialUnitAdmin(admin.ModelAdmin):
    list_display = ("serial_number", "product", "status", "updated_at")
    list_filter = ("status",)
    search_fields = ("serial_number", "product__name", "product__sku")
    readonly_fields = ("product", "serial_number", "status", "created_at", "updated_at")

    def has_change_permission(self, request, obj=None):
        return False if obj else True

    def has_delete_permission(self, request, obj=None):
        return False


# =====================================================
# STOCK MOVEMENT (VIEW-ONLY JOURNAL)
# =====================================================

@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = (
        "created_at",
        "product",
        "serial_unit",
        "transaction_type",
        "quantity",
        "return_request",
        "performed_by",
    )
    list_filter = ("transaction_type", "created_at")
    search_fields = ("product__name", "product__sku", "serial_unit__serial_number")
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
