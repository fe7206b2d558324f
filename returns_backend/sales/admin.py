# sales/admin.py

from django.contrib import admin

from sales.models import Sale, SaleItem


# ======================================================
# SALE ITEM INLINE (READ-ONLY SNAPSHOT)
# ======================================================


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    can_delete = False
    fields = ("product", "quantity", "unit_price", "total_price", "created_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


# ======================================================
# SALE ADMIN
# ======================================================


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_no",
        "status",
        "customer_name",
        "total_amount",
        "payment_method",
        "created_at",
    )
    readonly_fields = (
        "invoice_no",
        "created_at",
        "completed_at",
    )
    search_fields = ("invoice_no", "customer_name")
    list_filter = ("status", "payment_method", "created_at")
    inlines = [SaleItemInline]
