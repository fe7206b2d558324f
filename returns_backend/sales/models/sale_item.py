# sales/models/sale_item.py

"""
SALE ITEM (IMMUTABLE SNAPSHOT)

Represents an immutable snapshot of a sold line item.

Notes:
- unit_price is the price at the time of sale; returns are valued from it,
  never from the product's current price.
- SaleItem rows cannot be edited once the sale is completed.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from products.models import Product

from .sale import Sale


class SaleItem(models.Model):
    """
    Immutable snapshot of sold item.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(
        Sale,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="sale_items",
    )

    quantity = models.PositiveIntegerField()

    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )

    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["sale", "created_at"], name="sales_salei_sale_id_0d1e2f_idx"),
            models.Index(fields=["product", "created_at"], name="sales_salei_product_3a4b5c_idx"),
        ]

    def clean(self):
        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError("quantity must be greater than zero")
        if self.unit_price is None or Decimal(self.unit_price) < Decimal("0.00"):
            raise ValidationError("unit_price cannot be negative")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            status = Sale.objects.filter(pk=self.sale_id).values_list("status", flat=True).first()
            if status != Sale.STATUS_DRAFT:
                raise ValidationError("SaleItem records are immutable once sale is not draft")

        self.total_price = (
            Decimal(self.unit_price) * Decimal(int(self.quantity))
        ).quantize(Decimal("0.01"))

        self.full_clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("SaleItem records are immutable and cannot be deleted")

    def __str__(self):
        product_name = getattr(self.product, "name", "Deleted product")
        return f"{product_name} x {self.quantity}"
