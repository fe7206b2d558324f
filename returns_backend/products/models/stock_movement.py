# products/models/stock_movement.py

"""
INVENTORY JOURNAL

Immutable inventory journal entry.

GUARANTEES:
- Append-only (no updates, no deletes)
- Created ONCE, never edited
- Serial-linked movements must reference a unit of the same product
- Return-linked movements must reference a return

The journal is an audit trail. Authoritative stock is Product.stock_quantity
(non-serialized) and SerialUnit.status (serialized).
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .product import Product
from .serial_unit import SerialUnit


class StockMovement(models.Model):
    class TransactionType(models.TextChoices):
        RETURN = "return", "Customer Return"
        RESTOCK_FROM_RETURN = "restock-from-return", "Restock From Return"

    RETURN_LINKED_TYPES = {
        TransactionType.RETURN,
        TransactionType.RESTOCK_FROM_RETURN,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="stock_movements"
    )
    serial_unit = models.ForeignKey(
        SerialUnit,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    transaction_type = models.CharField(
        max_length=32, choices=TransactionType.choices
    )
    quantity = models.PositiveIntegerField()
    reason = models.CharField(max_length=255, blank=True, default="")

    return_request = models.ForeignKey(
        "returns.Return",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="products_st_created_6b3f1a_idx"),
            models.Index(fields=["transaction_type"], name="products_st_transac_2e7c4d_idx"),
            models.Index(fields=["product", "created_at"], name="products_st_product_8a9b0c_idx"),
            models.Index(fields=["return_request", "created_at"], name="products_st_return__4f5e6d_idx"),
        ]

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError("quantity must be greater than zero")

        if self.serial_unit_id and self.product_id:
            unit_product_id = (
                SerialUnit.objects.filter(id=self.serial_unit_id)
                .values_list("product_id", flat=True)
                .first()
            )
            if unit_product_id and unit_product_id != self.product_id:
                raise ValidationError("Serial unit does not belong to product")

            if self.quantity != 1:
                raise ValidationError("Serial movements always move exactly one unit")

        if self.transaction_type in self.RETURN_LINKED_TYPES and not self.return_request_id:
            raise ValidationError(f"{self.transaction_type} must reference a return")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.transaction_type} | {self.quantity}"
