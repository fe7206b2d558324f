# returns/models/return_item.py

"""
RETURN ITEM + SERIAL LINKS (IMMUTABLE SNAPSHOTS)

ReturnItem:
- One line of a return, pointing at the sale line it reverses
- unit_price and quantity_original are snapshots of the sale line
- is_serialized is a snapshot of the product flag at creation time

ReturnItemSerial:
- One serial number handed back on a serialized line
- marked_returned records whether the serial ledger actually moved the unit
  (sold -> returned). Only marked serials are restocked at completion.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .return_request import MONEY, Return


class ReturnItem(models.Model):
    class Condition(models.TextChoices):
        NEW = "new", "New / Unopened"
        USED = "used", "Used"
        DAMAGED = "damaged", "Damaged"
        DEFECTIVE = "defective", "Defective"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    return_request = models.ForeignKey(
        Return,
        on_delete=models.CASCADE,
        related_name="items",
    )
    sale_item = models.ForeignKey(
        "sales.SaleItem",
        on_delete=models.PROTECT,
        related_name="return_items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="return_items",
    )

    quantity_returned = models.PositiveIntegerField()
    quantity_original = models.PositiveIntegerField()
    unit_price = models.DecimalField(**MONEY)
    total_amount = models.DecimalField(**MONEY)

    condition = models.CharField(
        max_length=16,
        choices=Condition.choices,
        default=Condition.NEW,
    )
    restockable = models.BooleanField(default=True)
    is_serialized = models.BooleanField(default=False)
    reason = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["sale_item"], name="returns_ret_sale_it_0a1b2c_idx"),
            models.Index(fields=["product"], name="returns_ret_product_3d4e5f_idx"),
        ]

    @property
    def should_restock(self) -> bool:
        return bool(self.restockable) and self.condition == self.Condition.NEW

    def clean(self):
        if self.quantity_returned is None or int(self.quantity_returned) <= 0:
            raise ValidationError("quantity_returned must be greater than zero")
        if int(self.quantity_returned) > int(self.quantity_original or 0):
            raise ValidationError("quantity_returned cannot exceed quantity_original")
        if self.unit_price is None or Decimal(self.unit_price) < Decimal("0.00"):
            raise ValidationError("unit_price cannot be negative")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("ReturnItem records are immutable")
        self.full_clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("ReturnItem records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.product_id} x {self.quantity_returned} ({self.condition})"


class ReturnItemSerial(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    return_item = models.ForeignKey(
        ReturnItem,
        on_delete=models.CASCADE,
        related_name="serials",
    )
    serial_number = models.CharField(max_length=128)
    marked_returned = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["serial_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["return_item", "serial_number"],
                name="uniq_serial_per_return_item",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("ReturnItemSerial records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("ReturnItemSerial records are immutable and cannot be deleted")

    def __str__(self):
        flag = "marked" if self.marked_returned else "skipped"
        return f"{self.serial_number} ({flag})"
