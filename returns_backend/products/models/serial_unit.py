# products/models/serial_unit.py

"""
SERIALIZED UNIT

One row per physical unit of a serialized product.

GUARANTEES:
- (product, serial_number) is unique
- status is only moved by products.services.serial_ledger
  (every transition there writes a StockMovement)
"""

import uuid

from django.db import models

from .product import Product


class SerialUnit(models.Model):
    class Status(models.TextChoices):
        IN_STOCK = "in_stock", "In Stock"
        SOLD = "sold", "Sold"
        RETURNED = "returned", "Returned (awaiting inspection)"
        DAMAGED = "damaged", "Damaged"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="serial_units"
    )
    serial_number = models.CharField(max_length=128)

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.IN_STOCK,
        db_index=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["serial_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "serial_number"],
                name="uniq_serial_per_product",
            ),
        ]
        indexes = [
            models.Index(fields=["product", "status"], name="products_se_product_5d1c2e_idx"),
        ]

    def __str__(self):
        return f"{self.serial_number} [{self.status}]"
