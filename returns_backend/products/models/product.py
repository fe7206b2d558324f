# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL (IMPORTANT):
    - Non-serialized products: stock_quantity is the authoritative counter
    - Serialized products: stock lives in SerialUnit rows (one per unit)
    - stock_quantity is only ever written through
      products.services.stock_reconciliation (F() increments, never read-modify-write)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)

    # Current/default selling price (snapshot at sale time is stored in SaleItem)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    is_serialized = models.BooleanField(
        default=False,
        help_text="Tracked per unit via serial numbers instead of a counter.",
    )

    stock_quantity = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["sku"], name="products_pr_sku_ca0cdc_idx"),
            models.Index(fields=["name"], name="products_pr_name_9ff0a3_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.unit_price is None or Decimal(self.unit_price) <= 0:
            raise ValidationError("Unit price must be greater than zero")

    @property
    def available_units(self) -> int:
        """
        Units available for sale.

        Serialized products count IN_STOCK serial units, everything else
        reads the counter.
        """
        if self.is_serialized:
            return self.serial_units.filter(
                status=self.serial_units.model.Status.IN_STOCK
            ).count()
        return int(self.stock_quantity or 0)
