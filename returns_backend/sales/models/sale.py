# sales/models/sale.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Sale(models.Model):
    """
    Represents a POS transaction that returns are raised against.

    GUARANTEES:
    - Immutable financial record once completed
    - Only COMPLETED sales accept returns
    - Returns never edit the sale; they reference it
    """

    STATUS_DRAFT = "draft"
    STATUS_COMPLETED = "completed"
    STATUS_VOIDED = "voided"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_VOIDED, "Voided"),
    ]

    STATUS_ENUM = {
        STATUS_DRAFT: {"label": "Draft", "terminal": False, "returnable": False},
        STATUS_COMPLETED: {"label": "Completed", "terminal": False, "returnable": True},
        STATUS_VOIDED: {"label": "Voided", "terminal": True, "returnable": False},
    }

    @classmethod
    def get_status_enum(cls):
        return cls.STATUS_ENUM

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_no = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated invoice / receipt number",
    )

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales",
        help_text="Cashier / staff who processed the sale",
    )

    customer_name = models.CharField(max_length=255, blank=True, default="")

    subtotal_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    tax_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    discount_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    payment_method = models.CharField(
        max_length=32,
        default="cash",
        help_text="cash/card/transfer/store_credit",
    )

    status = models.CharField(
        max_length=32,
        choices=STATUS_CHOICES,
        default=STATUS_COMPLETED,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="sales_sale_created_1a2b3c_idx"),
            models.Index(fields=["status"], name="sales_sale_status_4d5e6f_idx"),
            models.Index(fields=["invoice_no"], name="sales_sale_invoice_7a8b9c_idx"),
        ]

    _IMMUTABLE_FIELDS_AFTER_POST = (
        "user",
        "subtotal_amount",
        "tax_amount",
        "discount_amount",
        "total_amount",
        "payment_method",
        "created_at",
        "completed_at",
    )

    @property
    def is_returnable(self) -> bool:
        return bool(self.STATUS_ENUM.get(self.status, {}).get("returnable"))

    def _validate_immutable(self, previous: "Sale"):
        if previous.status != self.STATUS_COMPLETED:
            return

        if self.status not in (self.STATUS_COMPLETED, self.STATUS_VOIDED):
            raise ValueError(
                f"Sale is immutable once {previous.status}. "
                f"Status change {previous.status} -> {self.status} is not allowed."
            )

        for field in self._IMMUTABLE_FIELDS_AFTER_POST:
            if getattr(self, field) != getattr(previous, field):
                raise ValueError(
                    f"Sale is immutable once {previous.status}. "
                    f"Field '{field}' cannot be changed."
                )

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = Sale.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        if not self.invoice_no:
            prefix = timezone.now().strftime("INV%Y%m%d")
            self.invoice_no = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

        if self.status == self.STATUS_COMPLETED and not self.completed_at:
            self.completed_at = timezone.now()

        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.invoice_no} | {self.total_amount}"
