# returns/models/return_request.py

"""
RETURN (AGGREGATE ROOT)

A customer's request to give back items from a completed sale.

GUARANTEES:
- sale and return_amount are fixed at creation
- status moves only through returns.services.lifecycle rules, and only via
  ReturnRepository.update_status (conditional UPDATE on the current status)
- refund_amount + store_credit_amount never exceed the settlement amount
  (enforced by ReturnService at approval)
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL

MONEY = {"max_digits": 12, "decimal_places": 2}


def generate_return_number(now=None) -> str:
    """
    RET20240105-143015123456-9F2A

    Sortable by creation time; the random suffix keeps concurrent
    creations within the same microsecond apart.
    """
    now = now or timezone.now()
    prefix = getattr(settings, "RETURN_NUMBER_PREFIX", "RET") or "RET"
    return f"{prefix}{now:%Y%m%d}-{now:%H%M%S%f}-{uuid.uuid4().hex[:4].upper()}"


class Return(models.Model):
    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # Statuses that still hold a claim on the sold quantity
    OPEN_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_COMPLETED)

    class RefundMethod(models.TextChoices):
        CASH = "cash", "Cash"
        CARD = "card", "Card"
        STORE_CREDIT = "store_credit", "Store Credit"
        EXCHANGE = "exchange", "Exchange"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    return_number = models.CharField(max_length=64, unique=True, blank=True)

    sale = models.ForeignKey(
        "sales.Sale",
        on_delete=models.PROTECT,
        related_name="returns",
    )

    reason = models.TextField()
    refund_method = models.CharField(
        max_length=16,
        choices=RefundMethod.choices,
        default=RefundMethod.CASH,
    )

    return_amount = models.DecimalField(**MONEY)
    refund_amount = models.DecimalField(**MONEY, default=Decimal("0.00"))
    store_credit_amount = models.DecimalField(**MONEY, default=Decimal("0.00"))
    processing_fee = models.DecimalField(**MONEY, default=Decimal("0.00"))
    restocking_fee = models.DecimalField(**MONEY, default=Decimal("0.00"))

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        db_index=True,
    )

    notes = models.TextField(blank=True, default="")
    rejection_reason = models.TextField(blank=True, default="")
    cancellation_reason = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="returns_created",
    )
    approved_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="returns_approved",
    )
    rejected_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="returns_rejected",
    )
    cancelled_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="returns_cancelled",
    )
    completed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="returns_completed",
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="returns_ret_status_1f2e3d_idx"),
            models.Index(fields=["sale", "status"], name="returns_ret_sale_id_4c5b6a_idx"),
            models.Index(fields=["refund_method"], name="returns_ret_refund__7d8e9f_idx"),
        ]

    _IMMUTABLE_FIELDS = ("sale_id", "return_amount", "return_number", "created_at")

    @property
    def settlement_amount(self) -> Decimal:
        return (
            Decimal(self.return_amount)
            - Decimal(self.processing_fee)
            - Decimal(self.restocking_fee)
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in (
            self.STATUS_REJECTED,
            self.STATUS_COMPLETED,
            self.STATUS_CANCELLED,
        )

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = Return.objects.filter(pk=self.pk).first()
            if previous is not None:
                for field in self._IMMUTABLE_FIELDS:
                    if getattr(self, field) != getattr(previous, field):
                        raise ValidationError(
                            f"Return field '{field}' cannot be changed after creation."
                        )

        if not self.return_number:
            self.return_number = generate_return_number()

        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.return_number} | {self.status} | {self.return_amount}"
