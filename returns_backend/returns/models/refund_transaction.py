# returns/models/refund_transaction.py

"""
REFUND TRANSACTION (IMMUTABLE)

Money handed back for a completed return.

Notes:
- Written once per settlement leg when a return completes:
    refund        -> refund_amount via the return's refund_method
    exchange      -> refund_amount when the method is exchange
    store_credit  -> store_credit_amount
- Append-only; corrections are new rows, never edits
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .return_request import MONEY, Return


class RefundTransaction(models.Model):
    class TransactionType(models.TextChoices):
        REFUND = "refund", "Refund"
        STORE_CREDIT = "store_credit", "Store Credit"
        EXCHANGE = "exchange", "Exchange"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    return_request = models.ForeignKey(
        Return,
        on_delete=models.PROTECT,
        related_name="refund_transactions",
    )

    transaction_type = models.CharField(max_length=16, choices=TransactionType.choices)
    amount = models.DecimalField(**MONEY)
    payment_method = models.CharField(max_length=16, choices=Return.RefundMethod.choices)
    reference_number = models.CharField(max_length=64, blank=True, default="")

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.COMPLETED,
    )
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="refund_transactions",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["return_request", "created_at"], name="returns_ref_return__6a7b8c_idx"),
            models.Index(fields=["transaction_type"], name="returns_ref_transac_9d0e1f_idx"),
        ]

    def clean(self):
        if self.amount is None or self.amount <= 0:
            raise ValidationError("amount must be greater than zero")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("RefundTransaction records are immutable")
        if not self.reference_number:
            self.reference_number = f"RF-{uuid.uuid4().hex[:12].upper()}"
        self.full_clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("RefundTransaction records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.transaction_type} | {self.amount} | {self.reference_number}"
