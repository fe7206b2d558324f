# returns/models/return_activity.py

"""
RETURN ACTIVITY LOG (IMMUTABLE)

One row per lifecycle event on a return. Written in the same transaction
as the status change it describes.
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .return_request import Return


class ReturnActivity(models.Model):
    class Action(models.TextChoices):
        CREATED = "created", "Created"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"
        CANCELLED = "cancelled", "Cancelled"
        COMPLETED = "completed", "Completed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    return_request = models.ForeignKey(
        Return,
        on_delete=models.CASCADE,
        related_name="activities",
    )
    action = models.CharField(max_length=16, choices=Action.choices)
    from_status = models.CharField(max_length=16, blank=True, default="")
    to_status = models.CharField(max_length=16)
    note = models.TextField(blank=True, default="")

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="return_activities",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["return_request", "created_at"], name="returns_act_return__2a3b4c_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("ReturnActivity records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("ReturnActivity records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.return_request_id} | {self.action}"
