# products/services/serial_ledger.py

"""
SERIALIZED UNIT LEDGER

Purpose:
- Move individual serial units through the return lifecycle:
    sold     -> returned   (mark_returned, when a return is created)
    returned -> in_stock   (mark_restocked, when a return is completed)
- Journal every applied transition as an immutable StockMovement.

Rules:
- Rows are locked (select_for_update) before their status is read.
- A unit already in the target status is a no-op (idempotent, no movement).
- Unknown serials, or units in an unexpected status, are skipped and logged.
  The caller records whether the transition applied.
- Must run inside the caller's transaction; nothing here commits on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from products.models import SerialUnit, StockMovement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SerialTransition:
    serial_number: str
    applied: bool
    previous_status: str | None = None
    movement: StockMovement | None = None

    @property
    def skipped(self) -> bool:
        return not self.applied


def find_serial(product_id, serial_number: str, *, for_update: bool = False) -> SerialUnit | None:
    qs = SerialUnit.objects.filter(
        product_id=product_id,
        serial_number=(serial_number or "").strip(),
    )
    if for_update:
        qs = qs.select_for_update()
    return qs.first()


def set_serial_status(unit: SerialUnit, status: str) -> SerialUnit:
    unit.status = status
    unit.save(update_fields=["status", "updated_at"])
    return unit


def _transition(
    *,
    product_id,
    serial_number: str,
    from_status: str,
    to_status: str,
    transaction_type: str,
    return_request=None,
    user=None,
    reason: str = "",
) -> SerialTransition:
    sn = (serial_number or "").strip()
    unit = find_serial(product_id, sn, for_update=True)

    if unit is None:
        logger.warning(
            "Serial transition skipped: unknown serial",
            extra={"product_id": str(product_id), "serial_number": sn, "to_status": to_status},
        )
        return SerialTransition(serial_number=sn, applied=False)

    if unit.status == to_status:
        logger.info(
            "Serial transition no-op: already in target status",
            extra={"serial_unit_id": str(unit.id), "status": unit.status},
        )
        return SerialTransition(serial_number=sn, applied=False, previous_status=unit.status)

    if unit.status != from_status:
        logger.warning(
            "Serial transition skipped: unexpected status",
            extra={
                "serial_unit_id": str(unit.id),
                "status": unit.status,
                "expected": from_status,
                "to_status": to_status,
            },
        )
        return SerialTransition(serial_number=sn, applied=False, previous_status=unit.status)

    previous = unit.status
    set_serial_status(unit, to_status)

    movement = StockMovement.objects.create(
        product_id=unit.product_id,
        serial_unit=unit,
        transaction_type=transaction_type,
        quantity=1,
        reason=reason,
        return_request=return_request,
        performed_by=user,
    )

    logger.info(
        "Serial unit transitioned",
        extra={
            "serial_unit_id": str(unit.id),
            "from_status": previous,
            "to_status": to_status,
            "return_id": str(getattr(return_request, "id", "") or ""),
        },
    )

    return SerialTransition(
        serial_number=sn,
        applied=True,
        previous_status=previous,
        movement=movement,
    )


def mark_returned(
    *,
    product_id,
    serial_number: str,
    return_request=None,
    user=None,
    reason: str = "",
) -> SerialTransition:
    """sold -> returned. Called while a return is being created."""
    return _transition(
        product_id=product_id,
        serial_number=serial_number,
        from_status=SerialUnit.Status.SOLD,
        to_status=SerialUnit.Status.RETURNED,
        transaction_type=StockMovement.TransactionType.RETURN,
        return_request=return_request,
        user=user,
        reason=reason or "Customer return",
    )


def mark_restocked(
    *,
    product_id,
    serial_number: str,
    return_request=None,
    user=None,
    reason: str = "",
) -> SerialTransition:
    """returned -> in_stock. Called when a return is completed."""
    return _transition(
        product_id=product_id,
        serial_number=serial_number,
        from_status=SerialUnit.Status.RETURNED,
        to_status=SerialUnit.Status.IN_STOCK,
        transaction_type=StockMovement.TransactionType.RESTOCK_FROM_RETURN,
        return_request=return_request,
        user=user,
        reason=reason or "Restocked from return",
    )
