# returns/services/repository.py

"""
======================================================
PATH: returns/services/repository.py
======================================================
RETURN REPOSITORY

Purpose:
- Durable storage for the Return aggregate (header + items + serial links).
- The ONLY place that writes Return.status, via a conditional UPDATE:

    UPDATE returns_return SET status=<new>, ...
     WHERE id=<id> AND status=<expected>

  Zero rows updated means either the return is gone (NOT_FOUND) or someone
  else moved it first (CONCURRENCY_CONFLICT).

Rules:
- create() is atomic: header and all items are persisted, or nothing is.
- Sale lines are locked (select_for_update, id order) while quantities are
  checked, so two concurrent returns against the same line cannot both pass.
- Cumulative guard: quantity already claimed by pending/approved/completed
  returns counts against the sold quantity (RETURNS_ENFORCE_CUMULATIVE_QUANTITY).
======================================================
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from returns.filters import ReturnFilter
from returns.models import (
    RefundTransaction,
    Return,
    ReturnActivity,
    ReturnItem,
    ReturnItemSerial,
)
from returns.services.calculator import CENT
from returns.services.exceptions import (
    ReturnConcurrencyError,
    ReturnNotFoundError,
    ReturnValidationError,
)
from sales.models import SaleItem

logger = logging.getLogger(__name__)


# ======================================================
# WRITE MODELS
# ======================================================

@dataclass(frozen=True)
class NewReturnItem:
    sale_item_id: object
    product_id: object
    quantity_returned: int
    quantity_original: int
    unit_price: Decimal
    condition: str = ReturnItem.Condition.NEW
    restockable: bool = True
    is_serialized: bool = False
    reason: str = ""
    serial_numbers: tuple = ()


@dataclass(frozen=True)
class NewReturn:
    sale_id: object
    reason: str
    refund_method: str
    return_amount: Decimal
    refund_amount: Decimal
    processing_fee: Decimal = Decimal("0.00")
    restocking_fee: Decimal = Decimal("0.00")
    notes: str = ""
    created_by: object = None


@dataclass
class ReturnPage:
    results: list = field(default_factory=list)
    count: int = 0
    page: int = 1
    page_size: int = 20


# ======================================================
# REPOSITORY
# ======================================================

class ReturnRepository:
    SORT_FIELDS = {"created_at", "return_amount", "status", "return_number"}
    DEFAULT_SORT = "-created_at"

    def _base_queryset(self):
        return (
            Return.objects.all()
            .select_related(
                "sale",
                "created_by",
                "approved_by",
                "rejected_by",
                "cancelled_by",
                "completed_by",
            )
            .prefetch_related(
                "items",
                "items__product",
                "items__serials",
                "refund_transactions",
                "activities",
            )
        )

    # --------------------------------------------------
    # READS
    # --------------------------------------------------

    def get_by_id(self, return_id) -> Return | None:
        try:
            return self._base_queryset().filter(pk=return_id).first()
        except (DjangoValidationError, ValueError):
            # malformed id
            return None

    def current_status(self, return_id) -> str | None:
        try:
            return (
                Return.objects.filter(pk=return_id)
                .values_list("status", flat=True)
                .first()
            )
        except (DjangoValidationError, ValueError):
            return None

    def current_version(self, return_id):
        """updated_at of the stored row; every status write bumps it."""
        try:
            return (
                Return.objects.filter(pk=return_id)
                .values_list("updated_at", flat=True)
                .first()
            )
        except (DjangoValidationError, ValueError):
            return None

    def claimed_quantity(self, sale_item_id) -> int:
        """Units of a sale line already held by open or completed returns."""
        total = (
            ReturnItem.objects.filter(
                sale_item_id=sale_item_id,
                return_request__status__in=Return.OPEN_STATUSES,
            )
            .aggregate(total=Sum("quantity_returned"))
            .get("total")
        )
        return int(total or 0)

    def list(self, filters=None, sort: str | None = None, page=1, page_size=None) -> ReturnPage:
        max_size = int(getattr(settings, "RETURNS_MAX_PAGE_SIZE", 100))
        default_size = int(getattr(settings, "RETURNS_DEFAULT_PAGE_SIZE", 20))

        page = self._to_page_number(page, field_name="page", default=1)
        page_size = self._to_page_number(page_size, field_name="page_size", default=default_size)
        if page_size > max_size:
            raise ReturnValidationError(f"page_size cannot exceed {max_size}")

        order = self._resolve_sort(sort)

        filterset = ReturnFilter(data=filters or {}, queryset=self._base_queryset())
        if not filterset.is_valid():
            raise ReturnValidationError(
                "Invalid filters: "
                + "; ".join(
                    f"{name}: {' '.join(str(e) for e in errs)}"
                    for name, errs in filterset.errors.items()
                )
            )

        qs = filterset.qs.order_by(order, "id")
        count = qs.count()
        offset = (page - 1) * page_size

        return ReturnPage(
            results=list(qs[offset: offset + page_size]),
            count=count,
            page=page,
            page_size=page_size,
        )

    def _resolve_sort(self, sort: str | None) -> str:
        raw = (sort or "").strip()
        if not raw:
            return self.DEFAULT_SORT
        name = raw[1:] if raw.startswith("-") else raw
        if name not in self.SORT_FIELDS:
            raise ReturnValidationError(
                f"Cannot sort by '{name}'. Allowed: {', '.join(sorted(self.SORT_FIELDS))}"
            )
        return raw

    @staticmethod
    def _to_page_number(value, *, field_name: str, default: int) -> int:
        if value is None or value == "":
            return default
        if isinstance(value, bool):
            raise ReturnValidationError(f"{field_name} must be an integer")
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ReturnValidationError(f"{field_name} must be an integer")
        if number < 1:
            raise ReturnValidationError(f"{field_name} must be at least 1")
        return number

    # --------------------------------------------------
    # CREATE (ATOMIC)
    # --------------------------------------------------

    @transaction.atomic
    def create(self, header: NewReturn, items: list[NewReturnItem]) -> Return:
        if not items:
            raise ReturnValidationError("A return must contain at least one item")

        line_ids = sorted({str(i.sale_item_id) for i in items})
        locked_lines = {
            str(line.id): line
            for line in SaleItem.objects.select_for_update()
            .filter(pk__in=line_ids)
            .order_by("id")
        }

        enforce_cumulative = bool(
            getattr(settings, "RETURNS_ENFORCE_CUMULATIVE_QUANTITY", True)
        )
        requested = defaultdict(int)

        for item in items:
            key = str(item.sale_item_id)
            line = locked_lines.get(key)
            if line is None:
                raise ReturnNotFoundError(f"Sale line {item.sale_item_id} not found")

            if str(line.sale_id) != str(header.sale_id):
                raise ReturnValidationError(
                    f"Sale line {item.sale_item_id} does not belong to sale {header.sale_id}"
                )

            qty = int(item.quantity_returned)
            if qty <= 0:
                raise ReturnValidationError("quantity_returned must be greater than zero")

            if qty > int(line.quantity):
                raise ReturnValidationError(
                    f"Cannot return {qty} units of sale line {line.id}: only {line.quantity} sold"
                )

            requested[key] += qty

        if enforce_cumulative:
            for key, qty in requested.items():
                line = locked_lines[key]
                already = self.claimed_quantity(line.id)
                if already + qty > int(line.quantity):
                    raise ReturnValidationError(
                        f"Cannot return {qty} units of sale line {line.id}: "
                        f"{already} of {line.quantity} already returned"
                    )

        return_request = Return.objects.create(
            sale_id=header.sale_id,
            reason=header.reason,
            refund_method=header.refund_method,
            return_amount=header.return_amount,
            refund_amount=header.refund_amount,
            processing_fee=header.processing_fee,
            restocking_fee=header.restocking_fee,
            notes=header.notes or "",
            created_by=header.created_by,
        )

        for item in items:
            unit_price = Decimal(item.unit_price)
            ReturnItem.objects.create(
                return_request=return_request,
                sale_item_id=item.sale_item_id,
                product_id=item.product_id,
                quantity_returned=int(item.quantity_returned),
                quantity_original=int(item.quantity_original),
                unit_price=unit_price,
                total_amount=(unit_price * int(item.quantity_returned)).quantize(CENT),
                condition=item.condition,
                restockable=bool(item.restockable),
                is_serialized=bool(item.is_serialized),
                reason=item.reason or "",
            )

        logger.info(
            "Return persisted",
            extra={
                "return_id": str(return_request.id),
                "return_number": return_request.return_number,
                "sale_id": str(header.sale_id),
                "items": len(items),
            },
        )
        return return_request

    # --------------------------------------------------
    # STATUS (COMPARE-AND-SET)
    # --------------------------------------------------

    def update_status(self, return_id, expected_status: str, fields: dict) -> Return:
        """
        Apply `fields` (which must include the new status) only if the row is
        still in `expected_status`.
        """
        if "status" not in fields:
            raise ValueError("update_status requires a target status in fields")

        values = dict(fields)
        values["updated_at"] = timezone.now()

        updated = Return.objects.filter(pk=return_id, status=expected_status).update(**values)

        if updated == 0:
            current = self.current_status(return_id)
            if current is None:
                raise ReturnNotFoundError(f"Return {return_id} not found")

            logger.warning(
                "Return status compare-and-set lost",
                extra={
                    "return_id": str(return_id),
                    "expected_status": expected_status,
                    "current_status": current,
                    "target_status": fields["status"],
                },
            )
            raise ReturnConcurrencyError(
                f"Return {return_id} is '{current}', expected '{expected_status}'",
                current_status=current,
                expected_status=expected_status,
            )

        return self.get_by_id(return_id)

    # --------------------------------------------------
    # CHILD ROWS
    # --------------------------------------------------

    def add_item_serial(self, item: ReturnItem, serial_number: str, *, marked_returned: bool) -> ReturnItemSerial:
        return ReturnItemSerial.objects.create(
            return_item=item,
            serial_number=serial_number,
            marked_returned=bool(marked_returned),
        )

    def add_refund_transaction(
        self,
        return_request: Return,
        *,
        transaction_type: str,
        amount: Decimal,
        payment_method: str,
        user=None,
        notes: str = "",
    ) -> RefundTransaction:
        return RefundTransaction.objects.create(
            return_request=return_request,
            transaction_type=transaction_type,
            amount=amount,
            payment_method=payment_method,
            status=RefundTransaction.Status.COMPLETED,
            created_by=user,
            notes=notes,
        )

    def log_activity(
        self,
        return_request: Return,
        *,
        action: str,
        from_status: str = "",
        to_status: str,
        actor=None,
        note: str = "",
    ) -> ReturnActivity:
        return ReturnActivity.objects.create(
            return_request=return_request,
            action=action,
            from_status=from_status or "",
            to_status=to_status,
            actor=actor,
            note=note or "",
        )
