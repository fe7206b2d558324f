# products/services/stock_reconciliation.py

"""
STOCK RECONCILIATION APPLIER

Purpose:
- Apply net quantity deltas to Product.stock_quantity when a return is finalized.
- Keep the counter and the StockMovement journal in step.

Rules:
- Deltas must be positive integers (returns only ever add stock back).
- Counter writes are F() increments: concurrent completions never lose updates.
- Deltas for the same product are summed and applied once, in product id order,
  so two transactions touching the same products lock them in the same order.
- Only non-serialized products are counter-tracked; serialized products are
  rejected here (their stock is SerialUnit.status).
- Must run inside the caller's transaction.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from django.db.models import F, Sum
from django.utils import timezone

from products.models import Product, StockMovement

logger = logging.getLogger(__name__)


class StockReconciliationError(Exception):
    """Domain error for counter reconciliation failures."""


@dataclass(frozen=True)
class StockDelta:
    product_id: object
    quantity: int


def _to_positive_int(value, *, field_name="quantity") -> int:
    if value is None or value == "":
        raise StockReconciliationError(f"{field_name} is required")

    if isinstance(value, bool):
        # guardrail: bool is an int subclass in Python
        raise StockReconciliationError(f"{field_name} must be an integer")

    try:
        qty = int(value)
    except (TypeError, ValueError):
        raise StockReconciliationError(f"{field_name} must be an integer")

    if qty <= 0:
        raise StockReconciliationError(f"{field_name} must be greater than zero")

    return qty


def aggregate_deltas(deltas: Iterable[StockDelta]) -> dict:
    net = defaultdict(int)
    for delta in deltas:
        net[delta.product_id] += _to_positive_int(delta.quantity)
    return dict(net)


def increment_stock(
    *,
    product_id,
    quantity,
    transaction_type: str = StockMovement.TransactionType.RESTOCK_FROM_RETURN,
    return_request=None,
    user=None,
    reason: str = "",
) -> StockMovement:
    qty = _to_positive_int(quantity)

    is_serialized = (
        Product.objects.filter(pk=product_id)
        .values_list("is_serialized", flat=True)
        .first()
    )
    if is_serialized is None:
        raise StockReconciliationError(f"Product {product_id} not found")
    if is_serialized:
        raise StockReconciliationError(
            "Serialized products are not counter-tracked; restock their serial units instead"
        )

    Product.objects.filter(pk=product_id).update(
        stock_quantity=F("stock_quantity") + qty,
        updated_at=timezone.now(),
    )

    movement = StockMovement.objects.create(
        product_id=product_id,
        transaction_type=transaction_type,
        quantity=qty,
        reason=reason,
        return_request=return_request,
        performed_by=user,
    )

    logger.info(
        "Stock counter incremented",
        extra={
            "product_id": str(product_id),
            "quantity": qty,
            "transaction_type": transaction_type,
            "return_id": str(getattr(return_request, "id", "") or ""),
        },
    )
    return movement


def apply_stock_deltas(
    deltas: Iterable[StockDelta],
    *,
    return_request=None,
    user=None,
    reason: str = "Restocked from return",
) -> list[StockMovement]:
    """
    Apply a batch of restock deltas.

    Returns one StockMovement per product touched (empty list when nothing
    qualifies for restock).
    """
    net = aggregate_deltas(deltas)

    movements = []
    for product_id in sorted(net, key=str):
        movements.append(
            increment_stock(
                product_id=product_id,
                quantity=net[product_id],
                return_request=return_request,
                user=user,
                reason=reason,
            )
        )
    return movements


def journal_total(product_id, *, transaction_type: str | None = None) -> int:
    """Sum of journaled quantities for a product (audit reconciliation)."""
    qs = StockMovement.objects.filter(product_id=product_id)
    if transaction_type:
        qs = qs.filter(transaction_type=transaction_type)
    return int(qs.aggregate(total=Sum("quantity")).get("total") or 0)
