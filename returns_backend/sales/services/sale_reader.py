"""
SALE READER

Read-only access to completed sales for the returns engine.

DESIGN PRINCIPLES:
- No database writes
- Returns snapshots, never live model instances, so callers cannot
  accidentally mutate sale history
- Sale-domain errors only; the returns engine maps them to its own errors
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError

from sales.models import Sale, SaleItem

# ============================================================
# DOMAIN ERRORS
# ============================================================


class SaleReadError(Exception):
    pass


class SaleNotFoundError(SaleReadError):
    pass


class SaleLineNotFoundError(SaleReadError):
    pass


class SaleLineMismatchError(SaleReadError):
    """The line exists but belongs to a different sale."""


class SaleNotReturnableError(SaleReadError):
    pass


# ============================================================
# SNAPSHOTS
# ============================================================


@dataclass(frozen=True)
class SaleSnapshot:
    id: object
    invoice_no: str
    status: str
    total_amount: Decimal


@dataclass(frozen=True)
class SaleLineSnapshot:
    id: object
    sale_id: object
    product_id: object
    product_is_serialized: bool
    unit_price: Decimal
    quantity: int


# ============================================================
# READERS
# ============================================================


def _first_or_none(qs):
    try:
        return qs.first()
    except (DjangoValidationError, ValueError):
        # malformed UUID
        return None


def get_sale(sale_id, *, require_returnable: bool = True) -> SaleSnapshot:
    sale = _first_or_none(Sale.objects.filter(pk=sale_id))
    if sale is None:
        raise SaleNotFoundError(f"Sale {sale_id} not found")

    if require_returnable and not sale.is_returnable:
        raise SaleNotReturnableError(
            f"Sale {sale.invoice_no} is '{sale.status}' and cannot accept returns"
        )

    return SaleSnapshot(
        id=sale.id,
        invoice_no=sale.invoice_no,
        status=sale.status,
        total_amount=Decimal(sale.total_amount),
    )


def get_sale_line(sale_line_id, sale_id) -> SaleLineSnapshot:
    """
    Resolve a sale line and confirm it belongs to sale_id.

    Raises:
    - SaleLineNotFoundError: no such line
    - SaleLineMismatchError: the line belongs to another sale
    """
    line = _first_or_none(
        SaleItem.objects.select_related("product").filter(pk=sale_line_id)
    )
    if line is None:
        raise SaleLineNotFoundError(f"Sale line {sale_line_id} not found")

    if str(line.sale_id) != str(sale_id):
        raise SaleLineMismatchError(
            f"Sale line {sale_line_id} does not belong to sale {sale_id}"
        )

    return SaleLineSnapshot(
        id=line.id,
        sale_id=line.sale_id,
        product_id=line.product_id,
        product_is_serialized=bool(line.product.is_serialized),
        unit_price=Decimal(line.unit_price),
        quantity=int(line.quantity),
    )
