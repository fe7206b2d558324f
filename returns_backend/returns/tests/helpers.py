# returns/tests/helpers.py

"""
Shared fixtures for returns / inventory tests.

Builds the minimum world a return needs: staff users, products,
a completed sale with snapshot lines, and serial units.
"""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from products.models import Product, SerialUnit
from returns.models import Return
from sales.models import Sale, SaleItem

User = get_user_model()


def make_user(email: str, role: str = "manager", **extra):
    return User.objects.create_user(email=email, password="pass", role=role, **extra)


def make_product(sku: str, *, unit_price="100.00", is_serialized=False, stock_quantity=0, name=None):
    return Product.objects.create(
        sku=sku,
        name=name or f"Product {sku}",
        unit_price=Decimal(unit_price),
        is_serialized=is_serialized,
        stock_quantity=stock_quantity,
        is_active=True,
    )


def make_sale(lines, *, user=None, status=Sale.STATUS_COMPLETED):
    """
    lines: iterable of (product, quantity, unit_price)
    Returns (sale, [sale_items]) in the same order as `lines`.
    """
    lines = list(lines)
    total = sum(Decimal(str(price)) * qty for _product, qty, price in lines)

    sale = Sale.objects.create(
        user=user,
        payment_method="cash",
        status=status,
        subtotal_amount=total,
        total_amount=total,
        completed_at=timezone.now() if status == Sale.STATUS_COMPLETED else None,
    )

    items = [
        SaleItem.objects.create(
            sale=sale,
            product=product,
            quantity=qty,
            unit_price=Decimal(str(price)),
        )
        for product, qty, price in lines
    ]
    return sale, items


def make_serials(product, serial_numbers, *, status=SerialUnit.Status.SOLD):
    return [
        SerialUnit.objects.create(product=product, serial_number=sn, status=status)
        for sn in serial_numbers
    ]


def make_bare_return(sale, *, amount="0.00", user=None):
    """A pending Return row with no items, for ledger-level tests."""
    return Return.objects.create(
        sale=sale,
        reason="Ledger test",
        return_amount=Decimal(amount),
        created_by=user,
    )
