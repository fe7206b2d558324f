# returns/services/calculator.py

"""
FEE & REFUND CALCULATOR

Pure money arithmetic for returns. No database access, no side effects.

Rules:
- return_amount = sum(unit_price * quantity) over the returned lines
- settlement    = return_amount - processing_fee - restocking_fee
- All amounts are Decimal quantized to 0.01 (ROUND_HALF_UP)
- Fees cannot be negative; a negative settlement is rejected
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from returns.services.exceptions import ReturnValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class ReturnLine:
    unit_price: Decimal
    quantity: int


@dataclass(frozen=True)
class Settlement:
    return_amount: Decimal
    processing_fee: Decimal
    restocking_fee: Decimal
    settlement_amount: Decimal

    @property
    def total_fees(self) -> Decimal:
        return self.processing_fee + self.restocking_fee


def to_money(value, *, field_name: str = "amount", allow_none_as_zero: bool = False) -> Decimal:
    if value is None or value == "":
        if allow_none_as_zero:
            return ZERO
        raise ReturnValidationError(f"{field_name} is required")

    if isinstance(value, bool):
        raise ReturnValidationError(f"{field_name} must be a valid decimal")

    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ReturnValidationError(f"{field_name} must be a valid decimal")

    if not amount.is_finite():
        raise ReturnValidationError(f"{field_name} must be a valid decimal")

    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _non_negative(value, *, field_name: str) -> Decimal:
    amount = to_money(value, field_name=field_name, allow_none_as_zero=True)
    if amount < ZERO:
        raise ReturnValidationError(f"{field_name} cannot be negative")
    return amount


def line_total(line: ReturnLine) -> Decimal:
    qty = int(line.quantity)
    if qty <= 0:
        raise ReturnValidationError("quantity must be greater than zero")
    price = _non_negative(line.unit_price, field_name="unit_price")
    return (price * qty).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_return_amount(lines: Iterable[ReturnLine]) -> Decimal:
    total = ZERO
    for line in lines:
        total += line_total(line)
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_settlement(
    lines: Iterable[ReturnLine],
    *,
    processing_fee=None,
    restocking_fee=None,
) -> Settlement:
    """
    Value a set of returned lines and net off the fees.

    Raises ReturnValidationError when a fee is negative or the fees
    exceed the returned value.
    """
    return_amount = compute_return_amount(lines)
    p_fee = _non_negative(processing_fee, field_name="processing_fee")
    r_fee = _non_negative(restocking_fee, field_name="restocking_fee")

    settlement = (return_amount - p_fee - r_fee).quantize(CENT, rounding=ROUND_HALF_UP)
    if settlement < ZERO:
        raise ReturnValidationError(
            f"Fees ({p_fee + r_fee}) exceed the returned value ({return_amount})"
        )

    return Settlement(
        return_amount=return_amount,
        processing_fee=p_fee,
        restocking_fee=r_fee,
        settlement_amount=settlement,
    )
