# returns/tests/test_calculator.py

from __future__ import annotations

from decimal import Decimal

from django.test import SimpleTestCase

from returns.services.calculator import (
    ReturnLine,
    compute_return_amount,
    compute_settlement,
    to_money,
)
from returns.services.exceptions import ReturnValidationError


class ReturnCalculatorTests(SimpleTestCase):
    """
    Fee & refund arithmetic.

    GUARANTEES:
    - return_amount == sum(unit_price * quantity), order independent
    - settlement == return_amount - fees
    - Negative fees and negative settlements are rejected
    """

    def test_return_amount_and_settlement(self):
        settlement = compute_settlement(
            [ReturnLine(unit_price=Decimal("100.00"), quantity=2)],
            processing_fee="5",
            restocking_fee="10",
        )

        self.assertEqual(settlement.return_amount, Decimal("200.00"))
        self.assertEqual(settlement.total_fees, Decimal("15.00"))
        self.assertEqual(settlement.settlement_amount, Decimal("185.00"))

    def test_return_amount_is_order_independent(self):
        lines = [
            ReturnLine(unit_price=Decimal("19.99"), quantity=3),
            ReturnLine(unit_price=Decimal("0.01"), quantity=7),
            ReturnLine(unit_price=Decimal("250.00"), quantity=1),
        ]

        forward = compute_return_amount(lines)
        backward = compute_return_amount(list(reversed(lines)))

        self.assertEqual(forward, Decimal("310.04"))
        self.assertEqual(forward, backward)

    def test_missing_fees_default_to_zero(self):
        settlement = compute_settlement([ReturnLine(unit_price=Decimal("10.00"), quantity=1)])

        self.assertEqual(settlement.processing_fee, Decimal("0.00"))
        self.assertEqual(settlement.restocking_fee, Decimal("0.00"))
        self.assertEqual(settlement.settlement_amount, Decimal("10.00"))

    def test_fees_equal_to_value_settle_to_zero(self):
        settlement = compute_settlement(
            [ReturnLine(unit_price=Decimal("10.00"), quantity=1)],
            processing_fee="4.00",
            restocking_fee="6.00",
        )
        self.assertEqual(settlement.settlement_amount, Decimal("0.00"))

    def test_fees_exceeding_value_are_rejected(self):
        with self.assertRaises(ReturnValidationError):
            compute_settlement(
                [ReturnLine(unit_price=Decimal("10.00"), quantity=1)],
                processing_fee="8.00",
                restocking_fee="2.01",
            )

    def test_negative_fee_is_rejected(self):
        with self.assertRaises(ReturnValidationError):
            compute_settlement(
                [ReturnLine(unit_price=Decimal("10.00"), quantity=1)],
                processing_fee="-1",
            )

    def test_zero_quantity_is_rejected(self):
        with self.assertRaises(ReturnValidationError):
            compute_return_amount([ReturnLine(unit_price=Decimal("10.00"), quantity=0)])

    def test_amounts_round_half_up_to_cents(self):
        self.assertEqual(to_money("2.675"), Decimal("2.68"))
        self.assertEqual(to_money("2.665"), Decimal("2.67"))
        self.assertEqual(to_money(3), Decimal("3.00"))

    def test_invalid_money_is_rejected(self):
        for bad in ("abc", "NaN", "Infinity", True, None):
            with self.subTest(value=bad):
                with self.assertRaises(ReturnValidationError):
                    to_money(bad)
