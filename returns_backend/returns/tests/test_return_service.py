# returns/tests/test_return_service.py

from __future__ import annotations

import re
import uuid
from decimal import Decimal
from unittest import mock

from django.core.cache import caches
from django.test import TestCase

from products.models import Product, SerialUnit, StockMovement
from returns.models import RefundTransaction, Return, ReturnActivity, ReturnItem, ReturnItemSerial
from returns.services.cache import NullReturnCache, ReturnCache
from returns.services.exceptions import (
    InvalidReturnTransitionError,
    ReturnConcurrencyError,
    ReturnNotFoundError,
    ReturnValidationError,
)
from returns.services.return_service import ReturnService
from returns.tests.helpers import make_product, make_sale, make_serials, make_user
from sales.models import Sale


class ReturnServiceTestBase(TestCase):
    def setUp(self):
        caches["default"].clear()
        self.service = ReturnService(cache=NullReturnCache())

        self.clerk = make_user("clerk@example.com", role="returns_clerk")
        self.manager = make_user("manager@example.com", role="manager")

        self.product = make_product("KETTLE-1", unit_price="100.00", stock_quantity=10)
        self.sale, (self.line,) = make_sale([(self.product, 3, "100.00")], user=self.clerk)

    def _item(self, line=None, qty=2, **extra):
        line = line or self.line
        payload = {
            "sale_line_id": line.id,
            "product_id": line.product_id,
            "quantity_returned": qty,
            "condition": "new",
            "restockable": True,
        }
        payload.update(extra)
        return payload

    def _create(self, items=None, **kwargs):
        params = {
            "sale_id": self.sale.id,
            "reason": "Customer changed mind",
            "refund_method": "cash",
            "items": items or [self._item()],
            "processing_fee": "5.00",
            "restocking_fee": "10.00",
            "user": self.clerk,
        }
        params.update(kwargs)
        return self.service.create_return(**params)

    def _stock(self, product=None):
        product = product or self.product
        return Product.objects.values_list("stock_quantity", flat=True).get(pk=product.pk)


# =====================================================
# CREATE
# =====================================================


class CreateReturnTests(ReturnServiceTestBase):
    """
    GUARANTEES:
    - Amounts come from the sale line snapshot, never the current price
    - Creation validates before anything is written
    - Creation is atomic (header + items or nothing)
    """

    def test_create_computes_amounts_from_sale_snapshot(self):
        # price changes after the sale must not affect the return
        Product.objects.filter(pk=self.product.pk).update(unit_price=Decimal("999.00"))

        ret = self._create()

        self.assertEqual(ret.status, Return.STATUS_PENDING)
        self.assertEqual(ret.return_amount, Decimal("200.00"))
        self.assertEqual(ret.processing_fee, Decimal("5.00"))
        self.assertEqual(ret.restocking_fee, Decimal("10.00"))
        self.assertEqual(ret.refund_amount, Decimal("185.00"))
        self.assertEqual(ret.settlement_amount, Decimal("185.00"))
        self.assertEqual(ret.created_by_id, self.clerk.id)

        item = ret.items.get()
        self.assertEqual(item.unit_price, Decimal("100.00"))
        self.assertEqual(item.quantity_original, 3)
        self.assertEqual(item.total_amount, Decimal("200.00"))

    def test_create_has_no_counter_effect(self):
        self._create()
        self.assertEqual(self._stock(), 10)
        self.assertEqual(StockMovement.objects.count(), 0)

    def test_return_amount_matches_sum_regardless_of_item_order(self):
        other = make_product("CUP-1", unit_price="7.35")
        sale, (line_a, line_b) = make_sale(
            [(self.product, 2, "100.00"), (other, 5, "7.35")],
            user=self.clerk,
        )
        items = [self._item(line_a, qty=1), self._item(line_b, qty=3)]

        first = self._create(sale_id=sale.id, items=items, processing_fee=None, restocking_fee=None)

        Return.objects.filter(pk=first.pk).update(status=Return.STATUS_CANCELLED)
        second = self._create(
            sale_id=sale.id,
            items=list(reversed(items)),
            processing_fee=None,
            restocking_fee=None,
        )

        self.assertEqual(first.return_amount, Decimal("122.05"))
        self.assertEqual(second.return_amount, first.return_amount)

    def test_return_number_format(self):
        ret = self._create()
        self.assertRegex(ret.return_number, re.compile(r"^RET\d{8}-\d{12}-[0-9A-F]{4}$"))

    def test_quantity_above_sold_is_rejected_and_nothing_persisted(self):
        with self.assertRaises(ReturnValidationError):
            self._create(items=[self._item(qty=5)])

        self.assertEqual(Return.objects.count(), 0)
        self.assertEqual(ReturnItem.objects.count(), 0)

    def test_unknown_sale_is_not_found(self):
        with self.assertRaises(ReturnNotFoundError):
            self._create(sale_id=uuid.uuid4())

    def test_unknown_sale_line_is_not_found(self):
        with self.assertRaises(ReturnNotFoundError):
            self._create(items=[self._item(sale_line_id=uuid.uuid4())])

    def test_line_from_another_sale_is_rejected(self):
        _other_sale, (foreign_line,) = make_sale([(self.product, 1, "100.00")])

        with self.assertRaises(ReturnValidationError):
            self._create(items=[self._item(foreign_line, qty=1)])

        self.assertEqual(Return.objects.count(), 0)

    def test_product_mismatch_is_rejected(self):
        other = make_product("OTHER-1")
        with self.assertRaises(ReturnValidationError):
            self._create(items=[self._item(product_id=other.id)])

    def test_sale_that_is_not_completed_is_rejected(self):
        draft, (draft_line,) = make_sale([(self.product, 1, "100.00")], status=Sale.STATUS_DRAFT)

        with self.assertRaises(ReturnValidationError):
            self._create(sale_id=draft.id, items=[self._item(draft_line, qty=1)])

    def test_duplicate_sale_line_in_one_request_is_rejected(self):
        with self.assertRaises(ReturnValidationError):
            self._create(items=[self._item(qty=1), self._item(qty=1)])

    def test_required_inputs(self):
        with self.assertRaises(ReturnValidationError):
            self._create(reason="   ")
        with self.assertRaises(ReturnValidationError):
            self._create(refund_method="bitcoin")
        with self.assertRaises(ReturnValidationError):
            self.service.create_return(
                sale_id=self.sale.id, reason="x", refund_method="cash", items=[]
            )

    def test_fees_exceeding_value_are_rejected_at_creation(self):
        with self.assertRaises(ReturnValidationError):
            self._create(processing_fee="150.00", restocking_fee="60.00")
        self.assertEqual(Return.objects.count(), 0)

    def test_cumulative_quantity_across_returns_is_enforced(self):
        self._create(items=[self._item(qty=2)])

        with self.assertRaises(ReturnValidationError):
            self._create(items=[self._item(qty=2)], processing_fee=None, restocking_fee=None)

        # the remaining unit is still returnable
        third = self._create(items=[self._item(qty=1)], processing_fee=None, restocking_fee=None)
        self.assertEqual(third.return_amount, Decimal("100.00"))

    def test_cancelled_and_rejected_returns_release_quantity(self):
        first = self._create(items=[self._item(qty=3)], processing_fee=None, restocking_fee=None)
        self.service.cancel_return(first.id, user=self.manager)

        second = self._create(items=[self._item(qty=3)], processing_fee=None, restocking_fee=None)
        self.service.reject_return(second.id, reason="Outside policy", user=self.manager)

        third = self._create(items=[self._item(qty=3)], processing_fee=None, restocking_fee=None)
        self.assertEqual(third.status, Return.STATUS_PENDING)

    def test_cumulative_guard_can_be_disabled(self):
        self._create(items=[self._item(qty=3)], processing_fee=None, restocking_fee=None)

        with self.settings(RETURNS_ENFORCE_CUMULATIVE_QUANTITY=False):
            again = self._create(items=[self._item(qty=3)], processing_fee=None, restocking_fee=None)

        self.assertEqual(again.items.get().quantity_returned, 3)

    def test_creation_is_logged_as_activity(self):
        ret = self._create()
        activity = ReturnActivity.objects.get(return_request=ret)
        self.assertEqual(activity.action, ReturnActivity.Action.CREATED)
        self.assertEqual(activity.to_status, Return.STATUS_PENDING)
        self.assertEqual(activity.actor_id, self.clerk.id)


# =====================================================
# APPROVE / REJECT / CANCEL
# =====================================================


class ApproveRejectCancelTests(ReturnServiceTestBase):
    def test_approve_overrides_creation_settlement(self):
        ret = self._create()

        approved = self.service.approve_return(
            ret.id,
            refund_amount="150.00",
            store_credit_amount="30.00",
            notes="Partial credit agreed",
            user=self.manager,
        )

        self.assertEqual(approved.status, Return.STATUS_APPROVED)
        self.assertEqual(approved.refund_amount, Decimal("150.00"))
        self.assertEqual(approved.store_credit_amount, Decimal("30.00"))
        self.assertEqual(approved.notes, "Partial credit agreed")
        self.assertEqual(approved.approved_by_id, self.manager.id)
        self.assertIsNotNone(approved.approved_at)
        # stored fees kept when not overridden
        self.assertEqual(approved.processing_fee, Decimal("5.00"))
        self.assertEqual(approved.restocking_fee, Decimal("10.00"))

    def test_approve_fee_override_of_zero_is_applied(self):
        ret = self._create()

        approved = self.service.approve_return(
            ret.id,
            refund_amount="200.00",
            processing_fee="0",
            restocking_fee="0",
            user=self.manager,
        )

        self.assertEqual(approved.processing_fee, Decimal("0.00"))
        self.assertEqual(approved.restocking_fee, Decimal("0.00"))
        self.assertEqual(approved.refund_amount, Decimal("200.00"))

    def test_approve_rejects_payout_above_settlement(self):
        ret = self._create()

        with self.assertRaises(ReturnValidationError):
            self.service.approve_return(
                ret.id,
                refund_amount="180.00",
                store_credit_amount="10.00",
                user=self.manager,
            )

        self.assertEqual(Return.objects.get(pk=ret.pk).status, Return.STATUS_PENDING)

    def test_approve_rejects_negative_settlement_from_fee_override(self):
        ret = self._create()

        with self.assertRaises(ReturnValidationError):
            self.service.approve_return(
                ret.id,
                refund_amount="0",
                restocking_fee="250.00",
                user=self.manager,
            )

    def test_approve_rejects_negative_amounts(self):
        ret = self._create()
        with self.assertRaises(ReturnValidationError):
            self.service.approve_return(ret.id, refund_amount="-1", user=self.manager)
        with self.assertRaises(ReturnValidationError):
            self.service.approve_return(
                ret.id, refund_amount="1", store_credit_amount="-1", user=self.manager
            )

    def test_second_approve_is_an_invalid_transition(self):
        ret = self._create()
        self.service.approve_return(ret.id, refund_amount="150.00", user=self.manager)

        with self.assertRaises(InvalidReturnTransitionError):
            self.service.approve_return(ret.id, refund_amount="100.00", user=self.manager)

        self.assertEqual(Return.objects.get(pk=ret.pk).refund_amount, Decimal("150.00"))

    def test_concurrent_approve_loser_sees_conflict(self):
        ret = self._create()
        stale = self.service.repository.get_by_id(ret.id)

        self.service.approve_return(ret.id, refund_amount="150.00", user=self.manager)

        # the loser read "pending" before the winner committed
        with mock.patch.object(self.service.repository, "get_by_id", return_value=stale):
            with self.assertRaises(ReturnConcurrencyError):
                self.service.approve_return(ret.id, refund_amount="100.00", user=self.clerk)

        fresh = Return.objects.get(pk=ret.pk)
        self.assertEqual(fresh.status, Return.STATUS_APPROVED)
        self.assertEqual(fresh.refund_amount, Decimal("150.00"))
        self.assertEqual(fresh.approved_by_id, self.manager.id)
        self.assertEqual(
            ReturnActivity.objects.filter(return_request=ret, action=ReturnActivity.Action.APPROVED).count(),
            1,
        )

    def test_reject_requires_reason(self):
        ret = self._create()

        with self.assertRaises(ReturnValidationError):
            self.service.reject_return(ret.id, reason="  ", user=self.manager)

        self.assertEqual(Return.objects.get(pk=ret.pk).status, Return.STATUS_PENDING)

    def test_reject_persists_reason_without_inventory_effect(self):
        ret = self._create()

        rejected = self.service.reject_return(ret.id, reason="Item worn", user=self.manager)

        self.assertEqual(rejected.status, Return.STATUS_REJECTED)
        self.assertEqual(rejected.rejection_reason, "Item worn")
        self.assertEqual(rejected.rejected_by_id, self.manager.id)
        self.assertEqual(self._stock(), 10)
        self.assertEqual(StockMovement.objects.count(), 0)

    def test_reject_is_only_allowed_from_pending(self):
        ret = self._create()
        self.service.approve_return(ret.id, refund_amount="185.00", user=self.manager)

        with self.assertRaises(InvalidReturnTransitionError):
            self.service.reject_return(ret.id, reason="Too late", user=self.manager)

    def test_cancel_from_pending_only(self):
        ret = self._create()
        cancelled = self.service.cancel_return(ret.id, reason="Customer withdrew", user=self.clerk)

        self.assertEqual(cancelled.status, Return.STATUS_CANCELLED)
        self.assertEqual(cancelled.cancellation_reason, "Customer withdrew")
        self.assertIsNotNone(cancelled.cancelled_at)

        with self.assertRaises(InvalidReturnTransitionError):
            self.service.cancel_return(ret.id, user=self.clerk)
        with self.assertRaises(InvalidReturnTransitionError):
            self.service.approve_return(ret.id, refund_amount="1.00", user=self.manager)

    def test_unknown_or_malformed_id_is_not_found(self):
        for bad_id in (uuid.uuid4(), "not-a-uuid"):
            with self.subTest(return_id=bad_id):
                with self.assertRaises(ReturnNotFoundError):
                    self.service.approve_return(bad_id, refund_amount="1.00")
                with self.assertRaises(ReturnNotFoundError):
                    self.service.get_return(bad_id)


# =====================================================
# COMPLETE
# =====================================================


class CompleteReturnTests(ReturnServiceTestBase):
    """
    GUARANTEES:
    - Only approved returns complete
    - Only restockable + new items go back to stock
    - Refund transactions mirror the approved settlement
    - A losing concurrent completion applies nothing
    """

    def _approve(self, ret, **kwargs):
        params = {"refund_amount": ret.settlement_amount, "user": self.manager}
        params.update(kwargs)
        return self.service.approve_return(ret.id, **params)

    def test_completing_pending_return_is_invalid(self):
        ret = self._create()

        with self.assertRaises(InvalidReturnTransitionError):
            self.service.complete_return(ret.id, user=self.clerk)

        self.assertEqual(self._stock(), 10)

    def test_complete_restocks_counter_for_new_restockable_items(self):
        ret = self._create()
        self._approve(ret)

        completed = self.service.complete_return(ret.id, user=self.clerk)

        self.assertEqual(completed.status, Return.STATUS_COMPLETED)
        self.assertEqual(completed.completed_by_id, self.clerk.id)
        self.assertEqual(self._stock(), 12)

        movement = StockMovement.objects.get(return_request=ret)
        self.assertEqual(movement.transaction_type, StockMovement.TransactionType.RESTOCK_FROM_RETURN)
        self.assertEqual(movement.quantity, 2)

    def test_complete_never_restocks_damaged_or_non_restockable_items(self):
        damaged = make_product("DMG-1", stock_quantity=4)
        keep_out = make_product("OUT-1", stock_quantity=6)
        sale, (good_line, damaged_line, keep_out_line) = make_sale(
            [(self.product, 2, "10.00"), (damaged, 2, "10.00"), (keep_out, 2, "10.00")]
        )

        ret = self._create(
            sale_id=sale.id,
            items=[
                self._item(good_line, qty=2),
                self._item(damaged_line, qty=2, condition="damaged", restockable=True),
                self._item(keep_out_line, qty=2, condition="new", restockable=False),
            ],
            processing_fee=None,
            restocking_fee=None,
        )
        self._approve(ret)
        self.service.complete_return(ret.id, user=self.clerk)

        self.assertEqual(self._stock(self.product), 12)
        self.assertEqual(self._stock(damaged), 4)
        self.assertEqual(self._stock(keep_out), 6)
        self.assertEqual(StockMovement.objects.filter(return_request=ret).count(), 1)

    def test_complete_writes_refund_and_store_credit_transactions(self):
        ret = self._create(refund_method="card")
        self._approve(ret, refund_amount="150.00", store_credit_amount="30.00")

        self.service.complete_return(ret.id, user=self.clerk)

        rows = {
            t.transaction_type: t
            for t in RefundTransaction.objects.filter(return_request=ret)
        }
        self.assertEqual(set(rows), {"refund", "store_credit"})
        self.assertEqual(rows["refund"].amount, Decimal("150.00"))
        self.assertEqual(rows["refund"].payment_method, "card")
        self.assertEqual(rows["store_credit"].amount, Decimal("30.00"))
        self.assertEqual(rows["store_credit"].payment_method, "store_credit")
        self.assertTrue(all(t.status == "completed" for t in rows.values()))
        self.assertTrue(all(t.reference_number for t in rows.values()))

    def test_exchange_method_writes_exchange_transaction(self):
        ret = self._create(refund_method="exchange")
        self._approve(ret)

        self.service.complete_return(ret.id, user=self.clerk)

        row = RefundTransaction.objects.get(return_request=ret)
        self.assertEqual(row.transaction_type, RefundTransaction.TransactionType.EXCHANGE)
        self.assertEqual(row.amount, Decimal("185.00"))

    def test_store_credit_method_writes_store_credit_rows_only(self):
        ret = self._create(refund_method="store_credit")
        self._approve(ret, refund_amount="150.00", store_credit_amount="35.00")

        self.service.complete_return(ret.id, user=self.clerk)

        rows = RefundTransaction.objects.filter(return_request=ret)
        self.assertEqual(
            set(rows.values_list("transaction_type", flat=True)),
            {RefundTransaction.TransactionType.STORE_CREDIT},
        )
        self.assertEqual(
            sorted(rows.values_list("amount", flat=True)),
            [Decimal("35.00"), Decimal("150.00")],
        )
        self.assertTrue(all(row.payment_method == "store_credit" for row in rows))

    def test_product_switched_to_serialized_after_creation_is_validation_error(self):
        ret = self._create()
        self._approve(ret)
        Product.objects.filter(pk=self.product.pk).update(is_serialized=True)

        with self.assertRaises(ReturnValidationError):
            self.service.complete_return(ret.id, user=self.clerk)

        fresh = Return.objects.get(pk=ret.pk)
        self.assertEqual(fresh.status, Return.STATUS_APPROVED)
        self.assertIsNone(fresh.completed_at)
        self.assertEqual(self._stock(), 10)
        self.assertFalse(RefundTransaction.objects.filter(return_request=ret).exists())
        self.assertFalse(
            ReturnActivity.objects.filter(
                return_request=ret, action=ReturnActivity.Action.COMPLETED
            ).exists()
        )

    def test_zero_settlement_writes_no_transactions(self):
        ret = self._create()
        self._approve(ret, refund_amount="0")

        self.service.complete_return(ret.id, user=self.clerk)

        self.assertFalse(RefundTransaction.objects.filter(return_request=ret).exists())

    def test_complete_twice_is_invalid_and_restocks_once(self):
        ret = self._create()
        self._approve(ret)
        self.service.complete_return(ret.id, user=self.clerk)

        with self.assertRaises(InvalidReturnTransitionError):
            self.service.complete_return(ret.id, user=self.clerk)

        self.assertEqual(self._stock(), 12)

    def test_concurrent_complete_loser_applies_no_side_effects(self):
        ret = self._create()
        self._approve(ret)
        stale = self.service.repository.get_by_id(ret.id)

        self.service.complete_return(ret.id, user=self.clerk)

        with mock.patch.object(self.service.repository, "get_by_id", return_value=stale):
            with self.assertRaises(ReturnConcurrencyError):
                self.service.complete_return(ret.id, user=self.manager)

        self.assertEqual(self._stock(), 12)
        self.assertEqual(StockMovement.objects.filter(return_request=ret).count(), 1)
        self.assertEqual(RefundTransaction.objects.filter(return_request=ret).count(), 1)

    def test_failed_side_effect_rolls_back_status(self):
        ret = self._create()
        self._approve(ret)

        broken_applier = mock.Mock()
        broken_applier.apply_stock_deltas.side_effect = RuntimeError("counter unavailable")
        service = ReturnService(cache=NullReturnCache(), stock_applier=broken_applier)

        with self.assertRaises(RuntimeError):
            service.complete_return(ret.id, user=self.clerk)

        self.assertEqual(Return.objects.get(pk=ret.pk).status, Return.STATUS_APPROVED)
        self.assertEqual(self._stock(), 10)

    def test_activity_log_follows_lifecycle(self):
        ret = self._create()
        self._approve(ret)
        self.service.complete_return(ret.id, user=self.clerk)

        actions = list(
            ReturnActivity.objects.filter(return_request=ret)
            .order_by("created_at")
            .values_list("action", flat=True)
        )
        self.assertEqual(actions, ["created", "approved", "completed"])


# =====================================================
# SERIALIZED PRODUCTS
# =====================================================


class SerializedReturnTests(ReturnServiceTestBase):
    def setUp(self):
        super().setUp()
        self.phone = make_product("PHONE-X", unit_price="400.00", is_serialized=True)
        self.phone_sale, (self.phone_line,) = make_sale([(self.phone, 2, "400.00")], user=self.clerk)
        make_serials(self.phone, ["IMEI-1", "IMEI-2"])

    def _create_phone_return(self, serials, qty=2, **item_extra):
        return self._create(
            sale_id=self.phone_sale.id,
            items=[self._item(self.phone_line, qty=qty, serial_numbers=serials, **item_extra)],
            processing_fee=None,
            restocking_fee=None,
        )

    def _status(self, serial_number):
        return SerialUnit.objects.get(product=self.phone, serial_number=serial_number).status

    def test_create_marks_serials_returned_and_stores_links(self):
        ret = self._create_phone_return(["IMEI-1", "IMEI-2"])

        self.assertEqual(self._status("IMEI-1"), SerialUnit.Status.RETURNED)
        self.assertEqual(self._status("IMEI-2"), SerialUnit.Status.RETURNED)

        links = ReturnItemSerial.objects.filter(return_item__return_request=ret)
        self.assertEqual(sorted(links.values_list("serial_number", flat=True)), ["IMEI-1", "IMEI-2"])
        self.assertTrue(all(link.marked_returned for link in links))
        self.assertTrue(ret.items.get().is_serialized)

    def test_round_trip_ends_in_stock_with_two_movements_per_serial(self):
        ret = self._create_phone_return(["IMEI-1", "IMEI-2"])
        self.service.approve_return(ret.id, refund_amount="800.00", user=self.manager)
        self.service.complete_return(ret.id, user=self.clerk)

        for serial_number in ("IMEI-1", "IMEI-2"):
            with self.subTest(serial=serial_number):
                self.assertEqual(self._status(serial_number), SerialUnit.Status.IN_STOCK)
                self.assertEqual(
                    StockMovement.objects.filter(
                        return_request=ret,
                        serial_unit__serial_number=serial_number,
                    ).count(),
                    2,
                )

        # serialized stock never touches the counter
        self.assertEqual(self._stock(self.phone), 0)

    def test_unsold_serial_is_skipped_and_never_restocked(self):
        make_serials(self.phone, ["IMEI-SHELF"], status=SerialUnit.Status.IN_STOCK)

        ret = self._create_phone_return(["IMEI-1", "IMEI-SHELF"])

        link = ReturnItemSerial.objects.get(serial_number="IMEI-SHELF")
        self.assertFalse(link.marked_returned)

        self.service.approve_return(ret.id, refund_amount="800.00", user=self.manager)
        self.service.complete_return(ret.id, user=self.clerk)

        self.assertEqual(self._status("IMEI-1"), SerialUnit.Status.IN_STOCK)
        self.assertFalse(
            StockMovement.objects.filter(serial_unit__serial_number="IMEI-SHELF").exists()
        )

    def test_damaged_serialized_item_stays_returned(self):
        ret = self._create_phone_return(["IMEI-1", "IMEI-2"], condition="damaged")
        self.service.approve_return(ret.id, refund_amount="800.00", user=self.manager)
        self.service.complete_return(ret.id, user=self.clerk)

        self.assertEqual(self._status("IMEI-1"), SerialUnit.Status.RETURNED)
        self.assertEqual(StockMovement.objects.filter(return_request=ret).count(), 2)

    def test_serial_count_must_match_quantity(self):
        with self.assertRaises(ReturnValidationError):
            self._create_phone_return(["IMEI-1"], qty=2)

        with self.assertRaises(ReturnValidationError):
            self._create_phone_return(["IMEI-1", "IMEI-1"], qty=2)

        self.assertEqual(self._status("IMEI-1"), SerialUnit.Status.SOLD)

    def test_non_serialized_product_rejects_serials(self):
        with self.assertRaises(ReturnValidationError):
            self._create(items=[self._item(serial_numbers=["X-1", "X-2"])])

    def test_rejecting_serialized_return_leaves_units_returned(self):
        ret = self._create_phone_return(["IMEI-1", "IMEI-2"])
        self.service.reject_return(ret.id, reason="Water damage", user=self.manager)

        self.assertEqual(self._status("IMEI-1"), SerialUnit.Status.RETURNED)
        self.assertEqual(StockMovement.objects.filter(return_request=ret).count(), 2)


# =====================================================
# READ CACHE
# =====================================================


class ReturnReadCacheTests(ReturnServiceTestBase):
    def setUp(self):
        super().setUp()
        self.cache = ReturnCache(alias="default", timeout=60)
        self.service = ReturnService(cache=self.cache)

    def test_get_is_read_through(self):
        ret = self._create()

        first = self.service.get_return(ret.id)
        self.assertIsNotNone(self.cache.get(ret.id))

        with mock.patch.object(self.service.repository, "get_by_id") as repo_get:
            second = self.service.get_return(ret.id)

        repo_get.assert_not_called()
        self.assertEqual(first.id, second.id)

    def test_writes_invalidate_cached_return(self):
        ret = self._create()
        self.assertEqual(self.service.get_return(ret.id).status, Return.STATUS_PENDING)

        self.service.approve_return(ret.id, refund_amount="185.00", user=self.manager)
        self.assertIsNone(self.cache.get(ret.id))
        self.assertEqual(self.service.get_return(ret.id).status, Return.STATUS_APPROVED)

        self.service.complete_return(ret.id, user=self.clerk)
        self.assertEqual(self.service.get_return(ret.id).status, Return.STATUS_COMPLETED)

    def test_writes_never_read_from_cache(self):
        ret = self._create()
        self.service.get_return(ret.id)

        # status moved behind the cache's back
        Return.objects.filter(pk=ret.pk).update(status=Return.STATUS_CANCELLED)

        with self.assertRaises(InvalidReturnTransitionError):
            self.service.approve_return(ret.id, refund_amount="1.00", user=self.manager)

    def test_copy_cached_by_a_slow_reader_is_not_served(self):
        ret = self._create()
        stale = self.service.repository.get_by_id(ret.id)

        self.service.approve_return(ret.id, refund_amount="185.00", user=self.manager)
        # a reader that loaded before the approval stores its copy afterwards
        self.cache.set(ret.id, stale)

        fresh = self.service.get_return(ret.id)

        self.assertEqual(fresh.status, Return.STATUS_APPROVED)
        self.assertEqual(self.cache.get(ret.id).status, Return.STATUS_APPROVED)

    def test_null_cache_always_reads_database(self):
        service = ReturnService(cache=NullReturnCache())
        ret = self._create()
        service.get_return(ret.id)

        Return.objects.filter(pk=ret.pk).update(notes="changed")
        self.assertEqual(service.get_return(ret.id).notes, "changed")
