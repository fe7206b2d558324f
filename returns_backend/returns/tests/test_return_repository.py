# returns/tests/test_return_repository.py

from __future__ import annotations

import uuid
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone

from returns.models import Return
from returns.services.exceptions import (
    ReturnConcurrencyError,
    ReturnNotFoundError,
    ReturnValidationError,
)
from returns.services.repository import NewReturn, NewReturnItem, ReturnRepository
from returns.tests.helpers import make_bare_return, make_product, make_sale, make_user


class ReturnRepositoryStatusTests(TestCase):
    """
    GUARANTEES:
    - update_status writes only when the stored status matches
    - a missing row is NOT_FOUND, a moved row is CONCURRENCY_CONFLICT
    """

    def setUp(self):
        self.repo = ReturnRepository()
        product = make_product("REPO-1")
        self.sale, _items = make_sale([(product, 1, "100.00")])
        self.ret = make_bare_return(self.sale, amount="100.00")

    def test_update_status_applies_when_expected_matches(self):
        updated = self.repo.update_status(
            self.ret.id,
            Return.STATUS_PENDING,
            {"status": Return.STATUS_APPROVED, "refund_amount": Decimal("80.00")},
        )

        self.assertEqual(updated.status, Return.STATUS_APPROVED)
        self.assertEqual(updated.refund_amount, Decimal("80.00"))
        self.assertGreaterEqual(updated.updated_at, self.ret.updated_at)

    def test_update_status_conflict_leaves_row_untouched(self):
        Return.objects.filter(pk=self.ret.pk).update(status=Return.STATUS_CANCELLED)

        with self.assertRaises(ReturnConcurrencyError) as ctx:
            self.repo.update_status(
                self.ret.id,
                Return.STATUS_PENDING,
                {"status": Return.STATUS_APPROVED, "refund_amount": Decimal("80.00")},
            )

        self.assertEqual(ctx.exception.code, "CONCURRENCY_CONFLICT")
        self.assertEqual(ctx.exception.context["current_status"], Return.STATUS_CANCELLED)

        fresh = Return.objects.get(pk=self.ret.pk)
        self.assertEqual(fresh.status, Return.STATUS_CANCELLED)
        self.assertEqual(fresh.refund_amount, Decimal("0.00"))

    def test_update_status_on_missing_row_is_not_found(self):
        with self.assertRaises(ReturnNotFoundError):
            self.repo.update_status(
                uuid.uuid4(),
                Return.STATUS_PENDING,
                {"status": Return.STATUS_APPROVED},
            )

    def test_update_status_requires_target_status(self):
        with self.assertRaises(ValueError):
            self.repo.update_status(self.ret.id, Return.STATUS_PENDING, {"notes": "x"})

    def test_get_by_id_tolerates_bad_ids(self):
        self.assertIsNone(self.repo.get_by_id(uuid.uuid4()))
        self.assertIsNone(self.repo.get_by_id("garbage"))
        self.assertEqual(self.repo.get_by_id(self.ret.id).id, self.ret.id)


class ReturnRepositoryCreateTests(TestCase):
    def setUp(self):
        self.repo = ReturnRepository()
        self.user = make_user("repo@example.com")
        self.product = make_product("REPO-2")
        self.sale, (self.line,) = make_sale([(self.product, 2, "40.00")])

    def _header(self, amount="40.00"):
        return NewReturn(
            sale_id=self.sale.id,
            reason="Wrong size",
            refund_method=Return.RefundMethod.CARD,
            return_amount=Decimal(amount),
            refund_amount=Decimal(amount),
            created_by=self.user,
        )

    def _item(self, qty=1):
        return NewReturnItem(
            sale_item_id=self.line.id,
            product_id=self.product.id,
            quantity_returned=qty,
            quantity_original=2,
            unit_price=Decimal("40.00"),
        )

    def test_create_persists_header_and_items(self):
        ret = self.repo.create(self._header(), [self._item()])

        self.assertEqual(ret.status, Return.STATUS_PENDING)
        self.assertTrue(ret.return_number.startswith("RET"))
        self.assertEqual(ret.items.count(), 1)
        self.assertEqual(ret.items.get().total_amount, Decimal("40.00"))

    def test_create_without_items_is_rejected(self):
        with self.assertRaises(ReturnValidationError):
            self.repo.create(self._header(), [])
        self.assertFalse(Return.objects.exists())

    def test_claimed_quantity_counts_open_returns_only(self):
        first = self.repo.create(self._header(), [self._item()])
        self.assertEqual(self.repo.claimed_quantity(self.line.id), 1)

        Return.objects.filter(pk=first.pk).update(status=Return.STATUS_REJECTED)
        self.assertEqual(self.repo.claimed_quantity(self.line.id), 0)

    @override_settings(RETURN_NUMBER_PREFIX="RMA")
    def test_return_number_prefix_is_configurable(self):
        ret = self.repo.create(self._header(), [self._item()])
        self.assertTrue(ret.return_number.startswith("RMA"))


class ReturnRepositoryListTests(TestCase):
    def setUp(self):
        self.repo = ReturnRepository()
        self.clerk = make_user("lister@example.com", role="returns_clerk")
        self.kettle = make_product("LIST-K")
        self.toaster = make_product("LIST-T")

        sale_a, _ = make_sale([(self.kettle, 1, "10.00")])
        sale_b, _ = make_sale([(self.toaster, 1, "30.00")])
        self.sale_a = sale_a

        self.small = make_bare_return(sale_a, amount="10.00", user=self.clerk)
        self.large = make_bare_return(sale_b, amount="30.00")
        self.medium = make_bare_return(sale_a, amount="20.00")

        Return.objects.filter(pk=self.large.pk).update(status=Return.STATUS_APPROVED)
        Return.objects.filter(pk=self.medium.pk).update(
            created_at=timezone.now() - timedelta(days=10),
            refund_method=Return.RefundMethod.STORE_CREDIT,
            reason="Arrived broken",
        )

    def _ids(self, page):
        return [r.id for r in page.results]

    def test_default_sort_is_newest_first(self):
        page = self.repo.list()
        self.assertEqual(page.count, 3)
        self.assertEqual(page.results[-1].id, self.medium.id)

    def test_sort_by_amount(self):
        self.assertEqual(
            self._ids(self.repo.list(sort="return_amount")),
            [self.small.id, self.medium.id, self.large.id],
        )
        self.assertEqual(
            self._ids(self.repo.list(sort="-return_amount")),
            [self.large.id, self.medium.id, self.small.id],
        )

    def test_filters(self):
        cases = [
            ({"status": "approved"}, {self.large.id}),
            ({"sale": str(self.sale_a.id)}, {self.small.id, self.medium.id}),
            ({"refund_method": "store_credit"}, {self.medium.id}),
            ({"created_by": str(self.clerk.id)}, {self.small.id}),
            ({"min_amount": "15", "max_amount": "25"}, {self.medium.id}),
            ({"search": "broken"}, {self.medium.id}),
            ({"date_to": (timezone.now() - timedelta(days=5)).date().isoformat()}, {self.medium.id}),
        ]
        for filters, expected in cases:
            with self.subTest(filters=filters):
                self.assertEqual(set(self._ids(self.repo.list(filters=filters))), expected)

    def test_pagination(self):
        page = self.repo.list(sort="return_amount", page=2, page_size=2)

        self.assertEqual(page.count, 3)
        self.assertEqual(page.page, 2)
        self.assertEqual(page.page_size, 2)
        self.assertEqual(self._ids(page), [self.large.id])

    def test_invalid_list_arguments(self):
        with self.assertRaises(ReturnValidationError):
            self.repo.list(sort="reason")
        with self.assertRaises(ReturnValidationError):
            self.repo.list(page=0)
        with self.assertRaises(ReturnValidationError):
            self.repo.list(page="abc")
        with self.assertRaises(ReturnValidationError):
            self.repo.list(filters={"status": "lost"})

    @override_settings(RETURNS_MAX_PAGE_SIZE=2)
    def test_page_size_is_capped(self):
        with self.assertRaises(ReturnValidationError):
            self.repo.list(page_size=3)
