# returns/services/return_service.py

"""
======================================================
PATH: returns/services/return_service.py
======================================================
RETURN STATE MACHINE

Entry point for every return operation:

    create_return   -> pending     (serials: sold -> returned)
    approve_return  pending  -> approved   (settlement recomputed)
    reject_return   pending  -> rejected   (reason required)
    cancel_return   pending  -> cancelled
    complete_return approved -> completed  (restock + refund transactions)

Order of work for every transition:
1) read current state (repository / read cache)
2) validate the transition (returns.services.lifecycle)
3) compute amounts (calculator)
4) inside ONE transaction.atomic block:
     a) compare-and-set the status (repository.update_status)
     b) only then apply side effects (serial ledger, stock applier,
        refund transactions, activity log)
5) invalidate the read cache

A caller that loses the compare-and-set gets ReturnConcurrencyError and
none of its side effects are applied.
======================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from products.services import serial_ledger as default_serial_ledger
from products.services import stock_reconciliation as default_stock_applier
from products.services.stock_reconciliation import StockDelta, StockReconciliationError
from returns.models import RefundTransaction, Return, ReturnActivity, ReturnItem
from returns.services.cache import build_return_cache
from returns.services.calculator import ZERO, ReturnLine, compute_settlement, to_money
from returns.services.exceptions import ReturnNotFoundError, ReturnValidationError
from returns.services.lifecycle import validate_transition
from returns.services.repository import NewReturn, NewReturnItem, ReturnRepository
from sales.services import sale_reader as default_sale_reader
from sales.services.sale_reader import (
    SaleLineMismatchError,
    SaleLineNotFoundError,
    SaleNotFoundError,
    SaleNotReturnableError,
)

logger = logging.getLogger(__name__)

# transaction type of the refund_amount leg, by refund method
REFUND_LEG_TYPES = {
    Return.RefundMethod.EXCHANGE: RefundTransaction.TransactionType.EXCHANGE,
    Return.RefundMethod.STORE_CREDIT: RefundTransaction.TransactionType.STORE_CREDIT,
}


@dataclass(frozen=True)
class ReturnItemInput:
    sale_line_id: object
    quantity_returned: int
    product_id: object = None
    condition: str = ReturnItem.Condition.NEW
    restockable: bool = True
    reason: str = ""
    serial_numbers: tuple = ()


def _to_int(value, *, field_name: str) -> int:
    if value is None or value == "" or isinstance(value, bool):
        raise ReturnValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ReturnValidationError(f"{field_name} must be an integer")


def _normalize_items(items) -> list[ReturnItemInput]:
    """
    Accept dicts (API payloads) or ReturnItemInput and return clean inputs.
    """
    if not items:
        raise ReturnValidationError("A return must contain at least one item")

    out = []
    seen_lines = set()

    for raw in items:
        if isinstance(raw, ReturnItemInput):
            raw = raw.__dict__

        line_id = raw.get("sale_line_id")
        if not line_id:
            raise ReturnValidationError("sale_line_id is required for every item")

        key = str(line_id)
        if key in seen_lines:
            raise ReturnValidationError(
                f"Sale line {line_id} appears more than once; combine it into one item"
            )
        seen_lines.add(key)

        qty = _to_int(raw.get("quantity_returned"), field_name="quantity_returned")
        if qty <= 0:
            raise ReturnValidationError("quantity_returned must be greater than zero")

        condition = raw.get("condition") or ReturnItem.Condition.NEW
        if condition not in ReturnItem.Condition.values:
            raise ReturnValidationError(f"Unknown condition '{condition}'")

        serials = tuple(
            s.strip() for s in (raw.get("serial_numbers") or []) if s and s.strip()
        )
        if len(set(serials)) != len(serials):
            raise ReturnValidationError(f"Duplicate serial numbers on sale line {line_id}")

        restockable = raw.get("restockable")
        out.append(
            ReturnItemInput(
                sale_line_id=line_id,
                quantity_returned=qty,
                product_id=raw.get("product_id"),
                condition=condition,
                restockable=True if restockable is None else bool(restockable),
                reason=(raw.get("reason") or "").strip(),
                serial_numbers=serials,
            )
        )

    return out


class ReturnService:
    """
    Return State Machine.

    Collaborators are injectable so tests can swap any of them:
    - repository:    ReturnRepository
    - cache:         ReturnCache / NullReturnCache
    - serial_ledger: mark_returned / mark_restocked
    - stock_applier: apply_stock_deltas
    - sale_reader:   get_sale / get_sale_line
    """

    def __init__(
        self,
        *,
        repository=None,
        cache=None,
        serial_ledger=None,
        stock_applier=None,
        sale_reader=None,
    ):
        self.repository = repository or ReturnRepository()
        self.cache = cache if cache is not None else build_return_cache()
        self.serial_ledger = serial_ledger or default_serial_ledger
        self.stock_applier = stock_applier or default_stock_applier
        self.sale_reader = sale_reader or default_sale_reader

    # ======================================================
    # READS
    # ======================================================

    def get_return(self, return_id) -> Return:
        cached = self.cache.get(return_id)
        if cached is not None:
            # a reader that raced a write may have cached an older row
            if cached.updated_at == self.repository.current_version(return_id):
                return cached
            self.cache.invalidate(return_id)

        return_request = self.repository.get_by_id(return_id)
        if return_request is None:
            raise ReturnNotFoundError(f"Return {return_id} not found")

        self.cache.set(return_id, return_request)
        return return_request

    def list_returns(self, *, filters=None, sort=None, page=1, page_size=None):
        return self.repository.list(filters=filters, sort=sort, page=page, page_size=page_size)

    def _load_for_write(self, return_id) -> Return:
        # writes always read the database, never the cache
        return_request = self.repository.get_by_id(return_id)
        if return_request is None:
            raise ReturnNotFoundError(f"Return {return_id} not found")
        return return_request

    # ======================================================
    # CREATE
    # ======================================================

    def create_return(
        self,
        *,
        sale_id,
        reason: str,
        refund_method: str,
        items,
        processing_fee=None,
        restocking_fee=None,
        notes: str = "",
        user=None,
    ) -> Return:
        reason_text = (reason or "").strip()
        if not reason_text:
            raise ReturnValidationError("reason is required")

        if refund_method not in Return.RefundMethod.values:
            raise ReturnValidationError(f"Unknown refund_method '{refund_method}'")

        inputs = _normalize_items(items)

        # 1) Sale + lines (read-only snapshots)
        try:
            sale = self.sale_reader.get_sale(sale_id)
        except SaleNotFoundError as exc:
            raise ReturnNotFoundError(str(exc)) from exc
        except SaleNotReturnableError as exc:
            raise ReturnValidationError(str(exc)) from exc

        new_items = []
        lines = []
        for item in inputs:
            try:
                line = self.sale_reader.get_sale_line(item.sale_line_id, sale.id)
            except SaleLineNotFoundError as exc:
                raise ReturnNotFoundError(str(exc)) from exc
            except SaleLineMismatchError as exc:
                raise ReturnValidationError(str(exc)) from exc

            if item.product_id and str(item.product_id) != str(line.product_id):
                raise ReturnValidationError(
                    f"Product {item.product_id} does not match sale line {line.id}"
                )

            if item.quantity_returned > line.quantity:
                raise ReturnValidationError(
                    f"Cannot return {item.quantity_returned} units of sale line {line.id}: "
                    f"only {line.quantity} sold"
                )

            if line.product_is_serialized:
                if len(item.serial_numbers) != item.quantity_returned:
                    raise ReturnValidationError(
                        f"Sale line {line.id} is serialized: provide exactly "
                        f"{item.quantity_returned} serial numbers"
                    )
            elif item.serial_numbers:
                raise ReturnValidationError(
                    f"Sale line {line.id} is not serialized; serial numbers are not accepted"
                )

            lines.append(ReturnLine(unit_price=line.unit_price, quantity=item.quantity_returned))
            new_items.append(
                NewReturnItem(
                    sale_item_id=line.id,
                    product_id=line.product_id,
                    quantity_returned=item.quantity_returned,
                    quantity_original=line.quantity,
                    unit_price=line.unit_price,
                    condition=item.condition,
                    restockable=item.restockable,
                    is_serialized=line.product_is_serialized,
                    reason=item.reason,
                    serial_numbers=item.serial_numbers,
                )
            )

        # 2) Amounts
        settlement = compute_settlement(
            lines,
            processing_fee=processing_fee,
            restocking_fee=restocking_fee,
        )

        header = NewReturn(
            sale_id=sale.id,
            reason=reason_text,
            refund_method=refund_method,
            return_amount=settlement.return_amount,
            refund_amount=settlement.settlement_amount,
            processing_fee=settlement.processing_fee,
            restocking_fee=settlement.restocking_fee,
            notes=(notes or "").strip(),
            created_by=user,
        )

        # 3) Persist + serial side effects (one transaction)
        with transaction.atomic():
            created = self.repository.create(header, new_items)

            persisted = {str(ri.sale_item_id): ri for ri in created.items.all()}
            for new_item in new_items:
                if not new_item.serial_numbers:
                    continue
                return_item = persisted[str(new_item.sale_item_id)]
                for serial_number in new_item.serial_numbers:
                    outcome = self.serial_ledger.mark_returned(
                        product_id=new_item.product_id,
                        serial_number=serial_number,
                        return_request=created,
                        user=user,
                    )
                    self.repository.add_item_serial(
                        return_item,
                        serial_number,
                        marked_returned=outcome.applied,
                    )

            self.repository.log_activity(
                created,
                action=ReturnActivity.Action.CREATED,
                to_status=Return.STATUS_PENDING,
                actor=user,
                note=reason_text,
            )

        self.cache.invalidate(created.id)

        logger.info(
            "Return created",
            extra={
                "return_id": str(created.id),
                "return_number": created.return_number,
                "sale_id": str(sale.id),
                "return_amount": str(settlement.return_amount),
            },
        )
        return self.repository.get_by_id(created.id)

    # ======================================================
    # APPROVE
    # ======================================================

    def approve_return(
        self,
        return_id,
        *,
        refund_amount,
        store_credit_amount=None,
        processing_fee=None,
        restocking_fee=None,
        notes=None,
        user=None,
    ) -> Return:
        current = self._load_for_write(return_id)
        validate_transition(return_request=current, target_status=Return.STATUS_APPROVED)

        # provided value, else stored value (0 is a valid override)
        settlement = compute_settlement(
            [
                ReturnLine(unit_price=item.unit_price, quantity=item.quantity_returned)
                for item in current.items.all()
            ],
            processing_fee=current.processing_fee if processing_fee is None else processing_fee,
            restocking_fee=current.restocking_fee if restocking_fee is None else restocking_fee,
        )

        refund = to_money(refund_amount, field_name="refund_amount")
        credit = to_money(
            current.store_credit_amount if store_credit_amount is None else store_credit_amount,
            field_name="store_credit_amount",
        )
        if refund < ZERO:
            raise ReturnValidationError("refund_amount cannot be negative")
        if credit < ZERO:
            raise ReturnValidationError("store_credit_amount cannot be negative")
        if refund + credit > settlement.settlement_amount:
            raise ReturnValidationError(
                f"refund_amount + store_credit_amount ({refund + credit}) exceeds "
                f"the settlement amount ({settlement.settlement_amount})"
            )

        fields = {
            "status": Return.STATUS_APPROVED,
            "refund_amount": refund,
            "store_credit_amount": credit,
            "processing_fee": settlement.processing_fee,
            "restocking_fee": settlement.restocking_fee,
            "approved_at": timezone.now(),
            "approved_by": user,
        }
        if notes is not None:
            fields["notes"] = (notes or "").strip()

        with transaction.atomic():
            updated = self.repository.update_status(current.id, current.status, fields)
            self.repository.log_activity(
                updated,
                action=ReturnActivity.Action.APPROVED,
                from_status=current.status,
                to_status=Return.STATUS_APPROVED,
                actor=user,
                note=fields.get("notes", ""),
            )

        self.cache.invalidate(current.id)

        logger.info(
            "Return approved",
            extra={
                "return_id": str(current.id),
                "refund_amount": str(refund),
                "store_credit_amount": str(credit),
            },
        )
        return updated

    # ======================================================
    # REJECT / CANCEL (no inventory effect)
    # ======================================================

    def reject_return(self, return_id, *, reason: str, user=None) -> Return:
        reason_text = (reason or "").strip()
        if not reason_text:
            raise ReturnValidationError("A rejection reason is required")

        current = self._load_for_write(return_id)
        validate_transition(return_request=current, target_status=Return.STATUS_REJECTED)

        with transaction.atomic():
            updated = self.repository.update_status(
                current.id,
                current.status,
                {
                    "status": Return.STATUS_REJECTED,
                    "rejection_reason": reason_text,
                    "rejected_at": timezone.now(),
                    "rejected_by": user,
                },
            )
            self.repository.log_activity(
                updated,
                action=ReturnActivity.Action.REJECTED,
                from_status=current.status,
                to_status=Return.STATUS_REJECTED,
                actor=user,
                note=reason_text,
            )

        self.cache.invalidate(current.id)
        logger.info("Return rejected", extra={"return_id": str(current.id)})
        return updated

    def cancel_return(self, return_id, *, reason: str = "", user=None) -> Return:
        current = self._load_for_write(return_id)
        validate_transition(return_request=current, target_status=Return.STATUS_CANCELLED)

        reason_text = (reason or "").strip()

        with transaction.atomic():
            updated = self.repository.update_status(
                current.id,
                current.status,
                {
                    "status": Return.STATUS_CANCELLED,
                    "cancellation_reason": reason_text,
                    "cancelled_at": timezone.now(),
                    "cancelled_by": user,
                },
            )
            self.repository.log_activity(
                updated,
                action=ReturnActivity.Action.CANCELLED,
                from_status=current.status,
                to_status=Return.STATUS_CANCELLED,
                actor=user,
                note=reason_text,
            )

        self.cache.invalidate(current.id)
        logger.info("Return cancelled", extra={"return_id": str(current.id)})
        return updated

    # ======================================================
    # COMPLETE (restock + refund transactions)
    # ======================================================

    def complete_return(self, return_id, *, user=None) -> Return:
        current = self._load_for_write(return_id)
        validate_transition(return_request=current, target_status=Return.STATUS_COMPLETED)

        with transaction.atomic():
            # a) CAS first: a losing caller raises here with nothing applied
            self.repository.update_status(
                current.id,
                current.status,
                {
                    "status": Return.STATUS_COMPLETED,
                    "completed_at": timezone.now(),
                    "completed_by": user,
                },
            )

            # b) inventory
            deltas = []
            for item in current.items.all():
                if not item.should_restock:
                    continue

                if item.is_serialized:
                    for link in item.serials.all():
                        if not link.marked_returned:
                            continue
                        self.serial_ledger.mark_restocked(
                            product_id=item.product_id,
                            serial_number=link.serial_number,
                            return_request=current,
                            user=user,
                        )
                else:
                    deltas.append(
                        StockDelta(product_id=item.product_id, quantity=item.quantity_returned)
                    )

            try:
                self.stock_applier.apply_stock_deltas(
                    deltas,
                    return_request=current,
                    user=user,
                    reason=f"Restocked from return {current.return_number}",
                )
            except StockReconciliationError as exc:
                raise ReturnValidationError(
                    f"Return {current.return_number} cannot be restocked: {exc}",
                    return_number=current.return_number,
                ) from exc

            # c) money
            refund = to_money(current.refund_amount, field_name="refund_amount")
            credit = to_money(current.store_credit_amount, field_name="store_credit_amount")

            if refund > ZERO:
                self.repository.add_refund_transaction(
                    current,
                    transaction_type=REFUND_LEG_TYPES.get(
                        current.refund_method,
                        RefundTransaction.TransactionType.REFUND,
                    ),
                    amount=refund,
                    payment_method=current.refund_method,
                    user=user,
                )

            if credit > ZERO:
                self.repository.add_refund_transaction(
                    current,
                    transaction_type=RefundTransaction.TransactionType.STORE_CREDIT,
                    amount=credit,
                    payment_method=Return.RefundMethod.STORE_CREDIT,
                    user=user,
                )

            self.repository.log_activity(
                current,
                action=ReturnActivity.Action.COMPLETED,
                from_status=current.status,
                to_status=Return.STATUS_COMPLETED,
                actor=user,
            )

        self.cache.invalidate(current.id)

        logger.info(
            "Return completed",
            extra={
                "return_id": str(current.id),
                "restocked_products": len({d.product_id for d in deltas}),
            },
        )
        return self.repository.get_by_id(current.id)
