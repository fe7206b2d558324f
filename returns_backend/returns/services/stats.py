# returns/services/stats.py

"""
RETURN STATISTICS

Read-only aggregates for the returns dashboard.

Definitions:
- total_return_amount / average_return_amount: over ALL returns
- total_refunded / total_store_credit: completed returns only
  (money actually handed back)
- units_by_condition: returned units per item condition, all returns
- today / last_7_days / last_30_days: returns created in the window
  (server timezone, windows end now)
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.db.models import Avg, Count, Sum
from django.utils import timezone

from returns.models import Return, ReturnItem
from returns.services.calculator import CENT


def _money(value) -> str:
    return str(Decimal(value or 0).quantize(CENT))


def get_return_stats(*, now=None) -> dict:
    now = now or timezone.now()
    qs = Return.objects.all()

    by_status = {value: 0 for value, _label in Return.STATUS_CHOICES}
    for row in qs.values("status").annotate(count=Count("id")):
        by_status[row["status"]] = row["count"]

    totals = qs.aggregate(
        count=Count("id"),
        total=Sum("return_amount"),
        average=Avg("return_amount"),
    )

    settled = qs.filter(status=Return.STATUS_COMPLETED).aggregate(
        refunded=Sum("refund_amount"),
        store_credit=Sum("store_credit_amount"),
    )

    by_method = {value: 0 for value in Return.RefundMethod.values}
    for row in qs.values("refund_method").annotate(count=Count("id")):
        by_method[row["refund_method"]] = row["count"]

    by_condition = {value: 0 for value in ReturnItem.Condition.values}
    for row in ReturnItem.objects.values("condition").annotate(units=Sum("quantity_returned")):
        by_condition[row["condition"]] = int(row["units"] or 0)

    start_of_day = timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)

    return {
        "total_returns": int(totals["count"] or 0),
        "by_status": by_status,
        "total_return_amount": _money(totals["total"]),
        "average_return_amount": _money(totals["average"]),
        "total_refunded": _money(settled["refunded"]),
        "total_store_credit": _money(settled["store_credit"]),
        "by_refund_method": by_method,
        "units_by_condition": by_condition,
        "today": qs.filter(created_at__gte=start_of_day).count(),
        "last_7_days": qs.filter(created_at__gte=now - timedelta(days=7)).count(),
        "last_30_days": qs.filter(created_at__gte=now - timedelta(days=30)).count(),
    }
