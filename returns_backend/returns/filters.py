# returns/filters.py

"""
RETURN LIST FILTERS (django-filter)

Query params:
    status, refund_method, sale, product, created_by,
    date_from / date_to   (YYYY-MM-DD, inclusive, on created_at)
    min_amount / max_amount (on return_amount)
    search                (return number, reason, sale invoice number)
"""

import django_filters
from django.db.models import Q

from returns.models import Return


class ReturnFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Return.STATUS_CHOICES)
    refund_method = django_filters.ChoiceFilter(choices=Return.RefundMethod.choices)
    sale = django_filters.UUIDFilter(field_name="sale_id")
    product = django_filters.UUIDFilter(method="filter_product")
    created_by = django_filters.UUIDFilter(field_name="created_by_id")

    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    min_amount = django_filters.NumberFilter(field_name="return_amount", lookup_expr="gte")
    max_amount = django_filters.NumberFilter(field_name="return_amount", lookup_expr="lte")

    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Return
        fields = []

    def filter_product(self, queryset, name, value):
        ids = Return.objects.filter(items__product_id=value).values("id")
        return queryset.filter(id__in=ids)

    def filter_search(self, queryset, name, value):
        term = (value or "").strip()
        if not term:
            return queryset
        return queryset.filter(
            Q(return_number__icontains=term)
            | Q(reason__icontains=term)
            | Q(sale__invoice_no__icontains=term)
        )
