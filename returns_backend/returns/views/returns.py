# returns/views/returns.py

"""
======================================================
PATH: returns/views/returns.py
======================================================
RETURN VIEWSET (STAFF)

Thin HTTP surface over ReturnService. Every endpoint maps 1:1 onto one
service operation; no business rules live here.

    GET  /api/returns/                 list (filters, sort, page)
    POST /api/returns/                 create
    GET  /api/returns/<id>/            retrieve (read cache)
    POST /api/returns/<id>/approve/    approve
    POST /api/returns/<id>/reject/     reject (reason required)
    POST /api/returns/<id>/cancel/     cancel
    POST /api/returns/<id>/complete/   complete
    GET  /api/returns/stats/           statistics

Error envelope:
    {"error": {"code": "...", "message": "..."}}
======================================================
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from permissions.roles import (
    CAP_RETURNS_APPROVE,
    CAP_RETURNS_COMPLETE,
    CAP_RETURNS_CREATE,
    CAP_RETURNS_REPORTS,
    CAP_RETURNS_VIEW,
    HasAnyCapability,
    HasCapability,
)
from returns.serializers.return_command import (
    ReturnApproveCommandSerializer,
    ReturnCancelCommandSerializer,
    ReturnCreateCommandSerializer,
    ReturnRejectCommandSerializer,
)
from returns.serializers.return_read import ReturnListSerializer, ReturnSerializer
from returns.services.exceptions import (
    InvalidReturnTransitionError,
    ReturnConcurrencyError,
    ReturnError,
    ReturnNotFoundError,
    ReturnValidationError,
)
from returns.services.return_service import ReturnService
from returns.services.stats import get_return_stats


# ======================================================
# API ERROR NORMALIZATION
# ======================================================

ERROR_STATUS = {
    ReturnNotFoundError: status.HTTP_404_NOT_FOUND,
    ReturnValidationError: status.HTTP_400_BAD_REQUEST,
    InvalidReturnTransitionError: status.HTTP_409_CONFLICT,
    ReturnConcurrencyError: status.HTTP_409_CONFLICT,
}


def error_response(*, code: str, message: str, http_status: int, details=None):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message}
    if details:
        body["details"] = details
    return Response({"error": body}, status=http_status)


def domain_error_response(exc: ReturnError):
    http_status = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return error_response(
        code=exc.code,
        message=exc.message,
        http_status=http_status,
        details={k: str(v) for k, v in exc.context.items()},
    )


LIST_PARAMETERS = [
    OpenApiParameter("status", str),
    OpenApiParameter("refund_method", str),
    OpenApiParameter("sale", str),
    OpenApiParameter("product", str),
    OpenApiParameter("created_by", str),
    OpenApiParameter("date_from", str, description="YYYY-MM-DD"),
    OpenApiParameter("date_to", str, description="YYYY-MM-DD"),
    OpenApiParameter("min_amount", str),
    OpenApiParameter("max_amount", str),
    OpenApiParameter("search", str),
    OpenApiParameter("sort", str, description="created_at | return_amount | status | return_number, '-' for desc"),
    OpenApiParameter("page", int),
    OpenApiParameter("page_size", int),
]


# ======================================================
# VIEWSET
# ======================================================

class ReturnViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    # Capability hooks used by HasCapability / HasAnyCapability
    required_capability = None
    required_any_capabilities = None

    ACTION_CAPABILITIES = {
        "list": CAP_RETURNS_VIEW,
        "retrieve": CAP_RETURNS_VIEW,
        "create": CAP_RETURNS_CREATE,
        "approve": CAP_RETURNS_APPROVE,
        "reject": CAP_RETURNS_APPROVE,
        "cancel": CAP_RETURNS_APPROVE,
        "complete": CAP_RETURNS_COMPLETE,
    }

    def get_permissions(self):
        if self.action == "stats":
            self.required_any_capabilities = {CAP_RETURNS_REPORTS, CAP_RETURNS_VIEW}
            return [IsAuthenticated(), HasAnyCapability()]

        self.required_capability = self.ACTION_CAPABILITIES.get(self.action, CAP_RETURNS_VIEW)
        return [IsAuthenticated(), HasCapability()]

    def get_service(self) -> ReturnService:
        return ReturnService()

    def _user(self):
        user = getattr(self.request, "user", None)
        return user if getattr(user, "is_authenticated", False) else None

    # --------------------------------------------------
    # READS
    # --------------------------------------------------

    @extend_schema(parameters=LIST_PARAMETERS, responses={200: ReturnListSerializer(many=True)})
    def list(self, request):
        params = request.query_params
        try:
            page = self.get_service().list_returns(
                filters=params,
                sort=params.get("sort"),
                page=params.get("page"),
                page_size=params.get("page_size"),
            )
        except ReturnError as exc:
            return domain_error_response(exc)

        return Response(
            {
                "count": page.count,
                "page": page.page,
                "page_size": page.page_size,
                "results": ReturnListSerializer(page.results, many=True).data,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(responses={200: ReturnSerializer})
    def retrieve(self, request, pk=None):
        try:
            return_request = self.get_service().get_return(pk)
        except ReturnError as exc:
            return domain_error_response(exc)

        return Response(ReturnSerializer(return_request).data, status=status.HTTP_200_OK)

    @extend_schema(responses={200: dict})
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        return Response(get_return_stats(), status=status.HTTP_200_OK)

    # --------------------------------------------------
    # CREATE
    # --------------------------------------------------

    @extend_schema(request=ReturnCreateCommandSerializer, responses={201: ReturnSerializer})
    def create(self, request):
        command = ReturnCreateCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        data = command.validated_data

        try:
            return_request = self.get_service().create_return(
                sale_id=data["sale_id"],
                reason=data["reason"],
                refund_method=data["refund_method"],
                items=data["items"],
                processing_fee=data.get("processing_fee"),
                restocking_fee=data.get("restocking_fee"),
                notes=data.get("notes", ""),
                user=self._user(),
            )
        except ReturnError as exc:
            return domain_error_response(exc)

        return Response(ReturnSerializer(return_request).data, status=status.HTTP_201_CREATED)

    # --------------------------------------------------
    # TRANSITIONS
    # --------------------------------------------------

    @extend_schema(request=ReturnApproveCommandSerializer, responses={200: ReturnSerializer})
    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        command = ReturnApproveCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        data = command.validated_data

        try:
            return_request = self.get_service().approve_return(
                pk,
                refund_amount=data["refund_amount"],
                store_credit_amount=data.get("store_credit_amount"),
                processing_fee=data.get("processing_fee"),
                restocking_fee=data.get("restocking_fee"),
                notes=data.get("notes"),
                user=self._user(),
            )
        except ReturnError as exc:
            return domain_error_response(exc)

        return Response(ReturnSerializer(return_request).data, status=status.HTTP_200_OK)

    @extend_schema(request=ReturnRejectCommandSerializer, responses={200: ReturnSerializer})
    @action(detail=True, methods=["post"], url_path="reject")
    def reject(self, request, pk=None):
        command = ReturnRejectCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            return_request = self.get_service().reject_return(
                pk,
                reason=command.validated_data["reason"],
                user=self._user(),
            )
        except ReturnError as exc:
            return domain_error_response(exc)

        return Response(ReturnSerializer(return_request).data, status=status.HTTP_200_OK)

    @extend_schema(request=ReturnCancelCommandSerializer, responses={200: ReturnSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        command = ReturnCancelCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            return_request = self.get_service().cancel_return(
                pk,
                reason=command.validated_data.get("reason", ""),
                user=self._user(),
            )
        except ReturnError as exc:
            return domain_error_response(exc)

        return Response(ReturnSerializer(return_request).data, status=status.HTTP_200_OK)

    @extend_schema(request=None, responses={200: ReturnSerializer})
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        try:
            return_request = self.get_service().complete_return(pk, user=self._user())
        except ReturnError as exc:
            return domain_error_response(exc)

        return Response(ReturnSerializer(return_request).data, status=status.HTTP_200_OK)
