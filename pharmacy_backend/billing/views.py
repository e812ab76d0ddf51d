# billing/views.py

"""
BILLING API

/api/billing/bills/                    GET list (filters below) | POST create
/api/billing/bills/<id>/               GET retrieve | DELETE cancel
/api/billing/bills/<id>/cancel/        POST cancel {"reason": "..."}
/api/billing/bills/<id>/receipt/       GET text/plain receipt
/api/billing/bills/daily-stats/        GET ?date=YYYY-MM-DD

List filters:
    ?status=active|cancelled
    ?payment_method=cash|card|upi|credit
    ?doctor=<uuid>
    ?date_from=YYYY-MM-DD&date_to=YYYY-MM-DD   (local days, inclusive)
    ?search=<bill_no or customer>

Bills are never written through serializers. Creation and cancellation go
through BillingCoordinator; its BillingError subclasses leave as the canonical
error envelope.
"""

from __future__ import annotations

from collections.abc import Mapping

from django.http import Http404, HttpResponse
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import filters, mixins, serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from audit.models import EventType
from audit.services.event_log import EventLog
from backend.api import error_response
from billing.models import Bill
from billing.serializers import (
    BillCancelSerializer,
    BillCreateSerializer,
    BillReceiptSerializer,
    BillSerializer,
)
from billing.services.bill_builder import CODE_INVALID, BillDraft, FieldError
from billing.services.billing_coordinator import BillingCoordinator
from billing.services.exceptions import BillingError, BillNotFoundError, BillValidationError
from billing.services.receipts import build_receipt, render_receipt_text
from permissions.roles import (
    CAP_BILLING_CANCEL,
    CAP_BILLING_CREATE,
    CAP_BILLING_READ,
    HasCapability,
)
from reports.services import day_bounds, daily_sales, parse_report_date

ACTION_CAPABILITIES = {
    "list": CAP_BILLING_READ,
    "retrieve": CAP_BILLING_READ,
    "receipt": CAP_BILLING_READ,
    "daily_stats": CAP_BILLING_READ,
    "create": CAP_BILLING_CREATE,
    "cancel": CAP_BILLING_CANCEL,
    "destroy": CAP_BILLING_CANCEL,
}


class BillViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = BillSerializer
    permission_classes = [IsAuthenticated, HasCapability]

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ["status", "payment_method", "doctor"]
    search_fields = ["bill_no", "customer_name", "customer_phone"]
    ordering_fields = ["created_at", "total_amount"]

    required_capability = None

    def get_permissions(self):
        self.required_capability = ACTION_CAPABILITIES.get(self.action, CAP_BILLING_READ)
        return super().get_permissions()

    def get_queryset(self):
        qs = (
            Bill.objects.select_related("doctor", "created_by", "cancelled_by")
            .prefetch_related("items")
            .order_by("-created_at")
        )

        params = self.request.query_params
        date_from = (params.get("date_from") or "").strip()
        date_to = (params.get("date_to") or "").strip()

        if date_from:
            d = parse_report_date(date_from)
            if d is None:
                raise serializers.ValidationError({"date_from": "Use YYYY-MM-DD."})
            qs = qs.filter(created_at__gte=day_bounds(d)[0])

        if date_to:
            d = parse_report_date(date_to)
            if d is None:
                raise serializers.ValidationError({"date_to": "Use YYYY-MM-DD."})
            qs = qs.filter(created_at__lt=day_bounds(d)[1])

        return qs

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise BillNotFoundError(self.kwargs.get(self.lookup_field)) from None

    def handle_exception(self, exc):
        if isinstance(exc, BillingError):
            return error_response(
                code=exc.code,
                message=exc.message,
                http_status=exc.http_status,
                details=exc.details,
            )
        return super().handle_exception(exc)

    # ---------------------------------------------------------
    # Writes (coordinator)
    # ---------------------------------------------------------
    @extend_schema(
        request=BillCreateSerializer,
        responses={201: BillReceiptSerializer},
        description="Create an ACTIVE bill: stock is deducted atomically at batch prices.",
    )
    def create(self, request, *args, **kwargs):
        if not isinstance(request.data, Mapping):
            raise BillValidationError([FieldError("non_field_errors", "Expected a JSON object", CODE_INVALID)])
        draft = BillDraft.from_payload(request.data)
        receipt = BillingCoordinator.from_settings().create_bill(draft, request.user)
        return Response(receipt.as_dict(), status=status.HTTP_201_CREATED)

    @extend_schema(
        request=BillCancelSerializer,
        responses={200: BillSerializer},
        description="Cancel an ACTIVE bill and restore its stock.",
    )
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        s = BillCancelSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        return self._cancel(request, pk, s.validated_data.get("reason", ""))

    @extend_schema(request=None, responses={200: BillSerializer})
    def destroy(self, request, *args, **kwargs):
        reason = (request.query_params.get("reason") or "").strip()
        return self._cancel(request, kwargs.get(self.lookup_field), reason)

    def _cancel(self, request, pk, reason):
        BillingCoordinator.from_settings().cancel_bill(pk, request.user, reason=reason)
        bill = self.get_queryset().get(pk=pk)
        return Response(BillSerializer(bill).data)

    # ---------------------------------------------------------
    # Reads
    # ---------------------------------------------------------
    @extend_schema(responses={(200, "text/plain"): OpenApiTypes.STR})
    @action(detail=True, methods=["get"], url_path="receipt")
    def receipt(self, request, pk=None):
        bill = self.get_object()
        text = render_receipt_text(build_receipt(bill))
        return HttpResponse(text, content_type="text/plain; charset=utf-8")

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="date",
                type=OpenApiTypes.DATE,
                required=False,
                description="YYYY-MM-DD. Defaults to today (server timezone).",
            )
        ],
        description="Transactions, revenue and items sold for ACTIVE bills of one day.",
    )
    @action(detail=False, methods=["get"], url_path="daily-stats")
    def daily_stats(self, request):
        d = parse_report_date(request.query_params.get("date"))
        if d is None:
            return error_response(
                code="VALIDATION_ERROR",
                message="Invalid date. Use YYYY-MM-DD.",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        stats = daily_sales(d)
        EventLog().append(
            EventType.REPORT_GENERATED,
            {"type": "daily_sales_stats", "requested_by": request.user.username, **stats},
            f"Daily sales stats generated: {stats['transactions']} transactions, "
            f"{stats['revenue']} revenue",
        )
        return Response(stats)
