# reports/views.py

"""
REPORTS (READ-ONLY, capability reports.read)

/api/reports/sales/daily/?date=YYYY-MM-DD
/api/reports/sales/weekly/
/api/reports/sales/monthly/
/api/reports/doctor-wise/
/api/reports/doctor-wise/<doctor_id>/
/api/reports/vendor-wise/
/api/reports/vendor-wise/<vendor_id>/
/api/reports/stock/
/api/reports/stock-expiry/?days=30

Every report leaves a REPORT_GENERATED event (best-effort).
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.models import EventType
from audit.services.event_log import EventLog
from backend.api import error_response
from doctors.models import Doctor
from permissions.roles import CAP_REPORTS_READ, HasCapability
from reports.services import (
    daily_sales,
    doctor_bills,
    doctor_wise_sales,
    expiring_stock,
    monthly_sales,
    parse_report_date,
    stock_report,
    vendor_batches,
    vendor_wise_sales,
    weekly_sales,
)
from vendors.models import Vendor

DEFAULT_EXPIRY_DAYS = 30
MAX_EXPIRY_DAYS = 3650


def _report_event(request, report_type: str, description: str, **extra):
    EventLog().append(
        EventType.REPORT_GENERATED,
        {"type": report_type, "requested_by": request.user.username, **extra},
        description,
    )


class BaseReportView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_REPORTS_READ


class DailySalesReportView(BaseReportView):
    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="date",
                type=OpenApiTypes.DATE,
                required=False,
                description="Report date in YYYY-MM-DD. Defaults to today (server timezone).",
            )
        ],
        description="Transactions, revenue and items sold for ACTIVE bills of one day.",
    )
    def get(self, request):
        d = parse_report_date(request.query_params.get("date"))
        if d is None:
            return error_response(
                code="VALIDATION_ERROR",
                message="Invalid date. Use YYYY-MM-DD.",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        data = daily_sales(d)
        _report_event(
            request,
            "daily_sales",
            f"Daily sales report generated: {data['transactions']} transactions, "
            f"{data['revenue']} revenue",
            **data,
        )
        return Response(data)


class DoctorWiseSalesReportView(BaseReportView):
    @extend_schema(description="Prescriptions and value per doctor (walk-ins grouped), highest value first.")
    def get(self, request):
        rows = doctor_wise_sales()
        _report_event(
            request,
            "doctor_wise_sales",
            f"Doctor-wise sales report generated: {len(rows)} doctors",
            doctor_count=len(rows),
        )
        return Response(rows)


class StockReportView(BaseReportView):
    @extend_schema(description="Every batch with its stock status (Out of Stock / Low Stock / In Stock).")
    def get(self, request):
        rows = stock_report()
        _report_event(
            request,
            "stock_report",
            f"Stock report generated: {len(rows)} batches",
            batch_count=len(rows),
        )
        return Response(rows)


class StockExpiryReportView(BaseReportView):
    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="days",
                type=OpenApiTypes.INT,
                required=False,
                description=f"Look-ahead window in days (default {DEFAULT_EXPIRY_DAYS}).",
            )
        ],
        description="Batches with stock left that expire within the window.",
    )
    def get(self, request):
        raw = (request.query_params.get("days") or "").strip()
        days = DEFAULT_EXPIRY_DAYS
        if raw:
            if not raw.isdigit() or int(raw) > MAX_EXPIRY_DAYS:
                return error_response(
                    code="VALIDATION_ERROR",
                    message=f"days must be a whole number between 0 and {MAX_EXPIRY_DAYS}.",
                    http_status=status.HTTP_400_BAD_REQUEST,
                )
            days = int(raw)

        rows = expiring_stock(days)
        _report_event(
            request,
            "stock_expiry",
            f"Stock expiry report generated: {len(rows)} batches within {days} days",
            days=days,
            batch_count=len(rows),
        )
        return Response({"days": days, "count": len(rows), "results": rows})


def _not_found(label: str, pk):
    return error_response(
        code="NOT_FOUND",
        message=f"{label} not found: {pk}",
        http_status=status.HTTP_404_NOT_FOUND,
    )


class WeeklySalesReportView(BaseReportView):
    @extend_schema(description="ACTIVE bill totals per ISO week (local time), latest 10 weeks first.")
    def get(self, request):
        rows = weekly_sales()
        _report_event(
            request,
            "weekly_sales",
            f"Weekly sales report generated: {len(rows)} weeks",
            week_count=len(rows),
        )
        return Response(rows)


class MonthlySalesReportView(BaseReportView):
    @extend_schema(description="ACTIVE bill totals per month (local time), latest 12 months first.")
    def get(self, request):
        rows = monthly_sales()
        _report_event(
            request,
            "monthly_sales",
            f"Monthly sales report generated: {len(rows)} months",
            month_count=len(rows),
        )
        return Response(rows)


class DoctorSalesReportView(BaseReportView):
    @extend_schema(description="Bills written against one doctor, newest first.")
    def get(self, request, doctor_id):
        doctor = Doctor.objects.filter(pk=doctor_id).first()
        if doctor is None:
            return _not_found("Doctor", doctor_id)

        rows = doctor_bills(doctor)
        _report_event(
            request,
            "doctor_sales_by_id",
            f"Doctor sales generated: {len(rows)} bills for {doctor.name}",
            doctor_id=doctor.id,
            bill_count=len(rows),
        )
        return Response(rows)


class VendorWiseSalesReportView(BaseReportView):
    @extend_schema(description="Stock carried and units sold per vendor, highest stock value first.")
    def get(self, request):
        rows = vendor_wise_sales()
        _report_event(
            request,
            "vendor_wise_sales",
            f"Vendor-wise sales report generated: {len(rows)} vendors",
            vendor_count=len(rows),
        )
        return Response(rows)


class VendorSalesReportView(BaseReportView):
    @extend_schema(description="Every batch supplied by one vendor with its stock value.")
    def get(self, request, vendor_id):
        vendor = Vendor.objects.filter(pk=vendor_id).first()
        if vendor is None:
            return _not_found("Vendor", vendor_id)

        rows = vendor_batches(vendor)
        _report_event(
            request,
            "vendor_sales_by_id",
            f"Vendor sales generated: {len(rows)} batches for {vendor.name}",
            vendor_id=vendor.id,
            batch_count=len(rows),
        )
        return Response(rows)
