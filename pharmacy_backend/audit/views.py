# audit/views.py

"""
AUDIT EVENTS (READ-ONLY)

GET /api/audit/events/?type=&start=&end=&limit=

- type: one of the EventType values (optional)
- start / end: ISO date or datetime; a bare date means local midnight
- limit: default 100, capped at 500
"""

from __future__ import annotations

from datetime import datetime, time

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.models import EventType
from audit.serializers import AuditEventSerializer
from audit.services.event_log import DEFAULT_QUERY_LIMIT, EventLog
from backend.api import error_response
from permissions.roles import CAP_AUDIT_READ, HasCapability


def _parse_bound(raw: str | None):
    """
    Returns an aware datetime, None for a missing value.
    Raises ValueError on garbage.
    """
    if not raw:
        return None

    dt = parse_datetime(raw)
    if dt is None:
        day = parse_date(raw)
        if day is None:
            raise ValueError(raw)
        dt = datetime.combine(day, time.min)

    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


class AuditEventListView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_AUDIT_READ

    @extend_schema(
        parameters=[
            OpenApiParameter("type", str, enum=EventType.values),
            OpenApiParameter("start", str, description="ISO date/datetime (inclusive)"),
            OpenApiParameter("end", str, description="ISO date/datetime (exclusive)"),
            OpenApiParameter("limit", int, description="Max 500"),
        ],
        responses={200: AuditEventSerializer(many=True)},
    )
    def get(self, request):
        event_type = (request.query_params.get("type") or "").strip().upper() or None
        if event_type and event_type not in EventType.values:
            return error_response(
                code="VALIDATION_ERROR",
                message=f"Unknown event type: {event_type}",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            start = _parse_bound(request.query_params.get("start"))
            end = _parse_bound(request.query_params.get("end"))
        except ValueError as exc:
            return error_response(
                code="VALIDATION_ERROR",
                message=f"Invalid date: {exc}",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        events = EventLog().query(
            event_type=event_type,
            start=start,
            end=end,
            limit=request.query_params.get("limit", DEFAULT_QUERY_LIMIT),
        )
        data = AuditEventSerializer(events, many=True).data
        return Response({"count": len(data), "results": data})
