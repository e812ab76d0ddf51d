# doctors/views.py

"""
DOCTOR DIRECTORY VIEWSET

/api/doctors/              list / create
/api/doctors/<id>/         retrieve / update / delete
/api/doctors/<id>/sales/   bills written against this doctor
"""

from django.db.models import Sum
from rest_framework import filters, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from audit.models import EventType
from audit.services.event_log import EventLog
from billing.models import Bill, BillStatus
from billing.serializers import BillSummarySerializer
from doctors.models import Doctor
from doctors.serializers import DoctorSerializer
from permissions.roles import (
    CAP_BILLING_READ,
    CAP_REPORTS_READ,
    HasAnyCapability,
    HasResourcePermission,
)


class DoctorViewSet(viewsets.ModelViewSet):
    queryset = Doctor.objects.all()
    serializer_class = DoctorSerializer
    permission_classes = [IsAuthenticated, HasResourcePermission]
    permission_resource = "doctors"

    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name", "specialization", "phone"]
    ordering_fields = ["name", "created_at"]

    required_any_capabilities = {CAP_BILLING_READ, CAP_REPORTS_READ}

    def get_permissions(self):
        if self.action == "sales":
            return [IsAuthenticated(), HasAnyCapability()]

        return super().get_permissions()

    def perform_create(self, serializer):
        doctor = serializer.save()
        EventLog().append(
            EventType.DOCTOR_ADDED,
            {
                "doctor_id": doctor.id,
                "name": doctor.name,
                "specialization": doctor.specialization,
                "created_by": self.request.user.username,
            },
            f"Doctor added: {doctor.name}",
        )

    def perform_update(self, serializer):
        doctor = serializer.save()
        EventLog().append(
            EventType.DOCTOR_UPDATED,
            {
                "doctor_id": doctor.id,
                "name": doctor.name,
                "changes": sorted(serializer.validated_data.keys()),
                "updated_by": self.request.user.username,
            },
            f"Doctor updated: {doctor.name}",
        )

    @action(detail=True, methods=["get"], url_path="sales")
    def sales(self, request, pk=None):
        doctor = self.get_object()
        bills = (
            Bill.objects.filter(doctor=doctor)
            .select_related("doctor")
            .prefetch_related("items")
            .order_by("-created_at")
        )
        active_total = bills.filter(status=BillStatus.ACTIVE).aggregate(v=Sum("total_amount"))["v"]

        return Response(
            {
                "doctor_id": str(doctor.id),
                "doctor_name": doctor.name,
                "count": bills.count(),
                "total_value": str(active_total or "0.00"),
                "results": BillSummarySerializer(bills, many=True).data,
            }
        )
