# vendors/views.py

from rest_framework import filters, viewsets
from rest_framework.permissions import IsAuthenticated

from audit.models import EventType
from audit.services.event_log import EventLog
from permissions.roles import HasResourcePermission
from vendors.models import Vendor
from vendors.serializers import VendorSerializer


class VendorViewSet(viewsets.ModelViewSet):
    """
    Vendor directory CRUD.

    admin: full access, audit: read-only, pharmacist: none.
    """

    queryset = Vendor.objects.all()
    serializer_class = VendorSerializer
    permission_classes = [IsAuthenticated, HasResourcePermission]
    permission_resource = "vendors"

    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name", "contact_person", "phone", "email"]
    ordering_fields = ["name", "created_at"]

    def perform_create(self, serializer):
        vendor = serializer.save()
        EventLog().append(
            EventType.VENDOR_ADDED,
            {"vendor_id": vendor.id, "name": vendor.name, "created_by": self.request.user.username},
            f"Vendor added: {vendor.name}",
        )

    def perform_update(self, serializer):
        vendor = serializer.save()
        EventLog().append(
            EventType.VENDOR_UPDATED,
            {
                "vendor_id": vendor.id,
                "name": vendor.name,
                "changes": sorted(serializer.validated_data.keys()),
                "updated_by": self.request.user.username,
            },
            f"Vendor updated: {vendor.name}",
        )
