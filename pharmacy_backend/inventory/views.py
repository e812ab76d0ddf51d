# inventory/views.py

"""
INVENTORY VIEWSETS

/api/inventory/products/   product catalogue (+ derived total_quantity)
/api/inventory/batches/    lots; filters:
    ?product=<uuid>
    ?low_stock=true          quantity <= STOCK_LOW_THRESHOLD
    ?expiring_within=<days>  expiry_date in [today, today + days]

Access (resource "inventory"):
- admin: full
- pharmacist: read + update (direct stock edits)
- audit: read-only
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.db.models import ProtectedError, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from rest_framework import filters, status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from audit.models import EventType
from audit.services.event_log import EventLog
from backend.api import error_response
from inventory.models import Batch, Product
from inventory.serializers import BatchSerializer, ProductSerializer
from permissions.roles import HasResourcePermission


def _truthy(raw) -> bool:
    return (raw or "").strip().lower() in ("1", "true", "yes")


class ProductViewSet(viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated, HasResourcePermission]
    permission_resource = "inventory"

    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name", "vendor__name"]
    ordering_fields = ["name", "created_at"]

    def get_queryset(self):
        qs = (
            Product.objects.select_related("vendor")
            .prefetch_related("batches")
            .annotate(total_quantity=Coalesce(Sum("batches__quantity"), 0))
            .order_by("name")
        )

        vendor_id = (self.request.query_params.get("vendor") or "").strip()
        if vendor_id:
            qs = qs.filter(vendor_id=vendor_id)

        if not _truthy(self.request.query_params.get("include_inactive") or "true"):
            qs = qs.filter(is_active=True)

        return qs

    def perform_create(self, serializer):
        product = serializer.save()
        EventLog().append(
            EventType.PRODUCT_ADDED,
            {
                "product_id": product.id,
                "product_name": product.name,
                "vendor_id": product.vendor_id,
                "created_by": self.request.user.username,
            },
            f"Product added: {product.name}",
        )

    def perform_update(self, serializer):
        product = serializer.save()
        EventLog().append(
            EventType.PRODUCT_UPDATED,
            {
                "product_id": product.id,
                "product_name": product.name,
                "changes": sorted(serializer.validated_data.keys()),
                "updated_by": self.request.user.username,
            },
            f"Product updated: {product.name}",
        )

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        product_id, product_name = product.id, product.name

        try:
            product.delete()
        except ProtectedError:
            return error_response(
                code="PRODUCT_IN_USE",
                message="Product has batches referenced by bills and cannot be deleted.",
                http_status=status.HTTP_409_CONFLICT,
            )

        EventLog().append(
            EventType.PRODUCT_DELETED,
            {"product_id": product_id, "product_name": product_name, "deleted_by": request.user.username},
            f"Product deleted: {product_name}",
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class BatchViewSet(viewsets.ModelViewSet):
    serializer_class = BatchSerializer
    permission_classes = [IsAuthenticated, HasResourcePermission]
    permission_resource = "inventory"

    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["batch_no", "product__name"]
    ordering_fields = ["expiry_date", "quantity", "created_at"]

    def get_queryset(self):
        qs = Batch.objects.select_related("product").order_by("expiry_date", "created_at")
        params = self.request.query_params

        product_id = (params.get("product") or "").strip()
        if product_id:
            qs = qs.filter(product_id=product_id)

        if _truthy(params.get("low_stock")):
            qs = qs.filter(quantity__lte=settings.STOCK_LOW_THRESHOLD)

        days = (params.get("expiring_within") or "").strip()
        if days.isdigit():
            today = timezone.localdate()
            qs = qs.filter(expiry_date__gte=today, expiry_date__lte=today + timedelta(days=int(days)))

        return qs

    def perform_create(self, serializer):
        batch = serializer.save()
        EventLog().append(
            EventType.BATCH_ADDED,
            {
                "batch_id": batch.id,
                "batch_no": batch.batch_no,
                "product_id": batch.product_id,
                "product_name": batch.product.name,
                "quantity": batch.quantity,
                "unit_price": batch.unit_price,
                "expiry_date": batch.expiry_date,
                "created_by": self.request.user.username,
            },
            f"Batch added: {batch.product.name} (Batch: {batch.batch_no})",
        )

    def perform_update(self, serializer):
        previous_quantity = serializer.instance.quantity
        batch = serializer.save()
        EventLog().append(
            EventType.BATCH_UPDATED,
            {
                "batch_id": batch.id,
                "batch_no": batch.batch_no,
                "product_name": batch.product.name,
                "previous_quantity": previous_quantity,
                "quantity": batch.quantity,
                "changes": sorted(serializer.validated_data.keys()),
                "updated_by": self.request.user.username,
            },
            f"Batch updated: {batch.product.name} (Batch: {batch.batch_no})",
        )

    def destroy(self, request, *args, **kwargs):
        batch = self.get_object()
        try:
            batch.delete()
        except ProtectedError:
            return error_response(
                code="BATCH_IN_USE",
                message="Batch is referenced by bills and cannot be deleted.",
                http_status=status.HTTP_409_CONFLICT,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
