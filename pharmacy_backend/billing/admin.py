# billing/admin.py

from django.contrib import admin

from billing.models import Bill, BillItem


class BillItemInline(admin.TabularInline):
    model = BillItem
    extra = 0
    can_delete = False
    readonly_fields = ("line_number", "product_name", "batch_no", "unit_price", "quantity", "line_total")
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    """
    Read-only: bills change only through the billing API (cancel).
    """

    list_display = ("bill_no", "customer_name", "doctor_name", "total_amount", "status", "created_at")
    list_filter = ("status", "payment_method")
    search_fields = ("bill_no", "customer_name", "customer_phone")
    inlines = [BillItemInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
