# inventory/admin.py

from django.contrib import admin

from inventory.models import Batch, Product


class BatchInline(admin.TabularInline):
    model = Batch
    extra = 0
    fields = ("batch_no", "quantity", "unit_cost", "unit_price", "expiry_date")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "unit", "tax_percent", "vendor", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)
    inlines = [BatchInline]


@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    list_display = ("product", "batch_no", "quantity", "unit_price", "expiry_date")
    search_fields = ("batch_no", "product__name")
    list_filter = ("expiry_date",)
