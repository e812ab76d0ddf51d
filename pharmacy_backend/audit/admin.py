# audit/admin.py

from django.contrib import admin

from audit.models import AuditEvent


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ("type", "description", "timestamp", "source")
    list_filter = ("type", "source")
    search_fields = ("description",)
    ordering = ("-timestamp",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
