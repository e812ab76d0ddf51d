# audit/apps.py

"""
AUDIT APP CONFIG

Append-only event log for business operations:
- bill created / cancelled
- stock sold / restored / low
- directory changes, logins, reports, system errors
"""

from django.apps import AppConfig


class AuditConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "audit"
    verbose_name = "Audit Event Log"
