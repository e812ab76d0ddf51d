# billing/apps.py

"""
BILLING APP CONFIG

Bills, line items, and the transaction coordinator that deducts stock,
persists the bill, and records the audit trail as one unit.
"""

from django.apps import AppConfig


class BillingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "billing"
    verbose_name = "Billing"
