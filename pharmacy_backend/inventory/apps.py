# inventory/apps.py

"""
INVENTORY APP CONFIG

Products, batches and the stock ledger (the only sanctioned quantity
mutation path for sales and cancellations).
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
    verbose_name = "Inventory"
