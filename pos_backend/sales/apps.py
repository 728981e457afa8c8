# sales/apps.py

"""
SALES APP CONFIG

Sale calculation and validation engine:
- totals, discounts and tax for one checkout attempt
- store discount-limit policy
- payment reconciliation
"""

from django.apps import AppConfig


class SalesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "sales"
    verbose_name = "Sales"
