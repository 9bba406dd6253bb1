from django.contrib import admin
from .models import OverageCharge


@admin.register(OverageCharge)
class OverageChargeAdmin(admin.ModelAdmin):
    list_display = ("id", "tenant", "month", "credits_over_limit", "overage_charge_usd",
                    "billing_status", "invoice_ref", "updated_at")
    list_filter = ("billing_status", "month")
    search_fields = ("tenant__name", "invoice_ref")
    readonly_fields = ("created_at", "updated_at")
