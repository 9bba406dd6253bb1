from django.contrib import admin
from .models import CreditBalance


@admin.register(CreditBalance)
class CreditBalanceAdmin(admin.ModelAdmin):
    list_display = ("tenant", "lifetime_used", "lifetime_allocated", "monthly_used", "monthly_allocated",
                    "current_month", "updated_at")
    list_filter = ("current_month",)
    search_fields = ("tenant__name",)
    readonly_fields = ("last_reset_at", "updated_at")
