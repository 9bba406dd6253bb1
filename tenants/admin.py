from django.contrib import admin
from .models import Tenant, Plan


@admin.register(Plan)
class PlanAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "active", "ai_lifetime_credits", "ai_monthly_credits",
                    "allow_overage", "overage_price_per_credit", "created_at")
    list_filter = ("active", "allow_overage")
    search_fields = ("name", "slug")
    readonly_fields = ("created_at",)


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "plan", "status", "use_own_gemini_api_key", "support_email",
                    "created_at", "updated_at")
    list_filter = ("status", "plan", "use_own_gemini_api_key")
    search_fields = ("name", "support_email")
    readonly_fields = ("created_at", "updated_at", "last_usage_at")
