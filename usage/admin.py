from django.contrib import admin
from .models import MonthlyUsageSummary, UsageEvent, UsageQuota


@admin.register(UsageEvent)
class UsageEventAdmin(admin.ModelAdmin):
    list_display = ("id", "tenant", "operation_type", "count", "credits", "api_key_type", "feature", "created_at")
    list_filter = ("operation_type", "api_key_type")
    search_fields = ("tenant__name", "request_id", "feature")
    readonly_fields = ("created_at",)


@admin.register(MonthlyUsageSummary)
class MonthlyUsageSummaryAdmin(admin.ModelAdmin):
    list_display = ("tenant", "month", "total_images", "text_calls", "tts_calls", "video_total", "credits_used")
    list_filter = ("month",)
    search_fields = ("tenant__name",)


@admin.register(UsageQuota)
class UsageQuotaAdmin(admin.ModelAdmin):
    list_display = ("tenant", "month", "operations", "credits_used", "monthly_credits_limit")
    list_filter = ("month",)
