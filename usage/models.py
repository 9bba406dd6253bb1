from decimal import Decimal

from django.db import models


class OperationType(models.TextChoices):
    IMAGE_GENERATION = "image_generation", "Image generation"
    TEXT_GENERATION = "text_generation", "Text generation"
    TEXT_TO_SPEECH = "text_to_speech", "Text to speech"
    VIDEO_GENERATION = "video_generation", "Video generation"


class UsageEvent(models.Model):
    """
    One successful AI operation (audit trail for billing & analytics).
    - tenant: who consumed
    - operation_type: see OperationType
    - count: units produced (images, calls...)
    - credits: credits charged for the call (0 with a company-owned key)
    - api_key_type: 'platform' | 'company_owned'
    - feature: caller feature name (ex: "email_subject", "ad_image")
    - request_id: correlation id (ex: trace_id / req_xxx)
    - model + token/image/character/audio metrics: what the provider reported
    - raw_cost / platform_cost: provider price and billed price in USD (0 with a company-owned key)
    """
    KEY_PLATFORM = "platform"
    KEY_COMPANY = "company_owned"
    KEY_CHOICES = [
        (KEY_PLATFORM, "Platform key"),
        (KEY_COMPANY, "Company-owned key"),
    ]

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="usage_events")
    operation_type = models.CharField(max_length=32, choices=OperationType.choices, db_index=True)
    count = models.PositiveIntegerField(default=1)
    credits = models.PositiveIntegerField(default=0)
    api_key_type = models.CharField(max_length=16, choices=KEY_CHOICES, default=KEY_PLATFORM)
    feature = models.CharField(max_length=64, blank=True, default="")
    request_id = models.CharField(max_length=64, null=True, blank=True)

    model = models.CharField(max_length=64, blank=True, default="")
    input_tokens = models.PositiveIntegerField(default=0)
    output_tokens = models.PositiveIntegerField(default=0)
    image_count = models.PositiveIntegerField(default=0)
    character_count = models.PositiveIntegerField(default=0)
    audio_seconds = models.PositiveIntegerField(default=0)
    raw_cost = models.DecimalField(max_digits=12, decimal_places=6, default=Decimal("0"))
    platform_cost = models.DecimalField(max_digits=12, decimal_places=6, default=Decimal("0"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "usage_events"
        indexes = [
            models.Index(fields=["tenant", "operation_type", "created_at"]),
            models.Index(fields=["tenant", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.tenant_id}:{self.operation_type}@{self.created_at:%Y-%m-%d %H:%M:%S}"


class MonthlyUsageSummary(models.Model):
    """
    Per (tenant, month) counters by operation type. Read by the operation
    limit enforcer; only ever incremented with F() expressions.
    """
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="usage_summaries")
    month = models.CharField(max_length=7)  # YYYY-MM

    total_images = models.PositiveIntegerField(default=0)
    text_calls = models.PositiveIntegerField(default=0)
    tts_calls = models.PositiveIntegerField(default=0)
    video_total = models.PositiveIntegerField(default=0)

    total_operations = models.PositiveIntegerField(default=0)
    credits_used = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "ai_monthly_summaries"
        constraints = [
            models.UniqueConstraint(fields=["tenant", "month"], name="uniq_summary_tenant_month"),
        ]

    def __str__(self) -> str:
        return f"Summary(t={self.tenant_id}, {self.month})"


class UsageQuota(models.Model):
    """
    Legacy single-pool quota record per (tenant, month). Superseded by the
    dual-pool CreditBalance for enforcement; still feeds the dashboard figures
    and the 80% / 100% credit notifications (quota_warnings_sent dedupes them).
    """
    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="usage_quotas")
    month = models.CharField(max_length=7)  # YYYY-MM
    operations = models.PositiveIntegerField(default=0)
    credits_used = models.PositiveIntegerField(default=0)
    monthly_credits_limit = models.PositiveIntegerField(default=0)
    quota_warnings_sent = models.JSONField(default=list, blank=True)  # ex: ["80%", "100%"]
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "ai_quotas"
        constraints = [
            models.UniqueConstraint(fields=["tenant", "month"], name="uniq_quota_tenant_month"),
        ]

    def __str__(self) -> str:
        return f"Quota(t={self.tenant_id}, {self.month}, used={self.credits_used})"


# operation type -> MonthlyUsageSummary counter
SUMMARY_COUNTERS = {
    OperationType.IMAGE_GENERATION: "total_images",
    OperationType.TEXT_GENERATION: "text_calls",
    OperationType.TEXT_TO_SPEECH: "tts_calls",
    OperationType.VIDEO_GENERATION: "video_total",
}
