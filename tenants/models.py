from decimal import Decimal

from django.db import models
from django.utils import timezone


class Plan(models.Model):
    """
    Subscription plan (Free/Starter/Pro/Enterprise, etc.)
    - slug: stable identifier
    - ai_lifetime_credits: one-time pool (Free = 20, paid = 0), never refills
    - ai_monthly_credits: recurring pool, refills each calendar month
    - ai_credits_per_month: DEPRECATED alias of ai_monthly_credits
    - max_*_per_month: per-operation ceilings (NULL => no ceiling)
    - allow_overage / overage_price_per_credit: soft limit, bill the difference
    """
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100, unique=True, db_index=True)
    active = models.BooleanField(default=True)

    ai_lifetime_credits = models.PositiveIntegerField(default=0)
    ai_monthly_credits = models.PositiveIntegerField(null=True, blank=True)
    ai_credits_per_month = models.PositiveIntegerField(default=0)

    max_images_per_month = models.PositiveIntegerField(null=True, blank=True)
    max_text_per_month = models.PositiveIntegerField(null=True, blank=True)
    max_tts_per_month = models.PositiveIntegerField(null=True, blank=True)
    max_videos_per_month = models.PositiveIntegerField(null=True, blank=True)

    allow_overage = models.BooleanField(default=False)
    overage_price_per_credit = models.DecimalField(max_digits=10, decimal_places=4, default=Decimal("0"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "plans"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.slug} ({'active' if self.active else 'inactive'})"

    @property
    def monthly_credits(self) -> int:
        # ai_monthly_credits wins; the deprecated field is only a fallback
        if self.ai_monthly_credits is not None:
            return self.ai_monthly_credits
        return self.ai_credits_per_month or 0

    @property
    def lifetime_credits(self) -> int:
        return self.ai_lifetime_credits or 0


class Tenant(models.Model):
    """
    Paying customer account (the "company"), unit of credit/quota isolation.
    - plan: FK to Plan
    - status: ACTIVE|SUSPENDED (suspended => AI operations paused)
    - use_own_gemini_api_key + gemini_api_key_id: bring-your-own-key mode,
      bypasses every credit and quota check
    - metadata: free-form JSON
    """
    STATUS_ACTIVE = "active"
    STATUS_SUSPENDED = "suspended"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_SUSPENDED, "Suspended"),
    ]

    name = models.CharField(max_length=150, unique=True)
    plan = models.ForeignKey(Plan, on_delete=models.PROTECT, related_name="tenants")
    support_email = models.EmailField(blank=True, default="")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    paused_reason = models.CharField(max_length=255, blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)

    use_own_gemini_api_key = models.BooleanField(default=False)
    gemini_api_key_id = models.CharField(max_length=128, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_usage_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "tenants"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} [{self.plan.slug}]"

    @property
    def is_active(self) -> bool:
        return self.status == self.STATUS_ACTIVE

    @property
    def is_byok(self) -> bool:
        return bool(self.use_own_gemini_api_key and self.gemini_api_key_id)

    def touch_usage(self):
        self.last_usage_at = timezone.now()
        self.save(update_fields=["last_usage_at"])
