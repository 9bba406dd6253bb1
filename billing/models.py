from decimal import Decimal

from django.db import models


class OverageCharge(models.Model):
    """
    Billable overage of a tenant for one calendar month.
    - plan_credit_limit / plan_overage_price: plan context at first overage
    - credits_over_limit / overage_charge_usd: cumulative for the month
    - *_overage: breakdown by operation type
    - billing_status: pending -> invoiced -> paid, or waived (never deleted)
    """
    STATUS_PENDING = "pending"
    STATUS_INVOICED = "invoiced"
    STATUS_PAID = "paid"
    STATUS_WAIVED = "waived"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_INVOICED, "Invoiced"),
        (STATUS_PAID, "Paid"),
        (STATUS_WAIVED, "Waived"),
    ]

    # allowed next states; re-applying the current state is a no-op
    TRANSITIONS = {
        STATUS_PENDING: {STATUS_INVOICED, STATUS_WAIVED},
        STATUS_INVOICED: {STATUS_PAID, STATUS_WAIVED},
        STATUS_PAID: set(),
        STATUS_WAIVED: set(),
    }

    tenant = models.ForeignKey("tenants.Tenant", on_delete=models.CASCADE, related_name="overage_charges")
    month = models.CharField(max_length=7, db_index=True)  # YYYY-MM
    plan = models.ForeignKey("tenants.Plan", on_delete=models.SET_NULL, null=True, blank=True,
                             related_name="overage_charges")
    plan_credit_limit = models.PositiveIntegerField(default=0)
    plan_overage_price = models.DecimalField(max_digits=10, decimal_places=4, default=Decimal("0"))

    credits_over_limit = models.PositiveIntegerField(default=0)
    overage_charge_usd = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal("0"))

    text_generation_overage = models.PositiveIntegerField(default=0)
    image_generation_overage = models.PositiveIntegerField(default=0)
    tts_overage = models.PositiveIntegerField(default=0)
    video_overage = models.PositiveIntegerField(default=0)

    billing_status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    invoice_ref = models.CharField(max_length=128, blank=True, default="")
    billed_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    waived_reason = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "ai_overage_charges"
        ordering = ["-month", "tenant_id"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "month"], name="uniq_overage_tenant_month"),
        ]

    def __str__(self) -> str:
        return f"Overage(t={self.tenant_id}, {self.month}, {self.credits_over_limit}cr, {self.billing_status})"

    def can_transition_to(self, status: str) -> bool:
        return status == self.billing_status or status in self.TRANSITIONS.get(self.billing_status, set())
