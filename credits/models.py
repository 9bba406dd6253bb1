from django.db import models


class CreditBalance(models.Model):
    """
    Dual credit pool of a tenant.
    - lifetime_*: one-time pool (free tier), never refills
    - monthly_*: recurring pool (paid tiers), monthly_used resets each month
    - *_bonus: admin top-ups, kept on top of the plan allocation
    - current_month: last month (YYYY-MM) the monthly pool was reset for
    If lifetime_allocated > 0 the lifetime pool is the only one consulted.
    """
    tenant = models.OneToOneField("tenants.Tenant", on_delete=models.CASCADE, related_name="credit_balance")
    lifetime_allocated = models.PositiveIntegerField(default=0)
    lifetime_used = models.PositiveIntegerField(default=0)
    monthly_allocated = models.PositiveIntegerField(default=0)
    monthly_used = models.PositiveIntegerField(default=0)
    lifetime_bonus = models.PositiveIntegerField(default=0)
    monthly_bonus = models.PositiveIntegerField(default=0)
    current_month = models.CharField(max_length=7)  # YYYY-MM
    last_reset_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "credit_balances"

    def __str__(self) -> str:
        return (f"CreditBalance(t={self.tenant_id}, lifetime={self.lifetime_used}/{self.lifetime_allocated}, "
                f"monthly={self.monthly_used}/{self.monthly_allocated})")

    @property
    def uses_lifetime_pool(self) -> bool:
        return self.lifetime_allocated > 0

    @property
    def lifetime_remaining(self) -> int:
        return self.lifetime_allocated - self.lifetime_used

    @property
    def monthly_remaining(self) -> int:
        return self.monthly_allocated - self.monthly_used
