"""
Dual credit pool (lifetime vs monthly) for a tenant.

Free plan: one-time lifetime credits, never refilled.
Paid plans: monthly credits, monthly_used goes back to 0 each calendar month.

Every mutation is a single UPDATE with F() expressions so that concurrent
requests for the same tenant never overwrite each other's increments.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.db.models import F
from django.utils import timezone

from core.results import ActionResult
from credits.models import CreditBalance
from tenants.models import Plan, Tenant

logger = logging.getLogger("creditflow.credits")

POOL_LIFETIME = "lifetime"
POOL_MONTHLY = "monthly"
POOLS = (POOL_LIFETIME, POOL_MONTHLY)


@dataclass
class CreditAvailability:
    available: bool
    reason: Optional[str] = None
    lifetime_remaining: Optional[int] = None
    monthly_remaining: Optional[int] = None


def get_current_month() -> str:
    """Current month as YYYY-MM (UTC)."""
    return timezone.now().strftime("%Y-%m")


def initialize_credit_balance(tenant_id: int, plan: Plan) -> CreditBalance:
    """Fresh balance from the plan, both used counters at 0."""
    balance, _ = CreditBalance.objects.update_or_create(
        tenant_id=tenant_id,
        defaults={
            "lifetime_allocated": plan.lifetime_credits,
            "lifetime_used": 0,
            "monthly_allocated": plan.monthly_credits,
            "monthly_used": 0,
            "lifetime_bonus": 0,
            "monthly_bonus": 0,
            "current_month": get_current_month(),
            "last_reset_at": timezone.now(),
        },
    )
    logger.info("credit balance initialized tenant=%s plan=%s lifetime=%s monthly=%s",
                tenant_id, plan.slug, balance.lifetime_allocated, balance.monthly_allocated)
    return balance


def get_credit_balance(tenant_id: int) -> Optional[CreditBalance]:
    """
    Returns the tenant's balance, creating it on first use.
    Allocated amounts are re-synced to the current plan plus bonus credits
    (used amounts kept), which fixes balances left behind by a plan change or
    a misconfigured plan.
    None => tenant not found or store failure (deny by default).
    """
    try:
        tenant = Tenant.objects.select_related("plan").get(id=tenant_id)
    except Tenant.DoesNotExist:
        return None
    plan = tenant.plan  # FK is PROTECT, a tenant always has a plan

    try:
        balance = CreditBalance.objects.filter(tenant_id=tenant.id).first()
        if balance is None:
            return initialize_credit_balance(tenant.id, plan)

        plan_monthly = plan.monthly_credits + balance.monthly_bonus
        # a lifetime bonus only counts while the plan itself has a lifetime pool
        plan_lifetime = plan.lifetime_credits + balance.lifetime_bonus if plan.lifetime_credits > 0 else 0
        if balance.monthly_allocated != plan_monthly or balance.lifetime_allocated != plan_lifetime:
            CreditBalance.objects.filter(pk=balance.pk).update(
                monthly_allocated=plan_monthly,
                lifetime_allocated=plan_lifetime,
                updated_at=timezone.now(),
            )
            logger.info("credit balance synced to plan tenant=%s plan=%s monthly %s->%s lifetime %s->%s",
                        tenant.id, plan.slug, balance.monthly_allocated, plan_monthly,
                        balance.lifetime_allocated, plan_lifetime)
            balance.monthly_allocated = plan_monthly
            balance.lifetime_allocated = plan_lifetime
        return balance
    except Exception:
        logger.exception("failed to load credit balance tenant=%s", tenant_id)
        return None


def has_credits_available(tenant_id: int, credits_required: int = 1) -> CreditAvailability:
    try:
        tenant = Tenant.objects.get(id=tenant_id)
    except Tenant.DoesNotExist:
        return CreditAvailability(False, reason="Tenant not found")
    except Exception:
        logger.exception("failed to load tenant for credit check tenant=%s", tenant_id)
        return CreditAvailability(False, reason="Error checking credits")

    if tenant.is_byok:
        return CreditAvailability(True, reason="Using own API key - unlimited")

    balance = get_credit_balance(tenant_id)
    if balance is None:
        return CreditAvailability(False, reason="Credit balance not found")

    # Month rolled over and the scheduled reset has not run yet
    if balance.current_month != get_current_month():
        res = reset_monthly_credits(tenant_id, balance)
        if not res.success:
            return CreditAvailability(False, reason=res.error)

    if balance.uses_lifetime_pool:
        lifetime_remaining = balance.lifetime_remaining
        if lifetime_remaining >= credits_required:
            return CreditAvailability(True, lifetime_remaining=lifetime_remaining, monthly_remaining=0)
        return CreditAvailability(
            False,
            reason=f"All {balance.lifetime_allocated} free credits used. Upgrade for more!",
            lifetime_remaining=0,
            monthly_remaining=0,
        )

    monthly_remaining = balance.monthly_remaining
    if monthly_remaining >= credits_required:
        return CreditAvailability(True, monthly_remaining=monthly_remaining, lifetime_remaining=0)
    return CreditAvailability(
        False,
        reason=f"Monthly credit limit reached ({balance.monthly_allocated}). Resets next month.",
        monthly_remaining=0,
        lifetime_remaining=0,
    )


def deduct_credits(tenant_id: int, credits_used: int) -> ActionResult:
    """
    Adds credits_used to the active pool. No ceiling check here: callers gate
    with has_credits_available first.
    """
    balance = get_credit_balance(tenant_id)
    if balance is None:
        return ActionResult.fail("Credit balance not found")

    # credits spent in a new month must not land on the previous month's counter
    if balance.current_month != get_current_month():
        res = reset_monthly_credits(tenant_id, balance)
        if not res.success:
            return res

    qs = CreditBalance.objects.filter(pk=balance.pk)
    try:
        if balance.uses_lifetime_pool:
            qs.update(lifetime_used=F("lifetime_used") + credits_used, updated_at=timezone.now())
        else:
            qs.update(monthly_used=F("monthly_used") + credits_used, updated_at=timezone.now())
    except Exception:
        logger.exception("failed to deduct %s credits tenant=%s", credits_used, tenant_id)
        return ActionResult.fail("Failed to deduct credits")
    return ActionResult.ok()


def reset_monthly_credits(tenant_id: int, balance: Optional[CreditBalance] = None) -> ActionResult:
    """Zeroes the monthly pool for the current month. Lifetime fields are never touched."""
    if balance is None:
        balance = get_credit_balance(tenant_id)
    if balance is None:
        return ActionResult.fail("Credit balance not found")

    month = get_current_month()
    now = timezone.now()
    try:
        CreditBalance.objects.filter(pk=balance.pk).update(
            monthly_used=0, current_month=month, last_reset_at=now, updated_at=now,
        )
    except Exception:
        logger.exception("failed to reset monthly credits tenant=%s", tenant_id)
        return ActionResult.fail("Failed to reset monthly credits")

    balance.monthly_used = 0
    balance.current_month = month
    balance.last_reset_at = now
    logger.info("monthly credits reset tenant=%s month=%s", tenant_id, month)
    return ActionResult.ok()


def add_bonus_credits(tenant_id: int, amount: int, credit_type: str = POOL_LIFETIME) -> ActionResult:
    """Admin top-up of one pool's allocation. Used counters are left alone."""
    if credit_type not in POOLS:
        return ActionResult.fail(f"Invalid credit type: {credit_type}")
    if amount <= 0:
        return ActionResult.fail("Bonus amount must be positive")

    balance = get_credit_balance(tenant_id)
    if balance is None:
        return ActionResult.fail("Credit balance not found")
    # on a monthly plan lifetime credits would switch the tenant to the lifetime pool
    if credit_type == POOL_LIFETIME and not balance.uses_lifetime_pool:
        return ActionResult.fail("Lifetime bonus requires a plan with lifetime credits; use monthly")

    qs = CreditBalance.objects.filter(pk=balance.pk)
    try:
        if credit_type == POOL_LIFETIME:
            qs.update(lifetime_allocated=F("lifetime_allocated") + amount,
                      lifetime_bonus=F("lifetime_bonus") + amount, updated_at=timezone.now())
        else:
            qs.update(monthly_allocated=F("monthly_allocated") + amount,
                      monthly_bonus=F("monthly_bonus") + amount, updated_at=timezone.now())
    except Exception:
        logger.exception("failed to add %s %s bonus credits tenant=%s", amount, credit_type, tenant_id)
        return ActionResult.fail("Failed to add bonus credits")

    logger.info("bonus credits added tenant=%s type=%s amount=%s", tenant_id, credit_type, amount)
    return ActionResult.ok()
