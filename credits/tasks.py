import logging

from celery import shared_task

from tenants.models import Tenant
from usage.models import UsageQuota
from .models import CreditBalance
from .services.balance import get_credit_balance, get_current_month, reset_monthly_credits

logger = logging.getLogger("creditflow.credits")


@shared_task(bind=True, max_retries=0)
def reset_monthly_credits_task(self):
    """
    Month-boundary job (beat: 1st of month). Resets every balance still on a
    previous month; has_credits_available only does it lazily on read.
    """
    month = get_current_month()
    stale = list(CreditBalance.objects
                 .exclude(current_month=month)
                 .values_list("tenant_id", flat=True))
    reset, failed = 0, 0
    for tenant_id in stale:
        res = reset_monthly_credits(tenant_id)
        if res.success:
            reset += 1
        else:
            failed += 1
            logger.error("monthly reset failed tenant=%s: %s", tenant_id, res.error)
    logger.info("monthly credit reset done month=%s reset=%s failed=%s", month, reset, failed)
    return {"month": month, "reset": reset, "failed": failed}


def _backfill_tenant(tenant: Tenant) -> None:
    plan = tenant.plan
    balance = get_credit_balance(tenant.id)  # creates it from the plan
    if balance is None:
        raise RuntimeError("credit balance could not be initialized")

    quota = UsageQuota.objects.filter(tenant_id=tenant.id, month=get_current_month()).first()
    used = quota.credits_used if quota else 0
    if not used:
        return
    if plan.lifetime_credits > 0:
        CreditBalance.objects.filter(pk=balance.pk).update(lifetime_used=min(used, plan.lifetime_credits))
    else:
        CreditBalance.objects.filter(pk=balance.pk).update(monthly_used=used)


@shared_task(bind=True, max_retries=0)
def backfill_credit_balances(self):
    """
    One-off migration from the single-pool quota to the dual credit balance.
    Usage already consumed this month is carried over into the active pool.
    """
    migrated, skipped, errors = 0, 0, 0
    tenants = Tenant.objects.select_related("plan").order_by("id")
    for tenant in tenants.iterator():
        if CreditBalance.objects.filter(tenant_id=tenant.id).exists():
            skipped += 1
            continue
        try:
            _backfill_tenant(tenant)
            migrated += 1
        except Exception:
            errors += 1
            logger.exception("credit balance backfill failed tenant=%s", tenant.id)
    logger.info("credit balance backfill migrated=%s skipped=%s errors=%s", migrated, skipped, errors)
    return {"migrated": migrated, "skipped": skipped, "errors": errors}
