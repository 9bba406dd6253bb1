import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction

from tenants.models import Tenant
from .models import UsageQuota

logger = logging.getLogger("creditflow.usage")

THRESHOLD_WARNING = "80%"
THRESHOLD_EXHAUSTED = "100%"


def _pick_threshold(quota: UsageQuota) -> str | None:
    usage_percent = quota.credits_used * 100 / quota.monthly_credits_limit
    sent = quota.quota_warnings_sent or []
    if usage_percent >= 100 and THRESHOLD_EXHAUSTED not in sent:
        return THRESHOLD_EXHAUSTED
    if usage_percent >= 80 and THRESHOLD_WARNING not in sent:
        return THRESHOLD_WARNING
    return None


def _notice(tenant: Tenant, quota: UsageQuota, threshold: str) -> tuple[str, str]:
    remaining = max(0, quota.monthly_credits_limit - quota.credits_used)
    if threshold == THRESHOLD_EXHAUSTED:
        subject = "AI credits exhausted - upgrade required"
        intro = ("Your AI credits for this month are exhausted. AI operations stay blocked until you "
                 "upgrade your plan, add your own Gemini API key, or the credits reset next month.")
    else:
        subject = "AI credits alert - 80% usage reached"
        intro = ("You have used 80% of your monthly AI credits. Consider upgrading your plan or "
                 "adding your own Gemini API key to avoid an interruption.")
    body = (
        f"{intro}\n\n"
        f"Usage summary for {tenant.name} ({quota.month})\n"
        f"Credits used: {quota.credits_used}\n"
        f"Monthly limit: {quota.monthly_credits_limit}\n"
        f"Remaining: {remaining}\n"
    )
    return subject, body


@shared_task(bind=True, max_retries=0)
def send_credit_notifications(self, tenant_id: int, month: str):
    """
    Warns the tenant once at 80% and once at 100% of the monthly credits.
    The threshold is recorded on the quota row before the mail goes out, so
    a failed send is not retried into a duplicate.
    """
    with transaction.atomic():
        quota = (UsageQuota.objects.select_for_update()
                 .filter(tenant_id=tenant_id, month=month).first())
        if quota is None:
            return {"notification_sent": False, "reason": "Quota not found"}
        if not quota.monthly_credits_limit:
            return {"notification_sent": False, "reason": "No monthly credit limit"}

        threshold = _pick_threshold(quota)
        if threshold is None:
            return {"notification_sent": False, "reason": "No threshold crossed or already notified"}

        quota.quota_warnings_sent = [*(quota.quota_warnings_sent or []), threshold]
        quota.save(update_fields=["quota_warnings_sent", "updated_at"])

    tenant = Tenant.objects.get(id=tenant_id)
    if tenant.support_email:
        subject, body = _notice(tenant, quota, threshold)
        try:
            send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [tenant.support_email])
        except Exception:
            logger.exception("credit notification mail failed tenant=%s threshold=%s", tenant_id, threshold)
    logger.info("credit notification tenant=%s month=%s threshold=%s", tenant_id, month, threshold)
    return {"notification_sent": True, "threshold": threshold}
