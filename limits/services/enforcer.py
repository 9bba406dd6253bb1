"""
Plan-specific per-operation ceilings (images, text, TTS, video per month),
independent of the abstract credit pool.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from credits.services.balance import get_current_month, has_credits_available
from tenants.models import Tenant
from usage.models import MonthlyUsageSummary, OperationType, SUMMARY_COUNTERS, UsageQuota

logger = logging.getLogger("creditflow.limits")

# operation type -> Plan ceiling field
PLAN_CEILINGS = {
    OperationType.IMAGE_GENERATION: "max_images_per_month",
    OperationType.TEXT_GENERATION: "max_text_per_month",
    OperationType.TEXT_TO_SPEECH: "max_tts_per_month",
    OperationType.VIDEO_GENERATION: "max_videos_per_month",
}


@dataclass
class OperationLimitResult:
    allowed: bool
    reason: Optional[str] = None
    remaining: Optional[int] = None
    limit: Optional[int] = None
    upgrade_required: bool = False
    is_overage: bool = False
    overage: Optional[int] = None


def _usage_triple(used: int, limit: Optional[int]) -> dict:
    return {
        "used": used,
        "limit": limit,
        "remaining": limit - used if limit is not None else None,
    }


def check_operation_limit(tenant_id: int, operation_type, requested_count: int = 1) -> OperationLimitResult:
    try:
        tenant = Tenant.objects.select_related("plan").get(id=tenant_id)
    except Tenant.DoesNotExist:
        return OperationLimitResult(False, reason="Tenant not found")
    except Exception:
        logger.exception("failed to load tenant for limit check tenant=%s", tenant_id)
        return OperationLimitResult(False, reason="Error checking operation limit")

    # BYOK: the tenant pays its provider directly
    if tenant.is_byok:
        return OperationLimitResult(True, reason="Using own API key - unlimited usage")

    try:
        op = OperationType(operation_type)
    except ValueError:
        return OperationLimitResult(True)

    plan = tenant.plan
    limit = getattr(plan, PLAN_CEILINGS[op])
    if limit is None:
        return OperationLimitResult(True, limit=None)

    try:
        summary = MonthlyUsageSummary.objects.filter(tenant_id=tenant.id, month=get_current_month()).first()
    except Exception:
        logger.exception("failed to read usage summary tenant=%s", tenant_id)
        return OperationLimitResult(False, reason="Error checking operation limit")
    current = getattr(summary, SUMMARY_COUNTERS[op]) if summary else 0

    remaining = limit - current
    if current + requested_count <= limit:
        return OperationLimitResult(True, remaining=remaining, limit=limit)

    if plan.allow_overage:
        return OperationLimitResult(
            True,
            reason="Overage will be charged",
            remaining=0,
            limit=limit,
            is_overage=True,
            overage=max(0, current + requested_count - limit),
        )

    return OperationLimitResult(
        False,
        reason=f"{op.value} limit reached. You have used {current} of {limit} this month.",
        remaining=remaining,
        limit=limit,
        upgrade_required=True,
    )


def check_credits_available(tenant_id: int, credits_required: int) -> OperationLimitResult:
    """
    Dual credit pool check in the same envelope as check_operation_limit.
    remaining/limit show the monthly pool when it has credits left, else the lifetime pool.
    """
    try:
        tenant = Tenant.objects.get(id=tenant_id)
    except Tenant.DoesNotExist:
        return OperationLimitResult(False, reason="Tenant not found")
    except Exception:
        logger.exception("failed to load tenant for credit check tenant=%s", tenant_id)
        return OperationLimitResult(False, reason="Error checking credits")

    if tenant.is_byok:
        return OperationLimitResult(True, reason="Using own API key - unlimited credits")

    res = has_credits_available(tenant_id, credits_required)
    if res.monthly_remaining:
        remaining = res.monthly_remaining
    else:
        remaining = res.lifetime_remaining or 0
    limit = remaining + credits_required

    if not res.available:
        return OperationLimitResult(
            False,
            reason=res.reason or "Insufficient credits",
            remaining=remaining,
            limit=limit,
            upgrade_required=True,
        )
    return OperationLimitResult(True, remaining=remaining, limit=limit)


def get_remaining_operations(tenant_id: int) -> dict:
    """
    Dashboard figures: {credits, images, text, tts} -> {used, limit, remaining}.
    Credits come from the legacy single-pool quota record, not from CreditBalance.
    Raises Tenant.DoesNotExist.
    """
    tenant = Tenant.objects.select_related("plan").get(id=tenant_id)
    plan = tenant.plan
    month = get_current_month()

    summary = MonthlyUsageSummary.objects.filter(tenant_id=tenant.id, month=month).first()
    quota = UsageQuota.objects.filter(tenant_id=tenant.id, month=month).first()

    credits_used = quota.credits_used if quota else 0
    credits_limit = plan.ai_credits_per_month or 0

    return {
        "credits": {
            "used": credits_used,
            "limit": credits_limit,
            "remaining": credits_limit - credits_used,
        },
        "images": _usage_triple(summary.total_images if summary else 0, plan.max_images_per_month),
        "text": _usage_triple(summary.text_calls if summary else 0, plan.max_text_per_month),
        "tts": _usage_triple(summary.tts_calls if summary else 0, plan.max_tts_per_month),
    }
