import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from billing.services.overage import OverageResult, track_overage_usage
from credits.services.balance import deduct_credits, get_current_month
from limits.services.costs import calculate_credits_consumed, calculate_operation_cost
from tenants.models import Tenant
from usage.models import MonthlyUsageSummary, OperationType, SUMMARY_COUNTERS, UsageEvent, UsageQuota
from usage.tasks import send_credit_notifications

logger = logging.getLogger("creditflow.usage")


@dataclass
class UsageMetrics:
    """What the provider reported for one call."""
    input_tokens: int = 0
    output_tokens: int = 0
    image_count: int = 0
    character_count: int = 0
    audio_seconds: int = 0


@dataclass
class UsageRecordResult:
    event: UsageEvent
    credits: int
    overage: Optional[OverageResult] = None


def _increment_summary(tenant_id: int, month: str, op: OperationType, count: int, credits: int) -> None:
    summary, _ = MonthlyUsageSummary.objects.get_or_create(tenant_id=tenant_id, month=month)
    counter = SUMMARY_COUNTERS[op]
    MonthlyUsageSummary.objects.filter(pk=summary.pk).update(
        total_operations=F("total_operations") + 1,
        credits_used=F("credits_used") + credits,
        updated_at=timezone.now(),
        **{counter: F(counter) + count},
    )


def _increment_quota(tenant_id: int, month: str, credits: int, limit: int) -> None:
    quota, _ = UsageQuota.objects.get_or_create(
        tenant_id=tenant_id, month=month, defaults={"monthly_credits_limit": limit},
    )
    UsageQuota.objects.filter(pk=quota.pk).update(
        operations=F("operations") + 1,
        credits_used=F("credits_used") + credits,
        updated_at=timezone.now(),
    )


def record_usage(*, tenant_id: int, operation_type, count: int = 1, credits: Optional[int] = None,
                 api_key_type: str = UsageEvent.KEY_PLATFORM, feature: str = "",
                 request_id: Optional[str] = None, model: str = "",
                 metrics: Optional[UsageMetrics] = None) -> UsageRecordResult:
    """
    Records one successful AI operation: usage event, monthly summary, legacy
    quota, then credit deduction, overage and credit notifications (platform key only).
    credits defaults to the configured price of the operation.
    Raises Tenant.DoesNotExist / ValueError (unknown operation type).
    """
    op = OperationType(operation_type)
    tenant = Tenant.objects.select_related("plan").get(id=tenant_id)
    plan = tenant.plan
    metrics = metrics or UsageMetrics()
    if op == OperationType.IMAGE_GENERATION and not metrics.image_count:
        metrics.image_count = count

    company_owned = api_key_type == UsageEvent.KEY_COMPANY or tenant.is_byok
    if company_owned:
        api_key_type = UsageEvent.KEY_COMPANY
        credits = 0
        raw_cost, platform_cost = Decimal("0"), Decimal("0")
    else:
        if credits is None:
            credits = calculate_credits_consumed(op, count)
        raw_cost, platform_cost = calculate_operation_cost(
            op, model,
            input_tokens=metrics.input_tokens, output_tokens=metrics.output_tokens,
            image_count=metrics.image_count, character_count=metrics.character_count,
        )

    month = get_current_month()
    with transaction.atomic():
        event = UsageEvent.objects.create(
            tenant_id=tenant.id, operation_type=op, count=count, credits=credits,
            api_key_type=api_key_type, feature=feature, request_id=request_id,
            model=model, input_tokens=metrics.input_tokens, output_tokens=metrics.output_tokens,
            image_count=metrics.image_count, character_count=metrics.character_count,
            audio_seconds=metrics.audio_seconds, raw_cost=raw_cost, platform_cost=platform_cost,
        )
        _increment_summary(tenant.id, month, op, count, credits)
        _increment_quota(tenant.id, month, credits, plan.monthly_credits)
    tenant.touch_usage()

    result = UsageRecordResult(event=event, credits=credits)
    if company_owned:
        return result

    deducted = deduct_credits(tenant.id, credits)
    if not deducted.success:
        logger.warning("usage recorded but credits not deducted tenant=%s: %s", tenant.id, deducted.error)

    # Overage is billed in credits over the monthly allocation (paid plans only)
    if plan.allow_overage and plan.overage_price_per_credit > 0 and plan.lifetime_credits == 0:
        credits_used = (MonthlyUsageSummary.objects
                        .filter(tenant_id=tenant.id, month=month)
                        .values_list("credits_used", flat=True).first()) or 0
        result.overage = track_overage_usage(
            tenant.id, plan.id, plan.monthly_credits, plan.overage_price_per_credit, credits_used, op,
        )
        if not result.overage.success:
            logger.warning("overage not tracked tenant=%s: %s", tenant.id, result.overage.error)

    try:
        send_credit_notifications.delay(tenant.id, month)
    except Exception:
        logger.exception("failed to queue credit notifications tenant=%s", tenant.id)
    return result
