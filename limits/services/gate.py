"""
Wraps a billable AI call: pause check, per-operation ceiling, credit pool,
then metering once the call has succeeded.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from tenants.models import Tenant
from usage.models import UsageEvent
from usage.services.metering import UsageMetrics, record_usage

from .costs import calculate_credits_consumed
from .enforcer import check_credits_available, check_operation_limit

logger = logging.getLogger("creditflow.limits")


@dataclass
class QuotaInfo:
    remaining: int = 0
    limit: int = 0
    consumed: int = 0


@dataclass
class GateResult:
    success: bool
    error: Optional[str] = None
    result: Any = None
    is_overage: bool = False
    quota_info: QuotaInfo = field(default_factory=QuotaInfo)


def _final_quota(tenant_id: int, consumed: int) -> QuotaInfo:
    final = check_credits_available(tenant_id, 0)
    return QuotaInfo(remaining=final.remaining or 0, limit=final.limit or 0, consumed=consumed)


def _precheck(tenant_id: int, operation_type, count: int, api_key_type: str) -> GateResult:
    """GateResult(success=True, is_overage=...) when the call may go ahead."""
    try:
        tenant = Tenant.objects.select_related("plan").get(id=tenant_id)
    except Tenant.DoesNotExist:
        return GateResult(False, error="Tenant not found")

    if not tenant.is_active:
        reason = tenant.paused_reason or "AI operations have been paused by administrator"
        return GateResult(False, error=f"AI operations paused: {reason}. Contact support for assistance.")

    if api_key_type == UsageEvent.KEY_COMPANY:
        return GateResult(True)

    limit_check = check_operation_limit(tenant_id, operation_type, count)
    if not limit_check.allowed:
        return GateResult(False, error=limit_check.reason, quota_info=QuotaInfo(limit=limit_check.limit or 0))

    # allow_overage only softens the per-operation ceilings, never the credit pool
    credits_required = calculate_credits_consumed(operation_type, count)
    credits_check = check_credits_available(tenant_id, credits_required)
    if not credits_check.allowed:
        return GateResult(False, error=credits_check.reason, quota_info=QuotaInfo(limit=credits_check.limit or 0))
    return GateResult(True, is_overage=limit_check.is_overage)


def execute_ai_operation(tenant_id: int, operation_type, operation: Callable[[], Any], *,
                         count: int = 1, api_key_type: str = UsageEvent.KEY_PLATFORM,
                         feature: str = "", request_id: Optional[str] = None, model: str = "",
                         metrics: Optional[Callable[[Any], UsageMetrics]] = None) -> GateResult:
    """
    operation() performs the paid provider call and raises on failure.
    metrics(result), when given, extracts the provider's token/image/character
    counts from the call's result for the usage record.
    Platform-key calls are gated by check_operation_limit and check_credits_available.
    Store errors during the checks deny the call.
    """
    try:
        gate = _precheck(tenant_id, operation_type, count, api_key_type)
    except Exception as e:
        logger.exception("AI operation pre-check failed tenant=%s type=%s", tenant_id, operation_type)
        return GateResult(False, error=str(e) or "An unexpected error occurred")
    if not gate.success:
        return gate

    try:
        result = operation()
    except Exception as e:
        logger.warning("AI operation failed tenant=%s type=%s feature=%s: %s",
                       tenant_id, operation_type, feature, e)
        return GateResult(False, error=str(e) or "AI operation failed",
                          quota_info=_final_quota(tenant_id, consumed=0))

    consumed = 0
    try:
        usage = record_usage(tenant_id=tenant_id, operation_type=operation_type, count=count,
                             api_key_type=api_key_type, feature=feature, request_id=request_id,
                             model=model, metrics=metrics(result) if metrics else None)
        consumed = usage.credits
    except Exception:
        # provider call already happened, its result is still returned
        logger.exception("AI operation succeeded but usage was not recorded tenant=%s type=%s",
                         tenant_id, operation_type)

    return GateResult(True, result=result, is_overage=gate.is_overage,
                      quota_info=_final_quota(tenant_id, consumed=consumed))
