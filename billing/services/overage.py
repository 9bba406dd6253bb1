"""
AI overage billing: credits used beyond a plan's monthly limit, accumulated
per (tenant, month) and billed separately.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.db.models import F, Q, Sum
from django.utils import timezone

from billing.models import OverageCharge
from core.results import ActionResult
from credits.services.balance import get_current_month
from usage.models import OperationType

logger = logging.getLogger("creditflow.billing")

MONEY_QUANT = Decimal("0.0001")

OVERAGE_FIELDS = {
    OperationType.TEXT_GENERATION: "text_generation_overage",
    OperationType.IMAGE_GENERATION: "image_generation_overage",
    OperationType.TEXT_TO_SPEECH: "tts_overage",
    OperationType.VIDEO_GENERATION: "video_overage",
}


@dataclass
class OverageResult:
    success: bool
    overage_charge: Optional[Decimal] = None
    error: Optional[str] = None


@dataclass
class OverageLookup:
    success: bool
    overage: Optional[OverageCharge] = None
    error: Optional[str] = None


@dataclass
class RevenueResult:
    success: bool
    total_revenue: Decimal = Decimal("0")
    pending_revenue: Decimal = Decimal("0")
    error: Optional[str] = None


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_QUANT)


def track_overage_usage(tenant_id: int, plan_id: Optional[int], credit_limit: int, overage_price,
                        credits_used: int, operation_type) -> OverageResult:
    """
    Records credits_used - credit_limit as overage for the current month.
    Repeated calls within a month only bill the newly crossed portion.
    """
    credits_over_limit = max(0, credits_used - credit_limit)
    if credits_over_limit <= 0:
        return OverageResult(True, overage_charge=Decimal("0"))

    try:
        field = OVERAGE_FIELDS[OperationType(operation_type)]
    except ValueError:
        return OverageResult(False, error=f"Unknown operation type: {operation_type}")

    price = _money(overage_price)
    month = get_current_month()
    try:
        with transaction.atomic():
            charge, created = OverageCharge.objects.select_for_update().get_or_create(
                tenant_id=tenant_id,
                month=month,
                defaults={
                    "plan_id": plan_id,
                    "plan_credit_limit": credit_limit,
                    "plan_overage_price": price,
                    "credits_over_limit": credits_over_limit,
                    "overage_charge_usd": _money(credits_over_limit * price),
                    "billing_status": OverageCharge.STATUS_PENDING,
                    field: credits_over_limit,
                },
            )
            if created:
                logger.info("overage tracked tenant=%s month=%s credits=%s charge=%s",
                            tenant_id, month, credits_over_limit, charge.overage_charge_usd)
                return OverageResult(True, overage_charge=charge.overage_charge_usd)

            additional = credits_used - credit_limit - charge.credits_over_limit
            if additional <= 0:
                return OverageResult(True, overage_charge=charge.overage_charge_usd)

            OverageCharge.objects.filter(pk=charge.pk).update(
                credits_over_limit=F("credits_over_limit") + additional,
                overage_charge_usd=F("overage_charge_usd") + _money(additional * price),
                updated_at=timezone.now(),
                **{field: F(field) + additional},
            )
            charge.refresh_from_db(fields=["credits_over_limit", "overage_charge_usd"])
    except Exception as e:
        logger.exception("failed to track overage tenant=%s", tenant_id)
        return OverageResult(False, error=str(e) or "Failed to track overage")

    total = _money(charge.overage_charge_usd)
    logger.info("overage updated tenant=%s month=%s +%s credits total=%s", tenant_id, month, additional, total)
    return OverageResult(True, overage_charge=total)


def get_current_overage_charge(tenant_id: int, month: Optional[str] = None) -> OverageLookup:
    month = month or get_current_month()
    try:
        charge = OverageCharge.objects.filter(tenant_id=tenant_id, month=month).first()
    except Exception as e:
        logger.exception("failed to load overage charge tenant=%s month=%s", tenant_id, month)
        return OverageLookup(False, error=str(e) or "Failed to get overage charge")
    return OverageLookup(True, overage=charge)


def _transition(tenant_id: int, month: str, status: str, **fields) -> ActionResult:
    try:
        with transaction.atomic():
            charge = (OverageCharge.objects.select_for_update()
                      .filter(tenant_id=tenant_id, month=month).first())
            if charge is None:
                return ActionResult.fail("Overage charge not found")
            if not charge.can_transition_to(status):
                return ActionResult.fail(
                    f"Cannot move overage charge from {charge.billing_status} to {status}")
            if charge.billing_status == status:
                return ActionResult.ok()

            charge.billing_status = status
            for name, value in fields.items():
                setattr(charge, name, value)
            charge.save(update_fields=["billing_status", "updated_at", *fields.keys()])
    except Exception as e:
        logger.exception("failed to set overage status=%s tenant=%s month=%s", status, tenant_id, month)
        return ActionResult.fail(str(e) or f"Failed to mark overage as {status}")

    logger.info("overage %s tenant=%s month=%s", status, tenant_id, month)
    return ActionResult.ok()


def mark_overage_invoiced(tenant_id: int, month: str, invoice_ref: str) -> ActionResult:
    return _transition(tenant_id, month, OverageCharge.STATUS_INVOICED,
                       invoice_ref=invoice_ref, billed_at=timezone.now())


def mark_overage_paid(tenant_id: int, month: str) -> ActionResult:
    return _transition(tenant_id, month, OverageCharge.STATUS_PAID, paid_at=timezone.now())


def waive_overage_charge(tenant_id: int, month: str, reason: Optional[str] = None) -> ActionResult:
    return _transition(tenant_id, month, OverageCharge.STATUS_WAIVED,
                       waived_reason=reason or "Waived by administrator")


def get_platform_overage_revenue(month: Optional[str] = None) -> RevenueResult:
    """Paid vs outstanding (pending + invoiced) overage across all tenants. Waived is excluded."""
    month = month or get_current_month()
    try:
        agg = OverageCharge.objects.filter(month=month).aggregate(
            total=Sum("overage_charge_usd", filter=Q(billing_status=OverageCharge.STATUS_PAID)),
            pending=Sum("overage_charge_usd", filter=Q(billing_status__in=[
                OverageCharge.STATUS_PENDING, OverageCharge.STATUS_INVOICED,
            ])),
        )
    except Exception as e:
        logger.exception("failed to aggregate overage revenue month=%s", month)
        return RevenueResult(False, error=str(e) or "Failed to get platform overage revenue")
    return RevenueResult(
        True,
        total_revenue=_money(agg["total"] or 0),
        pending_revenue=_money(agg["pending"] or 0),
    )
