from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase

from billing.models import OverageCharge
from billing.services.overage import (
    get_current_overage_charge, get_platform_overage_revenue, mark_overage_invoiced, mark_overage_paid,
    track_overage_usage, waive_overage_charge,
)
from tenants.models import Plan, Tenant
from usage.models import OperationType


class TrackOverageTest(TestCase):
    def setUp(self):
        self.plan = Plan.objects.create(name="Pro", slug="pro", ai_monthly_credits=100, allow_overage=True,
                                        overage_price_per_credit=Decimal("0.01"))
        self.tenant = Tenant.objects.create(name="ACME", plan=self.plan)

    def _track(self, used, op=OperationType.TEXT_GENERATION):
        return track_overage_usage(self.tenant.id, self.plan.id, 100, Decimal("0.01"), used, op)

    def test_nothing_below_limit(self):
        res = self._track(100)
        self.assertTrue(res.success)
        self.assertEqual(res.overage_charge, Decimal("0"))
        self.assertFalse(OverageCharge.objects.exists())

    def test_accumulates_only_new_overage(self):
        first = self._track(110)
        self.assertEqual(first.overage_charge, Decimal("0.1000"))
        charge = OverageCharge.objects.get(tenant=self.tenant)
        self.assertEqual(charge.credits_over_limit, 10)
        self.assertEqual(charge.billing_status, OverageCharge.STATUS_PENDING)

        second = self._track(125, OperationType.IMAGE_GENERATION)
        self.assertEqual(second.overage_charge, Decimal("0.2500"))
        charge.refresh_from_db()
        self.assertEqual(charge.credits_over_limit, 25)
        self.assertEqual(charge.overage_charge_usd, Decimal("0.2500"))
        self.assertEqual(charge.text_generation_overage, 10)
        self.assertEqual(charge.image_generation_overage, 15)
        self.assertEqual(OverageCharge.objects.count(), 1)

    def test_repeated_total_is_not_billed_twice(self):
        self._track(110)
        res = self._track(110)
        self.assertEqual(res.overage_charge, Decimal("0.1000"))
        self.assertEqual(OverageCharge.objects.get(tenant=self.tenant).credits_over_limit, 10)

    def test_new_month_gets_new_record(self):
        with patch("billing.services.overage.get_current_month", return_value="2025-01"):
            self._track(110)
        with patch("billing.services.overage.get_current_month", return_value="2025-02"):
            self._track(105)
        months = dict(OverageCharge.objects.values_list("month", "credits_over_limit"))
        self.assertEqual(months, {"2025-01": 10, "2025-02": 5})

    def test_price_change_mid_month_keeps_billed_amounts(self):
        self._track(110)
        res = track_overage_usage(self.tenant.id, self.plan.id, 100, Decimal("0.02"), 120,
                                  OperationType.TEXT_GENERATION)
        self.assertEqual(res.overage_charge, Decimal("0.3000"))
        self.assertEqual(OverageCharge.objects.get(tenant=self.tenant).overage_charge_usd, Decimal("0.3000"))

    def test_unknown_operation_type(self):
        res = self._track(110, "hologram")
        self.assertFalse(res.success)
        self.assertFalse(OverageCharge.objects.exists())

    def test_current_charge_lookup(self):
        self.assertIsNone(get_current_overage_charge(self.tenant.id).overage)
        self._track(103)
        lookup = get_current_overage_charge(self.tenant.id)
        self.assertTrue(lookup.success)
        self.assertEqual(lookup.overage.credits_over_limit, 3)


class OverageLifecycleTest(TestCase):
    def setUp(self):
        plan = Plan.objects.create(name="Pro", slug="pro", ai_monthly_credits=100, allow_overage=True)
        self.tenant = Tenant.objects.create(name="ACME", plan=plan)
        self.charge = OverageCharge.objects.create(tenant=self.tenant, month="2025-03", plan=plan,
                                                   credits_over_limit=50, overage_charge_usd=Decimal("0.5"))

    def test_pending_invoiced_paid(self):
        self.assertTrue(mark_overage_invoiced(self.tenant.id, "2025-03", "INV-001").success)
        self.charge.refresh_from_db()
        self.assertEqual(self.charge.billing_status, OverageCharge.STATUS_INVOICED)
        self.assertEqual(self.charge.invoice_ref, "INV-001")
        self.assertIsNotNone(self.charge.billed_at)

        self.assertTrue(mark_overage_paid(self.tenant.id, "2025-03").success)
        self.charge.refresh_from_db()
        self.assertEqual(self.charge.billing_status, OverageCharge.STATUS_PAID)
        self.assertIsNotNone(self.charge.paid_at)

    def test_waive_with_default_reason(self):
        self.assertTrue(waive_overage_charge(self.tenant.id, "2025-03").success)
        self.charge.refresh_from_db()
        self.assertEqual(self.charge.billing_status, OverageCharge.STATUS_WAIVED)
        self.assertEqual(self.charge.waived_reason, "Waived by administrator")

    def test_paid_is_final(self):
        mark_overage_invoiced(self.tenant.id, "2025-03", "INV-001")
        mark_overage_paid(self.tenant.id, "2025-03")
        res = waive_overage_charge(self.tenant.id, "2025-03", "goodwill")
        self.assertFalse(res.success)
        self.assertEqual(res.error, "Cannot move overage charge from paid to waived")

    def test_cannot_pay_pending(self):
        self.assertFalse(mark_overage_paid(self.tenant.id, "2025-03").success)

    def test_same_status_is_noop(self):
        mark_overage_invoiced(self.tenant.id, "2025-03", "INV-001")
        self.assertTrue(mark_overage_invoiced(self.tenant.id, "2025-03", "INV-002").success)
        self.charge.refresh_from_db()
        self.assertEqual(self.charge.invoice_ref, "INV-001")

    def test_missing_charge(self):
        res = mark_overage_paid(self.tenant.id, "1999-12")
        self.assertFalse(res.success)
        self.assertEqual(res.error, "Overage charge not found")


class PlatformRevenueTest(TestCase):
    def test_paid_vs_outstanding(self):
        plan = Plan.objects.create(name="Pro", slug="pro", allow_overage=True)
        statuses = [
            (OverageCharge.STATUS_PAID, "1.2500"),
            (OverageCharge.STATUS_PAID, "0.7500"),
            (OverageCharge.STATUS_PENDING, "0.3000"),
            (OverageCharge.STATUS_INVOICED, "0.2000"),
            (OverageCharge.STATUS_WAIVED, "9.0000"),
        ]
        for i, (status, amount) in enumerate(statuses):
            tenant = Tenant.objects.create(name=f"T{i}", plan=plan)
            OverageCharge.objects.create(tenant=tenant, month="2025-04", billing_status=status,
                                         overage_charge_usd=Decimal(amount))
        other = Tenant.objects.create(name="Other month", plan=plan)
        OverageCharge.objects.create(tenant=other, month="2025-05", billing_status=OverageCharge.STATUS_PAID,
                                     overage_charge_usd=Decimal("5"))

        res = get_platform_overage_revenue("2025-04")
        self.assertTrue(res.success)
        self.assertEqual(res.total_revenue, Decimal("2.0000"))
        self.assertEqual(res.pending_revenue, Decimal("0.5000"))

    def test_empty_month(self):
        res = get_platform_overage_revenue("2030-01")
        self.assertEqual(res.total_revenue, Decimal("0"))
        self.assertEqual(res.pending_revenue, Decimal("0"))
