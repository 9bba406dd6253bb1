from decimal import Decimal

from django.test import TestCase

from billing.models import OverageCharge
from credits.models import CreditBalance
from credits.services.balance import get_current_month
from tenants.models import Plan, Tenant
from usage.models import MonthlyUsageSummary, OperationType, UsageEvent, UsageQuota
from usage.services.metering import UsageMetrics, record_usage


class RecordUsageTest(TestCase):
    def setUp(self):
        self.plan = Plan.objects.create(name="Pro", slug="pro", ai_monthly_credits=100)
        self.tenant = Tenant.objects.create(name="ACME", plan=self.plan)
        self.month = get_current_month()

    def test_event_summary_quota_and_balance(self):
        out = record_usage(tenant_id=self.tenant.id, operation_type=OperationType.IMAGE_GENERATION,
                           count=2, feature="ad_image", request_id="req_42")
        self.assertEqual(out.credits, 50)
        self.assertIsNone(out.overage)

        event = UsageEvent.objects.get(pk=out.event.pk)
        self.assertEqual((event.count, event.credits, event.api_key_type), (2, 50, UsageEvent.KEY_PLATFORM))

        summary = MonthlyUsageSummary.objects.get(tenant=self.tenant, month=self.month)
        self.assertEqual(summary.total_images, 2)
        self.assertEqual(summary.total_operations, 1)
        self.assertEqual(summary.credits_used, 50)

        quota = UsageQuota.objects.get(tenant=self.tenant, month=self.month)
        self.assertEqual((quota.operations, quota.credits_used), (1, 50))

        self.assertEqual(CreditBalance.objects.get(tenant=self.tenant).monthly_used, 50)
        self.tenant.refresh_from_db()
        self.assertIsNotNone(self.tenant.last_usage_at)

    def test_counters_accumulate(self):
        for _ in range(3):
            record_usage(tenant_id=self.tenant.id, operation_type="text_generation")
        record_usage(tenant_id=self.tenant.id, operation_type="video_generation")
        summary = MonthlyUsageSummary.objects.get(tenant=self.tenant, month=self.month)
        self.assertEqual(summary.text_calls, 3)
        self.assertEqual(summary.video_total, 1)
        self.assertEqual(summary.total_operations, 4)
        self.assertEqual(summary.credits_used, 53)

    def test_company_owned_key_is_free(self):
        out = record_usage(tenant_id=self.tenant.id, operation_type="text_to_speech",
                           api_key_type=UsageEvent.KEY_COMPANY)
        self.assertEqual(out.credits, 0)
        self.assertFalse(CreditBalance.objects.filter(tenant=self.tenant).exists())

    def test_byok_tenant_is_recorded_as_company_owned(self):
        self.tenant.use_own_gemini_api_key = True
        self.tenant.gemini_api_key_id = "key_9"
        self.tenant.save()
        out = record_usage(tenant_id=self.tenant.id, operation_type="text_generation")
        self.assertEqual(out.event.api_key_type, UsageEvent.KEY_COMPANY)
        self.assertEqual(out.credits, 0)

    def test_unknown_operation_type(self):
        with self.assertRaises(ValueError):
            record_usage(tenant_id=self.tenant.id, operation_type="hologram")

    def test_overage_billed_past_monthly_credits(self):
        self.plan.allow_overage = True
        self.plan.overage_price_per_credit = Decimal("0.02")
        self.plan.save()
        for _ in range(2):
            out = record_usage(tenant_id=self.tenant.id, operation_type="video_generation")
        record_usage(tenant_id=self.tenant.id, operation_type="text_to_speech")

        self.assertTrue(out.overage.success)
        charge = OverageCharge.objects.get(tenant=self.tenant, month=self.month)
        self.assertEqual(charge.credits_over_limit, 5)
        self.assertEqual(charge.overage_charge_usd, Decimal("0.1000"))
        self.assertEqual(charge.tts_overage, 5)
        self.assertEqual(charge.plan_credit_limit, 100)

    def test_model_metrics_and_costs(self):
        out = record_usage(tenant_id=self.tenant.id, operation_type="image_generation", count=2,
                           model="imagen-4")
        event = UsageEvent.objects.get(pk=out.event.pk)
        self.assertEqual(event.model, "imagen-4")
        self.assertEqual(event.image_count, 2)
        self.assertEqual(event.raw_cost, Decimal("0.080000"))
        self.assertEqual(event.platform_cost, Decimal("0.160000"))

        out = record_usage(tenant_id=self.tenant.id, operation_type="text_to_speech", model="gemini-tts",
                           metrics=UsageMetrics(character_count=1000, audio_seconds=40))
        event = UsageEvent.objects.get(pk=out.event.pk)
        self.assertEqual((event.character_count, event.audio_seconds), (1000, 40))
        self.assertEqual(event.raw_cost, Decimal("0.016000"))

    def test_company_owned_key_has_no_platform_cost(self):
        out = record_usage(tenant_id=self.tenant.id, operation_type="image_generation", model="imagen-4",
                           api_key_type=UsageEvent.KEY_COMPANY)
        event = UsageEvent.objects.get(pk=out.event.pk)
        self.assertEqual(event.image_count, 1)
        self.assertEqual(event.platform_cost, Decimal("0"))
