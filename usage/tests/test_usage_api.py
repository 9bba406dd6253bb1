from django.contrib.auth import get_user_model
from django.test import TestCase, Client

from credits.services.balance import get_current_month
from tenants.models import Plan, Tenant
from usage.services.metering import record_usage


class UsageAdminApiTest(TestCase):
    def setUp(self):
        plan = Plan.objects.create(name="Pro", slug="pro", ai_monthly_credits=1000)
        self.tenant = Tenant.objects.create(name="ACME", plan=plan)
        other = Tenant.objects.create(name="Other", plan=plan)
        record_usage(tenant_id=self.tenant.id, operation_type="text_generation")
        record_usage(tenant_id=self.tenant.id, operation_type="text_generation")
        record_usage(tenant_id=self.tenant.id, operation_type="image_generation", count=3)
        record_usage(tenant_id=other.id, operation_type="text_to_speech")
        admin = get_user_model().objects.create_superuser("root", "root@example.com", "pass")
        self.client = Client()
        self.client.force_login(admin)

    def test_events_with_summary(self):
        resp = self.client.get(f"/api/v1/admin/usage/events/?tenant_id={self.tenant.id}")
        self.assertEqual(resp.status_code, 200, resp.content)
        data = resp.json()
        self.assertEqual(len(data["results"]), 3)
        summary = {row["operation_type"]: row for row in data["summary"]}
        self.assertEqual(summary["text_generation"]["total_calls"], 2)
        self.assertEqual(summary["image_generation"]["total_units"], 3)
        self.assertEqual(summary["image_generation"]["total_credits"], 75)

    def test_events_filter_by_type(self):
        resp = self.client.get("/api/v1/admin/usage/events/?operation_type=text_to_speech")
        self.assertEqual(len(resp.json()["results"]), 1)

    def test_monthly_summaries(self):
        resp = self.client.get(f"/api/v1/admin/usage/summaries/?tenant_id={self.tenant.id}&month={get_current_month()}")
        self.assertEqual(resp.status_code, 200, resp.content)
        rows = resp.json()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["text_calls"], 2)
        self.assertEqual(rows[0]["total_images"], 3)
        self.assertEqual(rows[0]["credits_used"], 77)
