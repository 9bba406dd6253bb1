from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, Client

from billing.models import OverageCharge
from tenants.models import Plan, Tenant


class OverageAdminApiTest(TestCase):
    def setUp(self):
        plan = Plan.objects.create(name="Pro", slug="pro", ai_monthly_credits=100, allow_overage=True)
        self.tenant = Tenant.objects.create(name="ACME", plan=plan)
        self.charge = OverageCharge.objects.create(tenant=self.tenant, month="2025-06", plan=plan,
                                                   credits_over_limit=40, overage_charge_usd=Decimal("0.4"))
        OverageCharge.objects.create(tenant=self.tenant, month="2025-07", plan=plan,
                                     billing_status=OverageCharge.STATUS_WAIVED)
        admin = get_user_model().objects.create_superuser("root", "root@example.com", "pass")
        self.client = Client()
        self.client.force_login(admin)

    def test_list_filtered(self):
        resp = self.client.get("/api/v1/admin/billing/overages/?billing_status=pending")
        self.assertEqual(resp.status_code, 200, resp.content)
        rows = resp.json()
        self.assertEqual([r["month"] for r in rows], ["2025-06"])

        resp = self.client.get("/api/v1/admin/billing/overages/?month_from=2025-07")
        self.assertEqual([r["month"] for r in resp.json()], ["2025-07"])

    def test_invoice_then_pay(self):
        url = f"/api/v1/admin/billing/overages/{self.charge.id}/"
        resp = self.client.post(url + "invoice/", data={"invoice_ref": "INV-9"}, content_type="application/json")
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertEqual(resp.json()["billing_status"], "invoiced")

        resp = self.client.post(url + "pay/")
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertEqual(resp.json()["billing_status"], "paid")

    def test_invalid_transition(self):
        resp = self.client.post(f"/api/v1/admin/billing/overages/{self.charge.id}/pay/")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["error"]["code"], "INVALID_TRANSITION")

    def test_waive(self):
        resp = self.client.post(f"/api/v1/admin/billing/overages/{self.charge.id}/waive/",
                                data={"reason": "beta customer"}, content_type="application/json")
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertEqual(resp.json()["waived_reason"], "beta customer")

    def test_revenue(self):
        resp = self.client.get("/api/v1/admin/billing/overages/revenue/?month=2025-06")
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertEqual(resp.json()["month"], "2025-06")
        self.assertEqual(Decimal(resp.json()["pending_revenue"]), Decimal("0.4"))

    def test_revenue_bad_month(self):
        resp = self.client.get("/api/v1/admin/billing/overages/revenue/?month=2025-13")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"]["code"], "INVALID_MONTH")
