from django.contrib.auth import get_user_model
from django.test import TestCase, Client

from credits.models import CreditBalance
from credits.services.balance import get_credit_balance
from tenants.models import Plan, Tenant


class CreditsAdminApiTest(TestCase):
    def setUp(self):
        self.plan = Plan.objects.create(name="Free", slug="free", ai_lifetime_credits=20)
        self.tenant = Tenant.objects.create(name="ACME", plan=self.plan)
        self.admin = get_user_model().objects.create_superuser("root", "root@example.com", "pass")
        self.client = Client()
        self.client.force_login(self.admin)

    def test_requires_admin(self):
        resp = Client().get(f"/api/v1/admin/credits/{self.tenant.id}/")
        self.assertIn(resp.status_code, (401, 403))

    def test_retrieve(self):
        resp = self.client.get(f"/api/v1/admin/credits/{self.tenant.id}/")
        self.assertEqual(resp.status_code, 200, resp.content)
        data = resp.json()
        self.assertEqual(data["lifetime_allocated"], 20)
        self.assertEqual(data["lifetime_remaining"], 20)
        self.assertTrue(data["uses_lifetime_pool"])

    def test_retrieve_unknown_tenant(self):
        resp = self.client.get("/api/v1/admin/credits/999999/")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"]["code"], "NOT_FOUND")

    def test_bonus(self):
        resp = self.client.post(f"/api/v1/admin/credits/{self.tenant.id}/bonus/",
                                data={"amount": 15, "type": "lifetime"}, content_type="application/json")
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertEqual(resp.json()["lifetime_allocated"], 35)

    def test_bonus_rejects_zero(self):
        resp = self.client.post(f"/api/v1/admin/credits/{self.tenant.id}/bonus/",
                                data={"amount": 0}, content_type="application/json")
        self.assertEqual(resp.status_code, 400)

    def test_reset(self):
        get_credit_balance(self.tenant.id)
        CreditBalance.objects.filter(tenant=self.tenant).update(monthly_used=9, lifetime_used=4)
        resp = self.client.post(f"/api/v1/admin/credits/{self.tenant.id}/reset/")
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertEqual(resp.json()["monthly_used"], 0)
        self.assertEqual(resp.json()["lifetime_used"], 4)

    def test_availability(self):
        resp = self.client.get(f"/api/v1/admin/credits/{self.tenant.id}/availability/?credits=25")
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertFalse(resp.json()["available"])

        resp = self.client.get(f"/api/v1/admin/credits/{self.tenant.id}/availability/?credits=abc")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"]["code"], "INVALID_CREDITS")
