from rest_framework.routers import DefaultRouter

router = DefaultRouter()

# Admin Tenants & Plans
from tenants.views.tenant import TenantAdminViewSet, PlanAdminViewSet
router.register(r"admin/tenants", TenantAdminViewSet, basename="admin-tenants")
router.register(r"admin/plans", PlanAdminViewSet, basename="admin-plans")

# Admin Credit balances (pk = tenant id)
from credits.views import CreditBalanceAdminViewSet
router.register(r"admin/credits", CreditBalanceAdminViewSet, basename="admin-credits")

# Admin Operation limits (pk = tenant id)
from limits.views import TenantLimitsAdminViewSet
router.register(r"admin/limits", TenantLimitsAdminViewSet, basename="admin-limits")

# Admin Usage events & monthly summaries
from usage.views import UsageEventAdminViewSet, MonthlyUsageSummaryAdminViewSet
router.register(r"admin/usage/events", UsageEventAdminViewSet, basename="admin-usage-events")
router.register(r"admin/usage/summaries", MonthlyUsageSummaryAdminViewSet, basename="admin-usage-summaries")

# Admin Overage charges
from billing.views import OverageChargeAdminViewSet
router.register(r"admin/billing/overages", OverageChargeAdminViewSet, basename="admin-overages")
