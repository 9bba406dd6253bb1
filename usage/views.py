from rest_framework import viewsets, mixins
from rest_framework.permissions import IsAdminUser
from django.db.models import Count, Sum
from .models import MonthlyUsageSummary, UsageEvent
from .serializers.usage import MonthlyUsageSummaryOutSerializer, UsageEventOutSerializer


class UsageEventAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin):
    """
    Super-admin: AI usage events (filterable via query params).
    """
    permission_classes = [IsAdminUser]
    serializer_class = UsageEventOutSerializer

    def get_queryset(self):
        qs = UsageEvent.objects.select_related("tenant").order_by("-created_at")
        tenant_id = self.request.query_params.get("tenant_id")
        operation_type = self.request.query_params.get("operation_type")
        api_key_type = self.request.query_params.get("api_key_type")
        date_from = self.request.query_params.get("from")
        date_to = self.request.query_params.get("to")
        if tenant_id:
            qs = qs.filter(tenant_id=tenant_id)
        if operation_type:
            qs = qs.filter(operation_type=operation_type)
        if api_key_type:
            qs = qs.filter(api_key_type=api_key_type)
        if date_from:
            qs = qs.filter(created_at__gte=date_from)
        if date_to:
            qs = qs.filter(created_at__lt=date_to)
        return qs

    # aggregated summary next to the rows
    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        qs = self.get_queryset()
        agg = (qs.order_by().values("operation_type")
               .annotate(total_calls=Count("id"), total_units=Sum("count"), total_credits=Sum("credits"),
                         total_cost=Sum("platform_cost")))
        response.data = {"results": response.data, "summary": list(agg)}
        return response


class MonthlyUsageSummaryAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin):
    """
    Super-admin: per-month counters by tenant.
    """
    permission_classes = [IsAdminUser]
    serializer_class = MonthlyUsageSummaryOutSerializer

    def get_queryset(self):
        qs = MonthlyUsageSummary.objects.select_related("tenant").order_by("-month", "tenant_id")
        tenant_id = self.request.query_params.get("tenant_id")
        month = self.request.query_params.get("month")
        if tenant_id:
            qs = qs.filter(tenant_id=tenant_id)
        if month:
            qs = qs.filter(month=month)
        return qs
