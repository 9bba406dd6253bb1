import django_filters

from .models import OverageCharge


class OverageChargeFilter(django_filters.FilterSet):
    month = django_filters.CharFilter(field_name="month")
    month_from = django_filters.CharFilter(field_name="month", lookup_expr="gte")
    month_to = django_filters.CharFilter(field_name="month", lookup_expr="lte")

    class Meta:
        model = OverageCharge
        fields = ("tenant", "billing_status", "month")
