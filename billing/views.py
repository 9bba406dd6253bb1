import re

from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse

from .filters import OverageChargeFilter
from .models import OverageCharge
from .serializers.overage import (
    InvoiceOverageSerializer, OverageChargeOutSerializer, OverageRevenueSerializer, WaiveOverageSerializer,
)
from .services.overage import (
    get_platform_overage_revenue, mark_overage_invoiced, mark_overage_paid, waive_overage_charge,
)
from credits.services.balance import get_current_month

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _transition_response(charge: OverageCharge, res):
    if not res.success:
        return Response({"error": {"code": "INVALID_TRANSITION", "message": res.error}},
                        status=status.HTTP_409_CONFLICT)
    charge.refresh_from_db()
    return Response(OverageChargeOutSerializer(charge).data, status=status.HTTP_200_OK)


@extend_schema(tags=["Overage billing"])
class OverageChargeAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin, mixins.RetrieveModelMixin):
    """
    Super-admin: monthly overage charges and their billing lifecycle
    (pending -> invoiced -> paid, or waived).
    """
    permission_classes = [IsAdminUser]
    serializer_class = OverageChargeOutSerializer
    filter_backends = (DjangoFilterBackend, OrderingFilter)
    filterset_class = OverageChargeFilter
    ordering_fields = ("month", "overage_charge_usd", "updated_at")

    def get_queryset(self):
        return OverageCharge.objects.select_related("tenant", "plan").order_by("-month", "tenant_id")

    @extend_schema(request=InvoiceOverageSerializer, responses={200: OverageChargeOutSerializer,
                                                                409: OpenApiResponse(description="INVALID_TRANSITION")})
    @action(detail=True, methods=["post"])
    def invoice(self, request, pk=None):
        charge = get_object_or_404(OverageCharge, pk=pk)
        ser = InvoiceOverageSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        res = mark_overage_invoiced(charge.tenant_id, charge.month, ser.validated_data["invoice_ref"])
        return _transition_response(charge, res)

    @extend_schema(request=None, responses={200: OverageChargeOutSerializer})
    @action(detail=True, methods=["post"])
    def pay(self, request, pk=None):
        charge = get_object_or_404(OverageCharge, pk=pk)
        return _transition_response(charge, mark_overage_paid(charge.tenant_id, charge.month))

    @extend_schema(request=WaiveOverageSerializer, responses={200: OverageChargeOutSerializer})
    @action(detail=True, methods=["post"])
    def waive(self, request, pk=None):
        charge = get_object_or_404(OverageCharge, pk=pk)
        ser = WaiveOverageSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        res = waive_overage_charge(charge.tenant_id, charge.month, ser.validated_data.get("reason"))
        return _transition_response(charge, res)

    @extend_schema(
        parameters=[OpenApiParameter("month", str, description="YYYY-MM (default: current month)")],
        responses={200: OverageRevenueSerializer},
    )
    @action(detail=False, methods=["get"])
    def revenue(self, request):
        month = request.query_params.get("month") or get_current_month()
        if not MONTH_RE.match(month):
            return Response({"error": {"code": "INVALID_MONTH", "message": "month must be YYYY-MM"}},
                            status=status.HTTP_400_BAD_REQUEST)
        res = get_platform_overage_revenue(month)
        if not res.success:
            return Response({"error": {"code": "REVENUE_FAILED", "message": res.error}},
                            status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(OverageRevenueSerializer({
            "month": month, "total_revenue": res.total_revenue, "pending_revenue": res.pending_revenue,
        }).data)
