from dataclasses import asdict

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiResponse

from tenants.models import Tenant
from .serializers.limits import OperationCheckInSerializer, OperationLimitOutSerializer, RemainingOperationsSerializer
from .services.enforcer import check_operation_limit, get_remaining_operations


@extend_schema(tags=["Limits"])
class TenantLimitsAdminViewSet(viewsets.GenericViewSet):
    """
    Super-admin: per-operation monthly limits of a tenant (pk = tenant id).
    """
    permission_classes = [IsAdminUser]
    serializer_class = RemainingOperationsSerializer
    lookup_value_regex = r"\d+"

    @extend_schema(responses={200: RemainingOperationsSerializer, 404: OpenApiResponse(description="NOT_FOUND")})
    def retrieve(self, request, pk=None):
        try:
            data = get_remaining_operations(int(pk))
        except Tenant.DoesNotExist:
            return Response({"error": {"code": "NOT_FOUND", "message": "Tenant not found"}},
                            status=status.HTTP_404_NOT_FOUND)
        return Response(RemainingOperationsSerializer(data).data)

    @extend_schema(request=OperationCheckInSerializer, responses={200: OperationLimitOutSerializer})
    @action(detail=True, methods=["post"], url_path="check")
    def check_operation(self, request, pk=None):
        ser = OperationCheckInSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        res = check_operation_limit(int(pk), ser.validated_data["operation_type"],
                                    ser.validated_data["requested_count"])
        return Response(OperationLimitOutSerializer(asdict(res)).data)
