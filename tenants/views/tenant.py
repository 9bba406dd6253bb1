from django.shortcuts import get_object_or_404
from django.db import transaction
from rest_framework import viewsets, status, mixins
from rest_framework.permissions import IsAdminUser
from rest_framework.decorators import action
from rest_framework.response import Response

from ..models import Tenant, Plan
from ..serializers.tenant import (
    TenantOutSerializer, TenantCreateSerializer, TenantUpdateSerializer, TenantApiKeySerializer
)
from ..serializers.plan import PlanOutSerializer, PlanCreateUpdateSerializer


class TenantAdminViewSet(viewsets.GenericViewSet,
                         mixins.ListModelMixin,
                         mixins.RetrieveModelMixin):
    """
    Super-admin: tenants CRUD + actions (suspend/resume AI operations, own API key).
    """
    permission_classes = [IsAdminUser]
    serializer_class = TenantOutSerializer
    queryset = Tenant.objects.select_related("plan").all().order_by("-created_at")

    @transaction.atomic
    def create(self, request):
        ser = TenantCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        tenant = ser.save()
        return Response(TenantOutSerializer(tenant).data, status=status.HTTP_201_CREATED)

    @transaction.atomic
    def partial_update(self, request, pk=None):
        tenant = get_object_or_404(Tenant, pk=pk)
        ser = TenantUpdateSerializer(instance=tenant, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response(TenantOutSerializer(tenant).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def suspend(self, request, pk=None):
        tenant = get_object_or_404(Tenant, pk=pk)
        tenant.status = Tenant.STATUS_SUSPENDED
        tenant.paused_reason = (request.data.get("reason") or "").strip()
        tenant.save(update_fields=["status", "paused_reason", "updated_at"])
        return Response({"detail": "tenant suspended"}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def resume(self, request, pk=None):
        tenant = get_object_or_404(Tenant, pk=pk)
        tenant.status = Tenant.STATUS_ACTIVE
        tenant.paused_reason = ""
        tenant.save(update_fields=["status", "paused_reason", "updated_at"])
        return Response({"detail": "tenant resumed"}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="set-api-key")
    def set_api_key(self, request, pk=None):
        tenant = get_object_or_404(Tenant, pk=pk)
        ser = TenantApiKeySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        tenant.use_own_gemini_api_key = ser.validated_data["use_own_gemini_api_key"]
        tenant.gemini_api_key_id = ser.validated_data.get("gemini_api_key_id", "")
        tenant.save(update_fields=["use_own_gemini_api_key", "gemini_api_key_id", "updated_at"])
        return Response(TenantOutSerializer(tenant).data, status=status.HTTP_200_OK)


class PlanAdminViewSet(viewsets.GenericViewSet,
                       mixins.ListModelMixin,
                       mixins.RetrieveModelMixin):
    """
    Super-admin: plans management.
    """
    permission_classes = [IsAdminUser]
    serializer_class = PlanOutSerializer
    queryset = Plan.objects.all().order_by("-created_at")

    @transaction.atomic
    def create(self, request):
        ser = PlanCreateUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        p = ser.save()
        return Response(PlanOutSerializer(p).data, status=status.HTTP_201_CREATED)

    @transaction.atomic
    def partial_update(self, request, pk=None):
        p = get_object_or_404(Plan, pk=pk)
        ser = PlanCreateUpdateSerializer(instance=p, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response(PlanOutSerializer(p).data, status=status.HTTP_200_OK)
