from dataclasses import asdict

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse

from .serializers.balance import BonusCreditsSerializer, CreditAvailabilitySerializer, CreditBalanceOutSerializer
from .services.balance import add_bonus_credits, get_credit_balance, has_credits_available, reset_monthly_credits


def _not_found():
    return Response({"error": {"code": "NOT_FOUND", "message": "Tenant or credit balance not found"}},
                    status=status.HTTP_404_NOT_FOUND)


class CreditBalanceAdminViewSet(viewsets.GenericViewSet):
    """
    Super-admin: dual credit balance of a tenant (pk = tenant id).
    """
    permission_classes = [IsAdminUser]
    serializer_class = CreditBalanceOutSerializer
    lookup_value_regex = r"\d+"

    @extend_schema(tags=["Credits"], responses={200: CreditBalanceOutSerializer, 404: OpenApiResponse(description="NOT_FOUND")})
    def retrieve(self, request, pk=None):
        balance = get_credit_balance(int(pk))
        if balance is None:
            return _not_found()
        return Response(CreditBalanceOutSerializer(balance).data)

    @extend_schema(tags=["Credits"], request=BonusCreditsSerializer, responses={200: CreditBalanceOutSerializer})
    @action(detail=True, methods=["post"])
    def bonus(self, request, pk=None):
        ser = BonusCreditsSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        res = add_bonus_credits(int(pk), ser.validated_data["amount"], ser.validated_data["type"])
        if not res.success:
            return Response({"error": {"code": "BONUS_FAILED", "message": res.error}},
                            status=status.HTTP_400_BAD_REQUEST)
        balance = get_credit_balance(int(pk))
        return Response(CreditBalanceOutSerializer(balance).data)

    @extend_schema(tags=["Credits"], request=None, responses={200: CreditBalanceOutSerializer})
    @action(detail=True, methods=["post"])
    def reset(self, request, pk=None):
        res = reset_monthly_credits(int(pk))
        if not res.success:
            return _not_found()
        return Response(CreditBalanceOutSerializer(get_credit_balance(int(pk))).data)

    @extend_schema(
        tags=["Credits"],
        parameters=[OpenApiParameter("credits", int, description="credits required (default 1)")],
        responses={200: CreditAvailabilitySerializer},
    )
    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):
        try:
            credits = int(request.query_params.get("credits", 1))
        except ValueError:
            return Response({"error": {"code": "INVALID_CREDITS", "message": "credits must be an integer"}},
                            status=status.HTTP_400_BAD_REQUEST)
        res = has_credits_available(int(pk), credits)
        return Response(CreditAvailabilitySerializer(asdict(res)).data)
