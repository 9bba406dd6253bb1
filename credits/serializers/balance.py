from rest_framework import serializers

from credits.models import CreditBalance
from credits.services.balance import POOL_LIFETIME, POOLS


class CreditBalanceOutSerializer(serializers.ModelSerializer):
    lifetime_remaining = serializers.IntegerField(read_only=True)
    monthly_remaining = serializers.IntegerField(read_only=True)
    uses_lifetime_pool = serializers.BooleanField(read_only=True)

    class Meta:
        model = CreditBalance
        fields = (
            "tenant", "lifetime_allocated", "lifetime_used", "lifetime_remaining",
            "monthly_allocated", "monthly_used", "monthly_remaining",
            "lifetime_bonus", "monthly_bonus",
            "uses_lifetime_pool", "current_month", "last_reset_at", "updated_at",
        )
        read_only_fields = fields


class BonusCreditsSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1)
    type = serializers.ChoiceField(choices=POOLS, default=POOL_LIFETIME)


class CreditAvailabilitySerializer(serializers.Serializer):
    available = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)
    lifetime_remaining = serializers.IntegerField(allow_null=True)
    monthly_remaining = serializers.IntegerField(allow_null=True)
