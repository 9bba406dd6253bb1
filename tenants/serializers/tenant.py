from rest_framework import serializers
from ..models import Tenant, Plan


class TenantOutSerializer(serializers.ModelSerializer):
    plan = serializers.SerializerMethodField()
    is_byok = serializers.BooleanField(read_only=True)

    class Meta:
        model = Tenant
        fields = (
            "id", "name", "status", "paused_reason", "plan", "support_email",
            "use_own_gemini_api_key", "is_byok", "metadata",
            "created_at", "updated_at", "last_usage_at",
        )
        read_only_fields = ("id", "created_at", "updated_at", "last_usage_at")

    def get_plan(self, obj: Tenant):
        p: Plan = obj.plan
        return {
            "id": p.id,
            "slug": p.slug,
            "lifetime_credits": p.lifetime_credits,
            "monthly_credits": p.monthly_credits,
            "allow_overage": p.allow_overage,
        }


class TenantCreateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tenant
        fields = ("name", "plan", "support_email", "metadata")


class TenantUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tenant
        fields = ("plan", "support_email", "metadata", "status", "paused_reason")


class TenantApiKeySerializer(serializers.Serializer):
    use_own_gemini_api_key = serializers.BooleanField()
    gemini_api_key_id = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs["use_own_gemini_api_key"] and not attrs.get("gemini_api_key_id"):
            raise serializers.ValidationError({"gemini_api_key_id": "required when using an own API key"})
        return attrs
