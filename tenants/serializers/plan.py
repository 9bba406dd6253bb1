from rest_framework import serializers
from ..models import Plan


class PlanOutSerializer(serializers.ModelSerializer):
    monthly_credits = serializers.IntegerField(read_only=True)

    class Meta:
        model = Plan
        fields = (
            "id", "name", "slug", "active",
            "ai_lifetime_credits", "ai_monthly_credits", "ai_credits_per_month", "monthly_credits",
            "max_images_per_month", "max_text_per_month", "max_tts_per_month", "max_videos_per_month",
            "allow_overage", "overage_price_per_credit", "created_at",
        )
        read_only_fields = ("id", "created_at")


class PlanCreateUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Plan
        fields = (
            "name", "slug", "active",
            "ai_lifetime_credits", "ai_monthly_credits", "ai_credits_per_month",
            "max_images_per_month", "max_text_per_month", "max_tts_per_month", "max_videos_per_month",
            "allow_overage", "overage_price_per_credit",
        )
