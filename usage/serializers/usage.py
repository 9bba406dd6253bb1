from rest_framework import serializers

from usage.models import MonthlyUsageSummary, UsageEvent


class UsageEventOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = UsageEvent
        fields = ("id", "tenant", "operation_type", "count", "credits", "api_key_type",
                  "feature", "request_id", "model", "input_tokens", "output_tokens", "image_count",
                  "character_count", "audio_seconds", "raw_cost", "platform_cost", "created_at")
        read_only_fields = fields


class MonthlyUsageSummaryOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = MonthlyUsageSummary
        fields = ("id", "tenant", "month", "total_images", "text_calls", "tts_calls", "video_total",
                  "total_operations", "credits_used", "updated_at")
        read_only_fields = fields
