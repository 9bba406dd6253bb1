from rest_framework import serializers

from billing.models import OverageCharge


class OverageChargeOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = OverageCharge
        fields = (
            "id", "tenant", "month", "plan", "plan_credit_limit", "plan_overage_price",
            "credits_over_limit", "overage_charge_usd",
            "text_generation_overage", "image_generation_overage", "tts_overage", "video_overage",
            "billing_status", "invoice_ref", "billed_at", "paid_at", "waived_reason",
            "created_at", "updated_at",
        )
        read_only_fields = fields


class InvoiceOverageSerializer(serializers.Serializer):
    invoice_ref = serializers.CharField(max_length=128)


class WaiveOverageSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class OverageRevenueSerializer(serializers.Serializer):
    month = serializers.CharField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=4)
    pending_revenue = serializers.DecimalField(max_digits=14, decimal_places=4)
