from rest_framework import serializers

from usage.models import OperationType


class OperationCheckInSerializer(serializers.Serializer):
    operation_type = serializers.ChoiceField(choices=OperationType.choices)
    requested_count = serializers.IntegerField(min_value=1, default=1)


class OperationLimitOutSerializer(serializers.Serializer):
    allowed = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)
    remaining = serializers.IntegerField(allow_null=True)
    limit = serializers.IntegerField(allow_null=True)
    upgrade_required = serializers.BooleanField()
    is_overage = serializers.BooleanField()
    overage = serializers.IntegerField(allow_null=True)


class UsageTripleSerializer(serializers.Serializer):
    used = serializers.IntegerField()
    limit = serializers.IntegerField(allow_null=True)
    remaining = serializers.IntegerField(allow_null=True)


class RemainingOperationsSerializer(serializers.Serializer):
    credits = UsageTripleSerializer()
    images = UsageTripleSerializer()
    text = UsageTripleSerializer()
    tts = UsageTripleSerializer()
