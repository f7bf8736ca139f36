from rest_framework import serializers

from tracker.services.approvals import PendingKind


class DecisionSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1)
    kind = serializers.ChoiceField(choices=[k.value for k in PendingKind])
