from rest_framework import serializers

from tracker.models import Doctor


class OrderLineSerializer(serializers.Serializer):
    medicineId = serializers.CharField()
    # Range is checked when the line is staged.
    quantity = serializers.IntegerField()


class VisitPreviewSerializer(serializers.Serializer):
    orders = OrderLineSerializer(many=True, required=False, default=list)


class VisitSubmitSerializer(VisitPreviewSerializer):
    doctorId = serializers.PrimaryKeyRelatedField(queryset=Doctor.objects.all())
    hospital = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')
    date = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True, max_length=2000, default='')
