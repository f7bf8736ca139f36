from rest_framework import serializers


class DoctorCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    specialization = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    hospital = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
