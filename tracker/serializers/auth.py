from django.contrib.auth import password_validation
from rest_framework import serializers

from tracker.models import Profile


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Username is required')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True)
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField(required=False, allow_blank=True)

    def validate_username(self, v):
        v = v.strip()
        if Profile.objects.filter(username__iexact=v).exists():
            raise serializers.ValidationError('Username already taken')
        return v

    def validate_password(self, v):
        password_validation.validate_password(v)
        return v

    def validate_name(self, v):
        v = v.strip()
        if not v:
            raise serializers.ValidationError('Name is required')
        return v
