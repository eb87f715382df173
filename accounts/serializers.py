from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth import get_user_model
from rest_framework import serializers

User = get_user_model()


class LoginSerializer(TokenObtainPairSerializer):
    """
    JWT login with phone number and password.
    Only staff that belong to at least one active clinic (or superusers) get tokens.
    """

    def validate(self, attrs):
        phone = attrs.get("phone")
        password = attrs.get("password")

        if not phone or not password:
            raise serializers.ValidationError('Must include "phone" and "password".')

        user = User.objects.filter(phone=phone, is_active=True).first()
        if user is None or not user.check_password(password):
            raise serializers.ValidationError(
                {"detail": "No active account found with the given credentials"}
            )

        if not user.is_superuser and not user.clinic_memberships.filter(
            is_active=True, clinic__is_active=True
        ).exists():
            raise serializers.ValidationError({"detail": "Access denied. Clinic staff only."})

        return super().validate(attrs)

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)

        token["name"] = user.name
        token["role"] = user.role
        return token
