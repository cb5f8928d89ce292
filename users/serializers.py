"""Serializers for the auth and onboarding endpoints.

- UserSerializer: the user payload returned to the frontend (camelCase keys).
- Request serializers (signup, login, email verification, resend,
  onboarding) only coerce types and document the request bodies. Which
  fields are required is decided by `users.services`, so a request with
  several empty fields gets one answer listing all of them.
"""

from rest_framework import serializers

from .models import User


def _optional_char(**kwargs):
    return serializers.CharField(required=False, allow_blank=True, allow_null=True, **kwargs)


class UserSerializer(serializers.ModelSerializer):
    """Profile fields exposed to the authenticated user."""

    fullName = serializers.CharField(source="full_name", read_only=True)
    profilePicture = serializers.CharField(source="profile_picture", read_only=True)
    nativeLanguage = serializers.CharField(source="native_language", read_only=True)
    learningLanguage = serializers.CharField(source="learning_language", read_only=True)
    isOnboarded = serializers.BooleanField(source="is_onboarded", read_only=True)
    isEmailVerified = serializers.BooleanField(source="email_verified", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "fullName",
            "profilePicture",
            "bio",
            "nativeLanguage",
            "learningLanguage",
            "location",
            "isOnboarded",
            "isEmailVerified",
        ]
        read_only_fields = fields


class SignupSerializer(serializers.Serializer):
    email = _optional_char(max_length=254)
    password = _optional_char(write_only=True, trim_whitespace=False)
    fullName = _optional_char(source="full_name", max_length=150)


class LoginSerializer(serializers.Serializer):
    email = _optional_char()
    password = _optional_char(write_only=True, trim_whitespace=False)


class VerifyEmailSerializer(serializers.Serializer):
    email = _optional_char()
    otp = _optional_char()


class ResendVerificationSerializer(serializers.Serializer):
    email = _optional_char()


class OnboardingSerializer(serializers.Serializer):
    fullName = _optional_char(source="full_name", max_length=150)
    bio = _optional_char()
    nativeLanguage = _optional_char(source="native_language", max_length=64)
    learningLanguage = _optional_char(source="learning_language", max_length=64)
    location = _optional_char(max_length=128)
