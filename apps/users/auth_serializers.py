"""Serializers for authentication flows (signup, login, password changes)."""

from __future__ import annotations

from typing import Any

from django.contrib.auth import get_user_model  # type: ignore
from django.contrib.auth.password_validation import validate_password  # type: ignore
from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore
from django.db import transaction  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.core.exceptions import Conflict

User = get_user_model()

PASSWORDS_DIFFER = "Passwords are not the same!"

# camelCase spellings accepted from older clients
FIELD_ALIASES = {
    "passwordConfirm": "password_confirm",
    "passwordCurrent": "password_current",
}


def normalize_aliases(data: Any) -> dict[str, Any]:
    """Copy aliased keys onto their snake_case names."""
    if hasattr(data, "dict"):
        data = data.dict()
    normalized = dict(data or {})
    for alias, name in FIELD_ALIASES.items():
        if alias in normalized and name not in normalized:
            normalized[name] = normalized.pop(alias)
    return normalized


class PasswordPairMixin:
    """``password`` + ``password_confirm`` must match; validators apply."""

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        if attrs.get("password") != attrs.get("password_confirm"):
            raise serializers.ValidationError({"password_confirm": PASSWORDS_DIFFER})
        try:
            validate_password(attrs["password"])
        except DjangoValidationError as exc:
            raise serializers.ValidationError({"password": list(exc.messages)})
        attrs.pop("password_confirm", None)
        return attrs


class SignupSerializer(PasswordPairMixin, serializers.Serializer):
    name = serializers.CharField(
        min_length=3,
        max_length=30,
        error_messages={
            "min_length": "A user name must have at least 3 characters.",
            "max_length": "A user name must have less or equal than 30 characters.",
        },
    )
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True, trim_whitespace=False)
    password_confirm = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate_email(self, value: str) -> str:
        value = value.lower()
        if User.objects.filter(email__iexact=value).exists():
            raise Conflict(f"Duplicate field value: {value}. Please use another value!")
        return value

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        password = validated_data.pop("password")
        return User.objects.create_user(password=password, **validated_data)


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(PasswordPairMixin, serializers.Serializer):
    password = serializers.CharField(min_length=8, trim_whitespace=False)
    password_confirm = serializers.CharField(trim_whitespace=False)


class UpdatePasswordSerializer(PasswordPairMixin, serializers.Serializer):
    password_current = serializers.CharField(trim_whitespace=False)
    password = serializers.CharField(min_length=8, trim_whitespace=False)
    password_confirm = serializers.CharField(trim_whitespace=False)


class UpdateMeSerializer(serializers.ModelSerializer):
    """Self-service profile edits: only name and email are writable here."""

    class Meta:
        model = User
        fields = ["name", "email"]
        extra_kwargs = {"name": {"required": False}, "email": {"required": False}}

    def validate_email(self, value: str) -> str:
        value = value.lower()
        taken = User.objects.filter(email__iexact=value).exclude(pk=self.instance.pk).exists()
        if taken:
            raise Conflict(f"Duplicate field value: {value}. Please use another value!")
        return value
