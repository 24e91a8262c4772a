"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.core.serializers import DynamicFieldsModelSerializer

User = get_user_model()


class UserSerializer(DynamicFieldsModelSerializer):
    """Account as returned by the API. Never exposes credentials."""

    class Meta:
        model = User
        fields = ["id", "name", "email", "photo", "role", "created_at"]
        read_only_fields = ["id", "role", "photo", "created_at"]


class UserAdminSerializer(DynamicFieldsModelSerializer):
    """Admin edits of other accounts (password changes go elsewhere)."""

    class Meta:
        model = User
        fields = ["id", "name", "email", "photo", "role", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_email(self, value: str) -> str:
        return value.lower()


class UserSummarySerializer(serializers.ModelSerializer):
    """Author shown next to a review."""

    class Meta:
        model = User
        fields = ["id", "name", "photo"]


class GuideSerializer(serializers.ModelSerializer):
    """Guide shown on a tour."""

    class Meta:
        model = User
        fields = ["id", "name", "email", "photo", "role"]
