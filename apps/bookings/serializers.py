"""Serializers for bookings."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.core.serializers import DynamicFieldsModelSerializer
from apps.tours.models import Tour
from apps.users.serializers import UserSummarySerializer

from .models import Booking

User = get_user_model()


class BookedTourSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tour
        fields = ["id", "name", "slug"]


class BookingSerializer(DynamicFieldsModelSerializer):
    tour = BookedTourSerializer(read_only=True)
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Booking
        fields = ["id", "tour", "user", "price", "paid", "checkout_session_id", "created_at"]
        read_only_fields = fields
        extra_kwargs = {"price": {"coerce_to_string": False}}


class BookingWriteSerializer(serializers.ModelSerializer):
    """Staff writes. Tour and user are given by id."""

    tour = serializers.PrimaryKeyRelatedField(queryset=Tour.objects.all())
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.all())

    class Meta:
        model = Booking
        fields = ["id", "tour", "user", "price", "paid", "created_at"]
        read_only_fields = ["id", "created_at"]
        extra_kwargs = {"paid": {"required": False}}
