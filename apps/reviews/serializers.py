"""Serializers for reviews.

Reads inline the author summary; writes take the tour from the payload (or
the nested URL) and the author from the request.
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers  # type: ignore

from apps.bookings.models import Booking
from apps.core.exceptions import Forbidden
from apps.core.serializers import DynamicFieldsModelSerializer
from apps.tours.models import Tour
from apps.users.serializers import UserSummarySerializer

from .models import Review


class ReviewSerializer(DynamicFieldsModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Review
        fields = ["id", "review", "rating", "tour", "user", "created_at"]
        read_only_fields = fields


class ReviewWriteSerializer(serializers.ModelSerializer):
    """Create and edit reviews. The tour can't change once reviewed."""

    tour = serializers.PrimaryKeyRelatedField(queryset=Tour.objects.all())

    class Meta:
        model = Review
        fields = ["id", "review", "rating", "tour", "created_at"]
        read_only_fields = ["id", "created_at"]

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        if self.instance is not None:
            self.fields["tour"].read_only = True

    def validate_rating(self, value: int) -> int:
        if not 1 <= value <= 5:
            raise serializers.ValidationError("Rating must be between 1 and 5.")
        return value

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        if self.instance is None:
            request = self.context.get("request")
            user = getattr(request, "user", None)
            tour = attrs.get("tour")
            if user is None or not Booking.objects.filter(tour=tour, user=user).exists():
                raise Forbidden("You can only review tours you have booked.")
        return attrs
