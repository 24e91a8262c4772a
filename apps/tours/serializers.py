"""Serializers for the tour catalog."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.core.serializers import DynamicFieldsModelSerializer
from apps.reviews.serializers import ReviewSerializer
from apps.users.serializers import GuideSerializer

from .models import Tour, TourLocation, TourStartDate

User = get_user_model()


def _point(lat: float | None, lng: float | None, **extra: Any) -> dict[str, Any] | None:
    if lat is None or lng is None:
        return None
    return {"type": "Point", "coordinates": [lng, lat], **extra}


def _parse_point(data: Any) -> tuple[float, float]:
    """GeoJSON point -> (lat, lng)."""
    if not isinstance(data, dict):
        raise serializers.ValidationError("Expected a GeoJSON Point object.")
    coordinates = data.get("coordinates")
    if data.get("type", "Point") != "Point" or not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
        raise serializers.ValidationError("Coordinates must be [longitude, latitude].")
    try:
        lng, lat = float(coordinates[0]), float(coordinates[1])
    except (TypeError, ValueError):
        raise serializers.ValidationError("Coordinates must be numbers.")
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise serializers.ValidationError("Coordinates are out of range.")
    return lat, lng


class StartLocationField(serializers.Field):
    """Exposes the flat start_* columns as one GeoJSON point."""

    def __init__(self, **kwargs: Any):
        kwargs["source"] = "*"
        super().__init__(**kwargs)

    def to_representation(self, tour: Tour) -> dict[str, Any] | None:
        return _point(
            tour.start_latitude,
            tour.start_longitude,
            address=tour.start_address,
            description=tour.start_description,
        )

    def to_internal_value(self, data: Any) -> dict[str, Any]:
        lat, lng = _parse_point(data)
        return {
            "start_latitude": lat,
            "start_longitude": lng,
            "start_address": str(data.get("address", "")),
            "start_description": str(data.get("description", "")),
        }


class TourLocationSerializer(serializers.ModelSerializer):
    type = serializers.SerializerMethodField()
    coordinates = serializers.SerializerMethodField()

    class Meta:
        model = TourLocation
        fields = ["id", "type", "coordinates", "address", "description", "day"]

    def get_type(self, obj: TourLocation) -> str:
        return "Point"

    def get_coordinates(self, obj: TourLocation) -> list[float]:
        return [obj.longitude, obj.latitude]

    def to_internal_value(self, data: Any) -> dict[str, Any]:
        lat, lng = _parse_point(data)
        try:
            day = int(data.get("day", 1))
        except (TypeError, ValueError):
            raise serializers.ValidationError({"day": "A valid integer is required."})
        return {
            "latitude": lat,
            "longitude": lng,
            "address": str(data.get("address", "")),
            "description": str(data.get("description", "")),
            "day": day,
        }


class StartDatesField(serializers.ListField):
    """Departure dates, stored one row per date."""

    child = serializers.DateTimeField()

    def to_representation(self, data):  # type: ignore
        if hasattr(data, "all"):
            data = [item.starts_at for item in data.all()]
        return super().to_representation(data)


class GuideField(serializers.PrimaryKeyRelatedField):
    """Written as account ids, read back as guide summaries."""

    def use_pk_only_optimization(self) -> bool:
        return False

    def to_representation(self, value):  # type: ignore
        return GuideSerializer(value).data


class TourSerializer(DynamicFieldsModelSerializer):
    start_location = StartLocationField(required=False)
    locations = TourLocationSerializer(many=True, required=False)
    start_dates = StartDatesField(required=False)
    guides = GuideField(many=True, required=False, queryset=User.objects.active())
    duration_weeks = serializers.ReadOnlyField()

    class Meta:
        model = Tour
        fields = [
            "id",
            "name",
            "slug",
            "duration",
            "duration_weeks",
            "max_group_size",
            "difficulty",
            "ratings_average",
            "ratings_quantity",
            "price",
            "price_discount",
            "summary",
            "description",
            "image_cover",
            "images",
            "secret_tour",
            "start_location",
            "locations",
            "start_dates",
            "guides",
            "created_at",
        ]
        read_only_fields = ["id", "slug", "ratings_average", "ratings_quantity", "created_at"]
        extra_kwargs = {
            "name": {
                "error_messages": {
                    "min_length": "A tour name must have at least 10 characters.",
                    "max_length": "A tour name must have less or equal than 40 characters.",
                }
            },
            "price": {"coerce_to_string": False},
            "price_discount": {"coerce_to_string": False},
            "summary": {"trim_whitespace": True},
        }

    def validate_images(self, value: Any) -> list[str]:
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError("Images must be a list of file names.")
        return value

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        price = attrs.get("price", getattr(self.instance, "price", None))
        discount = attrs.get("price_discount", getattr(self.instance, "price_discount", None))
        if discount is not None and price is not None and Decimal(discount) >= Decimal(price):
            raise serializers.ValidationError(
                {"price_discount": f"Discount price ({discount}) should be below regular price"}
            )
        return attrs

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]) -> Tour:
        locations = validated_data.pop("locations", [])
        start_dates = validated_data.pop("start_dates", [])
        guides = validated_data.pop("guides", [])
        tour = Tour.objects.create(**validated_data)
        self._write_children(tour, locations, start_dates)
        tour.guides.set(guides)
        return tour

    @transaction.atomic
    def update(self, instance: Tour, validated_data: dict[str, Any]) -> Tour:
        locations = validated_data.pop("locations", None)
        start_dates = validated_data.pop("start_dates", None)
        guides = validated_data.pop("guides", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if locations is not None:
            instance.locations.all().delete()
        if start_dates is not None:
            instance.start_dates.all().delete()
        self._write_children(instance, locations or [], start_dates or [])
        if guides is not None:
            instance.guides.set(guides)
        return instance

    @staticmethod
    def _write_children(tour: Tour, locations: list[dict], start_dates: list) -> None:
        TourLocation.objects.bulk_create(TourLocation(tour=tour, **location) for location in locations)
        TourStartDate.objects.bulk_create(
            TourStartDate(tour=tour, starts_at=starts_at) for starts_at in dict.fromkeys(start_dates)
        )


class TourDetailSerializer(TourSerializer):
    """Single tour with its reviews inlined."""

    reviews = ReviewSerializer(many=True, read_only=True)

    class Meta(TourSerializer.Meta):
        fields = TourSerializer.Meta.fields + ["reviews"]
