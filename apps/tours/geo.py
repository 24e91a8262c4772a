"""Great-circle distance queries over plain latitude/longitude columns.

The haversine formula is built from ORM math functions so filtering and
ordering happen in the database.
"""

from __future__ import annotations

from django.db.models import F, FloatField, Value  # type: ignore
from django.db.models.expressions import ExpressionWrapper  # type: ignore
from django.db.models.functions import ASin, Cos, Power, Radians, Sin, Sqrt  # type: ignore

from apps.core.exceptions import ValidationError

EARTH_RADIUS = {"mi": 3963.2, "km": 6378.1}

LATLNG_FORMAT = "Please provide latitude and longitude in the format lat,lng."


def parse_latlng(raw: str) -> tuple[float, float]:
    parts = [part.strip() for part in str(raw or "").split(",")]
    if len(parts) != 2 or not all(parts):
        raise ValidationError(LATLNG_FORMAT)
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        raise ValidationError(LATLNG_FORMAT)
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValidationError(LATLNG_FORMAT)
    return lat, lng


def parse_unit(raw: str) -> str:
    if raw not in EARTH_RADIUS:
        raise ValidationError("Please provide the unit as 'mi' or 'km'.")
    return raw


def parse_distance(raw: str) -> float:
    try:
        distance = float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid distance: {raw}.")
    if distance < 0:
        raise ValidationError(f"Invalid distance: {raw}.")
    return distance


def haversine(lat: float, lng: float, unit: str, lat_field: str = "start_latitude", lng_field: str = "start_longitude"):
    """Expression giving the distance from (lat, lng) to each row, in ``unit``."""
    radius = Value(EARTH_RADIUS[unit], output_field=FloatField())
    origin_lat = Value(lat, output_field=FloatField())
    origin_lng = Value(lng, output_field=FloatField())

    half_dlat = Radians(F(lat_field) - origin_lat) / 2
    half_dlng = Radians(F(lng_field) - origin_lng) / 2
    a = Power(Sin(half_dlat), 2) + Cos(Radians(origin_lat)) * Cos(Radians(F(lat_field))) * Power(Sin(half_dlng), 2)
    return ExpressionWrapper(2 * radius * ASin(Sqrt(a)), output_field=FloatField())
