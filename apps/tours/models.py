"""Tour catalog models.

A tour carries its aggregate rating (maintained by the reviews app), a
start location, day-by-day waypoints and the dates it departs on. Secret
tours stay in the table but never show up in catalog queries.
"""

from __future__ import annotations

import math

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinLengthValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.text import slugify  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

DEFAULT_RATING = 4.5


def round_rating(value: float) -> float:
    """One decimal, halves rounded up (4.25 -> 4.3)."""
    return math.floor(value * 10 + 0.5) / 10


class TourQuerySet(models.QuerySet):
    def visible(self) -> "TourQuerySet":
        return self.filter(secret_tour=False)


class Tour(models.Model):
    """A bookable tour."""

    class Difficulty(models.TextChoices):
        EASY = "easy", _("Easy")
        MEDIUM = "medium", _("Medium")
        DIFFICULT = "difficult", _("Difficult")

    name = models.CharField(
        max_length=40,
        unique=True,
        validators=[MinLengthValidator(10, "A tour name must have at least 10 characters.")],
        error_messages={"unique": _("Duplicate field value: this tour name is already taken. Please use another value!")},
    )
    slug = models.SlugField(max_length=60, unique=True, blank=True)
    duration = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    max_group_size = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    difficulty = models.CharField(max_length=10, choices=Difficulty.choices)
    ratings_average = models.FloatField(
        default=DEFAULT_RATING,
        validators=[MinValueValidator(1.0), MaxValueValidator(5.0)],
    )
    ratings_quantity = models.PositiveIntegerField(default=0)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    price_discount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    summary = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    image_cover = models.CharField(max_length=255)
    images = models.JSONField(default=list, blank=True)
    secret_tour = models.BooleanField(default=False)

    start_latitude = models.FloatField(null=True, blank=True)
    start_longitude = models.FloatField(null=True, blank=True)
    start_address = models.CharField(max_length=255, blank=True)
    start_description = models.CharField(max_length=255, blank=True)

    guides = models.ManyToManyField(settings.AUTH_USER_MODEL, related_name="guided_tours", blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    objects = TourQuerySet.as_manager()

    class Meta:
        verbose_name = _("Tour")
        verbose_name_plural = _("Tours")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["price", "-ratings_average"], name="tour_price_rating_idx"),
            models.Index(fields=["start_latitude", "start_longitude"], name="tour_start_point_idx"),
        ]

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs) -> None:
        self.slug = slugify(self.name)
        self.ratings_average = round_rating(self.ratings_average)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "name" in update_fields:
            kwargs["update_fields"] = {*update_fields, "slug"}
        super().save(*args, **kwargs)

    @property
    def duration_weeks(self) -> float:
        return round(self.duration / 7, 2)


class TourLocation(models.Model):
    """Waypoint visited on a given day of the tour."""

    tour = models.ForeignKey(Tour, on_delete=models.CASCADE, related_name="locations")
    latitude = models.FloatField(validators=[MinValueValidator(-90), MaxValueValidator(90)])
    longitude = models.FloatField(validators=[MinValueValidator(-180), MaxValueValidator(180)])
    address = models.CharField(max_length=255, blank=True)
    description = models.CharField(max_length=255, blank=True)
    day = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ["day", "id"]

    def __str__(self) -> str:
        return f"{self.tour_id} day {self.day}: {self.description}"


class TourStartDate(models.Model):
    tour = models.ForeignKey(Tour, on_delete=models.CASCADE, related_name="start_dates")
    starts_at = models.DateTimeField()

    class Meta:
        ordering = ["starts_at"]
        constraints = [
            models.UniqueConstraint(fields=["tour", "starts_at"], name="unique_tour_start_date"),
        ]

    def __str__(self) -> str:
        return f"{self.tour_id} @ {self.starts_at:%Y-%m-%d}"
