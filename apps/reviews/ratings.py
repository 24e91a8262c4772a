"""Aggregate rating of a tour, recomputed from its reviews."""

from __future__ import annotations

import logging

from django.db.models import Avg, Count, FloatField, IntegerField, OuterRef, Subquery, Value  # type: ignore
from django.db.models.functions import Coalesce, Round  # type: ignore

from apps.tours.models import DEFAULT_RATING, Tour

from .events import ReviewChanged
from .models import Review

logger = logging.getLogger(__name__)


def recompute_tour_rating(tour_id) -> tuple[int, float] | None:
    """Write count and mean rating of the tour's reviews in one UPDATE.

    A tour without reviews goes back to (0, 4.5). Returns the stored values,
    or ``None`` when the tour no longer exists.
    """
    per_tour = Review.objects.filter(tour=OuterRef("pk")).order_by().values("tour")
    quantity = per_tour.annotate(quantity=Count("id")).values("quantity")
    average = per_tour.annotate(average=Avg("rating")).values("average")

    updated = Tour.objects.filter(pk=tour_id).update(
        ratings_quantity=Coalesce(Subquery(quantity, output_field=IntegerField()), Value(0)),
        ratings_average=Coalesce(
            Round(Subquery(average, output_field=FloatField()), 1),
            Value(DEFAULT_RATING, output_field=FloatField()),
        ),
    )
    if not updated:
        logger.info("Rating not recomputed: tour %s is gone", tour_id)
        return None

    stored = Tour.objects.filter(pk=tour_id).values_list("ratings_quantity", "ratings_average").first()
    logger.info("Recomputed rating for tour %s: %s", tour_id, stored)
    return stored


def on_review_changed(event: ReviewChanged) -> None:
    recompute_tour_rating(event.tour_id)
