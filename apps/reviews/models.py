"""Models for the review domain.

A review is a rating (1-5) plus text left by a user for a tour. Each user
reviews a given tour at most once. Deleting a tour keeps its reviews with
an empty tour reference.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Review(models.Model):
    """Feedback left by a user for a tour."""

    review = models.TextField(_("Review"))
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        help_text=_("Rating from 1 to 5"),
    )
    tour = models.ForeignKey(
        "tours.Tour", on_delete=models.SET_NULL, related_name="reviews", null=True
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="reviews"
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["tour", "user"], name="unique_review_per_tour_and_user"),
        ]
        indexes = [
            models.Index(fields=["tour", "-created_at"], name="review_tour_created_idx"),
        ]

    def __str__(self) -> str:
        return f"Review by {self.user_id} for tour {self.tour_id} (Rating: {self.rating})"
