"""Booking domain models for Natours."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Booking(models.Model):
    """A paid seat on a tour.

    Bookings are written by the checkout webhook (one per checkout session)
    or by staff through the admin API.
    """

    tour = models.ForeignKey(
        "tours.Tour",
        on_delete=models.SET_NULL,
        related_name="bookings",
        null=True,
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    paid = models.BooleanField(default=True)
    checkout_session_id = models.CharField(
        _("Checkout session"),
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text=_("Payment provider session that produced this booking"),
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "tour"], name="booking_user_tour_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.pk}: tour {self.tour_id} for user {self.user_id}"
