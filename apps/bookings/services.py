"""Booking workflow: start a checkout, record the booking once paid."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore

from apps.core.exceptions import NotFound, ValidationError
from apps.tours.models import Tour

from . import payments
from .models import Booking

logger = logging.getLogger(__name__)

User = get_user_model()

CHECKOUT_COMPLETED = "checkout.session.completed"


def create_checkout_intent(user, tour_id, success_url: str, cancel_url: str, image_base_url: str = "") -> dict[str, Any]:
    """Open a hosted checkout session for ``tour_id`` paid by ``user``.

    Nothing is stored: the booking appears when the provider confirms the
    payment through the webhook.
    """
    try:
        tour = Tour.objects.visible().get(pk=int(tour_id))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid id: {tour_id}.")
    except Tour.DoesNotExist:
        raise NotFound("No tour found with that ID")

    session = payments.create_checkout_session(
        name=f"{tour.name} Tour",
        description=tour.summary,
        image_url=f"{image_base_url}/img/tours/{tour.image_cover}",
        amount=tour.price,
        customer_email=user.email,
        client_reference_id=str(tour.pk),
        success_url=success_url,
        cancel_url=cancel_url,
    )
    logger.info("Checkout session opened", extra={"tour_id": tour.pk, "user_id": user.pk})
    return session


def record_checkout(session: dict[str, Any]) -> Booking | None:
    """Create the booking for a completed checkout session, at most once."""
    session_id = session.get("id")
    tour = Tour.objects.filter(pk=session.get("client_reference_id")).first()
    user = User.objects.filter(email__iexact=session.get("customer_email") or "").first()
    if not session_id or tour is None or user is None:
        logger.warning(
            "Checkout session %s does not match a tour and user; no booking recorded",
            session_id,
        )
        return None

    amount = session.get("amount_total")
    price = Decimal(amount) / 100 if amount is not None else tour.price
    with transaction.atomic():
        booking, created = Booking.objects.get_or_create(
            checkout_session_id=session_id,
            defaults={"tour": tour, "user": user, "price": price, "paid": True},
        )
    if created:
        logger.info("Booking %s recorded from checkout %s", booking.pk, session_id)
    else:
        logger.info("Checkout %s already recorded as booking %s", session_id, booking.pk)
    return booking


def on_payment_confirmed(payload: bytes, signature: str | None) -> Booking | None:
    """Handle a provider webhook delivery.

    Raises `InvalidSignature` for unverifiable deliveries. Event types other
    than a completed checkout are acknowledged and ignored.
    """
    event = payments.verify_event(payload, signature)
    event_type = event.get("type")
    if event_type != CHECKOUT_COMPLETED:
        logger.info("Ignoring webhook event %s", event_type)
        return None
    session = (event.get("data") or {}).get("object") or {}
    return record_checkout(session)
