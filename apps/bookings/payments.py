"""Stripe integration: hosted checkout sessions and webhook verification."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any

import stripe  # type: ignore
from django.conf import settings  # type: ignore

from apps.core.exceptions import InvalidSignature, OperationalError

logger = logging.getLogger(__name__)

SIGNATURE_TOLERANCE = 300


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def create_checkout_session(
    *,
    name: str,
    description: str,
    image_url: str,
    amount: Decimal,
    customer_email: str,
    client_reference_id: str,
    success_url: str,
    cancel_url: str,
) -> dict[str, Any]:
    """Open a one-item card checkout session and return its id and URL."""
    try:
        session = stripe.checkout.Session.create(
            api_key=settings.STRIPE_SECRET_KEY,
            mode="payment",
            payment_method_types=["card"],
            success_url=success_url,
            cancel_url=cancel_url,
            customer_email=customer_email,
            client_reference_id=client_reference_id,
            line_items=[
                {
                    "quantity": 1,
                    "price_data": {
                        "currency": settings.STRIPE_CURRENCY,
                        "unit_amount": to_cents(amount),
                        "product_data": {
                            "name": name,
                            "description": description,
                            "images": [image_url],
                        },
                    },
                }
            ],
        )
    except stripe.StripeError as exc:
        logger.error("Stripe checkout session failed: %s", exc, exc_info=True)
        raise OperationalError("Could not start the checkout. Try again later!") from exc
    return {"id": session.id, "url": session.url}


def verify_event(payload: bytes, signature: str | None) -> dict[str, Any]:
    """Check the ``Stripe-Signature`` header and decode the event.

    Raises `InvalidSignature` for a bad or missing signature and for a body
    that isn't a JSON event.
    """
    try:
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"),
            signature or "",
            settings.STRIPE_WEBHOOK_SECRET,
            SIGNATURE_TOLERANCE,
        )
    except stripe.SignatureVerificationError as exc:
        raise InvalidSignature(str(getattr(exc, "user_message", None) or exc)) from exc
    except UnicodeDecodeError as exc:
        raise InvalidSignature("Invalid payload") from exc

    try:
        event = json.loads(payload)
    except ValueError as exc:
        raise InvalidSignature("Invalid payload") from exc
    if not isinstance(event, dict):
        raise InvalidSignature("Invalid payload")
    return event
