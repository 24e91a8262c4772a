"""Integration tests for checkout, the payment webhook and booking CRUD."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from decimal import Decimal
from unittest import mock

from django.conf import settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.core.tests.helpers import authenticate, make_tour, make_user
from apps.users.models import User


def signed_headers(payload: str, secret: str | None = None, timestamp: int | None = None) -> dict[str, str]:
    timestamp = timestamp or int(time.time())
    secret = secret or settings.STRIPE_WEBHOOK_SECRET
    signature = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return {"HTTP_STRIPE_SIGNATURE": f"t={timestamp},v1={signature}"}


def checkout_event(session_id: str, tour, email: str, amount: int = 49700, event_type: str = "checkout.session.completed") -> str:
    return json.dumps(
        {
            "id": "evt_test",
            "type": event_type,
            "data": {
                "object": {
                    "id": session_id,
                    "object": "checkout.session",
                    "client_reference_id": str(tour.pk),
                    "customer_email": email,
                    "amount_total": amount,
                }
            },
        }
    )


class CheckoutSessionTests(APITestCase):
    def setUp(self) -> None:
        self.tour = make_tour(price=Decimal("497.00"))
        self.user = make_user(email="buyer@example.com")
        authenticate(self.client, self.user)

    @mock.patch("apps.bookings.payments.stripe.checkout.Session.create")
    def test_creates_checkout_session(self, create) -> None:
        create.return_value = mock.Mock(id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123")

        response = self.client.get(reverse("bookings:booking-checkout-session", args=[self.tour.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(
            response.data,
            {
                "status": "success",
                "session": {"id": "cs_test_123", "url": "https://checkout.stripe.com/c/pay/cs_test_123"},
            },
        )
        kwargs = create.call_args.kwargs
        self.assertEqual(kwargs["customer_email"], "buyer@example.com")
        self.assertEqual(kwargs["client_reference_id"], str(self.tour.pk))
        self.assertEqual(kwargs["mode"], "payment")
        self.assertTrue(kwargs["success_url"].endswith("/my-tours/?alert=booking"))
        line = kwargs["line_items"][0]
        self.assertEqual(line["quantity"], 1)
        self.assertEqual(line["price_data"]["unit_amount"], 49700)
        self.assertEqual(line["price_data"]["product_data"]["name"], f"{self.tour.name} Tour")
        self.assertFalse(Booking.objects.exists())

    def test_unknown_tour(self) -> None:
        response = self.client.get(reverse("bookings:booking-checkout-session", args=[999999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_requires_login(self) -> None:
        self.client.credentials()
        response = self.client.get(reverse("bookings:booking-checkout-session", args=[self.tour.pk]))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class WebhookTests(APITestCase):
    def setUp(self) -> None:
        self.tour = make_tour()
        self.user = make_user(email="buyer@example.com")
        self.url = reverse("webhook-checkout")

    def _deliver(self, payload: str, **headers):
        headers = headers or signed_headers(payload)
        return self.client.post(self.url, data=payload, content_type="application/json", **headers)

    def test_completed_checkout_creates_one_booking(self) -> None:
        payload = checkout_event("cs_test_1", self.tour, "Buyer@example.com")

        first = self._deliver(payload)
        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(first.json(), {"received": True})

        booking = Booking.objects.get()
        self.assertEqual(booking.user, self.user)
        self.assertEqual(booking.tour, self.tour)
        self.assertEqual(booking.price, Decimal("497.00"))
        self.assertTrue(booking.paid)
        self.assertEqual(booking.checkout_session_id, "cs_test_1")

        again = self._deliver(payload)
        self.assertEqual(again.status_code, status.HTTP_200_OK)
        self.assertEqual(Booking.objects.count(), 1)

    def test_both_url_spellings_are_served(self) -> None:
        for index, url in enumerate(("/webhook-checkout", "/webhook-checkout/")):
            payload = checkout_event(f"cs_test_url_{index}", self.tour, self.user.email)
            response = self.client.post(url, data=payload, content_type="application/json", **signed_headers(payload))
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.json(), {"received": True})
        self.assertEqual(Booking.objects.count(), 2)

    def test_invalid_signature(self) -> None:
        payload = checkout_event("cs_test_2", self.tour, self.user.email)
        response = self._deliver(payload, **signed_headers(payload, secret="whsec_wrong"))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.content.decode().startswith("Webhook error: "))
        self.assertFalse(Booking.objects.exists())

    def test_missing_signature(self) -> None:
        payload = checkout_event("cs_test_3", self.tour, self.user.email)
        response = self.client.post(self.url, data=payload, content_type="application/json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Booking.objects.exists())

    def test_other_events_are_acknowledged(self) -> None:
        payload = checkout_event("cs_test_4", self.tour, self.user.email, event_type="payment_intent.created")
        response = self._deliver(payload)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"received": True})
        self.assertFalse(Booking.objects.exists())

    def test_unknown_customer_records_nothing(self) -> None:
        payload = checkout_event("cs_test_5", self.tour, "stranger@example.com")
        response = self._deliver(payload)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Booking.objects.exists())

    def test_get_is_not_allowed(self) -> None:
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


class BookingCrudTests(APITestCase):
    def setUp(self) -> None:
        self.tour = make_tour()
        self.customer = make_user()
        self.booking = Booking.objects.create(tour=self.tour, user=self.customer, price=Decimal("397.00"))

    def test_lead_guide_lists_bookings(self) -> None:
        authenticate(self.client, make_user(User.RoleChoices.LEAD_GUIDE))
        response = self.client.get(reverse("bookings:booking-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["results"], 1)
        item = response.data["data"]["data"][0]
        self.assertEqual(item["tour"]["name"], self.tour.name)
        self.assertEqual(item["user"]["id"], self.customer.pk)

    def test_admin_creates_updates_and_deletes(self) -> None:
        authenticate(self.client, make_user(User.RoleChoices.ADMIN))

        created = self.client.post(
            reverse("bookings:booking-list"),
            {"tour": self.tour.pk, "user": self.customer.pk, "price": "350.00"},
            format="json",
        )
        self.assertEqual(created.status_code, status.HTTP_201_CREATED, created.data)
        booking_id = created.data["data"]["data"]["id"]
        self.assertTrue(created.data["data"]["data"]["paid"])

        updated = self.client.patch(
            reverse("bookings:booking-detail", args=[booking_id]), {"paid": False}, format="json"
        )
        self.assertEqual(updated.status_code, status.HTTP_200_OK, updated.data)
        self.assertFalse(Booking.objects.get(pk=booking_id).paid)

        deleted = self.client.delete(reverse("bookings:booking-detail", args=[booking_id]))
        self.assertEqual(deleted.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Booking.objects.filter(pk=booking_id).exists())

    def test_regular_users_are_forbidden(self) -> None:
        authenticate(self.client, self.customer)
        response = self.client.get(reverse("bookings:booking-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
