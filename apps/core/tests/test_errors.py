"""Tests for the error envelope and fallback handlers."""

from __future__ import annotations

from django.urls import resolve, reverse
from rest_framework import serializers, status
from rest_framework.settings import api_settings
from rest_framework.test import APITestCase

from apps.core.exceptions import Conflict, ValidationError, exception_handler, from_serializer_errors, to_app_error
from apps.core.tests.helpers import make_tour


class ErrorEnvelopeTests(APITestCase):
    def test_unknown_api_route(self) -> None:
        response = self.client.get("/api/v1/nowhere/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(
            response.json(),
            {"status": "fail", "message": "Can't find /api/v1/nowhere/ on this server!"},
        )

    def test_unknown_page_renders_error_page(self) -> None:
        response = self.client.get("/nowhere/")
        self.assertContains(response, "/nowhere/ on this server!", status_code=404)

    def test_missing_document(self) -> None:
        response = self.client.get(reverse("tours:tour-detail", args=[999999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"status": "fail", "message": "No document found with that ID"})

    def test_malformed_id(self) -> None:
        response = self.client.get(reverse("tours:tour-detail", args=["abc"]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Invalid id: abc.")

    def test_configured_api_classes_load(self) -> None:
        self.assertEqual(api_settings.DEFAULT_AUTHENTICATION_CLASSES[0].__name__, "TokenCookieAuthentication")
        self.assertIs(api_settings.EXCEPTION_HANDLER, exception_handler)
        self.assertEqual(resolve("/api/v1/tours/").url_name, "tour-list")

    def test_huge_page_number_is_an_empty_page(self) -> None:
        make_tour()
        response = self.client.get(reverse("tours:tour-list"), {"page": "99999999999999999999"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["results"], 0)

    def test_format_parameter_is_not_a_filter(self) -> None:
        make_tour()
        response = self.client.get(reverse("tours:tour-list"), {"format": "json"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["results"], 1)

    def test_bad_filter_value(self) -> None:
        make_tour()
        response = self.client.get(reverse("tours:tour-list"), {"duration[gte]": "soon"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"status": "fail", "message": "Invalid duration: soon."})


class TranslationTests(APITestCase):
    def test_serializer_errors_are_collapsed(self) -> None:
        exc = serializers.ValidationError({"name": ["This field is required."], "price": ["Bad."]})
        error = from_serializer_errors(exc)
        self.assertIsInstance(error, ValidationError)
        self.assertEqual(error.message, "Invalid input data. name: This field is required. price: Bad.")

    def test_unique_errors_become_conflict(self) -> None:
        exc = serializers.ValidationError(
            {"email": [serializers.ErrorDetail("Duplicate field value: a@b.c. Please use another value!", code="unique")]}
        )
        error = from_serializer_errors(exc)
        self.assertIsInstance(error, Conflict)
        self.assertEqual(error.status_code, 400)
        self.assertEqual(error.message, "Duplicate field value: a@b.c. Please use another value!")

    def test_unexpected_errors_are_not_translated(self) -> None:
        self.assertIsNone(to_app_error(RuntimeError("boom")))
