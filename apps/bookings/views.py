"""API views for bookings: checkout, the payment webhook and staff CRUD."""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse, JsonResponse  # type: ignore
from django.urls import reverse  # type: ignore
from django.views.decorators.csrf import csrf_exempt  # type: ignore
from django.views.decorators.http import require_POST  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.core.crud import CrudViewSet, EntityDescriptor
from apps.core.exceptions import InvalidSignature
from apps.users.models import CustomUser
from apps.users.permissions import IsLoggedIn, restrict_to

from .models import Booking
from .serializers import BookingSerializer, BookingWriteSerializer
from .services import create_checkout_intent, on_payment_confirmed

logger = logging.getLogger(__name__)

Role = CustomUser.RoleChoices

BOOKING_DESCRIPTOR = EntityDescriptor(
    name="booking",
    model=Booking,
    serializer_class=BookingSerializer,
    write_serializer_class=BookingWriteSerializer,
    queryset=lambda: Booking.objects.select_related("tour", "user"),
    filter_fields=("tour", "user", "price", "paid", "created_at"),
)


class BookingViewSet(CrudViewSet):
    descriptor = BOOKING_DESCRIPTOR

    def get_permissions(self):  # type: ignore
        if self.action == "checkout_session":
            classes = [IsLoggedIn]
        else:
            classes = [IsLoggedIn, restrict_to(Role.ADMIN, Role.LEAD_GUIDE)]
        return [permission() for permission in classes]

    @action(detail=False, methods=["get"], url_path=r"checkout-session/(?P<tour_id>[^/.]+)")
    def checkout_session(self, request, tour_id=None):
        session = create_checkout_intent(
            request.user,
            tour_id,
            success_url=request.build_absolute_uri(reverse("pages:my-tours")) + "?alert=booking",
            cancel_url=request.build_absolute_uri(reverse("pages:overview")),
            image_base_url=request.build_absolute_uri("/").rstrip("/"),
        )
        return Response({"status": "success", "session": session})


@csrf_exempt
@require_POST
def webhook_checkout(request: HttpRequest) -> HttpResponse:
    """Payment provider callback. Reads the raw body; no session, no CSRF."""
    try:
        on_payment_confirmed(request.body, request.headers.get("Stripe-Signature"))
    except InvalidSignature as exc:
        logger.warning("Rejected webhook delivery: %s", exc.message)
        return HttpResponse(f"Webhook error: {exc.message}", status=400, content_type="text/plain")
    return JsonResponse({"received": True})
