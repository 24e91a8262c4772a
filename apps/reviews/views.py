"""API views for reviews.

Reviews are served flat (``/api/v1/reviews/``) and nested under a tour
(``/api/v1/tours/<tour_pk>/reviews/``); the nested form scopes the list to
that tour and fills in the tour on create.
"""

from __future__ import annotations

from apps.core.crud import CrudViewSet, EntityDescriptor
from apps.users.models import CustomUser
from apps.users.permissions import IsAuthorOrAdmin, IsLoggedIn, restrict_to

from .events import review_events
from .models import Review
from .serializers import ReviewSerializer, ReviewWriteSerializer

Role = CustomUser.RoleChoices

REVIEW_DESCRIPTOR = EntityDescriptor(
    name="review",
    model=Review,
    serializer_class=ReviewSerializer,
    write_serializer_class=ReviewWriteSerializer,
    queryset=lambda: Review.objects.select_related("user"),
    filter_fields=("rating", "tour", "user", "created_at"),
    events=review_events,
)


class ReviewViewSet(CrudViewSet):
    descriptor = REVIEW_DESCRIPTOR

    def get_permissions(self):  # type: ignore
        if self.action == "create":
            classes = [IsLoggedIn, restrict_to(Role.USER)]
        elif self.action in {"partial_update", "destroy"}:
            classes = [IsLoggedIn, restrict_to(Role.USER, Role.ADMIN), IsAuthorOrAdmin]
        else:
            classes = [IsLoggedIn]
        return [permission() for permission in classes]

    def get_base_filter(self):  # type: ignore
        tour_pk = self.kwargs.get("tour_pk")
        if tour_pk is None:
            return None
        return {"tour_id": tour_pk}

    def get_save_kwargs(self):  # type: ignore
        return {"user": self.request.user}

    def get_create_payload(self):  # type: ignore
        payload = self.request.data
        tour_pk = self.kwargs.get("tour_pk")
        if tour_pk is not None and "tour" not in payload:
            payload = payload.copy()
            payload["tour"] = tour_pk
        return payload
