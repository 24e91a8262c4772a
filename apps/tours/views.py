"""Tour API views.

Standard CRUD goes through the generic engine; the extra endpoints cover
the catalog shortcuts (cheapest top-rated tours), statistics, the monthly
departure plan and geo search.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict

from django.db import transaction  # type: ignore
from django.db.models import Avg, Count, Max, Min, Sum  # type: ignore
from django.db.models.functions import ExtractMonth, Upper  # type: ignore
from django.http import QueryDict  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.permissions import AllowAny  # type: ignore

from apps.core.crud import CrudViewSet, EntityDescriptor
from apps.core.images import stash_upload
from apps.core.responses import success
from apps.users.models import CustomUser
from apps.users.permissions import IsLoggedIn, restrict_to

from .geo import haversine, parse_distance, parse_latlng, parse_unit
from .models import Tour, TourStartDate
from .serializers import TourDetailSerializer, TourSerializer
from .tasks import resize_tour_images

logger = logging.getLogger(__name__)

Role = CustomUser.RoleChoices

TOP_CHEAP_QUERY = {
    "limit": "5",
    "sort": "-ratings_average,price",
    "fields": "name,price,ratings_average,summary,difficulty",
}

TOUR_DESCRIPTOR = EntityDescriptor(
    name="tour",
    model=Tour,
    serializer_class=TourSerializer,
    detail_serializer_class=TourDetailSerializer,
    queryset=lambda: Tour.objects.visible(),
    list_populate=("guides", "locations", "start_dates"),
    detail_populate=("guides", "locations", "start_dates", "reviews__user"),
    internal_fields=("created_at",),
    filter_fields=(
        "name",
        "slug",
        "duration",
        "max_group_size",
        "difficulty",
        "ratings_average",
        "ratings_quantity",
        "price",
        "price_discount",
        "created_at",
    ),
)


class TourViewSet(CrudViewSet):
    descriptor = TOUR_DESCRIPTOR

    def get_permissions(self):  # type: ignore
        if self.action == "monthly_plan":
            classes = [IsLoggedIn, restrict_to(Role.ADMIN, Role.LEAD_GUIDE, Role.GUIDE)]
        elif self.action in {"create", "partial_update", "destroy"}:
            classes = [IsLoggedIn, restrict_to(Role.ADMIN, Role.LEAD_GUIDE)]
        else:
            classes = [AllowAny]
        return [permission() for permission in classes]

    def partial_update(self, request, pk=None, *args, **kwargs):  # type: ignore
        if not request.FILES:
            return super().partial_update(request, pk, *args, **kwargs)

        instance = self.get_object(pk, populate=False)
        payload = {key: value for key, value in request.data.items() if key not in request.FILES}
        uploads: list[list[str]] = []
        stamp = int(time.time() * 1000)

        cover = request.FILES.get("image_cover")
        if cover is not None:
            filename = f"tour-{instance.pk}-{stamp}-cover.jpeg"
            uploads.append([stash_upload(cover), filename])
            payload["image_cover"] = filename

        images = request.FILES.getlist("images")
        if images:
            names = [f"tour-{instance.pk}-{stamp}-{index}.jpeg" for index, _ in enumerate(images, start=1)]
            uploads.extend([stash_upload(image), name] for image, name in zip(images, names))
            payload["images"] = names

        with transaction.atomic():
            instance = self.engine.update(instance, payload, context=self.get_serializer_context())
            transaction.on_commit(lambda: resize_tour_images.delay(uploads))
        return success(TourSerializer(instance, context=self.get_serializer_context()).data)

    @action(detail=False, methods=["get"], url_path="top-5-cheap")
    def top_5_cheap(self, request):
        query = QueryDict(mutable=True)
        query.update(request.query_params)
        for key, value in TOP_CHEAP_QUERY.items():
            query.setlist(key, [value])
        result = self.engine.get_all(query)
        data = TourSerializer(result.items, many=True, fields=result.fields, omit=result.omit).data
        return success(data, results=len(data))

    @action(detail=False, methods=["get"], url_path="tour-stats")
    def tour_stats(self, request):
        stats = (
            Tour.objects.visible()
            .filter(ratings_average__gte=4.5)
            .annotate(group=Upper("difficulty"))
            .values("group")
            .annotate(
                num_tours=Count("id"),
                num_ratings=Sum("ratings_quantity"),
                avg_rating=Avg("ratings_average"),
                avg_price=Avg("price"),
                min_price=Min("price"),
                max_price=Max("price"),
            )
            .order_by("avg_price")
        )
        data = [
            {
                "difficulty": row["group"],
                "num_tours": row["num_tours"],
                "num_ratings": row["num_ratings"] or 0,
                "avg_rating": round(row["avg_rating"], 2),
                "avg_price": round(float(row["avg_price"]), 2),
                "min_price": float(row["min_price"]),
                "max_price": float(row["max_price"]),
            }
            for row in stats
        ]
        return success({"stats": data}, key=None)

    @action(detail=False, methods=["get"], url_path=r"monthly-plan/(?P<year>\d{4})")
    def monthly_plan(self, request, year=None):
        rows = (
            TourStartDate.objects.filter(tour__secret_tour=False, starts_at__year=int(year))
            .annotate(month=ExtractMonth("starts_at"))
            .values_list("month", "tour__name")
            .order_by("month", "starts_at")
        )
        months: dict[int, list[str]] = defaultdict(list)
        for month, name in rows:
            months[month].append(name)

        plan = [
            {"month": month, "num_tour_starts": len(names), "tours": names}
            for month, names in months.items()
        ]
        plan.sort(key=lambda item: (-item["num_tour_starts"], item["month"]))
        return success({"plan": plan[:12]}, key=None)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"tours-within/(?P<distance>[^/]+)/center/(?P<latlng>[^/]+)/unit/(?P<unit>[^/]+)",
    )
    def tours_within(self, request, distance=None, latlng=None, unit=None):
        lat, lng = parse_latlng(latlng)
        unit = parse_unit(unit)
        radius = parse_distance(distance)

        tours = (
            Tour.objects.visible()
            .filter(start_latitude__isnull=False, start_longitude__isnull=False)
            .annotate(distance=haversine(lat, lng, unit))
            .filter(distance__lte=radius)
            .prefetch_related("guides", "locations", "start_dates")
            .order_by("distance")
        )
        data = TourSerializer(tours, many=True, omit=TOUR_DESCRIPTOR.internal_fields).data
        return success(data, results=len(data))

    @action(detail=False, methods=["get"], url_path=r"distances/(?P<latlng>[^/]+)/unit/(?P<unit>[^/]+)")
    def distances(self, request, latlng=None, unit=None):
        lat, lng = parse_latlng(latlng)
        unit = parse_unit(unit)

        rows = (
            Tour.objects.visible()
            .filter(start_latitude__isnull=False, start_longitude__isnull=False)
            .annotate(distance=haversine(lat, lng, unit))
            .order_by("distance")
            .values("id", "name", "distance")
        )
        data = [{"id": row["id"], "name": row["name"], "distance": round(row["distance"], 3)} for row in rows]
        return success(data, results=len(data))

