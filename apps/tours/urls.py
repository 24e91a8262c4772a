"""URL routing for the tour catalog, including reviews nested under a tour."""

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from apps.reviews.views import ReviewViewSet

from .views import TourViewSet

router = SimpleRouter()
router.register(r"", TourViewSet, basename="tour")

urlpatterns = [
    path(
        "<int:tour_pk>/reviews/",
        ReviewViewSet.as_view({"get": "list", "post": "create"}),
        name="tour-reviews",
    ),
    path("", include(router.urls)),
]
