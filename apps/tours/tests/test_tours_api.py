"""API tests for the tour catalog."""

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.core.tests.helpers import authenticate, make_tour, make_user
from apps.reviews.models import Review
from apps.tours.models import Tour, TourStartDate, round_rating
from apps.users.models import User


def tour_payload(**overrides):
    payload = {
        "name": "The Sea Explorer",
        "duration": 7,
        "max_group_size": 15,
        "difficulty": "medium",
        "price": "497.00",
        "summary": "Exploring the jaw-dropping US east coast by foot and by boat",
        "image_cover": "tour-2-cover.jpg",
        "start_location": {
            "type": "Point",
            "coordinates": [-80.185942, 25.774772],
            "address": "301 Biscayne Blvd, Miami, FL 33132, USA",
            "description": "Miami, USA",
        },
        "locations": [
            {"type": "Point", "coordinates": [-80.128473, 25.781842], "description": "Lummus Park Beach", "day": 1},
            {"type": "Point", "coordinates": [-80.647885, 24.909047], "description": "Islamorada", "day": 2},
        ],
        "start_dates": ["2031-06-19T09:00:00Z", "2031-07-20T09:00:00Z"],
    }
    payload.update(overrides)
    return payload


class TourReadTests(APITestCase):
    def setUp(self) -> None:
        self.easy = make_tour(name="The Park Camper", price=Decimal("1497.00"), duration=10)
        self.medium = make_tour(name="The Snow Adventurer", price=Decimal("997.00"), difficulty="medium", duration=4)
        self.secret = make_tour(name="The Secret Escape", secret_tour=True)

    def test_list_envelope_hides_secret_tours(self) -> None:
        response = self.client.get(reverse("tours:tour-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "success")
        self.assertEqual(response.data["results"], 2)
        names = {item["name"] for item in response.data["data"]["data"]}
        self.assertEqual(names, {"The Park Camper", "The Snow Adventurer"})
        self.assertNotIn("created_at", response.data["data"]["data"][0])

    def test_filter_sort_and_project(self) -> None:
        response = self.client.get(
            reverse("tours:tour-list"),
            {"duration[gte]": "4", "sort": "price", "fields": "name,price"},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response.data["data"]["data"],
            [
                {"id": self.medium.pk, "name": "The Snow Adventurer", "price": Decimal("997.00")},
                {"id": self.easy.pk, "name": "The Park Camper", "price": Decimal("1497.00")},
            ],
        )

    def test_pagination(self) -> None:
        response = self.client.get(reverse("tours:tour-list"), {"sort": "price", "limit": 1, "page": 2})
        self.assertEqual(response.data["results"], 1)
        self.assertEqual(response.data["data"]["data"][0]["id"], self.easy.pk)

    def test_secret_tour_detail_is_not_found(self) -> None:
        response = self.client.get(reverse("tours:tour-detail", args=[self.secret.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_detail_includes_reviews_and_guides(self) -> None:
        guide = make_user(User.RoleChoices.LEAD_GUIDE)
        self.easy.guides.add(guide)
        author = make_user()
        Review.objects.create(tour=self.easy, user=author, review="Amazing!", rating=5)

        response = self.client.get(reverse("tours:tour-detail", args=[self.easy.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data["data"]["data"]
        self.assertEqual(data["slug"], "the-park-camper")
        self.assertEqual(data["duration_weeks"], round(10 / 7, 2))
        self.assertEqual(data["guides"][0]["role"], "lead-guide")
        self.assertEqual(data["reviews"][0]["review"], "Amazing!")
        self.assertEqual(data["reviews"][0]["user"]["name"], author.name)

    def test_top_5_cheap(self) -> None:
        for n in range(5):
            make_tour(price=Decimal(100 + n))
        response = self.client.get(reverse("tours:tour-top-5-cheap"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["results"], 5)
        prices = [item["price"] for item in response.data["data"]["data"]]
        self.assertEqual(prices, sorted(prices))
        self.assertEqual(
            set(response.data["data"]["data"][0]),
            {"id", "name", "price", "ratings_average", "summary", "difficulty"},
        )

    def test_tour_stats(self) -> None:
        make_tour(difficulty="medium", price=Decimal("97.00"))
        response = self.client.get(reverse("tours:tour-tour-stats"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.data["data"]["stats"]
        self.assertEqual([row["difficulty"] for row in stats], ["MEDIUM", "EASY"])
        medium = stats[0]
        self.assertEqual(medium["num_tours"], 2)
        self.assertEqual(medium["min_price"], 97.0)
        self.assertEqual(medium["max_price"], 997.0)
        self.assertEqual(medium["avg_price"], 547.0)
        self.assertEqual(stats[1]["avg_price"], 1497.0)


class MonthlyPlanTests(APITestCase):
    def setUp(self) -> None:
        self.forest = make_tour(name="The Forest Hiker")
        self.sea = make_tour(name="The Sea Explorer")
        for tour, months in ((self.forest, (4, 7)), (self.sea, (7,))):
            for month in months:
                TourStartDate.objects.create(tour=tour, starts_at=datetime(2031, month, 10, tzinfo=dt_timezone.utc))
        TourStartDate.objects.create(tour=self.sea, starts_at=datetime(2032, 1, 10, tzinfo=dt_timezone.utc))

    def test_guides_see_the_plan(self) -> None:
        authenticate(self.client, make_user(User.RoleChoices.GUIDE))
        response = self.client.get(reverse("tours:tour-monthly-plan", args=["2031"]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        plan = response.data["data"]["plan"]
        self.assertEqual(plan[0]["month"], 7)
        self.assertEqual(plan[0]["num_tour_starts"], 2)
        self.assertEqual(sorted(plan[0]["tours"]), ["The Forest Hiker", "The Sea Explorer"])
        self.assertEqual(plan[1], {"month": 4, "num_tour_starts": 1, "tours": ["The Forest Hiker"]})

    def test_regular_users_are_forbidden(self) -> None:
        authenticate(self.client, make_user())
        response = self.client.get(reverse("tours:tour-monthly-plan", args=["2031"]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_is_unauthenticated(self) -> None:
        response = self.client.get(reverse("tours:tour-monthly-plan", args=["2031"]))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class TourWriteTests(APITestCase):
    def setUp(self) -> None:
        self.lead = make_user(User.RoleChoices.LEAD_GUIDE)
        self.guide = make_user(User.RoleChoices.GUIDE)
        authenticate(self.client, self.lead)

    def test_create_tour(self) -> None:
        response = self.client.post(
            reverse("tours:tour-list"), tour_payload(guides=[self.guide.pk]), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        data = response.data["data"]["data"]
        self.assertEqual(data["slug"], "the-sea-explorer")
        self.assertEqual(data["ratings_average"], 4.5)
        self.assertEqual(data["ratings_quantity"], 0)
        self.assertEqual(data["start_location"]["coordinates"], [-80.185942, 25.774772])
        self.assertEqual([loc["day"] for loc in data["locations"]], [1, 2])
        self.assertEqual(len(data["start_dates"]), 2)
        self.assertEqual(data["guides"][0]["id"], self.guide.pk)

        tour = Tour.objects.get(pk=data["id"])
        self.assertEqual(tour.start_latitude, 25.774772)
        self.assertEqual(tour.locations.count(), 2)

    def test_regular_users_cannot_create(self) -> None:
        authenticate(self.client, make_user())
        response = self.client.post(reverse("tours:tour-list"), tour_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_cannot_create(self) -> None:
        self.client.credentials()
        response = self.client.post(reverse("tours:tour-list"), tour_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_name_too_short(self) -> None:
        response = self.client.post(reverse("tours:tour-list"), tour_payload(name="Short"), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("A tour name must have at least 10 characters", response.data["message"])

    def test_name_too_long(self) -> None:
        response = self.client.post(reverse("tours:tour-list"), tour_payload(name="x" * 41), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("A tour name must have less or equal than 40 characters", response.data["message"])

    def test_duplicate_name(self) -> None:
        make_tour(name="The Sea Explorer")
        response = self.client.post(reverse("tours:tour-list"), tour_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data["message"].startswith("Duplicate field value"))

    def test_discount_must_be_below_price(self) -> None:
        response = self.client.post(
            reverse("tours:tour-list"), tour_payload(price_discount="600.00"), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("should be below regular price", response.data["message"])

    def test_update_discount_checks_stored_price(self) -> None:
        tour = make_tour(price=Decimal("300.00"))
        url = reverse("tours:tour-detail", args=[tour.pk])

        rejected = self.client.patch(url, {"price_discount": "350.00"}, format="json")
        self.assertEqual(rejected.status_code, status.HTTP_400_BAD_REQUEST)

        accepted = self.client.patch(url, {"price_discount": "250.00", "name": "The Renamed Hiker"}, format="json")
        self.assertEqual(accepted.status_code, status.HTTP_200_OK, accepted.data)
        tour.refresh_from_db()
        self.assertEqual(tour.price_discount, Decimal("250.00"))
        self.assertEqual(tour.slug, "the-renamed-hiker")

    def test_ratings_are_read_only(self) -> None:
        tour = make_tour()
        response = self.client.patch(
            reverse("tours:tour-detail", args=[tour.pk]), {"ratings_average": 1.2}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        tour.refresh_from_db()
        self.assertEqual(tour.ratings_average, 4.5)

    def test_delete_tour_keeps_reviews(self) -> None:
        tour = make_tour()
        review = Review.objects.create(tour=tour, user=make_user(), review="Nice", rating=4)

        response = self.client.delete(reverse("tours:tour-detail", args=[tour.pk]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Tour.objects.filter(pk=tour.pk).exists())
        review.refresh_from_db()
        self.assertIsNone(review.tour_id)

        missing = self.client.get(reverse("tours:tour-detail", args=[tour.pk]))
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)


class GeoTests(APITestCase):
    def setUp(self) -> None:
        self.los_angeles = make_tour(start_latitude=34.011646, start_longitude=-118.491055)
        self.miami = make_tour(start_latitude=25.774772, start_longitude=-80.185942)
        make_tour()

    def test_tours_within_radius(self) -> None:
        url = reverse("tours:tour-tours-within", args=["400", "34.111745,-118.113491", "mi"])
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual([item["id"] for item in response.data["data"]["data"]], [self.los_angeles.pk])

    def test_distances(self) -> None:
        url = reverse("tours:tour-distances", args=["34.111745,-118.113491", "km"])
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rows = response.data["data"]["data"]
        self.assertEqual([row["id"] for row in rows], [self.los_angeles.pk, self.miami.pk])
        self.assertLess(rows[0]["distance"], 50)
        self.assertGreater(rows[1]["distance"], 3500)

    def test_bad_unit(self) -> None:
        url = reverse("tours:tour-distances", args=["34.1,-118.1", "miles"])
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Please provide the unit as 'mi' or 'km'.")

    def test_bad_center(self) -> None:
        url = reverse("tours:tour-tours-within", args=["100", "north", "km"])
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Please provide latitude and longitude in the format lat,lng.")


class RoundRatingTests(APITestCase):
    def test_half_up(self) -> None:
        self.assertEqual(round_rating(4.25), 4.3)
        self.assertEqual(round_rating(4.666), 4.7)
        self.assertEqual(round_rating(4.0), 4.0)
