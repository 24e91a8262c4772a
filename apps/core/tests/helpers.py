"""Object builders shared by the API test modules."""

from __future__ import annotations

from decimal import Decimal
from itertools import count
from typing import Any

from apps.tours.models import Tour
from apps.users.models import User
from apps.users.tokens import issue_token

PASSWORD = "test1234"

_sequence = count(1)


def make_user(role: str = User.RoleChoices.USER, **extra: Any) -> User:
    n = next(_sequence)
    extra.setdefault("email", f"{role}{n}@example.com")
    extra.setdefault("name", f"{role.title()} Person {n}")
    return User.objects.create_user(password=PASSWORD, role=role, **extra)


def make_tour(**extra: Any) -> Tour:
    n = next(_sequence)
    defaults: dict[str, Any] = {
        "name": f"The Forest Hiker {n:04d}",
        "duration": 5,
        "max_group_size": 25,
        "difficulty": Tour.Difficulty.EASY,
        "price": Decimal("397.00"),
        "summary": "Breathtaking hike through the Canadian Banff National Park",
        "description": "Lorem ipsum dolor sit amet.",
        "image_cover": "tour-1-cover.jpg",
    }
    defaults.update(extra)
    return Tour.objects.create(**defaults)


def authenticate(client, user) -> str:
    token = issue_token(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return token
