"""Domain events emitted by review writes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from shared.domain.base import DomainEvent


@dataclass
class ReviewChanged(DomainEvent):
    """A review was created, updated or deleted.

    ``tour_id`` is read before the write so a delete still names its tour.
    """
    tour_id: Optional[Any] = None
    review_id: Optional[Any] = None
    action: str = "updated"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(tour_id=self.tour_id, review_id=self.review_id, action=self.action)
        return data


def review_events(action: str, review) -> Iterable[DomainEvent]:
    if review.tour_id is None:
        return []
    return [
        ReviewChanged(
            aggregate_id=review.pk,
            tour_id=review.tour_id,
            review_id=review.pk,
            action=action,
        )
    ]


def author_review_events(action: str, user) -> Iterable[DomainEvent]:
    """Rating events for the reviews removed along with a deleted account."""
    if action != "deleted":
        return []
    reviewed = user.reviews.filter(tour__isnull=False).values_list("pk", "tour_id")
    return [
        ReviewChanged(aggregate_id=pk, tour_id=tour_id, review_id=pk, action=action)
        for pk, tour_id in reviewed
    ]
