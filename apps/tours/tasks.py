"""Celery tasks for tour media."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from apps.core.images import resize_to_jpeg

logger = logging.getLogger(__name__)

TOUR_IMAGE_SIZE = (2000, 1333)
TOUR_IMAGE_DIR = "img/tours"


def tour_image_path(filename: str) -> str:
    return f"{TOUR_IMAGE_DIR}/{filename}"


@shared_task
def resize_tour_images(uploads: list[list[str]]) -> list[str]:
    """Resize each ``[source_path, filename]`` pair to a 2000x1333 JPEG."""
    saved = []
    for source_path, filename in uploads:
        saved.append(resize_to_jpeg(source_path, tour_image_path(filename), TOUR_IMAGE_SIZE))
    logger.info("Processed %s tour image(s)", len(saved))
    return saved
