"""Celery tasks for user accounts."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.core.files.storage import default_storage  # type: ignore

from apps.core.images import resize_to_jpeg

logger = logging.getLogger(__name__)

USER_PHOTO_SIZE = (500, 500)
USER_PHOTO_DIR = "img/users"


def user_photo_path(filename: str) -> str:
    return f"{USER_PHOTO_DIR}/{filename}"


def delete_user_photo(filename: str | None) -> None:
    """Remove a replaced photo; the shared default images are kept."""
    if not filename or filename.startswith("default"):
        return
    path = user_photo_path(filename)
    if default_storage.exists(path):
        default_storage.delete(path)
        logger.info("Deleted replaced photo %s", path)


@shared_task
def resize_user_photo(source_path: str, filename: str, previous: str | None = None) -> str:
    """Crop an uploaded profile photo to 500x500 JPEG, then drop the one it replaces."""
    saved = resize_to_jpeg(source_path, user_photo_path(filename), USER_PHOTO_SIZE)
    if previous != filename:
        delete_user_photo(previous)
    return saved
