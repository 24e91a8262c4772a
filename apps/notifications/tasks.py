"""Celery tasks for outgoing email."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore

from .services import send_welcome_email

logger = logging.getLogger(__name__)


@shared_task
def deliver_welcome_email(user_id: int, url: str) -> bool:
    user = get_user_model().objects.filter(pk=user_id).first()
    if user is None:
        logger.warning("Welcome email skipped: user %s no longer exists", user_id)
        return False
    return send_welcome_email(user, url)
