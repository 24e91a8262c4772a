"""Email notification services."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.template.loader import render_to_string  # type: ignore
from django.utils.html import strip_tags  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from apps.users.models import CustomUser

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(
    recipient_email: str,
    subject: str,
    template_name: str | None,
    context: dict,
    *,
    html_message: str | None = None,
) -> bool:
    """
    Send one email, rendering ``template_name`` when given.

    Returns:
        bool: True if the message was handed to the mail backend
    """
    try:
        if html_message:
            text_message = strip_tags(html_message)
        elif template_name:
            html_message = render_to_string(template_name, context)
            text_message = strip_tags(html_message)
        else:
            text_message = context.get("message", "")
            html_message = None

        send_mail(
            subject=subject,
            message=text_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )

        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def send_welcome_email(user: "CustomUser", url: str) -> bool:
    """Greeting sent right after signup, pointing at the account page."""
    return send_email_notification(
        recipient_email=user.email,
        subject="Welcome to the Natours Family!",
        template_name="emails/welcome.html",
        context={"first_name": user.get_short_name(), "url": url},
    )


def send_password_reset_email(user: "CustomUser", url: str) -> bool:
    """Reset link, valid for PASSWORD_RESET_TIMEOUT_MINUTES."""
    return send_email_notification(
        recipient_email=user.email,
        subject=f"Your password reset token (valid for only {settings.PASSWORD_RESET_TIMEOUT_MINUTES} minutes)",
        template_name="emails/password_reset.html",
        context={
            "first_name": user.get_short_name(),
            "url": url,
            "minutes": settings.PASSWORD_RESET_TIMEOUT_MINUTES,
        },
    )
