"""Resolving the caller's identity from a request.

The token is read from ``Authorization: Bearer <token>`` first and from the
``jwt`` cookie otherwise. `authenticate_token` is the strict path used by
protected routes and reports exactly why a token was refused; the DRF
authentication class is lenient so that a stale cookie never breaks a
public endpoint.
"""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import authentication  # type: ignore

from apps.core.exceptions import AppError, Unauthenticated

from .tokens import verify_token, was_password_changed_after

logger = logging.getLogger(__name__)

User = get_user_model()

LOGGED_OUT = "loggedout"


def extract_token(request) -> str | None:
    header = request.META.get("HTTP_AUTHORIZATION", "")
    if header.startswith("Bearer "):
        token = header[len("Bearer "):].strip()
        if token:
            return token
    cookie = request.COOKIES.get(settings.JWT_COOKIE_NAME)
    if cookie and cookie != LOGGED_OUT:
        return cookie
    return None


def authenticate_token(raw: str | None):
    """Return the active account owning ``raw`` or raise `Unauthenticated`."""
    if not raw:
        raise Unauthenticated()

    claims = verify_token(raw)

    user = User.objects.active().filter(pk=claims.user_id).first()
    if user is None:
        raise Unauthenticated("The user belonging to this token no longer exists.")

    if was_password_changed_after(user, claims.issued_at):
        raise Unauthenticated("User recently changed password! Please log in again.")

    return user


def resolve_identity(request):
    """Lenient variant: the account or ``None``, never an error."""
    try:
        return authenticate_token(extract_token(request))
    except AppError:
        return None


class TokenCookieAuthentication(authentication.BaseAuthentication):
    """DRF authentication backed by `authenticate_token`.

    Failures leave the request anonymous; `IsLoggedIn` re-runs the strict
    check to tell the client why access was refused.
    """

    def authenticate(self, request):  # type: ignore
        raw = extract_token(request)
        if not raw:
            return None
        try:
            user = authenticate_token(raw)
        except AppError as exc:
            request._token_error = exc
            logger.debug("Token rejected: %s", exc.message)
            return None
        return (user, raw)

    def authenticate_header(self, request) -> str:  # type: ignore
        return "Bearer"
