"""Error taxonomy and the DRF exception handler.

Every error the API answers with is an `AppError`: an operational failure
whose message is safe to show to the client. Anything else reaching the
handler is a programming error; it is logged with its traceback and the
client gets a generic 500 unless `DEBUG` is on.

Response body: ``{"status": "fail" | "error", "message": "..."}`` where
"fail" marks 4xx and "error" marks 5xx.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from django.conf import settings  # type: ignore
from django.core.exceptions import ObjectDoesNotExist, PermissionDenied as DjangoPermissionDenied  # type: ignore
from django.db import IntegrityError  # type: ignore
from django.http import Http404  # type: ignore
from rest_framework import exceptions as drf_exceptions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework_simplejwt.exceptions import TokenError  # type: ignore

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Something went wrong!"


class AppError(drf_exceptions.APIException):
    """Operational error with a client-safe message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = GENERIC_MESSAGE
    default_code = "error"
    is_operational = True

    @property
    def message(self) -> str:
        return str(self.detail)

    @property
    def status_label(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input data."
    default_code = "invalid"

    def __init__(self, detail=None, code=None, errors: Any = None):
        super().__init__(detail, code)
        self.errors = errors


class Conflict(AppError):
    """A uniqueness rule was violated (duplicate email, name, review...)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Duplicate field value. Please use another value!"
    default_code = "duplicate"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "No document found with that ID"
    default_code = "not_found"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "You're not logged in! Please log in to get access."
    default_code = "not_authenticated"


class InvalidToken(Unauthenticated):
    default_detail = "Invalid token. Please log in again!"
    default_code = "invalid_token"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action"
    default_code = "permission_denied"


class InvalidSignature(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid signature."
    default_code = "invalid_signature"


class OperationalError(AppError):
    """An outbound call (email, payment provider) failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "operational"


def _flatten_messages(detail: Any, prefix: str = "") -> list[tuple[str, str]]:
    """Return ``(message, code)`` pairs for a nested DRF error structure."""
    pairs: list[tuple[str, str]] = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            name = "" if key == "non_field_errors" else str(key)
            nested = f"{prefix}.{name}" if prefix and name else (name or prefix)
            pairs.extend(_flatten_messages(value, nested))
    elif isinstance(detail, (list, tuple)):
        for item in detail:
            pairs.extend(_flatten_messages(item, prefix))
    else:
        text = str(detail).rstrip(".")
        code = getattr(detail, "code", "invalid")
        pairs.append((f"{prefix}: {text}" if prefix else text, code))
    return pairs


def _sentence(text: str) -> str:
    return text if text.endswith((".", "!", "?")) else f"{text}."


def from_serializer_errors(exc: drf_exceptions.ValidationError) -> AppError:
    """Collapse every violated rule into one message.

    Uniqueness failures reported by model validators become `Conflict` so a
    duplicate answers the same way whether the serializer or the database
    caught it.
    """
    pairs = _flatten_messages(exc.detail)
    codes = {code for _, code in pairs}
    if pairs and codes == {"unique"}:
        return Conflict(_sentence(". ".join(message.split(": ", 1)[-1] for message, _ in pairs)))
    messages = ". ".join(message for message, _ in pairs)
    return ValidationError(_sentence(f"Invalid input data. {messages}") if messages else None, errors=exc.detail)


def _is_duplicate(exc: IntegrityError) -> bool:
    text = str(exc).lower()
    return "unique" in text or "duplicate" in text


def to_app_error(exc: Exception) -> AppError | None:
    """Translate known framework errors; `None` means unexpected."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, drf_exceptions.ValidationError):
        return from_serializer_errors(exc)
    if isinstance(exc, (Http404, ObjectDoesNotExist, drf_exceptions.NotFound)):
        return NotFound()
    if isinstance(exc, TokenError):
        return InvalidToken()
    if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        return Unauthenticated()
    if isinstance(exc, (drf_exceptions.PermissionDenied, DjangoPermissionDenied)):
        return Forbidden()
    if isinstance(exc, drf_exceptions.Throttled):
        error = AppError("Too many requests from this IP, please try again in an hour!")
        error.status_code = status.HTTP_429_TOO_MANY_REQUESTS
        return error
    if isinstance(exc, IntegrityError) and _is_duplicate(exc):
        return Conflict()
    if isinstance(exc, drf_exceptions.APIException):
        error = AppError(exc.detail)
        error.status_code = exc.status_code
        return error
    return None


def error_payload(error: AppError | None, exc: Exception) -> tuple[dict[str, Any], int]:
    if error is None:
        body: dict[str, Any] = {"status": "error", "message": GENERIC_MESSAGE}
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        if settings.DEBUG:
            body["message"] = str(exc) or GENERIC_MESSAGE
    else:
        body = {"status": error.status_label, "message": error.message}
        status_code = error.status_code
        errors = getattr(error, "errors", None)
        if errors:
            body["errors"] = errors
    if settings.DEBUG:
        body["error"] = repr(exc)
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body, status_code


def exception_handler(exc: Exception, context: dict[str, Any]) -> Response:
    """DRF ``EXCEPTION_HANDLER`` producing the JSON error envelope."""
    # rest_framework.views loads the authentication classes, which import this module
    from rest_framework.views import set_rollback  # type: ignore

    error = to_app_error(exc)
    if error is None:
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s",
            view.__class__.__name__ if view is not None else "view",
            exc_info=exc,
        )
    body, status_code = error_payload(error, exc)
    set_rollback()

    headers = {}
    auth_header = getattr(exc, "auth_header", None)
    if auth_header:
        headers["WWW-Authenticate"] = auth_header
    wait = getattr(exc, "wait", None)
    if wait:
        headers["Retry-After"] = str(int(wait))
    return Response(body, status=status_code, headers=headers)
