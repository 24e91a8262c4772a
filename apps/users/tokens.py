"""Identity tokens.

Tokens are SimpleJWT access tokens carrying the account id (claim ``id``),
``iat`` and ``exp``, signed with ``JWT_SECRET``. A token stays valid until it
expires or the account changes its password after the token was issued.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from rest_framework_simplejwt.exceptions import TokenError  # type: ignore
from rest_framework_simplejwt.settings import api_settings as jwt_settings  # type: ignore
from rest_framework_simplejwt.tokens import AccessToken  # type: ignore

from apps.core.exceptions import InvalidToken


@dataclass(frozen=True)
class TokenClaims:
    user_id: Any
    issued_at: int


def issue_token(user) -> str:
    token = AccessToken.for_user(user)
    token.set_iat()
    return str(token)


def verify_token(raw: str) -> TokenClaims:
    """Check signature, type and expiry; raise `InvalidToken` otherwise."""
    try:
        token = AccessToken(raw)
    except TokenError as exc:
        raise InvalidToken() from exc

    user_id = token.get(jwt_settings.USER_ID_CLAIM)
    issued_at = token.get("iat")
    if user_id is None or issued_at is None:
        raise InvalidToken()
    return TokenClaims(user_id=user_id, issued_at=int(issued_at))


def was_password_changed_after(user, issued_at: int) -> bool:
    """True when the password changed at or after ``issued_at`` (seconds)."""
    changed_at = getattr(user, "password_changed_at", None)
    if changed_at is None:
        return False
    return issued_at <= int(changed_at.timestamp())
