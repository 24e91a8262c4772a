"""Credential storage: password digests and password-reset tokens.

Password digests go through Django's hasher framework. The preferred
hasher is bcrypt (over SHA-256) with a work factor read from
``PASSWORD_HASH_ROUNDS``. Reset tokens are random 32-byte values; only
their SHA-256 digest is ever stored.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from django.conf import settings  # type: ignore
from django.contrib.auth.hashers import BCryptSHA256PasswordHasher, check_password, make_password  # type: ignore
from django.utils import timezone  # type: ignore


class TunableBCryptSHA256PasswordHasher(BCryptSHA256PasswordHasher):
    """bcrypt hasher whose cost factor comes from settings."""

    @property
    def rounds(self) -> int:  # type: ignore[override]
        return getattr(settings, "PASSWORD_HASH_ROUNDS", 12)


def hash_password(plain: str | None) -> str:
    return make_password(plain)


def verify_password(plain: str, digest: str) -> bool:
    if not plain or not digest:
        return False
    return check_password(plain, digest)


@dataclass(frozen=True)
class ResetToken:
    plain: str
    hashed: str
    expires_at: datetime


def hash_reset_token(plain: str) -> str:
    return hashlib.sha256(plain.encode("utf-8")).hexdigest()


def create_reset_token(now: datetime | None = None) -> ResetToken:
    plain = secrets.token_hex(32)
    lifetime = timedelta(minutes=getattr(settings, "PASSWORD_RESET_TIMEOUT_MINUTES", 10))
    return ResetToken(
        plain=plain,
        hashed=hash_reset_token(plain),
        expires_at=(now or timezone.now()) + lifetime,
    )
