"""User domain models for Natours.

Accounts log in by email. Four roles exist (user, guide, lead-guide,
admin); guides and lead guides are attached to tours, admins manage the
catalog and other accounts. Deactivated accounts (``is_active=False``) are
kept in the table but excluded from every lookup made by the app.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.core.validators import MinLengthValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .passwords import hash_password


class UserQuerySet(models.QuerySet):
    def active(self) -> "UserQuerySet":
        return self.filter(is_active=True)


class CustomUserManager(BaseUserManager.from_queryset(UserQuerySet)):
    """User manager that uses the email address as the login."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("An email address is required to create a user.")
        email = self.normalize_email(email).lower()

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", CustomUser.RoleChoices.USER)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", CustomUser.RoleChoices.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)

    def get_by_natural_key(self, username: str):
        return self.get(**{f"{self.model.USERNAME_FIELD}__iexact": username})


class CustomUser(AbstractUser):
    """Platform account."""

    class RoleChoices(models.TextChoices):
        USER = "user", _("User")
        GUIDE = "guide", _("Guide")
        LEAD_GUIDE = "lead-guide", _("Lead guide")
        ADMIN = "admin", _("Admin")

    username = None
    first_name = None
    last_name = None

    name = models.CharField(
        _("Name"),
        max_length=30,
        validators=[MinLengthValidator(3, "A user name must have at least 3 characters.")],
    )
    email = models.EmailField(
        _("Email"),
        unique=True,
        error_messages={"unique": _("Duplicate field value: this email is already in use. Please use another value!")},
    )
    photo = models.CharField(_("Photo"), max_length=255, default="default.jpg", blank=True)
    role = models.CharField(
        _("Role"),
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.USER,
    )
    password_changed_at = models.DateTimeField(null=True, blank=True)
    password_reset_token = models.CharField(max_length=64, blank=True, default="", db_index=True)
    password_reset_expires = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"

    def get_full_name(self) -> str:
        return self.name

    def get_short_name(self) -> str:
        return self.name.split(" ")[0] if self.name else self.email

    def set_password(self, raw_password: str | None) -> None:
        self.password = hash_password(raw_password)
        self._password = raw_password
        if not self._state.adding:
            # One second in the past so a token issued right after the
            # change is never older than the change.
            self.password_changed_at = timezone.now() - timedelta(seconds=1)

    # --- Domain helpers -----------------------------------------------------
    @property
    def is_admin(self) -> bool:
        return self.role == self.RoleChoices.ADMIN

    @property
    def has_pending_reset(self) -> bool:
        return bool(
            self.password_reset_token
            and self.password_reset_expires
            and self.password_reset_expires > timezone.now()
        )

    def clear_password_reset(self, *, save: bool = True) -> None:
        self.password_reset_token = ""
        self.password_reset_expires = None
        if save:
            self.save(update_fields=["password_reset_token", "password_reset_expires"])

    def deactivate(self) -> None:
        self.is_active = False
        self.save(update_fields=["is_active"])


User = CustomUser
