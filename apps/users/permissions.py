"""Authorization: DRF permission classes and page view decorators."""

from __future__ import annotations

from functools import wraps
from typing import Callable

from rest_framework import permissions  # type: ignore

from apps.core.exceptions import Forbidden, Unauthenticated

from .authentication import authenticate_token, extract_token, resolve_identity


class IsLoggedIn(permissions.BasePermission):
    """Protect a route: the caller must carry a valid token.

    Raises `Unauthenticated` with the precise reason the token was refused
    (missing, invalid, owner gone, password changed since issuance).
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            return True
        error = getattr(request, "_token_error", None)
        if error is not None:
            raise error
        raise Unauthenticated()


def restrict_to(*roles: str) -> type[permissions.BasePermission]:
    """Permission class allowing only the given roles.

    Must come after `IsLoggedIn` in ``permission_classes``.
    """

    class RestrictTo(permissions.BasePermission):
        allowed_roles = frozenset(str(role) for role in roles)

        def has_permission(self, request, view) -> bool:  # type: ignore
            if getattr(request.user, "role", None) not in self.allowed_roles:
                raise Forbidden()
            return True

    RestrictTo.__name__ = f"RestrictTo({', '.join(map(str, roles))})"
    return RestrictTo


class IsAuthorOrAdmin(permissions.BasePermission):
    """Writes on an owned record are limited to its author and admins."""

    message = "You cannot edit or delete someone else's review."

    def has_object_permission(self, request, view, obj) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if user.is_admin:
            return True
        if getattr(obj, "user_id", None) == user.pk:
            return True
        raise Forbidden(self.message)


# --- Page views ----------------------------------------------------------------

def login_optional(view: Callable) -> Callable:
    """Resolve the identity if a valid token is present; never fails.

    The view receives it as the ``identity`` keyword argument (or ``None``).
    """

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        kwargs["identity"] = resolve_identity(request)
        return view(request, *args, **kwargs)

    return wrapper


def login_required(view: Callable) -> Callable:
    """Like `login_optional` but raises `Unauthenticated` without a valid token."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        kwargs["identity"] = authenticate_token(extract_token(request))
        return view(request, *args, **kwargs)

    return wrapper
