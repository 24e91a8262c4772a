"""User API views: the caller's own profile and admin account management."""

from __future__ import annotations

import logging
import time

from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from rest_framework import viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore

from apps.core.crud import CrudViewSet, EntityDescriptor
from apps.core.exceptions import AppError, ValidationError
from apps.core.images import stash_upload
from apps.core.responses import no_content, success
from apps.reviews.events import author_review_events

from .auth_serializers import UpdateMeSerializer
from .permissions import IsLoggedIn, restrict_to
from .serializers import UserAdminSerializer, UserSerializer
from .tasks import resize_user_photo

logger = logging.getLogger(__name__)

User = get_user_model()

PASSWORD_FIELDS = ("password", "password_confirm", "passwordConfirm")

USER_DESCRIPTOR = EntityDescriptor(
    name="user",
    model=User,
    serializer_class=UserSerializer,
    write_serializer_class=UserAdminSerializer,
    queryset=lambda: User.objects.active(),
    filter_fields=("name", "email", "role", "created_at"),
    events=author_review_events,
)


class MeViewSet(viewsets.ViewSet):
    """The authenticated caller's own account.

    - `me` returns the profile
    - `update_me` edits name, email and photo (never the password)
    - `delete_me` deactivates the account
    """

    permission_classes = [IsLoggedIn]

    @action(detail=False, methods=["get"])
    def me(self, request):
        return success(UserSerializer(request.user).data)

    @action(detail=False, methods=["patch"], url_path="update-me")
    def update_me(self, request):
        if any(field in request.data for field in PASSWORD_FIELDS):
            raise ValidationError("This route is not for password updates. Please use /update-my-password.")

        user = request.user
        payload = {key: request.data[key] for key in ("name", "email") if key in request.data}
        serializer = UpdateMeSerializer(user, data=payload, partial=True)
        serializer.is_valid(raise_exception=True)

        upload = request.FILES.get("photo")
        source = stash_upload(upload) if upload else None
        previous = user.photo
        with transaction.atomic():
            user = serializer.save()
            if source:
                filename = f"user-{user.pk}-{int(time.time() * 1000)}.jpeg"
                user.photo = filename
                user.save(update_fields=["photo"])
                transaction.on_commit(lambda: resize_user_photo.delay(source, filename, previous))

        return success({"user": UserSerializer(user).data}, key=None)

    @action(detail=False, methods=["delete"], url_path="delete-me")
    def delete_me(self, request):
        request.user.deactivate()
        logger.info("User deactivated their account", extra={"user_id": request.user.pk})
        return no_content()


class UserViewSet(CrudViewSet):
    """Admin management of accounts. New accounts only come from signup."""

    descriptor = USER_DESCRIPTOR
    permission_classes = [IsLoggedIn, restrict_to(User.RoleChoices.ADMIN)]

    def create(self, request, *args, **kwargs):  # type: ignore
        raise AppError("This route is not defined! Please use /signup instead")
