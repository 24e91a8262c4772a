"""Views for authentication flows (signup, login, logout, password reset)."""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from django.urls import reverse  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.exceptions import NotFound, OperationalError, Unauthenticated, ValidationError
from apps.notifications.services import send_password_reset_email
from apps.notifications.tasks import deliver_welcome_email

from .auth_serializers import (
    ForgotPasswordSerializer,
    LoginSerializer,
    ResetPasswordSerializer,
    SignupSerializer,
    UpdatePasswordSerializer,
    normalize_aliases,
)
from .authentication import LOGGED_OUT
from .passwords import create_reset_token, hash_reset_token, verify_password
from .permissions import IsLoggedIn
from .serializers import UserSerializer
from .tokens import issue_token

logger = logging.getLogger(__name__)

User = get_user_model()


def token_response(user, request, status_code: int = status.HTTP_200_OK) -> Response:
    """Issue a token, set it as the ``jwt`` cookie and echo it in the body."""
    token = issue_token(user)
    response = Response(
        {
            "status": "success",
            "token": token,
            "data": {"user": UserSerializer(user).data},
        },
        status=status_code,
    )
    response.set_cookie(
        settings.JWT_COOKIE_NAME,
        token,
        expires=timezone.now() + timedelta(days=settings.JWT_COOKIE_EXPIRES_IN_DAYS),
        httponly=True,
        secure=request.is_secure(),
        samesite="Lax",
    )
    return response


class SignupView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = SignupSerializer(data=normalize_aliases(request.data))
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        account_url = request.build_absolute_uri(reverse("pages:account"))
        transaction.on_commit(lambda: deliver_welcome_email.delay(user.pk, account_url))
        logger.info("User signed up", extra={"user_id": user.pk})
        return token_response(user, request, status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data.get("email")
        password = serializer.validated_data.get("password")
        if not email or not password:
            raise ValidationError("Please provide email and password!")

        user = User.objects.active().filter(email__iexact=email).first()
        if user is None or not verify_password(password, user.password):
            raise Unauthenticated("Incorrect email or password")
        return token_response(user, request)


class LogoutView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    def get(self, request):  # type: ignore
        response = Response({"status": "success"})
        response.set_cookie(
            settings.JWT_COOKIE_NAME,
            LOGGED_OUT,
            expires=timezone.now() + timedelta(seconds=10),
            httponly=True,
        )
        return response

    post = get


class ForgotPasswordView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = User.objects.active().filter(email__iexact=serializer.validated_data["email"]).first()
        if user is None:
            raise NotFound("There is no user with that email address.")

        token = create_reset_token()
        user.password_reset_token = token.hashed
        user.password_reset_expires = token.expires_at
        user.save(update_fields=["password_reset_token", "password_reset_expires"])

        reset_url = request.build_absolute_uri(reverse("users:reset-password", args=[token.plain]))
        if not send_password_reset_email(user, reset_url):
            user.clear_password_reset()
            raise OperationalError("There was an error sending the email. Try again later!")

        return Response({"status": "success", "message": "Token sent to email!"})


class ResetPasswordView(APIView):
    permission_classes = [AllowAny]

    @transaction.atomic
    def patch(self, request, token: str):  # type: ignore
        user = (
            User.objects.active()
            .select_for_update()
            .filter(
                password_reset_token=hash_reset_token(token),
                password_reset_expires__gt=timezone.now(),
            )
            .first()
        )
        if user is None:
            raise ValidationError("Token is invalid or has expired")

        serializer = ResetPasswordSerializer(data=normalize_aliases(request.data))
        serializer.is_valid(raise_exception=True)
        user.set_password(serializer.validated_data["password"])
        user.clear_password_reset(save=False)
        user.save()
        return token_response(user, request)

    post = patch


class UpdatePasswordView(APIView):
    permission_classes = [IsLoggedIn]

    def patch(self, request):  # type: ignore
        serializer = UpdatePasswordSerializer(data=normalize_aliases(request.data))
        serializer.is_valid(raise_exception=True)

        user = User.objects.get(pk=request.user.pk)
        if not verify_password(serializer.validated_data["password_current"], user.password):
            raise Unauthenticated("Your current password is wrong.")

        user.set_password(serializer.validated_data["password"])
        user.save()
        return token_response(user, request)
