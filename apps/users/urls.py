"""URL declarations for the users app (namespace: users)."""

from __future__ import annotations

from django.urls import path, include  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .auth_views import (
    ForgotPasswordView,
    LoginView,
    LogoutView,
    ResetPasswordView,
    SignupView,
    UpdatePasswordView,
)
from .views import MeViewSet, UserViewSet

router = SimpleRouter()
router.register(r'', UserViewSet, basename='user')

me = MeViewSet.as_view

urlpatterns = [
    path('signup/', SignupView.as_view(), name='signup'),
    path('login/', LoginView.as_view(), name='login'),
    path('logout/', LogoutView.as_view(), name='logout'),
    path('forgot-password/', ForgotPasswordView.as_view(), name='forgot-password'),
    path('reset-password/<str:token>/', ResetPasswordView.as_view(), name='reset-password'),
    path('update-my-password/', UpdatePasswordView.as_view(), name='update-my-password'),
    path('me/', me({'get': 'me'}), name='me'),
    path('update-me/', me({'patch': 'update_me'}), name='update-me'),
    path('delete-me/', me({'delete': 'delete_me'}), name='delete-me'),
    path('', include(router.urls)),
]
