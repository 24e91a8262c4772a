"""URL declarations for the server-rendered pages (namespace: pages)."""

from django.urls import path  # type: ignore

from . import views

urlpatterns = [
    path('', views.overview, name='overview'),
    path('tour/<slug:slug>/', views.tour_detail, name='tour'),
    path('login/', views.login_form, name='login'),
    path('me/', views.account, name='account'),
    path('my-tours/', views.my_tours, name='my-tours'),
]
