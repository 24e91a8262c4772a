"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "tour", "user", "price", "paid", "created_at")
    list_filter = ("paid", "created_at")
    search_fields = ("tour__name", "user__email", "checkout_session_id")
    readonly_fields = ("checkout_session_id", "created_at")
    raw_id_fields = ("tour", "user")
