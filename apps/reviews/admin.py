from django.contrib import admin  # type: ignore

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("id", "tour", "user", "rating", "created_at")
    list_filter = ("rating",)
    search_fields = ("review", "user__email", "tour__name")
    raw_id_fields = ("tour", "user")
