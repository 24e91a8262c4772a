from django.contrib import admin  # type: ignore

from .models import Tour, TourLocation, TourStartDate


class TourLocationInline(admin.TabularInline):
    model = TourLocation
    extra = 0


class TourStartDateInline(admin.TabularInline):
    model = TourStartDate
    extra = 0


@admin.register(Tour)
class TourAdmin(admin.ModelAdmin):
    list_display = ("name", "difficulty", "duration", "price", "ratings_average", "ratings_quantity", "secret_tour")
    list_filter = ("difficulty", "secret_tour")
    search_fields = ("name", "summary")
    readonly_fields = ("slug", "ratings_average", "ratings_quantity", "created_at")
    filter_horizontal = ("guides",)
    inlines = [TourLocationInline, TourStartDateInline]
