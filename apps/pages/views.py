"""Server-rendered pages.

Pages read the session token from the ``jwt`` cookie. Errors raised here
are rendered as the HTML error page by `apps.core.middleware`.
"""

from __future__ import annotations

from django.shortcuts import render  # type: ignore
from django.views.decorators.http import require_GET  # type: ignore

from apps.core.exceptions import NotFound
from apps.tours.models import Tour
from apps.users.permissions import login_optional, login_required

ALERTS = {
    "booking": "Your booking was successful! Please check your email for a confirmation. "
    "If your booking doesn't show up here immediately, please come back later.",
}


def _context(request, identity, **extra):
    return {"identity": identity, "alert": ALERTS.get(request.GET.get("alert", "")), **extra}


@require_GET
@login_optional
def overview(request, identity=None):
    tours = Tour.objects.visible().prefetch_related("start_dates", "locations")
    return render(request, "overview.html", _context(request, identity, title="All Tours", tours=tours))


@require_GET
@login_optional
def tour_detail(request, slug, identity=None):
    tour = (
        Tour.objects.visible()
        .filter(slug=slug)
        .prefetch_related("guides", "locations", "start_dates", "reviews__user")
        .first()
    )
    if tour is None:
        raise NotFound("There is no tour with that name.")
    return render(request, "tour.html", _context(request, identity, title=f"{tour.name} Tour", tour=tour))


@require_GET
@login_optional
def login_form(request, identity=None):
    return render(request, "login.html", _context(request, identity, title="Log into your account"))


@require_GET
@login_required
def account(request, identity=None):
    return render(request, "account.html", _context(request, identity, title="Your account"))


@require_GET
@login_required
def my_tours(request, identity=None):
    tours = (
        Tour.objects.filter(bookings__user=identity)
        .distinct()
        .prefetch_related("start_dates", "locations")
    )
    return render(request, "overview.html", _context(request, identity, title="My Tours", tours=tours))
