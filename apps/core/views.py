"""Fallback handlers for unknown routes and unhandled server errors."""

from __future__ import annotations

from django.http import HttpRequest, HttpResponse, JsonResponse  # type: ignore
from django.shortcuts import render  # type: ignore

from .exceptions import GENERIC_MESSAGE


def is_api_request(request: HttpRequest) -> bool:
    return request.path.startswith("/api")


def render_error_page(request: HttpRequest, message: str, status_code: int) -> HttpResponse:
    return render(
        request,
        "error.html",
        {"title": "Something went wrong!", "message": message},
        status=status_code,
    )


def not_found(request: HttpRequest, exception: Exception | None = None) -> HttpResponse:
    message = f"Can't find {request.path} on this server!"
    if is_api_request(request):
        return JsonResponse({"status": "fail", "message": message}, status=404)
    return render_error_page(request, message, 404)


def server_error(request: HttpRequest) -> HttpResponse:
    if is_api_request(request):
        return JsonResponse({"status": "error", "message": GENERIC_MESSAGE}, status=500)
    return render_error_page(request, "Please try again later.", 500)
