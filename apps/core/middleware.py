"""Error rendering for server-rendered pages.

API views answer through the DRF exception handler; this middleware only
deals with exceptions escaping plain Django views (the pages app).
"""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.http import Http404  # type: ignore

from .exceptions import AppError, NotFound
from .views import is_api_request, render_error_page

logger = logging.getLogger(__name__)


class ErrorPageMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if is_api_request(request):
            return None
        if isinstance(exception, Http404):
            exception = NotFound(str(exception) or None)
        if isinstance(exception, AppError):
            return render_error_page(request, exception.message, exception.status_code)
        if settings.DEBUG:
            # Let Django show its technical error page
            return None
        logger.exception("Unhandled error rendering %s", request.path, exc_info=exception)
        return render_error_page(request, "Please try again later.", 500)
