"""JSON envelope used by every successful API response.

    {"status": "success", "results": 3, "data": {"data": [...]}}
"""

from __future__ import annotations

from typing import Any

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore


def success(
    data: Any = None,
    *,
    status_code: int = status.HTTP_200_OK,
    results: int | None = None,
    key: str | None = "data",
    **extra: Any,
) -> Response:
    body: dict[str, Any] = {"status": "success"}
    if results is not None:
        body["results"] = results
    body.update(extra)
    if data is not None:
        body["data"] = {key: data} if key else data
    return Response(body, status=status_code)


def no_content() -> Response:
    return Response(status=status.HTTP_204_NO_CONTENT)
