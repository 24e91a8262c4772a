"""Serializer building blocks shared by the API apps."""

from __future__ import annotations

from typing import Any, Iterable

from rest_framework import serializers  # type: ignore


class DynamicFieldsModelSerializer(serializers.ModelSerializer):
    """ModelSerializer whose output can be narrowed per request.

    ``fields`` keeps only the named fields (``id`` is always kept);
    ``omit`` drops the named fields. Both are ignored when ``None``.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        fields: Iterable[str] | None = kwargs.pop("fields", None)
        omit: Iterable[str] | None = kwargs.pop("omit", None)
        super().__init__(*args, **kwargs)

        if fields is not None:
            allowed = set(fields) | {"id"}
            for name in set(self.fields) - allowed:
                self.fields.pop(name)
        if omit:
            for name in omit:
                self.fields.pop(name, None)
