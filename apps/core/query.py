"""Query-string driven list queries.

A raw query mapping (``request.query_params``) is parsed into a small typed
filter AST and applied to a lazy ``QuerySet`` in a fixed order:
filter → sort → field projection → pagination. Nothing hits the database
until the caller iterates the resulting queryset.

Supported syntax::

    ?difficulty=easy&duration[gte]=5&price[lt]=1500
    ?sort=-ratings_average,price
    ?fields=name,price
    ?page=2&limit=10

Control keys (``page``, ``sort``, ``limit``, ``fields`` and DRF's ``format``)
never become filter conditions. Repeated parameters keep all their values
only when the key is whitelisted (``QUERY_PARAM_WHITELIST``); a repeated
equality condition turns into an ``in`` condition.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore
from django.db import models  # type: ignore
from rest_framework.settings import api_settings  # type: ignore

from .exceptions import ValidationError

CONTROL_KEYS = frozenset({"page", "sort", "limit", "fields", api_settings.URL_FORMAT_OVERRIDE} - {None})
COMPARISON_OPERATORS = ("gte", "gt", "lte", "lt")
OPERATORS = ("eq", "in") + COMPARISON_OPERATORS

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100
# LIMIT and OFFSET must fit a signed 64-bit integer
MAX_ROWS = 2 ** 62

_KEY_RE = re.compile(r"^(?P<field>[A-Za-z_]\w*)(?:\[(?P<op>\w+)\])?$")


@dataclass(frozen=True)
class Condition:
    """One filter condition: ``field <op> value``."""

    field: str
    op: str
    value: Any

    def to_lookup(self) -> tuple[str, Any]:
        if self.op == "eq":
            return self.field, self.value
        return f"{self.field}__{self.op}", self.value


def collapse_duplicate_params(query: Mapping[str, Any], whitelist: Iterable[str] | None = None) -> dict[str, Any]:
    """Resolve repeated query parameters.

    Whitelisted keys keep every value as a list; any other repeated key
    resolves to its last value.
    """
    allowed = set(settings.QUERY_PARAM_WHITELIST if whitelist is None else whitelist)
    collapsed: dict[str, Any] = {}
    for key in query.keys():
        if hasattr(query, "getlist"):
            values = query.getlist(key)
        else:
            raw = query[key]
            values = list(raw) if isinstance(raw, (list, tuple)) else [raw]
        if not values:
            continue
        base = key.split("[", 1)[0]
        collapsed[key] = values if len(values) > 1 and base in allowed else values[-1]
    return collapsed


def _coerce(field: models.Field, value: Any) -> Any:
    try:
        if isinstance(field, models.ForeignKey):
            return field.target_field.to_python(value)
        return field.to_python(value)
    except (DjangoValidationError, TypeError, ValueError):
        raise ValidationError(f"Invalid {field.name}: {value}.")


def parse_filters(query: Mapping[str, Any], fields: Mapping[str, models.Field]) -> list[Condition]:
    """Build the filter AST from a collapsed query mapping."""
    conditions: list[Condition] = []
    for key, raw in query.items():
        if key in CONTROL_KEYS:
            continue
        match = _KEY_RE.match(key)
        if not match:
            raise ValidationError(f"Invalid filter: {key}.")
        name, op = match.group("field"), match.group("op") or "eq"
        if op not in OPERATORS:
            raise ValidationError(f"Invalid filter operator: {op}.")
        field = fields.get(name)
        if field is None:
            raise ValidationError(f"Invalid filter field: {name}.")

        if op == "in":
            values = raw if isinstance(raw, list) else str(raw).split(",")
            conditions.append(Condition(name, "in", [_coerce(field, v) for v in values]))
        elif isinstance(raw, list):
            if op == "eq":
                conditions.append(Condition(name, "in", [_coerce(field, v) for v in raw]))
            else:
                conditions.append(Condition(name, op, _coerce(field, raw[-1])))
        else:
            conditions.append(Condition(name, op, _coerce(field, raw)))
    return conditions


def _positive_int(raw: Any, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def model_fields(model: type[models.Model], names: Sequence[str] | None = None) -> dict[str, models.Field]:
    """Concrete, non-m2m fields of a model keyed by name."""
    available = {
        field.name: field
        for field in model._meta.get_fields()
        if getattr(field, "concrete", False) and not field.many_to_many
    }
    if names is None:
        return available
    return {name: available[name] for name in names if name in available}


class QueryBuilder:
    """Chainable, lazy list query.

    >>> qb = QueryBuilder(Tour.objects.all(), request.query_params)
    >>> qb.filter().sort().limit_fields().paginate().queryset
    """

    def __init__(
        self,
        queryset: models.QuerySet,
        raw_query: Mapping[str, Any] | None,
        *,
        filter_fields: Sequence[str] | None = None,
        selectable_fields: Sequence[str] | None = None,
        internal_fields: Sequence[str] = (),
        whitelist: Iterable[str] | None = None,
        default_sort: Sequence[str] | None = None,
    ):
        self.queryset = queryset
        self.query = collapse_duplicate_params(raw_query or {}, whitelist)
        self.model = queryset.model
        self._fields = model_fields(self.model)
        self._filter_fields = model_fields(self.model, filter_fields) if filter_fields is not None else self._fields
        self.selectable_fields = list(selectable_fields) if selectable_fields is not None else None
        self.internal_fields = tuple(internal_fields)
        if default_sort is None:
            default_sort = ("-created_at",) if "created_at" in self._fields else ("-pk",)
        self.default_sort = tuple(default_sort)

        self.conditions: list[Condition] = []
        self.ordering: list[str] = []
        self.fields: list[str] | None = None
        self.omit: tuple[str, ...] = ()
        self.page = DEFAULT_PAGE
        self.limit = DEFAULT_LIMIT

    def _value(self, key: str) -> Any:
        value = self.query.get(key)
        return value[-1] if isinstance(value, list) else value

    def filter(self) -> "QueryBuilder":
        self.conditions = parse_filters(self.query, self._filter_fields)
        if self.conditions:
            lookups = dict(condition.to_lookup() for condition in self.conditions)
            self.queryset = self.queryset.filter(**lookups)
        return self

    def sort(self) -> "QueryBuilder":
        raw = self._value("sort")
        ordering = [part.strip() for part in str(raw).split(",") if part.strip()] if raw else list(self.default_sort)
        for item in ordering:
            name = item.lstrip("-")
            if name != "pk" and name not in self._fields:
                raise ValidationError(f"Invalid sort field: {name}.")
        if not any(item.lstrip("-") in ("pk", "id") for item in ordering):
            ordering.append("pk")
        self.ordering = ordering
        self.queryset = self.queryset.order_by(*ordering)
        return self

    def limit_fields(self) -> "QueryBuilder":
        raw = self._value("fields")
        if raw:
            requested = [part.strip() for part in str(raw).split(",") if part.strip()]
            if self.selectable_fields is not None:
                unknown = [name for name in requested if name not in self.selectable_fields]
                if unknown:
                    raise ValidationError(f"Invalid fields: {', '.join(unknown)}.")
            self.fields = ["id", *[name for name in requested if name != "id"]]
            self.omit = ()
        else:
            self.fields = None
            self.omit = self.internal_fields
        return self

    def paginate(self) -> "QueryBuilder":
        self.page = _positive_int(self._value("page"), DEFAULT_PAGE)
        self.limit = min(_positive_int(self._value("limit"), DEFAULT_LIMIT), MAX_ROWS)
        offset = min((self.page - 1) * self.limit, MAX_ROWS)
        self.queryset = self.queryset[offset:offset + self.limit]
        return self

    def build(self) -> "QueryBuilder":
        return self.filter().sort().limit_fields().paginate()
