"""Generic CRUD over registered entity descriptors.

Each entity (tour, user, review, booking) registers an `EntityDescriptor`
naming its model, serializers, visibility rules and the domain events its
writes produce. `CrudEngine` runs the five generic operations against a
descriptor and `CrudViewSet` exposes them over DRF with the success
envelope from `apps.core.responses`.

Writes run inside a `DjangoUnitOfWork`; events reach the message bus only
after the transaction commits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence

from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore
from django.db import IntegrityError, models  # type: ignore
from rest_framework import serializers, viewsets  # type: ignore

from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import DomainEvent

from .exceptions import Conflict, NotFound, ValidationError
from .query import QueryBuilder
from .responses import no_content, success

logger = logging.getLogger(__name__)

EventFactory = Callable[[str, models.Model], Iterable[DomainEvent]]


@dataclass
class EntityDescriptor:
    name: str
    model: type[models.Model]
    serializer_class: type[serializers.Serializer]
    write_serializer_class: type[serializers.Serializer] | None = None
    detail_serializer_class: type[serializers.Serializer] | None = None
    queryset: Callable[[], models.QuerySet] | None = None
    list_populate: Sequence[str] = ()
    detail_populate: Sequence[str] = ()
    internal_fields: Sequence[str] = ()
    filter_fields: Sequence[str] | None = None
    events: EventFactory | None = None
    not_found_message: str = NotFound.default_detail

    def base_queryset(self) -> models.QuerySet:
        if self.queryset is not None:
            return self.queryset()
        return self.model._default_manager.all()

    @property
    def writer(self) -> type[serializers.Serializer]:
        return self.write_serializer_class or self.serializer_class

    @property
    def detail_serializer(self) -> type[serializers.Serializer]:
        return self.detail_serializer_class or self.serializer_class


@dataclass
class QueryResult:
    items: list[models.Model]
    fields: list[str] | None = None
    omit: Sequence[str] = ()
    page: int = 1
    limit: int = 100
    conditions: list = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)


class CrudEngine:
    def __init__(self, descriptor: EntityDescriptor):
        self.descriptor = descriptor

    # reads

    def _coerce_pk(self, pk: Any) -> Any:
        pk_field = self.descriptor.model._meta.pk
        try:
            return pk_field.to_python(pk)
        except (DjangoValidationError, TypeError, ValueError):
            raise ValidationError(f"Invalid {pk_field.name}: {pk}.")

    def get_one(self, pk: Any, *, populate: bool = True) -> models.Model:
        queryset = self.descriptor.base_queryset()
        if populate and self.descriptor.detail_populate:
            queryset = queryset.prefetch_related(*self.descriptor.detail_populate)
        try:
            return queryset.get(pk=self._coerce_pk(pk))
        except self.descriptor.model.DoesNotExist:
            raise NotFound(self.descriptor.not_found_message)

    def get_all(
        self,
        raw_query: Mapping[str, Any] | None = None,
        base_filter: Mapping[str, Any] | None = None,
    ) -> QueryResult:
        queryset = self.descriptor.base_queryset()
        if base_filter:
            queryset = queryset.filter(**base_filter)
        if self.descriptor.list_populate:
            queryset = queryset.prefetch_related(*self.descriptor.list_populate)

        builder = QueryBuilder(
            queryset,
            raw_query,
            filter_fields=self.descriptor.filter_fields,
            selectable_fields=list(self.descriptor.serializer_class().fields),
            internal_fields=self.descriptor.internal_fields,
        ).build()
        return QueryResult(
            items=list(builder.queryset),
            fields=builder.fields,
            omit=builder.omit,
            page=builder.page,
            limit=builder.limit,
            conditions=builder.conditions,
        )

    # writes

    def create(self, payload: Any, *, context: dict | None = None, **extra: Any) -> models.Model:
        serializer = self.descriptor.writer(data=payload, context=context or {})
        serializer.is_valid(raise_exception=True)
        return self._save(serializer, "created", extra)

    def update(self, instance: models.Model, payload: Any, *, context: dict | None = None) -> models.Model:
        serializer = self.descriptor.writer(instance, data=payload, partial=True, context=context or {})
        serializer.is_valid(raise_exception=True)
        return self._save(serializer, "updated", {})

    def update_one(self, pk: Any, payload: Any, *, context: dict | None = None) -> models.Model:
        return self.update(self.get_one(pk, populate=False), payload, context=context)

    def delete(self, instance: models.Model) -> None:
        events = self._events("deleted", instance)
        with DjangoUnitOfWork() as uow:
            instance.delete()
            uow.collect_all(events)
        logger.info("Deleted %s", self.descriptor.name, extra={"entity": self.descriptor.name})

    def delete_one(self, pk: Any) -> None:
        self.delete(self.get_one(pk, populate=False))

    def _events(self, action: str, instance: models.Model) -> list[DomainEvent]:
        if self.descriptor.events is None:
            return []
        return list(self.descriptor.events(action, instance))

    def _save(self, serializer: serializers.Serializer, action: str, extra: dict[str, Any]) -> models.Model:
        existing_pk = getattr(serializer.instance, "pk", None)
        try:
            with DjangoUnitOfWork() as uow:
                instance = serializer.save(**extra)
                uow.collect_all(self._events(action, instance))
        except IntegrityError as exc:
            raise self._conflict({**serializer.validated_data, **extra}, existing_pk) from exc
        return instance

    # uniqueness

    def _unique_sets(self) -> list[tuple[str, ...]]:
        meta = self.descriptor.model._meta
        sets: list[tuple[str, ...]] = [
            (f.name,) for f in meta.concrete_fields if f.unique and not f.primary_key
        ]
        sets.extend(tuple(names) for names in meta.unique_together)
        for constraint in meta.constraints:
            if isinstance(constraint, models.UniqueConstraint) and constraint.fields:
                sets.append(tuple(constraint.fields))
        return sets

    def _conflict(self, data: Mapping[str, Any], exclude_pk: Any) -> Exception:
        """Build a `Conflict` naming the duplicated value(s) when they can be found."""
        manager = self.descriptor.model._base_manager
        for names in self._unique_sets():
            if not all(name in data for name in names):
                continue
            lookup = {name: data[name] for name in names}
            queryset = manager.filter(**lookup)
            if exclude_pk is not None:
                queryset = queryset.exclude(pk=exclude_pk)
            if queryset.exists():
                if len(names) == 1:
                    shown = str(getattr(data[names[0]], "pk", data[names[0]]))
                else:
                    shown = ", ".join(f"{name}={getattr(value, 'pk', value)}" for name, value in lookup.items())
                return Conflict(f"Duplicate field value: {shown}. Please use another value!")
        return Conflict()


class CrudViewSet(viewsets.ViewSet):
    """DRF viewset running the generic engine for one descriptor.

    Subclasses set ``descriptor`` and may override ``get_base_filter`` and
    ``get_create_payload`` (nested routes) or ``get_save_kwargs`` (values
    taken from the request rather than the payload).
    """

    descriptor: EntityDescriptor
    lookup_field = "pk"

    @property
    def engine(self) -> CrudEngine:
        return CrudEngine(self.descriptor)

    def get_base_filter(self) -> dict[str, Any] | None:
        return None

    def get_save_kwargs(self) -> dict[str, Any]:
        return {}

    def get_create_payload(self) -> Any:
        return self.request.data

    def get_serializer_context(self) -> dict[str, Any]:
        return {"request": self.request, "view": self}

    def get_object(self, pk: Any, *, populate: bool = True) -> models.Model:
        instance = self.engine.get_one(pk, populate=populate)
        self.check_object_permissions(self.request, instance)
        return instance

    def list(self, request, *args, **kwargs):  # type: ignore
        result = self.engine.get_all(request.query_params, base_filter=self.get_base_filter())
        data = self.descriptor.serializer_class(
            result.items,
            many=True,
            fields=result.fields,
            omit=result.omit,
            context=self.get_serializer_context(),
        ).data
        return success(data, results=len(data))

    def retrieve(self, request, pk=None, *args, **kwargs):  # type: ignore
        instance = self.get_object(pk)
        serializer = self.descriptor.detail_serializer(instance, context=self.get_serializer_context())
        return success(serializer.data)

    def create(self, request, *args, **kwargs):  # type: ignore
        instance = self.engine.create(
            self.get_create_payload(),
            context=self.get_serializer_context(),
            **self.get_save_kwargs(),
        )
        serializer = self.descriptor.serializer_class(instance, context=self.get_serializer_context())
        return success(serializer.data, status_code=201)

    def partial_update(self, request, pk=None, *args, **kwargs):  # type: ignore
        instance = self.get_object(pk, populate=False)
        instance = self.engine.update(instance, request.data, context=self.get_serializer_context())
        serializer = self.descriptor.serializer_class(instance, context=self.get_serializer_context())
        return success(serializer.data)

    def destroy(self, request, pk=None, *args, **kwargs):  # type: ignore
        self.engine.delete(self.get_object(pk, populate=False))
        return no_content()
