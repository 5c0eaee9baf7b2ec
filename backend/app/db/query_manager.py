"""Chainable `Model.objects` query helpers for SQLModel tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlmodel import SQLModel, col, select

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

ModelT = TypeVar("ModelT", bound=SQLModel)


@dataclass(frozen=True)
class QuerySet(Generic[ModelT]):
    """Immutable query builder; every refinement returns a new queryset."""

    model: type[ModelT]
    criteria: tuple[Any, ...] = ()
    ordering: tuple[Any, ...] = ()
    row_limit: int | None = None
    _filters: dict[str, Any] = field(default_factory=dict)

    def filter(self, *criteria: Any) -> QuerySet[ModelT]:
        return QuerySet(
            self.model,
            (*self.criteria, *criteria),
            self.ordering,
            self.row_limit,
            self._filters,
        )

    def filter_by(self, **values: Any) -> QuerySet[ModelT]:
        return QuerySet(
            self.model,
            self.criteria,
            self.ordering,
            self.row_limit,
            {**self._filters, **values},
        )

    def order_by(self, *ordering: Any) -> QuerySet[ModelT]:
        return QuerySet(
            self.model,
            self.criteria,
            (*self.ordering, *ordering),
            self.row_limit,
            self._filters,
        )

    def limit(self, count: int) -> QuerySet[ModelT]:
        return QuerySet(self.model, self.criteria, self.ordering, count, self._filters)

    def statement(self) -> SelectOfScalar[ModelT]:
        stmt = select(self.model)
        if self._filters:
            stmt = stmt.filter_by(**self._filters)
        if self.criteria:
            stmt = stmt.where(*self.criteria)
        if self.ordering:
            stmt = stmt.order_by(*self.ordering)
        if self.row_limit is not None:
            stmt = stmt.limit(self.row_limit)
        return stmt

    async def all(self, session: AsyncSession) -> list[ModelT]:
        result = await session.exec(self.statement())
        return list(result.all())

    async def first(self, session: AsyncSession) -> ModelT | None:
        result = await session.exec(self.limit(1).statement())
        return result.first()


class ModelManager(Generic[ModelT]):
    """Entry point returned by `Model.objects`."""

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    def all(self) -> QuerySet[ModelT]:
        return QuerySet(self.model)

    def filter(self, *criteria: Any) -> QuerySet[ModelT]:
        return self.all().filter(*criteria)

    def filter_by(self, **values: Any) -> QuerySet[ModelT]:
        return self.all().filter_by(**values)

    def by_id(self, obj_id: object) -> QuerySet[ModelT]:
        return self.filter(col(self.model.id) == obj_id)  # type: ignore[attr-defined]


class ManagerDescriptor:
    """Class-level descriptor building a manager for the owning model."""

    def __get__(self, instance: object, owner: type[ModelT]) -> ModelManager[ModelT]:
        return ModelManager(owner)
