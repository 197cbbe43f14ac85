"""Backend-independent data-access contract.

Services never talk to a database directly. They receive a
``StorageBackend`` and describe reads with ``Query`` objects made of
``Filter`` clauses. Rows travel as plain dicts keyed by column name.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, Mapping, Optional, Union

ENTITIES = (
    "tenants",
    "members",
    "commissions",
    "commission_roles",
    "ballots",
    "votes",
    "surveys",
    "survey_items",
    "survey_votes",
    "audit_logs",
)

Row = dict


@dataclass(frozen=True)
class Filter:
    field: str
    value: Any
    op: str = "eq"

    def __post_init__(self):
        if self.op not in ("eq", "in"):
            raise ValueError(f"Unsupported filter operator: {self.op}")
        if self.op == "in":
            object.__setattr__(self, "value", tuple(self.value))

    def matches(self, row: Mapping[str, Any]) -> bool:
        current = row.get(self.field)
        if self.op == "in":
            return current in self.value
        return current == self.value


def eq(field_name: str, value: Any) -> Filter:
    return Filter(field_name, value)


def in_(field_name: str, values: Iterable[Any]) -> Filter:
    return Filter(field_name, values, op="in")


FilterSpec = Union[Mapping[str, Any], Iterable[Filter], None]


def as_filters(filters: FilterSpec) -> tuple[Filter, ...]:
    """Accept ``{"field": value}`` shorthands as well as explicit filters."""
    if filters is None:
        return ()
    if isinstance(filters, Mapping):
        return tuple(Filter(name, value) for name, value in filters.items())
    return tuple(filters)


@dataclass(frozen=True)
class Query:
    entity: str
    filters: tuple[Filter, ...] = field(default_factory=tuple)
    # lock the matched rows until the surrounding transaction ends
    for_update: bool = False

    def __post_init__(self):
        if self.entity not in ENTITIES:
            raise ValueError(f"Unknown entity set: {self.entity}")
        object.__setattr__(self, "filters", as_filters(self.filters))

    @classmethod
    def where(cls, entity: str, for_update: bool = False, **equals: Any) -> "Query":
        return cls(entity, as_filters(equals), for_update=for_update)

    def matches(self, row: Mapping[str, Any]) -> bool:
        return all(clause.matches(row) for clause in self.filters)


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stamp(record: Mapping[str, Any]) -> Row:
    """Copy ``record`` and fill the generated ``id`` / ``created_at`` columns."""
    row = dict(record)
    if not row.get("id"):
        row["id"] = new_id()
    if not row.get("created_at"):
        row["created_at"] = utcnow()
    return row


class StorageBackend(ABC):
    """The four data-access operations plus an atomic transaction scope.

    Every method may raise ``signa.errors.StorageError``.
    """

    name = "abstract"

    @abstractmethod
    def query(self, query: Query) -> list[Row]:
        ...

    @abstractmethod
    def insert(
        self, entity: str, records: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]]
    ) -> Union[Row, list[Row]]:
        ...

    @abstractmethod
    def update(self, entity: str, filters: FilterSpec, patch: Mapping[str, Any]) -> list[Row]:
        ...

    @abstractmethod
    def delete(self, entity: str, filters: FilterSpec) -> None:
        ...

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator["StorageBackend"]:
        ...

    def get(self, entity: str, row_id: str, for_update: bool = False) -> Optional[Row]:
        rows = self.query(Query(entity, (eq("id", row_id),), for_update=for_update))
        return rows[0] if rows else None

    def find(self, entity: str, **equals: Any) -> list[Row]:
        return self.query(Query.where(entity, **equals))
