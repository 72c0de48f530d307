"""Tabular persistence contract used by the ledger: CRUD by table name plus RPC."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Sequence

from sqlalchemy import MetaData, Table, bindparam, delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from estate.core.exceptions import PersistenceError
from estate.core.logger import get_logger
from estate.models import Base
from estate.models.base import new_id

from .schema_probe import TenantScope

LOGGER = get_logger(__name__)

Filters = Mapping[str, Any]

_OPERATORS = {
    "eq": lambda col, value: col.is_(None) if value is None else col == value,
    "ne": lambda col, value: col.is_not(None) if value is None else col != value,
    "gte": lambda col, value: col >= value,
    "lte": lambda col, value: col <= value,
    "in": lambda col, value: col.in_(list(value)),
}


class TableGateway:
    """Execute table-level statements on a session, translating driver failures.

    Filters are ``{"column": value}`` equality matches; a ``column__op`` key
    selects another operator (``ne``, ``gte``, ``lte``, ``in``). Ordering
    entries are column names, prefixed with ``-`` for descending order.

    Tables the ``TenantScope`` marks as legacy have the tenant column stripped
    from filters, patches and inserted rows.
    """

    def __init__(
        self,
        session: Session,
        scope: TenantScope | None = None,
        metadata: MetaData | None = None,
    ) -> None:
        self._session = session
        self._scope = scope or TenantScope()
        self._metadata = metadata or Base.metadata

    @property
    def session(self) -> Session:
        return self._session

    @property
    def scope(self) -> TenantScope:
        return self._scope

    def table(self, name: str) -> Table:
        try:
            return self._metadata.tables[name]
        except KeyError:
            raise PersistenceError(f"unknown table '{name}'", table=name) from None

    def select(
        self,
        table: str,
        filters: Filters | None = None,
        ordering: Sequence[str] = (),
    ) -> list[dict[str, Any]]:
        target = self.table(table)
        statement = select(*self._columns(target)).where(
            *self._conditions(target, filters or {})
        )
        for key in ordering:
            descending = key.startswith("-")
            column = self._column(target, key.lstrip("-"))
            statement = statement.order_by(column.desc() if descending else column.asc())
        with self._translate(table):
            result = self._session.execute(statement)
            return [dict(row) for row in result.mappings()]

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Insert ``rows`` as one batch and return them as stored."""

        if not rows:
            return []
        target = self.table(table)
        prepared = [self._scoped_values(target, row) for row in rows]
        if "id" in target.c:
            for row in prepared:
                row.setdefault("id", new_id())
        with self._translate(table):
            self._session.execute(insert(target), prepared)
        if "id" not in target.c:
            return prepared
        ids = [row["id"] for row in prepared]
        stored = {row["id"]: row for row in self.select(table, {"id__in": ids})}
        return [stored[row_id] for row_id in ids if row_id in stored]

    def update(self, table: str, patch: Mapping[str, Any], match: Filters) -> int:
        """Apply ``patch`` to rows matching ``match``; return the affected row count."""

        target = self.table(table)
        values = self._scoped_values(target, patch)
        statement = update(target).where(*self._conditions(target, match)).values(**values)
        with self._translate(table):
            return self._session.execute(statement).rowcount

    def delete(self, table: str, match: Filters) -> int:
        target = self.table(table)
        statement = delete(target).where(*self._conditions(target, match))
        with self._translate(table):
            return self._session.execute(statement).rowcount

    def call_procedure(self, name: str, args: Mapping[str, Any] | None = None) -> Any:
        """Invoke a server-side function and return its scalar result."""

        params = [bindparam(key, value) for key, value in (args or {}).items()]
        statement = select(getattr(func, name)(*params))
        with self._translate(name):
            return self._session.execute(statement).scalar()

    @contextmanager
    def unit_of_work(self) -> Iterator["TableGateway"]:
        """Commit the statements issued inside the block, or roll them all back."""

        try:
            yield self
            with self._translate(None):
                self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    @contextmanager
    def _translate(self, table: str | None) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self._session.rollback()
            message = str(getattr(exc, "orig", None) or exc)
            LOGGER.error("Statement on %s failed: %s", table or "session", message)
            raise PersistenceError(message, table=table) from exc

    def _legacy(self, target: Table) -> bool:
        return not self._scope.enforces(target.name)

    def _columns(self, target: Table) -> list:
        if self._legacy(target):
            return [col for col in target.columns if col.name != self._scope.column]
        return list(target.columns)

    def _column(self, target: Table, name: str):
        try:
            return target.c[name]
        except KeyError:
            raise PersistenceError(
                f"unknown column '{name}' on '{target.name}'", table=target.name
            ) from None

    def _conditions(self, target: Table, filters: Filters) -> list:
        conditions = []
        for key, value in filters.items():
            name, _, op = key.partition("__")
            if name == self._scope.column and self._legacy(target):
                continue
            try:
                operator = _OPERATORS[op or "eq"]
            except KeyError:
                raise PersistenceError(f"unsupported filter operator '{op}'") from None
            conditions.append(operator(self._column(target, name), value))
        return conditions

    def _scoped_values(self, target: Table, values: Mapping[str, Any]) -> dict[str, Any]:
        prepared = dict(values)
        if self._legacy(target):
            prepared.pop(self._scope.column, None)
        return prepared
