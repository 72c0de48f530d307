"""One-time detection of the tenant partition column on ledger tables.

Deployments that predate multi-tenancy lack ``organization_id`` on some
tables. Rather than retrying every failed query without the tenant filter,
the probe inspects the schema once and records which tables are still on the
legacy layout. Strict mode refuses to start in that situation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import inspect
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from estate.core.config import get_settings
from estate.core.exceptions import PersistenceError, TenantSchemaError
from estate.core.logger import get_logger

LOGGER = get_logger(__name__)

LEDGER_TABLES: tuple[str, ...] = (
    "workers",
    "daily_plucking",
    "worker_bonuses",
    "salary_payments",
)


@dataclass(frozen=True, slots=True)
class TenantScope:
    """Which tables carry the tenant column."""

    column: str = "organization_id"
    legacy_tables: frozenset[str] = frozenset()

    def enforces(self, table: str) -> bool:
        return table not in self.legacy_tables

    @property
    def fully_enforced(self) -> bool:
        return not self.legacy_tables


def probe_tenant_scope(
    bind: Engine | Connection,
    *,
    tables: Iterable[str] = LEDGER_TABLES,
    column: str | None = None,
    strict: bool | None = None,
) -> TenantScope:
    """Inspect ``tables`` and return the resulting ``TenantScope``.

    Raises ``PersistenceError`` when a table is missing altogether and
    ``TenantSchemaError`` when ``strict`` is set and a table lacks the column.
    """

    ledger_settings = get_settings().ledger
    column = column or ledger_settings.tenant_column
    strict = ledger_settings.require_tenant_column if strict is None else strict

    try:
        inspector = inspect(bind)
        existing = set(inspector.get_table_names())
        legacy: set[str] = set()
        for table in tables:
            if table not in existing:
                raise PersistenceError(
                    f"table '{table}' not found; run the schema setup", table=table
                )
            names = {col["name"] for col in inspector.get_columns(table)}
            if column in names:
                continue
            if strict:
                raise TenantSchemaError(
                    f"table '{table}' has no '{column}' column", table=table
                )
            legacy.add(table)
    except SQLAlchemyError as exc:
        raise PersistenceError(f"schema inspection failed: {exc}") from exc

    if legacy:
        LOGGER.warning(
            "Tenant column '%s' missing on %s; those tables are read and written unscoped",
            column,
            ", ".join(sorted(legacy)),
        )
    else:
        LOGGER.debug("Tenant column '%s' present on all ledger tables", column)
    return TenantScope(column=column, legacy_tables=frozenset(legacy))
