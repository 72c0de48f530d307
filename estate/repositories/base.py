"""Shared helpers for tenant-scoped repositories."""
from __future__ import annotations

from typing import Any

from estate.core.context import OrganizationContext
from estate.db.gateway import TableGateway


class BaseRepository:
    """Base repository binding a gateway and the tenant filter it must carry."""

    table: str = ""

    def __init__(self, gateway: TableGateway) -> None:
        self._gateway = gateway

    @property
    def gateway(self) -> TableGateway:
        return self._gateway

    def _tenant(self, ctx: OrganizationContext, **filters: Any) -> dict[str, Any]:
        """Return ``filters`` with the tenant column set for ``ctx``."""

        return {self._gateway.scope.column: ctx.organization_id, **filters}

    def _first(self, ctx: OrganizationContext, **filters: Any) -> dict[str, Any] | None:
        rows = self._gateway.select(self.table, self._tenant(ctx, **filters))
        return rows[0] if rows else None
