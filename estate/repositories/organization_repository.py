"""Membership lookups used to resolve the caller's organization context."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from estate.db.gateway import TableGateway


@dataclass(frozen=True)
class MembershipRow:
    organization_id: str
    organization_name: str
    user_id: str
    role: str


class OrganizationRepository:
    """Read accepted memberships from ``organization_members``."""

    def __init__(self, gateway: TableGateway) -> None:
        self._gateway = gateway

    def accepted_membership(self, organization_id: str, user_id: str) -> MembershipRow | None:
        rows = self._gateway.select(
            "organization_members",
            {
                "organization_id": organization_id,
                "user_id": user_id,
                "accepted_at__ne": None,
            },
        )
        if not rows:
            return None
        return self._to_membership(rows[0], self._names([organization_id]))

    def memberships_for_user(self, user_id: str) -> list[MembershipRow]:
        rows = self._gateway.select(
            "organization_members", {"user_id": user_id, "accepted_at__ne": None}
        )
        names = self._names([str(row["organization_id"]) for row in rows])
        memberships = [self._to_membership(row, names) for row in rows]
        return sorted(memberships, key=lambda item: item.organization_name.lower())

    def _names(self, organization_ids: list[str]) -> dict[str, str]:
        if not organization_ids:
            return {}
        rows = self._gateway.select("organizations", {"id__in": organization_ids})
        return {str(row["id"]): str(row["name"]) for row in rows}

    @staticmethod
    def _to_membership(row: dict[str, Any], names: dict[str, str]) -> MembershipRow:
        organization_id = str(row["organization_id"])
        return MembershipRow(
            organization_id=organization_id,
            organization_name=names.get(organization_id, organization_id),
            user_id=str(row["user_id"]),
            role=str(row["role"]),
        )
