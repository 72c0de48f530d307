"""Explicit organization context passed to every ledger call."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .exceptions import PermissionDeniedError, ValidationError


class OrgRole(str, Enum):
    """Membership roles, highest privilege first."""

    OWNER = "owner"
    ADMIN = "admin"
    MANAGER = "manager"
    VIEWER = "viewer"


_EDIT_ROLES = frozenset({OrgRole.OWNER, OrgRole.ADMIN, OrgRole.MANAGER})
_DELETE_ROLES = frozenset({OrgRole.OWNER, OrgRole.ADMIN})


@dataclass(frozen=True, slots=True)
class OrganizationContext:
    """The tenant a caller is acting for, and the role they hold in it."""

    organization_id: str
    user_id: str | None = None
    role: OrgRole = OrgRole.VIEWER

    def __post_init__(self) -> None:
        if not self.organization_id:
            raise ValidationError("organization_id is required")
        if not isinstance(self.role, OrgRole):
            object.__setattr__(self, "role", OrgRole(self.role))

    @property
    def can_edit(self) -> bool:
        return self.role in _EDIT_ROLES

    @property
    def can_delete(self) -> bool:
        return self.role in _DELETE_ROLES

    def require_edit(self) -> None:
        if not self.can_edit:
            raise PermissionDeniedError(
                f"role '{self.role.value}' cannot modify ledger data"
            )

    def require_delete(self) -> None:
        if not self.can_delete:
            raise PermissionDeniedError(
                f"role '{self.role.value}' cannot delete ledger data"
            )
