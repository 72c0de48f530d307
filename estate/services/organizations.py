"""Resolve which organization a request acts for and with what role."""
from __future__ import annotations

from sqlalchemy.orm import Session

from estate.core.context import OrganizationContext, OrgRole
from estate.core.exceptions import PermissionDeniedError, ValidationError
from estate.core.logger import get_logger
from estate.db.gateway import TableGateway
from estate.repositories.organization_repository import MembershipRow, OrganizationRepository

LOGGER = get_logger(__name__)


class OrganizationDirectory:
    """Turn a (user, organization) selection into an ``OrganizationContext``."""

    def __init__(
        self,
        session: Session | None = None,
        *,
        gateway: TableGateway | None = None,
        repository: OrganizationRepository | None = None,
    ) -> None:
        if repository is None:
            if gateway is None:
                if session is None:
                    raise ValueError("session, gateway or repository is required")
                gateway = TableGateway(session)
            repository = OrganizationRepository(gateway)
        self._repository = repository

    def resolve_context(self, organization_id: str | None, user_id: str | None) -> OrganizationContext:
        """Return the context for ``user_id`` acting in ``organization_id``.

        Only accepted memberships count; anything else is a permission failure.
        """

        if not organization_id:
            raise ValidationError("an organization must be selected")
        if not user_id:
            raise ValidationError("user id is required")
        membership = self._repository.accepted_membership(organization_id, user_id)
        if membership is None:
            LOGGER.info(
                "Rejected organization access",
                extra={"organization_id": organization_id, "user_id": user_id},
            )
            raise PermissionDeniedError("you are not a member of this organization")
        return OrganizationContext(
            organization_id=membership.organization_id,
            user_id=membership.user_id,
            role=OrgRole(membership.role),
        )

    def organizations_for(self, user_id: str) -> list[MembershipRow]:
        """Return the organizations ``user_id`` can switch to, sorted by name."""

        return self._repository.memberships_for_user(user_id)
