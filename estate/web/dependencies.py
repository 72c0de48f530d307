"""Shared FastAPI dependency definitions."""
from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache

from fastapi import Depends, Header
from sqlalchemy.orm import Session, sessionmaker

from estate.core.context import OrganizationContext
from estate.db.engine import get_shared_engine
from estate.db.schema_probe import TenantScope, probe_tenant_scope
from estate.db.session import get_sessionmaker
from estate.services.use_cases import ResolveOrganizationContext


@lru_cache
def _session_factory() -> sessionmaker:
    # Built on first use so importing the app does not require a reachable database.
    return get_sessionmaker()


@lru_cache
def _shared_tenant_scope() -> TenantScope:
    return probe_tenant_scope(get_shared_engine())


def get_db_session() -> Generator[Session, None, None]:
    """Yield a database session suitable for request-scoped usage."""

    session = _session_factory()()
    try:
        yield session
    finally:
        session.close()


def get_tenant_scope() -> TenantScope:
    """Return the tenant scope probed once for this process."""

    return _shared_tenant_scope()


def get_org_context(
    organization_id: str | None = Header(default=None, alias="X-Organization-Id"),
    user_id: str | None = Header(default=None, alias="X-User-Id"),
    session: Session = Depends(get_db_session),
) -> OrganizationContext:
    """Resolve the caller's organization and role from request headers."""

    return ResolveOrganizationContext(session).execute(organization_id, user_id)
