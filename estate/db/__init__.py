"""Database helpers, session factories and the tabular gateway."""

from .engine import create_sync_engine, get_shared_engine
from .gateway import TableGateway
from .schema_probe import LEDGER_TABLES, TenantScope, probe_tenant_scope
from .session import get_sessionmaker

__all__ = [
    "LEDGER_TABLES",
    "TableGateway",
    "TenantScope",
    "create_sync_engine",
    "get_shared_engine",
    "get_sessionmaker",
    "probe_tenant_scope",
]
