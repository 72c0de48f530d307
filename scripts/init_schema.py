#!/usr/bin/env python3
"""Create the ledger tables and report which ones carry the tenant column."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sqlalchemy import text

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from estate.core import Settings, get_settings  # noqa: E402  (import after sys.path manipulation)
from estate.core.logger import LoggingConfig, get_logger, init_logging, shutdown_logging  # noqa: E402
from estate.db.engine import create_sync_engine  # noqa: E402
from estate.db.schema_probe import probe_tenant_scope  # noqa: E402
from estate.models import Base  # noqa: E402

LOGGER = get_logger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--probe-only",
        action="store_true",
        help="Only inspect the existing schema; do not create missing tables",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when a ledger table lacks the tenant column",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    init_logging(LoggingConfig.from_settings(settings))
    try:
        _prepare(args, settings)
    finally:
        shutdown_logging()


def _prepare(args: argparse.Namespace, settings: Settings) -> None:
    engine = create_sync_engine()

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    LOGGER.info("Connected to %s", settings.database.masked_url)

    if not args.probe_only:
        Base.metadata.create_all(engine)
        LOGGER.info("Ensured %s tables", len(Base.metadata.tables))

    scope = probe_tenant_scope(engine, strict=args.strict or None)
    if scope.fully_enforced:
        LOGGER.info("All ledger tables carry '%s'", scope.column)
    else:
        LOGGER.warning("Legacy tables without '%s': %s", scope.column, ", ".join(sorted(scope.legacy_tables)))


if __name__ == "__main__":
    main()
