"""Application configuration primitives."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_TRUTHY = {"1", "true", "yes", "on"}


def _load_env(dotenv_path: Optional[Path] = None) -> None:
    """Load the .env file once for the process."""

    if getattr(_load_env, "_loaded", False):  # type: ignore[attr-defined]
        return

    load_dotenv(dotenv_path)
    setattr(_load_env, "_loaded", True)  # type: ignore[attr-defined]


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class DatabaseSettings:
    """Configuration for the relational database."""

    driver: str = "mysql+pymysql"
    user: str = "estate"
    password: str = "estate"
    host: str = "127.0.0.1"
    port: int = 3306
    name: str = "estate"
    url_override: str | None = None

    @classmethod
    def from_env(cls) -> "DatabaseSettings":
        """Instantiate settings using environment overrides when present."""

        defaults = cls()
        return cls(
            driver=os.getenv("DB_DRIVER", defaults.driver),
            user=os.getenv("DB_USER", defaults.user),
            password=os.getenv("DB_PASSWORD", defaults.password),
            host=os.getenv("DB_HOST", defaults.host),
            port=int(os.getenv("DB_PORT", defaults.port)),
            name=os.getenv("DB_NAME", defaults.name),
            url_override=os.getenv("DATABASE_URL") or None,
        )

    @property
    def sqlalchemy_url(self) -> str:
        """Return a SQLAlchemy compatible URL."""

        if self.url_override:
            return self.url_override
        return f"{self.driver}://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"

    @property
    def masked_url(self) -> str:
        if self.url_override:
            return self.url_override.split("@")[-1]
        pwd = "***" if self.password else ""
        return f"{self.driver}://{self.user}:{pwd}@{self.host}:{self.port}/{self.name}"


@dataclass(frozen=True)
class LedgerSettings:
    """Behavioural knobs for the wage ledger."""

    default_rate_per_kg: Decimal = Decimal("40")
    tenant_column: str = "organization_id"
    require_tenant_column: bool = False

    @classmethod
    def from_env(cls) -> "LedgerSettings":
        defaults = cls()
        return cls(
            default_rate_per_kg=Decimal(
                os.getenv("LEDGER_DEFAULT_RATE_PER_KG", str(defaults.default_rate_per_kg))
            ),
            tenant_column=os.getenv("LEDGER_TENANT_COLUMN", defaults.tenant_column),
            require_tenant_column=_env_flag(
                "LEDGER_REQUIRE_TENANT_COLUMN", defaults.require_tenant_column
            ),
        )


@dataclass(frozen=True)
class Settings:
    """Container for application configuration."""

    database: DatabaseSettings
    ledger: LedgerSettings = field(default_factory=LedgerSettings)
    sqlalchemy_echo: bool = False
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> "Settings":
        """Build ``Settings`` using environment variables (optionally from ``.env``)."""

        _load_env(dotenv_path)

        return cls(
            database=DatabaseSettings.from_env(),
            ledger=LedgerSettings.from_env(),
            sqlalchemy_echo=_env_flag("SQLALCHEMY_ECHO", False),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_dir=Path(os.environ["LOG_DIR"]) if os.getenv("LOG_DIR") else None,
        )


@lru_cache()
def get_settings(dotenv_path: Optional[Path] = None) -> Settings:
    """Return a cached settings instance."""

    return Settings.from_env(dotenv_path=dotenv_path)
