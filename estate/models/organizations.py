"""Tenant, membership and worker directory models."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import ID_TYPE, Base, new_id, utcnow


class Organization(Base):
    """A tenant: the unit of data isolation for every ledger row."""

    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    owner_id: Mapped[str | None] = mapped_column(ID_TYPE)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class OrganizationMember(Base):
    """Membership of an application user in an organization."""

    __tablename__ = "organization_members"
    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_org_member"),
        CheckConstraint(
            "role IN ('owner', 'admin', 'manager', 'viewer')", name="ck_org_member_role"
        ),
    )

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    organization_id: Mapped[str] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(ID_TYPE, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="viewer")
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class Worker(Base):
    """Estate worker whose plucking, advances and bonuses are ledgered."""

    __tablename__ = "workers"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    organization_id: Mapped[str | None] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), index=True
    )
    employee_id: Mapped[str] = mapped_column(String(50), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str | None] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
