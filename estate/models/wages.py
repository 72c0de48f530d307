"""Ledger tables: daily plucking/advance lines, monthly bonuses and payment marks."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import ID_TYPE, MONEY, WAGE, Base, new_id, utcnow


class DailyPlucking(Base):
    """One plucking or advance line for a worker on a given day.

    ``wage_earned`` holds the computed plucking wage, or the absolute advance
    magnitude when ``is_advance`` is set.
    """

    __tablename__ = "daily_plucking"
    __table_args__ = (
        Index("idx_daily_plucking_org_date", "organization_id", "date"),
        Index("idx_daily_plucking_worker_date", "worker_id", "date"),
    )

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    organization_id: Mapped[str | None] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE")
    )
    worker_id: Mapped[str] = mapped_column(
        ForeignKey("workers.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    kg_plucked: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    rate_per_kg: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    extra_work_payment: Mapped[Decimal] = mapped_column(
        MONEY, nullable=False, default=Decimal("0")
    )
    extra_work_items: Mapped[list | None] = mapped_column(JSON)
    wage_earned: Mapped[Decimal] = mapped_column(WAGE, nullable=False, default=Decimal("0"))
    is_advance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class WorkerBonus(Base):
    """Bonus granted to a worker for one calendar month."""

    __tablename__ = "worker_bonuses"
    __table_args__ = (UniqueConstraint("worker_id", "month", name="uq_worker_bonus_month"),)

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    organization_id: Mapped[str | None] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), index=True
    )
    worker_id: Mapped[str] = mapped_column(
        ForeignKey("workers.id", ondelete="CASCADE"), nullable=False
    )
    month: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    reason: Mapped[str | None] = mapped_column(String(255))


class SalaryPayment(Base):
    """Presence marks the worker's salary for ``month`` as paid."""

    __tablename__ = "salary_payments"
    __table_args__ = (UniqueConstraint("worker_id", "month", name="uq_salary_payment_month"),)

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    organization_id: Mapped[str | None] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), index=True
    )
    worker_id: Mapped[str] = mapped_column(
        ForeignKey("workers.id", ondelete="CASCADE"), nullable=False
    )
    month: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    paid_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
