"""Data access for ledger lines, bonuses and payment marks."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from estate.core.context import OrganizationContext
from estate.domain.wages import BonusEntry, PaymentMark, WageEntry, WorkerInfo

from .base import BaseRepository


class WageEntryRepository(BaseRepository):
    """Rows of the ``daily_plucking`` table."""

    table = "daily_plucking"

    def list_between(
        self, ctx: OrganizationContext, start: date, end: date
    ) -> list[WageEntry]:
        rows = self._gateway.select(
            self.table,
            self._tenant(ctx, date__gte=start, date__lte=end),
            ordering=("date", "created_at"),
        )
        return [WageEntry.from_row(row) for row in rows]

    def list_for_day(self, ctx: OrganizationContext, day: date) -> list[WageEntry]:
        rows = self._gateway.select(
            self.table, self._tenant(ctx, date=day), ordering=("-created_at",)
        )
        return [WageEntry.from_row(row) for row in rows]

    def list_for_worker_day(
        self, ctx: OrganizationContext, worker_id: str, day: date
    ) -> list[WageEntry]:
        rows = self._gateway.select(
            self.table, self._tenant(ctx, worker_id=worker_id, date=day)
        )
        return [WageEntry.from_row(row) for row in rows]

    def get(self, ctx: OrganizationContext, entry_id: str) -> WageEntry | None:
        row = self._first(ctx, id=entry_id)
        return WageEntry.from_row(row) if row else None

    def insert_many(
        self, ctx: OrganizationContext, entries: list[WageEntry]
    ) -> list[WageEntry]:
        rows = self._gateway.insert(
            self.table, [self._tenant(ctx, **entry.as_row()) for entry in entries]
        )
        return [WageEntry.from_row(row) for row in rows]

    def replace(self, ctx: OrganizationContext, entry: WageEntry) -> int:
        return self._gateway.update(self.table, entry.as_row(), self._tenant(ctx, id=entry.id))

    def delete(self, ctx: OrganizationContext, entry_id: str) -> int:
        return self._gateway.delete(self.table, self._tenant(ctx, id=entry_id))


class BonusRepository(BaseRepository):
    """Rows of the ``worker_bonuses`` table."""

    table = "worker_bonuses"

    def list_for_month(self, ctx: OrganizationContext, month: date) -> list[BonusEntry]:
        rows = self._gateway.select(self.table, self._tenant(ctx, month=month))
        return [BonusEntry.from_row(row) for row in rows]

    def get(self, ctx: OrganizationContext, worker_id: str, month: date) -> BonusEntry | None:
        row = self._first(ctx, worker_id=worker_id, month=month)
        return BonusEntry.from_row(row) if row else None

    def create(
        self,
        ctx: OrganizationContext,
        worker_id: str,
        month: date,
        amount: Decimal,
        reason: str | None = None,
    ) -> BonusEntry:
        rows = self._gateway.insert(
            self.table,
            [
                self._tenant(
                    ctx, worker_id=worker_id, month=month, amount=amount, reason=reason
                )
            ],
        )
        return BonusEntry.from_row(rows[0])

    def update_amount(
        self, ctx: OrganizationContext, bonus_id: str, amount: Decimal, reason: str | None
    ) -> int:
        patch: dict[str, Any] = {"amount": amount}
        if reason is not None:
            patch["reason"] = reason
        return self._gateway.update(self.table, patch, self._tenant(ctx, id=bonus_id))

    def delete(self, ctx: OrganizationContext, bonus_id: str) -> int:
        return self._gateway.delete(self.table, self._tenant(ctx, id=bonus_id))


class PaymentRepository(BaseRepository):
    """Rows of the ``salary_payments`` table."""

    table = "salary_payments"

    def list_for_month(self, ctx: OrganizationContext, month: date) -> list[PaymentMark]:
        rows = self._gateway.select(self.table, self._tenant(ctx, month=month))
        return [PaymentMark.from_row(row) for row in rows]

    def get(self, ctx: OrganizationContext, worker_id: str, month: date) -> PaymentMark | None:
        row = self._first(ctx, worker_id=worker_id, month=month)
        return PaymentMark.from_row(row) if row else None

    def create(
        self, ctx: OrganizationContext, worker_id: str, month: date, paid_at: datetime
    ) -> PaymentMark:
        rows = self._gateway.insert(
            self.table,
            [self._tenant(ctx, worker_id=worker_id, month=month, paid_at=paid_at)],
        )
        return PaymentMark.from_row(rows[0])

    def delete(self, ctx: OrganizationContext, payment_id: str) -> int:
        return self._gateway.delete(self.table, self._tenant(ctx, id=payment_id))


class WorkerRepository(BaseRepository):
    """Read access to the ``workers`` directory."""

    table = "workers"

    def directory(self, ctx: OrganizationContext) -> dict[str, WorkerInfo]:
        rows = self._gateway.select(self.table, self._tenant(ctx), ordering=("first_name",))
        return {str(row["id"]): WorkerInfo.from_row(row) for row in rows}

    def get(self, ctx: OrganizationContext, worker_id: str) -> WorkerInfo | None:
        row = self._first(ctx, id=worker_id)
        return WorkerInfo.from_row(row) if row else None
