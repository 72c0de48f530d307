from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from estate.core.context import OrganizationContext
from estate.db.schema_probe import TenantScope
from estate.services.organizations import OrganizationDirectory
from estate.services.wage_ledger import DailyEntryInput, WageLedger


@dataclass
class ResolveOrganizationContext:
    session: Session

    def execute(self, organization_id: str | None, user_id: str | None) -> OrganizationContext:
        return OrganizationDirectory(self.session).resolve_context(organization_id, user_id)


@dataclass
class GetDailyLedger:
    session: Session
    scope: TenantScope | None = None

    def execute(self, ctx: OrganizationContext, day: date | str, *, search: str | None = None):
        ledger = WageLedger(self.session, scope=self.scope)
        return ledger.daily_ledger(ctx, day, search)


@dataclass
class RecordDailyEntry:
    session: Session
    scope: TenantScope | None = None

    def execute(
        self,
        ctx: OrganizationContext,
        worker_id: str,
        day: date | str,
        entry: DailyEntryInput,
        *,
        entry_id: str | None = None,
    ):
        ledger = WageLedger(self.session, scope=self.scope)
        return ledger.record_daily_entry(ctx, worker_id, day, entry, entry_id=entry_id)


@dataclass
class DeleteDailyEntry:
    session: Session
    scope: TenantScope | None = None

    def execute(self, ctx: OrganizationContext, entry_id: str) -> None:
        WageLedger(self.session, scope=self.scope).delete_entry(ctx, entry_id)


@dataclass
class GetSalaryMonth:
    session: Session
    scope: TenantScope | None = None

    def execute(self, ctx: OrganizationContext, month: date | str, *, search: str | None = None):
        ledger = WageLedger(self.session, scope=self.scope)
        return ledger.salary_month(ctx, month, search)


@dataclass
class SetBonus:
    session: Session
    scope: TenantScope | None = None

    def execute(
        self,
        ctx: OrganizationContext,
        worker_id: str,
        month: date | str,
        amount: Decimal,
        *,
        reason: str | None = None,
    ):
        ledger = WageLedger(self.session, scope=self.scope)
        return ledger.set_bonus(ctx, worker_id, month, amount, reason)


@dataclass
class TogglePayment:
    session: Session
    scope: TenantScope | None = None

    def execute(self, ctx: OrganizationContext, worker_id: str, month: date | str) -> bool:
        return WageLedger(self.session, scope=self.scope).toggle_paid(ctx, worker_id, month)
