"""Service logic for recording daily wage lines and deriving monthly salaries."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Sequence

from sqlalchemy.orm import Session

from estate.core.config import Settings, get_settings
from estate.core.context import OrganizationContext
from estate.core.exceptions import NotFoundError, ValidationError
from estate.core.log import log_context, timeit
from estate.core.logger import get_logger
from estate.db.gateway import TableGateway
from estate.db.schema_probe import TenantScope
from estate.domain.periods import month_bounds, month_start, parse_day
from estate.domain.wages import (
    BonusEntry,
    DailyTotals,
    ExtraWorkItem,
    LedgerLine,
    MonthTotals,
    WageEntry,
    WorkerSalarySummary,
    as_decimal,
    compute_month_summary,
    daily_totals,
    filter_lines,
    filter_summaries,
    month_totals,
    to_cents,
)
from estate.models.base import utcnow
from estate.repositories.wage_repository import (
    BonusRepository,
    PaymentRepository,
    WageEntryRepository,
    WorkerRepository,
)

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class DailyEntryInput:
    """Values captured for one worker on one day.

    ``is_advance`` is the type the caller selected. A form may carry both
    plucking figures and an advance amount at once.
    """

    is_advance: bool = False
    kg_plucked: Decimal | None = None
    rate_per_kg: Decimal | None = None
    extra_work: Sequence[ExtraWorkItem] = ()
    advance_amount: Decimal | None = None
    notes: str | None = None

    @property
    def has_plucking(self) -> bool:
        kg = to_cents(self.kg_plucked)
        return kg > 0 or any(to_cents(item.amount) > 0 for item in self.extra_work)

    @property
    def has_advance(self) -> bool:
        return to_cents(self.advance_amount) > 0


@dataclass(frozen=True)
class DailyLedger:
    """All lines recorded on a day together with the day's totals."""

    day: date
    lines: list[LedgerLine]
    totals: DailyTotals


@dataclass(frozen=True)
class SalaryMonth:
    """Salary summaries for a month together with the month's totals."""

    month: date
    summaries: list[WorkerSalarySummary]
    totals: MonthTotals


class WageLedger:
    """Tenant-scoped operations over plucking lines, advances, bonuses and payments."""

    def __init__(
        self,
        session: Session | None = None,
        *,
        gateway: TableGateway | None = None,
        scope: TenantScope | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if gateway is None:
            if session is None:
                raise ValueError("session or gateway is required")
            gateway = TableGateway(session, scope)
        self._gateway = gateway
        self._entries = WageEntryRepository(gateway)
        self._bonuses = BonusRepository(gateway)
        self._payments = PaymentRepository(gateway)
        self._workers = WorkerRepository(gateway)
        self._default_rate = (settings or get_settings()).ledger.default_rate_per_kg
        self._clock = clock

    # ------------------------------------------------------------------
    # Daily lines
    # ------------------------------------------------------------------
    def record_daily_entry(
        self,
        ctx: OrganizationContext,
        worker_id: str,
        day: date | str,
        entry: DailyEntryInput,
        *,
        entry_id: str | None = None,
    ) -> list[WageEntry]:
        """Create or edit the line(s) for ``worker_id`` on ``day``.

        Without ``entry_id`` a plucking line and an advance line are created
        together when both kinds of data are present; otherwise only a line of
        the selected type is created. With ``entry_id`` the stored line
        is updated in place, unless the selected type differs from the stored
        one while ``entry`` still carries both kinds of data. In that case a
        sibling line of the selected type is inserted and the stored line is
        left untouched.

        Returns the lines written by this call.
        """

        ctx.require_edit()
        if not worker_id:
            raise ValidationError("a worker must be selected")
        day = parse_day(day)
        self._validate(entry)

        with log_context.scoped(organization_id=ctx.organization_id, worker_id=worker_id):
            with self._gateway.unit_of_work():
                self._require_worker(ctx, worker_id)
                if entry_id is None:
                    written = self._create(ctx, worker_id, day, entry)
                else:
                    written = self._edit(ctx, worker_id, day, entry, entry_id)
            LOGGER.info(
                "Recorded %s ledger line(s) for %s: %s",
                len(written),
                day.isoformat(),
                ", ".join(line.kind for line in written),
            )
        return written

    def delete_entry(self, ctx: OrganizationContext, entry_id: str) -> None:
        ctx.require_delete()
        with log_context.scoped(organization_id=ctx.organization_id):
            with self._gateway.unit_of_work():
                if self._entries.delete(ctx, entry_id) == 0:
                    raise NotFoundError(f"ledger entry '{entry_id}' does not exist")
            LOGGER.info("Deleted ledger entry %s", entry_id)

    def list_daily_entries(
        self, ctx: OrganizationContext, day: date | str, search: str | None = None
    ) -> list[LedgerLine]:
        """Return the day's lines, newest first, joined with worker names."""

        day = parse_day(day)
        workers = self._workers.directory(ctx)
        lines = []
        for entry in self._entries.list_for_day(ctx, day):
            info = workers.get(entry.worker_id)
            lines.append(
                LedgerLine(
                    entry=entry,
                    employee_id=info.employee_id if info else "-",
                    worker_name=info.name if info else "Unknown",
                )
            )
        return filter_lines(lines, search)

    def daily_totals(self, ctx: OrganizationContext, day: date | str) -> DailyTotals:
        return daily_totals(self._entries.list_for_day(ctx, parse_day(day)))

    def daily_ledger(
        self, ctx: OrganizationContext, day: date | str, search: str | None = None
    ) -> DailyLedger:
        """Return the day view: matching lines plus totals over all of the day's lines."""

        day = parse_day(day)
        lines = self.list_daily_entries(ctx, day, search)
        return DailyLedger(day=day, lines=lines, totals=self.daily_totals(ctx, day))

    # ------------------------------------------------------------------
    # Monthly salaries
    # ------------------------------------------------------------------
    def compute_month_summary(
        self, ctx: OrganizationContext, month: date | str, search: str | None = None
    ) -> list[WorkerSalarySummary]:
        """Fold the month's lines, bonuses and payment marks per worker.

        Results are sorted by net salary, highest first.
        """

        start, end = month_bounds(month)
        with log_context.scoped(organization_id=ctx.organization_id, month=start.isoformat()):
            with timeit("Month salary summary", logger=LOGGER, unit="workers") as timer:
                entries = self._entries.list_between(ctx, start, end)
                bonuses = self._bonuses.list_for_month(ctx, start)
                payments = self._payments.list_for_month(ctx, start)
                summaries = compute_month_summary(
                    entries, bonuses, payments, self._workers.directory(ctx)
                )
                timer.set_total(len(summaries))
        return filter_summaries(summaries, search)

    def month_totals(
        self, ctx: OrganizationContext, month: date | str, search: str | None = None
    ) -> MonthTotals:
        return month_totals(self.compute_month_summary(ctx, month, search))

    def salary_month(
        self, ctx: OrganizationContext, month: date | str, search: str | None = None
    ) -> SalaryMonth:
        summaries = self.compute_month_summary(ctx, month, search)
        return SalaryMonth(
            month=month_start(month), summaries=summaries, totals=month_totals(summaries)
        )

    def set_bonus(
        self,
        ctx: OrganizationContext,
        worker_id: str,
        month: date | str,
        amount: Decimal | int | str,
        reason: str | None = None,
    ) -> BonusEntry | None:
        """Create, update or clear the worker's bonus for ``month``.

        An amount of zero removes the bonus and returns ``None``.
        """

        ctx.require_edit()
        month = month_start(month)
        amount = as_decimal(amount)
        if amount < 0:
            raise ValidationError("bonus amount cannot be negative")
        amount = to_cents(amount)

        with log_context.scoped(organization_id=ctx.organization_id, worker_id=worker_id):
            with self._gateway.unit_of_work():
                self._require_worker(ctx, worker_id)
                existing = self._bonuses.get(ctx, worker_id, month)
                if amount == 0:
                    if existing is not None:
                        self._bonuses.delete(ctx, existing.id)
                        LOGGER.info("Cleared bonus for %s", month.isoformat())
                    return None
                if existing is None:
                    bonus = self._bonuses.create(ctx, worker_id, month, amount, reason)
                else:
                    self._bonuses.update_amount(ctx, existing.id, amount, reason)
                    bonus = self._bonuses.get(ctx, worker_id, month)
            LOGGER.info("Set bonus of %s for %s", amount, month.isoformat())
        return bonus

    def toggle_paid(self, ctx: OrganizationContext, worker_id: str, month: date | str) -> bool:
        """Flip the worker's paid mark for ``month`` and return the new state."""

        ctx.require_edit()
        month = month_start(month)
        with log_context.scoped(organization_id=ctx.organization_id, worker_id=worker_id):
            with self._gateway.unit_of_work():
                self._require_worker(ctx, worker_id)
                existing = self._payments.get(ctx, worker_id, month)
                if existing is None:
                    self._payments.create(ctx, worker_id, month, self._clock())
                    paid = True
                else:
                    self._payments.delete(ctx, existing.id)
                    paid = False
            LOGGER.info("Marked %s as %s", month.isoformat(), "paid" if paid else "unpaid")
        return paid

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _create(
        self, ctx: OrganizationContext, worker_id: str, day: date, entry: DailyEntryInput
    ) -> list[WageEntry]:
        if entry.has_plucking and entry.has_advance:
            drafts = [
                self._plucking_draft(worker_id, day, entry),
                self._advance_draft(worker_id, day, entry),
            ]
        elif entry.is_advance:
            if not entry.has_advance:
                raise ValidationError("advance amount must be greater than zero")
            drafts = [self._advance_draft(worker_id, day, entry)]
        else:
            if not entry.has_plucking:
                raise ValidationError("enter kilograms plucked or extra work")
            drafts = [self._plucking_draft(worker_id, day, entry)]
        self._ensure_free_slots(ctx, worker_id, day, drafts)
        return self._entries.insert_many(ctx, drafts)

    def _edit(
        self,
        ctx: OrganizationContext,
        worker_id: str,
        day: date,
        entry: DailyEntryInput,
        entry_id: str,
    ) -> list[WageEntry]:
        stored = self._entries.get(ctx, entry_id)
        if stored is None:
            raise NotFoundError(f"ledger entry '{entry_id}' does not exist")

        type_changed = stored.is_advance != entry.is_advance
        if type_changed and entry.has_plucking and entry.has_advance:
            sibling = (
                self._advance_draft(worker_id, day, entry)
                if entry.is_advance
                else self._plucking_draft(worker_id, day, entry)
            )
            self._ensure_free_slots(ctx, worker_id, day, [sibling])
            LOGGER.info(
                "Added %s line next to %s line %s", sibling.kind, stored.kind, stored.id
            )
            return self._entries.insert_many(ctx, [sibling])

        if entry.is_advance:
            if not entry.has_advance:
                raise ValidationError("advance amount must be greater than zero")
            draft = self._advance_draft(worker_id, day, entry, entry_id=stored.id)
        else:
            if not entry.has_plucking:
                raise ValidationError("enter kilograms plucked or extra work")
            draft = self._plucking_draft(worker_id, day, entry, entry_id=stored.id)
        self._ensure_free_slots(ctx, worker_id, day, [draft], exclude_id=stored.id)
        if self._entries.replace(ctx, draft) == 0:
            raise NotFoundError(f"ledger entry '{entry_id}' does not exist")
        updated = self._entries.get(ctx, stored.id)
        return [updated] if updated is not None else []

    def _plucking_draft(
        self, worker_id: str, day: date, entry: DailyEntryInput, entry_id: str | None = None
    ) -> WageEntry:
        rate = self._default_rate if entry.rate_per_kg is None else as_decimal(entry.rate_per_kg)
        return WageEntry.plucking(
            worker_id=worker_id,
            day=day,
            kg_plucked=as_decimal(entry.kg_plucked),
            rate_per_kg=rate,
            extra_work=[item for item in entry.extra_work if to_cents(item.amount) > 0],
            notes=entry.notes,
            entry_id=entry_id,
        )

    @staticmethod
    def _advance_draft(
        worker_id: str, day: date, entry: DailyEntryInput, entry_id: str | None = None
    ) -> WageEntry:
        return WageEntry.advance(
            worker_id=worker_id,
            day=day,
            amount=as_decimal(entry.advance_amount),
            notes=entry.notes,
            entry_id=entry_id,
        )

    def _ensure_free_slots(
        self,
        ctx: OrganizationContext,
        worker_id: str,
        day: date,
        drafts: list[WageEntry],
        exclude_id: str | None = None,
    ) -> None:
        """A worker holds at most one plucking line and one advance line per day."""

        taken = {
            existing.is_advance
            for existing in self._entries.list_for_worker_day(ctx, worker_id, day)
            if existing.id != exclude_id
        }
        for draft in drafts:
            if draft.is_advance in taken:
                raise ValidationError(
                    f"worker already has a {draft.kind} entry on {day.isoformat()}"
                )

    def _require_worker(self, ctx: OrganizationContext, worker_id: str) -> None:
        if self._workers.get(ctx, worker_id) is None:
            raise NotFoundError(f"worker '{worker_id}' does not exist")

    @staticmethod
    def _validate(entry: DailyEntryInput) -> None:
        for label, value in (
            ("kilograms plucked", entry.kg_plucked),
            ("rate per kg", entry.rate_per_kg),
            ("advance amount", entry.advance_amount),
        ):
            if value is not None and as_decimal(value) < 0:
                raise ValidationError(f"{label} cannot be negative")
        for item in entry.extra_work:
            if as_decimal(item.amount) < 0:
                raise ValidationError("extra work amounts cannot be negative")
