"""Request and response payloads for the wage ledger API."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, field_serializer

from estate.domain.wages import (
    BonusEntry,
    DailyTotals,
    ExtraWorkItem,
    LedgerLine,
    MonthTotals,
    WageEntry,
    WorkerSalarySummary,
)
from estate.services.wage_ledger import DailyEntryInput, DailyLedger, SalaryMonth


_CENTS = Decimal("0.01")
_WAGE_PLACES = Decimal("0.0001")


def _money(value: Decimal) -> str:
    # Plucking wages keep the sub-cent part of kg * rate.
    quantized = value.quantize(_CENTS)
    if quantized != value:
        quantized = value.quantize(_WAGE_PLACES)
    return format(quantized, "f")


class ExtraWorkPayload(BaseModel):
    """Itemized supplemental pay for a plucking day."""

    description: str = "Extra work"
    amount: Decimal = Decimal("0")

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> str:
        return _money(value)


class DailyEntryRequest(BaseModel):
    """Form values for creating or editing a worker's day."""

    worker_id: str
    date: dt.date
    is_advance: bool = False
    kg_plucked: Decimal | None = None
    rate_per_kg: Decimal | None = None
    extra_work: list[ExtraWorkPayload] = []
    advance_amount: Decimal | None = None
    notes: str | None = None

    def to_input(self) -> DailyEntryInput:
        return DailyEntryInput(
            is_advance=self.is_advance,
            kg_plucked=self.kg_plucked,
            rate_per_kg=self.rate_per_kg,
            extra_work=tuple(
                ExtraWorkItem(description=item.description, amount=item.amount)
                for item in self.extra_work
            ),
            advance_amount=self.advance_amount,
            notes=self.notes,
        )


class BonusRequest(BaseModel):
    amount: Decimal
    reason: str | None = None


class WageEntryPayload(BaseModel):
    """A stored plucking or advance line."""

    id: str | None = None
    worker_id: str
    date: dt.date
    kind: str
    is_advance: bool
    kg_plucked: Decimal = Decimal("0")
    rate_per_kg: Decimal = Decimal("0")
    extra_work_payment: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    extra_work: list[ExtraWorkPayload] = []
    notes: str | None = None

    @field_serializer("kg_plucked", "rate_per_kg", "extra_work_payment", "amount")
    def serialize_decimal(self, value: Decimal) -> str:
        return _money(value)

    @classmethod
    def from_entry(cls, entry: WageEntry) -> "WageEntryPayload":
        return cls(
            id=entry.id,
            worker_id=entry.worker_id,
            date=entry.date,
            kind=entry.kind,
            is_advance=entry.is_advance,
            kg_plucked=entry.kg_plucked,
            rate_per_kg=entry.rate_per_kg,
            extra_work_payment=entry.extra_work_payment,
            amount=entry.amount,
            extra_work=[
                ExtraWorkPayload(description=item.description, amount=item.amount)
                for item in entry.extra_work_items
            ],
            notes=entry.notes,
        )


class RecordedEntries(BaseModel):
    entries: list[WageEntryPayload]


class LedgerLinePayload(BaseModel):
    entry: WageEntryPayload
    employee_id: str
    worker_name: str

    @classmethod
    def from_line(cls, line: LedgerLine) -> "LedgerLinePayload":
        return cls(
            entry=WageEntryPayload.from_entry(line.entry),
            employee_id=line.employee_id,
            worker_name=line.worker_name,
        )


class DailyTotalsPayload(BaseModel):
    """Headline figures for a day of plucking."""

    total_kg: Decimal = Decimal("0")
    advances_given: Decimal = Decimal("0")
    work_earnings: Decimal = Decimal("0")
    to_be_paid: Decimal = Decimal("0")

    @field_serializer("total_kg", "advances_given", "work_earnings", "to_be_paid")
    def serialize_decimal(self, value: Decimal) -> str:
        return _money(value)

    @classmethod
    def from_totals(cls, totals: DailyTotals) -> "DailyTotalsPayload":
        return cls(
            total_kg=totals.total_kg,
            advances_given=totals.advances_given,
            work_earnings=totals.work_earnings,
            to_be_paid=totals.to_be_paid,
        )


class DailyLedgerPayload(BaseModel):
    day: dt.date
    lines: list[LedgerLinePayload]
    totals: DailyTotalsPayload

    @classmethod
    def from_ledger(cls, ledger: DailyLedger) -> "DailyLedgerPayload":
        return cls(
            day=ledger.day,
            lines=[LedgerLinePayload.from_line(line) for line in ledger.lines],
            totals=DailyTotalsPayload.from_totals(ledger.totals),
        )


class WorkerSalaryPayload(BaseModel):
    """Derived salary figures for one worker in one month."""

    worker_id: str
    employee_id: str
    worker_name: str
    total_kg: Decimal
    total_earned: Decimal
    total_advance: Decimal
    bonus: Decimal
    net_salary: Decimal
    days_worked: int
    avg_kg_per_day: Decimal
    is_paid: bool

    @field_serializer(
        "total_kg",
        "total_earned",
        "total_advance",
        "bonus",
        "net_salary",
        "avg_kg_per_day",
    )
    def serialize_decimal(self, value: Decimal) -> str:
        return _money(value)

    @classmethod
    def from_summary(cls, summary: WorkerSalarySummary) -> "WorkerSalaryPayload":
        return cls(
            worker_id=summary.worker_id,
            employee_id=summary.employee_id,
            worker_name=summary.worker_name,
            total_kg=summary.total_kg,
            total_earned=summary.total_earned,
            total_advance=summary.total_advance,
            bonus=summary.bonus,
            net_salary=summary.net_salary,
            days_worked=summary.days_worked,
            avg_kg_per_day=summary.avg_kg_per_day,
            is_paid=summary.is_paid,
        )


class MonthTotalsPayload(BaseModel):
    total_workers: int = 0
    paid_workers: int = 0
    total_kg: Decimal = Decimal("0")
    total_bonus: Decimal = Decimal("0")
    total_net: Decimal = Decimal("0")
    total_paid_out: Decimal = Decimal("0")

    @field_serializer("total_kg", "total_bonus", "total_net", "total_paid_out")
    def serialize_decimal(self, value: Decimal) -> str:
        return _money(value)

    @classmethod
    def from_totals(cls, totals: MonthTotals) -> "MonthTotalsPayload":
        return cls(
            total_workers=totals.total_workers,
            paid_workers=totals.paid_workers,
            total_kg=totals.total_kg,
            total_bonus=totals.total_bonus,
            total_net=totals.total_net,
            total_paid_out=totals.total_paid_out,
        )


class SalaryMonthPayload(BaseModel):
    """Salary sheet for a month: per-worker rows plus totals."""

    month: str
    workers: list[WorkerSalaryPayload]
    totals: MonthTotalsPayload

    @classmethod
    def from_month(cls, salary_month: SalaryMonth) -> "SalaryMonthPayload":
        return cls(
            month=salary_month.month.strftime("%Y-%m"),
            workers=[WorkerSalaryPayload.from_summary(s) for s in salary_month.summaries],
            totals=MonthTotalsPayload.from_totals(salary_month.totals),
        )


class BonusPayload(BaseModel):
    worker_id: str
    month: str
    amount: Decimal
    reason: str | None = None

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> str:
        return _money(value)

    @classmethod
    def from_bonus(cls, bonus: BonusEntry) -> "BonusPayload":
        return cls(
            worker_id=bonus.worker_id,
            month=bonus.month.strftime("%Y-%m"),
            amount=bonus.amount,
            reason=bonus.reason,
        )


class BonusResult(BaseModel):
    """``bonus`` is null when the bonus was cleared."""

    bonus: BonusPayload | None = None


class PaymentStatus(BaseModel):
    worker_id: str
    month: str
    is_paid: bool
