"""Wage ledger entities and the pure folds that derive salaries from them."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Sequence

from estate.core.exceptions import ValidationError

ZERO = Decimal("0")
CENTS = Decimal("0.01")


def as_decimal(value: Any) -> Decimal:
    """Coerce a numeric column or form value into a finite ``Decimal``."""

    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(value)
        except (ArithmeticError, TypeError, ValueError) as exc:
            raise ValidationError(f"'{value}' is not a number") from exc
    if not result.is_finite():
        raise ValidationError(f"'{value}' is not a finite number")
    return result


def to_cents(value: Any) -> Decimal:
    """Round a kilogram, rate or money value to the two places the ledger stores."""

    return as_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _coerce_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True, slots=True)
class ExtraWorkItem:
    """Itemized supplemental pay added to a plucking day."""

    description: str
    amount: Decimal

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExtraWorkItem":
        return cls(
            description=str(data.get("description") or "Extra work"),
            amount=as_decimal(data.get("amount")),
        )

    def as_dict(self) -> dict[str, str]:
        return {"description": self.description, "amount": str(self.amount)}


@dataclass(frozen=True, slots=True)
class WageEntry:
    """One plucking or advance line for a worker on a day.

    For advances ``amount`` is the absolute advance magnitude and both
    ``kg_plucked`` and ``rate_per_kg`` are zero. For plucking lines
    ``amount == kg_plucked * rate_per_kg + extra_work_payment``.
    """

    id: str | None
    worker_id: str
    date: date
    kg_plucked: Decimal
    rate_per_kg: Decimal
    extra_work_payment: Decimal
    is_advance: bool
    amount: Decimal
    extra_work_items: tuple[ExtraWorkItem, ...] = ()
    notes: str | None = None
    organization_id: str | None = None
    created_at: datetime | None = None

    @classmethod
    def plucking(
        cls,
        *,
        worker_id: str,
        day: date,
        kg_plucked: Decimal,
        rate_per_kg: Decimal,
        extra_work: Sequence[ExtraWorkItem] = (),
        notes: str | None = None,
        organization_id: str | None = None,
        entry_id: str | None = None,
    ) -> "WageEntry":
        kg_plucked = to_cents(kg_plucked)
        rate_per_kg = to_cents(rate_per_kg)
        items = tuple(
            ExtraWorkItem(description=item.description, amount=to_cents(item.amount))
            for item in extra_work
        )
        extra_total = sum((item.amount for item in items), ZERO)
        return cls(
            id=entry_id,
            worker_id=worker_id,
            date=day,
            kg_plucked=kg_plucked,
            rate_per_kg=rate_per_kg,
            extra_work_payment=extra_total,
            is_advance=False,
            amount=kg_plucked * rate_per_kg + extra_total,
            extra_work_items=items,
            notes=notes,
            organization_id=organization_id,
        )

    @classmethod
    def advance(
        cls,
        *,
        worker_id: str,
        day: date,
        amount: Decimal,
        notes: str | None = None,
        organization_id: str | None = None,
        entry_id: str | None = None,
    ) -> "WageEntry":
        return cls(
            id=entry_id,
            worker_id=worker_id,
            date=day,
            kg_plucked=ZERO,
            rate_per_kg=ZERO,
            extra_work_payment=ZERO,
            is_advance=True,
            amount=to_cents(abs(as_decimal(amount))),
            notes=notes,
            organization_id=organization_id,
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "WageEntry":
        """Build an entry from a ``daily_plucking`` row.

        Older rows stored advances as negative ``wage_earned`` values, so the
        magnitude is taken for advance lines.
        """

        is_advance = bool(row.get("is_advance"))
        amount = as_decimal(row.get("wage_earned"))
        extra_total = as_decimal(row.get("extra_work_payment"))
        raw_items = row.get("extra_work_items") or ()
        items = tuple(ExtraWorkItem.from_mapping(item) for item in raw_items)
        if not items and extra_total > 0 and not is_advance:
            items = (ExtraWorkItem(description="Extra work", amount=extra_total),)
        return cls(
            id=row.get("id"),
            worker_id=str(row["worker_id"]),
            date=_coerce_date(row["date"]),
            kg_plucked=ZERO if is_advance else as_decimal(row.get("kg_plucked")),
            rate_per_kg=ZERO if is_advance else as_decimal(row.get("rate_per_kg")),
            extra_work_payment=ZERO if is_advance else extra_total,
            is_advance=is_advance,
            amount=abs(amount) if is_advance else amount,
            extra_work_items=() if is_advance else items,
            notes=row.get("notes"),
            organization_id=row.get("organization_id"),
            created_at=row.get("created_at"),
        )

    def as_row(self) -> dict[str, Any]:
        """Return the ``daily_plucking`` column values for this entry."""

        return {
            "worker_id": self.worker_id,
            "date": self.date,
            "kg_plucked": self.kg_plucked,
            "rate_per_kg": self.rate_per_kg,
            "extra_work_payment": self.extra_work_payment,
            "extra_work_items": [item.as_dict() for item in self.extra_work_items] or None,
            "wage_earned": self.amount,
            "is_advance": self.is_advance,
            "notes": self.notes,
        }

    @property
    def kind(self) -> str:
        return "advance" if self.is_advance else "plucking"


@dataclass(frozen=True, slots=True)
class BonusEntry:
    """Bonus granted to a worker for one month."""

    id: str | None
    worker_id: str
    month: date
    amount: Decimal
    reason: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "BonusEntry":
        return cls(
            id=row.get("id"),
            worker_id=str(row["worker_id"]),
            month=_coerce_date(row["month"]),
            amount=as_decimal(row.get("amount")),
            reason=row.get("reason"),
        )


@dataclass(frozen=True, slots=True)
class PaymentMark:
    """Presence of a mark means the worker was paid for the month."""

    id: str | None
    worker_id: str
    month: date
    paid_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PaymentMark":
        return cls(
            id=row.get("id"),
            worker_id=str(row["worker_id"]),
            month=_coerce_date(row["month"]),
            paid_at=row.get("paid_at"),
        )


@dataclass(frozen=True, slots=True)
class WorkerInfo:
    worker_id: str
    employee_id: str
    name: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "WorkerInfo":
        first = str(row.get("first_name") or "")
        last = row.get("last_name")
        return cls(
            worker_id=str(row["id"]),
            employee_id=str(row.get("employee_id") or "-"),
            name=f"{first} {last}" if last else first,
        )


@dataclass(frozen=True, slots=True)
class WorkerSalarySummary:
    """Derived salary figures for one worker in one month."""

    worker_id: str
    total_kg: Decimal
    total_earned: Decimal
    total_advance: Decimal
    bonus: Decimal
    net_salary: Decimal
    days_worked: int
    avg_kg_per_day: Decimal
    is_paid: bool
    employee_id: str = "-"
    worker_name: str = "Unknown"
    bonus_id: str | None = None
    payment_id: str | None = None


@dataclass(frozen=True, slots=True)
class MonthTotals:
    total_workers: int
    paid_workers: int
    total_kg: Decimal
    total_bonus: Decimal
    total_net: Decimal
    total_paid_out: Decimal


@dataclass(frozen=True, slots=True)
class DailyTotals:
    total_kg: Decimal
    advances_given: Decimal
    work_earnings: Decimal
    to_be_paid: Decimal


@dataclass(frozen=True, slots=True)
class LedgerLine:
    """A ledger entry joined with the worker it belongs to, for day views."""

    entry: WageEntry
    employee_id: str = "-"
    worker_name: str = "Unknown"


@dataclass
class _Accumulator:
    worker_id: str
    total_kg: Decimal = ZERO
    total_earned: Decimal = ZERO
    total_advance: Decimal = ZERO
    dates: set[date] = field(default_factory=set)


def compute_month_summary(
    entries: Iterable[WageEntry],
    bonuses: Iterable[BonusEntry],
    payments: Iterable[PaymentMark],
    workers: Mapping[str, WorkerInfo] | None = None,
) -> list[WorkerSalarySummary]:
    """Fold a month of ledger rows into per-worker salary summaries.

    Workers appear in first-seen order (entries, then bonus-only workers) and
    the result is stably sorted by net salary, highest first.
    """

    bonus_map = {bonus.worker_id: bonus for bonus in bonuses}
    payment_map = {payment.worker_id: payment for payment in payments}
    directory = workers or {}

    accumulators: dict[str, _Accumulator] = {}
    for entry in entries:
        acc = accumulators.setdefault(entry.worker_id, _Accumulator(entry.worker_id))
        if entry.is_advance:
            acc.total_advance += abs(entry.amount)
        else:
            acc.total_kg += entry.kg_plucked
            acc.total_earned += entry.kg_plucked * entry.rate_per_kg + entry.extra_work_payment
            acc.dates.add(entry.date)

    for worker_id in bonus_map:
        accumulators.setdefault(worker_id, _Accumulator(worker_id))

    summaries: list[WorkerSalarySummary] = []
    for worker_id, acc in accumulators.items():
        bonus = bonus_map.get(worker_id)
        payment = payment_map.get(worker_id)
        info = directory.get(worker_id)
        bonus_amount = bonus.amount if bonus is not None else ZERO
        days_worked = len(acc.dates)
        summaries.append(
            WorkerSalarySummary(
                worker_id=worker_id,
                total_kg=acc.total_kg,
                total_earned=acc.total_earned,
                total_advance=acc.total_advance,
                bonus=bonus_amount,
                net_salary=acc.total_earned + bonus_amount - acc.total_advance,
                days_worked=days_worked,
                avg_kg_per_day=acc.total_kg / days_worked if days_worked else ZERO,
                is_paid=payment is not None,
                employee_id=info.employee_id if info else "-",
                worker_name=info.name if info else "Unknown",
                bonus_id=bonus.id if bonus is not None else None,
                payment_id=payment.id if payment is not None else None,
            )
        )

    return sorted(summaries, key=lambda summary: summary.net_salary, reverse=True)


def filter_summaries(
    summaries: Iterable[WorkerSalarySummary], search: str | None
) -> list[WorkerSalarySummary]:
    """Keep summaries whose worker name or employee id contains ``search``."""

    return [s for s in summaries if _matches(search, s.worker_name, s.employee_id)]


def filter_lines(lines: Iterable[LedgerLine], search: str | None) -> list[LedgerLine]:
    return [line for line in lines if _matches(search, line.worker_name, line.employee_id)]


def _matches(search: str | None, name: str, employee_id: str) -> bool:
    needle = (search or "").strip().lower()
    return not needle or needle in name.lower() or needle in employee_id.lower()


def month_totals(summaries: Sequence[WorkerSalarySummary]) -> MonthTotals:
    paid = [summary for summary in summaries if summary.is_paid]
    return MonthTotals(
        total_workers=len(summaries),
        paid_workers=len(paid),
        total_kg=sum((s.total_kg for s in summaries), ZERO),
        total_bonus=sum((s.bonus for s in summaries), ZERO),
        total_net=sum((s.net_salary for s in summaries), ZERO),
        total_paid_out=sum((s.net_salary for s in paid), ZERO),
    )


def daily_totals(entries: Iterable[WageEntry]) -> DailyTotals:
    total_kg = ZERO
    advances = ZERO
    earnings = ZERO
    for entry in entries:
        if entry.is_advance:
            advances += abs(entry.amount)
        else:
            total_kg += entry.kg_plucked
            earnings += abs(entry.amount)
    return DailyTotals(
        total_kg=total_kg,
        advances_given=advances,
        work_earnings=earnings,
        to_be_paid=earnings - advances,
    )
