"""Pydantic payloads exposed by the HTTP layer."""

from .wages import (
    BonusPayload,
    BonusRequest,
    BonusResult,
    DailyEntryRequest,
    DailyLedgerPayload,
    DailyTotalsPayload,
    ExtraWorkPayload,
    LedgerLinePayload,
    MonthTotalsPayload,
    PaymentStatus,
    RecordedEntries,
    SalaryMonthPayload,
    WageEntryPayload,
    WorkerSalaryPayload,
)

__all__ = [
    "BonusPayload",
    "BonusRequest",
    "BonusResult",
    "DailyEntryRequest",
    "DailyLedgerPayload",
    "DailyTotalsPayload",
    "ExtraWorkPayload",
    "LedgerLinePayload",
    "MonthTotalsPayload",
    "PaymentStatus",
    "RecordedEntries",
    "SalaryMonthPayload",
    "WageEntryPayload",
    "WorkerSalaryPayload",
]
