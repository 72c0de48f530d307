"""Service layer entrypoints for ledger logic."""

from .organizations import OrganizationDirectory
from .wage_ledger import DailyEntryInput, DailyLedger, SalaryMonth, WageLedger

__all__ = [
    "DailyEntryInput",
    "DailyLedger",
    "OrganizationDirectory",
    "SalaryMonth",
    "WageLedger",
]
