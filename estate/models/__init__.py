"""Database models for the tea estate ledger."""
from __future__ import annotations

from .base import Base
from .organizations import Organization, OrganizationMember, Worker
from .wages import DailyPlucking, SalaryPayment, WorkerBonus

__all__ = [
    "Base",
    "Organization",
    "OrganizationMember",
    "Worker",
    "DailyPlucking",
    "SalaryPayment",
    "WorkerBonus",
]
