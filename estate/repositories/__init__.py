"""Tenant-scoped data access over the table gateway."""

from .organization_repository import MembershipRow, OrganizationRepository
from .wage_repository import (
    BonusRepository,
    PaymentRepository,
    WageEntryRepository,
    WorkerRepository,
)

__all__ = [
    "BonusRepository",
    "MembershipRow",
    "OrganizationRepository",
    "PaymentRepository",
    "WageEntryRepository",
    "WorkerRepository",
]
