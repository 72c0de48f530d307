"""Routes for daily plucking lines and monthly salary sheets."""
from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from estate.core.context import OrganizationContext
from estate.db.schema_probe import TenantScope
from estate.domain.periods import month_start
from estate.schemas.wages import (
    BonusPayload,
    BonusRequest,
    BonusResult,
    DailyEntryRequest,
    DailyLedgerPayload,
    PaymentStatus,
    RecordedEntries,
    SalaryMonthPayload,
    WageEntryPayload,
)
from estate.services.use_cases import (
    DeleteDailyEntry,
    GetDailyLedger,
    GetSalaryMonth,
    RecordDailyEntry,
    SetBonus,
    TogglePayment,
)
from estate.web.dependencies import get_db_session, get_org_context, get_tenant_scope

router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.get("/entries", response_model=DailyLedgerPayload)
def list_entries(
    day: dt.date = Query(alias="date"),
    search: str | None = Query(default=None),
    ctx: OrganizationContext = Depends(get_org_context),
    session: Session = Depends(get_db_session),
    scope: TenantScope = Depends(get_tenant_scope),
) -> DailyLedgerPayload:
    ledger = GetDailyLedger(session, scope).execute(ctx, day, search=search)
    return DailyLedgerPayload.from_ledger(ledger)


@router.post("/entries", response_model=RecordedEntries, status_code=status.HTTP_201_CREATED)
def create_entries(
    payload: DailyEntryRequest,
    ctx: OrganizationContext = Depends(get_org_context),
    session: Session = Depends(get_db_session),
    scope: TenantScope = Depends(get_tenant_scope),
) -> RecordedEntries:
    written = RecordDailyEntry(session, scope).execute(
        ctx, payload.worker_id, payload.date, payload.to_input()
    )
    return RecordedEntries(entries=[WageEntryPayload.from_entry(entry) for entry in written])


@router.put("/entries/{entry_id}", response_model=RecordedEntries)
def edit_entry(
    entry_id: str,
    payload: DailyEntryRequest,
    ctx: OrganizationContext = Depends(get_org_context),
    session: Session = Depends(get_db_session),
    scope: TenantScope = Depends(get_tenant_scope),
) -> RecordedEntries:
    written = RecordDailyEntry(session, scope).execute(
        ctx, payload.worker_id, payload.date, payload.to_input(), entry_id=entry_id
    )
    return RecordedEntries(entries=[WageEntryPayload.from_entry(entry) for entry in written])


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: str,
    ctx: OrganizationContext = Depends(get_org_context),
    session: Session = Depends(get_db_session),
    scope: TenantScope = Depends(get_tenant_scope),
) -> Response:
    DeleteDailyEntry(session, scope).execute(ctx, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/salaries", response_model=SalaryMonthPayload)
def salary_sheet(
    month: str = Query(description="Month as YYYY-MM"),
    search: str | None = Query(default=None),
    ctx: OrganizationContext = Depends(get_org_context),
    session: Session = Depends(get_db_session),
    scope: TenantScope = Depends(get_tenant_scope),
) -> SalaryMonthPayload:
    salary_month = GetSalaryMonth(session, scope).execute(ctx, month, search=search)
    return SalaryMonthPayload.from_month(salary_month)


@router.put("/bonuses/{worker_id}", response_model=BonusResult)
def set_bonus(
    worker_id: str,
    payload: BonusRequest,
    month: str = Query(description="Month as YYYY-MM"),
    ctx: OrganizationContext = Depends(get_org_context),
    session: Session = Depends(get_db_session),
    scope: TenantScope = Depends(get_tenant_scope),
) -> BonusResult:
    bonus = SetBonus(session, scope).execute(
        ctx, worker_id, month, payload.amount, reason=payload.reason
    )
    return BonusResult(bonus=BonusPayload.from_bonus(bonus) if bonus is not None else None)


@router.post("/payments/{worker_id}/toggle", response_model=PaymentStatus)
def toggle_payment(
    worker_id: str,
    month: str = Query(description="Month as YYYY-MM"),
    ctx: OrganizationContext = Depends(get_org_context),
    session: Session = Depends(get_db_session),
    scope: TenantScope = Depends(get_tenant_scope),
) -> PaymentStatus:
    is_paid = TogglePayment(session, scope).execute(ctx, worker_id, month)
    return PaymentStatus(
        worker_id=worker_id,
        month=month_start(month).strftime("%Y-%m"),
        is_paid=is_paid,
    )
