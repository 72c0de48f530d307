from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from estate.core.config import DatabaseSettings, LedgerSettings, Settings
from estate.core.context import OrganizationContext, OrgRole
from estate.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from estate.domain.wages import ExtraWorkItem
from estate.models import Base, DailyPlucking, Organization, SalaryPayment, Worker, WorkerBonus
from estate.services.wage_ledger import DailyEntryInput, WageLedger

OWNER = OrganizationContext(organization_id="org-1", user_id="u-owner", role=OrgRole.OWNER)
MANAGER = OrganizationContext(organization_id="org-1", user_id="u-manager", role=OrgRole.MANAGER)
VIEWER = OrganizationContext(organization_id="org-1", user_id="u-viewer", role=OrgRole.VIEWER)
OTHER_ORG = OrganizationContext(organization_id="org-2", user_id="u-other", role=OrgRole.OWNER)

DAY = date(2024, 1, 5)
PAID_AT = datetime(2024, 2, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture()
def session() -> Session:
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    with factory() as db_session:
        db_session.add_all(
            [
                Organization(id="org-1", name="Hillside Estate", slug="hillside"),
                Organization(id="org-2", name="Valley Estate", slug="valley"),
                Worker(id="W1", organization_id="org-1", employee_id="E-001", first_name="Asha", last_name="Devi"),
                Worker(id="W2", organization_id="org-1", employee_id="E-002", first_name="Ravi"),
                Worker(id="W9", organization_id="org-2", employee_id="E-900", first_name="Meena"),
            ]
        )
        db_session.commit()
        yield db_session
    engine.dispose()


@pytest.fixture()
def ledger(session: Session) -> WageLedger:
    settings = Settings(database=DatabaseSettings(), ledger=LedgerSettings())
    return WageLedger(session, settings=settings, clock=lambda: PAID_AT)


def _stored_rows(session: Session, worker_id: str = "W1") -> list[DailyPlucking]:
    session.expire_all()
    return list(
        session.query(DailyPlucking).filter_by(worker_id=worker_id).order_by(DailyPlucking.is_advance)
    )


def test_dual_data_creates_plucking_and_advance(ledger: WageLedger, session: Session) -> None:
    written = ledger.record_daily_entry(
        OWNER,
        "W1",
        DAY,
        DailyEntryInput(kg_plucked=Decimal("10"), rate_per_kg=Decimal("40"), advance_amount=Decimal("500")),
    )

    assert len(written) == 2
    plucking = next(entry for entry in written if not entry.is_advance)
    advance = next(entry for entry in written if entry.is_advance)
    assert plucking.amount == Decimal("400")
    assert advance.amount == Decimal("500")
    assert advance.kg_plucked == 0
    assert [row.organization_id for row in _stored_rows(session)] == ["org-1", "org-1"]


def test_default_rate_and_extra_work(ledger: WageLedger) -> None:
    (entry,) = ledger.record_daily_entry(
        OWNER,
        "W1",
        "2024-01-05",
        DailyEntryInput(
            kg_plucked=Decimal("12.5"),
            extra_work=(ExtraWorkItem("Weeding", Decimal("60")), ExtraWorkItem("Unused", Decimal("0"))),
            notes="north slope",
        ),
    )

    assert entry.rate_per_kg == Decimal("40")
    assert entry.extra_work_payment == Decimal("60")
    assert entry.amount == Decimal("560")
    assert entry.extra_work_items == (ExtraWorkItem("Weeding", Decimal("60")),)
    assert entry.notes == "north slope"


def test_single_advance_uses_selected_type(ledger: WageLedger) -> None:
    (entry,) = ledger.record_daily_entry(
        OWNER, "W1", DAY, DailyEntryInput(is_advance=True, advance_amount=Decimal("250"))
    )

    assert entry.is_advance
    assert entry.amount == Decimal("250")


def test_selected_type_without_its_data_is_rejected(ledger: WageLedger, session: Session) -> None:
    with pytest.raises(ValidationError, match="advance amount"):
        ledger.record_daily_entry(OWNER, "W1", DAY, DailyEntryInput(is_advance=True, kg_plucked=Decimal("10")))
    with pytest.raises(ValidationError, match="kilograms plucked"):
        ledger.record_daily_entry(OWNER, "W1", DAY, DailyEntryInput(advance_amount=Decimal("100")))

    assert _stored_rows(session) == []


def test_stored_wage_matches_rounded_figures(ledger: WageLedger, session: Session) -> None:
    (entry,) = ledger.record_daily_entry(
        OWNER,
        "W1",
        DAY,
        DailyEntryInput(
            kg_plucked=Decimal("12.345"),
            rate_per_kg=Decimal("40.555"),
            extra_work=(ExtraWorkItem("Weeding", Decimal("10.005")),),
        ),
    )

    assert entry.kg_plucked == Decimal("12.35")
    assert entry.rate_per_kg == Decimal("40.56")
    assert entry.amount == Decimal("510.926")

    (row,) = _stored_rows(session)
    assert row.wage_earned == row.kg_plucked * row.rate_per_kg + row.extra_work_payment
    assert row.wage_earned == Decimal("510.926")
    assert ledger.daily_totals(VIEWER, DAY).work_earnings == Decimal("510.926")


@pytest.mark.parametrize(
    "entry",
    [
        DailyEntryInput(kg_plucked=Decimal("Infinity")),
        DailyEntryInput(kg_plucked=Decimal("5"), rate_per_kg=Decimal("NaN")),
        DailyEntryInput(extra_work=(ExtraWorkItem("Weeding", Decimal("NaN")),)),
        DailyEntryInput(is_advance=True, advance_amount=Decimal("-Infinity")),
    ],
)
def test_non_finite_figures_are_rejected(ledger: WageLedger, session: Session, entry) -> None:
    with pytest.raises(ValidationError):
        ledger.record_daily_entry(OWNER, "W1", DAY, entry)

    assert _stored_rows(session) == []


def test_non_finite_bonus_is_rejected(ledger: WageLedger, session: Session) -> None:
    with pytest.raises(ValidationError):
        ledger.set_bonus(OWNER, "W1", "2024-01", "NaN")

    assert session.query(WorkerBonus).count() == 0


def test_empty_or_negative_input_is_rejected(ledger: WageLedger, session: Session) -> None:
    with pytest.raises(ValidationError):
        ledger.record_daily_entry(OWNER, "W1", DAY, DailyEntryInput())
    with pytest.raises(ValidationError):
        ledger.record_daily_entry(OWNER, "W1", DAY, DailyEntryInput(kg_plucked=Decimal("-1")))
    with pytest.raises(ValidationError):
        ledger.record_daily_entry(OWNER, "W1", "05/01/2024", DailyEntryInput(kg_plucked=Decimal("1")))

    assert _stored_rows(session) == []


def test_second_line_of_same_type_is_rejected(ledger: WageLedger, session: Session) -> None:
    ledger.record_daily_entry(OWNER, "W1", DAY, DailyEntryInput(kg_plucked=Decimal("10")))

    with pytest.raises(ValidationError, match="already has a plucking entry"):
        ledger.record_daily_entry(
            OWNER,
            "W1",
            DAY,
            DailyEntryInput(kg_plucked=Decimal("3"), advance_amount=Decimal("100")),
        )

    rows = _stored_rows(session)
    assert len(rows) == 1
    assert rows[0].kg_plucked == Decimal("10")


def test_edit_updates_in_place(ledger: WageLedger, session: Session) -> None:
    (created,) = ledger.record_daily_entry(OWNER, "W1", DAY, DailyEntryInput(kg_plucked=Decimal("10")))

    (edited,) = ledger.record_daily_entry(
        MANAGER,
        "W1",
        DAY,
        DailyEntryInput(kg_plucked=Decimal("12"), rate_per_kg=Decimal("45")),
        entry_id=created.id,
    )

    assert edited.id == created.id
    assert edited.amount == Decimal("540")
    assert len(_stored_rows(session)) == 1


def test_edit_switches_type_in_place_when_only_new_type_has_data(
    ledger: WageLedger, session: Session
) -> None:
    (created,) = ledger.record_daily_entry(OWNER, "W1", DAY, DailyEntryInput(kg_plucked=Decimal("10")))

    (edited,) = ledger.record_daily_entry(
        OWNER,
        "W1",
        DAY,
        DailyEntryInput(is_advance=True, advance_amount=Decimal("300")),
        entry_id=created.id,
    )

    assert edited.id == created.id
    assert edited.is_advance
    assert edited.kg_plucked == 0
    rows = _stored_rows(session)
    assert len(rows) == 1
    assert rows[0].wage_earned == Decimal("300")


def test_edit_with_both_kinds_of_data_forks_a_sibling(ledger: WageLedger, session: Session) -> None:
    (created,) = ledger.record_daily_entry(OWNER, "W1", DAY, DailyEntryInput(kg_plucked=Decimal("10")))

    (sibling,) = ledger.record_daily_entry(
        OWNER,
        "W1",
        DAY,
        DailyEntryInput(is_advance=True, kg_plucked=Decimal("10"), advance_amount=Decimal("200")),
        entry_id=created.id,
    )

    assert sibling.id != created.id
    assert sibling.is_advance
    plucking, advance = _stored_rows(session)
    assert plucking.id == created.id
    assert plucking.wage_earned == Decimal("400")
    assert advance.wage_earned == Decimal("200")


def test_in_place_advance_requires_positive_amount(ledger: WageLedger) -> None:
    (created,) = ledger.record_daily_entry(
        OWNER, "W1", DAY, DailyEntryInput(is_advance=True, advance_amount=Decimal("100"))
    )

    with pytest.raises(ValidationError):
        ledger.record_daily_entry(
            OWNER,
            "W1",
            DAY,
            DailyEntryInput(is_advance=True, advance_amount=Decimal("0")),
            entry_id=created.id,
        )


def test_missing_rows_and_foreign_workers_are_not_found(ledger: WageLedger) -> None:
    with pytest.raises(NotFoundError):
        ledger.record_daily_entry(
            OWNER, "W1", DAY, DailyEntryInput(kg_plucked=Decimal("1")), entry_id="nope"
        )
    with pytest.raises(NotFoundError):
        ledger.record_daily_entry(OWNER, "W9", DAY, DailyEntryInput(kg_plucked=Decimal("1")))
    with pytest.raises(NotFoundError):
        ledger.delete_entry(OWNER, "nope")


def test_roles_gate_writes_and_deletes(ledger: WageLedger) -> None:
    with pytest.raises(PermissionDeniedError):
        ledger.record_daily_entry(VIEWER, "W1", DAY, DailyEntryInput(kg_plucked=Decimal("1")))
    with pytest.raises(PermissionDeniedError):
        ledger.set_bonus(VIEWER, "W1", "2024-01", Decimal("10"))
    with pytest.raises(PermissionDeniedError):
        ledger.toggle_paid(VIEWER, "W1", "2024-01")

    (created,) = ledger.record_daily_entry(MANAGER, "W1", DAY, DailyEntryInput(kg_plucked=Decimal("1")))
    with pytest.raises(PermissionDeniedError):
        ledger.delete_entry(MANAGER, created.id)

    ledger.delete_entry(OWNER, created.id)
    assert ledger.list_daily_entries(VIEWER, DAY) == []


def test_daily_listing_is_tenant_scoped_and_searchable(ledger: WageLedger) -> None:
    ledger.record_daily_entry(OWNER, "W1", DAY, DailyEntryInput(kg_plucked=Decimal("10")))
    ledger.record_daily_entry(OWNER, "W2", DAY, DailyEntryInput(is_advance=True, advance_amount=Decimal("50")))
    ledger.record_daily_entry(OTHER_ORG, "W9", DAY, DailyEntryInput(kg_plucked=Decimal("99")))

    lines = ledger.list_daily_entries(VIEWER, DAY)
    assert {line.worker_name for line in lines} == {"Asha Devi", "Ravi"}
    assert [line.employee_id for line in ledger.list_daily_entries(VIEWER, DAY, "devi")] == ["E-001"]

    totals = ledger.daily_totals(VIEWER, DAY)
    assert totals.total_kg == Decimal("10")
    assert totals.work_earnings == Decimal("400")
    assert totals.advances_given == Decimal("50")
    assert totals.to_be_paid == Decimal("350")


def test_month_summary_uses_only_that_month(ledger: WageLedger) -> None:
    ledger.record_daily_entry(OWNER, "W1", date(2024, 3, 1), DailyEntryInput(kg_plucked=Decimal("10")))
    ledger.record_daily_entry(OWNER, "W1", date(2024, 3, 31), DailyEntryInput(kg_plucked=Decimal("20")))
    ledger.record_daily_entry(OWNER, "W1", date(2024, 2, 29), DailyEntryInput(kg_plucked=Decimal("500")))
    ledger.record_daily_entry(
        OWNER, "W1", date(2024, 3, 15), DailyEntryInput(is_advance=True, advance_amount=Decimal("100"))
    )
    ledger.set_bonus(OWNER, "W2", "2024-03", Decimal("1000"), reason="Best attendance")

    summaries = ledger.compute_month_summary(VIEWER, "2024-03")

    assert [s.worker_id for s in summaries] == ["W1", "W2"]
    asha, ravi = summaries
    assert asha.total_kg == Decimal("30")
    assert asha.total_earned == Decimal("1200")
    assert asha.total_advance == Decimal("100")
    assert asha.net_salary == Decimal("1100")
    assert asha.days_worked == 2
    assert ravi.total_kg == 0
    assert ravi.bonus == Decimal("1000")
    assert ravi.net_salary == Decimal("1000")

    totals = ledger.month_totals(VIEWER, date(2024, 3, 20))
    assert totals.total_workers == 2
    assert totals.total_net == Decimal("2100")
    assert [s.worker_id for s in ledger.compute_month_summary(VIEWER, "2024-03", search="ravi")] == ["W2"]


@pytest.mark.parametrize("prior", [None, Decimal("250")])
def test_zero_bonus_clears_existing_bonus(ledger: WageLedger, session: Session, prior) -> None:
    if prior is not None:
        ledger.set_bonus(OWNER, "W1", "2024-03", prior)

    assert ledger.set_bonus(OWNER, "W1", "2024-03", 0) is None
    assert session.query(WorkerBonus).filter_by(worker_id="W1").count() == 0


def test_bonus_upsert_and_negative_rejection(ledger: WageLedger) -> None:
    first = ledger.set_bonus(OWNER, "W1", "2024-03-17", Decimal("100"), reason="Harvest")
    second = ledger.set_bonus(OWNER, "W1", "2024-03", Decimal("150"))

    assert first.month == date(2024, 3, 1)
    assert second.id == first.id
    assert second.amount == Decimal("150")
    assert second.reason == "Harvest"

    with pytest.raises(ValidationError):
        ledger.set_bonus(OWNER, "W1", "2024-03", Decimal("-5"))


def test_toggle_paid_twice_restores_state(ledger: WageLedger, session: Session) -> None:
    assert ledger.toggle_paid(OWNER, "W1", "2024-03") is True
    (mark,) = session.query(SalaryPayment).filter_by(worker_id="W1").all()
    assert mark.month == date(2024, 3, 1)

    assert ledger.toggle_paid(OWNER, "W1", "2024-03") is False
    session.expire_all()
    assert session.query(SalaryPayment).count() == 0


def test_paid_mark_shows_in_summary(ledger: WageLedger) -> None:
    ledger.record_daily_entry(OWNER, "W1", date(2024, 3, 4), DailyEntryInput(kg_plucked=Decimal("5")))
    ledger.toggle_paid(MANAGER, "W1", "2024-03")

    (summary,) = ledger.compute_month_summary(VIEWER, "2024-03")

    assert summary.is_paid is True
    assert ledger.month_totals(VIEWER, "2024-03").total_paid_out == Decimal("200")
