from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from estate.db.schema_probe import TenantScope
from estate.main import create_app
from estate.models import Base, DailyPlucking, Organization, OrganizationMember, Worker
from estate.web.dependencies import get_db_session, get_tenant_scope

ACCEPTED = datetime(2024, 1, 1, tzinfo=timezone.utc)
OWNER_HEADERS = {"X-Organization-Id": "org-1", "X-User-Id": "u-owner"}
VIEWER_HEADERS = {"X-Organization-Id": "org-1", "X-User-Id": "u-viewer"}


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    with factory() as session:
        session.add_all(
            [
                Organization(id="org-1", name="Hillside Estate", slug="hillside"),
                OrganizationMember(organization_id="org-1", user_id="u-owner", role="owner", accepted_at=ACCEPTED),
                OrganizationMember(organization_id="org-1", user_id="u-viewer", role="viewer", accepted_at=ACCEPTED),
                Worker(id="W1", organization_id="org-1", employee_id="E-001", first_name="Asha"),
                Worker(id="W2", organization_id="org-1", employee_id="E-002", first_name="Ravi"),
            ]
        )
        session.commit()
    yield factory
    engine.dispose()


@pytest.fixture()
def client(session_factory) -> TestClient:
    app = create_app()

    def _session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = _session
    app.dependency_overrides[get_tenant_scope] = lambda: TenantScope()
    return TestClient(app)


def test_record_and_list_daily_entries(client: TestClient) -> None:
    response = client.post(
        "/ledger/entries",
        json={
            "worker_id": "W1",
            "date": "2024-01-05",
            "kg_plucked": "10",
            "rate_per_kg": "40",
            "advance_amount": "500",
        },
        headers=OWNER_HEADERS,
    )

    assert response.status_code == 201
    entries = response.json()["entries"]
    assert sorted((e["kind"], e["amount"]) for e in entries) == [
        ("advance", "500.00"),
        ("plucking", "400.00"),
    ]

    listing = client.get("/ledger/entries", params={"date": "2024-01-05"}, headers=VIEWER_HEADERS)
    assert listing.status_code == 200
    body = listing.json()
    assert len(body["lines"]) == 2
    assert body["lines"][0]["worker_name"] == "Asha"
    assert body["totals"]["to_be_paid"] == "-100.00"


def test_edit_and_delete_entry(client: TestClient, session_factory) -> None:
    created = client.post(
        "/ledger/entries",
        json={"worker_id": "W1", "date": "2024-01-05", "kg_plucked": "10"},
        headers=OWNER_HEADERS,
    ).json()["entries"][0]

    edited = client.put(
        f"/ledger/entries/{created['id']}",
        json={"worker_id": "W1", "date": "2024-01-05", "kg_plucked": "11"},
        headers=OWNER_HEADERS,
    )
    assert edited.status_code == 200
    assert edited.json()["entries"][0]["amount"] == "440.00"

    deleted = client.delete(f"/ledger/entries/{created['id']}", headers=OWNER_HEADERS)
    assert deleted.status_code == 204
    with session_factory() as session:
        assert session.query(DailyPlucking).count() == 0

    missing = client.delete(f"/ledger/entries/{created['id']}", headers=OWNER_HEADERS)
    assert missing.status_code == 404


def test_salary_sheet_bonus_and_payment(client: TestClient) -> None:
    client.post(
        "/ledger/entries",
        json={"worker_id": "W1", "date": "2024-03-04", "kg_plucked": "25"},
        headers=OWNER_HEADERS,
    )
    bonus = client.put(
        "/ledger/bonuses/W2",
        params={"month": "2024-03"},
        json={"amount": "1500", "reason": "Festival"},
        headers=OWNER_HEADERS,
    )
    assert bonus.status_code == 200
    assert bonus.json()["bonus"] == {
        "worker_id": "W2",
        "month": "2024-03",
        "amount": "1500.00",
        "reason": "Festival",
    }

    toggled = client.post("/ledger/payments/W1/toggle", params={"month": "2024-03"}, headers=OWNER_HEADERS)
    assert toggled.json() == {"worker_id": "W1", "month": "2024-03", "is_paid": True}

    sheet = client.get("/ledger/salaries", params={"month": "2024-03"}, headers=VIEWER_HEADERS).json()
    assert sheet["month"] == "2024-03"
    assert [(w["worker_id"], w["net_salary"], w["is_paid"]) for w in sheet["workers"]] == [
        ("W2", "1500.00", False),
        ("W1", "1000.00", True),
    ]
    assert sheet["totals"]["paid_workers"] == 1
    assert sheet["totals"]["total_paid_out"] == "1000.00"

    cleared = client.put(
        "/ledger/bonuses/W2", params={"month": "2024-03"}, json={"amount": "0"}, headers=OWNER_HEADERS
    )
    assert cleared.json() == {"bonus": None}


@pytest.mark.parametrize(
    ("method", "path", "kwargs", "headers", "status"),
    [
        ("get", "/ledger/entries", {"params": {"date": "2024-01-05"}}, {}, 422),
        ("get", "/ledger/entries", {"params": {"date": "2024-01-05"}}, {"X-Organization-Id": "org-1", "X-User-Id": "stranger"}, 403),
        ("post", "/ledger/entries", {"json": {"worker_id": "W1", "date": "2024-01-05", "kg_plucked": "1"}}, VIEWER_HEADERS, 403),
        ("post", "/ledger/entries", {"json": {"worker_id": "W1", "date": "2024-01-05"}}, OWNER_HEADERS, 422),
        ("post", "/ledger/entries", {"json": {"worker_id": "W404", "date": "2024-01-05", "kg_plucked": "1"}}, OWNER_HEADERS, 404),
        ("get", "/ledger/salaries", {"params": {"month": "March"}}, VIEWER_HEADERS, 422),
        ("put", "/ledger/bonuses/W1", {"params": {"month": "2024-03"}, "json": {"amount": "-1"}}, OWNER_HEADERS, 422),
    ],
)
def test_errors_map_to_status_codes(client: TestClient, method, path, kwargs, headers, status) -> None:
    response = client.request(method.upper(), path, headers=headers, **kwargs)

    assert response.status_code == status
    assert "detail" in response.json()
