# ruff: noqa: INP001
"""Integration tests for the bonus proposal list/search/create endpoints."""

from __future__ import annotations

import asyncio
from datetime import date
from typing import TYPE_CHECKING

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import Settings
from app.db.session import Database
from app.main import create_app
from app.models.bonus_proposals import BonusProposal
from app.services import bonus_proposals as bonus_service

if TYPE_CHECKING:
    from pathlib import Path

VEERA = {
    "employeeName": "Veera Raghava",
    "employeeID": "ATS0123",
    "proposalDate": "2025-04-24",
    "bonusAmount": 5000,
    "reason": "Exceeded quarterly targets by 15% with excellent code quality.",
}


async def _make_database() -> Database:
    database = Database(
        "sqlite+aiosqlite:///:memory:",
        engine=create_async_engine("sqlite+aiosqlite:///:memory:"),
    )
    await database.create_schema()
    return database


def _build_test_app(database: Database) -> FastAPI:
    return create_app(
        Settings(_env_file=None, database_url="sqlite+aiosqlite:///:memory:"),
        database=database,
    )


def _client(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")


async def _seed(database: Database, *rows: BonusProposal) -> None:
    async with database.session_maker() as session:
        session.add_all(rows)
        await session.commit()


def _proposal(
    *,
    employee_name: str = "Veera Raghava",
    employee_id: str = "ATS0123",
    proposal_date: date = date(2025, 4, 24),
    bonus_amount: int = 5000,
) -> BonusProposal:
    return BonusProposal(
        employee_name=employee_name,
        employee_id=employee_id,
        proposal_date=proposal_date,
        bonus_amount=bonus_amount,
        reason="Seeded for tests.",
    )


@pytest.mark.asyncio
async def test_create_returns_created_record_with_identity() -> None:
    database = await _make_database()
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            response = await client.post("/api/bonuses", json=VEERA)

        assert response.status_code == 201
        body = response.json()
        assert isinstance(body["id"], int)
        assert body["employee_name"] == "Veera Raghava"
        assert body["employee_id"] == "ATS0123"
        assert body["proposal_date"] == "2025-04-24"
        assert body["bonus_amount"] == 5000
        assert body["reason"] == VEERA["reason"]
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_second_create_in_same_month_is_rejected() -> None:
    database = await _make_database()
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            first = await client.post("/api/bonuses", json=VEERA)
            second = await client.post(
                "/api/bonuses",
                json={**VEERA, "proposalDate": "2025-04-28"},
            )

        assert first.status_code == 201
        assert second.status_code == 400
        body = second.json()
        assert body["detail"] == "Employee has already been submitted for this month"
        assert body["existingProposal"] == {
            "id": first.json()["id"],
            "employee_name": "Veera Raghava",
        }
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_create_in_different_month_succeeds() -> None:
    database = await _make_database()
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            april = await client.post("/api/bonuses", json=VEERA)
            may = await client.post("/api/bonuses", json={**VEERA, "proposalDate": "2025-05-01"})
            next_april = await client.post(
                "/api/bonuses",
                json={**VEERA, "proposalDate": "2026-04-24"},
            )

        assert april.status_code == 201
        assert may.status_code == 201
        assert next_april.status_code == 201
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_create_with_mismatched_name_reports_stored_name() -> None:
    database = await _make_database()
    await _seed(database, _proposal(proposal_date=date(2025, 3, 10)))
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            mismatch = await client.post(
                "/api/bonuses",
                json={**VEERA, "employeeName": "Someone Else"},
            )
            case_only = await client.post(
                "/api/bonuses",
                json={**VEERA, "employeeName": "VEERA raghava"},
            )

        assert mismatch.status_code == 400
        body = mismatch.json()
        assert body["correctName"] == "Veera Raghava"
        assert body["detail"] == "Employee ID ATS0123 is associated with Veera Raghava"
        assert case_only.status_code == 201
    finally:
        await database.dispose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({"reason": ""}, "All fields are required"),
        ({"employeeName": None}, "All fields are required"),
        ({"bonusAmount": 99}, "Bonus amount must be at least 100"),
        ({"employeeID": "ATS0000"}, "Employee ID must be in format ATS0XXX where XXX is 001-999"),
        ({"employeeID": "ATS012"}, "Employee ID must be in format ATS0XXX where XXX is 001-999"),
        ({"employeeID": "XTS0123"}, "Employee ID must be in format ATS0XXX where XXX is 001-999"),
        (
            {"employeeID": " ATS0123\n"},
            "Employee ID must be in format ATS0XXX where XXX is 001-999",
        ),
    ],
)
async def test_create_validation_errors(overrides: dict[str, object], expected: str) -> None:
    database = await _make_database()
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            response = await client.post("/api/bonuses", json={**VEERA, **overrides})
            listing = await client.get("/api/bonuses")

        assert response.status_code == 400
        assert response.json()["detail"] == expected
        assert isinstance(response.json()["request_id"], str)
        assert listing.json() == []
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_create_accepts_minimum_amount() -> None:
    database = await _make_database()
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            response = await client.post("/api/bonuses", json={**VEERA, "bonusAmount": 100})

        assert response.status_code == 201
        assert response.json()["bonus_amount"] == 100
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_race_past_month_check_becomes_duplicate_entry(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    database = await _make_database()
    await _seed(database, _proposal(proposal_date=date(2025, 4, 2)))
    app = _build_test_app(database)

    async def _stale_month_check(*_args: object, **_kwargs: object) -> None:
        # A concurrent request committed after this one ran its month lookup.
        return None

    monkeypatch.setattr(bonus_service, "find_proposal_in_month", _stale_month_check)

    try:
        async with _client(app) as client:
            response = await client.post("/api/bonuses", json=VEERA)
            listing = await client.get("/api/bonuses")

        assert response.status_code == 400
        assert response.json()["detail"] == "Duplicate entry detected"
        assert len(listing.json()) == 1
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_simultaneous_creates_leave_exactly_one_proposal(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    url = f"sqlite+aiosqlite:///{tmp_path / 'bonuses.db'}"
    database = Database(url, engine=create_async_engine(url))
    await database.create_schema()
    app = _build_test_app(database)

    month_checked = asyncio.Barrier(2)
    real_month_check = bonus_service.find_proposal_in_month

    async def _month_check_then_wait(*args: object, **kwargs: object) -> BonusProposal | None:
        found = await real_month_check(*args, **kwargs)
        # Neither request inserts until both have seen an empty month.
        await month_checked.wait()
        return found

    monkeypatch.setattr(bonus_service, "find_proposal_in_month", _month_check_then_wait)

    try:
        async with _client(app) as client:
            responses = await asyncio.gather(
                client.post("/api/bonuses", json=VEERA),
                client.post("/api/bonuses", json={**VEERA, "proposalDate": "2025-04-28"}),
            )
            listing = await client.get("/api/bonuses")

        assert sorted(r.status_code for r in responses) == [201, 400]
        rejected = next(r for r in responses if r.status_code == 400)
        assert rejected.json()["detail"] == "Duplicate entry detected"
        assert len(listing.json()) == 1
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_store_failure_on_create_is_generic_server_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    database = await _make_database()
    app = _build_test_app(database)

    async def _broken_lookup(*_args: object, **_kwargs: object) -> None:
        raise OperationalError("SELECT ...", {}, Exception("server closed the connection"))

    monkeypatch.setattr(bonus_service, "find_proposal_in_month", _broken_lookup)

    try:
        async with _client(app) as client:
            response = await client.post("/api/bonuses", json=VEERA)

        assert response.status_code == 500
        assert response.json()["detail"] == "Server error while creating bonus"
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_list_orders_by_proposal_date_descending() -> None:
    database = await _make_database()
    await _seed(
        database,
        _proposal(proposal_date=date(2025, 2, 3)),
        _proposal(
            employee_name="Pavan Kumar",
            employee_id="ATS0456",
            proposal_date=date(2025, 4, 20),
        ),
        _proposal(proposal_date=date(2025, 3, 15)),
    )
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            response = await client.get("/api/bonuses")

        assert response.status_code == 200
        dates = [row["proposal_date"] for row in response.json()]
        assert dates == ["2025-04-20", "2025-03-15", "2025-02-03"]
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_search_returns_all_matches_for_employee() -> None:
    database = await _make_database()
    await _seed(
        database,
        _proposal(proposal_date=date(2025, 3, 15)),
        _proposal(proposal_date=date(2025, 4, 24)),
        _proposal(
            employee_name="Pavan Kumar",
            employee_id="ATS0456",
            proposal_date=date(2025, 4, 20),
        ),
    )
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            response = await client.get(
                "/api/bonuses/search",
                params={"employeeID": "ATS0123", "employeeName": "veera raghava"},
            )

        assert response.status_code == 200
        body = response.json()
        assert [row["proposal_date"] for row in body] == ["2025-04-24", "2025-03-15"]
        assert {row["employee_id"] for row in body} == {"ATS0123"}
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_search_requires_employee_id() -> None:
    database = await _make_database()
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            response = await client.get("/api/bonuses/search")

        assert response.status_code == 400
        assert response.json()["detail"] == "Employee ID is required"
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_search_unknown_employee_is_not_found() -> None:
    database = await _make_database()
    await _seed(database, _proposal())
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            response = await client.get("/api/bonuses/search", params={"employeeID": "ATS0999"})

        assert response.status_code == 404
        assert response.json()["detail"] == "No matching bonus proposals found"
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_search_with_wrong_name_reports_correct_name() -> None:
    database = await _make_database()
    await _seed(database, _proposal())
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            response = await client.get(
                "/api/bonuses/search",
                params={"employeeID": "ATS0123", "employeeName": "Wrong Name"},
            )

        assert response.status_code == 400
        body = response.json()
        assert body["correctName"] == "Veera Raghava"
        assert body["detail"].startswith("Employee ID ATS0123 is associated with Veera Raghava")
        assert isinstance(body["request_id"], str)
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_api_health_reports_healthy_store() -> None:
    database = await _make_database()
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_api_health_reports_store_error(monkeypatch: pytest.MonkeyPatch) -> None:
    database = await _make_database()
    app = _build_test_app(database)

    async def _down() -> None:
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(database, "ping", _down)

    try:
        async with _client(app) as client:
            response = await client.get("/api/health")

        assert response.status_code == 500
        body = response.json()
        assert body["status"] == "unhealthy"
        assert "connection refused" in body["error"]
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_search_treats_whitespace_name_as_supplied() -> None:
    database = await _make_database()
    await _seed(database, _proposal())
    app = _build_test_app(database)

    try:
        async with _client(app) as client:
            response = await client.get(
                "/api/bonuses/search",
                params={"employeeID": "ATS0123", "employeeName": " "},
            )

        assert response.status_code == 400
        assert response.json()["correctName"] == "Veera Raghava"
    finally:
        await database.dispose()
