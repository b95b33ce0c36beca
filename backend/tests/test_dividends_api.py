"""Tests for the dividends API endpoints."""

import pytest
import pytest_asyncio
from fastapi import status
from sqlalchemy import func, select

from kabu_tracker.exceptions import ValidationError
from kabu_tracker.models import Dividend
from kabu_tracker.services.dividend_service import DividendService


@pytest_asyncio.fixture
async def stock_id(auth_client):
    response = await auth_client.post("/api/stocks/register", json={"code": "7203"})
    return response.json()["id"]


class TestAddDividend:
    """Tests for POST /api/dividends."""

    async def test_add_dividend(self, auth_client, stock_id):
        response = await auth_client.post("/api/dividends", json={"stock_id": stock_id, "amount": 45.5, "year": 2025})
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["amount"] == 45.5
        assert response.json()["year"] == 2025

    async def test_negative_amount_rejected_without_write(self, auth_client, stock_id, db_session):
        response = await auth_client.post("/api/dividends", json={"stock_id": stock_id, "amount": -5, "year": 2025})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["details"]["field"] == "amount"

        count = await db_session.scalar(select(func.count()).select_from(Dividend))
        assert count == 0

    @pytest.mark.parametrize("token", ["NaN", "Infinity"])
    async def test_non_finite_amount_rejected_without_write(self, auth_client, stock_id, db_session, token):
        body = f'{{"stock_id": {stock_id}, "amount": {token}, "year": 2024}}'
        response = await auth_client.post(
            "/api/dividends", content=body, headers={"Content-Type": "application/json"}
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["details"]["field"] == "amount"

        count = await db_session.scalar(select(func.count()).select_from(Dividend))
        assert count == 0

    @pytest.mark.parametrize("year", [1999, 2101])
    async def test_year_out_of_range(self, auth_client, stock_id, year):
        response = await auth_client.post("/api/dividends", json={"stock_id": stock_id, "amount": 10, "year": year})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["details"]["field"] == "year"

    async def test_unknown_stock_returns_404(self, auth_client):
        response = await auth_client.post("/api/dividends", json={"stock_id": 42, "amount": 10, "year": 2025})
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestListAndDeleteDividends:
    """Tests for GET /api/dividends and DELETE /api/dividends/{id}."""

    async def test_list_is_newest_year_first(self, auth_client, stock_id):
        for year in (2023, 2025, 2024):
            await auth_client.post("/api/dividends", json={"stock_id": stock_id, "amount": 10, "year": year})

        response = await auth_client.get("/api/dividends", params={"stock_id": stock_id})
        assert [row["year"] for row in response.json()] == [2025, 2024, 2023]

    async def test_list_requires_stock_id(self, auth_client):
        response = await auth_client.get("/api/dividends")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_delete_dividend(self, auth_client, stock_id):
        created = await auth_client.post("/api/dividends", json={"stock_id": stock_id, "amount": 10, "year": 2025})
        dividend_id = created.json()["id"]

        response = await auth_client.delete(f"/api/dividends/{dividend_id}")
        assert response.status_code == status.HTTP_200_OK

        response = await auth_client.delete(f"/api/dividends/{dividend_id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestDividendServiceValidation:
    """Validation happens before the session is touched."""

    async def test_validation_precedes_database_access(self):
        class ExplodingSession:
            def __getattr__(self, name):
                raise AssertionError(f"database accessed: {name}")

        service = DividendService(ExplodingSession())
        with pytest.raises(ValidationError) as exc_info:
            await service.add_dividend(1, -5, 2025)
        assert exc_info.value.field == "amount"
