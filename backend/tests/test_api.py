import pytest


async def _create(client, **payload):
    response = await client.post("/api/transactions", json=payload)
    assert response.status_code == 201
    return response.json()["data"]


class TestSystem:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/system/health")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "healthy"


class TestCatalogApi:
    @pytest.mark.asyncio
    async def test_create_and_list_hierarchy(self, client):
        general = await client.post(
            "/api/catalog/generals", json={"name": "Operations", "category_type": "expense"}
        )
        assert general.status_code == 201
        general_id = general.json()["data"]["id"]

        concept = await client.post(
            "/api/catalog/concepts", json={"name": "Utilities", "general_id": general_id}
        )
        assert concept.status_code == 201

        listed = await client.get("/api/catalog/concepts", params={"general_id": general_id})
        assert [c["name"] for c in listed.json()["data"]] == ["Utilities"]


class TestTransactionsApi:
    @pytest.mark.asyncio
    async def test_payments_move_status(self, client):
        expense = await _create(client, type="expense", amount=300, date="2026-02-10")
        assert expense["status"] == "unpaid"

        payment = await client.post(
            f"/api/transactions/{expense['id']}/payments",
            json={"amount": 100, "date": "2026-02-12"},
        )
        assert payment.status_code == 201

        fetched = await client.get(f"/api/transactions/{expense['id']}")
        data = fetched.json()["data"]
        assert data["status"] == "partial"
        assert data["balance"] == 200
        assert len(data["payments"]) == 1

    @pytest.mark.asyncio
    async def test_overpayment_is_422(self, client):
        expense = await _create(client, type="expense", amount=50, date="2026-02-10")

        response = await client.post(
            f"/api/transactions/{expense['id']}/payments",
            json={"amount": 80, "date": "2026-02-12"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_list_is_paginated(self, client):
        for day in ("2026-02-01", "2026-02-02", "2026-02-03"):
            await _create(client, type="income", amount=10, date=day)

        response = await client.get("/api/transactions", params={"page_size": 2})

        body = response.json()
        assert len(body["data"]) == 2
        assert body["meta"]["total_count"] == 3


class TestReportsApi:
    @pytest.mark.asyncio
    async def test_stats_for_a_range(self, client):
        await _create(client, type="income", amount=400, date="2026-02-03")
        await _create(client, type="expense", amount=150, date="2026-02-04")
        await _create(client, type="expense", amount=90, date="2026-01-15")

        response = await client.get(
            "/api/reports/stats", params={"start_date": "2026-02-01", "end_date": "2026-02-28"}
        )

        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["total_income"] == 400
        assert stats["total_expenses"] == 150
        assert stats["current_period_balance"] == 250
        assert stats["prior_pending"]["count"] == 1
        assert stats["payment_status_expense"]["unpaid"]["carryover"] == 90
        assert len(stats["weekly_breakdown"]["weeks"]) == 5

    @pytest.mark.asyncio
    async def test_inverted_range_is_422(self, client):
        response = await client.get(
            "/api/reports/stats", params={"start_date": "2026-03-01", "end_date": "2026-02-01"}
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_filtered_transactions_meta(self, client):
        await _create(client, type="income", amount=10, date="2026-02-03")
        await _create(client, type="expense", amount=20, date="2026-02-03")

        response = await client.get(
            "/api/reports/transactions",
            params={"start_date": "2026-02-01", "end_date": "2026-02-28", "type": "expense"},
        )

        body = response.json()
        assert body["meta"]["total_count"] == 1
        assert body["data"][0]["amount"] == 20

    @pytest.mark.asyncio
    async def test_monthly_report(self, client):
        await _create(client, type="income", amount=10, date="2021-02-03")

        response = await client.get(
            "/api/reports/monthly/2021/2", params={"show_income_in_breakdown": "true"}
        )

        assert response.status_code == 200
        report = response.json()["data"]
        assert report["year"] == 2021
        assert report["preferences"]["show_income_in_breakdown"] is True
        assert report["stats"]["total_income"] == 10
        assert report["mixed_trees"] == []

    @pytest.mark.asyncio
    async def test_month_out_of_range_is_rejected(self, client):
        response = await client.get("/api/reports/monthly/2026/13")

        assert response.status_code == 422


class TestCarryoverApi:
    @pytest.mark.asyncio
    async def test_calculate_then_fetch(self, client):
        await _create(client, type="income", amount=600, date="2026-01-10")

        calculated = await client.post("/api/carryover/2026/2/calculate")
        assert calculated.status_code == 200
        assert calculated.json()["data"]["carryover_balance"] == 600

        fetched = await client.get("/api/carryover/2026/2")
        assert fetched.json()["data"]["key"] == "2026-02"

        status = await client.get("/api/carryover/2026/2/status")
        assert status.json()["data"]["has_positive_balance"] is True

        listed = await client.get("/api/carryover")
        assert [r["key"] for r in listed.json()["data"]] == ["2026-02"]

    @pytest.mark.asyncio
    async def test_missing_month_is_404(self, client):
        response = await client.get("/api/carryover/2026/2")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CARRYOVER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_preview(self, client):
        await _create(client, type="income", amount=500, date="2026-01-05")
        await _create(client, type="expense", amount=75, date="2026-01-06")

        response = await client.get("/api/carryover/2026/2/preview")

        preview = response.json()["data"]
        assert preview["computed"]["carryover_balance"] == 500
        assert preview["stored"] is None
        assert preview["pending_expenses_previous_month"] == 75

    @pytest.mark.asyncio
    async def test_process_books_once(self, client):
        await _create(client, type="income", amount=300, date="2026-09-05")

        first = await client.post("/api/carryover/process", params={"today": "2026-10-19"})
        assert first.status_code == 200
        booked = first.json()["data"]["transaction"]
        assert booked["is_carryover"] is True
        assert booked["amount"] == 300

        second = await client.post("/api/carryover/process", params={"today": "2026-10-19"})
        assert second.status_code == 409
