"""Tests for transaction analytics."""

from datetime import datetime
import uuid

import pytest

from fintrek.analytics.analytics_engine import AnalyticsEngine, month_window_start
from fintrek.models.finance import Transaction, TransactionType

NOW = datetime(2024, 6, 15, 12, 0, 0)


@pytest.fixture
async def ledger(db):
    """A user with income and expenses spread over several months."""
    user_id = uuid.uuid4()
    rows = [
        (3000, "income", "Salary", datetime(2024, 6, 1)),
        (500, "income", "Freelance", datetime(2024, 6, 10)),
        (1200, "expense", "Rent", datetime(2024, 6, 2)),
        (300, "expense", "Food", datetime(2024, 6, 5)),
        (300, "expense", "Transport", datetime(2024, 6, 6)),
        (2800, "income", "Salary", datetime(2024, 4, 1)),
        (900, "expense", "Rent", datetime(2024, 4, 3)),
        # Outside every window used below
        (100, "expense", "Food", datetime(2023, 1, 1)),
    ]
    for amount, kind, category, date in rows:
        db.add(Transaction(user_id=user_id, amount=amount, type=kind, category=category, date=date))
    # Another user's data never leaks into the totals
    db.add(Transaction(user_id=uuid.uuid4(), amount=999, type="income", category="Salary", date=datetime(2024, 6, 3)))
    await db.commit()
    return user_id


class TestMonthWindow:
    """Tests for month_window_start."""

    def test_same_year(self):
        assert month_window_start(datetime(2024, 6, 15), 3) == datetime(2024, 3, 1)

    def test_wraps_year(self):
        assert month_window_start(datetime(2024, 2, 10), 6) == datetime(2023, 8, 1)

    def test_wraps_multiple_years(self):
        assert month_window_start(datetime(2024, 2, 10), 26) == datetime(2021, 12, 1)


class TestSummary:
    """Tests for AnalyticsEngine.summary."""

    async def test_totals_over_window(self, db, ledger):
        summary = await AnalyticsEngine(db).summary(ledger, 30, now=NOW)

        assert summary["period"] == "30 days"
        assert summary["total_income"] == 3500.0
        assert summary["total_expenses"] == 1800.0
        assert summary["balance"] == 1700.0
        assert summary["transaction_count"] == 5
        assert summary["avg_daily_spending"] == 60.0
        assert summary["savings_rate"] == 48.57

    async def test_no_income_means_zero_savings_rate(self, db):
        summary = await AnalyticsEngine(db).summary(uuid.uuid4(), 30, now=NOW)
        assert summary["total_income"] == 0.0
        assert summary["savings_rate"] == 0.0
        assert summary["transaction_count"] == 0


class TestCategoryBreakdown:
    """Tests for AnalyticsEngine.category_breakdown."""

    async def test_expense_categories_largest_first(self, db, ledger):
        breakdown = await AnalyticsEngine(db).category_breakdown(
            ledger, TransactionType.EXPENSE, 30, now=NOW
        )

        assert breakdown["type"] == "expense"
        assert breakdown["total_amount"] == 1800.0
        assert [c["name"] for c in breakdown["categories"]] == ["Rent", "Food", "Transport"]
        assert breakdown["categories"][0]["percentage"] == 66.67
        assert breakdown["categories"][1]["percentage"] == 16.67

    async def test_income_categories(self, db, ledger):
        breakdown = await AnalyticsEngine(db).category_breakdown(
            ledger, TransactionType.INCOME, 30, now=NOW
        )
        assert [c["name"] for c in breakdown["categories"]] == ["Salary", "Freelance"]

    async def test_empty_breakdown(self, db):
        breakdown = await AnalyticsEngine(db).category_breakdown(
            uuid.uuid4(), TransactionType.EXPENSE, 30, now=NOW
        )
        assert breakdown["categories"] == []
        assert breakdown["total_amount"] == 0.0


class TestMonthlyTrends:
    """Tests for AnalyticsEngine.monthly_trends."""

    async def test_months_ascending_without_empty_months(self, db, ledger):
        trends = await AnalyticsEngine(db).monthly_trends(ledger, 6, now=NOW)

        assert trends["period"] == "6 months"
        assert trends["data"] == [
            {"month": "2024-04", "income": 2800.0, "expenses": 900.0, "balance": 1900.0},
            {"month": "2024-06", "income": 3500.0, "expenses": 1800.0, "balance": 1700.0},
        ]

    async def test_window_excludes_older_months(self, db, ledger):
        trends = await AnalyticsEngine(db).monthly_trends(ledger, 1, now=NOW)
        assert [point["month"] for point in trends["data"]] == ["2024-06"]


class TestAnalyticsEndpoints:
    """Tests for the /analytics routes."""

    async def test_summary_endpoint(self, client, user):
        await client.post("/transactions", headers=user["headers"], json={
            "amount": 1000, "type": "income", "category": "Salary",
        })
        await client.post("/transactions", headers=user["headers"], json={
            "amount": 250, "type": "expense", "category": "Food",
        })

        response = await client.get("/analytics/summary", headers=user["headers"])
        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["totalIncome"] == 1000.0
        assert summary["totalExpenses"] == 250.0
        assert summary["balance"] == 750.0
        assert summary["savingsRate"] == 75.0
        assert summary["period"] == "30 days"

    async def test_category_endpoint_defaults_to_expense(self, client, user):
        await client.post("/transactions", headers=user["headers"], json={
            "amount": 40, "type": "expense", "category": "Food",
        })
        response = await client.get("/analytics/category", headers=user["headers"])
        assert response.status_code == 200
        breakdown = response.json()["breakdown"]
        assert breakdown["type"] == "expense"
        assert breakdown["totalAmount"] == 40.0
        assert breakdown["categories"] == [{"name": "Food", "amount": 40.0, "percentage": 100.0}]

    async def test_trends_endpoint(self, client, user):
        response = await client.get("/analytics/trends?months=3", headers=user["headers"])
        assert response.status_code == 200
        assert response.json()["trends"] == {"period": "3 months", "data": []}

    async def test_invalid_period_rejected(self, client, user):
        response = await client.get("/analytics/summary?period=0", headers=user["headers"])
        assert response.status_code == 400

    async def test_requires_auth(self, client):
        response = await client.get("/analytics/summary")
        assert response.status_code == 401
