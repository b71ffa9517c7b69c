"""Transaction analytics aggregation engine."""

from typing import Any, Dict, List, Optional
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
import structlog

from fintrek.models.finance import Transaction, TransactionType

logger = structlog.get_logger()


def _money(value) -> float:
    return round(float(value or 0), 2)


def month_window_start(now: datetime, months: int) -> datetime:
    """First day (midnight) of the month ``months`` months before ``now``."""
    year, month = now.year, now.month - months
    while month <= 0:
        month += 12
        year -= 1
    return datetime(year, month, 1)


class AnalyticsEngine:
    """Aggregates a user's transactions into summaries, breakdowns and trends."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def summary(self, user_id: UUID, period_days: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Income, expenses, balance and savings rate over the last ``period_days`` days."""
        start_date = (now or datetime.utcnow()) - timedelta(days=period_days)

        result = await self.db.execute(
            select(
                Transaction.type,
                func.sum(Transaction.amount).label("total"),
                func.count(Transaction.id).label("count")
            ).where(
                Transaction.user_id == user_id,
                Transaction.date >= start_date
            ).group_by(Transaction.type)
        )

        totals = {row.type: (float(row.total or 0), row.count) for row in result}
        total_income = totals.get(TransactionType.INCOME.value, (0.0, 0))[0]
        total_expenses = totals.get(TransactionType.EXPENSE.value, (0.0, 0))[0]
        transaction_count = sum(count for _, count in totals.values())
        balance = total_income - total_expenses

        return {
            "period": f"{period_days} days",
            "total_income": _money(total_income),
            "total_expenses": _money(total_expenses),
            "balance": _money(balance),
            "transaction_count": transaction_count,
            "avg_daily_spending": _money(total_expenses / period_days),
            "savings_rate": _money(balance / total_income * 100) if total_income > 0 else 0.0,
        }

    async def category_breakdown(
        self,
        user_id: UUID,
        transaction_type: TransactionType,
        period_days: int,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Totals per category for one transaction type, largest first."""
        start_date = (now or datetime.utcnow()) - timedelta(days=period_days)

        result = await self.db.execute(
            select(
                Transaction.category,
                func.sum(Transaction.amount).label("amount")
            ).where(
                Transaction.user_id == user_id,
                Transaction.type == transaction_type.value,
                Transaction.date >= start_date
            ).group_by(Transaction.category)
        )

        rows = [(row.category, float(row.amount or 0)) for row in result]
        grand_total = sum(amount for _, amount in rows)

        categories = sorted(
            (
                {
                    "name": name,
                    "amount": _money(amount),
                    "percentage": _money(amount / grand_total * 100) if grand_total > 0 else 0.0,
                }
                for name, amount in rows
            ),
            key=lambda c: (-c["amount"], c["name"])
        )

        return {
            "type": transaction_type.value,
            "period": f"{period_days} days",
            "categories": categories,
            "total_amount": _money(grand_total),
        }

    async def monthly_trends(self, user_id: UUID, months: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Income and expenses per calendar month, oldest first; months without data are omitted."""
        start_date = month_window_start(now or datetime.utcnow(), months)

        result = await self.db.execute(
            select(Transaction.date, Transaction.type, Transaction.amount).where(
                Transaction.user_id == user_id,
                Transaction.date >= start_date
            ).order_by(Transaction.date.asc())
        )

        monthly: Dict[str, Dict[str, float]] = {}
        for row in result:
            month_key = f"{row.date.year}-{row.date.month:02d}"
            bucket = monthly.setdefault(month_key, {"income": 0.0, "expenses": 0.0})
            if row.type == TransactionType.INCOME.value:
                bucket["income"] += float(row.amount)
            else:
                bucket["expenses"] += float(row.amount)

        data: List[Dict[str, Any]] = [
            {
                "month": month,
                "income": _money(values["income"]),
                "expenses": _money(values["expenses"]),
                "balance": _money(values["income"] - values["expenses"]),
            }
            for month, values in sorted(monthly.items())
        ]

        return {"period": f"{months} months", "data": data}
