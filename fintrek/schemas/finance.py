"""Transaction and analytics schemas (REST layer)."""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from fintrek.models.finance import TransactionType
from fintrek.schemas.common import CamelModel, NonEmptyStr


# Largest value a Numeric(12, 2) column holds
MAX_AMOUNT = 9_999_999_999.99


def _to_naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class TransactionCreate(CamelModel):
    amount: float = Field(ge=0.01, le=MAX_AMOUNT, allow_inf_nan=False)
    type: TransactionType
    category: NonEmptyStr
    description: Optional[str] = None
    date: Optional[datetime] = None

    @field_validator("description")
    def strip_description(cls, v):
        return v.strip() if v is not None else v

    @field_validator("date")
    def normalize_date(cls, v):
        return _to_naive_utc(v)


class TransactionUpdate(CamelModel):
    amount: Optional[float] = Field(default=None, ge=0.01, le=MAX_AMOUNT, allow_inf_nan=False)
    type: Optional[TransactionType] = None
    category: Optional[NonEmptyStr] = None
    description: Optional[str] = None
    date: Optional[datetime] = None

    @field_validator("description")
    def strip_description(cls, v):
        return v.strip() if v is not None else v

    @field_validator("date")
    def normalize_date(cls, v):
        return _to_naive_utc(v)


class TransactionOut(CamelModel):
    id: UUID
    user_id: UUID
    amount: float
    type: TransactionType
    category: str
    description: str
    date: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TransactionEnvelope(CamelModel):
    message: Optional[str] = None
    transaction: TransactionOut


class TransactionList(CamelModel):
    transactions: List[TransactionOut]
    count: int


class Summary(CamelModel):
    period: str
    total_income: float
    total_expenses: float
    balance: float
    transaction_count: int
    avg_daily_spending: float
    savings_rate: float


class SummaryEnvelope(CamelModel):
    summary: Summary


class CategoryShare(CamelModel):
    name: str
    amount: float
    percentage: float


class CategoryBreakdown(CamelModel):
    type: TransactionType
    period: str
    categories: List[CategoryShare]
    total_amount: float


class BreakdownEnvelope(CamelModel):
    breakdown: CategoryBreakdown


class MonthlyTrend(CamelModel):
    month: str
    income: float
    expenses: float
    balance: float


class Trends(CamelModel):
    period: str
    data: List[MonthlyTrend]


class TrendsEnvelope(CamelModel):
    trends: Trends
