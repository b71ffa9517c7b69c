"""Transaction analytics endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from fintrek.analytics.analytics_engine import AnalyticsEngine
from fintrek.core.database import get_db
from fintrek.core.dependencies import get_current_user
from fintrek.models.finance import TransactionType
from fintrek.schemas.finance import SummaryEnvelope, BreakdownEnvelope, TrendsEnvelope

logger = structlog.get_logger()
router = APIRouter()


@router.get("/summary", response_model=SummaryEnvelope)
async def get_summary(
    period: int = Query(30, ge=1, le=3650, description="Window in days"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Income, expenses, balance and savings rate over a trailing window."""
    try:
        summary = await AnalyticsEngine(db).summary(current_user["user_id"], period)
    except Exception as e:
        logger.error("Summary analytics failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to fetch summary analytics")
    return {"summary": summary}


@router.get("/category", response_model=BreakdownEnvelope)
async def get_category_breakdown(
    type: TransactionType = Query(TransactionType.EXPENSE),
    period: int = Query(30, ge=1, le=3650, description="Window in days"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Per-category totals for income or expenses."""
    try:
        breakdown = await AnalyticsEngine(db).category_breakdown(current_user["user_id"], type, period)
    except Exception as e:
        logger.error("Category analytics failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to fetch category analytics")
    return {"breakdown": breakdown}


@router.get("/trends", response_model=TrendsEnvelope)
async def get_trends(
    months: int = Query(6, ge=1, le=120),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Monthly income and expense totals."""
    try:
        trends = await AnalyticsEngine(db).monthly_trends(current_user["user_id"], months)
    except Exception as e:
        logger.error("Trend analytics failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to fetch trend analytics")
    return {"trends": trends}
