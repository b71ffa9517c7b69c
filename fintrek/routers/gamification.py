"""Points, progress, achievement and activity endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import structlog

from fintrek.core.database import get_db
from fintrek.core.dependencies import get_current_user
from fintrek.gamification.achievement_engine import AchievementEngine
from fintrek.gamification.points_engine import PointsEngine
from fintrek.learning.progress_tracker import ProgressTracker
from fintrek.models.gamification import UserActivity
from fintrek.schemas.gamification import (
    PointsResponse, ProgressResponse, AchievementStatus, ActivityResponse
)

logger = structlog.get_logger()
router = APIRouter()


@router.get("/points", response_model=PointsResponse)
async def get_points(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's points; a broken streak reads as zero."""
    points = await PointsEngine(db).get_or_create_points(current_user["user_id"])
    PointsEngine.refresh_streak(points)

    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to fetch points", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to fetch points")

    return points


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's overall level progress."""
    progress = await ProgressTracker(db).get_or_create_progress(current_user["user_id"])

    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to fetch progress", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to fetch progress")

    return progress


@router.get("/achievements", response_model=List[AchievementStatus])
async def get_achievements(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await AchievementEngine(db).list_with_status(current_user["user_id"])


@router.get("/activity", response_model=List[ActivityResponse])
async def get_activity(
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Most recent activity first."""
    result = await db.execute(
        select(UserActivity)
        .where(UserActivity.user_id == current_user["user_id"])
        .order_by(UserActivity.created_at.desc())
        .limit(limit)
    )
    return result.scalars().all()
