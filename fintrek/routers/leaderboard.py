"""Leaderboard endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fintrek.core.config import settings
from fintrek.core.database import get_db
from fintrek.core.dependencies import get_cache, get_optional_user
from fintrek.gamification.leaderboard import LeaderboardService
from fintrek.schemas.gamification import LeaderboardResponse, StreakLeaderboardEntry

router = APIRouter()


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: int = Query(settings.LEADERBOARD_SIZE, ge=1, le=100),
    current_user: Optional[dict] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    cache=Depends(get_cache)
):
    """Top users by points, plus the caller's rank when authenticated."""
    service = LeaderboardService(db, cache)
    leaderboard = await service.top_by_points(limit)

    user_rank = None
    if current_user:
        user_rank = await service.user_rank(current_user["user_id"])

    return {"leaderboard": leaderboard, "user_rank": user_rank}


@router.get("/streaks", response_model=List[StreakLeaderboardEntry])
async def get_streak_leaderboard(
    limit: int = Query(settings.LEADERBOARD_SIZE, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    cache=Depends(get_cache)
):
    """Top users by active daily streak."""
    return await LeaderboardService(db, cache).top_by_streak(limit)
