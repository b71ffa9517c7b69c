"""Leaderboard queries with a short-lived cache."""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from aiocache import Cache
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
import structlog

from fintrek.core.config import settings
from fintrek.models.gamification import Points
from fintrek.models.user import Profile

logger = structlog.get_logger()

LEADERBOARD_NAMESPACE = "leaderboard:"


async def invalidate_leaderboard(cache: Optional[Cache]):
    """Drop every cached leaderboard page."""
    if cache is None:
        return
    await cache.clear(namespace=LEADERBOARD_NAMESPACE)


def live_streak(points: Points, today: Optional[date] = None) -> int:
    """Current streak, or 0 when the last activity is older than yesterday."""
    today = today or datetime.utcnow().date()
    if points.last_activity_date is None or points.last_activity_date < today - timedelta(days=1):
        return 0
    return points.current_streak


def competition_ranks(values: List[int]) -> List[int]:
    """Rank a descending list so ties share a rank ("1, 1, 3")."""
    ranks = []
    for idx, value in enumerate(values):
        if idx > 0 and value == values[idx - 1]:
            ranks.append(ranks[-1])
        else:
            ranks.append(idx + 1)
    return ranks


class LeaderboardService:
    """Ranks users by points or streak."""

    def __init__(self, db: AsyncSession, cache: Optional[Cache] = None):
        self.db = db
        self.cache = cache

    async def _cached(self, key: str, loader):
        if self.cache is not None:
            cached = await self.cache.get(key, namespace=LEADERBOARD_NAMESPACE)
            if cached is not None:
                return cached

        value = await loader()

        if self.cache is not None and settings.LEADERBOARD_CACHE_TTL > 0:
            await self.cache.set(key, value, ttl=settings.LEADERBOARD_CACHE_TTL, namespace=LEADERBOARD_NAMESPACE)
        return value

    async def top_by_points(self, limit: int) -> List[Dict[str, Any]]:
        """Top users by total points."""
        return await self._cached(f"points:{limit}", lambda: self._load_points(limit))

    async def _load_points(self, limit: int) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(Points, Profile)
            .join(Profile, Profile.id == Points.user_id)
            .order_by(Points.total_points.desc(), Points.created_at.asc(), Points.id)
            .limit(limit)
        )
        rows = result.all()
        ranks = competition_ranks([points.total_points for points, _ in rows])

        return [
            {
                "rank": rank,
                "user_id": str(points.user_id),
                "total_points": points.total_points,
                "current_streak": live_streak(points),
                "profile": {"name": profile.name, "avatar_url": profile.avatar_url},
            }
            for rank, (points, profile) in zip(ranks, rows)
        ]

    async def user_rank(self, user_id: UUID) -> Optional[Dict[str, int]]:
        """Rank of one user: one more than the number of users with strictly more points."""
        result = await self.db.execute(
            select(Points).where(Points.user_id == user_id)
        )
        user_points = result.scalar_one_or_none()
        if user_points is None:
            return None

        ahead = await self.db.scalar(
            select(func.count(Points.id)).where(Points.total_points > user_points.total_points)
        )
        return {
            "rank": (ahead or 0) + 1,
            "total_points": user_points.total_points,
            "current_streak": live_streak(user_points),
        }

    async def top_by_streak(self, limit: int) -> List[Dict[str, Any]]:
        """Top users by active daily streak."""
        return await self._cached(f"streaks:{limit}", lambda: self._load_streaks(limit))

    async def _load_streaks(self, limit: int) -> List[Dict[str, Any]]:
        # Streaks whose last activity is older than yesterday are broken
        yesterday = datetime.utcnow().date() - timedelta(days=1)
        result = await self.db.execute(
            select(Points, Profile)
            .join(Profile, Profile.id == Points.user_id)
            .where(Points.current_streak > 0, Points.last_activity_date >= yesterday)
            .order_by(Points.current_streak.desc(), Points.longest_streak.desc(), Points.id)
            .limit(limit)
        )
        rows = result.all()
        ranks = competition_ranks([points.current_streak for points, _ in rows])

        return [
            {
                "rank": rank,
                "user_id": str(points.user_id),
                "current_streak": points.current_streak,
                "longest_streak": points.longest_streak,
                "profile": {"name": profile.name, "avatar_url": profile.avatar_url},
            }
            for rank, (points, profile) in zip(ranks, rows)
        ]
