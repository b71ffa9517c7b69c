"""Points, streak and activity engine."""

from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import structlog

from fintrek.core.config import settings
from fintrek.gamification.achievement_engine import AchievementEngine
from fintrek.models.gamification import Points, UserActivity, ActivityType
from fintrek.models.learning import Progress

logger = structlog.get_logger()


def utc_today() -> date:
    return datetime.utcnow().date()


class PointsEngine:
    """Engine for awarding points and keeping daily streaks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_or_create_points(self, user_id: UUID) -> Points:
        """Get or create the points row for a user."""
        result = await self.db.execute(
            select(Points).where(Points.user_id == user_id)
        )
        points = result.scalar_one_or_none()

        if not points:
            points = Points(user_id=user_id, total_points=0, current_streak=0, longest_streak=0)
            self.db.add(points)
            await self.db.flush()

        return points

    @staticmethod
    def refresh_streak(points: Points, today: Optional[date] = None) -> bool:
        """Zero a streak whose last activity is older than yesterday. Returns True if changed."""
        today = today or utc_today()
        if (
            points.current_streak
            and points.last_activity_date is not None
            and points.last_activity_date < today - timedelta(days=1)
        ):
            points.current_streak = 0
            return True
        return False

    @staticmethod
    def advance_streak(points: Points, today: Optional[date] = None) -> bool:
        """Record activity for today. Returns True when an existing streak continued."""
        today = today or utc_today()

        if points.last_activity_date == today:
            return False

        continued = points.last_activity_date == today - timedelta(days=1) and points.current_streak > 0
        if continued:
            points.current_streak += 1
        else:
            points.current_streak = 1

        if points.current_streak > points.longest_streak:
            points.longest_streak = points.current_streak
        points.last_activity_date = today
        return continued

    async def award_points(
        self,
        user_id: UUID,
        points: int,
        activity: str,
        activity_type: str = ActivityType.GENERAL.value,
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """Award points, advance the streak, log the activity and check achievements.

        Changes are flushed but not committed. The caller clears the leaderboard
        cache once the commit succeeds.
        """
        user_points = await self.get_or_create_points(user_id)

        streak_continued = self.advance_streak(user_points, today)
        user_points.total_points += points
        self.db.add(UserActivity(
            user_id=user_id,
            activity=activity,
            points=points,
            activity_type=activity_type
        ))

        streak_bonus = 0
        if streak_continued and settings.POINTS_DAILY_STREAK > 0:
            streak_bonus = settings.POINTS_DAILY_STREAK
            user_points.total_points += streak_bonus
            self.db.add(UserActivity(
                user_id=user_id,
                activity=f"{user_points.current_streak}-day learning streak",
                points=streak_bonus,
                activity_type=ActivityType.STREAK.value
            ))

        await self.db.flush()

        earned = await self.check_achievements(user_id, user_points)

        logger.info(
            "Points awarded",
            user_id=str(user_id),
            points=points,
            streak_bonus=streak_bonus,
            total_points=user_points.total_points,
            reason=activity_type
        )

        return {
            "points_awarded": points + streak_bonus,
            "streak_bonus": streak_bonus,
            "total_points": user_points.total_points,
            "current_streak": user_points.current_streak,
            "earned_achievements": earned,
        }

    async def check_achievements(self, user_id: UUID, user_points: Optional[Points] = None):
        """Award achievements unlocked by the user's current totals."""
        if user_points is None:
            user_points = await self.get_or_create_points(user_id)

        completed_lessons = await self.db.scalar(
            select(Progress.completed_lessons).where(Progress.user_id == user_id)
        )
        stats = {
            "total_points": user_points.total_points,
            "completed_lessons": completed_lessons or 0,
            "current_streak": user_points.current_streak,
        }
        return await AchievementEngine(self.db).check_and_award_achievements(user_id, stats)
