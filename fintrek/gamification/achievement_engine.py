"""Achievement awarding and tracking engine."""

from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import structlog

from fintrek.models.gamification import Achievement, UserAchievement, UserActivity, ActivityType

logger = structlog.get_logger()


def meets_criteria(achievement: Achievement, stats: Dict[str, int]) -> bool:
    """Check whether every threshold set on an achievement is reached."""
    thresholds = [
        (achievement.points_required, stats.get("total_points", 0)),
        (achievement.lessons_required, stats.get("completed_lessons", 0)),
        (achievement.streak_required, stats.get("current_streak", 0)),
    ]
    active = [(required, actual) for required, actual in thresholds if required is not None]
    if not active:
        return False
    return all(actual >= required for required, actual in active)


class AchievementEngine:
    """Engine for checking and awarding achievements."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def check_and_award_achievements(
        self,
        user_id: UUID,
        stats: Dict[str, int]
    ) -> List[Achievement]:
        """Award every achievement the user now qualifies for and has not earned yet.

        The new rows are added to the session; committing is left to the caller.
        """
        earned_ids = set(
            (await self.db.execute(
                select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
            )).scalars().all()
        )

        result = await self.db.execute(select(Achievement).order_by(Achievement.created_at))
        newly_earned = []

        for achievement in result.scalars().all():
            if achievement.id in earned_ids or not meets_criteria(achievement, stats):
                continue

            self.db.add(UserAchievement(user_id=user_id, achievement_id=achievement.id))
            self.db.add(UserActivity(
                user_id=user_id,
                activity=f"Earned achievement: {achievement.title}",
                points=0,
                activity_type=ActivityType.ACHIEVEMENT.value
            ))
            newly_earned.append(achievement)

            logger.info(
                "Achievement awarded",
                user_id=str(user_id),
                achievement=achievement.title
            )

        if newly_earned:
            await self.db.flush()

        return newly_earned

    async def list_with_status(self, user_id: UUID) -> List[Dict[str, Any]]:
        """All achievements with the user's earned flag and timestamp."""
        achievements = (await self.db.execute(
            select(Achievement).order_by(Achievement.created_at, Achievement.title)
        )).scalars().all()

        earned = {
            row.achievement_id: row.earned_at
            for row in (await self.db.execute(
                select(UserAchievement).where(UserAchievement.user_id == user_id)
            )).scalars().all()
        }

        return [
            {
                "id": achievement.id,
                "title": achievement.title,
                "description": achievement.description,
                "type": achievement.type,
                "icon": achievement.icon,
                "points_required": achievement.points_required,
                "lessons_required": achievement.lessons_required,
                "streak_required": achievement.streak_required,
                "earned": achievement.id in earned,
                "earned_at": earned.get(achievement.id),
            }
            for achievement in achievements
        ]
