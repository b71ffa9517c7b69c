"""Module, lesson and overall learning progress tracking."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
import structlog

from fintrek.core.config import settings
from fintrek.gamification.levels import level_for_lessons
from fintrek.gamification.points_engine import PointsEngine
from fintrek.models.gamification import ActivityType
from fintrek.models.learning import LearningModule, UserModuleProgress, Progress

logger = structlog.get_logger()


class LessonCompletionError(Exception):
    """A lesson cannot be completed; carries the HTTP status to report."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def module_payload(module: LearningModule, completed_lessons: int = 0) -> Dict[str, Any]:
    return {
        "id": module.id,
        "title": module.title,
        "description": module.description,
        "icon": module.icon,
        "color": module.color,
        "lessons": module.lessons,
        "difficulty": module.difficulty,
        "estimated_time": module.estimated_time,
        "topics": module.topics or [],
        "order_index": module.order_index,
        "is_unlocked": module.is_unlocked,
        "completed_lessons": completed_lessons,
    }


class ProgressTracker:
    """Tracks lesson completion per module and the user's overall level."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def total_lessons(self) -> int:
        total = await self.db.scalar(select(func.coalesce(func.sum(LearningModule.lessons), 0)))
        return int(total or 0)

    async def get_or_create_progress(self, user_id: UUID) -> Progress:
        """Get or create the overall progress row for a user."""
        result = await self.db.execute(
            select(Progress).where(Progress.user_id == user_id)
        )
        progress = result.scalar_one_or_none()

        if not progress:
            level = level_for_lessons(0)
            progress = Progress(
                user_id=user_id,
                completed_lessons=0,
                total_lessons=await self.total_lessons() or settings.DEFAULT_TOTAL_LESSONS,
                current_level=level.current_level,
                next_level_progress=level.next_level_progress
            )
            self.db.add(progress)
            await self.db.flush()

        return progress

    async def _module_progress_map(self, user_id: UUID) -> Dict[UUID, int]:
        result = await self.db.execute(
            select(UserModuleProgress.module_id, UserModuleProgress.completed_lessons)
            .where(UserModuleProgress.user_id == user_id)
        )
        return {row.module_id: row.completed_lessons for row in result}

    async def modules_with_progress(self, user_id: Optional[UUID] = None) -> List[Dict[str, Any]]:
        """All modules in display order with the caller's completed lesson counts."""
        result = await self.db.execute(
            select(LearningModule).order_by(LearningModule.order_index, LearningModule.title)
        )
        modules = result.scalars().all()

        progress_map = await self._module_progress_map(user_id) if user_id else {}
        return [module_payload(module, progress_map.get(module.id, 0)) for module in modules]

    async def get_module(self, module_id: UUID, user_id: Optional[UUID] = None) -> Optional[Dict[str, Any]]:
        module = await self.db.get(LearningModule, module_id)
        if module is None:
            return None

        completed = 0
        if user_id:
            completed = await self.db.scalar(
                select(UserModuleProgress.completed_lessons).where(
                    UserModuleProgress.user_id == user_id,
                    UserModuleProgress.module_id == module_id
                )
            ) or 0
        return module_payload(module, completed)

    async def overall_progress(self, user_id: UUID) -> Dict[str, int]:
        """Completion percentage, lessons completed and estimated hours studied."""
        total_lessons = await self.total_lessons()
        completed = await self.db.scalar(
            select(func.coalesce(func.sum(UserModuleProgress.completed_lessons), 0))
            .where(UserModuleProgress.user_id == user_id)
        ) or 0

        overall = round(completed / total_lessons * 100) if total_lessons > 0 else 0
        return {
            "overall_completion": overall,
            "lessons_completed": completed,
            "hours_studied": round(completed * settings.HOURS_PER_LESSON),
        }

    async def complete_lesson(self, user_id: UUID, module_id: UUID, lesson_number: int) -> Dict[str, Any]:
        """Mark a lesson complete; lessons must be completed in order.

        Completing an already completed lesson changes nothing and awards no points.
        Changes are flushed but not committed.
        """
        module = await self.db.get(LearningModule, module_id)
        if module is None:
            raise LessonCompletionError(404, "Module not found")
        if lesson_number < 1 or lesson_number > module.lessons:
            raise LessonCompletionError(400, f"Lesson number must be between 1 and {module.lessons}")
        if not module.is_unlocked:
            raise LessonCompletionError(403, "Module is locked")

        result = await self.db.execute(
            select(UserModuleProgress).where(
                UserModuleProgress.user_id == user_id,
                UserModuleProgress.module_id == module_id
            )
        )
        module_progress = result.scalar_one_or_none()
        if module_progress is None:
            module_progress = UserModuleProgress(user_id=user_id, module_id=module_id, completed_lessons=0)
            self.db.add(module_progress)

        progress = await self.get_or_create_progress(user_id)
        points_engine = PointsEngine(self.db)

        if lesson_number <= module_progress.completed_lessons:
            user_points = await points_engine.get_or_create_points(user_id)
            return self._completion_payload(
                module, lesson_number, module_progress, progress,
                already_completed=True, points_awarded=0,
                total_points=user_points.total_points, earned=[]
            )

        if lesson_number > module_progress.completed_lessons + 1:
            raise LessonCompletionError(409, "Complete previous lessons first")

        module_progress.completed_lessons = lesson_number
        module_completed = module_progress.completed_lessons >= module.lessons

        progress.completed_lessons += 1
        progress.total_lessons = await self.total_lessons() or progress.total_lessons
        level = level_for_lessons(progress.completed_lessons)
        progress.current_level = level.current_level
        progress.next_level_progress = level.next_level_progress
        await self.db.flush()

        award = await points_engine.award_points(
            user_id,
            settings.POINTS_LESSON_COMPLETED,
            f"Completed lesson {lesson_number} of {module.title}",
            ActivityType.LESSON.value
        )
        points_awarded = award["points_awarded"]
        earned = list(award["earned_achievements"])

        if module_completed and settings.POINTS_MODULE_COMPLETED > 0:
            bonus = await points_engine.award_points(
                user_id,
                settings.POINTS_MODULE_COMPLETED,
                f"Completed module {module.title}",
                ActivityType.MODULE.value
            )
            points_awarded += bonus["points_awarded"]
            earned.extend(bonus["earned_achievements"])
            award = bonus

        logger.info(
            "Lesson completed",
            user_id=str(user_id),
            module_id=str(module_id),
            lesson_number=lesson_number,
            module_completed=module_completed
        )

        return self._completion_payload(
            module, lesson_number, module_progress, progress,
            already_completed=False, points_awarded=points_awarded,
            total_points=award["total_points"], earned=earned
        )

    @staticmethod
    def _completion_payload(module, lesson_number, module_progress, progress,
                            already_completed, points_awarded, total_points, earned):
        return {
            "module_id": module.id,
            "lesson_number": lesson_number,
            "completed_lessons": module_progress.completed_lessons,
            "module_completed": module_progress.completed_lessons >= module.lessons,
            "already_completed": already_completed,
            "points_awarded": points_awarded,
            "total_points": total_points,
            "current_level": progress.current_level,
            "next_level_progress": progress.next_level_progress,
            "earned_achievements": earned,
        }
