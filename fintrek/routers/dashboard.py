"""Dashboard and profile summary endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
import structlog

from fintrek.core.config import settings
from fintrek.core.database import get_db
from fintrek.core.dependencies import get_current_user
from fintrek.gamification.levels import level_for_lessons, next_level_name
from fintrek.gamification.points_engine import PointsEngine
from fintrek.learning.progress_tracker import ProgressTracker
from fintrek.learning.quiz_engine import QuizEngine
from fintrek.models.gamification import Points, UserActivity
from fintrek.models.learning import Progress, QuizResult
from fintrek.models.user import Profile, User
from fintrek.schemas.dashboard import DashboardResponse, ProfileSummary

logger = structlog.get_logger()
router = APIRouter()

RECENT_QUIZ_RESULTS = 5
RECENT_ACTIVITY = 10


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Everything the dashboard shows in one call."""
    user_id = current_user["user_id"]

    points = await PointsEngine(db).get_or_create_points(user_id)
    PointsEngine.refresh_streak(points)
    tracker = ProgressTracker(db)
    progress = await tracker.get_or_create_progress(user_id)
    overall = await tracker.overall_progress(user_id)
    quiz_results = await QuizEngine(db).results_for_user(user_id, RECENT_QUIZ_RESULTS)

    activity = (await db.execute(
        select(UserActivity)
        .where(UserActivity.user_id == user_id)
        .order_by(UserActivity.created_at.desc())
        .limit(RECENT_ACTIVITY)
    )).scalars().all()

    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to load dashboard", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to load dashboard")

    return {
        "points": points,
        "progress": progress,
        "overall_progress": overall,
        "recent_quiz_results": quiz_results,
        "recent_activity": activity,
    }


@router.get("/profile", response_model=ProfileSummary)
async def get_profile_summary(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Profile page summary: identity, level, points, streaks and quiz stats."""
    user_id = current_user["user_id"]
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="Profile not found")

    profile = await db.get(Profile, user_id)
    points = (await db.execute(select(Points).where(Points.user_id == user_id))).scalar_one_or_none()
    progress = (await db.execute(select(Progress).where(Progress.user_id == user_id))).scalar_one_or_none()

    quiz_stats = (await db.execute(
        select(
            func.count(QuizResult.id),
            func.coalesce(func.sum(QuizResult.score), 0),
            func.coalesce(func.sum(QuizResult.total_questions), 0)
        ).where(QuizResult.user_id == user_id)
    )).one()
    quizzes_taken, total_correct, total_questions = quiz_stats
    quiz_accuracy = round(total_correct / total_questions * 100) if total_questions else 0

    completed_lessons = progress.completed_lessons if progress else 0
    if progress:
        level = progress.current_level
        level_progress = progress.next_level_progress
    else:
        status = level_for_lessons(0)
        level, level_progress = status.current_level, status.next_level_progress

    email_name = user.email.split("@")[0] if user.email else None
    current_streak = 0
    if points:
        PointsEngine.refresh_streak(points)
        current_streak = points.current_streak

    return {
        "name": (profile.name if profile else None) or email_name or "User",
        "email": user.email,
        "avatar": (profile.avatar_url if profile else None) or "",
        "join_date": user.created_at.strftime("%B %Y"),
        "level": level,
        "next_level": next_level_name(level),
        "level_progress": level_progress,
        "total_points": points.total_points if points else 0,
        "current_streak": current_streak,
        "longest_streak": points.longest_streak if points else 0,
        "completed_lessons": completed_lessons,
        "total_lessons": progress.total_lessons if progress else settings.DEFAULT_TOTAL_LESSONS,
        "quizzes_taken": quizzes_taken,
        "quiz_accuracy": quiz_accuracy,
        "time_spent": round(completed_lessons * settings.HOURS_PER_LESSON),
    }
