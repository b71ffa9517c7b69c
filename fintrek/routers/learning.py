"""Learning module and lesson progress endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from fintrek.core.database import get_db
from fintrek.core.dependencies import get_cache, get_current_user, get_optional_user
from fintrek.gamification.leaderboard import invalidate_leaderboard
from fintrek.learning.progress_tracker import LessonCompletionError, ProgressTracker
from fintrek.schemas.learning import ModuleResponse, OverallProgress, LessonCompletionResponse

logger = structlog.get_logger()
router = APIRouter()


@router.get("/modules", response_model=List[ModuleResponse])
async def list_modules(
    current_user: Optional[dict] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """List modules in order with the caller's completed lesson counts."""
    user_id = current_user["user_id"] if current_user else None
    return await ProgressTracker(db).modules_with_progress(user_id)


@router.get("/modules/{module_id}", response_model=ModuleResponse)
async def get_module(
    module_id: UUID,
    current_user: Optional[dict] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a single module."""
    user_id = current_user["user_id"] if current_user else None
    module = await ProgressTracker(db).get_module(module_id, user_id)
    if module is None:
        raise HTTPException(status_code=404, detail="Module not found")
    return module


@router.get("/progress", response_model=OverallProgress)
async def get_overall_progress(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Overall completion across every module."""
    return await ProgressTracker(db).overall_progress(current_user["user_id"])


@router.post(
    "/modules/{module_id}/lessons/{lesson_number}/complete",
    response_model=LessonCompletionResponse
)
async def complete_lesson(
    module_id: UUID,
    lesson_number: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache=Depends(get_cache)
):
    """Mark a lesson complete and award points."""
    tracker = ProgressTracker(db)

    try:
        result = await tracker.complete_lesson(current_user["user_id"], module_id, lesson_number)
    except LessonCompletionError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to record lesson completion", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to record lesson completion")

    await invalidate_leaderboard(cache)
    return result
