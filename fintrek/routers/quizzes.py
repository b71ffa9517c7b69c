"""Quiz endpoints."""

from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from fintrek.core.database import get_db
from fintrek.core.dependencies import get_cache, get_current_user, get_optional_user
from fintrek.gamification.leaderboard import invalidate_leaderboard
from fintrek.learning.quiz_engine import QuizEngine, QuizSubmissionError
from fintrek.models.learning import Quiz
from fintrek.schemas.learning import (
    QuizResponse, QuizSubmission, QuizSubmissionResponse, QuizResultResponse
)

logger = structlog.get_logger()
router = APIRouter()


async def _load_quiz(engine: QuizEngine, quiz_ref: str) -> Quiz:
    if quiz_ref == "daily":
        quiz = await engine.get_quiz()
    else:
        try:
            quiz_id = uuid.UUID(quiz_ref)
        except ValueError:
            raise HTTPException(status_code=404, detail="Quiz not found")
        quiz = await engine.get_quiz(quiz_id)

    if quiz is None:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.get("/results", response_model=List[QuizResultResponse])
async def get_quiz_results(
    limit: Optional[int] = Query(None, ge=1, le=500),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """The caller's quiz results, newest first."""
    return await QuizEngine(db).results_for_user(current_user["user_id"], limit)


@router.get("/daily", response_model=QuizResponse)
async def get_daily_quiz(
    current_user: Optional[dict] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Get today's daily quiz."""
    return await _load_quiz(QuizEngine(db), "daily")


@router.get("/{quiz_ref}", response_model=QuizResponse)
async def get_quiz(
    quiz_ref: str,
    current_user: Optional[dict] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a quiz by id ("daily" selects the daily quiz)."""
    return await _load_quiz(QuizEngine(db), quiz_ref)


@router.post("/{quiz_ref}/submit", response_model=QuizSubmissionResponse)
async def submit_quiz(
    quiz_ref: str,
    submission: QuizSubmission,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache=Depends(get_cache)
):
    """Grade answers, store the result and award points."""
    engine = QuizEngine(db)
    quiz = await _load_quiz(engine, quiz_ref)

    try:
        result = await engine.submit(current_user["user_id"], quiz, submission.answers)
    except QuizSubmissionError as e:
        await db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to submit quiz result", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to submit quiz result")

    await invalidate_leaderboard(cache)
    return result
