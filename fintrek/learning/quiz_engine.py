"""Quiz lookup, grading and result recording."""

from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
import structlog

from fintrek.gamification.points_engine import PointsEngine
from fintrek.models.gamification import ActivityType
from fintrek.models.learning import Quiz, QuizQuestion, QuizResult

logger = structlog.get_logger()


class QuizSubmissionError(Exception):
    """The submitted answers do not fit the quiz."""


def grade_answers(
    questions: Sequence[QuizQuestion],
    answers: Sequence[Optional[int]]
) -> Tuple[int, List[Dict[str, Any]]]:
    """Grade answers positionally against questions.

    Missing, null and out-of-range answers count as wrong.
    """
    if len(answers) > len(questions):
        raise QuizSubmissionError(
            f"Received {len(answers)} answers for {len(questions)} questions"
        )

    score = 0
    results = []
    for idx, question in enumerate(questions):
        selected = answers[idx] if idx < len(answers) else None
        if selected is not None and not 0 <= selected < len(question.options):
            selected = None

        is_correct = selected is not None and selected == question.correct_answer
        if is_correct:
            score += 1

        results.append({
            "question_id": question.id,
            "selected_answer": selected,
            "correct_answer": question.correct_answer,
            "is_correct": is_correct,
            "explanation": question.explanation,
        })

    return score, results


def result_activity(score: int, total_questions: int) -> str:
    if score == total_questions:
        return "Perfect score on quiz"
    return f"Completed quiz with {score}/{total_questions} correct"


class QuizEngine:
    """Serves quizzes and records graded attempts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_quiz(self, quiz_id: Optional[UUID] = None) -> Optional[Quiz]:
        """Load a quiz with its ordered questions; the daily quiz when no id is given."""
        query = select(Quiz).options(selectinload(Quiz.questions))
        if quiz_id is None:
            query = query.where(Quiz.is_daily.is_(True)).order_by(Quiz.updated_at.desc())
        else:
            query = query.where(Quiz.id == quiz_id)

        result = await self.db.execute(query.limit(1))
        return result.scalars().first()

    async def submit(self, user_id: UUID, quiz: Quiz, answers: Sequence[Optional[int]]) -> Dict[str, Any]:
        """Grade answers, store the result and award points for correct answers.

        Changes are flushed but not committed.
        """
        questions = sorted(quiz.questions, key=lambda q: q.order_index)
        score, results = grade_answers(questions, answers)
        total_questions = len(questions)

        quiz_result = QuizResult(
            user_id=user_id,
            quiz_id=quiz.id,
            score=score,
            total_questions=total_questions
        )
        self.db.add(quiz_result)
        await self.db.flush()

        points_engine = PointsEngine(self.db)
        points_earned = score * quiz.points_per_question
        earned_achievements = []

        if points_earned > 0:
            award = await points_engine.award_points(
                user_id,
                points_earned,
                result_activity(score, total_questions),
                ActivityType.QUIZ.value
            )
            total_points = award["total_points"]
            earned_achievements = award["earned_achievements"]
        else:
            total_points = (await points_engine.get_or_create_points(user_id)).total_points

        logger.info(
            "Quiz submitted",
            user_id=str(user_id),
            quiz_id=str(quiz.id),
            score=score,
            total_questions=total_questions
        )

        return {
            "result_id": quiz_result.id,
            "quiz_id": quiz.id,
            "score": score,
            "total_questions": total_questions,
            "percentage": round(score / total_questions * 100) if total_questions else 0,
            "perfect": total_questions > 0 and score == total_questions,
            "points_earned": points_earned,
            "total_points": total_points,
            "results": results,
            "earned_achievements": earned_achievements,
        }

    async def results_for_user(self, user_id: UUID, limit: Optional[int] = None) -> List[QuizResult]:
        query = (
            select(QuizResult)
            .where(QuizResult.user_id == user_id)
            .order_by(QuizResult.completed_at.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())
