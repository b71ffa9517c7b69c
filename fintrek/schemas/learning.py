"""Learning module and quiz schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fintrek.schemas.common import ORMModel
from fintrek.schemas.gamification import EarnedAchievement


class ModuleResponse(ORMModel):
    id: UUID
    title: str
    description: str
    icon: str
    color: str
    lessons: int
    difficulty: str
    estimated_time: str
    topics: List[str]
    order_index: int
    is_unlocked: bool
    completed_lessons: int = 0


class OverallProgress(ORMModel):
    overall_completion: int
    lessons_completed: int
    hours_studied: int


class LessonCompletionResponse(ORMModel):
    module_id: UUID
    lesson_number: int
    completed_lessons: int
    module_completed: bool
    already_completed: bool
    points_awarded: int
    total_points: int
    current_level: str
    next_level_progress: int
    earned_achievements: List[EarnedAchievement] = []


class QuestionResponse(ORMModel):
    id: UUID
    question: str
    options: List[str]
    order_index: int


class QuizResponse(ORMModel):
    id: UUID
    title: str
    description: str
    is_daily: bool
    module_id: Optional[UUID] = None
    points_per_question: int
    time_limit: int
    questions: List[QuestionResponse]


class QuizSubmission(ORMModel):
    answers: List[Optional[int]]


class QuestionGrade(ORMModel):
    question_id: UUID
    selected_answer: Optional[int] = None
    correct_answer: int
    is_correct: bool
    explanation: str


class QuizSubmissionResponse(ORMModel):
    result_id: UUID
    quiz_id: UUID
    score: int
    total_questions: int
    percentage: int
    perfect: bool
    points_earned: int
    total_points: int
    results: List[QuestionGrade]
    earned_achievements: List[EarnedAchievement] = []


class QuizResultResponse(ORMModel):
    id: UUID
    quiz_id: UUID
    score: int
    total_questions: int
    completed_at: datetime
