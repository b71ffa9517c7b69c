"""Dashboard and profile summary schemas."""

from typing import List, Optional

from fintrek.schemas.common import ORMModel
from fintrek.schemas.gamification import ActivityResponse, PointsResponse, ProgressResponse
from fintrek.schemas.learning import OverallProgress, QuizResultResponse


class DashboardResponse(ORMModel):
    points: PointsResponse
    progress: ProgressResponse
    overall_progress: OverallProgress
    recent_quiz_results: List[QuizResultResponse]
    recent_activity: List[ActivityResponse]


class ProfileSummary(ORMModel):
    name: str
    email: Optional[str] = None
    avatar: str
    join_date: str
    level: str
    next_level: Optional[str] = None
    level_progress: int
    total_points: int
    current_streak: int
    longest_streak: int
    completed_lessons: int
    total_lessons: int
    quizzes_taken: int
    quiz_accuracy: int
    time_spent: int
