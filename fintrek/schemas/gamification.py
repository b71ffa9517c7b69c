"""Points, progress, achievement, activity and leaderboard schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fintrek.schemas.common import ORMModel, ProfileBrief


class PointsResponse(ORMModel):
    id: UUID
    user_id: UUID
    total_points: int
    current_streak: int
    longest_streak: int
    last_activity_date: Optional[date] = None


class ProgressResponse(ORMModel):
    id: UUID
    user_id: UUID
    completed_lessons: int
    total_lessons: int
    current_level: str
    next_level_progress: int


class EarnedAchievement(ORMModel):
    id: UUID
    title: str
    description: str
    type: str
    icon: str


class AchievementStatus(ORMModel):
    id: UUID
    title: str
    description: str
    type: str
    icon: str
    points_required: Optional[int] = None
    lessons_required: Optional[int] = None
    streak_required: Optional[int] = None
    earned: bool = False
    earned_at: Optional[datetime] = None


class ActivityResponse(ORMModel):
    id: UUID
    activity: str
    points: int
    activity_type: str
    created_at: datetime


class LeaderboardEntry(ORMModel):
    rank: int
    user_id: UUID
    total_points: int
    current_streak: int
    profile: ProfileBrief


class UserRank(ORMModel):
    rank: int
    total_points: int
    current_streak: int


class LeaderboardResponse(ORMModel):
    leaderboard: List[LeaderboardEntry]
    user_rank: Optional[UserRank] = None


class StreakLeaderboardEntry(ORMModel):
    rank: int
    user_id: UUID
    current_streak: int
    longest_streak: int
    profile: ProfileBrief
