"""Data models for the FinTrek API."""

from fintrek.models.user import User, Profile
from fintrek.models.finance import Transaction, TransactionType
from fintrek.models.learning import (
    LearningModule, UserModuleProgress, Progress, Quiz, QuizQuestion, QuizResult
)
from fintrek.models.gamification import (
    Points, Achievement, AchievementTier, UserAchievement, UserActivity, ActivityType
)
from fintrek.models.community import Discussion, DiscussionReply, DiscussionLike

__all__ = [
    "User",
    "Profile",
    "Transaction",
    "TransactionType",
    "LearningModule",
    "UserModuleProgress",
    "Progress",
    "Quiz",
    "QuizQuestion",
    "QuizResult",
    "Points",
    "Achievement",
    "AchievementTier",
    "UserAchievement",
    "UserActivity",
    "ActivityType",
    "Discussion",
    "DiscussionReply",
    "DiscussionLike"
]
