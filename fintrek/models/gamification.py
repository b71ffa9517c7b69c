"""Gamification models."""

from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Integer, DateTime, Date, ForeignKey, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import relationship
import uuid

from fintrek.core.database import Base


class AchievementTier(str, Enum):
    """Achievement tiers."""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    DIAMOND = "diamond"


class ActivityType(str, Enum):
    """Kinds of entries in the activity feed."""
    LESSON = "lesson"
    MODULE = "module"
    QUIZ = "quiz"
    STREAK = "streak"
    ACHIEVEMENT = "achievement"
    GENERAL = "general"


class Points(Base):
    """Points and daily streak tracking for users."""
    __tablename__ = "points"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, unique=True, index=True)
    total_points = Column(Integer, default=0, nullable=False)
    current_streak = Column(Integer, default=0, nullable=False)
    longest_streak = Column(Integer, default=0, nullable=False)
    last_activity_date = Column(Date)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_points_total", "total_points"),
    )


class Achievement(Base):
    """Achievement definitions.

    Null thresholds are ignored; an achievement with no thresholds at all
    is never awarded automatically.
    """
    __tablename__ = "achievements"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False, unique=True)
    description = Column(String, nullable=False)
    type = Column(String, default=AchievementTier.BRONZE.value, nullable=False)
    icon = Column(String, default="award", nullable=False)
    points_required = Column(Integer)
    lessons_required = Column(Integer)
    streak_required = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user_achievements = relationship("UserAchievement", back_populates="achievement")


class UserAchievement(Base):
    """Achievements earned by users."""
    __tablename__ = "user_achievements"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    achievement_id = Column(Uuid(as_uuid=True), ForeignKey("achievements.id", ondelete="CASCADE"), nullable=False)
    earned_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    achievement = relationship("Achievement", back_populates="user_achievements")

    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id"),
    )


class UserActivity(Base):
    """Activity feed entries."""
    __tablename__ = "user_activity"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    activity = Column(String, nullable=False)
    points = Column(Integer, default=0, nullable=False)
    activity_type = Column(String, default=ActivityType.GENERAL.value, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_user_activity_user_created", "user_id", "created_at"),
    )
