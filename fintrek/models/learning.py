"""Learning content and progress models."""

from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, DateTime, Boolean, ForeignKey, UniqueConstraint, Index, JSON, Uuid
)
from sqlalchemy.orm import relationship
import uuid

from fintrek.core.database import Base


class LearningModule(Base):
    """A course made of a fixed number of lessons."""
    __tablename__ = "learning_modules"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    description = Column(String, nullable=False)
    icon = Column(String, default="book", nullable=False)
    color = Column(String, default="bg-gradient-primary", nullable=False)
    lessons = Column(Integer, default=0, nullable=False)
    difficulty = Column(String, default="Beginner", nullable=False)
    estimated_time = Column(String, default="1 hour", nullable=False)
    topics = Column(JSON, default=list, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)
    is_unlocked = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    quizzes = relationship("Quiz", back_populates="module")


class UserModuleProgress(Base):
    """Lessons a user has completed within one module."""
    __tablename__ = "user_module_progress"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    module_id = Column(Uuid(as_uuid=True), ForeignKey("learning_modules.id", ondelete="CASCADE"), nullable=False)
    completed_lessons = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "module_id"),
    )


class Progress(Base):
    """Overall learning progress and level for a user."""
    __tablename__ = "progress"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, unique=True, index=True)
    completed_lessons = Column(Integer, default=0, nullable=False)
    total_lessons = Column(Integer, default=45, nullable=False)
    current_level = Column(String, default="Beginner Trader", nullable=False)
    next_level_progress = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Quiz(Base):
    """A quiz, optionally attached to a module; one quiz is flagged daily."""
    __tablename__ = "quizzes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    description = Column(String, nullable=False)
    is_daily = Column(Boolean, default=False, nullable=False)
    module_id = Column(Uuid(as_uuid=True), ForeignKey("learning_modules.id", ondelete="SET NULL"))
    points_per_question = Column(Integer, default=50, nullable=False)
    time_limit = Column(Integer, default=300, nullable=False)  # seconds
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    module = relationship("LearningModule", back_populates="quizzes")
    questions = relationship(
        "QuizQuestion",
        back_populates="quiz",
        order_by="QuizQuestion.order_index",
        cascade="all, delete-orphan",
    )


class QuizQuestion(Base):
    """Multiple-choice question; correct_answer indexes into options."""
    __tablename__ = "quiz_questions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quiz_id = Column(Uuid(as_uuid=True), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)
    question = Column(String, nullable=False)
    options = Column(JSON, nullable=False)
    correct_answer = Column(Integer, nullable=False)
    explanation = Column(String, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    quiz = relationship("Quiz", back_populates="questions")

    __table_args__ = (
        Index("ix_quiz_questions_quiz_order", "quiz_id", "order_index"),
    )


class QuizResult(Base):
    """A graded quiz attempt."""
    __tablename__ = "quiz_results"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    quiz_id = Column(Uuid(as_uuid=True), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)
    score = Column(Integer, nullable=False)
    total_questions = Column(Integer, nullable=False)
    completed_at = Column(DateTime, default=datetime.utcnow)
