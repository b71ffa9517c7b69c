"""Community discussion models."""

from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import relationship
import uuid

from fintrek.core.database import Base


class Discussion(Base):
    """A community discussion thread."""
    __tablename__ = "discussions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    title = Column(String, nullable=False)
    content = Column(String, nullable=False)
    category = Column(String, default="General", nullable=False)
    author_name = Column(String, default="", nullable=False)
    is_pinned = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    replies = relationship(
        "DiscussionReply",
        back_populates="discussion",
        order_by="DiscussionReply.created_at",
        cascade="all, delete-orphan",
    )
    likes = relationship("DiscussionLike", back_populates="discussion", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_discussions_pinned_updated", "is_pinned", "updated_at"),
    )


class DiscussionReply(Base):
    """A reply within a discussion."""
    __tablename__ = "discussion_replies"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    discussion_id = Column(Uuid(as_uuid=True), ForeignKey("discussions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    content = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    discussion = relationship("Discussion", back_populates="replies")


class DiscussionLike(Base):
    """One user's like on a discussion."""
    __tablename__ = "discussion_likes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    discussion_id = Column(Uuid(as_uuid=True), ForeignKey("discussions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    discussion = relationship("Discussion", back_populates="likes")

    __table_args__ = (
        UniqueConstraint("discussion_id", "user_id"),
    )
