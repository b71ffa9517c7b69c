"""Community discussion schemas."""

from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import StringConstraints

from fintrek.schemas.common import NonEmptyStr, ORMModel, ProfileBrief

TitleStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class DiscussionCreate(ORMModel):
    title: TitleStr
    content: NonEmptyStr
    category: NonEmptyStr = "General"


class ReplyCreate(ORMModel):
    content: NonEmptyStr


class DiscussionResponse(ORMModel):
    id: UUID
    user_id: UUID
    title: str
    content: str
    category: str
    author_name: str
    is_pinned: bool
    created_at: datetime
    updated_at: datetime
    profile: Optional[ProfileBrief] = None
    reply_count: int = 0
    like_count: int = 0
    liked_by_me: bool = False


class ReplyResponse(ORMModel):
    id: UUID
    discussion_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime
    profile: Optional[ProfileBrief] = None


class DiscussionDetail(DiscussionResponse):
    replies: List[ReplyResponse] = []


class LikeToggleResponse(ORMModel):
    liked: bool
    like_count: int


class CommunityStats(ORMModel):
    active_members: int
    total_discussions: int
    weekly_discussions: int
