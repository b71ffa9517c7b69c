"""Community discussion endpoints."""

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from sqlalchemy.orm import selectinload
import structlog

from fintrek.core.config import settings
from fintrek.core.database import get_db
from fintrek.core.dependencies import get_current_user, get_optional_user
from fintrek.models.community import Discussion, DiscussionReply, DiscussionLike
from fintrek.models.user import Profile
from fintrek.schemas.common import MessageResponse
from fintrek.schemas.community import (
    DiscussionCreate, ReplyCreate, DiscussionResponse, DiscussionDetail,
    ReplyResponse, LikeToggleResponse, CommunityStats
)

logger = structlog.get_logger()
router = APIRouter()


def fallback_author_name(user_id: UUID) -> str:
    return f"User {str(user_id)[:8]}"


async def _profiles_for(db: AsyncSession, user_ids: Iterable[UUID]) -> Dict[UUID, Profile]:
    ids = set(user_ids)
    if not ids:
        return {}
    result = await db.execute(select(Profile).where(Profile.id.in_(ids)))
    return {profile.id: profile for profile in result.scalars().all()}


async def _counts(db: AsyncSession, model, discussion_ids: List[UUID]) -> Dict[UUID, int]:
    if not discussion_ids:
        return {}
    result = await db.execute(
        select(model.discussion_id, func.count(model.id))
        .where(model.discussion_id.in_(discussion_ids))
        .group_by(model.discussion_id)
    )
    return {discussion_id: count for discussion_id, count in result.all()}


def _profile_brief(profile: Optional[Profile]) -> Optional[Dict[str, Any]]:
    if profile is None:
        return None
    return {"name": profile.name, "avatar_url": profile.avatar_url}


def _discussion_payload(
    discussion: Discussion,
    profile: Optional[Profile],
    reply_count: int = 0,
    like_count: int = 0,
    liked_by_me: bool = False
) -> Dict[str, Any]:
    return {
        "id": discussion.id,
        "user_id": discussion.user_id,
        "title": discussion.title,
        "content": discussion.content,
        "category": discussion.category,
        "author_name": discussion.author_name,
        "is_pinned": discussion.is_pinned,
        "created_at": discussion.created_at,
        "updated_at": discussion.updated_at,
        "profile": _profile_brief(profile),
        "reply_count": reply_count,
        "like_count": like_count,
        "liked_by_me": liked_by_me,
    }


def _reply_payload(reply: DiscussionReply, profile: Optional[Profile]) -> Dict[str, Any]:
    return {
        "id": reply.id,
        "discussion_id": reply.discussion_id,
        "user_id": reply.user_id,
        "content": reply.content,
        "created_at": reply.created_at,
        "updated_at": reply.updated_at,
        "profile": _profile_brief(profile),
    }


async def _liked_ids(db: AsyncSession, user_id: Optional[UUID], discussion_ids: List[UUID]) -> set:
    if user_id is None or not discussion_ids:
        return set()
    result = await db.execute(
        select(DiscussionLike.discussion_id).where(
            DiscussionLike.user_id == user_id,
            DiscussionLike.discussion_id.in_(discussion_ids)
        )
    )
    return set(result.scalars().all())


async def _get_discussion(db: AsyncSession, discussion_id: UUID) -> Discussion:
    discussion = await db.get(Discussion, discussion_id)
    if discussion is None:
        raise HTTPException(status_code=404, detail="Discussion not found")
    return discussion


@router.get("/discussions", response_model=List[DiscussionResponse])
async def list_discussions(
    limit: int = Query(settings.DISCUSSIONS_PAGE_SIZE, ge=1, le=100),
    current_user: Optional[dict] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Pinned discussions first, then the most recently active."""
    result = await db.execute(
        select(Discussion)
        .order_by(Discussion.is_pinned.desc(), Discussion.updated_at.desc())
        .limit(limit)
    )
    discussions = result.scalars().all()
    ids = [discussion.id for discussion in discussions]

    profiles = await _profiles_for(db, (d.user_id for d in discussions))
    reply_counts = await _counts(db, DiscussionReply, ids)
    like_counts = await _counts(db, DiscussionLike, ids)
    liked = await _liked_ids(db, current_user["user_id"] if current_user else None, ids)

    # Backfill posts created before author names were stored
    backfilled = False
    for discussion in discussions:
        if not discussion.author_name:
            profile = profiles.get(discussion.user_id)
            discussion.author_name = (profile.name if profile else None) or fallback_author_name(discussion.user_id)
            backfilled = True

    payload = [
        _discussion_payload(
            discussion,
            profiles.get(discussion.user_id),
            reply_counts.get(discussion.id, 0),
            like_counts.get(discussion.id, 0),
            discussion.id in liked
        )
        for discussion in discussions
    ]

    if backfilled:
        try:
            await db.commit()
        except Exception as e:
            logger.warning("Failed to backfill author names", error=str(e))
            await db.rollback()

    return payload


@router.post("/discussions", response_model=DiscussionResponse, status_code=status.HTTP_201_CREATED)
async def create_discussion(
    payload: DiscussionCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Start a discussion."""
    user_id = current_user["user_id"]
    profile = await db.get(Profile, user_id)
    author_name = (
        (profile.name if profile else None)
        or current_user.get("email")
        or fallback_author_name(user_id)
    )

    now = datetime.utcnow()
    discussion = Discussion(
        user_id=user_id,
        title=payload.title,
        content=payload.content,
        category=payload.category,
        author_name=author_name,
        is_pinned=False,
        created_at=now,
        updated_at=now
    )
    db.add(discussion)

    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to create discussion", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to create discussion")

    logger.info("Discussion created", discussion_id=str(discussion.id), user_id=str(user_id))
    return _discussion_payload(discussion, profile)


@router.get("/discussions/{discussion_id}", response_model=DiscussionDetail)
async def get_discussion(
    discussion_id: UUID,
    current_user: Optional[dict] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """A discussion with its replies, oldest first."""
    result = await db.execute(
        select(Discussion)
        .options(selectinload(Discussion.replies))
        .where(Discussion.id == discussion_id)
    )
    discussion = result.scalar_one_or_none()
    if discussion is None:
        raise HTTPException(status_code=404, detail="Discussion not found")

    replies = sorted(discussion.replies, key=lambda r: r.created_at)
    profiles = await _profiles_for(db, [discussion.user_id] + [r.user_id for r in replies])
    like_counts = await _counts(db, DiscussionLike, [discussion.id])
    liked = await _liked_ids(db, current_user["user_id"] if current_user else None, [discussion.id])

    payload = _discussion_payload(
        discussion,
        profiles.get(discussion.user_id),
        len(replies),
        like_counts.get(discussion.id, 0),
        discussion.id in liked
    )
    payload["replies"] = [_reply_payload(reply, profiles.get(reply.user_id)) for reply in replies]
    return payload


@router.delete("/discussions/{discussion_id}", response_model=MessageResponse)
async def delete_discussion(
    discussion_id: UUID,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a discussion; only its author may."""
    discussion = await _get_discussion(db, discussion_id)
    if discussion.user_id != current_user["user_id"]:
        raise HTTPException(status_code=403, detail="Only the author can delete this discussion")

    try:
        await db.execute(delete(DiscussionLike).where(DiscussionLike.discussion_id == discussion_id))
        await db.execute(delete(DiscussionReply).where(DiscussionReply.discussion_id == discussion_id))
        await db.execute(delete(Discussion).where(Discussion.id == discussion_id))
        await db.commit()
    except Exception as e:
        logger.error("Failed to delete discussion", discussion_id=str(discussion_id), error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to delete discussion")

    logger.info("Discussion deleted", discussion_id=str(discussion_id))
    return {"message": "Discussion deleted successfully"}


@router.post(
    "/discussions/{discussion_id}/replies",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_reply(
    discussion_id: UUID,
    payload: ReplyCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Reply to a discussion and bump it to the top of the feed."""
    discussion = await _get_discussion(db, discussion_id)
    user_id = current_user["user_id"]

    now = datetime.utcnow()
    reply = DiscussionReply(
        discussion_id=discussion.id,
        user_id=user_id,
        content=payload.content,
        created_at=now,
        updated_at=now
    )
    db.add(reply)
    discussion.updated_at = now

    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to add reply", discussion_id=str(discussion_id), error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to add reply")

    profile = await db.get(Profile, user_id)
    return _reply_payload(reply, profile)


@router.post("/discussions/{discussion_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    discussion_id: UUID,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Like a discussion, or remove the caller's like."""
    await _get_discussion(db, discussion_id)
    user_id = current_user["user_id"]

    existing = await db.scalar(
        select(DiscussionLike.id).where(
            DiscussionLike.discussion_id == discussion_id,
            DiscussionLike.user_id == user_id
        )
    )

    try:
        if existing:
            await db.execute(delete(DiscussionLike).where(DiscussionLike.id == existing))
            liked = False
        else:
            db.add(DiscussionLike(discussion_id=discussion_id, user_id=user_id))
            liked = True
        await db.flush()

        like_count = await db.scalar(
            select(func.count(DiscussionLike.id)).where(DiscussionLike.discussion_id == discussion_id)
        )
        await db.commit()
    except Exception as e:
        logger.error("Failed to toggle like", discussion_id=str(discussion_id), error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to toggle like")

    return {"liked": liked, "like_count": like_count or 0}


@router.get("/stats", response_model=CommunityStats)
async def get_community_stats(db: AsyncSession = Depends(get_db)):
    """Member and discussion counts."""
    week_ago = datetime.utcnow() - timedelta(days=7)

    active_members = await db.scalar(
        select(func.count(Profile.id)).where(Profile.is_online.is_(True))
    )
    total_discussions = await db.scalar(select(func.count(Discussion.id)))
    weekly_discussions = await db.scalar(
        select(func.count(Discussion.id)).where(Discussion.created_at >= week_ago)
    )

    return {
        "active_members": active_members or 0,
        "total_discussions": total_discussions or 0,
        "weekly_discussions": weekly_discussions or 0,
    }
