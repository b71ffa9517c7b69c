"""Profile read, update and account deletion endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, select
import structlog

from fintrek.core.database import get_db
from fintrek.core.dependencies import get_cache, get_current_user
from fintrek.gamification.leaderboard import invalidate_leaderboard
from fintrek.models.community import Discussion, DiscussionLike, DiscussionReply
from fintrek.models.finance import Transaction
from fintrek.models.gamification import Points, UserAchievement, UserActivity
from fintrek.models.learning import Progress, QuizResult, UserModuleProgress
from fintrek.models.user import Profile, User
from fintrek.schemas.auth import ProfileEnvelope, ProfileUpdate
from fintrek.schemas.common import MessageResponse

logger = structlog.get_logger()
router = APIRouter()


async def _load_user(db: AsyncSession, user_id: UUID):
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    profile = await db.get(Profile, user_id)
    return user, profile


@router.get("", response_model=ProfileEnvelope)
async def get_profile(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's profile."""
    user, profile = await _load_user(db, current_user["user_id"])

    return {
        "profile": {
            "uid": user.id,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "name": profile.name if profile else user.full_name,
            "avatar_url": profile.avatar_url if profile else None,
            "created_at": user.created_at,
            "updated_at": user.updated_at,
        }
    }


@router.put("", response_model=MessageResponse)
async def update_profile(
    update: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update names and avatar; the display name follows the names."""
    user, profile = await _load_user(db, current_user["user_id"])
    update_data = update.model_dump(exclude_unset=True)

    if update_data.get("first_name"):
        user.first_name = update_data["first_name"]
    if update_data.get("last_name"):
        user.last_name = update_data["last_name"]
    user.updated_at = datetime.utcnow()

    if profile is None:
        profile = Profile(id=user.id)
        db.add(profile)
    profile.name = user.full_name
    if "avatar_url" in update_data:
        profile.avatar_url = update_data["avatar_url"] or None

    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to update profile", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to update profile")

    return {"message": "Profile updated successfully"}


@router.delete("", response_model=MessageResponse)
async def delete_account(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache=Depends(get_cache)
):
    """Delete the account and everything the user owns."""
    user_id = current_user["user_id"]
    await _load_user(db, user_id)

    own_discussions = select(Discussion.id).where(Discussion.user_id == user_id)

    try:
        await db.execute(delete(DiscussionLike).where(
            (DiscussionLike.user_id == user_id) | DiscussionLike.discussion_id.in_(own_discussions)
        ))
        await db.execute(delete(DiscussionReply).where(
            (DiscussionReply.user_id == user_id) | DiscussionReply.discussion_id.in_(own_discussions)
        ))
        await db.execute(delete(Discussion).where(Discussion.user_id == user_id))
        for model in (Transaction, Points, Progress, UserModuleProgress, QuizResult,
                      UserActivity, UserAchievement):
            await db.execute(delete(model).where(model.user_id == user_id))
        await db.execute(delete(Profile).where(Profile.id == user_id))
        await db.execute(delete(User).where(User.id == user_id))
        await db.commit()
    except Exception as e:
        logger.error("Failed to delete account", user_id=str(user_id), error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to delete account")

    await invalidate_leaderboard(cache)
    logger.info("Account deleted", user_id=str(user_id))
    return {"message": "Account deleted successfully"}
