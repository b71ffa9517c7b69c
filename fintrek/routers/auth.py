"""Signup, login and token refresh endpoints."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from starlette.concurrency import run_in_threadpool
import structlog

from fintrek.core.database import get_db
from fintrek.core.dependencies import get_current_user
from fintrek.core.security import (
    REFRESH_TOKEN, TokenError, decode_token, generate_tokens, hash_password, verify_password
)
from fintrek.models.user import User, Profile
from fintrek.schemas.auth import (
    SignupRequest, LoginRequest, RefreshRequest, AuthResponse, TokensResponse
)
from fintrek.schemas.common import MessageResponse

logger = structlog.get_logger()
router = APIRouter()


def _auth_user(user: User) -> dict:
    return {
        "uid": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
    }


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register a new user and return a token pair."""
    existing = await db.scalar(select(User.id).where(User.email == payload.email))
    if existing:
        raise HTTPException(status_code=409, detail="Email already registered")

    hashed_password = await run_in_threadpool(hash_password, payload.password)
    user = User(
        email=payload.email,
        hashed_password=hashed_password,
        first_name=payload.first_name,
        last_name=payload.last_name
    )

    try:
        db.add(user)
        await db.flush()
        db.add(Profile(id=user.id, name=user.full_name, is_online=True))
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    except Exception as e:
        logger.error("Signup failed", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to create user")

    logger.info("User signed up", user_id=str(user.id))
    return {
        "message": "User created successfully",
        "user": _auth_user(user),
        "tokens": generate_tokens(str(user.id), user.email),
    }


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange email and password for a token pair."""
    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if not await run_in_threadpool(verify_password, payload.password, user.hashed_password):
        logger.info("Login rejected", user_id=str(user.id))
        raise HTTPException(status_code=401, detail="Invalid credentials")

    profile = await db.get(Profile, user.id)
    try:
        if profile is None:
            db.add(Profile(id=user.id, name=user.full_name, is_online=True))
        else:
            profile.is_online = True
        await db.commit()
    except Exception as e:
        logger.error("Failed to update presence", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Login failed")

    return {
        "message": "Login successful",
        "user": _auth_user(user),
        "tokens": generate_tokens(str(user.id), user.email),
    }


@router.post("/refresh", response_model=TokensResponse)
async def refresh(
    payload: RefreshRequest,
    db: AsyncSession = Depends(get_db)
):
    """Issue a new token pair from a valid refresh token."""
    try:
        claims = decode_token(payload.refresh_token, REFRESH_TOKEN)
        user = await db.get(User, uuid.UUID(claims["sub"]))
    except (TokenError, ValueError):
        raise HTTPException(status_code=403, detail="Invalid refresh token")

    if user is None:
        raise HTTPException(status_code=403, detail="Invalid refresh token")

    return {"tokens": generate_tokens(str(user.id), user.email)}


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark the caller offline."""
    profile = await db.get(Profile, current_user["user_id"])
    if profile is not None:
        profile.is_online = False
        try:
            await db.commit()
        except Exception as e:
            logger.error("Failed to update presence", error=str(e))
            await db.rollback()
            raise HTTPException(status_code=500, detail="Logout failed")

    return {"message": "Logged out successfully"}
