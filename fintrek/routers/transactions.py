"""Transaction CRUD endpoints."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_
import structlog

from fintrek.core.database import get_db
from fintrek.core.dependencies import get_current_user
from fintrek.models.finance import Transaction, TransactionType
from fintrek.schemas.common import MessageResponse
from fintrek.schemas.finance import (
    TransactionCreate, TransactionUpdate, TransactionEnvelope, TransactionList
)

logger = structlog.get_logger()
router = APIRouter()


async def _get_owned_transaction(db: AsyncSession, transaction_id: UUID, user_id: UUID) -> Transaction:
    transaction = await db.get(Transaction, transaction_id)
    if transaction is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    if transaction.user_id != user_id:
        raise HTTPException(status_code=403, detail="Unauthorized access")
    return transaction


@router.post("", response_model=TransactionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    payload: TransactionCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record an income or expense."""
    transaction = Transaction(
        user_id=current_user["user_id"],
        amount=round(payload.amount, 2),
        type=payload.type.value,
        category=payload.category,
        description=payload.description or "",
        date=payload.date or datetime.utcnow()
    )
    db.add(transaction)

    try:
        await db.commit()
        await db.refresh(transaction)
    except Exception as e:
        logger.error("Failed to add transaction", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to add transaction")

    logger.info("Transaction added", user_id=str(transaction.user_id), transaction_id=str(transaction.id))
    return {"message": "Transaction added successfully", "transaction": transaction}


@router.get("", response_model=TransactionList)
async def list_transactions(
    limit: int = Query(50, ge=1, le=200),
    start_after: Optional[UUID] = Query(None, alias="startAfter"),
    type: Optional[TransactionType] = Query(None),
    category: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List the caller's transactions, newest first, with cursor pagination."""
    user_id = current_user["user_id"]
    query = select(Transaction).where(Transaction.user_id == user_id)

    if type:
        query = query.where(Transaction.type == type.value)
    if category:
        query = query.where(Transaction.category == category)

    if start_after:
        cursor = await db.get(Transaction, start_after)
        if cursor is None or cursor.user_id != user_id:
            raise HTTPException(status_code=400, detail="Invalid pagination cursor")
        query = query.where(
            or_(
                Transaction.date < cursor.date,
                and_(Transaction.date == cursor.date, Transaction.id < cursor.id)
            )
        )

    query = query.order_by(Transaction.date.desc(), Transaction.id.desc()).limit(limit)
    result = await db.execute(query)
    transactions = result.scalars().all()

    return {"transactions": transactions, "count": len(transactions)}


@router.get("/{transaction_id}", response_model=TransactionEnvelope, response_model_exclude_none=True)
async def get_transaction(
    transaction_id: UUID,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get one of the caller's transactions."""
    transaction = await _get_owned_transaction(db, transaction_id, current_user["user_id"])
    return {"transaction": transaction}


@router.put("/{transaction_id}", response_model=MessageResponse)
async def update_transaction(
    transaction_id: UUID,
    update: TransactionUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Partially update one of the caller's transactions."""
    transaction = await _get_owned_transaction(db, transaction_id, current_user["user_id"])

    update_data = update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        if value is None and key != "description":
            continue
        if key == "amount":
            value = round(value, 2)
        elif key == "type":
            value = TransactionType(value).value
        elif key == "description":
            value = value or ""
        setattr(transaction, key, value)

    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to update transaction", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to update transaction")

    return {"message": "Transaction updated successfully"}


@router.delete("/{transaction_id}", response_model=MessageResponse)
async def delete_transaction(
    transaction_id: UUID,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete one of the caller's transactions."""
    transaction = await _get_owned_transaction(db, transaction_id, current_user["user_id"])

    try:
        await db.delete(transaction)
        await db.commit()
    except Exception as e:
        logger.error("Failed to delete transaction", error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to delete transaction")

    return {"message": "Transaction deleted successfully"}
