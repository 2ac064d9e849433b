"""
Wallet API Endpoints.

Record wallet transactions and read balances and history.
"""

from typing import List
from fastapi import APIRouter, Depends, status, Path
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.schemas.wallet import TransactionCreate, TransactionResponse, WalletBalanceResponse
from backend.app.services.wallet_ledger import WalletLedger

router = APIRouter(prefix="/transactions", tags=["Wallet - Transactions"])
users_router = APIRouter(prefix="/users", tags=["Wallet - Balances"])


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def record_transaction(
    transaction_data: TransactionCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Record a completed transaction.

    Deposits increase the user's wallet balance in the same database transaction.
    """
    transaction = await WalletLedger.record_transaction(
        db,
        user_id=transaction_data.user_id,
        amount=transaction_data.amount,
        type=transaction_data.type,
        method=transaction_data.method,
        description=transaction_data.description,
        reference=transaction_data.reference
    )
    return TransactionResponse.model_validate(transaction)


@router.get("/{user_id}", response_model=List[TransactionResponse])
async def list_transactions(
    user_id: int = Path(..., description="User ID"),
    db: AsyncSession = Depends(get_db)
):
    """List a user's transactions, newest first."""
    transactions = await WalletLedger.list_transactions(db, user_id)
    return [TransactionResponse.model_validate(t) for t in transactions]


@users_router.get("/{user_id}/wallet", response_model=WalletBalanceResponse)
async def get_wallet_balance(
    user_id: int = Path(..., description="User ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get a user's current wallet balance."""
    balance = await WalletLedger.get_balance(db, user_id)
    return WalletBalanceResponse(user_id=user_id, wallet_balance=balance)
