"""
Wallet Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from backend.app.models.enums import PaymentMethod
from backend.app.models.transaction_enums import TransactionType, TransactionStatus


class TransactionCreate(BaseModel):
    """Schema for recording a wallet transaction."""
    user_id: int = Field(..., ge=1)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    type: TransactionType
    method: Optional[PaymentMethod] = None
    description: Optional[str] = Field(None, max_length=500)
    reference: Optional[str] = Field(None, max_length=255)


class TransactionResponse(BaseModel):
    """Schema for transaction response."""
    id: int
    user_id: int
    amount: Decimal
    type: TransactionType
    method: Optional[PaymentMethod]
    status: TransactionStatus
    reference: Optional[str]
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class WalletBalanceResponse(BaseModel):
    """Schema for a wallet balance read."""
    user_id: int
    wallet_balance: Decimal
