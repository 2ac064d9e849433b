"""
Wallet transaction enumerations.
"""

import enum


class TransactionType(str, enum.Enum):
    """Transaction type enumeration."""
    DEPOSIT = "deposit"  # Money entering the wallet
    WITHDRAWAL = "withdrawal"
    PAYMENT = "payment"
    REFUND = "refund"
    COMMISSION = "commission"


class TransactionStatus(str, enum.Enum):
    """Transaction status enumeration."""
    PENDING = "pending"
    COMPLETED = "completed"  # Settled synchronously by the wallet ledger
    FAILED = "failed"
