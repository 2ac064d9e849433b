"""
Wallet Transaction database model.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum, CheckConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.transaction_enums import TransactionType, TransactionStatus
from backend.app.models.enums import PaymentMethod


class Transaction(Base):
    """
    Transaction model.

    A completed deposit corresponds to exactly one increment of the
    owner's wallet balance, written in the same database transaction.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Financials
    amount = Column(Numeric(10, 2), nullable=False)
    type = Column(
        Enum(TransactionType, name="transaction_type", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False
    )
    method = Column(
        Enum(PaymentMethod, name="payment_method", values_callable=lambda obj: [e.value for e in obj]),
        nullable=True
    )
    status = Column(
        Enum(TransactionStatus, name="transaction_status", values_callable=lambda obj: [e.value for e in obj]),
        default=TransactionStatus.COMPLETED,
        nullable=False
    )

    reference = Column(String(255), nullable=True)
    description = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<Transaction(id={self.id}, type='{self.type.value}', amount={self.amount})>"
