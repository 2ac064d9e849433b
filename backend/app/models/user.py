"""
User database model.

Authentication lives outside this service; users are kept only as the
owners of parcels, audit events and wallet balances.
"""

from decimal import Decimal
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, Numeric, CheckConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import UserRole, Language


class User(Base):
    """
    User model.

    ``wallet_balance`` is mutated exclusively by the wallet ledger
    and never drops below zero.
    """
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("wallet_balance >= 0", name="ck_users_wallet_balance_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)

    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda obj: [e.value for e in obj]),
        default=UserRole.CUSTOMER,
        nullable=False
    )
    language = Column(
        Enum(Language, name="language", values_callable=lambda obj: [e.value for e in obj]),
        default=Language.EN,
        nullable=False
    )

    wallet_balance = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    avatar = Column(String(500), nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
