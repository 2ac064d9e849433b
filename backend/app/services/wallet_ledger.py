"""
Wallet Ledger Service (Domain Logic).

Owns transaction records and the wallet balance on User. A transaction
row and its balance change are committed together or not at all.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from backend.app.core.exceptions import ValidationError, NotFoundError, StorageError
from backend.app.models.user import User
from backend.app.models.transaction import Transaction
from backend.app.models.transaction_enums import TransactionType, TransactionStatus
from backend.app.models.notification import NotificationType
from backend.app.models.enums import PaymentMethod
from backend.app.services.notification_service import NotificationService
from backend.app.services.notification_dispatcher import notification_dispatcher

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# Numeric(10, 2): at most 99,999,999.99
MAX_AMOUNT_DIGITS = 8

# Types that move money into the wallet. Withdrawal/payment debits are not
# applied to the balance yet; they are recorded only.
CREDIT_TYPES = frozenset({TransactionType.DEPOSIT})


def parse_amount(amount: Any) -> Decimal:
    """
    Parse a monetary amount into a positive 2-place Decimal.

    Floats are converted through ``str`` so 10.1 stays 10.10.

    Raises:
        ValidationError: Not a number, not positive, too large, or more than 2 fraction digits
    """
    if isinstance(amount, bool) or amount is None:
        raise ValidationError("Amount is required", details={"amount": amount})

    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount must be a decimal number", details={"amount": str(amount)})

    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount must be positive", details={"amount": str(amount)})

    if value.adjusted() >= MAX_AMOUNT_DIGITS:
        raise ValidationError("Amount is too large", details={"amount": str(amount), "max": "99999999.99"})

    if value != value.quantize(CENT):
        raise ValidationError("Amount must have at most 2 decimal places", details={"amount": str(amount)})

    return value.quantize(CENT)


class WalletLedger:

    @staticmethod
    async def record_transaction(
        db: AsyncSession,
        user_id: int,
        amount: Any,
        type: Union[TransactionType, str],
        method: Optional[Union[PaymentMethod, str]] = None,
        description: Optional[str] = None,
        reference: Optional[str] = None
    ) -> Transaction:
        """
        Record a completed transaction.

        Flow:
        1. Validate amount / type / method
        2. Verify user exists
        3. Insert Transaction (COMPLETED)
        4. Deposits: atomic SQL increment of wallet_balance
        5. In-app notification, single commit

        Returns:
            Created Transaction

        Raises:
            ValidationError: Invalid amount, type or method
            NotFoundError: User does not exist
            StorageError: Persistence failure (neither row nor balance change kept)
        """
        value = parse_amount(amount)

        try:
            tx_type = TransactionType(type)
            tx_method = PaymentMethod(method) if method is not None else None
        except ValueError as exc:
            raise ValidationError(str(exc), details={"type": str(type), "method": str(method)})

        user = await db.get(User, user_id)
        if not user:
            raise NotFoundError("User", user_id)

        transaction = Transaction(
            user_id=user_id,
            amount=value,
            type=tx_type,
            method=tx_method,
            status=TransactionStatus.COMPLETED,
            reference=reference,
            description=description
        )

        try:
            db.add(transaction)
            await db.flush()

            if tx_type in CREDIT_TYPES:
                # Increment in SQL, never read-modify-write, so racing deposits don't lose updates
                await db.execute(
                    update(User)
                    .where(User.id == user_id)
                    .values(wallet_balance=User.wallet_balance + value)
                    .execution_options(synchronize_session=False)
                )

            await NotificationService.create_notification(
                db,
                user_id=user_id,
                title="Wallet transaction",
                body=f"{tx_type.value.capitalize()} of {value} completed",
                type=NotificationType.PAYMENT,
                reference_id=transaction.id
            )

            await db.commit()
            await db.refresh(transaction)
        except SQLAlchemyError as exc:
            await db.rollback()
            raise StorageError("record_transaction", exc)

        logger.info(
            "Wallet transaction recorded",
            extra={"transaction_id": transaction.id, "user_id": user_id, "type": tx_type.value, "amount": str(value)}
        )

        await notification_dispatcher.notify(user_id, {
            "type": "wallet_transaction",
            "transaction_id": transaction.id,
            "transaction_type": tx_type.value,
            "amount": str(value),
        })

        return transaction

    @staticmethod
    async def list_transactions(db: AsyncSession, user_id: int) -> List[Transaction]:
        """A user's transactions, newest first."""
        result = await db.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_balance(db: AsyncSession, user_id: int) -> Decimal:
        """
        Current wallet balance, read straight from the database.

        Raises:
            NotFoundError: User does not exist
        """
        result = await db.execute(select(User.wallet_balance).where(User.id == user_id))
        balance = result.scalar_one_or_none()
        if balance is None:
            raise NotFoundError("User", user_id)
        return Decimal(balance).quantize(CENT)
