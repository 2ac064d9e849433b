"""
Wallet ledger tests.

Balance changes and transaction rows must land together, and concurrent
deposits must not lose updates.
"""

import asyncio
import pytest
from decimal import Decimal
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError

from backend.app.core.exceptions import ValidationError, NotFoundError, StorageError
from backend.app.models.transaction import Transaction
from backend.app.models.transaction_enums import TransactionType, TransactionStatus
from backend.app.models.enums import PaymentMethod
from backend.app.services.notification_service import NotificationService
from backend.app.services.wallet_ledger import WalletLedger, parse_amount

from conftest import create_user


async def transaction_count(db) -> int:
    result = await db.execute(select(func.count()).select_from(Transaction))
    return result.scalar()


@pytest.mark.parametrize("raw,expected", [
    ("50", Decimal("50.00")),
    ("50.5", Decimal("50.50")),
    ("99999999.99", Decimal("99999999.99")),
    (10.1, Decimal("10.10")),
    (7, Decimal("7.00")),
    (Decimal("0.01"), Decimal("0.01")),
])
def test_parse_amount_accepts(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", [
    None, True, "abc", "", 0, "-5", "1.005", "NaN", "Infinity", "1E+30", "1e1000", "100000000.00",
])
def test_parse_amount_rejects(raw):
    with pytest.raises(ValidationError):
        parse_amount(raw)


@pytest.mark.asyncio
async def test_deposit_increases_balance(db_session, make_user):
    user = await make_user("wallet@test.com", wallet_balance=Decimal("100.00"))

    transaction = await WalletLedger.record_transaction(
        db_session, user.id, "50.00", "deposit", method="telebirr", reference="TB-123"
    )

    assert transaction.status == TransactionStatus.COMPLETED
    assert transaction.type == TransactionType.DEPOSIT
    assert transaction.method == PaymentMethod.TELEBIRR
    assert transaction.amount == Decimal("50.00")
    assert await WalletLedger.get_balance(db_session, user.id) == Decimal("150.00")

    history = await WalletLedger.list_transactions(db_session, user.id)
    assert [t.id for t in history] == [transaction.id]


@pytest.mark.asyncio
async def test_withdrawal_is_recorded_without_balance_change(db_session, make_user):
    user = await make_user("payer@test.com", wallet_balance=Decimal("80.00"))

    await WalletLedger.record_transaction(db_session, user.id, "30.00", TransactionType.WITHDRAWAL)
    await WalletLedger.record_transaction(db_session, user.id, "20.00", TransactionType.PAYMENT)

    assert await WalletLedger.get_balance(db_session, user.id) == Decimal("80.00")
    assert await transaction_count(db_session) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-10", "abc", "1.234"])
async def test_invalid_amount_writes_nothing(db_session, make_user, amount):
    user = await make_user("strict@test.com", wallet_balance=Decimal("10.00"))

    with pytest.raises(ValidationError):
        await WalletLedger.record_transaction(db_session, user.id, amount, "deposit")

    assert await transaction_count(db_session) == 0
    assert await WalletLedger.get_balance(db_session, user.id) == Decimal("10.00")


@pytest.mark.asyncio
async def test_invalid_type_rejected(db_session, make_user):
    user = await make_user("types@test.com")

    with pytest.raises(ValidationError):
        await WalletLedger.record_transaction(db_session, user.id, "5.00", "gift")
    with pytest.raises(ValidationError):
        await WalletLedger.record_transaction(db_session, user.id, "5.00", "deposit", method="barter")


@pytest.mark.asyncio
async def test_unknown_user(db_session):
    with pytest.raises(NotFoundError):
        await WalletLedger.record_transaction(db_session, 9999, "5.00", "deposit")
    with pytest.raises(NotFoundError):
        await WalletLedger.get_balance(db_session, 9999)
    assert await transaction_count(db_session) == 0


@pytest.mark.asyncio
async def test_failure_after_increment_rolls_back_both(db_session, make_user, mocker):
    user = await make_user("atomic@test.com", wallet_balance=Decimal("100.00"))
    user_id = user.id
    mocker.patch.object(
        NotificationService, "create_notification", side_effect=SQLAlchemyError("lost connection")
    )

    with pytest.raises(StorageError):
        await WalletLedger.record_transaction(db_session, user_id, "50.00", "deposit")

    assert await transaction_count(db_session) == 0
    assert await WalletLedger.get_balance(db_session, user_id) == Decimal("100.00")


@pytest.mark.asyncio
async def test_history_newest_first(db_session, make_user):
    user = await make_user("history@test.com")

    first = await WalletLedger.record_transaction(db_session, user.id, "1.00", "deposit")
    second = await WalletLedger.record_transaction(db_session, user.id, "2.00", "payment")

    history = await WalletLedger.list_transactions(db_session, user.id)
    assert [t.id for t in history] == [second.id, first.id]
    assert await WalletLedger.list_transactions(db_session, 9999) == []


@pytest.mark.asyncio
async def test_concurrent_deposits_are_not_lost(file_sessions):
    async with file_sessions() as setup:
        user = await create_user(setup, "race@test.com")

    async def deposit(amount: str):
        async with file_sessions() as session:
            return await WalletLedger.record_transaction(session, user.id, amount, "deposit")

    await asyncio.gather(deposit("10.00"), deposit("20.00"))

    async with file_sessions() as check:
        assert await WalletLedger.get_balance(check, user.id) == Decimal("30.00")
        assert len(await WalletLedger.list_transactions(check, user.id)) == 2
