"""
Centralized Test Configuration.
"""

import pytest
from decimal import Decimal
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.models.user import User
from backend.app.models.enums import UserRole
from backend.app.services.notification_dispatcher import connection_registry

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Apply overrides once for the session."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield

    # Restore and clear
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    connection_registry.clear()

    yield

    connection_registry.clear()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


async def create_user(
    session: AsyncSession,
    email: str,
    role: UserRole = UserRole.CUSTOMER,
    wallet_balance: Decimal = Decimal("0.00"),
    name: str = None
) -> User:
    user = User(
        email=email,
        name=name or email.split("@")[0],
        role=role,
        wallet_balance=wallet_balance
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest.fixture
def make_user(db_session):
    """Factory fixture: ``await make_user(email, role, wallet_balance)``."""
    async def _make(email: str, role: UserRole = UserRole.CUSTOMER, wallet_balance: Decimal = Decimal("0.00")) -> User:
        return await create_user(db_session, email, role, wallet_balance)
    return _make


@pytest.fixture
async def sender(db_session):
    return await create_user(db_session, "sender@test.com", UserRole.CUSTOMER)


@pytest.fixture
async def driver(db_session):
    return await create_user(db_session, "driver1@test.com", UserRole.DRIVER)


@pytest.fixture
async def personnel(db_session):
    return await create_user(db_session, "hub@test.com", UserRole.PERSONNEL)


@pytest.fixture
def parcel_request(sender):
    """Valid create-parcel payload for the ``sender`` fixture."""
    return {
        "sender_id": sender.id,
        "recipient_name": "Abel",
        "recipient_phone": "0911000000",
        "weight": "2.5",
        "payment_method": "cash_on_delivery",
        "description": "Documents",
    }


@pytest.fixture
async def file_sessions(tmp_path):
    """
    Session factory on a file-backed SQLite database.

    Each session gets its own connection, so concurrent writers are
    serialized by SQLite instead of sharing one transaction.
    """
    file_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}")
    async with file_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)

    await file_engine.dispose()
