"""
Database seeding script for demo users.

Creates one user per role so parcels, events and wallet transactions
can be exercised locally. Run this after the database is up.
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.models.user import User
from backend.app.models.enums import UserRole
from sqlalchemy import select

# Import remaining models so create_all sees every table
from backend.app.models import parcel, parcel_event, transaction, notification, message  # noqa: F401

DEMO_USERS = [
    ("admin@parcels.local", "Admin", UserRole.ADMIN),
    ("customer@parcels.local", "Demo Customer", UserRole.CUSTOMER),
    ("driver@parcels.local", "Demo Driver", UserRole.DRIVER),
    ("hub@parcels.local", "Hub Personnel", UserRole.PERSONNEL),
    ("partner@parcels.local", "Pickup Partner", UserRole.PARTNER),
]


async def seed_users():
    """
    Seed demo users with different roles.

    Skips everything if the demo admin already exists.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting user seeding...")

        result = await db.execute(
            select(User).where(User.email == DEMO_USERS[0][0])
        )
        if result.scalar_one_or_none():
            print("ℹ️  Demo users already exist, skipping seeding")
            return

        for email, name, role in DEMO_USERS:
            db.add(User(email=email, name=name, role=role, wallet_balance=Decimal("0.00")))
            print(f"✅ Created {role.value} user ({email})")

        await db.commit()

        result = await db.execute(select(User).order_by(User.id))
        print("\n🎉 User seeding completed successfully!")
        print("\nSeeded users:")
        for user in result.scalars().all():
            print(f"  - {user.id:>3}  {user.role.value:<10} {user.email}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_users())
