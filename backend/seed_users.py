"""
Database seeding script for initial users.

Creates one ADMIN, one DRIVER linked to it, and a vehicle for local
development. Run this script after the database is set up.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, Base, engine
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle
from backend.app.models.enums import UserRole
from backend.app.core.security import get_password_hash
from backend.app.store.entity_store import EntityKind, EntityStore


async def seed_users():
    """
    Seed initial users.

    Creates:
    - 1 ADMIN user
    - 1 DRIVER user linked to the admin
    - 1 vehicle owned by the admin
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        store = EntityStore(db)
        print("Starting user seeding...")

        if await store.find_user_by_email("admin@freight.local"):
            print("ADMIN user already exists, skipping seeding")
            return

        admin = await store.insert(EntityKind.USER, User(
            email="admin@freight.local",
            name="Fleet Admin",
            hashed_password=get_password_hash("admin123"),
            role=UserRole.ADMIN,
            admin_id=None,
            is_active=True,
        ))
        print("Created ADMIN user (admin@freight.local / admin123)")

        await store.insert(EntityKind.USER, User(
            email="driver@freight.local",
            name="First Driver",
            hashed_password=get_password_hash("driver123"),
            role=UserRole.DRIVER,
            admin_id=admin.id,
            is_active=True,
        ))
        print("Created DRIVER user (driver@freight.local / driver123)")

        await store.insert(EntityKind.VEHICLE, Vehicle(
            admin_id=admin.id,
            plate="DEV0A01",
            brand="Volvo",
            model="FH 460",
        ))
        print("Created vehicle DEV0A01")

        print("\nSeeding completed. More drivers join via POST /v1/auth/invitations.")


if __name__ == "__main__":
    asyncio.run(seed_users())
