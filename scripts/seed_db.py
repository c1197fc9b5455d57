"""
Database Seed Script
Run after migrations to create a development admin and print an access token
for calling the competitor endpoints.

Usage: python -m scripts.seed_db
"""
import asyncio
from datetime import timedelta

from sqlalchemy import select

from app.database import async_session
from app.models.user import User
from app.utils.security import create_access_token
from app.config import get_settings

settings = get_settings()


async def seed():
    async with async_session() as db:
        result = await db.execute(select(User).where(User.email == settings.seed_admin_email))
        admin_user = result.scalar_one_or_none()

        if admin_user is None:
            admin_user = User(
                email=settings.seed_admin_email,
                full_name="Admin",
                role="admin",
            )
            db.add(admin_user)
            await db.commit()
            print("Database seeded successfully!")
        else:
            print("Admin user already exists, skipping.")

        token = create_access_token(
            data={"sub": str(admin_user.id), "role": admin_user.role},
            expires_delta=timedelta(days=7),
        )
        print(f"  Admin: {settings.seed_admin_email}")
        print(f"  Access token (7 days): {token}")


if __name__ == "__main__":
    asyncio.run(seed())
