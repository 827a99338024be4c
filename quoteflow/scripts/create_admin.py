from sqlalchemy import select

from quoteflow.models.users.user_models import User
from quoteflow.core.db import AsyncSessionLocal
from quoteflow.core.security import hash_password
import asyncio
import os


async def create_admin():
    username = os.getenv("ADMIN_USERNAME", "admin@quoteflow.local")
    tenant_id = int(os.getenv("ADMIN_TENANT_ID", 1))

    async with AsyncSessionLocal() as session:
        existing = await session.scalar(select(User).where(User.username == username))
        if existing:
            print(f"User {username} already exists")
            return

        admin = User(
            tenant_id=tenant_id,
            username=username,
            full_name="Administrator",
            password_hash=hash_password(os.getenv("ADMIN_PASSWORD", "admin123")),
            role="admin",
            is_active=True,
        )
        session.add(admin)
        await session.commit()
        print(f"Admin user {username} created for tenant {tenant_id}")


if __name__ == "__main__":
    asyncio.run(create_admin())
