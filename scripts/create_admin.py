import argparse
import asyncio
import getpass
import os
import sys

from sqlalchemy import select

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from admin.app.auth import get_password_hash
from app.models.user import User
from core.db import standalone_session


async def create_admin_user(username, password, email=None, full_name=None):
    """Create an admin user, or promote an existing user with that username"""
    async with standalone_session() as session:
        result = await session.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()

        if user:
            if user.role == "admin":
                print(f"Admin {username} already exists")
                return False
            user.role = "admin"
            user.hashed_password = get_password_hash(password)
            await session.commit()
            print(f"User {username} promoted to admin")
            return True

        new_admin = User(
            username=username,
            hashed_password=get_password_hash(password),
            email=email or f"{username}@example.com",
            role="admin",
            full_name=full_name or username,
            is_active=True,
        )
        session.add(new_admin)
        await session.commit()
        await session.refresh(new_admin)

        print(f"Admin {username} created with id {new_admin.id}")
        return True


async def main():
    parser = argparse.ArgumentParser(description="Create a Dance-Verse admin user")
    parser.add_argument("username")
    parser.add_argument("--email")
    parser.add_argument("--name")
    args = parser.parse_args()

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Password: ")
    await create_admin_user(args.username, password, args.email, args.name)


if __name__ == "__main__":
    asyncio.run(main())
