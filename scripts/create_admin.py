#!/usr/bin/env python3
"""
CLI script to create the initial admin user.

Usage (interactive):
    python scripts/create_admin.py

Usage (non-interactive):
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=... python scripts/create_admin.py
    python scripts/create_admin.py --email admin@example.com --first-name Ada --last-name Lovelace

The password is read from ADMIN_PASSWORD or prompted for; it is never taken
from a command-line flag.
"""

import argparse
import asyncio
import os
import sys
from getpass import getpass

from sqlalchemy import select

from educrm.config import get_settings
from educrm.database import Database
from educrm.models import User
from educrm.models.user import Role
from educrm.utils.security import PasswordHasher


async def create_admin(
    database: Database,
    hasher: PasswordHasher,
    email: str | None = None,
    password: str | None = None,
    first_name: str = "Admin",
    last_name: str = "User",
) -> bool:
    """Create an admin user."""
    print("\n" + "=" * 50)
    print("EduCRM - Admin Setup")
    print("=" * 50 + "\n")

    # Get email
    if not email:
        while True:
            email = input("Enter email address: ").strip().lower()
            if "@" in email and "." in email:
                break
            print("Please enter a valid email address.")
    else:
        email = email.strip().lower()
        if "@" not in email or "." not in email:
            print("Invalid email address.")
            return False

    # Get password
    if not password:
        while True:
            password = getpass("Enter password (min 8 characters): ")
            if len(password) >= 8:
                break
            print("Password must be at least 8 characters.")

        password_confirm = getpass("Confirm password: ")
        if password != password_confirm:
            print("\nPasswords do not match. Aborting.")
            return False
    elif len(password) < 8:
        print("Password must be at least 8 characters.")
        return False

    password_hash = await hasher.hash_async(password)

    async with database.session() as session:
        # Check if email already exists
        result = await session.execute(
            select(User).where(User.email == email, User.deleted_at.is_(None))
        )
        if result.scalar_one_or_none():
            print(f"\nUser with email {email} already exists.")
            return False

        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=Role.ADMIN.value,
            is_active=True,
        )
        session.add(user)
        await session.flush()

        print("\n" + "=" * 50)
        print("Admin Created Successfully!")
        print("=" * 50)
        print(f"  Email: {user.email}")
        print(f"  Name: {user.first_name} {user.last_name}")
        print(f"  ID: {user.id}")
        print("=" * 50 + "\n")

    return True


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Create an EduCRM admin user")
    parser.add_argument("--email", "-e", help="Admin email address", default=os.environ.get("ADMIN_EMAIL"))
    parser.add_argument("--first-name", "-f", help="First name", default=os.environ.get("ADMIN_FIRST_NAME", "Admin"))
    parser.add_argument("--last-name", "-l", help="Last name", default=os.environ.get("ADMIN_LAST_NAME", "User"))
    args = parser.parse_args()

    settings = get_settings()
    database = Database(settings)
    hasher = PasswordHasher(settings.password_hash_cost)

    try:
        success = await create_admin(
            database,
            hasher,
            email=args.email,
            password=os.environ.get("ADMIN_PASSWORD") or None,
            first_name=args.first_name,
            last_name=args.last_name,
        )
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\nAborted by user.")
        sys.exit(1)
    finally:
        await database.close()


if __name__ == "__main__":
    asyncio.run(main())
