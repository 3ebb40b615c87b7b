#!/usr/bin/env python3
"""
Database initialization script
"""
import asyncio
import sys
from pathlib import Path

# Add the project root to the Python path
current_dir = Path(__file__).parent
root_dir = current_dir.parent
sys.path.insert(0, str(root_dir))

SEED_USERS = [
    {"username": "moderator", "email": "moderator@example.com", "password": "Moderator123!", "role": "Moderator"},
    {"username": "john_doe", "email": "john@example.com", "password": "Password123!"},
    {"username": "jane_smith", "email": "jane@example.com", "password": "Password123!"},
    {"username": "promoter_bob", "email": "bob@example.com", "password": "Password123!", "role": "Promoter"},
]

async def init_database() -> None:
    """Create every table"""
    from social_api.db.session import init_db
    from social_api.config import settings

    print(f"🚀 Initializing database: {settings.database_url}")

    try:
        await init_db()
        print("✅ Database initialized successfully")
    except Exception as e:
        print(f"❌ Error initializing database: {e}")
        sys.exit(1)

async def create_initial_data() -> None:
    """Create a moderator and a few regular accounts for development"""
    from social_api.db.session import AsyncSessionLocal
    from social_api.exceptions import Conflict
    from social_api.schemas.user_schema import UserCreate
    from social_api.services.auth_service import AuthService

    print("👤 Creating initial data...")

    created_count = 0
    async with AsyncSessionLocal() as db:
        auth_service = AuthService(db)
        for user_data in SEED_USERS:
            try:
                await auth_service.create_user(UserCreate(**user_data))
                created_count += 1
            except Conflict:
                await db.rollback()

    print(f"✅ Created {created_count} users")

async def check_database_connection() -> bool:
    """Check if database is accessible"""
    from social_api.db.session import engine
    from sqlalchemy import text

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        print("✅ Database connection successful")
        return True
    except Exception as e:
        print(f"❌ Database connection failed: {e}")
        return False

async def drop_database() -> None:
    """Drop all database tables"""
    from social_api.db.session import engine
    from social_api.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    print("✅ Database dropped successfully")

def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="Database Initialization")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Initialize database")
    subparsers.add_parser("check", help="Check database connection")
    subparsers.add_parser("seed", help="Seed initial users")
    reset_parser = subparsers.add_parser("reset", help="Drop and reinitialize")
    reset_parser.add_argument("--confirm", action="store_true", help="Confirm reset")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "init":
        asyncio.run(init_database())

    elif args.command == "check":
        success = asyncio.run(check_database_connection())
        sys.exit(0 if success else 1)

    elif args.command == "seed":
        asyncio.run(create_initial_data())

    elif args.command == "reset":
        if not args.confirm:
            print("⚠️  WARNING: This will drop ALL tables and data!")
            print("   Use --confirm flag to proceed")
            return

        asyncio.run(drop_database())
        asyncio.run(init_database())

if __name__ == "__main__":
    main()
