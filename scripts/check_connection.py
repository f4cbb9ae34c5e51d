# scripts/check_connection.py
import asyncio
import sys
from pathlib import Path

# The packages live in src/.
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'src'))

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from sentiment_dashboard.core.config import settings
from sentiment_dashboard.db.session import DatabaseSessionManager
from sentiment_dashboard.models import AuthUser, Post, UserPostAccess


async def check_connection():
    """
    Checks that the application can reach its database and that the schema
    is in place, then prints a few row counts.
    """
    print("Checking database connection...")
    sessionmanager = DatabaseSessionManager.from_settings(settings)

    try:
        async with sessionmanager.session() as db:
            counts = {}
            for label, model in (("posts", Post), ("auth users", AuthUser), ("access grants", UserPostAccess)):
                counts[label] = (await db.execute(select(func.count()).select_from(model))).scalar_one()
    except SQLAlchemyError as e:
        print(f"DATABASE ERROR: {e.__class__.__name__}: {e}")
        print("   Make sure PostgreSQL is running and `alembic upgrade head` has been applied.")
        return
    finally:
        await sessionmanager.close()

    print("\n" + "=" * 50)
    print("CONNECTION OK")
    print("=" * 50)
    for label, count in counts.items():
        print(f"   {label}: {count}")


if __name__ == "__main__":
    asyncio.run(check_connection())
