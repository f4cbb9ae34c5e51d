# scripts/seed_initial_data.py
import asyncio
import sys
from pathlib import Path

# The packages live in src/.
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'src'))

from sentiment_dashboard.core.config import settings
from sentiment_dashboard.core.logging_config import setup_logging
from sentiment_dashboard.db.session import DatabaseSessionManager
from sentiment_dashboard.services.seed_service import SeedService


async def main():
    """
    Replaces the scraped tables with the demo data set.
    Auth users and their accounts are left untouched.
    """
    setup_logging(log_level=settings.LOG_LEVEL)
    sessionmanager = DatabaseSessionManager.from_settings(settings)

    print("=" * 30)
    print("Seeding demo data...")
    try:
        async with sessionmanager.session() as db_session:
            result = await SeedService(db_session).seed()
    finally:
        await sessionmanager.close()

    for table, count in result.model_dump().items():
        print(f"  {table:<12} {count}")
    print("=" * 30)
    print("Seeding finished.")


if __name__ == "__main__":
    asyncio.run(main())
