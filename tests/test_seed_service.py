# tests/test_seed_service.py

from sqlalchemy import func, select

from sentiment_dashboard.models import AuthUser, Post, Reaction, UserPostAccess
from sentiment_dashboard.services.seed_service import DEMO_COMMENTS, DEMO_POSTS, SeedService


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


class TestSeedService:

    async def test_seed_replaces_scraped_data(self, db, world):
        result = await SeedService(db).seed()

        assert (result.pages, result.posts, result.users, result.comments) == (8, 8, 8, 18)
        assert result.sentiments == len(DEMO_POSTS) + len(DEMO_COMMENTS)
        # 1-3 reactions per post, plus a like on every other comment.
        assert result.reactions == 15 + 9
        assert await _count(db, Post) == 8
        assert await _count(db, Reaction) == 24

    async def test_auth_users_survive_and_grants_go(self, db, world):
        await SeedService(db).seed()
        assert await _count(db, AuthUser) == 3
        assert await _count(db, UserPostAccess) == 0

    async def test_seeding_twice_is_stable(self, db, world):
        service = SeedService(db)
        first = await service.seed()
        second = await service.seed()
        assert first == second
        assert await _count(db, Post) == 8

    async def test_clear(self, db, world):
        await SeedService(db).clear()
        assert await _count(db, Post) == 0
        assert await _count(db, Reaction) == 0
        assert await _count(db, AuthUser) == 3
