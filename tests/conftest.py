# tests/conftest.py

import os

# Settings are read at import time; the test-suite runs on in-memory SQLite.
os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("POSTGRES_DB", "test")
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict

import httpx
import pytest
from sqlalchemy.pool import StaticPool

from sentiment_dashboard.core.security import Principal, Role
from sentiment_dashboard.db.base import Base
from sentiment_dashboard.db.session import DatabaseSessionManager
from sentiment_dashboard.models import (AuthUser, Comment, Page, Post, Reaction, ReactionType, Sentiment, User,
                                        UserPostAccess)

NOW = datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
async def sessionmanager():
    manager = DatabaseSessionManager(
        "sqlite+aiosqlite://",
        {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}},
    )
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.close()


@pytest.fixture
async def db(sessionmanager):
    async with sessionmanager.session() as session:
        yield session


@dataclass
class World:
    """Ids of the rows created by the `world` fixture."""
    admin: Principal
    alice: Principal
    bob: Principal
    pages: Dict[str, uuid.UUID] = field(default_factory=dict)
    posts: Dict[str, uuid.UUID] = field(default_factory=dict)
    users: Dict[str, uuid.UUID] = field(default_factory=dict)
    comments: Dict[str, uuid.UUID] = field(default_factory=dict)
    sentiments: Dict[str, uuid.UUID] = field(default_factory=dict)


@pytest.fixture
async def world(db) -> World:
    """
    Two pages, three posts, three scraped users.

    alice holds a grant on post A only; bob holds no grant.

        page alpha: post A (post-level positive), post B (post-level "Negative")
        page beta:  post C (no sentiment)

        comments: a1 on A by u1 (positive), a2 on A by u2 (negative),
                  b1 on B by u2 (neutral),  c1 on C by u3
        reactions: like on A by u3, love on B by u1, wow on a1 by u2
    """
    admin = AuthUser(username="admin", email="admin@example.com", password_hash="x", role=Role.ADMIN)
    alice = AuthUser(username="alice", email="alice@example.com", password_hash="x", role=Role.USER)
    bob = AuthUser(username="bob", email="bob@example.com", password_hash="x", role=Role.USER)

    alpha = Page(url="https://facebook.com/alpha", name="Alpha", created_at=NOW - timedelta(days=60))
    beta = Page(url="https://facebook.com/beta", name="Beta", created_at=NOW - timedelta(days=2))

    u1 = User(external_profile_id="1001", display_name="Ann Lee")
    u2 = User(external_profile_id="1002", display_name="Ben Ray")
    u3 = User(external_profile_id="1003", display_name="Cid Moe")

    db.add_all([admin, alice, bob, alpha, beta, u1, u2, u3])
    await db.flush()

    post_a = Post(page_id=alpha.id, url="https://facebook.com/alpha/posts/1", content="Launch day is here",
                  posted_at=NOW - timedelta(hours=2), created_at=NOW - timedelta(hours=2))
    post_b = Post(page_id=alpha.id, url="https://facebook.com/alpha/posts/2", content="Service outage report",
                  posted_at=NOW - timedelta(days=3), created_at=NOW - timedelta(days=3))
    post_c = Post(page_id=beta.id, url="https://facebook.com/beta/posts/1", content="Weekly digest",
                  posted_at=None, created_at=NOW - timedelta(days=10))
    db.add_all([post_a, post_b, post_c])
    await db.flush()

    a1 = Comment(post_id=post_a.id, user_id=u1.id, url="a1", content="Love it", created_at=NOW - timedelta(hours=1))
    a2 = Comment(post_id=post_a.id, user_id=u2.id, url="a2", content="Meh, too late", created_at=NOW - timedelta(minutes=30))
    b1 = Comment(post_id=post_b.id, user_id=u2.id, url="b1", content="Happens", created_at=NOW - timedelta(days=2))
    c1 = Comment(post_id=post_c.id, user_id=u3.id, url="c1", content="Thanks", created_at=NOW - timedelta(days=9))
    db.add_all([a1, a2, b1, c1])
    await db.flush()

    s_a = Sentiment(post_id=post_a.id, sentiment="positive", sentiment_category="positive", confidence=0.9, polarity=0.8,
                    probabilities={"positive": 0.9, "negative": 0.05, "neutral": 0.05}, created_at=NOW - timedelta(hours=2))
    s_b = Sentiment(post_id=post_b.id, sentiment="negative", sentiment_category="Negative", confidence=0.7, polarity=-0.6,
                    created_at=NOW - timedelta(days=3))
    s_a1 = Sentiment(comment_id=a1.id, sentiment="positive", sentiment_category="positive", confidence=0.8, polarity=0.5,
                     created_at=NOW - timedelta(hours=1))
    s_a2 = Sentiment(comment_id=a2.id, sentiment="negative", sentiment_category="negative", confidence=0.6, polarity=-0.4,
                     created_at=NOW - timedelta(minutes=30))
    s_b1 = Sentiment(comment_id=b1.id, sentiment="neutral", sentiment_category="neutral", confidence=0.5, polarity=0.0,
                     created_at=NOW - timedelta(days=2))
    db.add_all([s_a, s_b, s_a1, s_a2, s_b1])

    db.add_all([
        Reaction(user_id=u3.id, post_id=post_a.id, reaction_type=ReactionType.LIKE),
        Reaction(user_id=u1.id, post_id=post_b.id, reaction_type=ReactionType.LOVE),
        Reaction(user_id=u2.id, comment_id=a1.id, reaction_type=ReactionType.WOW),
    ])
    db.add(UserPostAccess(auth_user_id=alice.id, post_id=post_a.id, granted_by=admin.id))
    await db.commit()

    return World(
        admin=Principal(user_id=admin.id, role=Role.ADMIN),
        alice=Principal(user_id=alice.id, role=Role.USER),
        bob=Principal(user_id=bob.id, role=Role.USER),
        pages={"alpha": alpha.id, "beta": beta.id},
        posts={"A": post_a.id, "B": post_b.id, "C": post_c.id},
        users={"u1": u1.id, "u2": u2.id, "u3": u3.id},
        comments={"a1": a1.id, "a2": a2.id, "b1": b1.id, "c1": c1.id},
        sentiments={"A": s_a.id, "B": s_b.id, "a1": s_a1.id, "a2": s_a2.id, "b1": s_b1.id},
    )


def headers_for(principal: Principal) -> Dict[str, str]:
    return {"X-User-Id": str(principal.user_id), "X-User-Role": principal.role.value}


@pytest.fixture
async def client(sessionmanager):
    from sentiment_dashboard.main import app

    app.state.sessionmanager = sessionmanager
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.state.sessionmanager = None
