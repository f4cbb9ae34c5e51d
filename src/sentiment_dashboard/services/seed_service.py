# src/sentiment_dashboard/services/seed_service.py

# ==============================================================================
# DEMO DATA
# ==============================================================================
# Administrative helpers that wipe the scraped tables and fill them with a
# small, fixed data set. Auth users are never touched; grants disappear with
# the posts they point at.
# ==============================================================================

import logging
from datetime import timedelta

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import translate_store_errors
from ..models.auth import UserPostAccess
from ..models.social_data import Comment, Page, Post, Reaction, ReactionType, Sentiment, User, utcnow
from ..schemas import api_schemas

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("100001234567890", "John Smith"),
    ("100009876543210", "Sarah Johnson"),
    ("100005555555555", "Mike Chen"),
    ("100007777777777", "Emily Rodriguez"),
    ("100003333333333", "David Kim"),
    ("100008888888888", "Lisa Anderson"),
    ("100002222222222", "James Wilson"),
    ("100006666666666", "Maria Garcia"),
]

DEMO_PAGES = [
    ("https://facebook.com/techcompany", "Tech Company"),
    ("https://facebook.com/newschannel", "News Channel"),
    ("https://facebook.com/foodblog", "Food Blog"),
    ("https://facebook.com/sportsteam", "Sports Team"),
    ("https://facebook.com/musicfestival", "Music Festival"),
    ("https://facebook.com/environmental", "Environmental Group"),
    ("https://facebook.com/comedy", "Comedy Hub"),
    ("https://facebook.com/fitness", "Fitness Community"),
]

# (page index, url suffix, content, (label, category, confidence, polarity))
DEMO_POSTS = [
    (0, "posts/123456789",
     "Excited to announce our new AI-powered product launch! This is going to revolutionize the industry.",
     ("positive", "joy", 0.92, 0.85)),
    (1, "posts/987654321",
     "Local community comes together to support families affected by recent storms.",
     ("positive", "approval", 0.88, 0.72)),
    (2, "posts/456789123",
     "Just tried the new restaurant downtown... worst experience ever. Service was terrible and food was cold.",
     ("negative", "anger", 0.94, -0.88)),
    (3, "posts/789123456",
     "What an incredible game last night! Proud of every single player!",
     ("positive", "joy", 0.96, 0.91)),
    (4, "posts/321654987",
     "Tickets are now available for the summer music festival. Early bird discount ends soon!",
     ("neutral", "neutral", 0.78, 0.05)),
    (5, "posts/147258369",
     "Devastating news about the rainforest fires. We need to take action now.",
     ("negative", "sadness", 0.91, -0.82)),
    (6, "posts/963852741",
     "New comedy special dropping this Friday! Get ready to laugh until your sides hurt.",
     ("positive", "joy", 0.89, 0.76)),
    (7, "posts/852963741",
     "Completed my first marathon today! 26.2 miles of pure determination.",
     ("positive", "joy", 0.93, 0.87)),
]

# (post index, user index, content, (label, category, confidence, polarity))
DEMO_COMMENTS = [
    (0, 1, "This looks amazing! Can't wait to try it out.", ("positive", "joy", 0.91, 0.82)),
    (0, 2, "How does it compare to the competition?", ("neutral", "curiosity", 0.74, 0.02)),
    (0, 4, "Another overhyped launch. We'll see.", ("negative", "disapproval", 0.81, -0.55)),
    (1, 3, "So proud of our neighbours. Beautiful.", ("positive", "admiration", 0.9, 0.8)),
    (1, 5, "Where can I donate?", ("neutral", "curiosity", 0.7, 0.1)),
    (2, 0, "Had the same experience last week. Never again.", ("negative", "anger", 0.89, -0.78)),
    (2, 6, "Sorry to hear that, the lunch menu was fine for me.", ("neutral", "neutral", 0.66, 0.0)),
    (2, 7, "Completely unacceptable service.", ("negative", "disgust", 0.87, -0.8)),
    (3, 0, "Best match of the season!", ("positive", "excitement", 0.95, 0.9)),
    (3, 2, "The defense was incredible.", ("positive", "admiration", 0.88, 0.75)),
    (4, 1, "Who is headlining this year?", ("neutral", "curiosity", 0.72, 0.04)),
    (4, 3, "Just bought mine!", ("positive", "joy", 0.86, 0.7)),
    (5, 4, "Heartbreaking. Governments must act.", ("negative", "sadness", 0.92, -0.85)),
    (5, 6, "This makes me so angry.", ("negative", "anger", 0.9, -0.83)),
    (5, 7, "Signed the petition, everyone should.", ("positive", "approval", 0.77, 0.45)),
    (6, 5, "Can't wait, your last one was hilarious!", ("positive", "amusement", 0.93, 0.86)),
    (7, 1, "Congratulations, what an achievement!", ("positive", "admiration", 0.94, 0.88)),
    (7, 3, "Inspiring! Training for my first one now.", ("positive", "optimism", 0.9, 0.79)),
]

_REACTION_CYCLE = [ReactionType.LIKE, ReactionType.LOVE, ReactionType.HAHA, ReactionType.WOW, ReactionType.SAD, ReactionType.ANGRY]


def _probabilities(label: str, confidence: float) -> dict:
    rest = round((1 - confidence) / 2, 4)
    return {name: (confidence if name == label else rest) for name in ("positive", "negative", "neutral")}


def _sentiment(scores, **target) -> Sentiment:
    label, category, confidence, polarity = scores
    return Sentiment(
        sentiment=label,
        sentiment_category=category,
        confidence=confidence,
        polarity=polarity,
        probabilities=_probabilities(label, confidence),
        **target,
    )


class SeedService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def _delete_scraped_data(self) -> None:
        for model in (Reaction, Sentiment, Comment, UserPostAccess, Post, Page, User):
            await self.db.execute(delete(model))

    @translate_store_errors
    async def clear(self) -> None:
        """Deletes every scraped row (and the grants on the deleted posts)."""
        try:
            await self._delete_scraped_data()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error("Failed to clear scraped data", exc_info=True)
            raise
        logger.info("Scraped data cleared")

    @translate_store_errors
    async def seed(self) -> api_schemas.SeedResult:
        """Replaces the scraped data with the demo set, in a single transaction."""
        now = utcnow()
        try:
            await self._delete_scraped_data()

            users = [User(external_profile_id=pid, display_name=name) for pid, name in DEMO_USERS]
            pages = [Page(url=url, name=name) for url, name in DEMO_PAGES]
            self.db.add_all(users + pages)
            await self.db.flush()

            posts = []
            for index, (page_index, suffix, content, _) in enumerate(DEMO_POSTS):
                page = pages[page_index]
                posts.append(Post(
                    page_id=page.id,
                    url=f"{page.url}/{suffix}",
                    content=content,
                    posted_at=now - timedelta(hours=3 * index + 1),
                ))
            self.db.add_all(posts)
            await self.db.flush()

            comments = []
            for index, (post_index, user_index, content, _) in enumerate(DEMO_COMMENTS):
                post = posts[post_index]
                comments.append(Comment(
                    post_id=post.id,
                    user_id=users[user_index].id,
                    url=f"{post.url}?comment_id={index + 1}",
                    content=content,
                    posted_at=now - timedelta(minutes=20 * index + 5),
                ))
            self.db.add_all(comments)
            await self.db.flush()

            sentiments = [_sentiment(scores, post_id=post.id) for post, (*_, scores) in zip(posts, DEMO_POSTS)]
            sentiments += [_sentiment(scores, comment_id=comment.id) for comment, (*_, scores) in zip(comments, DEMO_COMMENTS)]

            reactions = []
            for index, post in enumerate(posts):
                for offset in range(index % 3 + 1):
                    user = users[(index + offset) % len(users)]
                    reactions.append(Reaction(
                        user_id=user.id,
                        post_id=post.id,
                        reaction_type=_REACTION_CYCLE[(index + offset) % len(_REACTION_CYCLE)],
                    ))
            for index, comment in enumerate(comments[::2]):
                reactions.append(Reaction(
                    user_id=users[(index + 3) % len(users)].id,
                    comment_id=comment.id,
                    reaction_type=ReactionType.LIKE,
                ))
            self.db.add_all(sentiments + reactions)
            await self.db.flush()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error("Seeding demo data failed", exc_info=True)
            raise

        result = api_schemas.SeedResult(
            pages=len(pages),
            posts=len(posts),
            users=len(users),
            comments=len(comments),
            sentiments=len(sentiments),
            reactions=len(reactions),
        )
        logger.info("Demo data seeded", extra=result.model_dump())
        return result
