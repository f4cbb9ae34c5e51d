# src/sentiment_dashboard/db/base.py

# Imports Base together with every model so that Base.metadata is complete.
# alembic/env.py and the test fixtures only reference this module.

from sentiment_dashboard.db.base_class import Base
from sentiment_dashboard.models.auth import AuthUser, UserPostAccess
from sentiment_dashboard.models.social_data import Comment, Page, Post, Reaction, Sentiment, User
