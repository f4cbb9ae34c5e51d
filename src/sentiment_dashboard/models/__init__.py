# --- START OF FILE src/sentiment_dashboard/models/__init__.py ---

# Registers every model on Base.metadata (Alembic autogenerate relies on it).

from sentiment_dashboard.db.base_class import Base

from .social_data import Comment, Page, Post, Reaction, ReactionType, Sentiment, User
from .auth import AuthUser, UserPostAccess

# --- END OF FILE src/sentiment_dashboard/models/__init__.py ---
