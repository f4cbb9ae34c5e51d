"""Initial schema: scraped social data, sentiments, auth users and access grants

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

REACTION_TYPES = ('like', 'love', 'sad', 'angry', 'haha', 'wow')
SINGLE_TARGET = "(post_id IS NOT NULL AND comment_id IS NULL) OR (post_id IS NULL AND comment_id IS NOT NULL)"


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('external_profile_id', sa.String(), nullable=True),
        sa.Column('display_name', sa.String(), nullable=True),
        _created_at(),
    )
    op.create_index('ix_users_external_profile_id', 'users', ['external_profile_id'])

    op.create_table(
        'pages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('url', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=True),
        _created_at(),
    )
    op.create_index('ix_pages_url', 'pages', ['url'])
    op.create_index('ix_pages_name', 'pages', ['name'])

    op.create_table(
        'posts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('page_id', sa.Uuid(), sa.ForeignKey('pages.id', ondelete='SET NULL'), nullable=True),
        sa.Column('url', sa.String(), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('posted_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index('ix_posts_page_id', 'posts', ['page_id'])
    op.create_index('ix_posts_url', 'posts', ['url'])
    op.create_index('ix_posts_posted_at', 'posts', ['posted_at'])
    op.create_index('ix_posts_created_at', 'posts', ['created_at'])

    op.create_table(
        'comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('post_id', sa.Uuid(), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('url', sa.String(), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('posted_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index('ix_comments_post_id', 'comments', ['post_id'])
    op.create_index('ix_comments_user_id', 'comments', ['user_id'])
    op.create_index('ix_comments_created_at', 'comments', ['created_at'])

    op.create_table(
        'sentiments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('post_id', sa.Uuid(), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=True),
        sa.Column('comment_id', sa.Uuid(), sa.ForeignKey('comments.id', ondelete='CASCADE'), nullable=True),
        sa.Column('sentiment', sa.String(length=32), nullable=True),
        sa.Column('sentiment_category', sa.String(length=64), nullable=True),
        sa.Column('confidence', sa.Float(), nullable=True),
        sa.Column('polarity', sa.Float(), nullable=True),
        sa.Column('probabilities', postgresql.JSONB(), nullable=True),
        _created_at(),
        sa.CheckConstraint(SINGLE_TARGET, name='ck_sentiments_single_target'),
        sa.CheckConstraint('confidence IS NULL OR (confidence >= 0 AND confidence <= 1)', name='ck_sentiments_confidence_range'),
        sa.CheckConstraint('polarity IS NULL OR (polarity >= -1 AND polarity <= 1)', name='ck_sentiments_polarity_range'),
    )
    op.create_index('ix_sentiments_post_id', 'sentiments', ['post_id'])
    op.create_index('ix_sentiments_comment_id', 'sentiments', ['comment_id'])
    op.create_index('ix_sentiments_sentiment_category', 'sentiments', ['sentiment_category'])
    op.create_index('ix_sentiments_created_at', 'sentiments', ['created_at'])

    op.create_table(
        'reactions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('post_id', sa.Uuid(), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=True),
        sa.Column('comment_id', sa.Uuid(), sa.ForeignKey('comments.id', ondelete='CASCADE'), nullable=True),
        sa.Column('reaction_type', sa.Enum(*REACTION_TYPES, name='reaction_type'), nullable=False),
        _created_at(),
        sa.CheckConstraint(SINGLE_TARGET, name='ck_reactions_single_target'),
    )
    op.create_index('ix_reactions_user_id', 'reactions', ['user_id'])
    op.create_index('ix_reactions_post_id', 'reactions', ['post_id'])
    op.create_index('ix_reactions_comment_id', 'reactions', ['comment_id'])

    op.create_table(
        'auth_users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('username', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', sa.Enum('user', 'admin', name='auth_role'), server_default='user', nullable=False),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_auth_users_email', 'auth_users', ['email'], unique=True)

    op.create_table(
        'user_post_access',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('auth_user_id', sa.Uuid(), sa.ForeignKey('auth_users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('post_id', sa.Uuid(), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('granted_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('granted_by', sa.Uuid(), sa.ForeignKey('auth_users.id', ondelete='SET NULL'), nullable=True),
        sa.UniqueConstraint('auth_user_id', 'post_id', name='uq_user_post_access_user_post'),
    )
    op.create_index('ix_user_post_access_auth_user_id', 'user_post_access', ['auth_user_id'])
    op.create_index('ix_user_post_access_post_id', 'user_post_access', ['post_id'])


def downgrade() -> None:
    # Reverse dependency order.
    op.drop_table('user_post_access')
    op.drop_table('auth_users')
    op.drop_table('reactions')
    op.drop_table('sentiments')
    op.drop_table('comments')
    op.drop_table('posts')
    op.drop_table('pages')
    op.drop_table('users')
    sa.Enum(name='auth_role').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='reaction_type').drop(op.get_bind(), checkfirst=True)
