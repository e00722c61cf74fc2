"""create users, articles, bookmarks and sessions

Revision ID: 3e5a7c9b1d20
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "3e5a7c9b1d20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("username", sa.Text(), nullable=False, unique=True),
            sa.Column("password", sa.Text(), nullable=False),
            sa.Column("first_name", sa.Text(), nullable=True),
            sa.Column("last_name", sa.Text(), nullable=True),
            sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sqlite_autoincrement=True,
        )

    if "articles" not in existing_tables:
        op.create_table(
            "articles",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("title", sa.Text(), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("summary", sa.Text(), nullable=True),
            sa.Column("author_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("category", sa.String(length=64), nullable=False),
            sa.Column("featured_image_url", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=32), nullable=False, server_default="draft"),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sqlite_autoincrement=True,
        )
        op.create_index("idx_articles_status_created", "articles", ["status", "created_at"])
        op.create_index("idx_articles_category", "articles", ["category"])

    if "bookmarks" not in existing_tables:
        op.create_table(
            "bookmarks",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id", ondelete="CASCADE"), nullable=False),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.UniqueConstraint("user_id", "article_id", name="uq_bookmarks_user_article"),
            sqlite_autoincrement=True,
        )
        op.create_index("idx_bookmarks_user", "bookmarks", ["user_id"])

    if "sessions" not in existing_tables:
        op.create_table(
            "sessions",
            sa.Column("sid", sa.String(length=64), primary_key=True, nullable=False),
            sa.Column("data", sa.Text(), nullable=False),
            sa.Column("expires_at", sa.DateTime(timezone=False), nullable=False),
        )
        op.create_index("idx_sessions_expires_at", "sessions", ["expires_at"])


def downgrade() -> None:
    op.drop_index("idx_sessions_expires_at", table_name="sessions")
    op.drop_table("sessions")
    op.drop_index("idx_bookmarks_user", table_name="bookmarks")
    op.drop_table("bookmarks")
    op.drop_index("idx_articles_category", table_name="articles")
    op.drop_index("idx_articles_status_created", table_name="articles")
    op.drop_table("articles")
    op.drop_table("users")
