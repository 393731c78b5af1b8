"""add storage tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18 09:00:00

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def _user_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE")


def upgrade() -> None:
    """Create users, urls, chat, question, context and profile-scoped tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("password", sa.String(length=512), nullable=False),
        sa.Column(
            "role", sa.String(length=16), nullable=False, server_default="user"
        ),
        sa.Column(
            "pro_mode", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "context_version", sa.Integer(), nullable=False, server_default="0"
        ),
        _created_at(),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "urls",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("analysis", JSON_TYPE, nullable=True),
        _created_at(),
        _user_fk(),
    )
    op.create_index("ix_urls_user_created", "urls", ["user_id", "created_at"])

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
        _user_fk(),
    )
    op.create_index(
        "ix_chat_messages_user_created", "chat_messages", ["user_id", "created_at"]
    )

    op.create_table(
        "leo_questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column(
            "status", sa.String(length=16), nullable=False, server_default="pending"
        ),
        sa.Column("answer", sa.Text(), nullable=True),
        _created_at(),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=True),
        _user_fk(),
    )
    op.create_index(
        "ix_leo_questions_user_created", "leo_questions", ["user_id", "created_at"]
    )

    op.create_table(
        "user_contexts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("context", JSON_TYPE, nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        _created_at("last_updated"),
        _user_fk(),
        sa.UniqueConstraint(
            "user_id", "version", name="uq_user_contexts_user_version"
        ),
    )
    op.create_index("ix_user_contexts_user_id", "user_contexts", ["user_id"])

    op.create_table(
        "context_urls",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("source_id", sa.Integer(), nullable=True),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("analysis", JSON_TYPE, nullable=True),
        _created_at(),
        _user_fk(),
        sa.ForeignKeyConstraint(["source_id"], ["urls.id"], ondelete="SET NULL"),
        sa.UniqueConstraint(
            "user_id", "profile_id", "source_id", name="uq_context_urls_source"
        ),
    )
    op.create_index(
        "ix_context_urls_scope_created",
        "context_urls",
        ["user_id", "profile_id", "created_at"],
    )

    op.create_table(
        "context_chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("source_id", sa.Integer(), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
        _user_fk(),
        sa.ForeignKeyConstraint(
            ["source_id"], ["chat_messages.id"], ondelete="SET NULL"
        ),
        sa.UniqueConstraint(
            "user_id",
            "profile_id",
            "source_id",
            name="uq_context_chat_messages_source",
        ),
    )
    op.create_index(
        "ix_context_chat_messages_scope_created",
        "context_chat_messages",
        ["user_id", "profile_id", "created_at"],
    )


def downgrade() -> None:
    """Drop all storage tables."""
    op.drop_index(
        "ix_context_chat_messages_scope_created", table_name="context_chat_messages"
    )
    op.drop_table("context_chat_messages")
    op.drop_index("ix_context_urls_scope_created", table_name="context_urls")
    op.drop_table("context_urls")
    op.drop_index("ix_user_contexts_user_id", table_name="user_contexts")
    op.drop_table("user_contexts")
    op.drop_index("ix_leo_questions_user_created", table_name="leo_questions")
    op.drop_table("leo_questions")
    op.drop_index("ix_chat_messages_user_created", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("ix_urls_user_created", table_name="urls")
    op.drop_table("urls")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
