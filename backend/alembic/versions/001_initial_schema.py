"""Initial schema with all tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

This migration creates the complete College Wayfarer database schema:
- Enums: college_status, advisor_type, message_sender
- Tables: users, user_sessions, colleges, chat_sessions, chat_messages, advisors,
  college_recommendations, shared_chat_sessions, message_feedback
- Triggers: updated_at auto-update function and triggers
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TIMESTAMPED_TABLES = ["users", "colleges", "chat_sessions", "advisors", "college_recommendations"]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    ]


def upgrade() -> None:
    # ==========================================================================
    # ENUMS
    # ==========================================================================
    college_status = postgresql.ENUM(
        "applying", "researching", "not_applying",
        name="college_status",
        create_type=False,
    )
    college_status.create(op.get_bind(), checkfirst=True)

    advisor_type = postgresql.ENUM(
        "School counselor", "Private counselor", "Parent", "Sibling", "Other",
        name="advisor_type",
        create_type=False,
    )
    advisor_type.create(op.get_bind(), checkfirst=True)

    message_sender = postgresql.ENUM(
        "user", "ai",
        name="message_sender",
        create_type=False,
    )
    message_sender.create(op.get_bind(), checkfirst=True)

    # ==========================================================================
    # USERS TABLE
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("profile_description", sa.Text(), nullable=True),
        sa.Column("onboarding", postgresql.JSONB(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    # ==========================================================================
    # USER_SESSIONS TABLE
    # ==========================================================================
    op.create_table(
        "user_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("session_key", sa.String(128), nullable=False),
        sa.Column("expires_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_user_sessions"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE", name="fk_user_sessions_user_id_users"
        ),
        sa.UniqueConstraint("session_key", name="uq_user_sessions_session_key"),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])
    op.create_index("idx_user_sessions_expires_at", "user_sessions", ["expires_at"])

    # ==========================================================================
    # COLLEGES TABLE
    # ==========================================================================
    op.create_table(
        "colleges",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", college_status, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_colleges"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE", name="fk_colleges_user_id_users"
        ),
        sa.CheckConstraint("position >= 0", name="ck_colleges_position_non_negative"),
    )
    op.create_index("idx_colleges_user_status_position", "colleges", ["user_id", "status", "position"])

    # ==========================================================================
    # CHAT TABLES
    # ==========================================================================
    op.create_table(
        "chat_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), server_default="New Conversation", nullable=False),
        sa.Column("auto_title", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_chat_sessions"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE", name="fk_chat_sessions_user_id_users"
        ),
    )
    op.create_index("idx_chat_sessions_user_updated_at", "chat_sessions", ["user_id", "updated_at"])

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("sender", message_sender, nullable=False),
        sa.Column("attachments", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_chat_messages"),
        sa.ForeignKeyConstraint(
            ["session_id"], ["chat_sessions.id"], ondelete="CASCADE",
            name="fk_chat_messages_session_id_chat_sessions",
        ),
    )
    op.create_index("idx_chat_messages_session_created", "chat_messages", ["session_id", "created_at"])

    # ==========================================================================
    # ADVISORS AND SHARING
    # ==========================================================================
    op.create_table(
        "advisors",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", advisor_type, nullable=False),
        sa.Column("share_token", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_advisors"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE", name="fk_advisors_user_id_users"
        ),
        sa.UniqueConstraint("share_token", name="uq_advisors_share_token"),
    )
    op.create_index("ix_advisors_user_id", "advisors", ["user_id"])

    op.create_table(
        "shared_chat_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("advisor_id", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_shared_chat_sessions"),
        sa.ForeignKeyConstraint(
            ["advisor_id"], ["advisors.id"], ondelete="CASCADE",
            name="fk_shared_chat_sessions_advisor_id_advisors",
        ),
        sa.ForeignKeyConstraint(
            ["session_id"], ["chat_sessions.id"], ondelete="CASCADE",
            name="fk_shared_chat_sessions_session_id_chat_sessions",
        ),
        sa.UniqueConstraint("advisor_id", "session_id", name="unique_advisor_session"),
    )
    op.create_index("ix_shared_chat_sessions_session_id", "shared_chat_sessions", ["session_id"])

    # ==========================================================================
    # RECOMMENDATIONS TABLE
    # ==========================================================================
    op.create_table(
        "college_recommendations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("acceptance_rate", sa.Integer(), nullable=True),
        sa.Column("recommended_by", sa.String(255), nullable=True),
        sa.Column("advisor_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_college_recommendations"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE",
            name="fk_college_recommendations_user_id_users",
        ),
        sa.CheckConstraint(
            "acceptance_rate IS NULL OR (acceptance_rate >= 0 AND acceptance_rate <= 100)",
            name="ck_college_recommendations_acceptance_rate_range",
        ),
    )
    op.create_index("ix_college_recommendations_user_id", "college_recommendations", ["user_id"])

    # ==========================================================================
    # MESSAGE_FEEDBACK TABLE
    # ==========================================================================
    op.create_table(
        "message_feedback",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("message_id", sa.Integer(), nullable=False),
        sa.Column("message_content", sa.Text(), nullable=False),
        sa.Column("is_positive", sa.Boolean(), nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_message_feedback"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE", name="fk_message_feedback_user_id_users"
        ),
        sa.ForeignKeyConstraint(
            ["message_id"], ["chat_messages.id"], ondelete="CASCADE",
            name="fk_message_feedback_message_id_chat_messages",
        ),
    )
    op.create_index("ix_message_feedback_user_id", "message_feedback", ["user_id"])
    op.create_index("ix_message_feedback_message_id", "message_feedback", ["message_id"])

    # ==========================================================================
    # UPDATED_AT TRIGGER FUNCTION
    # ==========================================================================
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    # Apply triggers to all tables with updated_at
    for table in TIMESTAMPED_TABLES:
        op.execute(f"""
            CREATE TRIGGER update_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade() -> None:
    # Drop triggers
    for table in TIMESTAMPED_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table}")

    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    # Drop tables in reverse dependency order
    op.drop_table("message_feedback")
    op.drop_table("college_recommendations")
    op.drop_table("shared_chat_sessions")
    op.drop_table("advisors")
    op.drop_table("chat_messages")
    op.drop_table("chat_sessions")
    op.drop_table("colleges")
    op.drop_table("user_sessions")
    op.drop_table("users")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS message_sender")
    op.execute("DROP TYPE IF EXISTS advisor_type")
    op.execute("DROP TYPE IF EXISTS college_status")
