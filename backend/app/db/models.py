"""
SQLAlchemy 2.0 Models for College Wayfarer.

Uses modern declarative syntax with Mapped[] type annotations.
Primary keys are integers; advisor share tokens are UUIDs generated server-side.
Column types stay dialect-neutral (JSONB only as a PostgreSQL variant) so the
same metadata runs on PostgreSQL in production and SQLite under test.
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

JSONVariant = JSON().with_variant(JSONB(), "postgresql")

SKIPPED_ANSWER = "User skipped this question."

ONBOARDING_FIELDS = (
    "programs",
    "academicEnv",
    "location",
    "culture",
    "academicStats",
    "financialAid",
    "other",
)


def default_onboarding() -> dict[str, str]:
    return {field: SKIPPED_ANSWER for field in ONBOARDING_FIELDS}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls: type[PyEnum]) -> list[str]:
    return [member.value for member in enum_cls]


# =============================================================================
# ENUMS
# =============================================================================


class CollegeStatus(str, PyEnum):
    """Kanban column of a college."""

    APPLYING = "applying"
    RESEARCHING = "researching"
    NOT_APPLYING = "not_applying"


class AdvisorType(str, PyEnum):
    """Relationship of an advisor to the student."""

    SCHOOL_COUNSELOR = "School counselor"
    PRIVATE_COUNSELOR = "Private counselor"
    PARENT = "Parent"
    SIBLING = "Sibling"
    OTHER = "Other"


class MessageSender(str, PyEnum):
    USER = "user"
    AI = "ai"


# Column order used by the shared advisor view
SHARED_VIEW_STATUS_ORDER = (
    CollegeStatus.APPLYING,
    CollegeStatus.RESEARCHING,
    CollegeStatus.NOT_APPLYING,
)


# =============================================================================
# MODELS
# =============================================================================


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


class User(TimestampMixin, Base):
    """
    Student account.

    `onboarding` holds the seven questionnaire answers; unanswered fields carry
    the skipped-question sentinel.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    profile_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    onboarding: Mapped[dict[str, str]] = mapped_column(
        JSONVariant, nullable=False, default=default_onboarding
    )

    # Relationships
    sessions: Mapped[list["UserSession"]] = relationship(
        "UserSession", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    colleges: Mapped[list["College"]] = relationship(
        "College", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    chat_sessions: Mapped[list["ChatSession"]] = relationship(
        "ChatSession", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    advisors: Mapped[list["Advisor"]] = relationship(
        "Advisor", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    recommendations: Mapped[list["CollegeRecommendation"]] = relationship(
        "CollegeRecommendation",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class UserSession(Base):
    """Server-side login session. The cookie carries a signed reference to `session_key`."""

    __tablename__ = "user_sessions"
    __table_args__ = (Index("idx_user_sessions_expires_at", "expires_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    session_key: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="sessions")


class College(TimestampMixin, Base):
    """A college on the student's kanban board."""

    __tablename__ = "colleges"
    __table_args__ = (
        Index("idx_colleges_user_status_position", "user_id", "status", "position"),
        CheckConstraint("position >= 0", name="position_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[CollegeStatus] = mapped_column(
        Enum(CollegeStatus, name="college_status", values_callable=_enum_values),
        nullable=False,
        default=CollegeStatus.RESEARCHING,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    user: Mapped["User"] = relationship("User", back_populates="colleges")


class ChatSession(TimestampMixin, Base):
    """
    A conversation with the AI counselor.

    `auto_title` stays true until the title is set explicitly, so the first
    message may still rename the session.
    """

    __tablename__ = "chat_sessions"
    __table_args__ = (Index("idx_chat_sessions_user_updated_at", "user_id", "updated_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(
        String(255), nullable=False, default="New Conversation", server_default="New Conversation"
    )
    auto_title: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    user: Mapped["User"] = relationship("User", back_populates="chat_sessions")
    messages: Mapped[list["ChatMessage"]] = relationship(
        "ChatMessage",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    shares: Mapped[list["SharedChatSession"]] = relationship(
        "SharedChatSession",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ChatMessage(Base):
    """Immutable chat message. `attachments` is a list of attachment records."""

    __tablename__ = "chat_messages"
    __table_args__ = (Index("idx_chat_messages_session_created", "session_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    sender: Mapped[MessageSender] = mapped_column(
        Enum(MessageSender, name="message_sender", values_callable=_enum_values),
        nullable=False,
    )
    attachments: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONVariant, nullable=False, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    session: Mapped["ChatSession"] = relationship("ChatSession", back_populates="messages")


class Advisor(TimestampMixin, Base):
    """Counselor, parent or other person who can view the student's progress by share token."""

    __tablename__ = "advisors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[AdvisorType] = mapped_column(
        Enum(AdvisorType, name="advisor_type", values_callable=_enum_values),
        nullable=False,
    )
    share_token: Mapped[UUID] = mapped_column(Uuid, unique=True, nullable=False, default=uuid4)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    user: Mapped["User"] = relationship("User", back_populates="advisors")
    shares: Mapped[list["SharedChatSession"]] = relationship(
        "SharedChatSession",
        back_populates="advisor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class CollegeRecommendation(TimestampMixin, Base):
    """AI or advisor suggested college, not yet on the kanban board."""

    __tablename__ = "college_recommendations"
    __table_args__ = (
        CheckConstraint(
            "acceptance_rate IS NULL OR (acceptance_rate >= 0 AND acceptance_rate <= 100)",
            name="acceptance_rate_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    acceptance_rate: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    recommended_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    advisor_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="recommendations")


class SharedChatSession(Base):
    """Junction granting an advisor read access to one chat session."""

    __tablename__ = "shared_chat_sessions"
    __table_args__ = (
        UniqueConstraint("advisor_id", "session_id", name="unique_advisor_session"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    advisor_id: Mapped[int] = mapped_column(
        ForeignKey("advisors.id", ondelete="CASCADE"), nullable=False
    )
    session_id: Mapped[int] = mapped_column(
        ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    advisor: Mapped["Advisor"] = relationship("Advisor", back_populates="shares")
    session: Mapped["ChatSession"] = relationship("ChatSession", back_populates="shares")


class MessageFeedback(Base):
    """Thumbs up/down on an AI message. Append-only log."""

    __tablename__ = "message_feedback"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message_id: Mapped[int] = mapped_column(
        ForeignKey("chat_messages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message_content: Mapped[str] = mapped_column(Text, nullable=False)
    is_positive: Mapped[bool] = mapped_column(Boolean, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
