"""Feedback tickets submitted from the application UI."""

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from oncosafe.database import Base


class FeedbackType(str, enum.Enum):
    BUG = "bug"
    FEATURE_REQUEST = "feature_request"
    IMPROVEMENT = "improvement"
    PERFORMANCE_ISSUE = "performance_issue"
    SECURITY_CONCERN = "security_concern"
    INTEGRATION_ISSUE = "integration_issue"
    USABILITY_ISSUE = "usability_issue"
    GENERAL = "general"


class FeedbackCategory(str, enum.Enum):
    UI_UX = "ui_ux"
    CLINICAL_DECISION_SUPPORT = "clinical_decision_support"
    PERFORMANCE = "performance"
    SECURITY = "security"
    INTEGRATION = "integration"
    GENERAL = "general"


class FeedbackPriority(str, enum.Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FeedbackStatus(str, enum.Enum):
    """Ticket workflow states, roughly in board order."""

    NEW = "new"
    TRIAGED = "triaged"
    IN_BACKLOG = "in_backlog"
    IN_SPRINT = "in_sprint"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    DONE = "done"
    CLOSED = "closed"
    DUPLICATE = "duplicate"
    WONT_FIX = "wont_fix"


class Feedback(Base):
    """User-submitted ticket.

    ``status``, ``assignee`` and ``sprint_target`` are triage fields and are
    updated independently of the submitted content.
    """

    __tablename__ = "feedback"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True, index=True)
    ticket_number: Mapped[str | None] = mapped_column(String(32), nullable=True)

    type: Mapped[str] = mapped_column(String(40), nullable=False, default=FeedbackType.GENERAL.value)
    category: Mapped[str] = mapped_column(String(40), nullable=False, default=FeedbackCategory.GENERAL.value)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=FeedbackPriority.MEDIUM.value)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=FeedbackStatus.NEW.value)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    labels: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)

    # Where the ticket came from
    page: Mapped[str | None] = mapped_column(Text, nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    context: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    # Triage
    assignee: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sprint_target: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
    )

    __table_args__ = (
        Index("idx_feedback_status_priority", "status", "priority"),
        Index("idx_feedback_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Feedback(id={self.id}, status={self.status}, title={self.title[:30]}...)>"
