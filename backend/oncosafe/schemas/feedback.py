"""Pydantic schemas for feedback tickets."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from oncosafe.models.feedback import FeedbackStatus, FeedbackType


class FeedbackCreate(BaseModel):
    """Ticket submitted from the UI. Category and priority are derived."""

    type: FeedbackType = FeedbackType.GENERAL
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    page: str | None = None
    session_id: str | None = None
    context: dict[str, Any] | None = None


class FeedbackStatusUpdate(BaseModel):
    status: FeedbackStatus
    assignee: str | None = None
    sprint_target: str | None = None


class FeedbackResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    ticket_number: str | None = None
    user_id: str | None = None
    type: str
    category: str
    priority: str
    status: str
    title: str
    description: str | None = None
    labels: list[str] | None = None
    page: str | None = None
    session_id: str | None = None
    user_agent: str | None = None
    context: dict[str, Any] | None = None
    assignee: str | None = None
    sprint_target: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FeedbackSubmitResponse(BaseModel):
    """Result of a submission. ``persisted`` is false when no backend is available."""

    persisted: bool
    ticket_number: str
    type: str
    category: str
    priority: str
    labels: list[str]
    feedback: FeedbackResponse | None = None


class FeedbackListResponse(BaseModel):
    items: list[FeedbackResponse]
    total: int
    page: int
    limit: int
