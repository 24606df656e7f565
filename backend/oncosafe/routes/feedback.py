"""Feedback ticket API routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from oncosafe.dependencies import get_storage, get_ticket_numberer
from oncosafe.models.feedback import FeedbackPriority, FeedbackStatus, FeedbackType
from oncosafe.schemas.feedback import (
    FeedbackCreate,
    FeedbackListResponse,
    FeedbackResponse,
    FeedbackStatusUpdate,
    FeedbackSubmitResponse,
)
from oncosafe.services.feedback_classifier import TicketNumberer, classify_feedback
from oncosafe.storage import StorageMode, StorageService

router = APIRouter(prefix="/feedback", tags=["feedback"])

MAX_PAGE_SIZE = 100


def _unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Persistence unavailable",
    )


@router.post("", response_model=FeedbackSubmitResponse)
async def submit_feedback(
    body: FeedbackCreate,
    request: Request,
    user_id: str | None = None,
    store: StorageService = Depends(get_storage),
    numberer: TicketNumberer = Depends(get_ticket_numberer),
) -> dict:
    """Classify and store a ticket.

    The classification is returned even when nothing could be stored;
    ``persisted`` tells the caller which case applies.
    """
    classification = classify_feedback(body.type, body.title, body.description)
    ticket_number = numberer.next()

    record = body.model_dump(mode="json", exclude_none=True)
    record.update(
        user_id=user_id,
        ticket_number=ticket_number,
        category=classification.category.value,
        priority=classification.priority.value,
        status=FeedbackStatus.NEW.value,
        labels=classification.labels,
        user_agent=request.headers.get("user-agent"),
    )
    record["context"] = {**(body.context or {}), "estimated_effort": classification.estimated_effort}

    stored = await store.insert_feedback(record)
    return {
        "persisted": stored is not None,
        "ticket_number": ticket_number,
        "type": classification.type.value,
        "category": classification.category.value,
        "priority": classification.priority.value,
        "labels": classification.labels,
        "feedback": stored,
    }


@router.get("", response_model=FeedbackListResponse)
async def list_feedback(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    status_filter: FeedbackStatus | None = Query(None, alias="status"),
    priority: FeedbackPriority | None = None,
    type: FeedbackType | None = None,
    store: StorageService = Depends(get_storage),
) -> dict:
    """Page through tickets, newest first.

    Raises:
        HTTPException: 503 when no backend can answer.
    """
    result = await store.list_feedback(
        page=page,
        limit=min(limit, MAX_PAGE_SIZE),
        status=status_filter.value if status_filter else None,
        priority=priority.value if priority else None,
        type=type.value if type else None,
    )
    if result is None:
        raise _unavailable()
    return result


@router.patch("/{feedback_id}/status", response_model=FeedbackResponse)
async def update_feedback_status(
    feedback_id: str,
    body: FeedbackStatusUpdate,
    store: StorageService = Depends(get_storage),
) -> dict:
    updated = await store.update_feedback_status(
        feedback_id,
        body.status.value,
        assignee=body.assignee,
        sprint_target=body.sprint_target,
    )
    if updated is None:
        if store.mode is StorageMode.NOOP:
            raise _unavailable()
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Feedback not found",
        )
    return updated
