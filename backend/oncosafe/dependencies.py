"""FastAPI dependencies for objects built during application startup."""

from fastapi import Request

from oncosafe.services.feedback_classifier import TicketNumberer
from oncosafe.storage import StorageService


def get_storage(request: Request) -> StorageService:
    """The store chosen at startup (see ``create_storage``)."""
    return request.app.state.storage


def get_ticket_numberer(request: Request) -> TicketNumberer:
    return request.app.state.ticket_numberer
