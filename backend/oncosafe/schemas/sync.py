"""Pydantic schemas for sync log entries."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from oncosafe.models.sync_log import SyncStatus


class SyncLogStart(BaseModel):
    """Entry written when a sync run begins."""

    sync_type: str = Field(min_length=1, description="rxnorm, cpic, fda, trials, ...")
    status: SyncStatus = SyncStatus.STARTED
    records_processed: int = 0
    records_inserted: int = 0
    records_updated: int = 0
    errors: list[Any] | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    triggered_by: str | None = Field(default=None, description="manual, scheduled, api")


class SyncLogUpdate(BaseModel):
    """Completion fields for an existing entry."""

    status: SyncStatus
    records_processed: int | None = None
    records_inserted: int | None = None
    records_updated: int | None = None
    errors: list[Any] | None = None
    completed_at: datetime | None = None
