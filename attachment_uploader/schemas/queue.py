"""Upload queue schemas: wire format of the remote queue service."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UploadQueueItem(BaseModel):
    """One unit of upload work claimed from the server queue."""
    model_config = ConfigDict(extra="ignore")

    id: str
    library_id: int
    attachment_key: str
    upload_url: str
    file_hash: str = ""
    attempts: int = Field(default=0, ge=0)  # server-authoritative

    # Informational only, never used for control flow
    file_id: str | None = None
    storage_path: str | None = None
    status: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class QueueStatus(BaseModel):
    """Aggregate queue counts. Not monotonic across snapshots."""
    model_config = ConfigDict(extra="ignore")

    pending: int = Field(default=0, ge=0)
    in_progress: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class PopQueueResponse(BaseModel):
    """Items claimed by a pop call plus the status after claiming."""
    items: list[UploadQueueItem] = []
    status: QueueStatus = QueueStatus()


class UploadOutcome(str, Enum):
    """How a single upload task terminated."""
    COMPLETED = "completed"
    FAILED = "failed"
    RESET = "reset"
    ERROR = "error"  # outcome could not be reported to the queue service
