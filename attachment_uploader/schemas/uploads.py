"""Upload progress schemas: what the UI layer observes."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class UploadStatus(str, Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class UploadProgressInfo(BaseModel):
    """Progress event emitted to the status callback."""
    status: UploadStatus
    current: int = 0
    total: int = 0


class UploaderStatusResponse(BaseModel):
    """Current uploader state for the control API."""
    running: bool = False
    progress: UploadProgressInfo | None = None
    backoff_until: datetime | None = None


class RetryFailedResponse(BaseModel):
    reset: int = 0
    started: bool = False
