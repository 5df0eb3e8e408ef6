"""Monotonic upload progress from server snapshots and local completions."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from attachment_uploader.schemas.queue import QueueStatus
from attachment_uploader.schemas.uploads import UploadProgressInfo, UploadStatus

logger = logging.getLogger(__name__)


@dataclass
class LocalProgress:
    completed: int = 0
    total: int = 0


class ProgressTracker:
    """Merges queue snapshots and task completions into a non-decreasing count.

    Server snapshots and local task completions race each other, so every
    update takes the max of what has been seen. ``completed`` only resets when
    a new run begins.
    """

    def __init__(self) -> None:
        self._progress = LocalProgress()

    @property
    def completed(self) -> int:
        return self._progress.completed

    @property
    def total(self) -> int:
        return self._progress.total

    def reset(self) -> None:
        self._progress = LocalProgress()

    def fold(self, snapshot: QueueStatus) -> None:
        """Fold a server status snapshot into local progress."""
        self._progress.total = max(self._progress.total, snapshot.total)
        # completed and failed both mean "no longer pending"
        server_completed = snapshot.completed + snapshot.failed
        self._progress.completed = max(self._progress.completed, server_completed)

    def bump_completed(self) -> int:
        """Count one local completion ahead of the next server snapshot."""
        bumped = self._progress.completed + 1
        if self._progress.total:
            # a snapshot may already include this completion
            bumped = min(bumped, self._progress.total)
        self._progress.completed = max(self._progress.completed, bumped)
        return self._progress.completed

    def to_info(self, status: UploadStatus) -> UploadProgressInfo:
        return UploadProgressInfo(
            status=status,
            current=self._progress.completed,
            total=self._progress.total,
        )
