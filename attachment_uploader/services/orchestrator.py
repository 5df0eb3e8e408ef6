"""Upload orchestrator: polls the server queue and uploads in bounded batches."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Callable

from attachment_uploader.config import settings
from attachment_uploader.exceptions import NotAuthenticatedError
from attachment_uploader.schemas.queue import UploadQueueItem
from attachment_uploader.schemas.uploads import UploadProgressInfo, UploadStatus
from attachment_uploader.services.backoff import BackoffController
from attachment_uploader.services.concurrency import ConcurrencyScheduler
from attachment_uploader.services.progress_tracker import ProgressTracker
from attachment_uploader.services.upload_task import UploadTask

if TYPE_CHECKING:
    from attachment_uploader.services.attachment_store import AttachmentStore
    from attachment_uploader.services.queue_service import QueueServiceClient
    from attachment_uploader.services.session import AuthSession

logger = logging.getLogger(__name__)

StatusCallback = Callable[[UploadProgressInfo], None]


class UploadOrchestrator:
    """Owns the poll -> submit -> drain loop and the status stream.

    One control task drives the loop. Parallelism only happens inside the
    scheduler, and the next batch is never popped before the previous one
    has drained, so at most ``max_concurrent`` uploads are in flight.
    """

    def __init__(
        self,
        queue: QueueServiceClient,
        store: AttachmentStore,
        session: AuthSession,
        *,
        max_concurrent: int | None = None,
        backoff: BackoffController | None = None,
        max_idle_polls: int | None = None,
        max_consecutive_errors: int | None = None,
        error_pause: float | None = None,
        task_options: dict[str, Any] | None = None,
    ):
        self._queue = queue
        self._store = store
        self._session = session
        self._max_concurrent = max_concurrent or settings.max_concurrent_uploads
        self._backoff = backoff or BackoffController()
        self._max_idle_polls = max_idle_polls or settings.max_idle_polls
        self._max_consecutive_errors = (
            max_consecutive_errors or settings.max_consecutive_errors
        )
        self._error_pause = (
            error_pause if error_pause is not None else settings.error_pause_seconds
        )
        self._task_options = task_options or {}

        self._progress = ProgressTracker()
        self._scheduler: ConcurrencyScheduler | None = None
        self._task: asyncio.Task | None = None
        self._running = False
        self._stopping = False
        self._stop_event = asyncio.Event()
        self._status_callback: StatusCallback | None = None
        self._last_status: UploadProgressInfo | None = None
        self._backoff_until: datetime | None = None
        self._consecutive_errors = 0
        self._idle_polls = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_status(self) -> UploadProgressInfo | None:
        return self._last_status

    @property
    def backoff_until(self) -> datetime | None:
        """When the current backoff pause ends, or None if not pausing."""
        return self._backoff_until

    @property
    def progress(self) -> ProgressTracker:
        return self._progress

    @property
    def scheduler(self) -> ConcurrencyScheduler | None:
        return self._scheduler

    def set_status_callback(self, callback: StatusCallback | None) -> None:
        self._status_callback = callback

    def start(self) -> None:
        """Start the upload loop in the background.

        Ignored while a run is active or while a previous run is still
        draining its in-flight uploads.
        """
        if self._running:
            logger.info("Uploader already running, start call ignored")
            return
        if self._stopping:
            logger.info("Uploader is still draining, start call ignored")
            return
        self._running = True
        self._stop_event = asyncio.Event()
        self._progress.reset()
        self._backoff.reset_all()
        self._consecutive_errors = 0
        self._idle_polls = 0
        self._scheduler = ConcurrencyScheduler(self._max_concurrent)
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Uploader started (max %d concurrent uploads)", self._max_concurrent)

    async def stop(self) -> None:
        """Stop polling and wait for in-flight uploads to finish."""
        if not self._running:
            return
        self._running = False
        self._stopping = True
        self._stop_event.set()
        task, scheduler = self._task, self._scheduler
        logger.info("Stopping uploader")

        try:
            if scheduler:
                await scheduler.on_idle()
            if task:
                await task
        except Exception as e:
            logger.error("Error while waiting for uploads to drain: %s", e)
            self._emit(UploadStatus.FAILED)
            return
        finally:
            self._stopping = False
            if self._task is task:
                self._task = None

        total = self._progress.total
        self._publish(UploadProgressInfo(status=UploadStatus.COMPLETED, current=total, total=total))
        logger.info("Uploader stopped")

    async def _run_loop(self) -> None:
        """Main upload loop."""
        try:
            while self._running:
                if not self._session.is_authenticated:
                    logger.info("Not authenticated, stopping upload loop")
                    self._emit(UploadStatus.IDLE)
                    break

                try:
                    if not await self._iterate():
                        break
                except NotAuthenticatedError as e:
                    logger.info("Authentication lost, stopping upload loop: %s", e)
                    self._emit(UploadStatus.IDLE)
                    break
                except Exception as e:
                    self._consecutive_errors += 1
                    logger.error(
                        "Upload loop error (%d consecutive): %s", self._consecutive_errors, e,
                    )
                    self._emit(UploadStatus.FAILED)
        finally:
            self._running = False
            logger.info("Upload loop finished")

    async def _iterate(self) -> bool:
        """One poll/submit/drain cycle. Returns False when the loop should exit."""
        if self._consecutive_errors:
            if self._consecutive_errors >= self._max_consecutive_errors:
                logger.warning(
                    "%d consecutive errors, pausing uploads for %.0fs",
                    self._consecutive_errors, self._error_pause,
                )
                await self._pause(self._error_pause)
                self._consecutive_errors = 0
                self._backoff.error.reset()
            else:
                await self._pause(self._backoff.error.next())
            if not self._running:
                return False

        response = await self._queue.pop_queue_items(self._max_concurrent)
        items, status = response.items, response.status
        logger.info("Popped %d items from the queue. Status: %s", len(items), status.model_dump())
        self._consecutive_errors = 0

        self._progress.fold(status)
        self._emit(UploadStatus.IN_PROGRESS)

        if not items:
            if status.pending == 0 and status.in_progress == 0:
                self._backoff.reset_all()
                self._idle_polls = 0
                logger.info("Upload queue is empty, all uploads processed")
                self._emit(UploadStatus.COMPLETED)
                return False

            # Work exists server-side but another client holds it
            self._idle_polls += 1
            if self._idle_polls >= self._max_idle_polls:
                logger.info(
                    "No claimable items after %d polls, stopping upload loop", self._idle_polls,
                )
                self._emit(UploadStatus.IDLE)
                return False
            await self._pause(self._backoff.idle.next())
            return True

        self._idle_polls = 0
        self._backoff.reset_all()

        scheduler = self._scheduler
        if scheduler is None:
            raise RuntimeError("Upload loop running without a scheduler")
        for item in items:
            scheduler.submit(self._make_task(item).run)
        await scheduler.on_idle()
        return True

    def _make_task(self, item: UploadQueueItem) -> UploadTask:
        return UploadTask(
            item,
            self._queue,
            self._store,
            on_success=self._on_upload_completed,
            **self._task_options,
        )

    def _on_upload_completed(self) -> None:
        self._progress.bump_completed()
        self._emit(UploadStatus.IN_PROGRESS)

    async def _pause(self, delay: float) -> None:
        """Sleep for ``delay`` seconds, returning early if stop() is called."""
        self._backoff_until = datetime.now(timezone.utc) + timedelta(seconds=delay)
        logger.debug("Upload loop backing off for %.1fs", delay)
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
        finally:
            self._backoff_until = None

    def _emit(self, status: UploadStatus) -> None:
        self._publish(self._progress.to_info(status))

    def _publish(self, info: UploadProgressInfo) -> None:
        self._last_status = info
        if self._status_callback is None:
            return
        try:
            self._status_callback(info)
        except Exception as e:
            logger.error("Status callback failed: %s", e)
