"""Single-item upload: resolve, read, PUT with retry, report the outcome."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Callable

import httpx

from attachment_uploader.config import settings
from attachment_uploader.exceptions import (
    FileTooLargeError,
    PermanentUploadError,
    TransientUploadError,
    UploadNetworkError,
    UploadRejectedError,
    UploadServerError,
)
from attachment_uploader.schemas.queue import UploadOutcome, UploadQueueItem

if TYPE_CHECKING:
    from attachment_uploader.services.attachment_store import AttachmentStore
    from attachment_uploader.services.queue_service import QueueServiceClient

logger = logging.getLogger(__name__)


class UploadTask:
    """Uploads one queue item and terminates it on the server.

    Outcomes:
      * PUT succeeded -> ``complete_upload`` and ``on_success``
      * permanent error, or transient error once the server-side attempt
        budget is spent -> ``mark_upload_as_failed``
      * transient error with attempts left -> ``reset_upload``
    """

    def __init__(
        self,
        item: UploadQueueItem,
        queue: QueueServiceClient,
        store: AttachmentStore,
        on_success: Callable[[], None] | None = None,
        *,
        max_attempts: int | None = None,
        retry_delay: float | None = None,
        max_server_attempts: int | None = None,
        timeout: float | None = None,
        max_file_size: int | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._item = item
        self._queue = queue
        self._store = store
        self._on_success = on_success
        self._max_attempts = (
            max_attempts if max_attempts is not None else settings.upload_max_attempts
        )
        self._retry_delay = (
            retry_delay if retry_delay is not None else settings.upload_retry_delay_seconds
        )
        self._max_server_attempts = max_server_attempts or settings.max_server_attempts
        self._timeout = timeout or settings.upload_timeout_seconds
        self._max_file_size = max_file_size or settings.max_file_size_bytes
        self._sleep = sleep

    @property
    def item(self) -> UploadQueueItem:
        return self._item

    async def run(self) -> UploadOutcome:
        """Run the upload. Never raises."""
        item = self._item
        logger.info(
            "Uploading attachment %s (queue id %s, attempts=%d)",
            item.attachment_key, item.id, item.attempts,
        )
        try:
            attachment = await self._store.resolve(item)
            if attachment.size_bytes > self._max_file_size:
                raise FileTooLargeError(attachment.size_bytes, self._max_file_size)
            data = await self._store.read_bytes(attachment)
            page_count = await self._store.page_count(attachment)
            await self._put(data, attachment.mime_type)
        except PermanentUploadError as e:
            logger.error("Permanent failure for %s: %s", item.attachment_key, e)
            return await self._mark_failed()
        except TransientUploadError as e:
            return await self._retry_later(e)
        except Exception as e:
            logger.exception("Unexpected error uploading %s", item.attachment_key)
            return await self._retry_later(e)

        try:
            await self._queue.complete_upload(item, page_count)
        except Exception as e:
            logger.error("Error marking %s as completed: %s", item.attachment_key, e)
            return UploadOutcome.ERROR

        logger.info(
            "Uploaded attachment %s (page count: %s)", item.attachment_key, page_count,
        )
        if self._on_success:
            self._on_success()
        return UploadOutcome.COMPLETED

    async def _put(self, data: bytes, mime_type: str) -> None:
        """PUT the bytes, retrying 5xx and transport errors with linear backoff."""
        error: TransientUploadError = UploadNetworkError("no upload attempt was made")
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            for attempt in range(1, self._max_attempts + 1):
                try:
                    resp = await client.put(
                        self._item.upload_url,
                        content=data,
                        headers={"Content-Type": mime_type},
                    )
                except (httpx.TransportError, OSError) as e:
                    error = UploadNetworkError(str(e) or type(e).__name__)
                else:
                    if 200 <= resp.status_code < 300:
                        return
                    if resp.status_code < 500:
                        raise UploadRejectedError(resp.status_code)
                    error = UploadServerError(resp.status_code)

                if attempt < self._max_attempts:
                    delay = self._retry_delay * attempt
                    logger.warning(
                        "Upload of %s failed on attempt %d/%d (%s), retrying in %.1fs",
                        self._item.attachment_key, attempt, self._max_attempts, error, delay,
                    )
                    await self._sleep(delay)

        raise error

    async def _retry_later(self, error: Exception) -> UploadOutcome:
        item = self._item
        if item.attempts >= self._max_server_attempts:
            logger.error(
                "Max upload attempts reached for %s (%s), marking permanently failed",
                item.attachment_key, error,
            )
            return await self._mark_failed()

        logger.warning(
            "Upload of %s failed (%s), returning it to the queue", item.attachment_key, error,
        )
        try:
            await self._queue.reset_upload(item.id)
        except Exception as e:
            logger.error("Error resetting failed upload %s: %s", item.attachment_key, e)
            return UploadOutcome.ERROR
        return UploadOutcome.RESET

    async def _mark_failed(self) -> UploadOutcome:
        try:
            await self._queue.mark_upload_as_failed(self._item.id, self._item.file_hash)
        except Exception as e:
            logger.error(
                "Failed to mark %s as failed: %s", self._item.attachment_key, e,
            )
            return UploadOutcome.ERROR
        return UploadOutcome.FAILED
