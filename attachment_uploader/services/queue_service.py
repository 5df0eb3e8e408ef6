"""Remote upload queue REST client."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from attachment_uploader.config import settings
from attachment_uploader.exceptions import NotAuthenticatedError
from attachment_uploader.schemas.queue import PopQueueResponse, QueueStatus, UploadQueueItem
from attachment_uploader.services.session import AuthSession

logger = logging.getLogger(__name__)


class QueueServiceClient:
    """Claims, completes, fails and resets server-side upload queue items."""

    def __init__(
        self,
        session: AuthSession,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self._session = session
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.request_timeout_seconds

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Authenticated request. A 401 signs the session out."""
        if not self._session.is_authenticated:
            raise NotAuthenticatedError("No access token available")

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.request(
                method, f"{self._base_url}{path}",
                headers=self._session.auth_headers(), **kwargs,
            )
            if resp.status_code == 401:
                self._session.sign_out()
                raise NotAuthenticatedError(f"{method} {path} rejected with 401")
            resp.raise_for_status()
            if not resp.content:
                return None
            return resp.json()

    async def pop_queue_items(self, limit: int) -> PopQueueResponse:
        """Atomically claim up to ``limit`` pending items."""
        data = await self._request("POST", "/queue/pop", json={"limit": limit})
        return PopQueueResponse.model_validate(data or {})

    async def complete_upload(self, item: UploadQueueItem, page_count: int | None) -> None:
        await self._request(
            "POST", "/queue/complete",
            json={
                "queue_id": item.id,
                "file_hash": item.file_hash,
                "page_count": page_count,
            },
        )

    async def mark_upload_as_failed(self, item_id: str, file_hash: str) -> None:
        await self._request(
            "POST", "/queue/fail",
            json={"queue_id": item_id, "file_hash": file_hash},
        )

    async def reset_upload(self, item_id: str) -> None:
        """Return an item to the pending pool (server bumps its attempts)."""
        await self._request("POST", "/queue/reset", json={"queue_id": item_id})

    async def get_queue_status(self) -> QueueStatus:
        data = await self._request("GET", "/queue/status")
        return QueueStatus.model_validate(data or {})

    async def reset_failed_uploads(self) -> int:
        """Move every failed item back to pending. Returns the number reset."""
        data = await self._request("POST", "/queue/reset-failed")
        if isinstance(data, dict):
            return int(data.get("reset", 0))
        if isinstance(data, list):
            return len(data)
        return int(data or 0)
