"""Upload control routes: start/stop the orchestrator and read its progress."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, HTTPException, status

from attachment_uploader.exceptions import NotAuthenticatedError
from attachment_uploader.schemas.uploads import RetryFailedResponse, UploaderStatusResponse
from attachment_uploader.services import get_orchestrator, get_queue_service, get_session

logger = logging.getLogger(__name__)
router = APIRouter()


def _status_response() -> UploaderStatusResponse:
    orchestrator = get_orchestrator()
    return UploaderStatusResponse(
        running=orchestrator.is_running,
        progress=orchestrator.last_status,
        backoff_until=orchestrator.backoff_until,
    )


def _require_session() -> None:
    if not get_session().is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in: PUT /api/auth/session first",
        )


@router.get("/status", response_model=UploaderStatusResponse)
async def upload_status():
    """Running flag, last progress event and current backoff deadline."""
    return _status_response()


@router.post("/start", response_model=UploaderStatusResponse)
async def start_uploads():
    """Start processing the upload queue (no-op if already running)."""
    _require_session()
    get_orchestrator().start()
    return _status_response()


@router.post("/stop", response_model=UploaderStatusResponse)
async def stop_uploads():
    """Stop polling; returns once in-flight uploads have finished."""
    await get_orchestrator().stop()
    return _status_response()


@router.post("/retry-failed", response_model=RetryFailedResponse)
async def retry_failed_uploads():
    """Return permanently failed items to the queue and start uploading."""
    _require_session()
    try:
        count = await get_queue_service().reset_failed_uploads()
    except NotAuthenticatedError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Queue service rejected the session")
    except httpx.HTTPError as exc:
        logger.warning("Queue service unreachable for retry: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Queue service is not reachable.",
        )

    logger.info("Reset %d failed uploads", count)
    orchestrator = get_orchestrator()
    started = not orchestrator.is_running
    orchestrator.start()
    return RetryFailedResponse(reset=count, started=started)
