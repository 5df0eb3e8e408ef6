"""Business logic services: singleton registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from attachment_uploader.config import settings

if TYPE_CHECKING:
    from attachment_uploader.services.orchestrator import UploadOrchestrator
    from attachment_uploader.services.queue_service import QueueServiceClient
    from attachment_uploader.services.session import AuthSession

logger = logging.getLogger(__name__)

_session: AuthSession | None = None
_queue_service: QueueServiceClient | None = None
_orchestrator: UploadOrchestrator | None = None


async def init_services() -> None:
    """Create and wire up all service singletons."""
    global _session, _queue_service, _orchestrator

    from attachment_uploader.services.attachment_store import LocalAttachmentStore
    from attachment_uploader.services.orchestrator import UploadOrchestrator
    from attachment_uploader.services.queue_service import QueueServiceClient
    from attachment_uploader.services.session import AuthSession

    _session = AuthSession(access_token=settings.access_token, user_id=settings.user_id)
    _queue_service = QueueServiceClient(_session)
    store = LocalAttachmentStore()
    _orchestrator = UploadOrchestrator(_queue_service, store, _session)
    _orchestrator.set_status_callback(_log_status)
    logger.info("Upload services initialized (storage: %s)", store.storage_dir)

    if settings.autostart:
        if _session.is_authenticated:
            _orchestrator.start()
        else:
            logger.warning(
                "No access token configured (UPLOADER_ACCESS_TOKEN): autostart skipped"
            )


async def shutdown_services() -> None:
    """Drain in-flight uploads and release services."""
    global _orchestrator
    if _orchestrator:
        await _orchestrator.stop()
        _orchestrator = None


def _log_status(info) -> None:
    logger.debug("Upload status: %s %d/%d", info.status.value, info.current, info.total)


def get_session() -> AuthSession:
    if _session is None:
        raise RuntimeError("Services not initialized: call init_services() first")
    return _session


def get_queue_service() -> QueueServiceClient:
    if _queue_service is None:
        raise RuntimeError("Services not initialized: call init_services() first")
    return _queue_service


def get_orchestrator() -> UploadOrchestrator:
    if _orchestrator is None:
        raise RuntimeError("Services not initialized: call init_services() first")
    return _orchestrator
