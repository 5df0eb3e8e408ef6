"""Host file store: resolves queue items to local attachment files."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pypdf import PdfReader

from attachment_uploader.config import settings
from attachment_uploader.exceptions import AttachmentNotFoundError, FileReadError
from attachment_uploader.schemas.queue import UploadQueueItem

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
PDF_MIME_TYPE = "application/pdf"


@dataclass
class AttachmentFile:
    path: Path
    mime_type: str
    size_bytes: int


class AttachmentStore(Protocol):
    async def resolve(self, item: UploadQueueItem) -> AttachmentFile: ...

    async def read_bytes(self, attachment: AttachmentFile) -> bytes: ...

    async def page_count(self, attachment: AttachmentFile) -> int | None: ...


class LocalAttachmentStore:
    """Zotero-style storage: ``<storage_dir>/<attachment_key>/<file>``."""

    def __init__(self, storage_dir: str | None = None):
        self._storage_dir = Path(storage_dir or settings.storage_dir)

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    async def resolve(self, item: UploadQueueItem) -> AttachmentFile:
        return await asyncio.to_thread(self._resolve_sync, item)

    def _resolve_sync(self, item: UploadQueueItem) -> AttachmentFile:
        try:
            return self._locate(item)
        except OSError as e:
            raise FileReadError(f"Cannot access attachment {item.attachment_key}: {e}") from e

    def _locate(self, item: UploadQueueItem) -> AttachmentFile:
        attachment_dir = self._storage_dir / item.attachment_key
        if not attachment_dir.is_dir():
            raise AttachmentNotFoundError(
                f"Attachment not found: {item.library_id}/{item.attachment_key}"
            )

        # Skip hidden sidecars such as .zotero-ft-cache
        candidates = sorted(
            p for p in attachment_dir.iterdir()
            if p.is_file() and not p.name.startswith(".")
        )
        if not candidates:
            raise AttachmentNotFoundError(
                f"File path not found for attachment: {item.attachment_key}"
            )

        path = candidates[0]
        mime_type, _ = mimetypes.guess_type(path.name)
        return AttachmentFile(
            path=path,
            mime_type=mime_type or DEFAULT_MIME_TYPE,
            size_bytes=path.stat().st_size,
        )

    async def read_bytes(self, attachment: AttachmentFile) -> bytes:
        try:
            return await asyncio.to_thread(attachment.path.read_bytes)
        except OSError as e:
            raise FileReadError(f"Error reading file {attachment.path}: {e}") from e

    async def page_count(self, attachment: AttachmentFile) -> int | None:
        """Page count for PDFs, used only for reporting. None if unavailable."""
        if attachment.mime_type != PDF_MIME_TYPE:
            return None
        try:
            return await asyncio.to_thread(_pdf_total_pages, attachment.path)
        except Exception as e:
            logger.debug("Could not count pages of %s: %s", attachment.path, e)
            return None


def _pdf_total_pages(pdf_path: Path) -> int:
    reader = PdfReader(str(pdf_path))
    return len(reader.pages)
