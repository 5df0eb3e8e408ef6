"""Uploader error hierarchy.

Upload failures are split into two families. ``PermanentUploadError`` means the
item will never succeed by waiting (missing file, rejected request) and is
reported to the queue service as failed. ``TransientUploadError`` covers
server-side and transport problems that may clear up, so the item is retried.
"""

from __future__ import annotations


class UploaderError(Exception):
    """Base class for all uploader errors."""


class NotAuthenticatedError(UploaderError):
    """The queue service rejected our credentials (HTTP 401)."""


class UploadError(UploaderError):
    """Base class for errors raised while uploading a single attachment."""


class PermanentUploadError(UploadError):
    """Upload cannot succeed on retry."""


class AttachmentNotFoundError(PermanentUploadError):
    """The attachment or its file could not be located in the host store."""


class FileReadError(PermanentUploadError):
    """The attachment file exists but could not be read."""


class FileTooLargeError(PermanentUploadError):
    """The attachment exceeds the configured upload size limit."""

    def __init__(self, size_bytes: int, limit_bytes: int):
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"File size {size_bytes / 1024 / 1024:.1f}MB exceeds "
            f"{limit_bytes / 1024 / 1024:.1f}MB limit"
        )


class UploadRejectedError(PermanentUploadError):
    """Object storage answered with a non-retryable status (4xx)."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Upload rejected with status {status_code}")


class TransientUploadError(UploadError):
    """Upload failed for a reason that may resolve on its own."""


class UploadServerError(TransientUploadError):
    """Object storage answered with a 5xx status."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Upload failed with server status {status_code}")


class UploadNetworkError(TransientUploadError):
    """Transport-level failure (connect, read, timeout)."""
