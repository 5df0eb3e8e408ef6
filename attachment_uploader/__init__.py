"""Attachment uploader: moves local file attachments to remote object storage."""

__version__ = "0.1.0"
