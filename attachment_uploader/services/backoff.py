"""Exponential backoff for the upload run loop."""

from __future__ import annotations

from attachment_uploader.config import settings


class Backoff:
    """Doubling wait with a ceiling; ``reset()`` restores the base."""

    FACTOR = 2

    def __init__(self, base: float, cap: float):
        self.base = base
        self.cap = cap
        self._current = base

    @property
    def current(self) -> float:
        return self._current

    def next(self) -> float:
        """Return the current wait and double the stored value up to the cap."""
        delay = self._current
        self._current = min(self._current * self.FACTOR, self.cap)
        return delay

    def reset(self) -> None:
        self._current = self.base


class BackoffController:
    """Independent backoffs for "queue had no work" and "an operation failed"."""

    def __init__(
        self,
        idle_base: float | None = None,
        error_base: float | None = None,
        cap: float | None = None,
    ):
        cap = cap if cap is not None else settings.backoff_max_seconds
        self.idle = Backoff(
            idle_base if idle_base is not None else settings.idle_backoff_base_seconds, cap,
        )
        self.error = Backoff(
            error_base if error_base is not None else settings.error_backoff_base_seconds, cap,
        )

    def reset_all(self) -> None:
        self.idle.reset()
        self.error.reset()
