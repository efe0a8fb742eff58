"""
audioscribe/deadline.py
========================
Request Deadline — audioscribe

A caller-supplied time budget shared by every blocking step of one
pipeline invocation (toolkit subprocesses, transcription requests).
Each step receives at most the remaining budget; once it is spent the
next ``check`` raises DeadlineExceededError.
"""

import time

from audioscribe.errors import DeadlineExceededError


class Deadline:
    """Monotonic-clock deadline. ``timeout=None`` means no limit."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout
        self._expires_at = None if timeout is None else time.monotonic() + timeout

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self, stage: str) -> None:
        if self.expired():
            raise DeadlineExceededError(
                f"request deadline of {self.timeout:.1f}s exceeded before {stage}"
            )

    def budget(self, cap: float | None = None) -> float | None:
        """Remaining time, capped at *cap* when both are set."""
        remaining = self.remaining()
        if remaining is None:
            return cap
        if cap is None:
            return remaining
        return min(remaining, cap)
