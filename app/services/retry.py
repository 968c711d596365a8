"""Retry policy for per-record coupon creation.

Attempts are bounded; waits between attempts grow exponentially and are
capped by a ceiling. The policy only computes delays, the caller owns the loop
so it can report each retry as it happens.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.config import BulkUploadSettings


@dataclass(frozen=True)
class BackoffPolicy:
    """Bounded exponential backoff.

    Attributes:
        max_attempts: Total attempts per record (initial + retries).
        initial_delay: Wait after the first failed attempt, in seconds.
        multiplier: Growth factor applied per further failed attempt.
        max_delay: Ceiling for any single wait, in seconds.
    """

    max_attempts: int = 2
    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 10.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("Backoff delays cannot be negative.")

    @classmethod
    def from_settings(cls, settings: BulkUploadSettings) -> "BackoffPolicy":
        return cls(
            max_attempts=settings.max_attempts,
            initial_delay=settings.backoff_initial_seconds,
            multiplier=settings.backoff_multiplier,
            max_delay=settings.backoff_max_seconds,
        )

    def delay_after(self, failed_attempt: int) -> float:
        """Return the wait before the attempt that follows ``failed_attempt`` (1-based)."""

        if failed_attempt < 1:
            raise ValueError("failed_attempt is 1-based.")
        return min(self.initial_delay * (self.multiplier ** (failed_attempt - 1)), self.max_delay)

    def should_retry(self, failed_attempt: int) -> bool:
        return failed_attempt < self.max_attempts
