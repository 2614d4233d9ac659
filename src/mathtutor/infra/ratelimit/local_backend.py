"""In-process fixed-window counter table."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

from .base import RateLimitBackend, RateLimitDecision, retry_after_seconds


@dataclass
class RateLimitRecord:
    """Request count of one client inside its current window."""

    client_key: str
    count: int
    window_start: float


class LocalRateLimitBackend(RateLimitBackend):
    """Fixed-window limiter backed by a plain ``dict``.

    ``check_now`` has no suspension point, so every mutation happens
    atomically with respect to the asyncio event loop.  The table is
    per-process: with several worker processes each one enforces its own
    independent budget.
    """

    name = "local"

    def __init__(
        self,
        *,
        window: timedelta,
        max_requests: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window.total_seconds()
        self._max_requests = max_requests
        self._clock = clock
        self._records: dict[str, RateLimitRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def get(self, client_key: str) -> RateLimitRecord | None:
        """Return the live record for *client_key*; expired counts as absent."""
        record = self._records.get(client_key)
        if record is None or self._expired(record, self._clock()):
            return None
        return record

    async def check(self, client_key: str) -> RateLimitDecision:
        return self.check_now(client_key)

    def check_now(self, client_key: str) -> RateLimitDecision:
        now = self._clock()
        record = self._records.get(client_key)

        if record is None or self._expired(record, now):
            self._records[client_key] = RateLimitRecord(
                client_key=client_key, count=1, window_start=now
            )
            return RateLimitDecision.allow()

        if record.count >= self._max_requests:
            return RateLimitDecision.reject(
                retry_after_seconds(record.window_start + self._window - now)
            )

        record.count += 1
        return RateLimitDecision.allow()

    def sweep(self) -> int:
        now = self._clock()
        expired = [k for k, r in self._records.items() if self._expired(r, now)]
        for key in expired:
            del self._records[key]
        return len(expired)

    async def aclose(self) -> None:
        self._records.clear()

    def _expired(self, record: RateLimitRecord, now: float) -> bool:
        return now - record.window_start > self._window
