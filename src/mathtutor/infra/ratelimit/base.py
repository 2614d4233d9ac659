"""Rate-limit primitives: decision type, exception and backend interface."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


class RateLimited(Exception):
    """Raised when a client exceeds its fixed-window request budget."""

    def __init__(self, message: str, *, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single ``check``."""

    allowed: bool
    retry_after: int = 0

    @classmethod
    def allow(cls) -> RateLimitDecision:
        return cls(allowed=True)

    @classmethod
    def reject(cls, retry_after: int) -> RateLimitDecision:
        return cls(allowed=False, retry_after=retry_after)


def retry_after_seconds(remaining: float) -> int:
    """Whole seconds until the window closes, at least 1."""
    return max(1, math.ceil(remaining))


class RateLimitBackend(ABC):
    """Interface for fixed-window counter stores."""

    name: str

    @abstractmethod
    async def check(self, client_key: str) -> RateLimitDecision:
        """Count one request for *client_key* and decide whether it may pass."""

    @abstractmethod
    def sweep(self) -> int:
        """Drop expired windows; return how many were removed."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release any resources held by the backend."""
