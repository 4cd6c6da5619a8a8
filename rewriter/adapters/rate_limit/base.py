"""Rate limiter interfaces.

The HTTP layer depends on this abstraction only, never on the limiter's
internal mapping, so the storage can move to a shared store later.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of an admission decision.

    Attributes:
        allowed: Whether the request is admitted.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window expires.
        retry_after_seconds: Suggested wait in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def admit(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Decide whether a request from ``key`` is admitted and record it.

        Args:
            key: Client identifier.
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Forget all tracked clients."""
        raise NotImplementedError
