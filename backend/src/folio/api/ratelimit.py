"""Rate limiting for the chat endpoint.

Fixed-window counters on top of the ``limits`` library: each client may send
``RATE_LIMIT_CHAT`` requests per window, the window starting with the
client's first request. In-memory storage expires stale windows by itself;
any storage URI ``limits`` understands (e.g. ``redis://``) can be configured
instead.
"""

import math
from dataclasses import dataclass

from fastapi import Request
from limits import RateLimitItem, parse
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter

from folio.observability.metrics import RATE_LIMITED
from folio.shared.logging import get_logger

logger = get_logger(__name__)

RATE_LIMIT_CHAT = "20/minute"
RATE_LIMIT_NAMESPACE = "chat"
UNKNOWN_CLIENT = "unknown"


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """Outcome of one rate-limit check. ``reset_at`` is epoch seconds."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float


class ChatRateLimiter:
    """Per-client fixed-window request counter."""

    def __init__(self, limit: str = RATE_LIMIT_CHAT, storage_uri: str = "memory://") -> None:
        self.item: RateLimitItem = parse(limit)
        self.storage = storage_from_string(storage_uri)
        self.strategy = FixedWindowRateLimiter(self.storage)

    @property
    def limit(self) -> int:
        return self.item.amount

    def check(self, identifier: str) -> RateLimitDecision:
        """Count one request for ``identifier`` and decide whether it may proceed.

        Denied requests still count toward the current window.
        """
        allowed = self.strategy.hit(self.item, RATE_LIMIT_NAMESPACE, identifier)
        stats = self.strategy.get_window_stats(self.item, RATE_LIMIT_NAMESPACE, identifier)
        decision = RateLimitDecision(
            allowed=allowed,
            limit=self.item.amount,
            remaining=max(0, stats.remaining),
            reset_at=stats.reset_time,
        )
        if not allowed:
            RATE_LIMITED.inc()
            logger.warning(
                "rate_limit_exceeded",
                client=identifier,
                limit=decision.limit,
                reset_at=decision.reset_at,
            )
        return decision

    def reset(self) -> None:
        """Drop every counter."""
        self.storage.reset()


def get_client_identifier(request: Request) -> str:
    """Client key: first X-Forwarded-For hop, X-Real-IP, socket peer, or "unknown"."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(math.ceil(decision.reset_at)),
    }
