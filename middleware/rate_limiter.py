"""
Fixed-window rate limiting for contact submissions using limits.
Protects the notification channel against floods from a single client.
"""
import math
import time
from typing import Optional

from fastapi import Request
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter

from constants import DEFAULT_RATE_LIMIT_DURATION, DEFAULT_RATE_LIMIT_POINTS, UNKNOWN_CLIENT_KEY
from utils.logger import get_logger

logger = get_logger(__name__)


class ContactRateLimiter:
    """
    Per-client fixed-window counter.

    Every call counts against the window, denied ones included. A key's window
    starts on its first call and the counter resets once it elapses. State lives
    in the given storage (process memory by default) and is lost on restart.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_RATE_LIMIT_POINTS,
        window_seconds: int = DEFAULT_RATE_LIMIT_DURATION,
        storage: Optional[Storage] = None,
    ):
        self.capacity = capacity
        self.window_seconds = window_seconds
        self.storage = storage or MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self.storage)
        self._item = RateLimitItemPerSecond(capacity, window_seconds, namespace="CONTACT")

    def check(self, client_key: str) -> bool:
        """Count one call for client_key and return True if it is allowed."""
        allowed = self._strategy.hit(self._item, client_key)
        if not allowed:
            logger.warning(f"Rate limit exceeded for client: {client_key}")
        return allowed

    def retry_after(self, client_key: str) -> int:
        """Seconds until client_key's current window resets (at least 1)."""
        stats = self._strategy.get_window_stats(self._item, client_key)
        return max(1, math.ceil(stats.reset_time - time.time()))

    def reset(self) -> None:
        self.storage.reset()


def get_client_key(request: Request, trust_proxy: bool = False, proxy_hops: int = 1) -> str:
    """
    Get the client identity used as the rate-limit key.

    X-Forwarded-For is only honoured when the service runs behind a trusted
    proxy. Each proxy appends the peer it saw on the right, so the client
    address is proxy_hops entries from the right; anything further left was
    written by the client and is ignored. Requests with no obtainable address
    share the "unknown" bucket.
    """
    if trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For", "")
        hops = [entry.strip() for entry in forwarded.split(",") if entry.strip()]
        if hops:
            return hops[-proxy_hops] if len(hops) >= proxy_hops else hops[0]

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT_KEY
