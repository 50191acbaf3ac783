from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from starlette.requests import Request

logger = logging.getLogger(__name__)


@dataclass
class WindowEntry:
    count: int
    window_start: float
    last_request: float
    success_count: int = 0
    failed_count: int = 0


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: Optional[int] = None


class FixedWindowRateLimiter:
    """
    Fixed window counter:
      at most `max_requests` per `window_seconds` per key.

    Keyed by "<name>:<identifier>" (identifier is usually the client IP).
    Process-local: resets on restart and is not shared between instances.
    """

    def __init__(
        self,
        name: str,
        window_seconds: float,
        max_requests: int,
        *,
        skip_successful: bool = False,
        skip_failed: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        self.name = name
        self.window_seconds = float(window_seconds)
        self.max_requests = int(max_requests)
        self.skip_successful = skip_successful
        self.skip_failed = skip_failed
        self._clock = clock
        self._entries: Dict[str, WindowEntry] = {}

    def _key(self, identifier: str) -> str:
        return f"{self.name}:{identifier}"

    def check(self, identifier: str) -> RateLimitResult:
        now = self._clock()
        key = self._key(identifier)
        entry = self._entries.get(key)

        # first request, or previous window expired -> open a new window
        if entry is None or now - entry.window_start >= self.window_seconds:
            self._entries[key] = WindowEntry(count=1, window_start=now, last_request=now)
            return RateLimitResult(
                allowed=True,
                limit=self.max_requests,
                remaining=self.max_requests - 1,
                reset_at=now + self.window_seconds,
            )

        reset_at = entry.window_start + self.window_seconds

        if entry.count >= self.max_requests:
            return RateLimitResult(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                reset_at=reset_at,
                retry_after=max(1, math.ceil(reset_at - now)),
            )

        entry.count += 1
        entry.last_request = now
        return RateLimitResult(
            allowed=True,
            limit=self.max_requests,
            remaining=self.max_requests - entry.count,
            reset_at=reset_at,
        )

    def record_result(self, identifier: str, success: bool) -> None:
        """
        Tracks outcome counters. With skip_successful, a successful request
        gives its slot back (used by the auth limiter: only failures count).
        """
        entry = self._entries.get(self._key(identifier))
        if entry is None:
            return

        if success:
            if self.skip_successful:
                entry.count = max(0, entry.count - 1)
                return
            entry.success_count += 1
        else:
            if self.skip_failed:
                entry.count = max(0, entry.count - 1)
                return
            entry.failed_count += 1

    def stats(self, identifier: str) -> Optional[WindowEntry]:
        return self._entries.get(self._key(identifier))

    def reset(self, identifier: str) -> None:
        self._entries.pop(self._key(identifier), None)

    def size(self) -> int:
        return len(self._entries)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [
            k for k, e in self._entries.items() if now - e.window_start >= self.window_seconds
        ]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("[rate-limit] %s purged %d expired entries", self.name, len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()


# Named limiters:
#   form_submission: 5 per 15 min
#   file_upload:     20 per 5 min
#   api:             100 per minute
#   auth:            10 failed attempts per 15 min
RATE_LIMITERS: Dict[str, FixedWindowRateLimiter] = {
    "form_submission": FixedWindowRateLimiter("form_submission", 15 * 60, 5),
    "file_upload": FixedWindowRateLimiter("file_upload", 5 * 60, 20),
    "api": FixedWindowRateLimiter("api", 60, 100),
    "auth": FixedWindowRateLimiter("auth", 15 * 60, 10, skip_successful=True),
}


def get_limiter(name: str) -> FixedWindowRateLimiter:
    return RATE_LIMITERS[name]


def check_rate_limit(identifier: str, limiter_name: str = "form_submission") -> RateLimitResult:
    result = RATE_LIMITERS[limiter_name].check(identifier)
    if not result.allowed:
        logger.warning(
            "[rate-limit] exceeded limiter=%s identifier=%s",
            limiter_name,
            identifier,
            extra={"limit": result.limit, "retry_after": result.retry_after},
        )
    return result


def get_client_identifier(request: Request) -> str:
    """
    Client IP, honouring proxy headers:
    first X-Forwarded-For hop, then X-Real-IP, then the socket peer.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def purge_all_expired() -> int:
    return sum(limiter.purge_expired() for limiter in RATE_LIMITERS.values())


async def purge_loop(interval_seconds: float) -> None:
    """Background task: periodically drop expired windows from every limiter."""
    while True:
        await asyncio.sleep(interval_seconds)
        purged = purge_all_expired()
        if purged:
            logger.info("[rate-limit] purged %d expired entries", purged)
