import dataclasses
import json
import math
import time
from dataclasses import dataclass

import anyio
from loguru import logger

from gallery.core.config import settings
from gallery.core.constants import RateLimitPrefix
from gallery.core.exceptions.rate_limiter import RateLimitConfigurationError
from gallery.core.logger import security_logger
from gallery.services.cache.window_store import (
    Clock,
    MemoryWindowStore,
    RedisWindowStore,
    WindowRecord,
    WindowStore,
)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check"""

    allowed: bool
    limit: int
    remaining: int
    reset_at: int  # epoch milliseconds
    window_ms: int
    degraded: bool = False  # decided by the in-process fallback

    def retry_after_seconds(self, now_ms: int) -> int:
        return max(0, math.ceil((self.reset_at - now_ms) / 1000))


class RateLimiter:
    """
    Fixed window rate limiter with a shared store and an in-process fallback.

    The shared store (Redis) is tried first. When it is not configured, raises,
    or does not answer within `store_timeout` seconds the same algorithm runs
    against a process-local MemoryWindowStore and the event is logged as
    degraded mode. Callers never see the failure.

    The read-then-write sequence is not atomic: concurrent requests on the
    same key may both read the old count and overshoot `max_requests`. The
    limit is a soft bound, not an admission gate.

    Example:
        ```python
        decision = await rate_limiter.check(
            key="ratelimit:login:192.168.1.1",
            max_requests=5,
            window_ms=60_000,
        )

        if not decision.allowed:
            raise TooManyRequestsException(...)
        ```
    """

    def __init__(
        self,
        shared_store: WindowStore | None = None,
        clock: Clock = time.time,
        store_timeout: float | None = None,
    ):
        self.shared_store = shared_store
        self.memory_store = MemoryWindowStore(clock)
        self.store_timeout = (
            settings.rate_limit_store_timeout if store_timeout is None else store_timeout
        )
        self._clock = clock

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def check(self, key: str, max_requests: int, window_ms: int) -> RateLimitDecision:
        """
        Count a request against the window of `key`.

        Args:
            key: Namespaced identifier (e.g., "ratelimit:upload:192.168.1.1")
            max_requests: Requests allowed per window
            window_ms: Window length in milliseconds

        Returns:
            RateLimitDecision: allowed flag, remaining quota and reset time

        Raises:
            RateLimitConfigurationError: If max_requests or window_ms is not positive
        """
        if max_requests <= 0:
            raise RateLimitConfigurationError(f"Rate limit must be positive, got {max_requests}")
        if window_ms <= 0:
            raise RateLimitConfigurationError(
                f"Rate limit window must be positive, got {window_ms}"
            )

        now = self.now_ms()

        if not settings.rate_limit_enabled:
            return RateLimitDecision(
                allowed=True,
                limit=max_requests,
                remaining=max_requests,
                reset_at=now + window_ms,
                window_ms=window_ms,
            )

        if self.shared_store is not None:
            try:
                with anyio.fail_after(self.store_timeout):
                    return await self._consume(
                        self.shared_store, key, max_requests, window_ms, now
                    )
            except Exception as e:
                logger.warning(
                    f"Rate limit store unavailable for key {key}, "
                    f"counting in process memory (degraded mode): {e!r}"
                )

        decision = await self._consume(self.memory_store, key, max_requests, window_ms, now)

        if self.shared_store is not None:
            return dataclasses.replace(decision, degraded=True)

        return decision

    @staticmethod
    async def _consume(
        store: WindowStore, key: str, max_requests: int, window_ms: int, now: int
    ) -> RateLimitDecision:
        record = WindowRecord.loads(await store.get(key))

        # First request or expired window: start a new one, no quota carried over
        if record is None or record.reset_at <= now:
            reset_at = now + window_ms
            await store.put(
                key,
                WindowRecord(count=1, reset_at=reset_at).dumps(),
                ttl_seconds=math.ceil(window_ms / 1000),
            )
            return RateLimitDecision(
                allowed=True,
                limit=max_requests,
                remaining=max_requests - 1,
                reset_at=reset_at,
                window_ms=window_ms,
            )

        count = record.count + 1
        await store.put(
            key,
            WindowRecord(count=count, reset_at=record.reset_at).dumps(),
            ttl_seconds=max(1, math.ceil((record.reset_at - now) / 1000)),
        )

        if count > max_requests:
            return RateLimitDecision(
                allowed=False,
                limit=max_requests,
                remaining=0,
                reset_at=record.reset_at,
                window_ms=window_ms,
            )

        return RateLimitDecision(
            allowed=True,
            limit=max_requests,
            remaining=max_requests - count,
            reset_at=record.reset_at,
            window_ms=window_ms,
        )

    async def reset(self, key: str) -> None:
        """
        Drop the window of a key in both stores.

        Note:
            Useful for manual intervention (e.g., unblocking a client).
        """
        await self.memory_store.delete(key)

        if self.shared_store is not None:
            try:
                await self.shared_store.delete(key)
                logger.info(f"Rate limit reset for key {key}")
            except Exception as e:
                logger.warning(f"Failed to reset rate limit for key {key}: {e}")

    async def record_login_failure(self, client_ip: str, username: str) -> None:
        """
        Keep a short-lived audit record of a failed login in the shared store.

        Best effort: without a reachable shared store the attempt is only logged.
        """
        now = self.now_ms()
        security_logger.warning(
            f"Failed login attempt from {client_ip} for username {username!r}"
        )

        if self.shared_store is None:
            return

        try:
            with anyio.fail_after(self.store_timeout):
                await self.shared_store.put(
                    f"{RateLimitPrefix.LOGIN_FAILURE}{client_ip}:{now}",
                    json.dumps({"username": username, "timestamp": now}),
                    ttl_seconds=settings.login_failure_ttl_seconds,
                )
        except Exception as e:
            logger.warning(f"Could not record failed login from {client_ip}: {e!r}")

    async def health_check(self) -> bool:
        """
        Report whether the shared store answers, False means degraded mode.
        """
        if isinstance(self.shared_store, RedisWindowStore):
            return await self.shared_store.health_check()

        return False

    async def close(self) -> None:
        if isinstance(self.shared_store, RedisWindowStore):
            await self.shared_store.close()

        self.memory_store.clear()


def create_rate_limiter() -> RateLimiter:
    """Build the process-wide limiter, with Redis only when it is configured"""
    if settings.redis_url is None:
        logger.warning(
            "REDIS_HOST not set - rate limiting uses in-process memory "
            "(not shared between workers)"
        )
        return RateLimiter()

    return RateLimiter(shared_store=RedisWindowStore())


rate_limiter = create_rate_limiter()


def get_rate_limiter() -> RateLimiter:
    """FastAPI dependency returning the process-wide rate limiter"""
    return rate_limiter
