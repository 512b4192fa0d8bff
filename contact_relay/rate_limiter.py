"""
Per-IP rate limiting for the mail endpoint

Fixed window counters keyed by client address. Counters live in an injected
store: in-process memory by default, or Redis when several instances must
share one quota.
"""

import logging
import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Optional

import redis
from fastapi import Request, Response

from .config import Settings
from .errors import RateLimitExceeded, RateLimitUnavailable

logger = logging.getLogger(__name__)

MEMORY_CACHE_CLEANUP_INTERVAL = 60  # Clean up expired entries every 60 seconds


@dataclass(frozen=True)
class RateLimitStatus:
    allowed: bool
    count: int
    limit: int
    reset_in: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)


class RateLimitStore:
    """Counter storage. hit() must increment atomically per key."""

    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        """Record one request and return (count in current window, seconds until reset)"""
        raise NotImplementedError


class MemoryRateLimitStore(RateLimitStore):
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        # Format: {key: {'count': int, 'reset_time': float}}
        self._entries: dict[str, dict] = {}
        self._lock = Lock()
        self._last_cleanup = clock()

    def _cleanup_expired(self, now: float) -> None:
        if now - self._last_cleanup < MEMORY_CACHE_CLEANUP_INTERVAL:
            return
        expired_keys = [k for k, v in self._entries.items() if now >= v["reset_time"]]
        for k in expired_keys:
            del self._entries[k]
        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")
        self._last_cleanup = now

    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        with self._lock:
            now = self.clock()
            self._cleanup_expired(now)

            entry = self._entries.get(key)
            if entry is None or now >= entry["reset_time"]:
                entry = {"count": 0, "reset_time": now + window_seconds}
                self._entries[key] = entry

            entry["count"] += 1
            return entry["count"], max(0, math.ceil(entry["reset_time"] - now))

    def __len__(self) -> int:
        return len(self._entries)


class RedisRateLimitStore(RateLimitStore):
    """Shared counters. SET NX EX opens the window, INCR keeps its TTL."""

    def __init__(self, client: redis.Redis):
        self.client = client

    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        try:
            pipe = self.client.pipeline()
            pipe.set(key, 0, ex=window_seconds, nx=True)
            pipe.incr(key)
            pipe.ttl(key)
            _, count, ttl = pipe.execute()
        except redis.RedisError as e:
            raise RateLimitUnavailable(f"Redis rate limit store failed: {e}") from e

        if ttl is None or ttl < 0:
            # Key lost its expiry
            try:
                self.client.expire(key, window_seconds)
            except redis.RedisError as e:
                raise RateLimitUnavailable(f"Redis rate limit store failed: {e}") from e
            ttl = window_seconds
        return int(count), int(ttl)

def _mask_redis_url(redis_url: str) -> str:
    if "@" in redis_url:
        url_parts = redis_url.split("@")
        protocol = url_parts[0].split(":")[0]
        return f"{protocol}:****@{url_parts[-1]}"
    return "****"


def create_rate_limit_store(settings: Settings) -> RateLimitStore:
    """Redis when REDIS_URL is set, otherwise per-process memory"""
    if not settings.redis_url:
        logger.info("Rate limiting uses in-memory counters")
        return MemoryRateLimitStore()

    logger.info(f"📡 Rate limiting uses Redis: {_mask_redis_url(settings.redis_url)}")
    client = redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        health_check_interval=30,
    )
    return RedisRateLimitStore(client)


class RateLimiter:
    def __init__(
        self,
        store: RateLimitStore,
        limit: int = 10,
        window_seconds: int = 15 * 60,
        key_prefix: str = "rate_limit:send_email",
        trust_proxy_headers: bool = False,
    ):
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self.key_prefix = key_prefix
        self.trust_proxy_headers = trust_proxy_headers

    @classmethod
    def from_settings(cls, settings: Settings, store: Optional[RateLimitStore] = None):
        return cls(
            store=store or create_rate_limit_store(settings),
            limit=settings.rate_limit_max,
            window_seconds=settings.rate_limit_window_seconds,
            trust_proxy_headers=settings.trust_proxy_headers,
        )

    def client_ip(self, request: Request) -> str:
        if self.trust_proxy_headers:
            forwarded = request.headers.get("X-Forwarded-For")
            if forwarded:
                return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def hit(self, client_ip: str) -> RateLimitStatus:
        count, ttl = self.store.hit(f"{self.key_prefix}:{client_ip}", self.window_seconds)
        return RateLimitStatus(
            allowed=count <= self.limit, count=count, limit=self.limit, reset_in=ttl
        )

    def check(self, request: Request, response: Response) -> RateLimitStatus:
        client_ip = self.client_ip(request)
        status = self.hit(client_ip)
        if not status.allowed:
            raise RateLimitExceeded(
                key=client_ip, count=status.count, limit=self.limit, retry_after=status.reset_in
            )

        logger.debug(f"🔍 Rate limit for {client_ip} - {status.count}/{self.limit} requests used")
        response.headers["X-RateLimit-Limit"] = str(self.limit)
        response.headers["X-RateLimit-Remaining"] = str(status.remaining)
        response.headers["X-RateLimit-Reset"] = str(status.reset_in)
        return status


def enforce_rate_limit(request: Request, response: Response) -> None:
    """
    FastAPI dependency for the mail endpoint.

    Plain def so it runs in the threadpool; the store serialises counter
    updates itself.
    """
    limiter: RateLimiter = request.app.state.rate_limiter
    limiter.check(request, response)
