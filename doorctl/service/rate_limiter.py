"""
Rate Limiter
------------

Limits how often a single client may hit the ceremony endpoints.

Each client key gets a token bucket holding up to ``capacity`` tokens,
refilled continuously at ``rate`` tokens per second. Every admitted
request takes a token; a client with an empty bucket is turned away
until the bucket refills.

Buckets are created lazily and live only in memory. A background
sweep drops the buckets that are full at sweep time: a full bucket
behaves exactly like a fresh one, so removing it loses nothing.
Buckets that are still refilling are kept.

The client key is the peer address, or the ``X-Forwarded-For``
header if trusted. The header is set by the client, so trusting it
is only safe behind a proxy that overwrites it.
"""

from asyncio import sleep
from dataclasses import dataclass
from datetime import timedelta
from threading import Lock
from time import monotonic
from typing import Callable, Dict

from aiohttp.web_request import Request

from doorctl import logger


@dataclass
class TokenBucket:
    tokens: float
    last_refill: float


class RateLimiter:
    """
    A per-client token bucket limiter. It is created once when the app
    is built and handed to the views that need it.
    """

    def __init__(self, rate: float, capacity: int, clock: Callable[[], float] = monotonic):
        """
        :param rate: The tokens refilled per second.
        :param capacity: The maximum (and initial) number of tokens in a bucket.
        :param clock: The monotonic clock to measure refills with.
        """
        if rate <= 0 or capacity < 1:
            raise ValueError("The rate must be positive and the capacity at least 1.")

        self.rate = rate
        self.capacity = capacity
        self._clock = clock
        self._buckets: Dict[str, TokenBucket] = {}
        self._lock = Lock()

    def allow(self, key: str) -> bool:
        """Takes a token from the key's bucket, returning whether there was one to take."""
        with self._lock:
            bucket = self._refilled(key)
            if bucket.tokens >= 1:
                bucket.tokens -= 1
                return True
            return False

    def retry_after(self, key: str) -> float:
        """The number of seconds until the key's bucket holds a token again."""
        with self._lock:
            bucket = self._refilled(key)
            return max(0.0, (1 - bucket.tokens) / self.rate)

    def sweep(self) -> int:
        """Removes the buckets that are full, returning how many were removed."""
        with self._lock:
            now = self._clock()
            full = [
                key for key, bucket in self._buckets.items()
                if self._tokens_at(bucket, now) >= self.capacity
            ]
            for key in full:
                del self._buckets[key]
            return len(full)

    async def run_sweeper(self, interval: timedelta = None):
        """Sweeps the buckets once every ``interval``."""
        if interval is None:
            interval = timedelta(minutes=5)

        while True:
            await sleep(interval.total_seconds())
            removed = self.sweep()
            logger.debug("Swept %s idle rate limit buckets, %s remain", removed, len(self))

    def _refilled(self, key: str) -> TokenBucket:
        """Gets (or creates) the bucket for a key, topped up to the current time. Requires the lock."""
        now = self._clock()
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._buckets[key] = TokenBucket(float(self.capacity), now)
        else:
            bucket.tokens = self._tokens_at(bucket, now)
            bucket.last_refill = now
        return bucket

    def _tokens_at(self, bucket: TokenBucket, now: float) -> float:
        elapsed = max(0.0, now - bucket.last_refill)
        return min(float(self.capacity), bucket.tokens + elapsed * self.rate)

    def __contains__(self, key):
        return key in self._buckets

    def __len__(self):
        return len(self._buckets)


def client_key(request: Request, trust_forwarded_for: bool = True) -> str:
    """
    Gets the key identifying the client of a request.

    :param trust_forwarded_for: Use the first address in the X-Forwarded-For header if present.
    """
    if trust_forwarded_for:
        forwarded_for = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    return request.remote or "unknown"
