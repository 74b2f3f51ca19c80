# velura/core/rate_limiter.py
"""
Request admission for the generation endpoints.

RateLimiter counts hits per client over a fixed window. The counting itself
lives behind RateLimitStore so a single-process deployment can keep counters
in memory while a multi-process one plugs in a shared store.
"""
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request

from velura.utils.config import RATE_LIMIT, RATE_SWEEP_INTERVAL, RATE_WINDOW

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float  # epoch seconds


class RateLimitStore(ABC):

    @abstractmethod
    def hit(self, key: str, window: float, limit: int) -> Tuple[int, float]:
        """
        Count one request for key unless the window is already full.
        Returns (count in current window, window reset time in epoch seconds).
        """

    @abstractmethod
    def sweep(self) -> int:
        """Drop expired windows; returns how many were removed."""


class InMemoryRateLimitStore(RateLimitStore):

    def __init__(self, sweep_interval: float = RATE_SWEEP_INTERVAL,
                 clock: Callable[[], float] = time.time):
        self._records: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def hit(self, key: str, window: float, limit: int) -> Tuple[int, float]:
        now = self._clock()
        if now >= self._next_sweep:
            self.sweep()
        with self._lock:
            record = self._records.get(key)
            if record is None or now > record[1]:
                record = (1, now + window)
            elif record[0] < limit:
                record = (record[0] + 1, record[1])
            else:
                return limit + 1, record[1]
            self._records[key] = record
            return record

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, reset_at) in self._records.items() if now > reset_at]
            for k in expired:
                del self._records[k]
            self._next_sweep = now + self._sweep_interval
        if expired:
            logger.debug("swept %d expired rate-limit records", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)


class RateLimiter:

    def __init__(self, store: Optional[RateLimitStore] = None,
                 limit: int = RATE_LIMIT, window: float = RATE_WINDOW):
        self.store = store if store is not None else InMemoryRateLimitStore()
        self.limit = limit
        self.window = window

    def check(self, identifier: str) -> RateLimitResult:
        count, reset_at = self.store.hit(identifier, self.window, self.limit)
        if count > self.limit:
            return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at)
        return RateLimitResult(allowed=True, remaining=self.limit - count, reset_at=reset_at)


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        return first or "unknown"
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
