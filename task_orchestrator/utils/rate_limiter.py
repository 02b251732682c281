"""
Rate Limiter - Pacing for model calls across all phase agents.

Two limits are combined:
- a sliding window (requests per second if set, else per minute)
- a minimum interval between consecutive requests

Slots are reserved under a lock, so concurrent callers queue behind each
other in arrival order; the wait itself is an asyncio sleep and never
blocks the event loop.

Usage:
    from task_orchestrator.utils.rate_limiter import global_rate_limiter

    await global_rate_limiter.acquire()
"""

import asyncio
import threading
import time
from collections import deque
from typing import Any, Deque, Dict, Optional, Tuple

from ..config.agent_config import RateLimitConfig
from .logger import get_logger

logger = get_logger(__name__)


def _window_for(config: RateLimitConfig) -> Tuple[float, int]:
    """(window seconds, requests allowed per window); (0, 0) disables the window."""
    if config.requests_per_second > 0:
        return 1.0, config.requests_per_second
    if config.requests_per_minute > 0:
        return 60.0, config.requests_per_minute
    return 0.0, 0


class RateLimiter:
    """Sliding-window limiter shared by every model call in the process."""

    def __init__(self, config: Optional[RateLimitConfig] = None):
        self._lock = threading.Lock()
        self._slots: Deque[float] = deque()
        self._last_slot: Optional[float] = None
        self.configure_from(config or RateLimitConfig())

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    def configure_from(self, config: RateLimitConfig) -> None:
        with self._lock:
            self._config = config
            self._window_seconds, self._max_requests = _window_for(config)
            self._slots.clear()
        logger.debug(f"Rate limiter configured: {config.to_dict()}")

    def _next_slot(self, now: float) -> float:
        """Earliest start time for the next request. Caller holds the lock."""
        slot = now
        if self._last_slot is not None and self._config.min_request_delay > 0:
            slot = max(slot, self._last_slot + self._config.min_request_delay)

        if self._max_requests > 0:
            while self._slots and self._slots[0] <= slot - self._window_seconds:
                self._slots.popleft()
            if len(self._slots) >= self._max_requests:
                # The request that has to leave the window before this one fits
                blocking = self._slots[len(self._slots) - self._max_requests]
                slot = max(slot, blocking + self._window_seconds)

        return slot

    async def acquire(self) -> float:
        """
        Wait for a request slot.

        Returns:
            Seconds waited (0 if the request could go out immediately)
        """
        with self._lock:
            now = time.monotonic()
            slot = self._next_slot(now)
            if self._max_requests > 0:
                self._slots.append(slot)
            self._last_slot = slot

        delay = slot - now
        if delay <= 0:
            return 0.0

        logger.debug(f"Rate limiter: waiting {delay:.2f}s")
        await asyncio.sleep(delay)
        return delay

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            cutoff = time.monotonic() - self._window_seconds
            in_window = sum(1 for slot in self._slots if slot > cutoff)
            stats: Dict[str, Any] = {
                "requests_in_window": in_window,
                "max_requests": self._max_requests,
                "window_seconds": self._window_seconds,
            }
            stats.update(self._config.to_dict())
            return stats


# Process-wide limiter shared by every LLMClient
global_rate_limiter = RateLimiter()
