"""Tuning knobs for REST requests and stream subscriptions."""

from __future__ import annotations

import random
from dataclasses import dataclass

DEFAULT_USER_AGENT = "fedi-api/0.1"


@dataclass(frozen=True)
class ClientConfig:
    request_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    max_rate_limit_retries: int = 3
    # Used when a 429 response carries no Retry-After header
    rate_limit_fallback_delay: float = 1.0


@dataclass(frozen=True)
class StreamConfig:
    base_reconnect_delay: float = 1.0
    max_reconnect_delay: float = 30.0
    jitter: float = 0.2
    max_reconnect_attempts: int = 5
    connect_timeout: float = 10.0
    # Servers send a heartbeat comment every few seconds
    read_timeout: float = 90.0
    queue_size: int = 1000

    def next_delay(self, delay: float) -> float:
        """Double the delay, cap it, then add up to `jitter` of random spread."""
        capped = min(delay * 2, self.max_reconnect_delay)
        return capped + capped * self.jitter * random.random()
