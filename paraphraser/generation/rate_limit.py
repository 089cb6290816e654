"""Token-bucket pacing for calls to the rewriting provider.

Algorithm:
    - Bucket holds up to ``burst_size`` tokens
    - Tokens refill at ``requests_per_second``
    - Each provider call consumes 1 token
    - :meth:`TokenBucketRateLimiter.acquire` blocks the calling thread
      until a token is available

With the defaults (1 request/second, burst 1) the first call goes out
immediately and every later call waits until one second has passed
since the previous one.  That is a fixed one-second gap between
consecutive chunks and no wait after the last one.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from paraphraser.config import CFG
from paraphraser.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Float slack so a refill that lands a hair under one token still counts
_EPSILON = 1e-9


@dataclass(frozen=True)
class RateLimitConfig:
    """Bucket parameters; ``enabled=False`` turns pacing off."""

    requests_per_second: float = 1.0
    burst_size: int = 1
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.enabled and self.requests_per_second <= 0:
            raise ConfigurationError(
                f"requests_per_second must be positive, got {self.requests_per_second}"
            )
        if self.burst_size < 1:
            raise ConfigurationError(
                f"burst_size must be at least 1, got {self.burst_size}"
            )

    @classmethod
    def from_interval_ms(cls, interval_ms: int, burst_size: int = 1) -> "RateLimitConfig":
        """One request per *interval_ms*; ``0`` disables pacing."""
        if interval_ms <= 0:
            return cls(burst_size=max(1, burst_size), enabled=False)
        return cls(requests_per_second=1000.0 / interval_ms, burst_size=burst_size)


def rate_limit_from_config(cfg: dict | None = None) -> RateLimitConfig:
    """Build the pacing config from ``request_interval_ms`` / ``rate_limit_burst``."""
    cfg = cfg if cfg is not None else CFG
    return RateLimitConfig.from_interval_ms(
        int(cfg.get("request_interval_ms", 1000)),
        int(cfg.get("rate_limit_burst", 1)),
    )


class TokenBucketRateLimiter:
    """Blocking token bucket shared by every job a worker runs.

    The clock and sleep functions are injectable so tests can run
    without real waiting.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._config = config or RateLimitConfig()
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(self._config.burst_size)
        self._last_refill = clock()
        self._lock = threading.Lock()

        self._acquire_count = 0
        self._total_wait = 0.0

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def available_tokens(self) -> float:
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill
        refill = elapsed * self._config.requests_per_second
        self._tokens = min(self._tokens + refill, float(self._config.burst_size))
        self._last_refill = now

    def acquire(self) -> float:
        """Take one token, sleeping until one is available.

        Returns
        -------
        float
            Seconds spent waiting.
        """
        if not self._config.enabled:
            return 0.0

        waited = 0.0
        with self._lock:
            self._refill()
            while self._tokens < 1.0 - _EPSILON:
                deficit = 1.0 - self._tokens
                wait_seconds = deficit / self._config.requests_per_second
                logger.debug(f"Pacing provider calls: waiting {wait_seconds:.2f}s")
                self._sleep(wait_seconds)
                waited += wait_seconds
                self._refill()
            self._tokens = max(0.0, self._tokens - 1.0)
            self._acquire_count += 1
            self._total_wait += waited
        return waited

    def get_metrics(self) -> dict:
        return {
            "enabled": self._config.enabled,
            "requests_per_second": self._config.requests_per_second,
            "burst_size": self._config.burst_size,
            "available_tokens": self._tokens,
            "acquire_count": self._acquire_count,
            "total_wait_seconds": self._total_wait,
        }
