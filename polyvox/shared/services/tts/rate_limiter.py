"""Token-bucket request throttling for bulk synthesis."""

import logging
import threading
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Thread-safe token bucket.

    Holds at most ``burst_size`` tokens and refills continuously at
    ``tokens_per_second``. Limits apply per process, so N gunicorn workers
    may together send N times the configured rate.
    """

    def __init__(
        self,
        tokens_per_second: float,
        burst_size: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if tokens_per_second <= 0 or burst_size < 1:
            raise ValueError("tokens_per_second and burst_size must be positive")
        self.capacity = burst_size
        self.fill_rate = tokens_per_second
        self.tokens = float(burst_size)
        self._clock = clock
        self._sleep = sleep
        self._refilled_at = clock()
        self.lock = threading.Lock()

    def _refill(self) -> float:
        now = self._clock()
        self.tokens = min(self.capacity, self.tokens + (now - self._refilled_at) * self.fill_rate)
        self._refilled_at = now
        return now

    def available(self) -> float:
        with self.lock:
            self._refill()
            return self.tokens

    def consume(
        self, tokens: int = 1, block: bool = True, timeout: Optional[float] = None
    ) -> bool:
        """
        Take ``tokens`` from the bucket.

        With ``block`` the call waits for the refill, up to ``timeout``
        seconds (None waits forever). Returns False when the tokens could not
        be taken in time.
        """
        deadline = None if timeout is None else self._clock() + timeout

        while True:
            with self.lock:
                now = self._refill()
                if self.tokens >= tokens:
                    self.tokens -= tokens
                    return True
                if not block or (deadline is not None and now >= deadline):
                    return False
                shortfall = (tokens - self.tokens) / self.fill_rate
                if deadline is not None:
                    shortfall = min(shortfall, deadline - now)

            self._sleep(min(max(shortfall, 0.001), 0.05))


class RateLimiter:
    """Per-provider request rate limiter for bulk callers."""

    # Requests per second and burst size (conservative, below published quotas)
    LIMITS = {
        "azure": {"rps": 20, "burst": 20},
        "polly": {"rps": 8, "burst": 16},
        "google": {"rps": 15, "burst": 30},
        "murf": {"rps": 2, "burst": 4},
        "telnyx": {"rps": 5, "burst": 10},
        "twilio": {"rps": 5, "burst": 10},
        "cloudpronouncer": {"rps": 2, "burst": 4},
        "voiceforge": {"rps": 2, "burst": 4},
        "openai": {"rps": 3, "burst": 6},
        "elevenlabs": {"rps": 10, "burst": 20},
    }
    DEFAULT_LIMIT = {"rps": 5, "burst": 10}

    def __init__(
        self,
        provider: str,
        rps: Optional[float] = None,
        burst: Optional[int] = None,
    ):
        limits = self.LIMITS.get(provider, self.DEFAULT_LIMIT)
        self.rps = rps or limits["rps"]
        self.burst = burst or limits["burst"]
        self.bucket = TokenBucket(tokens_per_second=self.rps, burst_size=self.burst)
        self.provider = provider
        logger.info(f"[{provider} TTS] Rate limit {self.rps} req/s, burst {self.burst}")

    def acquire(self, timeout: float = 10.0) -> bool:
        """
        Acquire permission to make a request.

        Raises:
            TimeoutError: If timeout exceeded
        """
        if not self.bucket.consume(block=True, timeout=timeout):
            logger.warning(f"[{self.provider} TTS] No request slot within {timeout}s")
            raise TimeoutError(
                f"Rate limit exceeded for {self.provider}: "
                f"no request slot within {timeout}s"
            )
        return True

    def get_stats(self) -> Dict[str, float]:
        return {"rps": self.rps, "burst": self.burst, "available": self.bucket.available()}
