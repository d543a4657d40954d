"""Circuit breaker for bulk synthesis against a failing provider."""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failures detected, blocking requests
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreaker:
    """
    Tracks consecutive transient failures for one provider.

    Synthesis results are values rather than exceptions, so callers report
    outcomes with ``record_success``/``record_failure`` and ask
    ``allow_request`` before each call.
    """

    def __init__(
        self,
        name: str = "",
        failure_threshold: int = 5,
        timeout: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize circuit breaker.

        Args:
            name: Provider name, for logging
            failure_threshold: Consecutive failures before opening circuit
            timeout: Seconds to wait before trying again (OPEN -> HALF_OPEN)
            clock: Monotonic time source
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self._clock = clock

        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.state = CircuitState.CLOSED
        self.lock = threading.Lock()

    def allow_request(self) -> bool:
        with self.lock:
            if self.state != CircuitState.OPEN:
                return True
            if self._clock() - self.last_failure_time >= self.timeout:
                self.state = CircuitState.HALF_OPEN
                logger.info(f"Circuit breaker [{self.name}]: OPEN -> HALF_OPEN (testing recovery)")
                return True
            return False

    def retry_in(self) -> float:
        """Seconds until an OPEN circuit lets a trial request through."""
        with self.lock:
            if self.state != CircuitState.OPEN or self.last_failure_time is None:
                return 0.0
            return max(self.timeout - (self._clock() - self.last_failure_time), 0.0)

    def record_success(self) -> None:
        with self.lock:
            if self.state == CircuitState.HALF_OPEN:
                logger.info(f"Circuit breaker [{self.name}]: HALF_OPEN -> CLOSED (service recovered)")
            self.state = CircuitState.CLOSED
            self.failure_count = 0

    def record_failure(self) -> None:
        with self.lock:
            self.failure_count += 1
            self.last_failure_time = self._clock()

            if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
                if self.state != CircuitState.OPEN:
                    logger.error(
                        f"Circuit breaker [{self.name}]: -> OPEN "
                        f"(failures: {self.failure_count}/{self.failure_threshold})"
                    )
                self.state = CircuitState.OPEN

    def get_state(self) -> CircuitState:
        with self.lock:
            return self.state

    def reset(self) -> None:
        """Manually reset circuit breaker."""
        with self.lock:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self.last_failure_time = None
            logger.info(f"Circuit breaker [{self.name}] manually reset")
