"""
Bulk synthesis for many texts against one provider.

Retry and throttling policy lives here, not in ProviderClient. Each provider
gets its own rate limiter and circuit breaker; only retryable failures are
retried, with backoff via tenacity. A file that cannot be written fails its
own item and leaves the rest of the batch alone.
"""

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from .circuit_breaker import CircuitBreaker
from .client import ProviderClient
from .models import (
    Failure,
    FailureKind,
    ProviderCredentials,
    ProviderDescriptor,
    Success,
    SynthesisRequest,
    SynthesisResult,
)
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 30.0


@dataclass
class BulkItemResult:
    index: int
    result: SynthesisResult
    attempts: int
    output_path: Optional[str] = None
    write_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result.ok and self.write_error is None


@dataclass
class BulkReport:
    items: List[BulkItemResult]
    elapsed_seconds: float

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.ok)

    @property
    def failed(self) -> int:
        return len(self.items) - self.succeeded

    def failures_by_kind(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for item in self.items:
            if isinstance(item.result, Failure):
                counts[item.result.kind.value] = counts.get(item.result.kind.value, 0) + 1
            elif item.write_error is not None:
                counts["WriteError"] = counts.get("WriteError", 0) + 1
        return counts


class BulkSynthesizer:
    """
    Runs many synthesis requests with bounded concurrency.

    Args:
        client: Provider client (shared; it is thread-safe)
        max_workers: Worker threads; size this from provider rate limits
        max_retries: Extra attempts for Transient/NetworkFailure results
        backoff_base: First retry delay in seconds, doubled per attempt
        rate_limit_timeout: Max seconds to wait for a rate-limit slot
        sleep: Injected for tests
    """

    def __init__(
        self,
        client: ProviderClient,
        max_workers: int = 4,
        max_retries: int = 2,
        backoff_base: float = 1.0,
        rate_limit_timeout: float = 30.0,
        failure_threshold: int = 5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        self.client = client
        self.max_workers = max_workers
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.rate_limit_timeout = rate_limit_timeout
        self.failure_threshold = failure_threshold
        self._sleep = sleep
        self._rate_limiters: Dict[str, RateLimiter] = {}
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def rate_limiter_for(self, provider: str) -> RateLimiter:
        with self._lock:
            if provider not in self._rate_limiters:
                self._rate_limiters[provider] = RateLimiter(provider)
            return self._rate_limiters[provider]

    def breaker_for(self, provider: str) -> CircuitBreaker:
        with self._lock:
            if provider not in self._breakers:
                self._breakers[provider] = CircuitBreaker(
                    name=provider, failure_threshold=self.failure_threshold
                )
            return self._breakers[provider]

    def get_stats(self) -> Dict[str, Dict[str, object]]:
        """Per-provider circuit state and rate-limit headroom."""
        with self._lock:
            providers = sorted(set(self._breakers) | set(self._rate_limiters))
            breakers = dict(self._breakers)
            limiters = dict(self._rate_limiters)
        stats: Dict[str, Dict[str, object]] = {}
        for provider in providers:
            entry: Dict[str, object] = {}
            if provider in breakers:
                entry["circuit"] = breakers[provider].get_state().value
            if provider in limiters:
                entry.update(limiters[provider].get_stats())
            stats[provider] = entry
        return stats

    def run(
        self,
        descriptor: ProviderDescriptor,
        credentials: ProviderCredentials,
        batch: Sequence[SynthesisRequest],
        output_dir: Optional[str] = None,
        file_prefix: str = "item",
    ) -> BulkReport:
        """
        Synthesize every request; results come back in input order.

        When ``output_dir`` is given, each successful item is written to
        ``<output_dir>/<file_prefix>_<NNNN>.<format>``.
        """
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        start = time.monotonic()
        logger.info(
            f"Bulk synthesis started: {len(batch)} items, provider={descriptor.name}, "
            f"workers={self.max_workers}"
        )

        def work(index: int) -> BulkItemResult:
            item = self._synthesize_with_retry(descriptor, credentials, batch[index], index)
            if output_dir and isinstance(item.result, Success):
                try:
                    item.output_path = self._write(item, batch[index], output_dir, file_prefix)
                except OSError as e:
                    logger.error(f"Item {index}: could not write audio: {e}")
                    item.write_error = str(e)
            return item

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            items = list(executor.map(work, range(len(batch))))

        report = BulkReport(items=items, elapsed_seconds=time.monotonic() - start)
        logger.info(
            f"Bulk synthesis finished in {report.elapsed_seconds:.1f}s: "
            f"{report.succeeded} succeeded, {report.failed} failed"
        )
        return report

    def _synthesize_with_retry(
        self,
        descriptor: ProviderDescriptor,
        credentials: ProviderCredentials,
        request: SynthesisRequest,
        index: int,
    ) -> BulkItemResult:
        breaker = self.breaker_for(descriptor.name)
        limiter = self.rate_limiter_for(descriptor.name)
        state = {"attempts": 0, "blocked": False}

        def attempt() -> SynthesisResult:
            if not breaker.allow_request():
                state["blocked"] = True
                return Failure(
                    kind=FailureKind.TRANSIENT,
                    message=f"Circuit open for {descriptor.name}, retry in {breaker.retry_in():.0f}s",
                    provider=descriptor.name,
                    retry_after=breaker.retry_in(),
                )
            try:
                limiter.acquire(timeout=self.rate_limit_timeout)
            except TimeoutError as e:
                state["blocked"] = True
                return Failure(FailureKind.TRANSIENT, str(e), descriptor.name)

            state["attempts"] += 1
            result = self.client.synthesize(descriptor, credentials, request)
            if isinstance(result, Success):
                breaker.record_success()
            elif result.retryable:
                breaker.record_failure()
            return result

        def should_retry(result: SynthesisResult) -> bool:
            # Open circuits and rate-limit timeouts are reported, not retried
            return not state["blocked"] and isinstance(result, Failure) and result.retryable

        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=self._wait,
            retry=retry_if_result(should_retry),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.INFO),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )
        result = retrying(attempt)
        if isinstance(result, Failure) and state["attempts"] > 1:
            logger.info(
                f"Item {index}: gave up on {descriptor.name} after {state['attempts']} attempts "
                f"({result.kind.value})"
            )
        return BulkItemResult(index=index, result=result, attempts=state["attempts"])

    def _wait(self, retry_state: RetryCallState) -> float:
        """Provider Retry-After when given, else exponential from backoff_base; both capped."""
        retry_after = retry_state.outcome.result().retry_after
        if retry_after is not None:
            return min(retry_after, MAX_BACKOFF_SECONDS)
        backoff = wait_exponential(multiplier=self.backoff_base, max=MAX_BACKOFF_SECONDS)
        return backoff(retry_state)

    @staticmethod
    def _write(
        item: BulkItemResult, request: SynthesisRequest, output_dir: str, file_prefix: str
    ) -> str:
        extension = (request.format or "bin").lower()
        path = os.path.join(output_dir, f"{file_prefix}_{item.index + 1:04d}.{extension}")
        with open(path, "wb") as audio_file:
            audio_file.write(item.result.audio_bytes)
        return path
