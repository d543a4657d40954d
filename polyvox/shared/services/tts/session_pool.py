"""Per-provider pool of reusable HTTP sessions."""

import logging
import queue
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional

import requests

logger = logging.getLogger(__name__)

MAX_SESSION_AGE_SECONDS = 30 * 60


class PooledSession:
    """A ``requests.Session`` tagged with its owner and age."""

    def __init__(self, provider: str, session: requests.Session):
        self.id = uuid.uuid4().hex
        self.provider = provider
        self.session = session
        self.created_at = time.monotonic()
        self.last_used = self.created_at
        self.closed = False

    def is_valid(self, max_age: float = MAX_SESSION_AGE_SECONDS) -> bool:
        return not self.closed and (time.monotonic() - self.created_at) < max_age

    def touch(self) -> None:
        self.last_used = time.monotonic()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.session.close()


@dataclass
class SessionPoolStats:
    provider: str
    total_sessions: int
    active_sessions: int
    available_sessions: int
    max_pool_size: int
    min_pool_size: int

    def to_dict(self) -> dict:
        return self.__dict__.copy()


class SessionPool:
    """
    Bounded pool of keep-alive sessions for one provider.

    Sessions older than ``max_age`` are discarded on acquire/release.
    ``acquire`` blocks up to ``timeout`` seconds when the pool is exhausted.

    Thread Safety: YES
    """

    def __init__(
        self,
        provider: str,
        min_size: int = 1,
        max_size: int = 10,
        max_age: float = MAX_SESSION_AGE_SECONDS,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        if min_size < 0 or max_size < 1 or min_size > max_size:
            raise ValueError(f"Invalid pool bounds: min={min_size}, max={max_size}")

        self.provider = provider
        self.min_size = min_size
        self.max_size = max_size
        self.max_age = max_age
        self._session_factory = session_factory
        self._available: "queue.LifoQueue[PooledSession]" = queue.LifoQueue()
        self._active: Dict[str, PooledSession] = {}
        self._total = 0
        self._lock = threading.Lock()
        self._released = threading.Condition(self._lock)

        for _ in range(min_size):
            self._available.put(self._create())

    def _create(self) -> PooledSession:
        self._total += 1
        return PooledSession(self.provider, self._session_factory())

    def _discard(self, pooled: PooledSession) -> None:
        pooled.close()
        self._total -= 1

    def acquire(self, timeout: Optional[float] = 10.0) -> PooledSession:
        """
        Take a session from the pool, creating one if under ``max_size``.

        Raises:
            TimeoutError: If no session frees up within ``timeout``
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._released:
            while True:
                while not self._available.empty():
                    pooled = self._available.get_nowait()
                    if pooled.is_valid(self.max_age):
                        return self._activate(pooled)
                    self._discard(pooled)

                if self._total < self.max_size:
                    return self._activate(self._create())

                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise TimeoutError(
                        f"No HTTP session available for {self.provider} "
                        f"(pool size {self.max_size})"
                    )
                self._released.wait(remaining)

    def _activate(self, pooled: PooledSession) -> PooledSession:
        pooled.touch()
        self._active[pooled.id] = pooled
        return pooled

    def release(self, pooled: PooledSession) -> None:
        if pooled is None:
            return
        with self._released:
            self._active.pop(pooled.id, None)
            if pooled.is_valid(self.max_age) and self._available.qsize() < self.max_size:
                self._available.put(pooled)
            else:
                self._discard(pooled)
            self._released.notify()

    @contextmanager
    def session(self, timeout: Optional[float] = 10.0) -> Iterator[requests.Session]:
        pooled = self.acquire(timeout=timeout)
        try:
            yield pooled.session
        finally:
            self.release(pooled)

    def get_stats(self) -> SessionPoolStats:
        with self._lock:
            return SessionPoolStats(
                provider=self.provider,
                total_sessions=self._total,
                active_sessions=len(self._active),
                available_sessions=self._available.qsize(),
                max_pool_size=self.max_size,
                min_pool_size=self.min_size,
            )

    def close(self) -> None:
        with self._lock:
            while not self._available.empty():
                self._discard(self._available.get_nowait())
            for pooled in list(self._active.values()):
                pooled.close()
            self._active.clear()
        logger.debug("Session pool for %s closed", self.provider)


class SessionPoolManager:
    """Lazily creates one ``SessionPool`` per provider name."""

    def __init__(
        self,
        max_size: int = 10,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.max_size = max_size
        self._session_factory = session_factory
        self._pools: Dict[str, SessionPool] = {}
        self._lock = threading.Lock()

    def pool_for(self, provider: str) -> SessionPool:
        with self._lock:
            pool = self._pools.get(provider)
            if pool is None:
                pool = SessionPool(
                    provider,
                    min_size=0,
                    max_size=self.max_size,
                    session_factory=self._session_factory,
                )
                self._pools[provider] = pool
                logger.info(f"Session pool created for {provider} (max {self.max_size})")
            return pool

    def get_stats(self) -> Dict[str, dict]:
        with self._lock:
            pools = dict(self._pools)
        return {name: pool.get_stats().to_dict() for name, pool in pools.items()}

    def close(self) -> None:
        with self._lock:
            pools = list(self._pools.values())
            self._pools.clear()
        for pool in pools:
            pool.close()
