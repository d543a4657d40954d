"""
Tests for per-provider HTTP session pools.
"""

import threading
from unittest.mock import Mock, patch

import pytest
import requests

from polyvox.shared.services.tts.session_pool import (
    MAX_SESSION_AGE_SECONDS,
    SessionPool,
    SessionPoolManager,
)


@pytest.fixture
def session_factory():
    return Mock(side_effect=lambda: Mock(spec=requests.Session))


@pytest.mark.unit
class TestSessionPool:
    """Bounded pool of reusable sessions"""

    def test_min_size_is_prewarmed(self, session_factory):
        pool = SessionPool("polly", min_size=2, max_size=4, session_factory=session_factory)

        stats = pool.get_stats()
        assert session_factory.call_count == 2
        assert stats.total_sessions == 2
        assert stats.available_sessions == 2
        assert stats.active_sessions == 0

    def test_released_session_is_reused(self, session_factory):
        pool = SessionPool("polly", min_size=0, max_size=2, session_factory=session_factory)

        with pool.session() as first:
            pass
        with pool.session() as second:
            assert pool.get_stats().active_sessions == 1

        assert first is second
        assert session_factory.call_count == 1

    def test_grows_up_to_max_size(self, session_factory):
        pool = SessionPool("polly", min_size=0, max_size=2, session_factory=session_factory)

        a = pool.acquire()
        b = pool.acquire()

        assert a.session is not b.session
        assert pool.get_stats().to_dict() == {
            "provider": "polly",
            "total_sessions": 2,
            "active_sessions": 2,
            "available_sessions": 0,
            "max_pool_size": 2,
            "min_pool_size": 0,
        }

    def test_exhausted_pool_times_out(self, session_factory):
        pool = SessionPool("polly", min_size=0, max_size=1, session_factory=session_factory)
        pool.acquire()

        with pytest.raises(TimeoutError, match="No HTTP session available for polly"):
            pool.acquire(timeout=0.05)

    def test_waiter_gets_released_session(self, session_factory):
        pool = SessionPool("polly", min_size=0, max_size=1, session_factory=session_factory)
        held = pool.acquire()
        acquired = []

        waiter = threading.Thread(target=lambda: acquired.append(pool.acquire(timeout=2)))
        waiter.start()
        pool.release(held)
        waiter.join(timeout=2)

        assert acquired and acquired[0] is held

    def test_expired_session_is_replaced(self, session_factory):
        pool = SessionPool("polly", min_size=1, max_size=2, session_factory=session_factory)
        stale = pool.acquire()
        pool.release(stale)

        with patch(
            "polyvox.shared.services.tts.session_pool.time.monotonic",
            return_value=stale.created_at + MAX_SESSION_AGE_SECONDS + 1,
        ):
            fresh = pool.acquire()

        assert fresh is not stale
        stale.session.close.assert_called_once()
        assert pool.get_stats().total_sessions == 1

    def test_close_closes_everything(self, session_factory):
        pool = SessionPool("polly", min_size=1, max_size=2, session_factory=session_factory)
        active = pool.acquire()
        pool.acquire()

        pool.close()

        active.session.close.assert_called_once()
        assert pool.get_stats().active_sessions == 0

    @pytest.mark.parametrize("min_size,max_size", [(-1, 2), (0, 0), (3, 2)])
    def test_invalid_bounds(self, min_size, max_size):
        with pytest.raises(ValueError):
            SessionPool("polly", min_size=min_size, max_size=max_size)


@pytest.mark.unit
class TestSessionPoolManager:
    """One pool per provider"""

    def test_pool_per_provider(self, session_factory):
        manager = SessionPoolManager(max_size=3, session_factory=session_factory)

        assert manager.pool_for("polly") is manager.pool_for("polly")
        assert manager.pool_for("polly") is not manager.pool_for("azure")
        assert manager.pool_for("azure").max_size == 3
        assert set(manager.get_stats()) == {"polly", "azure"}

    def test_close_clears_pools(self, session_factory):
        manager = SessionPoolManager(session_factory=session_factory)
        with manager.pool_for("polly").session() as session:
            pass

        manager.close()

        session.close.assert_called_once()
        assert manager.get_stats() == {}
