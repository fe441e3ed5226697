import pytest

from restaurant_agent.agent.sessions import SessionAgents


class StubAgent:
    def __init__(self, label: int) -> None:
        self.label = label
        self.is_processing = False


def _pool(max_sessions: int) -> SessionAgents:
    created = iter(range(1000))
    return SessionAgents(lambda: StubAgent(next(created)), max_sessions=max_sessions)


def test_acquire_reuses_agent_per_session() -> None:
    pool = _pool(4)

    first = pool.acquire("tab-1")

    assert pool.acquire("tab-1") is first
    assert pool.acquire("tab-2") is not first
    assert len(pool) == 2


def test_pool_never_grows_past_cap() -> None:
    pool = _pool(3)

    for i in range(50):
        pool.acquire(f"session-{i}")

    assert len(pool) == 3
    assert "session-0" not in pool
    assert pool.get("session-49") is not None


def test_least_recently_used_session_is_evicted_first() -> None:
    pool = _pool(2)
    pool.acquire("a")
    pool.acquire("b")
    pool.acquire("a")

    pool.acquire("c")

    assert "a" in pool
    assert "b" not in pool
    assert "c" in pool


def test_busy_agents_survive_eviction() -> None:
    pool = _pool(2)
    pool.acquire("busy").is_processing = True
    pool.acquire("idle")

    pool.acquire("new")

    assert "busy" in pool
    assert "idle" not in pool
    assert len(pool) == 2


def test_all_busy_pool_temporarily_exceeds_cap() -> None:
    pool = _pool(1)
    pool.acquire("busy").is_processing = True

    pool.acquire("new")

    assert len(pool) == 2
    pool.get("busy").is_processing = False
    pool.acquire("another")
    assert "busy" not in pool


def test_get_does_not_create_sessions() -> None:
    pool = _pool(2)

    assert pool.get("missing") is None
    assert len(pool) == 0


def test_cap_must_be_positive() -> None:
    with pytest.raises(ValueError):
        SessionAgents(lambda: StubAgent(0), max_sessions=0)
