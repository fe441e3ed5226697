"""Bounded per-session agent pool."""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable

from restaurant_agent.agent.dispatcher import RestaurantAgent

logger = logging.getLogger(__name__)


class SessionAgents:
    """Keeps one `RestaurantAgent` per session id, least recently used first out.

    Agents with a request in flight are never evicted, so the pool may briefly
    exceed `max_sessions` when every older agent is busy.
    """

    def __init__(
        self,
        factory: Callable[[], RestaurantAgent],
        *,
        max_sessions: int = 256,
    ) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be >= 1")
        self._factory = factory
        self.max_sessions = max_sessions
        self._agents: OrderedDict[str, RestaurantAgent] = OrderedDict()

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._agents

    def get(self, session_id: str) -> RestaurantAgent | None:
        """Return the existing agent for `session_id` without creating one."""
        return self._agents.get(session_id)

    def acquire(self, session_id: str) -> RestaurantAgent:
        agent = self._agents.get(session_id)
        if agent is not None:
            self._agents.move_to_end(session_id)
            return agent

        agent = self._factory()
        self._agents[session_id] = agent
        self._evict(keep=session_id)
        return agent

    def _evict(self, *, keep: str) -> None:
        while len(self._agents) > self.max_sessions:
            idle = next(
                (
                    sid
                    for sid, agent in self._agents.items()
                    if sid != keep and not agent.is_processing
                ),
                None,
            )
            if idle is None:
                return
            del self._agents[idle]
            logger.info("Evicted idle session %s", idle)
