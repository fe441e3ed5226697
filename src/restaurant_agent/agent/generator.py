"""Natural-language answer generation with templated fallback."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from restaurant_agent.agent.fallback import failure_message, render_template
from restaurant_agent.llm.errors import UpstreamError, UpstreamErrorKind
from restaurant_agent.llm.gateway import ChatGateway
from restaurant_agent.types import IntentType, to_jsonable

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a helpful AI assistant for a restaurant management system. "
    "Respond naturally and conversationally in 1-2 sentences."
)


@dataclass(slots=True)
class Generation:
    message: str
    source: str  # "llm", "template" or "failure"
    upstream_error: str | None = None


class ResponseGenerator:
    """Renders the final answer from the question, its intent and query data."""

    def __init__(self, gateway: ChatGateway) -> None:
        self.gateway = gateway

    async def generate(
        self,
        utterance: str,
        intent: IntentType,
        data: Any = None,
    ) -> str:
        return (await self.generate_with_source(utterance, intent, data)).message

    async def generate_with_source(
        self,
        utterance: str,
        intent: IntentType,
        data: Any = None,
    ) -> Generation:
        kind: UpstreamErrorKind | None = None
        if self.gateway.available:
            system_prompt, user_message = build_prompt(utterance, data)
            try:
                message = await self.gateway.complete(system_prompt, user_message)
            except UpstreamError as exc:
                kind = exc.kind
                logger.warning("Response generation fell back (%s)", kind.value)
            except Exception:
                logger.exception("Unexpected error while generating response")
            else:
                if message:
                    return Generation(message=message, source="llm")
                logger.warning("Empty generator output; using fallback")
        else:
            kind = UpstreamErrorKind.UNAVAILABLE

        upstream = kind.value if kind is not None else None
        if data is not None:
            return Generation(
                message=render_template(intent, data), source="template", upstream_error=upstream
            )
        return Generation(message=failure_message(kind), source="failure", upstream_error=upstream)


def build_prompt(utterance: str, data: Any = None) -> tuple[str, str]:
    """Return the (system, user) messages for one generation call."""

    if data is None:
        return _SYSTEM_PROMPT, utterance

    system_prompt = (
        f'{_SYSTEM_PROMPT} The user asked: "{utterance}". '
        "Based on the database query results, provide a natural, helpful response."
    )
    results = json.dumps(to_jsonable(data), default=str)
    user_message = (
        f'User question: "{utterance}"\n\n'
        f"Database results: {results}\n\n"
        "Please provide a natural response based on this data."
    )
    return system_prompt, user_message
