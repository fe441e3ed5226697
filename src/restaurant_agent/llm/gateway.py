"""Single request/response exchanges with a LangChain chat model."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from langchain_core.prompts import ChatPromptTemplate

from restaurant_agent.limits.rate_limiter import SlidingWindowRateLimiter
from restaurant_agent.llm.errors import UpstreamError, UpstreamErrorKind, classify_upstream_error

logger = logging.getLogger(__name__)

_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "{system_prompt}"),
        ("human", "{input}"),
    ]
)


class ChatGateway:
    """Wraps one chat model behind the agent's rate window and a per-call timeout.

    `llm` is any object exposing LangChain's async `ainvoke(messages)`; `None`
    means no model is configured and every call fails fast as unavailable.
    All failures surface as `UpstreamError`.
    """

    def __init__(
        self,
        *,
        llm: Any | None,
        rate_limiter: SlidingWindowRateLimiter,
        timeout_seconds: float = 8.0,
        name: str = "llm",
    ) -> None:
        self.llm = llm
        self.rate_limiter = rate_limiter
        self.timeout_seconds = timeout_seconds
        self.name = name

    @property
    def available(self) -> bool:
        return self.llm is not None

    async def complete(self, system_prompt: str, user_message: str) -> str:
        if self.llm is None:
            raise UpstreamError(UpstreamErrorKind.UNAVAILABLE, f"{self.name}: no model configured")
        if not self.rate_limiter.try_admit():
            wait = self.rate_limiter.time_until_next_slot()
            raise UpstreamError(
                UpstreamErrorKind.RATE_LIMITED,
                f"{self.name}: local rate limit reached, next slot in {wait:.1f}s",
                retry_after=wait,
            )

        # Prompt text goes in as variable values so braces in JSON payloads are literal.
        messages = _PROMPT.format_messages(system_prompt=system_prompt, input=user_message)
        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke(messages), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise UpstreamError(
                UpstreamErrorKind.TIMEOUT,
                f"{self.name}: no response within {self.timeout_seconds:.1f}s",
            ) from exc
        except Exception as exc:
            kind = classify_upstream_error(exc)
            logger.warning("%s call failed (%s): %s", self.name, kind.value, exc)
            raise UpstreamError(kind, f"{self.name}: {exc}") from exc

        return _extract_text(response)


def _extract_text(response: Any) -> str:
    content = getattr(response, "content", response)
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return " ".join(parts).strip()
    return str(content).strip()
