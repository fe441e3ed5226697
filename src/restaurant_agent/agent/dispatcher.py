"""Classify -> query -> generate orchestration behind a single-flight guard."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from restaurant_agent.agent.classifier import IntentClassifier
from restaurant_agent.agent.generator import ResponseGenerator
from restaurant_agent.agent.registry import AccessorRegistry
from restaurant_agent.config import AgentConfig
from restaurant_agent.data.accessors import QueryAccessors, build_accessor_registry
from restaurant_agent.data.store import RestaurantStore
from restaurant_agent.limits.rate_limiter import SlidingWindowRateLimiter
from restaurant_agent.llm.gateway import ChatGateway
from restaurant_agent.obs.tracing import Timer, TraceStore
from restaurant_agent.types import (
    AccessorTrace,
    AgentResponse,
    Intent,
    IntentType,
    PipelineStage,
    QueryResult,
)

logger = logging.getLogger(__name__)

ALREADY_PROCESSING = "Already processing"
TIMEOUT = "Timeout"
PROCESSING_ERROR = "Processing error"

BUSY_MESSAGE = "I'm still processing your previous question. Please wait a moment."
TIMEOUT_MESSAGE = "Sorry, that took too long to process. Please try a simpler question."
PROCESSING_ERROR_MESSAGE = "I apologize, but I encountered an error. Please try again."
EMPTY_MESSAGE = "Please ask me a question about the menu, orders, or today's sales."


@dataclass(slots=True)
class _PipelineRun:
    question: str
    stage: PipelineStage = PipelineStage.IDLE
    intent: str | None = None
    classifier_source: str | None = None
    generator_source: str | None = None
    accessor_traces: list[AccessorTrace] = field(default_factory=list)
    upstream_errors: list[str] = field(default_factory=list)


class RestaurantAgent:
    """One conversational agent instance, typically one per chat session.

    The agent owns its rate window and processing guard, so separate instances
    never share admission or busy state. Calls are serialized by the guard: a
    second `process_message` while one is in flight is rejected, not queued.
    """

    def __init__(
        self,
        *,
        accessor_registry: AccessorRegistry,
        classifier_llm: Any | None = None,
        generator_llm: Any | None = None,
        config: AgentConfig | None = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        trace_store: TraceStore | None = None,
    ) -> None:
        self.config = config or AgentConfig()
        self.accessors = accessor_registry
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter.from_config(
            self.config.rate_limit
        )
        self.trace_store = trace_store or TraceStore()
        self.classifier = IntentClassifier(
            ChatGateway(
                llm=classifier_llm,
                rate_limiter=self.rate_limiter,
                timeout_seconds=self.config.llm_timeout_seconds,
                name="classifier",
            )
        )
        self.generator = ResponseGenerator(
            ChatGateway(
                llm=generator_llm,
                rate_limiter=self.rate_limiter,
                timeout_seconds=self.config.llm_timeout_seconds,
                name="generator",
            )
        )
        self._processing = False
        self._stage = PipelineStage.IDLE

    @classmethod
    def from_store(
        cls,
        store: RestaurantStore,
        *,
        llm: Any | None = None,
        classifier_llm: Any | None = None,
        generator_llm: Any | None = None,
        config: AgentConfig | None = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        trace_store: TraceStore | None = None,
        today: Callable[[], date] = date.today,
    ) -> "RestaurantAgent":
        """Build an agent over `store`; `llm` serves both stages unless overridden."""
        return cls(
            accessor_registry=build_accessor_registry(QueryAccessors(store, today=today)),
            classifier_llm=classifier_llm if classifier_llm is not None else llm,
            generator_llm=generator_llm if generator_llm is not None else llm,
            config=config,
            rate_limiter=rate_limiter,
            trace_store=trace_store,
        )

    @property
    def is_processing(self) -> bool:
        return self._processing

    @property
    def current_stage(self) -> PipelineStage:
        return self._stage

    def rate_limit_status(self) -> dict[str, Any]:
        return {
            "max_requests": self.rate_limiter.max_requests,
            "window_seconds": self.rate_limiter.window_seconds,
            "remaining": self.rate_limiter.remaining(),
            "retry_after_seconds": self.rate_limiter.time_until_next_slot(),
        }

    async def process_message(self, user_message: str) -> AgentResponse:
        """Answer one user question; never raises.

        Returns:
            An `AgentResponse` whose `error` is `None` on success, the accessor
            error when the data query failed, or one of `"Already processing"`,
            `"Timeout"` and `"Processing error"`.
        """

        run = _PipelineRun(question=user_message)

        if self._processing:
            logger.info("Rejecting message while a previous one is in flight")
            run.stage = PipelineStage.ALREADY_BUSY
            response = AgentResponse(message=BUSY_MESSAGE, error=ALREADY_PROCESSING)
            self._record(run, response, latency_ms=0.0)
            return response

        if not user_message or not user_message.strip():
            run.stage = PipelineStage.DONE
            response = AgentResponse(message=EMPTY_MESSAGE)
            self._record(run, response, latency_ms=0.0)
            return response

        self._processing = True
        self.accessors.set_observer(run.accessor_traces.append)
        try:
            with Timer() as timer:
                try:
                    response = await asyncio.wait_for(
                        self._run_pipeline(user_message.strip(), run),
                        timeout=self.config.request_timeout_seconds,
                    )
                except asyncio.TimeoutError:
                    logger.warning(
                        "Request deadline of %.1fs expired during %s",
                        self.config.request_timeout_seconds,
                        run.stage.value,
                    )
                    run.stage = PipelineStage.TIMED_OUT
                    response = AgentResponse(message=TIMEOUT_MESSAGE, error=TIMEOUT)
                except Exception:
                    logger.exception("Unexpected error during %s", run.stage.value)
                    run.stage = PipelineStage.FAILED
                    response = AgentResponse(
                        message=PROCESSING_ERROR_MESSAGE, error=PROCESSING_ERROR
                    )
        finally:
            self.accessors.set_observer(None)
            self._processing = False
            self._stage = PipelineStage.IDLE

        self._record(run, response, latency_ms=timer.elapsed_ms)
        return response

    async def _run_pipeline(self, text: str, run: _PipelineRun) -> AgentResponse:
        self._enter(run, PipelineStage.CLASSIFYING)
        classification = await self.classifier.classify_with_source(text)
        run.classifier_source = classification.source
        if classification.upstream_error:
            run.upstream_errors.append(f"classifier:{classification.upstream_error}")
        intent = Intent.parse(classification.tag)
        run.intent = intent.tag
        logger.info("Classified %r as %s via %s", text, intent.tag, classification.source)

        self._enter(run, PipelineStage.QUERYING)
        result = await self._query(intent)
        data = result.data if result is not None and result.success else None
        error = result.error if result is not None and not result.success else None

        self._enter(run, PipelineStage.GENERATING)
        generation = await self.generator.generate_with_source(text, intent.type, data)
        run.generator_source = generation.source
        if generation.upstream_error:
            run.upstream_errors.append(f"generator:{generation.upstream_error}")

        self._enter(run, PipelineStage.DONE)
        return AgentResponse(message=generation.message, data=data, error=error)

    async def _query(self, intent: Intent) -> QueryResult | None:
        if intent.type is IntentType.GENERAL or intent.type.value not in self.accessors:
            return None
        payload: dict[str, Any] = {}
        if intent.type is IntentType.CATEGORY_ITEMS:
            payload["category"] = intent.argument
        result = await self.accessors.execute(intent.type.value, payload)
        if not result.success:
            logger.warning("Accessor %s failed: %s", intent.type.value, result.error)
        return result

    def _enter(self, run: _PipelineRun, stage: PipelineStage) -> None:
        run.stage = stage
        self._stage = stage

    def _record(self, run: _PipelineRun, response: AgentResponse, *, latency_ms: float) -> None:
        self.trace_store.create_record(
            question=run.question,
            stage=run.stage.value,
            intent=run.intent,
            classifier_source=run.classifier_source,
            generator_source=run.generator_source,
            accessor_traces=list(run.accessor_traces),
            error=response.error,
            latency_ms=latency_ms,
            upstream_errors=run.upstream_errors,
        )
