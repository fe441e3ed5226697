"""Accessor registry built on Pydantic v2 models."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from restaurant_agent.types import AccessorTrace, QueryResult

logger = logging.getLogger(__name__)


class AccessorSpec(BaseModel):
    """Declarative accessor specification for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], Awaitable[Any]]
    tags: list[str] = Field(default_factory=list)

    async def invoke(self, payload: dict[str, Any]) -> Any:
        data = self.args_schema.model_validate(payload)
        return await self.handler(data)


class AccessorRegistry:
    """Stores accessor specs and runs them as never-raising data operations."""

    def __init__(self) -> None:
        self._accessors: dict[str, AccessorSpec] = {}
        self._observer: Callable[[AccessorTrace], None] | None = None

    def register(self, spec: AccessorSpec) -> None:
        if spec.name in self._accessors:
            raise ValueError(f"Accessor already registered: {spec.name}")
        self._accessors[spec.name] = spec

    def set_observer(self, observer: Callable[[AccessorTrace], None] | None) -> None:
        """Set an optional callback invoked after each accessor execution."""
        self._observer = observer

    def __contains__(self, name: object) -> bool:
        return name in self._accessors

    def specs(self) -> list[AccessorSpec]:
        return list(self._accessors.values())

    async def execute(self, name: str, payload: dict[str, Any] | None = None) -> QueryResult:
        """Run one accessor and wrap its outcome in a `QueryResult`.

        Raises:
            KeyError: if no accessor is registered under `name`.
        """

        spec = self._accessors.get(name)
        if spec is None:
            raise KeyError(f"Unknown accessor: {name}")

        payload = payload or {}
        start = perf_counter()
        try:
            result = QueryResult.ok(await spec.invoke(payload))
        except ValidationError as exc:
            logger.warning("Invalid arguments for accessor %s: %s", name, exc)
            result = QueryResult.fail(f"Invalid arguments for {name}")
        except Exception as exc:
            logger.warning("Accessor %s failed: %s", name, exc)
            result = QueryResult.fail(str(exc) or f"{name} query failed")
        latency_ms = (perf_counter() - start) * 1000.0

        if self._observer is not None:
            self._observer(
                AccessorTrace(
                    name=spec.name,
                    input_payload=payload,
                    success=result.success,
                    latency_ms=latency_ms,
                    error=result.error,
                )
            )
        return result
