"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any


class IntentType(str, Enum):
    """Closed set of intents the classifier may produce."""

    CHEAPEST_ITEM = "cheapest_item"
    EXPENSIVE_ITEM = "expensive_item"
    CATEGORY_ITEMS = "category_items"
    PENDING_ORDERS = "pending_orders"
    REVENUE = "revenue"
    CATEGORIES = "categories"
    GENERAL = "general"


class PipelineStage(str, Enum):
    IDLE = "idle"
    CLASSIFYING = "classifying"
    QUERYING = "querying"
    GENERATING = "generating"
    DONE = "done"
    TIMED_OUT = "timed_out"
    ALREADY_BUSY = "already_busy"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class Intent:
    """A classified intent with its optional free-text argument."""

    type: IntentType
    argument: str | None = None

    @classmethod
    def parse(cls, tag: str) -> "Intent":
        """Parse a classifier tag such as ``"category_items|dessert"``.

        Unknown intent names resolve to ``general`` so the pipeline always has
        something to dispatch on.
        """

        raw_type, _, raw_argument = tag.partition("|")
        name = _clean(raw_type).lower()
        argument = _clean(raw_argument) or None
        try:
            intent_type = IntentType(name)
        except ValueError:
            return cls(type=IntentType.GENERAL)
        if intent_type is not IntentType.CATEGORY_ITEMS:
            argument = None
        return cls(type=intent_type, argument=argument)

    @property
    def tag(self) -> str:
        if self.argument:
            return f"{self.type.value}|{self.argument}"
        return self.type.value


@dataclass(slots=True)
class MenuItem:
    """A menu item record as returned to callers."""

    name: str
    price: float
    category: str


@dataclass(slots=True)
class PendingOrders:
    count: int


@dataclass(slots=True)
class TodayRevenue:
    revenue: float
    order_count: int = field(metadata={"json_key": "orderCount"})


@dataclass(slots=True)
class QueryResult:
    """Outcome of one accessor call: either data or an error string."""

    success: bool
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any) -> "QueryResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "QueryResult":
        return cls(success=False, error=error)


@dataclass(slots=True)
class AgentResponse:
    """Externally visible result of one `process_message` call."""

    message: str
    data: Any = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message}
        if self.data is not None:
            payload["data"] = to_jsonable(self.data)
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(slots=True)
class AccessorTrace:
    """Trace record for an executed accessor call."""

    name: str
    input_payload: dict[str, Any]
    success: bool
    latency_ms: float
    error: str | None = None


def to_jsonable(data: Any) -> Any:
    """Convert accessor data (dataclasses, lists of them) to plain JSON types.

    Dataclass fields carrying a ``json_key`` metadata entry are emitted under
    that key, e.g. ``TodayRevenue.order_count`` becomes ``orderCount``.
    """

    if is_dataclass(data) and not isinstance(data, type):
        return {
            f.metadata.get("json_key", f.name): to_jsonable(getattr(data, f.name))
            for f in fields(data)
        }
    if isinstance(data, dict):
        return {key: to_jsonable(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_jsonable(item) for item in data]
    return data


def _clean(value: str) -> str:
    return value.strip().strip("\"'`").strip()
