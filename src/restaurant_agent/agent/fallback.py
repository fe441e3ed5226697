"""Deterministic fallbacks used when the LLM stages are unavailable.

Both fallbacks are plain tables so they can be exercised without any model:

- `KEYWORD_RULES` maps lowercase substrings to an intent tag, first match wins.
- `RESPONSE_TEMPLATES` maps an intent to a renderer over its query data.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from restaurant_agent.llm.errors import UpstreamErrorKind
from restaurant_agent.types import IntentType

KEYWORD_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("cheapest", "lowest price"), "cheapest_item"),
    (("expensive", "highest price"), "expensive_item"),
    (("pending", "orders"), "pending_orders"),
    (("revenue", "sales"), "revenue"),
    (("categories", "types"), "categories"),
    (("dessert",), "category_items|dessert"),
    (("drink", "beverage"), "category_items|drink"),
)

DEFAULT_TAG = IntentType.GENERAL.value

APOLOGY_MESSAGE = (
    "I apologize, but I encountered an error processing your request. "
    "Please try again with a simpler question."
)
FORMATTING_MESSAGE = (
    "I found some information but had trouble formatting the response. "
    "Please try asking again."
)
EMPTY_CATEGORY_MESSAGE = "No items found in that category."

UPSTREAM_FAILURE_MESSAGES: dict[UpstreamErrorKind, str] = {
    UpstreamErrorKind.RATE_LIMITED: (
        "We're experiencing high demand right now. "
        "Please wait a moment and try again."
    ),
    UpstreamErrorKind.QUOTA_EXCEEDED: (
        "The AI service has reached its usage limit. "
        "Please try again later or contact support."
    ),
    UpstreamErrorKind.TIMEOUT: "Request timed out. Please try a simpler question.",
}


def match_keywords(utterance: str) -> str:
    """Return the intent tag for the first keyword rule found in `utterance`."""
    text = utterance.lower()
    for keywords, tag in KEYWORD_RULES:
        if any(keyword in text for keyword in keywords):
            return tag
    return DEFAULT_TAG


def _money(value: Any) -> str:
    """Format an amount as dollars with cents, so 12.5 renders as ``$12.50``."""
    return f"${float(value):.2f}"


def _field(data: Any, name: str, *aliases: str) -> Any:
    if isinstance(data, dict):
        for key in (name, *aliases):
            if key in data:
                return data[key]
        raise KeyError(name)
    return getattr(data, name)


def _cheapest(data: Any) -> str:
    return (
        f"The cheapest item on our menu is {_field(data, 'name')} priced at "
        f"{_money(_field(data, 'price'))} in the {_field(data, 'category')} category."
    )


def _expensive(data: Any) -> str:
    return (
        f"The most expensive item is {_field(data, 'name')} at "
        f"{_money(_field(data, 'price'))} in the {_field(data, 'category')} category."
    )


def _pending(data: Any) -> str:
    return f"There are currently {_field(data, 'count')} pending orders."


def _revenue(data: Any) -> str:
    return (
        f"Today's revenue is {_money(_field(data, 'revenue'))} from "
        f"{_field(data, 'order_count', 'orderCount')} completed orders."
    )


def _categories(data: Any) -> str:
    return f"Our menu categories include: {', '.join(str(name) for name in data)}."


def _category_items(data: Any) -> str:
    if not data:
        return EMPTY_CATEGORY_MESSAGE
    listed = ", ".join(
        f"{_field(item, 'name')} ({_money(_field(item, 'price'))})" for item in data
    )
    return f"Here are the items in that category: {listed}."


RESPONSE_TEMPLATES: dict[IntentType, Callable[[Any], str]] = {
    IntentType.CHEAPEST_ITEM: _cheapest,
    IntentType.EXPENSIVE_ITEM: _expensive,
    IntentType.PENDING_ORDERS: _pending,
    IntentType.REVENUE: _revenue,
    IntentType.CATEGORIES: _categories,
    IntentType.CATEGORY_ITEMS: _category_items,
}


def render_template(intent: IntentType, data: Any) -> str:
    """Render the canned answer for `intent` from its query data."""
    template = RESPONSE_TEMPLATES.get(intent)
    if template is None:
        return FORMATTING_MESSAGE
    try:
        return template(data)
    except (AttributeError, KeyError, TypeError, ValueError):
        return FORMATTING_MESSAGE


def failure_message(kind: UpstreamErrorKind | None) -> str:
    """Message shown when no data is available and the generator failed."""
    if kind is None:
        return APOLOGY_MESSAGE
    return UPSTREAM_FAILURE_MESSAGES.get(kind, APOLOGY_MESSAGE)
