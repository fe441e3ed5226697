"""LLM intent classifier with deterministic keyword fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from restaurant_agent.agent.fallback import DEFAULT_TAG, match_keywords
from restaurant_agent.llm.errors import UpstreamError
from restaurant_agent.llm.gateway import ChatGateway

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """
You are an AI assistant for a restaurant management system. Analyze the user's question and determine what type of query they need.

Available query types:
- "cheapest_item" - for questions about the cheapest menu item
- "expensive_item" - for questions about the most expensive menu item
- "category_items" - for questions about items in a specific category (extract the category name)
- "pending_orders" - for questions about pending orders
- "revenue" - for questions about today's sales/revenue
- "categories" - for questions about available menu categories
- "general" - for general restaurant questions that don't need database queries

Respond with ONLY the query type (and category name if applicable, separated by |). Examples:
- "What's the cheapest item?" -> "cheapest_item"
- "Show me desserts" -> "category_items|dessert"
- "How many pending orders?" -> "pending_orders"
- "What's today's revenue?" -> "revenue"
- "What categories do you have?" -> "categories"
- "How are you?" -> "general"
""".strip()


@dataclass(slots=True)
class Classification:
    tag: str
    source: str  # "llm" or "keywords"
    upstream_error: str | None = None


class IntentClassifier:
    """Turns an utterance into an intent tag; never raises."""

    def __init__(self, gateway: ChatGateway) -> None:
        self.gateway = gateway

    async def classify(self, utterance: str) -> str:
        return (await self.classify_with_source(utterance)).tag

    async def classify_with_source(self, utterance: str) -> Classification:
        if not self.gateway.available:
            return Classification(tag=_keyword_tag(utterance), source="keywords")

        try:
            raw = await self.gateway.complete(_SYSTEM_PROMPT, utterance)
        except UpstreamError as exc:
            logger.warning("Intent classification fell back to keywords (%s)", exc.kind.value)
            return Classification(
                tag=_keyword_tag(utterance), source="keywords", upstream_error=exc.kind.value
            )
        except Exception:
            logger.exception("Unexpected error while classifying intent")
            return Classification(tag=_keyword_tag(utterance), source="keywords")

        tag = _first_line(raw)
        if not tag:
            logger.warning("Empty classifier output; falling back to keywords")
            return Classification(tag=_keyword_tag(utterance), source="keywords")
        return Classification(tag=tag, source="llm")


def _keyword_tag(utterance: str) -> str:
    try:
        return match_keywords(utterance)
    except Exception:
        logger.exception("Keyword fallback failed")
        return DEFAULT_TAG


def _first_line(raw: str) -> str:
    for line in raw.splitlines():
        line = line.strip()
        if line:
            return line
    return ""
