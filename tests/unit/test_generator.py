import asyncio
import json

import pytest
from langchain_core.messages import AIMessage

from restaurant_agent.agent.fallback import APOLOGY_MESSAGE
from restaurant_agent.agent.generator import ResponseGenerator, build_prompt
from restaurant_agent.limits.rate_limiter import SlidingWindowRateLimiter
from restaurant_agent.llm.gateway import ChatGateway
from restaurant_agent.types import IntentType, MenuItem, PendingOrders, TodayRevenue


class ScriptedLLM:
    def __init__(self, reply: object, *, delay: float = 0.0) -> None:
        self.reply = reply
        self.delay = delay
        self.calls: list[list[object]] = []

    async def ainvoke(self, messages: list[object]) -> AIMessage:
        self.calls.append(messages)
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.reply, Exception):
            raise self.reply
        return AIMessage(content=str(self.reply))


class InsufficientQuotaError(Exception):
    status_code = 429


def _generator(llm: object | None, *, timeout: float = 8.0) -> ResponseGenerator:
    return ResponseGenerator(
        ChatGateway(
            llm=llm,
            rate_limiter=SlidingWindowRateLimiter(10, 60.0),
            timeout_seconds=timeout,
            name="generator",
        )
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("intent", "data", "expected"),
    [
        (
            IntentType.CHEAPEST_ITEM,
            MenuItem("Espresso", 2.95, "Drinks"),
            "The cheapest item on our menu is Espresso priced at $2.95 in the Drinks category.",
        ),
        (IntentType.PENDING_ORDERS, PendingOrders(count=0), "There are currently 0 pending orders."),
        (
            IntentType.REVENUE,
            TodayRevenue(revenue=245.5, order_count=12),
            "Today's revenue is $245.50 from 12 completed orders.",
        ),
        (IntentType.CATEGORY_ITEMS, [], "No items found in that category."),
    ],
)
async def test_failed_model_renders_template(intent: IntentType, data: object, expected: str) -> None:
    generator = _generator(ScriptedLLM(RuntimeError("500 internal error")))

    result = await generator.generate_with_source("question", intent, data)

    assert result.message == expected
    assert result.source == "template"
    assert result.upstream_error == "unavailable"


@pytest.mark.asyncio
async def test_grounded_prompt_carries_serialized_data() -> None:
    llm = ScriptedLLM("Espresso is our cheapest item at $2.95.")
    generator = _generator(llm)

    message = await generator.generate(
        "What's the cheapest item?", IntentType.CHEAPEST_ITEM, MenuItem("Espresso", 2.95, "Drinks")
    )

    assert message == "Espresso is our cheapest item at $2.95."
    system, human = llm.calls[0]
    assert "1-2 sentences" in system.content
    assert 'The user asked: "What\'s the cheapest item?"' in system.content
    assert '"name": "Espresso"' in human.content
    assert "Database results:" in human.content


@pytest.mark.asyncio
async def test_general_question_sends_raw_utterance() -> None:
    llm = ScriptedLLM("We open at 11am every day.")

    message = await _generator(llm).generate("When do you open?", IntentType.GENERAL)

    assert message == "We open at 11am every day."
    assert llm.calls[0][1].content == "When do you open?"


@pytest.mark.asyncio
async def test_failure_without_data_is_targeted() -> None:
    rate_limited = _generator(ScriptedLLM(RuntimeError("429 Too Many Requests")))
    quota = _generator(ScriptedLLM(InsufficientQuotaError("insufficient_quota")))
    slow = _generator(ScriptedLLM("late", delay=1.0), timeout=0.05)

    assert "high demand" in await rate_limited.generate("hi", IntentType.GENERAL)
    assert "usage limit" in await quota.generate("hi", IntentType.GENERAL)
    assert "timed out" in await slow.generate("hi", IntentType.GENERAL)
    assert await _generator(None).generate("hi", IntentType.GENERAL) == APOLOGY_MESSAGE


@pytest.mark.asyncio
async def test_empty_model_output_uses_template() -> None:
    generator = _generator(ScriptedLLM(""))

    result = await generator.generate_with_source(
        "pending?", IntentType.PENDING_ORDERS, PendingOrders(count=3)
    )

    assert result.message == "There are currently 3 pending orders."
    assert result.source == "template"


def test_build_prompt_with_and_without_data() -> None:
    system, user = build_prompt("hello")
    assert user == "hello"
    assert "The user asked" not in system

    system, user = build_prompt("revenue?", TodayRevenue(revenue=1.5, order_count=1))
    payload = user.split("Database results: ", 1)[1].split("\n", 1)[0]
    assert json.loads(payload) == {"revenue": 1.5, "orderCount": 1}
