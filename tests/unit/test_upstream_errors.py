import pytest

from restaurant_agent.llm.errors import UpstreamError, UpstreamErrorKind, classify_upstream_error
from restaurant_agent.types import Intent, IntentType


class RateLimitError(Exception):
    pass


class APIStatusError(Exception):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (RateLimitError("slow down"), UpstreamErrorKind.RATE_LIMITED),
        (APIStatusError("Too Many Requests", 429), UpstreamErrorKind.RATE_LIMITED),
        (
            APIStatusError("You exceeded your current quota (insufficient_quota)", 429),
            UpstreamErrorKind.QUOTA_EXCEEDED,
        ),
        (APIStatusError("Incorrect API key provided", 401), UpstreamErrorKind.AUTH),
        (TimeoutError(), UpstreamErrorKind.TIMEOUT),
        (RuntimeError("Request timed out."), UpstreamErrorKind.TIMEOUT),
        (APIStatusError("Bad gateway", 502), UpstreamErrorKind.UNAVAILABLE),
        (RuntimeError("boom"), UpstreamErrorKind.UNAVAILABLE),
    ],
)
def test_classify_upstream_error(exc: Exception, expected: UpstreamErrorKind) -> None:
    assert classify_upstream_error(exc) is expected


def test_upstream_error_keeps_kind_and_retry_after() -> None:
    exc = UpstreamError(UpstreamErrorKind.RATE_LIMITED, "local limit", retry_after=12.5)
    assert classify_upstream_error(exc) is UpstreamErrorKind.RATE_LIMITED
    assert exc.retry_after == 12.5


@pytest.mark.parametrize(
    ("tag", "intent_type", "argument"),
    [
        ("cheapest_item", IntentType.CHEAPEST_ITEM, None),
        ("category_items|dessert", IntentType.CATEGORY_ITEMS, "dessert"),
        (' "Category_Items | Drinks" ', IntentType.CATEGORY_ITEMS, "Drinks"),
        ("category_items", IntentType.CATEGORY_ITEMS, None),
        ("revenue|today", IntentType.REVENUE, None),
        ("dance_party", IntentType.GENERAL, None),
        ("", IntentType.GENERAL, None),
    ],
)
def test_intent_parse(tag: str, intent_type: IntentType, argument: str | None) -> None:
    intent = Intent.parse(tag)
    assert intent.type is intent_type
    assert intent.argument == argument


def test_intent_tag_round_trip() -> None:
    assert Intent.parse("category_items|dessert").tag == "category_items|dessert"
    assert Intent.parse("pending_orders").tag == "pending_orders"
