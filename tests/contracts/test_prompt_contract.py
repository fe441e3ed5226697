from restaurant_agent.agent.classifier import _SYSTEM_PROMPT as CLASSIFIER_PROMPT
from restaurant_agent.agent.generator import _SYSTEM_PROMPT as GENERATOR_PROMPT
from restaurant_agent.types import IntentType


def test_classifier_prompt_enumerates_every_intent() -> None:
    for intent in IntentType:
        assert f'"{intent.value}"' in CLASSIFIER_PROMPT
    assert "separated by |" in CLASSIFIER_PROMPT
    assert '"category_items|dessert"' in CLASSIFIER_PROMPT


def test_generator_prompt_requests_short_answers() -> None:
    assert "1-2 sentences" in GENERATOR_PROMPT
    assert "restaurant" in GENERATOR_PROMPT
