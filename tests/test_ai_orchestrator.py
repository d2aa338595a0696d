import json

import pytest

from bestlocator.ai_orchestrator import (
    AIBusinessRuleViolation,
    AIExhaustedError,
    AILocator,
    AIProtocolViolation,
    build_locator_prompt,
    build_repair_prompt,
    check_business_rules,
    count_combinators,
    extract_answer,
    get_best_locator,
    parse_locator,
    retry_with_repair,
    validate_locator,
)
from bestlocator.ai_providers import ProviderError
from bestlocator.models import ElementInfo, PageContext


def _answer(**overrides: object) -> str:
    payload = {
        "selector": "login-button",
        "api": "getByTestId",
        "code": "page.getByTestId('login-button')",
        "strategy": "test-id",
        "unique": True,
    }
    payload.update(overrides)
    return f"<ANSWER>{json.dumps(payload)}</ANSWER>"


def _locator(selector: str, strategy: str = "class") -> AILocator:
    return AILocator(selector=selector, api="locator", code="", strategy=strategy, unique=True)  # type: ignore[arg-type]


class ScriptedProvider:
    def __init__(self, replies: list[object]) -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return str(reply)

    async def is_available(self) -> bool:
        return True


def test_extract_answer_requires_exactly_one_block() -> None:
    assert extract_answer("noise <answer> {} </answer> tail") == "{}"
    with pytest.raises(AIProtocolViolation):
        extract_answer("no block here")
    with pytest.raises(AIProtocolViolation) as excinfo:
        extract_answer("<ANSWER>{}</ANSWER><ANSWER>{}</ANSWER>")
    assert "found 2" in str(excinfo.value)


def test_parse_locator_reports_schema_violations() -> None:
    locator = parse_locator(_answer(extra="ignored"))
    assert locator.strategy == "test-id"

    with pytest.raises(AIProtocolViolation) as excinfo:
        parse_locator(_answer(strategy="magic"))
    assert any(v.startswith("strategy:") for v in excinfo.value.violations)

    with pytest.raises(AIProtocolViolation):
        parse_locator("<ANSWER>{not json}</ANSWER>")


def test_count_combinators_ignores_quoted_text() -> None:
    assert count_combinators(".card .title") == 1
    assert count_combinators(".a > .b + .c ~ .d") == 3
    assert count_combinators('[aria-label="a > b c"]') == 0


def test_business_rules() -> None:
    assert check_business_rules(_locator("button.primary-button")) == []
    assert check_business_rules(_locator("div:contains('Save')"))
    assert check_business_rules(_locator('div[style="color: red"]'))
    assert check_business_rules(_locator("button.btn-active"))
    assert check_business_rules(_locator("div.css-1x2y3z4"))
    assert check_business_rules(_locator(".a > .b > .c > .d"))
    assert check_business_rules(_locator(".a > .b > .c > .d", strategy="role")) == []


def test_validate_locator_raises_business_violation() -> None:
    with pytest.raises(AIBusinessRuleViolation):
        validate_locator(_answer(selector="button.is-disabled", strategy="class"))
    assert validate_locator(_answer()).selector == "login-button"


def test_prompts_include_context_and_violations() -> None:
    element = ElementInfo(tag_name="button", text_content="Save", attributes={"type": "submit"})
    prompt = build_locator_prompt(element, PageContext(url="https://shop.test/cart", title="Cart"))
    assert "https://shop.test/cart" in prompt
    assert '"tagName": "button"' in prompt
    assert "<ANSWER>" in prompt

    repair = build_repair_prompt("garbage", ["strategy: bad"], prompt)
    assert repair.startswith("You are an expert")
    assert "- strategy: bad" in repair
    assert "garbage" in repair


@pytest.mark.asyncio
async def test_malformed_output_exhausts_after_three_attempts() -> None:
    provider = ScriptedProvider(["not json at all"])
    with pytest.raises(AIExhaustedError) as excinfo:
        await get_best_locator(provider, ElementInfo(tag_name="button"))
    assert len(provider.prompts) == 3
    assert "after 3 attempts" in str(excinfo.value)
    assert excinfo.value.last_output == "not json at all"


@pytest.mark.asyncio
async def test_repair_prompt_is_sent_after_bad_answer() -> None:
    provider = ScriptedProvider(["oops", _answer()])
    locator = await get_best_locator(provider, ElementInfo(tag_name="button"))
    assert locator.selector == "login-button"
    assert len(provider.prompts) == 2
    assert "Your previous answer was rejected" in provider.prompts[1]
    assert "oops" in provider.prompts[1]


@pytest.mark.asyncio
async def test_provider_errors_consume_attempts() -> None:
    provider = ScriptedProvider([ProviderError("boom"), _answer()])
    locator = await get_best_locator(provider, ElementInfo(tag_name="button"), max_attempts=2)
    assert locator.strategy == "test-id"
    assert provider.prompts[0] == provider.prompts[1]


@pytest.mark.asyncio
async def test_retry_with_repair_reports_last_violations() -> None:
    provider = ScriptedProvider([ProviderError("offline")])
    with pytest.raises(AIExhaustedError) as excinfo:
        await retry_with_repair(2, provider.generate_text, validate_locator, lambda raw, v: raw, "prompt")
    assert excinfo.value.attempts == 2
    assert excinfo.value.violations == ["offline"]
    assert excinfo.value.last_output == ""


def test_combinator_limit_applies_to_structural_strategies() -> None:
    deep = 'form > div > span > [data-testid="x"]'
    with pytest.raises(AIBusinessRuleViolation):
        validate_locator(_answer(selector=deep, strategy="test-id"))
    assert check_business_rules(_locator("main > section > div > #save", strategy="id"))
    assert check_business_rules(_locator("Search the docs and more", strategy="placeholder")) == []


def test_test_id_and_id_answers_must_be_single_values() -> None:
    assert check_business_rules(_locator('[data-testid="login"]', strategy="test-id")) == []
    assert check_business_rules(_locator("login", strategy="test-id")) == []
    assert check_business_rules(_locator("#main", strategy="id")) == []
    assert check_business_rules(_locator("form #main", strategy="id"))
    assert check_business_rules(_locator('div [data-testid="login"]', strategy="test-id"))
