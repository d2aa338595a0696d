from __future__ import annotations

import json
import logging
import re
from typing import Awaitable, Callable, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .ai_providers import AIProvider, ProviderError
from .models import ElementInfo, PageContext

DEFAULT_MAX_ATTEMPTS = 3
MAX_COMBINATORS = 2
STATEFUL_CLASS_WORDS = ("hover", "active", "disabled", "selected", "focus")
FREE_TEXT_STRATEGIES = ("role", "placeholder")

_ANSWER_BLOCK = re.compile(r"<ANSWER>\s*(.*?)\s*</ANSWER>", re.IGNORECASE | re.DOTALL)
_QUOTED = re.compile(r"\"[^\"]*\"|'[^']*'")
_CLASS_TOKEN = re.compile(r"\.([A-Za-z0-9_-]+)")
_HASH_CLASS = re.compile(r"css-[a-z0-9]{5,}", re.IGNORECASE)
_BARE_VALUE = re.compile(r"[^\s>+~,\[\]]+")
_ATTRIBUTE_VALUE = re.compile(r"""\[[\w-]+\s*=\s*(?:"[^"]+"|'[^']+')\]""")

T = TypeVar("T")

logger = logging.getLogger(__name__)


class AILocator(BaseModel):
    model_config = ConfigDict(extra="ignore")

    selector: str = Field(min_length=1)
    api: str
    code: str
    strategy: Literal["test-id", "role", "placeholder", "id", "class", "fallback"]
    unique: bool


class LocatorViolation(ValueError):
    def __init__(self, violations: list[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = violations


class AIProtocolViolation(LocatorViolation):
    pass


class AIBusinessRuleViolation(LocatorViolation):
    pass


class AIExhaustedError(RuntimeError):
    def __init__(self, attempts: int, last_output: str, violations: list[str] | None = None) -> None:
        super().__init__(f"Unable to produce a valid locator after {attempts} attempts. Last output: {last_output!r}")
        self.attempts = attempts
        self.last_output = last_output
        self.violations = violations or []


def extract_answer(raw: str) -> str:
    blocks = _ANSWER_BLOCK.findall(raw or "")
    if not blocks:
        raise AIProtocolViolation(["Response must contain exactly one <ANSWER>...</ANSWER> block; none found."])
    if len(blocks) > 1:
        raise AIProtocolViolation(
            [f"Response must contain exactly one <ANSWER>...</ANSWER> block; found {len(blocks)}."]
        )
    return blocks[0]


def parse_locator(raw: str) -> AILocator:
    answer = extract_answer(raw)
    try:
        return AILocator.model_validate_json(answer)
    except ValidationError as exc:
        violations = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ())) or "answer"
            violations.append(f"{location}: {error.get('msg', 'invalid value')}")
        raise AIProtocolViolation(violations) from exc


def count_combinators(selector: str) -> int:
    stripped = _QUOTED.sub('""', selector).strip()
    compact = re.sub(r"\s*([>+~,])\s*", r"\1", stripped)
    explicit = len(re.findall(r"[>+~]", compact))
    descendant = len(re.findall(r"\s+", compact))
    return explicit + descendant


def _is_single_value(locator: AILocator) -> bool:
    selector = locator.selector.strip()
    if locator.strategy == "test-id" and _ATTRIBUTE_VALUE.fullmatch(selector):
        return True
    if locator.strategy == "id" and selector.startswith("#"):
        selector = selector[1:]
    return bool(_BARE_VALUE.fullmatch(selector))


def check_business_rules(locator: AILocator) -> list[str]:
    selector = locator.selector
    unquoted = _QUOTED.sub('""', selector)
    violations: list[str] = []

    if ":contains(" in selector:
        violations.append("Do not use the non-standard ':contains(' pseudo-class.")
    if "style=" in selector:
        violations.append("Do not match on inline style attributes.")
    for token in _CLASS_TOKEN.findall(unquoted):
        words = re.split(r"[-_]+", token.lower())
        if any(word in STATEFUL_CLASS_WORDS for word in words):
            violations.append(f"Do not rely on stateful class '.{token}'.")
    if locator.strategy not in FREE_TEXT_STRATEGIES:
        combinators = count_combinators(selector)
        if combinators > MAX_COMBINATORS:
            violations.append(
                f"Selector uses {combinators} combinators; at most {MAX_COMBINATORS} are allowed."
            )
    match = _HASH_CLASS.search(unquoted)
    if match:
        violations.append(f"Do not use generated hash class '{match.group(0)}'.")
    if locator.strategy in ("test-id", "id") and not _is_single_value(locator):
        violations.append(
            f"A '{locator.strategy}' selector must be a bare value, [attr=\"value\"] or #id; got '{selector}'."
        )
    return violations


def validate_locator(raw: str) -> AILocator:
    locator = parse_locator(raw)
    violations = check_business_rules(locator)
    if violations:
        raise AIBusinessRuleViolation(violations)
    return locator


def _element_hints(element: ElementInfo) -> dict[str, object]:
    return {
        "tagName": element.tag_name,
        "id": element.id,
        "className": element.class_name,
        "textContent": element.text_content.strip()[:200],
        "attributes": element.attributes,
        "computedRole": element.computed_role,
        "accessibleName": element.accessible_name,
    }


def build_locator_prompt(element: ElementInfo, context: PageContext | None = None) -> str:
    page = context or PageContext()
    return "\n".join(
        [
            "You are an expert in UI test automation. Choose the most stable locator for the element below.",
            "Prefer, in order: a test id attribute, an ARIA role with accessible name, a placeholder,",
            "a stable id, a meaningful class. Use 'fallback' only when nothing else is stable.",
            "Rules: no ':contains(', no inline style matching, no stateful classes",
            "(hover, active, disabled, selected, focus), no generated 'css-xxxxx' classes,",
            "and no more than two combinators. A test-id answer is the bare value or [attr=\"value\"],",
            "an id answer is the bare id or #id.",
            "For the 'role' strategy write the selector as role|accessible name.",
            "",
            f"Page URL: {page.url or 'unknown'}",
            f"Page title: {page.title or 'unknown'}",
            "Element:",
            json.dumps(_element_hints(element), ensure_ascii=False, indent=2, sort_keys=True),
            "",
            "Reply with exactly one block of the form:",
            "<ANSWER>",
            '{"selector": "...", "api": "...", "code": "...",',
            ' "strategy": "test-id|role|placeholder|id|class|fallback", "unique": true}',
            "</ANSWER>",
        ]
    )


def build_repair_prompt(previous_output: str, violations: list[str], original_prompt: str = "") -> str:
    lines = [
        original_prompt,
        "",
        "Your previous answer was rejected:",
        previous_output.strip() or "<empty>",
        "",
        "Fix these problems:",
    ]
    lines.extend(f"- {violation}" for violation in violations)
    lines.append("Answer again with exactly one <ANSWER>...</ANSWER> block containing valid JSON.")
    return "\n".join(lines).strip()


async def retry_with_repair(
    max_attempts: int,
    call_provider: Callable[[str], Awaitable[str]],
    validate: Callable[[str], T],
    build_repair: Callable[[str, list[str]], str],
    prompt: str,
) -> T:
    """Call the provider until ``validate`` accepts a reply or the attempts run out.

    Validation failures feed a repair prompt into the next attempt. Provider errors
    consume an attempt and retry the same prompt.
    """
    last_output = ""
    violations: list[str] = []
    current_prompt = prompt

    for attempt in range(1, max_attempts + 1):
        try:
            raw = await call_provider(current_prompt)
        except ProviderError as exc:
            violations = [str(exc)]
            logger.warning("AI provider call failed on attempt %s/%s: %s", attempt, max_attempts, exc)
            continue

        last_output = raw
        try:
            return validate(raw)
        except LocatorViolation as exc:
            violations = exc.violations
            logger.info("AI answer rejected on attempt %s/%s: %s", attempt, max_attempts, exc)
            current_prompt = build_repair(raw, violations)

    raise AIExhaustedError(max_attempts, last_output, violations)


async def get_best_locator(
    provider: AIProvider,
    element: ElementInfo,
    context: PageContext | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> AILocator:
    prompt = build_locator_prompt(element, context)
    return await retry_with_repair(
        max_attempts,
        provider.generate_text,
        validate_locator,
        lambda raw, violations: build_repair_prompt(raw, violations, prompt),
        prompt,
    )
