from __future__ import annotations

import json
import logging
import re

from .ai_orchestrator import DEFAULT_MAX_ATTEMPTS, AILocator, get_best_locator
from .ai_providers import AIProvider, ProviderError
from .models import ElementInfo, PageContext, SelectorResult

# strategy -> (selector type, confidence)
STRATEGY_RESULTS = {
    "test-id": ("test-id", 97),
    "role": ("role", 96),
    "id": ("id", 94),
    "placeholder": ("placeholder", 90),
    "class": ("css", 88),
    "fallback": ("css", 50),
}

_ATTRIBUTE_SELECTOR = re.compile(r"""^\[([\w-]+)\s*=\s*['"]([^'"]+)['"]\]$""")

logger = logging.getLogger(__name__)


def locator_to_result(locator: AILocator) -> SelectorResult:
    selector_type, confidence = STRATEGY_RESULTS[locator.strategy]
    selector = locator.selector.strip()
    attribute: str | None = None

    if locator.strategy == "test-id":
        match = _ATTRIBUTE_SELECTOR.match(selector)
        if match:
            attribute, selector = match.group(1), match.group(2)
    elif locator.strategy == "id" and selector.startswith("#"):
        selector = selector[1:]

    reasoning = f"AI chose the '{locator.strategy}' strategy."
    if not locator.unique:
        reasoning += " The AI could not confirm the locator is unique."
    return SelectorResult(
        selector=selector,
        confidence=confidence,
        type=selector_type,
        reasoning=reasoning,
        ai_enhanced=True,
        attribute=attribute,
    )


class AIEngine:
    def __init__(self, provider: AIProvider | None, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        self.provider = provider
        self.max_attempts = max_attempts

    async def is_available(self) -> bool:
        if self.provider is None:
            return False
        return await self.provider.is_available()

    async def generate_selector(self, element: ElementInfo, context: PageContext | None = None) -> SelectorResult:
        if self.provider is None:
            raise ProviderError("No AI provider configured.")
        locator = await get_best_locator(self.provider, element, context, self.max_attempts)
        logger.info("AI locator accepted: strategy=%s selector=%s", locator.strategy, locator.selector)
        return locator_to_result(locator)

    async def explain_selector(self, selector: str, element: ElementInfo) -> str:
        if self.provider is None or not await self.is_available():
            return f"AI explanation disabled. Chosen selector: {selector}"

        facts = {
            "role": element.computed_role,
            "accessibleName": (element.accessible_name or "").strip() or None,
            "id": element.id or None,
            "name": element.attributes.get("name"),
            "placeholder": element.attributes.get("placeholder"),
            "aria-label": element.attributes.get("aria-label"),
        }
        prompt = "\n".join(
            [
                "Explain in JSON (fields: robustness_score[1-10], explanation, strengths, potential_risks,",
                "improvement_suggestions) why the selector below is a good choice for robust UI testing.",
                "Consider accessibility (role/name), stability of attributes (id/name/data-*) against",
                "volatile text or classes, and uniqueness. Keep it concise but specific.",
                "",
                f"Selector: {json.dumps(selector)}",
                f"Element facts: {json.dumps(facts, ensure_ascii=False)}",
            ]
        )
        try:
            raw = await self.provider.generate_text(prompt)
        except ProviderError as exc:
            logger.warning("AI explanation failed: %s", exc)
            return f"Selector: {selector}"
        return raw.strip() or f"Selector: {selector}"
