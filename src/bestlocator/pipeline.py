from __future__ import annotations

from dataclasses import dataclass, replace
import re
from typing import Any, Callable, Mapping

from .accessibility import enrich_element
from .config import EngineConfig
from .models import ElementInfo, SelectorResult, normalize_framework
from .selector_rules import attribute_selector, role_xpath
from .strategies import STRATEGIES, fallback

Optimizer = Callable[[SelectorResult], SelectorResult]

DEFAULT_STRATEGY_ORDER = (
    "test-id",
    "stable-id",
    "aria-role",
    "form-attrs",
    "semantic-attrs",
    "placeholder",
    "link-href",
    "stable-css",
    "text",
)
LANGUAGE_SENSITIVE_STRATEGIES = ("aria-role", "placeholder", "text")

TESTCAFE_ROLE_ELEMENTS = {
    "button": "button",
    "link": "a",
    "textbox": "input",
    "checkbox": 'input[type="checkbox"]',
    "radio": 'input[type="radio"]',
    "combobox": "select",
    "navigation": "nav",
    "main": "main",
    "heading": "h1, h2, h3, h4, h5, h6",
}

_TEST_ID_CSS = re.compile(r'\[data-testid="([^"]+)"\]')
_ROLE_CSS = re.compile(r'\[role="([^"]+)"\]')
_NAME_CSS = re.compile(r"""\[name=["']([^"']+)["']\]""")
_XPATH_ID = re.compile(r'\[@id="([^"]+)"\]')


@dataclass(frozen=True, slots=True)
class FrameworkProfile:
    name: str
    strategy_order: tuple[str, ...]
    min_confidence: int
    optimizer: Optimizer
    priority_attributes: tuple[str, ...] = ()


def split_role(selector: str) -> tuple[str, str | None]:
    role, sep, name = selector.partition("|")
    if not sep:
        return selector.strip(), None
    return role.strip(), (name.strip() or None)


def _test_id_css(result: SelectorResult) -> str:
    attribute = result.attribute or "data-testid"
    return attribute_selector(attribute, result.selector)


def optimize_playwright(result: SelectorResult) -> SelectorResult:
    if result.type == "css":
        match = _TEST_ID_CSS.search(result.selector)
        if match:
            return replace(
                result,
                type="test-id",
                selector=match.group(1),
                confidence=100,
                attribute="data-testid",
                reasoning="Converted CSS to Playwright test-id",
            )
        match = _ROLE_CSS.search(result.selector)
        if match:
            return replace(
                result,
                type="role",
                selector=match.group(1),
                confidence=95,
                reasoning="Converted CSS to Playwright role",
            )
    if result.type == "id":
        return replace(
            result,
            type="css",
            selector=f"#{result.selector}",
            confidence=max(0, result.confidence - 5),
            reasoning="Playwright prefers locators over IDs",
        )
    return result


def optimize_selenium(result: SelectorResult) -> SelectorResult:
    if result.type == "id":
        return replace(
            result,
            confidence=min(result.confidence + 10, 100),
            reasoning="Selenium prefers By.id() when available",
        )
    if result.type == "css":
        if result.selector.startswith("#") and re.fullmatch(r"#[\w-]+", result.selector):
            return replace(
                result,
                type="id",
                selector=result.selector[1:],
                confidence=min(result.confidence + 10, 100),
                reasoning="Converted CSS #id to By.id()",
            )
        match = _NAME_CSS.search(result.selector)
        if match:
            return replace(
                result,
                type="name",
                selector=match.group(1),
                confidence=min(result.confidence + 5, 100),
                reasoning="Selenium prefers By.name() for form elements",
            )
    if result.type == "role":
        role, name = split_role(result.selector)
        if name:
            return replace(
                result,
                type="xpath",
                selector=role_xpath(role, name),
                confidence=max(result.confidence - 5, 0),
                reasoning="Selenium uses XPath for role+text combinations",
            )
    if result.type == "placeholder":
        return replace(
            result,
            type="css",
            selector=attribute_selector("placeholder", result.selector),
            reasoning="Selenium uses CSS for placeholder",
        )
    return result


def optimize_cypress(result: SelectorResult) -> SelectorResult:
    if result.type == "id":
        return replace(result, type="css", selector=f"#{result.selector}", reasoning="Cypress uses CSS syntax for IDs")
    if result.type == "role":
        _, name = split_role(result.selector)
        if name:
            return replace(
                result,
                type="text",
                selector=name,
                confidence=max(result.confidence - 10, 0),
                reasoning="Cypress uses cy.contains() for text",
            )
    if result.type == "css" and ".form-control" in result.selector:
        return replace(
            result,
            confidence=max(result.confidence - 20, 30),
            reasoning="Generic class selector (low confidence)",
        )
    return result


def optimize_webdriverio(result: SelectorResult) -> SelectorResult:
    if result.type == "id":
        return replace(result, type="css", selector=f"#{result.selector}", reasoning="WebdriverIO uses CSS syntax for IDs")
    if result.type == "test-id":
        return replace(
            result,
            type="css",
            selector=_test_id_css(result),
            reasoning="WebdriverIO uses CSS for data attributes",
        )
    if result.type == "role":
        _, name = split_role(result.selector)
        if name:
            return replace(result, type="text", selector=name, reasoning="WebdriverIO uses partial text match")
    if result.type == "css" and ".form-control" in result.selector:
        return replace(
            result,
            confidence=max(result.confidence - 15, 35),
            reasoning="Generic class selector (low confidence)",
        )
    return result


def optimize_testcafe(result: SelectorResult) -> SelectorResult:
    if result.type == "xpath":
        match = _XPATH_ID.search(result.selector)
        if match:
            return replace(
                result,
                type="id",
                selector=match.group(1),
                confidence=max(result.confidence - 10, 0),
                reasoning="TestCafe doesn't support XPath, converted to ID",
            )
        return replace(
            result,
            type="css",
            selector="body *",
            confidence=30,
            reasoning="TestCafe doesn't support XPath, fallback to generic",
        )
    if result.type == "role":
        role, name = split_role(result.selector)
        element = TESTCAFE_ROLE_ELEMENTS.get(role, attribute_selector("role", role))
        if name:
            return replace(
                result,
                type="text",
                selector=name,
                tag_name=element,
                confidence=max(result.confidence - 5, 0),
                reasoning="TestCafe uses element + withText() for roles",
            )
        return replace(
            result,
            type="css",
            selector=element,
            confidence=max(result.confidence - 10, 0),
            reasoning="TestCafe uses CSS for role without name",
        )
    if result.type == "test-id":
        return replace(
            result,
            type="css",
            selector=_test_id_css(result),
            reasoning="TestCafe uses CSS attribute selectors",
        )
    return result


PROFILES: dict[str, FrameworkProfile] = {
    "playwright": FrameworkProfile("playwright", DEFAULT_STRATEGY_ORDER, 70, optimize_playwright),
    "selenium": FrameworkProfile("selenium", DEFAULT_STRATEGY_ORDER, 40, optimize_selenium),
    "cypress": FrameworkProfile("cypress", DEFAULT_STRATEGY_ORDER, 50, optimize_cypress, ("data-cy",)),
    "webdriverio": FrameworkProfile("webdriverio", DEFAULT_STRATEGY_ORDER, 50, optimize_webdriverio),
    "testcafe": FrameworkProfile("testcafe", DEFAULT_STRATEGY_ORDER, 65, optimize_testcafe),
}


def get_profile(framework: str) -> FrameworkProfile:
    return PROFILES[normalize_framework(framework)]


def sanitize_element_info(element: ElementInfo | Mapping[str, Any]) -> ElementInfo:
    if not isinstance(element, ElementInfo):
        return ElementInfo.from_payload(element)
    attributes = element.attributes if isinstance(element.attributes, dict) else {}
    return replace(
        element,
        tag_name=str(element.tag_name or "div").lower(),
        id=str(element.id or ""),
        class_name=element.class_name if isinstance(element.class_name, str) else "",
        text_content=str(element.text_content or ""),
        attributes={str(k): str(v) for k, v in attributes.items() if v is not None},
    )


def prepare_element(element: ElementInfo | Mapping[str, Any]) -> ElementInfo:
    return enrich_element(sanitize_element_info(element))


def effective_config(profile: FrameworkProfile, config: EngineConfig) -> EngineConfig:
    if not profile.priority_attributes:
        return config
    merged = list(profile.priority_attributes)
    merged.extend(attr for attr in config.project_attributes if attr not in merged)
    return replace(config, project_attributes=tuple(merged))


def strategy_order(profile: FrameworkProfile, config: EngineConfig) -> tuple[str, ...]:
    if not config.i18n_safe:
        return profile.strategy_order
    stable = [name for name in profile.strategy_order if name not in LANGUAGE_SENSITIVE_STRATEGIES]
    sensitive = [name for name in profile.strategy_order if name in LANGUAGE_SENSITIVE_STRATEGIES]
    return tuple(stable + sensitive)


def run_pipeline(
    element: ElementInfo | Mapping[str, Any],
    profile: FrameworkProfile,
    config: EngineConfig | None = None,
) -> SelectorResult:
    """Return the first strategy result clearing the profile threshold, else the fallback.

    The result is always passed through the profile optimizer, so callers must not
    optimize it again.
    """
    base_config = config or EngineConfig()
    prepared = prepare_element(element)
    run_config = effective_config(profile, base_config)

    for name in strategy_order(profile, base_config):
        result = STRATEGIES[name](prepared, run_config)
        if result is not None and result.confidence >= profile.min_confidence:
            return profile.optimizer(result)
    return profile.optimizer(fallback(prepared, run_config))


def generate_selector(
    element: ElementInfo | Mapping[str, Any],
    config: EngineConfig | None = None,
    framework: str | None = None,
) -> SelectorResult:
    base_config = config or EngineConfig()
    profile = get_profile(framework or base_config.default_framework)
    return run_pipeline(element, profile, base_config)
