from __future__ import annotations

import re
from typing import Callable

from .models import SelectorResult, normalize_framework, normalize_language
from .pipeline import TESTCAFE_ROLE_ELEMENTS
from .selector_rules import attribute_selector, escape_css_string, role_xpath, xpath_literal

Formatter = Callable[[SelectorResult, str], str]

NO_SELECTOR = "// No selector generated"
NO_MOBILE_SELECTOR = "// No mobile selector generated"

TYPE_ALIASES = {
    "text-generic": "text",
    "text-specific": "text",
    "aria-role": "role",
    "fallback": "css",
}

HTML_ROLE_TAGS = {
    "a",
    "button",
    "footer",
    "form",
    "header",
    "img",
    "input",
    "label",
    "li",
    "main",
    "nav",
    "option",
    "select",
    "table",
    "textarea",
    "ul",
}

TESTCAFE_TEXT_TAGS = {
    "a",
    "button",
    "div",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "input",
    "label",
    "li",
    "main",
    "nav",
    "option",
    "p",
    "select",
    "span",
    "td",
    "textarea",
    "th",
}

_ROLE_WITH_NAME = re.compile(r"""^([a-zA-Z]+)\s*\[\s*name\s*=\s*['"]([^'"]+)['"]\s*\]$""")
_LEADING_TAG = re.compile(r"^([a-zA-Z][a-zA-Z0-9]*)")


def quote_single(value: str) -> str:
    return "'" + str(value).replace("\\", "\\\\").replace("'", "\\'") + "'"


def quote_double(value: str) -> str:
    return '"' + str(value).replace("\\", "\\\\").replace('"', '\\"') + '"'


def _is_js(language: str) -> bool:
    return language in ("javascript", "typescript")


def canonical_type(selector_type: str) -> str:
    return TYPE_ALIASES.get(selector_type, selector_type)


def parse_role(selector: str) -> tuple[str, str | None]:
    text = (selector or "").strip()
    if "|" in text:
        role, name = text.split("|", 1)
        return role.strip(), (name.strip() or None)
    match = _ROLE_WITH_NAME.match(text)
    if match:
        return match.group(1), match.group(2)
    return text, None


def _test_id_selector(result: SelectorResult) -> str:
    return attribute_selector(result.attribute or "data-testid", result.selector)


def _link_href_selector(keyword: str) -> str:
    return 'a[href*="' + escape_css_string(keyword) + '"]'


# Playwright


def format_playwright(result: SelectorResult, language: str) -> str:
    js = _is_js(language)
    q = quote_single if js else quote_double
    page = "Page" if language == "csharp" else "page"
    prefix = "await " if js else ""

    def locator(selector: str) -> str:
        method = "Locator" if language == "csharp" else "locator"
        return f"{prefix}{page}.{method}({q(selector)})"

    def call(js_name: str, py_name: str, cs_name: str, value: str, options: str = "") -> str:
        if language == "python":
            return f"{page}.{py_name}({q(value)}{options})"
        if language == "csharp":
            return f"{page}.{cs_name}({q(value)}{options})"
        return f"{prefix}{page}.{js_name}({q(value)}{options})"

    kind = canonical_type(result.type)
    if kind == "test-id":
        if result.attribute not in (None, "data-testid"):
            return locator(_test_id_selector(result))
        return call("getByTestId", "get_by_test_id", "GetByTestId", result.selector)

    if kind == "role":
        role, name = parse_role(result.selector)
        if language == "python":
            options = f", name={q(name)}" if name else ""
            return f"page.get_by_role({q(role)}{options})"
        if language == "java":
            options = f", new Page.GetByRoleOptions().setName({q(name)})" if name else ""
            return f"page.getByRole(AriaRole.{role.upper()}{options})"
        if language == "csharp":
            options = f", new() {{ Name = {q(name)} }}" if name else ""
            return f"Page.GetByRole(AriaRole.{role[:1].upper()}{role[1:]}{options})"
        options = f", {{ name: {q(name)} }}" if name else ""
        return f"{prefix}page.getByRole({q(role)}{options})"

    if kind == "text":
        if language == "python":
            options = ", exact=True"
        elif language == "java":
            options = ", new Page.GetByTextOptions().setExact(true)"
        elif language == "csharp":
            options = ", new() { Exact = true }"
        else:
            options = ", { exact: true }"
        return call("getByText", "get_by_text", "GetByText", result.selector, options)

    if kind == "placeholder":
        return call("getByPlaceholder", "get_by_placeholder", "GetByPlaceholder", result.selector)
    if kind == "id":
        return locator(f"#{result.selector}")
    if kind == "xpath":
        return locator(f"xpath={result.selector}")
    if kind == "link-href":
        return locator(_link_href_selector(result.selector))
    if kind == "name":
        return locator(attribute_selector("name", result.selector))
    return locator(result.selector)


# Selenium


def _selenium_find(by: str, value: str, language: str) -> str:
    if language == "python":
        constant = {"css": "CSS_SELECTOR"}.get(by, by.upper())
        return f"driver.find_element(By.{constant}, {quote_double(value)})"
    if language == "java":
        method = {"css": "cssSelector"}.get(by, by)
        return f"driver.findElement(By.{method}({quote_double(value)}))"
    if language == "csharp":
        method = {"css": "CssSelector", "xpath": "XPath"}.get(by, by[:1].upper() + by[1:])
        return f"driver.FindElement(By.{method}({quote_double(value)}))"
    return f"driver.findElement(By.{by}({quote_double(value)}))"


def format_selenium(result: SelectorResult, language: str) -> str:
    kind = canonical_type(result.type)
    if kind in ("xpath", "id", "name"):
        return _selenium_find(kind, result.selector, language)
    if kind == "test-id":
        return _selenium_find("css", _test_id_selector(result), language)
    if kind == "link-href":
        return _selenium_find("css", _link_href_selector(result.selector), language)
    if kind == "placeholder":
        return _selenium_find("css", attribute_selector("placeholder", result.selector), language)
    if kind == "text":
        return _selenium_find("xpath", f"//*[normalize-space(.)={xpath_literal(result.selector)}]", language)
    if kind == "role":
        role, name = parse_role(result.selector)
        if role:
            return _selenium_find("xpath", role_xpath(role, name), language)
    return _selenium_find("css", result.selector, language)


# Cypress


def format_cypress(result: SelectorResult, language: str) -> str:
    def get(selector: str) -> str:
        return f"cy.get({quote_single(selector)})"

    kind = canonical_type(result.type)
    if kind == "test-id":
        return get(_test_id_selector(result))
    if kind == "id":
        return get(f"#{result.selector}")
    if kind == "placeholder":
        return get(attribute_selector("placeholder", result.selector))
    if kind == "name":
        return get(attribute_selector("name", result.selector))
    if kind == "role":
        role, name = parse_role(result.selector)
        if name:
            return f"cy.contains({quote_single(name)})"
        return get(attribute_selector("role", role))
    if kind == "link-href":
        return get(_link_href_selector(result.selector))
    if kind == "text":
        return f"cy.contains({quote_single(result.selector)})"
    if kind == "xpath":
        # Requires the cypress-xpath plugin.
        return f"cy.xpath({quote_single(result.selector)})"
    return get(result.selector)


# TestCafe


def _testcafe_tag(tag: str | None) -> str:
    if not tag:
        return "body *"
    for part in tag.split(","):
        match = _LEADING_TAG.match(part.strip())
        if not match or match.group(1).lower() not in TESTCAFE_TEXT_TAGS:
            return "body *"
    return tag


def format_testcafe(result: SelectorResult, language: str) -> str:
    def selector(value: str) -> str:
        return f"Selector({quote_single(value)})"

    kind = canonical_type(result.type)
    if kind == "test-id":
        return selector(_test_id_selector(result))
    if kind == "role":
        role, name = parse_role(result.selector)
        element = TESTCAFE_ROLE_ELEMENTS.get(role, attribute_selector("role", role))
        if name:
            return f"{selector(_testcafe_tag(element))}.withText({quote_single(name)})"
        return selector(element)
    if kind == "text":
        return f"{selector(_testcafe_tag(result.tag_name))}.withText({quote_single(result.selector)})"
    if kind == "placeholder":
        return selector(attribute_selector("placeholder", result.selector))
    if kind == "name":
        return selector(attribute_selector("name", result.selector))
    if kind == "link-href":
        return selector(_link_href_selector(result.selector))
    if kind == "id":
        return selector(f"#{result.selector}")
    if kind == "xpath":
        return f"// XPath is not supported in TestCafe: {result.selector}\n{selector('body *')}"
    return selector(result.selector)


# WebdriverIO


def format_webdriverio(result: SelectorResult, language: str) -> str:
    def find(value: str) -> str:
        return f"await browser.$({quote_single(value)})"

    kind = canonical_type(result.type)
    if kind == "test-id":
        return find(_test_id_selector(result))
    if kind == "role":
        role, name = parse_role(result.selector)
        base = role if role in HTML_ROLE_TAGS else attribute_selector("role", role)
        if name:
            return find(f"{base}{attribute_selector('name', name)}")
        return find(base)
    if kind == "text":
        return find(f"*={result.selector}")
    if kind == "placeholder":
        return find(attribute_selector("placeholder", result.selector))
    if kind == "name":
        return find(attribute_selector("name", result.selector))
    if kind == "link-href":
        return find(_link_href_selector(result.selector))
    if kind == "id":
        return find(f"#{result.selector}")
    return find(result.selector)


FORMATTERS: dict[str, Formatter] = {
    "playwright": format_playwright,
    "selenium": format_selenium,
    "cypress": format_cypress,
    "testcafe": format_testcafe,
    "webdriverio": format_webdriverio,
}


def format_selector(result: SelectorResult, framework: str, language: str) -> str:
    if not result.selector:
        return NO_SELECTOR
    formatter = FORMATTERS[normalize_framework(framework)]
    return formatter(result, normalize_language(language))


# Appium

_APPIUM_STRATEGIES = {
    # type: (python, java, csharp, js)
    "accessibility-id": ("ACCESSIBILITY_ID", "accessibilityId", "AccessibilityId", "accessibility id"),
    "resource-id": ("ID", "id", "Id", "id"),
    "ios-predicate": ("IOS_PREDICATE", "iOSNsPredicateString", "IosNsPredicate", "ios predicate string"),
    "uiautomator": ("ANDROID_UIAUTOMATOR", "androidUIAutomator", "AndroidUIAutomator", "android uiautomator"),
    "xpath": ("XPATH", "xpath", "XPath", "xpath"),
}


def _appium_find(strategy: str, value: str, language: str) -> str:
    python_name, java_name, csharp_name, js_name = _APPIUM_STRATEGIES[strategy]
    if language == "python":
        return f"driver.find_element(AppiumBy.{python_name}, {quote_double(value)})"
    if language == "java":
        return f"driver.findElement(AppiumBy.{java_name}({quote_double(value)}))"
    if language == "csharp":
        return f"driver.FindElement(MobileBy.{csharp_name}({quote_double(value)}))"
    return f"await driver.findElement({quote_single(js_name)}, {quote_single(value)})"


def format_mobile(result: SelectorResult, platform: str, language: str) -> str:
    if not result.selector:
        return NO_MOBILE_SELECTOR
    lang = normalize_language(language)
    kind = "accessibility-id" if result.type == "test-id" else result.type

    if kind in _APPIUM_STRATEGIES:
        return _appium_find(kind, result.selector, lang)
    literal = xpath_literal(result.selector)
    if kind == "text":
        text_attr = "label" if platform == "ios" else "text"
        return _appium_find("xpath", f"//*[@{text_attr}={literal}]", lang)
    if platform == "ios":
        xpath = f"//*[contains(@label, {literal}) or contains(@name, {literal})]"
    else:
        xpath = f"//*[contains(@text, {literal}) or contains(@content-desc, {literal})]"
    return _appium_find("xpath", xpath, lang)
