from __future__ import annotations

import re

from .models import MobileElementInfo, SelectorResult
from .selector_rules import java_string_literal, predicate_literal, xpath_literal

MAX_MOBILE_TEXT_LENGTH = 50

_REAL_TEXT = re.compile(r"[a-zA-Z0-9]")


def _present(value: str | None) -> str:
    # Appium page sources report missing attributes as the string "null".
    if not value or value == "null":
        return ""
    return value.strip()


def _real_text(element: MobileElementInfo) -> str:
    text = (element.text or "").strip()
    return text if _REAL_TEXT.search(text) else ""


def generate_mobile_selector(element: MobileElementInfo) -> SelectorResult:
    if element.platform == "ios":
        return _ios_selector(element)
    if element.platform == "android":
        return _android_selector(element)
    raise ValueError(f"Unsupported mobile platform: {element.platform!r}")


def _ios_selector(element: MobileElementInfo) -> SelectorResult:
    accessibility_id = _present(element.accessibility_id)
    if accessibility_id:
        return SelectorResult(accessibility_id, 95, "accessibility-id", "Uses iOS accessibility identifier")

    text = _real_text(element)
    if text and len(text) < MAX_MOBILE_TEXT_LENGTH:
        return SelectorResult(text, 85, "text", "Uses visible text content")

    predicate = build_ios_predicate(element)
    if predicate:
        return SelectorResult(predicate, 75, "ios-predicate", "Uses iOS predicate string")

    return SelectorResult(build_mobile_xpath(element), 45, "xpath", "Fallback XPath selector")


def _android_selector(element: MobileElementInfo) -> SelectorResult:
    resource_id = _present(element.resource_id)
    if ":id/" in resource_id:
        id_name = resource_id.split(":id/", 1)[1]
        if id_name:
            return SelectorResult(id_name, 95, "resource-id", "Uses Android resource identifier")

    accessibility_id = _present(element.accessibility_id)
    if accessibility_id:
        return SelectorResult(accessibility_id, 90, "accessibility-id", "Uses accessibility identifier")

    content_desc = _present(element.attributes.get("content-desc"))
    if content_desc:
        return SelectorResult(content_desc, 85, "accessibility-id", "Uses content-desc as accessibility id")

    text = _real_text(element)
    if text and len(text) < MAX_MOBILE_TEXT_LENGTH:
        return SelectorResult(text, 80, "text", "Uses visible text content")

    ui_selector = build_uiautomator_selector(element)
    class_only = f"new UiSelector().className({java_string_literal(_present(element.class_name))})"
    if ui_selector and ui_selector != class_only:
        return SelectorResult(ui_selector, 70, "uiautomator", "Uses UiAutomator selector")

    return SelectorResult(build_mobile_xpath(element), 45, "xpath", "Fallback XPath selector")


def build_ios_predicate(element: MobileElementInfo) -> str | None:
    conditions: list[str] = []
    class_name = _present(element.class_name)
    if class_name:
        conditions.append(f"type == {predicate_literal(class_name)}")
    text = _real_text(element)
    if text:
        conditions.append(f"label == {predicate_literal(text)}")
    value = _present(element.attributes.get("value"))
    if value:
        conditions.append(f"value == {predicate_literal(value)}")
    return " AND ".join(conditions) if conditions else None


def build_uiautomator_selector(element: MobileElementInfo) -> str | None:
    parts: list[str] = []
    content_desc = _present(element.attributes.get("content-desc"))
    if content_desc:
        parts.append(f"description({java_string_literal(content_desc)})")
    resource_id = _present(element.resource_id)
    if resource_id:
        parts.append(f"resourceId({java_string_literal(resource_id)})")
    text = _real_text(element)
    if text:
        parts.append(f"text({java_string_literal(text)})")
    class_name = _present(element.class_name)
    if class_name:
        parts.append(f"className({java_string_literal(class_name)})")
    if not parts:
        return None
    return "new UiSelector()." + ".".join(parts)


def build_mobile_xpath(element: MobileElementInfo) -> str:
    tag = _present(element.attributes.get("class")) or _present(element.class_name) or "*"
    conditions: list[str] = []
    text = (element.text or "").strip()

    if element.platform == "ios":
        if text:
            conditions.append(f"@label={xpath_literal(text)}")
        value = _present(element.attributes.get("value"))
        if value:
            conditions.append(f"@value={xpath_literal(value)}")
    else:
        content_desc = _present(element.attributes.get("content-desc"))
        if content_desc:
            conditions.append(f"@content-desc={xpath_literal(content_desc)}")
        elif text:
            conditions.append(f"@text={xpath_literal(text)}")
        resource_id = _present(element.resource_id)
        if resource_id:
            conditions.append(f"@resource-id={xpath_literal(resource_id)}")

    if not conditions:
        return f"//{tag}"
    return f"//{tag}[{' and '.join(conditions)}]"
