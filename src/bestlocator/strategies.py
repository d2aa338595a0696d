from __future__ import annotations

from typing import Callable, Optional

from .config import EngineConfig
from .models import ElementInfo, SelectorResult
from .selector_rules import attribute_selector, filter_stable_classes, is_stable_id

Strategy = Callable[[ElementInfo, EngineConfig], Optional[SelectorResult]]

HIGH_VALUE_ROLES = ("button", "link", "textbox", "combobox", "checkbox", "radio", "tab", "menuitem")
FORM_TAGS = ("input", "select", "textarea")
SPECIFIC_INPUT_TYPES = ("email", "password", "search", "tel", "url", "number", "date")
INTERACTIVE_TAGS = ("input", "button", "select", "textarea", "a")
UI_ID_KEYWORDS = (
    "btn",
    "button",
    "input",
    "txt",
    "text",
    "password",
    "email",
    "user",
    "login",
    "submit",
    "form",
    "field",
    "control",
)
LINK_HREF_KEYWORDS = (
    "discord",
    "github",
    "linkedin",
    "twitter",
    "facebook",
    "youtube",
    "instagram",
    "login",
    "signup",
)
GENERIC_CLASSES = {"form-control", "btn", "input", "button", "field", "control"}
GENERIC_TEXTS = {"click", "submit", "cancel", "ok", "yes", "no", "close", "open", "save", "delete", "edit"}

MAX_NAME_LENGTH = 50
MAX_TEXT_LENGTH = 50
MAX_PLACEHOLDER_LENGTH = 50


def _attr_css(tag: str, attr: str, value: str) -> str:
    return attribute_selector(attr, value, tag)


def try_priority_attributes(element: ElementInfo, config: EngineConfig) -> SelectorResult | None:
    for attr in config.project_attributes:
        value = element.attributes.get(attr)
        if value:
            return SelectorResult(
                selector=value,
                confidence=100,
                type="test-id",
                reasoning=f"Selected attribute '{attr}'.",
                attribute=attr,
            )
    return None


def try_aria_role(element: ElementInfo, config: EngineConfig) -> SelectorResult | None:
    role = element.computed_role
    name = (element.accessible_name or "").strip()
    if role not in HIGH_VALUE_ROLES:
        return None
    if not name or len(name) > MAX_NAME_LENGTH:
        return None
    return SelectorResult(
        selector=f"{role}|{name}",
        confidence=95,
        type="role",
        reasoning=f"Uses ARIA role '{role}' with accessible name.",
    )


def try_semantic_attributes(element: ElementInfo, config: EngineConfig) -> SelectorResult | None:
    tag = element.tag_name
    attrs = element.attributes

    aria_label = attrs.get("aria-label") or ""
    if aria_label.strip():
        return SelectorResult(_attr_css(tag, "aria-label", aria_label), 90, "css", "Uses explicit aria-label.")

    if tag in FORM_TAGS:
        name = attrs.get("name") or ""
        if name.strip():
            return SelectorResult(_attr_css(tag, "name", name), 88, "css", "Uses form element name attribute.")
        input_type = attrs.get("type") or ""
        if tag == "input" and input_type in SPECIFIC_INPUT_TYPES:
            return SelectorResult(
                _attr_css("input", "type", input_type),
                85,
                "css",
                f"Uses specific input type '{input_type}'.",
            )

    role = attrs.get("role") or ""
    if role:
        return SelectorResult(_attr_css(tag, "role", role), 85, "css", "Uses ARIA role.")
    return None


def try_form_attributes(element: ElementInfo, config: EngineConfig) -> SelectorResult | None:
    tag = element.tag_name
    attrs = element.attributes

    if tag == "label" and attrs.get("for"):
        return SelectorResult(_attr_css("label", "for", attrs["for"]), 88, "css", "Label with for attribute.")
    if tag in FORM_TAGS and attrs.get("name"):
        return SelectorResult(_attr_css(tag, "name", attrs["name"]), 85, "css", "Form element with name.")
    return None


def try_placeholder(element: ElementInfo, config: EngineConfig) -> SelectorResult | None:
    placeholder = (element.attributes.get("placeholder") or "").strip()
    if not placeholder or len(placeholder) >= MAX_PLACEHOLDER_LENGTH:
        return None
    return SelectorResult(placeholder, 75, "placeholder", "Uses placeholder text.")


def try_stable_id(element: ElementInfo, config: EngineConfig) -> SelectorResult | None:
    value = element.id.strip()
    if not value:
        return None

    # ASP.NET client ids: underscores are stable, "$" marks the postback name.
    if "_" in value and "$" not in value:
        return SelectorResult(value, 92, "id", "Uses ASP.NET style stable ID.")

    if not is_stable_id(value):
        return None

    lowered = value.lower()
    if element.tag_name in INTERACTIVE_TAGS and any(keyword in lowered for keyword in UI_ID_KEYWORDS):
        return SelectorResult(value, 88, "id", "Uses descriptive UI ID.")
    return SelectorResult(value, 78, "id", "Uses stable ID attribute.")


def try_link_href(element: ElementInfo, config: EngineConfig) -> SelectorResult | None:
    if element.tag_name != "a":
        return None
    href = (element.attributes.get("href") or "").lower()
    if not href:
        return None
    for keyword in LINK_HREF_KEYWORDS:
        if keyword in href:
            return SelectorResult(keyword, 88, "link-href", f"Uses link href containing '{keyword}'.")
    return None


def try_stable_css(element: ElementInfo, config: EngineConfig) -> SelectorResult | None:
    tag = element.tag_name
    attrs = element.attributes

    if element.id and is_stable_id(element.id):
        return SelectorResult(f"#{element.id}", 85, "css", "Uses ID as CSS selector.")

    stable = filter_stable_classes(element.class_name)
    if not stable:
        return None

    meaningful = [cls for cls in stable if cls.lower() not in GENERIC_CLASSES]
    if meaningful:
        return SelectorResult(f"{tag}.{meaningful[0]}", 60, "css", "Uses meaningful CSS class.")

    if attrs.get("type"):
        return SelectorResult(
            f'{_attr_css(tag, "type", attrs["type"])}.{stable[0]}',
            55,
            "css",
            "Uses CSS with type attribute.",
        )
    if attrs.get("name"):
        return SelectorResult(_attr_css(tag, "name", attrs["name"]), 65, "css", "Uses name attribute as CSS.")
    return SelectorResult(f"{tag}.{stable[0]}", 40, "css", "Uses generic CSS class (low confidence).")


def try_text(element: ElementInfo, config: EngineConfig) -> SelectorResult | None:
    text = element.text_content.strip()
    if not text or len(text) > MAX_TEXT_LENGTH:
        return None
    if text.lower() in GENERIC_TEXTS:
        return SelectorResult(text, 65, "text-generic", "Uses text content (generic).", tag_name=element.tag_name)
    return SelectorResult(text, 80, "text", "Uses specific text content.", tag_name=element.tag_name)


def fallback(element: ElementInfo, config: EngineConfig | None = None) -> SelectorResult:
    tag = element.tag_name
    input_type = element.attributes.get("type")
    if tag == "button":
        return SelectorResult("button", 40, "css", "Fallback: button tag.")
    if tag == "input" and input_type:
        return SelectorResult(_attr_css("input", "type", input_type), 45, "css", "Fallback: input by type.")
    if tag == "a":
        return SelectorResult("a", 35, "css", "Fallback: link tag.")
    return SelectorResult(tag, 20, "css", "Fallback: tag name only.")


STRATEGIES: dict[str, Strategy] = {
    "test-id": try_priority_attributes,
    "aria-role": try_aria_role,
    "semantic-attrs": try_semantic_attributes,
    "form-attrs": try_form_attributes,
    "placeholder": try_placeholder,
    "stable-id": try_stable_id,
    "link-href": try_link_href,
    "stable-css": try_stable_css,
    "text": try_text,
    "fallback": fallback,
}
