from __future__ import annotations

from dataclasses import replace

from .models import ElementInfo
from .selector_rules import normalize_space

INPUT_TYPE_ROLES = {
    "button": "button",
    "submit": "button",
    "reset": "button",
    "checkbox": "checkbox",
    "radio": "radio",
    "search": "searchbox",
    "email": "textbox",
    "tel": "textbox",
    "text": "textbox",
    "password": "textbox",
    "url": "textbox",
}

IMPLICIT_TAG_ROLES = {
    "a": "link",
    "button": "button",
    "select": "combobox",
    "textarea": "textbox",
    "nav": "navigation",
    "main": "main",
    "header": "banner",
    "footer": "contentinfo",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
}

_NAME_ATTRIBUTES_AFTER_TEXT = ("placeholder", "alt", "title")


def compute_role(element: ElementInfo) -> str | None:
    attrs = element.attributes
    explicit = (attrs.get("role") or "").strip()
    if explicit:
        return explicit

    tag = (element.tag_name or "").lower()
    if tag == "a" and not attrs.get("href"):
        return None
    if tag == "img" and not attrs.get("alt"):
        return "presentation"
    if tag == "input":
        input_type = (attrs.get("type") or "").strip().lower()
        return INPUT_TYPE_ROLES.get(input_type, "textbox")
    return IMPLICIT_TAG_ROLES.get(tag)


def compute_accessible_name(element: ElementInfo) -> str | None:
    attrs = element.attributes
    aria_label = (attrs.get("aria-label") or "").strip()
    if aria_label:
        return aria_label

    text = normalize_space(element.text_content)
    if text:
        return text

    for key in _NAME_ATTRIBUTES_AFTER_TEXT:
        value = (attrs.get(key) or "").strip()
        if value:
            return value
    return None


def enrich_element(element: ElementInfo) -> ElementInfo:
    role = element.computed_role or compute_role(element)
    name = element.accessible_name or compute_accessible_name(element)
    if role == element.computed_role and name == element.accessible_name:
        return element
    return replace(element, computed_role=role, accessible_name=name)
