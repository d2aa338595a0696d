from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Union

Framework = Literal["playwright", "cypress", "selenium", "testcafe", "webdriverio"]
Language = Literal["javascript", "typescript", "python", "java", "csharp"]
MobilePlatform = Literal["ios", "android"]

SelectorType = Literal[
    "test-id",
    "role",
    "aria-role",
    "id",
    "css",
    "text",
    "text-generic",
    "text-specific",
    "placeholder",
    "link-href",
    "xpath",
    "name",
    "fallback",
    "accessibility-id",
    "resource-id",
    "ios-predicate",
    "uiautomator",
]

FRAMEWORKS: tuple[str, ...] = ("playwright", "cypress", "selenium", "testcafe", "webdriverio")
LANGUAGES: tuple[str, ...] = ("javascript", "typescript", "python", "java", "csharp")

_LANGUAGE_ALIASES = {
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "c#": "csharp",
    "cs": "csharp",
}


def normalize_framework(value: str) -> str:
    framework = (value or "").strip().lower()
    if framework not in FRAMEWORKS:
        raise ValueError(f"Unsupported framework: {value!r}")
    return framework


def normalize_language(value: str) -> str:
    language = (value or "").strip().lower()
    language = _LANGUAGE_ALIASES.get(language, language)
    if language not in LANGUAGES:
        raise ValueError(f"Unsupported language: {value!r}")
    return language


@dataclass(frozen=True, slots=True)
class ElementInfo:
    tag_name: str = "div"
    id: str = ""
    class_name: str = ""
    text_content: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    order: int | None = None
    computed_role: str | None = None
    accessible_name: str | None = None
    platform: Literal["web"] = "web"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ElementInfo:
        """Build from a capture payload using either camelCase or snake_case keys."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in payload and payload[key] is not None:
                    return payload[key]
            return None

        raw_attributes = pick("attributes") or {}
        order = pick("order")
        role = pick("computedRole", "computed_role")
        name = pick("accessibleName", "accessible_name")
        return cls(
            tag_name=str(pick("tagName", "tag_name") or "div").lower(),
            id=str(pick("id") or ""),
            class_name=str(pick("className", "class_name") or ""),
            text_content=str(pick("textContent", "text_content") or ""),
            attributes={str(k): str(v) for k, v in dict(raw_attributes).items() if v is not None},
            order=int(order) if order is not None else None,
            computed_role=str(role) if role else None,
            accessible_name=str(name) if name else None,
        )


@dataclass(frozen=True, slots=True)
class MobileElementInfo:
    platform: MobilePlatform
    tag_name: str = ""
    text: str = ""
    accessibility_id: str = ""
    resource_id: str = ""
    class_name: str = ""
    xpath: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    bounds: tuple[int, int, int, int] | None = None
    visible: bool = True
    enabled: bool = True
    index: int | None = None


AnyElementInfo = Union[ElementInfo, MobileElementInfo]


@dataclass(frozen=True, slots=True)
class SelectorResult:
    selector: str
    confidence: int
    type: str
    reasoning: str = ""
    ai_enhanced: bool = False
    tag_name: str | None = None
    attribute: str | None = None


@dataclass(frozen=True, slots=True)
class PageContext:
    url: str = ""
    title: str = ""


@dataclass(frozen=True, slots=True)
class FrameworkTarget:
    framework: str
    language: str

    @classmethod
    def parse(cls, framework: str, language: str) -> FrameworkTarget:
        return cls(framework=normalize_framework(framework), language=normalize_language(language))
