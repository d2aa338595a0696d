from __future__ import annotations

import re
from typing import Sequence

_NUMERIC_ID = re.compile(r"^\d+$")
_UUID_LIKE_ID = re.compile(r"^[a-f0-9-]{36}$", re.IGNORECASE)
_GENERATED_ID = re.compile(r"temp-|auto-|gen-")

UTILITY_CLASS_PREFIXES = ("bg-", "text-", "p-", "m-", "w-", "h-", "hover:", "focus:")
UTILITY_CLASS_NAMES = {"flex", "grid"}


def normalize_space(value: str | None, limit: int = 200) -> str:
    if not value:
        return ""
    compact = re.sub(r"\s+", " ", str(value)).strip()
    return compact[:limit] if compact else ""


def is_stable_id(value: str | None) -> bool:
    if not value:
        return False
    if _NUMERIC_ID.match(value):
        return False
    if _UUID_LIKE_ID.match(value):
        return False
    if _GENERATED_ID.search(value):
        return False
    return len(value) >= 3


def is_stable_class(value: str | None) -> bool:
    if not value:
        return False
    if value in UTILITY_CLASS_NAMES:
        return False
    if value.startswith(UTILITY_CLASS_PREFIXES):
        return False
    return len(value) > 2


def split_classes(raw: Sequence[str] | str | None) -> list[str]:
    if not raw:
        return []
    values = raw.split() if isinstance(raw, str) else [part for item in raw for part in str(item).split()]
    output: list[str] = []
    seen: set[str] = set()
    for value in values:
        token = value.strip()
        if not token or token in seen:
            continue
        seen.add(token)
        output.append(token)
    return output


def filter_stable_classes(class_name: Sequence[str] | str | None) -> list[str]:
    return [token for token in split_classes(class_name) if is_stable_class(token)]


def escape_css_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def xpath_literal(value: str) -> str:
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    pieces = value.split("'")
    quoted = [f"'{piece}'" for piece in pieces]
    return "concat(" + ", \"'\", ".join(quoted) + ")"


def attribute_selector(attribute: str, value: str, tag: str = "") -> str:
    return f'{tag}[{attribute}="{escape_css_string(value)}"]'


def role_xpath(role: str, name: str | None = None) -> str:
    """XPath matching an explicit ``role`` attribute or the HTML elements that carry it implicitly."""
    role_literal = xpath_literal(role)
    implicit = {
        "button": " or self::button or (self::input and (@type='submit' or @type='button' or @type='reset'))",
        "link": " or self::a[@href]",
        "textbox": " or self::textarea or (self::input and (not(@type) or @type='text' or @type='email'"
        " or @type='password' or @type='tel' or @type='url'))",
        "searchbox": " or (self::input and @type='search')",
        "checkbox": " or (self::input and @type='checkbox')",
        "radio": " or (self::input and @type='radio')",
        "combobox": " or self::select",
    }.get(role.lower(), "")
    if not name:
        return f"//*[@role={role_literal}{implicit}]"
    name_literal = xpath_literal(name)
    return (
        f"//*[(@role={role_literal}{implicit}) and "
        f"(@aria-label={name_literal} or @placeholder={name_literal} or @value={name_literal} "
        f"or @title={name_literal} or normalize-space(.)={name_literal})]"
    )


def predicate_literal(value: str) -> str:
    """Single-quoted NSPredicate string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def java_string_literal(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
