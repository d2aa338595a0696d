from __future__ import annotations

from dataclasses import replace
import re

from .models import ElementInfo, SelectorResult

ACC_NAME_NOTE = "(normalized to accessibleName)"
MALFORMED_NOTE = "(normalized malformed to accessibleName)"
COMPUTED_NOTE = "(fallback to computed accessible name)"

_ROLE_PIPE = re.compile(r"^(\w+)\|(.+)$")
_ROLE_NAME = re.compile(r"""^(\w+)\[name=['"]([^'"]+)['"]\]$""")
_ROLE_ARIA_LABEL = re.compile(r"""^\[role=['"]([^'"]+)['"]\]\[aria-label=['"]([^'"]+)['"]\]$""")
_TAG_ARIA_LABEL = re.compile(r"""^(\w+)\[aria-label=['"]([^'"]+)['"]\]$""")
_MALFORMED_ROLE = re.compile(r"""^\[role=['"](\w+)\[name=['"]([^'"]+)['"]\]['"]\]$""")

_ROLE_PATTERNS = (
    (_ROLE_PIPE, ACC_NAME_NOTE),
    (_ROLE_NAME, ACC_NAME_NOTE),
    (_ROLE_ARIA_LABEL, ACC_NAME_NOTE),
    (_TAG_ARIA_LABEL, ACC_NAME_NOTE),
    (_MALFORMED_ROLE, MALFORMED_NOTE),
)


def _looks_like_dom_name(candidate: str, element: ElementInfo) -> bool:
    # ASP.NET postback names contain "$" and are never what a user reads.
    return "$" in candidate or element.attributes.get("name") == candidate


def _join_reasoning(reasoning: str, note: str) -> str:
    return f"{reasoning} {note}".strip()


def prefer_accessible_name(
    role: str,
    candidate: str,
    element: ElementInfo,
    base: SelectorResult,
    note: str,
) -> SelectorResult:
    accessible = (element.accessible_name or "").strip()
    confidence = max(base.confidence, 90)
    if accessible and accessible != candidate and _looks_like_dom_name(candidate, element):
        return replace(
            base,
            selector=f"{role}|{accessible}",
            type="role",
            confidence=confidence,
            ai_enhanced=True,
            reasoning=_join_reasoning(base.reasoning, note),
        )
    return replace(base, selector=f"{role}|{candidate}", type="role", confidence=confidence, ai_enhanced=True)


def normalize_ai_result(element: ElementInfo, result: SelectorResult) -> SelectorResult:
    """Reconcile an AI answer with the accessibility data computed for ``element``.

    Role answers are rewritten into ``role|name`` form, preferring the computed
    accessible name when the AI returned a DOM ``name`` attribute instead. Text
    answers get the same treatment. Everything else passes through unchanged.
    """
    if not result.selector:
        return result
    selector = result.selector.strip()

    if result.type == "role":
        for pattern, note in _ROLE_PATTERNS:
            match = pattern.match(selector)
            if match:
                return prefer_accessible_name(match.group(1), match.group(2).strip(), element, result, note)
        if element.computed_role and element.accessible_name:
            return replace(
                result,
                selector=f"{element.computed_role}|{element.accessible_name.strip()}",
                confidence=max(result.confidence, 85),
                type="role",
                ai_enhanced=True,
                reasoning=_join_reasoning(result.reasoning, COMPUTED_NOTE),
            )
        return result

    if result.type == "text":
        accessible = (element.accessible_name or "").strip()
        if accessible and _looks_like_dom_name(selector, element):
            return replace(result, selector=accessible, ai_enhanced=True)
    return result
