from __future__ import annotations

from typing import TYPE_CHECKING, Any

from playwright.sync_api import ElementHandle

from .accessibility import enrich_element
from .models import ElementInfo, PageContext

if TYPE_CHECKING:
    from playwright.sync_api import Page

_ELEMENT_SCRIPT = """
(el) => {
  const attrs = {};
  for (const attr of el.attributes) {
    attrs[attr.name] = attr.value;
  }

  let order = null;
  if (el.parentElement) {
    order = Array.from(el.parentElement.children).indexOf(el);
  }

  return {
    tagName: (el.tagName || 'div').toLowerCase(),
    id: el.id || '',
    className: typeof el.className === 'string' ? el.className : (el.getAttribute('class') || ''),
    textContent: (el.innerText || el.textContent || '').trim().replace(/\\s+/g, ' ').slice(0, 200),
    attributes: attrs,
    order,
  };
}
"""


def extract_element_info(element: ElementHandle) -> ElementInfo:
    payload: dict[str, Any] = element.evaluate(_ELEMENT_SCRIPT)
    return enrich_element(ElementInfo.from_payload(payload or {}))


def extract_page_context(page: Page) -> PageContext:
    return PageContext(url=str(page.url or ""), title=str(page.title() or ""))
