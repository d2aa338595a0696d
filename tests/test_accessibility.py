from bestlocator.accessibility import compute_accessible_name, compute_role, enrich_element
from bestlocator.models import ElementInfo


def _element(tag: str, text: str = "", **attributes: str) -> ElementInfo:
    return ElementInfo(tag_name=tag, text_content=text, attributes=dict(attributes))


def test_explicit_role_attribute_wins_over_tag() -> None:
    assert compute_role(_element("div", role="tab")) == "tab"
    assert compute_role(_element("a", role="button")) == "button"


def test_anchor_without_href_has_no_role() -> None:
    assert compute_role(_element("a")) is None
    assert compute_role(_element("a", href="/home")) == "link"


def test_image_without_alt_is_presentation() -> None:
    assert compute_role(_element("img")) == "presentation"
    assert compute_role(_element("img", alt="Logo")) is None


def test_input_type_table() -> None:
    assert compute_role(_element("input", type="submit")) == "button"
    assert compute_role(_element("input", type="reset")) == "button"
    assert compute_role(_element("input", type="checkbox")) == "checkbox"
    assert compute_role(_element("input", type="radio")) == "radio"
    assert compute_role(_element("input", type="search")) == "searchbox"
    assert compute_role(_element("input", type="email")) == "textbox"
    assert compute_role(_element("input", type="color")) == "textbox"
    assert compute_role(_element("input")) == "textbox"


def test_implicit_tag_roles() -> None:
    assert compute_role(_element("button")) == "button"
    assert compute_role(_element("select")) == "combobox"
    assert compute_role(_element("textarea")) == "textbox"
    assert compute_role(_element("nav")) == "navigation"
    assert compute_role(_element("header")) == "banner"
    assert compute_role(_element("footer")) == "contentinfo"
    assert compute_role(_element("h3")) == "heading"
    assert compute_role(_element("section")) is None


def test_accessible_name_precedence() -> None:
    assert compute_accessible_name(_element("button", "Save", **{"aria-label": "Save draft"})) == "Save draft"
    assert compute_accessible_name(_element("button", "  Save  changes ")) == "Save changes"
    assert compute_accessible_name(_element("input", placeholder="Email", title="Your email")) == "Email"
    assert compute_accessible_name(_element("img", alt="Company logo", title="Logo")) == "Company logo"
    assert compute_accessible_name(_element("span", title="Help")) == "Help"
    assert compute_accessible_name(_element("div")) is None


def test_enrich_element_keeps_existing_values() -> None:
    element = ElementInfo(tag_name="button", text_content="Go", computed_role="menuitem")
    enriched = enrich_element(element)
    assert enriched.computed_role == "menuitem"
    assert enriched.accessible_name == "Go"
    assert element.accessible_name is None


def test_enrich_element_returns_same_instance_when_nothing_changes() -> None:
    element = ElementInfo(tag_name="section")
    assert enrich_element(element) is element
