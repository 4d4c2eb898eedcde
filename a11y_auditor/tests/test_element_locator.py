import pytest

from a11y_auditor.app.locator.element_locator import (
    BoundingBox,
    ElementDescriptor,
    LocatorTier,
    is_container,
    locate_element,
)
from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.page import scripts
from a11y_auditor.tests.fixtures.fake_page import FakePage, describe

pytestmark = pytest.mark.anyio

DESKTOP = {"width": 1280, "height": 720}


def query_result(*candidates, viewport=DESKTOP):
    return {"count": len(candidates), "candidates": list(candidates), "viewport": viewport}


def by_selector(table):
    def handler(arg):
        return table.get(arg["selector"], query_result())
    return handler


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


async def test_unique_selector_resolves_without_markup_matching():
    button = describe("a11y-1", element_id="submit", text="Send")
    page = FakePage(handlers={scripts.QUERY_CANDIDATES: by_selector({"#submit": query_result(button)})})

    ref = await locate_element(
        page,
        ElementDescriptor(locator_hints=("#submit",), markup='<button id="submit">Send</button>'),
    )

    assert ref is not None
    assert ref.ref == "a11y-1"
    assert ref.tier == LocatorTier.SELECTOR
    assert ref.matched_by == "#submit"
    assert ref.viewport is None
    assert not page.called(scripts.MATCH_MARKUP)


async def test_ambiguous_selector_picks_first_visible_non_container():
    hidden = describe("a11y-1", "a", visible=False)
    shown = describe("a11y-2", "a")
    page = FakePage(handlers={scripts.QUERY_CANDIDATES: by_selector({"a.more": query_result(hidden, shown)})})

    ref = await locate_element(page, ElementDescriptor(locator_hints=("a.more",)))

    assert ref.ref == "a11y-2"


async def test_markup_equality_is_the_second_tier():
    img = describe("a11y-5", "img", markup='<img src="logo.png">')

    def match_markup(arg):
        if arg["prefixLength"] == 0 and arg["markup"] == '<img src="logo.png">':
            return query_result(img)
        return query_result()

    page = FakePage(
        handlers={
            scripts.QUERY_CANDIDATES: query_result(),
            scripts.MATCH_MARKUP: match_markup,
        }
    )

    ref = await locate_element(
        page,
        ElementDescriptor(locator_hints=(".gone",), markup='<img   src="logo.png">'),
    )

    assert ref.tier == LocatorTier.MARKUP_EXACT
    assert ref.ref == "a11y-5"


async def test_drifted_long_markup_matches_by_prefix():
    body = "Free shipping on every order over fifty euros. " * 10
    stored = '<div class="promo-card">%s<span>Ends Sunday</span></div>' % body
    live = describe("a11y-7", "div", classes=("promo-card",), text=body)
    prefix_calls = []

    def match_markup(arg):
        if arg["prefixLength"] == 0:
            return query_result()
        prefix_calls.append(arg)
        if arg["markup"] == stored[:300]:
            return query_result(live)
        return query_result()

    page = FakePage(handlers={scripts.MATCH_MARKUP: match_markup})

    ref = await locate_element(page, ElementDescriptor(markup=stored))

    assert ref is not None
    assert ref.tier == LocatorTier.MARKUP_PREFIX
    assert ref.ref == "a11y-7"
    assert prefix_calls[0]["prefixLength"] == 300
    assert not page.called(scripts.QUERY_CANDIDATES)


async def test_structural_id_is_accepted_immediately():
    first = describe("a11y-1", "div", element_id="promo", text="Spring collection")
    second = describe("a11y-2", "div", element_id="promo", text="Summer sale")
    page = FakePage(
        handlers={
            scripts.MATCH_MARKUP: query_result(),
            scripts.QUERY_CANDIDATES: by_selector({"#promo": query_result(first, second)}),
        }
    )

    ref = await locate_element(
        page,
        ElementDescriptor(markup='<div id="promo" class="banner">Summer sale</div>'),
    )

    assert ref.tier == LocatorTier.STRUCTURAL
    assert ref.matched_by == "#promo"
    assert ref.ref == "a11y-1"


async def test_structural_classes_without_text_take_first_match():
    candidates = query_result(
        describe("a11y-3", "span", classes=("badge", "badge-new")),
        describe("a11y-4", "span", classes=("badge", "badge-new"), text="New"),
    )
    page = FakePage(
        handlers={
            scripts.MATCH_MARKUP: query_result(),
            scripts.QUERY_CANDIDATES: by_selector({"span.badge.badge-new": candidates}),
        }
    )

    ref = await locate_element(page, ElementDescriptor(markup='<span class="badge badge-new"></span>'))

    assert ref.tier == LocatorTier.STRUCTURAL
    assert ref.matched_by == "span.badge.badge-new"
    assert ref.ref == "a11y-3"


async def test_unmatched_descriptor_fails_closed():
    page = FakePage(
        handlers={
            scripts.QUERY_CANDIDATES: query_result(),
            scripts.MATCH_MARKUP: query_result(),
        }
    )

    ref = await locate_element(
        page,
        ElementDescriptor(locator_hints=("#nope",), markup='<div class="x">Hi</div>'),
    )

    assert ref is None


async def test_empty_descriptor_is_not_queried():
    page = FakePage()

    assert await locate_element(page, ElementDescriptor()) is None
    assert page.calls == []


async def test_bare_tag_requires_similar_text():
    candidates = query_result(
        describe("a11y-1", text="Cancel"),
        describe("a11y-2", text="Help"),
    )
    page = FakePage(
        handlers={
            scripts.MATCH_MARKUP: query_result(),
            scripts.QUERY_CANDIDATES: by_selector({"button": candidates}),
        }
    )

    ref = await locate_element(page, ElementDescriptor(markup="<button>Submit order</button>"))

    assert ref is None


async def test_bare_tag_picks_most_similar_text():
    candidates = query_result(
        describe("a11y-1", text="Cancel"),
        describe("a11y-2", text="Submit  order"),
    )
    page = FakePage(
        handlers={
            scripts.MATCH_MARKUP: query_result(),
            scripts.QUERY_CANDIDATES: by_selector({"button": candidates}),
        }
    )

    ref = await locate_element(page, ElementDescriptor(markup="<button>Submit order</button>"))

    assert ref.tier == LocatorTier.STRUCTURAL
    assert ref.ref == "a11y-2"


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


async def test_hidden_non_responsive_match_is_rejected():
    hidden = describe("a11y-1", classes=("btn",), visible=False)
    page = FakePage(handlers={scripts.QUERY_CANDIDATES: query_result(hidden)})

    ref = await locate_element(page, ElementDescriptor(locator_hints=("button.btn",)))

    assert ref is None
    assert page.viewport_log == []


async def test_responsive_match_is_retried_at_mobile_viewport():
    page = FakePage()

    def query(arg):
        mobile = page.viewport_size["width"] == 375
        element = describe(
            "a11y-9",
            element_id="burger",
            classes=("mobile-menu",),
            visible=mobile,
        )
        return query_result(element, viewport=page.viewport_size)

    page.handlers[scripts.QUERY_CANDIDATES] = query

    ref = await locate_element(page, ElementDescriptor(locator_hints=("#burger",)))

    assert ref is not None
    assert ref.viewport == (375, 667)
    assert page.viewport_log == [{"width": 375, "height": 667}, DESKTOP]
    assert page.viewport_size == DESKTOP


async def test_responsive_match_still_hidden_is_rejected_and_viewport_restored():
    hidden = describe("a11y-9", classes=("d-none", "d-lg-block"), visible=False)
    page = FakePage(handlers={scripts.QUERY_CANDIDATES: query_result(hidden)})

    ref = await locate_element(page, ElementDescriptor(locator_hints=("button.d-none",)))

    assert ref is None
    assert page.viewport_size == DESKTOP


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


def test_container_heuristic():
    t = HeuristicThresholds()

    assert is_container(BoundingBox(0, 0, 1200, 900), 0, (1280, 720), t)
    assert is_container(BoundingBox(0, 0, 1000, 500), 8, (1280, 720), t)
    assert not is_container(BoundingBox(0, 0, 1000, 500), 2, (1280, 720), t)
    assert not is_container(BoundingBox(0, 0, 120, 40), 0, (1280, 720), t)


async def test_container_match_descends_to_interactive_child():
    section = describe("a11y-1", "section", element_id="hero", width=1200, height=900, child_count=12)
    link = describe("a11y-2", "a", text="Read more")
    page = FakePage(
        handlers={
            scripts.QUERY_CANDIDATES: query_result(section),
            scripts.FIRST_INTERACTIVE_DESCENDANT: link,
        }
    )

    ref = await locate_element(page, ElementDescriptor(locator_hints=("#hero",)))

    assert ref.ref == "a11y-2"
    assert ref.tag == "a"
    assert ref.descended is True
    assert page.calls_to(scripts.FIRST_INTERACTIVE_DESCENDANT)[0]["ref"] == "a11y-1"


async def test_container_without_interactive_child_is_rejected():
    section = describe("a11y-1", "section", element_id="hero", width=1200, height=900)
    page = FakePage(
        handlers={
            scripts.QUERY_CANDIDATES: query_result(section),
            scripts.FIRST_INTERACTIVE_DESCENDANT: None,
        }
    )

    ref = await locate_element(page, ElementDescriptor(locator_hints=("#hero",)))

    assert ref is None
