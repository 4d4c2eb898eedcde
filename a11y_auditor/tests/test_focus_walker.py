import pytest

from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.page import scripts
from a11y_auditor.app.probes.focus_walker import (
    FocusStop,
    FocusWalker,
    has_visible_indicator,
    is_order_violation,
)
from a11y_auditor.tests.fixtures.fake_page import FakePage, FocusCycle, describe

pytestmark = pytest.mark.anyio


def el(ref, x=10, y=10, **kwargs):
    return describe(ref, element_id=ref, x=x, y=y, **kwargs)


# ---------------------------------------------------------------------------
# Trap detection
# ---------------------------------------------------------------------------


async def test_two_element_cycle_is_a_trap():
    page = FakePage()
    FocusCycle(page, [el("close"), el("confirm")])

    report = await FocusWalker(page).detect_trap()

    assert report.trapped is True
    assert report.stop.element_id == "close"
    assert report.escape_attempts == 5
    assert len(page.keyboard.pressed) <= 6
    assert {s.element_id for s in report.observed} == {"close", "confirm"}


async def test_page_wide_cycle_is_not_a_trap():
    page = FakePage()
    FocusCycle(page, [el("a"), el("b"), el("c"), el("d")])

    report = await FocusWalker(page).detect_trap()

    assert report.trapped is False


async def test_reaching_the_body_counts_as_escape():
    page = FakePage()
    FocusCycle(page, [el("a"), el("b"), None])

    report = await FocusWalker(page).detect_trap()

    assert report.trapped is False


async def test_trap_walk_is_bounded():
    page = FakePage()
    FocusCycle(page, [el("a%d" % i) for i in range(100)])

    report = await FocusWalker(page, HeuristicThresholds(TRAP_MAX_STEPS=3)).detect_trap()

    assert report.trapped is False
    assert report.steps_walked == 3
    # 3 outer steps, each followed by 2 presses that reach a third element
    assert len(page.keyboard.pressed) == 9


async def test_empty_document_never_traps():
    page = FakePage()
    FocusCycle(page, [None])

    report = await FocusWalker(page).detect_trap()

    assert report.trapped is False


# ---------------------------------------------------------------------------
# Focus order
# ---------------------------------------------------------------------------


def test_order_violation_needs_upward_and_leftward_jump():
    t = HeuristicThresholds()
    prev = FocusStop.from_script(0, el("p", x=400, y=400))

    assert is_order_violation(prev, FocusStop.from_script(1, el("c", x=10, y=10)), t)
    assert not is_order_violation(prev, FocusStop.from_script(1, el("c", x=10, y=500)), t)
    assert not is_order_violation(prev, FocusStop.from_script(1, el("c", x=380, y=10)), t)


async def test_record_order_stops_when_focus_cycles():
    page = FakePage()
    FocusCycle(page, [el("a", x=400, y=400), el("b", x=10, y=10), el("c", x=50, y=600)])

    report = await FocusWalker(page).record_order()

    assert [s.element_id for s in report.stops] == ["a", "b", "c"]
    assert report.completed_cycle is True
    assert len(report.violations) == 1
    assert report.violations[0].current.element_id == "b"


async def test_record_order_stops_at_body():
    page = FakePage()
    FocusCycle(page, [el("a"), el("b", y=100), None])

    report = await FocusWalker(page).record_order()

    assert [s.element_id for s in report.stops] == ["a", "b"]
    assert report.violations == ()
    assert report.completed_cycle is True


# ---------------------------------------------------------------------------
# Visible focus
# ---------------------------------------------------------------------------


PLAIN = {
    "outlineStyle": "none",
    "outlineWidth": "0px",
    "boxShadow": "none",
    "borderStyle": "solid",
    "borderWidth": "1px",
    "borderColor": "rgb(0, 0, 0)",
}


def test_visible_indicator_rules():
    assert not has_visible_indicator(PLAIN, dict(PLAIN))
    assert has_visible_indicator(PLAIN, dict(PLAIN, outlineStyle="solid", outlineWidth="2px"))
    assert not has_visible_indicator(PLAIN, dict(PLAIN, outlineStyle="solid", outlineWidth="0px"))
    assert has_visible_indicator(PLAIN, dict(PLAIN, boxShadow="0 0 0 3px blue"))
    assert has_visible_indicator(PLAIN, dict(PLAIN, borderColor="rgb(0, 0, 255)"))


async def test_check_visible_focus_reports_each_sampled_element():
    pairs = {
        "good": {"before": PLAIN, "after": dict(PLAIN, boxShadow="0 0 2px red"), "focused": True},
        "bad": {"before": PLAIN, "after": PLAIN, "focused": True},
        "unfocusable": {"before": PLAIN, "after": PLAIN, "focused": False},
    }
    page = FakePage(
        handlers={
            scripts.LIST_INTERACTIVE: [el("good"), el("bad"), el("unfocusable")],
            scripts.FOCUS_STYLE_PAIR: lambda ref: pairs[ref],
        }
    )

    results = await FocusWalker(page).check_visible_focus()

    assert [(r.element["ref"], r.focused, r.visible_indicator) for r in results] == [
        ("good", True, True),
        ("bad", True, False),
        ("unfocusable", False, False),
    ]
    assert page.calls_to(scripts.LIST_INTERACTIVE)[0]["limit"] == 15
