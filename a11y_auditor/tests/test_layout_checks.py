import pytest

from a11y_auditor.app.checks.responsive import (
    reduced_motion_check,
    text_spacing_check,
    zoom_reflow_check,
)
from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.page import scripts
from a11y_auditor.app.schemas.verdicts import VerdictStatus
from a11y_auditor.tests.fixtures.fake_page import FakePage, describe

pytestmark = pytest.mark.anyio

T = HeuristicThresholds()


def wide_block():
    data = describe("a11y-1", "div", element_id="hero")
    data.update(scrollWidth=1000, clientWidth=320, scrollHeight=40, clientHeight=40)
    return data


async def test_fixed_width_content_fails_resize_and_reflow():
    page = FakePage(
        handlers={
            scripts.MEASURE_OVERFLOW: {
                "scrollWidth": 1000,
                "clientWidth": 320,
                "scrollHeight": 720,
                "clientHeight": 720,
                "candidates": [wide_block()],
            }
        }
    )

    verdicts = await zoom_reflow_check(T, settle_ms=0).run(page)

    by_id = {v.criterion_id: v for v in verdicts}
    assert by_id["1.4.4"].status == VerdictStatus.FAIL
    assert by_id["1.4.10"].status == VerdictStatus.FAIL
    assert any(i.is_page_wide for i in by_id["1.4.10"].issues)
    assert any(i.locator_hints == ["#hero"] for i in by_id["1.4.10"].issues)
    assert page.viewport_size == {"width": 1280, "height": 720}


async def test_fluid_content_passes_reflow():
    page = FakePage(
        handlers={
            scripts.MEASURE_OVERFLOW: {
                "scrollWidth": 320,
                "clientWidth": 320,
                "scrollHeight": 2400,
                "clientHeight": 720,
                "candidates": [],
            }
        }
    )

    verdicts = await zoom_reflow_check(T, settle_ms=0).run(page)

    assert [v.status for v in verdicts] == [VerdictStatus.PASS, VerdictStatus.PASS]


async def test_text_spacing_vertical_overflow_fails():
    page = FakePage(
        handlers={
            scripts.MEASURE_OVERFLOW: {
                "scrollWidth": 1280,
                "clientWidth": 1280,
                "scrollHeight": 900,
                "clientHeight": 720,
                "candidates": [],
            }
        }
    )

    verdict = await text_spacing_check(T, settle_ms=0).run(page)

    assert verdict.status == VerdictStatus.FAIL
    assert verdict.issues[0].is_page_wide
    assert page.called(scripts.REMOVE_STYLE)


async def test_motion_under_reduced_preference_warns():
    page = FakePage(
        handlers={
            scripts.SAMPLE_MOTION: [
                describe("a11y-1", "div", animationDuration="1s", transitionDuration="0s"),
            ]
        }
    )

    verdict = await reduced_motion_check(T, settle_ms=0).run(page)

    assert verdict.status == VerdictStatus.WARNING
    assert "animation 1s" in verdict.issues[0].description


async def test_no_motion_passes():
    page = FakePage(handlers={scripts.SAMPLE_MOTION: []})

    verdict = await reduced_motion_check(T, settle_ms=0).run(page)

    assert verdict.status == VerdictStatus.PASS
