"""
Probes against real Chromium.

Skipped when Playwright or its Chromium build is not installed
(``playwright install chromium``).
"""

import pytest

async_api = pytest.importorskip("playwright.async_api")

from a11y_auditor.app.locator.element_locator import ElementDescriptor, locate_element
from a11y_auditor.app.probes.focus_walker import FocusWalker
from a11y_auditor.app.probes.layout_probe import LayoutProbe

pytestmark = pytest.mark.anyio

FIXED_WIDTH = """
<!doctype html>
<html lang="en"><body style="margin:0">
  <main><div id="wide" style="min-width:500px">Fixed width block</div></main>
</body></html>
"""

CLIPPED = """
<!doctype html>
<html lang="en"><body style="margin:0">
  <main><div id="clip" style="overflow:hidden"><div style="min-width:500px">Clipped block</div></div></main>
</body></html>
"""

FLUID = """
<!doctype html>
<html lang="en"><body style="margin:0">
  <main><div id="fluid" style="max-width:100%">Fluid block of text that wraps</div></main>
</body></html>
"""

LINKS = """
<!doctype html>
<html lang="en"><body>
  <nav><a href="#a">Home</a> <a href="#b">Docs</a> <a href="#c">Contact</a></nav>
</body></html>
"""


@pytest.fixture
async def page():
    try:
        async with async_api.async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True)
            try:
                context = await browser.new_context(viewport={"width": 1280, "height": 720})
                yield await context.new_page()
            finally:
                await browser.close()
    except async_api.Error as exc:
        pytest.skip("Chromium is not available: %s" % exc)


async def test_min_width_block_overflows_at_320_and_200_percent(page):
    await page.set_content(FIXED_WIDTH)

    report = await LayoutProbe(page).probe_reflow()

    assert report.doc_overflow_x is True
    assert page.viewport_size == {"width": 1280, "height": 720}
    assert await page.evaluate("() => document.documentElement.style.zoom") == ""


async def test_clipped_min_width_block_is_an_offender(page):
    await page.set_content(CLIPPED)

    report = await LayoutProbe(page).probe_reflow()

    assert report.has_offenders
    assert any(o.selector == "#clip" for o in report.offenders)


async def test_fluid_block_reflows(page):
    await page.set_content(FLUID)

    report = await LayoutProbe(page).probe_reflow()

    assert report.doc_overflow_x is False
    assert not report.has_offenders


async def test_tab_order_follows_links(page):
    await page.set_content(LINKS)

    report = await FocusWalker(page).record_order(max_steps=10)

    assert [stop.text for stop in report.stops] == ["Home", "Docs", "Contact"]
    assert report.violations == ()


async def test_locator_finds_element_by_stored_markup(page):
    await page.set_content(FIXED_WIDTH)

    ref = await locate_element(
        page,
        ElementDescriptor(markup='<div id="wide" style="min-width:500px">Fixed width block</div>'),
    )

    assert ref is not None
    assert ref.tag == "div"
