"""
Keyboard checks (2.1.1, 2.1.2, 2.4.3, 2.4.7).

All four drive focus and therefore run inside ``focus_session``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from a11y_auditor.app.checks.base import CheckUnit, element_issue, verdict_from_issues
from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.page.state import focus_session
from a11y_auditor.app.probes.focus_walker import FocusStop, FocusWalker
from a11y_auditor.app.schemas.findings import Severity
from a11y_auditor.app.schemas.verdicts import Verdict

logger = logging.getLogger(__name__)


def _stop_element(stop: FocusStop) -> Dict[str, Any]:
    return {"markup": stop.markup, "hints": list(stop.hints), "selector": stop.selector}


def _label(element: Dict[str, Any]) -> str:
    return element.get("text") or element.get("tag") or "element"


def keyboard_access_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        walker = FocusWalker(page, thresholds)
        issues = []
        async with focus_session(page):
            for element in await walker.interactive_elements(thresholds.KEYBOARD_SAMPLE):
                if await walker.focus(element["ref"]):
                    continue
                issues.append(
                    element_issue(
                        element,
                        "Element is not keyboard accessible: %s" % _label(element),
                        "2.1.1",
                        help_text="All interactive elements must be keyboard accessible",
                    )
                )
        return verdict_from_issues("2.1.1", page, issues, check_id="keyboard-2.1.1")

    return CheckUnit(
        check_id="keyboard-2.1.1",
        criterion_ids=("2.1.1",),
        run=run,
        mutates_page_state=True,
    )


def keyboard_trap_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        walker = FocusWalker(page, thresholds)
        async with focus_session(page):
            report = await walker.detect_trap()

        issues = []
        if report.trapped and report.stop is not None:
            issues.append(
                element_issue(
                    _stop_element(report.stop),
                    "Potential keyboard trap detected at element: <%s> (focus did not "
                    "escape after %d attempts)" % (report.stop.tag, report.escape_attempts),
                    "2.1.2",
                    severity=Severity.CRITICAL,
                    help_text="Users must be able to navigate away from any focused element",
                )
            )
        return verdict_from_issues("2.1.2", page, issues, check_id="keyboard-2.1.2")

    return CheckUnit(
        check_id="keyboard-2.1.2",
        criterion_ids=("2.1.2",),
        run=run,
        mutates_page_state=True,
    )


def focus_order_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        walker = FocusWalker(page, thresholds)
        async with focus_session(page):
            report = await walker.record_order()

        issues = [
            element_issue(
                _stop_element(v.current),
                "Focus moves from <%s> (stop %d) back up to <%s> (stop %d), which does "
                "not follow the visual reading order"
                % (v.previous.tag, v.previous.index, v.current.tag, v.current.index),
                "2.4.3",
                severity=Severity.MODERATE,
                help_text="Keyboard focus order should follow the visual reading order",
            )
            for v in report.violations
        ]
        logger.debug("Recorded %d focus stop(s)", len(report.stops))
        return verdict_from_issues("2.4.3", page, issues, check_id="keyboard-2.4.3")

    return CheckUnit(
        check_id="keyboard-2.4.3",
        criterion_ids=("2.4.3",),
        run=run,
        mutates_page_state=True,
    )


def focus_visible_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        walker = FocusWalker(page, thresholds)
        async with focus_session(page):
            sample = await walker.check_visible_focus()

        issues = [
            element_issue(
                result.element,
                "Element lacks visible focus indicator: %s" % _label(result.element),
                "2.4.7",
                help_text="Interactive elements must have a visible focus indicator",
            )
            for result in sample
            if result.focused and not result.visible_indicator
        ]
        return verdict_from_issues("2.4.7", page, issues, check_id="keyboard-2.4.7")

    return CheckUnit(
        check_id="keyboard-2.4.7",
        criterion_ids=("2.4.7",),
        run=run,
        mutates_page_state=True,
    )


def keyboard_checks(thresholds: HeuristicThresholds) -> List[CheckUnit]:
    return [
        keyboard_access_check(thresholds),
        keyboard_trap_check(thresholds),
        focus_order_check(thresholds),
        focus_visible_check(thresholds),
    ]
