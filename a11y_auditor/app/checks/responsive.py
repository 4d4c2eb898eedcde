"""
Layout checks (1.4.4, 1.4.10, 1.4.12, 2.3.3) built on the Layout Probe.
"""

from __future__ import annotations

from typing import List

from a11y_auditor.app.checks.base import (
    CheckUnit,
    element_issue,
    page_issue,
    verdict_from_issues,
)
from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.probes.layout_probe import LayoutProbe, Offender, OverflowReport
from a11y_auditor.app.schemas.findings import Issue, Severity
from a11y_auditor.app.schemas.verdicts import Verdict, VerdictStatus


def _offender_issues(
    report: OverflowReport,
    criterion_id: str,
    description: str,
    help_text: str,
) -> List[Issue]:
    return [
        element_issue(
            _offender_element(offender),
            "%s: %s" % (description, offender.label),
            criterion_id,
            help_text=help_text,
        )
        for offender in report.offenders
    ]


def _offender_element(offender: Offender) -> dict:
    return {"markup": offender.markup, "hints": list(offender.hints), "selector": offender.selector}


def zoom_reflow_check(thresholds: HeuristicThresholds, settle_ms: int) -> CheckUnit:
    zoom_pct = int(thresholds.REFLOW_ZOOM_FACTOR * 100)
    width = thresholds.REFLOW_VIEWPORT_WIDTH

    async def run(page: PageHandle) -> List[Verdict]:
        report = await LayoutProbe(page, thresholds, settle_ms=settle_ms).probe_reflow()

        horizontal = (
            "Content introduces horizontal scrolling when zoomed to %d%% at %dpx width"
            % (zoom_pct, width)
        )
        horizontal_help = (
            "Ensure all content fits within %d CSS pixels without horizontal scrolling" % width
        )

        resize_issues = _offender_issues(
            report,
            "1.4.4",
            "Content is clipped or overflows its box at %d%% zoom" % zoom_pct,
            "Ensure text can be resized to %d%% without loss of content" % zoom_pct,
        )
        reflow_issues: List[Issue] = []
        if report.doc_overflow_x:
            resize_issues.append(page_issue(horizontal, "1.4.4", help_text=horizontal_help))
            reflow_issues.append(page_issue(horizontal, "1.4.10", help_text=horizontal_help))
            reflow_issues.extend(
                _offender_issues(
                    report,
                    "1.4.10",
                    "Element does not reflow at %dpx width" % width,
                    "Avoid fixed widths and min-widths wider than the viewport",
                )
            )

        return [
            verdict_from_issues("1.4.4", page, resize_issues, check_id="layout-reflow"),
            verdict_from_issues("1.4.10", page, reflow_issues, check_id="layout-reflow"),
        ]

    return CheckUnit(
        check_id="layout-reflow",
        criterion_ids=("1.4.4", "1.4.10"),
        run=run,
        mutates_page_state=True,
    )


def text_spacing_check(thresholds: HeuristicThresholds, settle_ms: int) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        report = await LayoutProbe(page, thresholds, settle_ms=settle_ms).probe_text_spacing()

        help_text = (
            "Ensure users can apply text spacing (line-height 1.5, letter-spacing "
            "0.12em, word-spacing 0.16em) without loss of content"
        )
        issues = _offender_issues(
            report,
            "1.4.12",
            "Content is clipped when text spacing is increased",
            help_text,
        )
        if report.doc_overflow_x or report.doc_overflow_y:
            issues.append(
                page_issue(
                    "Layout breaks when text spacing adjustments are applied "
                    "(document overflow x=%s, y=%s)"
                    % (report.doc_overflow_x, report.doc_overflow_y),
                    "1.4.12",
                    help_text=help_text,
                )
            )
        return verdict_from_issues("1.4.12", page, issues, check_id="layout-text-spacing")

    return CheckUnit(
        check_id="layout-text-spacing",
        criterion_ids=("1.4.12",),
        run=run,
        mutates_page_state=True,
    )


def reduced_motion_check(thresholds: HeuristicThresholds, settle_ms: int) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        report = await LayoutProbe(page, thresholds, settle_ms=settle_ms).probe_reduced_motion()
        if report.respects_preference:
            return verdict_from_issues("2.3.3", page, [], check_id="layout-reduced-motion")

        issues = [
            element_issue(
                element,
                "Element still animates when reduced motion is requested "
                "(animation %s, transition %s)"
                % (element.get("animationDuration"), element.get("transitionDuration")),
                "2.3.3",
                severity=Severity.MODERATE,
                help_text="Honour prefers-reduced-motion for non-essential animation",
            )
            for element in report.moving
        ]
        return Verdict(
            criterion_id="2.3.3",
            status=VerdictStatus.WARNING,
            issues=issues,
            page_url=page.url,
            check_id="layout-reduced-motion",
            message="Motion persists under prefers-reduced-motion; confirm it is essential",
        )

    return CheckUnit(
        check_id="layout-reduced-motion",
        criterion_ids=("2.3.3",),
        run=run,
        mutates_page_state=True,
    )


def layout_checks(thresholds: HeuristicThresholds, settle_ms: int) -> List[CheckUnit]:
    return [
        zoom_reflow_check(thresholds, settle_ms),
        text_spacing_check(thresholds, settle_ms),
        reduced_motion_check(thresholds, settle_ms),
    ]
