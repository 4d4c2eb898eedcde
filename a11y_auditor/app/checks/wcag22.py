"""
WCAG 2.2 checks.

Target size and focus-not-obscured are decided from geometry and fail;
focus appearance, pointer cancellation and accessible authentication are
heuristics and only warn.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from a11y_auditor.app.checks.base import (
    CheckUnit,
    element_issue,
    verdict_from_issues,
    warning_verdict,
)
from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.page.state import focus_session
from a11y_auditor.app.probes.focus_walker import FocusWalker, has_visible_indicator
from a11y_auditor.app.schemas.findings import Issue, Severity
from a11y_auditor.app.schemas.verdicts import Verdict

# Thinnest outline accepted as a focus indicator of sufficient area.
MIN_OUTLINE_PX = 2.0


def _px(value: Optional[str]) -> float:
    if not value:
        return 0.0
    try:
        return float(value.strip().split()[0].replace("px", ""))
    except ValueError:
        return 0.0


# ---------------------------------------------------------------------------
# 2.5.8 Target size (minimum)
# ---------------------------------------------------------------------------


def undersized_target(element: Dict[str, Any], minimum: int) -> bool:
    rect = element.get("rect") or {}
    width = rect.get("width") or 0
    height = rect.get("height") or 0
    return width > 0 and height > 0 and (width < minimum or height < minimum)


def target_size_check(thresholds: HeuristicThresholds) -> CheckUnit:
    minimum = thresholds.MIN_TARGET_SIZE_PX

    async def run(page: PageHandle) -> Verdict:
        elements = await page.evaluate(
            scripts.LIST_INTERACTIVE,
            {"selector": scripts.INTERACTIVE_SELECTOR, "limit": thresholds.WCAG22_SAMPLE},
        ) or []
        issues = []
        for element in elements:
            if not undersized_target(element, minimum):
                continue
            rect = element["rect"]
            issues.append(
                element_issue(
                    element,
                    "Target smaller than %dx%d px (%dx%d)"
                    % (minimum, minimum, round(rect["width"]), round(rect["height"])),
                    "2.5.8",
                    severity=Severity.MODERATE,
                    help_text="Pointer targets should be at least %d by %d CSS pixels"
                    % (minimum, minimum),
                )
            )
        return verdict_from_issues("2.5.8", page, issues, check_id="wcag22-2.5.8")

    return CheckUnit(check_id="wcag22-2.5.8", criterion_ids=("2.5.8",), run=run)


# ---------------------------------------------------------------------------
# 2.4.11 Focus not obscured (minimum)
# ---------------------------------------------------------------------------


def focus_not_obscured_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        walker = FocusWalker(page, thresholds)
        issues = []
        async with focus_session(page):
            for element in await walker.interactive_elements(thresholds.WCAG22_SAMPLE):
                result = await page.evaluate(scripts.FOCUS_OBSCURED, element["ref"])
                if not result or not result.get("obscured"):
                    continue
                blocker = result.get("blocker") or {}
                issues.append(
                    element_issue(
                        element,
                        "Focused element is obscured by other content (%s)"
                        % (blocker.get("selector") or "overlay"),
                        "2.4.11",
                        help_text="Sticky headers, footers and overlays must not hide the focused element",
                    )
                )
        return verdict_from_issues("2.4.11", page, issues, check_id="wcag22-2.4.11")

    return CheckUnit(
        check_id="wcag22-2.4.11",
        criterion_ids=("2.4.11",),
        run=run,
        mutates_page_state=True,
    )


# ---------------------------------------------------------------------------
# 2.4.13 Focus appearance
# ---------------------------------------------------------------------------


def has_sufficient_appearance(before: Dict[str, Any], after: Dict[str, Any]) -> bool:
    """
    A visible indicator that is not a hairline outline.

    Box shadows and border changes are accepted as they are; outlines must
    be at least ``MIN_OUTLINE_PX`` wide.
    """
    if not has_visible_indicator(before, after):
        return False
    outline_style = (after.get("outlineStyle") or "none").strip()
    if outline_style == "none" or _px(after.get("outlineWidth")) >= MIN_OUTLINE_PX:
        return True
    box_shadow = (after.get("boxShadow") or "none").strip()
    border_changed = any(before.get(k) != after.get(k) for k in ("borderStyle", "borderWidth", "borderColor"))
    return box_shadow != "none" or border_changed


def focus_appearance_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        walker = FocusWalker(page, thresholds)
        issues: List[Issue] = []
        async with focus_session(page):
            for element in await walker.interactive_elements(thresholds.WCAG22_SAMPLE):
                pair = await page.evaluate(scripts.FOCUS_STYLE_PAIR, element["ref"])
                if not pair or not pair.get("focused"):
                    continue
                if has_sufficient_appearance(pair["before"], pair["after"]):
                    continue
                issues.append(
                    element_issue(
                        element,
                        "Focus indicator missing or thinner than %gpx" % MIN_OUTLINE_PX,
                        "2.4.13",
                        severity=Severity.MODERATE,
                        help_text="Focus indicators should be at least 2 CSS pixels thick with sufficient contrast",
                    )
                )
        if not issues:
            return verdict_from_issues("2.4.13", page, [], check_id="wcag22-2.4.13")
        return warning_verdict(
            "2.4.13",
            page.url,
            "Focus appearance is a heuristic; confirm indicator size and contrast",
            check_id="wcag22-2.4.13",
            issues=issues,
        )

    return CheckUnit(
        check_id="wcag22-2.4.13",
        criterion_ids=("2.4.13",),
        run=run,
        mutates_page_state=True,
    )


# ---------------------------------------------------------------------------
# 2.5.2 Pointer cancellation
# ---------------------------------------------------------------------------


def pointer_cancellation_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        elements = await page.evaluate(
            scripts.POINTER_DOWN_HANDLERS, {"limit": thresholds.WCAG22_SAMPLE}
        ) or []
        issues = [
            element_issue(
                element,
                "Pointer action bound to the down event without a click fallback",
                "2.5.2",
                severity=Severity.MODERATE,
                help_text="Complete actions on the up event so they can be aborted",
            )
            for element in elements
        ]
        if not issues:
            return verdict_from_issues("2.5.2", page, [], check_id="wcag22-2.5.2")
        return warning_verdict(
            "2.5.2",
            page.url,
            "Down-event handlers found; confirm the action can be aborted or undone",
            check_id="wcag22-2.5.2",
            issues=issues,
        )

    return CheckUnit(check_id="wcag22-2.5.2", criterion_ids=("2.5.2",), run=run)


# ---------------------------------------------------------------------------
# 3.3.8 Accessible authentication (minimum)
# ---------------------------------------------------------------------------

_PASSWORD_AUTOCOMPLETE = {"current-password", "new-password"}
_USERNAME_AUTOCOMPLETE = {"username", "email"}


def authentication_problems(field: Dict[str, Any]) -> List[str]:
    """Reasons a password field hinders password managers or pasting."""
    problems = []
    if field.get("pasteBlocked"):
        problems.append("Pasting into the password field is blocked")
    if field.get("autocomplete") not in _PASSWORD_AUTOCOMPLETE:
        problems.append(
            "Password field missing proper autocomplete (found: %s)" % (field.get("autocomplete") or "none")
        )
    username = field.get("usernameAutocomplete")
    if username is not None and username not in _USERNAME_AUTOCOMPLETE:
        problems.append("Username field missing proper autocomplete (found: %s)" % (username or "none"))
    return problems


def accessible_authentication_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        fields = await page.evaluate(
            scripts.AUTH_FIELDS, {"limit": thresholds.WCAG22_SAMPLE}
        ) or []
        issues = [
            element_issue(
                field,
                problem,
                "3.3.8",
                severity=Severity.MODERATE,
                help_text="Let password managers fill credentials and allow pasting",
            )
            for field in fields
            for problem in authentication_problems(field)
        ]
        if not issues:
            return verdict_from_issues("3.3.8", page, [], check_id="wcag22-3.3.8")
        return warning_verdict(
            "3.3.8",
            page.url,
            "Login fields may require recalling or transcribing credentials",
            check_id="wcag22-3.3.8",
            issues=issues,
        )

    return CheckUnit(check_id="wcag22-3.3.8", criterion_ids=("3.3.8",), run=run)


def wcag22_checks(thresholds: HeuristicThresholds) -> List[CheckUnit]:
    return [
        target_size_check(thresholds),
        focus_not_obscured_check(thresholds),
        focus_appearance_check(thresholds),
        pointer_cancellation_check(thresholds),
        accessible_authentication_check(thresholds),
    ]
