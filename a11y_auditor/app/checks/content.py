"""
Page content checks.

    1.3.4  orientation locks in viewport meta and orientation media rules
    2.4.5  more than one way to reach pages (search, sitemap, breadcrumbs, menus)
    4.1.3  presence of status and live regions (warning when none)
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from a11y_auditor.app.checks.base import (
    CheckUnit,
    page_issue,
    verdict_from_issues,
    warning_verdict,
)
from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.schemas.findings import Issue, Severity
from a11y_auditor.app.schemas.verdicts import Verdict

_ROTATION_RE = re.compile(r"transform\s*:[^;}]*rotate|writing-mode\s*:", re.IGNORECASE)
_HIDDEN_ROOT_RE = re.compile(r"(?:^|[\s,}])(?:html|body)\b[^{]*\{[^}]*display\s*:\s*none", re.IGNORECASE)

# (key, label) in reporting order
_WAYS = (
    ("search", "search"),
    ("sitemap", "sitemap"),
    ("breadcrumbs", "breadcrumbs"),
    ("menu", "navigation menu"),
    ("contents", "table of contents"),
    ("footer", "footer navigation"),
)


# ---------------------------------------------------------------------------
# 1.3.4 Orientation
# ---------------------------------------------------------------------------


def orientation_lock(rule: Dict[str, Any]) -> Optional[str]:
    """Describe how an orientation media rule restricts the page, or None."""
    css = rule.get("css") or ""
    if _HIDDEN_ROOT_RE.search(css):
        return "hides the page"
    if _ROTATION_RE.search(css):
        return "rotates content"
    return None


def orientation_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        found = await page.evaluate(scripts.ORIENTATION_RULES, thresholds.CONTENT_SAMPLE) or {}
        issues: List[Issue] = []

        viewport = found.get("viewport") or ""
        if "orientation=" in viewport.replace(" ", "").lower():
            issues.append(
                page_issue(
                    'Viewport meta locks orientation ("%s")' % viewport,
                    "1.3.4",
                    severity=Severity.SERIOUS,
                    help_text="Content must work in both portrait and landscape",
                )
            )

        for rule in found.get("rules") or []:
            effect = orientation_lock(rule)
            if effect:
                issues.append(
                    page_issue(
                        "@media %s %s" % (rule.get("media"), effect),
                        "1.3.4",
                        severity=Severity.MODERATE,
                        help_text="Avoid forcing a display orientation with CSS",
                    )
                )

        return verdict_from_issues("1.3.4", page, issues, check_id="content-1.3.4")

    return CheckUnit(check_id="content-1.3.4", criterion_ids=("1.3.4",), run=run)


# ---------------------------------------------------------------------------
# 2.4.5 Multiple ways
# ---------------------------------------------------------------------------


def navigation_methods_found(found: Dict[str, Any]) -> List[str]:
    return [label for key, label in _WAYS if found.get(key)]


def multiple_ways_check(thresholds: HeuristicThresholds) -> CheckUnit:
    minimum = thresholds.MIN_NAVIGATION_METHODS

    async def run(page: PageHandle) -> Verdict:
        methods = navigation_methods_found(await page.evaluate(scripts.NAVIGATION_METHODS) or {})
        issues = []
        if len(methods) < minimum:
            issues.append(
                page_issue(
                    "Only %d way(s) to locate pages found (%s); at least %d are expected"
                    % (len(methods), ", ".join(methods) or "none", minimum),
                    "2.4.5",
                    severity=Severity.SERIOUS,
                    help_text="Combine navigation menus with search, a sitemap or breadcrumbs",
                )
            )
        return verdict_from_issues("2.4.5", page, issues, check_id="content-2.4.5")

    return CheckUnit(check_id="content-2.4.5", criterion_ids=("2.4.5",), run=run)


# ---------------------------------------------------------------------------
# 4.1.3 Status messages
# ---------------------------------------------------------------------------


def status_messages_check() -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        counts = await page.evaluate(scripts.STATUS_REGIONS) or {}
        if any(counts.get(key) for key in ("roles", "live", "output")):
            return verdict_from_issues("4.1.3", page, [], check_id="content-4.1.3")
        return warning_verdict(
            "4.1.3",
            page.url,
            "No status, alert or live regions found; verify that status messages are announced",
            check_id="content-4.1.3",
            issues=[
                page_issue(
                    "No ARIA live regions or status roles on the page",
                    "4.1.3",
                    severity=Severity.MINOR,
                    help_text='Announce dynamic updates with role="status", role="alert" or aria-live',
                )
            ],
        )

    return CheckUnit(check_id="content-4.1.3", criterion_ids=("4.1.3",), run=run)


def content_checks(thresholds: HeuristicThresholds) -> List[CheckUnit]:
    return [
        orientation_check(thresholds),
        multiple_ways_check(thresholds),
        status_messages_check(),
    ]
