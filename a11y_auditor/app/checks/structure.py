"""
Document structure checks.

    1.3.1  landmarks (page-wide issues)
    1.3.2  meaningful sequence (positive tabindex, CSS order)
    2.2.1  meta refresh time limits
    2.4.4  link purpose heuristics (warning only; purpose depends on context)

All checks are read-only DOM queries.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from a11y_auditor.app.checks.base import (
    CheckUnit,
    element_issue,
    page_issue,
    verdict_from_issues,
)
from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.schemas.findings import Issue, Severity
from a11y_auditor.app.schemas.verdicts import Verdict, VerdictStatus

_VAGUE_LINK_PATTERNS = (
    re.compile(
        r"^(click\s+here|here|read\s+more|more|learn\s+more|see\s+more|continue|next|back|previous|go)$",
        re.IGNORECASE,
    ),
    re.compile(r"^(download|view|open|see|check\s+out|find\s+out)$", re.IGNORECASE),
    re.compile(r"^(this|that|these|those)$", re.IGNORECASE),
    re.compile(r"^(link|button|page|article|details|info|information)$", re.IGNORECASE),
)

_REFRESH_DELAY_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)")

_REQUIRED_LANDMARKS = (
    ("main", "Main content landmark", "<main>"),
    ("navigation", "Navigation landmark", "<nav>"),
)


# ---------------------------------------------------------------------------
# 1.3.1 Landmarks
# ---------------------------------------------------------------------------


def landmarks_check() -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        counts = await page.evaluate(scripts.LANDMARKS) or {}
        issues = [
            page_issue(
                "Missing %s (add a %s element or equivalent role)" % (label, element),
                "1.3.1",
                severity=Severity.SERIOUS,
                help_text="Pages should expose semantic landmarks for screen reader navigation",
            )
            for role, label, element in _REQUIRED_LANDMARKS
            if not counts.get(role)
        ]
        return verdict_from_issues("1.3.1", page, issues, check_id="structure-landmarks")

    return CheckUnit(check_id="structure-landmarks", criterion_ids=("1.3.1",), run=run)


# ---------------------------------------------------------------------------
# 1.3.2 Meaningful sequence
# ---------------------------------------------------------------------------


def meaningful_sequence_check() -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        issues: List[Issue] = []

        for element in await page.evaluate(scripts.POSITIVE_TABINDEX) or []:
            issues.append(
                element_issue(
                    element,
                    "Positive tabindex (%s) overrides the natural focus and reading order"
                    % element.get("tabindex"),
                    "1.3.2",
                    severity=Severity.SERIOUS,
                    help_text="Use tabindex 0 or -1 and arrange content in logical DOM order",
                )
            )

        # flex/grid children with a non-zero ``order``
        for element in await page.evaluate(scripts.CSS_REORDERED, {"limit": 50}) or []:
            issues.append(
                element_issue(
                    element,
                    "CSS order (%s) visually reorders content; verify reading order "
                    "makes sense without CSS" % element.get("order"),
                    "1.3.2",
                    severity=Severity.MODERATE,
                )
            )

        return verdict_from_issues("1.3.2", page, issues, check_id="structure-sequence")

    return CheckUnit(check_id="structure-sequence", criterion_ids=("1.3.2",), run=run)


# ---------------------------------------------------------------------------
# 2.2.1 Timing adjustable
# ---------------------------------------------------------------------------


def refresh_delay_seconds(content: Optional[str]) -> Optional[float]:
    """Delay encoded in a meta refresh ``content`` attribute."""
    if content is None:
        return None
    match = _REFRESH_DELAY_RE.match(content.split(";")[0])
    return float(match.group(1)) if match else 0.0


def meta_refresh_check() -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        delay = refresh_delay_seconds(await page.evaluate(scripts.META_REFRESH))
        issues = []
        if delay:
            issues.append(
                page_issue(
                    "Page refreshes or redirects automatically after %g second(s)" % delay,
                    "2.2.1",
                    severity=Severity.SERIOUS,
                    help_text="Provide a way to turn off, adjust or extend time limits",
                )
            )
        return verdict_from_issues("2.2.1", page, issues, check_id="structure-meta-refresh")

    return CheckUnit(check_id="structure-meta-refresh", criterion_ids=("2.2.1",), run=run)


# ---------------------------------------------------------------------------
# 2.4.4 Link purpose
# ---------------------------------------------------------------------------


def link_problem(link: Dict[str, Any]) -> Optional[str]:
    """Describe why a link's purpose is unclear, or None."""
    text = (link.get("text") or "").strip()
    labelled = bool(link.get("ariaLabel") or link.get("title"))
    href = link.get("href") or ""

    if href.startswith("#") or href.lower().startswith("javascript:"):
        return None

    if not text and not labelled and not link.get("imageAlt"):
        return "Link has no accessible text"

    if labelled:
        return None

    if any(p.match(text) for p in _VAGUE_LINK_PATTERNS):
        return 'Vague link text "%s"; users may not understand the link\'s purpose' % text

    if text.startswith(("http://", "https://", "www.")) and len(text) > 50:
        return "Long URL used as link text (%d chars)" % len(text)

    if len(text) <= 2 and not link.get("imageAlt"):
        return 'Very short link text "%s" without aria-label or title' % text

    return None


def link_purpose_check() -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        links = await page.evaluate(scripts.LINK_TEXTS, {"limit": 200}) or []
        issues = []
        for link in links:
            problem = link_problem(link)
            if problem:
                issues.append(
                    element_issue(
                        link,
                        problem,
                        "2.4.4",
                        severity=Severity.MODERATE,
                        help_text="Link text should describe the destination, alone or with its context",
                    )
                )
        if not issues:
            return verdict_from_issues("2.4.4", page, [], check_id="structure-links")
        return Verdict(
            criterion_id="2.4.4",
            status=VerdictStatus.WARNING,
            issues=issues,
            page_url=page.url,
            check_id="structure-links",
            message="Link purpose may be clear from context; review flagged links",
        )

    return CheckUnit(check_id="structure-links", criterion_ids=("2.4.4",), run=run)


def structure_checks() -> List[CheckUnit]:
    return [
        landmarks_check(),
        meaningful_sequence_check(),
        meta_refresh_check(),
        link_purpose_check(),
    ]
