"""
3.2.3 Consistent navigation.

Compares the order of navigation links on the audited page with the same
links on up to ``CRAWL_DEPTH`` same-origin pages. Each comparison page is
opened in the audited page's browser context and always closed.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from a11y_auditor.app.checks.base import (
    CheckUnit,
    page_issue,
    verdict_from_issues,
    warning_verdict,
)
from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle, auxiliary_page
from a11y_auditor.app.schemas.findings import Severity
from a11y_auditor.app.schemas.verdicts import Verdict

logger = logging.getLogger(__name__)


def _unique(items: Sequence[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def navigation_inconsistencies(reference: Sequence[str], other: Sequence[str]) -> List[str]:
    """
    Items shared by both navigations that appear in a different relative order.

    Items present on only one page are ignored; only the order of the
    shared items matters.
    """
    other_set = set(other)
    shared = [item for item in _unique(reference) if item in other_set]
    shared_set = set(shared)
    other_order = [item for item in _unique(other) if item in shared_set]

    return [
        '"%s" at position %d vs %d' % (item, index, other_order.index(item))
        for index, item in enumerate(shared)
        if other_order[index] != item
    ]


def consistent_navigation_check(
    crawl_depth: int,
    navigation_timeout_ms: int,
) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        reference = await page.evaluate(scripts.NAVIGATION_SIGNATURE) or []
        if not reference:
            return warning_verdict(
                "3.2.3",
                page.url,
                "No navigation region found; consistent navigation cannot be compared",
                check_id="navigation-3.2.3",
            )

        links = await page.evaluate(scripts.SAME_ORIGIN_LINKS, crawl_depth) or []
        issues = []
        compared = 0

        for link in links[:crawl_depth]:
            async with auxiliary_page(page) as other:
                try:
                    await other.goto(
                        link,
                        wait_until="domcontentloaded",
                        timeout=navigation_timeout_ms,
                    )
                    signature = await other.evaluate(scripts.NAVIGATION_SIGNATURE) or []
                except Exception as exc:
                    logger.warning("Skipping %s for navigation comparison: %s", link, exc)
                    continue

            compared += 1
            differences = navigation_inconsistencies(reference, signature)
            if differences:
                issues.append(
                    page_issue(
                        "Navigation order inconsistent between %s and %s: %s"
                        % (page.url, link, ", ".join(differences)),
                        "3.2.3",
                        severity=Severity.MODERATE,
                        help_text="Keep repeated navigation components in the same relative order across pages",
                    )
                )

        if not compared:
            return warning_verdict(
                "3.2.3",
                page.url,
                "No same-origin pages could be compared; review navigation consistency manually",
                check_id="navigation-3.2.3",
            )

        logger.debug("Compared navigation with %d page(s)", compared)
        return verdict_from_issues("3.2.3", page, issues, check_id="navigation-3.2.3")

    return CheckUnit(
        check_id="navigation-3.2.3",
        criterion_ids=("3.2.3",),
        run=run,
        description="Navigation order across up to %d same-origin pages" % crawl_depth,
    )
