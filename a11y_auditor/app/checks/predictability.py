"""
Predictability checks.

    3.2.1  focus handlers that change context
    3.2.2  input handlers that change context, forms without a submit button
    3.2.4  the same function labelled differently on one page

Inline handler attributes are the only source inspected; listeners added
from script files are invisible here and need manual testing.
"""

from __future__ import annotations

import re
from typing import Dict, List, Sequence

from a11y_auditor.app.checks.base import CheckUnit, element_issue, page_issue, verdict_from_issues
from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.schemas.findings import Issue, Severity
from a11y_auditor.app.schemas.verdicts import Verdict

_CONTEXT_CHANGE_RE = re.compile(
    r"window\.open|(?:window|document)\.location|location\.(?:href|assign|replace)|\.submit\s*\("
)
_FOCUS_MOVE_RE = re.compile(r"\.focus\s*\(")

_FUNCTION_LABELS = (
    ("search", "Search"),
    ("home", "Home link"),
)


def changes_context(handler: str, *, on_focus: bool = False) -> bool:
    """True when inline handler source navigates, submits or opens a window."""
    if _CONTEXT_CHANGE_RE.search(handler or ""):
        return True
    return on_focus and bool(_FOCUS_MOVE_RE.search(handler or ""))


# ---------------------------------------------------------------------------
# 3.2.1 On focus
# ---------------------------------------------------------------------------


def on_focus_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        elements = await page.evaluate(
            scripts.FOCUS_HANDLERS, {"limit": thresholds.CONTENT_SAMPLE}
        ) or []
        issues = [
            element_issue(
                element,
                "Focus handler changes context (%s)" % element.get("handler", "").strip()[:80],
                "3.2.1",
                severity=Severity.SERIOUS,
                help_text="Receiving focus must not navigate, submit, open windows or move focus",
            )
            for element in elements
            if changes_context(element.get("handler", ""), on_focus=True)
        ]
        return verdict_from_issues("3.2.1", page, issues, check_id="predictability-3.2.1")

    return CheckUnit(check_id="predictability-3.2.1", criterion_ids=("3.2.1",), run=run)


# ---------------------------------------------------------------------------
# 3.2.2 On input
# ---------------------------------------------------------------------------


def on_input_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        found = await page.evaluate(
            scripts.INPUT_HANDLERS, {"limit": thresholds.CONTENT_SAMPLE}
        ) or {}
        issues: List[Issue] = []

        for element in found.get("controls") or []:
            if changes_context(element.get("handler", "")):
                issues.append(
                    element_issue(
                        element,
                        "Changing this <%s> changes context without warning" % element.get("tag"),
                        "3.2.2",
                        severity=Severity.SERIOUS,
                        help_text="Let users confirm with a submit button instead of acting on change",
                    )
                )

        for form in found.get("forms") or []:
            issues.append(
                element_issue(
                    form,
                    "Form has change handlers but no submit button",
                    "3.2.2",
                    severity=Severity.SERIOUS,
                    help_text="Provide an explicit submit control for the form",
                )
            )

        return verdict_from_issues("3.2.2", page, issues, check_id="predictability-3.2.2")

    return CheckUnit(check_id="predictability-3.2.2", criterion_ids=("3.2.2",), run=run)


# ---------------------------------------------------------------------------
# 3.2.4 Consistent identification
# ---------------------------------------------------------------------------


def distinct_labels(labels: Sequence[str]) -> List[str]:
    """Case- and whitespace-insensitive distinct labels, first spelling kept."""
    seen: Dict[str, str] = {}
    for label in labels:
        key = " ".join(label.split()).casefold()
        if key and key not in seen:
            seen[key] = label.strip()
    return list(seen.values())


def consistent_identification_check() -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        labels = await page.evaluate(scripts.IDENTIFICATION_LABELS) or {}
        issues = []
        for key, name in _FUNCTION_LABELS:
            variants = distinct_labels(labels.get(key) or [])
            if len(variants) > 1:
                issues.append(
                    page_issue(
                        "%s is labelled inconsistently: %s"
                        % (name, ", ".join('"%s"' % v for v in variants)),
                        "3.2.4",
                        severity=Severity.MODERATE,
                        help_text="Components with the same function should be identified the same way",
                    )
                )
        return verdict_from_issues("3.2.4", page, issues, check_id="predictability-3.2.4")

    return CheckUnit(check_id="predictability-3.2.4", criterion_ids=("3.2.4",), run=run)


def predictability_checks(thresholds: HeuristicThresholds) -> List[CheckUnit]:
    return [
        on_focus_check(thresholds),
        on_input_check(thresholds),
        consistent_identification_check(),
    ]
