"""
Check unit contract and verdict helpers.

A check unit is an independent async callable ``(page) -> Verdict |
list[Verdict]`` plus the criteria it reports on. Checks never depend on
another check's side effects; any check that touches global page state
declares ``mutates_page_state`` and goes through ``app.page.state``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.schemas.catalog import get_criterion
from a11y_auditor.app.schemas.findings import Issue, Severity
from a11y_auditor.app.schemas.verdicts import Verdict, VerdictStatus

CheckResult = Union[Verdict, List[Verdict]]
CheckFn = Callable[[PageHandle], Awaitable[CheckResult]]


@dataclass(frozen=True)
class CheckUnit:
    check_id: str
    criterion_ids: Tuple[str, ...]
    run: CheckFn
    mutates_page_state: bool = False
    description: str = ""

    @property
    def primary_criterion(self) -> Optional[str]:
        return self.criterion_ids[0] if self.criterion_ids else None


# ---------------------------------------------------------------------------
# Rule tags
# ---------------------------------------------------------------------------


def criterion_tags(criterion_id: str) -> List[str]:
    """``['wcag2aa', 'wcag1410']`` style tags for a dotted criterion id."""
    criterion = get_criterion(criterion_id)
    tags = []
    if criterion is not None:
        tags.append("wcag2" + criterion.level.value.lower())
    tags.append("wcag" + criterion_id.replace(".", ""))
    return tags


# ---------------------------------------------------------------------------
# Issue helpers
# ---------------------------------------------------------------------------


def element_issue(
    element: Dict[str, Any],
    description: str,
    criterion_id: str,
    *,
    severity: Severity = Severity.SERIOUS,
    help_text: Optional[str] = None,
    help_url: Optional[str] = None,
) -> Issue:
    """Issue bound to an element described by the in-page describe helper."""
    hints = list(element.get("hints") or [])
    selector = element.get("selector")
    if selector and selector not in hints:
        hints.insert(0, selector)
    return Issue(
        description=description,
        severity=severity,
        element_descriptor=element.get("markup") or None,
        locator_hints=hints,
        help_text=help_text,
        help_url=help_url,
        rule_tags=criterion_tags(criterion_id),
    )


def page_issue(
    description: str,
    criterion_id: str,
    *,
    severity: Severity = Severity.SERIOUS,
    help_text: Optional[str] = None,
) -> Issue:
    """Issue that concerns the page as a whole (no element)."""
    return Issue(
        description=description,
        severity=severity,
        help_text=help_text,
        rule_tags=criterion_tags(criterion_id),
    )


# ---------------------------------------------------------------------------
# Verdict helpers
# ---------------------------------------------------------------------------


def verdict_from_issues(
    criterion_id: str,
    page: PageHandle,
    issues: Sequence[Issue],
    *,
    check_id: Optional[str] = None,
) -> Verdict:
    """Fail when any issue was found, pass otherwise."""
    return Verdict(
        criterion_id=criterion_id,
        status=VerdictStatus.FAIL if issues else VerdictStatus.PASS,
        issues=list(issues),
        page_url=page.url,
        check_id=check_id,
    )


def warning_verdict(
    criterion_id: str,
    page_url: str,
    message: str,
    *,
    check_id: Optional[str] = None,
    issues: Iterable[Issue] = (),
) -> Verdict:
    return Verdict(
        criterion_id=criterion_id,
        status=VerdictStatus.WARNING,
        issues=list(issues),
        page_url=page_url,
        check_id=check_id,
        message=message,
    )


def manual_verdict(
    criterion_id: str,
    page_url: str,
    description: str,
    *,
    check_id: Optional[str] = None,
    help_text: Optional[str] = None,
) -> Verdict:
    return Verdict(
        criterion_id=criterion_id,
        status=VerdictStatus.MANUAL_REQUIRED,
        issues=[
            page_issue(
                description,
                criterion_id,
                severity=Severity.MODERATE,
                help_text=help_text,
            )
        ],
        page_url=page_url,
        check_id=check_id,
        message="Requires human review",
    )
