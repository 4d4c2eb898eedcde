"""
Rule-engine adapter checks.

Translate axe-core violations into the internal Issue/Verdict model.
Rule tags like ``wcag1410`` map to dotted criterion ids by positional digit
grouping (first digit, second digit, remainder). Tags that cannot be mapped,
or map to ids missing from the catalog, fall into the ``unknown`` bucket
so the issue is never dropped.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from a11y_auditor.app.checks.axe_engine import RuleEngine
from a11y_auditor.app.checks.base import CheckUnit, verdict_from_issues, warning_verdict
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.schemas.catalog import UNKNOWN_CRITERION_ID, get_criterion
from a11y_auditor.app.schemas.criteria import Level
from a11y_auditor.app.schemas.findings import Issue, Severity
from a11y_auditor.app.schemas.verdicts import Verdict, VerdictStatus

logger = logging.getLogger(__name__)

# Conformance-level tags (wcag2a, wcag21aa, wcag22aaa ...) carry no criterion.
_LEVEL_TAG_RE = re.compile(r"^wcag2\d?a{1,3}$", re.IGNORECASE)
_NON_DIGIT_RE = re.compile(r"\D")

_LEVEL_TAGS = {
    Level.A: ["wcag2a", "wcag21a", "wcag22a"],
    Level.AA: ["wcag2aa", "wcag21aa", "wcag22aa"],
    Level.AAA: ["wcag2aaa"],
}

# criterion id -> axe rules that evaluate it
TARGETED_RULES: Dict[str, List[str]] = {
    "1.1.1": ["image-alt", "input-image-alt", "object-alt"],
    "1.3.1": ["heading-order", "empty-heading"],
    "1.4.3": ["color-contrast"],
    "2.4.1": ["bypass", "skip-link"],
    "2.4.2": ["document-title"],
    "3.3.2": ["label", "label-title-only"],
    "4.1.2": [
        "aria-allowed-attr",
        "aria-required-attr",
        "aria-valid-attr",
        "aria-valid-attr-value",
        "aria-roles",
        "button-name",
        "link-name",
    ],
}


# ---------------------------------------------------------------------------
# Tag mapping
# ---------------------------------------------------------------------------


def tag_to_criterion_id(tag: str) -> Optional[str]:
    """
    ``wcag1410`` -> ``1.4.10``.

    Returns None for tags with fewer than three digits.
    """
    if not tag.lower().startswith("wcag"):
        return None
    digits = _NON_DIGIT_RE.sub("", tag[4:])
    if len(digits) < 3:
        return None
    return "%s.%s.%s" % (digits[0], digits[1], digits[2:])


def criterion_for_tags(tags: Sequence[str]) -> str:
    """Dotted criterion id for a violation's tag list, or ``unknown``."""
    for tag in tags:
        if not tag.lower().startswith("wcag") or _LEVEL_TAG_RE.match(tag):
            continue
        if not any(ch.isdigit() for ch in tag):
            continue
        criterion_id = tag_to_criterion_id(tag)
        if criterion_id is None or get_criterion(criterion_id) is None:
            return UNKNOWN_CRITERION_ID
        return criterion_id
    return UNKNOWN_CRITERION_ID


def tags_for_level(level: Level) -> List[str]:
    tags: List[str] = []
    for current in (Level.A, Level.AA, Level.AAA):
        tags.extend(_LEVEL_TAGS[current])
        if current == level:
            break
    return tags


# ---------------------------------------------------------------------------
# Violation translation
# ---------------------------------------------------------------------------


def _node_hints(node: Dict[str, Any]) -> List[str]:
    # Targets inside iframes / shadow roots are nested lists; keep plain selectors.
    return [t for t in node.get("target") or [] if isinstance(t, str) and t]


def issues_from_violation(violation: Dict[str, Any]) -> List[Issue]:
    description = violation.get("description") or violation.get("help") or violation.get("id") or "Rule violation"
    tags = list(violation.get("tags") or [])
    issues = []
    for node in violation.get("nodes") or []:
        issues.append(
            Issue(
                description=description,
                severity=Severity.from_impact(node.get("impact") or violation.get("impact")),
                element_descriptor=node.get("html") or None,
                locator_hints=_node_hints(node),
                help_text=violation.get("help"),
                help_url=violation.get("helpUrl"),
                rule_tags=tags,
            )
        )
    return issues


def group_violations(violations: Sequence[Dict[str, Any]]) -> Dict[str, List[Issue]]:
    """Group issues by mapped criterion id, preserving first-seen order."""
    grouped: Dict[str, List[Issue]] = {}
    for violation in violations:
        criterion_id = criterion_for_tags(violation.get("tags") or [])
        if criterion_id == UNKNOWN_CRITERION_ID:
            logger.debug("Unmapped rule %s tags=%s", violation.get("id"), violation.get("tags"))
        grouped.setdefault(criterion_id, []).extend(issues_from_violation(violation))
    return grouped


# ---------------------------------------------------------------------------
# Check units
# ---------------------------------------------------------------------------


def targeted_check(engine: RuleEngine, criterion_id: str, rules: Sequence[str]) -> CheckUnit:
    check_id = "axe-" + criterion_id

    async def run(page: PageHandle) -> Verdict:
        results = await engine.analyze(page, rules=rules)
        issues = [i for v in results.violations for i in issues_from_violation(v)]
        return verdict_from_issues(criterion_id, page, issues, check_id=check_id)

    return CheckUnit(
        check_id=check_id,
        criterion_ids=(criterion_id,),
        run=run,
        description="axe-core rules: " + ", ".join(rules),
    )


def non_text_contrast_check(engine: RuleEngine) -> CheckUnit:
    """
    1.4.11 can only be partially automated: violations fail, otherwise the
    criterion is left as a warning for review.
    """
    check_id = "axe-1.4.11"

    async def run(page: PageHandle) -> Verdict:
        results = await engine.analyze(page, tags=_LEVEL_TAGS[Level.AA])
        issues = [
            i
            for v in results.violations
            if "wcag1411" in (v.get("tags") or [])
            for i in issues_from_violation(v)
        ]
        if issues:
            return verdict_from_issues("1.4.11", page, issues, check_id=check_id)
        return warning_verdict(
            "1.4.11",
            page.url,
            "No automated non-text contrast violations; verify UI component and graphic contrast manually",
            check_id=check_id,
        )

    return CheckUnit(check_id=check_id, criterion_ids=("1.4.11",), run=run)


def broad_scan_check(engine: RuleEngine, level: Level) -> CheckUnit:
    """Full tag-based scan, one failing verdict per mapped criterion."""
    check_id = "axe-scan"
    tags = tags_for_level(level)

    async def run(page: PageHandle) -> List[Verdict]:
        results = await engine.analyze(page, tags=tags)
        verdicts = []
        for criterion_id, issues in group_violations(results.violations).items():
            if not issues:
                continue
            verdicts.append(
                Verdict(
                    criterion_id=criterion_id,
                    status=VerdictStatus.FAIL,
                    issues=issues,
                    page_url=page.url,
                    check_id=check_id,
                )
            )
        return verdicts

    return CheckUnit(check_id=check_id, criterion_ids=(), run=run)


def axe_checks(engine: RuleEngine, level: Level) -> List[CheckUnit]:
    checks = [
        targeted_check(engine, criterion_id, rules)
        for criterion_id, rules in TARGETED_RULES.items()
    ]
    checks.append(non_text_contrast_check(engine))
    checks.append(broad_scan_check(engine, level))
    return checks
