"""
Check orchestrator.

Runs check units one at a time against a single page and turns their
results into the final verdict set.

Its responsibilities are:
- refusing to start on an unusable page
- bounding every check with a timeout
- degrading a failing or timed-out check to a warning verdict
- merging duplicate verdicts so each criterion appears exactly once

It does not interpret issues and does not touch page state.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import anyio

from a11y_auditor.app.checks.base import CheckUnit, warning_verdict
from a11y_auditor.app.events import AuditEvent, AuditEventEmitter, AuditEventType, NullEventEmitter
from a11y_auditor.app.events.emitter import safe_emit
from a11y_auditor.app.page.handle import PageHandle, ensure_page_available
from a11y_auditor.app.schemas.catalog import UNKNOWN_CRITERION_ID
from a11y_auditor.app.schemas.findings import Issue
from a11y_auditor.app.schemas.verdicts import Verdict, VerdictStatus

logger = logging.getLogger(__name__)

DEFAULT_CHECK_TIMEOUT_SECONDS = 60.0

# Higher wins when two verdicts for the same criterion are merged.
STATUS_PRECEDENCE: Dict[VerdictStatus, int] = {
    VerdictStatus.PASS: 0,
    VerdictStatus.MANUAL_REQUIRED: 1,
    VerdictStatus.WARNING: 2,
    VerdictStatus.FAIL: 3,
}


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


def _merge_pair(current: Verdict, incoming: Verdict) -> Verdict:
    winner = (
        incoming
        if STATUS_PRECEDENCE[incoming.status] > STATUS_PRECEDENCE[current.status]
        else current
    )

    issues: List[Issue] = list(current.issues)
    for issue in incoming.issues:
        if issue not in issues:
            issues.append(issue)

    return Verdict(
        criterion_id=current.criterion_id,
        status=winner.status,
        issues=issues if winner.status != VerdictStatus.PASS else [],
        timestamp=min(current.timestamp, incoming.timestamp),
        page_url=current.page_url,
        evidence_refs=[*current.evidence_refs, *incoming.evidence_refs],
        check_id=winner.check_id,
        message=winner.message,
    )


def merge_verdicts(verdicts: Iterable[Verdict]) -> List[Verdict]:
    """
    Collapse verdicts to one per criterion, keeping first-seen order.

    Status precedence is fail > warning > manual-required > pass. Issues
    are concatenated without duplicates and the earliest timestamp is kept.
    """
    merged: Dict[str, Verdict] = {}
    for verdict in verdicts:
        existing = merged.get(verdict.criterion_id)
        merged[verdict.criterion_id] = (
            verdict if existing is None else _merge_pair(existing, verdict)
        )
    return list(merged.values())


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def _as_list(result: object) -> List[Verdict]:
    """
    Normalize a check result to a list of verdicts.

    Raises TypeError for anything that is not a Verdict or an iterable of
    Verdicts.
    """
    if result is None:
        return []
    if isinstance(result, Verdict):
        return [result]
    if isinstance(result, (str, bytes, dict)):
        raise TypeError(f"check returned {type(result).__name__}, expected Verdict")
    try:
        items = list(result)  # type: ignore[call-overload]
    except TypeError:
        raise TypeError(f"check returned {type(result).__name__}, expected Verdict") from None
    for item in items:
        if not isinstance(item, Verdict):
            raise TypeError(
                f"check returned {type(item).__name__} in its result, expected Verdict"
            )
    return items


def degraded_verdict(check: CheckUnit, page_url: str, error: str) -> Verdict:
    """Warning verdict standing in for a check that raised or timed out."""
    return warning_verdict(
        check.primary_criterion or UNKNOWN_CRITERION_ID,
        page_url,
        f"Check {check.check_id} did not complete: {error}",
        check_id=check.check_id,
    )


async def run_check(
    page: PageHandle,
    check: CheckUnit,
    *,
    timeout_seconds: float = DEFAULT_CHECK_TIMEOUT_SECONDS,
) -> Tuple[List[Verdict], Optional[str]]:
    """
    Run one check.

    Returns the check's verdicts and None, or a single degraded warning
    verdict and the error text. Never raises for check-level failures.
    """
    try:
        with anyio.fail_after(timeout_seconds):
            return _as_list(await check.run(page)), None
    except TimeoutError:
        error = f"timed out after {timeout_seconds:g} seconds"
        logger.warning("Check %s %s", check.check_id, error)
    except Exception as exc:
        error = f"{type(exc).__name__}: {exc}"
        logger.warning("Check %s failed: %s", check.check_id, exc)
    return [degraded_verdict(check, page.url, error)], error


async def run_checks(
    page: PageHandle,
    checks: Sequence[CheckUnit],
    *,
    timeout_seconds: float = DEFAULT_CHECK_TIMEOUT_SECONDS,
    emitter: Optional[AuditEventEmitter] = None,
    audit_id: str = "",
) -> List[Verdict]:
    """
    Run every check in order and return the merged verdict set.

    Raises PageUnavailableError if the page cannot be used before the
    first check starts.
    """
    emitter = emitter or NullEventEmitter()
    await ensure_page_available(page)

    collected: List[Verdict] = []

    for check in checks:
        await safe_emit(
            emitter,
            AuditEvent(
                audit_id=audit_id,
                event_type=AuditEventType.CHECK_STARTED,
                details={
                    "check_id": check.check_id,
                    "criterion_ids": list(check.criterion_ids),
                },
            ),
        )
        logger.debug("Running check %s", check.check_id)

        verdicts, error = await run_check(page, check, timeout_seconds=timeout_seconds)
        collected.extend(verdicts)

        details: Dict[str, Any] = {
            "check_id": check.check_id,
            "verdicts": {v.criterion_id: v.status.value for v in verdicts},
            "issues_count": sum(len(v.issues) for v in verdicts),
        }
        if error is not None:
            details["error"] = error

        await safe_emit(
            emitter,
            AuditEvent(
                audit_id=audit_id,
                event_type=(
                    AuditEventType.CHECK_FAILED if error else AuditEventType.CHECK_COMPLETED
                ),
                details=details,
            ),
        )

    return merge_verdicts(collected)
