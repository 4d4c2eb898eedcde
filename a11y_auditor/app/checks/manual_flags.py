"""
Manual review flags.

Criteria that need human judgment or assistive technology testing are
reported as ``manual-required`` verdicts with a single page-level issue
describing what to verify. When an automated check reports the same
criterion, merge precedence keeps the automated fail or warning.
"""

from __future__ import annotations

from typing import List, Tuple

from a11y_auditor.app.checks.base import CheckUnit, manual_verdict
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.schemas.verdicts import Verdict

CHECK_ID = "manual-flags"

# (criterion id, what to verify, guidance)
MANUAL_CRITERIA: Tuple[Tuple[str, str, str], ...] = (
    (
        "1.2.2",
        "Check that all prerecorded video content has accurate captions",
        "Verify caption quality, synchronization and accuracy with a screen reader or manual review",
    ),
    (
        "1.2.3",
        "Check that video has an audio description or a text alternative",
        "Verify that visual content is described for blind users",
    ),
    (
        "1.2.5",
        "Check that prerecorded video has an audio description track",
        "Verify audio description quality and completeness",
    ),
    (
        "1.2.6",
        "Check that audio content has sign language interpretation",
        "Level AAA: provide sign language for prerecorded audio",
    ),
    (
        "1.4.13",
        "Test that content shown on hover or focus is dismissible, hoverable and persistent",
        "Tooltips and hover content must not disappear unexpectedly",
    ),
    (
        "2.2.1",
        "Check that time limits can be turned off, adjusted or extended",
        "Users must be able to control time limits",
    ),
    (
        "2.3.1",
        "Ensure no content flashes more than three times per second",
        "Flashing content can trigger seizures and must stay below the threshold",
    ),
    (
        "2.4.4",
        "Verify that link text describes the link purpose",
        "Test with a screen reader that link purposes are clear from context",
    ),
    (
        "3.1.1",
        "Confirm the page language attribute matches the content language",
        "Verify with a screen reader that pronunciation is correct",
    ),
    (
        "3.1.2",
        "Check that passages in other languages carry a lang attribute",
        "Test multi-language content with a screen reader",
    ),
    (
        "3.1.5",
        "Assess whether content requires reading ability beyond lower secondary education",
        "Level AAA: provide supplemental content or a simpler version",
    ),
    (
        "3.2.5",
        "Check that changes of context only happen on user request",
        "Level AAA: automatic context changes must be preventable",
    ),
    (
        "3.3.3",
        "Verify that error messages suggest how to correct the input",
        "Test form validation with a screen reader",
    ),
)


def manual_criterion_ids() -> List[str]:
    return [criterion_id for criterion_id, _, _ in MANUAL_CRITERIA]


def requires_manual_review(criterion_id: str) -> bool:
    return criterion_id in manual_criterion_ids()


def manual_flags_check() -> CheckUnit:
    async def run(page: PageHandle) -> List[Verdict]:
        return [
            manual_verdict(
                criterion_id,
                page.url,
                "Manual verification required: " + description,
                check_id=CHECK_ID,
                help_text=help_text,
            )
            for criterion_id, description, help_text in MANUAL_CRITERIA
        ]

    return CheckUnit(
        check_id=CHECK_ID,
        criterion_ids=tuple(manual_criterion_ids()),
        run=run,
        description="Criteria that require human review",
    )
