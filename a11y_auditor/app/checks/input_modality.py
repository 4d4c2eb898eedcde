"""
Input modality checks.

    2.1.4  single-character key shortcuts
    2.5.1  multipoint and path-based gestures
    2.5.4  device motion actuation

Decisions come from inline script and handler source, so every result is
a warning: an alternative or a way to turn the shortcut off may exist in
code that is not inspected.
"""

from __future__ import annotations

import re
from typing import List

from a11y_auditor.app.checks.base import (
    CheckUnit,
    element_issue,
    page_issue,
    verdict_from_issues,
    warning_verdict,
)
from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.schemas.findings import Issue, Severity
from a11y_auditor.app.schemas.verdicts import Verdict

_SINGLE_KEY_RE = re.compile(r"""\.key\s*===?\s*(["'])([^\s"'])\1""")
_MODIFIER_RE = re.compile(r"\b(?:ctrlKey|altKey|metaKey)\b")
_GESTURE_RE = re.compile(
    r"touches\.length\s*(?:>=?|===?)\s*[12]|\bgesture(?:start|change|end)\b|\bpinch|\bswipe",
    re.IGNORECASE,
)
_MOTION_RE = re.compile(
    r"\bdevice(?:motion|orientation)\b|\bDevice(?:Motion|Orientation)Event\b|\bAccelerometer\b|\bGyroscope\b",
)


def single_key_shortcuts(source: str) -> List[str]:
    """Printable keys matched without a modifier check anywhere in ``source``."""
    if _MODIFIER_RE.search(source or ""):
        return []
    keys = []
    for match in _SINGLE_KEY_RE.finditer(source or ""):
        if match.group(2) not in keys:
            keys.append(match.group(2))
    return keys


def gesture_signals(source: str) -> List[str]:
    return sorted({m.group(0).lower() for m in _GESTURE_RE.finditer(source or "")})


def motion_signals(source: str) -> List[str]:
    return sorted({m.group(0) for m in _MOTION_RE.finditer(source or "")})


async def _handler_source(page: PageHandle, thresholds: HeuristicThresholds) -> str:
    return await page.evaluate(scripts.INLINE_HANDLER_SOURCE, thresholds.HANDLER_SOURCE_LIMIT) or ""


# ---------------------------------------------------------------------------
# 2.1.4 Character key shortcuts
# ---------------------------------------------------------------------------


def character_shortcuts_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        keys = single_key_shortcuts(await _handler_source(page, thresholds))
        if not keys:
            return verdict_from_issues("2.1.4", page, [], check_id="input-2.1.4")
        return warning_verdict(
            "2.1.4",
            page.url,
            "Single-key shortcuts found; confirm they can be turned off, remapped or are focus-scoped",
            check_id="input-2.1.4",
            issues=[
                page_issue(
                    "Key handler reacts to %s without a modifier key"
                    % ", ".join('"%s"' % k for k in keys),
                    "2.1.4",
                    severity=Severity.MODERATE,
                    help_text="Speech input users trigger single-character shortcuts by accident",
                )
            ],
        )

    return CheckUnit(check_id="input-2.1.4", criterion_ids=("2.1.4",), run=run)


# ---------------------------------------------------------------------------
# 2.5.1 Pointer gestures
# ---------------------------------------------------------------------------


def pointer_gestures_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        issues: List[Issue] = []

        signals = gesture_signals(await _handler_source(page, thresholds))
        if signals:
            issues.append(
                page_issue(
                    "Scripts handle multipoint or path-based gestures (%s)" % ", ".join(signals),
                    "2.5.1",
                    severity=Severity.MODERATE,
                    help_text="Offer a single-pointer alternative such as buttons",
                )
            )

        draggable = await page.evaluate(
            scripts.DRAGGABLE_ELEMENTS, {"limit": thresholds.CONTENT_SAMPLE}
        ) or []
        for element in draggable:
            issues.append(
                element_issue(
                    element,
                    "Draggable element has no button alternative",
                    "2.5.1",
                    severity=Severity.MODERATE,
                )
            )

        if not issues:
            return verdict_from_issues("2.5.1", page, [], check_id="input-2.5.1")
        return warning_verdict(
            "2.5.1",
            page.url,
            "Gesture handling found; verify a single-pointer alternative exists",
            check_id="input-2.5.1",
            issues=issues,
        )

    return CheckUnit(check_id="input-2.5.1", criterion_ids=("2.5.1",), run=run)


# ---------------------------------------------------------------------------
# 2.5.4 Motion actuation
# ---------------------------------------------------------------------------


def motion_actuation_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        signals = motion_signals(await _handler_source(page, thresholds))
        if not signals:
            return verdict_from_issues("2.5.4", page, [], check_id="input-2.5.4")
        return warning_verdict(
            "2.5.4",
            page.url,
            "Device motion is used; verify a UI alternative exists and motion response can be disabled",
            check_id="input-2.5.4",
            issues=[
                page_issue(
                    "Scripts listen to device motion (%s)" % ", ".join(signals),
                    "2.5.4",
                    severity=Severity.MODERATE,
                )
            ],
        )

    return CheckUnit(check_id="input-2.5.4", criterion_ids=("2.5.4",), run=run)


def input_modality_checks(thresholds: HeuristicThresholds) -> List[CheckUnit]:
    return [
        character_shortcuts_check(thresholds),
        pointer_gestures_check(thresholds),
        motion_actuation_check(thresholds),
    ]
