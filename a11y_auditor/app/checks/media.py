"""
Time-based media and moving content.

    1.2.1  audio-only / video-only alternatives (warning; adequacy needs review)
    1.2.2  caption tracks on prerecorded video
    1.4.2  autoplaying audio without a control
    2.2.2  blinking, scrolling and long-running animation without a pause control

Only markup is inspected; media is never played.
"""

from __future__ import annotations

import re
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
from a11y_auditor.app.schemas.findings import Issue, Severity
from a11y_auditor.app.schemas.verdicts import Verdict

_DURATION_RE = re.compile(r"^\s*([\d.]+)\s*(ms|s)\s*$", re.IGNORECASE)


async def _media(page: PageHandle, thresholds: HeuristicThresholds) -> Dict[str, Any]:
    return await page.evaluate(
        scripts.MEDIA_ELEMENTS, {"limit": thresholds.CONTENT_SAMPLE}
    ) or {}


def _with_source(media: Dict[str, Any], kind: str) -> List[Dict[str, Any]]:
    return [m for m in media.get("media") or [] if m.get("kind") == kind and m.get("hasSource")]


# ---------------------------------------------------------------------------
# 1.2.1 Audio-only and video-only
# ---------------------------------------------------------------------------


def media_alternative_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        media = await _media(page, thresholds)
        issues = []
        for element in _with_source(media, "audio") + _with_source(media, "video"):
            if element.get("describedBy") or element.get("transcriptNearby"):
                continue
            issues.append(
                element_issue(
                    element,
                    "<%s> has no transcript or described-by alternative nearby" % element["kind"],
                    "1.2.1",
                    severity=Severity.SERIOUS,
                    help_text="Provide a transcript for audio-only content and a text or audio "
                    "alternative for video-only content",
                )
            )
        if not issues:
            return verdict_from_issues("1.2.1", page, [], check_id="media-1.2.1")
        return warning_verdict(
            "1.2.1",
            page.url,
            "Media without an apparent alternative; confirm whether it is audio-only or video-only",
            check_id="media-1.2.1",
            issues=issues,
        )

    return CheckUnit(check_id="media-1.2.1", criterion_ids=("1.2.1",), run=run)


# ---------------------------------------------------------------------------
# 1.2.2 Captions
# ---------------------------------------------------------------------------


def captions_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        media = await _media(page, thresholds)
        issues = [
            element_issue(
                element,
                "<video> has no captions or subtitles track",
                "1.2.2",
                severity=Severity.CRITICAL,
                help_text='Add a <track kind="captions"> with synchronized captions',
            )
            for element in _with_source(media, "video")
            if not element.get("captionTracks")
        ]
        return verdict_from_issues("1.2.2", page, issues, check_id="media-1.2.2")

    return CheckUnit(check_id="media-1.2.2", criterion_ids=("1.2.2",), run=run)


# ---------------------------------------------------------------------------
# 1.4.2 Audio control
# ---------------------------------------------------------------------------


def audio_control_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        media = await _media(page, thresholds)
        issues = []
        if not media.get("pauseControl"):
            for element in media.get("media") or []:
                if element.get("autoplay") and not element.get("muted") and not element.get("controls"):
                    issues.append(
                        element_issue(
                            element,
                            "<%s> plays automatically without controls or a pause/mute button"
                            % element.get("kind", "audio"),
                            "1.4.2",
                            severity=Severity.SERIOUS,
                            help_text="Audio that plays for more than 3 seconds must be pausable "
                            "or have independent volume control",
                        )
                    )
        return verdict_from_issues("1.4.2", page, issues, check_id="media-1.4.2")

    return CheckUnit(check_id="media-1.4.2", criterion_ids=("1.4.2",), run=run)


# ---------------------------------------------------------------------------
# 2.2.2 Pause, stop, hide
# ---------------------------------------------------------------------------


def animation_seconds(duration: Optional[str]) -> float:
    """Longest entry of a computed ``animation-duration`` list, in seconds."""
    longest = 0.0
    for part in (duration or "").split(","):
        match = _DURATION_RE.match(part)
        if not match:
            continue
        value = float(match.group(1))
        if match.group(2).lower() == "ms":
            value /= 1000.0
        longest = max(longest, value)
    return longest


def needs_pause_control(element: Dict[str, Any], max_seconds: float) -> bool:
    iterations = (element.get("animationIterationCount") or "").split(",")
    if any(i.strip() == "infinite" for i in iterations):
        return True
    return animation_seconds(element.get("animationDuration")) > max_seconds


def moving_content_check(thresholds: HeuristicThresholds) -> CheckUnit:
    async def run(page: PageHandle) -> Verdict:
        found = await page.evaluate(
            scripts.MOVING_CONTENT, {"limit": thresholds.CONTENT_SAMPLE}
        ) or {}
        issues: List[Issue] = []

        for element in found.get("legacy") or []:
            issues.append(
                element_issue(
                    element,
                    "<%s> moves or blinks and cannot be paused" % element.get("tag"),
                    "2.2.2",
                    severity=Severity.CRITICAL,
                    help_text="Replace blink/marquee with static content or CSS the user can stop",
                )
            )

        for element in found.get("blinking") or []:
            issues.append(
                element_issue(
                    element,
                    "text-decoration: blink makes text blink indefinitely",
                    "2.2.2",
                    severity=Severity.SERIOUS,
                )
            )

        if not found.get("pauseControl"):
            for element in found.get("animated") or []:
                if needs_pause_control(element, thresholds.MOVING_CONTENT_MAX_SECONDS):
                    issues.append(
                        element_issue(
                            element,
                            "Animation (%s, %s iteration(s)) runs longer than %gs with no pause control"
                            % (
                                element.get("animationDuration"),
                                element.get("animationIterationCount"),
                                thresholds.MOVING_CONTENT_MAX_SECONDS,
                            ),
                            "2.2.2",
                            severity=Severity.SERIOUS,
                            help_text="Provide a pause, stop or hide control, or honour prefers-reduced-motion",
                        )
                    )

        return verdict_from_issues("2.2.2", page, issues, check_id="media-2.2.2")

    return CheckUnit(check_id="media-2.2.2", criterion_ids=("2.2.2",), run=run)


def media_checks(thresholds: HeuristicThresholds) -> List[CheckUnit]:
    return [
        media_alternative_check(thresholds),
        captions_check(thresholds),
        audio_control_check(thresholds),
        moving_content_check(thresholds),
    ]
