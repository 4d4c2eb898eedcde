"""
Layout Probe.

Applies one of three page perturbations, measures the document and a
bounded sample of elements, and always reverts the perturbation before
returning:

    (a) narrow viewport + zoom           -> ``probe_reflow``
    (b) injected text-spacing stylesheet -> ``probe_text_spacing``
    (c) emulated reduced-motion media    -> ``probe_reduced_motion``

Overflow decisions (tolerance, vertical allowance, offender cap) are taken
in Python from the raw measurements returned by the page.
"""

from __future__ import annotations

import logging
import re
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.locator.markup import short_description
from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.page.state import (
    TEXT_SPACING_CSS,
    TEXT_SPACING_STYLE_ID,
    emulated_media,
    injected_style,
    viewport,
    zoom,
)

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^\s*([\d.]+)\s*(ms|s)\s*$")


@dataclass(frozen=True)
class Offender:
    """An element whose content overflows its box."""

    label: str
    selector: str
    hints: Tuple[str, ...]
    markup: Optional[str]
    scroll_width: int
    client_width: int
    scroll_height: int
    client_height: int

    @classmethod
    def from_script(cls, data: Dict[str, Any]) -> "Offender":
        return cls(
            label=short_description(
                data.get("tag", ""), data.get("id"), data.get("classes") or ()
            ),
            selector=data.get("selector", ""),
            hints=tuple(data.get("hints") or ()),
            markup=data.get("markup"),
            scroll_width=int(data.get("scrollWidth") or 0),
            client_width=int(data.get("clientWidth") or 0),
            scroll_height=int(data.get("scrollHeight") or 0),
            client_height=int(data.get("clientHeight") or 0),
        )


@dataclass(frozen=True)
class OverflowReport:
    offenders: Tuple[Offender, ...]
    doc_overflow_x: bool
    doc_overflow_y: bool
    viewport: Optional[Tuple[int, int]] = None

    @property
    def has_offenders(self) -> bool:
        return bool(self.offenders)


@dataclass(frozen=True)
class MotionReport:
    """Elements still animating while reduced motion is requested."""

    moving: Tuple[Dict[str, Any], ...]

    @property
    def respects_preference(self) -> bool:
        return not self.moving


# ---------------------------------------------------------------------------
# Pure decisions
# ---------------------------------------------------------------------------


def is_offender(measurement: Dict[str, Any], tolerance: int) -> bool:
    return (
        int(measurement.get("scrollWidth") or 0) > int(measurement.get("clientWidth") or 0) + tolerance
        or int(measurement.get("scrollHeight") or 0) > int(measurement.get("clientHeight") or 0) + tolerance
    )


def evaluate_overflow(
    measurement: Dict[str, Any],
    thresholds: HeuristicThresholds,
    viewport_size: Optional[Tuple[int, int]] = None,
) -> OverflowReport:
    """Turn raw document/element measurements into an overflow report."""
    tolerance = thresholds.OVERFLOW_TOLERANCE_PX

    offenders = [
        Offender.from_script(c)
        for c in measurement.get("candidates") or []
        if is_offender(c, tolerance)
    ][: thresholds.MAX_OVERFLOW_OFFENDERS]

    doc_x = int(measurement.get("scrollWidth") or 0) > int(measurement.get("clientWidth") or 0) + tolerance
    doc_y = (
        int(measurement.get("scrollHeight") or 0)
        > int(measurement.get("clientHeight") or 0) + thresholds.VERTICAL_SCROLL_ALLOWANCE_PX
    )

    return OverflowReport(
        offenders=tuple(offenders),
        doc_overflow_x=doc_x,
        doc_overflow_y=doc_y,
        viewport=viewport_size,
    )


def parse_duration_seconds(value: Optional[str]) -> float:
    """Largest duration in a computed ``*-duration`` list, in seconds."""
    longest = 0.0
    for part in (value or "").split(","):
        match = _DURATION_RE.match(part)
        if not match:
            continue
        amount = float(match.group(1))
        if match.group(2) == "ms":
            amount /= 1000.0
        longest = max(longest, amount)
    return longest


# ---------------------------------------------------------------------------
# Probe
# ---------------------------------------------------------------------------


class LayoutProbe:
    def __init__(
        self,
        page: PageHandle,
        thresholds: Optional[HeuristicThresholds] = None,
        *,
        settle_ms: int = 0,
    ) -> None:
        self._page = page
        self._thresholds = thresholds or HeuristicThresholds()
        self._settle_ms = settle_ms

    async def measure_overflow(
        self, viewport_size: Optional[Tuple[int, int]] = None
    ) -> OverflowReport:
        t = self._thresholds
        measurement = await self._page.evaluate(
            scripts.MEASURE_OVERFLOW,
            {"tolerance": t.OVERFLOW_TOLERANCE_PX, "limit": t.MAX_OVERFLOW_OFFENDERS},
        )
        return evaluate_overflow(measurement or {}, t, viewport_size)

    async def probe_reflow(self) -> OverflowReport:
        """Narrow viewport plus zoom, then measure."""
        t = self._thresholds
        async with AsyncExitStack() as stack:
            applied = await stack.enter_async_context(
                viewport(self._page, t.REFLOW_VIEWPORT_WIDTH)
            )
            await stack.enter_async_context(
                zoom(self._page, t.REFLOW_ZOOM_FACTOR, settle_ms=self._settle_ms)
            )
            report = await self.measure_overflow((applied["width"], applied["height"]))

        logger.debug(
            "Reflow probe: %d offender(s), doc overflow x=%s",
            len(report.offenders),
            report.doc_overflow_x,
        )
        return report

    async def probe_text_spacing(self) -> OverflowReport:
        """Inject the text-spacing stylesheet, then measure."""
        async with injected_style(
            self._page,
            TEXT_SPACING_CSS,
            style_id=TEXT_SPACING_STYLE_ID,
            settle_ms=self._settle_ms,
        ):
            report = await self.measure_overflow()

        logger.debug(
            "Text spacing probe: %d offender(s), doc overflow x=%s y=%s",
            len(report.offenders),
            report.doc_overflow_x,
            report.doc_overflow_y,
        )
        return report

    async def probe_reduced_motion(self) -> MotionReport:
        """Request reduced motion and list elements that still animate."""
        async with emulated_media(
            self._page, reduced_motion="reduce", settle_ms=self._settle_ms
        ):
            sampled: List[Dict[str, Any]] = await self._page.evaluate(
                scripts.SAMPLE_MOTION, {"limit": self._thresholds.ANIMATION_SAMPLE}
            ) or []

        moving = tuple(
            s
            for s in sampled
            if parse_duration_seconds(s.get("animationDuration")) > 0
            or parse_duration_seconds(s.get("transitionDuration")) > 0
        )
        return MotionReport(moving=moving)
