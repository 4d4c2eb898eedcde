"""
Focus Walker.

Drives native keyboard traversal (Tab / Shift+Tab) and observes the active
element after every step. Three analyses are built on it:

- trap detection: bounded forward traversal with bounded escape attempts
- focus order: sequence of focus stops compared against visual position
- visible focus: computed style of sampled elements before/after focus

Every traversal is bounded by step caps from ``HeuristicThresholds`` so a
pathological page cannot make the walker loop forever. Callers own the
focus through ``page.state.focus_session``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle

logger = logging.getLogger(__name__)

TAB = "Tab"
SHIFT_TAB = "Shift+Tab"


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FocusStop:
    """One observed focus position in a traversal."""

    index: int
    tag: str
    element_id: Optional[str]
    selector: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    markup: Optional[str] = None
    hints: Tuple[str, ...] = ()
    text: str = ""

    @property
    def identity(self) -> Tuple[str, Optional[str], str]:
        return (self.tag, self.element_id, self.selector)

    @classmethod
    def from_script(cls, index: int, data: Dict[str, Any]) -> "FocusStop":
        rect = data.get("rect") or {}
        return cls(
            index=index,
            tag=data.get("tag", ""),
            element_id=data.get("id") or None,
            selector=data.get("selector", ""),
            x=float(rect.get("docX", rect.get("x", 0))),
            y=float(rect.get("docY", rect.get("y", 0))),
            width=float(rect.get("width", 0)),
            height=float(rect.get("height", 0)),
            markup=data.get("markup"),
            hints=tuple(data.get("hints") or ()),
            text=data.get("text") or "",
        )


@dataclass(frozen=True)
class TrapReport:
    trapped: bool
    stop: Optional[FocusStop] = None
    escape_attempts: int = 0
    observed: Tuple[FocusStop, ...] = ()
    steps_walked: int = 0


@dataclass(frozen=True)
class OrderViolation:
    previous: FocusStop
    current: FocusStop


@dataclass(frozen=True)
class FocusOrderReport:
    stops: Tuple[FocusStop, ...]
    violations: Tuple[OrderViolation, ...] = ()
    completed_cycle: bool = False


@dataclass(frozen=True)
class FocusVisibility:
    element: Dict[str, Any]
    focused: bool
    visible_indicator: bool


@dataclass
class _TrapProbe:
    seen: Set[Tuple[str, Optional[str], str]] = field(default_factory=set)
    observed: List[FocusStop] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Pure decisions
# ---------------------------------------------------------------------------


def _is_zero_length(value: Optional[str]) -> bool:
    if not value:
        return True
    parts = value.split()
    return all(p.strip() in {"0", "0px", "0em", "0rem"} for p in parts)


def has_visible_indicator(before: Dict[str, Any], after: Dict[str, Any]) -> bool:
    """
    Decide whether focusing produced a visible indicator.

    Any of: an outline that is not ``none`` with non-zero width, a box
    shadow, or a border that differs from the unfocused state.
    """
    outline_style = (after.get("outlineStyle") or "none").strip()
    if outline_style != "none" and not _is_zero_length(after.get("outlineWidth")):
        return True

    box_shadow = (after.get("boxShadow") or "none").strip()
    if box_shadow != "none":
        return True

    for key in ("borderStyle", "borderWidth", "borderColor"):
        if before.get(key) != after.get(key):
            return True

    return False


def is_order_violation(
    previous: FocusStop,
    current: FocusStop,
    thresholds: HeuristicThresholds,
) -> bool:
    """A stop significantly above and to the left of its predecessor."""
    return (
        previous.y - current.y > thresholds.FOCUS_ORDER_DELTA_Y
        and previous.x - current.x > thresholds.FOCUS_ORDER_DELTA_X
    )


# ---------------------------------------------------------------------------
# Walker
# ---------------------------------------------------------------------------


class FocusWalker:
    def __init__(
        self,
        page: PageHandle,
        thresholds: Optional[HeuristicThresholds] = None,
    ) -> None:
        self._page = page
        self._thresholds = thresholds or HeuristicThresholds()

    async def active_element(self, index: int = 0) -> Optional[FocusStop]:
        data = await self._page.evaluate(scripts.ACTIVE_ELEMENT)
        if not data:
            return None
        return FocusStop.from_script(index, data)

    async def step(self, *, backward: bool = False, index: int = 0) -> Optional[FocusStop]:
        await self._page.keyboard.press(SHIFT_TAB if backward else TAB)
        return await self.active_element(index)

    # ------------------------------------------------------------------
    # Trap detection
    # ------------------------------------------------------------------

    async def detect_trap(self, max_steps: Optional[int] = None) -> TrapReport:
        """
        Walk forward and try to escape from every position.

        At each position up to ``TRAP_ESCAPE_ATTEMPTS`` forward presses are
        issued. Focus escaped when it reaches the document body or visits
        more distinct elements than ``TRAP_CYCLE_SIZE``. A position that
        never escapes is a trap; traversal stops there.
        """
        t = self._thresholds
        max_steps = max_steps or t.TRAP_MAX_STEPS
        first: Optional[Tuple[str, Optional[str], str]] = None
        index = 0

        for step_number in range(max_steps):
            index += 1
            stop = await self.step(index=index)
            if stop is None:
                continue

            if first is None:
                first = stop.identity
            elif stop.identity == first:
                logger.debug("Focus returned to the first stop after %d steps", step_number)
                return TrapReport(trapped=False, steps_walked=step_number + 1)

            probe = _TrapProbe(seen={stop.identity}, observed=[stop])
            escaped = False
            attempts = 0

            for attempts in range(1, t.TRAP_ESCAPE_ATTEMPTS + 1):
                index += 1
                current = await self.step(index=index)
                if current is None:
                    escaped = True
                    break
                probe.seen.add(current.identity)
                probe.observed.append(current)
                if len(probe.seen) > t.TRAP_CYCLE_SIZE:
                    escaped = True
                    break

            if not escaped:
                logger.info(
                    "Keyboard trap at <%s> (%s) after %d escape attempts",
                    stop.tag,
                    stop.selector,
                    attempts,
                )
                return TrapReport(
                    trapped=True,
                    stop=stop,
                    escape_attempts=attempts,
                    observed=tuple(probe.observed),
                    steps_walked=step_number + 1,
                )

        return TrapReport(trapped=False, steps_walked=max_steps)

    # ------------------------------------------------------------------
    # Focus order
    # ------------------------------------------------------------------

    async def record_order(self, max_steps: Optional[int] = None) -> FocusOrderReport:
        """
        Record forward focus stops until focus leaves the document, cycles
        back to the first stop, or the step cap is reached.
        """
        t = self._thresholds
        max_steps = max_steps or t.FOCUS_ORDER_MAX_STEPS
        stops: List[FocusStop] = []
        violations: List[OrderViolation] = []
        completed = False

        for index in range(max_steps):
            stop = await self.step(index=index)
            if stop is None:
                if stops:
                    completed = True
                    break
                continue

            if stops and stop.identity == stops[0].identity:
                completed = True
                break

            if stops and is_order_violation(stops[-1], stop, t):
                violations.append(OrderViolation(previous=stops[-1], current=stop))

            stops.append(stop)

        return FocusOrderReport(
            stops=tuple(stops),
            violations=tuple(violations),
            completed_cycle=completed,
        )

    # ------------------------------------------------------------------
    # Interactive sample
    # ------------------------------------------------------------------

    async def interactive_elements(self, limit: int) -> List[Dict[str, Any]]:
        return await self._page.evaluate(
            scripts.LIST_INTERACTIVE,
            {"selector": scripts.INTERACTIVE_SELECTOR, "limit": limit},
        ) or []

    async def focus(self, ref: str) -> bool:
        return bool(await self._page.evaluate(scripts.FOCUS_REF, ref))

    async def check_visible_focus(self, limit: Optional[int] = None) -> List[FocusVisibility]:
        limit = limit or self._thresholds.FOCUS_VISIBLE_SAMPLE
        results: List[FocusVisibility] = []

        for element in await self.interactive_elements(limit):
            pair = await self._page.evaluate(scripts.FOCUS_STYLE_PAIR, element["ref"])
            if not pair:
                continue
            focused = bool(pair.get("focused"))
            results.append(
                FocusVisibility(
                    element=element,
                    focused=focused,
                    visible_indicator=focused
                    and has_visible_indicator(pair["before"], pair["after"]),
                )
            )

        return results
