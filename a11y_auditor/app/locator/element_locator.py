"""
Element Locator.

Re-identifies a previously flagged element in a DOM that may have been
re-rendered since detection. Elements have no stable identity, so the
locator resolves a structural descriptor (selector hints and/or serialized
markup) through ordered tiers and stops at the first success:

    1. exact selector match, per hint in order
    2. normalized full-markup equality
    3. normalized markup prefix match
    4. structural reconstruction from the stored markup
    5. fail closed (None)

Two policies apply to the tier result:

- A hidden match whose classes suggest breakpoint-only visibility is
  retried once inside a scoped mobile viewport. Any other hidden match is
  rejected.
- An implausibly large match is treated as a container; the locator
  descends to its first visible interactive descendant or rejects it.

All thresholds come from ``HeuristicThresholds``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.locator.markup import (
    looks_responsive,
    normalize_markup,
    parse_markup,
    text_similarity,
)
from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.page.state import viewport as scoped_viewport
from a11y_auditor.app.schemas.findings import Issue

logger = logging.getLogger(__name__)


class LocatorTier(str, Enum):
    SELECTOR = "selector"
    MARKUP_EXACT = "markup-exact"
    MARKUP_PREFIX = "markup-prefix"
    STRUCTURAL = "structural"


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ElementDescriptor:
    """Structural reference used to re-find an element. Not a unique key."""

    locator_hints: Tuple[str, ...] = ()
    markup: Optional[str] = None

    @classmethod
    def from_issue(cls, issue: Issue) -> "ElementDescriptor":
        return cls(
            locator_hints=tuple(h for h in issue.locator_hints if h),
            markup=issue.element_descriptor,
        )

    @property
    def is_empty(self) -> bool:
        return not self.locator_hints and not (self.markup and self.markup.strip())


@dataclass(frozen=True)
class BoundingBox:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_script(cls, rect: Optional[Dict[str, Any]]) -> "BoundingBox":
        rect = rect or {}
        return cls(
            x=float(rect.get("x", 0)),
            y=float(rect.get("y", 0)),
            width=float(rect.get("width", 0)),
            height=float(rect.get("height", 0)),
        )

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class Candidate:
    """A live element as described by the in-page describe helper."""

    ref: str
    tag: str
    element_id: Optional[str] = None
    classes: Tuple[str, ...] = ()
    text: str = ""
    visible: bool = False
    child_count: int = 0
    box: BoundingBox = field(default_factory=BoundingBox)

    @classmethod
    def from_script(cls, data: Dict[str, Any]) -> "Candidate":
        return cls(
            ref=data["ref"],
            tag=data.get("tag", ""),
            element_id=data.get("id") or None,
            classes=tuple(data.get("classes") or ()),
            text=data.get("text") or "",
            visible=bool(data.get("visible")),
            child_count=int(data.get("childCount") or 0),
            box=BoundingBox.from_script(data.get("rect")),
        )


@dataclass(frozen=True)
class ElementRef:
    """
    A resolved live element.

    ``viewport`` is set when the element was only found inside the mobile
    viewport; consumers must re-enter that viewport before using it.
    """

    ref: str
    tier: LocatorTier
    tag: str
    box: BoundingBox
    matched_by: Optional[str] = None
    viewport: Optional[Tuple[int, int]] = None
    descended: bool = False

    @property
    def selector(self) -> str:
        return '[%s="%s"]' % (scripts.REF_ATTRIBUTE, self.ref)


@dataclass(frozen=True)
class _QueryResult:
    count: int
    candidates: List[Candidate]
    viewport: Tuple[int, int]

    @classmethod
    def from_script(cls, data: Optional[Dict[str, Any]]) -> "_QueryResult":
        data = data or {}
        vp = data.get("viewport") or {}
        return cls(
            count=int(data.get("count") or 0),
            candidates=[Candidate.from_script(c) for c in data.get("candidates") or []],
            viewport=(int(vp.get("width") or 0), int(vp.get("height") or 0)),
        )


@dataclass(frozen=True)
class _Match:
    candidate: Candidate
    tier: LocatorTier
    matched_by: Optional[str]
    viewport: Tuple[int, int]


# ---------------------------------------------------------------------------
# Locator
# ---------------------------------------------------------------------------


def is_container(
    box: BoundingBox,
    child_count: int,
    viewport: Tuple[int, int],
    thresholds: HeuristicThresholds,
) -> bool:
    """Size sanity heuristic: does the box look like a page section?"""
    if (
        box.width > thresholds.CONTAINER_MAX_WIDTH
        and box.height > thresholds.CONTAINER_MAX_HEIGHT
    ):
        return True

    viewport_area = viewport[0] * viewport[1]
    if viewport_area <= 0:
        return False

    return (
        box.area / viewport_area > thresholds.CONTAINER_VIEWPORT_RATIO
        and child_count > thresholds.CONTAINER_MIN_CHILDREN
    )


class ElementLocator:
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

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def locate(self, descriptor: ElementDescriptor) -> Optional[ElementRef]:
        if descriptor.is_empty:
            return None

        match = await self._match(descriptor)
        if match is None:
            logger.debug("No live element for descriptor %s", descriptor.locator_hints)
            return None

        if match.candidate.visible:
            return await self._finalize(match)

        if not looks_responsive(match.candidate.classes):
            logger.debug(
                "Matched element %s is hidden; rejecting", match.candidate.tag
            )
            return None

        t = self._thresholds
        async with scoped_viewport(
            self._page,
            t.MOBILE_VIEWPORT_WIDTH,
            t.MOBILE_VIEWPORT_HEIGHT,
            settle_ms=self._settle_ms,
        ):
            retry = await self._match(descriptor)
            if retry is None or not retry.candidate.visible:
                logger.debug("Responsive element still hidden at mobile viewport")
                return None
            return await self._finalize(
                retry,
                viewport=(t.MOBILE_VIEWPORT_WIDTH, t.MOBILE_VIEWPORT_HEIGHT),
            )

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    async def _match(self, descriptor: ElementDescriptor) -> Optional[_Match]:
        for resolver in (
            self._match_selectors,
            self._match_markup_exact,
            self._match_markup_prefix,
            self._match_structural,
        ):
            match = await resolver(descriptor)
            if match is not None:
                logger.debug(
                    "Located <%s> via %s (%s)",
                    match.candidate.tag,
                    match.tier.value,
                    match.matched_by,
                )
                return match
        return None

    async def _match_selectors(self, descriptor: ElementDescriptor) -> Optional[_Match]:
        for hint in descriptor.locator_hints:
            result = await self._query(hint)
            if result.count == 1 and result.candidates:
                return _Match(result.candidates[0], LocatorTier.SELECTOR, hint, result.viewport)

            if result.count > 1:
                for candidate in result.candidates:
                    if candidate.visible and not is_container(
                        candidate.box,
                        candidate.child_count,
                        result.viewport,
                        self._thresholds,
                    ):
                        return _Match(candidate, LocatorTier.SELECTOR, hint, result.viewport)
                logger.debug("Selector %s is ambiguous (%d matches)", hint, result.count)
        return None

    async def _match_markup_exact(self, descriptor: ElementDescriptor) -> Optional[_Match]:
        normalized = normalize_markup(descriptor.markup)
        if not normalized:
            return None
        result = await self._match_markup(normalized, prefix_length=0)
        return self._pick(result, LocatorTier.MARKUP_EXACT, None)

    async def _match_markup_prefix(self, descriptor: ElementDescriptor) -> Optional[_Match]:
        normalized = normalize_markup(descriptor.markup)
        if not normalized:
            return None
        prefix = normalized[: self._thresholds.MARKUP_PREFIX_LENGTH]
        result = await self._match_markup(prefix, prefix_length=len(prefix))
        return self._pick(result, LocatorTier.MARKUP_PREFIX, None)

    async def _match_structural(self, descriptor: ElementDescriptor) -> Optional[_Match]:
        t = self._thresholds
        parsed = parse_markup(descriptor.markup, t.TEXT_SIMILARITY_LENGTH)
        if parsed is None:
            return None

        selector = parsed.selector()
        result = await self._query(selector)
        if not result.candidates:
            return None

        if parsed.element_id:
            return _Match(result.candidates[0], LocatorTier.STRUCTURAL, selector, result.viewport)

        scored = [
            (text_similarity(parsed.leading_text, c.text, t.TEXT_SIMILARITY_LENGTH), c)
            for c in result.candidates
        ]
        best_score, best = max(scored, key=lambda pair: pair[0])

        # A bare tag selector matches too much to fall back to the first hit.
        if not parsed.classes:
            if parsed.leading_text and best_score >= t.TEXT_SIMILARITY_MIN:
                return _Match(best, LocatorTier.STRUCTURAL, selector, result.viewport)
            return None

        if len(scored) > 1 and parsed.leading_text and best_score > 0:
            return _Match(best, LocatorTier.STRUCTURAL, selector, result.viewport)

        return _Match(result.candidates[0], LocatorTier.STRUCTURAL, selector, result.viewport)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _query(self, selector: str) -> _QueryResult:
        data = await self._page.evaluate(
            scripts.QUERY_CANDIDATES,
            {"selector": selector, "limit": self._thresholds.LOCATOR_CANDIDATE_LIMIT},
        )
        return _QueryResult.from_script(data)

    async def _match_markup(self, markup: str, *, prefix_length: int) -> _QueryResult:
        data = await self._page.evaluate(
            scripts.MATCH_MARKUP,
            {
                "markup": markup,
                "prefixLength": prefix_length,
                "limit": self._thresholds.LOCATOR_CANDIDATE_LIMIT,
            },
        )
        return _QueryResult.from_script(data)

    @staticmethod
    def _pick(
        result: _QueryResult,
        tier: LocatorTier,
        matched_by: Optional[str],
    ) -> Optional[_Match]:
        if not result.candidates:
            return None
        chosen = next((c for c in result.candidates if c.visible), result.candidates[0])
        return _Match(chosen, tier, matched_by, result.viewport)

    async def _finalize(
        self,
        match: _Match,
        *,
        viewport: Optional[Tuple[int, int]] = None,
    ) -> Optional[ElementRef]:
        candidate = match.candidate
        descended = False

        if is_container(candidate.box, candidate.child_count, match.viewport, self._thresholds):
            child = await self._page.evaluate(
                scripts.FIRST_INTERACTIVE_DESCENDANT,
                {"ref": candidate.ref, "selector": scripts.INTERACTIVE_SELECTOR},
            )
            if not child:
                logger.debug(
                    "Match <%s> is a container without interactive content; rejecting",
                    candidate.tag,
                )
                return None
            candidate = Candidate.from_script(child)
            descended = True

        return ElementRef(
            ref=candidate.ref,
            tier=match.tier,
            tag=candidate.tag,
            box=candidate.box,
            matched_by=match.matched_by,
            viewport=viewport,
            descended=descended,
        )


async def locate_element(
    page: PageHandle,
    descriptor: ElementDescriptor,
    *,
    thresholds: Optional[HeuristicThresholds] = None,
    settle_ms: int = 0,
) -> Optional[ElementRef]:
    """Resolve a descriptor to zero or one live element."""
    return await ElementLocator(page, thresholds, settle_ms=settle_ms).locate(descriptor)

