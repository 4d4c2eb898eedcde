"""
Evidence binder.

Attaches visual evidence to failing verdicts. For every issue the binder
either resolves the flagged element through the Element Locator and
captures a padded clip around it, or, for page-wide issues, captures the
full viewport.

Evidence is strictly supplementary:
- a locator miss means "no evidence captured", never a status change
- capture errors are logged and swallowed at the binder boundary
- verdicts are only ever extended through ``Verdict.with_evidence``
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence
from uuid import uuid4

import anyio

from a11y_auditor.app.config import AuditorConfig, HeuristicThresholds
from a11y_auditor.app.events import AuditEvent, AuditEventEmitter, AuditEventType, NullEventEmitter
from a11y_auditor.app.events.emitter import safe_emit
from a11y_auditor.app.locator.element_locator import (
    ElementDescriptor,
    ElementRef,
    locate_element,
)
from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.page.state import focus_session, viewport as scoped_viewport
from a11y_auditor.app.schemas.verdicts import (
    EvidenceKind,
    EvidenceRef,
    Verdict,
    VerdictStatus,
)

logger = logging.getLogger(__name__)

PNG_MEDIA_TYPE = "image/png"


# ---------------------------------------------------------------------------
# Evidence stores
# ---------------------------------------------------------------------------


class EvidenceStore(Protocol):
    async def put(self, key: str, data: bytes, media_type: str = PNG_MEDIA_TYPE) -> str:
        ...

    async def get(self, key: str) -> bytes:
        ...


class MemoryEvidenceStore:
    """Keeps artifacts in process memory. Used by tests and one-shot runs."""

    def __init__(self) -> None:
        self._items: Dict[str, bytes] = {}

    async def put(self, key: str, data: bytes, media_type: str = PNG_MEDIA_TYPE) -> str:
        self._items[key] = data
        return key

    async def get(self, key: str) -> bytes:
        try:
            return self._items[key]
        except KeyError:
            raise KeyError(f"No evidence stored under {key!r}") from None

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)


class DirectoryEvidenceStore:
    """Writes each artifact to ``<root>/<key>.png``."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def path_for(self, key: str) -> Path:
        return self._root / f"{key}.png"

    async def put(self, key: str, data: bytes, media_type: str = PNG_MEDIA_TYPE) -> str:
        await anyio.Path(self._root).mkdir(parents=True, exist_ok=True)
        await anyio.Path(self.path_for(key)).write_bytes(data)
        return key

    async def get(self, key: str) -> bytes:
        return await anyio.Path(self.path_for(key)).read_bytes()


def store_from_config(config: AuditorConfig) -> EvidenceStore:
    if config.EVIDENCE_DIR is not None:
        return DirectoryEvidenceStore(config.EVIDENCE_DIR)
    return MemoryEvidenceStore()


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------


def _evidence_key(verdict: Verdict, issue_index: int) -> str:
    return "%s-%d-%s" % (verdict.criterion_id.replace(".", "_"), issue_index, uuid4().hex[:12])


def padded_clip(
    rect: Dict[str, float],
    viewport: Dict[str, int],
    padding: int,
) -> Optional[Dict[str, float]]:
    """Element rect grown by ``padding`` and clamped to the viewport."""
    x = max(0.0, float(rect["x"]) - padding)
    y = max(0.0, float(rect["y"]) - padding)
    right = min(float(viewport["width"]), float(rect["x"]) + float(rect["width"]) + padding)
    bottom = min(float(viewport["height"]), float(rect["y"]) + float(rect["height"]) + padding)
    if right <= x or bottom <= y:
        return None
    return {"x": x, "y": y, "width": right - x, "height": bottom - y}


async def _capture_element(
    page: PageHandle,
    element: ElementRef,
    padding: int,
) -> Optional[bytes]:
    prepared = await page.evaluate(scripts.PREPARE_CAPTURE, element.ref)
    if not prepared:
        return None
    try:
        clip = padded_clip(prepared["rect"], prepared["viewport"], padding)
        if clip is None:
            logger.debug("Element %s has no visible area to capture", element.selector)
            return None
        return await page.screenshot(clip=clip, type="png")
    finally:
        with anyio.CancelScope(shield=True):
            try:
                await page.evaluate(scripts.REMOVE_HIGHLIGHT, element.ref)
            except Exception as exc:
                logger.warning("Failed to remove evidence highlight: %s", exc)


async def capture_evidence(
    page: PageHandle,
    verdict: Verdict,
    *,
    store: Optional[EvidenceStore] = None,
    issue_index: int = 0,
    thresholds: Optional[HeuristicThresholds] = None,
    settle_ms: int = 0,
) -> Optional[EvidenceRef]:
    """
    Capture one artifact for ``verdict.issues[issue_index]``.

    Returns None when the verdict has no such issue or the element cannot
    be re-identified. Page errors propagate to the caller. Without a
    ``store`` the artifact is kept in a fresh in-memory store.
    """
    store = store if store is not None else MemoryEvidenceStore()
    thresholds = thresholds or HeuristicThresholds()
    if issue_index >= len(verdict.issues):
        return None
    issue = verdict.issues[issue_index]

    if issue.is_page_wide:
        data = await page.screenshot(full_page=False, type="png")
        size = page.viewport_size
        key = await store.put(_evidence_key(verdict, issue_index), data)
        return EvidenceRef(
            key=key,
            kind=EvidenceKind.VIEWPORT,
            issue_index=issue_index,
            viewport=(size["width"], size["height"]) if size else None,
        )

    element = await locate_element(
        page,
        ElementDescriptor.from_issue(issue),
        thresholds=thresholds,
        settle_ms=settle_ms,
    )
    if element is None:
        logger.debug(
            "No element located for %s issue %d; no evidence captured",
            verdict.criterion_id,
            issue_index,
        )
        return None

    async with AsyncExitStack() as stack:
        if element.viewport is not None:
            width, height = element.viewport
            await stack.enter_async_context(
                scoped_viewport(page, width, height, settle_ms=settle_ms)
            )
        await stack.enter_async_context(focus_session(page))
        data = await _capture_element(page, element, thresholds.EVIDENCE_PADDING_PX)

    if data is None:
        return None

    key = await store.put(_evidence_key(verdict, issue_index), data)
    return EvidenceRef(
        key=key,
        kind=EvidenceKind.ELEMENT,
        issue_index=issue_index,
        locator_tier=element.tier.value,
        viewport=element.viewport,
    )


# ---------------------------------------------------------------------------
# Binder
# ---------------------------------------------------------------------------


class EvidenceBinder:
    """Captures evidence for failing verdicts and returns extended copies."""

    def __init__(
        self,
        store: EvidenceStore,
        *,
        thresholds: Optional[HeuristicThresholds] = None,
        max_per_verdict: int = 3,
        settle_ms: int = 0,
    ) -> None:
        self._store = store
        self._thresholds = thresholds or HeuristicThresholds()
        self._max_per_verdict = max_per_verdict
        self._settle_ms = settle_ms

    @classmethod
    def from_config(
        cls,
        config: AuditorConfig,
        store: Optional[EvidenceStore] = None,
    ) -> "EvidenceBinder":
        return cls(
            store if store is not None else store_from_config(config),
            thresholds=config.HEURISTICS,
            max_per_verdict=config.MAX_EVIDENCE_PER_VERDICT,
            settle_ms=config.SETTLE_DELAY_MS,
        )

    @property
    def store(self) -> EvidenceStore:
        return self._store

    async def bind(
        self,
        page: PageHandle,
        verdicts: Sequence[Verdict],
        *,
        emitter: Optional[AuditEventEmitter] = None,
        audit_id: str = "",
    ) -> List[Verdict]:
        emitter = emitter or NullEventEmitter()
        bound: List[Verdict] = []

        for verdict in verdicts:
            if verdict.status != VerdictStatus.FAIL:
                bound.append(verdict)
                continue
            refs = await self._bind_one(page, verdict, emitter, audit_id)
            bound.append(verdict.with_evidence(refs))

        return bound

    async def _bind_one(
        self,
        page: PageHandle,
        verdict: Verdict,
        emitter: AuditEventEmitter,
        audit_id: str,
    ) -> List[EvidenceRef]:
        refs: List[EvidenceRef] = []
        viewport_captured = False

        for index, issue in enumerate(verdict.issues):
            if len(refs) >= self._max_per_verdict:
                break
            # one viewport capture covers every page-wide issue
            if issue.is_page_wide and viewport_captured:
                continue

            try:
                ref = await capture_evidence(
                    page,
                    verdict,
                    store=self._store,
                    issue_index=index,
                    thresholds=self._thresholds,
                    settle_ms=self._settle_ms,
                )
                error = None
            except Exception as exc:
                logger.warning(
                    "Evidence capture failed for %s issue %d: %s",
                    verdict.criterion_id,
                    index,
                    exc,
                )
                ref = None
                error = str(exc)

            details: Dict[str, Any] = {"criterion_id": verdict.criterion_id, "issue_index": index}
            if ref is None:
                if error is not None:
                    details["error"] = error
                await safe_emit(
                    emitter,
                    AuditEvent(
                        audit_id=audit_id,
                        event_type=AuditEventType.EVIDENCE_MISSED,
                        details=details,
                    ),
                )
                continue

            if ref.kind == EvidenceKind.VIEWPORT:
                viewport_captured = True
            refs.append(ref)
            await safe_emit(
                emitter,
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.EVIDENCE_CAPTURED,
                    details={**details, "key": ref.key, "kind": ref.kind.value},
                ),
            )

        return refs
