"""
Scoped page-state helpers.

The viewport, zoom factor, injected stylesheets, emulated media and the
focus position are global state of the page shared by every check. A check
may only change them through the context managers below, which apply the
perturbation, optionally wait for layout to settle, and always revert on
exit (normal, error and cancellation paths alike).

Helpers nest and combine with ``contextlib.AsyncExitStack``; they are
reverted in reverse order of acquisition.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import anyio

from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = {"width": 1280, "height": 720}

TEXT_SPACING_STYLE_ID = "__a11y_text_spacing_style__"
TEXT_SPACING_CSS = (
    "body * {"
    " line-height: 1.5 !important;"
    " letter-spacing: 0.12em !important;"
    " word-spacing: 0.16em !important;"
    " font-size: 1.2em !important;"
    " }"
)


async def _settle(page: PageHandle, settle_ms: int) -> None:
    if settle_ms > 0:
        await page.wait_for_timeout(settle_ms)


@asynccontextmanager
async def viewport(
    page: PageHandle,
    width: int,
    height: Optional[int] = None,
    *,
    settle_ms: int = 0,
) -> AsyncIterator[Dict[str, int]]:
    """
    Resize the viewport for the duration of the block.

    ``height`` defaults to the current height. Yields the applied size.
    """
    original = dict(page.viewport_size or DEFAULT_VIEWPORT)
    applied = {"width": width, "height": height or original["height"]}

    await page.set_viewport_size(applied)
    try:
        await _settle(page, settle_ms)
        yield applied
    finally:
        with anyio.CancelScope(shield=True):
            try:
                await page.set_viewport_size(original)
            except Exception as exc:
                logger.warning("Failed to restore viewport %s: %s", original, exc)


@asynccontextmanager
async def zoom(
    page: PageHandle,
    factor: float,
    *,
    settle_ms: int = 0,
) -> AsyncIterator[None]:
    """Apply a CSS zoom factor to the document element."""
    previous = await page.evaluate(scripts.SET_ZOOM, factor)
    try:
        await _settle(page, settle_ms)
        yield
    finally:
        with anyio.CancelScope(shield=True):
            try:
                await page.evaluate(scripts.RESTORE_ZOOM, previous)
            except Exception as exc:
                logger.warning("Failed to restore zoom: %s", exc)


@asynccontextmanager
async def injected_style(
    page: PageHandle,
    css: str,
    *,
    style_id: str,
    settle_ms: int = 0,
) -> AsyncIterator[None]:
    """Inject a stylesheet identified by ``style_id`` and remove it on exit."""
    await page.evaluate(scripts.INJECT_STYLE, {"id": style_id, "css": css})
    try:
        await _settle(page, settle_ms)
        yield
    finally:
        with anyio.CancelScope(shield=True):
            try:
                await page.evaluate(scripts.REMOVE_STYLE, style_id)
            except Exception as exc:
                logger.warning("Failed to remove injected style %s: %s", style_id, exc)


@asynccontextmanager
async def emulated_media(
    page: PageHandle,
    *,
    reduced_motion: str = "reduce",
    settle_ms: int = 0,
) -> AsyncIterator[None]:
    """Emulate ``prefers-reduced-motion``; emulation is disabled on exit."""
    await page.emulate_media(reduced_motion=reduced_motion)
    try:
        await _settle(page, settle_ms)
        yield
    finally:
        with anyio.CancelScope(shield=True):
            try:
                # "null" disables the emulation in Playwright
                await page.emulate_media(reduced_motion="null")
            except Exception as exc:
                logger.warning("Failed to reset media emulation: %s", exc)


@asynccontextmanager
async def focus_session(page: PageHandle) -> AsyncIterator[None]:
    """
    Own the keyboard focus for the duration of the block.

    On exit the active element is blurred and the scroll position that was
    current on entry is restored.
    """
    position = await page.evaluate(scripts.SAVE_SCROLL)
    try:
        yield
    finally:
        with anyio.CancelScope(shield=True):
            try:
                await page.evaluate(scripts.RESET_FOCUS, position)
            except Exception as exc:
                logger.warning("Failed to reset focus state: %s", exc)
