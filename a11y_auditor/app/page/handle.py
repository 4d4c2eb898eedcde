"""
Page handle abstraction.

The auditor never owns the browser. It consumes a live page from the
browser-automation collaborator (Playwright's async ``Page``) and only uses
the narrow surface described by ``PageHandle``. Test doubles implement the
same surface.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Protocol

import anyio

from a11y_auditor.app.page import scripts

logger = logging.getLogger(__name__)


class PageUnavailableError(RuntimeError):
    """
    The page handle is closed or unusable for the whole run.

    This is the only failure surfaced to callers; every other page error
    is recovered inside the run.
    """


class KeyboardHandle(Protocol):
    async def press(self, key: str) -> None:
        ...


class PageHandle(Protocol):
    """Structural subset of ``playwright.async_api.Page`` used by the auditor."""

    @property
    def url(self) -> str:
        ...

    @property
    def keyboard(self) -> KeyboardHandle:
        ...

    @property
    def viewport_size(self) -> Optional[Dict[str, int]]:
        ...

    @property
    def context(self) -> Any:
        ...

    def is_closed(self) -> bool:
        ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        ...

    async def set_viewport_size(self, viewport_size: Dict[str, int]) -> None:
        ...

    async def emulate_media(self, **kwargs: Any) -> None:
        ...

    async def screenshot(self, **kwargs: Any) -> bytes:
        ...

    async def add_script_tag(self, **kwargs: Any) -> Any:
        ...

    async def wait_for_timeout(self, timeout: float) -> None:
        ...

    async def goto(self, url: str, **kwargs: Any) -> Any:
        ...

    async def close(self) -> None:
        ...


async def ensure_page_available(page: PageHandle) -> None:
    """
    Fail fast when the page cannot be used at all.

    Raises PageUnavailableError if the handle is closed or the document
    cannot be reached.
    """
    if page is None or page.is_closed():
        raise PageUnavailableError("Page handle is closed")

    try:
        await page.evaluate(scripts.READY_STATE)
    except Exception as exc:
        raise PageUnavailableError(f"Page handle is not usable: {exc}") from exc


@asynccontextmanager
async def auxiliary_page(page: PageHandle) -> AsyncIterator[PageHandle]:
    """
    Open an auxiliary page in the same browser context.

    The auxiliary page is owned by the caller for the duration of the block
    and is always closed on exit, including error and cancellation paths.
    """
    other = await page.context.new_page()
    try:
        yield other
    finally:
        with anyio.CancelScope(shield=True):
            try:
                await other.close()
            except Exception as exc:
                logger.warning("Failed to close auxiliary page: %s", exc)
