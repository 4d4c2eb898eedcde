"""
FastAPI entrypoint for the accessibility auditor service.

This module defines the public HTTP interface: it accepts a page URL,
opens the page through a ``PageProvider``, invokes the central coordinator
and returns a structured AuditReport.

Browser lifecycle belongs to the page provider; the coordinator only ever
sees an already loaded page handle.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Protocol
from uuid import uuid4

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field
from starlette.responses import Response

from a11y_auditor.app.config import AuditorConfig
from a11y_auditor.app.coordinator.coordinator import AuditCoordinator
from a11y_auditor.app.events import AuditEvent, AuditEventType, MemoryQueueEventEmitter
from a11y_auditor.app.page.handle import PageHandle, PageUnavailableError
from a11y_auditor.app.page.state import DEFAULT_VIEWPORT
from a11y_auditor.app.schemas.audit_report import AuditReport

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Presentation helpers (presentation-only)
# ---------------------------------------------------------------------------

def pretty_json(data: Any) -> str:
    """
    Pretty-print JSON for human-readable output.

    PRESENTATION ONLY: report consumers should rely on the schema, not on
    this formatting.
    """
    return json.dumps(
        data,
        ensure_ascii=False,
        allow_nan=False,
        indent=2,
        separators=(", ", ": "),
    )


class PrettyJSONResponse(Response):
    """Pretty-printed JSON response for human-readable console output."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        return pretty_json(content).encode("utf-8")


# ---------------------------------------------------------------------------
# Page provider
# ---------------------------------------------------------------------------

class PageProvider(Protocol):
    def open_page(self, url: str) -> AsyncContextManager[PageHandle]:
        ...


class PlaywrightPageProvider:
    """Launches headless Chromium per audit and loads the requested URL."""

    def __init__(self, config: AuditorConfig) -> None:
        self._config = config

    @asynccontextmanager
    async def open_page(self, url: str) -> AsyncIterator[PageHandle]:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True)
            try:
                context = await browser.new_context(viewport=dict(DEFAULT_VIEWPORT))
                page = await context.new_page()
                await page.goto(
                    url,
                    wait_until="load",
                    timeout=self._config.NAVIGATION_TIMEOUT_MS,
                )
                yield page
            finally:
                await browser.close()


class AuditRequest(BaseModel):
    url: AnyHttpUrl = Field(..., description="Page to audit")

    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Application setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Accessibility Auditor Service",
    description="WCAG rule evaluation with visual evidence for web pages",
    version="0.1.0",
)


# ---------------------------------------------------------------------------
# Startup / Shutdown
# ---------------------------------------------------------------------------

@app.on_event("startup")
def startup_event() -> None:
    """
    Application startup hook.

    Configuration is loaded once and treated as immutable for the lifetime
    of the process.
    """
    config = AuditorConfig.from_env()

    app.state.config = config
    app.state.coordinator = AuditCoordinator.from_config(config)
    app.state.page_provider = PlaywrightPageProvider(config)


# ---------------------------------------------------------------------------
# API Routes
# ---------------------------------------------------------------------------

@app.post(
    "/audit",
    response_model=AuditReport,
    response_class=PrettyJSONResponse,
    summary="Audit a web page",
)
async def audit_page(request: AuditRequest) -> Any:
    """Open the page, run every configured check and return the report."""
    coordinator: AuditCoordinator = app.state.coordinator
    provider: PageProvider = app.state.page_provider
    url = str(request.url)

    try:
        async with provider.open_page(url) as page:
            report = await coordinator.run_audit(
                page=page,
                audit_id=str(uuid4()),
            )
    except PageUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except PlaywrightError as exc:
        raise HTTPException(
            status_code=502,
            detail=f"Failed to load {url}: {exc}",
        ) from exc

    return report.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Streaming Audit (SSE)
# ---------------------------------------------------------------------------

@app.post(
    "/audit/stream",
    summary="Audit a web page (streaming progress)",
)
async def audit_page_stream(request: AuditRequest):
    """
    Perform an audit while streaming progress events.

    This endpoint is observational only:
    - Client disconnects do NOT cancel the audit
    - Events do NOT influence execution
    - Final AUDIT_COMPLETED event contains the AuditReport
    """
    coordinator: AuditCoordinator = app.state.coordinator
    provider: PageProvider = app.state.page_provider
    url = str(request.url)
    audit_id = str(uuid4())
    config: AuditorConfig = app.state.config
    emitter = MemoryQueueEventEmitter(max_pending=config.STREAM_MAX_PENDING_EVENTS)

    # --------------------------------------------------------------
    # Background audit execution
    # --------------------------------------------------------------
    async def run_audit_task() -> None:
        try:
            async with provider.open_page(url) as page:
                await coordinator.run_audit(
                    page=page,
                    audit_id=audit_id,
                    emitter=emitter,
                )
        except Exception as exc:
            logger.warning("Streaming audit %s failed: %s", audit_id, exc)
            # Page loading fails before the coordinator can report it.
            if not emitter.closed:
                await emitter.emit(
                    AuditEvent(
                        audit_id=audit_id,
                        event_type=AuditEventType.AUDIT_FAILED,
                        details={
                            "error": str(exc),
                            "exception_type": type(exc).__name__,
                        },
                    )
                )

    asyncio.create_task(run_audit_task())

    # --------------------------------------------------------------
    # SSE event stream
    # --------------------------------------------------------------
    async def event_stream():
        try:
            async for event in emitter.stream():
                yield event.to_sse_payload()
        except asyncio.CancelledError:
            # Client disconnected; audit continues
            pass

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


# ---------------------------------------------------------------------------
# Health Check
# ---------------------------------------------------------------------------

@app.get(
    "/health",
    summary="Service health check",
)
def health_check() -> JSONResponse:
    """Simple health check endpoint."""
    return JSONResponse(
        content={
            "status": "ok",
            "service": "a11y-auditor",
        }
    )
