from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import AsyncIterator, Deque, Optional

from a11y_auditor.app.events.emitter import AuditEventEmitter
from a11y_auditor.app.events.models import AuditEvent

logger = logging.getLogger(__name__)


class MemoryQueueEventEmitter(AuditEventEmitter):
    """
    Buffers audit events for a single SSE consumer.

    ``emit`` never waits on the consumer. When ``max_pending`` is set and
    the reader falls behind, the oldest progress event is dropped; terminal
    events are always delivered and close the stream.
    """

    def __init__(self, max_pending: Optional[int] = None) -> None:
        self._pending: Deque[AuditEvent] = deque()
        self._ready = asyncio.Event()
        self._max_pending = max_pending
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    async def emit(self, event: AuditEvent) -> None:
        if self._closed:
            return

        if self._max_pending is not None and len(self._pending) >= self._max_pending:
            self._pending.popleft()
            self.dropped += 1
            logger.debug("SSE consumer behind on audit %s; dropped a progress event", event.audit_id)

        self._pending.append(event)
        if event.is_terminal:
            self._closed = True
        self._ready.set()

    async def close(self) -> None:
        self._closed = True
        self._ready.set()

    async def stream(self) -> AsyncIterator[AuditEvent]:
        """Yield events in emission order until the audit ends."""
        while True:
            while self._pending:
                yield self._pending.popleft()
            if self._closed:
                return
            self._ready.clear()
            await self._ready.wait()
