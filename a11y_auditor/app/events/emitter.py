from __future__ import annotations

import logging
from typing import List, Protocol

from a11y_auditor.app.events.models import AuditEvent

logger = logging.getLogger(__name__)


class AuditEventEmitter(Protocol):
    """
    Receives audit progress events.

    ``emit`` should return quickly. Callers go through ``safe_emit`` so an
    emitter that raises cannot change the outcome of an audit.
    """

    async def emit(self, event: AuditEvent) -> None:
        ...


class NullEventEmitter:
    """Discards events; the default for plain ``POST /audit`` runs."""

    async def emit(self, event: AuditEvent) -> None:
        return


class CollectingEventEmitter:
    """Keeps every emitted event in order."""

    def __init__(self) -> None:
        self.events: List[AuditEvent] = []

    async def emit(self, event: AuditEvent) -> None:
        self.events.append(event)


async def safe_emit(emitter: AuditEventEmitter, event: AuditEvent) -> None:
    """Emit without letting an emitter failure reach the audit path."""
    try:
        await emitter.emit(event)
    except Exception as exc:
        logger.warning("Event emission failed (%s): %s", event.event_type.value, exc)
