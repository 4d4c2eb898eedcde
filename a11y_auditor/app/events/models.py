from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class AuditEventType(str, Enum):
    """
    Progress notifications for one page audit.

    Values are the SSE ``event:`` names; renaming one breaks stream clients.
    """

    # Page audit
    AUDIT_STARTED = "audit_started"
    AUDIT_COMPLETED = "audit_completed"
    AUDIT_FAILED = "audit_failed"

    # One check unit
    CHECK_STARTED = "check_started"
    CHECK_COMPLETED = "check_completed"
    CHECK_FAILED = "check_failed"

    # Screenshot evidence for a failing verdict
    EVIDENCE_CAPTURED = "evidence_captured"
    EVIDENCE_MISSED = "evidence_missed"


TERMINAL_EVENT_TYPES: FrozenSet[AuditEventType] = frozenset(
    {AuditEventType.AUDIT_COMPLETED, AuditEventType.AUDIT_FAILED}
)


class AuditEvent(BaseModel):
    """
    Something that happened during an audit.

    Events describe progress; the AuditReport is the only result. Nothing
    in the run reads them back.
    """

    event_id: UUID = Field(default_factory=uuid4)
    audit_id: str = Field(..., description="Identifier of the page audit")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: AuditEventType

    # check_id, criterion verdicts, issue counts, evidence keys ...
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_terminal(self) -> bool:
        return self.event_type in TERMINAL_EVENT_TYPES

    def to_sse_payload(self) -> str:
        """Server-sent event frame: ``event:`` line, JSON ``data:`` line."""
        data = json.dumps(self.model_dump(mode="json"), ensure_ascii=False)
        return f"event: {self.event_type.value}\ndata: {data}\n\n"
