import json

import pytest

from a11y_auditor.app.events import AuditEvent, AuditEventType, MemoryQueueEventEmitter

pytestmark = pytest.mark.anyio


async def test_stream_ends_after_terminal_event():
    emitter = MemoryQueueEventEmitter()

    await emitter.emit(AuditEvent(audit_id="a", event_type=AuditEventType.AUDIT_STARTED))
    await emitter.emit(AuditEvent(audit_id="a", event_type=AuditEventType.AUDIT_COMPLETED))
    # ignored once closed
    await emitter.emit(AuditEvent(audit_id="a", event_type=AuditEventType.CHECK_STARTED))

    received = [event.event_type async for event in emitter.stream()]

    assert received == [AuditEventType.AUDIT_STARTED, AuditEventType.AUDIT_COMPLETED]
    assert emitter.closed is True


async def test_failure_also_closes_the_stream():
    emitter = MemoryQueueEventEmitter()

    await emitter.emit(
        AuditEvent(audit_id="a", event_type=AuditEventType.AUDIT_FAILED, details={"error": "x"})
    )

    assert [e.details async for e in emitter.stream()] == [{"error": "x"}]


def test_sse_payload_frame():
    event = AuditEvent(
        audit_id="a",
        event_type=AuditEventType.CHECK_COMPLETED,
        details={"check_id": "keyboard-2.1.2", "issues_count": 0},
    )

    payload = event.to_sse_payload()

    assert payload.startswith("event: check_completed\ndata: ")
    assert payload.endswith("\n\n")
    data = json.loads(payload.split("data: ", 1)[1])
    assert data["audit_id"] == "a"
    assert data["details"]["check_id"] == "keyboard-2.1.2"


async def test_slow_consumer_loses_progress_but_not_the_result():
    emitter = MemoryQueueEventEmitter(max_pending=2)

    for check_id in ("a", "b", "c"):
        await emitter.emit(
            AuditEvent(
                audit_id="a",
                event_type=AuditEventType.CHECK_STARTED,
                details={"check_id": check_id},
            )
        )
    await emitter.emit(AuditEvent(audit_id="a", event_type=AuditEventType.AUDIT_COMPLETED))

    received = [event async for event in emitter.stream()]

    assert emitter.dropped == 2
    assert [e.event_type for e in received] == [
        AuditEventType.CHECK_STARTED,
        AuditEventType.AUDIT_COMPLETED,
    ]
    assert received[0].details == {"check_id": "c"}
