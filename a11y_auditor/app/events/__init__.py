from .models import AuditEvent, AuditEventType
from .emitter import AuditEventEmitter, CollectingEventEmitter, NullEventEmitter
from .memory_emitter import MemoryQueueEventEmitter

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "AuditEventEmitter",
    "CollectingEventEmitter",
    "NullEventEmitter",
    "MemoryQueueEventEmitter",
]
