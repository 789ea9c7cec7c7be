"""In-memory implementations for development and tests."""

from machine_booking.infrastructure.in_memory.document_store import InMemoryDocumentStore
from machine_booking.infrastructure.in_memory.machine_lock import InMemoryMachineLock
from machine_booking.infrastructure.in_memory.outbox_repo import InMemoryOutboxRepo

__all__ = [
    "InMemoryDocumentStore",
    "InMemoryMachineLock",
    "InMemoryOutboxRepo",
]
