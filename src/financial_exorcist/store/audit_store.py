"""Append-only audit store.

This module provides the in-memory audit ledger:
- Appending events atomically, in arrival order
- Reading the full ledger or the events of one entity

The ledger has no update or delete operation.
"""

import threading
from typing import Dict, List, Tuple
from uuid import UUID

from ..domain.events import AuditEvent


class AuditStoreError(Exception):
    """Base exception for audit store operations."""

    pass


class AuditStore:
    """In-memory append-only ledger of audit events."""

    def __init__(self):
        self._events: List[AuditEvent] = []
        self._ids: Dict[UUID, int] = {}
        self._lock = threading.Lock()

    def append(self, event: AuditEvent) -> int:
        """
        Append an event to the ledger.

        Args:
            event: The audit event to store

        Returns:
            Sequence number of the stored event (1-based)

        Raises:
            AuditStoreError: If an event with the same id is already stored
        """
        with self._lock:
            if event.event_id in self._ids:
                raise AuditStoreError(f"Audit event {event.event_id} already exists")

            self._events.append(event)
            seq = len(self._events)
            self._ids[event.event_id] = seq
            return seq

    def all(self) -> Tuple[AuditEvent, ...]:
        """Snapshot of all events in append order."""
        with self._lock:
            return tuple(self._events)

    def by_entity(self, entity_id: str) -> Tuple[AuditEvent, ...]:
        """All events recorded against one entity, in append order."""
        return tuple(e for e in self.all() if e.entity_id == entity_id)

    def count(self) -> int:
        """Number of stored events."""
        with self._lock:
            return len(self._events)

    def __len__(self) -> int:
        return self.count()
