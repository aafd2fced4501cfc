"""Audit logger: the only way events get into the audit ledger.

Writes never raise into the caller. A broken audit write is logged and the
business operation that triggered it carries on.
"""

from typing import Any, Callable, Dict, List, Optional, Union

from ..domain.events import AuditEvent
from ..domain.models import now_ms
from ..core.enums import AuditAction
from ..store.audit_store import AuditStore
from ..utils.logging_config import get_logger, log_exception


class AuditLogger:
    """Append-only audit trail with read-time masking of amounts."""

    def __init__(
        self,
        store: Optional[AuditStore] = None,
        session_id: Optional[str] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.store = store if store is not None else AuditStore()
        self.session_id = session_id
        self.clock = clock or now_ms
        self.logger = get_logger(__name__)

    def log(
        self,
        action: Union[AuditAction, str],
        entity_type: str,
        entity_id: Any,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None,
    ) -> Optional[AuditEvent]:
        """
        Record an audit event.

        Args:
            action: One of AuditAction
            entity_type: Type of entity affected (e.g. 'Offering', 'Ritual')
            entity_id: ID of the affected entity
            before: Snapshot before the action
            after: Snapshot after the action
            session_id: Session identifier, defaults to the logger's session

        Returns:
            The stored event, or None if the event could not be recorded
        """
        try:
            event = AuditEvent(
                timestamp=self.clock(),
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id is not None else "",
                before_snapshot=before,
                after_snapshot=after,
                session_id=session_id if session_id is not None else self.session_id,
            )
            self.store.append(event)
        except Exception as e:
            # Audit failures must not abort the primary operation
            log_exception(
                "audit",
                e,
                {"action": action, "entity_type": entity_type, "entity_id": entity_id},
            )
            return None

        self.logger.debug(f"Audit {event.action.value} {event.entity_type}:{event.entity_id}")
        return event

    def get_events(
        self,
        action: Optional[Union[AuditAction, str]] = None,
        entity_type: Optional[str] = None,
        since: Optional[int] = None,
        until: Optional[int] = None,
        unmask: bool = False,
    ) -> List[AuditEvent]:
        """
        Query the ledger.

        Args:
            action: Only events with this action
            entity_type: Only events for this entity type
            since: Only events at or after this Unix-ms timestamp
            until: Only events at or before this Unix-ms timestamp
            unmask: Return monetary amounts instead of the mask

        Returns:
            Matching events in append order

        Raises:
            ValueError: If action is not a known AuditAction
        """
        wanted = AuditAction(action) if action is not None else None
        events = self.store.all()

        if wanted is not None:
            events = [e for e in events if e.action == wanted]
        if entity_type is not None:
            events = [e for e in events if e.entity_type == entity_type]
        if since is not None:
            events = [e for e in events if e.timestamp >= since]
        if until is not None:
            events = [e for e in events if e.timestamp <= until]

        return self._present(events, unmask)

    def get_events_by_entity(self, entity_id: Any, unmask: bool = False) -> List[AuditEvent]:
        """All events recorded against one entity."""
        return self._present(self.store.by_entity(str(entity_id)), unmask)

    def export_all(self) -> List[AuditEvent]:
        """Every event, always masked."""
        return self._present(self.store.all(), unmask=False)

    def count(self) -> int:
        """Number of events in the ledger."""
        return self.store.count()

    def _present(self, events, unmask: bool) -> List[AuditEvent]:
        if unmask:
            return [e.detached() for e in events]
        return [e.masked() for e in events]
