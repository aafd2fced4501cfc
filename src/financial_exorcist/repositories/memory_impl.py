"""In-memory implementation of the offering repository."""

import threading
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..domain.models import Offering
from ..utils.logging_config import get_logger
from .interfaces import OfferingNotFoundError, OfferingRepository, RepositoryError


def _key(offering_id) -> UUID:
    if isinstance(offering_id, UUID):
        return offering_id
    try:
        return UUID(str(offering_id))
    except ValueError:
        raise OfferingNotFoundError(offering_id) from None


class MemoryOfferingRepository(OfferingRepository):
    """In-memory implementation of OfferingRepository."""

    def __init__(self):
        self._offerings: Dict[UUID, Offering] = {}
        self._lock = threading.RLock()
        self.logger = get_logger(__name__)

    def get_all(self) -> List[Offering]:
        """Get all offerings in insertion order."""
        with self._lock:
            return list(self._offerings.values())

    def get_by_id(self, offering_id) -> Optional[Offering]:
        """Get an offering by ID."""
        try:
            key = _key(offering_id)
        except OfferingNotFoundError:
            return None
        with self._lock:
            return self._offerings.get(key)

    def create(self, offering: Offering) -> Offering:
        """Store a new offering."""
        with self._lock:
            if offering.id in self._offerings:
                raise RepositoryError(f"Offering {offering.id} already exists")
            self._offerings[offering.id] = offering
        self.logger.debug(f"Stored offering {offering.id}")
        return offering

    def update(self, offering_id, patch: Dict[str, Any]) -> Offering:
        """Replace the mutable fields of an offering."""
        key = _key(offering_id)
        with self._lock:
            existing = self._offerings.get(key)
            if existing is None:
                raise OfferingNotFoundError(offering_id)
            updated = existing.with_changes(**patch)
            self._offerings[key] = updated
        return updated

    def delete(self, offering_id) -> Offering:
        """Remove an offering and return it."""
        key = _key(offering_id)
        with self._lock:
            if key not in self._offerings:
                raise OfferingNotFoundError(offering_id)
            return self._offerings.pop(key)

    def clear(self) -> int:
        """Remove all offerings."""
        with self._lock:
            removed = len(self._offerings)
            self._offerings.clear()
        return removed

    def count(self) -> int:
        """Number of stored offerings."""
        with self._lock:
            return len(self._offerings)
