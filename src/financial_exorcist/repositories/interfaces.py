"""Abstract repository interface for the offering store."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..domain.models import Offering


class RepositoryError(Exception):
    """Base exception for repository operations."""

    pass


class OfferingNotFoundError(RepositoryError):
    """Raised when an offering id is not in the store."""

    def __init__(self, offering_id):
        super().__init__(f"Offering {offering_id} not found")
        self.offering_id = offering_id


class OfferingRepository(ABC):
    """Repository interface for Offering records.

    Records are immutable; ``update`` replaces the stored record with a new
    one built through ``Offering.with_changes``.
    """

    @abstractmethod
    def get_all(self) -> List[Offering]:
        """Get all offerings in insertion order."""
        pass

    @abstractmethod
    def get_by_id(self, offering_id: UUID) -> Optional[Offering]:
        """Get an offering by ID."""
        pass

    @abstractmethod
    def create(self, offering: Offering) -> Offering:
        """Store a new offering."""
        pass

    @abstractmethod
    def update(self, offering_id: UUID, patch: Dict[str, Any]) -> Offering:
        """Replace the mutable fields of an offering."""
        pass

    @abstractmethod
    def delete(self, offering_id: UUID) -> Offering:
        """Remove an offering and return it."""
        pass

    @abstractmethod
    def clear(self) -> int:
        """Remove all offerings, returning how many were removed."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored offerings."""
        pass

    def exists(self, offering_id: UUID) -> bool:
        """Check whether an offering is stored."""
        return self.get_by_id(offering_id) is not None
