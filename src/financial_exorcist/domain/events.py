"""Audit event contract.

Audit events are immutable facts about state changes. They are created only
through the audit logger and appended to the audit store; nothing ever
rewrites or removes them.
"""

import copy
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator  # type: ignore

from ..core.enums import AuditAction
from .models import NonEmptyStr, now_ms

# Sentinel shown instead of monetary values in masked reads
AMOUNT_MASK = "$**.**"

MASKED_FIELD = "amount"


class AuditEvent(BaseModel):
    """A single entry in the audit ledger."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: StrictInt = Field(
        default_factory=now_ms, ge=0, description="Unix milliseconds"
    )
    action: AuditAction
    entity_type: NonEmptyStr
    entity_id: NonEmptyStr
    before_snapshot: Optional[Dict[str, Any]] = None
    after_snapshot: Optional[Dict[str, Any]] = None
    session_id: Optional[str] = None

    @field_validator("before_snapshot", "after_snapshot")
    @classmethod
    def _detach_snapshot(cls, value: Optional[Dict[str, Any]]):
        # The ledger must not share mutable state with the caller
        return copy.deepcopy(value) if value is not None else None

    def masked(self) -> "AuditEvent":
        """Return a copy with numeric ``amount`` snapshot fields redacted."""
        return self.model_copy(
            update={
                "before_snapshot": mask_snapshot(self.before_snapshot),
                "after_snapshot": mask_snapshot(self.after_snapshot),
            }
        )

    def detached(self) -> "AuditEvent":
        """Return a deep copy that is safe to hand to callers."""
        return self.model_copy(deep=True)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def mask_snapshot(snapshot: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copy a snapshot, replacing a numeric ``amount`` with ``AMOUNT_MASK``."""
    if snapshot is None:
        return None

    masked = copy.deepcopy(snapshot)
    if _is_number(masked.get(MASKED_FIELD)):
        masked[MASKED_FIELD] = AMOUNT_MASK
    return masked
