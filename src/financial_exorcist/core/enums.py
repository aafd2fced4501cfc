"""Enums for the Financial Exorcist application."""

from enum import Enum


class SinCategory(str, Enum):
    """Spending categories an offering can be filed under."""

    GLUTTONY = "GLUTTONY"
    VANITY = "VANITY"
    SLOTH = "SLOTH"
    GREED = "GREED"
    LUST = "LUST"
    WRATH = "WRATH"


class RitualType(str, Enum):
    """Kinds of ritual a demon can demand."""

    MANTRA = "MANTRA"
    MATH = "MATH"
    WAIT = "WAIT"
    SHAME = "SHAME"


class RitualState(str, Enum):
    """States of the ritual state machine."""

    IDLE = "IDLE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"  # Reserved, failed submissions stay IN_PROGRESS


class AuditAction(str, Enum):
    """Actions recorded in the audit ledger."""

    OFFERING_CREATED = "OFFERING_CREATED"
    OFFERING_UPDATED = "OFFERING_UPDATED"
    OFFERING_DELETED = "OFFERING_DELETED"
    POSSESSION_TRIGGERED = "POSSESSION_TRIGGERED"
    POSSESSION_CLEARED = "POSSESSION_CLEARED"
    RITUAL_STARTED = "RITUAL_STARTED"
    RITUAL_COMPLETED = "RITUAL_COMPLETED"
    RITUAL_FAILED = "RITUAL_FAILED"
    DATA_EXPORTED = "DATA_EXPORTED"
    DATA_PURGED = "DATA_PURGED"
