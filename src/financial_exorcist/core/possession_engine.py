"""Possession engine: decides when a demon takes hold.

Wraps the pure first-match evaluation from domain.rules with the
at-most-one-possession state and audit logging.
"""

import threading
from typing import Optional, Sequence

from ..domain.models import Demon, Offering
from ..domain.rules import evaluate_offering, history_without
from ..utils.logging_config import get_logger, log_exception
from .audit_logger import AuditLogger
from .enums import AuditAction

ENTITY_TYPE = "Offering"


class PossessionEngine:
    """Engine for demon possession state.

    Holds at most one active demon. Once possessed, new offerings return the
    same demon until ``clear`` is called.
    """

    def __init__(
        self, demons: Sequence[Demon] = (), audit_logger: Optional[AuditLogger] = None
    ):
        self.demons = tuple(demons)
        self.audit_logger = audit_logger
        self.logger = get_logger(__name__)
        self._current: Optional[Demon] = None
        self._lock = threading.RLock()

    def evaluate(self, offering: Offering, history: Sequence[Offering]) -> Optional[Demon]:
        """
        Check whether a new offering summons a demon.

        Args:
            offering: The new offering
            history: Previous offerings; the offering itself is ignored if present

        Returns:
            The possessing demon, or None
        """
        with self._lock:
            if self._current is not None:
                return self._current

            decision = evaluate_offering(
                self.demons,
                offering,
                history_without(offering, history),
                on_error=self._on_predicate_error,
            )
            if not decision.triggered:
                return None

            demon = decision.demon
            self._current = demon
            self.logger.info(f"Offering {offering.id} summoned {demon.name}")

            if self.audit_logger is not None:
                self.audit_logger.log(
                    AuditAction.POSSESSION_TRIGGERED,
                    ENTITY_TYPE,
                    offering.id,
                    None,
                    demon.summary(),
                )

            return demon

    def clear(self, offering_id) -> None:
        """Clear the active possession. No-op when not possessed."""
        with self._lock:
            if self._current is None:
                return

            demon = self._current
            self._current = None
            self.logger.info(f"{demon.name} exorcised via offering {offering_id}")

            if self.audit_logger is not None:
                self.audit_logger.log(
                    AuditAction.POSSESSION_CLEARED,
                    ENTITY_TYPE,
                    offering_id,
                    demon.summary(),
                    None,
                )

    def is_possessed(self) -> bool:
        """Whether a demon is currently active."""
        with self._lock:
            return self._current is not None

    def active(self) -> Optional[Demon]:
        """The currently active demon, if any."""
        with self._lock:
            return self._current

    def reset(self) -> None:
        """Drop the possession without auditing. Testing only."""
        with self._lock:
            self._current = None

    def _on_predicate_error(self, demon: Demon, exc: Exception) -> None:
        log_exception("possession", exc, {"demon": demon.name})
