"""Exorcism service: the application flow around the core.

Records offerings, lets the possession engine judge them, drives the ritual
that clears a possession and exposes the purity report, export and purge.
Every state change goes through the audit logger.
"""

import random
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Dict, Optional, Sequence

from ..config import ExorcistConfig, get_config
from ..core.audit_logger import AuditLogger
from ..core.enums import AuditAction, SinCategory
from ..core.possession_engine import PossessionEngine
from ..core.ritual_service import RitualService, RitualStatus
from ..domain.demons import build_demon_registry
from ..domain.models import Demon, Offering, now_ms
from ..domain.purity import PurityReport, get_report
from ..repositories.interfaces import OfferingNotFoundError, OfferingRepository
from ..repositories.memory_impl import MemoryOfferingRepository
from ..utils.logging_config import get_logger

OFFERING_ENTITY = "Offering"
SYSTEM_ENTITY = "System"


class ExorcismError(Exception):
    """Raised when the exorcism flow is driven out of order."""

    pass


@dataclass(frozen=True)
class OfferingOutcome:
    """A recorded offering and the demon possessing the player afterwards."""

    offering: Offering
    demon: Optional[Demon] = None

    @property
    def possessed(self) -> bool:
        return self.demon is not None


class ExorcismService:
    """Wires the offering store, audit logger, possession engine and rituals.

    One service instance holds one player's possession and ritual state.
    """

    def __init__(
        self,
        repository: Optional[OfferingRepository] = None,
        audit_logger: Optional[AuditLogger] = None,
        demons: Optional[Sequence[Demon]] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], int]] = None,
        tz: Optional[tzinfo] = None,
        config: Optional[ExorcistConfig] = None,
    ):
        self.config = config or get_config()
        self.tz = tz
        self.clock = clock or now_ms
        self.logger = get_logger(__name__)

        self.offerings = repository if repository is not None else MemoryOfferingRepository()
        self.audit = (
            audit_logger if audit_logger is not None else AuditLogger(clock=self.clock)
        )
        self.engine = PossessionEngine(
            demons if demons is not None else build_demon_registry(tz), self.audit
        )
        self.rituals = RitualService(
            self.audit,
            rng=rng if rng is not None else random.Random(self.config.ritual.rng_seed),
            clock=self.clock,
            shame_min_length=self.config.ritual.shame_min_length,
        )

    def record_offering(
        self,
        amount: int,
        description: str,
        category: SinCategory,
        timestamp: Optional[int] = None,
    ) -> OfferingOutcome:
        """
        Record a new offering and check it for possession.

        Raises:
            pydantic.ValidationError: If the offering is malformed
        """
        offering = Offering(
            amount=amount,
            description=description,
            category=category,
            timestamp=timestamp if timestamp is not None else self.clock(),
        )
        self.offerings.create(offering)
        self.audit.log(
            AuditAction.OFFERING_CREATED, OFFERING_ENTITY, offering.id, None, offering.snapshot()
        )

        demon = self.engine.evaluate(offering, self.offerings.get_all())
        return OfferingOutcome(offering=offering, demon=demon)

    def get_offering(self, offering_id) -> Offering:
        offering = self.offerings.get_by_id(offering_id)
        if offering is None:
            raise OfferingNotFoundError(offering_id)
        return offering

    def update_offering(self, offering_id, **patch: Any) -> Offering:
        """
        Change the description, category or exorcism flag of an offering.

        Marking an offering exorcised clears an active possession and drops
        the ritual bound to it.

        Raises:
            OfferingNotFoundError: If the offering does not exist
            ImmutableFieldError: If the patch touches amount, timestamp or id
        """
        existing = self.get_offering(offering_id)
        updated = self.offerings.update(existing.id, patch)

        if patch.get("is_exorcised") is True and self.engine.is_possessed():
            self.engine.clear(updated.id)
            self.rituals.reset()

        self.audit.log(
            AuditAction.OFFERING_UPDATED,
            OFFERING_ENTITY,
            updated.id,
            existing.snapshot(),
            updated.snapshot(),
        )
        return updated

    def delete_offering(self, offering_id) -> Offering:
        """Remove an offering from the store."""
        deleted = self.offerings.delete(self.get_offering(offering_id).id)
        self.audit.log(
            AuditAction.OFFERING_DELETED, OFFERING_ENTITY, deleted.id, deleted.snapshot(), None
        )
        return deleted

    def begin_ritual(self, now: Optional[int] = None) -> RitualStatus:
        """Start the ritual demanded by the possessing demon."""
        demon = self.engine.active()
        if demon is None:
            raise ExorcismError("No active possession to perform a ritual for")

        self.rituals.start(demon, now)
        return self.rituals.get_state(now)

    def exorcise(self, offering_id) -> Offering:
        """
        Finish an exorcism after the ritual has been completed.

        Marks the offering exorcised, clears the possession and resets the ritual.
        """
        if not self.rituals.is_complete():
            raise ExorcismError("The ritual must be completed before exorcism")
        if self.rituals.demon is not self.engine.active():
            raise ExorcismError("Completed ritual does not belong to the active possession")

        updated = self.update_offering(offering_id, is_exorcised=True)
        self.rituals.reset()
        self.logger.info(f"Offering {updated.id} exorcised")
        return updated

    def report(self, now: Optional[int] = None) -> PurityReport:
        """Soul purity report over everything recorded so far."""
        return get_report(
            self.offerings.get_all(),
            self.audit.get_events(unmask=True),
            now=now if now is not None else self.clock(),
            tz=self.tz,
            ceiling=self.config.purity.ceiling,
            window_days=self.config.purity.possession_window_days,
        )

    def export_data(self) -> Dict[str, Any]:
        """Export offerings and the masked audit ledger."""
        offerings = [o.snapshot() for o in self.offerings.get_all()]
        audit_events = [e.model_dump(mode="json") for e in self.audit.export_all()]

        self.audit.log(
            AuditAction.DATA_EXPORTED,
            SYSTEM_ENTITY,
            "export",
            None,
            {"offering_count": len(offerings), "audit_event_count": len(audit_events)},
        )

        return {
            "offerings": offerings,
            "audit_events": audit_events,
            "exported_at": datetime.now(timezone.utc).isoformat(),
        }

    def purge(self, confirm: bool = False) -> Dict[str, int]:
        """
        Delete all offerings. The audit ledger is append-only and is kept.

        Raises:
            ExorcismError: Unless ``confirm`` is True
        """
        if confirm is not True:
            raise ExorcismError("Purge requires explicit confirmation")

        offering_count = self.offerings.count()
        self.audit.log(
            AuditAction.DATA_PURGED,
            SYSTEM_ENTITY,
            "purge",
            {"offering_count": offering_count, "audit_event_count": self.audit.count()},
            None,
        )

        self.engine.clear("purge")
        self.rituals.reset()
        purged = self.offerings.clear()
        self.logger.warning(f"Purged {purged} offerings")
        return {"offerings_purged": purged}
