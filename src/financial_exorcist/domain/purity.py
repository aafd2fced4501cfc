"""
Soul purity scoring.

Pure functions over already-materialised offerings and audit events. Nothing
here reads a store or keeps state between calls.
"""

from dataclasses import asdict, dataclass, field
from datetime import tzinfo
from typing import Dict, Optional, Sequence

from ..core.enums import AuditAction, SinCategory
from .demons import is_hour_in_range
from .events import AuditEvent
from .models import Offering, now_ms

BASE_SCORE = 100
UNEXORCISED_PENALTY = 5
EXORCISED_PENALTY = 2
LARGE_AMOUNT_THRESHOLD = 10000  # minor units
LARGE_AMOUNT_PENALTY = 10
LATE_NIGHT_START_HOUR = 23
LATE_NIGHT_END_HOUR = 4
LATE_NIGHT_PENALTY = 15
RITUAL_COMPLETED_BONUS = 3
CLEAN_WEEK_BONUS = 5
POSSESSION_WINDOW_DAYS = 7

DAY_MS = 24 * 60 * 60 * 1000


def _count_action(audit_events: Sequence[AuditEvent], action: AuditAction) -> int:
    return sum(1 for event in audit_events if event.action == action)


def calculate_purity(
    offerings: Sequence[Offering],
    audit_events: Sequence[AuditEvent],
    now: Optional[int] = None,
    tz: Optional[tzinfo] = None,
    ceiling: Optional[int] = None,
    window_days: int = POSSESSION_WINDOW_DAYS,
) -> int:
    """
    Calculate the soul purity score.

    Scoring:
    - Start at 100
    - −5 per unexorcised offering, −2 per exorcised offering
    - −10 per offering above 10000 minor units
    - −15 per offering made between 23:00 and 04:00
    - +3 per completed ritual
    - +5 if there are offerings but no possession within the last week
    - Never below 0; only capped above when ``ceiling`` is given

    Args:
        offerings: All offerings
        audit_events: All audit events (masked or not, only actions are read)
        now: Unix milliseconds, defaults to the current time
        tz: Timezone for the late-night rule (local time when omitted)
        ceiling: Optional upper bound for the score
        window_days: Length of the possession-free window

    Returns:
        Integer score
    """
    score = BASE_SCORE

    for offering in offerings:
        score -= EXORCISED_PENALTY if offering.is_exorcised else UNEXORCISED_PENALTY

        if offering.amount > LARGE_AMOUNT_THRESHOLD:
            score -= LARGE_AMOUNT_PENALTY

        if is_hour_in_range(
            offering.timestamp, LATE_NIGHT_START_HOUR, LATE_NIGHT_END_HOUR, tz
        ):
            score -= LATE_NIGHT_PENALTY

    score += RITUAL_COMPLETED_BONUS * _count_action(
        audit_events, AuditAction.RITUAL_COMPLETED
    )

    current = now if now is not None else now_ms()
    window_start = current - window_days * DAY_MS
    recent_possessions = sum(
        1
        for event in audit_events
        if event.action == AuditAction.POSSESSION_TRIGGERED
        and window_start <= event.timestamp <= current
    )
    if offerings and recent_possessions == 0:
        score += CLEAN_WEEK_BONUS

    score = max(0, score)
    if ceiling is not None:
        score = min(ceiling, score)
    return score


def get_breakdown(offerings: Sequence[Offering]) -> Dict[str, int]:
    """Total spend per sin category; every category is present."""
    breakdown = {category.value: 0 for category in SinCategory}
    for offering in offerings:
        breakdown[SinCategory(offering.category).value] += offering.amount
    return breakdown


@dataclass(frozen=True)
class PurityReport:
    """Dashboard summary of an offering history."""

    soul_purity: int
    breakdown: Dict[str, int] = field(default_factory=dict)
    total_offerings: int = 0
    total_spend: int = 0
    exorcised_count: int = 0
    total_possessions: int = 0
    exorcism_success_rate: float = 0.0

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def get_report(
    offerings: Sequence[Offering],
    audit_events: Sequence[AuditEvent],
    now: Optional[int] = None,
    tz: Optional[tzinfo] = None,
    ceiling: Optional[int] = None,
    window_days: int = POSSESSION_WINDOW_DAYS,
) -> PurityReport:
    """Build the full purity report for a history."""
    total = len(offerings)
    exorcised = sum(1 for o in offerings if o.is_exorcised)

    return PurityReport(
        soul_purity=calculate_purity(
            offerings, audit_events, now=now, tz=tz, ceiling=ceiling,
            window_days=window_days,
        ),
        breakdown=get_breakdown(offerings),
        total_offerings=total,
        total_spend=sum(o.amount for o in offerings),
        exorcised_count=exorcised,
        total_possessions=_count_action(audit_events, AuditAction.POSSESSION_TRIGGERED),
        exorcism_success_rate=(exorcised / total) * 100 if total else 0.0,
    )


# Property-based testing invariants


def invariant_score_never_negative(
    offerings: Sequence[Offering], audit_events: Sequence[AuditEvent], now: int
) -> bool:
    """
    Invariant: The score is floored at zero.
    """
    return calculate_purity(offerings, audit_events, now=now) >= 0
