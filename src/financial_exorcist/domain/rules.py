"""
Pure function rule evaluation for demon possession.

This module holds the first-match-wins evaluation as a pure function with no
side effects. Possession state and audit logging live in the possession engine.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .models import Demon, Offering

# Called with the demon whose predicate raised and the exception
PredicateErrorHandler = Callable[[Demon, Exception], None]


@dataclass(frozen=True)
class PossessionDecision:
    """Result of evaluating the registry against one offering."""

    demon: Optional[Demon] = None
    failed_demons: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def triggered(self) -> bool:
        """Whether any demon matched."""
        return self.demon is not None


def history_without(offering: Offering, history: Sequence[Offering]) -> List[Offering]:
    """Drop the offering under evaluation from its own history."""
    return [o for o in history if o.id != offering.id]


def evaluate_offering(
    demons: Sequence[Demon],
    offering: Offering,
    history: Sequence[Offering],
    on_error: Optional[PredicateErrorHandler] = None,
) -> PossessionDecision:
    """
    Find the first demon whose trigger matches the offering.

    Rules:
    1. Demons are checked in registry order
    2. The first match wins, later demons are not consulted
    3. A predicate that raises counts as "no match" for that demon

    Args:
        demons: The ordered demon registry
        offering: The new offering
        history: Previous offerings (must not contain ``offering``)
        on_error: Optional callback for predicates that raise

    Returns:
        PossessionDecision with the matching demon, if any
    """
    failed = []

    for demon in demons:
        try:
            matched = demon.matches(offering, history)
        except Exception as e:
            failed.append(demon.name)
            if on_error is not None:
                on_error(demon, e)
            continue

        if matched:
            return PossessionDecision(demon=demon, failed_demons=tuple(failed))

    return PossessionDecision(demon=None, failed_demons=tuple(failed))


# Property-based testing invariants


def invariant_first_match_wins(
    demons: Sequence[Demon], offering: Offering, history: Sequence[Offering]
) -> bool:
    """
    Invariant: The returned demon is the earliest matching one in the registry.
    """
    decision = evaluate_offering(demons, offering, history)

    for demon in demons:
        try:
            if demon.matches(offering, history):
                return decision.demon is demon
        except Exception:
            continue

    return decision.demon is None
