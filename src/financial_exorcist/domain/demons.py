"""The demon registry.

Ten demons, evaluated in registration order. The order is part of the game
rules: when an offering matches several demons the first one wins, so do not
reorder entries.
"""

from datetime import datetime, tzinfo
from typing import Optional, Sequence, Tuple

from ..core.enums import RitualType, SinCategory
from .models import Demon, Offering


def offering_hour(timestamp_ms: int, tz: Optional[tzinfo] = None) -> int:
    """Hour of day (0-23) of a Unix-millisecond timestamp.

    Uses the local timezone unless ``tz`` is given.
    """
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=tz).hour


def is_hour_in_range(
    timestamp_ms: int, start_hour: int, end_hour: int, tz: Optional[tzinfo] = None
) -> bool:
    """Check ``start_hour <= hour < end_hour``, wrapping past midnight."""
    hour = offering_hour(timestamp_ms, tz)
    if start_hour <= end_hour:
        return start_hour <= hour < end_hour
    return hour >= start_hour or hour < end_hour


def build_demon_registry(tz: Optional[tzinfo] = None) -> Tuple[Demon, ...]:
    """Build the ordered demon registry.

    Args:
        tz: Timezone for the hour-of-day rules (local time when omitted)

    Returns:
        Tuple of demons in evaluation order
    """

    def vogue_zul(offering: Offering, history: Sequence[Offering]) -> bool:
        return offering.category == SinCategory.VANITY and offering.amount > 5000

    def gluttonous_rex(offering: Offering, history: Sequence[Offering]) -> bool:
        return offering.category == SinCategory.GLUTTONY and is_hour_in_range(
            offering.timestamp, 1, 4, tz
        )

    def uber_lich(offering: Offering, history: Sequence[Offering]) -> bool:
        return offering.category == SinCategory.SLOTH and offering.amount < 1500

    def latte_lucifer(offering: Offering, history: Sequence[Offering]) -> bool:
        return "coffee" in offering.description.lower() and offering.amount > 600

    def sub_succubus(offering: Offering, history: Sequence[Offering]) -> bool:
        lust_count = sum(1 for o in history if o.category == SinCategory.LUST)
        return offering.category == SinCategory.LUST and lust_count >= 4

    def amazonian_imp(offering: Offering, history: Sequence[Offering]) -> bool:
        return offering.category == SinCategory.GREED and is_hour_in_range(
            offering.timestamp, 23, 24, tz
        )

    def stream_o_phobia(offering: Offering, history: Sequence[Offering]) -> bool:
        return offering.category == SinCategory.LUST and offering.amount > 1500

    def hoard_wraith(offering: Offering, history: Sequence[Offering]) -> bool:
        return offering.category == SinCategory.GLUTTONY and offering.amount > 20000

    def penny_poltergeist(offering: Offering, history: Sequence[Offering]) -> bool:
        # Psychological pricing: x.99
        return offering.category == SinCategory.GREED and offering.amount % 100 == 99

    def debt_diablo(offering: Offering, history: Sequence[Offering]) -> bool:
        return (
            offering.category == SinCategory.WRATH
            and "interest" in offering.description.lower()
        )

    return (
        Demon(
            name="Vogue-Zul",
            title="The Demon of Vanity",
            trigger=vogue_zul,
            ritual_type=RitualType.MANTRA,
            ritual_config={"target_string": "I am not my fabric", "repetitions": 30},
            punishment_message=(
                "VOGUE-ZUL demands you face your vanity! "
                "Type the sacred mantra 30 times!"
            ),
        ),
        Demon(
            name="Gluttonous Rex",
            title="The Demon of Gluttony",
            trigger=gluttonous_rex,
            ritual_type=RitualType.MATH,
            ritual_config={"difficulty": 2, "problem_count": 3},
            punishment_message=(
                "GLUTTONOUS REX grinds his teeth! "
                "Solve these arithmetic problems to satiate him!"
            ),
        ),
        Demon(
            name="Uber-Lich",
            title="The Demon of Sloth",
            trigger=uber_lich,
            ritual_type=RitualType.WAIT,
            ritual_config={"duration_seconds": 300},
            punishment_message=(
                "UBER-LICH has cursed you to wait! "
                "You must sit in silence for 5 minutes."
            ),
        ),
        Demon(
            name="Latte-Lucifer",
            title="The Demon of Caffeine Addiction",
            trigger=latte_lucifer,
            ritual_type=RitualType.MANTRA,
            ritual_config={"target_string": "It is just bean water", "repetitions": 10},
            punishment_message=(
                "LATTE-LUCIFER hisses! "
                "Recite the truth about your bean water addiction!"
            ),
        ),
        Demon(
            name="Sub-Succubus",
            title="The Demon of Lust",
            trigger=sub_succubus,
            ritual_type=RitualType.WAIT,
            ritual_config={"duration_seconds": 60},
            punishment_message=(
                "SUB-SUCCUBUS emerges! "
                "Meditate for 60 seconds before you may proceed."
            ),
        ),
        Demon(
            name="Amazonian Imp",
            title="The Demon of Nocturnal Greed",
            trigger=amazonian_imp,
            ritual_type=RitualType.MATH,
            ritual_config={"difficulty": 3, "problem_count": 1},
            punishment_message=(
                "The AMAZONIAN IMP cackles in the darkness! "
                "Solve this fiendish puzzle!"
            ),
        ),
        Demon(
            name="Stream-O-Phobia",
            title="The Demon of Streaming Services",
            trigger=stream_o_phobia,
            ritual_type=RitualType.SHAME,
            ritual_config={"message": "Name a book you have not read"},
            punishment_message=(
                "STREAM-O-PHOBIA demands you name a book "
                "you swore to read but never did!"
            ),
        ),
        Demon(
            name="Hoard-Wraith",
            title="The Demon of Excess",
            trigger=hoard_wraith,
            ritual_type=RitualType.MANTRA,
            ritual_config={"target_string": "List every item", "repetitions": 1},
            punishment_message=(
                "HOARD-WRAITH materialises! "
                "You must list every item you purchased!"
            ),
        ),
        Demon(
            name="Penny-Poltergeist",
            title="The Demon of Psychological Pricing",
            trigger=penny_poltergeist,
            ritual_type=RitualType.MATH,
            ritual_config={"difficulty": 1, "problem_count": 5},
            punishment_message=(
                "PENNY-POLTERGEIST clangs its coins! Five simple calculations await!"
            ),
        ),
        Demon(
            name="Debt-Diablo",
            title="The Demon of Interest Payments",
            trigger=debt_diablo,
            ritual_type=RitualType.MANTRA,
            ritual_config={"target_string": "I am a slave to APR", "repetitions": 50},
            punishment_message=(
                "DEBT-DIABLO rises from the abyss! Face your financial servitude!"
            ),
        ),
    )
