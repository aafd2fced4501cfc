"""Value records for offerings and demons.

Both records are frozen pydantic models. Updates never mutate in place:
``Offering.with_changes`` builds and validates a brand new record.
"""

import time
from typing import Annotated, Any, Callable, Dict, Sequence, Union
from uuid import UUID, uuid4

from pydantic import (  # type: ignore
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StringConstraints,
    model_validator,
)

from ..core.enums import RitualType, SinCategory

DESCRIPTION_MAX_LENGTH = 200

# Fields an offering may change after creation
MUTABLE_OFFERING_FIELDS = frozenset({"description", "category", "is_exorcised"})

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Description = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=1, max_length=DESCRIPTION_MAX_LENGTH
    ),
]


def now_ms() -> int:
    """Current wall-clock time in Unix milliseconds."""
    return int(time.time() * 1000)


class ImmutableFieldError(ValueError):
    """Raised when an update touches a field that is fixed at creation."""

    pass


class Offering(BaseModel):
    """A recorded spending event."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID = Field(default_factory=uuid4)
    amount: StrictInt = Field(..., gt=0, description="Amount in minor currency units")
    description: Description
    category: SinCategory
    timestamp: StrictInt = Field(
        default_factory=now_ms, ge=0, description="Unix milliseconds"
    )
    is_exorcised: StrictBool = False

    def with_changes(self, **patch: Any) -> "Offering":
        """Return a new offering with the given mutable fields replaced.

        Raises:
            ImmutableFieldError: If the patch touches id, amount or timestamp
            pydantic.ValidationError: If the patched values are invalid
        """
        illegal = sorted(set(patch) - MUTABLE_OFFERING_FIELDS)
        if illegal:
            raise ImmutableFieldError(
                f"Fields cannot be changed after creation: {', '.join(illegal)}"
            )

        data = self.model_dump()
        data.update(patch)
        return Offering.model_validate(data)

    def snapshot(self) -> Dict[str, Any]:
        """JSON-friendly projection used in audit snapshots and exports."""
        return self.model_dump(mode="json")


class _RitualConfigBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class MantraConfig(_RitualConfigBase):
    """Type ``target_string`` exactly ``repetitions`` times in a row."""

    target_string: NonEmptyStr
    repetitions: StrictInt = Field(..., ge=1)


class MathConfig(_RitualConfigBase):
    """Solve ``problem_count`` arithmetic problems of the given difficulty."""

    difficulty: StrictInt = Field(..., ge=1, le=3)
    problem_count: StrictInt = Field(..., ge=1)


class WaitConfig(_RitualConfigBase):
    """Sit still for ``duration_seconds``."""

    duration_seconds: StrictInt = Field(..., ge=0)


class ShameConfig(_RitualConfigBase):
    """Confess something in response to ``message``."""

    message: NonEmptyStr


RitualConfig = Union[MantraConfig, MathConfig, WaitConfig, ShameConfig]

RITUAL_CONFIG_TYPES = {
    RitualType.MANTRA: MantraConfig,
    RitualType.MATH: MathConfig,
    RitualType.WAIT: WaitConfig,
    RitualType.SHAME: ShameConfig,
}

# (offering, history) -> bool; history never contains the offering itself
TriggerFn = Callable[[Offering, Sequence[Offering]], bool]


class Demon(BaseModel):
    """A spending rule together with the ritual that clears it."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID = Field(default_factory=uuid4)
    name: NonEmptyStr
    title: NonEmptyStr
    trigger: TriggerFn
    ritual_type: RitualType
    ritual_config: RitualConfig
    punishment_message: NonEmptyStr

    @model_validator(mode="after")
    def _config_matches_ritual_type(self) -> "Demon":
        expected = RITUAL_CONFIG_TYPES[self.ritual_type]
        if not isinstance(self.ritual_config, expected):
            raise ValueError(
                f"{self.ritual_type.value} ritual requires {expected.__name__}, "
                f"got {type(self.ritual_config).__name__}"
            )
        return self

    def matches(self, offering: Offering, history: Sequence[Offering]) -> bool:
        """Run the trigger predicate. Exceptions propagate to the caller."""
        return bool(self.trigger(offering, history))

    def summary(self) -> Dict[str, str]:
        """Identity projection recorded in possession audit snapshots."""
        return {"demon_id": str(self.id), "demon_name": self.name}

    def describe(self) -> Dict[str, Any]:
        """JSON-friendly description without the predicate."""
        return self.model_dump(mode="json", exclude={"trigger"})
