"""Ritual service: the state machine that clears a possession.

States: IDLE -> IN_PROGRESS -> COMPLETED. Failed submissions are ordinary
outcomes: they emit RITUAL_FAILED and leave the ritual IN_PROGRESS.
"""

import random
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..domain.models import Demon, now_ms
from ..domain.rituals import MathProblem, generate_problem, regenerate_problem
from ..utils.logging_config import get_logger
from .audit_logger import AuditLogger
from .enums import AuditAction, RitualState, RitualType

ENTITY_TYPE = "Ritual"
SHAME_MIN_LENGTH = 10


class RitualUsageError(RuntimeError):
    """Raised when a ritual operation is called out of turn."""

    pass


@dataclass(frozen=True)
class MantraResult:
    """Outcome of one mantra submission."""

    correct: bool
    progress: int
    target: int


@dataclass(frozen=True)
class MathResult:
    """Outcome of one math answer; ``problem`` is the next one to show."""

    correct: bool
    progress: int
    total: int
    problem: Optional[str]


@dataclass(frozen=True)
class RitualStatus:
    """Read-only projection of the ritual state machine."""

    state: RitualState
    demon: Optional[Demon] = None
    ritual_type: Optional[RitualType] = None
    started_at: Optional[int] = None
    mantra_progress: Optional[int] = None
    mantra_target: Optional[int] = None
    math_solved: Optional[int] = None
    math_total: Optional[int] = None
    current_problem: Optional[str] = None
    shame_prompt: Optional[str] = None
    remaining_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "state": self.state.value,
            "demon": self.demon.summary() if self.demon else None,
            "ritual_type": self.ritual_type.value if self.ritual_type else None,
            "started_at": self.started_at,
        }
        for name in (
            "mantra_progress",
            "mantra_target",
            "math_solved",
            "math_total",
            "current_problem",
            "shame_prompt",
            "remaining_ms",
        ):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


def _parse_answer(answer: Any) -> Optional[int]:
    if isinstance(answer, bool):
        return None
    if isinstance(answer, int):
        return answer
    if isinstance(answer, float):
        return int(answer) if answer.is_integer() else None
    try:
        return int(str(answer).strip())
    except ValueError:
        return None


class RitualService:
    """Single ritual state machine bound to the currently possessing demon."""

    def __init__(
        self,
        audit_logger: Optional[AuditLogger] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], int]] = None,
        shame_min_length: int = SHAME_MIN_LENGTH,
    ):
        self.audit_logger = audit_logger
        self.rng = rng if rng is not None else random.Random()
        self.clock = clock or now_ms
        self.shame_min_length = shame_min_length
        self.logger = get_logger(__name__)
        self._lock = threading.RLock()
        self._reset_state()

    def _reset_state(self) -> None:
        self.state = RitualState.IDLE
        self.demon: Optional[Demon] = None
        self.started_at: Optional[int] = None
        self.mantra_progress = 0
        self.mantra_target = 0
        self.math_problems: List[MathProblem] = []
        self.math_solved = 0
        self.shame_text = ""

    def start(self, demon: Optional[Demon], now: Optional[int] = None) -> None:
        """
        Start the ritual demanded by a demon.

        Args:
            demon: The possessing demon
            now: Start time in Unix milliseconds, defaults to the clock

        Raises:
            RitualUsageError: If no demon is given
        """
        if demon is None:
            raise RitualUsageError("Demon required to start a ritual")

        with self._lock:
            self._reset_state()
            self.demon = demon
            self.started_at = now if now is not None else self.clock()
            config = demon.ritual_config

            if demon.ritual_type == RitualType.MANTRA:
                self.mantra_target = config.repetitions
            elif demon.ritual_type == RitualType.MATH:
                self.math_problems = [
                    generate_problem(config.difficulty, self.rng)
                    for _ in range(config.problem_count)
                ]

            self.state = RitualState.IN_PROGRESS
            self.logger.info(f"{demon.ritual_type.value} ritual started for {demon.name}")
            self._audit(
                AuditAction.RITUAL_STARTED,
                {"demon_name": demon.name, "ritual_type": demon.ritual_type.value},
            )

    def submit_mantra(self, text: str) -> MantraResult:
        """
        Submit one repetition of the mantra.

        A case-insensitive, whitespace-trimmed exact match advances progress;
        anything else resets progress to zero.
        """
        with self._lock:
            demon = self._require(RitualType.MANTRA)
            target = demon.ritual_config.target_string

            if str(text).strip().lower() != target.strip().lower():
                self.mantra_progress = 0
                self._fail("Mantra typo")
                return MantraResult(False, self.mantra_progress, self.mantra_target)

            self.mantra_progress += 1
            if self.mantra_progress >= self.mantra_target:
                self._complete()
            return MantraResult(True, self.mantra_progress, self.mantra_target)

    def submit_answer(self, answer: Any) -> MathResult:
        """
        Answer the current math problem.

        A wrong (or non-numeric) answer replaces only the current problem with
        a fresh one of the same difficulty; solved count is unchanged.
        """
        with self._lock:
            demon = self._require(RitualType.MATH)
            total = len(self.math_problems)
            if self.math_solved >= total:
                raise RitualUsageError("No more problems")

            current = self.math_problems[self.math_solved]
            if _parse_answer(answer) != current.answer:
                self._fail("Wrong math answer")
                replacement = regenerate_problem(
                    demon.ritual_config.difficulty, self.rng, previous=current
                )
                self.math_problems[self.math_solved] = replacement
                return MathResult(False, self.math_solved, total, replacement.text)

            self.math_solved += 1
            if self.math_solved >= total:
                self._complete()
                return MathResult(True, self.math_solved, total, None)
            return MathResult(
                True, self.math_solved, total, self.math_problems[self.math_solved].text
            )

    def check_complete(self, now: Optional[int] = None) -> bool:
        """Complete a WAIT ritual once its duration has elapsed."""
        with self._lock:
            if self.demon is not None and self.state == RitualState.COMPLETED:
                self._require_kind(RitualType.WAIT)
                return True

            demon = self._require(RitualType.WAIT)
            current = now if now is not None else self.clock()
            if current - self.started_at >= demon.ritual_config.duration_seconds * 1000:
                self._complete()
                return True
            return False

    def get_wait_remaining(self, now: Optional[int] = None) -> int:
        """Milliseconds left in a WAIT ritual, never negative."""
        with self._lock:
            demon = self._require_kind(RitualType.WAIT)
            if self.state == RitualState.COMPLETED:
                return 0
            current = now if now is not None else self.clock()
            total_ms = demon.ritual_config.duration_seconds * 1000
            return max(0, total_ms - (current - self.started_at))

    def submit_text(self, text: str) -> bool:
        """Submit a SHAME confession; it must be at least 10 characters once trimmed."""
        with self._lock:
            self._require(RitualType.SHAME)
            trimmed = str(text).strip()

            if len(trimmed) < self.shame_min_length:
                self._fail("Shame response too short")
                return False

            self.shame_text = trimmed
            self._complete()
            return True

    def get_state(self, now: Optional[int] = None) -> RitualStatus:
        """Project the current state. Has no side effects."""
        with self._lock:
            demon = self.demon
            if demon is None:
                return RitualStatus(state=self.state)

            extra: Dict[str, Any] = {}
            if demon.ritual_type == RitualType.MANTRA:
                extra = {
                    "mantra_progress": self.mantra_progress,
                    "mantra_target": self.mantra_target,
                }
            elif demon.ritual_type == RitualType.MATH:
                current = (
                    self.math_problems[self.math_solved]
                    if self.math_solved < len(self.math_problems)
                    else None
                )
                extra = {
                    "math_solved": self.math_solved,
                    "math_total": len(self.math_problems),
                    "current_problem": current.text if current else None,
                }
            elif demon.ritual_type == RitualType.WAIT:
                extra = {"remaining_ms": self.get_wait_remaining(now)}
            elif demon.ritual_type == RitualType.SHAME:
                extra = {"shame_prompt": demon.ritual_config.message}

            return RitualStatus(
                state=self.state,
                demon=demon,
                ritual_type=demon.ritual_type,
                started_at=self.started_at,
                **extra,
            )

    def is_complete(self) -> bool:
        """Whether the current ritual has been completed."""
        with self._lock:
            return self.state == RitualState.COMPLETED

    def reset(self) -> None:
        """Return to IDLE with no demon."""
        with self._lock:
            self._reset_state()

    def _require_kind(self, kind: RitualType) -> Demon:
        if self.demon is None:
            raise RitualUsageError("No active ritual")
        if self.demon.ritual_type != kind:
            raise RitualUsageError(
                f"Not in {kind.value} ritual (current: {self.demon.ritual_type.value})"
            )
        return self.demon

    def _require(self, kind: RitualType) -> Demon:
        demon = self._require_kind(kind)
        if self.state != RitualState.IN_PROGRESS:
            raise RitualUsageError(f"{kind.value} ritual is {self.state.value}, not in progress")
        return demon

    def _complete(self) -> None:
        self.state = RitualState.COMPLETED
        self.logger.info(f"{self.demon.ritual_type.value} ritual completed for {self.demon.name}")
        self._audit(
            AuditAction.RITUAL_COMPLETED,
            {"demon_name": self.demon.name, "ritual_type": self.demon.ritual_type.value},
        )

    def _fail(self, reason: str) -> None:
        self.logger.debug(f"Ritual attempt failed for {self.demon.name}: {reason}")
        self._audit(
            AuditAction.RITUAL_FAILED, {"demon_name": self.demon.name, "reason": reason}
        )

    def _audit(self, action: AuditAction, after: Dict[str, Any]) -> None:
        if self.audit_logger is not None:
            self.audit_logger.log(action, ENTITY_TYPE, self.demon.id, None, after)
