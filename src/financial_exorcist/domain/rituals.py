"""Arithmetic problem generation for MATH rituals.

Randomness is always passed in explicitly so rituals can be replayed
deterministically from a seed.
"""

import random
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MathProblem:
    """A single arithmetic problem and its expected answer."""

    left: int
    operator: str
    right: int
    answer: int

    @property
    def text(self) -> str:
        """Human readable form, e.g. ``"7 × 8"`` or ``"15 % of 240"``."""
        return f"{self.left} {self.operator} {self.right}"

    @property
    def operands(self):
        return (self.left, self.right)


def generate_problem(difficulty: int, rng: random.Random) -> MathProblem:
    """
    Generate an arithmetic problem.

    Difficulty levels:
    1. Addition or subtraction of two integers in [0, 100)
    2. Multiplication of two integers in [0, 13)
    3. Percentage: ``percent`` in [1, 100] of ``base`` in [100, 10100),
       answer rounded down

    Args:
        difficulty: 1, 2 or 3
        rng: Random source

    Returns:
        MathProblem

    Raises:
        ValueError: For an unknown difficulty
    """
    if difficulty == 1:
        a = rng.randrange(100)
        b = rng.randrange(100)
        operator = "+" if rng.random() < 0.5 else "-"
        answer = a + b if operator == "+" else a - b
        return MathProblem(left=a, operator=operator, right=b, answer=answer)

    if difficulty == 2:
        a = rng.randrange(13)
        b = rng.randrange(13)
        return MathProblem(left=a, operator="×", right=b, answer=a * b)

    if difficulty == 3:
        percent = rng.randrange(1, 101)
        base = rng.randrange(100, 10100)
        # Integer arithmetic, float percent/100 * base can land just below the floor
        return MathProblem(
            left=percent, operator="% of", right=base, answer=percent * base // 100
        )

    raise ValueError(f"Unknown math difficulty: {difficulty}")


def regenerate_problem(
    difficulty: int, rng: random.Random, previous: Optional[MathProblem] = None
) -> MathProblem:
    """Generate a replacement problem whose operands differ from ``previous``."""
    while True:
        problem = generate_problem(difficulty, rng)
        if previous is None or problem.operands != previous.operands:
            return problem
