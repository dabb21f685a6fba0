"""
Question generation.

One generator per fact kind, each drawing operands uniformly from a numeric
range with an injected ``random.Random``. Every generated question can be
rebuilt from its fact key alone, which is what the trouble queue relies on.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from .facts import (
    Cube,
    CubeRoot,
    Fact,
    FactKind,
    FractionOf,
    Number,
    PercentOf,
    Product,
    Quotient,
    Square,
    SquareRoot,
)

PERCENTAGES = (1, 5, 10, 20, 25, 50, 75)
PERCENT_BASE_MULTIPLIERS = (2, 4, 5, 10)


class DrillMode(str, Enum):
    """Drill modes offered to the learner."""
    MULTIPLICATION = "multiplication"
    DIVISION = "division"
    SQUARES = "squares"
    CUBES = "cubes"
    SQRT = "sqrt"
    CBRT = "cbrt"
    FRACTIONS = "fractions"
    PERCENTAGES = "percentages"
    MIXED = "mixed"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True, eq=False)
class Question:
    """A single prompt with its expected answer; equal when the fact keys match."""

    fact: Fact
    fact_key: str = field(default="")

    def __post_init__(self) -> None:
        if not self.fact_key:
            object.__setattr__(self, "fact_key", self.fact.key)

    @property
    def prompt(self) -> str:
        return self.fact.prompt

    @property
    def answer(self) -> Number:
        return self.fact.answer

    @property
    def kind(self) -> FactKind:
        return self.fact.kind

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Question):
            return NotImplemented
        return self.fact_key == other.fact_key

    def __hash__(self) -> int:
        return hash(self.fact_key)


Generator = Callable[[int, int, random.Random], Question]

# Generator registry - populated by @register
GENERATORS: dict[FactKind, Generator] = {}


def register(kind: FactKind):
    """Decorator to register the generator for a fact kind."""
    def decorator(func: Generator) -> Generator:
        GENERATORS[kind] = func
        return func
    return decorator


@register(FactKind.MULTIPLICATION)
def generate_multiplication(min_n: int, max_n: int, rng: random.Random) -> Question:
    return Question(Product(rng.randint(min_n, max_n), rng.randint(min_n, max_n)))


@register(FactKind.DIVISION)
def generate_division(min_n: int, max_n: int, rng: random.Random) -> Question:
    divisor = rng.randint(max(1, min_n), max_n)
    result = rng.randint(min_n, max_n)
    return Question(Quotient(divisor * result, divisor))


@register(FactKind.SQUARES)
def generate_square(min_n: int, max_n: int, rng: random.Random) -> Question:
    return Question(Square(rng.randint(min_n, max_n)))


@register(FactKind.CUBES)
def generate_cube(min_n: int, max_n: int, rng: random.Random) -> Question:
    return Question(Cube(rng.randint(min_n, max_n)))


@register(FactKind.SQRT)
def generate_sqrt(min_n: int, max_n: int, rng: random.Random) -> Question:
    return Question(SquareRoot(rng.randint(min_n, max_n)))


@register(FactKind.CBRT)
def generate_cbrt(min_n: int, max_n: int, rng: random.Random) -> Question:
    return Question(CubeRoot(rng.randint(min_n, max_n)))


@register(FactKind.FRACTIONS)
def generate_fraction_of_number(min_n: int, max_n: int, rng: random.Random) -> Question:
    """Fraction of a whole number; the number is a multiple of the denominator."""
    denominator = rng.randint(2, max(2, max_n))
    numerator = rng.randint(1, denominator - 1)
    multiplier = rng.randint(1, max(1, max_n // 2))
    return Question(FractionOf(numerator, denominator, denominator * multiplier))


@register(FactKind.PERCENTAGES)
def generate_percentage(min_n: int, max_n: int, rng: random.Random) -> Question:
    percent = rng.choice(PERCENTAGES)
    value = rng.randint(min_n, max_n) * rng.choice(PERCENT_BASE_MULTIPLIERS)
    return Question(PercentOf(percent, value))


def generate_question(
    mode: DrillMode | str,
    min_n: int,
    max_n: int,
    rng: random.Random,
    focus_multiplier: int = 0,
    focus_divisor: int = 0,
) -> Question:
    """
    Generate one question for a mode.

    Args:
        mode: Drill mode; ``mixed`` picks a kind uniformly at random
        min_n: Lower bound of the operand range
        max_n: Upper bound of the operand range
        rng: Random source
        focus_multiplier: Pin the first factor in multiplication mode (0 = off)
        focus_divisor: Pin the divisor in division mode (0 = off)
    """
    mode = DrillMode(mode)

    if mode is DrillMode.MIXED:
        kind = rng.choice(list(GENERATORS))
        return GENERATORS[kind](min_n, max_n, rng)

    if mode is DrillMode.MULTIPLICATION and focus_multiplier > 0:
        return Question(Product(focus_multiplier, rng.randint(min_n, max_n)))

    if mode is DrillMode.DIVISION and focus_divisor > 0:
        result = rng.randint(min_n, max_n)
        return Question(Quotient(focus_divisor * result, focus_divisor))

    return GENERATORS[FactKind(mode.value)](min_n, max_n, rng)


__all__ = [
    "DrillMode",
    "GENERATORS",
    "Question",
    "generate_question",
    "register",
]
