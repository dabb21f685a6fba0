"""
Arithmetic facts and their string keys.

Each drillable fact is one of eight typed variants. The variant is the source
of truth for the prompt, the answer and the worked explanation; the string key
only exists at the storage boundary, where it must stay byte-compatible with
previously exported progress documents:

    7x8        7 × 8
    56d8       56 ÷ 8
    sq7        7²
    cu3        3³
    rt2_5      √25
    rt3_4      ∛64
    frac3/4_20 3⁄4 of 20
    pct25_40   25% of 40
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

Number = Union[int, float]


class FactKind(str, Enum):
    """The eight kinds of arithmetic fact."""
    MULTIPLICATION = "multiplication"
    DIVISION = "division"
    SQUARES = "squares"
    CUBES = "cubes"
    SQRT = "sqrt"
    CBRT = "cbrt"
    FRACTIONS = "fractions"
    PERCENTAGES = "percentages"


def clean_number(value: Number) -> Number:
    """Return an int when the value is integral, otherwise the float."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def format_number(value: Number) -> str:
    """Format an operand the way it appears in keys and prompts."""
    return str(clean_number(value))


def round_half_up(value: float) -> int:
    """Round halves up (2.5 -> 3, 0.5 -> 1) rather than to even."""
    return math.floor(value + 0.5)


# =============================================================================
# Fact Variants
# =============================================================================


@dataclass(frozen=True)
class Product:
    a: int
    b: int

    kind = FactKind.MULTIPLICATION

    @property
    def key(self) -> str:
        return f"{self.a}x{self.b}"

    @property
    def prompt(self) -> str:
        return f"{self.a} × {self.b}"

    @property
    def label(self) -> str:
        return f"{self.a}×{self.b}"

    @property
    def answer(self) -> Number:
        return self.a * self.b


@dataclass(frozen=True)
class Quotient:
    dividend: int
    divisor: int

    kind = FactKind.DIVISION

    @property
    def key(self) -> str:
        return f"{self.dividend}d{self.divisor}"

    @property
    def prompt(self) -> str:
        return f"{self.dividend} ÷ {self.divisor}"

    @property
    def label(self) -> str:
        return f"{self.dividend}÷{self.divisor}"

    @property
    def answer(self) -> Number:
        if self.dividend % self.divisor == 0:
            return self.dividend // self.divisor
        return self.dividend / self.divisor


@dataclass(frozen=True)
class Square:
    n: int

    kind = FactKind.SQUARES

    @property
    def key(self) -> str:
        return f"sq{self.n}"

    @property
    def prompt(self) -> str:
        return f"{self.n}²"

    label = prompt

    @property
    def answer(self) -> Number:
        return self.n * self.n


@dataclass(frozen=True)
class Cube:
    n: int

    kind = FactKind.CUBES

    @property
    def key(self) -> str:
        return f"cu{self.n}"

    @property
    def prompt(self) -> str:
        return f"{self.n}³"

    label = prompt

    @property
    def answer(self) -> Number:
        return self.n * self.n * self.n


@dataclass(frozen=True)
class SquareRoot:
    n: int

    kind = FactKind.SQRT

    @property
    def key(self) -> str:
        return f"rt2_{self.n}"

    @property
    def prompt(self) -> str:
        return f"√{self.n * self.n}"

    label = prompt

    @property
    def answer(self) -> Number:
        return self.n


@dataclass(frozen=True)
class CubeRoot:
    n: int

    kind = FactKind.CBRT

    @property
    def key(self) -> str:
        return f"rt3_{self.n}"

    @property
    def prompt(self) -> str:
        return f"∛{self.n * self.n * self.n}"

    label = prompt

    @property
    def answer(self) -> Number:
        return self.n


@dataclass(frozen=True)
class FractionOf:
    numerator: int
    denominator: int
    value: Number

    kind = FactKind.FRACTIONS

    @property
    def key(self) -> str:
        return f"frac{self.numerator}/{self.denominator}_{format_number(self.value)}"

    @property
    def prompt(self) -> str:
        return f"{self.numerator}⁄{self.denominator} of {format_number(self.value)}"

    label = prompt

    @property
    def answer(self) -> Number:
        return clean_number(self.numerator * self.value / self.denominator)


@dataclass(frozen=True)
class PercentOf:
    percent: Number
    value: Number

    kind = FactKind.PERCENTAGES

    @property
    def key(self) -> str:
        return f"pct{format_number(self.percent)}_{format_number(self.value)}"

    @property
    def prompt(self) -> str:
        return f"{format_number(self.percent)}% of {format_number(self.value)}"

    label = prompt

    @property
    def answer(self) -> Number:
        return clean_number(self.percent * self.value / 100)


Fact = Union[Product, Quotient, Square, Cube, SquareRoot, CubeRoot, FractionOf, PercentOf]


# =============================================================================
# Key Parsing
# =============================================================================

_INT = r"(\d+)"
_REAL = r"(\d+(?:\.\d+)?)"

# Parser registry - populated by @_parser, tried in registration order
_PARSERS: list[tuple[re.Pattern[str], Callable[..., Fact | None]]] = []


def _parser(pattern: str):
    """Decorator to register a key parser for a full-match pattern."""
    def decorator(func):
        _PARSERS.append((re.compile(pattern), func))
        return func
    return decorator


def _real(text: str) -> Number:
    return clean_number(float(text)) if "." in text else int(text)


@_parser(rf"sq{_INT}")
def _square(n: str) -> Fact:
    return Square(int(n))


@_parser(rf"cu{_INT}")
def _cube(n: str) -> Fact:
    return Cube(int(n))


@_parser(rf"rt2_{_INT}")
def _sqrt(n: str) -> Fact:
    return SquareRoot(int(n))


@_parser(rf"rt3_{_INT}")
def _cbrt(n: str) -> Fact:
    return CubeRoot(int(n))


@_parser(rf"{_INT}x{_INT}")
def _product(a: str, b: str) -> Fact:
    return Product(int(a), int(b))


@_parser(rf"{_INT}d{_INT}")
def _quotient(dividend: str, divisor: str) -> Fact | None:
    if int(divisor) == 0:
        return None
    return Quotient(int(dividend), int(divisor))


@_parser(rf"frac{_INT}/{_INT}_{_REAL}")
def _fraction(numerator: str, denominator: str, value: str) -> Fact | None:
    if int(denominator) == 0:
        return None
    return FractionOf(int(numerator), int(denominator), _real(value))


@_parser(rf"pct{_REAL}_{_REAL}")
def _percent(percent: str, value: str) -> Fact:
    return PercentOf(_real(percent), _real(value))


def parse_fact_key(key: str) -> Fact | None:
    """
    Parse a stored fact key back into its typed fact.

    Returns:
        The fact, or None when the key matches no known encoding.
    """
    for pattern, build in _PARSERS:
        match = pattern.fullmatch(key)
        if match:
            return build(*match.groups())
    return None


def fact_label(key: str) -> str:
    """Short human label for a key; unknown keys are shown verbatim."""
    fact = parse_fact_key(key)
    return fact.label if fact is not None else key


__all__ = [
    "Cube",
    "CubeRoot",
    "Fact",
    "FactKind",
    "FractionOf",
    "Number",
    "PercentOf",
    "Product",
    "Quotient",
    "Square",
    "SquareRoot",
    "clean_number",
    "fact_label",
    "format_number",
    "parse_fact_key",
    "round_half_up",
]
