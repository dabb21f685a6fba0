"""
Worked-solution text shown after a miss.

Derived purely from the question's fact, so it works the same for freshly
generated questions, reconstructed trouble facts and mixed sessions.
"""

from __future__ import annotations

from .facts import (
    Cube,
    CubeRoot,
    FractionOf,
    PercentOf,
    Product,
    Quotient,
    Square,
    SquareRoot,
    clean_number,
    format_number,
)
from .questions import Question

PERCENT_SHORTCUTS = {
    50: ("50% = half", 2),
    25: ("25% = ¼", 4),
    10: ("10% = divide by 10", 10),
    1: ("1% = divide by 100", 100),
}


def _explain_product(fact: Product) -> str:
    a, b, answer = fact.a, fact.b, fact.answer

    if a <= 12 and b <= 12:
        if 9 in (a, b):
            other = b if a == 9 else a
            return (
                f"Trick: {other} × 9 = {other} × (10 - 1) = "
                f"{other * 10} - {other} = {answer}"
            )
        if 11 in (a, b):
            other = b if a == 11 else a
            if other < 10:
                return f"Trick: {other} × 11 = {other}{other} (repeat the digit)"

    if a % 2 == 0 and a <= 20:
        half = a // 2
        return (
            f"Break it down: {a} × {b} = ({half} × 2) × {b} = "
            f"{half} × {b * 2} = {answer}"
        )

    return f"Think: {a} × {b} = {answer}"


def _explain_percent(fact: PercentOf) -> str:
    pct, value, answer = fact.percent, format_number(fact.value), format_number(fact.answer)

    if pct in PERCENT_SHORTCUTS:
        rule, divisor = PERCENT_SHORTCUTS[pct]
        return f"Shortcut: {rule}. {value} ÷ {divisor} = {answer}"
    if pct == 5:
        ten = format_number(clean_number(fact.value / 10))
        return (
            f"Shortcut: 5% = half of 10%. 10% of {value} = {ten}, "
            f"so 5% = {ten} ÷ 2 = {answer}"
        )
    return f"Method: {format_number(pct)}% of {value} = ({format_number(pct)} ÷ 100) × {value} = {answer}"


def explain(question: Question) -> str:
    """Return a short worked solution for a question."""
    fact = question.fact

    if isinstance(fact, Product):
        return _explain_product(fact)

    if isinstance(fact, Quotient):
        return (
            f"Think: {fact.divisor} × ? = {fact.dividend}. "
            f"Answer: {fact.divisor} × {format_number(fact.answer)} = {fact.dividend}"
        )

    if isinstance(fact, Square):
        return f"Remember: {fact.n}² = {fact.n} × {fact.n} = {fact.answer}"

    if isinstance(fact, Cube):
        n = fact.n
        return f"Remember: {n}³ = {n} × {n} × {n} = {n * n} × {n} = {fact.answer}"

    if isinstance(fact, SquareRoot):
        n = fact.n
        return f"Think: What number times itself = {n * n}? Answer: {n} × {n} = {n * n}"

    if isinstance(fact, CubeRoot):
        n = fact.n
        return f"Think: What number cubed = {n ** 3}? Answer: {n}³ = {n ** 3}"

    if isinstance(fact, FractionOf):
        step1 = format_number(clean_number(fact.value / fact.denominator))
        return (
            f"Step 1: {format_number(fact.value)} ÷ {fact.denominator} = {step1}. "
            f"Step 2: {step1} × {fact.numerator} = {format_number(fact.answer)}"
        )

    if isinstance(fact, PercentOf):
        return _explain_percent(fact)

    return f"The answer is {format_number(question.answer)}"
