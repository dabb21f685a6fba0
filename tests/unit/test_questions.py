"""
Unit tests for question generation.

Run: pytest tests/unit/test_questions.py -v
"""

import random

import pytest

from src.engine.facts import FactKind, FractionOf, PercentOf, Product, Quotient, parse_fact_key
from src.engine.questions import (
    GENERATORS,
    PERCENT_BASE_MULTIPLIERS,
    PERCENTAGES,
    DrillMode,
    Question,
    generate_question,
)

DRAWS = 200


@pytest.fixture
def draw(rng):
    def _draw(mode, min_n=2, max_n=12, **kwargs):
        return [generate_question(mode, min_n, max_n, rng, **kwargs) for _ in range(DRAWS)]
    return _draw


class TestGenerators:
    """Each mode stays inside its operand rules."""

    def test_every_kind_has_a_generator(self):
        assert set(GENERATORS) == set(FactKind)

    def test_multiplication_range(self, draw):
        for q in draw(DrillMode.MULTIPLICATION):
            assert isinstance(q.fact, Product)
            assert 2 <= q.fact.a <= 12 and 2 <= q.fact.b <= 12
            assert q.answer == q.fact.a * q.fact.b

    def test_division_is_exact(self, draw):
        for q in draw(DrillMode.DIVISION, min_n=0, max_n=9):
            assert isinstance(q.fact, Quotient)
            assert 1 <= q.fact.divisor <= 9
            assert 0 <= q.answer <= 9
            assert isinstance(q.answer, int)
            assert q.fact.dividend == q.fact.divisor * q.answer

    def test_squares_and_cubes(self, draw):
        for q in draw(DrillMode.SQUARES):
            assert q.fact_key.startswith("sq")
            assert q.answer == q.fact.n ** 2
        for q in draw(DrillMode.CUBES):
            assert q.fact_key.startswith("cu")
            assert q.answer == q.fact.n ** 3

    def test_roots_answer_the_base(self, draw):
        for q in draw(DrillMode.SQRT):
            assert q.prompt == f"√{q.answer ** 2}"
        for q in draw(DrillMode.CBRT):
            assert q.prompt == f"∛{q.answer ** 3}"

    def test_fractions_divide_evenly(self, draw):
        for q in draw(DrillMode.FRACTIONS, min_n=1, max_n=10):
            fact = q.fact
            assert isinstance(fact, FractionOf)
            assert 2 <= fact.denominator <= 10
            assert 1 <= fact.numerator < fact.denominator
            assert fact.value % fact.denominator == 0
            assert 1 <= fact.value // fact.denominator <= 5
            assert isinstance(q.answer, int)

    def test_percentages_use_fixed_tables(self, draw):
        for q in draw(DrillMode.PERCENTAGES, min_n=1, max_n=10):
            fact = q.fact
            assert isinstance(fact, PercentOf)
            assert fact.percent in PERCENTAGES
            assert any(fact.value % m == 0 and 1 <= fact.value // m <= 10 for m in PERCENT_BASE_MULTIPLIERS)

    def test_mixed_mode_covers_several_kinds(self, draw):
        kinds = {q.kind for q in draw(DrillMode.MIXED)}
        assert len(kinds) >= 6

    def test_mode_accepts_plain_string(self, rng):
        q = generate_question("squares", 3, 3, rng)
        assert q.fact_key == "sq3"


class TestFocusVariants:

    def test_focus_multiplier_pins_first_factor(self, draw):
        for q in draw(DrillMode.MULTIPLICATION, focus_multiplier=7):
            assert q.fact.a == 7
            assert 2 <= q.fact.b <= 12

    def test_focus_divisor_pins_divisor(self, draw):
        for q in draw(DrillMode.DIVISION, focus_divisor=6):
            assert q.fact.divisor == 6

    def test_focus_ignored_for_other_modes(self, draw):
        for q in draw(DrillMode.SQUARES, focus_multiplier=7, focus_divisor=6):
            assert q.kind is FactKind.SQUARES


class TestQuestion:

    def test_reproducible_from_key(self, draw):
        for q in draw(DrillMode.MIXED, min_n=1, max_n=20):
            rebuilt = Question(parse_fact_key(q.fact_key))
            assert rebuilt.prompt == q.prompt
            assert rebuilt.answer == q.answer
            assert rebuilt == q

    def test_equality_and_hash_by_key(self):
        a = Question(Product(7, 8))
        b = Question(Product(7, 8))
        assert a == b
        assert len({a, b}) == 1
        assert a != Question(Product(8, 7))

    def test_seeded_generation_is_deterministic(self):
        def keys(seed):
            source = random.Random(seed)
            return [generate_question(DrillMode.MIXED, 1, 12, source).fact_key for _ in range(20)]

        assert keys(7) == keys(7)

    def test_display_name(self):
        assert DrillMode.MULTIPLICATION.display_name == "Multiplication"
