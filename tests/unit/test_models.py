"""
Unit tests for session configuration and options.

Run: pytest tests/unit/test_models.py -v
"""

import pytest

from src.engine.models import SessionConfig, SessionOptions
from src.engine.questions import DrillMode


class TestSessionConfig:

    def test_identifier_without_focus(self):
        assert SessionConfig(DrillMode.MULTIPLICATION, 1, 12).identifier == "multiplication:1-12"

    def test_focus_multiplier_only_for_multiplication(self):
        assert SessionConfig("multiplication", 1, 12, focus_multiplier=7).identifier == "multiplication:1-12:ft=7"
        assert SessionConfig("squares", 1, 12, focus_multiplier=7).identifier == "squares:1-12"

    def test_focus_divisor_only_for_division(self):
        assert SessionConfig("division", 2, 9, focus_divisor=3).identifier == "division:2-9:fd=3"
        assert SessionConfig("multiplication", 2, 9, focus_divisor=3).identifier == "multiplication:2-9"

    def test_swaps_reversed_range(self):
        config = SessionConfig(DrillMode.SQUARES, 20, 5)
        assert (config.min_n, config.max_n) == (5, 20)

    @pytest.mark.parametrize(
        "min_n,max_n,expected",
        [(-5, 10, (0, 10)), (1, 5000, (1, 999)), (0, 0, (0, 1)), (1200, 1500, (999, 999))],
    )
    def test_clamps_range(self, min_n, max_n, expected):
        config = SessionConfig(DrillMode.MULTIPLICATION, min_n, max_n)
        assert (config.min_n, config.max_n) == expected

    def test_negative_focus_means_none(self):
        config = SessionConfig(DrillMode.MULTIPLICATION, 1, 12, focus_multiplier=-3)
        assert config.focus_multiplier == 0
        assert config.identifier == "multiplication:1-12"

    def test_mode_coerced_from_string(self):
        assert SessionConfig("cbrt").mode is DrillMode.CBRT

    def test_unfocused(self):
        config = SessionConfig(DrillMode.DIVISION, 1, 10, focus_divisor=4).unfocused()
        assert config.identifier == "division:1-10"

    def test_equal_configs_share_identifier(self):
        assert SessionConfig("division", 9, 2).identifier == SessionConfig("division", 2, 9).identifier


class TestSessionOptions:

    @pytest.mark.parametrize("size,expected", [(1, 5), (20, 20), (10_000, 500)])
    def test_size_clamped(self, size, expected):
        assert SessionOptions(size=size).size == expected

    @pytest.mark.parametrize("seconds,expected", [(5, 15), (90, 90), (99_999, 1800)])
    def test_test_seconds_clamped(self, seconds, expected):
        assert SessionOptions(test_seconds=seconds).test_seconds == expected

    def test_clamped_to_narrower_bounds(self):
        options = SessionOptions(size=100, test_seconds=600).clamped({"size": (5, 50), "test_seconds": (15, 300)})
        assert options.size == 50
        assert options.test_seconds == 300

    def test_clamped_keeps_flags(self):
        options = SessionOptions(strict=True, timed_test=True).clamped({})
        assert options.strict and options.timed_test
