"""
Configuration settings for number-drills.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ========================================
# Engine configuration bundles
# ========================================


@dataclass(frozen=True)
class QueueConfig:
    """Tuning for queue construction and requeue spacing."""

    requeue_offset_min: int = 2
    requeue_offset_percent: float = 0.3
    trouble_queue_min: int = 10
    trouble_queue_max: int = 40
    focused_session_size: int = 12


@dataclass(frozen=True)
class SessionTimingConfig:
    """Delays and timeouts used by the session state machine."""

    correct_feedback_delay_ms: int = 1000
    incorrect_feedback_delay_ms: int = 600
    skip_delay_ms: int = 200
    strict_timeout_seconds: int = 5
    timer_poll_interval_ms: int = 250


@dataclass(frozen=True)
class StatisticsConfig:
    """Thresholds for history and personal bests."""

    history_limit: int = 50
    record_min_done: int = 5
    fastest_avg_min_done: int = 10


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".number-drills",
        description="Directory holding progress, settings and statistics documents",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Feedback Timing
    # ========================================
    correct_feedback_delay_ms: int = Field(
        default=1000,
        description="Pause after a correct answer before the next question",
    )
    incorrect_feedback_delay_ms: int = Field(
        default=600,
        description="Minimum pause before a miss can be acknowledged",
    )
    skip_delay_ms: int = Field(
        default=200,
        description="Pause after a skip before the next question",
    )
    strict_timeout_seconds: int = Field(
        default=5,
        description="Per-question deadline in strict mode",
    )
    timer_poll_interval_ms: int = Field(
        default=250,
        description="Redraw cadence for the whole-session countdown",
    )

    # ========================================
    # Queue Construction
    # ========================================
    requeue_offset_min: int = Field(
        default=2,
        description="Minimum number of questions before a missed fact returns",
    )
    requeue_offset_percent: float = Field(
        default=0.3,
        description="Share of the remaining queue used as requeue spacing",
    )
    trouble_queue_min: int = Field(
        default=10,
        description="Lower bound on distinct trouble facts drawn into a queue",
    )
    trouble_queue_max: int = Field(
        default=40,
        description="Upper bound on distinct trouble facts drawn into a queue",
    )
    focused_session_size: int = Field(
        default=12,
        description="Questions in a session focused on picked trouble facts",
    )

    # ========================================
    # Session Bounds
    # ========================================
    min_session_size: int = Field(default=5, description="Smallest allowed session")
    max_session_size: int = Field(default=500, description="Largest allowed session")
    min_test_seconds: int = Field(default=15, description="Shortest timed test")
    max_test_seconds: int = Field(default=1800, description="Longest timed test")

    # ========================================
    # Statistics
    # ========================================
    history_limit: int = Field(
        default=50,
        description="Completed sessions kept in history (oldest evicted first)",
    )
    record_min_done: int = Field(
        default=5,
        description="Answers required before a session is recorded",
    )
    fastest_avg_min_done: int = Field(
        default=10,
        description="Answers required before a session can set a speed record",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def get_queue_config(self) -> QueueConfig:
        """Return queue tuning as an engine config bundle."""
        return QueueConfig(
            requeue_offset_min=self.requeue_offset_min,
            requeue_offset_percent=self.requeue_offset_percent,
            trouble_queue_min=self.trouble_queue_min,
            trouble_queue_max=self.trouble_queue_max,
            focused_session_size=self.focused_session_size,
        )

    def get_session_config(self) -> SessionTimingConfig:
        """Return session timing as an engine config bundle."""
        return SessionTimingConfig(
            correct_feedback_delay_ms=self.correct_feedback_delay_ms,
            incorrect_feedback_delay_ms=self.incorrect_feedback_delay_ms,
            skip_delay_ms=self.skip_delay_ms,
            strict_timeout_seconds=self.strict_timeout_seconds,
            timer_poll_interval_ms=self.timer_poll_interval_ms,
        )

    def get_statistics_config(self) -> StatisticsConfig:
        """Return statistics thresholds as a config bundle."""
        return StatisticsConfig(
            history_limit=self.history_limit,
            record_min_done=self.record_min_done,
            fastest_avg_min_done=self.fastest_avg_min_done,
        )

    def get_bounds(self) -> dict[str, tuple[int, int]]:
        """Clamping bounds applied to user-supplied session options."""
        return {
            "size": (self.min_session_size, self.max_session_size),
            "test_seconds": (self.min_test_seconds, self.max_test_seconds),
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
