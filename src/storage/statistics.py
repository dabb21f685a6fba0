"""
Session history and personal bests.

Stored as one document:

    {"sessions": [SessionRecord, ...], "personalBests": {mode: PersonalBest}}

History is capped (oldest evicted first) and personal bests only ever
improve.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

from config import StatisticsConfig
from src.engine.clock import Clock, SystemClock
from src.engine.facts import round_half_up

from .kv_store import JsonStore

if TYPE_CHECKING:
    from src.engine.session import DrillSession

STATISTICS_KEY = "statistics"
RECENT_ACCURACY_WINDOW = 10


@dataclass(frozen=True)
class SessionRecord:
    """Snapshot of a finished session."""

    timestamp: int  # epoch ms
    mode: str
    min_n: int
    max_n: int
    done: int
    correct: int
    accuracy: int
    avg_time: int
    best_streak: int
    elapsed_time: float

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "mode": self.mode,
            "minN": self.min_n,
            "maxN": self.max_n,
            "done": self.done,
            "correct": self.correct,
            "accuracy": self.accuracy,
            "avgTime": self.avg_time,
            "bestStreak": self.best_streak,
            "elapsedTime": self.elapsed_time,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SessionRecord:
        return cls(
            timestamp=int(data["timestamp"]),
            mode=str(data["mode"]),
            min_n=int(data["minN"]),
            max_n=int(data["maxN"]),
            done=int(data["done"]),
            correct=int(data["correct"]),
            accuracy=int(data["accuracy"]),
            avg_time=int(data["avgTime"]),
            best_streak=int(data["bestStreak"]),
            elapsed_time=float(data.get("elapsedTime", 0)),
        )


@dataclass
class PersonalBest:
    best_accuracy: int = 0
    fastest_avg: int | None = None
    longest_streak: int = 0

    def to_dict(self) -> dict:
        return {
            "bestAccuracy": self.best_accuracy,
            "fastestAvg": self.fastest_avg,
            "longestStreak": self.longest_streak,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PersonalBest:
        fastest = data.get("fastestAvg")
        return cls(
            best_accuracy=int(data.get("bestAccuracy", 0)),
            fastest_avg=int(fastest) if isinstance(fastest, (int, float)) else None,
            longest_streak=int(data.get("longestStreak", 0)),
        )


@dataclass(frozen=True)
class StatisticsSummary:
    total_sessions: int
    total_questions: int
    overall_accuracy: int
    recent_accuracy: int
    best_streak: int


@dataclass(frozen=True)
class ModeBreakdown:
    mode: str
    sessions: int
    questions: int
    accuracy: int


class StatisticsRecorder:
    """Appends finished sessions and maintains per-mode personal bests."""

    def __init__(
        self,
        store: JsonStore,
        config: StatisticsConfig | None = None,
        clock: Clock | None = None,
    ):
        self.store = store
        self.config = config or StatisticsConfig()
        self.clock = clock or SystemClock()
        self.sessions: list[SessionRecord] = []
        self.personal_bests: dict[str, PersonalBest] = {}
        self._load()

    def _load(self) -> None:
        document = self.store.get(STATISTICS_KEY, {"sessions": [], "personalBests": {}})
        if not isinstance(document, dict):
            logger.error("Stored statistics have an unexpected shape, starting empty")
            return

        sessions = document.get("sessions") or []
        if not isinstance(sessions, list):
            logger.error("Stored session history is not a list, ignoring it")
            sessions = []
        for raw in sessions:
            try:
                self.sessions.append(SessionRecord.from_dict(raw))
            except (KeyError, TypeError, ValueError, OverflowError) as e:
                logger.warning(f"Skipping malformed session record: {e}")

        bests = document.get("personalBests") or {}
        if isinstance(bests, dict):
            for mode, raw in bests.items():
                if isinstance(raw, dict):
                    try:
                        self.personal_bests[mode] = PersonalBest.from_dict(raw)
                    except (TypeError, ValueError, OverflowError) as e:
                        logger.warning(f"Skipping malformed personal best for {mode}: {e}")

    def _save(self) -> None:
        self.store.set(
            STATISTICS_KEY,
            {
                "sessions": [record.to_dict() for record in self.sessions],
                "personalBests": {mode: pb.to_dict() for mode, pb in self.personal_bests.items()},
            },
        )

    # =========================================================================
    # Recording
    # =========================================================================

    def record_session(self, session: DrillSession, elapsed_ms: float) -> SessionRecord | None:
        """
        Record a finished session.

        Sessions with fewer than ``record_min_done`` answers are ignored.

        Returns:
            The stored record, or None if the session did not qualify.
        """
        done = session.done
        if done < self.config.record_min_done:
            return None

        record = SessionRecord(
            timestamp=self.clock.epoch_ms(),
            mode=session.config.mode.value,
            min_n=session.config.min_n,
            max_n=session.config.max_n,
            done=done,
            correct=session.correct,
            accuracy=round_half_up(session.correct / done * 100),
            avg_time=round_half_up(session.total_answer_ms / done),
            best_streak=session.best_streak,
            elapsed_time=elapsed_ms,
        )

        self.sessions.append(record)
        if len(self.sessions) > self.config.history_limit:
            self.sessions = self.sessions[-self.config.history_limit:]

        pb = self.personal_bests.setdefault(record.mode, PersonalBest())
        pb.best_accuracy = max(pb.best_accuracy, record.accuracy)
        if record.done >= self.config.fastest_avg_min_done:
            if pb.fastest_avg is None or record.avg_time < pb.fastest_avg:
                pb.fastest_avg = record.avg_time
        pb.longest_streak = max(pb.longest_streak, record.best_streak)

        self._save()
        logger.debug(f"Recorded {record.mode} session: {record.correct}/{record.done}")
        return record

    def clear(self) -> None:
        self.sessions = []
        self.personal_bests = {}
        self._save()
        logger.info("Statistics cleared")

    # =========================================================================
    # Aggregates
    # =========================================================================

    def summary(self) -> StatisticsSummary:
        total_questions = sum(r.done for r in self.sessions)
        total_correct = sum(r.correct for r in self.sessions)
        recent = self.sessions[-RECENT_ACCURACY_WINDOW:]

        return StatisticsSummary(
            total_sessions=len(self.sessions),
            total_questions=total_questions,
            overall_accuracy=round_half_up(total_correct / total_questions * 100) if total_questions else 0,
            recent_accuracy=round_half_up(sum(r.accuracy for r in recent) / len(recent)) if recent else 0,
            best_streak=max((r.best_streak for r in self.sessions), default=0),
        )

    def breakdown_by_mode(self) -> list[ModeBreakdown]:
        """Per-mode totals in order of first appearance."""
        totals: dict[str, list[int]] = {}
        for r in self.sessions:
            entry = totals.setdefault(r.mode, [0, 0, 0])
            entry[0] += 1
            entry[1] += r.done
            entry[2] += r.correct

        return [
            ModeBreakdown(
                mode=mode,
                sessions=count,
                questions=questions,
                accuracy=round_half_up(correct / questions * 100) if questions else 0,
            )
            for mode, (count, questions, correct) in totals.items()
        ]

    def recent(self, limit: int = 20) -> list[SessionRecord]:
        """Most recent sessions, newest first."""
        return list(reversed(self.sessions[-limit:])) if limit > 0 else []
