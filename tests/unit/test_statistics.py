"""
Unit tests for session history and personal bests.

Run: pytest tests/unit/test_statistics.py -v
"""

import json

from config import StatisticsConfig
from src.engine.models import SessionConfig, SessionOptions
from src.engine.questions import DrillMode
from src.engine.session import DrillSession
from src.storage.statistics import PersonalBest, StatisticsRecorder


def finished(mode=DrillMode.MULTIPLICATION, done=10, correct=8, total_ms=20_000.0, best_streak=4):
    return DrillSession(
        config=SessionConfig(mode, 1, 12),
        options=SessionOptions(),
        queue=[],
        generation=1,
        started_at=0.0,
        done=done,
        correct=correct,
        total_answer_ms=total_ms,
        best_streak=best_streak,
    )


class TestRecordSession:

    def test_below_threshold_is_ignored(self, recorder):
        assert recorder.record_session(finished(done=4, correct=4), 10_000) is None
        assert recorder.sessions == []

    def test_record_fields(self, recorder, clock):
        record = recorder.record_session(finished(done=7, correct=5, total_ms=10_500), 30_000)

        assert record.timestamp == clock.epoch_ms()
        assert record.mode == "multiplication"
        assert (record.min_n, record.max_n) == (1, 12)
        assert record.accuracy == 71
        assert record.avg_time == 1_500
        assert record.elapsed_time == 30_000

    def test_rounds_halves_up(self, recorder):
        record = recorder.record_session(finished(done=8, correct=1, total_ms=8_004), 0)
        assert record.accuracy == 13  # 12.5
        assert record.avg_time == 1_001  # 1000.5

    def test_history_is_capped(self, json_store, clock):
        recorder = StatisticsRecorder(json_store, StatisticsConfig(history_limit=50), clock)
        for i in range(55):
            recorder.record_session(finished(done=5 + i, correct=5), 0)

        assert len(recorder.sessions) == 50
        assert recorder.sessions[0].done == 10
        assert recorder.sessions[-1].done == 59


class TestPersonalBests:

    def test_fastest_avg_needs_ten_answers(self, recorder):
        recorder.record_session(finished(done=9, correct=9, total_ms=9_000), 0)
        assert recorder.personal_bests["multiplication"].fastest_avg is None

        recorder.record_session(finished(done=10, correct=9, total_ms=15_000), 0)
        assert recorder.personal_bests["multiplication"].fastest_avg == 1_500

    def test_bests_only_improve(self, recorder):
        recorder.record_session(finished(done=10, correct=10, total_ms=10_000, best_streak=10), 0)
        recorder.record_session(finished(done=10, correct=5, total_ms=30_000, best_streak=3), 0)

        pb = recorder.personal_bests["multiplication"]
        assert pb == PersonalBest(best_accuracy=100, fastest_avg=1_000, longest_streak=10)

    def test_bests_are_per_mode(self, recorder):
        recorder.record_session(finished(mode=DrillMode.SQUARES, done=5, correct=5), 0)
        assert set(recorder.personal_bests) == {"squares"}


class TestPersistence:

    def test_document_layout(self, recorder, data_dir):
        recorder.record_session(finished(done=10, correct=8, total_ms=20_000), 12_345)
        document = json.loads((data_dir / "statistics.json").read_text(encoding="utf-8"))

        assert set(document) == {"sessions", "personalBests"}
        assert set(document["sessions"][0]) == {
            "timestamp", "mode", "minN", "maxN", "done", "correct",
            "accuracy", "avgTime", "bestStreak", "elapsedTime",
        }
        assert document["personalBests"]["multiplication"] == {
            "bestAccuracy": 80,
            "fastestAvg": 2_000,
            "longestStreak": 4,
        }

    def test_reload(self, recorder, json_store, clock):
        recorder.record_session(finished(), 1_000)
        reloaded = StatisticsRecorder(json_store, clock=clock)
        assert reloaded.sessions == recorder.sessions
        assert reloaded.personal_bests == recorder.personal_bests

    def test_null_fastest_avg_loads_as_none(self, data_dir, json_store, clock):
        (data_dir / "statistics.json").write_text(json.dumps({
            "sessions": [],
            "personalBests": {"division": {"bestAccuracy": 90, "fastestAvg": None, "longestStreak": 7}},
        }), encoding="utf-8")

        recorder = StatisticsRecorder(json_store, clock=clock)
        recorder.record_session(finished(mode=DrillMode.DIVISION, done=12, correct=12, total_ms=12_000), 0)

        assert recorder.personal_bests["division"].fastest_avg == 1_000

    def test_malformed_records_skipped(self, data_dir, json_store, clock):
        (data_dir / "statistics.json").write_text(json.dumps({
            "sessions": [{"mode": "squares"}, "junk"],
            "personalBests": [],
        }), encoding="utf-8")
        recorder = StatisticsRecorder(json_store, clock=clock)
        assert recorder.sessions == []
        assert recorder.personal_bests == {}

    def test_session_history_of_wrong_type_is_ignored(self, json_store, clock):
        json_store.set("statistics", {"sessions": 5, "personalBests": {}})
        recorder = StatisticsRecorder(json_store, clock=clock)
        assert recorder.sessions == []

        assert recorder.record_session(finished(), 0) is not None
        assert len(recorder.sessions) == 1

    def test_non_finite_numbers_skipped(self, data_dir, json_store, clock):
        (data_dir / "statistics.json").write_text(
            '{"sessions": [{"timestamp": 1e400, "mode": "squares", "minN": 1, "maxN": 12, "done": 5,'
            ' "correct": 5, "accuracy": NaN, "avgTime": 1, "bestStreak": 1}],'
            ' "personalBests": {"squares": {"bestAccuracy": Infinity, "fastestAvg": null, "longestStreak": 1}}}',
            encoding="utf-8",
        )
        recorder = StatisticsRecorder(json_store, clock=clock)

        assert recorder.sessions == []
        assert recorder.personal_bests == {}

    def test_clear(self, recorder, json_store, clock):
        recorder.record_session(finished(), 0)
        recorder.clear()
        reloaded = StatisticsRecorder(json_store, clock=clock)
        assert reloaded.sessions == []
        assert reloaded.personal_bests == {}


class TestAggregates:

    def test_empty_summary(self, recorder):
        summary = recorder.summary()
        assert (summary.total_sessions, summary.total_questions, summary.overall_accuracy) == (0, 0, 0)
        assert summary.recent_accuracy == 0
        assert summary.best_streak == 0

    def test_summary(self, recorder):
        recorder.record_session(finished(done=10, correct=5, best_streak=3), 0)
        recorder.record_session(finished(done=10, correct=10, best_streak=10), 0)

        summary = recorder.summary()
        assert summary.total_sessions == 2
        assert summary.total_questions == 20
        assert summary.overall_accuracy == 75
        assert summary.recent_accuracy == 75
        assert summary.best_streak == 10

    def test_recent_accuracy_uses_last_ten(self, recorder):
        recorder.record_session(finished(done=10, correct=0), 0)
        for _ in range(10):
            recorder.record_session(finished(done=10, correct=10), 0)
        assert recorder.summary().recent_accuracy == 100
        assert recorder.summary().overall_accuracy == 91

    def test_breakdown_by_mode(self, recorder):
        recorder.record_session(finished(mode=DrillMode.SQUARES, done=10, correct=5), 0)
        recorder.record_session(finished(mode=DrillMode.DIVISION, done=5, correct=5), 0)
        recorder.record_session(finished(mode=DrillMode.SQUARES, done=10, correct=10), 0)

        rows = {row.mode: row for row in recorder.breakdown_by_mode()}
        assert (rows["squares"].sessions, rows["squares"].questions, rows["squares"].accuracy) == (2, 20, 75)
        assert (rows["division"].sessions, rows["division"].accuracy) == (1, 100)

    def test_recent_newest_first(self, recorder):
        for done in range(5, 30):
            recorder.record_session(finished(done=done, correct=5), 0)

        recent = recorder.recent()
        assert len(recent) == 20
        assert recent[0].done == 29
        assert recent[-1].done == 10
        assert [r.done for r in recorder.recent(limit=2)] == [29, 28]
