"""
Drill engine.

Pure session logic with no I/O of its own:

- facts / questions: typed arithmetic facts, their keys and generators
- queue_builder: normal, trouble and focused queues plus requeue-after-miss
- session: the per-session state machine and its transitions
- runner: the one live session, deferred advances and timer polling
"""

from .clock import Clock, FakeClock, SystemClock
from .errors import DrillError, FactKeyError, ProgressImportError
from .facts import Fact, FactKind, fact_label, parse_fact_key
from .models import SessionConfig, SessionOptions
from .questions import DrillMode, Question, generate_question
from .queue_builder import ReconstructFallback, build_session_queue, reconstruct, requeue_after_miss
from .runner import DrillRunner
from .session import DrillSession, Outcome, Phase, SessionMachine, Transition

__all__ = [
    # Time
    "Clock",
    "FakeClock",
    "SystemClock",
    # Errors
    "DrillError",
    "FactKeyError",
    "ProgressImportError",
    # Facts and questions
    "DrillMode",
    "Fact",
    "FactKind",
    "Question",
    "fact_label",
    "generate_question",
    "parse_fact_key",
    # Configuration
    "SessionConfig",
    "SessionOptions",
    # Queues
    "ReconstructFallback",
    "build_session_queue",
    "reconstruct",
    "requeue_after_miss",
    # Sessions
    "DrillRunner",
    "DrillSession",
    "Outcome",
    "Phase",
    "SessionMachine",
    "Transition",
]
