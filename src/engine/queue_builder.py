"""
Queue construction.

Builds the ordered list of questions a session works through:

- Normal queue: independent random questions for the configuration
- Trouble queue: the worst-missed facts for the configuration, cycled
- Focused queue: a handful of chosen fact keys, cycled

and reinserts missed or skipped questions a little further down the queue.
"""

from __future__ import annotations

import random
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

from loguru import logger

from config import QueueConfig

from .errors import FactKeyError
from .facts import parse_fact_key, round_half_up
from .models import SessionConfig, SessionOptions
from .questions import Question, generate_question

if TYPE_CHECKING:
    from src.storage.mastery import FactMasteryStore

NO_TROUBLE_NOTICE = "No trouble facts found. Starting a normal session instead."


class ReconstructFallback(str, Enum):
    """What to do with a fact key that cannot be parsed."""
    FRESH_QUESTION = "fresh_question"
    RAISE = "raise"


class BuiltQueue(NamedTuple):
    questions: list[Question]
    notice: str | None = None
    from_trouble: bool = False


def _fresh(config: SessionConfig, rng: random.Random) -> Question:
    return generate_question(
        config.mode,
        config.min_n,
        config.max_n,
        rng,
        focus_multiplier=config.focus_multiplier,
        focus_divisor=config.focus_divisor,
    )


def reconstruct(
    key: str,
    config: SessionConfig,
    rng: random.Random,
    fallback: ReconstructFallback = ReconstructFallback.FRESH_QUESTION,
) -> Question:
    """
    Rebuild a question from its stored fact key.

    Args:
        key: Fact key as stored in the mastery store
        config: Configuration used for a fresh question on fallback
        rng: Random source for the fallback question
        fallback: Policy for unrecognised keys

    Raises:
        FactKeyError: if the key is unrecognised and the policy is RAISE
    """
    fact = parse_fact_key(key)
    if fact is not None:
        return Question(fact, key)

    if fallback is ReconstructFallback.RAISE:
        raise FactKeyError(key)

    logger.warning(f"Unrecognized fact key {key!r}, substituting a fresh question")
    return _fresh(config, rng)


def build_normal_queue(config: SessionConfig, size: int, rng: random.Random) -> list[Question]:
    return [_fresh(config, rng) for _ in range(size)]


def build_trouble_queue(
    config: SessionConfig,
    size: int,
    store: FactMasteryStore,
    rng: random.Random,
    queue_config: QueueConfig | None = None,
) -> list[Question] | None:
    """
    Queue of the worst-missed facts, or None when there are none.

    The number of distinct facts drawn is the session size bounded to
    [trouble_queue_min, trouble_queue_max]; when fewer facts exist they are
    repeated in order until the queue is full.
    """
    queue_config = queue_config or QueueConfig()
    troubled = store.troubled_facts(config.identifier)
    if not troubled:
        return None

    limit = max(queue_config.trouble_queue_min, min(size, queue_config.trouble_queue_max))
    keys = [key for key, _ in troubled[:limit]]
    logger.debug(f"Trouble queue for {config.identifier}: {len(keys)} facts over {size} slots")

    return [reconstruct(keys[i % len(keys)], config, rng) for i in range(size)]


def build_focused_queue(
    keys: list[str],
    size: int,
    config: SessionConfig,
    rng: random.Random,
) -> list[Question]:
    """Cycle the chosen fact keys into a queue of ``size`` questions."""
    if not keys:
        return []
    return [reconstruct(keys[i % len(keys)], config, rng) for i in range(size)]


def shuffle(queue: list[Question], rng: random.Random) -> None:
    """Fisher-Yates shuffle in place."""
    rng.shuffle(queue)


def requeue_after_miss(
    queue: list[Question],
    item: Question,
    rng: random.Random,
    queue_config: QueueConfig | None = None,
) -> int:
    """
    Reinsert a missed or skipped question further down the queue.

    The item lands at a random position no closer than ``offset`` to the
    front, where offset is 30% of the queue (at least 2, never past the end).

    Returns:
        The insertion index.
    """
    queue_config = queue_config or QueueConfig()
    n = len(queue)
    offset = min(n, max(queue_config.requeue_offset_min, round_half_up(n * queue_config.requeue_offset_percent)))
    position = rng.randint(offset, n)
    queue.insert(position, item)
    return position


def build_session_queue(
    config: SessionConfig,
    options: SessionOptions,
    store: FactMasteryStore,
    rng: random.Random,
    queue_config: QueueConfig | None = None,
) -> BuiltQueue:
    """Trouble or normal queue per the options, shuffled when enabled."""
    questions = None
    notice = None

    if options.trouble_only:
        questions = build_trouble_queue(config, options.size, store, rng, queue_config)
        if questions is None:
            logger.warning(f"No trouble facts for {config.identifier}, using a normal queue")
            notice = NO_TROUBLE_NOTICE

    from_trouble = questions is not None
    if questions is None:
        questions = build_normal_queue(config, options.size, rng)

    if options.shuffle:
        shuffle(questions, rng)

    return BuiltQueue(questions, notice, from_trouble)
