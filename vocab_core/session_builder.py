"""
Session Builder - Study Session Assembly

Builds study sessions and progress summaries from snapshots of card
state (no DB calls). The caller loads the progress rows for one learner
and book, passes them in as {word_id: CardState}, and renders the result.

Session Logic:
- Review pool: reviewed cards whose due_at has passed, oldest due first
- New pool: book words never reviewed, up to the daily new-word cap
- Optional reordering: book order, random, or hardest first
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional, Sequence

from vocab_core.fsrs.constants import MINUTES_PER_REVIEW, CardStatus, MasteryLevel
from vocab_core.fsrs.memory_state import CardState, is_due, mastery_level

logger = logging.getLogger(__name__)

# ---- Session Configuration ----
DEFAULT_NEW_LIMIT = 20        # New words per day
DEFAULT_REVIEW_LIMIT = 100    # Reviews per session
DEFAULT_DIFFICULT_LIMIT = 20


class StudyOrder(str, Enum):
    """Order in which session words are presented."""
    ORDER = "order"            # Due date for reviews, book order for new words
    RANDOM = "random"
    DIFFICULTY = "difficulty"  # Hardest reviews first


@dataclass
class StudySession:
    """Word ids to study now, reviews first."""
    review_ids: list[str] = field(default_factory=list)
    new_ids: list[str] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.review_ids) + len(self.new_ids)

    @property
    def estimated_minutes(self) -> int:
        return estimate_minutes(self.total_count)


@dataclass(frozen=True)
class ProgressSummary:
    """Mastery breakdown of one book for one learner."""
    total_words: int
    mastered: int
    learning: int
    new_words: int
    due_today: int
    average_stability: float
    today_new: int
    estimated_minutes: int


def estimate_minutes(word_count: int) -> int:
    """Rough study time for a number of cards."""
    return math.ceil(word_count * MINUTES_PER_REVIEW)


def _is_unreviewed(word_id: str, progress: Mapping[str, CardState]) -> bool:
    card = progress.get(word_id)
    return card is None or card.state == CardStatus.NEW


def build_study_session(
    progress: Mapping[str, CardState],
    word_ids: Sequence[str],
    now: datetime,
    new_limit: int = DEFAULT_NEW_LIMIT,
    review_limit: int = DEFAULT_REVIEW_LIMIT,
    study_order: StudyOrder = StudyOrder.ORDER,
    rng: Optional[random.Random] = None
) -> StudySession:
    """
    Assemble the cards to study now.

    Args:
        progress: Card state per reviewed word_id
        word_ids: All words of the book, in book order
        now: Current timestamp
        new_limit: Maximum never-reviewed words to introduce
        review_limit: Maximum due reviews to include
        study_order: Presentation order
        rng: Random source for StudyOrder.RANDOM (module random if None)

    Returns:
        StudySession with due review ids and new word ids
    """
    if new_limit < 0 or review_limit < 0:
        raise ValueError("new_limit and review_limit must be non-negative")
    study_order = StudyOrder(study_order)
    rng = rng or random.Random()

    due = [
        (word_id, card) for word_id, card in progress.items()
        if card.state != CardStatus.NEW and is_due(card, now)
    ]
    due.sort(key=lambda item: item[1].due_at)
    due = due[:review_limit]

    candidates = [word_id for word_id in word_ids if _is_unreviewed(word_id, progress)]

    if study_order == StudyOrder.RANDOM:
        new_ids = rng.sample(candidates, min(new_limit, len(candidates)))
        review_ids = [word_id for word_id, _ in due]
        rng.shuffle(review_ids)
    else:
        new_ids = candidates[:new_limit]
        if study_order == StudyOrder.DIFFICULTY:
            due.sort(key=lambda item: item[1].difficulty, reverse=True)
        review_ids = [word_id for word_id, _ in due]

    session = StudySession(review_ids=review_ids, new_ids=new_ids)
    logger.info(
        "Built study session: %d reviews, %d new (%s order)",
        len(session.review_ids), len(session.new_ids), study_order.value
    )
    return session


def summarize_progress(
    progress: Mapping[str, CardState],
    word_ids: Sequence[str],
    now: datetime,
    daily_new_limit: int = DEFAULT_NEW_LIMIT
) -> ProgressSummary:
    """
    Count mastered/learning/new/due words of a book.

    Mastery labels come from mastery_level() so every caller classifies
    cards the same way.
    """
    book_words = set(word_ids)
    reviewed = [
        card for word_id, card in progress.items()
        if word_id in book_words and card.state != CardStatus.NEW
    ]

    levels = [mastery_level(card) for card in reviewed]
    mastered = sum(1 for level in levels if level == MasteryLevel.MASTERED)
    learning = sum(1 for level in levels if level == MasteryLevel.LEARNING)
    due_today = sum(1 for card in reviewed if is_due(card, now))
    average_stability = (
        sum(card.stability for card in reviewed) / len(reviewed) if reviewed else 0.0
    )

    new_words = len(book_words) - len(reviewed)
    today_new = min(daily_new_limit, max(0, new_words))

    return ProgressSummary(
        total_words=len(book_words),
        mastered=mastered,
        learning=learning,
        new_words=new_words,
        due_today=due_today,
        average_stability=average_stability,
        today_new=today_new,
        estimated_minutes=estimate_minutes(due_today + today_new),
    )


def select_difficult_words(
    progress: Mapping[str, CardState],
    limit: int = DEFAULT_DIFFICULT_LIMIT
) -> list[tuple[str, CardState]]:
    """
    Words the learner keeps forgetting.

    Only cards with at least one lapse; most lapses first, then the least
    stable.
    """
    lapsed = [(word_id, card) for word_id, card in progress.items() if card.lapses > 0]
    lapsed.sort(key=lambda item: (-item[1].lapses, item[1].stability))
    return lapsed[:limit]
