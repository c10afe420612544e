"""
Memory State - FSRS Card State and Retrievability

Defines the core memory state variables and derived quantities for FSRS.

Key concepts:
- Stability (S): Days until recall probability decays to the target retention
- Difficulty (D): How hard the item is for this learner (1-10 scale)
- Retrievability (R): Probability of successful recall at time t
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from vocab_core.fsrs.constants import (
    FORGETTING_CURVE_DECAY,
    FORGETTING_CURVE_FACTOR,
    MASTERED_STABILITY_DAYS,
    CardStatus,
    MasteryLevel,
)
from vocab_core.fsrs.exceptions import ContractViolation


@dataclass(frozen=True)
class CardState:
    """
    Memory state for one (learner, item) pair.

    Instances are immutable; the scheduler returns a new CardState for
    every review instead of modifying its input.
    """
    state: CardStatus

    # Long-term memory parameters
    difficulty: float  # D, range 1-10 (0 before the first review)
    stability: float  # S, in days (0 before the first review)
    retrievability: float  # R snapshot taken at the most recent review

    # Interval bookkeeping
    elapsed_days: float  # Days between the previous review and the latest one
    scheduled_days: float  # Days until due, as computed by the latest review

    # Short-term learning ladder
    learning_step: int
    is_learning_phase: bool

    # Review tracking
    reps: int  # Reviews rated Hard or better
    lapses: int  # Again ratings while in Review
    last_review_at: Optional[datetime]
    due_at: datetime

    def replace(self, **changes) -> "CardState":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)


def create_initial(now: datetime) -> CardState:
    """
    Build the state of an item that has never been reviewed.

    The card is due immediately.

    Args:
        now: Current timestamp (timezone-aware)

    Returns:
        CardState with state NEW
    """
    return CardState(
        state=CardStatus.NEW,
        difficulty=0.0,
        stability=0.0,
        retrievability=0.0,
        elapsed_days=0.0,
        scheduled_days=0.0,
        learning_step=0,
        is_learning_phase=True,
        reps=0,
        lapses=0,
        last_review_at=None,
        due_at=now,
    )


def calculate_retrievability(stability: float, elapsed_days: float) -> float:
    """
    Calculate retrievability on the FSRS power forgetting curve.

    Formula: R = (1 + t / (9 * S)) ^ -1

    Where:
    - t = days since the last review
    - S = stability (in days)

    At t = S the curve gives R = 0.9, which is what makes stability
    "days until recall drops to 90%".

    Args:
        stability: Current stability in days
        elapsed_days: Time since last review in days

    Returns:
        Retrievability between 0 and 1
    """
    if stability <= 0:
        return 0.0
    if elapsed_days <= 0:
        return 1.0
    return (1.0 + elapsed_days / (FORGETTING_CURVE_FACTOR * stability)) ** FORGETTING_CURVE_DECAY


def ensure_aware(timestamp: datetime, name: str = "timestamp") -> datetime:
    """Reject naive datetimes; the engine never guesses a timezone."""
    if timestamp.tzinfo is None or timestamp.utcoffset() is None:
        raise ContractViolation(f"{name} must be timezone-aware, got {timestamp!r}")
    return timestamp


def elapsed_days_between(earlier: Optional[datetime], later: datetime) -> float:
    """
    Fractional days from `earlier` to `later`.

    Returns 0 when `earlier` is None (never reviewed) or lies in the
    future (clock skew).
    """
    if earlier is None:
        return 0.0
    seconds = (later - earlier).total_seconds()
    return max(0.0, seconds / 86400.0)


def current_retrievability(card: CardState, now: datetime) -> float:
    """Live recall probability of a card at `now` (0 for NEW cards)."""
    if card.state == CardStatus.NEW:
        return 0.0
    return calculate_retrievability(
        card.stability,
        elapsed_days_between(card.last_review_at, now)
    )


def is_due(card: CardState, now: datetime) -> bool:
    """A card is due once its due_at has passed."""
    return card.due_at <= now


def mastery_level(card: CardState) -> MasteryLevel:
    """
    Display label for a card.

    - NEW cards are "new"
    - REVIEW cards stable for more than 3 weeks are "mastered"
    - everything else is "learning"
    """
    if card.state == CardStatus.NEW:
        return MasteryLevel.NEW
    if card.state == CardStatus.REVIEW and card.stability > MASTERED_STABILITY_DAYS:
        return MasteryLevel.MASTERED
    return MasteryLevel.LEARNING
