"""
Short-Term Memory (STM) Updates

Implements the minute-scale learning ladder that new and lapsed cards
walk through before (re)entering day-scale review.

Key principle:
The ladder only decides WHEN a card is shown again and WHEN it graduates.
Long-term stability and difficulty are left to ltm_updates.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from vocab_core.fsrs.constants import S_MIN, Rating
from vocab_core.fsrs.parameters import SchedulerParameters


def step_due_at(
    params: SchedulerParameters,
    rating: Rating,
    now: datetime
) -> datetime:
    """
    Next showing time for a card that stays on the learning ladder.

    Args:
        params: Scheduler parameters (learning_steps in minutes)
        rating: Rating given at this step
        now: Review timestamp

    Returns:
        now + learning_steps[rating] minutes
    """
    return now + timedelta(minutes=params.learning_steps[rating])


def advance_learning_step(learning_step: int, rating: Rating) -> int:
    """
    Position on the ladder after a rating.

    Again sends the card back to the bottom; any other rating climbs one step.
    """
    if rating == Rating.AGAIN:
        return 0
    return learning_step + 1


def should_graduate(
    params: SchedulerParameters,
    next_step: int,
    rating: Rating
) -> bool:
    """
    Determine if a learning card leaves the ladder.

    Easy graduates immediately; Hard/Good graduate once enough
    consecutive steps have been climbed.
    """
    if rating == Rating.AGAIN:
        return False
    if rating == Rating.EASY:
        return True
    return next_step >= params.graduation_steps


def stability_after_step_failure(stability: float) -> float:
    """
    Stability after Again while already on the learning ladder.

    Halved, floored at S_MIN.
    """
    return max(S_MIN, stability * 0.5)
