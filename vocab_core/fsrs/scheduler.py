"""
Scheduler - FSRS Algorithm Logic

Pure FSRS scheduling and state updates (no I/O, no hidden state).

Main workflow:
1. Load card state, or create_initial() for a never-reviewed item (caller)
2. Validate the rating and card state
3. Route by lifecycle position: first review, learning ladder, or long-term review
4. Return a new CardState (+ ReviewLog from process_review)
5. Persist both (caller)

State machine:
    NEW        --Easy-------------------------------> REVIEW
    NEW        --Again/Hard/Good--------------------> LEARNING (ladder)
    LEARNING   --Hard/Good x graduation_steps, Easy-> REVIEW
    REVIEW     --Hard/Good/Easy---------------------> REVIEW
    REVIEW     --Again (lapse)----------------------> RELEARNING (ladder)
    RELEARNING --Hard/Good x graduation_steps, Easy-> REVIEW

Calls never mutate their input and may run concurrently without locking.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Union

from vocab_core.fsrs import ltm_updates, stm_updates
from vocab_core.fsrs.constants import CardStatus, Rating
from vocab_core.fsrs.exceptions import ContractViolation
from vocab_core.fsrs.memory_state import (
    CardState,
    calculate_retrievability,
    elapsed_days_between,
    ensure_aware,
)
from vocab_core.fsrs.parameters import DEFAULT_PARAMETERS, SchedulerParameters
from vocab_core.fsrs.review_log import ReviewLog, build_review_log

logger = logging.getLogger(__name__)

LEARNING_STATUSES = (CardStatus.LEARNING, CardStatus.RELEARNING)


def validate_review_input(
    card: CardState,
    rating: Union[Rating, int],
    now: datetime
) -> Rating:
    """
    Check the caller contract before scheduling.

    Args:
        card: Current card state
        rating: Rating as Rating or plain int 1-4
        now: Review timestamp (timezone-aware)

    Returns:
        The rating coerced to Rating

    Raises:
        ContractViolation: on an unknown rating, naive timestamp, or an
            inconsistent status/phase/counter combination
    """
    if isinstance(rating, bool):
        raise ContractViolation(f"Invalid rating: {rating!r}")
    try:
        rating = Rating(rating)
    except (ValueError, TypeError) as e:
        raise ContractViolation(f"Invalid rating: {rating!r} (expected 1-4)") from e

    ensure_aware(now, "now")
    ensure_aware(card.due_at, "due_at")

    if card.state == CardStatus.NEW:
        if card.reps != 0 or card.lapses != 0:
            raise ContractViolation("NEW card with non-zero reps/lapses")
        if card.last_review_at is not None:
            raise ContractViolation("NEW card with a previous review timestamp")
        return rating

    if card.last_review_at is None:
        raise ContractViolation(f"{card.state.value} card without last_review_at")
    ensure_aware(card.last_review_at, "last_review_at")

    if card.state == CardStatus.REVIEW and card.is_learning_phase:
        raise ContractViolation("REVIEW card cannot be in the learning phase")
    if card.state in LEARNING_STATUSES and not card.is_learning_phase:
        raise ContractViolation(f"{card.state.value} card must be in the learning phase")
    if card.learning_step < 0 or card.reps < 0 or card.lapses < 0:
        raise ContractViolation("Negative step or review counters")

    return rating


def schedule(
    card: CardState,
    rating: Union[Rating, int],
    now: datetime,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> CardState:
    """
    Compute the next memory state and due date of a card.

    Args:
        card: Current card state (not modified)
        rating: Learner feedback (AGAIN, HARD, GOOD, EASY)
        now: Review timestamp (timezone-aware)
        params: Scheduler parameters

    Returns:
        New CardState
    """
    new_card, _ = process_review(card, rating, now, params)
    return new_card


def process_review(
    card: CardState,
    rating: Union[Rating, int],
    now: datetime,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> tuple[CardState, ReviewLog]:
    """
    Process a review and return the updated card + audit record.

    This is the core FSRS algorithm. No database calls.
    Caller is responsible for:
    1. Loading the card
    2. Saving the card after review
    3. Persisting the review log

    Returns:
        Tuple of (updated_card, review_log)
    """
    rating = validate_review_input(card, rating, now)

    if card.state == CardStatus.NEW:
        new_card = _review_new(card, rating, now, params)
    elif card.is_learning_phase:
        new_card = _review_learning(card, rating, now, params)
    else:
        new_card = _review_long_term(card, rating, now, params)

    logger.debug(
        "Reviewed card (%s): %s -> %s, S %.3f -> %.3f, D %.3f -> %.3f, due %s",
        rating.name,
        card.state.value,
        new_card.state.value,
        card.stability,
        new_card.stability,
        card.difficulty,
        new_card.difficulty,
        new_card.due_at.isoformat(),
    )
    return new_card, build_review_log(card, new_card, rating, now)


def preview(
    card: CardState,
    now: datetime,
    params: SchedulerParameters = DEFAULT_PARAMETERS
) -> dict[Rating, CardState]:
    """
    Outcome of every possible rating, e.g. to label answer buttons
    with their next interval.
    """
    return {rating: schedule(card, rating, now, params) for rating in Rating}


# ---- Transitions ----

def _count_rep(card: CardState, rating: Rating) -> int:
    return card.reps + 1 if rating >= Rating.HARD else card.reps


def _graduate(
    card: CardState,
    now: datetime,
    params: SchedulerParameters
) -> CardState:
    """Move a card to day-scale review and derive its next interval."""
    interval = ltm_updates.next_interval(params, card.stability)
    return card.replace(
        state=CardStatus.REVIEW,
        is_learning_phase=False,
        learning_step=0,
        scheduled_days=float(interval),
        due_at=now + timedelta(days=interval),
    )


def _stay_on_ladder(
    card: CardState,
    rating: Rating,
    next_step: int,
    now: datetime,
    params: SchedulerParameters
) -> CardState:
    return card.replace(
        is_learning_phase=True,
        learning_step=next_step,
        scheduled_days=0.0,
        due_at=stm_updates.step_due_at(params, rating, now),
    )


def _review_new(
    card: CardState,
    rating: Rating,
    now: datetime,
    params: SchedulerParameters
) -> CardState:
    """
    First review of a NEW card.

    Difficulty and stability are initialised from the rating. Easy skips
    the learning ladder; other ratings start climbing it from step 0.
    """
    started = card.replace(
        state=CardStatus.LEARNING,
        difficulty=ltm_updates.init_difficulty(params.w, rating),
        stability=ltm_updates.init_stability(params.w, rating),
        retrievability=0.0,
        elapsed_days=0.0,
        reps=_count_rep(card, rating),
        last_review_at=now,
    )

    next_step = stm_updates.advance_learning_step(0, rating)
    if stm_updates.should_graduate(params, next_step, rating):
        return _graduate(started, now, params)
    return _stay_on_ladder(started, rating, next_step, now, params)


def _current_memory(card: CardState, params: SchedulerParameters) -> tuple[float, float]:
    """Difficulty/stability of a reviewed card, initialised as Good if missing."""
    difficulty = card.difficulty
    if difficulty <= 0:
        difficulty = ltm_updates.init_difficulty(params.w, Rating.GOOD)
    stability = card.stability
    if stability <= 0:
        stability = ltm_updates.init_stability(params.w, Rating.GOOD)
    return ltm_updates.clamp_difficulty(difficulty), stability


def _review_learning(
    card: CardState,
    rating: Rating,
    now: datetime,
    params: SchedulerParameters
) -> CardState:
    """
    Review of a LEARNING/RELEARNING card on the minute-scale ladder.

    - Again: back to step 0, shown again after learning_steps[AGAIN] minutes;
      counts as a lapse only when RELEARNING
    - Hard/Good: climb one step; graduate once graduation_steps is reached
    - Easy: graduate immediately

    Graduation runs the long-term update, treating the time since the
    last step as the first long-term interval.
    """
    difficulty, stability = _current_memory(card, params)
    elapsed = elapsed_days_between(card.last_review_at, now)
    retrievability = calculate_retrievability(stability, elapsed)

    reviewed = card.replace(
        difficulty=difficulty,
        stability=stability,
        retrievability=retrievability,
        elapsed_days=elapsed,
        reps=_count_rep(card, rating),
        last_review_at=now,
    )

    if rating == Rating.AGAIN:
        # Failing a relearning step is another lapse; initial learning is not
        lapses = card.lapses + 1 if card.state == CardStatus.RELEARNING else card.lapses
        reviewed = reviewed.replace(
            stability=stm_updates.stability_after_step_failure(stability),
            lapses=lapses,
        )
        return _stay_on_ladder(reviewed, rating, 0, now, params)

    next_step = stm_updates.advance_learning_step(card.learning_step, rating)
    if not stm_updates.should_graduate(params, next_step, rating):
        return _stay_on_ladder(reviewed, rating, next_step, now, params)

    new_difficulty = ltm_updates.next_difficulty(params.w, difficulty, rating)
    new_stability = ltm_updates.stability_after_success(
        params, new_difficulty, stability, retrievability, rating
    )
    graduated = reviewed.replace(difficulty=new_difficulty, stability=new_stability)
    return _graduate(graduated, now, params)


def _review_long_term(
    card: CardState,
    rating: Rating,
    now: datetime,
    params: SchedulerParameters
) -> CardState:
    """
    Review of a graduated REVIEW card.

    - Again: lapse; stability collapses and the card re-enters the ladder
      as RELEARNING
    - Hard/Good/Easy: stability grows, next interval in whole days
    """
    difficulty, stability = _current_memory(card, params)
    elapsed = elapsed_days_between(card.last_review_at, now)
    retrievability = calculate_retrievability(stability, elapsed)
    new_difficulty = ltm_updates.next_difficulty(params.w, difficulty, rating)

    if rating == Rating.AGAIN:
        lapsed = card.replace(
            state=CardStatus.RELEARNING,
            difficulty=new_difficulty,
            stability=ltm_updates.stability_after_failure(
                params.w, new_difficulty, stability, retrievability
            ),
            retrievability=retrievability,
            elapsed_days=elapsed,
            lapses=card.lapses + 1,
            last_review_at=now,
        )
        return _stay_on_ladder(lapsed, rating, 0, now, params)

    recalled = card.replace(
        difficulty=new_difficulty,
        stability=ltm_updates.stability_after_success(
            params, new_difficulty, stability, retrievability, rating
        ),
        retrievability=retrievability,
        elapsed_days=elapsed,
        reps=_count_rep(card, rating),
        last_review_at=now,
    )
    return _graduate(recalled, now, params)
