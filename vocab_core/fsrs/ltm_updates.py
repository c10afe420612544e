"""
Long-Term Memory (LTM) Updates

Implements the FSRS-4.5 difficulty and stability formulas and the
day-scale interval derivation.

Key principles:
- Successful recall never lowers stability
- Gains are larger when recall was less likely (low R) and the item is easier
- A lapse collapses stability, but never above its pre-lapse value
- Rounding to whole days happens only in next_interval()

Numeric degeneracy (NaN, infinities, values outside the documented range)
is clamped to the nearest valid value and logged, never raised.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from vocab_core.fsrs.constants import (
    D_MAX,
    D_MIN,
    S_MIN,
    STABILITY_RETENTION,
    Rating,
)
from vocab_core.fsrs.parameters import SchedulerParameters

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _finite_or(value: float, fallback: float, label: str) -> float:
    """Replace NaN/inf with a fallback, logging the degeneracy."""
    if math.isfinite(value):
        return value
    logger.warning("Non-finite %s (%r); using %r", label, value, fallback)
    return fallback


def clamp_difficulty(difficulty: float) -> float:
    """Clamp difficulty to [D_MIN, D_MAX]; NaN maps to the midpoint."""
    if math.isnan(difficulty):
        logger.warning("NaN difficulty; using %r", (D_MIN + D_MAX) / 2)
        return (D_MIN + D_MAX) / 2
    return _clamp(difficulty, D_MIN, D_MAX)


def init_difficulty(w: Sequence[float], rating: Rating) -> float:
    """
    Difficulty after the first review.

    Formula: D0(G) = w4 - (G - 3) * w5, clipped to [1, 10]
    """
    return clamp_difficulty(w[4] - (int(rating) - 3) * w[5])


def init_stability(w: Sequence[float], rating: Rating) -> float:
    """
    Stability after the first review: one constant per rating (w0..w3).
    """
    return max(S_MIN, _finite_or(w[int(rating) - 1], S_MIN, "initial stability"))


def next_difficulty(w: Sequence[float], difficulty: float, rating: Rating) -> float:
    """
    Update difficulty after a day-scale review.

    Formula:
        D' = clip(D - w6 * (G - 3), 1, 10)
        D'' = clip(w7 * D0(EASY) + (1 - w7) * D', 1, 10)

    A rating above Good lowers difficulty, below Good raises it. The mean
    reversion toward the easy-item baseline D0(EASY) keeps difficulty from
    drifting to the boundaries after many reviews.

    The step sign is the FSRS-4.5 one, D - w6 * (G - 3). The form
    D + w6 * (G - 3) would make an Easy review raise difficulty, which
    inverts the "higher = harder" scale.
    """
    stepped = clamp_difficulty(difficulty - w[6] * (int(rating) - 3))
    baseline = init_difficulty(w, Rating.EASY)
    reverted = w[7] * baseline + (1.0 - w[7]) * stepped
    return clamp_difficulty(reverted)


def stability_after_success(
    params: SchedulerParameters,
    difficulty: float,
    stability: float,
    retrievability: float,
    rating: Rating
) -> float:
    """
    Update stability after a successful recall (Hard/Good/Easy).

    Formula:
        S' = S * (1 + e^w8 * (11 - D) * S^-w9 * (e^(w10 * (1 - R)) - 1)
                    * hard_penalty * easy_bonus)

    Where hard_penalty (w15) applies only to Hard and easy_bonus (w16)
    only to Easy.

    Args:
        params: Scheduler parameters
        difficulty: Difficulty after this review's update
        stability: Stability before the review
        retrievability: R at the moment of the review
        rating: HARD, GOOD or EASY

    Returns:
        New stability, never below the previous one
    """
    if rating == Rating.AGAIN:
        raise ValueError("Use stability_after_failure for AGAIN ratings")

    w = params.w
    s = max(S_MIN, stability)
    hard_penalty = params.hard_penalty if rating == Rating.HARD else 1.0
    easy_bonus = params.easy_bonus if rating == Rating.EASY else 1.0

    try:
        growth = (
            math.exp(w[8])
            * (11.0 - difficulty)
            * math.pow(s, -w[9])
            * (math.exp(w[10] * (1.0 - retrievability)) - 1.0)
            * hard_penalty
            * easy_bonus
        )
    except OverflowError:
        growth = math.inf
    new_stability = _finite_or(s * (1.0 + growth), s, "stability after success")

    # Successful recall never weakens memory
    return max(s, new_stability)


def stability_after_failure(
    w: Sequence[float],
    difficulty: float,
    stability: float,
    retrievability: float
) -> float:
    """
    Update stability after a lapse (Again on a Review card).

    Formula:
        S' = w11 * D^-w12 * ((S + 1)^w13 - 1) * e^(w14 * (1 - R))

    Clipped to [S_MIN, S].
    """
    s = max(S_MIN, stability)
    try:
        new_stability = (
            w[11]
            * math.pow(difficulty, -w[12])
            * (math.pow(s + 1.0, w[13]) - 1.0)
            * math.exp(w[14] * (1.0 - retrievability))
        )
    except OverflowError:
        new_stability = math.inf
    new_stability = _finite_or(new_stability, S_MIN, "stability after failure")
    return _clamp(new_stability, S_MIN, s)


def next_interval(params: SchedulerParameters, stability: float) -> int:
    """
    Days until the next review.

    Formula:
        I = S * ln(request_retention) / ln(0.9)

    Rounded to a whole day and clipped to [1, maximum_interval]. This is
    the only place where rounding happens.
    """
    raw = stability * math.log(params.request_retention) / math.log(STABILITY_RETENTION)
    if math.isnan(raw):
        logger.warning("NaN interval from stability %r; using 1 day", stability)
        return 1
    if math.isinf(raw):
        return params.maximum_interval if raw > 0 else 1
    return int(_clamp(round(raw), 1, params.maximum_interval))
