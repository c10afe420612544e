"""
FSRS Constants and Parameters

All default values for the FSRS engine in one place.
Weights follow the published FSRS-4.5 layout (17 parameters).
"""

from enum import Enum, IntEnum


# ---- Ratings ----

class Rating(IntEnum):
    """Learner feedback on a retrieval attempt."""
    AGAIN = 1   # Retrieval failed
    HARD = 2    # Retrieved with high effort
    GOOD = 3    # Retrieved normally
    EASY = 4    # Retrieved fluently


# ---- Card lifecycle ----

class CardStatus(str, Enum):
    """Lifecycle state of a card."""
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


class MasteryLevel(str, Enum):
    """Display label derived from status and stability."""
    NEW = "new"
    LEARNING = "learning"
    MASTERED = "mastered"


# ---- Global Constants ----

S_MIN = 0.1      # Minimum stability (days)
D_MIN = 1.0      # Minimum difficulty
D_MAX = 10.0     # Maximum difficulty

# R = (1 + t / (FACTOR * S)) ^ DECAY
FORGETTING_CURVE_FACTOR = 9.0
FORGETTING_CURVE_DECAY = -1.0
STABILITY_RETENTION = 0.9  # R when t == S

MINUTES_PER_DAY = 1440.0


# ---- Scheduler defaults ----

DEFAULT_REQUEST_RETENTION = 0.9
DEFAULT_MAXIMUM_INTERVAL = 365  # days

DEFAULT_WEIGHTS = (
    0.4, 0.6, 2.4, 5.8,       # w0-w3: initial stability per rating
    4.93, 0.94,               # w4-w5: initial difficulty
    0.86, 0.01,               # w6: difficulty step, w7: mean reversion
    1.49, 0.14, 0.94,         # w8-w10: stability gain on success
    2.18, 0.05, 0.34, 1.26,   # w11-w14: stability after a lapse
    0.29, 2.61,               # w15: hard penalty, w16: easy bonus
)
WEIGHT_COUNT = len(DEFAULT_WEIGHTS)


# ---- Short-term learning ladder ----
# Minutes until the next showing while a card is in the learning phase

DEFAULT_LEARNING_STEPS = {
    Rating.AGAIN: 1,
    Rating.HARD: 5,
    Rating.GOOD: 10,
    Rating.EASY: 60,
}

# Consecutive non-Again steps required before a card first enters Review
DEFAULT_GRADUATION_STEPS = 2


# ---- Derived views ----

MASTERED_STABILITY_DAYS = 21.0  # Stable for 3+ weeks
MINUTES_PER_REVIEW = 0.5        # Used for session time estimates
