"""
FSRS - Free Spaced Repetition Scheduler

Main API for the vocabulary learning system.

This package implements the FSRS-4.5 scheduling engine with:
- A four-state card lifecycle (New, Learning, Review, Relearning)
- A minute-scale learning ladder for new and lapsed cards
- Long-term stability/difficulty updates on a power forgetting curve
- Interpretable memory state (Stability, Difficulty, Retrievability)

Quick start:
    from datetime import datetime, timezone
    from vocab_core import fsrs

    now = datetime.now(timezone.utc)
    card = fsrs.create_initial(now)

    # Process a review (algorithm only, no DB calls)
    card, review_log = fsrs.process_review(card, fsrs.Rating.GOOD, now)
"""

# Core scheduler API (algorithm logic)
from vocab_core.fsrs.scheduler import (
    preview,
    process_review,
    schedule,
    validate_review_input,
)

# Configuration
from vocab_core.fsrs.parameters import (
    DEFAULT_PARAMETERS,
    SchedulerParameters,
    load_parameters,
)

# Constants and enums
from vocab_core.fsrs.constants import (
    CardStatus,
    MasteryLevel,
    Rating,
    S_MIN,
    D_MIN,
    D_MAX,
)

# Memory state
from vocab_core.fsrs.memory_state import (
    CardState,
    calculate_retrievability,
    create_initial,
    current_retrievability,
    elapsed_days_between,
    is_due,
    mastery_level,
)

from vocab_core.fsrs.review_log import ReviewLog
from vocab_core.fsrs.exceptions import (
    ContractViolation,
    FSRSError,
    InvalidParametersError,
)


__all__ = [
    # Core algorithm
    "schedule",
    "process_review",
    "preview",
    "validate_review_input",

    # Configuration
    "SchedulerParameters",
    "DEFAULT_PARAMETERS",
    "load_parameters",

    # Enums
    "Rating",
    "CardStatus",
    "MasteryLevel",

    # Memory state
    "CardState",
    "ReviewLog",
    "create_initial",
    "calculate_retrievability",
    "current_retrievability",
    "elapsed_days_between",
    "is_due",
    "mastery_level",

    # Errors
    "FSRSError",
    "ContractViolation",
    "InvalidParametersError",

    # Bounds
    "S_MIN",
    "D_MIN",
    "D_MAX",
]
