"""
Review Log - immutable audit record of one scheduling call

The engine never persists anything. process_review() returns a ReviewLog
alongside the new CardState; the persistence layer stores both atomically.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from vocab_core.fsrs.constants import CardStatus, Rating
from vocab_core.fsrs.memory_state import CardState


@dataclass(frozen=True)
class ReviewLog:
    """State before/after a single review."""
    rating: Rating
    reviewed_at: datetime

    status_before: CardStatus
    status_after: CardStatus

    difficulty_before: float
    difficulty_after: float
    stability_before: float
    stability_after: float

    retrievability: float  # R at the moment of the review
    elapsed_days: float
    scheduled_days: float
    due_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Flat dict ready for an insert into a review-log table."""
        return {
            "rating": int(self.rating),
            "reviewed_at": self.reviewed_at.isoformat(),
            "state_before": self.status_before.value,
            "state_after": self.status_after.value,
            "difficulty_before": self.difficulty_before,
            "difficulty_after": self.difficulty_after,
            "stability_before": self.stability_before,
            "stability_after": self.stability_after,
            "retrievability": self.retrievability,
            "elapsed_days": self.elapsed_days,
            "scheduled_days": self.scheduled_days,
            "due_at": self.due_at.isoformat(),
        }


def build_review_log(
    before: CardState,
    after: CardState,
    rating: Rating,
    reviewed_at: datetime
) -> ReviewLog:
    """Capture the transition from `before` to `after`."""
    return ReviewLog(
        rating=rating,
        reviewed_at=reviewed_at,
        status_before=before.state,
        status_after=after.state,
        difficulty_before=before.difficulty,
        difficulty_after=after.difficulty,
        stability_before=before.stability,
        stability_after=after.stability,
        retrievability=after.retrievability,
        elapsed_days=after.elapsed_days,
        scheduled_days=after.scheduled_days,
        due_at=after.due_at,
    )
