from datetime import datetime, timedelta, timezone

import pytest

from vocab_core.fsrs.constants import CardStatus
from vocab_core.fsrs.memory_state import CardState
from vocab_core.fsrs.parameters import DEFAULT_PARAMETERS


@pytest.fixture
def t0():
    return datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def params():
    return DEFAULT_PARAMETERS


@pytest.fixture
def make_review_card(t0):
    """Build a graduated REVIEW card last reviewed `elapsed` days before t0."""

    def _make(stability=10.0, difficulty=5.0, elapsed=None, reps=3, lapses=0):
        elapsed = stability if elapsed is None else elapsed
        last_review = t0 - timedelta(days=elapsed)
        return CardState(
            state=CardStatus.REVIEW,
            difficulty=difficulty,
            stability=stability,
            retrievability=0.95,
            elapsed_days=1.0,
            scheduled_days=round(stability),
            learning_step=0,
            is_learning_phase=False,
            reps=reps,
            lapses=lapses,
            last_review_at=last_review,
            due_at=last_review + timedelta(days=round(stability)),
        )

    return _make
