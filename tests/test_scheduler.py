import random
from datetime import datetime, timedelta

import pytest

from vocab_core.fsrs import ltm_updates
from vocab_core.fsrs.constants import D_MAX, D_MIN, CardStatus, Rating
from vocab_core.fsrs.exceptions import ContractViolation
from vocab_core.fsrs.memory_state import calculate_retrievability, create_initial
from vocab_core.fsrs.parameters import SchedulerParameters
from vocab_core.fsrs.scheduler import preview, process_review, schedule


# ---- First review ----

def test_first_review_easy_skips_learning(t0, params):
    card = schedule(create_initial(t0), Rating.EASY, t0, params)
    assert card.state == CardStatus.REVIEW
    assert card.is_learning_phase is False
    assert card.learning_step == 0
    assert card.reps == 1
    assert card.difficulty == pytest.approx(4.93 - 0.94)
    assert card.stability == pytest.approx(5.8)
    assert card.scheduled_days == 6
    assert card.due_at == t0 + timedelta(days=6)
    assert card.last_review_at == t0
    assert card.elapsed_days == 0


@pytest.mark.parametrize("rating, step, minutes, stability", [
    (Rating.AGAIN, 0, 1, 0.4),
    (Rating.HARD, 1, 5, 0.6),
    (Rating.GOOD, 1, 10, 2.4),
])
def test_first_review_enters_learning(t0, params, rating, step, minutes, stability):
    card = schedule(create_initial(t0), rating, t0, params)
    assert card.state == CardStatus.LEARNING
    assert card.is_learning_phase is True
    assert card.learning_step == step
    assert card.stability == pytest.approx(stability)
    assert card.due_at == t0 + timedelta(minutes=minutes)
    assert card.scheduled_days == 0
    assert card.lapses == 0
    assert card.last_review_at == t0


def test_first_review_again_is_not_a_rep(t0, params):
    card = schedule(create_initial(t0), Rating.AGAIN, t0, params)
    assert card.reps == 0


# ---- Learning ladder ----

def test_good_twice_graduates(t0, params):
    card = schedule(create_initial(t0), Rating.GOOD, t0, params)
    assert card.state == CardStatus.LEARNING

    now = card.due_at
    card = schedule(card, Rating.GOOD, now, params)
    assert card.state == CardStatus.REVIEW
    assert card.is_learning_phase is False
    assert card.learning_step == 0
    assert card.reps == 2
    assert card.stability >= 2.4
    assert 1 <= card.scheduled_days <= params.maximum_interval
    assert card.due_at == now + timedelta(days=card.scheduled_days)


def test_graduation_is_deterministic(t0, params):
    def run():
        card = schedule(create_initial(t0), Rating.GOOD, t0, params)
        return schedule(card, Rating.GOOD, t0 + timedelta(minutes=10), params)

    assert run() == run()


def test_hard_climbs_the_ladder(t0, params):
    card = schedule(create_initial(t0), Rating.HARD, t0, params)
    card = schedule(card, Rating.HARD, t0 + timedelta(minutes=5), params)
    assert card.state == CardStatus.REVIEW


def test_three_consecutive_again_never_graduates(t0, params):
    card = create_initial(t0)
    now = t0
    for _ in range(3):
        card = schedule(card, Rating.AGAIN, now, params)
        assert card.state == CardStatus.LEARNING
        assert card.is_learning_phase is True
        assert card.learning_step == 0
        assert card.due_at == now + timedelta(minutes=1)
        assert card.lapses == 0
        now = card.due_at


def test_again_resets_learning_step(t0, params):
    card = schedule(create_initial(t0), Rating.GOOD, t0, params)
    assert card.learning_step == 1
    card = schedule(card, Rating.AGAIN, t0 + timedelta(minutes=10), params)
    assert card.learning_step == 0
    assert card.state == CardStatus.LEARNING
    assert card.stability == pytest.approx(1.2)


def test_easy_graduates_from_any_step(t0, params):
    card = schedule(create_initial(t0), Rating.AGAIN, t0, params)
    card = schedule(card, Rating.EASY, t0 + timedelta(minutes=1), params)
    assert card.state == CardStatus.REVIEW
    assert card.is_learning_phase is False
    assert card.scheduled_days >= 1


def test_custom_graduation_steps(t0):
    params = SchedulerParameters(graduation_steps=3)
    card = create_initial(t0)
    now = t0
    statuses = []
    for _ in range(3):
        card = schedule(card, Rating.GOOD, now, params)
        statuses.append(card.state)
        now = card.due_at
    assert statuses == [CardStatus.LEARNING, CardStatus.LEARNING, CardStatus.REVIEW]


def test_single_step_ladder_graduates_on_first_good(t0):
    params = SchedulerParameters(graduation_steps=1)
    card = schedule(create_initial(t0), Rating.GOOD, t0, params)
    assert card.state == CardStatus.REVIEW
    assert card.scheduled_days == 2


def test_custom_learning_steps(t0):
    params = SchedulerParameters(learning_steps={1: 2, 2: 7, 3: 15, 4: 30})
    card = schedule(create_initial(t0), Rating.GOOD, t0, params)
    assert card.due_at == t0 + timedelta(minutes=15)


# ---- Long-term review ----

@pytest.mark.parametrize("rating", [Rating.HARD, Rating.GOOD, Rating.EASY])
def test_success_never_decreases_stability(t0, params, make_review_card, rating):
    for stability in (0.5, 3.0, 30.0, 200.0):
        for elapsed in (0.0, 1.0, stability, stability * 4):
            card = make_review_card(stability=stability, elapsed=elapsed)
            after = schedule(card, rating, t0, params)
            assert after.stability >= card.stability
            assert after.state == CardStatus.REVIEW
            assert after.reps == card.reps + 1
            assert after.lapses == card.lapses


def test_review_records_pre_update_retrievability(t0, params, make_review_card):
    card = make_review_card(stability=10.0, elapsed=12.0)
    after = schedule(card, Rating.GOOD, t0, params)
    assert after.elapsed_days == pytest.approx(12.0)
    assert after.retrievability == pytest.approx(calculate_retrievability(10.0, 12.0))
    assert after.last_review_at == t0
    assert after.due_at == t0 + timedelta(days=after.scheduled_days)


def test_review_updates_difficulty(t0, params, make_review_card):
    card = make_review_card(difficulty=6.0)
    assert schedule(card, Rating.EASY, t0, params).difficulty < 6.0
    assert schedule(card, Rating.AGAIN, t0, params).difficulty > 6.0


@pytest.mark.parametrize("stability", [1.0, 30.0, 300.0])
def test_lapse_enters_relearning(t0, params, make_review_card, stability):
    card = make_review_card(stability=stability, lapses=2)
    after = schedule(card, Rating.AGAIN, t0, params)
    assert after.state == CardStatus.RELEARNING
    assert after.is_learning_phase is True
    assert after.learning_step == 0
    assert after.lapses == 3
    assert after.reps == card.reps


def test_mature_card_forgotten(t0, params, make_review_card):
    card = make_review_card(stability=30.0, elapsed=30.0)
    after = schedule(card, Rating.AGAIN, t0, params)
    assert after.stability < 30.0
    assert after.state == CardStatus.RELEARNING
    assert after.due_at == t0 + timedelta(minutes=1)
    assert after.scheduled_days == 0


def test_relearning_graduates_back_to_review(t0, params, make_review_card):
    card = schedule(make_review_card(stability=30.0), Rating.AGAIN, t0, params)
    lapsed_stability = card.stability

    card = schedule(card, Rating.AGAIN, t0 + timedelta(minutes=1), params)
    assert card.state == CardStatus.RELEARNING
    assert card.lapses == 2

    card = schedule(card, Rating.GOOD, t0 + timedelta(minutes=2), params)
    assert card.state == CardStatus.RELEARNING
    card = schedule(card, Rating.GOOD, t0 + timedelta(minutes=12), params)
    assert card.state == CardStatus.REVIEW
    assert card.lapses == 2
    assert card.stability < lapsed_stability


def test_again_while_relearning_counts_as_lapse(t0, params, make_review_card):
    card = schedule(make_review_card(stability=30.0), Rating.AGAIN, t0, params)
    assert card.state == CardStatus.RELEARNING
    assert card.lapses == 1

    card = schedule(card, Rating.AGAIN, t0 + timedelta(minutes=1), params)
    assert card.state == CardStatus.RELEARNING
    assert card.lapses == 2
    assert card.reps == 3


def test_interval_respects_maximum(t0, make_review_card):
    params = SchedulerParameters(maximum_interval=30)
    after = schedule(make_review_card(stability=100.0, elapsed=100.0), Rating.EASY, t0, params)
    assert after.scheduled_days == 30
    assert after.stability > 100.0


def test_lower_retention_gives_longer_intervals(t0, make_review_card):
    card = make_review_card(stability=20.0)
    strict = schedule(card, Rating.GOOD, t0, SchedulerParameters(request_retention=0.95))
    loose = schedule(card, Rating.GOOD, t0, SchedulerParameters(request_retention=0.8))
    assert strict.stability == loose.stability
    assert strict.scheduled_days < loose.scheduled_days


# ---- Properties over random review histories ----

@pytest.mark.parametrize("seed", range(5))
@pytest.mark.parametrize("maximum_interval", [365, 20])
def test_random_histories_stay_in_bounds(t0, seed, maximum_interval):
    rng = random.Random(seed)
    params = SchedulerParameters(maximum_interval=maximum_interval)
    card = create_initial(t0)
    now = t0
    for _ in range(60):
        rating = rng.choice(list(Rating))
        before = card
        card = schedule(card, rating, now, params)

        assert D_MIN <= card.difficulty <= D_MAX
        assert card.stability > 0
        assert 0.0 <= card.retrievability <= 1.0
        if card.state == CardStatus.REVIEW:
            assert 1 <= card.scheduled_days <= params.maximum_interval
            assert card.is_learning_phase is False
        else:
            assert card.is_learning_phase is True
        if before.state == CardStatus.REVIEW and rating != Rating.AGAIN:
            assert card.stability >= before.stability

        # Sometimes review early, sometimes late
        now = card.due_at + timedelta(hours=rng.uniform(-12, 72))
        if now < card.last_review_at:
            now = card.last_review_at


# ---- Review log and preview ----

def test_process_review_returns_log(t0, params, make_review_card):
    card = make_review_card(stability=10.0, difficulty=5.0)
    after, log = process_review(card, 3, t0, params)
    assert log.rating == Rating.GOOD
    assert log.reviewed_at == t0
    assert log.status_before == CardStatus.REVIEW
    assert log.status_after == after.state
    assert log.stability_before == 10.0
    assert log.stability_after == after.stability
    assert log.difficulty_before == 5.0
    assert log.difficulty_after == after.difficulty
    assert log.scheduled_days == after.scheduled_days
    assert log.elapsed_days == pytest.approx(10.0)

    row = log.to_dict()
    assert row["rating"] == 3
    assert row["state_before"] == "review"
    assert row["reviewed_at"] == t0.isoformat()


def test_schedule_does_not_mutate_input(t0, params, make_review_card):
    card = make_review_card()
    snapshot = card.replace()
    schedule(card, Rating.AGAIN, t0, params)
    assert card == snapshot


def test_preview_covers_every_rating(t0, params, make_review_card):
    outcomes = preview(make_review_card(stability=10.0), t0, params)
    assert set(outcomes) == set(Rating)
    assert outcomes[Rating.AGAIN].state == CardStatus.RELEARNING
    assert (
        outcomes[Rating.HARD].scheduled_days
        <= outcomes[Rating.GOOD].scheduled_days
        <= outcomes[Rating.EASY].scheduled_days
    )


# ---- Contract violations ----

@pytest.mark.parametrize("rating", [0, 5, -1, "3", None, True])
def test_invalid_rating_rejected(t0, params, rating):
    with pytest.raises(ContractViolation):
        schedule(create_initial(t0), rating, t0, params)


def test_plain_int_rating_accepted(t0, params):
    assert schedule(create_initial(t0), 4, t0, params).state == CardStatus.REVIEW


def test_new_card_with_reps_rejected(t0, params):
    card = create_initial(t0).replace(reps=1)
    with pytest.raises(ContractViolation):
        schedule(card, Rating.GOOD, t0, params)


def test_naive_timestamp_rejected(t0, params):
    with pytest.raises(ContractViolation):
        schedule(create_initial(t0), Rating.GOOD, datetime(2024, 3, 1, 9, 0), params)


def test_inconsistent_phase_rejected(t0, params, make_review_card):
    with pytest.raises(ContractViolation):
        schedule(make_review_card().replace(is_learning_phase=True), Rating.GOOD, t0, params)
    learning = schedule(create_initial(t0), Rating.GOOD, t0, params)
    with pytest.raises(ContractViolation):
        schedule(learning.replace(is_learning_phase=False), Rating.GOOD, t0, params)


def test_reviewed_card_without_timestamp_rejected(t0, params, make_review_card):
    with pytest.raises(ContractViolation):
        schedule(make_review_card().replace(last_review_at=None), Rating.GOOD, t0, params)


def test_missing_memory_is_initialised_as_good(t0, params, make_review_card):
    card = make_review_card().replace(stability=0.0, difficulty=0.0)
    after = schedule(card, Rating.GOOD, t0, params)
    assert after.difficulty >= D_MIN
    assert after.stability >= ltm_updates.init_stability(params.w, Rating.GOOD)
