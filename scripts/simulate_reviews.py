"""
Simulate a sequence of reviews of one card and print its state after each.

Useful for eyeballing how parameter changes (.env / FSRS_* variables)
affect intervals.

Usage:
    python -m scripts.simulate_reviews --ratings 3,3,3,1,3,4
    python -m scripts.simulate_reviews --ratings 1,1,1 --verbose
"""

import argparse
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from vocab_core import fsrs
from vocab_core.fsrs.constants import Rating


def parse_ratings(raw: str) -> list[Rating]:
    """Parse '3,3,1' or 'good,good,again' into ratings."""
    ratings = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if part.isdigit():
            ratings.append(Rating(int(part)))
        else:
            ratings.append(Rating[part.upper()])
    return ratings


def simulate(
    ratings: list[Rating],
    params: fsrs.SchedulerParameters,
    start: datetime,
    interval_days: Optional[float] = None
) -> list[fsrs.CardState]:
    """
    Review a fresh card with each rating in turn.

    Each review happens when the card falls due, or every `interval_days`
    days when given.
    """
    card = fsrs.create_initial(start)
    now = start
    history = []
    for rating in ratings:
        card = fsrs.schedule(card, rating, now, params)
        history.append(card)
        if interval_days is None:
            now = card.due_at
        else:
            now = now + timedelta(days=interval_days)
    return history


def main():
    parser = argparse.ArgumentParser(
        description="Simulate FSRS scheduling for a single card"
    )
    parser.add_argument(
        "--ratings",
        required=True,
        help="Comma-separated ratings: 1-4 or again/hard/good/easy"
    )
    parser.add_argument(
        "--interval-days",
        type=float,
        help="Fixed gap between reviews (default: review exactly when due)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every transition"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        ratings = parse_ratings(args.ratings)
    except (KeyError, ValueError) as e:
        parser.error(f"invalid rating in --ratings: {e}")

    params = fsrs.load_parameters()
    start = datetime.now(timezone.utc)
    history = simulate(ratings, params, start, args.interval_days)

    print(f"{'#':>3} {'rating':<6} {'state':<10} {'S':>8} {'D':>6} {'R':>6} {'days':>6}  due")
    print("-" * 72)
    for idx, (rating, card) in enumerate(zip(ratings, history), start=1):
        print(
            f"{idx:>3} {rating.name:<6} {card.state.value:<10} "
            f"{card.stability:>8.2f} {card.difficulty:>6.2f} {card.retrievability:>6.2f} "
            f"{card.scheduled_days:>6.0f}  {card.due_at:%Y-%m-%d %H:%M}"
        )


if __name__ == "__main__":
    main()
