"""
Review outcome processing: turns a card plus a rating into its next scheduling state.

Two interchangeable policies operate on the same Card type:
1. Fixed-Interval: rating maps straight to a time offset.
2. Adaptive-Ease: SM-2 style ease/interval update plus an
   exponential moving average of recall difficulty.

Policies are pure. They never mutate the card they are given.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Literal

from primonotes.domain.constants import (
    AGAIN_EASE_PENALTY,
    DEFAULT_EASE_FACTOR,
    DIFFICULTY_RAW_SCORES,
    DIFFICULTY_WEIGHT,
    EASY_BONUS,
    FIXED_OFFSETS,
    HARD_MULTIPLIER,
    MAX_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
    NEUTRAL_DIFFICULTY,
    RELEARN_DELAY,
    SM2_QUALITY,
)
from primonotes.domain.errors import ValidationError
from primonotes.domain.models import Card, Rating

logger = logging.getLogger(__name__)

PolicyKind = Literal["fixed", "adaptive"]


class SchedulingPolicy(ABC):
    """Strategy for computing a card's next scheduling state after a rating."""

    kind: PolicyKind

    @abstractmethod
    def apply(self, card: Card, rating: Rating | str, now: datetime) -> Card:
        """
        Return a new Card reflecting the given rating at time `now`.

        Raises:
            ValidationError: If the rating is not one of again/hard/good/easy.
        """
        pass


class FixedIntervalPolicy(SchedulingPolicy):
    """
    Maps each rating to a fixed offset from now.

    Leaves interval, ease factor and difficulty score untouched.
    """

    kind: PolicyKind = "fixed"

    def apply(self, card: Card, rating: Rating | str, now: datetime) -> Card:
        rating = Rating.parse(rating)
        return replace(
            card,
            next_review=now + FIXED_OFFSETS[rating.value],
            review_count=card.review_count + 1,
            updated_at=now,
        )


class AdaptiveEasePolicy(SchedulingPolicy):
    """
    SM-2 derived ease/interval update with a difficulty moving average.

    The difficulty score doubles as the ranking signal for priority study.
    """

    kind: PolicyKind = "adaptive"

    def apply(self, card: Card, rating: Rating | str, now: datetime) -> Card:
        rating = Rating.parse(rating)
        difficulty = update_difficulty(card.difficulty_score, rating)

        interval = card.interval or 0
        ease = card.ease_factor or DEFAULT_EASE_FACTOR

        if rating is Rating.AGAIN:
            interval = 0
            ease = _clamp_ease(ease - AGAIN_EASE_PENALTY)
            next_review = now + RELEARN_DELAY
        else:
            ease = _clamp_ease(update_ease(ease, rating))
            interval = next_interval(interval, rating, ease)
            next_review = now + timedelta(days=interval)

        logger.debug(
            f"[adaptive] {card.id}: {rating.value} -> interval={interval} "
            f"ease={ease:.2f} difficulty={difficulty:.3f}"
        )
        return replace(
            card,
            interval=interval,
            ease_factor=ease,
            difficulty_score=difficulty,
            next_review=next_review,
            review_count=card.review_count + 1,
            updated_at=now,
        )


def update_difficulty(current: float | None, rating: Rating) -> float:
    """
    Blend the rating's raw difficulty into the running estimate.

    new = old * (1 - w) + raw * w, with w = 0.3 and old defaulting to 0.5.
    """
    old = NEUTRAL_DIFFICULTY if current is None else current
    raw = DIFFICULTY_RAW_SCORES[rating.value]
    blended = old * (1 - DIFFICULTY_WEIGHT) + raw * DIFFICULTY_WEIGHT
    if not 0.0 <= blended <= 1.0:
        logger.debug(f"Clamping difficulty score {blended} into [0, 1]")
    return max(0.0, min(1.0, blended))


def update_ease(ease: float, rating: Rating) -> float:
    """
    Standard SM-2 ease update for a passing rating (before flooring).

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    """
    q = SM2_QUALITY[rating.value]
    return ease + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))


def next_interval(interval: int, rating: Rating, ease: float) -> int:
    """
    Step the interval (days) up the graduation ladder, then grow it by a multiplier.

    `ease` is the already-updated ease factor.
    """
    easy = rating is Rating.EASY
    if interval == 0:
        return 1
    if interval == 1:
        return 4 if easy else 3
    if interval <= 4:
        return 10 if easy else 7
    if interval <= 10:
        return 20 if easy else 15

    if rating is Rating.HARD:
        multiplier = HARD_MULTIPLIER
    elif easy:
        multiplier = ease * EASY_BONUS
    else:
        multiplier = ease
    return min(_round_half_up(interval * multiplier), MAX_INTERVAL_DAYS)


def _clamp_ease(ease: float) -> float:
    if ease < MIN_EASE_FACTOR:
        logger.debug(f"Clamping ease factor {ease:.3f} to {MIN_EASE_FACTOR}")
        return MIN_EASE_FACTOR
    return ease


def _round_half_up(value: float) -> int:
    # round() uses banker's rounding; intervals round .5 upward
    return int(math.floor(value + 0.5))


_POLICIES: dict[str, type[SchedulingPolicy]] = {
    "fixed": FixedIntervalPolicy,
    "adaptive": AdaptiveEasePolicy,
}


def get_policy(kind: PolicyKind | str) -> SchedulingPolicy:
    """
    Return the scheduling policy for the given kind ("fixed" or "adaptive").
    """
    try:
        return _POLICIES[kind]()
    except KeyError:
        raise ValidationError(f"Unknown scheduling policy {kind!r} (expected 'fixed' or 'adaptive')")
