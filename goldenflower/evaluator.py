from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence, Tuple

from .cards import Card

ACE = 14


class HandType(IntEnum):
    # Ordinal order is the comparison order; INVALID sits below every real hand.
    INVALID = -1
    HIGH_CARD = 0
    PAIR = 1
    STRAIGHT = 2
    FLUSH = 3
    STRAIGHT_FLUSH = 4
    TRIO = 5


HAND_NAMES = {
    HandType.INVALID: "invalid",
    HandType.HIGH_CARD: "high_card",
    HandType.PAIR: "pair",
    HandType.STRAIGHT: "straight",
    HandType.FLUSH: "flush",
    HandType.STRAIGHT_FLUSH: "straight_flush",
    HandType.TRIO: "trio",
}


@dataclass(frozen=True)
class HandEvaluation:
    hand_type: HandType
    ranks: Tuple[int, ...]
    score: int

    @property
    def name(self) -> str:
        return HAND_NAMES[self.hand_type]

    def as_dict(self) -> dict:
        return {"type": self.name, "ranks": list(self.ranks), "score": self.score}


INVALID_HAND = HandEvaluation(HandType.INVALID, (), 0)


def evaluate_hand(cards: Sequence[Card]) -> HandEvaluation:
    """Classify a three-card hand.

    Returns the hand type, the tie-break key compared element-wise by
    ``compare_hands`` and an advisory 0-100 strength score. Anything other
    than exactly three cards evaluates to ``INVALID_HAND``.

    A-3-2 counts as a straight keyed ``(3, 2, 1)``, so it is the lowest
    straight (below 4-3-2) while still beating every non-straight.
    """
    if len(cards) != 3:
        return INVALID_HAND

    ranks = sorted((card.rank for card in cards), reverse=True)
    high, mid, low = ranks

    is_flush = len({card.suit for card in cards}) == 1
    straight_key = _straight_key(high, mid, low)

    if high == mid == low:
        hand_type = HandType.TRIO
        key: Tuple[int, ...] = (high,)
    elif is_flush and straight_key:
        hand_type = HandType.STRAIGHT_FLUSH
        key = straight_key
    elif is_flush:
        hand_type = HandType.FLUSH
        key = (high, mid, low)
    elif straight_key:
        hand_type = HandType.STRAIGHT
        key = straight_key
    elif high == mid or mid == low:
        hand_type = HandType.PAIR
        # Sorted ranks put the pair in the middle slot either way.
        key = (mid, low if high == mid else high)
    else:
        hand_type = HandType.HIGH_CARD
        key = (high, mid, low)

    return HandEvaluation(hand_type, key, _score(hand_type, key))


def _straight_key(high: int, mid: int, low: int) -> Tuple[int, ...]:
    if (high, mid, low) == (ACE, 3, 2):
        return (3, 2, 1)
    if high == mid + 1 and mid == low + 1:
        return (high, mid, low)
    return ()


def _score(hand_type: HandType, key: Tuple[int, ...]) -> int:
    # Bands never overlap: high card 6-24, pair 40-52, straight 55-66,
    # flush 67-73, straight flush 74-85, trio 86-97 (AAA pinned to 100).
    top = key[0]
    if hand_type == HandType.TRIO:
        return 100 if top == ACE else 86 + (top - 2)
    if hand_type == HandType.STRAIGHT_FLUSH:
        return 74 + (top - 3)
    if hand_type == HandType.FLUSH:
        return int(65 + (top - 2) * 0.7)
    if hand_type == HandType.STRAIGHT:
        return 55 + (top - 3)
    if hand_type == HandType.PAIR:
        return 40 + (top - 2)
    return (top - 2) * 2


def compare_hands(first: HandEvaluation, second: HandEvaluation) -> int:
    """Positive if ``first`` wins, negative if ``second`` wins, 0 on a true tie."""
    if first.hand_type != second.hand_type:
        return int(first.hand_type) - int(second.hand_type)
    for left, right in zip(first.ranks, second.ranks):
        if left != right:
            return left - right
    return 0


DISPLAY_NAMES = {
    "en": {
        HandType.TRIO: "Trio",
        HandType.STRAIGHT_FLUSH: "Straight Flush",
        HandType.FLUSH: "Flush",
        HandType.STRAIGHT: "Straight",
        HandType.PAIR: "Pair",
        HandType.HIGH_CARD: "High Card",
    },
    "zh": {
        HandType.TRIO: "豹子",
        HandType.STRAIGHT_FLUSH: "顺金",
        HandType.FLUSH: "金花",
        HandType.STRAIGHT: "顺子",
        HandType.PAIR: "对子",
        HandType.HIGH_CARD: "单张",
    },
}
UNKNOWN_NAMES = {"en": "Unknown", "zh": "未知"}


def describe_hand(evaluation: HandEvaluation, locale: str = "en") -> str:
    """Table-facing name of the hand type, e.g. ``"Straight Flush"`` or ``"顺金"``."""
    if locale not in DISPLAY_NAMES:
        raise ValueError(f"Unsupported locale {locale!r}")
    return DISPLAY_NAMES[locale].get(evaluation.hand_type, UNKNOWN_NAMES[locale])
