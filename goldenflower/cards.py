from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

RANKS = tuple(range(2, 15))  # 14 is the ace
RANK_LABELS = "23456789TJQKA"


class Suit(str, Enum):
    SPADE = "s"
    HEART = "h"
    CLUB = "c"
    DIAMOND = "d"

    @property
    def symbol(self) -> str:
        return SUIT_SYMBOLS[self]


SUITS = (Suit.SPADE, Suit.HEART, Suit.CLUB, Suit.DIAMOND)
SUIT_SYMBOLS = {Suit.SPADE: "♠", Suit.HEART: "♥", Suit.CLUB: "♣", Suit.DIAMOND: "♦"}


@dataclass(frozen=True)
class Card:
    suit: Suit
    rank: int

    def __post_init__(self) -> None:
        if not isinstance(self.suit, Suit):
            raise ValueError(f"Invalid suit: {self.suit}")
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}")

    @property
    def label(self) -> str:
        return f"{RANK_LABELS[self.rank - 2]}{self.suit.value}"

    @property
    def pretty(self) -> str:
        return f"{RANK_LABELS[self.rank - 2]}{self.suit.symbol}"


def build_deck() -> List[Card]:
    """All 52 cards, suit by suit, ranks ascending. Always the same order."""
    return [Card(suit, rank) for suit in SUITS for rank in RANKS]


def shuffle_deck(deck: Sequence[Card], rng: Optional[random.Random] = None) -> List[Card]:
    # random.shuffle is Fisher-Yates; work on a copy so the caller's list is untouched.
    shuffled = list(deck)
    (rng or random.Random()).shuffle(shuffled)
    return shuffled


def deal(deck: List[Card], count: int) -> List[Card]:
    if len(deck) < count:
        raise ValueError("Not enough cards left in deck")
    cards = deck[:count]
    del deck[:count]
    return cards


def cards_to_labels(cards: Sequence[Card]) -> List[str]:
    return [card.label for card in cards]


def parse_label(label: str) -> Card:
    if len(label) != 2:
        raise ValueError(f"Invalid card label: {label}")
    rank_char, suit_char = label[0].upper(), label[1].lower()
    if rank_char not in RANK_LABELS:
        raise ValueError(f"Invalid rank: {label[0]}")
    try:
        suit = Suit(suit_char)
    except ValueError:
        raise ValueError(f"Invalid suit: {label[1]}") from None
    return Card(suit, RANK_LABELS.index(rank_char) + 2)


def parse_cards(labels: Sequence[str]) -> List[Card]:
    return [parse_label(label) for label in labels]
