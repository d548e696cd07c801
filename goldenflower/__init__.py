"""Golden Flower engine primitives reused by the practice server."""

from .cards import Card, RANKS, SUITS, Suit, build_deck, deal, parse_cards, shuffle_deck
from .errors import ConfigurationError, InvalidAction, ProviderFailure
from .evaluator import HandEvaluation, HandType, compare_hands, describe_hand, evaluate_hand
from .game import GameEngine, HandContext
from .ledger import BettingLedger
from .models import Action, ActionResult, ActionType, PlayerKind, PlayerSeat, Stage, TableConfig, TableView
from .providers import CallingProvider, DecisionProvider

__all__ = [
    "Card",
    "RANKS",
    "SUITS",
    "Suit",
    "build_deck",
    "deal",
    "parse_cards",
    "shuffle_deck",
    "ConfigurationError",
    "InvalidAction",
    "ProviderFailure",
    "HandEvaluation",
    "HandType",
    "compare_hands",
    "describe_hand",
    "evaluate_hand",
    "GameEngine",
    "HandContext",
    "BettingLedger",
    "Action",
    "ActionResult",
    "ActionType",
    "PlayerKind",
    "PlayerSeat",
    "Stage",
    "TableConfig",
    "TableView",
    "CallingProvider",
    "DecisionProvider",
]
