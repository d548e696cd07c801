from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .cards import Card
from .errors import ConfigurationError
from .evaluator import HandEvaluation


class Stage(str, Enum):
    IDLE = "IDLE"
    DEALING = "DEALING"
    BETTING = "BETTING"
    SETTLED = "SETTLED"


class ActionType(str, Enum):
    SEE_CARDS = "SEE_CARDS"
    CALL = "CALL"
    RAISE = "RAISE"
    ALL_IN = "ALL_IN"
    FOLD = "FOLD"
    COMPARE = "COMPARE"


class PlayerKind(str, Enum):
    HUMAN = "HUMAN"
    AUTOMATED = "AUTOMATED"


@dataclass
class TableConfig:
    automated_seats: int = 3
    starting_stack: int = 1_000
    ante: int = 10
    round_cap: int = 5
    pot_cap: int = 1_000
    decision_timeout_ms: int = 15_000

    def validate(self) -> None:
        if not 1 <= self.automated_seats <= 5:
            raise ConfigurationError("automated_seats must be between 1 and 5")
        for name in ("starting_stack", "ante", "round_cap", "pot_cap", "decision_timeout_ms"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")


@dataclass
class PlayerSeat:
    seat: int
    name: str
    kind: PlayerKind
    stack: int
    hand: List[Card] = field(default_factory=list)
    has_looked: bool = False
    has_folded: bool = False
    is_winner: bool = False
    total_in_pot: int = 0

    def reset_for_hand(self) -> None:
        self.hand.clear()
        self.has_looked = False
        self.has_folded = False
        self.is_winner = False
        self.total_in_pot = 0

    def public_view(self) -> Dict[str, Any]:
        return {
            "seat": self.seat,
            "name": self.name,
            "kind": self.kind.value,
            "stack": self.stack,
            "has_looked": self.has_looked,
            "has_folded": self.has_folded,
            "is_winner": self.is_winner,
        }


@dataclass(frozen=True)
class Action:
    kind: ActionType
    # Raise increment on top of the current base unit; ignored by every other kind.
    amount: Optional[int] = None

    @classmethod
    def parse(cls, kind: str, amount: Optional[int] = None) -> "Action":
        return cls(ActionType(kind), amount)


@dataclass
class ActionResult:
    accepted: bool
    seat: Optional[int]
    action: Optional[Action]
    events: List[Dict[str, Any]] = field(default_factory=list)
    error_code: Optional[str] = None
    error_msg: Optional[str] = None


@dataclass
class TableView:
    """What a decision provider may see when it is asked to act."""

    seat: int
    players: List[Dict[str, Any]]
    pot: int
    base_unit: int
    round_number: int
    ante: int
    pot_cap: int
    round_cap: int
    stack: int
    has_looked: bool
    legal: List[ActionType]
    hand: Optional[List[str]] = None
    evaluation: Optional[HandEvaluation] = None

    def opponents(self) -> List[Dict[str, Any]]:
        return [p for p in self.players if p["seat"] != self.seat and not p["has_folded"]]
