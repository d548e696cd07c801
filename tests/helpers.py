from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from goldenflower.cards import parse_cards
from goldenflower.game import GameEngine, HandContext
from goldenflower.models import Action, ActionResult, ActionType, PlayerKind, TableConfig, TableView


def create_engine(
    *,
    seats: int = 2,
    starting_stack: int = 1_000,
    ante: int = 10,
    round_cap: int = 5,
    pot_cap: int = 1_000,
    decision_timeout_ms: int = 15_000,
    stacks: Optional[Sequence[int]] = None,
    kind: PlayerKind = PlayerKind.HUMAN,
) -> GameEngine:
    """Instantiate an engine with ``seats`` players of the same kind."""
    engine = GameEngine(
        TableConfig(
            automated_seats=max(1, min(5, seats - 1)),
            starting_stack=starting_stack,
            ante=ante,
            round_cap=round_cap,
            pot_cap=pot_cap,
            decision_timeout_ms=decision_timeout_ms,
        )
    )
    for idx in range(seats):
        stack = stacks[idx] if stacks is not None else None
        engine.assign_seat(f"Player{idx}", kind, stack=stack)
    return engine


def start_hand(engine: GameEngine, seed: int = 42) -> HandContext:
    ctx = engine.start_hand(seed=seed)
    assert ctx is not None
    return ctx


def rig_hands(engine: GameEngine, hands: Sequence[Sequence[str]]) -> None:
    """Replace dealt cards so showdowns are deterministic."""
    for seat, labels in zip(engine.seats, hands):
        if labels:
            seat.hand = parse_cards(labels)


def act(engine: GameEngine, seat_idx: int, kind: ActionType, amount: Optional[int] = None) -> ActionResult:
    result = engine.submit_action(seat_idx, Action(kind, amount))
    assert result.accepted, f"{kind} from seat {seat_idx} rejected: {result.error_code}"
    return result


def perform_actions(engine: GameEngine, actions: Iterable[Tuple[int, ActionType, Optional[int]]]) -> None:
    """Apply a scripted sequence of actions (seat, action, amount)."""
    for seat_idx, kind, amount in actions:
        act(engine, seat_idx, kind, amount)


def auto_complete_hand(engine: GameEngine) -> int:
    """Call with whoever is on turn until the hand settles; returns turns taken."""
    turns = 0
    while not engine.is_hand_complete():
        actor = engine.next_actor()
        if actor is None:
            break
        act(engine, actor, ActionType.CALL)
        turns += 1
    return turns


def event_names(events: Iterable[dict]) -> List[str]:
    return [event["ev"] for event in events]


class ScriptedProvider:
    """Returns queued actions in order, then calls."""

    def __init__(self, *actions: object) -> None:
        self.actions = list(actions)
        self.views: List[TableView] = []

    async def decide(self, view: TableView) -> Action:
        self.views.append(view)
        if self.actions:
            return self.actions.pop(0)  # type: ignore[return-value]
        return Action(ActionType.CALL)
