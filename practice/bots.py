from __future__ import annotations

import random
from typing import Optional

from goldenflower.models import Action, ActionType, TableView

_RNG = random.Random()


def _should_look(view: TableView, rng: random.Random) -> bool:
    """Blind play is cheap pressure early on; look once the table heats up."""
    if view.round_number >= 3:
        return True
    if view.base_unit > view.ante:
        # Somebody raised; find out what we hold before paying more.
        return rng.random() < 0.6
    return rng.random() < 0.15


def _cost(view: TableView, unit: int) -> int:
    return unit * (2 if view.has_looked else 1)


def _blind_choice(view: TableView, rng: random.Random) -> Action:
    if ActionType.SEE_CARDS in view.legal and _should_look(view, rng):
        return Action(ActionType.SEE_CARDS)
    if ActionType.RAISE in view.legal and view.stack >= _cost(view, view.base_unit + view.ante) and rng.random() < 0.15:
        return Action(ActionType.RAISE, view.ante)
    return Action(ActionType.CALL)


def _seen_choice(view: TableView, rng: random.Random) -> Action:
    assert view.evaluation is not None
    score = view.evaluation.score
    call_cost = _cost(view, view.base_unit)
    opponents = len(view.opponents())

    if score < 30:
        # Weak holding: mostly give up, sometimes bluff a raise.
        if rng.random() < 0.7:
            return Action(ActionType.FOLD)
        if ActionType.RAISE in view.legal and view.stack >= _cost(view, view.base_unit + view.ante):
            return Action(ActionType.RAISE, view.ante)
        return Action(ActionType.CALL)

    if view.stack < call_cost:
        return Action(ActionType.ALL_IN) if score >= 60 else Action(ActionType.FOLD)

    if ActionType.COMPARE in view.legal and (score >= 60 or (opponents == 1 and score >= 45)):
        if rng.random() < 0.5:
            return Action(ActionType.COMPARE)

    raise_cost = _cost(view, view.base_unit + view.ante)
    if score >= 66 and ActionType.RAISE in view.legal and view.stack >= raise_cost:
        return Action(ActionType.RAISE, view.ante)

    return Action(ActionType.CALL)


class HouseBot:
    """Heuristic house player: blind pressure early, folds weak seen hands."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or _RNG

    async def decide(self, view: TableView) -> Action:
        return self.choose(view)

    def choose(self, view: TableView) -> Action:
        if not view.has_looked:
            return _blind_choice(view, self.rng)
        return _seen_choice(view, self.rng)
