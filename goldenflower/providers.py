from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import Action, ActionType, TableView


@runtime_checkable
class DecisionProvider(Protocol):
    """Supplies actions for automated seats.

    ``decide`` may take arbitrarily long (a remote round trip, say); the
    engine bounds it with ``TableConfig.decision_timeout_ms`` and falls back
    to a call when it fails.
    """

    async def decide(self, view: TableView) -> Action:
        ...


class CallingProvider:
    """Always calls. Also what the engine uses when a seat has no provider."""

    async def decide(self, view: TableView) -> Action:
        return Action(ActionType.CALL)
