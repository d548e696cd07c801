import asyncio
import logging

from goldenflower.game import GameEngine
from goldenflower.models import Action, ActionType, PlayerKind, Stage, TableConfig

from .helpers import ScriptedProvider, act, create_engine, event_names, start_hand


class ExplodingProvider:
    async def decide(self, view):
        raise RuntimeError("model unavailable")


class SlowProvider:
    async def decide(self, view):
        await asyncio.sleep(5)
        return Action(ActionType.FOLD)


class GarbageProvider:
    async def decide(self, view):
        return "FOLD"


def automated_engine(provider, seats: int = 2, **kwargs) -> GameEngine:
    engine = create_engine(seats=seats, kind=PlayerKind.AUTOMATED, **kwargs)
    engine.set_provider(0, provider)
    return engine


def test_provider_action_is_applied():
    provider = ScriptedProvider(Action(ActionType.RAISE, 10))
    engine = automated_engine(provider)
    start_hand(engine)
    result = asyncio.run(engine.play_automated_turn())
    assert result.accepted
    assert result.action == Action(ActionType.RAISE, 10)
    assert engine.hand.base_unit == 20
    assert engine.hand.active_seat == 1


def test_provider_sees_own_cards_only_after_looking():
    provider = ScriptedProvider(Action(ActionType.SEE_CARDS), Action(ActionType.CALL))
    engine = automated_engine(provider)
    start_hand(engine)
    asyncio.run(engine.play_automated_turn())
    asyncio.run(engine.play_automated_turn())
    blind_view, seen_view = provider.views
    assert blind_view.hand is None and blind_view.evaluation is None
    assert len(seen_view.hand) == 3
    assert seen_view.evaluation is not None
    assert seen_view.pot_cap == 1_000 and seen_view.round_cap == 5 and seen_view.ante == 10
    assert all("hand" not in player for player in seen_view.players)


def test_provider_error_falls_back_to_call(caplog):
    engine = automated_engine(ExplodingProvider())
    start_hand(engine)
    with caplog.at_level(logging.WARNING, logger="golden_flower"):
        result = asyncio.run(engine.play_automated_turn())
    assert result.accepted
    assert result.action == Action(ActionType.CALL)
    assert event_names(result.events) == ["DECISION_FALLBACK", "CALL"]
    assert "model unavailable" in result.events[0]["reason"]
    assert any("Decision provider failed" in record.getMessage() for record in caplog.records)


def test_provider_timeout_falls_back_to_call():
    engine = automated_engine(SlowProvider(), decision_timeout_ms=20)
    start_hand(engine)
    result = asyncio.run(engine.play_automated_turn())
    assert result.events[0]["reason"] == "timeout"
    assert result.action == Action(ActionType.CALL)
    assert engine.hand.active_seat == 1


def test_non_action_answer_falls_back_to_call():
    engine = automated_engine(GarbageProvider())
    start_hand(engine)
    result = asyncio.run(engine.play_automated_turn())
    assert event_names(result.events) == ["DECISION_FALLBACK", "CALL"]


def test_rejected_provider_action_falls_back_to_call():
    engine = automated_engine(ScriptedProvider(Action(ActionType.RAISE, 5_000)))
    start_hand(engine)
    result = asyncio.run(engine.play_automated_turn())
    assert result.accepted
    assert result.events[0]["reason"] == "INSUFFICIENT_CHIPS"
    assert result.events[1]["ev"] == "CALL"
    assert engine.hand.base_unit == 10


def test_human_actions_rejected_while_decision_pending():
    gate = asyncio.Event()

    class GatedProvider:
        async def decide(self, view):
            await gate.wait()
            return Action(ActionType.CALL)

    engine = automated_engine(GatedProvider())
    start_hand(engine)

    async def scenario():
        turn = asyncio.create_task(engine.play_automated_turn())
        await asyncio.sleep(0)
        blocked = engine.submit_action(0, Action(ActionType.FOLD))
        second = await engine.play_automated_turn()
        gate.set()
        return blocked, second, await turn

    blocked, second, result = asyncio.run(scenario())
    assert blocked.error_code == "DECISION_PENDING"
    assert second.error_code == "DECISION_PENDING"
    assert result.accepted
    assert not engine.seats[0].has_folded


def test_play_automated_turn_rejects_human_seat():
    engine = create_engine(seats=2)
    start_hand(engine)
    result = asyncio.run(engine.play_automated_turn())
    assert result.error_code == "NOT_AUTOMATED"


def test_seats_without_provider_just_call():
    engine = create_engine(seats=3, kind=PlayerKind.AUTOMATED)
    start_hand(engine)
    results = asyncio.run(engine.run_automated_turns())
    assert engine.stage == Stage.SETTLED
    assert all(r.action == Action(ActionType.CALL) for r in results)
    assert len(results) == 15


def test_run_automated_turns_stops_at_human_seat():
    engine = GameEngine.with_house_table(TableConfig(automated_seats=2))
    assert engine.seats[0].kind == PlayerKind.HUMAN
    start_hand(engine)
    assert asyncio.run(engine.run_automated_turns()) == []
    act(engine, 0, ActionType.CALL)
    results = asyncio.run(engine.run_automated_turns())
    assert len(results) == 2
    assert engine.next_actor() == 0
