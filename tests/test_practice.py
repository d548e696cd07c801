import asyncio
import json
import random

from goldenflower.models import Action, ActionType, PlayerKind, Stage, TableConfig
from goldenflower.providers import CallingProvider
from practice.bots import HouseBot
from practice.server import PracticeSession, RemoteClient, RemoteSeatProvider, handle_connection


# Fake socket: replays scripted client messages and records what the server sends.
class DummyWebSocket:
    def __init__(self, incoming=None, responder=None) -> None:
        self.incoming = [json.dumps(msg) if isinstance(msg, dict) else msg for msg in (incoming or [])]
        self.responder = responder
        self.sent: list[dict] = []

    async def send(self, message: str) -> None:
        self.sent.append(json.loads(message))

    async def recv(self) -> str:
        if self.incoming:
            return self.incoming.pop(0)
        if self.responder is not None:
            return json.dumps(self.responder(self.last_act()))
        raise ConnectionError("script exhausted")

    def of_type(self, msg_type: str) -> list[dict]:
        return [msg for msg in self.sent if msg.get("type") == msg_type]

    def last_act(self):
        acts = self.of_type("act")
        return acts[-1] if acts else None


def reply(prompt: dict, action: str, **extra) -> dict:
    return {"type": "action", "hand_id": prompt["hand_id"], "turn": prompt["turn"], "action": action, **extra}


def always(action: str):
    def respond(prompt: dict) -> dict:
        return reply(prompt, action)

    return respond


def scripted(*messages):
    # Each entry is (action, extra) answered against the current prompt, or a raw dict.
    queue = list(messages)

    def respond(prompt: dict) -> dict:
        if not queue:
            return reply(prompt, "FOLD")
        entry = queue.pop(0)
        if isinstance(entry, dict):
            return entry
        action, extra = entry
        return reply(prompt, action, **extra)

    return respond


# Holds its first answer back past the decision timeout, then lets it arrive late.
class LateBotSocket(DummyWebSocket):
    def __init__(self, late_action: str, responder) -> None:
        super().__init__(responder=responder)
        self.late_action = late_action
        self.stalled = False

    async def recv(self) -> str:
        if not self.stalled:
            self.stalled = True
            self.incoming.append(json.dumps(reply(self.last_act(), self.late_action)))
            await asyncio.sleep(5)
        return await super().recv()


def test_human_session_plays_requested_hands():
    socket = DummyWebSocket(responder=always("FOLD"))
    config = TableConfig(automated_seats=2)
    session = PracticeSession(config, RemoteClient(name="Ann", websocket=socket), max_hands=2, rng=random.Random(1))
    asyncio.run(session.run())

    assert session.hands_played == 2
    assert socket.sent[0]["type"] == "welcome"
    assert socket.sent[0]["seat"] == 0
    assert len(socket.of_type("start_hand")) == 2
    assert len(socket.of_type("end_hand")) == 2
    assert socket.of_type("match_end")
    # The human folds first every hand and loses exactly the ante.
    assert session.engine.seats[0].stack == 980
    assert session.engine.seats[0].kind == PlayerKind.HUMAN


def test_rejected_human_action_reprompts():
    responder = scripted(
        {"type": "chat", "text": "hi"},
        ("DANCE", {}),
        ("RAISE", {"amount": 50_000}),
        ("FOLD", {}),
    )
    socket = DummyWebSocket(responder=responder)
    session = PracticeSession(TableConfig(automated_seats=1), RemoteClient(name="Bo", websocket=socket), max_hands=1)
    asyncio.run(session.run())

    codes = [msg["code"] for msg in socket.of_type("error")]
    assert codes == ["BAD_ACTION", "INSUFFICIENT_CHIPS"]
    assert len(socket.of_type("act")) >= 3


def test_remote_bot_seat_uses_engine_fallback_on_bad_reply():
    socket = DummyWebSocket(responder=always("NOT_AN_ACTION"))
    client = RemoteClient(name="Bot", websocket=socket, role="bot")
    session = PracticeSession(TableConfig(automated_seats=1), client, max_hands=1, rng=random.Random(4))
    assert session.engine.seats[0].kind == PlayerKind.AUTOMATED
    asyncio.run(session.run())

    events = socket.of_type("event")
    fallbacks = [event for event in events if event["ev"] == "DECISION_FALLBACK" and event["seat"] == 0]
    assert fallbacks
    assert session.engine.stage == Stage.SETTLED


def test_remote_seat_provider_round_trip():
    socket = DummyWebSocket()
    client = RemoteClient(name="Bot", websocket=socket, role="bot")
    session = PracticeSession(TableConfig(automated_seats=1), client, max_hands=1)
    engine = session.engine
    engine.start_hand(seed=5)
    prompt = {"hand_id": engine.hand.hand_id, "turn": 0}
    socket.incoming = [
        json.dumps(reply({**prompt, "turn": 7}, "FOLD")),
        json.dumps(reply({**prompt, "hand_id": "H-old"}, "FOLD")),
        json.dumps(reply(prompt, "RAISE", amount=20)),
    ]
    provider = RemoteSeatProvider(client, engine)
    action = asyncio.run(provider.decide(engine.decision_view(0)))
    assert action == Action(ActionType.RAISE, 20)
    sent_prompt = socket.of_type("act")[-1]
    assert sent_prompt["seat"] == 0
    assert sent_prompt["turn"] == 0
    assert [msg["code"] for msg in socket.of_type("error")] == ["STALE_ACTION", "STALE_ACTION"]


def test_late_bot_reply_is_not_applied_to_a_later_turn():
    socket = LateBotSocket("FOLD", responder=always("CALL"))
    client = RemoteClient(name="Bot", websocket=socket, role="bot")
    session = PracticeSession(TableConfig(automated_seats=2, decision_timeout_ms=50), client, max_hands=1)
    engine = session.engine
    engine.set_provider(1, CallingProvider())
    engine.set_provider(2, CallingProvider())
    engine.start_hand(seed=11)

    results = asyncio.run(engine.run_automated_turns())

    first, second_go = results[0], results[3]
    assert first.events[0]["ev"] == "DECISION_FALLBACK"
    assert first.events[0]["reason"] == "timeout"
    assert first.action == Action(ActionType.CALL)
    # The FOLD meant for the timed-out turn arrives now and must be dropped.
    assert second_go.seat == 0
    assert second_go.action == Action(ActionType.CALL)
    assert not any(event["ev"] == "DECISION_FALLBACK" for event in second_go.events)
    assert [msg["code"] for msg in socket.of_type("error")] == ["STALE_ACTION"]
    assert not any(result.action.kind == ActionType.FOLD for result in results)
    assert not engine.seats[0].has_folded
    assert engine.stage == Stage.SETTLED


def test_handle_connection_requires_hello():
    socket = DummyWebSocket(incoming=[{"type": "action", "action": "CALL"}])
    asyncio.run(handle_connection(socket, TableConfig()))
    assert socket.sent[-1] == {"type": "error", "code": "BAD_HELLO", "msg": "Expected hello"}


def test_handle_connection_rejects_unknown_role():
    socket = DummyWebSocket(incoming=[{"type": "hello", "name": "Cy", "role": "dealer"}])
    asyncio.run(handle_connection(socket, TableConfig()))
    assert socket.sent[-1]["code"] == "BAD_ROLE"


def test_handle_connection_survives_client_dropping():
    socket = DummyWebSocket(incoming=[{"type": "hello", "name": "Di"}])
    asyncio.run(handle_connection(socket, TableConfig(automated_seats=1), max_hands=1))
    assert socket.sent[0]["type"] == "welcome"


def test_house_bot_is_a_decision_provider():
    from goldenflower.providers import DecisionProvider

    assert isinstance(HouseBot(), DecisionProvider)
