from __future__ import annotations

import asyncio
import json
import logging
import random
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Dict, Optional

import websockets

from goldenflower.game import GameEngine
from goldenflower.models import Action, ActionResult, PlayerKind, TableConfig, TableView
from practice.bots import HouseBot

LOGGER = logging.getLogger("practice_host")

ROLES = ("player", "bot")


class PracticeServerError(Exception):
    def __init__(self, code: str, msg: str) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg


def _config_payload(config: TableConfig) -> Dict[str, Any]:
    return {
        "automated_seats": config.automated_seats,
        "starting_stack": config.starting_stack,
        "ante": config.ante,
        "round_cap": config.round_cap,
        "pot_cap": config.pot_cap,
        "decision_timeout_ms": config.decision_timeout_ms,
    }


async def _send_error(websocket: Any, code: str, msg: str) -> None:
    await websocket.send(json.dumps({"type": "error", "code": code, "msg": msg}))


@dataclass
class RemoteClient:
    name: str
    websocket: Any
    role: str = "player"
    seat_idx: Optional[int] = None

    async def send_json(self, payload: Dict[str, Any]) -> None:
        await self.websocket.send(json.dumps({"v": 1, **payload}))

    async def recv_action(self, prompt: Dict[str, Any]) -> Dict[str, Any]:
        # Anything that is not an action for this prompt (pings, chatter,
        # late replies to an earlier turn) is skipped.
        while True:
            raw = await self.websocket.recv()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await _send_error(self.websocket, "BAD_JSON", "Could not parse message")
                continue
            if not isinstance(message, dict) or message.get("type") != "action":
                continue
            if message.get("hand_id") != prompt["hand_id"] or message.get("turn") != prompt["turn"]:
                LOGGER.debug(
                    "Dropping stale action from %s for %s/%s",
                    self.name,
                    message.get("hand_id"),
                    message.get("turn"),
                )
                await _send_error(self.websocket, "STALE_ACTION", "Action does not match the current prompt")
                continue
            return message


class RemoteSeatProvider:
    """Decision provider that forwards the act prompt to a remote bot.

    The engine bounds the wait with its decision timeout and calls on the
    bot's behalf when the reply is late, malformed or illegal.
    """

    def __init__(self, client: RemoteClient, engine: GameEngine) -> None:
        self.client = client
        self.engine = engine

    async def decide(self, view: TableView) -> Action:
        prompt = self.engine.act_payload(view.seat)
        await self.client.send_json({"type": "act", **prompt})
        message = await self.client.recv_action(prompt)
        return Action.parse(message.get("action"), message.get("amount"))


# A practice session is one remote client against house bots.


class PracticeSession:
    def __init__(
        self,
        config: TableConfig,
        remote: RemoteClient,
        max_hands: int = 0,
        rng: Optional[random.Random] = None,
    ) -> None:
        if remote.role not in ROLES:
            raise PracticeServerError("BAD_ROLE", f"role must be one of {', '.join(ROLES)}")
        self.engine = GameEngine(config)
        self.remote = remote
        self.max_hands = max_hands
        self.hands_played = 0

        if remote.role == "bot":
            seat = self.engine.assign_seat(
                remote.name, PlayerKind.AUTOMATED, provider=RemoteSeatProvider(remote, self.engine)
            )
        else:
            seat = self.engine.assign_seat(remote.name, PlayerKind.HUMAN)
        remote.seat_idx = seat.seat
        for idx in range(1, config.automated_seats + 1):
            self.engine.assign_seat(f"House {idx}", PlayerKind.AUTOMATED, provider=HouseBot(rng))

    def should_continue(self) -> bool:
        if self.max_hands and self.hands_played >= self.max_hands:
            return False
        assert self.remote.seat_idx is not None
        remote_seat = self.engine.seats[self.remote.seat_idx]
        return self.engine.can_start_hand() and remote_seat.stack >= self.engine.config.ante

    async def run(self) -> None:
        await self.remote.send_json({
            "type": "welcome",
            "table_id": "PRACTICE",
            "seat": self.remote.seat_idx,
            "role": self.remote.role,
            "config": _config_payload(self.engine.config),
        })
        while self.should_continue():
            ctx = self.engine.start_hand()
            await self.remote.send_json({"type": "start_hand", **self.engine.start_hand_payload(ctx)})
            for event in self.engine.consume_pre_events():
                await self._send_event(event)
            await self._play_hand()
            self.hands_played += 1

        await self.remote.send_json({"type": "match_end", **self.engine.match_result_payload()})

    async def _play_hand(self) -> None:
        while not self.engine.is_hand_complete():
            seat_idx = self.engine.next_actor()
            if seat_idx is None:
                break
            if self.engine.seats[seat_idx].kind == PlayerKind.AUTOMATED:
                result = await self.engine.play_automated_turn()
            else:
                result = await self._prompt_human(seat_idx)
            for event in result.events:
                await self._send_event(event)

        await self.remote.send_json({"type": "end_hand", **self.engine.end_hand_payload()})

    async def _prompt_human(self, seat_idx: int) -> ActionResult:
        while True:
            prompt = self.engine.act_payload(seat_idx)
            await self.remote.send_json({"type": "act", **prompt})
            message = await self.remote.recv_action(prompt)
            try:
                action = Action.parse(message.get("action"), message.get("amount"))
            except ValueError:
                await _send_error(self.remote.websocket, "BAD_ACTION", f"Unknown action {message.get('action')!r}")
                continue
            result = self.engine.submit_action(seat_idx, action)
            if result.accepted:
                return result
            await _send_error(self.remote.websocket, result.error_code or "REJECTED", result.error_msg or "")

    async def _send_event(self, event: Dict[str, object]) -> None:
        await self.remote.send_json({"type": "event", **event})


async def handle_connection(websocket: Any, config: TableConfig, max_hands: int = 0) -> None:
    hello_raw = await websocket.recv()
    try:
        hello = json.loads(hello_raw)
    except json.JSONDecodeError:
        await _send_error(websocket, "BAD_HELLO", "Expected hello")
        return
    if not isinstance(hello, dict) or hello.get("type") != "hello":
        await _send_error(websocket, "BAD_HELLO", "Expected hello")
        return

    name_raw = hello.get("name")
    name = name_raw.strip() if isinstance(name_raw, str) else ""
    role_raw = hello.get("role") or "player"
    role = role_raw.strip().casefold() if isinstance(role_raw, str) else ""

    try:
        session = PracticeSession(config, RemoteClient(name=name or "REMOTE", websocket=websocket, role=role), max_hands)
    except PracticeServerError as exc:
        await _send_error(websocket, exc.code, exc.msg)
        return

    try:
        await session.run()
    except websockets.ConnectionClosed:
        LOGGER.info("Client %s disconnected after %s hands", name or "REMOTE", session.hands_played)
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Practice session crashed: %s", exc)


def _process_request(connection: Any, request: Any) -> Any:
    """Answer plain HTTP health checks; let WebSocket upgrades through."""
    if request.headers.get("Upgrade", "").lower() == "websocket":
        return None
    if request.path in {"/", "/health", "/healthz"}:
        return connection.respond(HTTPStatus.OK, "practice server running\n")
    return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")


async def run_server(host: str, port: int, config: TableConfig, max_hands: int = 0) -> None:
    async def _handler(ws: Any) -> None:
        await handle_connection(ws, config, max_hands)

    async with websockets.serve(_handler, host, port, process_request=_process_request):
        LOGGER.info("Practice server listening on %s:%s", host, port)
        await asyncio.Future()
