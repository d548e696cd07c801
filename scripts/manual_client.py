#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, Optional

import websockets

logging.basicConfig(level=logging.INFO)

# ManualClient plays the human seat of a practice table from the terminal.

SHORTCUTS = {
    "S": "SEE_CARDS",
    "C": "CALL",
    "R": "RAISE",
    "A": "ALL_IN",
    "F": "FOLD",
    "P": "COMPARE",
}


@dataclass
class ActContext:
    hand_id: str
    turn: int
    legal: list[str]
    ante: int
    call_cost: int
    raise_cost: int
    compare_cost: int
    compare_target: Optional[int]


class ManualClient:
    def __init__(self, name: str, url: str) -> None:
        self.name = name
        self.url = url
        self.websocket: Optional[Any] = None
        self.seat: Optional[int] = None
        self.recent_events: deque[str] = deque(maxlen=8)

    async def run(self) -> None:
        async with websockets.connect(self.url) as ws:
            self.websocket = ws
            await self._send({"type": "hello", "v": 1, "name": self.name, "role": "player"})
            await self._loop()

    async def _loop(self) -> None:
        assert self.websocket is not None
        while True:
            raw = await self.websocket.recv()
            msg = json.loads(raw)
            msg_type = msg.get("type")
            self._print_message(msg)

            if msg_type == "act":
                await self._handle_act(msg)
            elif msg_type == "match_end":
                print("Match ended. Press Ctrl+C to exit.")
                break

    async def _handle_act(self, msg: Dict[str, Any]) -> None:
        ctx = ActContext(
            hand_id=msg["hand_id"],
            turn=msg["turn"],
            legal=list(msg.get("legal", [])),
            ante=msg.get("ante", 0),
            call_cost=msg.get("call_cost", 0),
            raise_cost=msg.get("raise_cost", 0),
            compare_cost=msg.get("compare_cost", 0),
            compare_target=msg.get("compare_target"),
        )
        while True:
            action = self._prompt_action(ctx)
            if action is None:
                continue
            await self._send(action)
            break

    def _prompt_action(self, ctx: ActContext) -> Optional[Dict[str, Any]]:
        prompt = "Action [" + "/".join(ctx.legal) + "](h=help): "
        choice = input(prompt).strip().upper()
        if not choice:
            print("Using default: CALL")
            choice = "CALL"
        choice = SHORTCUTS.get(choice, choice)

        if choice == "H":
            self._print_act_help(ctx)
            return None
        if choice not in ctx.legal:
            print("Illegal selection. Try again.")
            return None

        payload: Dict[str, Any] = {
            "type": "action",
            "v": 1,
            "hand_id": ctx.hand_id,
            "turn": ctx.turn,
            "action": choice,
        }
        if choice == "RAISE":
            amount = self._prompt_raise_amount(ctx)
            if amount is None:
                return None
            payload["amount"] = amount
        return payload

    def _prompt_raise_amount(self, ctx: ActContext) -> Optional[int]:
        value = input(f"Raise base unit by [default {ctx.ante}]: ").strip()
        if not value:
            return ctx.ante
        try:
            amount = int(value)
        except ValueError:
            print("Enter a valid integer")
            return None
        if amount <= 0:
            print("Increment must be positive")
            return None
        return amount

    def _print_message(self, msg: Dict[str, Any]) -> None:
        msg_type = msg.get("type", "?")
        print(f"\n>>> {msg_type.upper()}")
        if msg_type == "welcome":
            self.seat = msg.get("seat")
            print(f"Seat: {self.seat}, config: {json.dumps(msg['config'])}")
        elif msg_type == "start_hand":
            self.recent_events.clear()
            stacks = ", ".join(f"{entry['seat']}:{entry['stack']}" for entry in msg.get("stacks", []))
            print(f"Hand {msg['hand_id']} ante={msg['ante']} stacks: {stacks}")
        elif msg_type == "act":
            self._render_act_view(msg)
        elif msg_type == "event":
            self._apply_event(msg)
        elif msg_type == "end_hand":
            for entry in msg.get("hands", []):
                print(f"  Seat {entry['seat']}: {' '.join(entry['hand'])} ({entry['label']})")
            print(f"Winner: seat {msg.get('winner')} ({msg.get('reason')}) | stacks: {msg.get('stacks')}")
        elif msg_type == "error":
            print(f"Error {msg.get('code')}: {msg.get('msg')}")
        elif msg_type == "match_end":
            print(f"Leader: {msg.get('leader')} | stacks: {msg.get('final_stacks')}")
        else:
            print(json.dumps(msg, indent=2))

    def _apply_event(self, msg: Dict[str, Any]) -> None:
        ev = msg.get("ev")
        seat = msg.get("seat")
        amount = msg.get("amount")
        if ev == "COMPARE":
            summary = f"Seat {seat} compares with seat {msg.get('target')} ({amount}): seat {msg.get('loser')} out"
        elif ev == "POT_AWARD":
            summary = f"Seat {seat} wins {amount} ({msg.get('reason')})"
        elif ev == "SHOWDOWN":
            summary = f"Seat {seat} shows {' '.join(msg.get('hand', []))} ({msg.get('rank')})"
        elif amount is not None:
            summary = f"Seat {seat} {ev} {amount}"
        else:
            summary = f"Seat {seat} {ev}" if seat is not None else str(ev)
        self.recent_events.append(summary)
        print(summary)

    def _render_act_view(self, msg: Dict[str, Any]) -> None:
        you = msg.get("you", {})
        hand = " ".join(you["hand"]) if you.get("hand") else "(blind)"
        evaluation = you.get("evaluation")
        rank = f" {evaluation['type']} score={evaluation['score']}" if evaluation else ""
        print(
            f"Hand {msg['hand_id']} | Round {msg['round']}/{msg['round_cap']} | "
            f"Pot={msg['pot']}/{msg['pot_cap']} | Base unit={msg['base_unit']}"
        )
        print(f"You: cards={hand}{rank} stack={you.get('stack')}")
        print(
            f"Costs: call={msg.get('call_cost')} raise(+ante)={msg.get('raise_cost')} "
            f"compare={msg.get('compare_cost')} vs seat {msg.get('compare_target')}"
        )
        print("Table:")
        for player in msg.get("players", []):
            marker = "→" if player["seat"] == msg.get("seat") else " "
            tags = []
            if player["seat"] == self.seat:
                tags.append("ME")
            if player["has_looked"]:
                tags.append("SEEN")
            if player["has_folded"]:
                tags.append("FOLD")
            label = f" [{','.join(tags)}]" if tags else ""
            print(f"  {marker}Seat {player['seat']:>2} {player['name']:<10} stack={player['stack']:>5}{label}")
        if self.recent_events:
            print("Recent:")
            for entry in reversed(self.recent_events):
                print(f"  {entry}")

    def _print_act_help(self, ctx: ActContext) -> None:
        print("Options (first letter works too, P for compare):")
        for opt in ctx.legal:
            if opt == "SEE_CARDS":
                print("  SEE_CARDS → look at your cards; later costs double")
            elif opt == "CALL":
                print(f"  CALL      → pay {ctx.call_cost}")
            elif opt == "RAISE":
                print(f"  RAISE     → lift the base unit (+{ctx.ante} costs {ctx.raise_cost})")
            elif opt == "ALL_IN":
                print("  ALL_IN    → push your whole stack")
            elif opt == "FOLD":
                print("  FOLD      → give up the pot")
            elif opt == "COMPARE":
                print(f"  COMPARE   → pay {ctx.compare_cost} and duel seat {ctx.compare_target}; loser folds")

    async def _send(self, payload: Dict[str, Any]) -> None:
        assert self.websocket is not None
        await self.websocket.send(json.dumps(payload))


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Golden Flower manual client")
    parser.add_argument("--url", default="ws://127.0.0.1:9876/")
    parser.add_argument("--name", default="You")
    return parser.parse_args(argv)


def main(argv: list[str]) -> None:
    args = parse_args(argv)
    client = ManualClient(name=args.name, url=args.url)
    try:
        asyncio.run(client.run())
    except KeyboardInterrupt:
        print("\nSession closed")


if __name__ == "__main__":
    main(sys.argv[1:])
