from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .cards import Card, build_deck, cards_to_labels, deal, shuffle_deck
from .errors import ConfigurationError, InvalidAction, ProviderFailure
from .evaluator import HandEvaluation, compare_hands, describe_hand, evaluate_hand
from .ledger import BettingLedger
from .models import (
    Action,
    ActionResult,
    ActionType,
    PlayerKind,
    PlayerSeat,
    Stage,
    TableConfig,
    TableView,
)
from .providers import CallingProvider, DecisionProvider

LOGGER = logging.getLogger("golden_flower")

MAX_SEATS = 6
CARDS_PER_HAND = 3

# GameEngine owns every seat and the hand state. Networking and presentation
# live elsewhere; they read events and snapshots and submit actions.


@dataclass
class HandContext:
    # Everything that lives for one deal: deck, chips in play, turn pointer.
    hand_id: str
    seed: int
    deck: List[Card]
    ledger: BettingLedger
    stage: Stage = Stage.DEALING
    active_seat: Optional[int] = None
    round_number: int = 1
    # Bumped on every accepted action; remote prompts echo it back.
    turn: int = 0
    winner: Optional[int] = None
    settle_reason: Optional[str] = None
    log: List[Dict[str, object]] = field(default_factory=list)
    pre_events: List[Dict[str, object]] = field(default_factory=list)

    @property
    def pot(self) -> int:
        return self.ledger.pot

    @property
    def base_unit(self) -> int:
        return self.ledger.base_unit


class GameEngine:
    """Golden Flower (three-card) engine for a single table."""

    def __init__(self, config: TableConfig) -> None:
        config.validate()
        self.config = config
        self.seats: List[PlayerSeat] = []
        self.providers: Dict[int, DecisionProvider] = {}
        self.default_provider: DecisionProvider = CallingProvider()
        self.hand_counter = 0
        self.hand: Optional[HandContext] = None
        self._decision_pending = False

    @classmethod
    def with_house_table(
        cls,
        config: TableConfig,
        human_name: str = "You",
        provider_factory: Optional[Callable[[int], DecisionProvider]] = None,
    ) -> "GameEngine":
        """Seat one human at seat 0 and ``config.automated_seats`` bots after it."""
        engine = cls(config)
        engine.assign_seat(human_name, PlayerKind.HUMAN)
        for idx in range(1, config.automated_seats + 1):
            provider = provider_factory(idx) if provider_factory else None
            engine.assign_seat(f"Bot {idx}", PlayerKind.AUTOMATED, provider=provider)
        return engine

    # Seat management -------------------------------------------------

    def assign_seat(
        self,
        name: str,
        kind: PlayerKind = PlayerKind.AUTOMATED,
        provider: Optional[DecisionProvider] = None,
        stack: Optional[int] = None,
    ) -> PlayerSeat:
        display = name.strip()
        if not display:
            raise ValueError("NAME_REQUIRED")
        if self.stage == Stage.BETTING:
            raise RuntimeError("Cannot seat players during a hand")
        if len(self.seats) >= MAX_SEATS:
            raise RuntimeError("Table is full")
        chips = self.config.starting_stack if stack is None else stack
        if chips < 0:
            raise ValueError("Stack cannot be negative")

        seat = PlayerSeat(seat=len(self.seats), name=display, kind=kind, stack=chips)
        self.seats.append(seat)
        if provider is not None:
            self.providers[seat.seat] = provider
        return seat

    def set_provider(self, seat_idx: int, provider: DecisionProvider) -> None:
        self.providers[seat_idx] = provider

    @property
    def stage(self) -> Stage:
        return self.hand.stage if self.hand else Stage.IDLE

    def eligible_seats(self) -> List[int]:
        return [seat.seat for seat in self.seats if seat.stack >= self.config.ante]

    # Hand lifecycle --------------------------------------------------

    def can_start_hand(self) -> bool:
        return len(self.eligible_seats()) >= 2

    def start_hand(self, seed: Optional[int] = None) -> HandContext:
        if self.stage in (Stage.DEALING, Stage.BETTING):
            raise RuntimeError("Hand already in progress")
        if self._decision_pending:
            raise RuntimeError("Automated decision still pending")

        eligible = self.eligible_seats()
        if len(eligible) < 2:
            raise ConfigurationError("At least two seats able to pay the ante are required")

        if seed is None:
            seed = int(time.time() * 1000) & 0xFFFFFFFF
        deck = shuffle_deck(build_deck(), random.Random(seed))
        if len(deck) < CARDS_PER_HAND * len(eligible):
            raise ConfigurationError("Not enough cards for every eligible seat")

        hand_id = f"H-{time.strftime('%Y%m%d')}-{self.hand_counter:05d}"
        self.hand_counter += 1
        ctx = HandContext(hand_id=hand_id, seed=seed, deck=deck, ledger=BettingLedger(self.config.ante))
        self.hand = ctx

        for seat in self.seats:
            seat.reset_for_hand()
            if seat.seat not in eligible:
                # Broke seats keep their place but sit this hand out.
                seat.has_folded = True
                self._record(ctx, {"ev": "SIT_OUT", "seat": seat.seat, "stack": seat.stack}, ctx.pre_events)

        for seat_idx in eligible:
            seat = self.seats[seat_idx]
            seat.hand.extend(deal(ctx.deck, CARDS_PER_HAND))
            amount = ctx.ledger.ante(seat)
            self._record(ctx, {"ev": "ANTE", "seat": seat_idx, "amount": amount}, ctx.pre_events)

        ctx.active_seat = eligible[0]
        ctx.round_number = 1
        ctx.stage = Stage.BETTING
        LOGGER.info("Hand %s started: seats=%s pot=%s", hand_id, eligible, ctx.pot)
        return ctx

    def reset_table(self) -> None:
        """Back to Idle with every seat restored to the starting stack."""
        if self._decision_pending:
            raise RuntimeError("Automated decision still pending")
        self.hand = None
        for seat in self.seats:
            seat.reset_for_hand()
            seat.stack = self.config.starting_stack

    def consume_pre_events(self) -> List[Dict[str, object]]:
        if not self.hand:
            return []
        events = list(self.hand.pre_events)
        self.hand.pre_events.clear()
        return events

    # Action handling -------------------------------------------------

    def submit_action(self, seat_idx: int, action: Action) -> ActionResult:
        """Apply one action for the seat on turn.

        Never raises for a bad action: a rejected action comes back with
        ``accepted=False`` and leaves the table untouched.
        """
        if self._decision_pending:
            return _rejected(seat_idx, action, InvalidAction("DECISION_PENDING", "Waiting on an automated seat"))
        return self._apply(seat_idx, action)

    def _apply(self, seat_idx: int, action: Action) -> ActionResult:
        try:
            events = self._apply_action(seat_idx, action)
        except InvalidAction as exc:
            LOGGER.debug("Rejected %s from seat %s: %s", action, seat_idx, exc.code)
            return _rejected(seat_idx, action, exc)
        ctx = self.hand
        if ctx is not None:
            ctx.turn += 1
        return ActionResult(accepted=True, seat=seat_idx, action=action, events=events)

    def _apply_action(self, seat_idx: int, action: Action) -> List[Dict[str, object]]:
        ctx = self._betting_hand()
        if seat_idx != ctx.active_seat:
            raise InvalidAction("OUT_OF_TURN", f"Seat {ctx.active_seat} is on turn")
        if not isinstance(action, Action):
            raise InvalidAction("UNSUPPORTED", f"Unsupported action {action!r}")

        seat = self.seats[seat_idx]
        ledger = ctx.ledger
        events: List[Dict[str, object]] = []

        if action.kind == ActionType.SEE_CARDS:
            ledger.mark_looked(seat)
            self._record(ctx, {"ev": "SEE_CARDS", "seat": seat_idx}, events)
            # Looking is free and the seat keeps the turn.
            return events
        if action.kind == ActionType.CALL:
            cost = ledger.cost_for(seat)
            amount = ledger.call(seat)
            self._record(ctx, {"ev": "CALL", "seat": seat_idx, "amount": amount, "all_in": amount < cost}, events)
        elif action.kind == ActionType.RAISE:
            increment = self.config.ante if action.amount is None else action.amount
            if isinstance(increment, bool) or not isinstance(increment, int):
                raise InvalidAction("BAD_AMOUNT", "Raise increment must be an integer")
            amount = ledger.raise_bet(seat, increment)
            self._record(
                ctx,
                {"ev": "RAISE", "seat": seat_idx, "amount": amount, "base_unit": ledger.base_unit},
                events,
            )
        elif action.kind == ActionType.ALL_IN:
            amount = ledger.all_in(seat)
            self._record(ctx, {"ev": "ALL_IN", "seat": seat_idx, "amount": amount}, events)
        elif action.kind == ActionType.FOLD:
            seat.has_folded = True
            self._record(ctx, {"ev": "FOLD", "seat": seat_idx}, events)
        elif action.kind == ActionType.COMPARE:
            target_idx = self._duel_target(seat_idx)
            if target_idx is None:
                raise InvalidAction("NO_TARGET", "No opponent left to compare against")
            target = self.seats[target_idx]
            amount = ledger.duel_stake(seat)
            result = compare_hands(evaluate_hand(seat.hand), evaluate_hand(target.hand))
            # The challenger needs to win outright; a tie knocks it out.
            winner, loser = (seat, target) if result > 0 else (target, seat)
            loser.has_folded = True
            self._record(
                ctx,
                {
                    "ev": "COMPARE",
                    "seat": seat_idx,
                    "target": target_idx,
                    "amount": amount,
                    "winner": winner.seat,
                    "loser": loser.seat,
                },
                events,
            )
        else:
            raise InvalidAction("UNSUPPORTED", f"Unsupported action {action.kind}")

        events.extend(self._advance_after_action(ctx, seat_idx))
        return events

    def _advance_after_action(self, ctx: HandContext, seat_idx: int) -> List[Dict[str, object]]:
        events: List[Dict[str, object]] = []
        remaining = self._active_seats()
        if len(remaining) == 1:
            events.extend(self._settle(ctx, remaining[0], reason="fold_out"))
            return events

        if ctx.pot >= self.config.pot_cap:
            self._record(ctx, {"ev": "POT_CAP", "pot": ctx.pot, "cap": self.config.pot_cap}, events)
            events.extend(self._showdown(ctx, reason="pot_cap"))
            return events

        next_idx = self._next_active_seat(seat_idx)
        if next_idx <= seat_idx:
            # Turn order wrapped past seat 0: one full round is done.
            if ctx.round_number >= self.config.round_cap:
                self._record(ctx, {"ev": "ROUND_CAP", "rounds": ctx.round_number}, events)
                events.extend(self._showdown(ctx, reason="round_cap"))
                return events
            ctx.round_number += 1
        ctx.active_seat = next_idx
        return events

    def _showdown(self, ctx: HandContext, reason: str) -> List[Dict[str, object]]:
        events: List[Dict[str, object]] = []
        best_idx: Optional[int] = None
        best: Optional[HandEvaluation] = None
        for seat_idx in self._active_seats():
            seat = self.seats[seat_idx]
            evaluation = evaluate_hand(seat.hand)
            self._record(
                ctx,
                {
                    "ev": "SHOWDOWN",
                    "seat": seat_idx,
                    "hand": cards_to_labels(seat.hand),
                    "rank": evaluation.name,
                },
                events,
            )
            # Strictly greater only: on a tie the earlier seat keeps the pot.
            if best is None or compare_hands(evaluation, best) > 0:
                best_idx, best = seat_idx, evaluation
        assert best_idx is not None
        events.extend(self._settle(ctx, best_idx, reason))
        return events

    def _settle(self, ctx: HandContext, winner_idx: int, reason: str) -> List[Dict[str, object]]:
        events: List[Dict[str, object]] = []
        winner = self.seats[winner_idx]
        amount = ctx.ledger.payout(winner)
        winner.is_winner = True
        ctx.winner = winner_idx
        ctx.settle_reason = reason
        ctx.active_seat = None
        ctx.stage = Stage.SETTLED
        self._record(ctx, {"ev": "POT_AWARD", "seat": winner_idx, "amount": amount, "reason": reason}, events)
        LOGGER.info("Hand %s settled (%s): seat %s wins %s", ctx.hand_id, reason, winner_idx, amount)
        return events

    # Automated seats -------------------------------------------------

    async def play_automated_turn(self) -> ActionResult:
        """Ask the on-turn automated seat's provider for an action and apply it.

        Provider errors, timeouts and rejected answers all turn into a call.
        """
        ctx = self.hand
        if self._decision_pending:
            return _rejected(None, None, InvalidAction("DECISION_PENDING", "Decision already in flight"))
        if ctx is None or ctx.stage != Stage.BETTING or ctx.active_seat is None:
            return _rejected(None, None, InvalidAction("STAGE", "No hand is being bet"))
        seat_idx = ctx.active_seat
        if self.seats[seat_idx].kind != PlayerKind.AUTOMATED:
            return _rejected(seat_idx, None, InvalidAction("NOT_AUTOMATED", f"Seat {seat_idx} is not automated"))

        fallback_events: List[Dict[str, object]] = []
        provider = self.providers.get(seat_idx, self.default_provider)
        self._decision_pending = True
        try:
            action = await self._request_decision(seat_idx, provider)
        except ProviderFailure as exc:
            LOGGER.warning("Decision provider failed (%s); seat %s calls", exc, seat_idx)
            self._record(ctx, {"ev": "DECISION_FALLBACK", "seat": seat_idx, "reason": exc.reason}, fallback_events)
            action = Action(ActionType.CALL)
        finally:
            self._decision_pending = False

        result = self._apply(seat_idx, action)
        if not result.accepted:
            LOGGER.warning("Seat %s chose %s which was rejected (%s); calling", seat_idx, action, result.error_code)
            self._record(
                ctx,
                {"ev": "DECISION_FALLBACK", "seat": seat_idx, "reason": result.error_code},
                fallback_events,
            )
            result = self._apply(seat_idx, Action(ActionType.CALL))
        result.events[:0] = fallback_events
        return result

    async def _request_decision(self, seat_idx: int, provider: DecisionProvider) -> Action:
        view = self.decision_view(seat_idx)
        timeout = self.config.decision_timeout_ms / 1000
        try:
            action = await asyncio.wait_for(provider.decide(view), timeout=timeout)
        except asyncio.TimeoutError:
            raise ProviderFailure(seat_idx, "timeout") from None
        except Exception as exc:  # noqa: BLE001
            raise ProviderFailure(seat_idx, repr(exc)) from exc
        if not isinstance(action, Action):
            raise ProviderFailure(seat_idx, f"unexpected decision {action!r}")
        return action

    async def run_automated_turns(self) -> List[ActionResult]:
        """Step automated seats until a human is on turn or the hand settles."""
        results: List[ActionResult] = []
        while self.stage == Stage.BETTING:
            actor = self.next_actor()
            if actor is None or self.seats[actor].kind != PlayerKind.AUTOMATED:
                break
            results.append(await self.play_automated_turn())
        return results

    # Turn helpers ----------------------------------------------------

    def _betting_hand(self) -> HandContext:
        if not self.hand or self.hand.stage != Stage.BETTING:
            raise InvalidAction("STAGE", "No hand is being bet")
        return self.hand

    def _active_seats(self) -> List[int]:
        return [seat.seat for seat in self.seats if not seat.has_folded]

    def _next_active_seat(self, start: int) -> int:
        count = len(self.seats)
        idx = (start + 1) % count
        while self.seats[idx].has_folded:
            idx = (idx + 1) % count
        return idx

    def _duel_target(self, seat_idx: int) -> Optional[int]:
        # Next un-folded seat clockwise; broke seats are still valid targets.
        count = len(self.seats)
        idx = (seat_idx + 1) % count
        while idx != seat_idx:
            if not self.seats[idx].has_folded:
                return idx
            idx = (idx + 1) % count
        return None

    def _record(self, ctx: HandContext, event: Dict[str, object], sink: List[Dict[str, object]]) -> None:
        event["ts"] = time.time()
        ctx.log.append(event)
        sink.append(event)

    def next_actor(self) -> Optional[int]:
        if not self.hand or self.hand.stage != Stage.BETTING:
            return None
        return self.hand.active_seat

    def is_hand_complete(self) -> bool:
        return bool(self.hand and self.hand.stage == Stage.SETTLED)

    def is_match_over(self) -> bool:
        return not self.can_start_hand()

    def legal_actions(self, seat_idx: int) -> List[ActionType]:
        if not self.hand:
            raise RuntimeError("Hand not in progress")
        ctx = self.hand
        seat = self.seats[seat_idx]
        if seat.has_folded:
            raise RuntimeError("Seat not active")

        ledger = ctx.ledger
        allowed = {ActionType.CALL, ActionType.ALL_IN, ActionType.FOLD}
        if not seat.has_looked:
            allowed.add(ActionType.SEE_CARDS)
        if seat.stack >= ledger.cost_for(seat, ledger.base_unit + 1):
            allowed.add(ActionType.RAISE)
        if self._duel_target(seat_idx) is not None and seat.stack >= ledger.cost_for(seat):
            allowed.add(ActionType.COMPARE)
        return [action for action in ActionType if action in allowed]

    # Views and payloads ----------------------------------------------

    def decision_view(self, seat_idx: int) -> TableView:
        if not self.hand:
            raise RuntimeError("Hand not in progress")
        ctx = self.hand
        seat = self.seats[seat_idx]
        view = TableView(
            seat=seat_idx,
            players=[s.public_view() for s in self.seats],
            pot=ctx.pot,
            base_unit=ctx.base_unit,
            round_number=ctx.round_number,
            ante=self.config.ante,
            pot_cap=self.config.pot_cap,
            round_cap=self.config.round_cap,
            stack=seat.stack,
            has_looked=seat.has_looked,
            legal=self.legal_actions(seat_idx),
        )
        if seat.has_looked:
            # Blind seats get nothing about their own cards.
            view.hand = cards_to_labels(seat.hand)
            view.evaluation = evaluate_hand(seat.hand)
        return view

    def act_payload(self, seat_idx: int) -> Dict[str, object]:
        if not self.hand:
            raise RuntimeError("Hand not active")
        ctx = self.hand
        seat = self.seats[seat_idx]
        ledger = ctx.ledger
        evaluation = evaluate_hand(seat.hand) if seat.has_looked else None

        return {
            "hand_id": ctx.hand_id,
            "seat": seat_idx,
            "turn": ctx.turn,
            "stage": ctx.stage.value,
            "round": ctx.round_number,
            "round_cap": self.config.round_cap,
            "pot": ctx.pot,
            "pot_cap": self.config.pot_cap,
            "base_unit": ctx.base_unit,
            "ante": self.config.ante,
            "you": {
                "hand": cards_to_labels(seat.hand) if seat.has_looked else None,
                "evaluation": evaluation.as_dict() if evaluation else None,
                "stack": seat.stack,
                "has_looked": seat.has_looked,
                "time_ms": self.config.decision_timeout_ms,
            },
            "players": [s.public_view() for s in self.seats],
            "legal": [action.value for action in self.legal_actions(seat_idx)],
            "call_cost": min(ledger.cost_for(seat), seat.stack),
            "raise_cost": ledger.cost_for(seat, ctx.base_unit + self.config.ante),
            "compare_cost": ledger.cost_for(seat),
            "compare_target": self._duel_target(seat_idx),
        }

    def snapshot(self) -> Dict[str, object]:
        ctx = self.hand
        return {
            "stage": self.stage.value,
            "hand_id": ctx.hand_id if ctx else None,
            "pot": ctx.pot if ctx else 0,
            "base_unit": ctx.base_unit if ctx else self.config.ante,
            "round": ctx.round_number if ctx else 0,
            "active_seat": ctx.active_seat if ctx else None,
            "winner": ctx.winner if ctx else None,
            "players": [seat.public_view() for seat in self.seats],
        }

    def start_hand_payload(self, ctx: HandContext) -> Dict[str, object]:
        return {
            "hand_id": ctx.hand_id,
            "seed": ctx.seed,
            "ante": self.config.ante,
            "stacks": [
                {"seat": seat.seat, "stack": seat.stack + seat.total_in_pot}
                for seat in self.seats
            ],
        }

    def end_hand_payload(self) -> Dict[str, object]:
        if not self.hand:
            raise RuntimeError("Hand not active")
        ctx = self.hand
        return {
            "hand_id": ctx.hand_id,
            "winner": ctx.winner,
            "reason": ctx.settle_reason,
            "hands": [
                _revealed_hand(seat)
                for seat in self.seats
                if seat.hand
            ],
            "stacks": [{"seat": seat.seat, "stack": seat.stack} for seat in self.seats],
        }

    def match_result_payload(self) -> Dict[str, object]:
        leader = max(self.seats, key=lambda seat: seat.stack) if self.seats else None
        return {
            "leader": {"seat": leader.seat, "name": leader.name} if leader else None,
            "final_stacks": [
                {"seat": seat.seat, "name": seat.name, "stack": seat.stack}
                for seat in self.seats
            ],
        }


def _rejected(seat_idx: Optional[int], action: Optional[Action], exc: InvalidAction) -> ActionResult:
    return ActionResult(
        accepted=False,
        seat=seat_idx,
        action=action,
        error_code=exc.code,
        error_msg=exc.msg,
    )


def _revealed_hand(seat: PlayerSeat) -> Dict[str, object]:
    evaluation = evaluate_hand(seat.hand)
    return {
        "seat": seat.seat,
        "hand": cards_to_labels(seat.hand),
        "rank": evaluation.name,
        "label": describe_hand(evaluation),
    }
