from __future__ import annotations

from typing import Optional

from .errors import InvalidAction
from .models import PlayerSeat

# The ledger is the only code allowed to move chips. Each method either
# applies its whole effect or raises InvalidAction before touching anything.


class BettingLedger:
    def __init__(self, ante: int) -> None:
        self.ante_amount = ante
        self.pot = 0
        self.base_unit = ante

    @staticmethod
    def multiplier(seat: PlayerSeat) -> int:
        # Seen seats pay double the base unit.
        return 2 if seat.has_looked else 1

    def cost_for(self, seat: PlayerSeat, unit: Optional[int] = None) -> int:
        return (self.base_unit if unit is None else unit) * self.multiplier(seat)

    def _commit(self, seat: PlayerSeat, amount: int) -> int:
        seat.stack -= amount
        seat.total_in_pot += amount
        self.pot += amount
        return amount

    def ante(self, seat: PlayerSeat) -> int:
        if seat.stack < self.ante_amount:
            raise InvalidAction("INSUFFICIENT_CHIPS", f"Seat {seat.seat} cannot pay the ante")
        return self._commit(seat, self.ante_amount)

    def call(self, seat: PlayerSeat) -> int:
        """Pay the call cost, or the whole stack when it falls short."""
        return self._commit(seat, min(self.cost_for(seat), seat.stack))

    def raise_bet(self, seat: PlayerSeat, increment: int) -> int:
        if increment <= 0:
            raise InvalidAction("BAD_AMOUNT", "Raise increment must be positive")
        new_unit = self.base_unit + increment
        cost = self.cost_for(seat, new_unit)
        if seat.stack < cost:
            raise InvalidAction("INSUFFICIENT_CHIPS", f"Raise costs {cost}, seat has {seat.stack}")
        self.base_unit = new_unit
        return self._commit(seat, cost)

    def all_in(self, seat: PlayerSeat) -> int:
        return self._commit(seat, seat.stack)

    def duel_stake(self, seat: PlayerSeat) -> int:
        cost = self.cost_for(seat)
        if seat.stack < cost:
            raise InvalidAction("INSUFFICIENT_CHIPS", f"Compare costs {cost}, seat has {seat.stack}")
        return self._commit(seat, cost)

    def mark_looked(self, seat: PlayerSeat) -> None:
        if seat.has_looked:
            raise InvalidAction("ALREADY_LOOKED", f"Seat {seat.seat} already looked at its cards")
        seat.has_looked = True

    def payout(self, seat: PlayerSeat) -> int:
        amount = self.pot
        seat.stack += amount
        self.pot = 0
        return amount
