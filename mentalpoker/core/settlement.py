"""
Pot settlement for a heads-up table.

These functions only compute who gets what; PokerTable applies the result to
the seats. Every payout sums to exactly the pot it was given.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class Payout:
    """Chips paid to each seat out of a pot."""
    amounts: Tuple[int, int]
    winner: Optional[int]  # None on a split
    reason: str

    @property
    def total(self) -> int:
        return sum(self.amounts)


def fold_payout(pot: int, folder: int) -> Payout:
    """The whole pot goes to the seat that did not fold."""
    winner = 1 - folder
    amounts = [0, 0]
    amounts[winner] = pot
    return Payout(tuple(amounts), winner, "fold")


def showdown_payout(pot: int, values: Sequence[int], button: int) -> Payout:
    """
    Award the pot on showdown values (lower is stronger).

    Equal values split the pot; an odd chip goes to the button.

    Raises:
        ValueError: If either seat has no showdown value.
    """
    if len(values) != 2 or min(values) <= 0:
        raise ValueError("Both seats need a showdown value")

    if values[0] != values[1]:
        winner = 0 if values[0] < values[1] else 1
        amounts = [0, 0]
        amounts[winner] = pot
        return Payout(tuple(amounts), winner, "showdown")

    half = pot // 2
    amounts = [half, half]
    amounts[button] += pot - 2 * half
    return Payout(tuple(amounts), None, "split")


def uncalled_excess(owed: int, stack: int) -> int:
    """Chips of a bet the caller cannot cover; these go back to the bettor."""
    return max(0, owed - stack)
