"""
Seat state for the two players at a mental-poker table.

A seat holds:
- A commitment to the occupant's public identity (never the identity itself)
- Stack (chip count)
- Chips committed in the current hand (for call sizing and refunds)
- The occupant's mask public key for the current hand
- The stored showdown value
"""

from __future__ import annotations
from typing import Dict, Optional, Any
from dataclasses import dataclass
import hashlib

from mentalpoker.core.group import GroupElement


def identity_commitment(identity: str) -> str:
    """Hash of a public identity, as stored in a seat."""
    return hashlib.sha256(identity.encode("utf-8")).hexdigest()


@dataclass
class PlayerSeat:
    """
    One of the two seats.

    Attributes:
        seat: Seat index (0 or 1)
        commitment: identity_commitment() of the occupant, None when free
        stack: Current chip count
        committed: Chips put into the pot in the current hand
        mask_key: The occupant's mask public key for this hand
        showdown_value: Hand strength claimed at showdown (0 = not shown)
        hole_cards_committed: Whether this seat has committed the opponent's hole cards
        board_revealed: Whether this seat has revealed the current board deal
    """
    seat: int
    commitment: Optional[str] = None
    stack: int = 0
    committed: int = 0
    mask_key: Optional[GroupElement] = None
    showdown_value: int = 0
    hole_cards_committed: bool = False
    board_revealed: bool = False

    def reset_for_new_hand(self) -> None:
        """Reset per-hand state; stack and occupant are kept."""
        self.committed = 0
        self.mask_key = None
        self.showdown_value = 0
        self.hole_cards_committed = False
        self.board_revealed = False

    def wager(self, amount: int) -> None:
        """Move chips from the stack into the hand."""
        self.stack -= amount
        self.committed += amount

    @property
    def is_occupied(self) -> bool:
        return self.commitment is not None

    def is_held_by(self, identity: str) -> bool:
        return self.commitment is not None and self.commitment == identity_commitment(identity)

    @property
    def is_all_in(self) -> bool:
        return self.is_occupied and self.stack == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seat": self.seat,
            "occupied": self.is_occupied,
            "commitment": self.commitment,
            "stack": self.stack,
            "committed": self.committed,
            "mask_key": self.mask_key.to_hex() if self.mask_key else None,
            "showdown_value": self.showdown_value,
        }

    def __repr__(self) -> str:
        who = self.commitment[:8] if self.commitment else "empty"
        return f"PlayerSeat({self.seat}, {who}, stack={self.stack}, committed={self.committed})"
