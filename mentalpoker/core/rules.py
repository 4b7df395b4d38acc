"""
Heads-up hold'em rules and constants for the mental-poker table.

Key rules:

1. Two seats. The button posts the small blind and acts first on every
   street; the non-button seat closes a street by checking behind.

2. Legal actions depend only on the action being faced:

       NULL, CHECK     -> BET, CHECK
       BET, RAISE      -> CALL, FOLD, RAISE
       POST_BB         -> PREFLOP_CALL, RAISE
       PREFLOP_CALL    -> CHECK, RAISE

   plus the two blind posts (POST_SB facing NULL, POST_BB facing POST_SB).

3. Bet sizes are chips added by this action. A raise must add at least twice
   what the raiser owes, unless it puts the raiser all-in. Calls are always
   sized by the table, never by the caller.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, FrozenSet, Optional


class HandStage(IntEnum):
    """Stages of a hand, in order."""
    SB_POST = 0
    BB_POST = 1
    DEAL_HOLE_A = 2
    DEAL_HOLE_B = 3
    PREFLOP_BETTING = 4
    FLOP_DEAL = 5
    FLOP_BETTING = 6
    TURN_DEAL = 7
    TURN_BETTING = 8
    RIVER_DEAL = 9
    RIVER_BETTING = 10
    SHOWDOWN_A = 11
    SHOWDOWN_B = 12
    SETTLE = 13
    HAND_OVER = 14


class ActionType(Enum):
    """Player actions (and the NULL 'nothing to face' marker)."""
    NULL = "NULL"
    BET = "BET"
    CALL = "CALL"
    FOLD = "FOLD"
    RAISE = "RAISE"
    CHECK = "CHECK"
    PREFLOP_CALL = "PREFLOP_CALL"
    POST_SB = "POST_SB"
    POST_BB = "POST_BB"


BLIND_STAGES = frozenset({HandStage.SB_POST, HandStage.BB_POST})

BETTING_STAGES = frozenset({
    HandStage.PREFLOP_BETTING,
    HandStage.FLOP_BETTING,
    HandStage.TURN_BETTING,
    HandStage.RIVER_BETTING,
})

DEAL_STAGES = frozenset({HandStage.FLOP_DEAL, HandStage.TURN_DEAL, HandStage.RIVER_DEAL})

HOLE_STAGES = frozenset({HandStage.DEAL_HOLE_A, HandStage.DEAL_HOLE_B})

SHOWDOWN_STAGES = frozenset({HandStage.SHOWDOWN_A, HandStage.SHOWDOWN_B})

# Stages in which a seat may leave the table
IDLE_STAGES = frozenset({HandStage.SB_POST, HandStage.HAND_OVER})

# Where each betting stage goes once the street is closed
NEXT_STREET: Dict[HandStage, HandStage] = {
    HandStage.PREFLOP_BETTING: HandStage.FLOP_DEAL,
    HandStage.FLOP_BETTING: HandStage.TURN_DEAL,
    HandStage.TURN_BETTING: HandStage.RIVER_DEAL,
    HandStage.RIVER_BETTING: HandStage.SHOWDOWN_A,
}

# Board cards dealt at each deal stage, and the board size before it
DEAL_SIZES: Dict[HandStage, int] = {
    HandStage.FLOP_DEAL: 3,
    HandStage.TURN_DEAL: 1,
    HandStage.RIVER_DEAL: 1,
}

HOLE_CARDS = 2
TOTAL_BOARD_CARDS = 5
SHOWDOWN_CARDS = 5

SEATS = 2


LEGAL_RESPONSES: Dict[ActionType, FrozenSet[ActionType]] = {
    ActionType.NULL: frozenset({ActionType.BET, ActionType.CHECK}),
    ActionType.CHECK: frozenset({ActionType.BET, ActionType.CHECK}),
    ActionType.BET: frozenset({ActionType.CALL, ActionType.FOLD, ActionType.RAISE}),
    ActionType.RAISE: frozenset({ActionType.CALL, ActionType.FOLD, ActionType.RAISE}),
    ActionType.POST_BB: frozenset({ActionType.PREFLOP_CALL, ActionType.RAISE}),
    ActionType.PREFLOP_CALL: frozenset({ActionType.CHECK, ActionType.RAISE}),
}


def legal_actions(stage: HandStage, facing: ActionType) -> FrozenSet[ActionType]:
    """
    Actions a seat may take given the stage and the action it is facing.

    Returns an empty set outside the blind and betting stages.
    """
    if stage == HandStage.SB_POST:
        return frozenset({ActionType.POST_SB}) if facing == ActionType.NULL else frozenset()
    if stage == HandStage.BB_POST:
        return frozenset({ActionType.POST_BB}) if facing == ActionType.POST_SB else frozenset()
    if stage not in BETTING_STAGES:
        return frozenset()
    return LEGAL_RESPONSES.get(facing, frozenset())


def closes_street(action: ActionType, facing: ActionType, is_button: bool) -> bool:
    """
    Whether an accepted action ends the current street.

    A call always does; a check does when made by the non-button seat.
    """
    if action == ActionType.CALL:
        return True
    return (
        action == ActionType.CHECK
        and not is_button
        and facing in (ActionType.NULL, ActionType.CHECK, ActionType.PREFLOP_CALL)
    )


def is_valid_raise(amount: int, owed: int, stack: int) -> bool:
    """
    Check a raise size (chips added by the raiser).

    A raise is valid if it adds more than the amount owed and either
    1. at least twice the amount owed, or
    2. the raiser's whole stack (all-in).
    """
    if amount <= owed:
        return False
    return amount >= 2 * owed or amount == stack


@dataclass
class TableConfig:
    """Table stakes and limits."""
    small_blind: int = 1
    big_blind: int = 2
    min_bet: int = 1
    min_buy_in: int = 20
    max_buy_in: int = 200
    # Merkle roots of the hand-rank tables; None means build the reference tables
    basic_root: Optional[str] = None
    flush_root: Optional[str] = None

    def __post_init__(self) -> None:
        if self.small_blind <= 0 or self.big_blind < self.small_blind:
            raise ValueError("Blinds must be positive with big blind >= small blind")
        if self.min_bet <= 0:
            raise ValueError("Minimum bet must be positive")
        if not 0 < self.min_buy_in <= self.max_buy_in:
            raise ValueError("Buy-in range is empty")
