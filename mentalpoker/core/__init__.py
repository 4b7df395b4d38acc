"""
mentalpoker Core - Card protocol and table logic

This module contains all game logic without any network dependencies.
"""

from mentalpoker.core.card import Card, Rank, Suit, FULL_DECK
from mentalpoker.core.errors import (
    PokerError, IllegalAction, InvalidAmount, CorruptedCard,
    ShowdownMismatch, DuplicateShowdown,
)
from mentalpoker.core.masking import (
    MaskedCard, add_player_to_card_mask, mask, partial_unmask, decode,
)
from mentalpoker.core.hand import HandRank, evaluate_hand
from mentalpoker.core.lookup import HandRankTables, reference_tables, verify_membership
from mentalpoker.core.rules import HandStage, ActionType, TableConfig
from mentalpoker.core.showdown import ShowdownClaim, ShowdownVerifier
from mentalpoker.core.game import PokerTable, ActionResult

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "FULL_DECK",
    "PokerError",
    "IllegalAction",
    "InvalidAmount",
    "CorruptedCard",
    "ShowdownMismatch",
    "DuplicateShowdown",
    "MaskedCard",
    "add_player_to_card_mask",
    "mask",
    "partial_unmask",
    "decode",
    "HandRank",
    "evaluate_hand",
    "HandRankTables",
    "reference_tables",
    "verify_membership",
    "HandStage",
    "ActionType",
    "TableConfig",
    "ShowdownClaim",
    "ShowdownVerifier",
    "PokerTable",
    "ActionResult",
]
