"""
mentalpoker - Heads-up hold'em without a trusted dealer

A two-player poker table where the cards are masked by both players:
- Pure Python card masking and table state machine
- Showdown claims checked against Merkle-committed hand-rank tables
- FastAPI + WebSocket server layer

Usage:
    from mentalpoker.core import PokerTable, MaskedCard, TableConfig
    from mentalpoker.agents import Party, RandomAgent, play_hand
"""

__version__ = "0.1.0"

from mentalpoker.core.card import Card
from mentalpoker.core.masking import MaskedCard
from mentalpoker.core.game import PokerTable
from mentalpoker.core.rules import TableConfig
from mentalpoker.core.hand import HandRank, evaluate_hand

__all__ = [
    "Card",
    "MaskedCard",
    "PokerTable",
    "TableConfig",
    "HandRank",
    "evaluate_hand",
    "__version__",
]
