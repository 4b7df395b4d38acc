"""
Errors raised by the table and the card protocol.

Rejections are raised before any state is written, so a caught error leaves
the table as it was. A CorruptedCard from a board reveal is the exception:
the bad deal is discarded first.
"""


class PokerError(ValueError):
    """Base class for rejected operations."""


class IllegalAction(PokerError):
    """Wrong seat's turn, wrong stage, or an action not legal facing the last one."""


class InvalidAmount(PokerError):
    """A wager that breaks the sizing rules or exceeds the acting stack."""


class CorruptedCard(PokerError):
    """
    A message that does not decode to a card.

    Produced by partially unmasking with a secret that never contributed to
    the mask. Nothing detects the corruption when it happens; it shows up
    when the card is decoded.
    """


class ShowdownMismatch(PokerError):
    """A showdown claim that does not agree with the recomputed values or the table."""


class DuplicateShowdown(PokerError):
    """A seat submitting a second showdown claim in the same hand."""
