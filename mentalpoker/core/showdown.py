"""
Showdown claims and their verification.

At showdown each seat submits a ShowdownClaim: its two hole cards, the five
board cards, which five of the seven it uses, the lookup key and flush flag
for that selection, and the table value with its Merkle membership proof.
The claim also carries the seat's per-hand mask secret, so the table can
unmask the hole cards it holds for that seat and check the claim against
them.

The table never evaluates a hand. It recomputes the key and the flush flag,
checks the claimed cards against what was dealt, and checks (key, value)
against the committed table root.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from itertools import combinations
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from mentalpoker.core.card import Card
from mentalpoker.core.errors import CorruptedCard, ShowdownMismatch
from mentalpoker.core.group import GroupElement
from mentalpoker.core.hand import is_flush_selection, lookup_key
from mentalpoker.core.lookup import (
    BASIC, FLUSH, HandRankTables, MembershipProof, variant_for, verify_membership,
)
from mentalpoker.core.masking import MaskedCard, decode, partial_unmask, public_key
from mentalpoker.core.rules import HOLE_CARDS, SHOWDOWN_CARDS, TOTAL_BOARD_CARDS


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShowdownClaim:
    """
    A seat's showdown submission.

    Cards are in the 52-prime encoding. ``used`` has one flag per card,
    hole cards first.
    """
    hole_cards: Tuple[int, ...]
    board_cards: Tuple[int, ...]
    used: Tuple[bool, ...]
    is_flush: bool
    lookup_key: int
    lookup_value: int
    proof: MembershipProof
    secret: int

    @property
    def cards(self) -> Tuple[int, ...]:
        return tuple(self.hole_cards) + tuple(self.board_cards)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hole_cards": list(self.hole_cards),
            "board_cards": list(self.board_cards),
            "used": list(self.used),
            "is_flush": self.is_flush,
            "lookup_key": self.lookup_key,
            "lookup_value": self.lookup_value,
            "proof": self.proof.to_dict(),
            "secret": format(self.secret, "x"),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ShowdownClaim:
        return cls(
            hole_cards=tuple(int(p) for p in data["hole_cards"]),
            board_cards=tuple(int(p) for p in data["board_cards"]),
            used=tuple(bool(u) for u in data["used"]),
            is_flush=bool(data["is_flush"]),
            lookup_key=int(data["lookup_key"]),
            lookup_value=int(data["lookup_value"]),
            proof=MembershipProof.from_dict(data["proof"]),
            secret=int(data["secret"], 16),
        )


class ShowdownVerifier:
    """Checks showdown claims against the committed lookup-table roots."""

    def __init__(self, basic_root: str, flush_root: str):
        self.roots = {BASIC: basic_root, FLUSH: flush_root}

    def verify(
        self,
        claim: ShowdownClaim,
        board: Sequence[Optional[Card]],
        mask_key: GroupElement,
        hole_cards: Sequence[MaskedCard],
    ) -> int:
        """
        Verify a claim and return its hand value.

        Args:
            claim: The seat's submission
            board: The revealed board
            mask_key: The seat's mask public key for this hand
            hole_cards: The masked hole cards committed for the seat

        Raises:
            ShowdownMismatch: On any disagreement.
        """
        if len(claim.hole_cards) != HOLE_CARDS or len(claim.board_cards) != TOTAL_BOARD_CARDS:
            raise ShowdownMismatch("Claim must list two hole cards and five board cards")
        if len(claim.used) != HOLE_CARDS + TOTAL_BOARD_CARDS:
            raise ShowdownMismatch("Claim must flag each of the seven cards")
        if sum(claim.used) != SHOWDOWN_CARDS:
            raise ShowdownMismatch(f"Exactly {SHOWDOWN_CARDS} cards must be used")
        if len(set(claim.cards)) != len(claim.cards):
            raise ShowdownMismatch("Claim repeats a card")

        try:
            key = lookup_key(claim.cards, claim.used)
            flush = is_flush_selection(claim.cards, claim.used)
        except ValueError as e:
            raise ShowdownMismatch(str(e))

        if key != claim.lookup_key:
            raise ShowdownMismatch("Lookup key does not match the used cards")
        if flush != claim.is_flush:
            raise ShowdownMismatch("Flush flag does not match the used cards")

        revealed = Counter(c.prime52 if c is not None else None for c in board)
        if revealed != Counter(claim.board_cards):
            raise ShowdownMismatch("Board cards do not match the revealed board")

        self._check_hole_cards(claim, mask_key, hole_cards)

        root = self.roots[variant_for(claim.is_flush)]
        if not verify_membership(root, claim.lookup_key, claim.lookup_value, claim.proof):
            raise ShowdownMismatch("Lookup value is not in the committed table")

        return claim.lookup_value

    @staticmethod
    def _check_hole_cards(
        claim: ShowdownClaim, mask_key: GroupElement, hole_cards: Sequence[MaskedCard],
    ) -> None:
        if mask_key is None or public_key(claim.secret) != mask_key:
            raise ShowdownMismatch("Secret does not match the seat's mask key")
        try:
            opened = [decode(partial_unmask(card, claim.secret)) for card in hole_cards]
        except CorruptedCard:
            raise ShowdownMismatch("Hole cards do not decode with this secret")
        if Counter(c.prime52 for c in opened) != Counter(claim.hole_cards):
            raise ShowdownMismatch("Hole cards do not match the dealt cards")


def best_claim(
    hole_cards: Sequence[Card],
    board: Sequence[Card],
    secret: int,
    tables: HandRankTables,
) -> ShowdownClaim:
    """
    Build the strongest claim for seven known cards.

    Tries every 5-of-7 selection and keeps the one with the lowest table
    value.

    Raises:
        ShowdownMismatch: If the seven cards repeat a card, or a selection
            has no table entry.
    """
    hole = tuple(c.prime52 for c in hole_cards)
    board_primes = tuple(c.prime52 for c in board)
    cards = hole + board_primes
    if len(set(cards)) != len(cards):
        raise ShowdownMismatch("Hole cards and board repeat a card")

    best: Optional[Tuple[int, List[bool], bool, int]] = None
    for chosen in combinations(range(len(cards)), SHOWDOWN_CARDS):
        used = [i in chosen for i in range(len(cards))]
        key = lookup_key(cards, used)
        flush = is_flush_selection(cards, used)
        try:
            value = tables.lookup(key, flush)
        except KeyError:
            raise ShowdownMismatch(f"No {variant_for(flush)} table entry for key {key}")
        if best is None or value < best[0]:
            best = (value, used, flush, key)

    value, used, flush, key = best
    _, proof = tables.prove(key, flush)
    logger.debug(f"Best claim value {value} (flush={flush})")
    return ShowdownClaim(
        hole_cards=hole,
        board_cards=board_primes,
        used=tuple(used),
        is_flush=flush,
        lookup_key=key,
        lookup_value=value,
        proof=proof,
        secret=secret,
    )
