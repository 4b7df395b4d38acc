"""
Deck encoding for mental poker.

Every one of the 52 card identities has two fixed public encodings that all
participants (and the verifier) share:

- a unique prime (``prime52``), so that sets of cards can be committed to
  cheaply as products, with a rank-only reduction to 13 primes (``prime13``)
  used for suit-independent hand lookups;
- a unique group element (the card "point"), which is what actually gets
  masked and passed between the players.

Prime layout (suit blocks in the order hearts, diamonds, clubs, spades)::

    2h=2   ... Ah=41
    2d=43  ... Ad=101
    2c=103 ... Ac=167
    2s=173 ... As=239

so the suit of a card can be read off the numeric range of its prime.
"""

from __future__ import annotations
from typing import Dict, List, Tuple
from enum import IntEnum

from mentalpoker.core.errors import CorruptedCard
from mentalpoker.core.group import GroupElement, hash_to_group


class Suit(IntEnum):
    """Suits in prime-block order."""
    HEARTS = 0    # ♥
    DIAMONDS = 1  # ♦
    CLUBS = 2     # ♣
    SPADES = 3    # ♠


class Rank(IntEnum):
    """Card ranks from 2 (lowest) to Ace (highest)."""
    TWO = 0
    THREE = 1
    FOUR = 2
    FIVE = 3
    SIX = 4
    SEVEN = 5
    EIGHT = 6
    NINE = 7
    TEN = 8
    JACK = 9
    QUEEN = 10
    KING = 11
    ACE = 12


SUIT_SYMBOLS = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}

SUIT_CHARS = {
    Suit.HEARTS: "h",
    Suit.DIAMONDS: "d",
    Suit.CLUBS: "c",
    Suit.SPADES: "s",
}

RANK_CHARS = {
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "T",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
}

CHAR_TO_RANK = {v: k for k, v in RANK_CHARS.items()}
CHAR_TO_RANK["10"] = Rank.TEN
CHAR_TO_SUIT = {v: k for k, v in SUIT_CHARS.items()}
SYMBOL_TO_SUIT = {v: k for k, v in SUIT_SYMBOLS.items()}


def _first_primes(n: int) -> List[int]:
    primes: List[int] = []
    candidate = 2
    while len(primes) < n:
        if all(candidate % p for p in primes if p * p <= candidate):
            primes.append(candidate)
        candidate += 1
    return primes


# prime52 for card index (suit * 13 + rank)
PRIMES_52: Tuple[int, ...] = tuple(_first_primes(52))

# prime13 for each rank; identical to the hearts block
PRIMES_13: Tuple[int, ...] = PRIMES_52[:13]

# Inclusive prime52 range per suit
SUIT_RANGES: Dict[Suit, Tuple[int, int]] = {
    suit: (PRIMES_52[suit * 13], PRIMES_52[suit * 13 + 12]) for suit in Suit
}

_PRIME52_TO_INDEX = {p: i for i, p in enumerate(PRIMES_52)}


class Card:
    """
    A card identity (rank, suit).

    Cards can be created from:
    - Rank and Suit enums: Card(Rank.ACE, Suit.SPADES)
    - String notation: Card.from_string("As") or Card.from_string("A♠")
    - Integer (0-51): Card.from_int(51) = Ace of Spades
    - Its prime: Card.from_prime(239) = Ace of Spades

    The integer encoding is: card_int = suit * 13 + rank, the position of the
    card's prime in PRIMES_52.
    """

    __slots__ = ("rank", "suit", "_int")

    def __init__(self, rank: Rank, suit: Suit):
        self.rank = Rank(rank)
        self.suit = Suit(suit)
        self._int = int(self.suit) * 13 + int(self.rank)

    @classmethod
    def from_string(cls, s: str) -> Card:
        """
        Create a card from string notation.

        Accepts "As", "Kh", "Td", "2c" and the symbol forms "A♠", "K♥".
        """
        s = s.strip()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        if s[:2] == "10":
            rank_part, suit_part = "10", s[2:]
        else:
            rank_part, suit_part = s[0].upper(), s[1:]

        if rank_part not in CHAR_TO_RANK:
            raise ValueError(f"Invalid rank: {rank_part}")
        rank = CHAR_TO_RANK[rank_part]

        if suit_part.lower() in CHAR_TO_SUIT:
            suit = CHAR_TO_SUIT[suit_part.lower()]
        elif suit_part in SYMBOL_TO_SUIT:
            suit = SYMBOL_TO_SUIT[suit_part]
        else:
            raise ValueError(f"Invalid suit: {suit_part}")

        return cls(rank, suit)

    @classmethod
    def from_int(cls, card_int: int) -> Card:
        """Create a card from integer (0-51)."""
        if not 0 <= card_int <= 51:
            raise ValueError(f"Card int must be 0-51, got {card_int}")
        return cls(Rank(card_int % 13), Suit(card_int // 13))

    @classmethod
    def from_prime(cls, prime52: int) -> Card:
        """Create a card from its 52-prime encoding."""
        if prime52 not in _PRIME52_TO_INDEX:
            raise ValueError(f"Not a card prime: {prime52}")
        return cls.from_int(_PRIME52_TO_INDEX[prime52])

    def to_int(self) -> int:
        return self._int

    def __int__(self) -> int:
        return self._int

    @property
    def prime52(self) -> int:
        return PRIMES_52[self._int]

    @property
    def prime13(self) -> int:
        return PRIMES_13[self.rank]

    @property
    def point(self) -> GroupElement:
        """The card's group element."""
        return _CARD_POINTS[self._int]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Card):
            return self._int == other._int
        return False

    def __hash__(self) -> int:
        return self._int

    def __lt__(self, other: Card) -> bool:
        """Compare by rank only (for sorting)."""
        return self.rank < other.rank

    def __repr__(self) -> str:
        return f"Card({self.short_str})"

    def __str__(self) -> str:
        return f"{RANK_CHARS[self.rank]}{SUIT_SYMBOLS[self.suit]}"

    @property
    def short_str(self) -> str:
        """Short string like 'As', 'Kh'."""
        return f"{RANK_CHARS[self.rank]}{SUIT_CHARS[self.suit]}"

    def to_dict(self) -> dict:
        return {
            "rank": RANK_CHARS[self.rank],
            "suit": SUIT_SYMBOLS[self.suit],
            "text": self.short_str,
            "prime": self.prime52,
        }


FULL_DECK: Tuple[Card, ...] = tuple(Card.from_int(i) for i in range(52))


# Static bidirectional card <-> point table, built once at import
_CARD_POINTS: Tuple[GroupElement, ...] = tuple(
    hash_to_group(f"mentalpoker/card/{card.short_str}".encode()) for card in FULL_DECK
)
_POINT_TO_CARD: Dict[GroupElement, Card] = {
    point: card for card, point in zip(FULL_DECK, _CARD_POINTS)
}
assert len(_POINT_TO_CARD) == 52, "card points must be distinct"


def card_point(card: Card) -> GroupElement:
    """Group element for a card identity."""
    return _CARD_POINTS[card.to_int()]


def point_to_card(point: GroupElement) -> Card:
    """
    Card identity for a fully unmasked message.

    Raises:
        CorruptedCard: If the point is not one of the 52 card points, which is
            what a wrongly unmasked (or still masked) card looks like.
    """
    card = _POINT_TO_CARD.get(point)
    if card is None:
        raise CorruptedCard("Message does not decode to a card")
    return card


def prime52_to_prime13(prime52: int) -> int:
    """Rank-only reduction of a 52-prime."""
    if prime52 not in _PRIME52_TO_INDEX:
        raise ValueError(f"Not a card prime: {prime52}")
    return PRIMES_13[_PRIME52_TO_INDEX[prime52] % 13]


def suit_of_prime52(prime52: int) -> Suit:
    """Suit of a 52-prime, read from its numeric range."""
    for suit, (low, high) in SUIT_RANGES.items():
        if low <= prime52 <= high:
            return suit
    raise ValueError(f"Not a card prime: {prime52}")


def parse_cards(cards_str: str) -> List[Card]:
    """
    Parse multiple cards from a string.

    Accepts "As Kh Td" (space-separated), "AsKhTd" (2 chars each) and the
    symbol forms.
    """
    cards_str = cards_str.strip()

    if " " in cards_str:
        return [Card.from_string(s) for s in cards_str.split()]

    result = []
    i = 0
    while i < len(cards_str):
        if i + 1 < len(cards_str) and (
            cards_str[i + 1] in SYMBOL_TO_SUIT or cards_str[i + 1].lower() in CHAR_TO_SUIT
        ):
            result.append(Card.from_string(cards_str[i:i + 2]))
            i += 2
        else:
            raise ValueError(f"Cannot parse card at position {i}: {cards_str[i:]}")

    return result
