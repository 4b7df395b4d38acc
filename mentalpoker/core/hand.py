"""
Hand evaluation and lookup-key computation.

Two jobs live here:

1. A 5-card evaluator (best 5 of 5-7 cards) used offline to build the
   hand-rank lookup tables and client-side to pick the hand to show.
   Scores are "lower is better", Royal Flush lowest.

2. The showdown recomputation: the lookup key (product of the rank primes of
   the cards flagged as used) and the flush flag (every used card in one
   suit). These are what the table recomputes from a showdown claim.

Hand Rankings (best to worst):
1. Royal Flush
2. Straight Flush
3. Four of a Kind
4. Full House
5. Flush
6. Straight
7. Three of a Kind
8. Two Pair
9. One Pair
10. High Card

Note: Ace can be low in A-2-3-4-5 straight (wheel).
"""

from __future__ import annotations
from typing import List, Tuple, Optional, Sequence
from itertools import combinations
from enum import IntEnum
from collections import Counter

from mentalpoker.core.card import Card, Rank, prime52_to_prime13, suit_of_prime52


class HandRank(IntEnum):
    """Hand rankings from best (highest value) to worst (lowest value)."""
    ROYAL_FLUSH = 10
    STRAIGHT_FLUSH = 9
    FOUR_OF_A_KIND = 8
    FULL_HOUSE = 7
    FLUSH = 6
    STRAIGHT = 5
    THREE_OF_A_KIND = 4
    TWO_PAIR = 3
    ONE_PAIR = 2
    HIGH_CARD = 1


HAND_RANK_NAMES = {
    HandRank.ROYAL_FLUSH: "Royal Flush",
    HandRank.STRAIGHT_FLUSH: "Straight Flush",
    HandRank.FOUR_OF_A_KIND: "Four of a Kind",
    HandRank.FULL_HOUSE: "Full House",
    HandRank.FLUSH: "Flush",
    HandRank.STRAIGHT: "Straight",
    HandRank.THREE_OF_A_KIND: "Three of a Kind",
    HandRank.TWO_PAIR: "Two Pair",
    HandRank.ONE_PAIR: "One Pair",
    HandRank.HIGH_CARD: "High Card",
}


# Final score = (10 - hand_rank) * RANK_MULTIPLIER + kicker_value
RANK_MULTIPLIER = 1000000


def score_ranks(ranks: Sequence[Rank], is_flush: bool) -> Tuple[int, HandRank]:
    """
    Score five ranks, given whether they share a suit.

    Returns:
        Tuple of (score, hand_type); lower score is better.
    """
    if len(ranks) != 5:
        raise ValueError(f"Need exactly 5 ranks, got {len(ranks)}")

    ranks = sorted((Rank(r) for r in ranks), reverse=True)
    is_straight, straight_high = _check_straight(ranks)

    rank_counts = Counter(ranks)
    counts = sorted(rank_counts.values(), reverse=True)

    if counts[0] > 4:
        raise ValueError("More than four cards of one rank")

    if is_flush and len(rank_counts) != 5:
        raise ValueError("A flush cannot contain a repeated rank")

    if is_straight and is_flush:
        if straight_high == Rank.ACE:
            return _calculate_rank(HandRank.ROYAL_FLUSH, [Rank.ACE]), HandRank.ROYAL_FLUSH
        return _calculate_rank(HandRank.STRAIGHT_FLUSH, [straight_high]), HandRank.STRAIGHT_FLUSH

    if counts == [4, 1]:
        quad_rank = _get_rank_with_count(rank_counts, 4)
        kicker = _get_rank_with_count(rank_counts, 1)
        return _calculate_rank(HandRank.FOUR_OF_A_KIND, [quad_rank, kicker]), HandRank.FOUR_OF_A_KIND

    if counts == [3, 2]:
        trips_rank = _get_rank_with_count(rank_counts, 3)
        pair_rank = _get_rank_with_count(rank_counts, 2)
        return _calculate_rank(HandRank.FULL_HOUSE, [trips_rank, pair_rank]), HandRank.FULL_HOUSE

    if is_flush:
        return _calculate_rank(HandRank.FLUSH, ranks), HandRank.FLUSH

    if is_straight:
        return _calculate_rank(HandRank.STRAIGHT, [straight_high]), HandRank.STRAIGHT

    if counts == [3, 1, 1]:
        trips_rank = _get_rank_with_count(rank_counts, 3)
        kickers = sorted([r for r, c in rank_counts.items() if c == 1], reverse=True)
        return _calculate_rank(HandRank.THREE_OF_A_KIND, [trips_rank] + kickers), HandRank.THREE_OF_A_KIND

    if counts == [2, 2, 1]:
        pairs = sorted([r for r, c in rank_counts.items() if c == 2], reverse=True)
        kicker = _get_rank_with_count(rank_counts, 1)
        return _calculate_rank(HandRank.TWO_PAIR, pairs + [kicker]), HandRank.TWO_PAIR

    if counts == [2, 1, 1, 1]:
        pair_rank = _get_rank_with_count(rank_counts, 2)
        kickers = sorted([r for r, c in rank_counts.items() if c == 1], reverse=True)
        return _calculate_rank(HandRank.ONE_PAIR, [pair_rank] + kickers), HandRank.ONE_PAIR

    return _calculate_rank(HandRank.HIGH_CARD, ranks), HandRank.HIGH_CARD


def evaluate_hand(cards: List[Card]) -> Tuple[int, HandRank, List[Card]]:
    """
    Evaluate a poker hand (5-7 cards).

    Returns:
        Tuple of (score, hand_type, best_cards); lower score is better.

    Raises:
        ValueError: If not 5-7 cards provided
    """
    if len(cards) < 5 or len(cards) > 7:
        raise ValueError(f"Need 5-7 cards, got {len(cards)}")

    best: Optional[Tuple[int, HandRank, List[Card]]] = None
    for combo in combinations(cards, 5):
        is_flush = len({c.suit for c in combo}) == 1
        score, hand_type = score_ranks([c.rank for c in combo], is_flush)
        if best is None or score < best[0]:
            best = (score, hand_type, sorted(combo, key=lambda c: c.rank, reverse=True))

    return best


def _check_straight(ranks: List[Rank]) -> Tuple[bool, Optional[Rank]]:
    """
    Check if sorted ranks form a straight.

    Returns:
        Tuple of (is_straight, high_card_rank)
    """
    unique_ranks = sorted(set(ranks), reverse=True)
    if len(unique_ranks) != 5:
        return False, None

    if unique_ranks[0] - unique_ranks[4] == 4:
        return True, unique_ranks[0]

    if unique_ranks == [Rank.ACE, Rank.FIVE, Rank.FOUR, Rank.THREE, Rank.TWO]:
        return True, Rank.FIVE

    return False, None


def _get_rank_with_count(rank_counts: Counter, count: int) -> Rank:
    for rank, c in rank_counts.items():
        if c == count:
            return rank
    raise ValueError(f"No rank with count {count}")


def _calculate_rank(hand_type: HandRank, kicker_ranks: List[Rank]) -> int:
    """
    Absolute score for a hand type and kickers; lower is better.

    Hand types go from 10 (Royal Flush) to 1 (High Card), so Royal Flush gets
    base 0 and High Card base 9*M. Kickers are weighted by powers of 13.
    """
    base = (10 - int(hand_type)) * RANK_MULTIPLIER

    kicker_value = 0
    for i, rank in enumerate(kicker_ranks):
        inverted = Rank.ACE - rank
        kicker_value += inverted * (13 ** (len(kicker_ranks) - 1 - i))

    return base + kicker_value


# Showdown recomputation

def lookup_key(cards52: Sequence[int], used: Sequence[bool]) -> int:
    """
    Product of the rank primes of the used cards.

    Unused slots contribute 1, so the key does not depend on slot order.
    """
    if len(cards52) != len(used):
        raise ValueError("Need one used flag per card")
    key = 1
    for prime52, use in zip(cards52, used):
        if use:
            key *= prime52_to_prime13(prime52)
    return key


def is_flush_selection(cards52: Sequence[int], used: Sequence[bool]) -> bool:
    """True iff every used card falls in the same suit range."""
    if len(cards52) != len(used):
        raise ValueError("Need one used flag per card")
    suits = {suit_of_prime52(p) for p, use in zip(cards52, used) if use}
    return len(suits) == 1


def describe(hand_type: HandRank) -> str:
    return HAND_RANK_NAMES[hand_type]
