"""
Pytest configuration and shared fixtures for mentalpoker tests.
"""

import pytest
from mentalpoker.agents.party import Party, joint_shuffle
from mentalpoker.core.card import Card, Rank, Suit, parse_cards
from mentalpoker.core.game import PokerTable
from mentalpoker.core.lookup import reference_tables
from mentalpoker.core.rules import ActionType, HandStage


# Nine cards cover two hands of hole cards and a full board
SMALL_DECK = parse_cards("As Ks Qs Js Ts 9h 8d 3c 2h")


class HandDriver:
    """Walks a seated table through the card protocol for tests."""

    def __init__(self, table, alice, bob):
        self.table = table
        self.parties = [alice, bob]
        self.deck = []

    def post_blinds(self):
        button = self.table.button
        self.table.take_action(self.parties[button].identity, ActionType.POST_SB, 1)
        self.table.take_action(self.parties[1 - button].identity, ActionType.POST_BB, 2)

    def deal_hole_cards(self, cards=SMALL_DECK):
        self.deck = joint_shuffle(self.parties, cards)
        for party in self.parties:
            dealt = [self.deck.pop(), self.deck.pop()]
            self.table.commit_opponent_hole_cards(
                party.identity, party.hole_cards_for_opponent(dealt), party.mask_key,
            )
        for seat, party in enumerate(self.parties):
            party.read_hole_cards(self.table.hole_cards[seat])

    def deal_board(self, count):
        self.table.commit_board_cards(self.parties[0].identity, [self.deck.pop() for _ in range(count)])
        pending = list(self.table.pending_board)
        for party in self.parties:
            self.table.reveal_board_cards(party.identity, party.decryption_shares(pending))

    def to_preflop(self):
        self.post_blinds()
        self.deal_hole_cards()
        assert self.table.stage == HandStage.PREFLOP_BETTING

    def check_down(self):
        """Call preflop, then check every street to showdown."""
        button = self.parties[self.table.button].identity
        other = self.parties[1 - self.table.button].identity
        self.table.take_action(button, ActionType.PREFLOP_CALL)
        self.table.take_action(other, ActionType.CHECK)
        for count in (3, 1, 1):
            self.deal_board(count)
            self.table.take_action(button, ActionType.CHECK)
            self.table.take_action(other, ActionType.CHECK)
        assert self.table.stage == HandStage.SHOWDOWN_A


@pytest.fixture
def table():
    """Create an empty table with default stakes (1/2, buy-in 20-200)."""
    return PokerTable()


@pytest.fixture
def seated_table(table):
    """Alice in seat 0 (button), Bob in seat 1, 100 chips each."""
    table.join_table("alice", 0, 100)
    table.join_table("bob", 1, 100)
    return table


@pytest.fixture
def alice():
    return Party("alice")


@pytest.fixture
def bob():
    return Party("bob")


@pytest.fixture
def driver(seated_table, alice, bob):
    return HandDriver(seated_table, alice, bob)


@pytest.fixture
def preflop_table(driver):
    """Blinds posted and hole cards dealt; Alice (button) to act."""
    driver.to_preflop()
    return driver.table


@pytest.fixture(scope="session")
def tables():
    return reference_tables()


@pytest.fixture
def royal_flush():
    """Create a royal flush hand."""
    return [
        Card(Rank.ACE, Suit.SPADES),
        Card(Rank.KING, Suit.SPADES),
        Card(Rank.QUEEN, Suit.SPADES),
        Card(Rank.JACK, Suit.SPADES),
        Card(Rank.TEN, Suit.SPADES),
    ]


@pytest.fixture
def straight_flush():
    """Create a straight flush (9-high)."""
    return [
        Card(Rank.NINE, Suit.HEARTS),
        Card(Rank.EIGHT, Suit.HEARTS),
        Card(Rank.SEVEN, Suit.HEARTS),
        Card(Rank.SIX, Suit.HEARTS),
        Card(Rank.FIVE, Suit.HEARTS),
    ]


@pytest.fixture
def wheel_straight():
    """Create a wheel straight (A-2-3-4-5)."""
    return [
        Card(Rank.ACE, Suit.SPADES),
        Card(Rank.TWO, Suit.HEARTS),
        Card(Rank.THREE, Suit.DIAMONDS),
        Card(Rank.FOUR, Suit.CLUBS),
        Card(Rank.FIVE, Suit.SPADES),
    ]
