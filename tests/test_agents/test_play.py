"""
End-to-end hands driven by Party and the betting agents.
"""

import random

import pytest
from mentalpoker.agents import CallAgent, Party, RandomAgent, play_hand
from mentalpoker.core.card import parse_cards
from mentalpoker.core.errors import CorruptedCard
from mentalpoker.core.game import PokerTable
from mentalpoker.core.rules import HandStage, TableConfig


DECK = parse_cards("Ah Kd Qc Js 9h 8h 7c 4d 2s")


@pytest.fixture
def players(seated_table):
    parties = [Party("alice"), Party("bob")]
    return seated_table, parties


class TestPlayHand:
    """Tests for play_hand."""

    def test_call_down(self, players):
        table, parties = players
        agents = [CallAgent("alice"), CallAgent("bob")]
        result = play_hand(table, parties, agents, cards=DECK)

        assert result["hand_number"] == 1
        assert result["ended"] == "showdown"
        assert sum(result["payout"]) == 4
        assert table.total_chips == 200
        assert table.stage == HandStage.SB_POST
        assert table.hand_number == 2
        for party in parties:
            assert len(party.hole_cards) == 2

    def test_fold_ends_hand(self, players):
        table, parties = players
        agents = [
            RandomAgent("alice", fold_probability=0.0, raise_probability=1.0, rng=random.Random(1)),
            RandomAgent("bob", fold_probability=1.0, raise_probability=0.0, rng=random.Random(2)),
        ]
        result = play_hand(table, parties, agents, cards=DECK)

        assert result["ended"] == "fold"
        assert result["winner"] == 0
        assert table.total_chips == 200
        assert table.hand_number == 2

    def test_random_session_conserves_chips(self, players):
        table, parties = players
        agents = [
            RandomAgent("alice", rng=random.Random(7)),
            RandomAgent("bob", rng=random.Random(11)),
        ]
        for _ in range(8):
            if min(s.stack for s in table.seats) == 0:
                break
            result = play_hand(table, parties, agents, cards=DECK)
            assert result["ended"] in ("fold", "showdown")
            assert table.total_chips == 200
            assert table.pot == 0

    def test_bets_respect_table_min_bet(self):
        table = PokerTable(TableConfig(min_bet=5))
        table.join_table("alice", 0, 100)
        table.join_table("bob", 1, 100)
        parties = [Party("alice"), Party("bob")]
        agents = [
            RandomAgent("alice", fold_probability=0.0, raise_probability=0.9, rng=random.Random(3)),
            RandomAgent("bob", fold_probability=0.0, raise_probability=0.9, rng=random.Random(5)),
        ]
        bets = []
        for _ in range(4):
            if min(s.stack for s in table.seats) == 0:
                break
            play_hand(table, parties, agents, cards=DECK)
            assert table.total_chips == 200
            bets += [h for h in table.hand_history if h["action"] == "BET"]
        assert all(h["amount"] >= 5 for h in bets)

    def test_requires_fresh_hand(self, preflop_table):
        with pytest.raises(ValueError):
            play_hand(preflop_table, [Party("alice"), Party("bob")], [CallAgent("alice"), CallAgent("bob")])


class TestParty:
    """Tests for the client side of the card protocol."""

    def test_only_owner_reads_hole_cards(self, driver):
        driver.to_preflop()
        table = driver.table
        alice, bob = driver.parties
        assert len(alice.hole_cards) == 2
        with pytest.raises(CorruptedCard):
            bob.read_hole_cards(table.hole_cards[0])

    def test_new_hand_changes_secret(self):
        party = Party("alice")
        old = party.mask_key
        party.new_hand()
        assert party.mask_key != old
        assert party.hole_cards == []

    def test_agent_sees_own_seat(self, seated_table):
        agent = CallAgent("bob")
        state = seated_table.get_state()
        assert agent.my_seat(state)["seat"] == 1
        assert agent.bet_limits(state)["stack"] == 100

    def test_agent_reads_min_bet_from_table(self):
        table = PokerTable(TableConfig(min_bet=5))
        table.join_table("alice", 0, 100)
        table.join_table("bob", 1, 100)
        assert CallAgent("alice").bet_limits(table.get_state())["min_bet"] == 5


def test_fresh_table_plays_with_reference_tables():
    table = PokerTable()
    table.join_table("alice", 0, 20)
    table.join_table("bob", 1, 20)
    result = play_hand(
        table, [Party("alice"), Party("bob")], [CallAgent("alice"), CallAgent("bob")], cards=DECK,
    )
    assert result["ended"] == "showdown"
    assert sum(s.stack for s in table.seats) == 40
