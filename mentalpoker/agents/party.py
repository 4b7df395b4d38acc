"""
Protocol party: the client side of a mental-poker hand.

A Party holds one player's per-hand masking secret and does everything the
table cannot do for it: masking and shuffling the deck, stripping its own
mask from the opponent's hole cards, reading its own hole cards, producing
decryption shares for board reveals, and building the showdown claim.

play_hand() drives a full hand between two parties and two betting agents
against a PokerTable, which is how the agents and the tests exercise the
protocol end to end.

Usage:
    table = PokerTable()
    alice, bob = Party("alice"), Party("bob")
    table.join_table("alice", 0, 100)
    table.join_table("bob", 1, 100)
    play_hand(table, [alice, bob], [CallAgent("alice"), CallAgent("bob")])
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Any
import logging
import secrets

from mentalpoker.agents.base import BaseAgent
from mentalpoker.core.card import FULL_DECK, Card
from mentalpoker.core.game import PokerTable
from mentalpoker.core.group import GroupElement
from mentalpoker.core.lookup import HandRankTables, reference_tables
from mentalpoker.core.masking import (
    DecryptionShare, MaskedCard, add_player_to_card_mask, decode,
    decryption_share, mask, new_nonce, new_secret, partial_unmask, public_key,
)
from mentalpoker.core.rules import (
    ActionType, HandStage, BETTING_STAGES, DEAL_SIZES, HOLE_CARDS, SHOWDOWN_STAGES, TOTAL_BOARD_CARDS,
)
from mentalpoker.core.showdown import ShowdownClaim, best_claim


logger = logging.getLogger(__name__)

_shuffler = secrets.SystemRandom()


class Party:
    """
    One player's side of the card protocol.

    Attributes:
        identity: Public identity used at the table
        secret: Masking secret for the current hand
        hole_cards: Own hole cards once read
    """

    def __init__(self, identity: str, tables: Optional[HandRankTables] = None):
        self.identity = identity
        self.tables = tables
        self.secret = new_secret()
        self.hole_cards: List[Card] = []

    def new_hand(self) -> None:
        """Fresh secret for a new hand; secrets are revealed at showdown."""
        self.secret = new_secret()
        self.hole_cards = []

    @property
    def mask_key(self) -> GroupElement:
        return public_key(self.secret)

    def shuffle(self, deck: Sequence[MaskedCard]) -> List[MaskedCard]:
        """Add this party's key to every card, re-mask each one and permute."""
        shuffled = [mask(add_player_to_card_mask(card, self.secret), new_nonce()) for card in deck]
        _shuffler.shuffle(shuffled)
        return shuffled

    def hole_cards_for_opponent(self, cards: Sequence[MaskedCard]) -> List[MaskedCard]:
        """Strip this party's mask so only the opponent can read the cards."""
        return [partial_unmask(card, self.secret) for card in cards]

    def read_hole_cards(self, cards: Sequence[MaskedCard]) -> List[Card]:
        """
        Unmask and decode the hole cards committed for this party.

        Raises:
            CorruptedCard: If the cards were not masked for this party.
        """
        self.hole_cards = [decode(partial_unmask(card, self.secret)) for card in cards]
        return self.hole_cards

    def decryption_shares(self, cards: Sequence[MaskedCard]) -> List[DecryptionShare]:
        return [decryption_share(card, self.secret) for card in cards]

    def claim(self, board: Sequence[Card]) -> ShowdownClaim:
        """Strongest showdown claim for the own hole cards and the board."""
        tables = self.tables or reference_tables()
        return best_claim(self.hole_cards, board, self.secret, tables)

    def __repr__(self) -> str:
        return f"Party({self.identity})"


def joint_shuffle(parties: Sequence[Party], cards: Optional[Sequence[Card]] = None) -> List[MaskedCard]:
    """Deck masked and shuffled by every party in turn."""
    deck = [MaskedCard.from_card(card) for card in (cards or FULL_DECK)]
    for party in parties:
        deck = party.shuffle(deck)
    return deck


def play_hand(
    table: PokerTable,
    parties: Sequence[Party],
    agents: Sequence[BaseAgent],
    cards: Optional[Sequence[Card]] = None,
    max_actions: int = 200,
) -> Dict[str, Any]:
    """
    Play one hand from the blinds to settlement (or a fold).

    Args:
        table: A full table in the SB_POST stage
        parties: Protocol parties, indexed by seat
        agents: Betting agents, indexed by seat
        cards: Card identities to shuffle (defaults to the full deck)
        max_actions: Safety limit on betting actions

    Returns:
        Summary dict with hand number, how it ended, and the payout.

    Raises:
        PokerError: If any party or agent makes a move the table rejects.
    """
    if table.stage != HandStage.SB_POST:
        raise ValueError(f"Hand must start at SB_POST, table is at {table.stage.name}")

    hand_number = table.hand_number
    for party, agent in zip(parties, agents):
        party.new_hand()
        agent.on_hand_start(hand_number)

    button = table.button
    for seat, blind in ((button, ActionType.POST_SB), (1 - button, ActionType.POST_BB)):
        table.take_action(parties[seat].identity, blind, table.blind_due(seat, blind))

    deck = joint_shuffle(parties, cards)
    for party in parties:
        dealt = [deck.pop() for _ in range(HOLE_CARDS)]
        table.commit_opponent_hole_cards(
            party.identity, party.hole_cards_for_opponent(dealt), party.mask_key,
        )
    for seat, party in enumerate(parties):
        party.read_hole_cards(table.hole_cards[seat])

    actions = 0
    result: Dict[str, Any] = {"hand_number": hand_number}
    while True:
        stage = table.stage

        if stage in BETTING_STAGES:
            actions += 1
            if actions > max_actions:
                raise RuntimeError("Betting did not finish")
            seat = table.turn
            state = table.get_state()
            legal = table.get_legal_actions(parties[seat].identity)
            for agent in agents:
                agent.observe(state)
            decision = agents[seat].act(state, legal)
            table.take_action(
                parties[seat].identity, ActionType(decision["action"]), decision.get("amount", 0),
            )

        elif table.pending_board or _needs_board(table):
            _deal_board(table, parties, deck)

        elif stage in SHOWDOWN_STAGES:
            board = list(table.board_cards)
            for seat, party in enumerate(parties):
                if not table.seats[seat].showdown_value:
                    table.show_cards(party.identity, party.claim(board))
                    break

        elif stage == HandStage.SETTLE:
            payout = table.settle()
            result.update(ended="showdown", payout=list(payout.amounts), winner=payout.winner)
            break

        elif stage == HandStage.HAND_OVER:
            fold = table.hand_history[-1]
            result.update(ended="fold", payout=fold["amounts"], winner=fold["winner"])
            table.next_hand()
            break

        else:
            raise RuntimeError(f"Unexpected stage {stage.name}")

    for agent in agents:
        agent.on_hand_end(result)
    logger.debug(f"Hand #{hand_number} finished: {result}")
    return result


def _needs_board(table: PokerTable) -> bool:
    if table.stage in DEAL_SIZES:
        return True
    return table.stage == HandStage.SHOWDOWN_A and len(table.board_cards) < TOTAL_BOARD_CARDS


def _deal_board(table: PokerTable, parties: Sequence[Party], deck: List[MaskedCard]) -> None:
    if not table.pending_board:
        size = DEAL_SIZES.get(table.stage) or (3 if not table.board_cards else 1)
        table.commit_board_cards(parties[0].identity, [deck.pop() for _ in range(size)])
    pending = list(table.pending_board)
    for party in parties:
        table.reveal_board_cards(party.identity, party.decryption_shares(pending))
