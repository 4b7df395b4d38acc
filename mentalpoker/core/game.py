"""
Heads-up mental-poker table - State Machine Implementation.

This module implements the table side of a two-player hold'em hand played
without a dealer. The table never sees a card in the clear until the players
reveal it. It handles:
- Seating, deposits and withdrawals
- Blinds and betting (legal actions, bet sizing, street advancement)
- Masked hole-card and board-card commitments and board reveals
- Showdown claims, checked against committed hand-rank tables
- Settlement and button rotation

Every operation validates completely before writing anything; a rejected
operation raises a PokerError and leaves the table untouched. The one
exception is a board deal that fails to decode, which is discarded.
"""

from __future__ import annotations
from typing import List, Dict, Optional, Any, Sequence, Tuple
from dataclasses import dataclass
import logging

from mentalpoker.core.card import Card
from mentalpoker.core.errors import (
    CorruptedCard, DuplicateShowdown, IllegalAction, InvalidAmount,
)
from mentalpoker.core.group import GroupElement
from mentalpoker.core.lookup import BASIC, FLUSH, reference_tables
from mentalpoker.core.masking import (
    DecryptionShare, MaskedCard, apply_share, try_decode, verify_share,
)
from mentalpoker.core.player import PlayerSeat, identity_commitment
from mentalpoker.core.rules import (
    HandStage, ActionType, TableConfig,
    BETTING_STAGES, BLIND_STAGES, DEAL_STAGES, HOLE_STAGES, IDLE_STAGES, SHOWDOWN_STAGES,
    NEXT_STREET, DEAL_SIZES, HOLE_CARDS, TOTAL_BOARD_CARDS, SEATS,
    legal_actions, closes_street, is_valid_raise,
)
from mentalpoker.core.settlement import (
    Payout, fold_payout, showdown_payout, uncalled_excess,
)
from mentalpoker.core.showdown import ShowdownClaim, ShowdownVerifier


logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Result of an accepted betting action."""
    success: bool
    message: str
    action_type: Optional[ActionType] = None
    amount: int = 0


# Board size before each deal
_BOARD_BEFORE_DEAL = {0: HandStage.FLOP_DEAL, 3: HandStage.TURN_DEAL, 4: HandStage.RIVER_DEAL}


class PokerTable:
    """
    Two-seat mental-poker table implementing a state machine.

    Usage:
        table = PokerTable()
        table.join_table("alice", 0, 100)
        table.join_table("bob", 1, 100)
        table.take_action("alice", ActionType.POST_SB, 1)
        table.take_action("bob", ActionType.POST_BB, 2)
        # each player commits the opponent's masked hole cards
        table.commit_opponent_hole_cards("alice", cards_for_bob, alice_mask_key)
        table.commit_opponent_hole_cards("bob", cards_for_alice, bob_mask_key)
        # betting, then per street: commit_board_cards + reveal_board_cards
        ...
        table.show_cards("alice", claim_a)
        table.show_cards("bob", claim_b)
        table.settle()
    """

    def __init__(self, config: Optional[TableConfig] = None):
        """
        Initialize an empty table.

        Args:
            config: Stakes, buy-in range and hand-rank table roots. When the
                roots are not given, the reference tables are built and used.
        """
        self.config = config or TableConfig()

        basic_root, flush_root = self.config.basic_root, self.config.flush_root
        if basic_root is None or flush_root is None:
            roots = reference_tables().roots
            basic_root = basic_root or roots[BASIC]
            flush_root = flush_root or roots[FLUSH]
        self.verifier = ShowdownVerifier(basic_root, flush_root)

        self.seats: List[PlayerSeat] = [PlayerSeat(seat=i) for i in range(SEATS)]
        self.hand_history: List[Dict[str, Any]] = []
        self._reset_table()

    def _reset_table(self) -> None:
        """Initial hand state."""
        self.stage = HandStage.SB_POST
        self.pot = 0
        self.facing = ActionType.NULL
        self.last_bet = 0
        self.button = 0
        self.turn = 0
        self.hand_number = 1

        self._clear_cards()

    def _clear_cards(self) -> None:
        # hole_cards[i] are the masked cards dealt to seat i
        self.hole_cards: Dict[int, List[MaskedCard]] = {}
        self.board: List[MaskedCard] = []
        self.board_cards: List[Card] = []
        self.pending_board: List[MaskedCard] = []
        self._pending_reveal: List[MaskedCard] = []

    @property
    def total_chips(self) -> int:
        """Chips on the table: both stacks plus the pot."""
        return sum(s.stack for s in self.seats) + self.pot

    @property
    def is_full(self) -> bool:
        return all(s.is_occupied for s in self.seats)

    @property
    def board_complete(self) -> bool:
        return len(self.board_cards) == TOTAL_BOARD_CARDS and not self.pending_board

    @property
    def is_all_in(self) -> bool:
        """No further betting is possible this hand."""
        return any(s.is_all_in for s in self.seats)

    def _seat_of(self, identity: str) -> PlayerSeat:
        commitment = identity_commitment(identity)
        for seat in self.seats:
            if seat.commitment == commitment:
                return seat
        raise IllegalAction("Player is not seated at this table")

    def _opponent(self, seat: PlayerSeat) -> PlayerSeat:
        return self.seats[1 - seat.seat]

    def _require_full_table(self) -> None:
        if not self.is_full:
            raise IllegalAction("Both seats must be taken")

    # Seating

    def join_table(self, identity: str, seat: int, deposit: int) -> PlayerSeat:
        """
        Take a free seat with a deposit.

        Raises:
            IllegalAction: Bad or taken seat, or the caller is already seated.
            InvalidAmount: Deposit outside the buy-in range.
        """
        if seat not in range(SEATS):
            raise IllegalAction(f"Seat must be 0-{SEATS - 1}")
        if self.seats[seat].is_occupied:
            raise IllegalAction(f"Seat {seat} is taken")
        if any(s.is_held_by(identity) for s in self.seats):
            raise IllegalAction("Player is already seated")
        if self.stage not in IDLE_STAGES:
            raise IllegalAction("Cannot join during a hand")
        if not self.config.min_buy_in <= deposit <= self.config.max_buy_in:
            raise InvalidAmount(
                f"Deposit must be between {self.config.min_buy_in} and {self.config.max_buy_in}"
            )

        player = self.seats[seat]
        player.commitment = identity_commitment(identity)
        player.stack = deposit
        player.reset_for_new_hand()

        logger.info(f"Seat {seat} joined with {deposit}")
        self._log_action("JOIN", {"seat": seat, "deposit": deposit})
        return player

    def leave_table(self, identity: str) -> int:
        """
        Withdraw the caller's stack and free the seat.

        Returns:
            The withdrawn amount.

        Raises:
            IllegalAction: Not seated, or a hand is in progress.
        """
        player = self._seat_of(identity)
        if self.stage not in IDLE_STAGES:
            raise IllegalAction("Cannot leave during a hand")

        amount = player.stack
        player.stack = 0
        player.commitment = None
        player.reset_for_new_hand()

        logger.info(f"Seat {player.seat} left with {amount}")
        self._log_action("LEAVE", {"seat": player.seat, "amount": amount})

        if not any(s.is_occupied for s in self.seats):
            logger.info("Table empty, resetting")
            self._reset_table()
        return amount

    # Betting

    def get_legal_actions(self, identity: str) -> List[str]:
        """Action names the caller may take right now (empty if not their turn)."""
        player = self._seat_of(identity)
        if not self.is_full or player.seat != self.turn:
            return []
        return sorted(a.value for a in legal_actions(self.stage, self.facing))

    def blind_due(self, seat: int, action: ActionType) -> int:
        """
        Chips the seat must post for a blind.

        A stack shorter than the blind posts all of it.
        """
        blind = self.config.small_blind if action == ActionType.POST_SB else self.config.big_blind
        return min(blind, self.seats[seat].stack)

    def amount_owed(self, seat: int) -> int:
        """Chips the seat must add to match its opponent this hand."""
        player = self.seats[seat]
        return max(0, self._opponent(player).committed - player.committed)

    def take_action(self, identity: str, action: ActionType, amount: int = 0) -> ActionResult:
        """
        Process a blind or betting action.

        Args:
            identity: Caller's public identity
            action: The action
            amount: Chips added by this action (ignored for calls)

        Returns:
            ActionResult with the chips actually wagered

        Raises:
            IllegalAction: Not the caller's turn, wrong stage, or not legal
                facing the last action.
            InvalidAmount: Amount breaks the sizing rules.
        """
        player = self._seat_of(identity)
        self._require_full_table()
        if player.seat != self.turn:
            raise IllegalAction("Player is not allowed to make a move")
        if self.stage not in BLIND_STAGES | BETTING_STAGES:
            raise IllegalAction(f"No betting during {self.stage.name}")
        if self.stage == HandStage.SB_POST and any(s.stack == 0 for s in self.seats):
            raise IllegalAction("A seat with no chips must leave before the next hand")

        try:
            action = ActionType(action)
        except ValueError:
            raise IllegalAction("Invalid bet!")
        if action not in legal_actions(self.stage, self.facing):
            raise IllegalAction("Invalid bet!")

        opponent = self._opponent(player)
        chips, refund = self._size_action(player, opponent, action, amount)

        # Validated; apply
        facing_before = self.facing
        player.wager(chips)
        self.pot += chips
        if refund:
            opponent.stack += refund
            opponent.committed -= refund
            self.pot -= refund
            logger.debug(f"Returned {refund} uncalled to seat {opponent.seat}")

        if action in (ActionType.BET, ActionType.RAISE, ActionType.POST_SB, ActionType.POST_BB):
            self.last_bet = chips
        if action == ActionType.POST_SB:
            self.hand_history = []

        self._log_action(action.value, {"seat": player.seat, "amount": chips})
        logger.debug(f"Seat {player.seat} {action.value} {chips}")

        if action == ActionType.FOLD:
            self._end_hand_by_fold(player)
            return ActionResult(True, "Folded", action, 0)

        self.facing = action
        self.turn = opponent.seat

        if action == ActionType.POST_SB:
            self.stage = HandStage.BB_POST
        elif action == ActionType.POST_BB:
            self.stage = HandStage.DEAL_HOLE_A
        elif self._betting_finished(action):
            self._go_to_showdown()
        elif closes_street(action, facing_before, player.seat == self.button):
            self._end_street()

        return ActionResult(True, f"{action.value} {chips}", action, chips)

    def _size_action(
        self, player: PlayerSeat, opponent: PlayerSeat, action: ActionType, amount: int,
    ) -> Tuple[int, int]:
        """Chips wagered by an action, and the uncalled excess to return."""
        owed = max(0, opponent.committed - player.committed)

        if action in (ActionType.CHECK, ActionType.FOLD):
            if amount != 0:
                raise InvalidAmount(f"{action.value} takes no amount")
            return 0, 0

        if action in (ActionType.CALL, ActionType.PREFLOP_CALL):
            refund = uncalled_excess(owed, player.stack)
            return owed - refund, refund

        if action in (ActionType.POST_SB, ActionType.POST_BB):
            expected = self.blind_due(player.seat, action)
            if amount != expected:
                raise InvalidAmount(f"{action.value} must be {expected}")
            # A big blind short of the small blind levels the wagers
            return amount, max(0, opponent.committed - amount)

        if amount > player.stack:
            raise InvalidAmount(f"Cannot wager more than stack ({player.stack})")
        if action == ActionType.BET and amount < self.config.min_bet:
            raise InvalidAmount(f"Minimum bet is {self.config.min_bet}")
        if action == ActionType.RAISE:
            if opponent.stack == 0:
                raise InvalidAmount("Cannot raise an all-in player")
            if not is_valid_raise(amount, owed, player.stack):
                raise InvalidAmount(f"Raise must be at least {2 * owed} or all-in")
        return amount, 0

    def _betting_finished(self, action: ActionType) -> bool:
        """After a call the wagers are level; with a stack empty nobody can bet."""
        if action not in (ActionType.CALL, ActionType.PREFLOP_CALL):
            return False
        level = self.seats[0].committed == self.seats[1].committed
        return level and self.is_all_in

    def _end_street(self) -> None:
        self.stage = NEXT_STREET[self.stage]
        self.facing = ActionType.NULL
        self.last_bet = 0
        self.turn = self.button
        logger.debug(f"Street closed, now {self.stage.name}")

    def _go_to_showdown(self) -> None:
        self.stage = HandStage.SHOWDOWN_A
        self.facing = ActionType.NULL
        self.turn = self.button
        logger.info(f"Hand #{self.hand_number} to showdown with pot {self.pot}")
        self._log_action("SHOWDOWN", {"pot": self.pot})

    def _end_hand_by_fold(self, folder: PlayerSeat) -> None:
        payout = fold_payout(self.pot, folder.seat)
        self._apply_payout(payout)
        self.stage = HandStage.HAND_OVER
        logger.info(f"Hand #{self.hand_number}: seat {folder.seat} folded, seat {payout.winner} wins")

    # Cards

    def commit_opponent_hole_cards(
        self, identity: str, cards: Sequence[MaskedCard], mask_key: GroupElement,
    ) -> None:
        """
        Commit the opponent's masked hole cards and register the caller's mask key.

        The cards should be masked by the opponent's key only, so the opponent
        can read them and nobody else can.

        Raises:
            IllegalAction: Wrong stage, already committed, or bad cards.
        """
        player = self._seat_of(identity)
        self._require_full_table()
        if self.stage not in HOLE_STAGES:
            raise IllegalAction(f"Cannot commit hole cards during {self.stage.name}")
        if player.hole_cards_committed:
            raise IllegalAction("Hole cards already committed")
        if len(cards) != HOLE_CARDS:
            raise IllegalAction(f"Need {HOLE_CARDS} hole cards")
        if not all(card.is_masked for card in cards):
            raise IllegalAction("Hole cards must be masked")
        if mask_key is None or mask_key.is_identity:
            raise IllegalAction("A mask key is required")

        opponent = self._opponent(player)
        self.hole_cards[opponent.seat] = list(cards)
        player.mask_key = mask_key
        player.hole_cards_committed = True
        self.stage = HandStage(self.stage + 1)

        logger.debug(f"Seat {player.seat} committed hole cards for seat {opponent.seat}")
        self._log_action("HOLE_CARDS", {"seat": player.seat})

    def _deal_size(self) -> int:
        """Cards in the next board deal, or 0 if no deal is open."""
        if self.stage in DEAL_STAGES:
            return DEAL_SIZES[self.stage]
        if self.stage == HandStage.SHOWDOWN_A and self.is_all_in:
            if len(self.board_cards) < TOTAL_BOARD_CARDS:
                return DEAL_SIZES[_BOARD_BEFORE_DEAL[len(self.board_cards)]]
        return 0

    def commit_board_cards(self, identity: str, cards: Sequence[MaskedCard]) -> None:
        """
        Commit the masked cards of the next board deal.

        Each card must be masked by both seats' keys for this hand.

        Raises:
            IllegalAction: No deal open, already committed, or bad cards.
        """
        self._seat_of(identity)
        self._require_full_table()
        size = self._deal_size()
        if not size:
            raise IllegalAction(f"No board deal during {self.stage.name}")
        if self.pending_board:
            raise IllegalAction("Board cards already committed for this deal")
        if len(cards) != size:
            raise IllegalAction(f"Need {size} board cards")

        joint_key = self.seats[0].mask_key + self.seats[1].mask_key
        if any(card.mask_key != joint_key for card in cards):
            raise IllegalAction("Board cards must be masked by both players")

        seen = list(self.board) + [c for hole in self.hole_cards.values() for c in hole]
        for card in cards:
            if card in seen:
                raise IllegalAction("Board card repeats a card already dealt")
            seen.append(card)

        self.pending_board = list(cards)
        self._pending_reveal = list(cards)
        logger.debug(f"Board deal of {size} committed")
        self._log_action("BOARD_COMMIT", {"cards": size})

    def reveal_board_cards(self, identity: str, shares: Sequence[DecryptionShare]) -> None:
        """
        Apply the caller's decryption shares to the committed board deal.

        Once both seats have revealed, the cards are decoded and the hand
        moves on to the street's betting. A deal that decodes to something
        other than fresh cards is thrown away, so it can be committed again;
        this is the one rejection that changes the table.

        Raises:
            IllegalAction: Nothing to reveal, already revealed, or a share
                fails verification.
            CorruptedCard: The deal does not decode to cards new to the board.
        """
        player = self._seat_of(identity)
        if not self.pending_board:
            raise IllegalAction("No board cards to reveal")
        if player.board_revealed:
            raise IllegalAction("Board cards already revealed")
        if len(shares) != len(self._pending_reveal):
            raise IllegalAction(f"Need {len(self._pending_reveal)} decryption shares")

        for card, share in zip(self._pending_reveal, shares):
            if not verify_share(card, player.mask_key, share):
                raise IllegalAction("Decryption share does not verify")

        revealed = [
            apply_share(card, player.mask_key, share)
            for card, share in zip(self._pending_reveal, shares)
        ]

        if not self._opponent(player).board_revealed:
            self._pending_reveal = revealed
            player.board_revealed = True
            logger.debug(f"Seat {player.seat} revealed board deal")
            return

        decoded = [try_decode(card) for card in revealed]
        known = list(self.board_cards)
        for card in decoded:
            if card is None or card in known:
                self._discard_board_deal()
                raise CorruptedCard("Board deal does not decode to new cards")
            known.append(card)

        logger.debug(f"Seat {player.seat} revealed board deal")
        self._finish_board_deal(decoded)

    def _discard_board_deal(self) -> None:
        logger.warning(f"Hand #{self.hand_number}: discarding undecodable board deal")
        self._log_action("BOARD_DISCARD", {"cards": len(self.pending_board)})
        self.pending_board = []
        self._pending_reveal = []
        for seat in self.seats:
            seat.board_revealed = False

    def _finish_board_deal(self, decoded: List[Card]) -> None:
        self.board.extend(self.pending_board)
        self.board_cards.extend(decoded)
        self.pending_board = []
        self._pending_reveal = []
        for seat in self.seats:
            seat.board_revealed = False

        self._log_action("BOARD", {"cards": [str(c) for c in decoded]})
        if self.stage in DEAL_STAGES:
            self.stage = HandStage(self.stage + 1)

    # Showdown and settlement

    def show_cards(self, identity: str, claim: ShowdownClaim) -> int:
        """
        Submit a showdown claim.

        Returns:
            The verified hand value (lower is stronger).

        Raises:
            IllegalAction: Wrong stage or incomplete board.
            DuplicateShowdown: The seat already showed this hand.
            ShowdownMismatch: The claim does not check out.
        """
        player = self._seat_of(identity)
        if self.stage not in SHOWDOWN_STAGES:
            raise IllegalAction(f"No showdown during {self.stage.name}")
        if not self.board_complete:
            raise IllegalAction("Board is not complete")
        if player.showdown_value:
            raise DuplicateShowdown("Seat already showed this hand")

        value = self.verifier.verify(
            claim, self.board_cards, player.mask_key, self.hole_cards.get(player.seat, []),
        )

        player.showdown_value = value
        self.stage = HandStage(self.stage + 1)
        logger.info(f"Seat {player.seat} showed value {value}")
        self._log_action("SHOW", {"seat": player.seat, "value": value})
        return value

    def settle(self) -> Payout:
        """
        Pay out the pot after both claims and start the next hand.

        Raises:
            IllegalAction: Not in the settle stage.
        """
        if self.stage != HandStage.SETTLE:
            raise IllegalAction(f"Cannot settle during {self.stage.name}")

        payout = showdown_payout(
            self.pot, [s.showdown_value for s in self.seats], self.button,
        )
        self._apply_payout(payout)
        logger.info(f"Hand #{self.hand_number} settled: {payout.reason} {list(payout.amounts)}")
        self._start_next_hand()
        return payout

    def next_hand(self) -> None:
        """Move on from a folded hand."""
        if self.stage != HandStage.HAND_OVER:
            raise IllegalAction("Hand is not over")
        self._start_next_hand()

    def _apply_payout(self, payout: Payout) -> None:
        for seat, amount in zip(self.seats, payout.amounts):
            seat.stack += amount
        self.pot -= payout.total
        self._log_action("PAYOUT", {
            "reason": payout.reason,
            "winner": payout.winner,
            "amounts": list(payout.amounts),
        })

    def _start_next_hand(self) -> None:
        self.hand_number += 1
        self.button = 1 - self.button
        self.turn = self.button
        self.stage = HandStage.SB_POST
        self.facing = ActionType.NULL
        self.last_bet = 0
        for seat in self.seats:
            seat.reset_for_new_hand()
        self._clear_cards()
        logger.info(f"Starting hand #{self.hand_number}, button seat {self.button}")

    def get_state(self) -> Dict[str, Any]:
        """
        Get the public table state.

        Everything here is safe to broadcast: cards are either masked or
        already revealed.
        """
        return {
            "stage": self.stage.name,
            "hand_number": self.hand_number,
            "pot": self.pot,
            "facing": self.facing.value,
            "last_bet": self.last_bet,
            "small_blind": self.config.small_blind,
            "big_blind": self.config.big_blind,
            "min_bet": self.config.min_bet,
            "turn": self.turn,
            "button": self.button,
            "seats": [s.to_dict() for s in self.seats],
            "board": [c.to_dict() for c in self.board_cards],
            "board_masked": [c.to_dict() for c in self.board],
            "pending_board": [c.to_dict() for c in self.pending_board],
            "hole_cards": {
                str(seat): [c.to_dict() for c in cards]
                for seat, cards in self.hole_cards.items()
            },
            "roots": dict(self.verifier.roots),
        }

    def _log_action(self, action: str, details: Dict[str, Any]) -> None:
        """Log an action to hand history."""
        self.hand_history.append({
            "action": action,
            "hand_number": self.hand_number,
            "stage": self.stage.name,
            **details
        })
