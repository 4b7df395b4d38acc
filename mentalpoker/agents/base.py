"""
Base Agent Interface for mentalpoker.

This module defines the abstract base class for betting agents. An agent
only decides what to bet; the card protocol is handled by a Party.

Usage:
    class MyAgent(BaseAgent):
        def observe(self, game_state):
            # Process table state
            pass

        def act(self, game_state, legal_actions):
            # Return action dict
            return {"action": "CALL", "amount": 0}
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional

from mentalpoker.core.player import identity_commitment


class BaseAgent(ABC):
    """
    Abstract base class for betting agents.

    Attributes:
        player_id: Public identity the agent plays under
        name: Human-readable name
    """

    def __init__(self, player_id: str, name: Optional[str] = None):
        """
        Initialize the agent.

        Args:
            player_id: Public identity the agent plays under
            name: Optional human-readable name
        """
        self.player_id = player_id
        self.name = name or f"Agent-{player_id}"

    @abstractmethod
    def observe(self, game_state: Dict[str, Any]) -> None:
        """
        Observe the current table state.

        Called before every betting decision at the table, for both agents.

        Args:
            game_state: PokerTable.get_state() output
        """
        pass

    @abstractmethod
    def act(self, game_state: Dict[str, Any], legal_actions: List[str]) -> Dict[str, Any]:
        """
        Choose an action given the current table state.

        Args:
            game_state: PokerTable.get_state() output
            legal_actions: Names of the legal actions (e.g. "CALL", "RAISE")

        Returns:
            Action dictionary with:
                - action: Action name
                - amount: Chips added for BET/RAISE (optional, default 0)

        Example:
            return {"action": "RAISE", "amount": 10}
        """
        pass

    def reset(self) -> None:
        """Reset internal state between games."""
        pass

    def on_hand_start(self, hand_number: int) -> None:
        pass

    def on_hand_end(self, result: Dict[str, Any]) -> None:
        """
        Called when a hand ends.

        Args:
            result: play_hand() summary (ended, payout, winner)
        """
        pass

    def my_seat(self, game_state: Dict[str, Any]) -> Dict[str, Any]:
        """This agent's seat entry in the table state."""
        commitment = identity_commitment(self.player_id)
        for seat in game_state["seats"]:
            if seat["commitment"] == commitment:
                return seat
        raise ValueError(f"{self.player_id} is not seated")

    def bet_limits(self, game_state: Dict[str, Any]) -> Dict[str, int]:
        """
        Amount owed and the sizing bounds for this agent.

        Returns:
            Dict with owed, stack, min_raise (2x owed, capped at the stack)
            and the table's min_bet.
        """
        me = self.my_seat(game_state)
        opponent = game_state["seats"][1 - me["seat"]]
        owed = max(0, opponent["committed"] - me["committed"])
        return {
            "owed": owed,
            "stack": me["stack"],
            "min_raise": min(max(2 * owed, owed + 1), me["stack"]),
            "min_bet": game_state["min_bet"],
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.player_id}, {self.name})"
