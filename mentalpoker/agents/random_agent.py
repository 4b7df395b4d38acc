"""
Random Agent Implementation.

A simple agent that makes random legal moves, plus an always-call baseline.
Useful for driving full hands in tests.
"""

import random
from typing import Dict, List, Any, Optional

from mentalpoker.agents.base import BaseAgent


class RandomAgent(BaseAgent):
    """
    An agent that selects random legal actions with valid sizes.

    The agent has configurable tendencies:
    - fold_probability: How likely to fold when possible
    - raise_probability: How likely to bet or raise vs check/call
    """

    def __init__(
        self,
        player_id: str,
        name: Optional[str] = None,
        fold_probability: float = 0.1,
        raise_probability: float = 0.3,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the random agent.

        Args:
            player_id: Public identity
            name: Optional name
            fold_probability: Probability of folding (0-1)
            raise_probability: Probability of betting or raising (0-1)
            rng: Random source (seed one for reproducible hands)
        """
        super().__init__(player_id, name or f"Random-{player_id}")
        self.fold_probability = fold_probability
        self.raise_probability = raise_probability
        self.rng = rng or random.Random()

    def observe(self, game_state: Dict[str, Any]) -> None:
        """Random agent doesn't need to observe state."""
        pass

    def act(self, game_state: Dict[str, Any], legal_actions: List[str]) -> Dict[str, Any]:
        """
        Select a random legal action.

        Uses configured probabilities to bias towards certain actions.
        """
        limits = self.bet_limits(game_state)
        opponent = game_state["seats"][1 - self.my_seat(game_state)["seat"]]
        roll = self.rng.random()

        if "FOLD" in legal_actions and roll < self.fold_probability:
            return {"action": "FOLD", "amount": 0}

        if roll < self.fold_probability + self.raise_probability:
            if "BET" in legal_actions and limits["stack"] >= limits["min_bet"]:
                amount = self.rng.randint(limits["min_bet"], limits["stack"])
                return {"action": "BET", "amount": amount}
            can_raise = limits["stack"] > limits["owed"] and opponent["stack"] > 0
            if "RAISE" in legal_actions and can_raise:
                amount = self.rng.randint(limits["min_raise"], limits["stack"])
                return {"action": "RAISE", "amount": amount}

        for passive in ("CHECK", "PREFLOP_CALL", "CALL"):
            if passive in legal_actions:
                return {"action": passive, "amount": 0}

        return {"action": "FOLD", "amount": 0}


class CallAgent(BaseAgent):
    """
    An agent that always calls (or checks).

    Useful for testing and as a simple baseline.
    """

    def __init__(self, player_id: str, name: Optional[str] = None):
        super().__init__(player_id, name or f"Caller-{player_id}")

    def observe(self, game_state: Dict[str, Any]) -> None:
        pass

    def act(self, game_state: Dict[str, Any], legal_actions: List[str]) -> Dict[str, Any]:
        """Always check or call."""
        for passive in ("CHECK", "PREFLOP_CALL", "CALL"):
            if passive in legal_actions:
                return {"action": passive, "amount": 0}
        return {"action": "FOLD", "amount": 0}
