"""
mentalpoker Agents - betting agents and the protocol party

Agents decide bets; a Party runs the card protocol for one seat.
"""

from mentalpoker.agents.base import BaseAgent
from mentalpoker.agents.random_agent import RandomAgent, CallAgent
from mentalpoker.agents.party import Party, joint_shuffle, play_hand

__all__ = ["BaseAgent", "RandomAgent", "CallAgent", "Party", "joint_shuffle", "play_hand"]
