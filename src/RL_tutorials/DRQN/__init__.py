"""
DRQN (Deep Recurrent Q-Network)
===============================

DQN with an LSTM in place of the first fully-connected layers, for
environments where a single observation does not reveal the full state
(POMDPs). The recurrent hidden state lets the agent integrate information
over time, e.g. infer the pole's angular velocity from a history of angles.

Module Components:
    DRQNAgent: Epsilon-greedy agent that carries a hidden state between steps
    RecurrentQNetwork: Encoder -> LSTM -> Q-value head
    EpisodeBuffer: Replay memory of whole episodes, sampled as traces
"""

from RL_tutorials.DRQN.drqn_agent import DRQNAgent
from RL_tutorials.DRQN.episode_buffer import EpisodeBuffer
from RL_tutorials.DRQN.recurrent_q_network import RecurrentQNetwork

__all__ = ["DRQNAgent", "EpisodeBuffer", "RecurrentQNetwork"]
