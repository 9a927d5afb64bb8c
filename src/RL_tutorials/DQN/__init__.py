"""
DQN (Deep Q-Network)
====================

## What is Reinforcement Learning (RL)?

RL is a type of machine learning where an "agent" learns to make decisions
by interacting with an "environment". The agent:
1. Observes the current STATE of the environment
2. Takes an ACTION based on that state
3. Receives a REWARD signal (positive or negative)
4. Observes the new state
5. Learns from this experience to maximize future rewards

## What is DQN?

DQN is an RL algorithm that uses a neural network to approximate the
"Q-function" - a function that predicts how good each action is in a given
state.

Key components:
- **Q-Network**: Neural network that estimates Q-values for each action
- **Replay Buffer**: Memory that stores past experiences for training
- **Target Network**: A stable copy of the Q-network used for computing targets

## On CartPole:

- **State** (4 elements): cart position, cart velocity, pole angle,
                          pole angular velocity
- **Actions** (2 options): push the cart left (0) or right (1)
- **Reward**: +1 for every step the pole stays up
- **Goal**: Keep the pole balanced for as long as possible (500 steps max)

Module Components:
    DQNAgent: The main agent that learns and makes decisions
    QNetwork: The neural network architecture
    ReplayBuffer: Memory for storing and sampling experiences
"""

from RL_tutorials.DQN.dqn_agent import DQNAgent
from RL_tutorials.DQN.q_network import QNetwork
from RL_tutorials.DQN.replay_buffer import ReplayBuffer, Transition

__all__ = ["DQNAgent", "QNetwork", "ReplayBuffer", "Transition"]
