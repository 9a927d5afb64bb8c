"""
DQN Agent: The Learning Controller
===================================

## Overview

This module implements the DQN (Deep Q-Network) agent. The agent is the
"brain" that:
1. Observes the environment state
2. Decides what action to take
3. Learns from the results to make better decisions

## Key Concepts Implemented:

### 1. Target Network (and Double DQN)

The learning target for Q(s, a) is r + γ * Q(s', a*). If the same network
that is being trained also produces that target, every update moves the
target too, like trying to hit a moving target. A second, "frozen" copy of
the network (the target network) produces the targets instead and is only
synchronised every few hundred steps.

Standard DQN also overestimates Q-values because the max in
max_a' Q(s', a') both SELECTS and EVALUATES the best next action. Double DQN
splits those jobs:
- Policy Network: Selects which action is best (a*)
- Target Network: Evaluates how good that action actually is

### 2. Experience Replay

Instead of learning from experiences as they happen (correlated and
unstable), transitions go into a replay buffer and training draws random
batches from it. See replay_buffer.py.

### 3. Epsilon-Greedy Exploration

- With probability ε (epsilon): take a RANDOM action (explore)
- With probability 1-ε: take the BEST known action (exploit)

Epsilon starts high and decays after each episode as the agent becomes more
confident in its learned policy.

## Training Loop (conceptual):

    for episode in range(num_episodes):
        state, _ = env.reset()
        while not done:
            action = agent.select_action(state)  # ε-greedy
            next_state, reward, terminated, truncated, _ = env.step(action)
            agent.store_transition(state, action, reward, next_state, terminated)
            loss = agent.train_step()  # Learn from replay buffer
            state = next_state
        agent.decay_epsilon()  # Less exploration over time
"""

import logging
import random
from typing import Final

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim

from RL_tutorials.DQN.q_network import QNetwork
from RL_tutorials.DQN.replay_buffer import ReplayBuffer
from RL_tutorials.utils import copy_weights, resolve_device

_log: Final[logging.Logger] = logging.getLogger(__name__)


def validate_hyperparameters(
    gamma: float,
    epsilon_start: float,
    epsilon_end: float,
    epsilon_decay: float,
    batch_size: int,
    target_update_freq: int,
    tau: float | None,
) -> None:
    """Raise ValueError for hyperparameters no Q-learning agent can use."""
    if not 0.0 <= gamma <= 1.0:
        raise ValueError(f"gamma must be in [0, 1], got {gamma}")
    if not 0.0 <= epsilon_end <= epsilon_start <= 1.0:
        raise ValueError(
            "epsilons must satisfy 0 <= epsilon_end <= epsilon_start <= 1, "
            f"got start={epsilon_start}, end={epsilon_end}"
        )
    if not 0.0 < epsilon_decay <= 1.0:
        raise ValueError(f"epsilon_decay must be in (0, 1], got {epsilon_decay}")
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    if target_update_freq <= 0:
        raise ValueError(f"target_update_freq must be positive, got {target_update_freq}")
    if tau is not None and not 0.0 < tau <= 1.0:
        raise ValueError(f"tau must be in (0, 1], got {tau}")


class DQNAgent:
    """
    Deep Q-Network Agent.

    Key Components:
        policy_net: Neural network that learns Q-values (updated every step)
        target_net: Stable copy of policy_net (updated periodically)
        replay_buffer: Memory for storing and sampling experiences
        optimizer: Adam optimizer for updating policy_net weights

    Hyperparameters:
        gamma: Discount factor - how much to value future rewards
        epsilon: Exploration rate - probability of random action
        batch_size: Number of experiences to learn from per step
        target_update_freq: How often to update target network

    Example Usage:
        >>> agent = DQNAgent(state_size=4, action_size=2)
        >>> state, _ = env.reset()
        >>> action = agent.select_action(state)  # 0 or 1
        >>> next_state, reward, terminated, truncated, _ = env.step(action)
        >>> agent.store_transition(state, action, reward, next_state, terminated)
        >>> loss = agent.train_step()
    """

    ALGORITHM = "dqn"

    def __init__(
        self,
        state_size: int = 4,
        action_size: int = 2,
        hidden_size: int = 128,
        learning_rate: float = 1e-3,
        gamma: float = 0.99,
        epsilon_start: float = 1.0,
        epsilon_end: float = 0.01,
        epsilon_decay: float = 0.995,
        buffer_size: int = 100_000,
        batch_size: int = 64,
        min_buffer_size: int | None = None,
        target_update_freq: int = 100,
        tau: float | None = None,
        double_dqn: bool = True,
        max_grad_norm: float = 1.0,
        device: str | None = None
    ):
        """
        Initialize the DQN agent with all hyperparameters.

        Args:
            state_size: Dimension of the observation vector
            action_size: Number of discrete actions
            hidden_size: Neurons in hidden layers (larger = more capacity)
            learning_rate: How fast to update weights (too high = unstable,
                          too low = slow learning). 1e-3 is a good default.
            gamma: Discount factor (0-1). Higher = care more about future rewards.
                   0.99 means a reward one step away is worth 99% of one now.
            epsilon_start: Initial exploration rate (1.0 = 100% random actions)
            epsilon_end: Minimum exploration rate (always keep some randomness)
            epsilon_decay: Multiply epsilon by this after each episode
                          0.995 means ~900 episodes to go from 1.0 to 0.01
            buffer_size: How many transitions to remember
            batch_size: How many transitions to learn from per training step
            min_buffer_size: Transitions to collect before learning starts
                             (defaults to batch_size)
            target_update_freq: Hard-copy policy_net into target_net every N
                                training steps
            tau: If set, use a soft update with this rate after EVERY
                 training step instead of the periodic hard copy
            double_dqn: Let policy_net choose the next action and target_net
                        evaluate it (True), or let target_net do both (False)
            max_grad_norm: Gradient clipping threshold
            device: 'cuda' for GPU, 'cpu' for CPU, or None for auto-detect

        Raises:
            ValueError: If a hyperparameter is outside its valid range.
        """
        validate_hyperparameters(
            gamma, epsilon_start, epsilon_end, epsilon_decay,
            batch_size, target_update_freq, tau,
        )

        self.state_size = state_size
        self.action_size = action_size
        self.gamma = gamma
        self.batch_size = batch_size
        self.min_buffer_size = batch_size if min_buffer_size is None else max(min_buffer_size, batch_size)
        self.target_update_freq = target_update_freq
        self.tau = tau
        self.double_dqn = double_dqn
        self.max_grad_norm = max_grad_norm

        # Exploration parameters (epsilon-greedy strategy)
        self.epsilon = epsilon_start
        self.epsilon_end = epsilon_end
        self.epsilon_decay = epsilon_decay

        self.device = resolve_device(device)

        # ==== NEURAL NETWORKS ====
        # Policy network: the one being trained and used to act
        self.policy_net = QNetwork(state_size, action_size, hidden_size).to(self.device)

        # Target network: same architecture, same starting weights
        self.target_net = QNetwork(state_size, action_size, hidden_size).to(self.device)
        copy_weights(self.target_net, self.policy_net)
        self.target_net.eval()

        # ==== TRAINING COMPONENTS ====
        # Only policy_net is optimised; target_net is updated by copying
        self.optimizer = optim.Adam(self.policy_net.parameters(), lr=learning_rate)
        self.replay_buffer = ReplayBuffer(buffer_size)

        # Optimisation step counter, drives the target network schedule
        self.steps_done = 0

    def select_action(self, state: np.ndarray, greedy: bool = False) -> int:
        """
        Select an action using the epsilon-greedy policy.

        Args:
            state: Current observation, shape (state_size,)
            greedy: Skip exploration (used for evaluation)

        Returns:
            Action index in [0, action_size)
        """
        # EXPLORATION: with probability epsilon, take a random action
        if not greedy and random.random() < self.epsilon:
            return random.randrange(self.action_size)

        # EXPLOITATION: pick the action with the highest predicted Q-value.
        # No gradients are needed for acting, only for training.
        with torch.no_grad():
            state_tensor = torch.as_tensor(
                state, dtype=torch.float32, device=self.device
            ).unsqueeze(0)  # add batch dimension: [4] -> [1, 4]
            q_values = self.policy_net(state_tensor)
            return int(q_values.argmax(dim=1).item())

    def store_transition(
        self,
        state: np.ndarray,
        action: int,
        reward: float,
        next_state: np.ndarray,
        done: bool
    ) -> None:
        """
        Store an experience in the replay buffer for later learning.

        Args:
            state: Observation before the action
            action: Action taken
            reward: Reward received
            next_state: Observation after the action
            done: True if next_state is terminal
        """
        self.replay_buffer.push(state, action, reward, next_state, done)

    def train_step(self) -> float:
        """
        Perform one training step: sample a batch and update the network.

        1. Sample random experiences from the replay buffer
        2. Compute the Q-values the network currently predicts
        3. Compute the Q-values it SHOULD predict (targets)
        4. Update the network to reduce the difference

        The Bellman equation behind the targets:
            Q(s, a) = r + γ * Q_target(s', a*)

        Returns:
            Loss value, or 0.0 while the buffer is still warming up
        """
        if not self.replay_buffer.is_ready(self.min_buffer_size):
            return 0.0

        # ==== STEP 1: Sample random batch from replay buffer ====
        batch = self.replay_buffer.sample(self.batch_size)
        states, actions, rewards, next_states, dones = (
            torch.as_tensor(array, device=self.device) for array in batch
        )

        # ==== STEP 2: Q(s, a) for the actions that were actually taken ====
        # policy_net(states): [batch, action_size]; gather picks column `a`
        current_q = self.policy_net(states).gather(1, actions.unsqueeze(1)).squeeze(1)

        # ==== STEP 3: Target Q-values ====
        with torch.no_grad():
            if self.double_dqn:
                # Policy network SELECTS, target network EVALUATES
                next_actions = self.policy_net(next_states).argmax(dim=1)
            else:
                next_actions = self.target_net(next_states).argmax(dim=1)
            next_q = self.target_net(next_states).gather(1, next_actions.unsqueeze(1)).squeeze(1)

            # Terminal transitions have no future: target is just the reward
            target_q = rewards + self.gamma * next_q * (1 - dones)

        # ==== STEP 4: Loss and gradient step ====
        loss = nn.MSELoss()(current_q, target_q)

        self.optimizer.zero_grad()
        loss.backward()
        torch.nn.utils.clip_grad_norm_(self.policy_net.parameters(), max_norm=self.max_grad_norm)
        self.optimizer.step()

        # ==== STEP 5: Target network schedule ====
        self.steps_done += 1
        if self.tau is not None or self.steps_done % self.target_update_freq == 0:
            self.update_target_network()

        return loss.item()

    def update_target_network(self) -> None:
        """
        Move the target network towards the policy network.

        Hard update (tau=None): copy every weight, every target_update_freq
        steps. Soft update (tau set): blend a small fraction every step,
            target = tau * policy + (1 - tau) * target
        """
        copy_weights(self.target_net, self.policy_net, self.tau)

    def decay_epsilon(self) -> None:
        """
        Reduce exploration rate after each episode.

        Decay formula: epsilon = max(epsilon_end, epsilon * decay_rate)
        """
        self.epsilon = max(self.epsilon_end, self.epsilon * self.epsilon_decay)

    def save(self, filepath: str) -> None:
        """
        Save the agent's learned state to a file.

        Saves network weights, optimizer state, epsilon and steps_done.
        The replay buffer is NOT saved (too large, and not needed to act).

        Args:
            filepath: Where to save (e.g., 'checkpoints/dqn_cartpole.pt')
        """
        torch.save({
            'algorithm': self.ALGORITHM,
            'policy_net_state_dict': self.policy_net.state_dict(),
            'target_net_state_dict': self.target_net.state_dict(),
            'optimizer_state_dict': self.optimizer.state_dict(),
            'epsilon': self.epsilon,
            'steps_done': self.steps_done
        }, filepath)
        _log.info("Model saved to %s", filepath)

    def load(self, filepath: str) -> None:
        """
        Load a previously saved agent state.

        Args:
            filepath: Path to saved checkpoint file

        Raises:
            ValueError: If the checkpoint was written by a different agent type.
        """
        checkpoint = torch.load(filepath, map_location=self.device)
        algorithm = checkpoint.get('algorithm')
        if algorithm != self.ALGORITHM:
            raise ValueError(
                f"{filepath} holds a {algorithm!r} checkpoint, expected {self.ALGORITHM!r}"
            )
        self.policy_net.load_state_dict(checkpoint['policy_net_state_dict'])
        self.target_net.load_state_dict(checkpoint['target_net_state_dict'])
        self.optimizer.load_state_dict(checkpoint['optimizer_state_dict'])
        self.epsilon = checkpoint['epsilon']
        self.steps_done = checkpoint['steps_done']
        _log.info("Model loaded from %s", filepath)
