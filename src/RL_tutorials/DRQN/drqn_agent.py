"""
DRQN Agent: Q-Learning with Memory
===================================

## Overview

The DRQN (Deep Recurrent Q-Network) agent is the DQN agent with its
feed-forward network swapped for an LSTM. Everything that makes DQN stable
is kept:
- epsilon-greedy exploration
- experience replay (of whole episodes, see episode_buffer.py)
- a target network, with Double-DQN targets

What changes is how state flows through time.

### 1. Acting: carry the hidden state

At the start of an episode the hidden state is reset to zeros. Each step the
new observation goes in together with the previous hidden state and a new
hidden state comes out. The network runs EVERY step, even when epsilon says
to take a random action; otherwise the memory would skip the steps where
the agent explored.

### 2. Learning: unroll over traces

Training batches are traces of `trace_length` consecutive steps. Both
networks are unrolled over a trace starting from a zero hidden state. The
first few outputs of each trace are computed from an almost empty memory
and would teach the network bad habits, so the first `burn_in` steps are
masked out of the loss:

    trace:  t0  t1  t2  t3 | t4  t5  t6  t7
    mask:    0   0   0   0 |  1   1   1   1     (trace_length=8, burn_in=4)

## Training Loop (conceptual):

    for episode in range(num_episodes):
        obs, _ = env.reset()
        hidden = agent.reset_hidden()
        while not done:
            action, hidden = agent.select_action(obs, hidden)
            next_obs, reward, terminated, truncated, _ = env.step(action)
            agent.store_transition(obs, action, reward, next_obs, terminated)
            loss = agent.train_step()
            obs = next_obs
        agent.end_episode()    # hand the episode to the replay buffer
        agent.decay_epsilon()
"""

import logging
import random
from typing import Final

import numpy as np
import torch
import torch.optim as optim

from RL_tutorials.DQN.dqn_agent import validate_hyperparameters
from RL_tutorials.DQN.replay_buffer import Transition
from RL_tutorials.DRQN.episode_buffer import EpisodeBuffer
from RL_tutorials.DRQN.recurrent_q_network import Hidden, RecurrentQNetwork
from RL_tutorials.utils import copy_weights, resolve_device

_log: Final[logging.Logger] = logging.getLogger(__name__)


class DRQNAgent:
    """
    Deep Recurrent Q-Network Agent.

    Key Components:
        policy_net: RecurrentQNetwork trained every step
        target_net: Stable copy of policy_net
        episode_buffer: Replay memory of whole episodes
        optimizer: Adam optimizer for policy_net

    Example Usage:
        >>> agent = DRQNAgent(obs_size=2, action_size=2)
        >>> hidden = agent.reset_hidden()
        >>> action, hidden = agent.select_action(obs, hidden)
    """

    ALGORITHM = "drqn"

    def __init__(
        self,
        obs_size: int = 2,
        action_size: int = 2,
        hidden_size: int = 128,
        lstm_size: int = 64,
        learning_rate: float = 1e-3,
        gamma: float = 0.99,
        epsilon_start: float = 1.0,
        epsilon_end: float = 0.01,
        epsilon_decay: float = 0.995,
        buffer_size: int = 1_000,
        batch_size: int = 16,
        trace_length: int = 8,
        burn_in: int | None = None,
        min_episodes: int | None = None,
        target_update_freq: int = 100,
        tau: float | None = None,
        max_grad_norm: float = 1.0,
        device: str | None = None
    ):
        """
        Initialize the DRQN agent.

        Args:
            obs_size: Dimension of the (partial) observation vector
            action_size: Number of discrete actions
            hidden_size: Width of the observation encoder
            lstm_size: Width of the LSTM hidden state (the agent's memory)
            learning_rate: Adam learning rate
            gamma: Discount factor for future rewards
            epsilon_start: Initial exploration rate
            epsilon_end: Minimum exploration rate
            epsilon_decay: Multiply epsilon by this after each episode
            buffer_size: How many EPISODES to remember
            batch_size: Traces per training step
            trace_length: Consecutive steps per trace
            burn_in: Leading steps of each trace excluded from the loss
                     (defaults to trace_length // 2)
            min_episodes: Eligible episodes to collect before learning
                          starts (defaults to batch_size)
            target_update_freq: Hard target update period in training steps
            tau: If set, soft-update the target network every step instead
            max_grad_norm: Gradient clipping threshold
            device: 'cuda', 'cpu', or None for auto-detect

        Raises:
            ValueError: If a hyperparameter is outside its valid range.
        """
        validate_hyperparameters(
            gamma, epsilon_start, epsilon_end, epsilon_decay,
            batch_size, target_update_freq, tau,
        )
        if trace_length <= 0:
            raise ValueError(f"trace_length must be positive, got {trace_length}")
        if burn_in is None:
            burn_in = trace_length // 2
        if not 0 <= burn_in < trace_length:
            raise ValueError(
                f"burn_in must be in [0, trace_length), got {burn_in} for trace_length={trace_length}"
            )

        self.obs_size = obs_size
        self.action_size = action_size
        self.gamma = gamma
        self.batch_size = batch_size
        self.trace_length = trace_length
        self.burn_in = burn_in
        self.min_episodes = batch_size if min_episodes is None else max(min_episodes, batch_size)
        self.target_update_freq = target_update_freq
        self.tau = tau
        self.max_grad_norm = max_grad_norm

        self.epsilon = epsilon_start
        self.epsilon_end = epsilon_end
        self.epsilon_decay = epsilon_decay

        self.device = resolve_device(device)

        self.policy_net = RecurrentQNetwork(obs_size, action_size, hidden_size, lstm_size).to(self.device)
        self.target_net = RecurrentQNetwork(obs_size, action_size, hidden_size, lstm_size).to(self.device)
        copy_weights(self.target_net, self.policy_net)
        self.target_net.eval()

        self.optimizer = optim.Adam(self.policy_net.parameters(), lr=learning_rate)
        self.episode_buffer = EpisodeBuffer(buffer_size)

        # Steps of the episode in progress, flushed by end_episode()
        self.current_episode: list[Transition] = []

        # Only the last trace_length - burn_in steps of a trace are learned from
        self.loss_mask = torch.zeros(trace_length, device=self.device)
        self.loss_mask[burn_in:] = 1.0

        self.steps_done = 0

    def reset_hidden(self) -> Hidden:
        """Empty memory for the start of an episode."""
        return self.policy_net.init_hidden(batch_size=1, device=self.device)

    def select_action(
        self,
        obs: np.ndarray,
        hidden: Hidden,
        greedy: bool = False
    ) -> tuple[int, Hidden]:
        """
        Select an action and advance the recurrent state.

        Args:
            obs: Current observation, shape (obs_size,)
            hidden: State returned by the previous call (or reset_hidden())
            greedy: Skip exploration (used for evaluation)

        Returns:
            (action index, new hidden state)
        """
        with torch.no_grad():
            # [obs_size] -> [batch=1, seq_len=1, obs_size]
            obs_tensor = torch.as_tensor(obs, dtype=torch.float32, device=self.device).view(1, 1, -1)
            q_values, hidden = self.policy_net(obs_tensor, hidden)

        if not greedy and random.random() < self.epsilon:
            return random.randrange(self.action_size), hidden
        return int(q_values[0, -1].argmax().item()), hidden

    def store_transition(
        self,
        obs: np.ndarray,
        action: int,
        reward: float,
        next_obs: np.ndarray,
        done: bool
    ) -> None:
        """Append one step to the episode in progress."""
        self.current_episode.append(Transition(obs, action, reward, next_obs, done))

    def end_episode(self) -> None:
        """Move the finished episode into the replay buffer."""
        self.episode_buffer.add_episode(self.current_episode)
        self.current_episode = []

    def train_step(self) -> float:
        """
        Perform one training step over a batch of traces.

        Returns:
            Loss value, or 0.0 while too few usable episodes are stored
        """
        if not self.episode_buffer.is_ready(self.min_episodes, self.trace_length):
            return 0.0

        batch = self.episode_buffer.sample(self.batch_size, self.trace_length)
        states, actions, rewards, next_states, dones = (
            torch.as_tensor(array, device=self.device) for array in batch
        )

        # Q(s_t, a_t) for every step of every trace: [batch, trace]
        q_values, _ = self.policy_net(states)
        current_q = q_values.gather(2, actions.unsqueeze(-1)).squeeze(-1)

        with torch.no_grad():
            # Double DQN, step by step along the trace
            next_q_policy, _ = self.policy_net(next_states)
            next_actions = next_q_policy.argmax(dim=2)
            next_q_target, _ = self.target_net(next_states)
            next_q = next_q_target.gather(2, next_actions.unsqueeze(-1)).squeeze(-1)
            target_q = rewards + self.gamma * next_q * (1 - dones)

        # Mean squared error over the steps after burn-in only
        squared_error = (current_q - target_q) ** 2 * self.loss_mask
        loss = squared_error.sum() / (self.loss_mask.sum() * self.batch_size)

        self.optimizer.zero_grad()
        loss.backward()
        torch.nn.utils.clip_grad_norm_(self.policy_net.parameters(), max_norm=self.max_grad_norm)
        self.optimizer.step()

        self.steps_done += 1
        if self.tau is not None or self.steps_done % self.target_update_freq == 0:
            self.update_target_network()

        return loss.item()

    def update_target_network(self) -> None:
        """Hard copy (tau=None) or soft blend of policy_net into target_net."""
        copy_weights(self.target_net, self.policy_net, self.tau)

    def decay_epsilon(self) -> None:
        self.epsilon = max(self.epsilon_end, self.epsilon * self.epsilon_decay)

    def save(self, filepath: str) -> None:
        """Save weights, optimizer state, epsilon and steps_done (not the buffer)."""
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
