"""
Experience Replay Buffer for DQN Training
==========================================

## Why Do We Need a Replay Buffer?

Supervised learning assumes training samples are independent and identically
distributed (i.i.d.). In RL, consecutive experiences are highly correlated:
if the pole is leaning left now, it will almost certainly still be leaning
left one step later. Training on correlated data causes the network to:
1. Overfit to whatever it saw most recently
2. Forget older experiences (catastrophic forgetting)
3. Oscillate or diverge

## How Experience Replay Solves This:

The replay buffer keeps thousands of past transitions and hands out RANDOM
mini-batches for training. This:
1. Breaks the correlation between consecutive samples
2. Lets rare but important experiences be reused many times
3. Smooths out the learning process

## What is a "Transition"?

A transition is one step of interaction with the environment:
    (state, action, reward, next_state, done)

Example on CartPole:
    state = [cart_pos=0.02, cart_vel=-0.15, pole_angle=0.03, pole_vel=0.31]
    action = 1 (push right)
    reward = 1.0 (pole still up)
    next_state = [0.017, 0.04, 0.036, 0.03]
    done = False (pole has not fallen)

## Technical Implementation:

A `deque` with a maximum length. When full, the oldest transition drops off
the far end as a new one is appended ("ring buffer" behaviour).
"""

import random
from collections import deque
from typing import NamedTuple, Tuple

import numpy as np


class Transition(NamedTuple):
    """One step of experience: what the agent saw, did, and got back."""

    state: np.ndarray
    action: int
    reward: float
    next_state: np.ndarray
    done: bool


def stack_transitions(batch) -> Tuple[np.ndarray, ...]:
    """
    Turn a sequence of transitions into one array per field.

    zip(*batch) "transposes" the list of tuples:
        [(s1,a1,r1,ns1,d1), (s2,a2,r2,ns2,d2)] -> [(s1,s2), (a1,a2), ...]

    The dtypes are fixed here so that every caller gets tensors-ready arrays:
    float32 observations/rewards/dones and int64 actions (torch's gather()
    wants int64 indices).
    """
    states, actions, rewards, next_states, dones = zip(*batch)
    return (
        np.asarray(states, dtype=np.float32),
        np.asarray(actions, dtype=np.int64),
        np.asarray(rewards, dtype=np.float32),
        np.asarray(next_states, dtype=np.float32),
        np.asarray(dones, dtype=np.float32),
    )


class ReplayBuffer:
    """
    Experience replay buffer for storing and sampling transitions.

    Attributes:
        buffer: A deque storing Transition tuples
        capacity: Maximum number of transitions to store

    Example Usage:
        >>> buffer = ReplayBuffer(capacity=10000)
        >>> buffer.push(state, action, reward, next_state, done)
        >>> states, actions, rewards, next_states, dones = buffer.sample(32)
    """

    def __init__(self, capacity: int = 100_000):
        """
        Initialize the replay buffer.

        Args:
            capacity: Maximum number of transitions to store. Once full,
                      oldest transitions are automatically removed.

        Raises:
            ValueError: If capacity is not positive.
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        # deque with maxlen drops the oldest item when a new one is appended
        self.buffer = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(
        self,
        state: np.ndarray,
        action: int,
        reward: float,
        next_state: np.ndarray,
        done: bool
    ) -> None:
        """
        Store a single transition in the buffer.

        Args:
            state: The observation BEFORE taking the action
            action: Index of the action that was taken
            reward: The reward received after taking the action
            next_state: The observation AFTER taking the action
            done: True if the episode reached a terminal state. A time-limit
                  cut-off is NOT terminal: the target must still bootstrap.

        The Bellman equation uses these components:
            Q(state, action) = reward + gamma * max(Q(next_state, all_actions))

        If done=True there is no future to add, so:
            Q(state, action) = reward
        """
        self.buffer.append(Transition(state, action, reward, next_state, done))

    def sample(self, batch_size: int) -> Tuple[np.ndarray, ...]:
        """
        Randomly sample a batch of transitions for training.

        Args:
            batch_size: Number of transitions to sample (typically 32-128)

        Returns:
            Tuple of numpy arrays: (states, actions, rewards, next_states, dones)
            Each array has leading dimension batch_size.

        Raises:
            ValueError: If batch_size is not positive or larger than the
                        number of stored transitions.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if batch_size > len(self.buffer):
            raise ValueError(
                f"cannot sample {batch_size} transitions from a buffer "
                f"holding {len(self.buffer)}"
            )

        # Sampling WITHOUT replacement: each transition in the batch is unique
        batch = random.sample(self.buffer, batch_size)
        return stack_transitions(batch)

    def is_ready(self, batch_size: int) -> bool:
        """True once there are enough transitions to draw a batch."""
        return len(self.buffer) >= batch_size

    def clear(self) -> None:
        self.buffer.clear()

    def __len__(self) -> int:
        return len(self.buffer)
