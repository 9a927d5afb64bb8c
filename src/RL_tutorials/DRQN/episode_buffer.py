"""
Episode Replay Buffer for DRQN Training
========================================

## Why Not Reuse the DQN Replay Buffer?

A recurrent network learns from SEQUENCES: its hidden state at step t is a
summary of everything it saw before t. Shuffled single transitions throw
that ordering away, so there would be nothing for the LSTM to remember.

Instead this buffer stores whole episodes and hands out "traces": short,
contiguous windows of steps cut from random episodes.

    episode 17:  t0 t1 t2 t3 t4 t5 t6 t7 t8 t9 ...
                          [t3 t4 t5 t6 t7 t8 t9 t10]   <- trace_length = 8

Random episodes still decorrelate the batch (the reason experience replay
exists), while the contiguous window keeps the temporal structure the LSTM
needs. Each trace is unrolled from a zero hidden state, which is why the
agent masks the first few steps of every trace out of the loss.
"""

import random
from collections import deque
from typing import Sequence, Tuple

import numpy as np

from RL_tutorials.DQN.replay_buffer import Transition, stack_transitions


class EpisodeBuffer:
    """
    Replay memory of complete episodes, sampled as fixed-length traces.

    Attributes:
        episodes: A deque of episodes, each a list of Transition tuples
        capacity: Maximum number of EPISODES to store

    Example Usage:
        >>> buffer = EpisodeBuffer(capacity=500)
        >>> buffer.add_episode(transitions)
        >>> states, actions, rewards, next_states, dones = buffer.sample(16, 8)
        >>> states.shape  # (16, 8, obs_size)
    """

    def __init__(self, capacity: int = 1_000):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self.episodes = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def num_transitions(self) -> int:
        return sum(len(episode) for episode in self.episodes)

    def add_episode(self, transitions: Sequence[Transition]) -> None:
        """
        Store one finished episode. Empty episodes are ignored.

        Args:
            transitions: The episode's steps in the order they happened
        """
        if not transitions:
            return
        self.episodes.append([Transition(*t) for t in transitions])

    def _eligible(self, trace_length: int) -> list:
        return [episode for episode in self.episodes if len(episode) >= trace_length]

    def is_ready(self, batch_size: int, trace_length: int) -> bool:
        """True once batch_size episodes are long enough to cut a trace from."""
        return len(self._eligible(trace_length)) >= batch_size

    def sample(self, batch_size: int, trace_length: int) -> Tuple[np.ndarray, ...]:
        """
        Sample batch_size traces of trace_length consecutive steps.

        Episodes are drawn without replacement among those with at least
        trace_length steps; the window start is uniform within each episode.

        Returns:
            (states, actions, rewards, next_states, dones) with shapes
            (batch_size, trace_length, obs_size) for observations and
            (batch_size, trace_length) for the rest.

        Raises:
            ValueError: On non-positive arguments or too few eligible episodes.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if trace_length <= 0:
            raise ValueError(f"trace_length must be positive, got {trace_length}")

        eligible = self._eligible(trace_length)
        if len(eligible) < batch_size:
            raise ValueError(
                f"need {batch_size} episodes of at least {trace_length} steps, "
                f"only {len(eligible)} stored"
            )

        traces = []
        for episode in random.sample(eligible, batch_size):
            start = random.randint(0, len(episode) - trace_length)
            traces.append(stack_transitions(episode[start:start + trace_length]))

        # Per-trace arrays -> one (batch, trace, ...) array per field
        return tuple(np.stack(field) for field in zip(*traces))

    def clear(self) -> None:
        self.episodes.clear()

    def __len__(self) -> int:
        return len(self.episodes)
