"""
Unit Tests for Replay Buffers.

Uses small capacities and hand-built transitions so that every sampled value
can be traced back to where it was pushed.
"""

import unittest

import numpy as np

from RL_tutorials.DQN.replay_buffer import ReplayBuffer, Transition
from RL_tutorials.DRQN.episode_buffer import EpisodeBuffer


class TestReplayBuffer(unittest.TestCase):
    """Test cases for the uniform ReplayBuffer."""

    def setUp(self):
        self.capacity = 10
        self.buffer = ReplayBuffer(self.capacity)
        self.state_dim = 4
        self.mock_state = np.zeros(self.state_dim, dtype=np.float32)
        self.mock_next_state = np.ones(self.state_dim, dtype=np.float32)

    def test_init(self):
        self.assertEqual(len(self.buffer), 0)
        self.assertEqual(self.buffer.capacity, self.capacity)

    def test_invalid_capacity(self):
        with self.assertRaises(ValueError):
            ReplayBuffer(0)
        with self.assertRaises(ValueError):
            ReplayBuffer(-1)

    def test_push_stores_transition(self):
        self.buffer.push(self.mock_state, 1, 0.5, self.mock_next_state, True)
        self.assertEqual(len(self.buffer), 1)
        stored = self.buffer.buffer[0]
        self.assertIsInstance(stored, Transition)
        self.assertEqual(stored.action, 1)
        self.assertTrue(stored.done)

    def test_overflow_evicts_oldest(self):
        """FIFO eviction: only the most recent `capacity` rewards remain."""
        for i in range(self.capacity + 5):
            self.buffer.push(self.mock_state, 0, float(i), self.mock_next_state, False)
        self.assertEqual(len(self.buffer), self.capacity)
        kept = sorted(t.reward for t in self.buffer.buffer)
        self.assertEqual(kept, [float(i) for i in range(5, 15)])

    def test_sample_shapes_and_dtypes(self):
        batch_size = 3
        for i in range(5):
            self.buffer.push(self.mock_state, i % 2, float(i), self.mock_next_state, i == 4)

        states, actions, rewards, next_states, dones = self.buffer.sample(batch_size)

        self.assertEqual(states.shape, (batch_size, self.state_dim))
        self.assertEqual(actions.shape, (batch_size,))
        self.assertEqual(rewards.shape, (batch_size,))
        self.assertEqual(next_states.shape, (batch_size, self.state_dim))
        self.assertEqual(dones.shape, (batch_size,))
        self.assertEqual(states.dtype, np.float32)
        self.assertEqual(actions.dtype, np.int64)
        self.assertEqual(dones.dtype, np.float32)

    def test_sample_without_replacement(self):
        for i in range(5):
            self.buffer.push(self.mock_state, 0, float(i), self.mock_next_state, False)
        _, _, rewards, _, _ = self.buffer.sample(5)
        self.assertEqual(sorted(rewards.tolist()), [0.0, 1.0, 2.0, 3.0, 4.0])

    def test_sample_insufficient_data(self):
        self.buffer.push(self.mock_state, 0, 1.0, self.mock_next_state, False)
        with self.assertRaises(ValueError):
            self.buffer.sample(5)
        with self.assertRaises(ValueError):
            self.buffer.sample(0)

    def test_is_ready(self):
        self.assertFalse(self.buffer.is_ready(3))
        for _ in range(3):
            self.buffer.push(self.mock_state, 0, 1.0, self.mock_next_state, False)
        self.assertTrue(self.buffer.is_ready(3))

    def test_clear(self):
        for _ in range(5):
            self.buffer.push(self.mock_state, 0, 1.0, self.mock_next_state, False)
        self.buffer.clear()
        self.assertEqual(len(self.buffer), 0)


def make_episode(episode_id: int, length: int) -> list:
    """Observations are [episode_id, t] so traces can be checked for contiguity."""
    return [
        Transition(
            np.array([episode_id, t], dtype=np.float32),
            t % 2,
            1.0,
            np.array([episode_id, t + 1], dtype=np.float32),
            t == length - 1,
        )
        for t in range(length)
    ]


class TestEpisodeBuffer(unittest.TestCase):
    """Test cases for the episode-level DRQN replay buffer."""

    def setUp(self):
        self.buffer = EpisodeBuffer(capacity=5)

    def test_invalid_capacity(self):
        with self.assertRaises(ValueError):
            EpisodeBuffer(0)

    def test_empty_episode_ignored(self):
        self.buffer.add_episode([])
        self.assertEqual(len(self.buffer), 0)

    def test_capacity_counts_episodes(self):
        for episode_id in range(8):
            self.buffer.add_episode(make_episode(episode_id, 6))
        self.assertEqual(len(self.buffer), 5)
        self.assertEqual(self.buffer.num_transitions, 30)
        # Oldest episodes (0, 1, 2) were evicted
        first_ids = [int(episode[0].state[0]) for episode in self.buffer.episodes]
        self.assertEqual(first_ids, [3, 4, 5, 6, 7])

    def test_sample_shapes(self):
        for episode_id in range(3):
            self.buffer.add_episode(make_episode(episode_id, 10))

        states, actions, rewards, next_states, dones = self.buffer.sample(2, 4)

        self.assertEqual(states.shape, (2, 4, 2))
        self.assertEqual(actions.shape, (2, 4))
        self.assertEqual(rewards.shape, (2, 4))
        self.assertEqual(next_states.shape, (2, 4, 2))
        self.assertEqual(dones.shape, (2, 4))

    def test_traces_are_contiguous_windows_of_one_episode(self):
        for episode_id in range(4):
            self.buffer.add_episode(make_episode(episode_id, 12))

        states, _, _, next_states, _ = self.buffer.sample(4, 5)

        for trace, next_trace in zip(states, next_states):
            # one episode per trace
            self.assertEqual(len(set(trace[:, 0].tolist())), 1)
            # consecutive time steps
            np.testing.assert_array_equal(np.diff(trace[:, 1]), np.ones(4))
            np.testing.assert_array_equal(next_trace[:, 1], trace[:, 1] + 1)

    def test_distinct_episodes_per_batch(self):
        for episode_id in range(4):
            self.buffer.add_episode(make_episode(episode_id, 6))
        states, _, _, _, _ = self.buffer.sample(4, 3)
        self.assertEqual(sorted(states[:, 0, 0].tolist()), [0.0, 1.0, 2.0, 3.0])

    def test_short_episodes_are_not_eligible(self):
        self.buffer.add_episode(make_episode(0, 3))
        self.buffer.add_episode(make_episode(1, 10))
        self.assertFalse(self.buffer.is_ready(2, 4))
        self.assertTrue(self.buffer.is_ready(1, 4))
        with self.assertRaises(ValueError):
            self.buffer.sample(2, 4)

        states, _, _, _, _ = self.buffer.sample(1, 4)
        self.assertEqual(states[0, 0, 0], 1.0)

    def test_invalid_sample_arguments(self):
        self.buffer.add_episode(make_episode(0, 5))
        with self.assertRaises(ValueError):
            self.buffer.sample(0, 2)
        with self.assertRaises(ValueError):
            self.buffer.sample(1, 0)

    def test_clear(self):
        self.buffer.add_episode(make_episode(0, 5))
        self.buffer.clear()
        self.assertEqual(len(self.buffer), 0)
        self.assertEqual(self.buffer.num_transitions, 0)


if __name__ == "__main__":
    unittest.main()
