"""
Unit Tests for the Q-value networks.
"""

import unittest

import torch

from RL_tutorials.DQN.q_network import QNetwork
from RL_tutorials.DRQN.recurrent_q_network import RecurrentQNetwork
from RL_tutorials.utils import copy_weights


class TestQNetwork(unittest.TestCase):
    """Test cases for the feed-forward QNetwork."""

    def setUp(self):
        self.state_size = 4
        self.action_size = 2
        self.batch_size = 3
        self.net = QNetwork(self.state_size, self.action_size, hidden_size=16)
        self.sample_state = torch.randn(self.batch_size, self.state_size)

    def test_output_shape(self):
        q_values = self.net(self.sample_state)
        self.assertEqual(q_values.shape, (self.batch_size, self.action_size))

    def test_single_state_is_a_batch_of_one(self):
        q_values = self.net(self.sample_state[0])
        self.assertEqual(q_values.shape, (1, self.action_size))
        self.assertTrue(torch.allclose(q_values[0], self.net(self.sample_state)[0]))

    def test_invalid_sizes(self):
        with self.assertRaises(ValueError):
            QNetwork(0, 2)
        with self.assertRaises(ValueError):
            QNetwork(4, 0)
        with self.assertRaises(ValueError):
            QNetwork(4, 2, hidden_size=-1)

    def test_gradient_flow(self):
        self.net(self.sample_state).sum().backward()
        for param in self.net.parameters():
            self.assertIsNotNone(param.grad)


class TestRecurrentQNetwork(unittest.TestCase):
    """Test cases for the LSTM-based RecurrentQNetwork."""

    def setUp(self):
        self.obs_size = 2
        self.action_size = 3
        self.lstm_size = 8
        self.net = RecurrentQNetwork(self.obs_size, self.action_size, hidden_size=8, lstm_size=self.lstm_size)
        self.sequence = torch.randn(2, 5, self.obs_size)

    def test_output_shapes(self):
        q_values, (h, c) = self.net(self.sequence)
        self.assertEqual(q_values.shape, (2, 5, self.action_size))
        self.assertEqual(h.shape, (1, 2, self.lstm_size))
        self.assertEqual(c.shape, (1, 2, self.lstm_size))

    def test_init_hidden_is_zero(self):
        h, c = self.net.init_hidden(batch_size=4)
        self.assertEqual(h.shape, (1, 4, self.lstm_size))
        self.assertEqual(torch.count_nonzero(h).item(), 0)
        self.assertEqual(torch.count_nonzero(c).item(), 0)

    def test_stepwise_unroll_matches_full_sequence(self):
        """Carrying the hidden state one step at a time equals one unroll."""
        with torch.no_grad():
            full_q, _ = self.net(self.sequence)

            hidden = self.net.init_hidden(batch_size=2)
            step_q = []
            for t in range(self.sequence.size(1)):
                q, hidden = self.net(self.sequence[:, t:t + 1], hidden)
                step_q.append(q)
            step_q = torch.cat(step_q, dim=1)

        self.assertTrue(torch.allclose(full_q, step_q, atol=1e-6))

    def test_history_changes_output(self):
        """Same last observation, different past: different Q-values."""
        with torch.no_grad():
            last = torch.ones(1, 1, self.obs_size)
            _, hidden = self.net(torch.full((1, 3, self.obs_size), 5.0))
            q_with_history, _ = self.net(last, hidden)
            q_without_history, _ = self.net(last)
        self.assertFalse(torch.allclose(q_with_history, q_without_history))

    def test_rejects_non_sequence_input(self):
        with self.assertRaises(ValueError):
            self.net(torch.randn(2, self.obs_size))

    def test_invalid_sizes(self):
        with self.assertRaises(ValueError):
            RecurrentQNetwork(0, 2)
        with self.assertRaises(ValueError):
            RecurrentQNetwork(2, 2, lstm_size=0)

    def test_gradient_flow(self):
        q_values, _ = self.net(self.sequence)
        q_values.sum().backward()
        for param in self.net.parameters():
            self.assertIsNotNone(param.grad)


class TestCopyWeights(unittest.TestCase):
    """Hard and soft target-network updates."""

    def setUp(self):
        torch.manual_seed(0)
        self.source = QNetwork(4, 2, hidden_size=8)
        self.target = QNetwork(4, 2, hidden_size=8)

    def test_hard_copy(self):
        copy_weights(self.target, self.source)
        for t, s in zip(self.target.parameters(), self.source.parameters()):
            self.assertTrue(torch.equal(t, s))

    def test_soft_update_blends(self):
        before = [p.detach().clone() for p in self.target.parameters()]
        copy_weights(self.target, self.source, tau=0.25)
        for t, old, s in zip(self.target.parameters(), before, self.source.parameters()):
            self.assertTrue(torch.allclose(t, 0.25 * s + 0.75 * old, atol=1e-6))


if __name__ == "__main__":
    unittest.main()
