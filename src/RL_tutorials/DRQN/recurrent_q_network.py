"""
Recurrent Q-Network: Q-Values from a History of Observations
=============================================================

## Why Recurrence?

DQN assumes the observation IS the state (a Markov decision process). Hide
the velocities from CartPole and that breaks: seeing the pole at 3° tells
you nothing about whether it is falling or recovering. The problem has
become a POMDP (partially observable MDP).

Frame stacking (feeding the last k observations) is one fix, but k is fixed
in advance. A recurrent layer keeps a hidden state h_t that is updated at
every step:

    h_t = LSTM(encode(o_t), h_{t-1})
    Q(h_t, ·) = head(h_t)

so the network decides for itself what to remember, and for how long.

## Network Architecture:

    Observation o_t (obs_size)
         │
         ▼
    Linear(hidden_size) + ReLU        encode the raw observation
         │
         ▼
    LSTM(lstm_size)  ◄── (h_{t-1}, c_{t-1})
         │           ──► (h_t, c_t)   carried to the next step
         ▼
    Linear(action_size)
         │
         └──► [Q(h_t,a0), Q(h_t,a1), ...]
"""

import torch
import torch.nn as nn

Hidden = tuple[torch.Tensor, torch.Tensor]


class RecurrentQNetwork(nn.Module):
    """
    LSTM-based Q-network for partially observable environments.

    Example:
        >>> net = RecurrentQNetwork(obs_size=2, action_size=2)
        >>> hidden = net.init_hidden(batch_size=1)
        >>> obs = torch.zeros(1, 1, 2)            # (batch, seq_len, obs_size)
        >>> q_values, hidden = net(obs, hidden)   # q_values: (1, 1, 2)
    """

    def __init__(
        self,
        obs_size: int,
        action_size: int,
        hidden_size: int = 64,
        lstm_size: int = 64
    ):
        super().__init__()

        for name, value in (
            ("obs_size", obs_size),
            ("action_size", action_size),
            ("hidden_size", hidden_size),
            ("lstm_size", lstm_size),
        ):
            if value <= 0:
                raise ValueError(f"{name} must be positive")

        self.obs_size = obs_size
        self.action_size = action_size
        self.lstm_size = lstm_size

        self.encoder = nn.Linear(obs_size, hidden_size)
        # batch_first: tensors are (batch, seq_len, features)
        self.lstm = nn.LSTM(hidden_size, lstm_size, batch_first=True)
        self.head = nn.Linear(lstm_size, action_size)

    def init_hidden(self, batch_size: int, device: torch.device | None = None) -> Hidden:
        """Zero (h, c) state, each shaped (num_layers=1, batch_size, lstm_size)."""
        if device is None:
            device = next(self.parameters()).device
        h = torch.zeros(1, batch_size, self.lstm_size, device=device)
        c = torch.zeros(1, batch_size, self.lstm_size, device=device)
        return h, c

    def forward(
        self,
        x: torch.Tensor,
        hidden: Hidden | None = None
    ) -> tuple[torch.Tensor, Hidden]:
        """
        Unroll the network over a batch of observation sequences.

        Args:
            x: Observations, shape (batch, seq_len, obs_size)
            hidden: (h, c) from the previous call, or None for a zero state

        Returns:
            q_values: shape (batch, seq_len, action_size)
            hidden: the (h, c) state after the last step of the sequence
        """
        if x.dim() != 3:
            raise ValueError(
                f"expected input of shape (batch, seq_len, obs_size), got {tuple(x.shape)}"
            )
        if hidden is None:
            hidden = self.init_hidden(x.size(0), x.device)

        features = torch.relu(self.encoder(x))
        output, hidden = self.lstm(features, hidden)
        return self.head(output), hidden
