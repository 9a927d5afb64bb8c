"""
Q-Network: Neural Network for Q-Value Approximation
====================================================

## What is a Q-Value?

Q(s, a) is the "quality" of taking action 'a' in state 's': the expected
total future reward if you
1. Take action 'a' in state 's'
2. Then follow the policy forever after

Example on CartPole (2 actions):
    State: cart_pos=0.02, cart_vel=-0.15, pole_angle=0.03, pole_vel=0.31

    Q(state, push_left)  = 41.7
    Q(state, push_right) = 44.9   <- BEST

    The pole is falling to the right, so pushing the cart right (under it)
    is worth more. The agent picks push_right.

## Why Use a Neural Network?

Small problems can keep one table entry per state-action pair. CartPole's
state is four real numbers, so there are infinitely many states. A neural
network can:
1. Generalize from seen states to unseen states
2. Handle continuous state spaces
3. Learn non-linear patterns in the data

## Network Architecture:

    Input Layer (state_size neurons)
         │
         ▼
    Hidden Layer 1 (hidden_size neurons) + ReLU
         │
         ▼
    Hidden Layer 2 (hidden_size neurons) + ReLU
         │
         ▼
    Output Layer (action_size neurons)
         │
         └──► [Q(s,a0), Q(s,a1), ...]

The output layer has no activation: Q-values can be any real number.
"""

import torch
import torch.nn as nn


class QNetwork(nn.Module):
    """
    Feed-forward network mapping a state to one Q-value per action.

    Attributes:
        fc1: First fully-connected (linear) layer
        fc2: Second fully-connected layer
        fc3: Output layer (no activation)

    Example:
        >>> net = QNetwork(state_size=4, action_size=2)
        >>> state = torch.tensor([[0.02, -0.15, 0.03, 0.31]])  # batch of 1
        >>> q_values = net(state)  # shape (1, 2)
        >>> best_action = q_values.argmax(dim=1)
    """

    def __init__(self, state_size: int, action_size: int, hidden_size: int = 128):
        """
        Initialize the Q-Network.

        Args:
            state_size: Dimension of the observation vector (4 for CartPole)
            action_size: Number of discrete actions (2 for CartPole)
            hidden_size: Neurons per hidden layer. Larger = more capacity but
                         slower and easier to overfit.

        Raises:
            ValueError: If any size is not positive.
        """
        super().__init__()

        if state_size <= 0:
            raise ValueError("state_size must be positive")
        if action_size <= 0:
            raise ValueError("action_size must be positive")
        if hidden_size <= 0:
            raise ValueError("hidden_size must be positive")

        self.state_size = state_size
        self.action_size = action_size

        # nn.Linear(in, out) learns W and b: output = input @ W.T + b
        self.fc1 = nn.Linear(state_size, hidden_size)
        self.fc2 = nn.Linear(hidden_size, hidden_size)
        self.fc3 = nn.Linear(hidden_size, action_size)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Compute Q-values for a batch of states.

        Args:
            x: State tensor of shape (batch_size, state_size). A single
               state of shape (state_size,) is treated as a batch of one.

        Returns:
            Q-value tensor of shape (batch_size, action_size)
        """
        if x.dim() == 1:
            x = x.unsqueeze(0)

        # ReLU(x) = max(0, x)
        x = torch.relu(self.fc1(x))
        x = torch.relu(self.fc2(x))
        return self.fc3(x)
