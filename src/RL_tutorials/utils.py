"""
Small helpers shared by the DQN and DRQN code.
"""

import random

import numpy as np
import torch


def set_seed(seed: int) -> None:
    """
    Seed every random number generator the tutorials touch.

    Python's `random` drives epsilon-greedy and replay sampling, numpy
    drives array work, torch drives weight initialisation. The environment
    is seeded separately through `env.reset(seed=...)`.

    Example:
        >>> set_seed(42)
        >>> # runs are now repeatable on the same hardware
    """
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


def copy_weights(
    target: torch.nn.Module,
    source: torch.nn.Module,
    tau: float | None = None
) -> None:
    """
    Move `target`'s weights towards `source`'s.

    tau=None is a "hard" update: load_state_dict copies every weight and bias.
    Otherwise it is a "soft" (Polyak) update, blending the two:
        target = tau * source + (1 - tau) * target
    """
    if tau is None:
        target.load_state_dict(source.state_dict())
        return

    with torch.no_grad():
        for target_param, source_param in zip(target.parameters(), source.parameters()):
            target_param.mul_(1.0 - tau).add_(source_param, alpha=tau)


def resolve_device(device: str | None = None) -> torch.device:
    """'cuda' for GPU, 'cpu' for CPU, or None to auto-detect."""
    if device is None:
        return torch.device("cuda" if torch.cuda.is_available() else "cpu")
    return torch.device(device)
