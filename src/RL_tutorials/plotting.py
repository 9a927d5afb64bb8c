"""
Learning-curve plots.

Episode rewards in RL are noisy, so every reward plot shows the raw curve
faintly with a moving average on top.
"""

from pathlib import Path
from typing import Mapping, Sequence

import matplotlib.pyplot as plt
import numpy as np

from RL_tutorials.training import TrainingHistory


def moving_average(values: Sequence[float], window: int) -> np.ndarray:
    """
    Trailing mean over the last `window` values, same length as the input.

    The first window - 1 points average over what is available so far.

    Example:
        >>> moving_average([1, 2, 3, 4], window=2)
        array([1. , 1.5, 2.5, 3.5])
    """
    if window <= 0:
        raise ValueError(f"window must be positive, got {window}")

    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return values

    cumsum = np.concatenate(([0.0], np.cumsum(values)))
    end = np.arange(1, values.size + 1)
    start = np.maximum(end - window, 0)
    return (cumsum[end] - cumsum[start]) / (end - start)


def _finish(fig, save_path: str | Path | None, show: bool) -> None:
    fig.tight_layout()
    if save_path is not None:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")
    if show:
        plt.show()
    else:
        plt.close(fig)


def plot_training_curves(
    history: TrainingHistory,
    title: str = "Training Progress",
    smoothing_window: int = 10,
    save_path: str | Path | None = None,
    show: bool = False,
) -> None:
    """
    Plot episode rewards, mean loss and epsilon for one training run.

    Args:
        history: TrainingHistory returned by train_dqn / train_drqn
        title: Figure title
        smoothing_window: Moving-average window for the reward curve
        save_path: Where to write the figure (PNG, PDF, ...), or None
        show: Open an interactive window
    """
    fig, (ax_reward, ax_loss, ax_eps) = plt.subplots(1, 3, figsize=(16, 4.5))

    rewards = history.episode_rewards
    ax_reward.plot(rewards, alpha=0.3, color="tab:blue", label="Raw")
    ax_reward.plot(
        moving_average(rewards, smoothing_window),
        color="tab:blue", linewidth=2, label=f"Smoothed ({smoothing_window})",
    )
    ax_reward.set_xlabel("Episode")
    ax_reward.set_ylabel("Reward")
    ax_reward.set_title("Episode Rewards")
    ax_reward.legend()
    ax_reward.grid(True, alpha=0.3)

    ax_loss.plot(history.losses, color="tab:orange")
    ax_loss.set_xlabel("Episode")
    ax_loss.set_ylabel("Mean loss")
    ax_loss.set_title("Training Loss")
    ax_loss.grid(True, alpha=0.3)

    ax_eps.plot(history.epsilons, color="tab:purple")
    ax_eps.set_xlabel("Episode")
    ax_eps.set_ylabel("Epsilon")
    ax_eps.set_title("Exploration Rate")
    ax_eps.grid(True, alpha=0.3)

    fig.suptitle(title, fontsize=14)
    _finish(fig, save_path, show)


def plot_comparison(
    histories: Mapping[str, TrainingHistory],
    title: str = "Reward Comparison",
    smoothing_window: int = 10,
    save_path: str | Path | None = None,
    show: bool = False,
) -> None:
    """
    Overlay smoothed reward curves of several runs, e.g. DQN vs DRQN on
    the same partially observable environment.
    """
    if not histories:
        raise ValueError("histories must contain at least one run")

    fig, ax = plt.subplots(figsize=(9, 5))
    for label, history in histories.items():
        ax.plot(moving_average(history.episode_rewards, smoothing_window), linewidth=2, label=label)

    ax.set_xlabel("Episode")
    ax.set_ylabel(f"Reward (moving average, {smoothing_window})")
    ax.set_title(title)
    ax.legend()
    ax.grid(True, alpha=0.3)
    _finish(fig, save_path, show)
