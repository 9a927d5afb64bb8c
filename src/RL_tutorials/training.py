"""
Training loops for the DQN and DRQN agents on gymnasium environments.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

import gymnasium as gym
import numpy as np

from RL_tutorials.DQN.dqn_agent import DQNAgent
from RL_tutorials.DRQN.drqn_agent import DRQNAgent
from RL_tutorials.environment import make_env
from RL_tutorials.utils import set_seed

_log: Final[logging.Logger] = logging.getLogger(__name__)


@dataclass
class TrainingHistory:
    """
    Per-episode statistics collected during training.

    Attributes:
        episode_rewards: Total reward of each episode (the return, undiscounted)
        episode_lengths: Steps in each episode
        losses: Mean training loss of each episode
        epsilons: Exploration rate at the end of each episode
    """

    episode_rewards: list[float] = field(default_factory=list)
    episode_lengths: list[int] = field(default_factory=list)
    losses: list[float] = field(default_factory=list)
    epsilons: list[float] = field(default_factory=list)

    def log_episode(self, reward: float, length: int, loss: float, epsilon: float) -> None:
        self.episode_rewards.append(reward)
        self.episode_lengths.append(length)
        self.losses.append(loss)
        self.epsilons.append(epsilon)

    @property
    def num_episodes(self) -> int:
        return len(self.episode_rewards)

    @property
    def best_reward(self) -> float:
        if not self.episode_rewards:
            return float('-inf')
        return max(self.episode_rewards)

    def mean_reward(self, window: int = 100) -> float:
        """Mean reward over the last `window` episodes."""
        if not self.episode_rewards:
            return 0.0
        return float(np.mean(self.episode_rewards[-window:]))


def _validate_run_arguments(
    num_episodes: int,
    max_steps: int,
    render_interval: int,
    save_interval: int
) -> None:
    """Raise ValueError before any environment is built."""
    for name, value in (
        ("num_episodes", num_episodes),
        ("max_steps", max_steps),
        ("render_interval", render_interval),
        ("save_interval", save_interval),
    ):
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")


def _best_path(save_path: str) -> str:
    path = Path(save_path)
    return str(path.with_name(f"{path.stem}_best{path.suffix}"))


def _checkpoint(
    agent: DQNAgent | DRQNAgent,
    history: TrainingHistory,
    episode: int,
    save_interval: int,
    save_path: str | None
) -> None:
    """Save on a new best reward and every save_interval episodes."""
    if save_path is None:
        return
    previous_best = max(history.episode_rewards[:-1], default=float('-inf'))
    if history.episode_rewards[-1] > previous_best:
        agent.save(_best_path(save_path))
    if episode > 0 and episode % save_interval == 0:
        agent.save(save_path)


def _log_progress(algo: str, episode: int, history: TrainingHistory) -> None:
    _log.info(
        "%s episode %4d | Reward: %8.2f | Best: %8.2f | Epsilon: %.3f | Steps: %4d | Avg Loss: %.4f",
        algo, episode, history.episode_rewards[-1], history.best_reward,
        history.epsilons[-1], history.episode_lengths[-1], history.losses[-1],
    )


def train_dqn(
    env_id: str = "CartPole-v1",
    num_episodes: int = 500,
    max_steps: int = 500,
    observability: str = "full",
    render_interval: int = 50,
    save_interval: int = 100,
    save_path: str | None = None,
    seed: int | None = None,
    **agent_kwargs
) -> tuple[DQNAgent, TrainingHistory]:
    """
    Train a DQN agent.

    Args:
        env_id: gymnasium environment id
        num_episodes: Number of training episodes
        max_steps: Maximum steps per episode (on top of the env's own limit)
        observability: "full", "masked" or "flicker" (see environment.py)
        render_interval: Episodes between progress log lines
        save_interval: Episodes between periodic checkpoints
        save_path: Checkpoint path; None disables checkpointing
        seed: Seeds python, numpy, torch and the environment
        **agent_kwargs: Hyperparameters forwarded to DQNAgent

    Returns:
        The trained agent and its TrainingHistory

    Raises:
        ValueError: If an episode count, step limit or interval is not positive.
    """
    _validate_run_arguments(num_episodes, max_steps, render_interval, save_interval)
    if seed is not None:
        set_seed(seed)

    env = make_env(env_id, observability=observability, seed=seed)
    try:
        agent = DQNAgent(
            state_size=env.observation_space.shape[0],
            action_size=int(env.action_space.n),
            **agent_kwargs
        )
        history = TrainingHistory()

        _log.info("Training DQN agent on %s (%s, %s observability)", env_id, agent.device, observability)
        _log.info("Episodes: %d, Max Steps: %d", num_episodes, max_steps)

        for episode in range(num_episodes):
            state, _ = env.reset(seed=seed if episode == 0 else None)
            total_reward = 0.0
            total_loss = 0.0
            steps = 0

            for _ in range(max_steps):
                action = agent.select_action(state)
                next_state, reward, terminated, truncated, _ = env.step(action)

                # Only a true terminal state stops bootstrapping
                agent.store_transition(state, action, reward, next_state, terminated)
                total_loss += agent.train_step()

                total_reward += float(reward)
                state = next_state
                steps += 1

                if terminated or truncated:
                    break

            agent.decay_epsilon()
            history.log_episode(total_reward, steps, total_loss / max(steps, 1), agent.epsilon)
            _checkpoint(agent, history, episode, save_interval, save_path)

            if episode % render_interval == 0:
                _log_progress("DQN", episode, history)

        if save_path is not None:
            agent.save(save_path)
    finally:
        env.close()
    _log.info("Training complete! Best reward: %.2f", history.best_reward)

    return agent, history


def train_drqn(
    env_id: str = "CartPole-v1",
    num_episodes: int = 500,
    max_steps: int = 500,
    observability: str = "masked",
    render_interval: int = 50,
    save_interval: int = 100,
    save_path: str | None = None,
    seed: int | None = None,
    **agent_kwargs
) -> tuple[DRQNAgent, TrainingHistory]:
    """
    Train a DRQN agent. Same arguments as train_dqn, but defaults to the
    velocity-masked POMDP version of the environment.
    """
    _validate_run_arguments(num_episodes, max_steps, render_interval, save_interval)
    if seed is not None:
        set_seed(seed)

    env = make_env(env_id, observability=observability, seed=seed)
    try:
        agent = DRQNAgent(
            obs_size=env.observation_space.shape[0],
            action_size=int(env.action_space.n),
            **agent_kwargs
        )
        history = TrainingHistory()

        _log.info("Training DRQN agent on %s (%s, %s observability)", env_id, agent.device, observability)
        _log.info("Episodes: %d, Max Steps: %d", num_episodes, max_steps)

        for episode in range(num_episodes):
            obs, _ = env.reset(seed=seed if episode == 0 else None)
            hidden = agent.reset_hidden()
            total_reward = 0.0
            total_loss = 0.0
            steps = 0

            for _ in range(max_steps):
                action, hidden = agent.select_action(obs, hidden)
                next_obs, reward, terminated, truncated, _ = env.step(action)

                agent.store_transition(obs, action, reward, next_obs, terminated)
                total_loss += agent.train_step()

                total_reward += float(reward)
                obs = next_obs
                steps += 1

                if terminated or truncated:
                    break

            agent.end_episode()
            agent.decay_epsilon()
            history.log_episode(total_reward, steps, total_loss / max(steps, 1), agent.epsilon)
            _checkpoint(agent, history, episode, save_interval, save_path)

            if episode % render_interval == 0:
                _log_progress("DRQN", episode, history)

        if save_path is not None:
            agent.save(save_path)
    finally:
        env.close()
    _log.info("Training complete! Best reward: %.2f", history.best_reward)

    return agent, history


def evaluate(
    agent: DQNAgent | DRQNAgent,
    env: gym.Env,
    num_episodes: int = 10,
    max_steps: int = 1_000,
    seed: int | None = None
) -> list[float]:
    """
    Run greedy (no exploration) episodes and return their total rewards.

    Works for both agent types; the DRQN agent's memory is reset at the
    start of every episode.
    """
    if num_episodes <= 0:
        raise ValueError(f"num_episodes must be positive, got {num_episodes}")

    recurrent = isinstance(agent, DRQNAgent)
    rewards = []

    for episode in range(num_episodes):
        obs, _ = env.reset(seed=None if seed is None else seed + episode)
        hidden = agent.reset_hidden() if recurrent else None
        total_reward = 0.0

        for _ in range(max_steps):
            if recurrent:
                action, hidden = agent.select_action(obs, hidden, greedy=True)
            else:
                action = agent.select_action(obs, greedy=True)
            obs, reward, terminated, truncated, _ = env.step(action)
            total_reward += float(reward)
            if terminated or truncated:
                break

        rewards.append(total_reward)

    _log.info(
        "Evaluation over %d episodes: %.2f +/- %.2f",
        num_episodes, np.mean(rewards), np.std(rewards),
    )
    return rewards
