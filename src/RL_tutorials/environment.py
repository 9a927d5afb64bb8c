"""
Environment helpers: gymnasium environments, fully or partially observed.

CartPole's observation is [cart position, cart velocity, pole angle, pole
angular velocity]. With all four numbers the problem is Markov and a plain
DQN does fine. The wrappers below take information away to turn it into a
POMDP:

- MaskObservationWrapper keeps only some components, e.g. the positions,
  so velocities have to be inferred from how positions change over time.
- FlickerObservationWrapper blanks the whole observation at random steps,
  so the agent has to remember what it last saw.
"""

from typing import Sequence

import gymnasium as gym
import numpy as np
from gymnasium import spaces

# Cart position and pole angle; the two velocities are dropped
CARTPOLE_POSITION_INDICES = (0, 2)

OBSERVABILITY_MODES = ("full", "masked", "flicker")


class MaskObservationWrapper(gym.ObservationWrapper):
    """
    Keep only the observation components listed in keep_indices.

    Example:
        >>> env = MaskObservationWrapper(gym.make("CartPole-v1"), (0, 2))
        >>> obs, _ = env.reset()  # [cart_position, pole_angle]
    """

    def __init__(self, env: gym.Env, keep_indices: Sequence[int]):
        super().__init__(env)

        space = env.observation_space
        if not isinstance(space, spaces.Box) or len(space.shape) != 1:
            raise ValueError("MaskObservationWrapper needs a 1-D Box observation space")

        keep_indices = tuple(int(i) for i in keep_indices)
        if not keep_indices:
            raise ValueError("keep_indices must not be empty")
        size = space.shape[0]
        for index in keep_indices:
            if not 0 <= index < size:
                raise ValueError(f"index {index} is out of range for an observation of size {size}")

        self.keep_indices = np.array(keep_indices, dtype=np.int64)
        self.observation_space = spaces.Box(
            low=space.low[self.keep_indices],
            high=space.high[self.keep_indices],
            dtype=space.dtype,
        )

    def observation(self, observation: np.ndarray) -> np.ndarray:
        return np.asarray(observation)[self.keep_indices].astype(self.observation_space.dtype)


class FlickerObservationWrapper(gym.ObservationWrapper):
    """
    Replace the observation with zeros with probability flicker_prob.

    The draw uses the environment's own np_random, so seeding env.reset()
    makes the flicker pattern repeatable.
    """

    def __init__(self, env: gym.Env, flicker_prob: float = 0.5):
        super().__init__(env)
        if not 0.0 <= flicker_prob <= 1.0:
            raise ValueError(f"flicker_prob must be in [0, 1], got {flicker_prob}")
        self.flicker_prob = flicker_prob

    def observation(self, observation: np.ndarray) -> np.ndarray:
        if self.np_random.random() < self.flicker_prob:
            return np.zeros_like(observation)
        return observation


def make_env(
    env_id: str = "CartPole-v1",
    observability: str = "full",
    seed: int | None = None,
    render_mode: str | None = None,
    keep_indices: Sequence[int] | None = None,
    flicker_prob: float = 0.5,
) -> gym.Env:
    """
    Create a gymnasium environment, optionally made partially observable.

    Args:
        env_id: Any gymnasium id with a 1-D Box observation and discrete actions
        observability: "full", "masked" or "flicker"
        seed: Seeds the action space; pass the same seed to the first reset()
        render_mode: Forwarded to gym.make ("human", "rgb_array", ...)
        keep_indices: Components kept by "masked" (CartPole has a default)
        flicker_prob: Blanking probability for "flicker"

    Raises:
        ValueError: On an unknown observability mode, or "masked" without
                    keep_indices for a non-CartPole environment.
    """
    if observability not in OBSERVABILITY_MODES:
        raise ValueError(
            f"observability must be one of {OBSERVABILITY_MODES}, got {observability!r}"
        )

    env = gym.make(env_id, render_mode=render_mode)

    if observability == "masked":
        if keep_indices is None:
            if not env_id.startswith("CartPole"):
                env.close()
                raise ValueError(f"keep_indices is required to mask {env_id}")
            keep_indices = CARTPOLE_POSITION_INDICES
        env = MaskObservationWrapper(env, keep_indices)
    elif observability == "flicker":
        env = FlickerObservationWrapper(env, flicker_prob)

    if seed is not None:
        env.action_space.seed(seed)
    return env
