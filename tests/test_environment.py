"""
Unit Tests for environment construction and the POMDP wrappers.
"""

import unittest

import gymnasium as gym
import numpy as np

from RL_tutorials.environment import (
    CARTPOLE_POSITION_INDICES,
    FlickerObservationWrapper,
    MaskObservationWrapper,
    make_env,
)


class TestMakeEnv(unittest.TestCase):

    def test_full_observability(self):
        env = make_env("CartPole-v1", seed=0)
        obs, _ = env.reset(seed=0)
        self.assertEqual(obs.shape, (4,))
        self.assertEqual(env.action_space.n, 2)
        env.close()

    def test_masked_keeps_positions(self):
        env = make_env("CartPole-v1", observability="masked", seed=0)
        self.assertEqual(env.observation_space.shape, (2,))
        obs, _ = env.reset(seed=0)
        full_state = np.asarray(env.unwrapped.state, dtype=np.float32)
        np.testing.assert_allclose(obs, full_state[list(CARTPOLE_POSITION_INDICES)], rtol=1e-6)

        obs, *_ = env.step(0)
        self.assertEqual(obs.shape, (2,))
        env.close()

    def test_masked_requires_indices_outside_cartpole(self):
        with self.assertRaises(ValueError):
            make_env("MountainCar-v0", observability="masked")

    def test_masked_with_explicit_indices(self):
        env = make_env("MountainCar-v0", observability="masked", keep_indices=[0])
        self.assertEqual(env.observation_space.shape, (1,))
        env.close()

    def test_unknown_observability(self):
        with self.assertRaises(ValueError):
            make_env("CartPole-v1", observability="foggy")

    def test_flicker_mode(self):
        env = make_env("CartPole-v1", observability="flicker", flicker_prob=1.0)
        obs, _ = env.reset(seed=0)
        np.testing.assert_array_equal(obs, np.zeros(4, dtype=np.float32))
        env.close()


class TestMaskObservationWrapper(unittest.TestCase):

    def setUp(self):
        self.base = gym.make("CartPole-v1")

    def tearDown(self):
        self.base.close()

    def test_space_bounds_follow_indices(self):
        env = MaskObservationWrapper(self.base, (0, 2))
        np.testing.assert_array_equal(env.observation_space.low, self.base.observation_space.low[[0, 2]])
        np.testing.assert_array_equal(env.observation_space.high, self.base.observation_space.high[[0, 2]])

    def test_observation_dtype_matches_space(self):
        env = MaskObservationWrapper(self.base, (1,))
        obs, _ = env.reset(seed=3)
        self.assertEqual(obs.dtype, env.observation_space.dtype)
        self.assertTrue(env.observation_space.contains(obs))

    def test_invalid_indices(self):
        with self.assertRaises(ValueError):
            MaskObservationWrapper(self.base, (0, 4))
        with self.assertRaises(ValueError):
            MaskObservationWrapper(self.base, ())


class TestFlickerObservationWrapper(unittest.TestCase):

    def test_never_flickers_at_zero(self):
        env = FlickerObservationWrapper(gym.make("CartPole-v1"), flicker_prob=0.0)
        obs, _ = env.reset(seed=0)
        np.testing.assert_allclose(obs, np.asarray(env.unwrapped.state, dtype=np.float32), rtol=1e-6)
        env.close()

    def test_seeded_pattern_is_repeatable(self):
        def blank_pattern():
            env = FlickerObservationWrapper(gym.make("CartPole-v1"), flicker_prob=0.5)
            obs, _ = env.reset(seed=7)
            pattern = [not obs.any()]
            for _ in range(15):
                obs, _, terminated, truncated, _ = env.step(0)
                pattern.append(not obs.any())
                if terminated or truncated:
                    break
            env.close()
            return pattern

        self.assertEqual(blank_pattern(), blank_pattern())

    def test_invalid_probability(self):
        with self.assertRaises(ValueError):
            FlickerObservationWrapper(gym.make("CartPole-v1"), flicker_prob=1.5)


if __name__ == "__main__":
    unittest.main()
