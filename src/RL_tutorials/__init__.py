"""
Deep Q-learning tutorials: DQN for fully observed environments and DRQN for
partially observed ones, on gymnasium's CartPole.
"""

__version__ = "0.1.0"
