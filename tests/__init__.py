"""
Unit tests for the DQN and DRQN tutorial code.

Run with:
    python -m pytest
    python -m unittest discover tests
"""
