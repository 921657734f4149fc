"""
ML module - Tabular Q-learning for grid races.

This module contains:
- Action / StateEncoder: Action space and state keys
- select_action: Seeded action selection strategies
- QTable: In-memory learning store and the Q-update rule

The multi-round training loop lives in gridrace.ml.trainer.
"""

from gridrace.ml.spaces import Action, ACTION_COUNT, EncoderConfig, EncodingMode, StateEncoder
from gridrace.ml.selection import (
    Best,
    EpsilonDecay,
    EpsilonGreedy,
    Random,
    Softmax,
    TrainingConfig,
    make_strategy,
    parse_strategy,
    select_action,
)
from gridrace.ml.learning import LearningConfig, LearningSummary, QTable, q_update

__all__ = [
    "Action",
    "ACTION_COUNT",
    "EncoderConfig",
    "EncodingMode",
    "StateEncoder",
    "Best",
    "EpsilonDecay",
    "EpsilonGreedy",
    "Random",
    "Softmax",
    "TrainingConfig",
    "make_strategy",
    "parse_strategy",
    "select_action",
    "LearningConfig",
    "LearningSummary",
    "QTable",
    "q_update",
]
