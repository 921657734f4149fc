"""
Scoring module - Standings and rewards for learning.

This module contains:
- rank_cars / winner_ids: Final standings of a race
- RewardType / RewardConfig: Per-action rewards
- build_q_updates: Learning batch for a race
"""

from gridrace.scoring.rankings import RankedCar, rank_cars, winner_ids
from gridrace.scoring.rewards import (
    QUpdate,
    RewardConfig,
    RewardKind,
    RewardType,
    build_q_updates,
    reward_value,
    score_actions,
)

__all__ = [
    "RankedCar",
    "rank_cars",
    "winner_ids",
    "QUpdate",
    "RewardConfig",
    "RewardKind",
    "RewardType",
    "build_q_updates",
    "reward_value",
    "score_actions",
]
