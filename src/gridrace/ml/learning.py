"""
Learning - Q-learning arithmetic and the in-memory learning store.

Provides:
- LearningConfig: learning rate, discount and value bound
- q_update: one bounded Q-learning step
- QTable: per-car action-value rows keyed by state hash
- LearningSummary: what one batch of updates did to one car

Update rule:

    Q(s, a) <- clamp(Q(s, a) + alpha * (r + gamma * max Q(s', .) - Q(s, a)), -Q_MAX, Q_MAX)

with the max term taken as zero for terminal transitions.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence

import numpy as np

from gridrace.ml.spaces import ACTION_COUNT, Action
from gridrace.scoring.rewards import (
    QUpdate,
    RewardConfig,
    RewardKind,
    reward_value,
)


logger = logging.getLogger(__name__)


@dataclass
class LearningConfig:
    """Q-learning parameters."""
    alpha: float = 0.1      # Learning rate
    gamma: float = 0.9      # Discount factor
    q_max: float = 100.0    # Values are clamped to [-q_max, q_max]


def q_update(
    current: float,
    reward: float,
    max_next: float,
    config: LearningConfig | None = None,
) -> float:
    """Apply one Q-learning step to a single value.

    Args:
        current: Q(s, a) before the update
        reward: Reward for the transition
        max_next: max over actions of Q(s', .), or 0 for a terminal transition
        config: Learning parameters

    Returns:
        Updated, clamped value
    """
    config = config or LearningConfig()
    target = reward + config.gamma * max_next
    value = current + config.alpha * (target - current)
    return float(np.clip(value, -config.q_max, config.q_max))


@dataclass
class LearningSummary:
    """Result of applying a batch of updates for one car."""
    car_id: str
    updates: int = 0
    total_reward: float = 0.0
    wall_hits: int = 0
    stuck_actions: int = 0
    no_move_actions: int = 0
    explore_actions: int = 0

    @property
    def mean_reward(self) -> float:
        if self.updates == 0:
            return 0.0
        return self.total_reward / self.updates

    def to_dict(self) -> Dict[str, float]:
        return {
            "car_id": self.car_id,
            "updates": self.updates,
            "total_reward": self.total_reward,
            "mean_reward": self.mean_reward,
            "wall_hits": self.wall_hits,
            "stuck_actions": self.stuck_actions,
            "no_move_actions": self.no_move_actions,
            "explore_actions": self.explore_actions,
        }


_PENALTY_COUNTERS = {
    RewardKind.WALL: "wall_hits",
    RewardKind.STUCK: "stuck_actions",
    RewardKind.NO_MOVE: "no_move_actions",
    RewardKind.EXPLORE: "explore_actions",
}


class QTable:
    """In-memory learning store.

    Holds one float64 vector of ACTION_COUNT values per (car, state).
    A missing row reads as all zeros; that is the normal state of a car
    that has never seen a state, not an error.

    Usage:
        table = QTable()
        values = table.get("car-1", state_hash)
        summaries = table.apply_updates(result.q_updates)
    """

    def __init__(
        self,
        config: LearningConfig | None = None,
        reward_config: RewardConfig | None = None,
    ):
        """Initialize store.

        Args:
            config: Learning parameters
            reward_config: Reward table used to value RewardType entries
        """
        self.config = config or LearningConfig()
        self.reward_config = reward_config or RewardConfig()
        self._rows: Dict[str, Dict[bytes, np.ndarray]] = {}

    def get(self, car_id: str, state_hash: bytes) -> np.ndarray:
        """Action-values of a state; zeros if never stored.

        Returns:
            Copy of the stored row, safe to modify
        """
        row = self._rows.get(car_id, {}).get(state_hash)
        if row is None:
            return np.zeros(ACTION_COUNT, dtype=np.float64)
        return row.copy()

    def set(self, car_id: str, state_hash: bytes, values: Sequence[float]) -> None:
        """Replace the action-values of a state.

        Raises:
            ValueError: values does not hold one number per action
        """
        row = np.asarray(values, dtype=np.float64)
        if row.shape != (ACTION_COUNT,):
            raise ValueError(f"Expected {ACTION_COUNT} action-values, got shape {row.shape}")
        self._rows.setdefault(car_id, {})[state_hash] = np.clip(
            row, -self.config.q_max, self.config.q_max
        )

    def set_value(self, car_id: str, state_hash: bytes, action: Action, value: float) -> None:
        """Replace a single action-value."""
        row = self.get(car_id, state_hash)
        row[int(action)] = value
        self.set(car_id, state_hash, row)

    def entries(self, car_id: str) -> Dict[bytes, np.ndarray]:
        """All stored rows of a car, copied."""
        return {key: row.copy() for key, row in self._rows.get(car_id, {}).items()}

    def cars(self) -> Iterable[str]:
        """Ids of cars with at least one stored row."""
        return list(self._rows)

    def reset(self, car_id: str) -> int:
        """Forget everything a car has learned.

        Returns:
            Number of rows removed
        """
        removed = len(self._rows.pop(car_id, {}))
        logger.info("Reset learning table of car %s (%d states)", car_id, removed)
        return removed

    def __len__(self) -> int:
        return sum(len(rows) for rows in self._rows.values())

    def apply_updates(
        self,
        updates: Iterable[QUpdate],
        reward_config: RewardConfig | None = None,
        learning_config: LearningConfig | None = None,
    ) -> Dict[str, LearningSummary]:
        """Apply a batch of updates in order.

        Updates are applied one after another, so a later update for the
        same state sees the result of an earlier one.

        Args:
            updates: Batch produced by a race
            reward_config: Overrides the store's reward table
            learning_config: Overrides the store's learning parameters

        Returns:
            Summary per car id, in first-seen order
        """
        reward_config = reward_config or self.reward_config
        learning_config = learning_config or self.config

        summaries: Dict[str, LearningSummary] = {}
        for update in updates:
            reward = reward_value(update.reward_type, reward_config)

            row = self.get(update.car_id, update.state_hash)
            max_next = self._max_next(update.car_id, update.next_state_hash)
            row[int(update.action)] = q_update(
                row[int(update.action)], reward, max_next, learning_config
            )
            self._rows.setdefault(update.car_id, {})[update.state_hash] = row

            summary = summaries.setdefault(update.car_id, LearningSummary(update.car_id))
            summary.updates += 1
            summary.total_reward += reward
            counter = _PENALTY_COUNTERS.get(update.reward_type.kind)
            if counter is not None:
                setattr(summary, counter, getattr(summary, counter) + 1)

        for summary in summaries.values():
            logger.info(
                "Applied %d updates to car %s (reward %.1f, walls %d, stuck %d, no-move %d)",
                summary.updates, summary.car_id, summary.total_reward,
                summary.wall_hits, summary.stuck_actions, summary.no_move_actions,
            )
        return summaries

    def _max_next(self, car_id: str, next_state_hash: Optional[bytes]) -> float:
        if next_state_hash is None:
            return 0.0
        return float(self.get(car_id, next_state_hash).max())

    def to_dict(self) -> Dict[str, Dict[str, list]]:
        """Serialize to plain types (state hashes as hex)."""
        return {
            car_id: {key.hex(): row.tolist() for key, row in rows.items()}
            for car_id, rows in self._rows.items()
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Dict[str, list]],
        config: LearningConfig | None = None,
    ) -> "QTable":
        """Rebuild a store serialized with to_dict()."""
        table = cls(config)
        for car_id, rows in data.items():
            for key, values in rows.items():
                table.set(car_id, bytes.fromhex(key), values)
        return table
