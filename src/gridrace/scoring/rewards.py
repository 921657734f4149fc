"""
Rewards - Turn race outcomes into per-action rewards.

Provides:
- RewardType: tagged reward (Rank, Distance, Stuck, Wall, NoMove, Explore)
- RewardConfig: reward table and penalties
- score_actions: one reward per recorded action of a car
- build_q_updates: the learning batch for a whole race
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from gridrace.scoring.rankings import RankedCar

if TYPE_CHECKING:
    from gridrace.ml.spaces import Action
    from gridrace.simulation.car_state import CarState


class RewardKind(Enum):
    RANK = "rank"
    DISTANCE = "distance"
    STUCK = "stuck"
    WALL = "wall"
    NO_MOVE = "no_move"
    EXPLORE = "explore"


@dataclass(frozen=True)
class RewardType:
    """Reward attached to one action.

    ``value`` is the finishing position for RANK, the scaled distance
    gained for DISTANCE, and unused for the fixed penalties.
    """
    kind: RewardKind
    value: int = 0

    @classmethod
    def rank(cls, position: int) -> "RewardType":
        return cls(RewardKind.RANK, position)

    @classmethod
    def distance(cls, magnitude: int) -> "RewardType":
        return cls(RewardKind.DISTANCE, magnitude)

    @classmethod
    def stuck(cls) -> "RewardType":
        return cls(RewardKind.STUCK)

    @classmethod
    def wall(cls) -> "RewardType":
        return cls(RewardKind.WALL)

    @classmethod
    def no_move(cls) -> "RewardType":
        return cls(RewardKind.NO_MOVE)

    @classmethod
    def explore(cls) -> "RewardType":
        return cls(RewardKind.EXPLORE)

    def __str__(self) -> str:
        if self.kind in (RewardKind.RANK, RewardKind.DISTANCE):
            return f"{self.kind.value}({self.value})"
        return self.kind.value


@dataclass
class RewardConfig:
    """Reward table."""
    rank_rewards: Tuple[float, ...] = (100.0, 50.0, 25.0, 10.0)  # 1st, 2nd, 3rd, 4th
    other_rank_reward: float = 0.0

    # Per-action penalties
    stuck_penalty: float = -5.0
    wall_penalty: float = -8.0
    no_move_penalty: float = -2.0
    explore_reward: float = 6.0

    # Unfinished cars
    distance_weight: float = 1.0
    stage_multipliers: Tuple[float, float, float] = (1.0, 1.5, 2.0)  # early, middle, late

    explore_new_tiles: bool = False  # Reward first visits to a tile


def reward_value(reward: RewardType, config: RewardConfig | None = None) -> float:
    """Numeric value of a reward.

    Args:
        reward: Reward to evaluate
        config: Reward table

    Returns:
        Reward as a float
    """
    config = config or RewardConfig()
    kind = reward.kind

    if kind is RewardKind.RANK:
        index = reward.value - 1
        if 0 <= index < len(config.rank_rewards):
            return float(config.rank_rewards[index])
        return float(config.other_rank_reward)
    if kind is RewardKind.DISTANCE:
        return float(reward.value)
    if kind is RewardKind.STUCK:
        return float(config.stuck_penalty)
    if kind is RewardKind.WALL:
        return float(config.wall_penalty)
    if kind is RewardKind.NO_MOVE:
        return float(config.no_move_penalty)
    return float(config.explore_reward)


def stage_multiplier(
    start_progress: int,
    final_progress: int,
    config: RewardConfig | None = None,
) -> float:
    """Multiplier for the stage of the track a car ended in.

    The stage is chosen by the share of the starting distance still left:
    more than two thirds is early, more than one third is middle, the
    rest is late.
    """
    config = config or RewardConfig()
    early, middle, late = config.stage_multipliers
    if start_progress <= 0:
        return late

    remaining = final_progress / start_progress
    if remaining > 2 / 3:
        return early
    if remaining > 1 / 3:
        return middle
    return late


def distance_reward(car: "CarState", config: RewardConfig | None = None) -> RewardType:
    """Outcome reward for a car that did not finish."""
    config = config or RewardConfig()
    start = car.start_tile.progress_towards_finish
    final = car.progress_towards_finish
    if start is None or final is None:
        return RewardType.distance(0)

    gained = max(0, start - final)
    multiplier = stage_multiplier(start, final, config)
    return RewardType.distance(int(round(config.distance_weight * gained * multiplier)))


def outcome_reward(
    car: "CarState",
    standing: RankedCar,
    config: RewardConfig | None = None,
) -> RewardType:
    """Reward for the race outcome, shared by every action of the car."""
    if car.finished:
        return RewardType.rank(standing.rank)
    return distance_reward(car, config)


def score_actions(
    car: "CarState",
    standing: RankedCar,
    config: RewardConfig | None = None,
) -> List[RewardType]:
    """Score each recorded action of a car.

    Per-action overrides take precedence over the race outcome, in this
    order: Wall, Stuck, NoMove, Explore. An action rejected by a
    car/car conflict keeps the outcome reward.

    Args:
        car: Final car state
        standing: The car's line in the standings
        config: Reward table

    Returns:
        One reward per entry of ``car.action_history``
    """
    config = config or RewardConfig()
    outcome = outcome_reward(car, standing, config)

    visited: Set[Tuple[int, int]] = {car.start_tile.position}
    rewards: List[RewardType] = []
    for record in car.action_history:
        if record.hit_wall:
            reward = RewardType.wall()
        elif record.became_stuck:
            reward = RewardType.stuck()
        elif not record.moved and not record.collided:
            reward = RewardType.no_move()
        elif (
            config.explore_new_tiles
            and record.moved
            and record.resulting_tile.position not in visited
        ):
            reward = RewardType.explore()
        else:
            reward = outcome

        if record.resulting_tile is not None:
            visited.add(record.resulting_tile.position)
        rewards.append(reward)

    return rewards


@dataclass(frozen=True)
class QUpdate:
    """One learning update for the learning store."""
    car_id: str
    state_hash: bytes
    action: "Action"
    reward_type: RewardType
    next_state_hash: Optional[bytes] = None   # None for a terminal transition


def build_q_updates(
    cars: Sequence["CarState"],
    standings: Sequence[RankedCar],
    config: RewardConfig | None = None,
    final_state_hashes: Mapping[str, bytes] | None = None,
) -> List[QUpdate]:
    """Build the learning batch for a race.

    Each recorded action becomes one update. Its next state is the state
    of the car's following action. For a car's last action the next
    state comes from ``final_state_hashes`` (the state of an unfinished
    car at the end of the race); finished cars end with a terminal
    update.

    Args:
        cars: Final car states in race order
        standings: Output of rank_cars()
        config: Reward table
        final_state_hashes: State of each unfinished car after the last tick

    Returns:
        Updates grouped by car in race order, then by action order
    """
    config = config or RewardConfig()
    final_state_hashes = final_state_hashes or {}
    by_id: Dict[str, RankedCar] = {s.car_id: s for s in standings}

    updates: List[QUpdate] = []
    for car in cars:
        rewards = score_actions(car, by_id[car.car_id], config)
        history = car.action_history
        for index, (record, reward) in enumerate(zip(history, rewards)):
            if index + 1 < len(history):
                next_hash = history[index + 1].state_hash
            elif car.finished:
                next_hash = None
            else:
                next_hash = final_state_hashes.get(car.car_id)
            updates.append(
                QUpdate(
                    car_id=car.car_id,
                    state_hash=record.state_hash,
                    action=record.action,
                    reward_type=reward,
                    next_state_hash=next_hash,
                )
            )
    return updates
