"""Tests for the GridRace scoring module."""

import pytest

from gridrace.ml.spaces import Action
from gridrace.scoring.rankings import rank_cars, winner_ids
from gridrace.scoring.rewards import (
    RewardConfig,
    RewardKind,
    RewardType,
    build_q_updates,
    distance_reward,
    reward_value,
    score_actions,
    stage_multiplier,
)
from gridrace.simulation.car_state import ActionRecord, CarState
from gridrace.track.tile import TileProperties, TrackTile


def tile(progress, x=0, y=0, props=None):
    return TrackTile(props or TileProperties.normal(), progress, x, y)


def car(car_id, finished=False, steps=0, progress=5, start_progress=9):
    state = CarState.at_start(car_id, tile(start_progress, 0, 0))
    state.tile = tile(progress, 1, 0)
    state.x, state.y = 1, 0
    state.finished = finished
    state.steps_taken = steps
    return state


def record(before, after, action=Action.RIGHT, **flags):
    return ActionRecord(
        state_hash=f"s{before.x}".encode(),
        action=action,
        tile=before,
        resulting_tile=after,
        **flags,
    )


class TestRankings:
    """Test final standings."""

    def test_finished_by_steps(self):
        """Test finished cars are ordered by steps."""
        cars = [car("slow", True, 12), car("fast", True, 8), car("mid", True, 10)]
        standings = rank_cars(cars)

        assert [s.car_id for s in standings] == ["fast", "mid", "slow"]
        assert [s.rank for s in standings] == [1, 2, 3]

    def test_ties_share_rank(self):
        """Test equal steps share a rank."""
        cars = [car("a", True, 8), car("b", True, 8), car("c", True, 9)]
        standings = rank_cars(cars)

        assert [s.rank for s in standings] == [1, 1, 3]
        assert winner_ids(standings) == frozenset({"a", "b"})

    def test_unfinished_after_finished(self):
        """Test unfinished cars rank after finishers, closest first."""
        cars = [
            car("far", progress=7),
            car("done", True, 20),
            car("near", progress=2),
        ]
        standings = rank_cars(cars)

        assert [s.car_id for s in standings] == ["done", "near", "far"]
        assert [s.rank for s in standings] == [1, 2, 3]
        assert winner_ids(standings) == frozenset({"done"})

    def test_no_finishers(self):
        """Test no winner when nobody finished."""
        standings = rank_cars([car("a", progress=3), car("b", progress=3)])

        assert winner_ids(standings) == frozenset()
        assert [s.rank for s in standings] == [1, 1]

    def test_unreachable_ranks_last(self):
        """Test cars on unreachable cells rank behind everyone."""
        standings = rank_cars([car("lost", progress=None), car("a", progress=8)])

        assert [s.car_id for s in standings] == ["a", "lost"]


class TestRewardValues:
    """Test reward table lookups."""

    def test_rank_table(self):
        """Test rank rewards and the default for lower ranks."""
        assert [reward_value(RewardType.rank(p)) for p in range(1, 6)] == [100, 50, 25, 10, 0]

    def test_penalties(self):
        """Test fixed penalties."""
        assert reward_value(RewardType.stuck()) == -5
        assert reward_value(RewardType.wall()) == -8
        assert reward_value(RewardType.no_move()) == -2
        assert reward_value(RewardType.explore()) == 6
        assert reward_value(RewardType.distance(7)) == 7

    def test_custom_config(self):
        """Test values come from the config."""
        config = RewardConfig(wall_penalty=-1.0, rank_rewards=(10.0,))

        assert reward_value(RewardType.wall(), config) == -1.0
        assert reward_value(RewardType.rank(2), config) == 0.0

    def test_str(self):
        """Test printable form."""
        assert str(RewardType.rank(2)) == "rank(2)"
        assert str(RewardType.wall()) == "wall"


class TestDistanceReward:
    """Test rewards for unfinished cars."""

    def test_stage_multiplier(self):
        """Test stage boundaries."""
        assert stage_multiplier(9, 9) == 1.0
        assert stage_multiplier(9, 7) == 1.0
        assert stage_multiplier(9, 5) == 1.5
        assert stage_multiplier(9, 3) == 2.0
        assert stage_multiplier(9, 1) == 2.0

    def test_distance_scaled(self):
        """Test gained distance is scaled by the stage multiplier."""
        assert distance_reward(car("a", progress=7)) == RewardType.distance(2)
        assert distance_reward(car("a", progress=5)) == RewardType.distance(6)
        assert distance_reward(car("a", progress=1)) == RewardType.distance(16)

    def test_no_progress(self):
        """Test moving away never gives a negative distance."""
        assert distance_reward(car("a", progress=12)) == RewardType.distance(0)


class TestScoreActions:
    """Test per-action reward overrides."""

    def setup_method(self):
        self.t0 = tile(9, 0, 0)
        self.t1 = tile(8, 1, 0)
        self.t2 = tile(7, 2, 0)

    def _score(self, state, records, config=None):
        state.action_history.extend(records)
        standing = {s.car_id: s for s in rank_cars([state])}[state.car_id]
        return score_actions(state, standing, config)

    def test_finished_car_gets_rank(self):
        """Test plain moves get the outcome reward."""
        state = car("a", True, 2)
        rewards = self._score(state, [record(self.t0, self.t1), record(self.t1, self.t2)])

        assert rewards == [RewardType.rank(1), RewardType.rank(1)]

    def test_override_priority(self):
        """Test wall, stuck and no-move overrides."""
        state = car("a", True, 1)
        rewards = self._score(state, [
            record(self.t0, self.t0, Action.UP, hit_wall=True),
            record(self.t0, self.t1, became_stuck=True),
            record(self.t1, self.t1, Action.STAY),
            record(self.t1, self.t1, collided=True),
            record(self.t1, self.t2),
        ])

        assert [r.kind for r in rewards] == [
            RewardKind.WALL,
            RewardKind.STUCK,
            RewardKind.NO_MOVE,
            RewardKind.RANK,
            RewardKind.RANK,
        ]

    def test_wall_beats_stuck(self):
        """Test wall takes precedence over stuck."""
        state = car("a", True, 1)
        rewards = self._score(state, [
            record(self.t0, self.t0, hit_wall=True, became_stuck=True),
        ])

        assert rewards == [RewardType.wall()]

    def test_explore_first_visits(self):
        """Test optional exploration reward for new tiles."""
        state = car("a", progress=7)
        config = RewardConfig(explore_new_tiles=True)
        rewards = self._score(state, [
            record(self.t0, self.t1),
            record(self.t1, self.t0, Action.LEFT),
            record(self.t0, self.t1),
            record(self.t1, self.t2),
        ], config)

        assert [r.kind for r in rewards] == [
            RewardKind.EXPLORE,
            RewardKind.DISTANCE,
            RewardKind.DISTANCE,
            RewardKind.EXPLORE,
        ]


class TestBuildQUpdates:
    """Test learning batch construction."""

    def test_next_state_chain(self):
        """Test each update points at the following state."""
        t0, t1, t2 = tile(9, 0, 0), tile(8, 1, 0), tile(7, 2, 0)
        finished = car("done", True, 2)
        finished.action_history.extend([record(t0, t1), record(t1, t2)])
        running = car("running", progress=7)
        running.action_history.extend([record(t0, t1)])

        cars = [finished, running]
        updates = build_q_updates(cars, rank_cars(cars), final_state_hashes={"running": b"end"})

        assert [(u.car_id, u.state_hash, u.next_state_hash) for u in updates] == [
            ("done", b"s0", b"s1"),
            ("done", b"s1", None),
            ("running", b"s0", b"end"),
        ]
        assert updates[0].reward_type == RewardType.rank(1)
        assert updates[2].reward_type == RewardType.distance(2)

    def test_empty_history(self):
        """Test cars without actions produce no updates."""
        cars = [car("idle")]

        assert build_q_updates(cars, rank_cars(cars)) == []
