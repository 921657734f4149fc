"""Tests for the GridRace ML module."""

import pytest
import numpy as np

from gridrace.errors import InvalidStrategy
from gridrace.ml.spaces import (
    Action,
    ACTION_COUNT,
    EncoderConfig,
    EncodingMode,
    StateEncoder,
    encode_state,
)
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
from gridrace.ml.learning import LearningConfig, QTable, q_update
from gridrace.ml.trainer import Trainer
from gridrace.scoring.rewards import QUpdate, RewardType
from gridrace.simulation.race import RaceOrchestrator
from gridrace.track.layouts import parse_layout
from gridrace.track.registry import TrackRegistry
from gridrace.track.tile import TileProperties
from gridrace.track.track import build_track


BASE = """
#####
#S.F#
#...#
#####
"""

MODES = [EncodingMode.EXACT, EncodingMode.REDUCED]


def track_with(x, y, props):
    """BASE track with one tile replaced."""
    grid = parse_layout(BASE)
    grid[y][x] = props
    return build_track(grid, 5, 4)


class TestAction:
    """Test the action space."""

    def test_canonical_order(self):
        """Test action indices."""
        assert [a.name for a in Action] == ["UP", "DOWN", "LEFT", "RIGHT", "STAY"]
        assert ACTION_COUNT == 5

    def test_vectors(self):
        """Test direction vectors; y grows downward."""
        assert Action.UP.vector == (0, -1)
        assert Action.DOWN.vector == (0, 1)
        assert Action.LEFT.vector == (-1, 0)
        assert Action.RIGHT.vector == (1, 0)
        assert Action.STAY.vector == (0, 0)
        assert not Action.STAY.is_move

    def test_parse(self):
        """Test parsing names and indices."""
        assert Action.parse("right") is Action.RIGHT
        assert Action.parse(4) is Action.STAY


class TestStateEncoder:
    """Test state encoding."""

    @pytest.mark.parametrize("mode", MODES)
    def test_idempotent(self, mode):
        """Test repeated encoding gives identical bytes."""
        track = track_with(2, 2, TileProperties.normal())
        encoder = StateEncoder(EncoderConfig(mode=mode))

        first = encoder.encode(track, 2, 1)
        second = encoder.encode(track, 2, 1)

        assert isinstance(first, bytes)
        assert first == second
        assert first == encode_state(track, 2, 1, mode)

    @pytest.mark.parametrize("mode", MODES)
    @pytest.mark.parametrize("props", [
        TileProperties.sticky(),
        TileProperties.wall(),
        TileProperties.boost(),
        TileProperties.slow(),
    ])
    def test_neighbor_change_changes_key(self, mode, props):
        """Test any retained neighbor property changes the key."""
        plain = track_with(2, 2, TileProperties.normal())
        changed = track_with(2, 2, props)

        assert encode_state(plain, 2, 1, mode) != encode_state(changed, 2, 1, mode)

    @pytest.mark.parametrize("props", [TileProperties.start(), TileProperties.finish()])
    def test_start_and_finish_neighbors_in_exact(self, props):
        """Test exact encoding distinguishes start and finish neighbors."""
        plain = track_with(2, 2, TileProperties.normal())
        changed = track_with(2, 2, props)

        assert encode_state(plain, 2, 1, EncodingMode.EXACT) != encode_state(changed, 2, 1, EncodingMode.EXACT)

    def test_damage_only_in_exact(self):
        """Test neighbor damage is kept by exact and dropped by reduced encoding."""
        plain = track_with(2, 2, TileProperties.normal())
        damaged = track_with(2, 2, TileProperties.damaging(3))

        assert encode_state(plain, 2, 1, EncodingMode.EXACT) != encode_state(
            damaged, 2, 1, EncodingMode.EXACT
        )
        assert encode_state(plain, 2, 1, EncodingMode.REDUCED) == encode_state(
            damaged, 2, 1, EncodingMode.REDUCED
        )

    @pytest.mark.parametrize("mode", MODES)
    def test_center_damage_always_kept(self, mode):
        """Test the center tile keeps full detail in both modes."""
        plain = track_with(2, 2, TileProperties.normal())
        damaged = track_with(2, 2, TileProperties.damaging(3))

        assert encode_state(plain, 2, 2, mode) != encode_state(damaged, 2, 2, mode)

    @pytest.mark.parametrize("mode", MODES)
    def test_progress_changes_key(self, mode):
        """Test positions with different distances get different keys."""
        track = track_with(2, 2, TileProperties.normal())

        assert encode_state(track, 1, 2, mode) != encode_state(track, 2, 2, mode)

    def test_modes_disjoint(self):
        """Test the two modes never share a key."""
        track = track_with(2, 2, TileProperties.normal())

        assert encode_state(track, 2, 1, EncodingMode.EXACT) != encode_state(
            track, 2, 1, EncodingMode.REDUCED
        )

    def test_reduced_is_smaller(self):
        """Test the reduced key is shorter than the exact one."""
        track = track_with(2, 2, TileProperties.normal())

        assert len(encode_state(track, 2, 1, EncodingMode.REDUCED)) < len(
            encode_state(track, 2, 1, EncodingMode.EXACT)
        )

    def test_off_grid(self):
        """Test encoding an off-grid position fails."""
        track = track_with(2, 2, TileProperties.normal())

        with pytest.raises(IndexError):
            StateEncoder().encode(track, 9, 9)


class TestSelection:
    """Test action selection strategies."""

    def test_best_ties_lowest_index(self):
        """Test argmax tie-breaking."""
        assert select_action([1.0, 3.0, 3.0, 0.0, 0.0], Best(), 0) == 1
        assert select_action([0.0] * 5, Best(), 123) == 0

    @pytest.mark.parametrize("strategy", [Random(), EpsilonGreedy(0.5), Softmax(1.0), EpsilonDecay()])
    def test_deterministic(self, strategy):
        """Test identical inputs give identical actions."""
        values = [0.5, -1.0, 2.0, 0.0, 1.0]

        for seed in range(20):
            a = select_action(values, strategy, [7, seed, 0])
            b = select_action(values, strategy, [7, seed, 0])
            assert a == b
            assert 0 <= a < ACTION_COUNT

    def test_random_covers_all_actions(self):
        """Test uniform strategy reaches every action."""
        seen = {select_action([0.0] * 5, Random(), seed) for seed in range(200)}

        assert seen == set(range(ACTION_COUNT))

    def test_epsilon_zero_is_best(self):
        """Test epsilon 0 always exploits."""
        values = [0.0, 0.0, 0.0, 5.0, 0.0]

        for seed in range(50):
            assert select_action(values, EpsilonGreedy(0.0), seed) == 3

    def test_epsilon_one_explores(self):
        """Test epsilon 1 explores."""
        values = [0.0, 0.0, 0.0, 5.0, 0.0]
        seen = {select_action(values, EpsilonGreedy(1.0), seed) for seed in range(200)}

        assert len(seen) > 1

    def test_softmax_prefers_dominant(self):
        """Test a dominant value is always picked."""
        values = [100.0, 0.0, 0.0, 0.0, 0.0]

        for seed in range(50):
            assert select_action(values, Softmax(1.0), seed) == 0

    def test_softmax_large_values_stable(self):
        """Test softmax does not overflow on large values."""
        values = [1000.0, 999.0, 998.0, 1000.0, 0.0]
        action = select_action(values, Softmax(0.5), 1)

        assert 0 <= action < ACTION_COUNT

    def test_values_not_modified(self):
        """Test the selector is read-only."""
        values = np.array([0.5, -1.0, 2.0, 0.0, 1.0])
        original = values.copy()
        select_action(values, Softmax(2.0), 3)

        np.testing.assert_array_equal(values, original)

    def test_wrong_length(self):
        """Test value vectors must have five entries."""
        with pytest.raises(ValueError):
            select_action([1.0, 2.0], Best(), 0)

    def test_invalid_parameters(self):
        """Test strategy parameter validation."""
        with pytest.raises(InvalidStrategy):
            EpsilonGreedy(1.5)
        with pytest.raises(InvalidStrategy):
            Softmax(0.0)
        with pytest.raises(InvalidStrategy):
            EpsilonDecay(total_ticks=0)

    def test_epsilon_decay_linear(self):
        """Test linear decay and clamping."""
        def decay(tick):
            return EpsilonDecay(initial_epsilon=0.3, final_epsilon=0.1, current_tick=tick, total_ticks=100)

        assert decay(0).epsilon == pytest.approx(0.3)
        assert decay(50).epsilon == pytest.approx(0.2)
        assert decay(100).epsilon == pytest.approx(0.1)
        assert decay(500).epsilon == pytest.approx(0.1)

    def test_parse_strategy(self):
        """Test strategy strings."""
        assert parse_strategy("best") == Best()
        assert parse_strategy("random") == Random()
        assert parse_strategy("epsilon:0.2") == EpsilonGreedy(0.2)
        assert parse_strategy("softmax:2") == Softmax(2.0)
        assert parse_strategy("decay:0.5:0.05") == EpsilonDecay(0.5, 0.05)
        with pytest.raises(InvalidStrategy):
            parse_strategy("greedy")

    def test_make_strategy(self):
        """Test strategy choice from a training config."""
        assert make_strategy(TrainingConfig(training_mode=False)) == Best()
        assert make_strategy(TrainingConfig(temperature=2.0)) == Softmax(2.0)
        assert make_strategy(TrainingConfig(epsilon=0.4)) == EpsilonGreedy(0.4)
        assert make_strategy(TrainingConfig(epsilon=0.0)) == Random()

        decayed = make_strategy(TrainingConfig(epsilon=0.4), current_tick=5, total_ticks=10)
        assert isinstance(decayed, EpsilonDecay)
        assert decayed.epsilon == pytest.approx(0.205)


class TestQUpdate:
    """Test the Q-learning rule."""

    def test_terminal_update(self):
        """Test update without a next state."""
        assert q_update(0.0, 100.0, 0.0) == pytest.approx(10.0)

    def test_discounted_update(self):
        """Test update with a next state value."""
        assert q_update(0.0, 10.0, 50.0) == pytest.approx(5.5)

    def test_clamped(self):
        """Test values are clamped to the bound."""
        assert q_update(100.0, 1000.0, 100.0) == 100.0
        assert q_update(-100.0, -1000.0, -100.0) == -100.0

    def test_custom_parameters(self):
        """Test learning rate and discount come from the config."""
        config = LearningConfig(alpha=0.5, gamma=0.0)

        assert q_update(2.0, 10.0, 99.0, config) == pytest.approx(6.0)

    def test_bounded_over_sequences(self):
        """Test repeated updates never leave the bound."""
        rng = np.random.default_rng(0)
        value = 0.0
        for _ in range(2000):
            reward = float(rng.uniform(-1000, 1000))
            max_next = float(rng.uniform(-100, 100))
            value = q_update(value, reward, max_next)
            assert -100.0 <= value <= 100.0


class TestQTable:
    """Test the in-memory learning store."""

    def test_missing_row_is_zero(self):
        """Test missing entries read as zeros."""
        values = QTable().get("car", b"state")

        assert values.dtype == np.float64
        np.testing.assert_array_equal(values, np.zeros(5))

    def test_get_returns_copy(self):
        """Test callers cannot modify stored rows."""
        table = QTable()
        table.set("car", b"s", [1, 2, 3, 4, 5])
        table.get("car", b"s")[0] = 99

        assert table.get("car", b"s")[0] == 1

    def test_set_clamps(self):
        """Test stored values are clamped."""
        table = QTable()
        table.set("car", b"s", [500, -500, 0, 0, 0])

        np.testing.assert_array_equal(table.get("car", b"s"), [100, -100, 0, 0, 0])

    def test_apply_updates(self):
        """Test batch application and summaries."""
        table = QTable()
        updates = [
            QUpdate("a", b"s1", Action.RIGHT, RewardType.rank(1), b"s2"),
            QUpdate("a", b"s2", Action.UP, RewardType.wall(), None),
            QUpdate("b", b"s1", Action.STAY, RewardType.no_move(), None),
        ]

        summaries = table.apply_updates(updates)

        assert table.get("a", b"s1")[Action.RIGHT] == pytest.approx(10.0)
        assert table.get("a", b"s2")[Action.UP] == pytest.approx(-0.8)
        assert table.get("b", b"s1")[Action.STAY] == pytest.approx(-0.2)
        assert summaries["a"].updates == 2
        assert summaries["a"].wall_hits == 1
        assert summaries["a"].total_reward == pytest.approx(92.0)
        assert summaries["b"].no_move_actions == 1

    def test_later_updates_see_earlier(self):
        """Test updates are applied in order."""
        table = QTable()
        table.apply_updates([
            QUpdate("a", b"s2", Action.RIGHT, RewardType.rank(1), None),
            QUpdate("a", b"s1", Action.RIGHT, RewardType.distance(0), b"s2"),
        ])

        # 0.1 * (0 + 0.9 * 10)
        assert table.get("a", b"s1")[Action.RIGHT] == pytest.approx(0.9)

    def test_reset(self):
        """Test forgetting a car."""
        table = QTable()
        table.set("a", b"s1", [1, 0, 0, 0, 0])
        table.set("a", b"s2", [1, 0, 0, 0, 0])
        table.set("b", b"s1", [1, 0, 0, 0, 0])

        assert table.reset("a") == 2
        assert table.entries("a") == {}
        assert len(table) == 1

    def test_serialization(self):
        """Test to_dict/from_dict round trip."""
        table = QTable()
        table.set("a", b"\x01\x02", [1, 2, 3, 4, 5])
        restored = QTable.from_dict(table.to_dict())

        np.testing.assert_array_equal(restored.get("a", b"\x01\x02"), [1, 2, 3, 4, 5])


CORRIDOR = """
##########
S<<<<<<<<F
##########
"""


class TestTrainer:
    """Test the training loop."""

    def _setup(self):
        registry = TrackRegistry()
        grid = parse_layout(CORRIDOR)
        track = registry.add_track("corridor", 10, 3, grid)
        orchestrator = RaceOrchestrator(registry)
        return track, orchestrator

    def test_solo_training(self):
        """Test solo rounds update the store and the solo tally."""
        track, orchestrator = self._setup()
        trainer = Trainer(orchestrator, TrainingConfig(epsilon=0.5))

        report = trainer.train(track.track_id, ["solo"], rounds=5)
        record = trainer.get_record("solo", track.track_id)

        assert report.rounds == 5
        assert len(report.summaries) == 5
        assert record.solo.races == 5
        assert record.pvp.races == 0
        assert len(orchestrator.store) > 0

    def test_multi_car_training(self):
        """Test multi-car rounds count as pvp."""
        track, orchestrator = self._setup()
        trainer = Trainer(orchestrator, TrainingConfig(epsilon=0.3))

        trainer.train(track.track_id, ["a", "b"], rounds=3)

        assert trainer.get_record("a", track.track_id).pvp.races == 3
        assert trainer.get_record("b", track.track_id).solo.races == 0

    def test_training_is_reproducible(self):
        """Test two identical training runs give identical results."""
        runs = []
        for _ in range(2):
            track, orchestrator = self._setup()
            report = Trainer(orchestrator, TrainingConfig(epsilon=0.5)).train(
                track.track_id, ["a"], rounds=4, seed=11
            )
            runs.append([r.play_by_play for r in report.results])

        assert runs[0] == runs[1]

    def test_learns_corridor(self):
        """Test a car learns to drive a corridor."""
        track, orchestrator = self._setup()
        trainer = Trainer(orchestrator, TrainingConfig(epsilon=0.3, final_epsilon=0.0))
        trainer.train(track.track_id, ["a"], rounds=150)

        record = trainer.get_record("a", track.track_id)
        assert record.solo.wins > 0
        assert record.solo.fastest is not None
        assert 0.0 < record.solo.win_rate <= 1.0

    def test_rounds_must_be_positive(self):
        """Test zero rounds is rejected."""
        track, orchestrator = self._setup()

        with pytest.raises(ValueError):
            Trainer(orchestrator).train(track.track_id, ["a"], rounds=0)
