"""
Race orchestrator - Run a complete race and produce its learning batch.

Provides:
- RaceRequest: what to race (track, cars, strategies)
- RaceResult: the complete outcome, returned even if nobody finished
- RaceOrchestrator: validation, simulation, ranking, learning, history

A race reads the track and the learning store before the first tick
and writes learning updates only after the last one.
"""

import logging
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Deque, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from gridrace.errors import DuplicateCarId, InvalidCarCount, InvalidStrategy, RaceNotFound
from gridrace.ml.learning import LearningConfig, LearningSummary, QTable
from gridrace.ml.selection import Best, Strategy
from gridrace.ml.spaces import EncoderConfig, StateEncoder
from gridrace.scoring.rankings import RankedCar, rank_cars, winner_ids
from gridrace.scoring.rewards import QUpdate, RewardConfig, build_q_updates
from gridrace.simulation.engine import RaceConfig, RaceState, TickEngine
from gridrace.track.registry import TrackRegistry


logger = logging.getLogger(__name__)

# Recent results kept per car and per track
RECENT_RACES_PER_CAR = 9
RECENT_RACES_PER_TRACK = 32


@dataclass
class RaceRequest:
    """A race to run.

    ``strategy`` is either applied to every car or given per car id.
    """
    track_id: int
    car_ids: List[str]
    strategy: Union[Strategy, Mapping[str, Strategy]] = field(default_factory=Best)
    train: bool = False
    seed: int | None = None          # Overrides RaceConfig.seed


@dataclass(frozen=True)
class RaceResult:
    """Outcome of one race."""
    race_id: int
    track_id: int
    winner_ids: FrozenSet[str]
    rankings: Tuple[Tuple[str, int], ...]        # (car_id, steps_taken), best first
    standings: Tuple[RankedCar, ...]
    play_by_play: Tuple[str, ...]
    ticks: int
    q_updates: Tuple[QUpdate, ...] = ()
    learning: Tuple[LearningSummary, ...] = ()   # Empty unless the race trained

    @property
    def finished_ids(self) -> FrozenSet[str]:
        return frozenset(s.car_id for s in self.standings if s.finished)

    def get_state(self) -> Dict[str, Any]:
        """Serialize the result (without the learning batch)."""
        return {
            "race_id": self.race_id,
            "track_id": self.track_id,
            "winner_ids": sorted(self.winner_ids),
            "rankings": [list(r) for r in self.rankings],
            "standings": [s.to_dict() for s in self.standings],
            "ticks": self.ticks,
            "play_by_play": list(self.play_by_play),
            "learning": [s.to_dict() for s in self.learning],
        }


class RaceOrchestrator:
    """Runs races on registered tracks.

    Usage:
        orchestrator = RaceOrchestrator(registry, store)
        result = orchestrator.run(RaceRequest(track_id=1, car_ids=["a", "b"]))
    """

    def __init__(
        self,
        registry: TrackRegistry,
        store: QTable | None = None,
        config: RaceConfig | None = None,
        encoder_config: EncoderConfig | None = None,
        reward_config: RewardConfig | None = None,
        learning_config: LearningConfig | None = None,
    ):
        """Initialize orchestrator.

        Args:
            registry: Source of tracks
            store: Learning store read during races and updated after training races
            config: Race configuration
            encoder_config: State encoding used for learning keys
            reward_config: Reward table
            learning_config: Q-learning parameters
        """
        self.registry = registry
        self.store = store if store is not None else QTable()
        self.config = config or RaceConfig()
        self.encoder = StateEncoder(encoder_config)
        self.reward_config = reward_config or RewardConfig()
        self.learning_config = learning_config or LearningConfig()

        self._results: Dict[int, RaceResult] = {}
        self._by_car: Dict[str, Deque[int]] = {}
        self._by_track: Dict[int, Deque[int]] = {}
        self._next_race_id: int = 1

    def validate(self, request: RaceRequest) -> None:
        """Check a request before anything runs.

        Raises:
            InvalidCarCount: Too few or too many cars
            DuplicateCarId: A car appears twice
            InvalidStrategy: A per-car strategy map misses a car
            TrackNotFound: Unknown track
        """
        count = len(request.car_ids)
        if not self.config.min_cars <= count <= self.config.max_cars:
            raise InvalidCarCount(count, self.config.min_cars, self.config.max_cars)

        seen = set()
        for car_id in request.car_ids:
            if car_id in seen:
                raise DuplicateCarId(car_id)
            seen.add(car_id)

        if isinstance(request.strategy, Mapping):
            missing = [c for c in request.car_ids if c not in request.strategy]
            if missing:
                raise InvalidStrategy(f"No strategy for cars: {', '.join(missing)}")

        self.registry.get_track(request.track_id)

    def run(self, request: RaceRequest, on_tick=None) -> RaceResult:
        """Run a race to completion.

        Args:
            request: Race to run
            on_tick: Optional callback receiving the RaceState after each tick

        Returns:
            Complete race result

        Raises:
            ValidationError: The request was rejected; nothing ran
            TrackNotFound: Unknown track
        """
        self.validate(request)
        track = self.registry.get_track(request.track_id)

        config = self.config
        if request.seed is not None:
            config = replace(config, seed=request.seed)

        engine = TickEngine(
            track,
            store=self.store,
            strategies=request.strategy,
            config=config,
            encoder=self.encoder,
        )
        state = engine.new_race(request.car_ids)
        logger.info(
            "Race %d on track %d with %d cars (seed %d)",
            self._next_race_id, track.track_id, len(state.cars), config.seed,
        )
        engine.run(state, on_tick)

        standings = rank_cars(state.cars)
        updates = build_q_updates(
            state.cars,
            standings,
            self.reward_config,
            self._final_state_hashes(state),
        )

        learning: Tuple[LearningSummary, ...] = ()
        if request.train:
            summaries = self.store.apply_updates(updates, self.reward_config, self.learning_config)
            learning = tuple(summaries.values())

        result = RaceResult(
            race_id=self._next_race_id,
            track_id=track.track_id,
            winner_ids=winner_ids(standings),
            rankings=tuple((s.car_id, s.steps_taken) for s in standings),
            standings=tuple(standings),
            play_by_play=tuple(state.play_by_play),
            ticks=state.tick,
            q_updates=tuple(updates),
            learning=learning,
        )
        self._record(result, request.car_ids)

        logger.info(
            "Race %d done after %d ticks: winners %s, %d/%d finished",
            result.race_id, result.ticks, sorted(result.winner_ids) or "none",
            len(result.finished_ids), len(state.cars),
        )
        return result

    def _final_state_hashes(self, state: RaceState) -> Dict[str, bytes]:
        return {
            car.car_id: self.encoder.encode(state.track, car.x, car.y)
            for car in state.cars
            if not car.finished
        }

    def _record(self, result: RaceResult, car_ids: List[str]) -> None:
        self._results[result.race_id] = result
        for car_id in car_ids:
            self._by_car.setdefault(car_id, deque(maxlen=RECENT_RACES_PER_CAR)).append(result.race_id)
        self._by_track.setdefault(
            result.track_id, deque(maxlen=RECENT_RACES_PER_TRACK)
        ).append(result.race_id)
        self._next_race_id += 1

    def get_race_result(self, race_id: int) -> RaceResult:
        """Get a past result.

        Raises:
            RaceNotFound: No race with this id
        """
        try:
            return self._results[race_id]
        except KeyError:
            raise RaceNotFound(race_id) from None

    def recent_races_for_car(self, car_id: str) -> List[RaceResult]:
        """Latest results of a car, oldest first."""
        return [self._results[r] for r in self._by_car.get(car_id, ())]

    def recent_races_for_track(self, track_id: int) -> List[RaceResult]:
        """Latest results on a track, oldest first."""
        return [self._results[r] for r in self._by_track.get(track_id, ())]
