"""
Tick engine - Per-tick movement, collision and effect state machine.

Provides:
- RaceConfig: race limits and determinism settings
- RaceState: everything one race invocation owns
- TickEngine: advances a RaceState one tick at a time

Each tick runs five phases over a pre-tick snapshot:

    reset -> intent -> collision -> effects -> logging

Every car decides from the same snapshot, so the order in which
intents are computed never changes the outcome.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from gridrace.errors import SimulationInvariantError
from gridrace.ml.learning import QTable
from gridrace.ml.selection import Best, Strategy, select_action
from gridrace.ml.spaces import Action, DIRECTION_VECTORS, EncoderConfig, StateEncoder
from gridrace.simulation.car_state import ActionRecord, CarState
from gridrace.simulation.movement import apply_tile_effect, intend_move
from gridrace.track.track import Track


logger = logging.getLogger(__name__)

Position = Tuple[int, int]


@dataclass
class RaceConfig:
    """Race configuration."""
    max_ticks: int = 100              # Tick cap; reaching it ends the race
    min_cars: int = 1
    max_cars: int = 8
    initial_speed: int = 1            # Speed before a car enters any tile
    seed: int = 0                     # Base seed for every random decision
    block_on_stationary: bool = False  # Cars that do not move also block their cell


@dataclass(frozen=True)
class Conflict:
    """Two or more cars targeting the same cell in one tick."""
    tick: int
    position: Position
    car_ids: Tuple[str, ...]

    def describe(self) -> str:
        x, y = self.position
        return f"tick {self.tick}: conflict at ({x}, {y}) between cars {', '.join(self.car_ids)}"


@dataclass
class RaceState:
    """State owned by a single race invocation."""
    cars: List[CarState]
    track: Track
    tick: int = 0
    play_by_play: List[str] = field(default_factory=list)
    conflicts: List[Conflict] = field(default_factory=list)

    @property
    def all_finished(self) -> bool:
        return all(car.finished for car in self.cars)

    def get_car(self, car_id: str) -> CarState:
        for car in self.cars:
            if car.car_id == car_id:
                return car
        raise KeyError(car_id)


@dataclass
class _Intent:
    index: int
    car: CarState
    state_hash: bytes
    action: Action
    target: Position
    hit_wall: bool
    collided: bool = False

    @property
    def moves(self) -> bool:
        return self.target != self.car.position


StrategyMap = Union[Strategy, Mapping[str, Strategy]]


class TickEngine:
    """Advances races on one track.

    The engine reads action-values from a learning store but never
    writes to it; learning happens after the race.

    Usage:
        engine = TickEngine(track, store, strategies=Best())
        state = engine.new_race(["a", "b"])
        engine.run(state)
    """

    def __init__(
        self,
        track: Track,
        store: QTable | None = None,
        strategies: StrategyMap | None = None,
        config: RaceConfig | None = None,
        encoder: StateEncoder | None = None,
    ):
        """Initialize engine.

        Args:
            track: Built track
            store: Learning store to read action-values from
            strategies: One strategy for every car, or one per car id
            config: Race configuration
            encoder: State encoder. Uses exact encoding if None.
        """
        self.track = track
        self.store = store if store is not None else QTable()
        self.strategies = strategies if strategies is not None else Best()
        self.config = config or RaceConfig()
        self.encoder = encoder or StateEncoder(EncoderConfig())

    def strategy_for(self, car_id: str) -> Strategy:
        if isinstance(self.strategies, Mapping):
            return self.strategies[car_id]
        return self.strategies

    def new_race(self, car_ids: Sequence[str]) -> RaceState:
        """Place cars on start tiles.

        Car i takes start tile i modulo the number of start tiles, in
        row-major order; several cars may share a start tile.
        """
        starts = self.track.start_tiles
        cars = [
            CarState.at_start(car_id, starts[i % len(starts)], self.config.initial_speed)
            for i, car_id in enumerate(car_ids)
        ]
        return RaceState(cars=cars, track=self.track)

    def is_done(self, state: RaceState) -> bool:
        return state.all_finished or state.tick >= self.config.max_ticks

    def run(
        self,
        state: RaceState,
        on_tick: Optional[Callable[[RaceState], None]] = None,
    ) -> RaceState:
        """Advance ticks until every car finished or the cap is reached.

        Args:
            state: Race to advance
            on_tick: Called with the state after every tick

        Returns:
            The same state, advanced
        """
        while not self.is_done(state):
            self.step(state)
            if on_tick is not None:
                on_tick(state)
        return state

    def step(self, state: RaceState) -> List[str]:
        """Advance the race by one tick.

        Returns:
            Log entries appended to ``state.play_by_play`` this tick
        """
        tick = state.tick + 1
        before: List[Position] = [car.position for car in state.cars]

        skipped = self._reset_phase(state)
        intents = self._intent_phase(state, tick, skipped)
        conflicts = self._collision_phase(state, tick, intents)
        self._effect_phase(state, tick, intents)
        entries = self._log_phase(state, tick, before, intents, skipped, conflicts)

        state.tick = tick
        state.conflicts.extend(conflicts)
        state.play_by_play.extend(entries)
        return entries

    def _reset_phase(self, state: RaceState) -> List[int]:
        """Clear per-tick flags; stuck cars spend this tick idle."""
        skipped = []
        for index, car in enumerate(state.cars):
            if car.finished:
                continue
            car.hit_wall = False
            if car.stuck:
                car.stuck = False
                skipped.append(index)
        return skipped

    def _intent_phase(self, state: RaceState, tick: int, skipped: List[int]) -> List[_Intent]:
        intents = []
        for index, car in enumerate(state.cars):
            if car.finished or index in skipped:
                continue

            state_hash = self.encoder.encode(self.track, car.x, car.y)
            values = self.store.get(car.car_id, state_hash)
            seed = [self.config.seed, tick, index]
            action = Action(select_action(values, self.strategy_for(car.car_id), seed))

            move = intend_move(car, action, car.current_speed, self.track)
            intents.append(
                _Intent(
                    index=index,
                    car=car,
                    state_hash=state_hash,
                    action=action,
                    target=(move.x, move.y),
                    hit_wall=move.hit_wall,
                )
            )
        return intents

    def _collision_phase(self, state: RaceState, tick: int, intents: List[_Intent]) -> List[Conflict]:
        """Reject every mover whose target is claimed more than once."""
        claims: Dict[Position, List[_Intent]] = {}
        for intent in intents:
            if intent.moves:
                claims.setdefault(intent.target, []).append(intent)

        occupied: Dict[Position, List[str]] = {}
        if self.config.block_on_stationary:
            moving = {intent.index for intent in intents if intent.moves}
            for index, car in enumerate(state.cars):
                if index not in moving:
                    occupied.setdefault(car.position, []).append(car.car_id)

        conflicts = []
        for target, claimants in claims.items():
            blockers = occupied.get(target, [])
            if len(claimants) < 2 and not blockers:
                continue
            for intent in claimants:
                intent.collided = True
            car_ids = tuple(blockers) + tuple(i.car.car_id for i in claimants)
            conflict = Conflict(tick, target, car_ids)
            logger.debug(conflict.describe())
            conflicts.append(conflict)
        return conflicts

    def _effect_phase(self, state: RaceState, tick: int, intents: List[_Intent]) -> None:
        for intent in intents:
            car = intent.car
            tile_before = car.tile

            if intent.collided or intent.action is Action.STAY:
                updated = car
            elif intent.hit_wall:
                updated = self._bounce(car, intent.action)
            else:
                x, y = intent.target
                updated = apply_tile_effect(self.track.tile_at(x, y), car)

            self._check_invariants(car, updated)

            updated = replace(updated, last_action=intent.action)
            updated.action_history.append(
                ActionRecord(
                    state_hash=intent.state_hash,
                    action=intent.action,
                    tile=tile_before,
                    tick=tick,
                    resulting_tile=updated.tile,
                    hit_wall=updated.hit_wall,
                    collided=intent.collided,
                    became_stuck=updated.stuck,
                    finished=updated.finished,
                )
            )
            state.cars[intent.index] = updated

    def _bounce(self, car: CarState, action: Action) -> CarState:
        """A move into a wall or off the grid.

        An in-grid blocking tile applies its effect (speed, hit_wall);
        leaving the grid only sets hit_wall.
        """
        dx, dy = DIRECTION_VECTORS[action]
        target = self.track.get_tile(car.x + dx * car.current_speed, car.y + dy * car.current_speed)
        if target is None:
            return replace(car, hit_wall=True)
        return apply_tile_effect(target, car)

    def _check_invariants(self, before: CarState, after: CarState) -> None:
        if not self.track.in_bounds(after.x, after.y):
            raise SimulationInvariantError(
                f"Car {after.car_id} left the grid at ({after.x}, {after.y})"
            )
        distance = abs(after.x - before.x) + abs(after.y - before.y)
        if distance > max(before.current_speed, 0):
            raise SimulationInvariantError(
                f"Car {after.car_id} moved {distance} tiles with speed {before.current_speed}"
            )

    def _log_phase(
        self,
        state: RaceState,
        tick: int,
        before: List[Position],
        intents: List[_Intent],
        skipped: List[int],
        conflicts: List[Conflict],
    ) -> List[str]:
        entries = [conflict.describe() for conflict in conflicts]
        by_index = {intent.index: intent for intent in intents}

        for index, car in enumerate(state.cars):
            bx, by = before[index]
            if index in skipped:
                entries.append(f"tick {tick}: car {car.car_id} is stuck at ({bx}, {by}) and skips its turn")
                continue
            intent = by_index.get(index)
            if intent is None:
                entries.append(f"tick {tick}: car {car.car_id} waits at the finish ({bx}, {by})")
                continue

            flags = []
            if car.hit_wall:
                flags.append("wall")
            if intent.collided:
                flags.append("conflict")
            if car.stuck:
                flags.append("stuck")
            if car.finished:
                flags.append("finished")
            suffix = f" [{', '.join(flags)}]" if flags else ""
            entries.append(
                f"tick {tick}: car {car.car_id} {intent.action.name} "
                f"({bx}, {by}) -> ({car.x}, {car.y}) speed {car.current_speed}{suffix}"
            )
        return entries
