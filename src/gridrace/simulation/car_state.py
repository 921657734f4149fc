"""
Car state - Per-race, per-car mutable record.

Defines:
- ActionRecord: one entry of a car's action history
- CarState: position, flags and counters advanced by the tick engine
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from gridrace.ml.spaces import Action
from gridrace.track.tile import TrackTile


@dataclass(frozen=True)
class ActionRecord:
    """What a car did on one tick.

    state_hash, action and tile are the state-action pair used for
    learning; the remaining fields describe the outcome and feed reward
    scoring.
    """
    state_hash: bytes
    action: Action
    tile: TrackTile                 # Tile occupied before the move
    tick: int = 0
    resulting_tile: TrackTile | None = None
    hit_wall: bool = False
    collided: bool = False          # Rejected by a car/car conflict
    became_stuck: bool = False      # Entered a sticky tile
    finished: bool = False

    @property
    def moved(self) -> bool:
        return self.resulting_tile is not None and self.resulting_tile.position != self.tile.position


@dataclass
class CarState:
    """Mutable state of one car during one race.

    Created from a start tile, advanced once per tick by the tick
    engine, frozen in place once ``finished`` is set.
    """
    car_id: str
    tile: TrackTile
    x: int
    y: int
    stuck: bool = False
    finished: bool = False
    steps_taken: int = 0
    last_action: Action = Action.STAY
    action_history: List[ActionRecord] = field(default_factory=list)
    hit_wall: bool = False
    current_speed: int = 1
    start_tile: TrackTile | None = None

    def __post_init__(self):
        if self.start_tile is None:
            self.start_tile = self.tile

    @classmethod
    def at_start(cls, car_id: str, tile: TrackTile, speed: int = 1) -> "CarState":
        """Create a car placed on a start tile."""
        return cls(car_id=car_id, tile=tile, x=tile.x, y=tile.y, current_speed=speed)

    @property
    def position(self) -> Tuple[int, int]:
        return (self.x, self.y)

    @property
    def progress_towards_finish(self) -> int | None:
        """Remaining distance to the finish from the current tile."""
        return self.tile.progress_towards_finish

    @property
    def active(self) -> bool:
        """Whether the car can still move at some point."""
        return not self.finished

    def get_state(self) -> Dict[str, Any]:
        """Get car state as a dictionary."""
        return {
            "car_id": self.car_id,
            "x": self.x,
            "y": self.y,
            "stuck": self.stuck,
            "finished": self.finished,
            "steps_taken": self.steps_taken,
            "last_action": self.last_action.name,
            "hit_wall": self.hit_wall,
            "current_speed": self.current_speed,
            "progress_towards_finish": self.progress_towards_finish,
            "actions_recorded": len(self.action_history),
        }
