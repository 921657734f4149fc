"""
Race recorder - Per-tick car frames for one race.

Provides:
- CarFrame: one car's state after one tick
- RaceRecorder: collects frames through the engine's on_tick hook
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import numpy as np

from gridrace.simulation.engine import RaceState


@dataclass(frozen=True)
class CarFrame:
    """Snapshot of one car after a tick."""
    tick: int
    car_id: str
    x: int
    y: int
    speed: int
    progress: Optional[int]
    stuck: bool
    finished: bool
    hit_wall: bool
    steps_taken: int


FRAME_FIELDS = list(CarFrame.__dataclass_fields__)


class RaceRecorder:
    """Records car frames during a race.

    Pass ``recorder.on_tick`` as the on_tick callback of a race; call
    ``capture`` once before the race to also record the starting grid.

    Usage:
        recorder = RaceRecorder()
        result = orchestrator.run(request, on_tick=recorder.on_tick)
        path = recorder.trajectory("car-1")
    """

    def __init__(self):
        self._frames: List[CarFrame] = []

    @property
    def frames(self) -> List[CarFrame]:
        return list(self._frames)

    @property
    def ticks(self) -> int:
        """Last recorded tick."""
        return self._frames[-1].tick if self._frames else 0

    def on_tick(self, state: RaceState) -> None:
        self.capture(state)

    def capture(self, state: RaceState) -> None:
        """Record every car of a race state."""
        for car in state.cars:
            self._frames.append(
                CarFrame(
                    tick=state.tick,
                    car_id=car.car_id,
                    x=car.x,
                    y=car.y,
                    speed=car.current_speed,
                    progress=car.progress_towards_finish,
                    stuck=car.stuck,
                    finished=car.finished,
                    hit_wall=car.hit_wall,
                    steps_taken=car.steps_taken,
                )
            )

    def car_ids(self) -> List[str]:
        """Recorded cars in first-seen order."""
        return list(dict.fromkeys(frame.car_id for frame in self._frames))

    def frames_for(self, car_id: str) -> List[CarFrame]:
        return [frame for frame in self._frames if frame.car_id == car_id]

    def trajectory(self, car_id: str) -> np.ndarray:
        """Positions of a car as an (N, 2) integer array of (x, y)."""
        frames = self.frames_for(car_id)
        if not frames:
            return np.zeros((0, 2), dtype=np.int32)
        return np.array([(f.x, f.y) for f in frames], dtype=np.int32)

    def progress(self, car_id: str) -> np.ndarray:
        """Remaining distance per frame; -1 where unreachable."""
        return np.array(
            [-1 if f.progress is None else f.progress for f in self.frames_for(car_id)],
            dtype=np.int32,
        )

    def get_statistics(self, car_id: str) -> Dict[str, Any]:
        """Summary of one car's race."""
        frames = self.frames_for(car_id)
        if not frames:
            return {}
        speeds = np.array([f.speed for f in frames], dtype=np.float64)
        return {
            "frames": len(frames),
            "wall_hits": sum(f.hit_wall for f in frames),
            "stuck_ticks": sum(f.stuck for f in frames),
            "mean_speed": float(np.mean(speeds)),
            "max_speed": int(np.max(speeds)),
            "finished": frames[-1].finished,
            "steps_taken": frames[-1].steps_taken,
        }

    def get_state(self) -> Dict[str, Any]:
        """Serialize recorded frames."""
        return {
            "ticks": self.ticks,
            "cars": self.car_ids(),
            "frames": [asdict(frame) for frame in self._frames],
        }

    def clear(self) -> None:
        self._frames.clear()
