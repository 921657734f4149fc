"""
Rankings - Final standings of a race.

Provides:
- RankedCar: one line of the standings
- rank_cars: finished cars by steps, then unfinished cars by distance left
- winner_ids: finished cars with the fewest steps
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, FrozenSet, List, Sequence, Tuple

if TYPE_CHECKING:
    from gridrace.simulation.car_state import CarState


@dataclass(frozen=True)
class RankedCar:
    """Standing of one car at the end of a race."""
    car_id: str
    rank: int                      # 1-based, shared by ties
    steps_taken: int
    finished: bool
    progress_towards_finish: int | None

    def to_dict(self) -> dict:
        return {
            "car_id": self.car_id,
            "rank": self.rank,
            "steps_taken": self.steps_taken,
            "finished": self.finished,
            "progress_towards_finish": self.progress_towards_finish,
        }


def _sort_key(car: "CarState") -> Tuple[int, float]:
    """Finished cars first by steps; the rest by remaining distance."""
    if car.finished:
        return (0, car.steps_taken)
    progress = car.progress_towards_finish
    return (1, float("inf") if progress is None else progress)


def rank_cars(cars: Sequence["CarState"]) -> List[RankedCar]:
    """Rank every car, finished or not.

    Finished cars come first, ordered by ascending ``steps_taken``.
    Unfinished cars follow, closest to the finish first. Cars with equal
    keys share a rank (1, 1, 3, ...) and keep their race order.

    Args:
        cars: Final car states in race order

    Returns:
        Standings, best first
    """
    ordered = sorted(cars, key=_sort_key)  # sorted() is stable

    standings: List[RankedCar] = []
    previous_key = None
    rank = 0
    for position, car in enumerate(ordered, start=1):
        key = _sort_key(car)
        if key != previous_key:
            rank = position
            previous_key = key
        standings.append(
            RankedCar(
                car_id=car.car_id,
                rank=rank,
                steps_taken=car.steps_taken,
                finished=car.finished,
                progress_towards_finish=car.progress_towards_finish,
            )
        )
    return standings


def winner_ids(standings: Sequence[RankedCar]) -> FrozenSet[str]:
    """Finished cars sharing the lowest step count; empty if none finished."""
    finished = [s for s in standings if s.finished]
    if not finished:
        return frozenset()
    best = min(s.steps_taken for s in finished)
    return frozenset(s.car_id for s in finished if s.steps_taken == best)
