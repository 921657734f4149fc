"""
Distance field - Shortest tile-count distance from every cell to a finish.

Provides:
- Multi-source breadth-first search seeded from every finish tile
- Reachability diagnostics for start and decorative cells

The search runs once per track, in time linear in the number of cells.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple
import logging

import numpy as np

from gridrace.track.tile import TileProperties


logger = logging.getLogger(__name__)

# Marker for cells with no path to a finish tile
UNREACHABLE = -1

# Orthogonal neighbor offsets (dx, dy)
NEIGHBOR_OFFSETS: Tuple[Tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


@dataclass
class DistanceField:
    """Result of a distance field computation.

    Attributes:
        distances: int32 array of shape (height, width); UNREACHABLE
            where no finish can be reached
        unreachable_starts: (x, y) of start cells with no path
        unreachable_cells: (x, y) of traversable non-start cells with no path
    """
    distances: np.ndarray
    unreachable_starts: List[Tuple[int, int]] = field(default_factory=list)
    unreachable_cells: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def height(self) -> int:
        return int(self.distances.shape[0])

    @property
    def width(self) -> int:
        return int(self.distances.shape[1])

    def distance_at(self, x: int, y: int) -> int | None:
        """Get distance to the nearest finish, or None if unreachable."""
        value = int(self.distances[y, x])
        return None if value == UNREACHABLE else value

    @property
    def max_distance(self) -> int:
        """Largest finite distance on the grid."""
        finite = self.distances[self.distances != UNREACHABLE]
        return int(finite.max()) if finite.size else 0


def build_distance_field(grid: Sequence[Sequence[TileProperties]]) -> DistanceField:
    """Compute the distance to the nearest finish for every cell.

    Every finish tile seeds the search at distance 0; the frontier then
    expands through 4-connected, non-blocking neighbors at cost 1 per step.
    Blocking cells keep UNREACHABLE.

    Args:
        grid: Row-major tile properties, grid[y][x]

    Returns:
        DistanceField with distances and reachability diagnostics
    """
    height = len(grid)
    width = len(grid[0]) if height else 0

    distances = np.full((height, width), UNREACHABLE, dtype=np.int32)
    frontier: deque = deque()

    for y, row in enumerate(grid):
        for x, props in enumerate(row):
            if props.is_finish and not props.blocks_movement:
                distances[y, x] = 0
                frontier.append((x, y))

    while frontier:
        x, y = frontier.popleft()
        next_distance = distances[y, x] + 1

        for dx, dy in NEIGHBOR_OFFSETS:
            nx, ny = x + dx, y + dy
            if not (0 <= nx < width and 0 <= ny < height):
                continue
            if grid[ny][nx].blocks_movement:
                continue
            if distances[ny, nx] != UNREACHABLE:
                continue

            distances[ny, nx] = next_distance
            frontier.append((nx, ny))

    result = DistanceField(distances=distances)

    for y, row in enumerate(grid):
        for x, props in enumerate(row):
            if distances[y, x] != UNREACHABLE or props.blocks_movement:
                continue
            if props.is_start:
                result.unreachable_starts.append((x, y))
            else:
                result.unreachable_cells.append((x, y))

    return result


def report_unreachable(field_: DistanceField) -> None:
    """Log decorative cells that cannot reach a finish."""
    if field_.unreachable_cells:
        logger.warning(
            "%d traversable cell(s) cannot reach a finish tile: %s",
            len(field_.unreachable_cells),
            field_.unreachable_cells[:10],
        )
