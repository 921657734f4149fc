"""
Track generator - Seeded procedural grid track generation.

Generates:
- Walled grid tracks with a start column and a finish column
- Random walls, sticky, boost and slow tiles
- A guaranteed open path from the start to the finish
"""

from dataclasses import dataclass
from typing import List, Set, Tuple
import numpy as np

from gridrace.track.tile import TileProperties
from gridrace.track.track import Track, TrackConfig, build_track


@dataclass
class GeneratorConfig:
    """Configuration for procedural grid generation."""
    # Grid size (including the outer wall)
    width: int = 16
    height: int = 10

    # Feature densities over interior cells off the guaranteed path
    wall_density: float = 0.20
    sticky_density: float = 0.05
    boost_density: float = 0.05
    slow_density: float = 0.05

    # Tile speeds
    boost_speed: int = 3
    slow_speed: int = 1

    # Number of start tiles in the left interior column
    num_starts: int = 2

    # Random seed (None for random)
    seed: int | None = None


class TrackGenerator:
    """Procedural grid track generator.

    The outer ring is wall. Start tiles sit in the leftmost interior
    column and a finish tile in the rightmost; a random monotone path is
    carved between them before any obstacle is placed, so every
    generated track passes validation.

    Usage:
        generator = TrackGenerator(GeneratorConfig(seed=7))
        track = generator.generate()
    """

    def __init__(self, config: GeneratorConfig | None = None):
        """Initialize generator.

        Args:
            config: Generator configuration. Uses defaults if None.
        """
        self.config = config or GeneratorConfig()
        self._rng = np.random.default_rng(self.config.seed)

    def generate(self, name: str | None = None) -> Track:
        """Generate a new random track.

        Args:
            name: Optional track name

        Returns:
            Built and validated Track
        """
        grid = self.generate_grid()
        return build_track(
            grid,
            self.config.width,
            self.config.height,
            name=name or f"Grid_{self._rng.integers(1000, 9999)}",
            config=TrackConfig(warn_unreachable=False),
        )

    def generate_grid(self) -> List[List[TileProperties]]:
        """Generate a raw tile grid without building a track."""
        cfg = self.config
        width, height = cfg.width, cfg.height

        grid = [[TileProperties.wall() for _ in range(width)] for _ in range(height)]

        start_rows = self._pick_start_rows()
        finish_row = int(self._rng.integers(1, height - 1))

        protected: Set[Tuple[int, int]] = set()
        for start_row in start_rows:
            protected.update(self._carve_path((1, start_row), (width - 2, finish_row)))

        for y in range(1, height - 1):
            for x in range(1, width - 1):
                if (x, y) in protected:
                    grid[y][x] = TileProperties.normal()
                else:
                    grid[y][x] = self._random_tile()

        # Path cells may still carry speed/sticky features, never walls
        for x, y in protected:
            if self._rng.random() < cfg.sticky_density:
                grid[y][x] = TileProperties.sticky()
            elif self._rng.random() < cfg.boost_density:
                grid[y][x] = TileProperties.boost(cfg.boost_speed)

        for start_row in start_rows:
            grid[start_row][1] = TileProperties.start()
        grid[finish_row][width - 2] = TileProperties.finish()

        return grid

    def _pick_start_rows(self) -> List[int]:
        interior = np.arange(1, self.config.height - 1)
        count = max(1, min(self.config.num_starts, len(interior)))
        rows = self._rng.choice(interior, size=count, replace=False)
        return sorted(int(r) for r in rows)

    def _carve_path(
        self,
        start: Tuple[int, int],
        end: Tuple[int, int],
    ) -> List[Tuple[int, int]]:
        """Carve a random monotone path between two interior cells.

        Args:
            start: (x, y) of the path start
            end: (x, y) of the path end

        Returns:
            Cells on the path, including both ends
        """
        x, y = start
        end_x, end_y = end
        path = [(x, y)]

        while (x, y) != (end_x, end_y):
            move_horizontal = y == end_y or (x != end_x and self._rng.random() < 0.6)
            if move_horizontal:
                x += 1 if end_x > x else -1
            else:
                y += 1 if end_y > y else -1
            path.append((x, y))

        return path

    def _random_tile(self) -> TileProperties:
        cfg = self.config
        roll = self._rng.random()

        threshold = cfg.wall_density
        if roll < threshold:
            return TileProperties.wall()
        threshold += cfg.sticky_density
        if roll < threshold:
            return TileProperties.sticky()
        threshold += cfg.boost_density
        if roll < threshold:
            return TileProperties.boost(cfg.boost_speed)
        threshold += cfg.slow_density
        if roll < threshold:
            return TileProperties.slow(cfg.slow_speed)
        return TileProperties.normal()
