"""
Track - Complete grid race track representation.

Contains:
- Validated grid of TrackTile with distances to the finish
- Track metadata and statistics
- Start/finish tile lookup
- Neighborhood access for state encoding
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from gridrace.errors import (
    InvalidTile,
    InvalidTrackDimensions,
    NoAccessiblePath,
    NoFinishTile,
    NoStartTile,
    TrackTooLarge,
    TrackTooSmall,
)
from gridrace.track.distance_field import build_distance_field, report_unreachable
from gridrace.track.tile import TileProperties, TrackTile


@dataclass
class TrackConfig:
    """Track validation configuration."""
    min_size: int = 3                 # Minimum width and height in tiles
    max_size: int = 50                # Maximum width and height in tiles
    warn_unreachable: bool = True     # Log decorative cells with no path


@dataclass
class TrackStats:
    """Tile counts for a track layout.

    Each tile is counted once, in the first matching category.
    """
    finish_tiles: int = 0
    wall_tiles: int = 0
    sticky_tiles: int = 0
    boost_tiles: int = 0
    slow_tiles: int = 0
    normal_tiles: int = 0
    start_tiles: int = 0
    unreachable_tiles: int = 0

    def to_dict(self) -> Dict[str, int]:
        return dict(self.__dict__)


class Track:
    """Validated grid race track.

    Tiles are stored row-major: ``track.layout[y][x]``. Tracks are
    immutable once built; create them with build_track().

    Usage:
        track = build_track(grid, width=10, height=5, name="Oval")
        tile = track.tile_at(3, 2)
        starts = track.start_tiles
    """

    def __init__(
        self,
        layout: Sequence[Sequence[TrackTile]],
        name: str = "Track",
        track_id: int | None = None,
    ):
        """Initialize track from already-built tiles.

        Args:
            layout: Row-major tiles
            name: Track name
            track_id: Registry identifier, if registered
        """
        self._layout: Tuple[Tuple[TrackTile, ...], ...] = tuple(tuple(row) for row in layout)
        self.name = name
        self.track_id = track_id

        self._height = len(self._layout)
        self._width = len(self._layout[0]) if self._height else 0

        self._starts: List[TrackTile] = [t for t in self.tiles() if t.properties.is_start]
        self._finishes: List[TrackTile] = [t for t in self.tiles() if t.properties.is_finish]

    @property
    def width(self) -> int:
        """Width in tiles."""
        return self._width

    @property
    def height(self) -> int:
        """Height in tiles."""
        return self._height

    @property
    def layout(self) -> Tuple[Tuple[TrackTile, ...], ...]:
        """Row-major tile grid."""
        return self._layout

    @property
    def start_tiles(self) -> List[TrackTile]:
        """Start tiles in row-major order."""
        return list(self._starts)

    @property
    def finish_tiles(self) -> List[TrackTile]:
        """Finish tiles in row-major order."""
        return list(self._finishes)

    def tiles(self) -> Iterator[TrackTile]:
        """Iterate over all tiles in row-major order."""
        for row in self._layout:
            yield from row

    def in_bounds(self, x: int, y: int) -> bool:
        """Check whether a coordinate lies on the grid."""
        return 0 <= x < self._width and 0 <= y < self._height

    def tile_at(self, x: int, y: int) -> TrackTile:
        """Get tile at a grid coordinate.

        Raises:
            IndexError: If the coordinate is off-grid
        """
        if not self.in_bounds(x, y):
            raise IndexError(f"({x}, {y}) is outside the {self._width}x{self._height} track")
        return self._layout[y][x]

    def get_tile(self, x: int, y: int) -> Optional[TrackTile]:
        """Get tile at a grid coordinate, or None if off-grid."""
        if not self.in_bounds(x, y):
            return None
        return self._layout[y][x]

    def neighborhood(self, x: int, y: int) -> List[Optional[TrackTile]]:
        """Get the 3x3 block centered on (x, y).

        Returns:
            Nine entries in row-major order (dy, then dx from -1 to 1);
            off-grid positions are None. Index 4 is the center tile.
        """
        return [
            self.get_tile(x + dx, y + dy)
            for dy in (-1, 0, 1)
            for dx in (-1, 0, 1)
        ]

    @property
    def max_progress(self) -> int:
        """Largest finite distance to the finish on this track."""
        values = [t.progress_towards_finish for t in self.tiles() if t.reachable]
        return max(values) if values else 0

    def get_stats(self) -> TrackStats:
        """Count tiles by category."""
        stats = TrackStats()
        for tile in self.tiles():
            props = tile.properties
            if props.is_start:
                stats.start_tiles += 1
            if props.is_finish:
                stats.finish_tiles += 1
            elif props.blocks_movement:
                stats.wall_tiles += 1
            elif props.skip_next_turn:
                stats.sticky_tiles += 1
            elif props.is_boost:
                stats.boost_tiles += 1
            elif props.is_slow:
                stats.slow_tiles += 1
            else:
                stats.normal_tiles += 1
            if not props.blocks_movement and not tile.reachable:
                stats.unreachable_tiles += 1
        return stats

    def get_state(self) -> Dict[str, Any]:
        """Serialize track to a dictionary."""
        return {
            "track_id": self.track_id,
            "name": self.name,
            "width": self._width,
            "height": self._height,
            "layout": [[tile.to_dict() for tile in row] for row in self._layout],
        }

    @classmethod
    def from_state(cls, state: Dict[str, Any]) -> "Track":
        """Rebuild a track serialized with get_state()."""
        layout = [[TrackTile.from_dict(t) for t in row] for row in state["layout"]]
        return cls(layout, name=state.get("name", "Track"), track_id=state.get("track_id"))

    def __repr__(self) -> str:
        return f"Track(name={self.name!r}, width={self._width}, height={self._height})"


def validate_grid(
    grid: Sequence[Sequence[TileProperties]],
    width: int,
    height: int,
    config: TrackConfig | None = None,
) -> None:
    """Check grid shape and tile contents.

    Reachability is checked separately, after the distance field is built.

    Raises:
        InvalidTrackDimensions: Declared size does not match the grid
        TrackTooSmall / TrackTooLarge: Size outside configured limits
        InvalidTile: A finish or start tile also blocks movement
        NoFinishTile / NoStartTile: Missing finish or start
    """
    config = config or TrackConfig()

    if width <= 0 or height <= 0 or len(grid) != height:
        raise InvalidTrackDimensions(width, height)
    for row in grid:
        if len(row) != width:
            raise InvalidTrackDimensions(width, height)

    if width < config.min_size or height < config.min_size:
        raise TrackTooSmall(width, height, config.min_size)
    if width > config.max_size or height > config.max_size:
        raise TrackTooLarge(width, height, config.max_size)

    has_finish = False
    has_start = False
    for y, row in enumerate(grid):
        for x, props in enumerate(row):
            if props.is_finish and props.blocks_movement:
                raise InvalidTile(x, y, "finish tiles must be traversable")
            if props.is_start and props.blocks_movement:
                raise InvalidTile(x, y, "start tiles must be traversable")
            has_finish = has_finish or props.is_finish
            has_start = has_start or props.is_start

    if not has_finish:
        raise NoFinishTile()
    if not has_start:
        raise NoStartTile()


def build_track(
    grid: Sequence[Sequence[TileProperties]],
    width: int,
    height: int,
    name: str = "Track",
    track_id: int | None = None,
    config: TrackConfig | None = None,
) -> Track:
    """Validate a grid and build a track with its distance field.

    Args:
        grid: Row-major tile properties, grid[y][x]
        width: Declared width; must equal every row's length
        height: Declared height; must equal the number of rows
        name: Track name
        track_id: Optional registry identifier
        config: Validation configuration

    Returns:
        Built track

    Raises:
        ValidationError: Any validation failure, before anything is built
    """
    config = config or TrackConfig()
    validate_grid(grid, width, height, config)

    field_ = build_distance_field(grid)
    if field_.unreachable_starts:
        start_x, start_y = field_.unreachable_starts[0]
        raise NoAccessiblePath(start_x, start_y)
    if config.warn_unreachable:
        report_unreachable(field_)

    layout = [
        [
            TrackTile(
                properties=props,
                progress_towards_finish=field_.distance_at(x, y),
                x=x,
                y=y,
            )
            for x, props in enumerate(row)
        ]
        for y, row in enumerate(grid)
    ]

    return Track(layout, name=name, track_id=track_id)
