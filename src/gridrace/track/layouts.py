"""
ASCII layouts - Text representation of grid tracks.

Legend:
    #  wall           .  normal
    S  start          F  finish
    ~  sticky         >  boost
    <  slow
"""

from typing import Dict, List, Sequence

from gridrace.track.tile import TileProperties
from gridrace.track.track import Track, TrackConfig, build_track


LEGEND: Dict[str, TileProperties] = {
    "#": TileProperties.wall(),
    ".": TileProperties.normal(),
    "S": TileProperties.start(),
    "F": TileProperties.finish(),
    "~": TileProperties.sticky(),
    ">": TileProperties.boost(),
    "<": TileProperties.slow(),
}


def parse_layout(
    text: str,
    legend: Dict[str, TileProperties] | None = None,
) -> List[List[TileProperties]]:
    """Parse an ASCII layout into a grid of tile properties.

    Leading/trailing blank lines and surrounding whitespace on each line
    are ignored. Rows are not padded: ragged input is reported by track
    validation.

    Args:
        text: Layout text, one row per line
        legend: Character mapping (defaults to LEGEND)

    Returns:
        Row-major grid
    """
    legend = legend or LEGEND
    rows = [line.strip() for line in text.strip().splitlines()]

    grid = []
    for y, line in enumerate(rows):
        row = []
        for x, char in enumerate(line):
            if char not in legend:
                raise ValueError(f"Unknown tile character {char!r} at ({x}, {y})")
            row.append(legend[char])
        grid.append(row)
    return grid


def track_from_layout(
    text: str,
    name: str = "Track",
    config: TrackConfig | None = None,
) -> Track:
    """Parse and build a track from an ASCII layout."""
    grid = parse_layout(text)
    height = len(grid)
    width = len(grid[0]) if grid else 0
    return build_track(grid, width, height, name=name, config=config)


def _char_for(props: TileProperties) -> str:
    if props.is_finish:
        return "F"
    if props.is_start:
        return "S"
    if props.blocks_movement:
        return "#"
    if props.skip_next_turn:
        return "~"
    if props.is_boost:
        return ">"
    if props.is_slow:
        return "<"
    return "."


def render_layout(
    grid: Sequence[Sequence[TileProperties]] | Track,
    cars: Dict[str, tuple] | None = None,
) -> str:
    """Render a grid or track back to ASCII.

    Args:
        grid: Tile properties grid, or a built Track
        cars: Optional car_id -> (x, y); cars are drawn with the first
            character of their id

    Returns:
        Multi-line layout string
    """
    if isinstance(grid, Track):
        rows = [[tile.properties for tile in row] for row in grid.layout]
    else:
        rows = [list(row) for row in grid]

    chars = [[_char_for(props) for props in row] for row in rows]
    for car_id, (x, y) in (cars or {}).items():
        chars[y][x] = str(car_id)[:1] or "?"

    return "\n".join("".join(row) for row in chars)
