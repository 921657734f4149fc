"""
Track tiles - Per-cell behavior of a grid track.

Defines:
- TileProperties: immutable behavior descriptor of one grid cell
- TrackTile: a cell placed on a built track with its distance to the finish
- Preset constructors for the common tile kinds
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


# Speed modifier of an ordinary tile
BASELINE_SPEED = 2

# Speed modifier used by boost() when none is given
DEFAULT_BOOST_SPEED = 3


@dataclass(frozen=True)
class TileProperties:
    """Behavior of a single grid cell.

    All behavior is expressed through properties; there is no separate
    tile type tag. A tile may combine properties (e.g. a sticky boost).
    """
    speed_modifier: int = BASELINE_SPEED  # 2 = baseline, <2 slow, >2 boost
    blocks_movement: bool = False         # Wall
    skip_next_turn: bool = False          # Sticky
    damage: int = 0                       # Reserved: positive harms, negative heals
    is_finish: bool = False
    is_start: bool = False

    def __post_init__(self):
        if self.speed_modifier < 1:
            raise ValueError(
                f"speed_modifier must be a positive integer, got {self.speed_modifier}"
            )

    @classmethod
    def normal(cls) -> "TileProperties":
        """Create an ordinary traversable tile."""
        return cls()

    @classmethod
    def wall(cls) -> "TileProperties":
        """Create a tile that blocks movement."""
        return cls(blocks_movement=True)

    @classmethod
    def sticky(cls) -> "TileProperties":
        """Create a tile that makes the car skip its next turn."""
        return cls(skip_next_turn=True)

    @classmethod
    def boost(cls, speed_modifier: int = DEFAULT_BOOST_SPEED) -> "TileProperties":
        """Create a tile that raises the car's speed.

        Args:
            speed_modifier: Tiles per turn after entering this tile
        """
        return cls(speed_modifier=speed_modifier)

    @classmethod
    def slow(cls, speed_modifier: int = 1) -> "TileProperties":
        """Create a tile that lowers the car's speed."""
        return cls(speed_modifier=speed_modifier)

    @classmethod
    def finish(cls) -> "TileProperties":
        """Create a finish tile."""
        return cls(is_finish=True)

    @classmethod
    def start(cls) -> "TileProperties":
        """Create a start tile."""
        return cls(is_start=True)

    @classmethod
    def damaging(cls, amount: int) -> "TileProperties":
        """Create a tile carrying a (currently inert) damage value."""
        return cls(damage=amount)

    @classmethod
    def healing(cls, amount: int) -> "TileProperties":
        """Create a tile carrying a (currently inert) healing value."""
        return cls(damage=-amount)

    @property
    def is_boost(self) -> bool:
        return self.speed_modifier > BASELINE_SPEED

    @property
    def is_slow(self) -> bool:
        return self.speed_modifier < BASELINE_SPEED

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TileProperties":
        """Build from a dictionary produced by to_dict().

        Missing keys take their defaults.
        """
        return cls(
            speed_modifier=int(data.get("speed_modifier", BASELINE_SPEED)),
            blocks_movement=bool(data.get("blocks_movement", False)),
            skip_next_turn=bool(data.get("skip_next_turn", False)),
            damage=int(data.get("damage", 0)),
            is_finish=bool(data.get("is_finish", False)),
            is_start=bool(data.get("is_start", False)),
        )


@dataclass(frozen=True)
class TrackTile:
    """A cell of a built track.

    progress_towards_finish is the minimum number of orthogonal,
    unobstructed steps to any finish tile (0 on finish tiles). It is
    None only for decorative cells that cannot reach a finish; start
    tiles are never unreachable on an accepted track.
    """
    properties: TileProperties
    progress_towards_finish: Optional[int]
    x: int
    y: int

    @property
    def reachable(self) -> bool:
        return self.progress_towards_finish is not None

    @property
    def position(self) -> tuple:
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "properties": self.properties.to_dict(),
            "progress_towards_finish": self.progress_towards_finish,
            "x": self.x,
            "y": self.y,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackTile":
        progress = data.get("progress_towards_finish")
        return cls(
            properties=TileProperties.from_dict(data["properties"]),
            progress_towards_finish=None if progress is None else int(progress),
            x=int(data["x"]),
            y=int(data["y"]),
        )
