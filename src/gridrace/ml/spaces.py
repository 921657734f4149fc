"""
Action and state spaces for the learning table.

Provides:
- Action: the five discrete moves, in canonical index order
- StateEncoder: deterministic lookup keys from a car's 3x3 neighborhood

Canonical action order (shared by the selector, the encoder's consumers
and every stored action-value vector):

    0 Up    1 Down    2 Left    3 Right    4 Stay
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Optional, Tuple
import struct

from gridrace.track.tile import TrackTile
from gridrace.track.track import Track


class Action(IntEnum):
    """Discrete car actions, indexed 0-4."""
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3
    STAY = 4

    @property
    def vector(self) -> Tuple[int, int]:
        """Unit (dx, dy) for this action; y grows downward."""
        return DIRECTION_VECTORS[self]

    @property
    def is_move(self) -> bool:
        return self is not Action.STAY

    @classmethod
    def parse(cls, value) -> "Action":
        """Convert an index or name to an Action."""
        if isinstance(value, str):
            return cls[value.upper()]
        return cls(int(value))


ACTION_COUNT = len(Action)

DIRECTION_VECTORS: Dict[Action, Tuple[int, int]] = {
    Action.UP: (0, -1),
    Action.DOWN: (0, 1),
    Action.LEFT: (-1, 0),
    Action.RIGHT: (1, 0),
    Action.STAY: (0, 0),
}


class EncodingMode(Enum):
    """State encoding variants."""
    EXACT = "exact"        # Every property of all 9 tiles plus progress
    REDUCED = "reduced"    # Full center tile, blocking/sticky/speed for neighbors


@dataclass(frozen=True)
class EncoderConfig:
    """State encoder configuration."""
    mode: EncodingMode = EncodingMode.EXACT


# Leading byte per mode keeps keys of different modes disjoint
_MODE_TAG = {
    EncodingMode.EXACT: b"E",
    EncodingMode.REDUCED: b"R",
}

# Progress value written for cells with no path to a finish
_NO_PROGRESS_32 = 0xFFFFFFFF
_NO_PROGRESS_16 = 0xFFFF

# Largest neighbor speed representable in the reduced encoding
_REDUCED_MAX_SPEED = 63

_FULL_TILE = struct.Struct(">BIi")     # flags, speed_modifier, damage


def _tile_flags(tile: Optional[TrackTile]) -> int:
    """Pack presence and boolean properties into one byte."""
    if tile is None:
        return 0
    props = tile.properties
    return (
        0b00001
        | (props.blocks_movement << 1)
        | (props.skip_next_turn << 2)
        | (props.is_finish << 3)
        | (props.is_start << 4)
    )


def _pack_full(tile: Optional[TrackTile]) -> bytes:
    if tile is None:
        return _FULL_TILE.pack(0, 0, 0)
    props = tile.properties
    return _FULL_TILE.pack(_tile_flags(tile), props.speed_modifier, props.damage)


def _pack_reduced_neighbor(tile: Optional[TrackTile]) -> bytes:
    # Off-grid behaves exactly like a wall for movement
    if tile is None:
        return bytes([0b01])
    props = tile.properties
    speed = min(props.speed_modifier, _REDUCED_MAX_SPEED)
    return bytes([int(props.blocks_movement) | (int(props.skip_next_turn) << 1) | (speed << 2)])


class StateEncoder:
    """Turns a track position into a learning-table key.

    The key is a pure function of the 3x3 block centered on the car and
    the center tile's distance to the finish; it never depends on other
    cars, the tick or the car's own state. Keys are plain bytes, so they
    are identical across calls and processes.

    Usage:
        encoder = StateEncoder(EncoderConfig(mode=EncodingMode.REDUCED))
        key = encoder.encode(track, x, y)
    """

    def __init__(self, config: EncoderConfig | None = None):
        """Initialize encoder.

        Args:
            config: Encoder configuration. Uses exact encoding if None.
        """
        self.config = config or EncoderConfig()

    @property
    def mode(self) -> EncodingMode:
        return self.config.mode

    def encode(self, track: Track, x: int, y: int) -> bytes:
        """Encode the neighborhood of (x, y).

        Args:
            track: Built track
            x: Column of the center tile
            y: Row of the center tile

        Returns:
            State key bytes

        Raises:
            IndexError: If (x, y) is off-grid
        """
        center = track.tile_at(x, y)
        cells = track.neighborhood(x, y)

        if self.config.mode is EncodingMode.EXACT:
            return self._encode_exact(center, cells)
        return self._encode_reduced(center, cells)

    def _encode_exact(self, center: TrackTile, cells) -> bytes:
        parts = [_MODE_TAG[EncodingMode.EXACT]]
        parts.extend(_pack_full(tile) for tile in cells)

        progress = center.progress_towards_finish
        parts.append(struct.pack(">I", _NO_PROGRESS_32 if progress is None else progress))
        return b"".join(parts)

    def _encode_reduced(self, center: TrackTile, cells) -> bytes:
        parts = [_MODE_TAG[EncodingMode.REDUCED], _pack_full(center)]
        parts.extend(
            _pack_reduced_neighbor(tile)
            for index, tile in enumerate(cells)
            if index != 4
        )

        progress = center.progress_towards_finish
        parts.append(struct.pack(">H", _NO_PROGRESS_16 if progress is None else progress))
        return b"".join(parts)

    @staticmethod
    def describe(state_hash: bytes) -> str:
        """Short printable form of a state key."""
        return state_hash.hex()[:16]


def encode_state(
    track: Track,
    x: int,
    y: int,
    mode: EncodingMode = EncodingMode.EXACT,
) -> bytes:
    """Encode a position with a throwaway encoder of the given mode."""
    return StateEncoder(EncoderConfig(mode=mode)).encode(track, x, y)
