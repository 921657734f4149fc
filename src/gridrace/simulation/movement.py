"""
Movement - Intended moves and tile effects.

Provides:
- intend_move: all-or-nothing move of `speed` tiles in one direction
- apply_tile_effect: state change caused by a tile

Grid edges behave exactly like blocking tiles.
"""

from dataclasses import replace
from typing import NamedTuple

from gridrace.errors import InvalidAction
from gridrace.ml.spaces import Action, DIRECTION_VECTORS
from gridrace.simulation.car_state import CarState
from gridrace.track.tile import TrackTile
from gridrace.track.track import Track


class IntendedMove(NamedTuple):
    """Target of a move after terrain checks."""
    x: int
    y: int
    hit_wall: bool


def intend_move(
    car: CarState,
    action: Action | int,
    tiles_to_move: int,
    track: Track,
) -> IntendedMove:
    """Compute where a car would end up this tick, ignoring other cars.

    The car jumps ``tiles_to_move`` cells at once; intermediate cells are
    not inspected. If the landing cell is off-grid or blocks movement the
    target reverts to the car's current position.

    Args:
        car: Moving car
        action: Chosen action
        tiles_to_move: Distance of the jump (the car's current speed)
        track: Track being raced

    Returns:
        IntendedMove(x, y, hit_wall)

    Raises:
        InvalidAction: action is not one of the five actions
    """
    try:
        action = Action(action)
    except ValueError:
        raise InvalidAction(action) from None

    dx, dy = DIRECTION_VECTORS[action]
    if action is Action.STAY:
        return IntendedMove(car.x, car.y, False)

    target_x = car.x + dx * tiles_to_move
    target_y = car.y + dy * tiles_to_move

    target = track.get_tile(target_x, target_y)
    if target is None or target.properties.blocks_movement:
        return IntendedMove(car.x, car.y, True)

    return IntendedMove(target_x, target_y, False)


def apply_tile_effect(tile: TrackTile, car: CarState) -> CarState:
    """Apply the effect of a tile to a car.

    Rules, in order:
    1. current_speed takes the tile's speed_modifier.
    2. Finish: the car moves onto the tile and finishes.
    3. Blocking: the car stays put and hit_wall is set.
    4. Otherwise: the car moves onto the tile; a sticky tile sets
       ``stuck`` for the following tick.

    A successful entry (2 or 4) counts as one step. The ``damage``
    property has no effect.

    Args:
        tile: Tile the car is entering (or bouncing off)
        car: Car before the effect

    Returns:
        New CarState; ``car`` itself is left unchanged
    """
    props = tile.properties
    speed = props.speed_modifier

    if props.is_finish:
        return replace(
            car,
            current_speed=speed,
            tile=tile,
            x=tile.x,
            y=tile.y,
            finished=True,
            steps_taken=car.steps_taken + 1,
        )

    if props.blocks_movement:
        return replace(car, current_speed=speed, hit_wall=True)

    return replace(
        car,
        current_speed=speed,
        tile=tile,
        x=tile.x,
        y=tile.y,
        steps_taken=car.steps_taken + 1,
        stuck=car.stuck or props.skip_next_turn,
    )
