"""
Errors - Failure taxonomy for track creation and race simulation.

Defines:
- Validation errors (malformed tracks or race requests)
- Lookup failures (unknown tracks or races)
- Simulation invariant violations (internal programming errors)
"""


class GridRaceError(Exception):
    """Base class for all gridrace errors."""


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------

class ValidationError(GridRaceError, ValueError):
    """Input was rejected before any simulation started."""


class InvalidTrackDimensions(ValidationError):
    """Declared width/height do not match the supplied grid."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        super().__init__(f"Invalid track dimensions: width={width}, height={height}")


class TrackTooSmall(ValidationError):
    """Track is smaller than the minimum size."""

    def __init__(self, width: int, height: int, minimum: int = 3):
        self.width = width
        self.height = height
        super().__init__(
            f"Track too small: width={width}, height={height}. "
            f"Minimum size is {minimum}x{minimum}"
        )


class TrackTooLarge(ValidationError):
    """Track is larger than the maximum size."""

    def __init__(self, width: int, height: int, maximum: int = 50):
        self.width = width
        self.height = height
        super().__init__(
            f"Track too large: width={width}, height={height}. "
            f"Maximum size is {maximum}x{maximum}"
        )


class NoFinishTile(ValidationError):
    def __init__(self):
        super().__init__("Track must have at least one finish tile")


class NoStartTile(ValidationError):
    def __init__(self):
        super().__init__("Track must have at least one start tile")


class NoAccessiblePath(ValidationError):
    """A start tile cannot reach any finish tile."""

    def __init__(self, start_x: int, start_y: int):
        self.start_x = start_x
        self.start_y = start_y
        super().__init__(
            f"No accessible path to a finish tile from start ({start_x}, {start_y})"
        )


class InvalidTile(ValidationError):
    """A tile carries a contradictory combination of properties."""

    def __init__(self, x: int, y: int, reason: str):
        self.x = x
        self.y = y
        self.reason = reason
        super().__init__(f"Invalid tile at ({x}, {y}): {reason}")


class InvalidCarCount(ValidationError):
    def __init__(self, count: int, minimum: int = 1, maximum: int = 8):
        self.count = count
        super().__init__(
            f"Invalid car count: expected {minimum}-{maximum}, got {count}"
        )


class DuplicateCarId(ValidationError):
    def __init__(self, car_id: str):
        self.car_id = car_id
        super().__init__(f"Duplicate car id in race: {car_id}")


class InvalidAction(ValidationError):
    def __init__(self, action: int):
        self.action = action
        super().__init__(f"Invalid action: {action}")


class InvalidStrategy(ValidationError):
    """Selection strategy parameters are out of range."""


# ----------------------------------------------------------------------
# Lookup
# ----------------------------------------------------------------------

class LookupFailure(GridRaceError, LookupError):
    """A referenced object does not exist."""


class TrackNotFound(LookupFailure):
    def __init__(self, track_id: int):
        self.track_id = track_id
        super().__init__(f"Track not found: {track_id}")


class RaceNotFound(LookupFailure):
    def __init__(self, race_id: str):
        self.race_id = race_id
        super().__init__(f"Race not found: {race_id}")


# ----------------------------------------------------------------------
# Internal
# ----------------------------------------------------------------------

class SimulationInvariantError(GridRaceError, RuntimeError):
    """The simulation reached a state a correct engine never produces."""
