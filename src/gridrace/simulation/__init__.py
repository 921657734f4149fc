"""
Simulation module - Tick-based race simulation.

This module contains:
- CarState: Per-race car record
- intend_move / apply_tile_effect: Movement and tile rules
- TickEngine: Per-tick state machine
- RaceOrchestrator: Complete races, rankings and learning batches
"""

from gridrace.simulation.car_state import ActionRecord, CarState
from gridrace.simulation.movement import apply_tile_effect, intend_move
from gridrace.simulation.engine import Conflict, RaceConfig, RaceState, TickEngine
from gridrace.simulation.race import RaceOrchestrator, RaceRequest, RaceResult

__all__ = [
    "ActionRecord",
    "CarState",
    "apply_tile_effect",
    "intend_move",
    "Conflict",
    "RaceConfig",
    "RaceState",
    "TickEngine",
    "RaceOrchestrator",
    "RaceRequest",
    "RaceResult",
]
