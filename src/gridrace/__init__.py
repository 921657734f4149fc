"""
GridRace - Multi-car grid races driven by tabular Q-learning.

This package provides:
- Grid tracks with precomputed distances to the finish
- A deterministic tick engine (movement, collisions, tile effects)
- Seeded action selection over learned action-values
- Rankings, rewards and Q-learning updates
- Race telemetry and export
"""

__version__ = "0.1.0"

from gridrace.track.registry import TrackRegistry
from gridrace.track.track import Track, build_track
from gridrace.simulation.race import RaceOrchestrator, RaceRequest, RaceResult
from gridrace.ml.learning import QTable
from gridrace.ml.trainer import Trainer

__all__ = [
    "TrackRegistry",
    "Track",
    "build_track",
    "RaceOrchestrator",
    "RaceRequest",
    "RaceResult",
    "QTable",
    "Trainer",
    "__version__",
]
