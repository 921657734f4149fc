"""
Track module - Grid tracks, distance fields and track storage.

This module contains:
- TileProperties / TrackTile: Per-cell behavior and placement
- Track: Validated grid with distances to the finish
- build_track: Validation plus distance field construction
- TrackGenerator: Seeded procedural grid tracks
- TrackRegistry: In-memory track storage
"""

from gridrace.track.tile import TileProperties, TrackTile
from gridrace.track.track import Track, TrackConfig, TrackStats, build_track
from gridrace.track.distance_field import DistanceField, build_distance_field
from gridrace.track.layouts import parse_layout, render_layout, track_from_layout
from gridrace.track.generator import TrackGenerator, GeneratorConfig
from gridrace.track.registry import TrackRegistry

__all__ = [
    "TileProperties",
    "TrackTile",
    "Track",
    "TrackConfig",
    "TrackStats",
    "build_track",
    "DistanceField",
    "build_distance_field",
    "parse_layout",
    "render_layout",
    "track_from_layout",
    "TrackGenerator",
    "GeneratorConfig",
    "TrackRegistry",
]
