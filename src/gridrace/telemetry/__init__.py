"""
Telemetry module - Race recording and export.

This module contains:
- RaceRecorder: Per-tick car frames
- RaceExporter: JSON, CSV and play-by-play export
"""

from gridrace.telemetry.recorder import CarFrame, RaceRecorder
from gridrace.telemetry.exporter import ExporterConfig, RaceExporter

__all__ = [
    "CarFrame",
    "RaceRecorder",
    "ExporterConfig",
    "RaceExporter",
]
