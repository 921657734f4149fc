"""
Race exporter - Write race results and telemetry to files.

Provides:
- JSON export of a full race (result, standings, play-by-play, frames)
- CSV export of recorded frames
- Plain-text play-by-play export
"""

from dataclasses import asdict, dataclass
from pathlib import Path
import csv
import json

import numpy as np

from gridrace.simulation.race import RaceResult
from gridrace.telemetry.recorder import FRAME_FIELDS, RaceRecorder


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types and frozensets."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        if isinstance(obj, bytes):
            return obj.hex()
        return super().default(obj)


@dataclass
class ExporterConfig:
    """Exporter configuration."""
    output_dir: str = "./race_data"
    include_frames: bool = True
    indent: int = 2


class RaceExporter:
    """Export race data for analysis in external tools."""

    def __init__(self, config: ExporterConfig | None = None):
        """Initialize exporter.

        Args:
            config: Exporter configuration
        """
        self.config = config or ExporterConfig()

        self._output_path = Path(self.config.output_dir)
        self._output_path.mkdir(parents=True, exist_ok=True)

    @property
    def output_path(self) -> Path:
        return self._output_path

    def export_json(
        self,
        result: RaceResult,
        recorder: RaceRecorder | None = None,
        filename: str | None = None,
    ) -> Path:
        """Export a race to a JSON file.

        Args:
            result: Race result
            recorder: Frames recorded during the race
            filename: Output filename (defaults to race_<id>.json)

        Returns:
            Path to exported file
        """
        output_file = self._output_path / (filename or f"race_{result.race_id}.json")

        data = result.get_state()
        if recorder is not None and self.config.include_frames:
            data["frames"] = [asdict(frame) for frame in recorder.frames]
            data["statistics"] = {
                car_id: recorder.get_statistics(car_id) for car_id in recorder.car_ids()
            }

        with open(output_file, "w") as f:
            json.dump(data, f, indent=self.config.indent, cls=NumpyEncoder)

        return output_file

    def export_csv(
        self,
        recorder: RaceRecorder,
        filename: str = "frames.csv",
    ) -> Path:
        """Export recorded frames to a CSV file, one row per car per tick.

        Unreachable progress is written as an empty cell.
        """
        output_file = self._output_path / filename

        with open(output_file, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=FRAME_FIELDS)
            writer.writeheader()
            for frame in recorder.frames:
                row = asdict(frame)
                if row["progress"] is None:
                    row["progress"] = ""
                writer.writerow(row)

        return output_file

    def export_play_by_play(
        self,
        result: RaceResult,
        filename: str | None = None,
    ) -> Path:
        """Write the play-by-play log, one entry per line."""
        output_file = self._output_path / (filename or f"race_{result.race_id}.log")
        output_file.write_text("\n".join(result.play_by_play) + "\n")
        return output_file
