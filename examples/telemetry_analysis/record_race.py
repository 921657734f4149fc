#!/usr/bin/env python3
"""
Race Telemetry Example

This example demonstrates how to:
1. Record per-tick car frames during a race
2. Analyze trajectories with numpy
3. Export the race to JSON, CSV and a plain-text log

Run with: python record_race.py
"""

from gridrace import RaceOrchestrator, RaceRequest, TrackRegistry
from gridrace.ml import Softmax
from gridrace.telemetry import ExporterConfig, RaceExporter, RaceRecorder
from gridrace.track import parse_layout


LAYOUT = """
########
S..~..>F
S.#..#.#
########
"""


def main():
    print("=" * 60)
    print("GridRace Telemetry Example")
    print("=" * 60)

    registry = TrackRegistry()
    grid = parse_layout(LAYOUT)
    track = registry.add_track("Telemetry Strip", len(grid[0]), len(grid), grid)

    recorder = RaceRecorder()
    orchestrator = RaceOrchestrator(registry)
    result = orchestrator.run(
        RaceRequest(track_id=track.track_id, car_ids=["a", "b"], strategy=Softmax(0.5), seed=1),
        on_tick=recorder.on_tick,
    )

    print(f"\nRace {result.race_id}: {result.ticks} ticks, winners {sorted(result.winner_ids)}")
    for car_id in recorder.car_ids():
        path = recorder.trajectory(car_id)
        unique_cells = len({tuple(p) for p in path.tolist()})
        print(f"   {car_id}: {recorder.get_statistics(car_id)}")
        print(f"      visited {unique_cells} distinct cells")

    exporter = RaceExporter(ExporterConfig(output_dir="./race_data"))
    print("\nExported:")
    print(f"   {exporter.export_json(result, recorder)}")
    print(f"   {exporter.export_csv(recorder, f'race_{result.race_id}_frames.csv')}")
    print(f"   {exporter.export_play_by_play(result)}")


if __name__ == "__main__":
    main()
