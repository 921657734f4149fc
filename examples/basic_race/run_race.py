#!/usr/bin/env python3
"""
Basic Race Example

This example demonstrates how to:
1. Register a track from an ASCII layout
2. Run a race with untrained cars
3. Read rankings and the play-by-play log

Run with: python run_race.py
"""

import logging

from gridrace import RaceOrchestrator, RaceRequest, TrackRegistry
from gridrace.ml import EpsilonGreedy
from gridrace.track import parse_layout, render_layout


LAYOUT = """
##########
S...~..>.#
S.##...#.F
#...<....#
##########
"""


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("GridRace Basic Race Example")
    print("=" * 60)

    # Step 1: Register a track
    print("\n1. Registering track...")
    registry = TrackRegistry()
    grid = parse_layout(LAYOUT)
    track = registry.add_track("Example Loop", len(grid[0]), len(grid), grid)

    print(render_layout(track))
    print(f"   Stats: {track.get_stats().to_dict()}")

    # Step 2: Race three untrained cars
    print("\n2. Racing...")
    orchestrator = RaceOrchestrator(registry)
    result = orchestrator.run(
        RaceRequest(
            track_id=track.track_id,
            car_ids=["red", "green", "blue"],
            strategy=EpsilonGreedy(0.5),
            seed=7,
        )
    )

    # Step 3: Results
    print(f"\n3. Finished after {result.ticks} ticks")
    for standing in result.standings:
        status = "finished" if standing.finished else f"{standing.progress_towards_finish} to go"
        print(f"   #{standing.rank} {standing.car_id:6s} steps={standing.steps_taken:3d} ({status})")
    print(f"   Winners: {sorted(result.winner_ids) or 'none'}")

    print("\n   First ticks:")
    for entry in result.play_by_play[:9]:
        print(f"   {entry}")


if __name__ == "__main__":
    main()
