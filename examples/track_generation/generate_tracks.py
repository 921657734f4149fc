#!/usr/bin/env python3
"""
Track Generation Example

This example demonstrates how to:
1. Generate procedural grid tracks with different densities
2. Inspect the distance field of a track
3. Store tracks in a registry and page through them

Run with: python generate_tracks.py
"""

import numpy as np

from gridrace.track import GeneratorConfig, TrackGenerator, TrackRegistry, render_layout


def main():
    print("=" * 60)
    print("GridRace Track Generation Example")
    print("=" * 60)

    registry = TrackRegistry()
    for seed, walls in [(1, 0.1), (2, 0.25), (3, 0.4)]:
        config = GeneratorConfig(width=18, height=9, wall_density=walls, seed=seed)
        grid = TrackGenerator(config).generate_grid()
        track = registry.add_track(f"Seed {seed}", config.width, config.height, grid)

        distances = np.array(
            [[-1 if t.progress_towards_finish is None else t.progress_towards_finish for t in row]
             for row in track.layout]
        )

        print(f"\nTrack {track.track_id} (wall density {walls:.0%})")
        print(render_layout(track))
        print(f"   Stats: {track.get_stats().to_dict()}")
        print(f"   Longest distance to finish: {distances.max()}")
        print(f"   Start distances: {[t.progress_towards_finish for t in track.start_tiles]}")

    print("\nRegistry pages of 2:")
    page = registry.list_tracks(limit=2)
    while page:
        print(f"   {[t.name for t in page]}")
        page = registry.list_tracks(start_after=page[-1].track_id, limit=2)


if __name__ == "__main__":
    main()
