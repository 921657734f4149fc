#!/usr/bin/env python3
"""
Training Example

This example demonstrates how to:
1. Generate a procedural track
2. Train a car over many races with decaying exploration
3. Compare the trained car against an untrained one

Run with: python train_cars.py
"""

import numpy as np

from gridrace import QTable, RaceOrchestrator, RaceRequest, TrackRegistry, Trainer
from gridrace.ml import Best, TrainingConfig
from gridrace.track import GeneratorConfig, TrackGenerator, render_layout


def main():
    print("=" * 60)
    print("GridRace Training Example")
    print("=" * 60)

    # Step 1: Generate and register a track
    generator = TrackGenerator(GeneratorConfig(width=14, height=8, num_starts=1, seed=21))
    grid = generator.generate_grid()

    registry = TrackRegistry()
    track = registry.add_track("Generated", 14, 8, grid)
    print(render_layout(track))

    # Step 2: Train
    store = QTable()
    orchestrator = RaceOrchestrator(registry, store)
    trainer = Trainer(orchestrator, TrainingConfig(epsilon=0.4, final_epsilon=0.02))

    rounds = 300
    print(f"\nTraining 'pupil' for {rounds} races...")
    report = trainer.train(track.track_id, ["pupil"], rounds=rounds)

    window = 50
    for start in range(0, rounds, window):
        chunk = report.results[start:start + window]
        finish_rate = np.mean(["pupil" in r.finished_ids for r in chunk])
        steps = [r.rankings[0][1] for r in chunk if "pupil" in r.finished_ids]
        mean_steps = np.mean(steps) if steps else float("nan")
        print(f"   Races {start + 1:3d}-{start + window:3d}: "
              f"finish rate {finish_rate:.0%}, mean steps {mean_steps:.1f}")

    record = trainer.get_record("pupil", track.track_id)
    print(f"   Solo: {record.solo.to_dict()}")
    print(f"   Learned states: {len(store.entries('pupil'))}")

    # Step 3: Greedy race against an untrained car
    print("\nGreedy race: pupil vs rookie")
    result = orchestrator.run(
        RaceRequest(track_id=track.track_id, car_ids=["pupil", "rookie"], strategy=Best())
    )
    for standing in result.standings:
        print(f"   #{standing.rank} {standing.car_id}: steps={standing.steps_taken} "
              f"finished={standing.finished}")


if __name__ == "__main__":
    main()
