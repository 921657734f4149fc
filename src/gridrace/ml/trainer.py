"""
Trainer - Repeated training races with decaying exploration.

Provides:
- TrainingTally / TrainingRecord: solo and multi-car statistics per car and track
- Trainer: runs rounds of races and applies their learning updates
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from gridrace.ml.learning import LearningSummary
from gridrace.ml.selection import TrainingConfig, make_strategy
from gridrace.simulation.race import RaceOrchestrator, RaceRequest, RaceResult


logger = logging.getLogger(__name__)


@dataclass
class TrainingTally:
    """Counts for one kind of race (solo or multi-car)."""
    races: int = 0
    wins: int = 0
    fastest: Optional[int] = None    # Fewest steps to a finish

    @property
    def win_rate(self) -> float:
        if self.races == 0:
            return 0.0
        return self.wins / self.races

    def record(self, won: bool, steps: Optional[int]) -> None:
        self.races += 1
        if won:
            self.wins += 1
        if steps is not None and (self.fastest is None or steps < self.fastest):
            self.fastest = steps

    def to_dict(self) -> Dict[str, float]:
        return {
            "races": self.races,
            "wins": self.wins,
            "win_rate": self.win_rate,
            "fastest": self.fastest,
        }


@dataclass
class TrainingRecord:
    """Training statistics of one car on one track."""
    solo: TrainingTally = field(default_factory=TrainingTally)
    pvp: TrainingTally = field(default_factory=TrainingTally)

    @property
    def total_races(self) -> int:
        return self.solo.races + self.pvp.races


@dataclass
class TrainingReport:
    """Outcome of a Trainer.train() call."""
    results: List[RaceResult] = field(default_factory=list)
    summaries: List[Dict[str, LearningSummary]] = field(default_factory=list)

    @property
    def rounds(self) -> int:
        return len(self.results)

    def mean_reward(self, car_id: str) -> float:
        """Average reward per update for a car across all rounds."""
        rewards = [s[car_id].mean_reward for s in self.summaries if car_id in s]
        return float(np.mean(rewards)) if rewards else 0.0

    def finish_rate(self, car_id: str) -> float:
        """Fraction of rounds in which a car finished."""
        if not self.results:
            return 0.0
        return float(np.mean([car_id in r.finished_ids for r in self.results]))


class Trainer:
    """Runs training races against a shared learning store.

    Exploration decays linearly from ``epsilon`` to ``final_epsilon``
    over the rounds of one train() call.

    Usage:
        trainer = Trainer(orchestrator, TrainingConfig(epsilon=0.5))
        report = trainer.train(track_id, ["car-1"], rounds=200)
    """

    def __init__(
        self,
        orchestrator: RaceOrchestrator,
        config: TrainingConfig | None = None,
    ):
        """Initialize trainer.

        Args:
            orchestrator: Orchestrator whose store is trained
            config: Strategy selection during training
        """
        self.orchestrator = orchestrator
        self.config = config or TrainingConfig()
        self._records: Dict[Tuple[str, int], TrainingRecord] = {}

    def train(
        self,
        track_id: int,
        car_ids: Sequence[str],
        rounds: int,
        seed: int = 0,
    ) -> TrainingReport:
        """Run training rounds.

        Round i uses seed ``seed + i`` so the whole run is reproducible.

        Args:
            track_id: Track to train on
            car_ids: Cars racing together every round
            rounds: Number of races
            seed: Seed of the first round

        Returns:
            Results and learning summaries of every round
        """
        if rounds <= 0:
            raise ValueError(f"rounds must be positive, got {rounds}")

        report = TrainingReport()
        for round_index in range(rounds):
            strategy = make_strategy(self.config, current_tick=round_index, total_ticks=rounds)
            request = RaceRequest(
                track_id=track_id,
                car_ids=list(car_ids),
                strategy=strategy,
                train=self.config.training_mode,
                seed=seed + round_index,
            )
            result = self.orchestrator.run(request)
            self._update_records(result, car_ids)

            report.results.append(result)
            report.summaries.append({s.car_id: s for s in result.learning})

        logger.info(
            "Trained %d cars on track %d for %d rounds (%d table entries)",
            len(car_ids), track_id, rounds, len(self.orchestrator.store),
        )
        return report

    def _update_records(self, result: RaceResult, car_ids: Sequence[str]) -> None:
        solo = len(car_ids) == 1
        steps = {s.car_id: s.steps_taken for s in result.standings if s.finished}
        for car_id in car_ids:
            record = self._records.setdefault((car_id, result.track_id), TrainingRecord())
            tally = record.solo if solo else record.pvp
            tally.record(car_id in result.winner_ids, steps.get(car_id))

    def get_record(self, car_id: str, track_id: int) -> TrainingRecord:
        """Training statistics of a car on a track (empty if never trained)."""
        return self._records.get((car_id, track_id), TrainingRecord())
