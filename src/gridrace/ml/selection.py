"""
Action selection - Pick an action index from a vector of action-values.

Provides:
- Selection strategies (Best, Random, EpsilonGreedy, Softmax, EpsilonDecay)
- select_action: read-only, seeded decision function
- TrainingConfig / make_strategy: strategy choice for a race

All randomness comes from numpy's PCG64 generator seeded by the caller,
so a given (values, strategy, seed) always yields the same action.
"""

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from gridrace.errors import InvalidStrategy
from gridrace.ml.spaces import ACTION_COUNT


SeedLike = Union[int, Sequence[int]]


@dataclass(frozen=True)
class Best:
    """Exploit: highest value, ties to the lowest action index."""


@dataclass(frozen=True)
class Random:
    """Explore: uniform over all actions."""


@dataclass(frozen=True)
class EpsilonGreedy:
    """Random with probability epsilon, else Best."""
    epsilon: float = 0.1

    def __post_init__(self):
        if not 0.0 <= self.epsilon <= 1.0:
            raise InvalidStrategy(f"epsilon must be in [0, 1], got {self.epsilon}")


@dataclass(frozen=True)
class Softmax:
    """Sample proportionally to exp(value / temperature)."""
    temperature: float = 1.0

    def __post_init__(self):
        if not self.temperature > 0.0:
            raise InvalidStrategy(f"temperature must be positive, got {self.temperature}")


@dataclass(frozen=True)
class EpsilonDecay:
    """Epsilon-greedy with epsilon decaying linearly over a run.

    epsilon = initial - (initial - final) * current_tick / total_ticks
    """
    initial_epsilon: float = 0.3
    final_epsilon: float = 0.01
    current_tick: int = 0
    total_ticks: int = 100

    def __post_init__(self):
        for value in (self.initial_epsilon, self.final_epsilon):
            if not 0.0 <= value <= 1.0:
                raise InvalidStrategy(f"epsilon must be in [0, 1], got {value}")
        if self.total_ticks <= 0:
            raise InvalidStrategy(f"total_ticks must be positive, got {self.total_ticks}")

    @property
    def epsilon(self) -> float:
        progress = min(max(self.current_tick / self.total_ticks, 0.0), 1.0)
        return self.initial_epsilon - (self.initial_epsilon - self.final_epsilon) * progress


Strategy = Union[Best, Random, EpsilonGreedy, Softmax, EpsilonDecay]


def best_action(values: np.ndarray) -> int:
    """Index of the highest value; np.argmax returns the first maximum."""
    return int(np.argmax(values))


def softmax_probabilities(values: np.ndarray, temperature: float) -> np.ndarray:
    """Numerically stable softmax of values / temperature."""
    scaled = (values - values.max()) / temperature
    weights = np.exp(scaled)
    return weights / weights.sum()


def select_action(
    values: Sequence[float],
    strategy: Strategy,
    rng_seed: SeedLike,
) -> int:
    """Pick an action index.

    Never modifies ``values``.

    Args:
        values: One value per action (length 5)
        strategy: Selection strategy
        rng_seed: Seed, or sequence of seed words, for numpy's generator

    Returns:
        Action index in [0, 5)
    """
    q = np.asarray(values, dtype=np.float64)
    if q.shape != (ACTION_COUNT,):
        raise ValueError(f"Expected {ACTION_COUNT} action-values, got shape {q.shape}")

    if isinstance(strategy, Best):
        return best_action(q)

    rng = np.random.default_rng(rng_seed)

    if isinstance(strategy, Random):
        return int(rng.integers(ACTION_COUNT))

    if isinstance(strategy, (EpsilonGreedy, EpsilonDecay)):
        if rng.random() < strategy.epsilon:
            return int(rng.integers(ACTION_COUNT))
        return best_action(q)

    if isinstance(strategy, Softmax):
        probs = softmax_probabilities(q, strategy.temperature)
        sample = rng.random()
        index = int(np.searchsorted(np.cumsum(probs), sample, side="right"))
        return min(index, ACTION_COUNT - 1)

    raise InvalidStrategy(f"Unknown strategy: {strategy!r}")


def parse_strategy(text: str) -> Strategy:
    """Parse a short strategy description.

    Accepted forms: ``best``, ``random``, ``epsilon:0.1``,
    ``softmax:2.0``, ``decay:0.3:0.01``.
    """
    name, _, rest = text.strip().lower().partition(":")
    args = [float(a) for a in rest.split(":")] if rest else []

    if name == "best":
        return Best()
    if name == "random":
        return Random()
    if name in ("epsilon", "egreedy"):
        return EpsilonGreedy(*args)
    if name == "softmax":
        return Softmax(*args)
    if name == "decay":
        return EpsilonDecay(*args)
    raise InvalidStrategy(f"Unknown strategy: {text!r}")


@dataclass
class TrainingConfig:
    """How cars choose actions during a race."""
    training_mode: bool = True
    epsilon: float = 0.9
    temperature: float = 0.0
    enable_epsilon_decay: bool = True
    final_epsilon: float = 0.01


def make_strategy(
    config: TrainingConfig,
    current_tick: int = 0,
    total_ticks: int = 100,
) -> Strategy:
    """Choose a strategy from a training configuration.

    - not training: Best
    - temperature > 0: Softmax
    - epsilon > 0: EpsilonDecay (if enabled and a tick is known) or EpsilonGreedy
    - otherwise: Random
    """
    if not config.training_mode:
        return Best()
    if config.temperature > 0.0:
        return Softmax(config.temperature)
    if config.epsilon > 0.0:
        if config.enable_epsilon_decay and current_tick > 0 and total_ticks > 0:
            return EpsilonDecay(config.epsilon, config.final_epsilon, current_tick, total_ticks)
        return EpsilonGreedy(config.epsilon)
    return Random()
