"""Fitness ranking, parent/worst selection and survivor replacement."""

import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from .fitness import FitnessFunction
from .population import copy_individual


@dataclass
class FitnessRanking:
    """
    (index, mismatch) pairs sorted worst first, best last.
    """
    entries: List[Tuple[int, int]] = field(default_factory=list)

    @classmethod
    def from_scores(cls, scores: Sequence[int]) -> "FitnessRanking":
        """Rank individuals by descending mismatch count."""
        scores = np.asarray(scores)
        order = np.argsort(-scores, kind="stable")
        return cls([(int(i), int(scores[i])) for i in order])

    @property
    def best(self) -> Tuple[int, int]:
        return self.entries[-1]

    @property
    def worst(self) -> Tuple[int, int]:
        return self.entries[0]

    @property
    def best_index(self) -> int:
        return self.entries[-1][0]

    @property
    def best_mismatch(self) -> int:
        return self.entries[-1][1]

    @property
    def mean_mismatch(self) -> float:
        if not self.entries:
            return 0.0
        return sum(m for _, m in self.entries) / len(self.entries)

    def indices(self) -> List[int]:
        return [i for i, _ in self.entries]

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, position: int) -> Tuple[int, int]:
        return self.entries[position]


def evaluate_fitness(population: np.ndarray, fitness_function: FitnessFunction) -> FitnessRanking:
    """Score every individual and rank them worst first."""
    return FitnessRanking.from_scores(fitness_function.evaluate_population(population))


def elite_count(population_size: int, elite_ratio: float = 0.25) -> int:
    """
    Number of parents (and of replaced individuals) per generation.

    ``population_size * elite_ratio`` rounded half up, then bumped to the
    next even number so parents pair up. Never exceeds the population size.
    """
    count = int(math.floor(population_size * elite_ratio + 0.5))
    if count % 2:
        count += 1
    while count > population_size:
        count -= 2
    return max(count, 0)


def select_parents_and_worst(
    ranking: FitnessRanking, count: int
) -> Tuple[List[int], List[int]]:
    """
    Pick the best ``count`` individuals as parents and the worst ``count`` as
    replacement targets.

    Returns:
        (parent indices, best last; worst indices, worst first)
    """
    size = len(ranking)
    parents = [ranking[i][0] for i in range(size - count, size)]
    worst = [ranking[i][0] for i in range(count)]
    return parents, worst


def replace_worst(
    population: np.ndarray, worst_indices: Sequence[int], offspring: np.ndarray
) -> None:
    """Overwrite the worst individuals one-to-one with offspring, in place."""
    for slot, index in enumerate(worst_indices):
        copy_individual(offspring[slot], population[index])
