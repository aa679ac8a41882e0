"""Genetic operators for crossover and mutation.

All operators work in place on numpy individuals of shape (num_tiles, 4) and
take their randomness from an explicitly passed ``numpy.random.Generator``.
"""

from abc import ABC, abstractmethod
from collections import Counter
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..tiles.tile import signature_to_edges, rotate_in_place
from .duplicates import DuplicateTracker
from .population import swap_random_tiles


def draw_crossover_points(num_tiles: int, rng: np.random.Generator) -> Tuple[int, int]:
    """Two random positions in [0, num_tiles), ordered ascending."""
    first, second = (int(p) for p in rng.integers(num_tiles, size=2))
    return (first, second) if first <= second else (second, first)


class CrossoverOperator(ABC):
    """Abstract base class for crossover operators."""

    @abstractmethod
    def apply(self, offspring1: np.ndarray, offspring2: np.ndarray, point1: int, point2: int) -> None:
        """
        Recombine two offspring (pre-filled with copies of their parents)
        in place using fixed crossover points.

        Args:
            offspring1: First offspring, holds parent 1 on entry
            offspring2: Second offspring, holds parent 2 on entry
            point1: Lower crossover point
            point2: Upper crossover point
        """
        pass

    def crossover(
        self, offspring1: np.ndarray, offspring2: np.ndarray, rng: np.random.Generator
    ) -> Tuple[int, int]:
        """Recombine with randomly drawn points. Returns the points used."""
        points = draw_crossover_points(offspring1.shape[0], rng)
        self.apply(offspring1, offspring2, *points)
        return points


class NoCrossover(CrossoverOperator):
    """Passes parents through unchanged; offspring differ only by mutation."""

    def apply(self, offspring1, offspring2, point1, point2) -> None:
        return None

    def crossover(self, offspring1, offspring2, rng) -> Tuple[int, int]:
        return (0, 0)


class TwoPointCrossover(CrossoverOperator):
    """
    Swaps the tiles of both offspring over the inclusive range [point1, point2].

    Applying it twice with the same points restores the parents. It does not
    preserve the tile multiset of either offspring.
    """

    def apply(self, offspring1, offspring2, point1, point2) -> None:
        segment = slice(point1, point2 + 1)
        held = offspring1[segment].copy()
        offspring1[segment] = offspring2[segment]
        offspring2[segment] = held


class OrderCrossover(CrossoverOperator):
    """
    Duplicate-safe order crossover.

    Offspring 2 inherits parent 1's segment [point1, point2) and offspring 1
    inherits parent 2's. The remaining cells of each offspring are filled,
    circularly from point2, with the other parent's tiles in that parent's
    order, skipping any piece whose allowed number of copies is already used
    up. Each offspring ends up holding exactly the pieces of the original
    puzzle, counting rotations as the same piece.
    """

    def __init__(self, tracker: DuplicateTracker, verify: bool = False):
        """
        Args:
            tracker: Duplicate and identity maps of the original puzzle
            verify: Check every offspring against the original multiset
        """
        self.tracker = tracker
        self.verify = verify

    def apply(self, offspring1, offspring2, point1, point2) -> None:
        parent1 = offspring1.copy()
        parent2 = offspring2.copy()
        keys1 = self.tracker.canonical_keys(parent1)
        keys2 = self.tracker.canonical_keys(parent2)

        self._build_child(offspring2, parent1, keys1, parent2, keys2, point1, point2)
        self._build_child(offspring1, parent2, keys2, parent1, keys1, point1, point2)

        if self.verify:
            self.tracker.verify(offspring1)
            self.tracker.verify(offspring2)

    def _build_child(
        self,
        child: np.ndarray,
        donor: np.ndarray,
        donor_keys: Sequence[int],
        filler: np.ndarray,
        filler_keys: Sequence[int],
        point1: int,
        point2: int,
    ) -> None:
        """Write the donor's segment, then fill the rest from the filler parent."""
        num_tiles = child.shape[0]
        allowed = self.tracker.counts
        consumed: Counter = Counter()

        # inherited segment
        dropped: List[int] = []
        for i in range(point1, point2):
            key = donor_keys[i]
            if consumed[key] < allowed[key]:
                child[i] = donor[i]
                consumed[key] += 1
            else:
                dropped.append(i)

        # complement of the segment, circularly from point2
        open_slots = [(point2 + k) % num_tiles for k in range(num_tiles - (point2 - point1))]
        open_slots.extend(dropped)

        placed = 0
        for k in range(num_tiles):
            if placed == len(open_slots):
                break
            i = (point2 + k) % num_tiles
            key = filler_keys[i]
            if consumed[key] < allowed[key]:
                child[open_slots[placed]] = filler[i]
                consumed[key] += 1
                placed += 1

        # only reached when a parent did not hold the original pieces
        if placed < len(open_slots):
            owed = self._owed_pieces(consumed)
            for slot, key in zip(open_slots[placed:], owed):
                child[slot] = signature_to_edges(key)

    def _owed_pieces(self, consumed: Counter) -> List[int]:
        """Canonical keys still missing from a partially built child."""
        owed = []
        for key, allowed in self.tracker.counts.items():
            owed.extend([key] * (allowed - consumed[key]))
        return owed


class MutationOperator(ABC):
    """Abstract base class for mutation operators."""

    @abstractmethod
    def mutate(self, individual: np.ndarray, rng: np.random.Generator, mutation_rate: int) -> int:
        """
        Mutate an individual in place.

        Args:
            individual: The individual to mutate
            rng: Random generator
            mutation_rate: Upper bound (exclusive) on the number of mutation steps

        Returns:
            The number of steps applied
        """
        pass


class SwapRotateMutation(MutationOperator):
    """
    Alternates random tile-pair swaps (even steps) with rotating one random
    tile left by one (odd steps). Never changes which pieces an individual holds.
    """

    def mutate(self, individual: np.ndarray, rng: np.random.Generator, mutation_rate: int) -> int:
        num_steps = int(rng.integers(max(1, mutation_rate)))
        for step in range(num_steps):
            if step % 2 == 0:
                swap_random_tiles(individual, rng)
            else:
                rotate_in_place(individual, int(rng.integers(individual.shape[0])))
        return num_steps


def mutation_rate_table(max_mismatch: int, max_rate: int = 32, min_rate: int = 3) -> List[int]:
    """
    Mutation rate for every possible best mismatch count 0..max_mismatch.

    The rate scales with ``mismatch / max_mismatch`` up to ``max_rate`` and
    never drops below ``min_rate``.
    """
    if max_mismatch <= 0:
        return [min_rate]
    return [
        max(min_rate, int(mismatch / max_mismatch * max_rate))
        for mismatch in range(max_mismatch + 1)
    ]


def breed(
    population: np.ndarray,
    parent_indices: Sequence[int],
    offspring: np.ndarray,
    operator: CrossoverOperator,
    rng: np.random.Generator,
) -> List[Tuple[int, int]]:
    """
    Produce one offspring pair per parent pair into a separate buffer.

    Parents are paired front-to-back against back-to-front: parent i with
    parent n-1-i, their children landing in offspring slots i and n-1-i.
    The live population is only read.

    Returns:
        The crossover points used for each pair
    """
    count = len(parent_indices)
    points = []
    for i in range(0, count, 2):
        if i + 1 >= count:
            break
        mirror = count - i - 1
        offspring[i] = population[parent_indices[i]]
        offspring[mirror] = population[parent_indices[mirror]]
        points.append(operator.crossover(offspring[i], offspring[mirror], rng))
    return points


def mutate_all(
    offspring: np.ndarray,
    operator: MutationOperator,
    rng: np.random.Generator,
    mutation_rate: int,
    count: Optional[int] = None,
) -> None:
    """Mutate the first ``count`` individuals of an offspring buffer (all by default)."""
    count = offspring.shape[0] if count is None else count
    for i in range(count):
        operator.mutate(offspring[i], rng, mutation_rate)
