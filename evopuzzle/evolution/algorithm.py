"""Main evolutionary algorithm implementation."""

import json
import time
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from ..export.snapshot import OutputWriteError, SnapshotWriter
from ..tiles.encoder import PuzzleEncoder
from ..tiles.tile import Puzzle
from .duplicates import DuplicateTracker
from .fitness import EdgeMismatchFitness, FitnessFunction
from .operators import (
    CrossoverOperator,
    MutationOperator,
    NoCrossover,
    OrderCrossover,
    SwapRotateMutation,
    TwoPointCrossover,
    breed,
    mutate_all,
    mutation_rate_table,
)
from .population import SeedingMode, allocate_population, seed_population
from .selection import (
    FitnessRanking,
    elite_count,
    evaluate_fitness,
    replace_worst,
    select_parents_and_worst,
)


EXPLORATION_CROSSOVERS = ("none", "two_point")


@dataclass
class EvolutionConfig:
    """Configuration for the evolutionary algorithm."""
    population_size: int = 1000
    generations: int = 1000  # 0 = run until a perfect solution is found
    elite_ratio: float = 0.25
    max_mutation_rate: int = 32
    min_mutation_rate: int = 3
    order_crossover_threshold: int = 10  # switch to order crossover at or below this mismatch
    save_threshold: int = 25  # snapshot new bests at or below this mismatch
    stagnation_base: int = 1000
    seeding: SeedingMode = SeedingMode.CUMULATIVE
    exploration_crossover: str = "none"  # "two_point" may duplicate or drop pieces
    check_invariants: bool = False
    seed: Optional[int] = None
    verbose: bool = False
    output_dir: str = "output"
    save_snapshots: bool = True

    def __post_init__(self):
        if self.population_size < 1:
            raise ValueError(f"population_size must be positive: {self.population_size}")
        if self.generations < 0:
            raise ValueError(f"generations must not be negative: {self.generations}")
        if not 0.0 < self.elite_ratio <= 0.5:
            raise ValueError(f"elite_ratio must be in (0, 0.5]: {self.elite_ratio}")
        if not 1 <= self.min_mutation_rate <= self.max_mutation_rate:
            raise ValueError(
                f"Invalid mutation rate range: {self.min_mutation_rate}..{self.max_mutation_rate}"
            )
        if self.exploration_crossover not in EXPLORATION_CROSSOVERS:
            raise ValueError(f"Unknown exploration crossover: {self.exploration_crossover}")
        if not isinstance(self.seeding, SeedingMode):
            self.seeding = SeedingMode(self.seeding)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvolutionConfig":
        """Build a config from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "EvolutionConfig":
        """Load a config from a JSON file."""
        with open(path, 'r') as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["seeding"] = self.seeding.value
        return data


def stagnation_threshold(population_size: int, base: int = 1000) -> int:
    """Generations without improvement tolerated before repopulating."""
    return max(10, (base // population_size) * base)


class StagnationMonitor:
    """
    Counts generations since the last improvement of the all-time best.

    A forced repopulation is due when the counter reaches the threshold,
    ten times the threshold and a hundred times the threshold; the counter
    restarts only after the last tier.
    """

    TIERS = (1, 10, 100)

    def __init__(self, threshold: int):
        self.threshold = threshold
        self.counter = 0

    def record(self, improved: bool) -> bool:
        """Advance by one generation. Returns True when a repopulation is due."""
        if improved:
            self.counter = 0
        self.counter += 1
        due = any(self.counter == self.threshold * tier for tier in self.TIERS)
        if self.counter == self.threshold * self.TIERS[-1]:
            self.counter = 0
        return due


@dataclass
class EvolutionResult:
    """Outcome of a run. ``best_puzzle`` is the all-time best, not the final population's."""
    best_puzzle: Puzzle
    best_mismatch: int
    generations: int
    solved: bool
    elapsed: float = 0.0
    repopulations: int = 0
    preserves_tiles: bool = True
    snapshots: List[Path] = field(default_factory=list)
    history: List[Dict] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"EvolutionResult(best_mismatch={self.best_mismatch}, generations={self.generations}, "
            f"solved={self.solved}, elapsed={self.elapsed:.2f}s)"
        )


class EvolutionaryAlgorithm:
    """Evolutionary search for an arrangement with no mismatched edges."""

    def __init__(
        self,
        puzzle: Puzzle,
        config: Optional[EvolutionConfig] = None,
        fitness_function: Optional[FitnessFunction] = None,
        mutation_operator: Optional[MutationOperator] = None,
        exploration_operator: Optional[CrossoverOperator] = None,
        order_operator: Optional[CrossoverOperator] = None,
        snapshot_writer: Optional[SnapshotWriter] = None,
    ):
        """
        Initialize the evolutionary algorithm.

        Args:
            puzzle: The original puzzle; its pieces define the allowed multiset
            config: Evolution configuration
            fitness_function: Fitness function to use (edge mismatch by default)
            mutation_operator: Mutation applied to every offspring
            exploration_operator: Crossover used while the best mismatch is high
            order_operator: Crossover used at or below the order crossover threshold
            snapshot_writer: Writer for new bests at or below the save threshold
        """
        self.puzzle = puzzle.copy()
        self.config = config or EvolutionConfig()
        self.fitness_function = fitness_function or EdgeMismatchFitness(puzzle.side)
        self.rng = np.random.default_rng(self.config.seed)
        self.tracker = DuplicateTracker(self.puzzle)

        self.mutation_operator = mutation_operator or SwapRotateMutation()
        if exploration_operator is None:
            exploration_operator = (
                TwoPointCrossover()
                if self.config.exploration_crossover == "two_point"
                else NoCrossover()
            )
        self.exploration_operator = exploration_operator
        self.order_operator = order_operator or OrderCrossover(
            self.tracker, verify=self.config.check_invariants
        )
        self.snapshot_writer = snapshot_writer or SnapshotWriter(self.config.output_dir)

        self.elite_count = elite_count(self.config.population_size, self.config.elite_ratio)
        self.mutation_rates = mutation_rate_table(
            self.puzzle.max_mismatch,
            self.config.max_mutation_rate,
            self.config.min_mutation_rate,
        )
        self.stagnation = StagnationMonitor(
            stagnation_threshold(self.config.population_size, self.config.stagnation_base)
        )

        # State
        self.population: np.ndarray = allocate_population(0, self.puzzle.num_tiles)
        self.offspring: np.ndarray = allocate_population(self.elite_count, self.puzzle.num_tiles)
        self.generation = 0
        self.best_puzzle: Optional[Puzzle] = None
        self.min_mismatch: Optional[int] = None
        self.last_generation_best: Optional[int] = None
        self.mutation_rate = self.config.max_mutation_rate
        self.repopulations = 0
        self.snapshots: List[Path] = []
        self.history: List[Dict] = []

        # Callbacks
        self.on_generation: Optional[Callable[[int, FitnessRanking], None]] = None
        self.on_new_best: Optional[Callable[[Puzzle, int], None]] = None

    def initialize_population(self, base: Optional[Puzzle] = None) -> None:
        """Seed the population from a base arrangement (the input puzzle by default)."""
        if base is None:
            base = self.puzzle
        if self.population.shape[0] != self.config.population_size:
            self.population = allocate_population(self.config.population_size, self.puzzle.num_tiles)
        seed_population(self.population, base.tiles, self.rng, self.config.seeding)

    def evaluate(self) -> FitnessRanking:
        """Rank the current population, worst first."""
        return evaluate_fitness(self.population, self.fitness_function)

    def _best_valid(self, ranking: FitnessRanking) -> Optional[Tuple[int, int]]:
        """
        Best ranked individual that holds the original pieces and beats the
        all-time best, or None.
        """
        for index, mismatch in reversed(ranking.entries):
            if self.min_mismatch is not None and mismatch >= self.min_mismatch:
                return None
            if self.tracker.preserves_tiles(self.population[index]):
                return index, mismatch
        return None

    def _update_best(self, ranking: FitnessRanking) -> bool:
        """Remember a new all-time best. Returns True if one was found."""
        candidate = self._best_valid(ranking)
        if candidate is None:
            return False
        best_index, best_mismatch = candidate

        self.min_mismatch = best_mismatch
        self.best_puzzle = Puzzle(self.population[best_index], side=self.puzzle.side)

        if self.config.verbose:
            print(PuzzleEncoder.format_for_display(self.best_puzzle, best_mismatch))
            print()

        if self.config.save_snapshots and best_mismatch <= self.config.save_threshold:
            self._save_snapshot(self.best_puzzle, best_mismatch)

        if self.on_new_best:
            self.on_new_best(self.best_puzzle, best_mismatch)
        return True

    def _save_snapshot(self, puzzle: Puzzle, mismatch: int) -> None:
        try:
            self.snapshots.append(self.snapshot_writer.save(puzzle, mismatch))
        except OutputWriteError as e:
            print(f"Warning: could not save snapshot: {e}")

    def repopulate(self) -> None:
        """Reseed the whole population from the all-time best to escape a local optimum."""
        self.initialize_population(self.best_puzzle)
        self.repopulations += 1
        if self.config.verbose:
            print(f"GEN {self.generation}: stagnated, repopulating from best ({self.min_mismatch})")

    def _update_mutation_rate(self, best_mismatch: int) -> None:
        if best_mismatch != self.last_generation_best:
            self.last_generation_best = best_mismatch
            self.mutation_rate = self.mutation_rates[best_mismatch]

    def select_crossover(self, best_mismatch: int) -> CrossoverOperator:
        """Order crossover once the best mismatch is low, the exploration operator before."""
        if best_mismatch <= self.config.order_crossover_threshold:
            return self.order_operator
        return self.exploration_operator

    def reproduce(self, ranking: FitnessRanking) -> None:
        """Select, recombine, mutate and replace the worst individuals."""
        if self.elite_count == 0:
            return
        parents, worst = select_parents_and_worst(ranking, self.elite_count)
        operator = self.select_crossover(ranking.best_mismatch)
        breed(self.population, parents, self.offspring, operator, self.rng)
        mutate_all(self.offspring, self.mutation_operator, self.rng, self.mutation_rate)
        replace_worst(self.population, worst, self.offspring)

        if self.config.check_invariants:
            for index in worst:
                self.tracker.verify(self.population[index])

    def evolve_generation(self) -> bool:
        """
        Run one generation.

        Returns:
            True if the search should stop because a perfect solution exists
        """
        self.generation += 1
        ranking = self.evaluate()
        improved = self._update_best(ranking)

        repopulated = self.stagnation.record(improved)
        if repopulated:
            self.repopulate()

        if self.min_mismatch == 0:
            return True

        if repopulated:
            ranking = self.evaluate()

        self._update_mutation_rate(ranking.best_mismatch)
        self.reproduce(ranking)

        self.history.append({
            'generation': self.generation,
            'best_mismatch': ranking.best_mismatch,
            'mean_mismatch': ranking.mean_mismatch,
            'min_mismatch_so_far': self.min_mismatch,
            'mutation_rate': self.mutation_rate,
            'repopulated': repopulated,
        })

        if self.config.verbose:
            print(
                f"GEN {self.generation}  edge mismatch: {ranking.best_mismatch}"
                f"  ... mutation rate: {self.mutation_rate}"
                f"  ... lowest edge mismatch: {self.min_mismatch}"
            )

        if self.on_generation:
            self.on_generation(self.generation, ranking)

        return False

    def run(self) -> EvolutionResult:
        """
        Run the evolutionary algorithm until a perfect arrangement is found or
        the generation budget is used up.

        Returns:
            The result, holding the best arrangement ever seen
        """
        start = time.time()
        self.initialize_population()

        solved = False
        budget = self.config.generations
        while not budget or self.generation < budget:
            if self.evolve_generation():
                solved = True
                break

        return EvolutionResult(
            best_puzzle=self.best_puzzle.copy(),
            best_mismatch=self.min_mismatch,
            generations=self.generation,
            solved=solved,
            elapsed=time.time() - start,
            repopulations=self.repopulations,
            preserves_tiles=self.tracker.preserves_tiles(self.best_puzzle.tiles),
            snapshots=list(self.snapshots),
            history=list(self.history),
        )

    def get_statistics(self) -> Dict:
        """Get statistics about the evolution run."""
        return {
            'generation': self.generation,
            'population_size': len(self.population),
            'elite_count': self.elite_count,
            'best_mismatch': self.min_mismatch,
            'mutation_rate': self.mutation_rate,
            'stagnation_threshold': self.stagnation.threshold,
            'repopulations': self.repopulations,
            'history': self.history,
        }
