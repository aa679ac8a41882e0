"""Evolution module for genetic algorithm-based puzzle search."""

from .algorithm import (
    EvolutionaryAlgorithm,
    EvolutionConfig,
    EvolutionResult,
    StagnationMonitor,
    stagnation_threshold,
)
from .duplicates import (
    DuplicateTracker,
    InvariantViolation,
    build_duplicate_counts,
    build_tile_identity_map,
    find_by_signature,
    find_by_tile_rotations,
    find_canonical_of,
)
from .fitness import EdgeMismatchFitness, FitnessFunction, count_edge_mismatch
from .operators import (
    CrossoverOperator,
    MutationOperator,
    NoCrossover,
    OrderCrossover,
    SwapRotateMutation,
    TwoPointCrossover,
    mutation_rate_table,
)
from .population import SeedingMode, allocate_population, create_population, seed_population
from .selection import (
    FitnessRanking,
    elite_count,
    evaluate_fitness,
    replace_worst,
    select_parents_and_worst,
)

__all__ = [
    "EvolutionaryAlgorithm",
    "EvolutionConfig",
    "EvolutionResult",
    "StagnationMonitor",
    "stagnation_threshold",
    "DuplicateTracker",
    "InvariantViolation",
    "build_duplicate_counts",
    "build_tile_identity_map",
    "find_by_signature",
    "find_by_tile_rotations",
    "find_canonical_of",
    "EdgeMismatchFitness",
    "FitnessFunction",
    "count_edge_mismatch",
    "CrossoverOperator",
    "MutationOperator",
    "NoCrossover",
    "OrderCrossover",
    "SwapRotateMutation",
    "TwoPointCrossover",
    "mutation_rate_table",
    "SeedingMode",
    "allocate_population",
    "create_population",
    "seed_population",
    "FitnessRanking",
    "elite_count",
    "evaluate_fitness",
    "replace_worst",
    "select_parents_and_worst",
]
