"""Population allocation, seeding and copying."""

from enum import Enum

import numpy as np

from ..tiles.tile import TILE_DTYPE, TILE_SIZE, rotate_in_place


class SeedingMode(Enum):
    """How individuals of a fresh population are derived from the base puzzle."""
    CUMULATIVE = "cumulative"    # one working copy perturbed across all individuals
    INDEPENDENT = "independent"  # working copy reset to the base for each individual


def allocate_population(size: int, num_tiles: int) -> np.ndarray:
    """Allocate ``size`` zeroed individuals of ``num_tiles`` tiles."""
    return np.zeros((size, num_tiles, TILE_SIZE), dtype=TILE_DTYPE)


def swap_random_tiles(individual: np.ndarray, rng: np.random.Generator) -> None:
    """Exchange the contents of two distinct random positions in place."""
    num_tiles = individual.shape[0]
    first = int(rng.integers(num_tiles))
    second = first
    while second == first:
        second = int(rng.integers(num_tiles))
    individual[[first, second]] = individual[[second, first]]


def perturb(individual: np.ndarray, rng: np.random.Generator) -> None:
    """
    One diversification pass: for each position in the first half of the
    grid, swap two random tiles and rotate the tile at that position.
    """
    for position in range(individual.shape[0] // 2):
        swap_random_tiles(individual, rng)
        rotate_in_place(individual, position)


def seed_population(
    population: np.ndarray,
    base: np.ndarray,
    rng: np.random.Generator,
    mode: SeedingMode = SeedingMode.CUMULATIVE,
) -> None:
    """
    Fill a population with variations of a base arrangement.

    Individual 0 is an exact copy of the base. In cumulative mode every
    further individual is a snapshot of a working copy that keeps all earlier
    perturbations, so dissimilarity from the base grows along the population.

    Args:
        population: Array of shape (size, num_tiles, 4), overwritten in place
        base: The arrangement to seed from (not modified)
        rng: Random generator for the perturbations
        mode: Cumulative or independent perturbation
    """
    working = base.copy()
    population[0] = working

    for index in range(1, population.shape[0]):
        if mode is SeedingMode.INDEPENDENT:
            working = base.copy()
        perturb(working, rng)
        population[index] = working


def create_population(
    base: np.ndarray,
    size: int,
    rng: np.random.Generator,
    mode: SeedingMode = SeedingMode.CUMULATIVE,
) -> np.ndarray:
    """Allocate and seed a population in one step."""
    population = allocate_population(size, base.shape[0])
    seed_population(population, base, rng, mode)
    return population


def copy_individual(source: np.ndarray, destination: np.ndarray) -> None:
    """Copy one individual's tiles into another's storage."""
    destination[...] = source
