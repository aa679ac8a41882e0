"""Fitness functions for evaluating puzzle arrangements."""

from abc import ABC, abstractmethod

import numpy as np

from ..tiles.tile import DEFAULT_SIDE, Edge


class FitnessFunction(ABC):
    """Abstract base class for fitness functions (lower is better, 0 = solved)."""

    @abstractmethod
    def evaluate(self, individual: np.ndarray) -> int:
        """
        Evaluate the fitness of one individual.

        Args:
            individual: Array of shape (num_tiles, 4)

        Returns:
            Mismatch count (0 = perfect)
        """
        pass

    def evaluate_population(self, population: np.ndarray) -> np.ndarray:
        """Evaluate every individual of a (size, num_tiles, 4) population."""
        return np.array([self.evaluate(individual) for individual in population], dtype=np.int64)


class EdgeMismatchFitness(FitnessFunction):
    """Counts adjacent edge pairs whose motifs disagree."""

    def __init__(self, side: int = DEFAULT_SIDE):
        """
        Initialize the fitness function.

        Args:
            side: Grid side length; tiles are laid out row-major
        """
        self.side = side

    def evaluate(self, individual: np.ndarray) -> int:
        return int(self.evaluate_population(individual[np.newaxis])[0])

    def evaluate_population(self, population: np.ndarray) -> np.ndarray:
        grid = population.reshape(population.shape[0], self.side, self.side, -1)

        # left edge of each cell vs right edge of its left neighbour
        horizontal = grid[:, :, 1:, Edge.LEFT.value] != grid[:, :, :-1, Edge.RIGHT.value]
        # top edge of each cell vs bottom edge of the cell above
        vertical = grid[:, 1:, :, Edge.TOP.value] != grid[:, :-1, :, Edge.BOTTOM.value]

        return horizontal.sum(axis=(1, 2)) + vertical.sum(axis=(1, 2))


def count_edge_mismatch(individual: np.ndarray, side: int = DEFAULT_SIDE) -> int:
    """Count mismatched adjacent edges of a single arrangement."""
    return EdgeMismatchFitness(side).evaluate(np.asarray(individual))
