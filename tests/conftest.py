"""Shared fixtures: puzzles with a known perfect arrangement."""

import numpy as np
import pytest

from evopuzzle.tiles.tile import NUM_MOTIFS, Puzzle


def make_solved_puzzle(side: int, seed: int = 0, motifs: int = NUM_MOTIFS) -> Puzzle:
    """Build a puzzle whose row-major arrangement has no mismatched edges."""
    rng = np.random.default_rng(seed)
    # vertical[r][c] is the motif on the edge between row r-1 and row r in column c
    vertical = rng.integers(motifs, size=(side + 1, side))
    # horizontal[r][c] is the motif on the edge between column c-1 and column c in row r
    horizontal = rng.integers(motifs, size=(side, side + 1))
    tiles = []
    for r in range(side):
        for c in range(side):
            tiles.append((vertical[r][c], horizontal[r][c + 1], vertical[r + 1][c], horizontal[r][c]))
    return Puzzle(tiles, side=side)


def shuffled(puzzle: Puzzle, seed: int = 0) -> Puzzle:
    """Same pieces in random positions and orientations."""
    rng = np.random.default_rng(seed)
    tiles = puzzle.tiles[rng.permutation(puzzle.num_tiles)]
    tiles = np.array([np.roll(t, -int(rng.integers(4))) for t in tiles])
    return Puzzle(tiles, side=puzzle.side)


@pytest.fixture
def solved_puzzle():
    return make_solved_puzzle(8, seed=1)


@pytest.fixture
def toy_puzzle():
    return make_solved_puzzle(4, seed=2)


@pytest.fixture
def duplicate_puzzle():
    """An 8x8 puzzle with only two motifs, so many pieces repeat."""
    return make_solved_puzzle(8, seed=3, motifs=2)


@pytest.fixture
def shuffled_toy_puzzle(toy_puzzle):
    return shuffled(toy_puzzle, seed=4)


@pytest.fixture
def shuffled_duplicate_puzzle(duplicate_puzzle):
    return shuffled(duplicate_puzzle, seed=5)


@pytest.fixture
def puzzle_factory():
    """Build solved puzzles with arbitrary side/seed/motif count."""
    return make_solved_puzzle


@pytest.fixture
def shuffle():
    return shuffled
