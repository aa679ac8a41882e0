"""Duplicate tracking for tiles that are identical up to rotation.

The order crossover needs to know, for every piece of the original puzzle,
which canonical key it belongs to and how many copies of it exist. Both maps
are built once from the input puzzle and only read afterwards.
"""

from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..tiles.tile import NUM_MOTIFS, TILE_SIZE, Puzzle, edge_signature, rotation_signatures


# canonical signature -> number of copies in the original puzzle
DuplicateMap = Dict[int, int]
# any rotation signature -> canonical signature
TileIdentityMap = Dict[int, int]


class InvariantViolation(AssertionError):
    """Raised when an individual no longer holds the original tile multiset."""


def build_duplicate_counts(tiles: Sequence[Sequence[int]]) -> DuplicateMap:
    """
    Count copies of each piece, treating rotations as the same piece.

    The first-seen orientation of a piece becomes its key. Pieces occurring
    once still get an entry with count 1.
    """
    counts: DuplicateMap = {}
    for edges in tiles:
        found, key = find_by_tile_rotations(counts, edges)
        if found:
            counts[key] += 1
        else:
            counts[edge_signature(edges)] = 1
    return counts


def build_tile_identity_map(tiles: Sequence[Sequence[int]]) -> TileIdentityMap:
    """Map every rotation signature of every piece to the piece's canonical key."""
    identity: TileIdentityMap = {}
    for edges in tiles:
        canonical = edge_signature(edges)
        if canonical in identity:
            continue
        for signature in rotation_signatures(edges):
            identity[signature] = canonical
    return identity


def find_by_tile_rotations(
    mapping: Mapping[int, object], edges: Sequence[int]
) -> Tuple[bool, Optional[int]]:
    """Look up a live tile by trying each of its rotations as a key."""
    for signature in rotation_signatures(edges):
        if signature in mapping:
            return True, signature
    return False, None


def find_by_signature(
    mapping: Mapping[int, object], signature: int
) -> Tuple[bool, Optional[int]]:
    """Look up a signature directly as a key."""
    if signature in mapping:
        return True, signature
    return False, None


def find_canonical_of(
    identity: TileIdentityMap, signature: int
) -> Tuple[bool, Optional[int]]:
    """Resolve a signature in any orientation to its canonical key."""
    if signature in identity:
        return True, identity[signature]
    return False, None


def signatures_of(individual: np.ndarray) -> np.ndarray:
    """Signatures of all tiles of an individual in their current orientation."""
    weights = NUM_MOTIFS ** np.arange(TILE_SIZE - 1, -1, -1)
    return np.asarray(individual, dtype=np.int64) @ weights


class DuplicateTracker:
    """Duplicate and identity maps of an original puzzle."""

    def __init__(self, puzzle: Puzzle):
        self.counts: DuplicateMap = build_duplicate_counts(puzzle.tiles)
        self.identity: TileIdentityMap = build_tile_identity_map(puzzle.tiles)

    def canonical_of(self, edges: Sequence[int]) -> int:
        """
        Canonical key of a tile in any orientation.

        Raises:
            KeyError: If the tile is not a piece of the original puzzle
        """
        found, canonical = find_canonical_of(self.identity, edge_signature(edges))
        if not found:
            raise KeyError(f"Tile {tuple(int(e) for e in edges)} is not part of the puzzle")
        return canonical

    def canonical_keys(self, individual: np.ndarray) -> List[int]:
        """
        Canonical key of every tile of an individual, in grid order.

        Raises:
            KeyError: If a tile is not a piece of the original puzzle
        """
        return [self.identity[int(s)] for s in signatures_of(individual)]

    def canonical_counts(self, individual: np.ndarray) -> Counter:
        """Multiset of canonical keys held by an individual."""
        counter: Counter = Counter()
        for signature in signatures_of(individual):
            found, canonical = find_canonical_of(self.identity, int(signature))
            # foreign tiles are counted under a negative key so they show up as a difference
            counter[canonical if found else -int(signature) - 1] += 1
        return counter

    def preserves_tiles(self, individual: np.ndarray) -> bool:
        """Check that an individual holds exactly the original pieces."""
        return self.canonical_counts(individual) == Counter(self.counts)

    def verify(self, individual: np.ndarray) -> None:
        """
        Fail loudly when an individual does not hold the original pieces.

        Raises:
            InvariantViolation: If any piece is duplicated, missing or foreign
        """
        actual = self.canonical_counts(individual)
        expected = Counter(self.counts)
        if actual != expected:
            surplus = dict(actual - expected)
            missing = dict(expected - actual)
            raise InvariantViolation(
                f"Tile multiset changed (surplus: {surplus}, missing: {missing})"
            )

    @property
    def num_distinct(self) -> int:
        """Number of distinct pieces up to rotation."""
        return len(self.counts)

    def __repr__(self) -> str:
        return f"DuplicateTracker(distinct={self.num_distinct}, tiles={sum(self.counts.values())})"
