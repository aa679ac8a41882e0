"""Core tile and puzzle data structures."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Sequence, Tuple

import numpy as np


TILE_SIZE = 4
NUM_MOTIFS = 7
DEFAULT_SIDE = 8

# Individuals are stored as small integer arrays
TILE_DTYPE = np.int8


class Edge(Enum):
    """Edge positions of a tile, clockwise from the top."""
    TOP = 0
    RIGHT = 1
    BOTTOM = 2
    LEFT = 3


def rotate_edges(edges: Sequence[int], steps: int = 1) -> Tuple[int, ...]:
    """Cyclically shift edge values to the left by the given number of steps."""
    steps = steps % TILE_SIZE
    edges = tuple(int(e) for e in edges)
    return edges[steps:] + edges[:steps]


def edge_signature(edges: Sequence[int]) -> int:
    """Pack the edge values (current orientation) into one base-7 integer key."""
    signature = 0
    for value in edges:
        signature = signature * NUM_MOTIFS + int(value)
    return signature


def rotation_signatures(edges: Sequence[int]) -> List[int]:
    """Signatures of the tile under 0, 1, 2 and 3 left shifts."""
    return [edge_signature(rotate_edges(edges, steps)) for steps in range(TILE_SIZE)]


def signature_to_edges(signature: int) -> Tuple[int, ...]:
    """Unpack a signature back into edge values."""
    digits = []
    for _ in range(TILE_SIZE):
        signature, digit = divmod(signature, NUM_MOTIFS)
        digits.append(digit)
    return tuple(reversed(digits))


def rotate_in_place(individual: np.ndarray, position: int) -> None:
    """Rotate the tile at ``position`` of an individual left by one step."""
    individual[position] = np.roll(individual[position], -1)


@dataclass(frozen=True)
class Tile:
    """A square puzzle piece: four motifs ordered top, right, bottom, left."""
    edges: Tuple[int, int, int, int]

    def __post_init__(self):
        """Validate the tile."""
        edges = tuple(int(e) for e in self.edges)
        if len(edges) != TILE_SIZE:
            raise ValueError(f"Tile must have {TILE_SIZE} edges: {edges}")
        for value in edges:
            if not 0 <= value < NUM_MOTIFS:
                raise ValueError(f"Motif out of range 0..{NUM_MOTIFS - 1}: {value}")
        object.__setattr__(self, "edges", edges)

    @classmethod
    def from_code(cls, code: str) -> "Tile":
        """Parse a tile from its four-digit code."""
        if len(code) != TILE_SIZE or not code.isdigit():
            raise ValueError(f"Tile code must be {TILE_SIZE} digits: {code}")
        return cls(tuple(int(c) for c in code))

    def to_code(self) -> str:
        """Encode this tile to its four-digit code."""
        return "".join(str(e) for e in self.edges)

    def edge(self, side: Edge) -> int:
        """Get the motif on one edge."""
        return self.edges[side.value]

    def rotate(self, steps: int = 1) -> "Tile":
        """Rotate by cyclic left shift (top value moves to the left edge)."""
        return Tile(rotate_edges(self.edges, steps))

    @property
    def signature(self) -> int:
        """Hash key for the current orientation."""
        return edge_signature(self.edges)

    def rotation_signatures(self) -> List[int]:
        """Signatures for each of the four orientations."""
        return rotation_signatures(self.edges)

    def is_rotation_of(self, other: "Tile") -> bool:
        """Check whether two tiles are the same piece in some orientation."""
        return other.signature in self.rotation_signatures()

    def __repr__(self) -> str:
        return f"Tile({self.to_code()})"


class Puzzle:
    """
    A square grid of tiles stored row-major as a ``(side*side, 4)`` array.

    Each Puzzle owns its array; constructing one copies the input.
    """

    def __init__(self, tiles, side: int = DEFAULT_SIDE):
        array = np.array(tiles, dtype=TILE_DTYPE)
        if array.ndim != 2 or array.shape[1] != TILE_SIZE:
            raise ValueError(f"Puzzle tiles must have shape (n, {TILE_SIZE}), got {array.shape}")
        if array.shape[0] != side * side:
            raise ValueError(
                f"Puzzle with side {side} needs {side * side} tiles, got {array.shape[0]}"
            )
        self.side = side
        self.tiles = array

    @property
    def num_tiles(self) -> int:
        return self.side * self.side

    @property
    def max_mismatch(self) -> int:
        """Number of adjacent edge pairs in the grid."""
        return max_mismatch_for_side(self.side)

    def tile(self, index: int) -> Tile:
        """Get the tile at a row-major index."""
        return Tile(tuple(self.tiles[index]))

    def tile_at(self, row: int, col: int) -> Tile:
        return self.tile(row * self.side + col)

    def __iter__(self) -> Iterator[Tile]:
        for index in range(self.num_tiles):
            yield self.tile(index)

    def __len__(self) -> int:
        return self.num_tiles

    def copy(self) -> "Puzzle":
        """Create a deep copy of this puzzle."""
        return Puzzle(self.tiles, side=self.side)

    def to_codes(self) -> List[str]:
        """Four-digit codes of all tiles in row-major order."""
        return ["".join(str(int(e)) for e in row) for row in self.tiles]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Puzzle):
            return False
        return self.side == other.side and np.array_equal(self.tiles, other.tiles)

    def __repr__(self) -> str:
        return f"Puzzle({self.side}x{self.side})"


def max_mismatch_for_side(side: int) -> int:
    """Horizontal plus vertical adjacencies of a side x side grid."""
    return 2 * side * (side - 1)
