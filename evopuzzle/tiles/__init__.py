"""Tile and puzzle model."""

from .tile import (
    DEFAULT_SIDE,
    NUM_MOTIFS,
    TILE_SIZE,
    Edge,
    Puzzle,
    Tile,
    edge_signature,
    max_mismatch_for_side,
    rotate_edges,
    rotation_signatures,
)
from .parser import InputFormatError, PuzzleParser
from .encoder import PuzzleEncoder

__all__ = [
    "DEFAULT_SIDE",
    "NUM_MOTIFS",
    "TILE_SIZE",
    "Edge",
    "Puzzle",
    "Tile",
    "edge_signature",
    "max_mismatch_for_side",
    "rotate_edges",
    "rotation_signatures",
    "InputFormatError",
    "PuzzleParser",
    "PuzzleEncoder",
]
