"""Puzzle input file parsing."""

from pathlib import Path
from typing import List, Optional, Union

from .tile import DEFAULT_SIDE, NUM_MOTIFS, TILE_SIZE, Puzzle


MOTIF_DIGITS = "0123456789"[:NUM_MOTIFS]


class InputFormatError(ValueError):
    """Raised when puzzle input is missing, unreadable or malformed."""


class PuzzleParser:
    """Parser for puzzle text: whitespace-separated four-digit tile codes."""

    @staticmethod
    def parse(text: str, side: int = DEFAULT_SIDE) -> Puzzle:
        """
        Parse puzzle text into a Puzzle.

        Tokens are consumed in order into grid positions 0..n-1 (row-major).
        Line breaks carry no meaning beyond separating tokens.

        Args:
            text: The puzzle text
            side: Grid side length (8 for the standard puzzle)

        Returns:
            The parsed Puzzle

        Raises:
            InputFormatError: If the text does not hold exactly side*side valid tiles
        """
        tokens = text.split()
        expected = side * side
        if len(tokens) != expected:
            raise InputFormatError(f"Expected {expected} tiles, found {len(tokens)}")

        tiles = [PuzzleParser._parse_token(token, i) for i, token in enumerate(tokens)]
        return Puzzle(tiles, side=side)

    @staticmethod
    def _parse_token(token: str, index: int) -> List[int]:
        """Parse a single tile token."""
        if len(token) != TILE_SIZE:
            raise InputFormatError(
                f"Tile {index} must be {TILE_SIZE} digits: {token!r}"
            )
        edges = []
        for char in token:
            if char not in MOTIF_DIGITS:
                raise InputFormatError(
                    f"Tile {index} has invalid motif {char!r} (expected 0-{NUM_MOTIFS - 1}): {token!r}"
                )
            edges.append(int(char))
        return edges

    @staticmethod
    def read_file(path: Union[str, Path], side: int = DEFAULT_SIDE) -> Puzzle:
        """
        Read and parse a puzzle file.

        Raises:
            InputFormatError: If the file is missing, unreadable or malformed
        """
        path = Path(path)
        try:
            text = path.read_text()
        except (OSError, UnicodeDecodeError) as e:
            raise InputFormatError(f"Unable to read puzzle file {path}: {e}") from e
        return PuzzleParser.parse(text, side=side)

    @staticmethod
    def validate(text: str, side: int = DEFAULT_SIDE) -> tuple[bool, Optional[str]]:
        """
        Validate puzzle text without keeping the result.

        Returns:
            A tuple of (is_valid, error_message)
        """
        try:
            PuzzleParser.parse(text, side=side)
            return True, None
        except InputFormatError as e:
            return False, str(e)
