"""Puzzle encoding and display utilities."""

from typing import List, Optional

from .tile import Puzzle


class PuzzleEncoder:
    """Encoder for the text form of a puzzle."""

    @staticmethod
    def encode_rows(puzzle: Puzzle) -> List[str]:
        """One line per grid row, tile codes separated by single spaces."""
        codes = puzzle.to_codes()
        return [
            " ".join(codes[row * puzzle.side:(row + 1) * puzzle.side])
            for row in range(puzzle.side)
        ]

    @staticmethod
    def encode(puzzle: Puzzle) -> str:
        """
        Encode a puzzle in the same layout the parser reads.

        Args:
            puzzle: The puzzle to encode

        Returns:
            The rows joined by newlines, with a trailing newline
        """
        return "\n".join(PuzzleEncoder.encode_rows(puzzle)) + "\n"

    @staticmethod
    def format_for_display(puzzle: Puzzle, mismatch: Optional[int] = None) -> str:
        """
        Format a puzzle for console output.

        Args:
            puzzle: The puzzle to format
            mismatch: Optional edge mismatch count shown as a heading
        """
        lines = []
        if mismatch is not None:
            lines.append(f"Puzzle with {mismatch} edge mismatches:")
        lines.extend(PuzzleEncoder.encode_rows(puzzle))
        return "\n".join(lines)
