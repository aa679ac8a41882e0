"""Best-solution snapshots written to disk during a run."""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..tiles.encoder import PuzzleEncoder
from ..tiles.tile import Puzzle


TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"


class OutputWriteError(OSError):
    """Raised when a snapshot directory or file cannot be written."""


class SnapshotWriter:
    """
    Writes puzzles to ``<output_dir>/<prefix>-<mismatch>-<timestamp>.txt``.

    The file holds an optional header line followed by the puzzle rows, so a
    header-less snapshot can be read back with PuzzleParser.
    """

    def __init__(
        self,
        output_dir: Union[str, Path] = "output",
        prefix: str = "solution",
        header: Optional[str] = None,
    ):
        self.output_dir = Path(output_dir)
        self.prefix = prefix
        self.header = header

    def filename_for(self, mismatch: int, when: Optional[datetime] = None) -> str:
        when = when or datetime.now()
        return f"{self.prefix}-{mismatch}-{when.strftime(TIMESTAMP_FORMAT)}.txt"

    def render(self, puzzle: Puzzle) -> str:
        body = PuzzleEncoder.encode(puzzle)
        if self.header:
            return f"{self.header}\n{body}"
        return body

    def save(self, puzzle: Puzzle, mismatch: int, when: Optional[datetime] = None) -> Path:
        """
        Write a snapshot of a puzzle.

        Args:
            puzzle: The puzzle to write
            mismatch: Its edge mismatch count (embedded in the filename)
            when: Timestamp for the filename (defaults to now)

        Returns:
            Path of the written file

        Raises:
            OutputWriteError: If the directory or file cannot be written
        """
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputWriteError(f"Unable to create directory {self.output_dir}: {e}") from e

        filepath = self.output_dir / self.filename_for(mismatch, when)
        # several bests can land within the same second
        stem = filepath.stem
        suffix = 1
        while filepath.exists():
            filepath = self.output_dir / f"{stem}.{suffix}.txt"
            suffix += 1

        try:
            with open(filepath, 'w') as f:
                f.write(self.render(puzzle))
        except OSError as e:
            raise OutputWriteError(f"Unable to open file {filepath} for writing: {e}") from e

        return filepath
