"""Export of puzzles found during a run."""

from .snapshot import OutputWriteError, SnapshotWriter

__all__ = [
    "OutputWriteError",
    "SnapshotWriter",
]
