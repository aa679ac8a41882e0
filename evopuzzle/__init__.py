"""Evolutionary solver for edge-matching tile puzzles."""

__version__ = "0.1.0"
