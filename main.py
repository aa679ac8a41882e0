#!/usr/bin/env python3
"""
Evolutionary Puzzle Solver - Main Entry Point

Run ``python main.py solve puzzle.txt`` from a checkout; installed copies
provide the same commands as ``evopuzzle``.
"""

import sys

from evopuzzle.cli import main


if __name__ == "__main__":
    sys.exit(main())
