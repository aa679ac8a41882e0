"""
Command line interface for the evolutionary puzzle solver.

Searches for an arrangement of square tiles in which every pair of adjacent
edges carries the same motif, using a genetic algorithm.
"""

import argparse


def prompt_int(message, default):
    """Ask for a positive integer on stdin, falling back to a default."""
    while True:
        answer = input(f"{message} [{default}]: ").strip()
        if not answer:
            return default
        try:
            value = int(answer)
        except ValueError:
            print(f"Error: '{answer}' is not a number")
            continue
        if value < 0:
            print("Error: value must not be negative")
            continue
        return value


def build_config(args):
    """Overlay command line flags on the default or loaded configuration."""
    from evopuzzle.evolution.algorithm import EvolutionConfig
    from evopuzzle.evolution.population import SeedingMode

    config = EvolutionConfig.from_json(args.config) if args.config else EvolutionConfig()
    overrides = config.to_dict()

    population_size = args.population
    generations = args.generations
    if args.interactive:
        if population_size is None:
            population_size = prompt_int("Population size", overrides["population_size"])
        if generations is None:
            generations = prompt_int("Generations (0 = until solved)", overrides["generations"])

    if population_size is not None:
        overrides["population_size"] = population_size
    if generations is not None:
        overrides["generations"] = generations
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.verbose:
        overrides["verbose"] = True
    if args.output_dir:
        overrides["output_dir"] = args.output_dir
    if args.no_snapshots:
        overrides["save_snapshots"] = False
    if args.independent_seeding:
        overrides["seeding"] = SeedingMode.INDEPENDENT.value

    return EvolutionConfig.from_dict(overrides)


def run_solve(args):
    """Run the evolutionary search on a puzzle file."""
    from evopuzzle.evolution.algorithm import EvolutionaryAlgorithm
    from evopuzzle.tiles.encoder import PuzzleEncoder
    from evopuzzle.tiles.parser import InputFormatError, PuzzleParser

    try:
        puzzle = PuzzleParser.read_file(args.input, side=args.side)
        config = build_config(args)
    except (InputFormatError, ValueError, OSError) as e:
        print(f"Error: {e}")
        return 1

    print("=" * 60)
    print("  Evolutionary Puzzle Solver")
    print("=" * 60)
    print(f"Puzzle: {args.input} ({puzzle.side}x{puzzle.side})")
    print(f"Population: {config.population_size}")
    print(f"Generations: {config.generations or 'until solved'}")
    print("=" * 60)

    algorithm = EvolutionaryAlgorithm(puzzle, config)
    result = algorithm.run()

    print(f"\n\nBest Puzzle with {result.best_mismatch} edge mismatches:")
    print(PuzzleEncoder.format_for_display(result.best_puzzle))
    print()
    if result.solved:
        print(f"✓ Solved after {result.generations} generations")
    else:
        print(f"✗ Not solved within {result.generations} generations")
    print(f"Time taken: {result.elapsed:.2f} seconds")

    if args.save:
        try:
            with open(args.save, 'w') as f:
                f.write(PuzzleEncoder.encode(result.best_puzzle))
        except OSError as e:
            print(f"Warning: could not save result to {args.save}: {e}")

    return 0


def run_score(args):
    """Parse a puzzle file and report its edge mismatches."""
    from evopuzzle.evolution.fitness import count_edge_mismatch
    from evopuzzle.tiles.encoder import PuzzleEncoder
    from evopuzzle.tiles.parser import InputFormatError, PuzzleParser

    try:
        puzzle = PuzzleParser.read_file(args.input, side=args.side)
    except InputFormatError as e:
        print(f"Error: {e}")
        return 1

    mismatch = count_edge_mismatch(puzzle.tiles, puzzle.side)
    print(PuzzleEncoder.format_for_display(puzzle, mismatch))
    print(f"Edge mismatches: {mismatch} of {puzzle.max_mismatch}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        description="Evolutionary Puzzle Solver - match tile edges with a genetic algorithm"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Solve command
    solve_parser = subparsers.add_parser("solve", help="Search for a matching arrangement")
    solve_parser.add_argument("input", help="Puzzle file: whitespace-separated 4-digit tiles")
    solve_parser.add_argument(
        "-p", "--population",
        type=int,
        default=None,
        help="Population size (default: 1000)"
    )
    solve_parser.add_argument(
        "-g", "--generations",
        type=int,
        default=None,
        help="Generation budget, 0 = until solved (default: 1000)"
    )
    solve_parser.add_argument(
        "-s", "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible run"
    )
    solve_parser.add_argument(
        "-c", "--config",
        default=None,
        help="JSON file with evolution settings"
    )
    solve_parser.add_argument(
        "-o", "--output-dir",
        default=None,
        help="Directory for best-solution snapshots (default: output)"
    )
    solve_parser.add_argument(
        "--side",
        type=int,
        default=8,
        help="Grid side length (default: 8)"
    )
    solve_parser.add_argument("-v", "--verbose", action="store_true", help="Report every generation")
    solve_parser.add_argument("--no-snapshots", action="store_true", help="Do not write snapshots")
    solve_parser.add_argument(
        "--independent-seeding",
        action="store_true",
        help="Perturb each initial individual independently from the input"
    )
    solve_parser.add_argument("--save", default=None, help="Write the best arrangement to this file")
    solve_parser.add_argument(
        "-i", "--interactive",
        action="store_true",
        help="Prompt for population size and generations"
    )

    # Score command
    score_parser = subparsers.add_parser("score", help="Count edge mismatches of a puzzle file")
    score_parser.add_argument("input", help="Puzzle file")
    score_parser.add_argument("--side", type=int, default=8, help="Grid side length (default: 8)")

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "solve":
        return run_solve(args)
    elif args.command == "score":
        return run_score(args)

    parser.print_help()
    return 0

