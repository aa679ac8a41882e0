"""Tests for the evolutionary algorithm driver."""

import json

import numpy as np
import pytest

from evopuzzle.evolution.algorithm import (
    EvolutionaryAlgorithm,
    EvolutionConfig,
    StagnationMonitor,
    stagnation_threshold,
)
from evopuzzle.evolution.duplicates import DuplicateTracker, InvariantViolation
from evopuzzle.evolution.fitness import FitnessFunction, count_edge_mismatch
from evopuzzle.evolution.operators import CrossoverOperator, MutationOperator, OrderCrossover
from evopuzzle.evolution.population import SeedingMode
from evopuzzle.export.snapshot import OutputWriteError, SnapshotWriter


class ConstantFitness(FitnessFunction):
    """Every individual scores the same, so the best never improves."""

    def __init__(self, value):
        self.value = value

    def evaluate(self, individual):
        return self.value


class ExplodingCrossover(CrossoverOperator):
    def apply(self, offspring1, offspring2, point1, point2):
        raise AssertionError("crossover should not run")


class ExplodingMutation(MutationOperator):
    def mutate(self, individual, rng, mutation_rate):
        raise AssertionError("mutation should not run")


class CollapsingCrossover(CrossoverOperator):
    """Fills the first offspring with copies of its first tile."""

    def apply(self, offspring1, offspring2, point1, point2):
        offspring1[:] = offspring1[0]


class InvalidFavouringFitness(FitnessFunction):
    """Scores arrangements that lost original pieces as perfect."""

    def __init__(self, tracker):
        self.tracker = tracker

    def evaluate(self, individual):
        return 5 if self.tracker.preserves_tiles(individual) else 0


class FailingWriter(SnapshotWriter):
    def save(self, puzzle, mismatch, when=None):
        raise OutputWriteError("disk full")


class TestEvolutionConfig:
    """Tests for EvolutionConfig."""

    def test_defaults(self):
        config = EvolutionConfig()
        assert config.population_size == 1000
        assert config.elite_ratio == 0.25
        assert config.max_mutation_rate == 32
        assert config.min_mutation_rate == 3
        assert config.order_crossover_threshold == 10
        assert config.save_threshold == 25
        assert config.seeding is SeedingMode.CUMULATIVE
        assert config.exploration_crossover == "none"

    @pytest.mark.parametrize("kwargs", [
        {"population_size": 0},
        {"generations": -1},
        {"elite_ratio": 0.0},
        {"elite_ratio": 0.75},
        {"min_mutation_rate": 40},
        {"exploration_crossover": "uniform"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            EvolutionConfig(**kwargs)

    def test_seeding_from_string(self):
        assert EvolutionConfig(seeding="independent").seeding is SeedingMode.INDEPENDENT

    def test_from_dict_ignores_unknown_keys(self):
        config = EvolutionConfig.from_dict({"population_size": 50, "colour": "blue"})
        assert config.population_size == 50

    def test_from_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"generations": 7, "seeding": "independent", "seed": 3}))
        config = EvolutionConfig.from_json(path)
        assert config.generations == 7
        assert config.seeding is SeedingMode.INDEPENDENT
        assert config.seed == 3

    def test_to_dict_round_trip(self):
        config = EvolutionConfig(population_size=20, seeding=SeedingMode.INDEPENDENT)
        data = config.to_dict()
        assert data["seeding"] == "independent"
        assert EvolutionConfig.from_dict(data) == config


class TestStagnation:
    """Tests for stagnation_threshold and StagnationMonitor."""

    def test_threshold(self):
        assert stagnation_threshold(10) == 100000
        assert stagnation_threshold(1000) == 1000
        assert stagnation_threshold(5000) == 10

    def test_tiers_without_improvement(self):
        monitor = StagnationMonitor(1000)
        due = [n for n in range(1, 101001) if monitor.record(False)]
        assert due == [1000, 10000, 100000, 101000]

    def test_improvement_restarts_count(self):
        monitor = StagnationMonitor(10)
        for _ in range(9):
            assert not monitor.record(False)
        assert not monitor.record(True)
        due = [n for n in range(1, 11) if monitor.record(False)]
        assert due == [9]


class TestEvolutionaryAlgorithm:
    """Tests for EvolutionaryAlgorithm."""

    def test_solved_input_stops_at_first_generation(self, toy_puzzle):
        config = EvolutionConfig(population_size=10, generations=50, save_snapshots=False)
        algorithm = EvolutionaryAlgorithm(
            toy_puzzle,
            config,
            mutation_operator=ExplodingMutation(),
            exploration_operator=ExplodingCrossover(),
            order_operator=ExplodingCrossover(),
        )
        result = algorithm.run()
        assert result.solved
        assert result.generations == 1
        assert result.best_mismatch == 0
        assert result.best_puzzle == toy_puzzle
        assert result.history == []

    def test_search_improves_shuffled_puzzle(self, shuffled_toy_puzzle):
        start = count_edge_mismatch(shuffled_toy_puzzle.tiles, side=4)
        config = EvolutionConfig(population_size=100, generations=200, seed=0, save_snapshots=False)
        result = EvolutionaryAlgorithm(shuffled_toy_puzzle, config).run()

        assert result.best_mismatch <= start
        assert count_edge_mismatch(result.best_puzzle.tiles, side=4) == result.best_mismatch
        so_far = [entry["min_mismatch_so_far"] for entry in result.history]
        assert so_far == sorted(so_far, reverse=True)
        if not result.solved:
            assert result.generations == 200

    def test_same_seed_same_run(self, shuffled_toy_puzzle):
        config = EvolutionConfig(population_size=40, generations=30, seed=5, save_snapshots=False)
        first = EvolutionaryAlgorithm(shuffled_toy_puzzle, config).run()
        second = EvolutionaryAlgorithm(shuffled_toy_puzzle, config).run()
        assert first.history == second.history
        assert first.best_puzzle == second.best_puzzle

    def test_generation_budget(self, solved_puzzle):
        config = EvolutionConfig(population_size=10, generations=5, save_snapshots=False)
        algorithm = EvolutionaryAlgorithm(solved_puzzle, config, fitness_function=ConstantFitness(50))
        seen = []
        algorithm.on_generation = lambda generation, ranking: seen.append(generation)
        result = algorithm.run()
        assert not result.solved
        assert result.generations == 5
        assert len(result.history) == 5
        assert seen == [1, 2, 3, 4, 5]

    def test_repopulates_on_stagnation_tiers(self, solved_puzzle):
        config = EvolutionConfig(
            population_size=10, generations=1000, stagnation_base=10, seed=0, save_snapshots=False
        )
        algorithm = EvolutionaryAlgorithm(solved_puzzle, config, fitness_function=ConstantFitness(50))
        assert algorithm.stagnation.threshold == 10
        new_bests = []
        algorithm.on_new_best = lambda puzzle, mismatch: new_bests.append(mismatch)

        result = algorithm.run()
        repopulated = [entry["generation"] for entry in result.history if entry["repopulated"]]
        assert repopulated == [10, 100, 1000]
        assert result.repopulations == 3
        assert new_bests == [50]

    def test_mutation_rate_follows_best(self, solved_puzzle):
        config = EvolutionConfig(population_size=10, generations=2, save_snapshots=False)
        algorithm = EvolutionaryAlgorithm(solved_puzzle, config, fitness_function=ConstantFitness(56))
        algorithm.run()
        assert algorithm.mutation_rate == 16
        assert len(algorithm.mutation_rates) == 113

    def test_crossover_switches_at_threshold(self, toy_puzzle):
        algorithm = EvolutionaryAlgorithm(toy_puzzle, EvolutionConfig(save_snapshots=False))
        assert algorithm.select_crossover(11) is algorithm.exploration_operator
        assert algorithm.select_crossover(10) is algorithm.order_operator
        assert isinstance(algorithm.order_operator, OrderCrossover)

    def test_order_crossover_keeps_every_individual_valid(self, shuffled_toy_puzzle):
        config = EvolutionConfig(
            population_size=30,
            generations=40,
            order_crossover_threshold=24,
            exploration_crossover="none",
            check_invariants=True,
            seed=2,
            save_snapshots=False,
        )
        algorithm = EvolutionaryAlgorithm(shuffled_toy_puzzle, config)
        result = algorithm.run()
        tracker = DuplicateTracker(shuffled_toy_puzzle)
        assert result.preserves_tiles
        assert all(tracker.preserves_tiles(individual) for individual in algorithm.population)

    def test_default_run_keeps_every_individual_valid(self, solved_puzzle, shuffle):
        puzzle = shuffle(solved_puzzle, seed=6)
        config = EvolutionConfig(population_size=40, generations=150, seed=0, save_snapshots=False)
        algorithm = EvolutionaryAlgorithm(puzzle, config)
        result = algorithm.run()
        tracker = DuplicateTracker(puzzle)
        assert result.preserves_tiles
        assert tracker.preserves_tiles(result.best_puzzle.tiles)
        assert all(tracker.preserves_tiles(individual) for individual in algorithm.population)

    def test_two_point_exploration_reports_valid_best(self, solved_puzzle, shuffle):
        puzzle = shuffle(solved_puzzle, seed=7)
        config = EvolutionConfig(
            population_size=40,
            generations=150,
            exploration_crossover="two_point",
            seed=0,
            save_snapshots=False,
        )
        result = EvolutionaryAlgorithm(puzzle, config).run()
        assert result.preserves_tiles
        assert count_edge_mismatch(result.best_puzzle.tiles) == result.best_mismatch

    def test_invalid_individual_never_becomes_best(self, solved_puzzle):
        config = EvolutionConfig(population_size=10, generations=5, seed=0, save_snapshots=False)
        algorithm = EvolutionaryAlgorithm(
            solved_puzzle,
            config,
            fitness_function=InvalidFavouringFitness(DuplicateTracker(solved_puzzle)),
            exploration_operator=CollapsingCrossover(),
            order_operator=CollapsingCrossover(),
        )
        result = algorithm.run()
        assert not result.solved
        assert result.best_mismatch == 5
        assert result.preserves_tiles
        assert not all(
            algorithm.tracker.preserves_tiles(individual) for individual in algorithm.population
        )

    def test_check_invariants_catches_invalid_replacement(self, shuffled_toy_puzzle):
        config = EvolutionConfig(
            population_size=10, generations=3, check_invariants=True, seed=0, save_snapshots=False
        )
        algorithm = EvolutionaryAlgorithm(
            shuffled_toy_puzzle,
            config,
            exploration_operator=CollapsingCrossover(),
            order_operator=CollapsingCrossover(),
        )
        with pytest.raises(InvariantViolation):
            algorithm.run()

    def test_best_does_not_alias_population(self, shuffled_toy_puzzle):
        config = EvolutionConfig(population_size=20, generations=3, seed=1, save_snapshots=False)
        algorithm = EvolutionaryAlgorithm(shuffled_toy_puzzle, config)
        result = algorithm.run()
        kept = result.best_puzzle.tiles.copy()
        algorithm.population[...] = 0
        assert np.array_equal(result.best_puzzle.tiles, kept)
        assert np.array_equal(algorithm.best_puzzle.tiles, kept)

    def test_snapshots_written(self, shuffled_toy_puzzle, tmp_path):
        config = EvolutionConfig(
            population_size=20, generations=5, seed=1, output_dir=str(tmp_path)
        )
        result = EvolutionaryAlgorithm(shuffled_toy_puzzle, config).run()
        assert result.snapshots
        for path in result.snapshots:
            assert path.exists()
            assert path.parent == tmp_path
        assert f"solution-{result.best_mismatch}-" in result.snapshots[-1].name

    def test_snapshot_failure_is_reported(self, shuffled_toy_puzzle, capsys):
        config = EvolutionConfig(population_size=10, generations=2, seed=1)
        algorithm = EvolutionaryAlgorithm(
            shuffled_toy_puzzle, config, snapshot_writer=FailingWriter()
        )
        result = algorithm.run()
        assert result.snapshots == []
        assert "Warning: could not save snapshot" in capsys.readouterr().out

    def test_verbose_reports_generations(self, solved_puzzle, capsys):
        config = EvolutionConfig(population_size=10, generations=2, verbose=True, save_snapshots=False)
        EvolutionaryAlgorithm(solved_puzzle, config, fitness_function=ConstantFitness(50)).run()
        out = capsys.readouterr().out
        assert "Puzzle with 50 edge mismatches:" in out
        assert "GEN 2  edge mismatch: 50" in out

    def test_get_statistics(self, toy_puzzle):
        config = EvolutionConfig(population_size=10, generations=1, save_snapshots=False)
        algorithm = EvolutionaryAlgorithm(toy_puzzle, config)
        algorithm.run()
        stats = algorithm.get_statistics()
        assert stats["generation"] == 1
        assert stats["population_size"] == 10
        assert stats["elite_count"] == 4
        assert stats["best_mismatch"] == 0
