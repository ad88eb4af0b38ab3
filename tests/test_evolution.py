"""
Tests for genetic training: candidates, selector, history and config.

Run with: python -m pytest tests/test_evolution.py -v
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from genetic_perceptron.core.errors import (
    AllocationError,
    ErrorKind,
    InvalidArgumentError,
    InvalidPopulationSizeError,
    SizeOverflowError,
    TopologyMismatchError,
)
from genetic_perceptron.core.network import Perceptron
from genetic_perceptron.core.rng import Seed
from genetic_perceptron.core.sizing import SIZE_MAX
from genetic_perceptron.datasets.lessons import square_lessons
from genetic_perceptron.evolution.genome import Candidate, installed
from genetic_perceptron.evolution.selector import GeneticSelector, evaluate_sigma
from genetic_perceptron.evolution.history import SelectionHistory, GenerationStats
from genetic_perceptron.evolution.config import SelectorConfig


def noised_network(topology, seed_value=1):
    network = Perceptron(topology)
    network.noise(1.0, Seed(seed_value))
    return network


class TestCandidate:
    """Tests for candidate buffers and the install protocol."""

    def test_allocate(self):
        candidate = Candidate.allocate(53)
        assert candidate.weights.shape == (53,)
        assert candidate.sigma == 0.0

    def test_adopt_swaps_buffers(self):
        first, second = Candidate.allocate(4), Candidate.allocate(4)
        a, b = first.weights, second.weights
        second.sigma = 1.5
        first.adopt(second)
        assert first.weights is b and second.weights is a
        assert first.sigma == 1.5

    def test_installed_restores_network(self):
        network = noised_network([1, 3, 1])
        original = network.weights
        candidate = Candidate.allocate(network.weights_count)
        genome = candidate.weights

        with installed(network, candidate):
            assert network.weights is genome
            assert candidate.weights is original

        assert network.weights is original
        assert candidate.weights is genome

    def test_installed_restores_network_on_error(self):
        network = noised_network([1, 3, 1])
        original = network.weights
        candidate = Candidate.allocate(network.weights_count)

        with pytest.raises(RuntimeError):
            with installed(network, candidate):
                raise RuntimeError("evaluation aborted")

        assert network.weights is original


class TestSelectorCreate:

    def test_sizes(self):
        network = noised_network([1, 5, 8, 1])
        selector = GeneticSelector.create(network, 20)
        assert selector.population_count == 20
        assert selector.pool_count == 380
        assert selector.weights_count == 53
        assert selector.topology == (1, 5, 8, 1)
        assert all(c.weights.shape == (53,) for c in selector.population + selector.pool)

    def test_population_too_small(self):
        network = noised_network([1, 5, 8, 1])
        with pytest.raises(InvalidPopulationSizeError) as info:
            GeneticSelector(network, 9)
        assert info.value.kind == ErrorKind.INVALID_POPULATION_SIZE

    def test_deleted_network_rejected(self):
        network = noised_network([1, 2, 1])
        network.delete()
        with pytest.raises(InvalidArgumentError):
            GeneticSelector(network, 10)
        with pytest.raises(InvalidArgumentError):
            GeneticSelector(None, 10)

    def test_pool_count_overflow(self):
        network = noised_network([1, 2, 1])
        with pytest.raises(SizeOverflowError):
            GeneticSelector(network, SIZE_MAX)

    def test_allocation_failure_rolls_back(self, monkeypatch):
        created = []
        original = Candidate.allocate.__func__

        def flaky(cls, count, name='candidate'):
            if len(created) == 25:
                raise AllocationError("out of memory", ErrorKind.WEIGHT_ALLOCATION_FAILURE)
            candidate = original(cls, count, name)
            created.append(candidate)
            return candidate

        monkeypatch.setattr(Candidate, 'allocate', classmethod(flaky))

        network = noised_network([1, 3, 1])
        with pytest.raises(AllocationError) as info:
            GeneticSelector(network, 10)

        assert info.value.kind == ErrorKind.WEIGHT_ALLOCATION_FAILURE
        assert len(created) == 25
        assert all(candidate.weights is None for candidate in created)

    def test_delete(self):
        network = noised_network([1, 2, 1])
        selector = GeneticSelector(network, 10)
        candidates = selector.population + selector.pool
        selector.delete()
        assert all(c.weights is None for c in candidates)
        with pytest.raises(InvalidArgumentError):
            selector.pool_count
        with pytest.raises(InvalidArgumentError):
            selector.delete()


class TestSelectorPreconditions:
    """Failed preconditions must leave the network untouched."""

    @pytest.fixture
    def prepared(self):
        network = noised_network([1, 5, 8, 1])
        selector = GeneticSelector(network, 10)
        return network, selector, network.weights, network.weights.copy()

    def assert_untouched(self, network, buffer, snapshot):
        assert network.weights is buffer
        assert np.array_equal(buffer.view(np.uint32), snapshot.view(np.uint32))

    def test_topology_mismatch(self, prepared):
        network, selector, buffer, snapshot = prepared
        other = noised_network([1, 4, 8, 1])
        with pytest.raises(TopologyMismatchError):
            selector.run(other, square_lessons(), 9, iterations=10, seed=Seed(1))
        shorter = noised_network([1, 5, 1])
        with pytest.raises(TopologyMismatchError) as info:
            selector.run(shorter, square_lessons(), 9, iterations=10, seed=Seed(1))
        assert info.value.kind == ErrorKind.TOPOLOGY_MISMATCH
        self.assert_untouched(network, buffer, snapshot)

    @pytest.mark.parametrize('kwargs, kind', [
        ({'lessons': None}, ErrorKind.INVALID_ARGUMENT),
        ({'lessons_count': 0}, ErrorKind.INVALID_ARGUMENT),
        ({'iterations': 9}, ErrorKind.INVALID_ITERATIONS),
        ({'seed': None}, ErrorKind.INVALID_ARGUMENT),
        ({'seed': 1}, ErrorKind.INVALID_ARGUMENT),
        ({'lessons_count': 10}, ErrorKind.INVALID_ARGUMENT),
    ])
    def test_invalid_arguments(self, prepared, kwargs, kind):
        network, selector, buffer, snapshot = prepared
        call = {'lessons': square_lessons(), 'lessons_count': 9, 'iterations': 10, 'seed': Seed(1)}
        call.update(kwargs)
        seed_before = call['seed'].value if isinstance(call['seed'], Seed) else None

        with pytest.raises(InvalidArgumentError) as info:
            selector.run(network, **call)

        assert info.value.kind == kind
        self.assert_untouched(network, buffer, snapshot)
        if seed_before is not None:
            assert call['seed'].value == seed_before

    def test_lesson_size_overflow(self, prepared):
        network, selector, buffer, snapshot = prepared
        with pytest.raises(SizeOverflowError) as info:
            selector.run(network, square_lessons(), SIZE_MAX, iterations=10, seed=Seed(1))
        assert info.value.kind == ErrorKind.LESSON_SIZE_OVERFLOW
        self.assert_untouched(network, buffer, snapshot)

    def test_deleted_selector(self, prepared):
        network, selector, buffer, snapshot = prepared
        selector.delete()
        with pytest.raises(InvalidArgumentError):
            selector.run(network, square_lessons(), 9, iterations=10, seed=Seed(1))
        self.assert_untouched(network, buffer, snapshot)


class TestSelectorRun:

    def test_run_is_deterministic(self):
        results = []
        for _ in range(2):
            network = noised_network([1, 3, 1], seed_value=5)
            seed = Seed(5)
            with GeneticSelector(network, 10) as selector:
                result = selector.run(network, square_lessons(), 9, iterations=10, seed=seed)
            results.append((network.weights.copy(), seed.value, result.best_sigma))

        (w1, s1, b1), (w2, s2, b2) = results
        assert np.array_equal(w1.view(np.uint32), w2.view(np.uint32))
        assert s1 == s2
        assert b1 == b2

    def test_network_holds_best_genome(self):
        network = noised_network([1, 3, 1])
        lessons = square_lessons()
        with GeneticSelector(network, 10) as selector:
            result = selector.run(network, lessons, iterations=15, seed=Seed(2))
            population = selector.population

        assert result.generations == 15
        assert len(result.history) == 15
        sigmas = [c.sigma for c in population]
        assert sigmas == sorted(sigmas)
        assert evaluate_sigma(network, lessons) == pytest.approx(result.best_sigma, rel=1e-5)

    def test_buffers_are_never_duplicated(self):
        network = noised_network([1, 3, 1])
        selector = GeneticSelector(network, 10)
        selector.run(network, square_lessons(), 9, iterations=10, seed=Seed(3))

        buffers = [network.weights] + [c.weights for c in selector.population + selector.pool]
        assert len({id(b) for b in buffers}) == len(buffers)
        assert len(buffers) == 1 + 10 + 90

    def test_progress_callback(self):
        network = noised_network([1, 2, 1])
        calls = []
        with GeneticSelector(network, 10) as selector:
            selector.run(
                network, square_lessons(), 9, iterations=12, seed=Seed(1),
                progress_callback=lambda gen, total, best: calls.append((gen, total, best)),
            )
        assert [c[0] for c in calls] == list(range(1, 13))
        assert all(c[1] == 12 for c in calls)

    def test_callback_error_leaves_best_genome_installed(self):
        network = noised_network([1, 5, 8, 1])
        lessons = square_lessons()
        selector = GeneticSelector(network, 10)
        scratch = selector.population[0].weights
        seen = []

        def stop_at_second(generation, total, best):
            seen.append(best)
            if generation == 2:
                raise RuntimeError("stop requested")

        with pytest.raises(RuntimeError):
            selector.run(
                network, lessons, 9, iterations=10, seed=Seed(4),
                progress_callback=stop_at_second,
            )

        assert network.weights is not scratch
        assert np.all(np.isfinite(network.weights))
        assert evaluate_sigma(network, lessons) == pytest.approx(seen[-1], rel=1e-5)

        buffers = [network.weights] + [c.weights for c in selector.population + selector.pool]
        assert len({id(b) for b in buffers}) == 1 + 10 + 90
        selector.delete()

    def test_keyboard_interrupt_leaves_genome_installed(self):
        network = noised_network([1, 5, 8, 1])
        selector = GeneticSelector(network, 10)
        scratch = selector.population[0].weights

        def interrupt(generation, total, best):
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            selector.run(
                network, square_lessons(), 9, iterations=10, seed=Seed(4),
                progress_callback=interrupt,
            )
        assert network.weights is not scratch
        assert np.all(np.isfinite(network.weights))
        selector.delete()

    def test_error_before_first_generation_restores_original(self, monkeypatch):
        network = noised_network([1, 3, 1])
        original = network.weights
        saved = original.copy()
        selector = GeneticSelector(network, 10)

        def fail(mut_force, seed):
            raise MemoryError("no room for the pool")

        monkeypatch.setattr(selector, '_breed', fail)
        with pytest.raises(MemoryError):
            selector.run(network, square_lessons(), 9, iterations=10, seed=Seed(1))

        assert network.weights is original
        assert np.array_equal(network.weights, saved)
        selector.delete()

    def test_initial_evaluation_overwrites_signals(self, monkeypatch):
        network = noised_network([1, 3, 1])
        network.get_inputs()[0] = 0.123
        selector = GeneticSelector(network, 10)

        def fail(mut_force, seed):
            raise RuntimeError("stop before breeding")

        monkeypatch.setattr(selector, '_breed', fail)
        with pytest.raises(RuntimeError):
            selector.run(network, square_lessons(), 9, iterations=10, seed=Seed(1))

        # Signals hold the last lesson, the state of the initial evaluation
        assert network.get_inputs()[0] == np.float32(0.9)
        outputs = network.get_outputs().copy()
        network.execute()
        assert np.allclose(network.get_outputs(), outputs, rtol=1e-6)
        selector.delete()

    def test_square_end_to_end(self):
        """1-5-8-1, population 20, seed 1, 1000 generations on the square lessons."""
        seed = Seed(1)
        network = Perceptron([1, 5, 8, 1])
        network.noise(1.0, seed)
        lessons = square_lessons()
        untrained = evaluate_sigma(network, lessons, 9)

        with GeneticSelector(network, 20) as selector:
            assert selector.population_count == 20
            assert selector.pool_count == 380
            result = selector.run(
                network, lessons, 9,
                iterations=1000, noise_force=1.0, mut_force=1.0, seed=seed,
            )

        assert network.weights_count == 53
        assert result.initial_sigma == pytest.approx(untrained)
        assert result.best_sigma < untrained
        assert evaluate_sigma(network, lessons, 9) < untrained
        assert np.all(np.isfinite(network.weights))


class TestEvaluateSigma:

    def test_known_error(self):
        network = Perceptron([1, 1])
        network.weights[:] = [0.0]
        # Output is always 0.5
        lessons = np.array([0.3, 0.5, 0.1, 0.25, 0.9, 1.0], dtype=np.float32)
        assert evaluate_sigma(network, lessons) == pytest.approx(0.75)
        assert evaluate_sigma(network, lessons, 1) == pytest.approx(0.0)

    def test_rejects_empty(self):
        network = Perceptron([1, 1])
        with pytest.raises(InvalidArgumentError):
            evaluate_sigma(network, np.empty(0, dtype=np.float32))


class TestHistory:

    def test_record_generation(self):
        history = SelectionHistory()
        stats = history.record_generation(1, [0.5, 1.0, 1.5])
        assert isinstance(stats, GenerationStats)
        assert stats.best_sigma == 0.5
        assert stats.mean_sigma == pytest.approx(1.0)
        assert stats.worst_sigma == 1.5
        assert history.sigma_trajectory == [0.5]

    def test_serialization(self, tmp_path):
        history = SelectionHistory()
        for generation, best in enumerate([3.0, 2.0, 1.5], start=1):
            history.record_generation(generation, [best, best + 1])

        path = tmp_path / 'history.json'
        history.save(path)
        restored = SelectionHistory.load(path)

        assert len(restored) == 3
        assert restored.sigma_trajectory == [3.0, 2.0, 1.5]
        assert restored.generations[1].worst_sigma == 3.0

    def test_improvement(self):
        history = SelectionHistory()
        assert history.get_improvement() == 0.0
        for generation, best in enumerate([5.0, 4.0, 3.5, 3.5], start=1):
            history.record_generation(generation, [best])
        assert history.get_improvement(window=2) == pytest.approx(0.5)
        assert history.get_improvement(window=10) == pytest.approx(1.5)


class TestSelectorConfig:

    def test_defaults(self):
        config = SelectorConfig()
        assert config.topology == [1, 5, 8, 1]
        assert config.population_count == 20
        assert config.iterations == 1000
        assert config.architecture_string == '1-5-8-1'

    def test_validation(self):
        with pytest.raises(ValueError):
            SelectorConfig(population_count=9)
        with pytest.raises(ValueError):
            SelectorConfig(iterations=5)
        with pytest.raises(ValueError):
            SelectorConfig(topology=[4])
        with pytest.raises(ValueError):
            SelectorConfig(mut_force=-1.0)

    def test_save_load(self, tmp_path):
        config = SelectorConfig(topology=[2, 4, 1], population_count=12, seed=7)
        path = tmp_path / 'config.json'
        config.save(path)
        assert SelectorConfig.load(path) == config
