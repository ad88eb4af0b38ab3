"""
Genetic selector: trains a perceptron's weights by evolution.

Runs a fixed number of generations:
1. Seed the population (the network's own weights plus noise genomes)
2. Cross every ordered pair of distinct population members into the pool
3. Evaluate every pool candidate on the lessons
4. Keep the fittest pool candidates as the next population
5. Install the best genome in the network

Weight buffers are never copied between the network and the candidates:
they change owner through WeightSlot exchanges only, and every evaluation
hands the network's buffer back before the next one starts.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple
from numbers import Integral
import time

import numpy as np

from ..core.errors import (
    AllocationError,
    ErrorKind,
    InvalidArgumentError,
    InvalidPopulationSizeError,
    PerceptronError,
    TopologyMismatchError,
)
from ..core.kernels import cross_and_mutate, noise
from ..core.network import Perceptron
from ..core.rng import Seed
from ..core.sizing import FLOAT_BYTES, FLOAT_DTYPE, checked_mul
from .config import MIN_ITERATIONS, MIN_POPULATION
from .genome import Candidate, installed
from .history import SelectionHistory


ProgressCallback = Callable[[int, int, float], None]


@dataclass
class SelectionResult:
    """Results from a selection run."""
    generations: int
    best_sigma: float
    initial_sigma: float
    history: SelectionHistory
    runtime_seconds: float

    @property
    def improvement(self) -> float:
        return self.initial_sigma - self.best_sigma

    def summary(self) -> str:
        """Generate summary string."""
        lines = [
            f"Generations: {self.generations}",
            f"Initial sigma: {self.initial_sigma:.6f}",
            f"Best sigma: {self.best_sigma:.6f}",
            f"Runtime: {self.runtime_seconds:.1f}s",
        ]
        return '\n'.join(lines)


def _lesson_arrays(
    topology: Tuple[int, ...],
    lessons,
    lessons_count: Optional[int],
) -> Tuple[np.ndarray, np.ndarray]:
    """Validate a flat lesson buffer and split it into input and target rows."""
    if lessons is None:
        raise InvalidArgumentError("lessons are required")
    flat = np.asarray(lessons, dtype=FLOAT_DTYPE).reshape(-1)
    in_width, out_width = topology[0], topology[-1]
    width = in_width + out_width

    if lessons_count is None:
        lessons_count = flat.size // width
    elif isinstance(lessons_count, bool) or not isinstance(lessons_count, Integral):
        raise InvalidArgumentError(f"lessons_count must be an integer, got {lessons_count!r}")
    lessons_count = int(lessons_count)
    if lessons_count <= 0:
        raise InvalidArgumentError("at least one lesson is required")

    return _split_checked(flat, lessons_count, in_width, width)


def _split_checked(
    flat: np.ndarray, lessons_count: int, in_width: int, width: int
) -> Tuple[np.ndarray, np.ndarray]:
    values = checked_mul(lessons_count, width, "lesson values", ErrorKind.LESSON_SIZE_OVERFLOW)
    checked_mul(values, FLOAT_BYTES, "lesson bytes", ErrorKind.LESSON_SIZE_OVERFLOW)
    if flat.size < values:
        raise InvalidArgumentError(
            f"{lessons_count} lessons need {values} values, buffer holds {flat.size}"
        )
    rows = flat[:values].reshape(lessons_count, width)
    return rows[:, :in_width], rows[:, in_width:]


def _total_error(outputs: np.ndarray, targets: np.ndarray) -> float:
    return float(np.abs(targets - outputs).sum(dtype=np.float32))


def _sigma_of(network: Perceptron, inputs: np.ndarray, targets: np.ndarray) -> float:
    return _total_error(network.execute_lessons(inputs), targets)


def evaluate_sigma(network: Perceptron, lessons, lessons_count: Optional[int] = None) -> float:
    """
    Total absolute error of the network's current weights over a lesson set.

    Args:
        network: Network to evaluate (its inputs/outputs end on the last lesson)
        lessons: Flat lesson buffer, each lesson = inputs followed by outputs
        lessons_count: Number of lessons to use (all complete lessons if None)

    Returns:
        Sum over lessons and output neurons of |expected - actual|
    """
    if network is None:
        raise InvalidArgumentError("a perceptron is required")
    inputs, targets = _lesson_arrays(network.topology, lessons, lessons_count)
    return _sigma_of(network, inputs, targets)


class GeneticSelector:
    """
    Population-based trainer for one network topology.

    Holds P population candidates and P*P - P pool candidates, each owning a
    weight buffer sized for the reference network.

    Attributes:
        topology: Topology copied from the reference network
        population_count: P
        pool_count: P*P - P, one slot per ordered pair of distinct members
    """

    def __init__(self, network: Perceptron, population_count: int):
        """
        Allocate the population and pool for ``network``'s topology.

        Raises:
            InvalidArgumentError: network missing or deleted
            InvalidPopulationSizeError: population_count < 10
            SizeOverflowError: pool count or buffer sizes exceed size_t
            AllocationError: topology, population, pool or weight allocation
                failed (nothing stays allocated)
        """
        if network is None or network.is_deleted:
            raise InvalidArgumentError("a live reference perceptron is required")
        if isinstance(population_count, bool) or not isinstance(population_count, Integral):
            raise InvalidArgumentError(
                f"population_count must be an integer, got {population_count!r}"
            )
        population_count = int(population_count)
        if population_count < MIN_POPULATION:
            raise InvalidPopulationSizeError(
                f"population_count must be at least {MIN_POPULATION}, got {population_count}"
            )

        pool_count = checked_mul(population_count, population_count, "pool count") - population_count
        weights_count = network.weights_count
        checked_mul(weights_count, FLOAT_BYTES, "candidate weight bytes")

        self._deleted = True
        self._topology = _copy_sequence(network.topology, ErrorKind.TOPOLOGY_ALLOCATION_FAILURE)
        self._weights_count = weights_count
        self._population: List[Candidate] = []
        self._pool: List[Candidate] = []

        population = _candidate_list(population_count, ErrorKind.POPULATION_ALLOCATION_FAILURE)
        pool = _candidate_list(pool_count, ErrorKind.POOL_ALLOCATION_FAILURE)
        allocated: List[Candidate] = []
        try:
            for slots, name in ((population, 'population'), (pool, 'pool')):
                for index in range(len(slots)):
                    candidate = Candidate.allocate(weights_count, name=f"{name}[{index}]")
                    allocated.append(candidate)
                    slots[index] = candidate
        except PerceptronError:
            for candidate in allocated:
                candidate.release()
            raise

        self._population = population
        self._pool = pool
        # Row-major enumeration of ordered pairs, skipping p1 == p2
        self._pairs = [
            (first, second)
            for first in range(population_count)
            for second in range(population_count)
            if first != second
        ]
        self._deleted = False

    @classmethod
    def create(cls, network: Perceptron, population_count: int) -> 'GeneticSelector':
        return cls(network, population_count)

    # ------------------------------------------------------------------
    # Accessors

    @property
    def topology(self) -> Tuple[int, ...]:
        self._check_alive()
        return self._topology

    @property
    def population_count(self) -> int:
        self._check_alive()
        return len(self._population)

    @property
    def pool_count(self) -> int:
        self._check_alive()
        return len(self._pool)

    @property
    def weights_count(self) -> int:
        self._check_alive()
        return self._weights_count

    @property
    def population(self) -> Tuple[Candidate, ...]:
        self._check_alive()
        return tuple(self._population)

    @property
    def pool(self) -> Tuple[Candidate, ...]:
        self._check_alive()
        return tuple(self._pool)

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    # ------------------------------------------------------------------
    # Training

    def run(
        self,
        network: Perceptron,
        lessons,
        lessons_count: Optional[int] = None,
        iterations: int = 1000,
        noise_force: float = 1.0,
        mut_force: float = 1.0,
        seed: Optional[Seed] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SelectionResult:
        """
        Evolve ``network``'s weights for ``iterations`` generations.

        The network's current weights join the initial population as member 0;
        the other members are noise in [-noise_force, +noise_force]. On return
        the network holds the best genome found. If any precondition fails the
        network is left untouched.

        Before seeding, every lesson is run through the network to measure
        ``initial_sigma``, so the network's input and output vectors are
        overwritten at once and hold the last lesson afterwards.

        If training stops early, for example on an exception raised by
        ``progress_callback`` or a KeyboardInterrupt, the network still gets a real genome
        back before the exception propagates: its original weights when no
        generation finished, the best genome so far otherwise.

        Args:
            network: Network to train, same topology as the selector
            lessons: Flat lesson buffer, each lesson = inputs followed by outputs
            lessons_count: Number of lessons (all complete lessons if None)
            iterations: Number of generations, at least 10
            noise_force: Magnitude bound of the initial noise genomes
            mut_force: Magnitude bound of a crossover mutation
            seed: Generator state, advanced in place
            progress_callback: Optional callback(generation, iterations, best_sigma)

        Returns:
            SelectionResult with the best sigma and per-generation history
        """
        self._check_alive()
        if network is None or network.is_deleted:
            raise InvalidArgumentError("a live perceptron is required")
        self._check_topology(network.topology)

        inputs, targets = self._checked_lessons(lessons, lessons_count, iterations, seed)
        start_time = time.time()

        initial_sigma = _sigma_of(network, inputs, targets)

        history = SelectionHistory()

        # Seeding: member 0 takes the network's weights
        network.weight_slot.swap(self._population[0].slot)
        try:
            self._population[0].sigma = initial_sigma
            for candidate in self._population[1:]:
                noise(candidate.weights, noise_force, seed)
                candidate.sigma = 0.0

            for generation in range(1, iterations + 1):
                self._breed(mut_force, seed)
                self._evaluate(network, inputs, targets)
                self._select()

                stats = history.record_generation(
                    generation, [candidate.sigma for candidate in self._population]
                )
                if progress_callback:
                    progress_callback(generation, iterations, stats.best_sigma)
        finally:
            # Member 0 holds the original weights before the first selection
            # and the best genome after it
            network.weight_slot.swap(self._population[0].slot)

        return SelectionResult(
            generations=iterations,
            best_sigma=self._population[0].sigma,
            initial_sigma=initial_sigma,
            history=history,
            runtime_seconds=time.time() - start_time,
        )

    def _check_topology(self, topology: Sequence[int]) -> None:
        if len(topology) != len(self._topology):
            raise TopologyMismatchError(
                f"selector has {len(self._topology)} layers, network has {len(topology)}"
            )
        for index, (ours, theirs) in enumerate(zip(self._topology, topology)):
            if ours != theirs:
                raise TopologyMismatchError(
                    f"layer {index}: selector has {ours} neurons, network has {theirs}"
                )

    def _checked_lessons(
        self, lessons, lessons_count, iterations, seed
    ) -> Tuple[np.ndarray, np.ndarray]:
        if lessons is None:
            raise InvalidArgumentError("lessons are required")
        if lessons_count is not None:
            if isinstance(lessons_count, bool) or not isinstance(lessons_count, Integral):
                raise InvalidArgumentError(
                    f"lessons_count must be an integer, got {lessons_count!r}"
                )
            if lessons_count <= 0:
                raise InvalidArgumentError("at least one lesson is required")
        if isinstance(iterations, bool) or not isinstance(iterations, Integral):
            raise InvalidArgumentError(f"iterations must be an integer, got {iterations!r}")
        if iterations < MIN_ITERATIONS:
            raise InvalidArgumentError(
                f"at least {MIN_ITERATIONS} iterations are required, got {iterations}",
                ErrorKind.INVALID_ITERATIONS,
            )
        if not isinstance(seed, Seed):
            raise InvalidArgumentError("a Seed is required")
        return _lesson_arrays(self._topology, lessons, lessons_count)

    def _breed(self, mut_force: float, seed: Seed) -> None:
        """Cross every ordered pair of distinct members into the pool."""
        population = self._population
        for candidate, (first, second) in zip(self._pool, self._pairs):
            cross_and_mutate(
                population[first].weights, population[second].weights,
                candidate.weights, mut_force, seed,
            )

    def _evaluate(self, network: Perceptron, inputs: np.ndarray, targets: np.ndarray) -> None:
        for candidate in self._pool:
            candidate.sigma = 0.0
            with installed(network, candidate):
                outputs = network.execute_lessons(inputs)
            candidate.sigma = _total_error(outputs, targets)

    def _select(self) -> None:
        """Sort the pool by sigma and move the fittest genomes into the population."""
        sigmas = np.array([candidate.sigma for candidate in self._pool], dtype=np.float64)
        order = np.argsort(sigmas, kind='stable')
        self._pool = [self._pool[index] for index in order]
        for member, fittest in zip(self._population, self._pool):
            member.adopt(fittest)

    # ------------------------------------------------------------------
    # Lifecycle

    def delete(self) -> None:
        """Release every candidate buffer. The selector cannot be used afterwards."""
        self._check_alive()
        for candidate in self._population + self._pool:
            candidate.release()
        self._population = []
        self._pool = []
        self._deleted = True

    def _check_alive(self) -> None:
        if self._deleted:
            raise InvalidArgumentError("genetic selector has been deleted")

    def __enter__(self) -> 'GeneticSelector':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._deleted:
            self.delete()

    def __repr__(self) -> str:
        if self._deleted:
            return "GeneticSelector(<deleted>)"
        arch = '-'.join(str(size) for size in self._topology)
        return (
            f"GeneticSelector(topology={arch}, population={len(self._population)}, "
            f"pool={len(self._pool)})"
        )


def _copy_sequence(values: Sequence[int], kind: ErrorKind) -> Tuple[int, ...]:
    try:
        return tuple(values)
    except MemoryError as exc:
        raise AllocationError("cannot copy topology", kind) from exc


def _candidate_list(count: int, kind: ErrorKind) -> List[Optional[Candidate]]:
    try:
        return [None] * count
    except (MemoryError, OverflowError) as exc:
        raise AllocationError(f"cannot allocate {count} candidate slots", kind) from exc
