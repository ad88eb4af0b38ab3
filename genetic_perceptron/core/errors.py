"""
Error taxonomy for the perceptron core.

Every failure carries an ErrorKind so callers can branch on the exact
precondition that failed. The exception classes group those kinds into the
broad categories (invalid argument, invalid topology, overflow, allocation,
topology mismatch, I/O, file format) and also derive from the closest builtin
exception, so ``except ValueError`` style handling keeps working.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = 'invalid_argument'
    INVALID_LAYER_COUNT = 'invalid_layer_count'
    INVALID_TOPOLOGY = 'invalid_topology'
    INVALID_POPULATION_SIZE = 'invalid_population_size'
    INVALID_ITERATIONS = 'invalid_iterations'
    OVERFLOW = 'overflow'
    LESSON_SIZE_OVERFLOW = 'lesson_size_overflow'
    ALLOCATION_FAILURE = 'allocation_failure'
    TOPOLOGY_ALLOCATION_FAILURE = 'topology_allocation_failure'
    POPULATION_ALLOCATION_FAILURE = 'population_allocation_failure'
    POOL_ALLOCATION_FAILURE = 'pool_allocation_failure'
    WEIGHT_ALLOCATION_FAILURE = 'weight_allocation_failure'
    TOPOLOGY_MISMATCH = 'topology_mismatch'
    IO_FAILURE = 'io_failure'
    FORMAT_INVALID = 'format_invalid'


class PerceptronError(Exception):
    """Base class for all errors raised by the perceptron core."""

    default_kind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.kind = kind or self.default_kind

    def __str__(self) -> str:
        return f"{self.kind.value}: {super().__str__()}"


class InvalidArgumentError(PerceptronError, ValueError):
    """A required input is missing, empty or out of range."""
    default_kind = ErrorKind.INVALID_ARGUMENT


class InvalidTopologyError(PerceptronError, ValueError):
    """Fewer than two layers, or a layer without neurons."""
    default_kind = ErrorKind.INVALID_TOPOLOGY


class InvalidPopulationSizeError(PerceptronError, ValueError):
    default_kind = ErrorKind.INVALID_POPULATION_SIZE


class SizeOverflowError(PerceptronError, OverflowError):
    """A size or count does not fit the native ``size_t`` width."""
    default_kind = ErrorKind.OVERFLOW


class AllocationError(PerceptronError, MemoryError):
    """A buffer could not be allocated."""
    default_kind = ErrorKind.ALLOCATION_FAILURE


class TopologyMismatchError(PerceptronError, ValueError):
    """Selector and network were built for different topologies."""
    default_kind = ErrorKind.TOPOLOGY_MISMATCH


class PersistenceIOError(PerceptronError):
    """Opening, reading or writing a network file failed."""
    default_kind = ErrorKind.IO_FAILURE


class FormatError(PerceptronError, ValueError):
    """A network file holds an invalid topology or weight count."""
    default_kind = ErrorKind.FORMAT_INVALID
