"""Core perceptron framework: RNG, kernels, network and persistence."""

from .errors import (
    ErrorKind,
    PerceptronError,
    InvalidArgumentError,
    InvalidTopologyError,
    InvalidPopulationSizeError,
    SizeOverflowError,
    AllocationError,
    TopologyMismatchError,
    PersistenceIOError,
    FormatError,
)
from .rng import Seed, next_u32
from .kernels import noise, cross_and_mutate, cross_and_mutate_many
from .activations import sigmoid
from .sizing import weight_count, validate_topology
from .network import Perceptron
from .persistence import save_perceptron, load_perceptron

__all__ = [
    'Perceptron',
    'Seed',
    'next_u32',
    'noise',
    'cross_and_mutate',
    'cross_and_mutate_many',
    'sigmoid',
    'weight_count',
    'validate_topology',
    'save_perceptron',
    'load_perceptron',
    'ErrorKind',
    'PerceptronError',
    'InvalidArgumentError',
    'InvalidTopologyError',
    'InvalidPopulationSizeError',
    'SizeOverflowError',
    'AllocationError',
    'TopologyMismatchError',
    'PersistenceIOError',
    'FormatError',
]
