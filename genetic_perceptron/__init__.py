"""
Genetic Perceptron

Feedforward sigmoid perceptrons trained by a genetic selector instead of
gradient descent. Randomness comes from a caller-owned, reproducible LCG
seed, so a run is fully determined by its inputs.
"""

from .core import (
    Perceptron,
    Seed,
    next_u32,
    weight_count,
    ErrorKind,
    PerceptronError,
)
from .evolution import GeneticSelector, SelectionResult, evaluate_sigma

__version__ = '0.1.0'

__all__ = [
    'Perceptron',
    'Seed',
    'next_u32',
    'weight_count',
    'ErrorKind',
    'PerceptronError',
    'GeneticSelector',
    'SelectionResult',
    'evaluate_sigma',
]
