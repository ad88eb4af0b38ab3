"""
Genetic training of perceptron weights.

Key components:
- Candidate: A weight vector and its fitness (sigma)
- GeneticSelector: Population/pool evolution loop
- SelectionHistory: Per-generation sigma statistics
- SelectorConfig: Run parameters with JSON persistence

Example usage:
    from genetic_perceptron import Perceptron, Seed
    from genetic_perceptron.evolution import GeneticSelector
    from genetic_perceptron.datasets import square_lessons

    network = Perceptron([1, 5, 8, 1])
    seed = Seed(1)
    network.noise(1.0, seed)

    with GeneticSelector(network, 20) as selector:
        result = selector.run(network, square_lessons(), iterations=1000, seed=seed)

    print(f"Best sigma: {result.best_sigma:.4f}")
"""

from .genome import Candidate, installed
from .history import GenerationStats, SelectionHistory
from .config import SelectorConfig, MIN_POPULATION, MIN_ITERATIONS
from .selector import GeneticSelector, SelectionResult, evaluate_sigma

__all__ = [
    # Core classes
    'GeneticSelector',
    'SelectionResult',
    'SelectorConfig',
    'SelectionHistory',
    'GenerationStats',
    # Genomes
    'Candidate',
    'installed',
    # Helpers
    'evaluate_sigma',
    'MIN_POPULATION',
    'MIN_ITERATIONS',
]
