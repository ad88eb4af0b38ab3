"""
Run configuration for training a perceptron with the genetic selector.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any
from pathlib import Path
import json

from ..core.sizing import validate_topology

MIN_POPULATION = 10
MIN_ITERATIONS = 10


@dataclass
class SelectorConfig:
    """Configuration for a selection run."""
    topology: List[int] = field(default_factory=lambda: [1, 5, 8, 1])

    # Population parameters
    population_count: int = 20

    # Run parameters
    iterations: int = 1000
    noise_force: float = 1.0
    mut_force: float = 1.0
    seed: int = 1

    def __post_init__(self):
        """Validate configuration."""
        self.topology = list(validate_topology(self.topology))
        if self.population_count < MIN_POPULATION:
            raise ValueError(
                f"population_count must be at least {MIN_POPULATION}, got {self.population_count}"
            )
        if self.iterations < MIN_ITERATIONS:
            raise ValueError(
                f"iterations must be at least {MIN_ITERATIONS}, got {self.iterations}"
            )
        if self.noise_force < 0 or self.mut_force < 0:
            raise ValueError("noise_force and mut_force must be non-negative")
        if not 0 <= self.seed < 2 ** 64:
            raise ValueError(f"seed must fit 64 bits, got {self.seed}")

    @property
    def architecture_string(self) -> str:
        return '-'.join(str(size) for size in self.topology)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'topology': list(self.topology),
            'population_count': self.population_count,
            'iterations': self.iterations,
            'noise_force': self.noise_force,
            'mut_force': self.mut_force,
            'seed': self.seed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SelectorConfig':
        return cls(**data)

    def save(self, path: Path) -> None:
        """Save configuration to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path) -> 'SelectorConfig':
        with open(path, 'r') as f:
            return cls.from_dict(json.load(f))
