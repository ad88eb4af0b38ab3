"""
Per-generation records of a selection run.

Enables:
- Plotting the sigma trajectory of a run
- Saving a run's history next to the trained network
- Checking whether training has plateaued
"""

from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Sequence
from pathlib import Path
import json

import numpy as np


@dataclass
class GenerationStats:
    """Sigma statistics of the population selected in one generation."""
    generation: int
    best_sigma: float
    mean_sigma: float
    worst_sigma: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SelectionHistory:
    """
    Tracks selection progress over generations.

    Records per-generation statistics for analysis and visualization.
    """

    def __init__(self):
        self.generations: List[GenerationStats] = []
        self.sigma_trajectory: List[float] = []

    def record_generation(self, generation: int, sigmas: Sequence[float]) -> GenerationStats:
        """
        Record statistics for a completed generation.

        Args:
            generation: Generation number (1-based)
            sigmas: Sigma of every selected population member

        Returns:
            GenerationStats for this generation
        """
        values = np.asarray(sigmas, dtype=np.float64)
        if values.size == 0:
            values = np.zeros(1)

        stats = GenerationStats(
            generation=generation,
            best_sigma=float(values.min()),
            mean_sigma=float(values.mean()),
            worst_sigma=float(values.max()),
        )

        self.generations.append(stats)
        self.sigma_trajectory.append(stats.best_sigma)
        return stats

    def __len__(self) -> int:
        return len(self.generations)

    def to_dict(self) -> Dict[str, Any]:
        """Convert history to dictionary for serialization."""
        return {
            'generations': [g.to_dict() for g in self.generations],
            'sigma_trajectory': self.sigma_trajectory,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SelectionHistory':
        """Restore history from dictionary."""
        history = cls()
        history.generations = [
            GenerationStats(**g) for g in data.get('generations', [])
        ]
        history.sigma_trajectory = data.get('sigma_trajectory', [])
        return history

    def save(self, path: Path) -> None:
        """Save history to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path) -> 'SelectionHistory':
        """Load history from JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def get_improvement(self, window: int = 10) -> float:
        """
        Reduction of the best sigma over the last ``window`` generations.

        Args:
            window: Number of recent generations to consider

        Returns:
            Non-negative decrease of best sigma (0.0 if too few generations)
        """
        if len(self.sigma_trajectory) < 2:
            return 0.0

        recent = self.sigma_trajectory[-(window + 1):]
        return max(0.0, recent[0] - recent[-1])
