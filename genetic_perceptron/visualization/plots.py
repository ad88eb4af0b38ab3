"""
Matplotlib-based visualization for trained perceptrons.

These functions create static plots for analysis and documentation.
"""

import numpy as np
from typing import Optional, Tuple
from pathlib import Path

# Matplotlib imports with non-GUI backend
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from ..datasets.lessons import split_lessons


def plot_sigma_history(
    history,
    title: Optional[str] = None,
    figsize: Tuple[int, int] = (8, 4),
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """
    Plot best, mean and worst sigma of the population per generation.

    Args:
        history: SelectionHistory of a run
        title: Plot title
        figsize: Figure size
        ax: Existing axes to plot on

    Returns:
        matplotlib Figure
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    generations = [g.generation for g in history.generations]
    best = [g.best_sigma for g in history.generations]
    mean = [g.mean_sigma for g in history.generations]
    worst = [g.worst_sigma for g in history.generations]

    ax.fill_between(generations, best, worst, color='steelblue', alpha=0.2, label='population range')
    ax.plot(generations, mean, 'b--', linewidth=1, label='mean')
    ax.plot(generations, best, 'b-', linewidth=2, label='best')
    ax.set_xlabel('Generation')
    ax.set_ylabel('Sigma (total |error|)')
    if best and min(best) > 0:
        ax.set_yscale('log')
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=8)
    ax.set_title(title or 'Selection History')

    plt.tight_layout()
    return fig


def plot_lesson_fit(
    network,
    lessons: np.ndarray,
    resolution: int = 200,
    title: Optional[str] = None,
    figsize: Tuple[int, int] = (6, 4),
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """
    Plot a 1-input, 1-output network's response against its lessons.

    The network is probed through a clone, so its own inputs and outputs
    are left untouched.

    Args:
        network: Perceptron with one input and one output neuron
        lessons: Flat lesson buffer the network was trained on
        resolution: Number of probe points
        title: Plot title
        figsize: Figure size
        ax: Existing axes to plot on

    Returns:
        matplotlib Figure
    """
    topology = network.topology
    if topology[0] != 1 or topology[-1] != 1:
        raise ValueError(
            f"lesson fit plots need a 1-input, 1-output network, got {topology[0]}-...-{topology[-1]}"
        )

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    inputs, targets = split_lessons(lessons, 1, 1)
    low = min(0.0, float(inputs.min())) if inputs.size else 0.0
    high = max(1.0, float(inputs.max())) if inputs.size else 1.0
    grid = np.linspace(low, high, resolution, dtype=np.float32)[:, None]

    with network.clone() as probe:
        response = probe.execute_lessons(grid)

    ax.plot(grid[:, 0], response[:, 0], 'r-', linewidth=2, label='network')
    ax.scatter(inputs[:, 0], targets[:, 0], c='#3498db', edgecolors='white', s=50, zorder=3, label='lessons')
    ax.set_xlabel('Input')
    ax.set_ylabel('Output')
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=8)
    arch = '-'.join(str(size) for size in topology)
    ax.set_title(title or f'Perceptron {arch}')

    plt.tight_layout()
    return fig


def plot_weight_distribution(
    network,
    figsize: Tuple[int, int] = (10, 4)
) -> plt.Figure:
    """
    Plot distribution of weights in each layer.

    Args:
        network: Perceptron
        figsize: Figure size

    Returns:
        matplotlib Figure
    """
    topology = network.topology
    weights = network.weights
    n_layers = len(topology) - 1
    fig, axes = plt.subplots(1, n_layers, figsize=figsize)
    if n_layers == 1:
        axes = [axes]

    offset = 0
    for i, ax in enumerate(axes):
        prev, curr = topology[i], topology[i + 1]
        block = weights[offset:offset + prev * curr]
        offset += prev * curr
        ax.hist(block, bins=30, color='steelblue', edgecolor='white', alpha=0.8)
        ax.axvline(x=0, color='red', linewidth=1, linestyle='--')
        ax.set_title(f'Layer {i + 1} ({curr}×{prev})')
        ax.set_xlabel('Weight value')
        ax.set_ylabel('Count')

    plt.tight_layout()
    return fig


def save_figure(fig: plt.Figure, path: Path, dpi: int = 100) -> None:
    """Write a figure to disk and close it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
