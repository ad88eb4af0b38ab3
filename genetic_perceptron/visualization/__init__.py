"""Visualization utilities for perceptrons and selection runs."""

from .plots import (
    plot_sigma_history,
    plot_lesson_fit,
    plot_weight_distribution,
    save_figure,
)

__all__ = [
    'plot_sigma_history',
    'plot_lesson_fit',
    'plot_weight_distribution',
    'save_figure',
]
