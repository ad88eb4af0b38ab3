"""
Lesson sets for training perceptrons.

A lesson set is a flat float32 array of consecutive lessons, each lesson
being the input signals followed by the expected output signals. Targets lie
inside (0, 1), the range of the sigmoid output layer.

Each registry entry records the input and output widths a network needs to
train on it.
"""

import numpy as np
from typing import Tuple, Dict, Any


def _flatten(inputs: np.ndarray, targets: np.ndarray) -> np.ndarray:
    return np.hstack([inputs, targets]).astype(np.float32).ravel()


def square_lessons() -> np.ndarray:
    """
    The square function on 0.1, 0.2, ..., 0.9.

    Nine lessons of one input and one output: (0.1, 0.01) ... (0.9, 0.81).
    """
    return np.array([
        0.1, 0.01,
        0.2, 0.04,
        0.3, 0.09,
        0.4, 0.16,
        0.5, 0.25,
        0.6, 0.36,
        0.7, 0.49,
        0.8, 0.64,
        0.9, 0.81,
    ], dtype=np.float32)


def xor_lessons() -> np.ndarray:
    """
    Classic XOR truth table - the simplest non-linearly separable set.

    Four lessons of two inputs and one output.
    """
    inputs = np.array([[0, 0], [0, 1], [1, 0], [1, 1]], dtype=np.float32)
    targets = np.array([[0], [1], [1], [0]], dtype=np.float32)
    return _flatten(inputs, targets)


def identity_lessons(n_lessons: int = 9) -> np.ndarray:
    """Output equals input on evenly spaced points of [0.1, 0.9]."""
    if n_lessons < 1:
        raise ValueError(f"n_lessons must be positive, got {n_lessons}")
    x = np.linspace(0.1, 0.9, n_lessons, dtype=np.float32)
    return _flatten(x[:, None], x[:, None])


def sine_lessons(n_lessons: int = 16) -> np.ndarray:
    """
    One period of a sine wave squeezed into [0.1, 0.9].

    Tests: a non-monotonic target that needs hidden neurons
    """
    if n_lessons < 1:
        raise ValueError(f"n_lessons must be positive, got {n_lessons}")
    x = np.linspace(0.0, 1.0, n_lessons, dtype=np.float64)
    y = 0.5 + 0.4 * np.sin(2 * np.pi * x)
    return _flatten(x[:, None], y[:, None])


# Lesson set registry
LESSONS: Dict[str, Dict[str, Any]] = {
    'square': {
        'function': square_lessons,
        'name': 'Square',
        'description': 'x -> x^2 on nine points of [0.1, 0.9]',
        'in_width': 1,
        'out_width': 1,
        'default_params': {},
    },
    'xor': {
        'function': xor_lessons,
        'name': 'XOR',
        'description': 'Two-input exclusive or',
        'in_width': 2,
        'out_width': 1,
        'default_params': {},
    },
    'identity': {
        'function': identity_lessons,
        'name': 'Identity',
        'description': 'x -> x on evenly spaced points',
        'in_width': 1,
        'out_width': 1,
        'default_params': {'n_lessons': 9},
    },
    'sine': {
        'function': sine_lessons,
        'name': 'Sine',
        'description': 'One sine period scaled into [0.1, 0.9]',
        'in_width': 1,
        'out_width': 1,
        'default_params': {'n_lessons': 16},
    },
}


def get_lessons(name: str, **kwargs) -> Tuple[np.ndarray, int, int, int]:
    """
    Get a lesson set by name.

    Args:
        name: Lesson set name
        **kwargs: Override default parameters

    Returns:
        lessons: Flat float32 lesson buffer
        count: Number of lessons
        in_width: Inputs per lesson
        out_width: Outputs per lesson
    """
    if name not in LESSONS:
        available = ', '.join(LESSONS.keys())
        raise ValueError(f"Unknown lesson set '{name}'. Available: {available}")

    info = LESSONS[name]
    params = info['default_params'].copy()
    params.update(kwargs)

    lessons = info['function'](**params)
    width = info['in_width'] + info['out_width']
    return lessons, lessons.size // width, info['in_width'], info['out_width']


def list_lessons() -> Dict[str, Dict[str, Any]]:
    """List all available lesson sets with their metadata."""
    return {
        name: {k: v for k, v in info.items() if k != 'function'}
        for name, info in LESSONS.items()
    }


def split_lessons(lessons: np.ndarray, in_width: int, out_width: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split a flat lesson buffer into input and target matrices.

    Trailing values that do not form a complete lesson are ignored.

    Returns:
        inputs: Shape (count, in_width)
        targets: Shape (count, out_width)
    """
    if in_width < 1 or out_width < 1:
        raise ValueError("lesson widths must be positive")
    flat = np.asarray(lessons, dtype=np.float32).ravel()
    width = in_width + out_width
    count = flat.size // width
    rows = flat[:count * width].reshape(count, width)
    return rows[:, :in_width].copy(), rows[:, in_width:].copy()
