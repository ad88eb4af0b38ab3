"""Lesson sets for training and visualizing perceptrons."""

from .lessons import (
    square_lessons,
    xor_lessons,
    identity_lessons,
    sine_lessons,
    LESSONS,
    get_lessons,
    list_lessons,
    split_lessons,
)

__all__ = [
    'square_lessons',
    'xor_lessons',
    'identity_lessons',
    'sine_lessons',
    'LESSONS',
    'get_lessons',
    'list_lessons',
    'split_lessons',
]
