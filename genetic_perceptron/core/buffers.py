"""
Owned weight buffers that can only change hands by exchange.

A WeightSlot holds at most one float32 weight vector. Buffers move between
slots (a network's weight slot and a candidate's slot) exclusively through
``swap``, so a buffer is never duplicated and never left without an owner.
"""

from typing import Optional

import numpy as np

from .errors import InvalidArgumentError


class WeightSlot:
    """A named holder of one weight buffer."""

    __slots__ = ('name', '_buffer')

    def __init__(self, buffer: Optional[np.ndarray] = None, name: str = 'slot'):
        self.name = name
        self._buffer = buffer

    @property
    def buffer(self) -> Optional[np.ndarray]:
        return self._buffer

    @property
    def size(self) -> int:
        return 0 if self._buffer is None else int(self._buffer.size)

    def swap(self, other: 'WeightSlot') -> None:
        """
        Exchange buffers with ``other``.

        Both slots must hold buffers of the same length (or one of them must be
        empty), which keeps every network's weight vector at its derived size.
        """
        if other is self:
            return
        if (
            self._buffer is not None
            and other._buffer is not None
            and self._buffer.size != other._buffer.size
        ):
            raise InvalidArgumentError(
                f"cannot swap {self.name} ({self._buffer.size} weights) "
                f"with {other.name} ({other._buffer.size} weights)"
            )
        self._buffer, other._buffer = other._buffer, self._buffer

    def release(self) -> None:
        """Drop the held buffer."""
        self._buffer = None

    def __repr__(self) -> str:
        return f"WeightSlot(name={self.name!r}, size={self.size})"
