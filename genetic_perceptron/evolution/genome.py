"""
Candidate genomes of the genetic selector.

A Candidate is a flat weight vector (held in a WeightSlot) plus its fitness
"sigma", the total absolute error over a lesson pass; lower is better.

Evaluating a candidate means running the network with the candidate's
weights. Rather than copying, the candidate's buffer is swapped into the
network's weight slot for the duration of the evaluation by ``installed``,
which always swaps it back out, even when evaluation fails.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import numpy as np

from ..core.buffers import WeightSlot
from ..core.errors import ErrorKind
from ..core.network import Perceptron
from ..core.sizing import allocate_floats


class Candidate:
    """
    A weight vector and its fitness.

    Attributes:
        slot: Owner of the weight buffer
        sigma: Total absolute error of the last evaluation (0.0 before any)
    """

    __slots__ = ('slot', 'sigma')

    def __init__(self, slot: Optional[WeightSlot] = None, sigma: float = 0.0):
        self.slot = slot if slot is not None else WeightSlot(name='candidate')
        self.sigma = sigma

    @classmethod
    def allocate(cls, count: int, name: str = 'candidate') -> 'Candidate':
        """
        Create a candidate owning an uninitialised buffer of ``count`` weights.

        Raises:
            SizeOverflowError: weight bytes exceed size_t
            AllocationError: WEIGHT_ALLOCATION_FAILURE
        """
        buffer = allocate_floats(count, "candidate weights", ErrorKind.WEIGHT_ALLOCATION_FAILURE)
        return cls(WeightSlot(buffer, name=name))

    @property
    def weights(self) -> Optional[np.ndarray]:
        return self.slot.buffer

    def adopt(self, other: 'Candidate') -> None:
        """Take ``other``'s genome and sigma; ``other`` gets this buffer in exchange."""
        self.slot.swap(other.slot)
        self.sigma = other.sigma

    def release(self) -> None:
        self.slot.release()

    def __repr__(self) -> str:
        return f"Candidate(size={self.slot.size}, sigma={self.sigma:.6g})"


@contextmanager
def installed(network: Perceptron, candidate: Candidate) -> Iterator[Perceptron]:
    """
    Run the network with ``candidate``'s weights for the body of a with block.

    On exit the buffers are exchanged back, so the network again holds the
    weight buffer it entered with.
    """
    slot = network.weight_slot
    slot.swap(candidate.slot)
    try:
        yield network
    finally:
        slot.swap(candidate.slot)
