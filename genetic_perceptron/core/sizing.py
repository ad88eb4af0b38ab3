"""
Checked size arithmetic against the native ``size_t`` width.

Python integers never wrap, so the checks here compare every derived count
and byte size with the largest value the host's ``size_t`` can hold. All
sizes are checked before anything is allocated.
"""

from typing import Sequence, Tuple
from numbers import Integral

import numpy as np

from .errors import (
    AllocationError,
    ErrorKind,
    InvalidArgumentError,
    InvalidTopologyError,
    SizeOverflowError,
)


SIZE_DTYPE = np.dtype(np.uintp)
FLOAT_DTYPE = np.dtype(np.float32)

SIZE_MAX = int(np.iinfo(SIZE_DTYPE).max)
SIZE_BYTES = SIZE_DTYPE.itemsize
FLOAT_BYTES = FLOAT_DTYPE.itemsize


def checked_mul(a: int, b: int, what: str, kind: ErrorKind = ErrorKind.OVERFLOW) -> int:
    """Multiply two sizes, raising SizeOverflowError past SIZE_MAX."""
    product = a * b
    if product > SIZE_MAX:
        raise SizeOverflowError(f"{what} ({a} * {b}) overflows size_t", kind)
    return product


def checked_add(a: int, b: int, what: str, kind: ErrorKind = ErrorKind.OVERFLOW) -> int:
    """Add two sizes, raising SizeOverflowError past SIZE_MAX."""
    total = a + b
    if total > SIZE_MAX:
        raise SizeOverflowError(f"{what} ({a} + {b}) overflows size_t", kind)
    return total


def validate_topology(topology: Sequence[int]) -> Tuple[int, ...]:
    """
    Validate a layer-size sequence and return it as a tuple of ints.

    Args:
        topology: Neuron count per layer, input layer first

    Returns:
        The topology as an immutable tuple

    Raises:
        InvalidArgumentError: topology is None or holds non-integers
        InvalidTopologyError: fewer than 2 layers, or a layer size < 1
        SizeOverflowError: a layer size or the topology bytes exceed size_t
    """
    if topology is None:
        raise InvalidArgumentError("topology is required")

    layers = tuple(topology)
    for size in layers:
        if isinstance(size, bool) or not isinstance(size, Integral):
            raise InvalidArgumentError(f"layer sizes must be integers, got {size!r}")
    layers = tuple(int(size) for size in layers)

    if len(layers) < 2:
        raise InvalidTopologyError(
            f"at least 2 layers are required, got {len(layers)}",
            ErrorKind.INVALID_LAYER_COUNT,
        )
    for index, size in enumerate(layers):
        if size <= 0:
            raise InvalidTopologyError(f"layer {index} has no neurons ({size})")
        if size > SIZE_MAX:
            raise SizeOverflowError(f"layer {index} size {size} overflows size_t")

    checked_mul(len(layers), SIZE_BYTES, "topology bytes")
    return layers


def weight_count(topology: Sequence[int]) -> int:
    """
    Number of weights of a fully-connected network.

    Sum over l = 1..n-1 of topology[l-1] * topology[l], with every product
    and partial sum checked against size_t.
    """
    layers = validate_topology(topology)
    total = 0
    for prev, curr in zip(layers[:-1], layers[1:]):
        total = checked_add(
            total,
            checked_mul(prev, curr, "layer weight count"),
            "total weight count",
        )
    return total


def allocate_floats(count: int, what: str, kind: ErrorKind = ErrorKind.ALLOCATION_FAILURE) -> np.ndarray:
    """
    Allocate an uninitialised float32 buffer of ``count`` elements.

    The byte size is checked against size_t first; numpy refusing the
    allocation is reported as AllocationError.
    """
    checked_mul(count, FLOAT_BYTES, f"{what} bytes")
    try:
        return np.empty(count, dtype=FLOAT_DTYPE)
    except (MemoryError, ValueError) as exc:
        raise AllocationError(f"cannot allocate {what} ({count} floats)", kind) from exc
