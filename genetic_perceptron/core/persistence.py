"""
Binary persistence for perceptrons.

File layout, written as consecutive records in host-native byte order with
the host's size_t width, so files are not portable between hosts:

    size_t                      layer_count
    size_t[layer_count]         topology
    size_t                      weight_count
    float32[weight_count]       weights
    float32[topology[0]]        current inputs
    float32[topology[-1]]       current outputs

Writes hold a FileLock on ``<path>.lock`` so concurrent writers in other
processes never interleave. Reads take no lock and create no files, so a
network can be loaded from a read-only location.
"""

from pathlib import Path
from typing import BinaryIO, Union
import os

import numpy as np
from filelock import FileLock

from .errors import (
    FormatError,
    InvalidArgumentError,
    InvalidTopologyError,
    PersistenceIOError,
    SizeOverflowError,
)
from .network import Perceptron
from .sizing import (
    FLOAT_BYTES,
    FLOAT_DTYPE,
    SIZE_BYTES,
    SIZE_DTYPE,
    checked_mul,
    validate_topology,
    weight_count,
)


PathLike = Union[str, os.PathLike]


def _resolve_path(path: PathLike) -> Path:
    if path is None:
        raise InvalidArgumentError("a file name is required")
    path = os.fspath(path)
    if len(path) == 0:
        raise InvalidArgumentError("file name is empty")
    return Path(path)


def _get_lock(path: Path) -> FileLock:
    """Get a file lock for atomic operations."""
    return FileLock(str(path) + '.lock')


def _write_record(f: BinaryIO, data: np.ndarray, what: str) -> None:
    payload = data.tobytes()
    written = f.write(payload)
    if written != len(payload):
        raise PersistenceIOError(f"short write of {what} ({written} of {len(payload)} bytes)")


def _read_record(f: BinaryIO, dtype: np.dtype, count: int, what: str) -> np.ndarray:
    nbytes = checked_mul(count, dtype.itemsize, f"{what} bytes")
    # Refuse before allocating when the file is too short.
    remaining = os.fstat(f.fileno()).st_size - f.tell()
    if nbytes > remaining:
        raise PersistenceIOError(f"short read of {what} (need {nbytes} bytes, {remaining} left)")
    payload = f.read(nbytes)
    if len(payload) != nbytes:
        raise PersistenceIOError(f"short read of {what} ({len(payload)} of {nbytes} bytes)")
    return np.frombuffer(payload, dtype=dtype).copy()


def save_perceptron(network: Perceptron, path: PathLike) -> None:
    """
    Write ``network`` to ``path``, replacing any existing file.

    Raises:
        InvalidArgumentError: network deleted or path empty
        PersistenceIOError: the file cannot be opened or fully written
    """
    if network is None:
        raise InvalidArgumentError("a perceptron is required")
    topology = network.topology
    path = _resolve_path(path)

    records = [
        (np.array([len(topology)], dtype=SIZE_DTYPE), "layer count"),
        (np.array(topology, dtype=SIZE_DTYPE), "topology"),
        (np.array([network.weights_count], dtype=SIZE_DTYPE), "weight count"),
        (network.weights.astype(FLOAT_DTYPE, copy=False), "weights"),
        (network.get_inputs().astype(FLOAT_DTYPE, copy=False), "inputs"),
        (network.get_outputs().astype(FLOAT_DTYPE, copy=False), "outputs"),
    ]

    try:
        with _get_lock(path):
            with open(path, 'wb') as f:
                for data, what in records:
                    _write_record(f, data, what)
    except OSError as exc:
        raise PersistenceIOError(f"cannot write {path}: {exc}") from exc


def load_perceptron(path: PathLike) -> Perceptron:
    """
    Read a perceptron written by save_perceptron.

    The stored topology is revalidated and the stored weight count must equal
    the count derived from it.

    Raises:
        InvalidArgumentError: path empty
        PersistenceIOError: the file cannot be opened or is truncated
        FormatError: invalid topology or weight count mismatch
        SizeOverflowError: a stored size does not fit size_t
    """
    path = _resolve_path(path)

    try:
        with open(path, 'rb') as f:
            return _read_perceptron(f)
    except OSError as exc:
        raise PersistenceIOError(f"cannot read {path}: {exc}") from exc


def _read_perceptron(f: BinaryIO) -> Perceptron:
    layers_count = int(_read_record(f, SIZE_DTYPE, 1, "layer count")[0])
    if layers_count < 2:
        raise FormatError(f"stored layer count {layers_count} is below 2")
    checked_mul(layers_count, SIZE_BYTES, "topology bytes")

    stored_topology = [int(size) for size in _read_record(f, SIZE_DTYPE, layers_count, "topology")]
    try:
        topology = validate_topology(stored_topology)
    except InvalidTopologyError as exc:
        raise FormatError(f"stored topology is invalid: {exc}") from exc

    stored_count = int(_read_record(f, SIZE_DTYPE, 1, "weight count")[0])
    try:
        expected_count = weight_count(topology)
    except SizeOverflowError as exc:
        raise FormatError(f"stored topology overflows size_t: {exc}") from exc
    if stored_count != expected_count:
        raise FormatError(
            f"stored weight count {stored_count} does not match "
            f"{expected_count} derived from topology {list(topology)}"
        )
    checked_mul(stored_count, FLOAT_BYTES, "weight bytes")

    weights = _read_record(f, FLOAT_DTYPE, stored_count, "weights")
    inputs = _read_record(f, FLOAT_DTYPE, topology[0], "inputs")
    outputs = _read_record(f, FLOAT_DTYPE, topology[-1], "outputs")

    return Perceptron.from_buffers(topology, weights, inputs, outputs)


__all__ = ['save_perceptron', 'load_perceptron']
