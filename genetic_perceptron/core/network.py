"""
The perceptron: a fully-connected feedforward network with sigmoid neurons.

Layer 0 holds input signals only; layers 1..n-1 are computed. All weights
live in one flat float32 vector ordered by (layer, destination neuron, source
neuron), which is exactly the order the forward pass consumes them in:

    weight index = offset(layer) + destination * topology[layer-1] + source

There are no biases. The network owns its topology, weights, inputs and
outputs; the weight vector sits in a WeightSlot so a genetic selector can
exchange it with candidate genomes during training.
"""

from typing import Dict, Sequence, Tuple, Union
import os

import numpy as np

from .activations import sigmoid
from .buffers import WeightSlot
from .errors import ErrorKind, InvalidArgumentError
from .kernels import noise as noise_weights
from .rng import Seed
from .sizing import (
    FLOAT_DTYPE,
    SIZE_BYTES,
    allocate_floats,
    checked_mul,
    validate_topology,
    weight_count,
)


PathLike = Union[str, os.PathLike]


class Perceptron:
    """
    A feedforward network of arbitrary layer topology.

    Weights, inputs and outputs are allocated uninitialised; noise or load the
    weights before executing.

    Attributes:
        topology: Neuron count per layer (input layer first)
        weights_count: Length of the flat weight vector
        max_layer_width: Widest layer, the width of the propagation buffers
    """

    def __init__(self, topology: Sequence[int]):
        """
        Build a network of the given topology.

        Raises:
            InvalidArgumentError: topology missing or non-integer
            InvalidTopologyError: fewer than 2 layers or an empty layer
            SizeOverflowError: a derived size does not fit size_t
            AllocationError: a buffer could not be allocated
        """
        layers = validate_topology(topology)
        count = weight_count(layers)

        weights = allocate_floats(count, "weights")
        inputs = allocate_floats(layers[0], "inputs")
        outputs = allocate_floats(layers[-1], "outputs")

        self._assemble(layers, count, weights, inputs, outputs)

    @classmethod
    def create(cls, topology: Sequence[int]) -> 'Perceptron':
        """Alias of the constructor."""
        return cls(topology)

    @classmethod
    def from_buffers(
        cls,
        topology: Sequence[int],
        weights: np.ndarray,
        inputs: np.ndarray,
        outputs: np.ndarray,
    ) -> 'Perceptron':
        """
        Assemble a network around existing buffers, taking ownership of them.

        The buffer lengths must agree with the sizes derived from ``topology``.
        """
        layers = validate_topology(topology)
        count = weight_count(layers)
        expected = {'weights': count, 'inputs': layers[0], 'outputs': layers[-1]}
        given = {'weights': weights, 'inputs': inputs, 'outputs': outputs}
        for name, buffer in given.items():
            if buffer is None or buffer.dtype != FLOAT_DTYPE or buffer.ndim != 1:
                raise InvalidArgumentError(f"{name} must be a 1-D float32 array")
            if buffer.size != expected[name]:
                raise InvalidArgumentError(
                    f"{name} holds {buffer.size} values, topology needs {expected[name]}"
                )

        network = cls.__new__(cls)
        network._assemble(layers, count, weights, inputs, outputs)
        return network

    def _assemble(
        self,
        layers: Tuple[int, ...],
        count: int,
        weights: np.ndarray,
        inputs: np.ndarray,
        outputs: np.ndarray,
    ) -> None:
        self._topology = layers
        self._weights_count = count
        self._weight_slot = WeightSlot(weights, name='network')
        self._inputs = inputs
        self._outputs = outputs
        self._max_width = max(layers)
        self._scratch: Dict[int, np.ndarray] = {}
        self._deleted = False

    # ------------------------------------------------------------------
    # Accessors

    @property
    def topology(self) -> Tuple[int, ...]:
        self._check_alive()
        return self._topology

    @property
    def layers_count(self) -> int:
        return len(self.topology)

    @property
    def weights_count(self) -> int:
        self._check_alive()
        return self._weights_count

    @property
    def max_layer_width(self) -> int:
        self._check_alive()
        return self._max_width

    @property
    def weights(self) -> np.ndarray:
        """The live weight vector (whichever buffer the weight slot holds)."""
        self._check_alive()
        return self._weight_slot.buffer

    @property
    def weight_slot(self) -> WeightSlot:
        self._check_alive()
        return self._weight_slot

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    def get_inputs(self) -> np.ndarray:
        """Mutable view of the input signals."""
        self._check_alive()
        return self._inputs

    def get_outputs(self) -> np.ndarray:
        """Read-only view of the output signals."""
        self._check_alive()
        view = self._outputs.view()
        view.flags.writeable = False
        return view

    # ------------------------------------------------------------------
    # Operations

    def noise(self, force: float, seed: Seed) -> None:
        """Fill the weights with uniform noise in [-force, +force]."""
        self._check_alive()
        if not isinstance(seed, Seed):
            raise InvalidArgumentError("a Seed is required to noise a perceptron")
        noise_weights(self._weight_slot.buffer, force, seed)

    def execute(self) -> None:
        """Propagate the current inputs through the network into the outputs."""
        self._check_alive()
        result = self._propagate(self._inputs[np.newaxis, :])
        self._outputs[:] = result[0]

    def execute_lessons(self, inputs: np.ndarray) -> np.ndarray:
        """
        Execute the network once per input row.

        Equivalent to copying each row into the inputs and calling execute()
        in turn: afterwards the inputs and outputs hold the last row's values.

        Args:
            inputs: Input signals, shape (rows, topology[0])

        Returns:
            Output signals, shape (rows, topology[-1])
        """
        self._check_alive()
        inputs = np.asarray(inputs, dtype=FLOAT_DTYPE)
        if inputs.ndim != 2 or inputs.shape[1] != self._topology[0]:
            raise InvalidArgumentError(
                f"expected inputs of shape (rows, {self._topology[0]}), got {inputs.shape}"
            )
        if inputs.shape[0] == 0:
            return np.empty((0, self._topology[-1]), dtype=FLOAT_DTYPE)

        outputs = self._propagate(inputs)
        self._inputs[:] = inputs[-1]
        self._outputs[:] = outputs[-1]
        return outputs

    def _propagate(self, signals: np.ndarray) -> np.ndarray:
        # Two scratch rows per signal, picked by a toggling index.
        rows = signals.shape[0]
        scratch = self._scratch.get(rows)
        if scratch is None:
            scratch = np.empty((2, rows, self._max_width), dtype=FLOAT_DTYPE)
            self._scratch = {rows: scratch}

        weights = self._weight_slot.buffer
        layers = self._topology
        current = 0
        scratch[current, :, :layers[0]] = signals

        offset = 0
        for prev, curr in zip(layers[:-1], layers[1:]):
            block = weights[offset:offset + prev * curr].reshape(curr, prev)
            offset += prev * curr
            following = 1 - current
            sums = scratch[current, :, :prev] @ block.T
            scratch[following, :, :curr] = sigmoid(sums)
            current = following

        return scratch[current, :, :layers[-1]].copy()

    def clone(self) -> 'Perceptron':
        """Deep copy of topology, weights, inputs and outputs."""
        self._check_alive()
        checked_mul(len(self._topology), SIZE_BYTES, "topology bytes")
        weights = allocate_floats(self._weights_count, "weights")
        inputs = allocate_floats(self._topology[0], "inputs")
        outputs = allocate_floats(self._topology[-1], "outputs")
        weights[:] = self._weight_slot.buffer
        inputs[:] = self._inputs
        outputs[:] = self._outputs

        twin = Perceptron.__new__(Perceptron)
        twin._assemble(self._topology, self._weights_count, weights, inputs, outputs)
        return twin

    def save(self, path: PathLike) -> None:
        """Write the network to a binary file (host-native layout)."""
        # Import here to avoid circular dependency
        from .persistence import save_perceptron
        save_perceptron(self, path)

    @classmethod
    def load(cls, path: PathLike) -> 'Perceptron':
        """Read a network written by save()."""
        from .persistence import load_perceptron
        return load_perceptron(path)

    def delete(self) -> None:
        """Release every buffer. The network cannot be used afterwards."""
        self._check_alive()
        self._weight_slot.release()
        self._inputs = None
        self._outputs = None
        self._scratch = {}
        self._deleted = True

    # ------------------------------------------------------------------
    # Helpers

    def _check_alive(self) -> None:
        if self._deleted:
            raise InvalidArgumentError(
                "perceptron has been deleted", ErrorKind.INVALID_ARGUMENT
            )

    def __enter__(self) -> 'Perceptron':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._deleted:
            self.delete()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Perceptron):
            return NotImplemented
        if self._deleted or other._deleted:
            return self is other
        return (
            self._topology == other._topology
            and _same_bits(self.weights, other.weights)
            and _same_bits(self._inputs, other._inputs)
            and _same_bits(self._outputs, other._outputs)
        )

    __hash__ = None

    def __repr__(self) -> str:
        if self._deleted:
            return "Perceptron(<deleted>)"
        arch = '-'.join(str(size) for size in self._topology)
        return f"Perceptron(topology={arch}, weights={self._weights_count})"


def _same_bits(a: np.ndarray, b: np.ndarray) -> bool:
    return a.shape == b.shape and np.array_equal(a.view(np.uint32), b.view(np.uint32))
