"""
Deterministic pseudo-random engine.

A 64-bit linear congruential generator producing 32-bit draws:

    state' = state * 6364136223846793005 + 1  (mod 2**64)
    draw   = state' >> 32

The state lives in a caller-owned Seed and is threaded explicitly through
every randomised call; there is no process-wide generator. Concurrent users
need independent Seed objects.

Bulk draws use LCG jump-ahead (state_k = A**k * state + sum_{j<k} A**j)
evaluated with wrapping uint64 numpy arithmetic, so ``Seed.draw(n)`` is
bit-identical to ``n`` successive ``next_u32`` calls. The jump-ahead tables
cover one fixed block; longer runs chain block after block from the last
state of the previous one.
"""

from typing import Tuple

import numpy as np


LCG_MULTIPLIER = 6364136223846793005
LCG_INCREMENT = 1
UINT32_MAX = 0xFFFFFFFF

_MASK64 = 0xFFFFFFFFFFFFFFFF
_SHIFT = np.uint64(32)

# Draws are generated in blocks of this many states from fixed jump-ahead
# tables: _POWERS[k-1] = A**k, _INCREMENTS[k-1] = sum_{j<k} A**j (mod 2**64)
_BLOCK = 4096


def _jump_tables(size: int) -> Tuple[np.ndarray, np.ndarray]:
    powers = np.multiply.accumulate(np.full(size, LCG_MULTIPLIER, dtype=np.uint64))
    shifted = np.concatenate((np.ones(1, dtype=np.uint64), powers[:-1]))
    increments = np.cumsum(shifted, dtype=np.uint64) * np.uint64(LCG_INCREMENT)
    return powers, increments


_POWERS, _INCREMENTS = _jump_tables(_BLOCK)


def _jump(state: int, n: int) -> int:
    """State after ``n`` steps, in O(log n)."""
    acc_mult, acc_plus = 1, 0
    cur_mult, cur_plus = LCG_MULTIPLIER, LCG_INCREMENT
    while n > 0:
        if n & 1:
            acc_mult = (acc_mult * cur_mult) & _MASK64
            acc_plus = (acc_plus * cur_mult + cur_plus) & _MASK64
        cur_plus = ((cur_mult + 1) * cur_plus) & _MASK64
        cur_mult = (cur_mult * cur_mult) & _MASK64
        n >>= 1
    return (acc_mult * state + acc_plus) & _MASK64


class Seed:
    """
    Mutable 64-bit generator state owned by the caller.

    Attributes:
        value: Current state, always in [0, 2**64)
    """

    __slots__ = ('value',)

    def __init__(self, value: int = 0):
        self.value = int(value) & _MASK64

    def next_u32(self) -> int:
        """Advance one step and return the high 32 bits of the new state."""
        self.value = (self.value * LCG_MULTIPLIER + LCG_INCREMENT) & _MASK64
        return self.value >> 32

    def peek(self, n: int) -> np.ndarray:
        """The next ``n`` draws as uint32, without advancing."""
        if n <= 0:
            return np.empty(0, dtype=np.uint32)
        return (self._states(n) >> _SHIFT).astype(np.uint32)

    def draw(self, n: int) -> np.ndarray:
        """The next ``n`` draws as uint32; the state advances by ``n`` steps."""
        if n <= 0:
            return np.empty(0, dtype=np.uint32)
        states = self._states(n)
        self.value = int(states[-1])
        return (states >> _SHIFT).astype(np.uint32)

    def advance(self, n: int) -> None:
        """Skip ``n`` draws."""
        if n > 0:
            self.value = _jump(self.value, n)

    def copy(self) -> 'Seed':
        return Seed(self.value)

    def _states(self, n: int) -> np.ndarray:
        states = np.empty(n, dtype=np.uint64)
        state = np.uint64(self.value)
        for start in range(0, n, _BLOCK):
            stop = min(start + _BLOCK, n)
            width = stop - start
            states[start:stop] = _POWERS[:width] * state + _INCREMENTS[:width]
            state = states[stop - 1]
        return states

    def __int__(self) -> int:
        return self.value

    def __eq__(self, other) -> bool:
        if isinstance(other, Seed):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"Seed({self.value})"


def next_u32(seed: Seed) -> int:
    """Draw one 32-bit value from ``seed``, updating it in place."""
    return seed.next_u32()
