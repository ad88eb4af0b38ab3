"""
Weight mutation kernels: noise fill and two-parent crossover with mutation.

Both kernels operate on flat float32 weight vectors and consume draws from a
caller-owned Seed in a fixed order, so their results are reproducible bit for
bit:

- noise: per weight, a sign draw (even -> +1, odd -> -1) then a magnitude
  draw (u32 / UINT32_MAX in float32); weight = sign * magnitude * force.
- cross_and_mutate: per weight, an inheritance draw (even -> parent a,
  odd -> parent b), then a mutation draw; when it is divisible by 20 a sign
  and a magnitude draw follow and the weight is perturbed by
  sign * magnitude * mut_force.

The crossover kernel consumes a variable number of draws per weight. It is
still evaluated without a per-weight Python loop: draws are read in pairs
and pair j opens a new weight exactly when (j - z(j)) is even, where z(j) is
the last pair index <= j whose predecessor carried no mutation flag.
"""

from typing import Optional

import numpy as np

from .errors import InvalidArgumentError
from .rng import Seed, UINT32_MAX


MUTATION_ODDS = 20

_ONE = np.float32(1.0)
_UINT32_MAX_F = np.float32(UINT32_MAX)


def signed_magnitudes(sign_draws: np.ndarray, value_draws: np.ndarray, force: float) -> np.ndarray:
    """sign * magnitude * force for paired draws, in float32."""
    signs = np.where(sign_draws % 2 == 0, _ONE, -_ONE)
    magnitudes = value_draws.astype(np.float32) / _UINT32_MAX_F
    return signs * magnitudes * np.float32(force)


def noise(weights: Optional[np.ndarray], force: float, seed: Seed) -> None:
    """
    Fill ``weights`` in place with uniform noise in [-force, +force].

    Consumes exactly two draws per weight. Does nothing for a missing or
    empty buffer.
    """
    if weights is None or weights.size == 0:
        return
    draws = seed.draw(2 * weights.size)
    weights[...] = signed_magnitudes(draws[0::2], draws[1::2], force).reshape(weights.shape)


def _cross_row(a: np.ndarray, b: np.ndarray, mut_force: float, seed: Seed) -> np.ndarray:
    """One crossed and mutated child of the flat rows ``a`` and ``b``."""
    count = a.size

    # Each weight uses one or two pairs of draws.
    pairs = seed.peek(4 * count).reshape(-1, 2)
    flags = pairs[:, 1] % MUTATION_ODDS == 0

    index = np.arange(len(pairs))
    opens_run = np.ones(len(pairs), dtype=bool)
    opens_run[1:] = ~flags[:-1]
    run_start = np.maximum.accumulate(np.where(opens_run, index, 0))
    leading = np.flatnonzero((index - run_start) % 2 == 0)[:count]

    inherit = pairs[leading, 0] % 2 == 0
    mutate = flags[leading]

    child = np.where(inherit, a, b)
    extra = pairs[leading[mutate] + 1]
    child[mutate] += signed_magnitudes(extra[:, 0], extra[:, 1], mut_force)

    consumed_pairs = int(leading[-1]) + (2 if mutate[-1] else 1)
    seed.advance(2 * consumed_pairs)
    return child


def cross_and_mutate_many(
    parents_a: np.ndarray,
    parents_b: np.ndarray,
    mut_force: float,
    seed: Seed,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Produce one child per row of ``parents_a`` / ``parents_b``.

    The rows are processed in order as one contiguous draw stream, giving the
    same result as calling cross_and_mutate once per row. Temporaries are
    bounded by one row.

    Args:
        parents_a: First parents, shape (children, weights)
        parents_b: Second parents, same shape
        mut_force: Maximum magnitude of a mutation
        seed: Generator state, advanced by exactly the draws consumed
        out: Optional destination of the same shape, distinct from the parents

    Returns:
        The children, shape (children, weights)
    """
    parents_a = np.asarray(parents_a, dtype=np.float32)
    parents_b = np.asarray(parents_b, dtype=np.float32)
    if parents_a.shape != parents_b.shape:
        raise InvalidArgumentError(
            f"parent shapes differ: {parents_a.shape} vs {parents_b.shape}"
        )
    if parents_a.ndim != 2:
        raise InvalidArgumentError(f"parents must be 2-D, got shape {parents_a.shape}")
    if out is None:
        out = np.empty_like(parents_a)
    else:
        if out.shape != parents_a.shape:
            raise InvalidArgumentError(f"output shape {out.shape} does not match {parents_a.shape}")
        if np.shares_memory(out, parents_a) or np.shares_memory(out, parents_b):
            raise InvalidArgumentError("output buffer must be distinct from both parents")

    if parents_a.size == 0:
        return out
    for row in range(parents_a.shape[0]):
        out[row] = _cross_row(parents_a[row], parents_b[row], mut_force, seed)
    return out


def cross_and_mutate(
    a: Optional[np.ndarray],
    b: Optional[np.ndarray],
    out: Optional[np.ndarray],
    mut_force: float,
    seed: Seed,
) -> None:
    """
    Uniform crossover of ``a`` and ``b`` into ``out`` with 1-in-20 mutation.

    Does nothing when any buffer is missing or empty.
    """
    if a is None or b is None or out is None or out.size == 0:
        return
    if not (a.shape == b.shape == out.shape):
        raise InvalidArgumentError(
            f"buffer shapes differ: {a.shape}, {b.shape}, {out.shape}"
        )
    if np.shares_memory(out, a) or np.shares_memory(out, b):
        raise InvalidArgumentError("output buffer must be distinct from both parents")
    child = _cross_row(
        np.asarray(a, dtype=np.float32).ravel(), np.asarray(b, dtype=np.float32).ravel(),
        mut_force, seed,
    )
    out[...] = child.reshape(out.shape)
