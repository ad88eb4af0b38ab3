"""
Activation function of the perceptron's computed layers.

Only the logistic sigmoid is supported. It is evaluated in double precision
and stored back as float32, the precision of every signal in the network.
"""

import numpy as np


def sigmoid(x: np.ndarray) -> np.ndarray:
    """Sigmoid - smooth, bounded (0, 1)."""
    # Clip to avoid overflow in exp
    z = np.clip(np.asarray(x, dtype=np.float64), -500.0, 500.0)
    return (1.0 / (1.0 + np.exp(-z))).astype(np.float32)
