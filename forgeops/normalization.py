"""Batch and layer normalisation for inference on float32 data."""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike


def _vector(values: ArrayLike, size: int, name: str) -> np.ndarray:
    if values is None:
        raise ValueError(f"{name} is required")
    arr = np.asarray(values, dtype=np.float32).reshape(-1)
    if arr.size != size:
        raise ValueError(f"{name} must hold {size} values, not {arr.size}")
    return arr


def batchnorm(
    x: ArrayLike,
    gamma: ArrayLike,
    beta: ArrayLike,
    mean: ArrayLike,
    var: ArrayLike,
    epsilon: float = 1e-5,
) -> np.ndarray:
    """gamma * (x - mean) / sqrt(var + epsilon) + beta per channel (axis 1)."""
    if x is None:
        raise ValueError("batchnorm needs an input")
    arr = np.asarray(x, dtype=np.float32)
    if arr.ndim < 2:
        raise ValueError("batchnorm expects an N x C x ... input")
    channels = arr.shape[1]
    g = _vector(gamma, channels, "gamma")
    b = _vector(beta, channels, "beta")
    m = _vector(mean, channels, "mean")
    v = _vector(var, channels, "var")

    with np.errstate(divide="ignore", invalid="ignore"):
        scale = g / np.sqrt(v + np.float32(epsilon))
        shift = b - scale * m
    shape = (1, channels) + (1,) * (arr.ndim - 2)
    return (arr * scale.reshape(shape) + shift.reshape(shape)).astype(np.float32)


def layernorm(
    x: ArrayLike,
    gamma: ArrayLike,
    beta: ArrayLike,
    epsilon: float = 1e-5,
) -> np.ndarray:
    """Normalise each trailing block of len(gamma) values, then scale and shift."""
    if x is None or gamma is None or beta is None:
        raise ValueError("layernorm needs an input, gamma and beta")
    arr = np.asarray(x, dtype=np.float32)
    g = np.asarray(gamma, dtype=np.float32).reshape(-1)
    size = g.size
    if size == 0:
        raise ValueError("normalised size must be positive")
    b = _vector(beta, size, "beta")
    if arr.size % size:
        raise ValueError(
            f"input of {arr.size} values does not split into rows of {size}"
        )

    rows = arr.reshape(-1, size)
    mean = rows.mean(axis=1, keepdims=True, dtype=np.float32)
    centred = rows - mean
    var = (centred * centred).mean(axis=1, keepdims=True, dtype=np.float32)
    inv_std = np.float32(1.0) / np.sqrt(var + np.float32(epsilon))
    out = centred * inv_std * g + b
    return out.astype(np.float32).reshape(arr.shape)