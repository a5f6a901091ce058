"""Element-wise activation functions on float32 data."""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike

_SQRT_2_OVER_PI = np.float32(0.7978845608)
_GELU_COEFF = np.float32(0.044715)
_ONE = np.float32(1.0)
_HALF = np.float32(0.5)


def _as_f32(x: ArrayLike) -> np.ndarray:
    if x is None:
        raise ValueError("input is required")
    return np.asarray(x, dtype=np.float32)


def relu(x: ArrayLike) -> np.ndarray:
    """max(x, 0); NaN inputs give 0."""
    return np.fmax(_as_f32(x), np.float32(0.0))


def sigmoid(x: ArrayLike) -> np.ndarray:
    """1 / (1 + exp(-x))."""
    arr = _as_f32(x)
    with np.errstate(over="ignore"):
        return (_ONE / (_ONE + np.exp(-arr))).astype(np.float32)


def gelu(x: ArrayLike) -> np.ndarray:
    """GELU, tanh approximation."""
    arr = _as_f32(x)
    with np.errstate(over="ignore", invalid="ignore"):
        cube = arr * arr * arr
        inner = _SQRT_2_OVER_PI * (arr + _GELU_COEFF * cube)
        return (_HALF * arr * (_ONE + np.tanh(inner))).astype(np.float32)


def silu(x: ArrayLike) -> np.ndarray:
    """x * sigmoid(x)."""
    arr = _as_f32(x)
    with np.errstate(over="ignore"):
        return (arr / (_ONE + np.exp(-arr))).astype(np.float32)


def exp(x: ArrayLike) -> np.ndarray:
    """Element-wise exponential."""
    arr = _as_f32(x)
    with np.errstate(over="ignore"):
        return np.exp(arr).astype(np.float32)


def tanh(x: ArrayLike) -> np.ndarray:
    """Element-wise hyperbolic tangent."""
    return np.tanh(_as_f32(x)).astype(np.float32)


def clip(x: ArrayLike, min_val: float, max_val: float) -> np.ndarray:
    """Clamp to [min_val, max_val]; the upper bound wins if they cross."""
    arr = _as_f32(x)
    lo = np.float32(min_val)
    hi = np.float32(max_val)
    out = np.where(arr < lo, lo, arr)
    out = np.where(out > hi, hi, out)
    return out.astype(np.float32)