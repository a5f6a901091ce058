"""Element-wise binary arithmetic with trailing-block broadcasting.

The second operand is either a single value, applied to every element of
the first, or a block whose size divides the first operand's size; the
block is then repeated across the first operand's flattened data.
"""

from __future__ import annotations

import operator
from typing import Callable

import numpy as np
from numpy.typing import ArrayLike


def _binary(
    a: ArrayLike,
    b: ArrayLike,
    op: Callable[[np.ndarray, np.ndarray], np.ndarray],
    name: str,
) -> np.ndarray:
    if a is None or b is None:
        raise ValueError(f"{name} needs both operands")
    a_arr = np.asarray(a, dtype=np.float32)
    a_flat = a_arr.reshape(-1)
    b_flat = np.asarray(b, dtype=np.float32).reshape(-1)

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        if b_flat.size == 1:
            out = op(a_flat, b_flat[0])
        else:
            if b_flat.size == 0 or a_flat.size % b_flat.size:
                raise ValueError(
                    f"{name}: second operand of {b_flat.size} elements does not "
                    f"tile the first of {a_flat.size}"
                )
            out = op(a_flat.reshape(-1, b_flat.size), b_flat)
    return np.asarray(out, dtype=np.float32).reshape(a_arr.shape)


def add(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    """a + b, with b a scalar or a repeated trailing block."""
    return _binary(a, b, operator.add, "add")


def mul(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    """a * b, with b a scalar or a repeated trailing block."""
    return _binary(a, b, operator.mul, "mul")


def div(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    """a / b, with b a scalar or a repeated trailing block; x/0 follows IEEE rules."""
    return _binary(a, b, operator.truediv, "div")