"""Data movement, casting and reduction operators on float32 data."""

from __future__ import annotations

import enum
from typing import Sequence, Union

import numpy as np
from numpy.typing import ArrayLike


class PadMode(enum.Enum):
    """How values outside the input are filled when padding."""

    CONSTANT = "constant"
    EDGE = "edge"
    REFLECT = "reflect"


class DType(enum.IntEnum):
    """Element types, numbered as in ONNX tensor descriptions."""

    FLOAT = 1
    UINT8 = 2
    INT8 = 3
    UINT16 = 4
    INT16 = 5
    INT32 = 6
    INT64 = 7
    BOOL = 9
    FLOAT16 = 10
    DOUBLE = 11


class ReduceOp(enum.Enum):
    """Reduction applied to each block."""

    SUM = "sum"
    MAX = "max"


def _require(x: ArrayLike, name: str) -> None:
    if x is None:
        raise ValueError(f"{name} is required")


def concat(arrays: Sequence[ArrayLike], axis: int = 0) -> np.ndarray:
    """Join float32 arrays along ``axis``; all other dimensions must agree."""
    if arrays is None:
        raise ValueError("concat needs a sequence of arrays")
    parts = []
    for arr in arrays:
        _require(arr, "every concat input")
        parts.append(np.asarray(arr, dtype=np.float32))
    if not parts:
        raise ValueError("concat needs at least one array")
    return np.concatenate(parts, axis=axis).astype(np.float32, copy=False)


def gather(data: ArrayLike, indices: ArrayLike, axis: int = 0) -> np.ndarray:
    """Pick slices of ``data`` along ``axis``.

    Indices may be given as floats; they are truncated toward zero. Negative
    indices count from the end of the axis.
    """
    _require(data, "gather data")
    _require(indices, "gather indices")
    arr = np.asarray(data, dtype=np.float32)
    if arr.ndim == 0:
        raise ValueError("gather needs data with at least one dimension")
    if not -arr.ndim <= axis < arr.ndim:
        raise ValueError(f"axis {axis} out of range for {arr.ndim} dimensions")
    axis %= arr.ndim

    raw = np.asarray(indices, dtype=np.float64)
    if not np.all(np.isfinite(raw)):
        raise ValueError("gather indices must be finite")
    idx = np.trunc(raw).astype(np.int64)
    axis_dim = arr.shape[axis]
    idx = np.where(idx < 0, idx + axis_dim, idx)
    if idx.size and (idx.min() < 0 or idx.max() >= axis_dim):
        raise IndexError(f"gather index out of range for axis of size {axis_dim}")
    return np.take(arr, idx, axis=axis).astype(np.float32, copy=False)


def reshape(x: ArrayLike, shape: Sequence[int]) -> np.ndarray:
    """Return a float32 copy of ``x`` with the given shape."""
    _require(x, "reshape input")
    return np.array(x, dtype=np.float32).reshape(tuple(shape))


def _source_indices(out_size: int, begin: int, size: int, mode: PadMode) -> np.ndarray:
    """Map each output position on one axis to the input position it copies."""
    pos = np.arange(out_size, dtype=np.int64) - begin
    outside = (pos < 0) | (pos >= size)
    if not outside.any():
        return pos
    if size == 0:
        raise ValueError(f"{mode.value} padding needs a non-empty input axis")
    if mode is PadMode.EDGE:
        return np.clip(pos, 0, size - 1)
    if size == 1:
        raise ValueError("reflect padding needs an axis of at least two elements")
    period = 2 * (size - 1)
    folded = np.mod(pos, period)
    return np.where(folded < size, folded, period - folded)


def pad(
    x: ArrayLike,
    pads: Sequence[int],
    mode: Union[PadMode, str] = PadMode.CONSTANT,
    value: float = 0.0,
) -> np.ndarray:
    """Pad the spatial axes of an N x C x H x W input.

    ``pads`` is (h_begin, h_end, w_begin, w_end). ``value`` is used only in
    constant mode.
    """
    _require(x, "pad input")
    arr = np.asarray(x, dtype=np.float32)
    if arr.ndim != 4:
        raise ValueError("pad expects an N x C x H x W input")
    h_begin, h_end, w_begin, w_end = (int(v) for v in pads)
    if min(h_begin, h_end, w_begin, w_end) < 0:
        raise ValueError("padding must not be negative")
    mode = PadMode(mode)

    n, c, height, width = arr.shape
    out_h = height + h_begin + h_end
    out_w = width + w_begin + w_end

    if mode is PadMode.CONSTANT:
        out = np.full((n, c, out_h, out_w), np.float32(value), dtype=np.float32)
        out[:, :, h_begin:h_begin + height, w_begin:w_begin + width] = arr
        return out

    rows = _source_indices(out_h, h_begin, height, mode)
    cols = _source_indices(out_w, w_begin, width, mode)
    return np.ascontiguousarray(arr[:, :, rows][:, :, :, cols], dtype=np.float32)


def f32_to_f16_bits(x: ArrayLike) -> np.ndarray:
    """Encode float32 values as half-precision bit patterns by truncation.

    Values too small for a normal half flush to signed zero; values too large,
    infinities and NaNs become signed infinity.
    """
    _require(x, "input")
    bits = np.asarray(x, dtype=np.float32).view(np.uint32)
    sign = (bits >> np.uint32(16)) & np.uint32(0x8000)
    exponent = ((bits >> np.uint32(23)) & np.uint32(0xFF)).astype(np.int32) - 112
    mantissa = (bits >> np.uint32(13)) & np.uint32(0x3FF)
    normal = sign | (np.clip(exponent, 0, 31).astype(np.uint32) << np.uint32(10)) | mantissa
    result = np.where(
        exponent <= 0,
        sign,
        np.where(exponent >= 31, sign | np.uint32(0x7C00), normal),
    )
    return result.astype(np.uint16)


def f16_bits_to_f32(bits: ArrayLike) -> np.ndarray:
    """Decode half-precision bit patterns, subnormals included, to float32."""
    _require(bits, "input")
    return np.asarray(bits, dtype=np.uint16).view(np.float16).astype(np.float32)


def cast(
    x: ArrayLike, src: Union[DType, int], dst: Union[DType, int]
) -> np.ndarray:
    """Convert between element types.

    float <-> int64 and float <-> float16 are converted; any other pair is
    returned as an unchanged copy. Float to int64 truncates toward zero;
    float to float16 uses the truncating encoder and yields a float16 array.
    """
    _require(x, "cast input")
    src = DType(src)
    dst = DType(dst)

    if src is DType.INT64 and dst is DType.FLOAT:
        return np.asarray(x, dtype=np.int64).astype(np.float32)
    if src is DType.FLOAT and dst is DType.INT64:
        arr = np.asarray(x, dtype=np.float32)
        if not np.all(np.isfinite(arr)):
            raise ValueError("cannot cast non-finite floats to int64")
        return np.trunc(arr).astype(np.int64)
    if src is DType.FLOAT and dst is DType.FLOAT16:
        return f32_to_f16_bits(x).view(np.float16)
    if src is DType.FLOAT16 and dst is DType.FLOAT:
        arr = np.asarray(x)
        if arr.dtype == np.float16:
            arr = arr.view(np.uint16)
        return f16_bits_to_f32(arr)
    return np.array(x, copy=True)


def _blocks(x: ArrayLike, reduce_size: int) -> np.ndarray:
    _require(x, "input")
    if reduce_size < 1:
        raise ValueError("reduce_size must be positive")
    flat = np.asarray(x, dtype=np.float32).reshape(-1)
    if flat.size % reduce_size:
        raise ValueError(
            f"input of {flat.size} values does not split into blocks of {reduce_size}"
        )
    return flat.reshape(-1, reduce_size)


def argmax(x: ArrayLike, reduce_size: int) -> np.ndarray:
    """Index of the first maximum in each consecutive block, as float32.

    A NaN never wins unless it is the block's first element.
    """
    rows = _blocks(x, reduce_size)
    if rows.shape[0] == 0:
        return np.empty(0, dtype=np.float32)
    cleaned = np.where(np.isnan(rows), -np.inf, rows)
    idx = np.argmax(cleaned, axis=1)
    idx = np.where(np.isnan(rows[:, 0]), 0, idx)
    return idx.astype(np.float32)


def reduce(
    x: ArrayLike, reduce_size: int, op: Union[ReduceOp, str] = ReduceOp.SUM
) -> np.ndarray:
    """Sum or maximum of each consecutive block of ``reduce_size`` values."""
    op = ReduceOp(op)
    rows = _blocks(x, reduce_size)
    if op is ReduceOp.SUM:
        return rows.sum(axis=1, dtype=np.float32)
    if rows.shape[0] == 0:
        return np.empty(0, dtype=np.float32)
    best = np.fmax.reduce(rows, axis=1)
    return np.where(np.isnan(rows[:, 0]), np.float32(np.nan), best).astype(np.float32)