"""Max, average and global average pooling on NCHW float32 data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import numpy as np
from numpy.typing import ArrayLike

_FLT_MAX = np.float32(np.finfo(np.float32).max)


def _trunc_div(num: int, den: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(num) // abs(den)
    return q if (num >= 0) == (den > 0) else -q


@dataclass(frozen=True)
class PoolParams:
    """Window, stride and padding of a 2-D pooling."""

    kernel_h: int
    kernel_w: int
    stride_h: int = 1
    stride_w: int = 1
    pad_h: int = 0
    pad_w: int = 0

    def __post_init__(self) -> None:
        if self.kernel_h < 1 or self.kernel_w < 1:
            raise ValueError("kernel dimensions must be positive")
        if self.stride_h < 1 or self.stride_w < 1:
            raise ValueError("strides must be positive")
        if self.pad_h < 0 or self.pad_w < 0:
            raise ValueError("padding must not be negative")

    def output_size(self, height: int, width: int) -> tuple[int, int]:
        """Return (out_h, out_w) for an input of the given size."""
        oh = _trunc_div(height + 2 * self.pad_h - self.kernel_h, self.stride_h) + 1
        ow = _trunc_div(width + 2 * self.pad_w - self.kernel_w, self.stride_w) + 1
        return oh, ow


def _prepare(x: ArrayLike, params: PoolParams) -> tuple[np.ndarray, int, int]:
    if x is None:
        raise ValueError("pooling needs an input")
    if params is None:
        raise ValueError("pooling needs parameters")
    arr = np.asarray(x, dtype=np.float32)
    if arr.ndim != 4:
        raise ValueError("pooling expects an N x C x H x W input")
    oh, ow = params.output_size(arr.shape[2], arr.shape[3])
    if oh <= 0 or ow <= 0:
        raise ValueError(f"pooling output would be empty ({oh} x {ow})")
    return arr, oh, ow


def _windows(
    arr: np.ndarray, params: PoolParams, oh: int, ow: int, fill: float
) -> Iterator[np.ndarray]:
    """Yield one strided view per kernel offset over the padded input."""
    height, width = arr.shape[2], arr.shape[3]
    span_h = (oh - 1) * params.stride_h + params.kernel_h
    span_w = (ow - 1) * params.stride_w + params.kernel_w
    extra_h = max(0, span_h - (height + 2 * params.pad_h))
    extra_w = max(0, span_w - (width + 2 * params.pad_w))
    padded = np.pad(
        arr,
        (
            (0, 0),
            (0, 0),
            (params.pad_h, params.pad_h + extra_h),
            (params.pad_w, params.pad_w + extra_w),
        ),
        constant_values=fill,
    )
    for kh in range(params.kernel_h):
        for kw in range(params.kernel_w):
            yield padded[
                :,
                :,
                kh:kh + params.stride_h * (oh - 1) + 1:params.stride_h,
                kw:kw + params.stride_w * (ow - 1) + 1:params.stride_w,
            ]


def maxpool2d(x: ArrayLike, params: PoolParams) -> np.ndarray:
    """Maximum over each window; padding and NaNs never win.

    A window that covers no input element yields the lowest finite float32.
    """
    arr, oh, ow = _prepare(x, params)
    out = np.full((arr.shape[0], arr.shape[1], oh, ow), -_FLT_MAX, dtype=np.float32)
    for window in _windows(arr, params, oh, ow, -np.inf):
        out = np.fmax(out, window)
    return out


def avgpool2d(x: ArrayLike, params: PoolParams) -> np.ndarray:
    """Sum of each window's input elements divided by the full window size."""
    arr, oh, ow = _prepare(x, params)
    total = np.zeros((arr.shape[0], arr.shape[1], oh, ow), dtype=np.float32)
    for window in _windows(arr, params, oh, ow, 0.0):
        total += window
    inv = np.float32(1.0) / np.float32(params.kernel_h * params.kernel_w)
    return (total * inv).astype(np.float32)


def global_avgpool(x: ArrayLike) -> np.ndarray:
    """Mean over the spatial axes of an N x C x H x W input; returns N x C."""
    if x is None:
        raise ValueError("pooling needs an input")
    arr = np.asarray(x, dtype=np.float32)
    if arr.ndim != 4:
        raise ValueError("global average pooling expects an N x C x H x W input")
    area = arr.shape[2] * arr.shape[3]
    if area == 0:
        raise ValueError("global average pooling needs a non-empty spatial extent")
    scale = np.float32(1.0) / np.float32(area)
    return (arr.sum(axis=(2, 3), dtype=np.float32) * scale).astype(np.float32)