"""Multi-head attention: full-sequence fused attention, cached single-token decode, causal mask."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike

MAX_DECODE_HEAD_DIM = 64
MAX_DECODE_POSITIONS = 512

_SCORE_FLOOR = np.float32(-1e38)
_SUM_FLOOR = np.float32(1e-12)


@dataclass(frozen=True)
class MhaFusedParams:
    """Shapes of a fused attention block over a (batch, seq, hidden) input."""

    batch_size: int
    seq_len: int
    hidden_size: int
    num_heads: int
    head_dim: int
    scale: float
    has_residual: bool = False

    def __post_init__(self) -> None:
        if min(self.batch_size, self.seq_len, self.hidden_size) < 0:
            raise ValueError("dimensions must not be negative")
        if self.num_heads < 1 or self.head_dim < 1:
            raise ValueError("num_heads and head_dim must be positive")
        if self.num_heads * self.head_dim > self.hidden_size:
            raise ValueError("num_heads * head_dim must not exceed hidden_size")


@dataclass(frozen=True)
class MhaDecodeParams:
    """Shapes of a single-token attention step with a key/value cache.

    ``num_kv_heads`` of zero means one key/value head per query head.
    ``cache_len`` is the number of positions already in the cache; the new
    token is written at that position.
    """

    batch_size: int
    hidden_size: int
    num_heads: int
    head_dim: int
    scale: float
    cache_len: int
    max_seq: int
    num_kv_heads: int = 0

    def __post_init__(self) -> None:
        if self.batch_size < 0 or self.hidden_size < 0:
            raise ValueError("dimensions must not be negative")
        if self.num_heads < 1 or self.head_dim < 1:
            raise ValueError("num_heads and head_dim must be positive")
        if self.num_kv_heads < 0:
            raise ValueError("num_kv_heads must not be negative")
        if self.head_dim > MAX_DECODE_HEAD_DIM:
            raise ValueError(f"head_dim must not exceed {MAX_DECODE_HEAD_DIM}")
        if self.num_heads * self.head_dim > self.hidden_size:
            raise ValueError("num_heads * head_dim must not exceed hidden_size")
        if self.num_heads % self.kv_heads:
            raise ValueError("num_heads must be a multiple of num_kv_heads")
        if not 0 <= self.cache_len < self.max_seq:
            raise ValueError("cache_len must lie in [0, max_seq)")
        if self.cache_len + 1 > MAX_DECODE_POSITIONS:
            raise ValueError(
                f"at most {MAX_DECODE_POSITIONS} positions can be attended to"
            )

    @property
    def kv_heads(self) -> int:
        """Number of key/value heads actually used."""
        return self.num_kv_heads if self.num_kv_heads > 0 else self.num_heads


@dataclass(frozen=True)
class DecodeResult:
    """Output of one decode step: the attention output and updated caches."""

    y: np.ndarray
    k_cache: np.ndarray
    v_cache: np.ndarray


def _matrix(values: ArrayLike, rows: int, cols: int, name: str) -> np.ndarray:
    if values is None:
        raise ValueError(f"{name} is required")
    arr = np.asarray(values, dtype=np.float32)
    if arr.size != rows * cols:
        raise ValueError(f"{name} must hold {rows} x {cols} values, not {arr.size}")
    return arr.reshape(rows, cols)


def _bias(values: Optional[ArrayLike], size: int, name: str) -> np.ndarray:
    if values is None:
        return np.zeros(size, dtype=np.float32)
    arr = np.asarray(values, dtype=np.float32).reshape(-1)
    if arr.size < size:
        raise ValueError(f"{name} must hold at least {size} values")
    return arr[:size]


def _softmax_rows(scores: np.ndarray) -> np.ndarray:
    """Softmax over the last axis, with the reference's floors on max and sum."""
    peak = np.maximum(scores.max(axis=-1, keepdims=True), _SCORE_FLOOR)
    with np.errstate(over="ignore", invalid="ignore"):
        e = np.exp(scores - peak).astype(np.float32)
    total = np.maximum(e.sum(axis=-1, keepdims=True, dtype=np.float32), _SUM_FLOOR)
    return (e * (np.float32(1.0) / total)).astype(np.float32)


def mha_fused(
    x: ArrayLike,
    wq: ArrayLike,
    bq: Optional[ArrayLike],
    wk: ArrayLike,
    bk: Optional[ArrayLike],
    wv: ArrayLike,
    bv: Optional[ArrayLike],
    wo: ArrayLike,
    bo: Optional[ArrayLike],
    params: MhaFusedParams,
    residual: Optional[ArrayLike] = None,
) -> np.ndarray:
    """Full multi-head self-attention with output projection.

    Scores are multiplied by ``params.scale``. The residual is added only
    when ``params.has_residual`` is set and a residual is given.
    Returns a (batch, seq, hidden) float32 array.
    """
    if x is None:
        raise ValueError("mha_fused needs an input")
    if params is None:
        raise ValueError("mha_fused needs parameters")
    p = params
    b, s, d_model = p.batch_size, p.seq_len, p.hidden_size
    h, hd = p.num_heads, p.head_dim
    width = h * hd

    x_arr = np.asarray(x, dtype=np.float32)
    if x_arr.size != b * s * d_model:
        raise ValueError("input does not match batch_size * seq_len * hidden_size")
    x_arr = x_arr.reshape(b, s, d_model)

    wq_m = _matrix(wq, d_model, d_model, "wq")
    wk_m = _matrix(wk, d_model, d_model, "wk")
    wv_m = _matrix(wv, d_model, d_model, "wv")
    wo_m = _matrix(wo, d_model, d_model, "wo")

    q = x_arr @ wq_m + _bias(bq, d_model, "bq")
    k = x_arr @ wk_m + _bias(bk, d_model, "bk")
    v = x_arr @ wv_m + _bias(bv, d_model, "bv")

    def heads(t: np.ndarray) -> np.ndarray:
        return t[..., :width].reshape(b, s, h, hd).transpose(0, 2, 1, 3)

    qh, kh, vh = heads(q), heads(k), heads(v)
    scores = (qh @ kh.transpose(0, 1, 3, 2)) * np.float32(p.scale)
    attn = _softmax_rows(scores.astype(np.float32)) @ vh

    merged = np.zeros((b, s, d_model), dtype=np.float32)
    merged[..., :width] = attn.transpose(0, 2, 1, 3).reshape(b, s, width)

    y = merged @ wo_m + _bias(bo, d_model, "bo")
    if p.has_residual and residual is not None:
        r = np.asarray(residual, dtype=np.float32)
        if r.size != b * s * d_model:
            raise ValueError("residual does not match the input shape")
        y = y + r.reshape(b, s, d_model)
    return np.ascontiguousarray(y, dtype=np.float32)


def mha_decode(
    x_new: ArrayLike,
    k_cache: ArrayLike,
    v_cache: ArrayLike,
    wq: ArrayLike,
    bq: ArrayLike,
    wk: ArrayLike,
    bk: ArrayLike,
    wv: ArrayLike,
    bv: ArrayLike,
    wo: ArrayLike,
    bo: ArrayLike,
    params: MhaDecodeParams,
) -> DecodeResult:
    """Attend one new token per batch entry to every cached position and itself.

    The new token's key and value are written into copies of the caches at
    ``params.cache_len``; the inputs are left untouched. Query heads share
    key/value heads in groups when ``num_kv_heads`` is below ``num_heads``.
    """
    if params is None:
        raise ValueError("mha_decode needs parameters")
    named = {
        "x_new": x_new, "k_cache": k_cache, "v_cache": v_cache,
        "wq": wq, "bq": bq, "wk": wk, "bk": bk, "wv": wv, "bv": bv,
        "wo": wo, "bo": bo,
    }
    for name, value in named.items():
        if value is None:
            raise ValueError(f"{name} is required")

    p = params
    b, d_model = p.batch_size, p.hidden_size
    h, hd, h_kv = p.num_heads, p.head_dim, p.kv_heads
    width = h * hd
    kv_dim = h_kv * hd
    group = h // h_kv
    total = p.cache_len + 1

    x = np.asarray(x_new, dtype=np.float32)
    if x.size != b * d_model:
        raise ValueError("x_new does not match batch_size * hidden_size")
    x = x.reshape(b, d_model)

    cache_shape = (b, p.max_seq, h_kv, hd)
    k_out = np.array(k_cache, dtype=np.float32)
    v_out = np.array(v_cache, dtype=np.float32)
    for name, arr in (("k_cache", k_out), ("v_cache", v_out)):
        if arr.size != b * p.max_seq * kv_dim:
            raise ValueError(f"{name} must have shape {cache_shape}")
    k_out = k_out.reshape(cache_shape)
    v_out = v_out.reshape(cache_shape)

    wq_m = _matrix(wq, d_model, d_model, "wq")
    wk_m = _matrix(wk, d_model, kv_dim, "wk")
    wv_m = _matrix(wv, d_model, kv_dim, "wv")
    wo_arr = np.asarray(wo, dtype=np.float32).reshape(-1)
    if wo_arr.size < width * d_model:
        raise ValueError("wo must hold at least num_heads * head_dim rows")
    wo_m = wo_arr[: width * d_model].reshape(width, d_model)

    k_out[:, p.cache_len] = (x @ wk_m + _bias(bk, kv_dim, "bk")).reshape(b, h_kv, hd)
    v_out[:, p.cache_len] = (x @ wv_m + _bias(bv, kv_dim, "bv")).reshape(b, h_kv, hd)

    q = (x @ wq_m[:, :width] + _bias(bq, width, "bq")).reshape(b, h, hd)
    kv_index = np.arange(h) // group
    keys = k_out[:, :total][:, :, kv_index]
    values = v_out[:, :total][:, :, kv_index]

    scores = np.einsum("bhd,bthd->bht", q, keys).astype(np.float32)
    weights = _softmax_rows(scores * np.float32(p.scale))
    merged = np.einsum("bht,bthd->bhd", weights, values).astype(np.float32)

    y = _bias(bo, d_model, "bo") + merged.reshape(b, width) @ wo_m
    return DecodeResult(
        y=np.ascontiguousarray(y, dtype=np.float32).reshape(b, 1, d_model),
        k_cache=k_out,
        v_cache=v_out,
    )


def causal_mask(seq_len: int) -> np.ndarray:
    """Return a (seq_len, seq_len) mask: 0 on and below the diagonal, -inf above."""
    if seq_len < 0:
        raise ValueError("seq_len must not be negative")
    rows = np.arange(seq_len)[:, None]
    cols = np.arange(seq_len)[None, :]
    return np.where(cols <= rows, np.float32(0.0), np.float32(-np.inf)).astype(np.float32)