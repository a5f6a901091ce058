# forgeops

Reference implementations of common neural-network inference operators, written with
NumPy, plus a small reader for protobuf wire-format messages such as those found in
ONNX model files.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `forgeops.protobuf`: `parse_message`, `Message`, `Field`, `WireType`,
  `decode_packed_varints` and `decode_float_data`. Raw protobuf data is read field by
  field with no schema. `Message` offers `find`, `find_all`, `get_int64`, `get_int32`,
  `get_float`, `get_bytes` and `get_bool`; `Field.as_message` parses a
  length-delimited field as a nested message. Parsing stops quietly at the first
  malformed or unsupported field and keeps the fields read before it.
- `forgeops.activations`: `relu`, `sigmoid`, `gelu` (tanh approximation), `silu`, `exp`,
  `tanh` and `clip`.
- `forgeops.elementwise`: `add`, `mul` and `div`. The second operand is either a single
  value or a block whose size divides the first operand's size; the block is repeated
  across the first operand's flattened data.
- `forgeops.pooling`: `maxpool2d` and `avgpool2d` with `PoolParams` (kernel, stride,
  padding; `PoolParams.output_size` gives the output height and width), and
  `global_avgpool`. All take N x C x H x W input.
- `forgeops.normalization`: `batchnorm` (inference mode, per channel on axis 1) and
  `layernorm` (over trailing blocks of `len(gamma)` values).
- `forgeops.tensor_ops`: `concat`, `gather`, `reshape`, `pad` (`PadMode.CONSTANT`,
  `EDGE`, `REFLECT`), `cast` (`DType`, numbered as in ONNX) with a truncating software
  float16 encoder (`f32_to_f16_bits`) and decoder (`f16_bits_to_f32`), `argmax` and
  `reduce` (`ReduceOp.SUM`, `ReduceOp.MAX`) over consecutive blocks.
- `forgeops.attention`: fused multi-head self-attention (`mha_fused`,
  `MhaFusedParams`), single-token decoding with a key/value cache and grouped-query
  support (`mha_decode`, `MhaDecodeParams`, `DecodeResult`), and `causal_mask`.

## Examples

Reading a protobuf message:

```python
from forgeops.protobuf import parse_message

msg = parse_message(b"\x08\x96\x01")
msg.get_int64(1)   # 150
```

An embedding lookup:

```python
import numpy as np
from forgeops.tensor_ops import gather

table = np.arange(1, 13, dtype=np.float32).reshape(4, 3)
gather(table, [0.0, 2.0, 3.0])
# [[ 1,  2,  3], [ 7,  8,  9], [10, 11, 12]]
```

Decoding one token with a key/value cache:

```python
import numpy as np
from forgeops.attention import MhaDecodeParams, mha_decode

rng = np.random.default_rng(0)
hidden, heads, head_dim, max_seq = 8, 2, 4, 8

def rand(*shape):
    return rng.uniform(-1, 1, shape).astype(np.float32)

params = MhaDecodeParams(batch_size=1, hidden_size=hidden, num_heads=heads,
                         head_dim=head_dim, scale=0.5, cache_len=0, max_seq=max_seq)
k_cache = np.zeros((1, max_seq, heads, head_dim), dtype=np.float32)
v_cache = np.zeros_like(k_cache)
result = mha_decode(rand(1, 1, hidden), k_cache, v_cache,
                    rand(hidden, hidden), rand(hidden),
                    rand(hidden, hidden), rand(hidden),
                    rand(hidden, hidden), rand(hidden),
                    rand(hidden, hidden), rand(hidden), params)
result.y.shape        # (1, 1, 8)
result.k_cache[0, 0]  # key of the new token, written at position cache_len
```

The input caches are not modified; `DecodeResult` holds updated copies to pass to the
next step with `cache_len` increased by one.

## Conventions

Operators take array-likes and return `numpy.float32` arrays (`cast` returns int64,
float16 or a copy of the input as its target type requires). Invalid arguments raise
`ValueError`; `gather` raises `IndexError` for an index outside the axis.

## What this package does not do

- It has no general matrix-multiplication operator and no 2-D convolution operator.
- It does not load ONNX models, build computation graphs or run them: the protobuf
  reader returns raw fields only, and the operators are standalone functions.
- Everything runs on the CPU through NumPy; there is no GPU backend.
- There is no command-line program.