"""Reference neural-network inference operators in NumPy and a protobuf wire-format reader."""

__version__ = "0.5.0"

__all__ = [
    "protobuf",
    "activations",
    "elementwise",
    "pooling",
    "normalization",
    "tensor_ops",
    "attention",
]