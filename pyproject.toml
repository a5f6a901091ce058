[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "forgeops"
version = "0.5.0"
description = "Reference neural-network inference operators in NumPy and a minimal protobuf wire-format reader"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["neural-network", "inference", "onnx", "protobuf", "operators", "attention", "kv-cache"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["forgeops"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
