[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "evmstore"
version = "0.1.0"
description = "Solidity-compatible persistent storage layouts and VM host accessors, backed by an in-memory host"
requires-python = ">=3.10"
dependencies = ["pycryptodome"]
keywords = ["evm", "ethereum", "storage", "solidity", "keccak", "smart-contracts"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["evmstore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
