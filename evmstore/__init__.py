"""Solidity-compatible storage layouts and VM host accessors, backed by an in-memory host."""

__version__ = "0.1.0"