"""Sizes measured in 32-byte EVM words."""

from __future__ import annotations

import operator

WORD_BYTES = 32


def _size(size: int) -> int:
    size = operator.index(size)
    if size < 0:
        raise ValueError(f"size must not be negative, got {size}")
    return size


def evm_words(size: int) -> int:
    """The minimum number of EVM words needed to store ``size`` bytes."""
    return (_size(size) + WORD_BYTES - 1) // WORD_BYTES


def evm_padded_length(size: int) -> int:
    """``size`` rounded up to the next multiple of 32 bytes."""
    return evm_words(size) * WORD_BYTES