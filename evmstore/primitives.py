"""Storage accessors for integers, fixed bytes, booleans, addresses and block values.

Each accessor reads its value once and caches it; writes update both the
cache and the active storage backend.
"""

from __future__ import annotations

import functools
import operator
from typing import Any

from .backend import WORD_BYTES, Key, StorageType
from .hostio import Address, FixedBytes

_UNSET: Any = object()
_U64_LIMIT = 1 << 64


class _CachedScalar(StorageType):
    """Accessor for a value packed inline in one word, cached after first read."""

    def __init__(self, slot: Key, offset: int = 0) -> None:
        super().__init__(slot, offset)
        if offset + self.SLOT_BYTES > WORD_BYTES:
            raise ValueError(
                f"{self.SLOT_BYTES} bytes at offset {offset} cross a word boundary"
            )
        self._cached = _UNSET

    def _read(self) -> Any:
        raise NotImplementedError

    def _write(self, value: Any) -> Any:
        raise NotImplementedError

    def _fetch(self) -> Any:
        if self._cached is _UNSET:
            self._cached = self._read()
        return self._cached

    def _store(self, value: Any) -> None:
        self._cached = self._write(value)


class StorageUint(_CachedScalar):
    """Accessor for an unsigned integer of ``BITS`` bits."""

    BITS = 256
    SLOT_BYTES = 32

    def _read(self) -> int:
        return self.storage.get_uint(self.slot, self.offset, self.BITS)

    def _write(self, value: int) -> int:
        value = operator.index(value)
        if not 0 <= value < 1 << self.BITS:
            raise ValueError(f"{value} does not fit in {self.BITS} unsigned bits")
        self.storage.set_uint(self.slot, self.offset, value, self.BITS)
        return value

    def get(self) -> int:
        """The stored integer."""
        return self._fetch()

    def set(self, value: int) -> None:
        """Stores ``value``."""
        self._store(value)

    def load(self) -> int:
        """The stored integer."""
        return self.get()

    def erase(self) -> None:
        """Sets the value to zero."""
        self.set(0)


class StorageSigned(_CachedScalar):
    """Accessor for a two's-complement integer of ``BITS`` bits."""

    BITS = 256
    SLOT_BYTES = 32

    def _read(self) -> int:
        return self.storage.get_signed(self.slot, self.offset, self.BITS)

    def _write(self, value: int) -> int:
        value = operator.index(value)
        limit = 1 << (self.BITS - 1)
        if not -limit <= value < limit:
            raise ValueError(f"{value} does not fit in {self.BITS} signed bits")
        self.storage.set_signed(self.slot, self.offset, value, self.BITS)
        return value

    def get(self) -> int:
        """The stored integer."""
        return self._fetch()

    def set(self, value: int) -> None:
        """Stores ``value``."""
        self._store(value)

    def load(self) -> int:
        """The stored integer."""
        return self.get()

    def erase(self) -> None:
        """Sets the value to zero."""
        self.set(0)


class StorageFixedBytes(_CachedScalar):
    """Accessor for ``SIZE`` fixed bytes."""

    SIZE = 32
    SLOT_BYTES = 32

    def _read(self) -> FixedBytes:
        return self.storage.get(self.slot, self.offset, self.SIZE)

    def _write(self, value: bytes) -> FixedBytes:
        data = FixedBytes(value, size=self.SIZE)
        self.storage.set(self.slot, self.offset, data)
        return data

    def get(self) -> FixedBytes:
        """The stored bytes."""
        return self._fetch()

    def set(self, value: bytes) -> None:
        """Stores ``value``."""
        self._store(value)

    def load(self) -> FixedBytes:
        """The stored bytes."""
        return self.get()

    def erase(self) -> None:
        """Sets every byte to zero."""
        self.set(bytes(self.SIZE))


class StorageBool(_CachedScalar):
    """Accessor for a boolean stored in one byte."""

    SLOT_BYTES = 1

    def _read(self) -> bool:
        return self.storage.get_byte(self.slot, self.offset) != 0

    def _write(self, value: bool) -> bool:
        flag = bool(value)
        self.storage.set_byte(self.slot, self.offset, int(flag))
        return flag

    def get(self) -> bool:
        """The stored flag."""
        return self._fetch()

    def set(self, value: bool) -> None:
        """Stores ``value``."""
        self._store(value)

    def load(self) -> bool:
        """The stored flag."""
        return self.get()

    def erase(self) -> None:
        """Sets the value to false."""
        self.set(False)


class StorageAddress(_CachedScalar):
    """Accessor for a 20-byte address."""

    SLOT_BYTES = 20

    def _read(self) -> Address:
        return Address(self.storage.get(self.slot, self.offset, Address.SIZE))

    def _write(self, value: Any) -> Address:
        address = Address(value)
        self.storage.set(self.slot, self.offset, address)
        return address

    def get(self) -> Address:
        """The stored address."""
        return self._fetch()

    def set(self, value: Any) -> None:
        """Stores ``value``."""
        self._store(value)

    def load(self) -> Address:
        """The stored address."""
        return self.get()

    def erase(self) -> None:
        """Sets the address to zero."""
        self.set(Address.ZERO)


class StorageBlockNumber(_CachedScalar):
    """Accessor for a block number stored as 8 big-endian bytes."""

    SLOT_BYTES = 8

    def _read(self) -> int:
        return int.from_bytes(self.storage.get(self.slot, self.offset, 8), "big")

    def _write(self, value: int) -> int:
        value = operator.index(value)
        if not 0 <= value < _U64_LIMIT:
            raise ValueError(f"block number must fit in 64 bits, got {value}")
        self.storage.set(self.slot, self.offset, value.to_bytes(8, "big"))
        return value

    def get(self) -> int:
        """The stored block number."""
        return self._fetch()

    def set(self, value: int) -> None:
        """Stores ``value``."""
        self._store(value)

    def load(self) -> int:
        """The stored block number."""
        return self.get()

    def erase(self) -> None:
        """Sets the block number to zero."""
        self.set(0)


class StorageBlockHash(_CachedScalar):
    """Accessor for a block hash filling a whole word; the offset is ignored."""

    SLOT_BYTES = 32

    def __init__(self, slot: Key, offset: int = 0) -> None:
        super().__init__(slot, 0)
        StorageType.__init__(self, slot, offset)
        self.offset = 0

    def _read(self) -> FixedBytes:
        return FixedBytes(self.storage.get_word(self.slot), size=WORD_BYTES)

    def _write(self, value: bytes) -> FixedBytes:
        digest = FixedBytes(value, size=WORD_BYTES)
        self.storage.set_word(self.slot, digest)
        return digest

    def get(self) -> FixedBytes:
        """The stored hash."""
        return self._fetch()

    def set(self, value: bytes) -> None:
        """Stores ``value``."""
        self._store(value)

    def load(self) -> FixedBytes:
        """The stored hash."""
        return self.get()

    def erase(self) -> None:
        """Sets the hash to zero."""
        self.set(bytes(WORD_BYTES))


def _check_bits(bits: int) -> int:
    bits = operator.index(bits)
    if not 1 <= bits <= 256:
        raise ValueError(f"integer width must be 1 to 256 bits, got {bits}")
    return bits


@functools.lru_cache(maxsize=None)
def uint_type(bits: int) -> type:
    """The accessor class for unsigned integers of ``bits`` bits."""
    bits = _check_bits(bits)
    return type(
        f"StorageU{bits}",
        (StorageUint,),
        {"BITS": bits, "SLOT_BYTES": bits // 8, "__module__": __name__},
    )


@functools.lru_cache(maxsize=None)
def signed_type(bits: int) -> type:
    """The accessor class for signed integers of ``bits`` bits."""
    bits = _check_bits(bits)
    return type(
        f"StorageI{bits}",
        (StorageSigned,),
        {"BITS": bits, "SLOT_BYTES": bits // 8, "__module__": __name__},
    )


@functools.lru_cache(maxsize=None)
def fixed_bytes_type(size: int) -> type:
    """The accessor class for ``size`` fixed bytes."""
    size = operator.index(size)
    if not 1 <= size <= WORD_BYTES:
        raise ValueError(f"fixed bytes must be 1 to {WORD_BYTES} long, got {size}")
    return type(
        f"StorageB{size * 8}",
        (StorageFixedBytes,),
        {"SIZE": size, "SLOT_BYTES": size, "__module__": __name__},
    )


StorageU1 = uint_type(1)
StorageU8 = uint_type(8)
StorageU16 = uint_type(16)
StorageU32 = uint_type(32)
StorageU64 = uint_type(64)
StorageU128 = uint_type(128)
StorageU160 = uint_type(160)
StorageU192 = uint_type(192)
StorageU256 = uint_type(256)

StorageI1 = signed_type(1)
StorageI8 = signed_type(8)
StorageI16 = signed_type(16)
StorageI32 = signed_type(32)
StorageI64 = signed_type(64)
StorageI128 = signed_type(128)
StorageI160 = signed_type(160)
StorageI192 = signed_type(192)
StorageI256 = signed_type(256)

StorageB8 = fixed_bytes_type(1)
StorageB16 = fixed_bytes_type(2)
StorageB32 = fixed_bytes_type(4)
StorageB64 = fixed_bytes_type(8)
StorageB96 = fixed_bytes_type(12)
StorageB128 = fixed_bytes_type(16)
StorageB160 = fixed_bytes_type(20)
StorageB192 = fixed_bytes_type(24)
StorageB224 = fixed_bytes_type(28)
StorageB256 = fixed_bytes_type(32)