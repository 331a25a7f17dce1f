"""Access to persistent storage: eager and cached backends, and the accessor base."""

from __future__ import annotations

import abc
import contextlib
import contextvars
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from .hostio import FixedBytes, current_host

WORD_BYTES = 32
_U256_LIMIT = 1 << 256

Key = Union[int, bytes]


def _key(key: Key) -> int:
    if isinstance(key, int):
        if not 0 <= key < _U256_LIMIT:
            raise ValueError("storage key out of range")
        return key
    raw = bytes(key)
    if len(raw) != WORD_BYTES:
        raise ValueError(f"storage key needs {WORD_BYTES} bytes, got {len(raw)}")
    return int.from_bytes(raw, "big")


def _check_span(offset: int, size: int) -> None:
    if offset < 0 or size < 0 or offset + size > WORD_BYTES:
        raise ValueError(f"{size} bytes at offset {offset} cross a word boundary")


def _check_bits(bits: int) -> int:
    if not 1 <= bits <= 256:
        raise ValueError(f"integer width must be 1 to 256 bits, got {bits}")
    return bits // 8


def load_bytes32(key: Key) -> FixedBytes:
    """Reads a word from persistent storage directly, bypassing all caches."""
    return FixedBytes(current_host().storage_load_bytes32(_key(key)), size=WORD_BYTES)


def store_bytes32(key: Key, data: bytes) -> None:
    """Writes a word to persistent storage directly, bypassing all caches."""
    current_host().storage_store_bytes32(_key(key), FixedBytes(data, size=WORD_BYTES))


class GlobalStorage(abc.ABC):
    """Word-level access to persistent storage, with helpers for packed values."""

    @abc.abstractmethod
    def get_word(self, key: Key) -> FixedBytes:
        """The 32-byte word at ``key``."""

    @abc.abstractmethod
    def set_word(self, key: Key, value: bytes) -> None:
        """Stores a 32-byte word at ``key``."""

    def get(self, key: Key, offset: int, size: int) -> FixedBytes:
        """``size`` bytes of the word at ``key``, starting ``offset`` bytes from the left."""
        _check_span(offset, size)
        word = self.get_word(key)
        return FixedBytes(word[offset:offset + size], size=size)

    def get_uint(self, key: Key, offset: int, bits: int) -> int:
        """An unsigned integer of ``bits`` bits read at ``offset``."""
        size = _check_bits(bits)
        return int.from_bytes(self.get(key, offset, size), "big")

    def get_signed(self, key: Key, offset: int, bits: int) -> int:
        """A two's-complement integer of ``bits`` bits read at ``offset``."""
        raw = self.get_uint(key, offset, bits)
        if raw >= 1 << (bits - 1):
            raw -= 1 << bits
        return raw

    def get_byte(self, key: Key, offset: int) -> int:
        """The byte at ``offset`` of the word at ``key``."""
        return self.get(key, offset, 1)[0]

    def set(self, key: Key, offset: int, value: bytes) -> None:
        """Writes ``value`` into the word at ``key``, starting ``offset`` bytes from the left."""
        raw = bytes(value)
        _check_span(offset, len(raw))
        if len(raw) == WORD_BYTES:
            self.set_word(key, raw)
            return
        word = bytearray(self.get_word(key))
        word[offset:offset + len(raw)] = raw
        self.set_word(key, bytes(word))

    def set_uint(self, key: Key, offset: int, value: int, bits: int) -> None:
        """Writes an unsigned integer of ``bits`` bits at ``offset``."""
        size = _check_bits(bits)
        if not 0 <= value < 1 << bits:
            raise ValueError(f"{value} does not fit in {bits} unsigned bits")
        if bits == 256:
            self.set_word(key, value.to_bytes(WORD_BYTES, "big"))
            return
        encoded = value.to_bytes((bits + 7) // 8, "big")
        self.set(key, offset, encoded[len(encoded) - size:])

    def set_signed(self, key: Key, offset: int, value: int, bits: int) -> None:
        """Writes a two's-complement integer of ``bits`` bits at ``offset``."""
        _check_bits(bits)
        limit = 1 << (bits - 1)
        if not -limit <= value < limit:
            raise ValueError(f"{value} does not fit in {bits} signed bits")
        self.set_uint(key, offset, value % (1 << bits), bits)

    def set_byte(self, key: Key, offset: int, value: int) -> None:
        """Writes one byte at ``offset``."""
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value out of range: {value}")
        self.set(key, offset, bytes([value]))

    def clear_word(self, key: Key) -> None:
        """Zeroes the word at ``key``."""
        self.set_word(key, FixedBytes.zero(WORD_BYTES))


class EagerStorage(GlobalStorage):
    """Storage that reads and writes the host on every access."""

    def get_word(self, key: Key) -> FixedBytes:
        return load_bytes32(key)

    def set_word(self, key: Key, value: bytes) -> None:
        store_bytes32(key, value)


@dataclass
class StorageWord:
    """A cached word and, if known, the value held by the host."""

    value: FixedBytes
    known: Optional[FixedBytes] = None

    @classmethod
    def new_known(cls, known: bytes) -> "StorageWord":
        word = FixedBytes(known, size=WORD_BYTES)
        return cls(value=word, known=word)

    @classmethod
    def new_unknown(cls, value: bytes) -> "StorageWord":
        return cls(value=FixedBytes(value, size=WORD_BYTES))

    def dirty(self) -> bool:
        """Whether the word must be written back to the host."""
        return self.known is None or self.value != self.known


class StorageCache(GlobalStorage):
    """Storage that caches words and writes them back on :meth:`flush`."""

    def __init__(self) -> None:
        self._words: dict[int, StorageWord] = {}

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, key: object) -> bool:
        try:
            return _key(key) in self._words  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False

    def get_word(self, key: Key) -> FixedBytes:
        slot = _key(key)
        entry = self._words.get(slot)
        if entry is None:
            entry = StorageWord.new_known(load_bytes32(slot))
            self._words[slot] = entry
        return entry.value

    def set_word(self, key: Key, value: bytes) -> None:
        self._words[_key(key)] = StorageWord.new_unknown(value)

    def flush(self) -> None:
        """Writes every dirty word to the host, keeping the cache."""
        for slot, entry in self._words.items():
            if entry.dirty():
                store_bytes32(slot, entry.value)

    def clear(self) -> None:
        """Flushes and then empties the cache."""
        self.flush()
        self._words.clear()


_STORAGE: contextvars.ContextVar[GlobalStorage] = contextvars.ContextVar(
    "evmstore_storage", default=StorageCache()
)


def current_storage() -> GlobalStorage:
    """The storage backend that is active in this context."""
    return _STORAGE.get()


@contextlib.contextmanager
def use_storage(storage: GlobalStorage) -> Iterator[GlobalStorage]:
    """Makes ``storage`` the active backend for the duration of the block."""
    token = _STORAGE.set(storage)
    try:
        yield storage
    finally:
        _STORAGE.reset(token)


class StorageType:
    """Base of accessors that live at a slot and byte offset in storage."""

    SLOT_BYTES = 32
    REQUIRED_SLOTS = 0

    def __init__(self, slot: Key, offset: int = 0) -> None:
        if not 0 <= offset < WORD_BYTES:
            raise ValueError(f"offset must be 0 to {WORD_BYTES - 1}, got {offset}")
        self.slot = _key(slot)
        self.offset = offset

    @property
    def storage(self) -> GlobalStorage:
        return current_storage()

    def load(self):
        """The stored value; collections return themselves."""
        return self

    def load_mut(self):
        """A mutable accessor to the stored value."""
        return self

    def erase(self) -> None:
        """Erases the value from storage."""
        raise TypeError(f"{type(self).__name__} cannot be erased")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(slot={self.slot:#x}, offset={self.offset})"