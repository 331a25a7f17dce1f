"""Byte strings and text in persistent storage, laid out as in Solidity.

Short values (under 32 bytes) live in the root word with twice the length in
its last byte. Longer values store ``2 * length + 1`` in the root word. Their
bytes are packed from the keccak hash of the root slot onwards.
"""

from __future__ import annotations

import operator
from typing import Iterable, Iterator, Optional, Union

from .backend import WORD_BYTES, Key, StorageType
from .hostio import keccak256
from .primitives import StorageB8

_U256_LIMIT = 1 << 256
_SHORT_LIMIT = WORD_BYTES - 1


class StorageBytes(StorageType):
    """Accessor for a storage-backed byte string of unlimited length."""

    def __init__(self, slot: Key, offset: int = 0) -> None:
        if offset != 0:
            raise ValueError(f"bytes must start at offset 0, got {offset}")
        super().__init__(slot, offset)
        self._base: Optional[int] = None

    def __len__(self) -> int:
        word = self.storage.get_word(self.slot)
        if word[31] & 1 == 0:
            return word[31] // 2
        return int.from_bytes(word, "big") // 2

    def __iter__(self) -> Iterator[int]:
        return iter(self.get_bytes())

    def is_empty(self) -> bool:
        """Whether no bytes are stored."""
        return len(self) == 0

    @property
    def _base_slot(self) -> int:
        if self._base is None:
            self._base = keccak256(self.slot.to_bytes(WORD_BYTES, "big")).to_int()
        return self._base

    def _index_slot(self, index: int) -> tuple[int, int]:
        if len(self) >= WORD_BYTES:
            slot = (self._base_slot + index // WORD_BYTES) % _U256_LIMIT
        else:
            slot = self.slot
        return slot, index % WORD_BYTES

    def _write_len(self, length: int) -> None:
        if length < WORD_BYTES:
            self.storage.set_byte(self.slot, 31, length * 2)
        else:
            self.storage.set_word(self.slot, (length * 2 + 1).to_bytes(WORD_BYTES, "big"))

    def set_len(self, length: int) -> None:
        """Overwrites the length, moving bytes between representations as needed.

        Bytes beyond the old length hold whatever storage had there.
        """
        length = operator.index(length)
        if length < 0:
            raise ValueError(f"length must not be negative, got {length}")
        old = len(self)

        if (old < WORD_BYTES) == (length < WORD_BYTES):
            self._write_len(length)
            return

        if length < WORD_BYTES:
            word = self.storage.get_word(self._base_slot)
            self.storage.set_word(self.slot, word)
            self._write_len(length)
            return

        word = bytearray(self.storage.get_word(self.slot))
        word[31] = 0
        self.storage.set_word(self._base_slot, bytes(word))
        self._write_len(length)

    def push(self, byte: int) -> None:
        """Appends one byte."""
        byte = operator.index(byte)
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"byte value out of range: {byte}")
        index = len(self)

        if index < _SHORT_LIMIT:
            self.storage.set_byte(self.slot, index, byte)
            self._write_len(index + 1)
            return

        if index == _SHORT_LIMIT:
            # the length byte is copied too, but is overwritten just below
            self.storage.set_word(self._base_slot, self.storage.get_word(self.slot))

        slot = (self._base_slot + index // WORD_BYTES) % _U256_LIMIT
        self.storage.set_byte(slot, index % WORD_BYTES, byte)
        self._write_len(index + 1)

    def pop(self) -> Optional[int]:
        """Removes and returns the last byte, or None when empty.

        In the long representation a word is cleared only once all its bytes are freed.
        """
        length = len(self)
        if length == 0:
            return None

        index = length - 1
        clean = index % WORD_BYTES == 0
        byte = self.get(index)

        if length == WORD_BYTES:
            self.storage.set_word(self.slot, self.storage.get_word(self._base_slot))
            self.storage.clear_word(self._base_slot)

        if length > WORD_BYTES and clean:
            self.storage.clear_word(self._index_slot(index)[0])

        if length < WORD_BYTES:
            self.storage.set_byte(self.slot, index, 0)

        self._write_len(index)
        return byte

    def get(self, index: int) -> Optional[int]:
        """The byte at ``index``, or None when out of bounds."""
        index = operator.index(index)
        if not 0 <= index < len(self):
            return None
        return self.get_unchecked(index)

    def get_mut(self, index: int) -> Optional[StorageType]:
        """A one-byte accessor to the byte at ``index``, or None when out of bounds."""
        index = operator.index(index)
        if not 0 <= index < len(self):
            return None
        slot, offset = self._index_slot(index)
        return StorageB8(slot, offset)

    def get_unchecked(self, index: int) -> int:
        """The byte at ``index``, reading storage even beyond the length."""
        index = operator.index(index)
        if index < 0:
            raise ValueError(f"index must not be negative, got {index}")
        slot, offset = self._index_slot(index)
        return self.storage.get_byte(slot, offset)

    def get_bytes(self) -> bytes:
        """The whole contents."""
        return bytes(self.get_unchecked(index) for index in range(len(self)))

    def set_bytes(self, data: Union[bytes, bytearray, memoryview]) -> None:
        """Replaces the contents, erasing what was stored before."""
        self.erase()
        self.extend(bytes(data))

    def erase(self) -> None:
        """Clears every word the contents occupy and resets the length to zero."""
        remaining = len(self)
        if remaining > _SHORT_LIMIT:
            while remaining > 0:
                self.storage.clear_word(self._index_slot(remaining - 1)[0])
                remaining -= WORD_BYTES
        self.storage.clear_word(self.slot)

    def extend(self, data: Iterable[int]) -> None:
        """Appends every byte in ``data``."""
        for byte in data:
            self.push(byte)


class StorageString(StorageType):
    """Accessor for storage-backed UTF-8 text."""

    def __init__(self, slot: Key, offset: int = 0) -> None:
        self.raw = StorageBytes(slot, offset)
        super().__init__(slot, offset)

    def __len__(self) -> int:
        return len(self.raw)

    def is_empty(self) -> bool:
        """Whether no bytes are stored."""
        return self.raw.is_empty()

    def push(self, char: str) -> None:
        """Appends one character as its UTF-8 bytes."""
        if not isinstance(char, str) or len(char) != 1:
            raise ValueError(f"push takes a single character, got {char!r}")
        self.raw.extend(char.encode("utf-8"))

    def get_string(self) -> str:
        """The stored text; invalid UTF-8 becomes replacement characters."""
        return self.raw.get_bytes().decode("utf-8", errors="replace")

    def set_str(self, text: str) -> None:
        """Replaces the text, erasing what was stored before."""
        self.erase()
        self.extend(text)

    def erase(self) -> None:
        """Erases the text."""
        self.raw.erase()

    def extend(self, chars: Iterable[str]) -> None:
        """Appends every character in ``chars``."""
        for char in chars:
            self.push(char)