"""Dynamic arrays in persistent storage, laid out as in Solidity."""

from __future__ import annotations

import operator
from typing import Any, Iterable, Iterator, Optional

from .backend import WORD_BYTES, Key, StorageType
from .hostio import keccak256

_U256_LIMIT = 1 << 256


def _density(element: type) -> int:
    width = element.SLOT_BYTES
    if not 1 <= width <= WORD_BYTES:
        raise ValueError(f"element width must be 1 to {WORD_BYTES} bytes, got {width}")
    return WORD_BYTES // width


def _require_simple(element: type) -> None:
    if not callable(getattr(element, "set", None)):
        raise TypeError(f"{element.__name__} cannot be handled by value")


class StorageVec(StorageType):
    """Accessor for a storage-backed vector of ``ELEMENT`` accessors.

    The length lives at the vector's slot; elements start at the keccak hash
    of that slot. Build a concrete vector type with :meth:`of`.
    """

    ELEMENT: Optional[type] = None

    def __init__(self, slot: Key, offset: int = 0) -> None:
        if self.ELEMENT is None:
            raise TypeError("build a vector type with StorageVec.of(element)")
        if offset != 0:
            raise ValueError(f"a vector must start at offset 0, got {offset}")
        super().__init__(slot, offset)
        self._base: Optional[int] = None

    @classmethod
    def of(cls, element: type) -> type:
        """The vector type holding elements of accessor type ``element``."""
        _density(element)
        return type(
            f"StorageVec[{element.__name__}]",
            (cls,),
            {"ELEMENT": element, "__module__": __name__},
        )

    def __len__(self) -> int:
        return int.from_bytes(self.storage.get_word(self.slot), "big")

    def __iter__(self) -> Iterator[Any]:
        for index in range(len(self)):
            yield self.get(index)

    def is_empty(self) -> bool:
        """Whether the vector holds no elements."""
        return len(self) == 0

    def set_len(self, length: int) -> None:
        """Overwrites the length; elements beyond the old length hold whatever storage has."""
        length = operator.index(length)
        if not 0 <= length < _U256_LIMIT:
            raise ValueError(f"invalid length: {length}")
        self.storage.set_word(self.slot, length.to_bytes(WORD_BYTES, "big"))

    @property
    def _base_slot(self) -> int:
        if self._base is None:
            self._base = keccak256(self.slot.to_bytes(WORD_BYTES, "big")).to_int()
        return self._base

    def _index_slot(self, index: int) -> tuple[int, int]:
        element = self.ELEMENT
        width = element.SLOT_BYTES
        words = max(element.REQUIRED_SLOTS, 1)
        density = _density(element)
        slot = (self._base_slot + words * index // density) % _U256_LIMIT
        offset = WORD_BYTES - width * (1 + index % density)
        return slot, offset

    def _accessor_unchecked(self, index: int) -> StorageType:
        slot, offset = self._index_slot(index)
        return self.ELEMENT(slot, offset)

    def _accessor(self, index: int) -> Optional[StorageType]:
        index = operator.index(index)
        if not 0 <= index < len(self):
            return None
        return self._accessor_unchecked(index)

    def getter(self, index: int) -> Optional[StorageType]:
        """Accessor to the element at ``index``, or None when out of bounds."""
        return self._accessor(index)

    def setter(self, index: int) -> Optional[StorageType]:
        """Mutable accessor to the element at ``index``, or None when out of bounds."""
        return self._accessor(index)

    def get(self, index: int) -> Any:
        """The element at ``index``, or None when out of bounds."""
        store = self._accessor(index)
        return None if store is None else store.load()

    def get_mut(self, index: int) -> Any:
        """A mutable view of the element at ``index``, or None when out of bounds."""
        store = self._accessor(index)
        return None if store is None else store.load_mut()

    def grow(self) -> StorageType:
        """Appends an element and returns an accessor to it."""
        index = len(self)
        self.set_len(index + 1)
        return self._accessor_unchecked(index)

    def shrink(self) -> Optional[StorageType]:
        """Removes the last element and returns an accessor to it, or None when empty."""
        length = len(self)
        if length == 0:
            return None
        index = length - 1
        self.set_len(index)
        return self._accessor_unchecked(index)

    def truncate(self, length: int) -> None:
        """Keeps the first ``length`` elements; storage is not erased."""
        if length < len(self):
            self.set_len(length)

    def push(self, value: Any) -> None:
        """Appends ``value``."""
        _require_simple(self.ELEMENT)
        self.grow().set(value)

    def pop(self) -> Any:
        """Removes and returns the last value, or None when empty.

        A storage word is cleared once all elements in it are freed.
        """
        _require_simple(self.ELEMENT)
        store = self.shrink()
        if store is None:
            return None
        index = len(self)
        value = store.load()
        if index % _density(self.ELEMENT) == 0:
            slot = self._index_slot(index)[0]
            for word in range(max(self.ELEMENT.REQUIRED_SLOTS, 1)):
                self.storage.clear_word((slot + word) % _U256_LIMIT)
        return value

    def erase_last(self) -> None:
        """Erases and removes the last element, if any."""
        if self.is_empty():
            return
        index = len(self) - 1
        self._accessor_unchecked(index).erase()
        self.set_len(index)

    def erase(self) -> None:
        """Erases every element and sets the length to zero."""
        for index in range(len(self)):
            self._accessor_unchecked(index).erase()
        self.truncate(0)

    def extend(self, values: Iterable[Any]) -> None:
        """Appends every value in ``values``."""
        for value in values:
            self.push(value)