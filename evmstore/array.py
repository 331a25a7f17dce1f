"""Fixed-length arrays in persistent storage, laid out as in Solidity."""

from __future__ import annotations

import operator
from typing import Any, Iterator, Optional

from .backend import WORD_BYTES, Key, StorageType

_U256_LIMIT = 1 << 256


def _density(element: type) -> int:
    width = element.SLOT_BYTES
    if not 1 <= width <= WORD_BYTES:
        raise ValueError(f"element width must be 1 to {WORD_BYTES} bytes, got {width}")
    return WORD_BYTES // width


class StorageArray(StorageType):
    """Accessor for a storage-backed array of ``LENGTH`` elements of ``ELEMENT``.

    Build a concrete array type with :meth:`of`.
    """

    ELEMENT: Optional[type] = None
    LENGTH = 0

    def __init__(self, slot: Key, offset: int = 0) -> None:
        if self.ELEMENT is None:
            raise TypeError("build an array type with StorageArray.of(element, length)")
        if offset != 0:
            raise ValueError(f"an array must start at offset 0, got {offset}")
        super().__init__(slot, offset)

    @classmethod
    def of(cls, element: type, length: int) -> type:
        """The array type holding ``length`` elements of accessor type ``element``."""
        length = operator.index(length)
        if length < 0:
            raise ValueError(f"array length must not be negative, got {length}")
        _density(element)
        array = type(
            f"StorageArray[{element.__name__}, {length}]",
            (cls,),
            {"ELEMENT": element, "LENGTH": length, "__module__": __name__},
        )
        array.REQUIRED_SLOTS = array.required_slots()
        return array

    @classmethod
    def required_slots(cls) -> int:
        """Number of words the array occupies."""
        if cls.ELEMENT is None:
            raise TypeError("build an array type with StorageArray.of(element, length)")
        reserved = cls.LENGTH * cls.ELEMENT.REQUIRED_SLOTS
        density = _density(cls.ELEMENT)
        packed = -(-cls.LENGTH // density)
        return max(reserved, packed)

    def __len__(self) -> int:
        return self.LENGTH

    def __iter__(self) -> Iterator[Any]:
        for index in range(self.LENGTH):
            yield self.get(index)

    def _index_slot(self, index: int) -> tuple[int, int]:
        element = self.ELEMENT
        width = element.SLOT_BYTES
        words = max(element.REQUIRED_SLOTS, 1)
        density = _density(element)
        slot = (self.slot + words * index // density) % _U256_LIMIT
        offset = WORD_BYTES - width * (1 + index % density)
        return slot, offset

    def _accessor_unchecked(self, index: int) -> StorageType:
        slot, offset = self._index_slot(index)
        return self.ELEMENT(slot, offset)

    def _accessor(self, index: int) -> Optional[StorageType]:
        index = operator.index(index)
        if not 0 <= index < self.LENGTH:
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

    def erase(self) -> None:
        """Erases every element."""
        for index in range(self.LENGTH):
            self._accessor_unchecked(index).erase()