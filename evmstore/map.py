"""Mappings in persistent storage, with Solidity's slot assignment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from .backend import WORD_BYTES, Key, StorageType
from .hostio import Address, FixedBytes, keccak256

_U256_LIMIT = 1 << 256


@dataclass(frozen=True)
class SignedKey:
    """A signed integer key of a given width, hashed in two's complement."""

    value: int
    bits: int = 256

    def __post_init__(self) -> None:
        if not 1 <= self.bits <= 256:
            raise ValueError(f"integer width must be 1 to 256 bits, got {self.bits}")
        limit = 1 << (self.bits - 1)
        if not -limit <= self.value < limit:
            raise ValueError(f"{self.value} does not fit in {self.bits} signed bits")

    def _word(self) -> bytes:
        return (self.value % (1 << self.bits)).to_bytes(WORD_BYTES, "big")


def _root(root: Key) -> bytes:
    if isinstance(root, int):
        if not 0 <= root < _U256_LIMIT:
            raise ValueError("storage slot out of range")
        return root.to_bytes(WORD_BYTES, "big")
    raw = bytes(root)
    if len(raw) != WORD_BYTES:
        raise ValueError(f"storage slot needs {WORD_BYTES} bytes, got {len(raw)}")
    return raw


def _key_data(key: Any) -> bytes:
    if isinstance(key, SignedKey):
        return key._word()
    if isinstance(key, bool):
        return int(key).to_bytes(WORD_BYTES, "big")
    if isinstance(key, Address):
        return int.from_bytes(key, "big").to_bytes(WORD_BYTES, "big")
    if isinstance(key, FixedBytes):
        if len(key) > WORD_BYTES:
            raise ValueError(f"fixed bytes key longer than {WORD_BYTES} bytes")
        return bytes(key).ljust(WORD_BYTES, b"\0")
    if isinstance(key, int):
        if key < 0:
            raise ValueError("negative keys need an explicit width: use SignedKey")
        if key >= _U256_LIMIT:
            raise ValueError("integer key does not fit in 256 bits")
        return key.to_bytes(WORD_BYTES, "big")
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, (bytes, bytearray, memoryview)):
        return bytes(key)
    raise TypeError(f"unsupported map key type: {type(key).__name__}")


def key_slot(key: Union[int, bool, bytes, str, SignedKey], root: Key) -> int:
    """The slot of ``key`` in a map rooted at ``root``."""
    return keccak256(_key_data(key) + _root(root)).to_int()


def _set_by_wrapped(store: StorageType, value: Any) -> None:
    setter = getattr(store, "set", None)
    if not callable(setter):
        raise TypeError(f"{type(store).__name__} cannot be assigned a value directly")
    setter(value)


class StorageMap(StorageType):
    """Accessor for a storage-backed map to values of accessor type ``VALUE``.

    Build a concrete map type with :meth:`of`.
    """

    VALUE: Optional[type] = None

    def __init__(self, slot: Key, offset: int = 0) -> None:
        if self.VALUE is None:
            raise TypeError("build a map type with StorageMap.of(value_type)")
        if offset != 0:
            raise ValueError(f"a map must start at offset 0, got {offset}")
        super().__init__(slot, offset)

    @classmethod
    def of(cls, value_type: type) -> type:
        """The map type whose values use accessor type ``value_type``."""
        width = value_type.SLOT_BYTES
        if not 1 <= width <= WORD_BYTES:
            raise ValueError(f"value width must be 1 to {WORD_BYTES} bytes, got {width}")
        return type(
            f"StorageMap[{value_type.__name__}]",
            (cls,),
            {"VALUE": value_type, "__module__": __name__},
        )

    @property
    def _child_offset(self) -> int:
        return WORD_BYTES - self.VALUE.SLOT_BYTES

    def _accessor(self, key: Any) -> StorageType:
        return self.VALUE(key_slot(key, self.slot), self._child_offset)

    def getter(self, key: Any) -> StorageType:
        """Accessor to the value at ``key``; it holds the zero value when unset."""
        return self._accessor(key)

    def setter(self, key: Any) -> StorageType:
        """Mutable accessor to the value at ``key``."""
        return self._accessor(key)

    def get(self, key: Any) -> Any:
        """The value at ``key``, or the zero value when unset."""
        return self._accessor(key).load()

    def insert(self, key: Any, value: Any) -> None:
        """Sets the value at ``key``."""
        _set_by_wrapped(self._accessor(key), value)

    def replace(self, key: Any, value: Any) -> Any:
        """Sets the value at ``key`` and returns the previous one."""
        store = self._accessor(key)
        if not callable(getattr(store, "set", None)):
            raise TypeError(f"{type(store).__name__} cannot be assigned a value directly")
        prior = store.load()
        _set_by_wrapped(self._accessor(key), value)
        return prior

    def take(self, key: Any) -> Any:
        """Erases the value at ``key`` and returns what it held."""
        store = self._accessor(key)
        if not callable(getattr(store, "set", None)):
            raise TypeError(f"{type(store).__name__} cannot be taken by value")
        value = store.load()
        self._accessor(key).erase()
        return value

    def delete(self, key: Any) -> None:
        """Erases the value at ``key``."""
        self._accessor(key).erase()