"""Host interface of the virtual machine, with an in-memory host for running off-chain.

The host holds account state, call context and persistent storage. A single
host is active per context; storage accessors and the ``msg``/``tx`` helpers
read through :func:`current_host`.
"""

from __future__ import annotations

import contextlib
import contextvars
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterator, Optional, TypeVar, Union

from Crypto.Hash import keccak

T = TypeVar("T")

_U256_LIMIT = 1 << 256
_MAX_LOG_TOPICS = 4


class FixedBytes(bytes):
    """Immutable byte string whose length is fixed at construction."""

    SIZE: Optional[int] = None

    def __new__(cls, data: Union[bytes, bytearray, memoryview, str] = b"", size: Optional[int] = None):
        if isinstance(data, str):
            text = data[2:] if data[:2].lower() == "0x" else data
            try:
                raw = bytes.fromhex(text)
            except ValueError as exc:
                raise ValueError(f"invalid hex string: {data!r}") from exc
        else:
            raw = bytes(data)
        expected = size if size is not None else cls.SIZE
        if expected is not None and len(raw) != expected:
            raise ValueError(f"{cls.__name__} needs {expected} bytes, got {len(raw)}")
        return super().__new__(cls, raw)

    @classmethod
    def _default_size(cls, size: Optional[int]) -> int:
        if size is not None:
            return size
        return cls.SIZE if cls.SIZE is not None else 32

    @classmethod
    def zero(cls, size: Optional[int] = None) -> "FixedBytes":
        """All-zero value of the given (or the class's) size."""
        n = cls._default_size(size)
        return cls(bytes(n), size=n)

    @classmethod
    def from_int(cls, value: int, size: Optional[int] = None) -> "FixedBytes":
        """Big-endian encoding of a non-negative integer."""
        n = cls._default_size(size)
        if value < 0:
            raise ValueError("value must not be negative")
        try:
            raw = value.to_bytes(n, "big")
        except OverflowError as exc:
            raise ValueError(f"value does not fit in {n} bytes") from exc
        return cls(raw, size=n)

    def to_int(self) -> int:
        """The bytes read as a big-endian unsigned integer."""
        return int.from_bytes(self, "big")

    @property
    def is_zero(self) -> bool:
        return not any(self)

    def __str__(self) -> str:
        return "0x" + self.hex()

    def __repr__(self) -> str:
        return f"{type(self).__name__}('{self}')"


class Address(FixedBytes):
    """A 20-byte account address."""

    SIZE = 20
    ZERO: "Address"


Address.ZERO = Address(bytes(20))


def keccak256(data: Union[bytes, bytearray, memoryview]) -> FixedBytes:
    """Keccak-256 digest of ``data`` as a 32-byte value."""
    digest = keccak.new(digest_bits=256)
    digest.update(bytes(data))
    return FixedBytes(digest.digest())


def _slot(key: Union[int, bytes]) -> int:
    if isinstance(key, int):
        if not 0 <= key < _U256_LIMIT:
            raise ValueError("storage key out of range")
        return key
    raw = bytes(key)
    if len(raw) != 32:
        raise ValueError(f"storage key needs 32 bytes, got {len(raw)}")
    return int.from_bytes(raw, "big")


@dataclass
class Host:
    """In-memory host: account state, call context and storage."""

    storage: dict = field(default_factory=dict)
    balances: dict = field(default_factory=dict)
    codehashes: dict = field(default_factory=dict)
    sender: Address = Address.ZERO
    value: int = 0
    reentrant: bool = False
    origin: Address = Address.ZERO
    gas_price: int = 0
    ink_price: int = 1
    chain_id: int = 0
    basefee: int = 0
    coinbase: Address = Address.ZERO
    gas_limit: int = 0
    number: int = 0
    timestamp: int = 0
    address: Address = Address.ZERO
    args: bytes = b""
    result: bytes = b""
    logs: list = field(default_factory=list)

    def storage_load_bytes32(self, key: Union[int, bytes]) -> FixedBytes:
        """Reads the 32-byte word at ``key``; zero when never set."""
        return self.storage.get(_slot(key), FixedBytes.zero(32))

    def storage_store_bytes32(self, key: Union[int, bytes], value: bytes) -> None:
        """Writes a 32-byte word at ``key``."""
        word = FixedBytes(value, size=32)
        slot = _slot(key)
        if word.is_zero:
            self.storage.pop(slot, None)
        else:
            self.storage[slot] = word

    def account_balance(self, address: bytes) -> int:
        """Balance in wei of the account."""
        return self.balances.get(Address(address), 0)

    def account_codehash(self, address: bytes) -> FixedBytes:
        """Code hash of the account; zero for an account that does not exist."""
        return self.codehashes.get(Address(address), FixedBytes.zero(32))

    def msg_sender(self) -> Address:
        return self.sender

    def msg_value(self) -> int:
        return self.value

    def msg_reentrant(self) -> bool:
        return self.reentrant

    def tx_origin(self) -> Address:
        return self.origin

    def tx_gas_price(self) -> int:
        return self.gas_price

    def tx_ink_price(self) -> int:
        return self.ink_price

    def chainid(self) -> int:
        return self.chain_id

    def block_basefee(self) -> int:
        return self.basefee

    def block_coinbase(self) -> Address:
        return self.coinbase

    def block_gas_limit(self) -> int:
        return self.gas_limit

    def block_number(self) -> int:
        return self.number

    def block_timestamp(self) -> int:
        return self.timestamp

    def contract_address(self) -> Address:
        return self.address

    def read_args(self) -> bytes:
        """The calldata of the current call."""
        return bytes(self.args)

    def write_result(self, data: bytes) -> None:
        """Sets the final return data."""
        self.result = bytes(data)

    def emit_log(self, data: bytes, topics: int) -> None:
        """Records a log whose first ``topics`` 32-byte words are its topics."""
        if not 0 <= topics <= _MAX_LOG_TOPICS:
            raise ValueError(f"a log takes 0 to {_MAX_LOG_TOPICS} topics, got {topics}")
        raw = bytes(data)
        header = 32 * topics
        if len(raw) < header:
            raise ValueError("log data is shorter than its topics")
        words = tuple(FixedBytes(raw[start:start + 32]) for start in range(0, header, 32))
        self.logs.append((words, raw[header:]))

    def native_keccak256(self, data: bytes) -> FixedBytes:
        return keccak256(data)


_HOST: contextvars.ContextVar[Host] = contextvars.ContextVar("evmstore_host", default=Host())


def current_host() -> Host:
    """The host that is active in this context."""
    return _HOST.get()


def set_host(host: Host) -> None:
    """Makes ``host`` the active host."""
    _HOST.set(host)


@contextlib.contextmanager
def use_host(host: Host) -> Iterator[Host]:
    """Makes ``host`` active for the duration of the block."""
    token = _HOST.set(host)
    try:
        yield host
    finally:
        _HOST.reset(token)


class CachedOption(Generic[T]):
    """Caches a value produced by ``loader`` to avoid repeated host calls."""

    def __init__(self, loader: Callable[[], T]) -> None:
        self._loader = loader
        self._value: Optional[T] = None
        self._loaded = False

    def get(self) -> T:
        """The cached value, loading it first if necessary."""
        if not self._loaded:
            self._value = self._loader()
            self._loaded = True
        return self._value  # type: ignore[return-value]

    def set(self, value: T) -> None:
        """Overwrites the cached value."""
        self._value = value
        self._loaded = True

    def reset(self) -> None:
        """Forgets the cached value so the next ``get`` loads again."""
        self._value = None
        self._loaded = False