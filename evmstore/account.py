"""Balance and code hash of accounts, read from the active host."""

from __future__ import annotations

from typing import Union

from .hostio import Address, FixedBytes, current_host

EMPTY_CODEHASH = FixedBytes("c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470")

AddressLike = Union[bytes, str]


def balance(address: AddressLike) -> int:
    """The balance in wei of the account."""
    return int(current_host().account_balance(Address(address)))


def codehash(address: AddressLike) -> FixedBytes:
    """The code hash of the contract or externally owned account at ``address``."""
    return FixedBytes(current_host().account_codehash(Address(address)), size=32)


def has_code(address: AddressLike) -> bool:
    """True when the account's code hash is zero or equals the hash of empty code.

    During deployment an account only receives its code at the very end, so this
    check alone cannot tell a contract from an externally owned account.
    """
    digest = codehash(address)
    return digest.is_zero or digest == EMPTY_CODEHASH