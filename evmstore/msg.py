"""Inspecting the current call: sender, value and reentrancy.

Each value is read from the active host once and then cached; call
:func:`reset_cache` when the call context changes.
"""

from __future__ import annotations

from .hostio import Address, CachedOption, current_host

_REENTRANT: CachedOption[bool] = CachedOption(lambda: bool(current_host().msg_reentrant()))
_SENDER: CachedOption[Address] = CachedOption(lambda: Address(current_host().msg_sender()))
_VALUE: CachedOption[int] = CachedOption(lambda: int(current_host().msg_value()))


def reentrant() -> bool:
    """Whether the current call is reentrant."""
    return _REENTRANT.get()


def sender() -> Address:
    """Address of the account that called the program."""
    return _SENDER.get()


def value() -> int:
    """ETH value in wei sent to the program."""
    return _VALUE.get()


def reset_cache() -> None:
    """Forgets cached call values so they are read from the host again."""
    for cache in (_REENTRANT, _SENDER, _VALUE):
        cache.reset()