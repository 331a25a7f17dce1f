"""Inspecting the current transaction, and converting between gas and ink."""

from __future__ import annotations

from .hostio import Address, CachedOption, current_host

_U64_MAX = (1 << 64) - 1

_INK_PRICE: CachedOption[int] = CachedOption(lambda: int(current_host().tx_ink_price()))
_GAS_PRICE: CachedOption[int] = CachedOption(lambda: int(current_host().tx_gas_price()))
_ORIGIN: CachedOption[Address] = CachedOption(lambda: Address(current_host().tx_origin()))


def _check_u64(name: str, amount: int) -> int:
    if not 0 <= amount <= _U64_MAX:
        raise ValueError(f"{name} must be an unsigned 64-bit integer, got {amount}")
    return amount


def ink_price() -> int:
    """Price of ink in EVM gas basis points."""
    return _INK_PRICE.get()


def gas_to_ink(gas: int) -> int:
    """Converts EVM gas to ink, saturating at the 64-bit maximum."""
    _check_u64("gas", gas)
    return min(gas * ink_price(), _U64_MAX)


def ink_to_gas(ink: int) -> int:
    """Converts ink to EVM gas, rounding down."""
    _check_u64("ink", ink)
    return ink // ink_price()


def gas_price() -> int:
    """Gas price in wei per gas."""
    return _GAS_PRICE.get()


def origin() -> Address:
    """Top-level sender of the transaction."""
    return _ORIGIN.get()


def reset_cache() -> None:
    """Forgets cached transaction values so they are read from the host again."""
    for cache in (_INK_PRICE, _GAS_PRICE, _ORIGIN):
        cache.reset()