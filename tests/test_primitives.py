import pytest

from evmstore.backend import EagerStorage, StorageCache, use_storage
from evmstore.hostio import Address, Host, keccak256, use_host
from evmstore.primitives import (
    StorageAddress,
    StorageBlockHash,
    StorageBlockNumber,
    StorageBool,
    StorageI8,
    StorageI256,
    StorageU8,
    StorageU64,
    StorageU128,
    StorageU256,
    fixed_bytes_type,
    signed_type,
    uint_type,
)


@pytest.fixture
def host():
    h = Host()
    with use_host(h), use_storage(EagerStorage()):
        yield h


def test_uint_round_trip(host):
    StorageU64(3, 24).set(123456)
    assert StorageU64(3, 24).get() == 123456
    assert host.storage[3][24:] == (123456).to_bytes(8, "big")


def test_uints_pack_into_one_word(host):
    high = StorageU128(5, 0)
    low = StorageU128(5, 16)
    low.set(1)
    high.set(2)
    word = host.storage[5]
    assert word[16:] == (1).to_bytes(16, "big")
    assert word[:16] == (2).to_bytes(16, "big")
    assert StorageU128(5, 16).get() == 1
    assert StorageU128(5, 0).get() == 2


def test_uint_out_of_range(host):
    with pytest.raises(ValueError):
        StorageU8(0, 31).set(256)
    with pytest.raises(ValueError):
        StorageU8(0, 31).set(-1)


def test_uint256_fills_word(host):
    value = (1 << 256) - 1
    StorageU256(1).set(value)
    assert host.storage[1] == b"\xff" * 32
    assert StorageU256(1).load() == value


def test_signed_negative_is_twos_complement(host):
    StorageI8(3, 31).set(-1)
    assert host.storage[3][31] == 0xFF
    assert StorageI8(3, 31).get() == -1


def test_signed_round_trip_wide(host):
    StorageI256(8).set(-(1 << 200))
    assert StorageI256(8).get() == -(1 << 200)


def test_signed_out_of_range(host):
    with pytest.raises(ValueError):
        StorageI8(0, 31).set(128)
    with pytest.raises(ValueError):
        StorageI8(0, 31).set(-129)


def test_erase_zeroes_value(host):
    value = StorageU64(9, 0)
    value.set(5)
    value.erase()
    assert value.get() == 0
    assert StorageU64(9, 0).get() == 0
    assert 9 not in host.storage


def test_accessor_caches_first_read(host):
    reader = StorageU64(1, 0)
    assert reader.get() == 0
    StorageU64(1, 0).set(7)
    assert reader.get() == 0
    assert StorageU64(1, 0).get() == 7


def test_bool_round_trip(host):
    StorageBool(0, 31).set(True)
    assert host.storage[0][31] == 1
    assert StorageBool(0, 31).load() is True
    StorageBool(0, 31).erase()
    assert StorageBool(0, 31).get() is False


def test_address_round_trip(host):
    addr = Address("0x" + "ab" * 20)
    StorageAddress(7, 12).set(addr)
    assert host.storage[7][12:] == addr
    assert StorageAddress(7, 12).get() == addr


def test_address_erase(host):
    StorageAddress(7, 12).set("0x" + "ab" * 20)
    StorageAddress(7, 12).erase()
    assert StorageAddress(7, 12).get() == Address.ZERO


def test_block_number_limits(host):
    StorageBlockNumber(2, 24).set((1 << 64) - 1)
    assert StorageBlockNumber(2, 24).get() == (1 << 64) - 1
    with pytest.raises(ValueError):
        StorageBlockNumber(2, 24).set(1 << 64)
    with pytest.raises(ValueError):
        StorageBlockNumber(2, 24).set(-1)


def test_block_hash_uses_whole_word(host):
    digest = keccak256(b"block")
    StorageBlockHash(4, 7).set(digest)
    assert host.storage[4] == digest
    assert StorageBlockHash(4).get() == digest
    StorageBlockHash(4).erase()
    assert 4 not in host.storage


def test_fixed_bytes_round_trip(host):
    b32 = fixed_bytes_type(4)
    b32(0, 28).set(b"\x01\x02\x03\x04")
    assert host.storage[0][28:] == b"\x01\x02\x03\x04"
    assert b32(0, 28).get() == b"\x01\x02\x03\x04"


def test_fixed_bytes_wrong_length(host):
    with pytest.raises(ValueError):
        fixed_bytes_type(4)(0, 28).set(b"\x01\x02")


def test_offset_crossing_word_is_rejected(host):
    with pytest.raises(ValueError):
        StorageU64(0, 30)


def test_cached_backend_writes_on_flush(host):
    with use_storage(StorageCache()) as cache:
        StorageU256(1).set(10)
        assert 1 not in host.storage
        cache.flush()
    assert host.storage[1].to_int() == 10


def test_type_factories_are_cached():
    assert uint_type(8) is StorageU8
    assert signed_type(8) is StorageI8
    assert uint_type(64).SLOT_BYTES == 8


@pytest.mark.parametrize("factory, arg", [
    (uint_type, 0),
    (uint_type, 257),
    (signed_type, 0),
    (fixed_bytes_type, 0),
    (fixed_bytes_type, 33),
])
def test_type_factories_reject_bad_sizes(factory, arg):
    with pytest.raises(ValueError):
        factory(arg)