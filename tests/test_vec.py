import pytest

from evmstore.backend import EagerStorage, use_storage
from evmstore.hostio import Host, keccak256, use_host
from evmstore.primitives import StorageU64, StorageU256
from evmstore.vec import StorageVec

VecU256 = StorageVec.of(StorageU256)
VecU64 = StorageVec.of(StorageU64)


@pytest.fixture
def host():
    h = Host()
    with use_host(h), use_storage(EagerStorage()):
        yield h


def _base(slot):
    return keccak256(slot.to_bytes(32, "big")).to_int()


def test_length_at_slot_and_data_at_hash(host):
    vec = VecU256(2)
    vec.push(42)
    assert host.storage_load_bytes32(2).to_int() == 1
    assert host.storage_load_bytes32(_base(2)).to_int() == 42


def test_push_get_len(host):
    vec = VecU256(0)
    vec.extend([1, 2, 3])
    assert len(vec) == 3
    assert list(vec) == [1, 2, 3]
    assert vec.get(1) == 2
    assert not vec.is_empty()


def test_small_elements_share_a_word(host):
    vec = VecU64(0)
    vec.extend([1, 2, 3, 4])
    assert set(host.storage) == {0, _base(0)}
    assert list(vec) == [1, 2, 3, 4]


def test_pop_clears_freed_word(host):
    vec = VecU64(0)
    vec.extend([1, 2, 3, 4, 5])
    assert _base(0) + 1 in host.storage
    assert vec.pop() == 5
    assert _base(0) + 1 not in host.storage
    assert vec.pop() == 4
    assert _base(0) in host.storage
    assert list(vec) == [1, 2, 3]


def test_pop_empty_is_none(host):
    vec = VecU256(0)
    assert vec.pop() is None
    assert vec.shrink() is None
    assert vec.is_empty()


def test_grow_nested_vector(host):
    vec = StorageVec.of(VecU256)(0)
    inner = vec.grow()
    inner.push(8)
    assert inner.get(0) == 8
    assert len(inner) == 1
    assert len(vec) == 1
    assert vec.get(0).get(0) == 8


def test_truncate_keeps_storage(host):
    vec = VecU256(0)
    vec.extend([7, 8, 9])
    vec.truncate(1)
    assert len(vec) == 1
    assert vec.get(2) is None
    vec.set_len(3)
    assert vec.get(2) == 9


def test_truncate_longer_is_noop(host):
    vec = VecU256(0)
    vec.extend([7, 8])
    vec.truncate(10)
    assert len(vec) == 2


def test_erase_last_zeroes_element(host):
    vec = VecU256(0)
    vec.extend([5, 6])
    vec.erase_last()
    assert len(vec) == 1
    vec.set_len(2)
    assert vec.get(1) == 0


def test_erase_last_on_empty_does_nothing(host):
    vec = VecU256(0)
    vec.erase_last()
    assert len(vec) == 0
    assert host.storage == {}


def test_erase_clears_storage(host):
    vec = VecU64(0)
    vec.extend(range(1, 7))
    vec.erase()
    assert len(vec) == 0
    assert host.storage == {}


def test_getter_bounds(host):
    vec = VecU256(0)
    vec.push(1)
    assert vec.getter(1) is None
    assert vec.getter(-1) is None
    assert vec.get_mut(1) is None
    vec.setter(0).set(99)
    assert vec.get(0) == 99


def test_push_and_pop_need_simple_elements(host):
    vec = StorageVec.of(VecU256)(0)
    with pytest.raises(TypeError):
        vec.push(1)
    with pytest.raises(TypeError):
        vec.pop()
    assert len(vec) == 0


def test_nonzero_offset_rejected():
    with pytest.raises(ValueError):
        VecU256(0, 1)


def test_unparametrised_vec_rejected():
    with pytest.raises(TypeError):
        StorageVec(0)