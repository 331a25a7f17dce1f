import pytest

from evmstore.backend import EagerStorage, StorageCache, use_storage
from evmstore.bytes_store import StorageBytes, StorageString
from evmstore.hostio import Host, keccak256, use_host

ROOT = 7


def _base(root):
    return keccak256(root.to_bytes(32, "big")).to_int()


@pytest.fixture(params=["eager", "cache"])
def env(request):
    host = Host()
    storage = EagerStorage() if request.param == "eager" else StorageCache()
    with use_host(host), use_storage(storage):
        yield host, storage


@pytest.fixture
def eager_host():
    host = Host()
    with use_host(host), use_storage(EagerStorage()):
        yield host


def _host_words(host, storage):
    if isinstance(storage, StorageCache):
        storage.flush()
    return host.storage


def test_empty(env):
    sb = StorageBytes(ROOT)
    assert len(sb) == 0
    assert sb.is_empty()
    assert sb.get(0) is None
    assert sb.pop() is None
    assert sb.get_bytes() == b""


def test_push_and_get_short(env):
    sb = StorageBytes(ROOT)
    sb.extend(b"abc")
    assert len(sb) == 3
    assert not sb.is_empty()
    assert [sb.get(i) for i in range(3)] == list(b"abc")
    assert sb.get(3) is None
    assert sb.get(-1) is None
    assert sb.get_bytes() == b"abc"


def test_short_layout(eager_host):
    sb = StorageBytes(ROOT)
    sb.extend(b"abc")
    assert eager_host.storage[ROOT] == b"abc" + bytes(28) + bytes([6])


def test_long_layout(eager_host):
    data = bytes(range(1, 41))
    sb = StorageBytes(ROOT)
    sb.extend(data)
    words = eager_host.storage
    base = _base(ROOT)
    assert int.from_bytes(words[ROOT], "big") == 2 * len(data) + 1
    assert words[base] == data[:32]
    assert words[base + 1] == data[32:].ljust(32, b"\0")


@pytest.mark.parametrize("size", [0, 1, 30, 31, 32, 33, 63, 64, 65, 100])
def test_round_trip_sizes(env, size):
    data = bytes((i * 7 + 3) % 256 for i in range(size))
    sb = StorageBytes(ROOT)
    sb.set_bytes(data)
    assert len(sb) == size
    assert sb.get_bytes() == data
    assert list(sb) == list(data)


def test_push_pop_through_transitions(env):
    data = bytes((i * 13 + 1) % 256 for i in range(70))
    sb = StorageBytes(ROOT)
    for count, byte in enumerate(data, start=1):
        sb.push(byte)
        assert sb.get_bytes() == data[:count]
    for count in range(len(data), 0, -1):
        assert sb.pop() == data[count - 1]
        assert sb.get_bytes() == data[:count - 1]
    assert sb.pop() is None


def test_popping_everything_clears_storage(env):
    host, storage = env
    sb = StorageBytes(ROOT)
    sb.extend(bytes(range(1, 71)))
    while sb.pop() is not None:
        pass
    assert len(sb) == 0
    assert _host_words(host, storage) == {}


def test_set_bytes_replaces_and_erases_old_words(env):
    host, storage = env
    sb = StorageBytes(ROOT)
    sb.set_bytes(bytes(range(1, 61)))
    sb.set_bytes(b"hi")
    assert sb.get_bytes() == b"hi"
    assert set(_host_words(host, storage)) == {ROOT}


def test_erase_clears_everything(env):
    host, storage = env
    sb = StorageBytes(ROOT)
    sb.extend(bytes(range(1, 61)))
    sb.erase()
    assert sb.is_empty()
    assert _host_words(host, storage) == {}


def test_get_mut_writes_byte(env):
    for data in (b"abcd", bytes(range(1, 50))):
        sb = StorageBytes(ROOT)
        sb.set_bytes(data)
        accessor = sb.get_mut(1)
        accessor.set(b"\x09")
        expected = data[:1] + b"\x09" + data[2:]
        assert sb.get_bytes() == expected
        assert sb.get_mut(len(data)) is None


def test_set_len_grow_then_shrink_preserves_prefix(env):
    sb = StorageBytes(ROOT)
    sb.extend(b"hello")
    sb.set_len(40)
    assert len(sb) == 40
    assert sb.get_bytes()[:5] == b"hello"
    sb.set_len(5)
    assert sb.get_bytes() == b"hello"


def test_set_len_within_representation(env):
    sb = StorageBytes(ROOT)
    sb.extend(b"hello")
    sb.set_len(3)
    assert sb.get_bytes() == b"hel"


def test_set_len_negative_rejected(env):
    sb = StorageBytes(ROOT)
    with pytest.raises(ValueError):
        sb.set_len(-1)


def test_push_out_of_range_rejected(env):
    sb = StorageBytes(ROOT)
    with pytest.raises(ValueError):
        sb.push(256)
    with pytest.raises(ValueError):
        sb.push(-1)
    assert sb.is_empty()


def test_nonzero_offset_rejected(env):
    with pytest.raises(ValueError):
        StorageBytes(ROOT, 4)
    with pytest.raises(ValueError):
        StorageString(ROOT, 4)


def test_distinct_roots_are_independent(env):
    first = StorageBytes(1)
    second = StorageBytes(2)
    first.set_bytes(bytes(range(40)))
    second.set_bytes(b"xyz")
    assert first.get_bytes() == bytes(range(40))
    assert second.get_bytes() == b"xyz"


def test_string_round_trip(env):
    text = "héllo wörld ✓ " * 4
    ss = StorageString(ROOT)
    ss.set_str(text)
    assert ss.get_string() == text
    assert len(ss) == len(text.encode("utf-8"))
    assert not ss.is_empty()


def test_string_push_and_extend(env):
    ss = StorageString(ROOT)
    ss.push("é")
    ss.extend("ab")
    assert ss.get_string() == "éab"
    assert ss.raw.get_bytes() == "éab".encode("utf-8")


def test_string_push_rejects_multiple_chars(env):
    ss = StorageString(ROOT)
    with pytest.raises(ValueError):
        ss.push("ab")
    with pytest.raises(ValueError):
        ss.push("")
    assert ss.is_empty()


def test_string_invalid_utf8_is_replaced(env):
    ss = StorageString(ROOT)
    ss.raw.extend(b"a\xffb")
    assert ss.get_string() == "a\ufffdb"


def test_string_erase(env):
    host, storage = env
    ss = StorageString(ROOT)
    ss.set_str("x" * 50)
    ss.erase()
    assert ss.get_string() == ""
    assert _host_words(host, storage) == {}