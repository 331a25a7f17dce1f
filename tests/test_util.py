import pytest

from evmstore.util import evm_padded_length, evm_words


@pytest.mark.parametrize("size", [0, 1, 31, 32, 33, 63, 64, 65, 1000])
def test_padded_length_is_smallest_word_multiple(size):
    padded = evm_padded_length(size)
    assert padded % 32 == 0
    assert padded >= size
    assert padded - size < 32


@pytest.mark.parametrize("size", [0, 1, 31, 32, 33, 100, 4096])
def test_words_match_padded_length(size):
    assert evm_words(size) * 32 == evm_padded_length(size)


def test_exact_multiple_is_not_padded():
    assert evm_padded_length(64) == 64
    assert evm_words(32) == 1


def test_empty_needs_no_words():
    assert evm_words(0) == 0


def test_one_more_byte_needs_another_word():
    assert evm_words(33) == evm_words(32) + 1


@pytest.mark.parametrize("func", [evm_words, evm_padded_length])
def test_negative_size_is_rejected(func):
    with pytest.raises(ValueError):
        func(-1)


def test_non_integer_size_is_rejected():
    with pytest.raises(TypeError):
        evm_words(1.5)