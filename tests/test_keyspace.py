import math

import pytest

from cipheranalyzer.errors import InvalidKeyError
from cipheranalyzer.keyspace import (
    AffineKeyspace,
    CaesarKeyspace,
    KeywordKeyspace,
    TranspositionKeyspace,
    VigenereKeyspace,
    default_transposition_bound,
    increment_key,
    is_valid_affine_key,
    mod_inverse,
    preferred_vigenere_lengths,
)
from cipheranalyzer.patterns import KasiskiResult, PatternFinder
from cipheranalyzer.plugins.vigenere import VigenereCipher
from cipheranalyzer.statistics import ioc_key_length_candidates


def test_caesar_keyspace():
    ks = CaesarKeyspace()
    assert list(ks) == list(range(26))
    assert len(ks) == 26


def test_affine_keyspace_has_312_valid_keys():
    keys = list(AffineKeyspace())
    assert len(keys) == 312 == len(AffineKeyspace())
    assert len(set(keys)) == 312
    assert keys[0] == (1, 0)
    assert keys[26] == (3, 0)
    assert all(math.gcd(a, 26) == 1 and 0 <= b < 26 for a, b in keys)


def test_is_valid_affine_key():
    assert is_valid_affine_key(5, 8)
    assert not is_valid_affine_key(13, 0)
    assert not is_valid_affine_key(2, 1)
    assert not is_valid_affine_key(5, 26)


def test_mod_inverse():
    assert mod_inverse(5) == 21
    assert (7 * mod_inverse(7)) % 26 == 1
    with pytest.raises(InvalidKeyError):
        mod_inverse(13)


def test_increment_key_odometer():
    assert increment_key("A") == "B"
    assert increment_key("AZ") == "BA"
    assert increment_key("ZZ") is None


def test_vigenere_keyspace_order_and_size():
    ks = VigenereKeyspace(2)
    keys = list(ks)
    assert len(keys) == len(ks) == 26 + 26 * 26
    assert keys[:3] == ["A", "B", "C"]
    assert keys[26] == "AA"
    assert keys[-1] == "ZZ"


def test_vigenere_keyspace_preferred_lengths_first():
    ks = VigenereKeyspace(3, preferred_lengths=[2, 2, 7])
    assert ks.length_order == (2, 1, 3)
    keys = iter(ks)
    assert next(keys) == "AA"


def test_vigenere_keyspace_is_restartable():
    ks = VigenereKeyspace(1)
    assert list(ks) == list(ks)


def test_vigenere_keyspace_rejects_zero_length():
    with pytest.raises(ValueError):
        VigenereKeyspace(0)


def test_transposition_keyspace():
    assert list(TranspositionKeyspace(5)) == [2, 3, 4, 5]
    assert list(TranspositionKeyspace(1)) == []
    assert len(TranspositionKeyspace(1)) == 0
    assert default_transposition_bound("ABCDE") == 5
    assert default_transposition_bound("A" * 100) == 20


def test_keyword_keyspace_normalizes():
    ks = KeywordKeyspace(["monarchy", "Monarchy!", "key", "123"])
    assert list(ks) == ["MONARCHY", "KEY"]
    assert len(ks) == 2


def test_preferred_vigenere_lengths_finds_true_length():
    plaintext = "ABCDEFGHIJ" * 4
    ciphertext = VigenereCipher().encrypt(plaintext, "LEMON")
    assert 5 in preferred_vigenere_lengths(ciphertext, max_key_length=10)


def test_preferred_vigenere_lengths_reuses_kasiski_result():
    ciphertext = VigenereCipher().encrypt("ABCDEFGHIJ" * 4, "LEMON")
    kasiski = PatternFinder(ciphertext).kasiski_examination()
    assert preferred_vigenere_lengths(ciphertext, 10, kasiski=kasiski) == \
        preferred_vigenere_lengths(ciphertext, 10)
    # with no Kasiski evidence only the IoC ranking remains
    only_ioc = preferred_vigenere_lengths(ciphertext, 10, kasiski=KasiskiResult())
    assert only_ioc == ioc_key_length_candidates(ciphertext, max_key_length=10, top_n=3)
