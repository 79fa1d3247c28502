import pickle

import pytest

from cipheranalyzer.patterns import PatternFinder, factors, spacings
from cipheranalyzer.plugins.vigenere import VigenereCipher


def test_factors():
    assert factors(12) == [2, 3, 4, 6, 12]
    assert factors(7) == [7]
    assert factors(1) == []
    assert factors(0) == []


def test_spacings_all_pairs():
    assert spacings([0, 4, 10]) == [4, 10, 6]
    assert spacings([3]) == []


def test_find_repeating_patterns():
    finder = PatternFinder("abc xyz ABC")
    patterns = finder.find_repeating_patterns()
    abc = [p for p in patterns if p.sequence == "ABC"]
    assert len(abc) == 1
    assert abc[0].positions == (0, 6)
    assert abc[0].occurrences == 2
    with pytest.raises(ValueError):
        finder.find_repeating_patterns(4, 3)


def test_kasiski_simple_spacing():
    result = PatternFinder("ABCXYZABC").kasiski_examination()
    assert result.spacing_frequencies == {6: 1}
    assert result.key_lengths == (2, 3, 6)


def test_kasiski_recovers_key_length():
    plaintext = "ABCDEFGHIJ" * 4
    ciphertext = VigenereCipher().encrypt(plaintext, "LEMON")
    result = PatternFinder(ciphertext).kasiski_examination()
    assert 5 in result.key_lengths
    assert 5 in result.ranked_key_lengths()


def test_kasiski_key_lengths_divide_an_accepted_spacing():
    ciphertext = VigenereCipher().encrypt("THEMANTHEDOGTHECATTHEMANTHEDOG" * 2, "KEY")
    result = PatternFinder(ciphertext).kasiski_examination()
    assert result.key_lengths
    for k in result.key_lengths:
        assert k >= 2
        assert any(2 <= s <= 20 and s % k == 0 for s in result.spacing_frequencies)


def test_kasiski_ignores_spacings_outside_range():
    text = "ABC" + "Q" * 30 + "ABC"
    result = PatternFinder(text).kasiski_examination()
    assert 33 not in result.spacing_frequencies
    wide = PatternFinder(text).kasiski_examination(max_spacing=40)
    assert 33 in wide.spacing_frequencies


def test_kasiski_to_dict_is_json_friendly():
    d = PatternFinder("ABCXYZABC").kasiski_examination().to_dict()
    assert d["ranked_key_lengths"] == [2, 3, 6]
    assert d["spacing_frequencies"] == {"6": 1}


def test_kasiski_result_is_read_only():
    result = PatternFinder("ABCXYZABC").kasiski_examination()
    with pytest.raises(TypeError):
        result.spacing_frequencies[6] = 99
    with pytest.raises(TypeError):
        result.factor_frequencies[2] = 99
    assert result.spacing_frequencies == {6: 1}
    assert isinstance(hash(result), int)


def test_kasiski_result_pickles():
    result = PatternFinder("ABCXYZABC").kasiski_examination()
    clone = pickle.loads(pickle.dumps(result))
    assert clone.to_dict() == result.to_dict()


def test_find_all_occurrences_overlapping():
    assert PatternFinder("AAAA").find_all_occurrences("aa") == [0, 1, 2]
    assert PatternFinder("ABC").find_all_occurrences("") == []


def test_letter_positions_and_unique_patterns():
    finder = PatternFinder("ABAB")
    assert finder.letter_positions() == {"A": [0, 2], "B": [1, 3]}
    assert finder.count_unique_patterns(2) == 2
    assert finder.pattern_frequencies(2) == [pytest.approx(2 / 3), pytest.approx(1 / 3)]


def test_pattern_density():
    assert PatternFinder("").pattern_density() == 0.0
    assert PatternFinder("ABABAB").pattern_density() > 0.0


def test_find_anagrams():
    assert PatternFinder("listen to silent night").find_anagrams() == ["LISTEN", "SILENT"]
