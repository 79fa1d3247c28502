import random

import pytest

from cipheranalyzer.plugin_api import Candidate, FeatureSet, serialize_candidate
from cipheranalyzer.ranking import is_ranked, rank


def _cand(index, score, key=None):
    return Candidate("caesar", index if key is None else key, f"text{index}", FeatureSet(), score, index)


def test_rank_orders_by_descending_score():
    cands = [_cand(i, s) for i, s in enumerate([1.0, 9.0, 3.0, 7.0, 5.0, 2.0, 8.0])]
    ranked = rank(cands)
    assert [c.score for c in ranked] == [9.0, 8.0, 7.0, 5.0, 3.0]
    assert is_ranked(ranked)


def test_rank_ties_broken_by_enumeration_index():
    cands = [_cand(3, 1.0), _cand(1, 1.0), _cand(2, 5.0), _cand(0, 1.0)]
    ranked = rank(cands, top_n=None)
    assert [c.index for c in ranked] == [2, 0, 1, 3]


def test_rank_is_deterministic_under_input_order():
    cands = [_cand(i, float(i % 4)) for i in range(40)]
    expected = [c.index for c in rank(cands, top_n=10)]
    shuffled = list(cands)
    random.Random(7).shuffle(shuffled)
    assert [c.index for c in rank(shuffled, top_n=10)] == expected


def test_rank_does_not_mutate_input():
    cands = [_cand(0, 1.0), _cand(1, 2.0)]
    before = list(cands)
    rank(cands)
    assert cands == before


def test_rank_top_n_bounds():
    cands = [_cand(i, float(i)) for i in range(3)]
    assert len(rank(cands, top_n=10)) == 3
    assert rank(cands, top_n=0) == []
    assert len(rank(cands, top_n=None)) == 3
    with pytest.raises(ValueError):
        rank(cands, top_n=-1)


def test_is_ranked():
    assert is_ranked([])
    assert not is_ranked([_cand(0, 1.0), _cand(1, 2.0)])


def test_serialize_candidate():
    c = Candidate("affine", (5, 8), "HELLO WORLD", FeatureSet(dictionary_match_count=2), 17.5, 70)
    d = serialize_candidate(c, preview_len=5)
    assert d["cipher"] == "affine"
    assert d["key"] == [5, 8]
    assert d["plaintext"] == "HELLO"
    assert d["features"]["dictionary_match_count"] == 2
    assert d["index"] == 70
