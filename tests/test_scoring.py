import dataclasses

import pytest

from cipheranalyzer.dictionary import Dictionary
from cipheranalyzer.plugin_api import FeatureSet
from cipheranalyzer.scoring import MODES, Scorer, ScoringWeights, extract_features


class TestScorer:
    def setup_method(self):
        self.dictionary = Dictionary(["hello", "world", "the", "king"])

    def test_basic_score_formula(self):
        scorer = Scorer(self.dictionary)
        features, score = scorer.evaluate("HELLO WORLD")
        assert features.dictionary_match_count == 2
        assert features.common_word_score == 0
        assert features.average_word_length == 5.0
        assert score == pytest.approx(5 * 2 + 1.5 * 5.0)

    def test_extract_features_fields(self):
        f = extract_features("the king", self.dictionary)
        assert f.dictionary_match_count == 2
        assert f.common_word_score == 1
        assert 0.0 <= f.index_of_coincidence <= 1.0
        assert f.chi_squared >= 0.0
        assert f.bigram_entropy >= 0.0

    def test_score_monotonic_in_dictionary_matches(self):
        base = FeatureSet(dictionary_match_count=3, average_word_length=4.0, common_word_score=1,
                          index_of_coincidence=0.05, chi_squared=80.0, shannon_entropy=4.0,
                          bigram_entropy=7.5)
        more = dataclasses.replace(base, dictionary_match_count=4)
        for mode in MODES:
            scorer = Scorer(self.dictionary, mode=mode)
            assert scorer.score(more) > scorer.score(base)

    def test_advanced_applies_statistical_penalty(self):
        f = FeatureSet(dictionary_match_count=2, average_word_length=5.0,
                       index_of_coincidence=0.03, chi_squared=200.0, shannon_entropy=4.6)
        basic = Scorer(self.dictionary, mode="basic").score(f)
        advanced = Scorer(self.dictionary, mode="advanced").score(f)
        expected_penalty = 0.05 * 200.0 + 100 * abs(0.03 - 0.066) + 2 * abs(4.6 - 4.17)
        assert advanced == pytest.approx(basic - expected_penalty)

    def test_advanced_caps_chi_squared(self):
        scorer = Scorer(self.dictionary, mode="advanced")
        a = FeatureSet(chi_squared=5000.0, index_of_coincidence=0.066, shannon_entropy=4.17)
        b = FeatureSet(chi_squared=1000.0, index_of_coincidence=0.066, shannon_entropy=4.17)
        assert scorer.score(a) == pytest.approx(scorer.score(b))

    def test_entropy_mode_formula(self):
        f = FeatureSet(dictionary_match_count=2, common_word_score=1, average_word_length=4.0,
                       bigram_entropy=3.0)
        score = Scorer(self.dictionary, mode="entropy").score(f)
        assert score == pytest.approx(0.5 * 2 + 0.3 * 1 + 0.1 * 4.0 - 0.2 * 3.0)

    def test_english_beats_gibberish(self):
        scorer = Scorer(Dictionary(), mode="advanced")
        _, good = scorer.evaluate("meet me at the river at dawn")
        _, bad = scorer.evaluate("qxzv jk wq pzt yhwdp qx fqkz")
        assert good > bad

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            Scorer(self.dictionary, mode="fancy")

    def test_describe(self):
        d = Scorer(self.dictionary, mode="entropy").describe()
        assert d["mode"] == "entropy"
        assert d["weights"]["dictionary_match"] == 5.0


def test_weights_from_mapping():
    w = ScoringWeights.from_mapping({"dictionary_match": 7})
    assert w.dictionary_match == 7.0
    assert w.common_word == 3.0
    assert ScoringWeights.from_mapping(None) == ScoringWeights()
    with pytest.raises(ValueError):
        ScoringWeights.from_mapping({"no_such_weight": 1.0})


def test_weights_reject_non_positive_match_weight():
    with pytest.raises(ValueError):
        ScoringWeights(dictionary_match=0.0)


def test_feature_set_validation():
    with pytest.raises(ValueError):
        FeatureSet(dictionary_match_count=-1)
    with pytest.raises(ValueError):
        FeatureSet(index_of_coincidence=1.5)
