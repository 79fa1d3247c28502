"""Composite scoring: reduce a decrypted text to one comparable number.

Higher is always more plausible. Three modes:

basic
    5 * dictionary_match_count + 3 * common_word_score + 1.5 * average_word_length

advanced
    basic
    - 0.05 * min(chi_squared, 1000)
    - 100  * |index_of_coincidence - expected_ioc|
    - 2    * |shannon_entropy - expected_entropy|
    The penalties do not depend on the dictionary count, so the score stays
    strictly increasing in it. Dictionary and common-word signals dominate:
    one extra real word (+5) outweighs a typical statistical gap.

entropy
    0.5 * matches + 0.3 * common + 0.1 * average_word_length - 0.2 * bigram_entropy

The weights are empirical defaults, overridable through ScoringWeights.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from . import statistics as st
from .dictionary import Dictionary
from .language import ENGLISH, LanguageProfile
from .plugin_api import FeatureSet

logger = logging.getLogger("cipheranalyzer.scoring")

MODES = ("basic", "advanced", "entropy")


@dataclass(frozen=True)
class ScoringWeights:
    dictionary_match: float = 5.0
    common_word: float = 3.0
    average_word_length: float = 1.5
    chi_squared: float = 0.05
    chi_squared_cap: float = 1000.0
    ioc_deviation: float = 100.0
    entropy_deviation: float = 2.0
    blend_match: float = 0.5
    blend_common: float = 0.3
    blend_word_length: float = 0.1
    blend_bigram_entropy: float = -0.2

    def __post_init__(self):
        for name in ("dictionary_match", "blend_match"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive so more real words never lower the score")

    @classmethod
    def from_mapping(cls, overrides: Optional[Mapping[str, Any]]) -> "ScoringWeights":
        if not overrides:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"unknown scoring weights: {sorted(unknown)}")
        return replace(cls(), **{k: float(v) for k, v in overrides.items()})


def extract_features(text: str, dictionary: Dictionary,
                     profile: Optional[LanguageProfile] = None) -> FeatureSet:
    """Compute every feature of one candidate plaintext."""
    profile = profile or ENGLISH
    return FeatureSet(
        dictionary_match_count=dictionary.count_matches(text),
        average_word_length=dictionary.average_word_length(text),
        common_word_score=dictionary.score_common_words(text),
        index_of_coincidence=st.index_of_coincidence(text),
        chi_squared=st.chi_squared(text, profile),
        shannon_entropy=st.shannon_entropy(text),
        conditional_entropy=st.conditional_entropy(text),
        relative_entropy=st.relative_entropy(text, profile),
        bigram_entropy=st.ngram_entropy(text, 2),
    )


def basic_score(f: FeatureSet, w: ScoringWeights) -> float:
    return (w.dictionary_match * f.dictionary_match_count
            + w.common_word * f.common_word_score
            + w.average_word_length * f.average_word_length)


def advanced_score(f: FeatureSet, w: ScoringWeights, profile: LanguageProfile) -> float:
    penalty = (w.chi_squared * min(f.chi_squared, w.chi_squared_cap)
               + w.ioc_deviation * abs(f.index_of_coincidence - profile.expected_ioc)
               + w.entropy_deviation * abs(f.shannon_entropy - profile.expected_entropy))
    return basic_score(f, w) - penalty


def entropy_score(f: FeatureSet, w: ScoringWeights) -> float:
    return (w.blend_match * f.dictionary_match_count
            + w.blend_common * f.common_word_score
            + w.blend_word_length * f.average_word_length
            + w.blend_bigram_entropy * f.bigram_entropy)


class Scorer:
    """Feature extraction plus one scoring mode, bound to a dictionary and profile.

    Holds only read-only collaborators, so one Scorer can be shared by all
    worker threads of a ranking pass.
    """

    def __init__(self, dictionary: Dictionary, profile: Optional[LanguageProfile] = None,
                 mode: str = "basic", weights: Optional[ScoringWeights] = None):
        if mode not in MODES:
            raise ValueError(f"unknown scoring mode {mode!r}; expected one of {MODES}")
        self.dictionary = dictionary
        self.profile = profile or ENGLISH
        self.mode = mode
        self.weights = weights or ScoringWeights()

    def features(self, text: str) -> FeatureSet:
        return extract_features(text, self.dictionary, self.profile)

    def score(self, features: FeatureSet) -> float:
        if self.mode == "basic":
            return basic_score(features, self.weights)
        if self.mode == "advanced":
            return advanced_score(features, self.weights, self.profile)
        return entropy_score(features, self.weights)

    def evaluate(self, text: str) -> Tuple[FeatureSet, float]:
        f = self.features(text)
        return f, self.score(f)

    def describe(self) -> Dict[str, Any]:
        return {"mode": self.mode, "weights": {f.name: getattr(self.weights, f.name) for f in fields(self.weights)}}
