"""Reference language profiles used by scoring and statistical distance checks."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, FrozenSet

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

ENGLISH_FREQ = {
    "A": 0.08167, "B": 0.01492, "C": 0.02782, "D": 0.04253, "E": 0.12702,
    "F": 0.02228, "G": 0.02015, "H": 0.06094, "I": 0.06966, "J": 0.00153,
    "K": 0.00772, "L": 0.04025, "M": 0.02406, "N": 0.06749, "O": 0.07507,
    "P": 0.01929, "Q": 0.00095, "R": 0.05987, "S": 0.06327, "T": 0.09056,
    "U": 0.02758, "V": 0.00978, "W": 0.02360, "X": 0.00150, "Y": 0.01974,
    "Z": 0.00074,
}

ENGLISH_COMMON_WORDS = frozenset({
    "the", "be", "to", "of", "and", "a", "in", "that", "have", "i",
    "it", "for", "not", "on", "with", "he", "as", "you", "do", "at",
})

# relative frequency of the most common English words in running text
ENGLISH_WORD_FREQ = {
    "the": 0.075, "of": 0.038, "and": 0.028, "to": 0.022, "a": 0.022,
    "in": 0.017, "that": 0.015, "is": 0.014, "it": 0.013, "for": 0.012,
}


@dataclass(frozen=True, eq=False)
class LanguageProfile:
    """Read-only reference distribution for one language.

    Mappings are wrapped in MappingProxyType so a profile shared across
    concurrent candidate evaluations cannot be mutated.
    """
    name: str
    letter_frequencies: Mapping[str, float]
    common_words: FrozenSet[str] = frozenset()
    word_frequencies: Optional[Mapping[str, float]] = None
    expected_ioc: float = 0.066
    expected_entropy: float = 4.17

    def __post_init__(self):
        freqs = {str(k).upper(): float(v) for k, v in dict(self.letter_frequencies).items()}
        missing = [c for c in ALPHABET if c not in freqs]
        if missing:
            raise ValueError(f"letter_frequencies missing letters: {''.join(missing)}")
        if any(v < 0 for v in freqs.values()):
            raise ValueError("letter_frequencies must be non-negative")
        object.__setattr__(self, "letter_frequencies", MappingProxyType(freqs))
        object.__setattr__(self, "common_words", frozenset(w.lower() for w in self.common_words))
        if self.word_frequencies is not None:
            wf = {str(k).lower(): float(v) for k, v in dict(self.word_frequencies).items()}
            object.__setattr__(self, "word_frequencies", MappingProxyType(wf))

    def __reduce__(self):
        # mapping proxies do not pickle; rebuild from plain dicts in worker processes
        wf = dict(self.word_frequencies) if self.word_frequencies is not None else None
        return (
            LanguageProfile,
            (self.name, dict(self.letter_frequencies), self.common_words, wf,
             self.expected_ioc, self.expected_entropy),
        )

    def frequency(self, letter: str) -> float:
        return self.letter_frequencies.get(letter.upper(), 0.0)

    def as_vector(self):
        """Letter frequencies in A..Z order as a list."""
        return [self.letter_frequencies[c] for c in ALPHABET]


ENGLISH = LanguageProfile(
    name="english",
    letter_frequencies=ENGLISH_FREQ,
    common_words=ENGLISH_COMMON_WORDS,
    word_frequencies=ENGLISH_WORD_FREQ,
)


def default_profile() -> LanguageProfile:
    return ENGLISH
