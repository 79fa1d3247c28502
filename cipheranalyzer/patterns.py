"""Repeated-substring detection and Kasiski examination.

The Kasiski test looks for substrings that repeat in a ciphertext. With a
periodic key the same plaintext fragment encrypted at the same key offset
produces the same ciphertext fragment, so the distance between repeats tends
to be a multiple of the key length. Counting the divisors of all such
spacings gives a ranked list of likely key lengths.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

from .statistics import normalize

logger = logging.getLogger("cipheranalyzer.patterns")

DEFAULT_MIN_LENGTH = 3
DEFAULT_MAX_LENGTH = 10
DEFAULT_MIN_SPACING = 2
DEFAULT_MAX_SPACING = 20


@dataclass(frozen=True)
class PatternMatch:
    """A substring that occurs at least twice, with its start positions."""
    sequence: str
    positions: Tuple[int, ...]
    length: int

    @property
    def occurrences(self) -> int:
        return len(self.positions)


@dataclass(frozen=True, eq=False)
class KasiskiResult:
    """Key-length evidence from repeated substrings; read-only once built."""
    key_lengths: Tuple[int, ...] = ()
    spacing_frequencies: Mapping[int, int] = field(default_factory=dict)
    factor_frequencies: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "key_lengths", tuple(self.key_lengths))
        object.__setattr__(self, "spacing_frequencies", MappingProxyType(dict(self.spacing_frequencies)))
        object.__setattr__(self, "factor_frequencies", MappingProxyType(dict(self.factor_frequencies)))

    def __reduce__(self):
        return (
            KasiskiResult,
            (self.key_lengths, dict(self.spacing_frequencies), dict(self.factor_frequencies)),
        )

    def ranked_key_lengths(self) -> List[int]:
        """Key lengths ordered by how often they divide an observed spacing."""
        return sorted(self.key_lengths, key=lambda k: (-self.factor_frequencies.get(k, 0), k))

    def to_dict(self) -> Dict[str, object]:
        return {
            "key_lengths": list(self.key_lengths),
            "ranked_key_lengths": self.ranked_key_lengths(),
            "spacing_frequencies": {str(k): v for k, v in sorted(self.spacing_frequencies.items())},
            "factor_frequencies": {str(k): v for k, v in sorted(self.factor_frequencies.items())},
        }


def factors(number: int) -> List[int]:
    """All divisors >= 2 of `number`, including the number itself, ascending."""
    if number < 2:
        return []
    out = set()
    i = 2
    while i * i <= number:
        if number % i == 0:
            out.add(i)
            out.add(number // i)
        i += 1
    out.add(number)
    return sorted(out)


def spacings(positions: Sequence[int]) -> List[int]:
    """Pairwise differences between all positions (later minus earlier)."""
    out = []
    for i in range(len(positions)):
        for j in range(i + 1, len(positions)):
            out.append(positions[j] - positions[i])
    return out


class PatternFinder:
    """Structural analysis of a single ciphertext."""

    def __init__(self, text: str):
        self.raw = text
        self.text = normalize(text)

    def find_repeating_patterns(self, min_length: int = DEFAULT_MIN_LENGTH,
                                max_length: int = DEFAULT_MAX_LENGTH) -> List[PatternMatch]:
        if min_length < 1 or max_length < min_length:
            raise ValueError("require 1 <= min_length <= max_length")
        patterns: List[PatternMatch] = []
        n = len(self.text)
        for length in range(min_length, max_length + 1):
            if length > n:
                break
            seen: Dict[str, List[int]] = {}
            for i in range(n - length + 1):
                seen.setdefault(self.text[i:i + length], []).append(i)
            for seq, pos in seen.items():
                if len(pos) > 1:
                    patterns.append(PatternMatch(seq, tuple(pos), length))
        patterns.sort(key=lambda p: (-p.occurrences, p.length, p.sequence))
        return patterns

    def kasiski_examination(self, min_length: int = DEFAULT_MIN_LENGTH,
                            max_length: int = DEFAULT_MAX_LENGTH,
                            min_spacing: int = DEFAULT_MIN_SPACING,
                            max_spacing: int = DEFAULT_MAX_SPACING) -> KasiskiResult:
        spacing_freq: Counter = Counter()
        factor_freq: Counter = Counter()
        for pattern in self.find_repeating_patterns(min_length, max_length):
            for spacing in spacings(pattern.positions):
                if min_spacing <= spacing <= max_spacing:
                    spacing_freq[spacing] += 1
                    for f in factors(spacing):
                        factor_freq[f] += 1
        result = KasiskiResult(
            key_lengths=tuple(sorted(factor_freq)),
            spacing_frequencies=dict(spacing_freq),
            factor_frequencies=dict(factor_freq),
        )
        logger.debug("kasiski: %d spacings, key lengths %s", sum(spacing_freq.values()), list(result.key_lengths))
        return result

    def find_all_occurrences(self, pattern: str) -> List[int]:
        """Start positions of `pattern` in the normalized text, overlaps included."""
        needle = normalize(pattern)
        if not needle:
            return []
        out = []
        pos = self.text.find(needle)
        while pos != -1:
            out.append(pos)
            pos = self.text.find(needle, pos + 1)
        return out

    def letter_positions(self) -> Dict[str, List[int]]:
        positions: Dict[str, List[int]] = {}
        for i, c in enumerate(self.text):
            positions.setdefault(c, []).append(i)
        return dict(sorted(positions.items()))

    def pattern_density(self) -> float:
        """Total occurrences of repeating 2..5-grams divided by text length."""
        if not self.text:
            return 0.0
        total = sum(p.occurrences for p in self.find_repeating_patterns(2, 5))
        return total / len(self.text)

    def count_unique_patterns(self, length: int) -> int:
        if length < 1:
            raise ValueError("length must be >= 1")
        return len({self.text[i:i + length] for i in range(len(self.text) - length + 1)})

    def pattern_frequencies(self, length: int) -> List[float]:
        """Relative frequency of each distinct n-gram, largest first."""
        if length < 1:
            raise ValueError("length must be >= 1")
        windows = len(self.text) - length + 1
        if windows <= 0:
            return []
        counts = Counter(self.text[i:i + length] for i in range(windows))
        return sorted((c / windows for c in counts.values()), reverse=True)

    def find_anagrams(self) -> List[str]:
        """Words of the raw text that share their letters with another word."""
        groups: Dict[str, List[str]] = {}
        for word in self.raw.split():
            w = normalize(word)
            if w:
                groups.setdefault("".join(sorted(w)), []).append(w)
        out: List[str] = []
        for key in sorted(groups):
            if len(groups[key]) > 1:
                out.extend(groups[key])
        return out
