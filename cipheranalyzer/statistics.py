"""Statistics primitives over natural-language text.

Pure, stateless functions used by the scoring engine and the analysis report:
letter and n-gram frequencies, Shannon / conditional / joint / relative
entropy, index of coincidence and chi-squared distance to a reference
language profile. Letters are the 26 ASCII letters, case-folded; everything
else is ignored.

Empty or letter-free input never raises from the entropy / IoC helpers: they
return 0.0. Only normalized_entropy signals DegenerateInputError, since its
denominator log2(N) is zero or undefined for N <= 1.
"""
from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from scipy import stats

from .errors import DegenerateInputError
from .language import ALPHABET, ENGLISH, LanguageProfile

logger = logging.getLogger("cipheranalyzer.statistics")

Distribution = Union[str, Mapping[str, float]]


def normalize(text: str) -> str:
    """Keep only ASCII letters, upper-cased.

    Filtering happens before case-folding so characters such as "ß" or "ﬁ"
    are dropped rather than expanded into ASCII letters.
    """
    return "".join(c for c in text if "A" <= c <= "Z" or "a" <= c <= "z").upper()


def letter_counts(text: str) -> np.ndarray:
    """Return a 26-length int64 array of letter counts (A..Z)."""
    norm = normalize(text)
    if not norm:
        return np.zeros(26, dtype=np.int64)
    codes = np.frombuffer(norm.encode("ascii"), dtype=np.uint8).astype(np.int64) - ord("A")
    return np.bincount(codes, minlength=26).astype(np.int64)


def character_probabilities(text: str) -> Dict[str, float]:
    """Map each observed letter to its probability among all letters of `text`."""
    counts = letter_counts(text)
    total = int(counts.sum())
    if total == 0:
        logger.debug("character_probabilities: no alphabetic characters")
        return {}
    return {ALPHABET[i]: float(c) / total for i, c in enumerate(counts) if c > 0}


def _entropy(probabilities) -> float:
    ent = 0.0
    for p in probabilities:
        if p > 0:
            ent -= p * math.log2(p)
    return ent


def shannon_entropy(text: str) -> float:
    """H = -sum p(c) log2 p(c) over observed letters; 0.0 for empty input."""
    return _entropy(character_probabilities(text).values())


def normalized_entropy(text: str) -> float:
    """Shannon entropy divided by log2 of the letter count.

    Raises DegenerateInputError when the text has fewer than two letters.
    """
    n = len(normalize(text))
    if n <= 1:
        raise DegenerateInputError(f"normalized entropy needs at least 2 letters, got {n}")
    return shannon_entropy(text) / math.log2(n)


def ngram_probabilities(text: str, n: int) -> Dict[str, float]:
    """Sliding-window (step 1) n-gram probabilities over the normalized text."""
    if n < 1:
        raise ValueError("n must be >= 1")
    norm = normalize(text)
    windows = len(norm) - n + 1
    if windows <= 0:
        return {}
    counts = Counter(norm[i:i + n] for i in range(windows))
    return {gram: c / windows for gram, c in counts.items()}


def ngram_entropy(text: str, n: int) -> float:
    return _entropy(ngram_probabilities(text, n).values())


def conditional_entropy(text: str, condition: Optional[str] = None) -> float:
    """Conditional entropy over adjacent letter pairs.

    With no `condition`, returns the first-order entropy H(X[i+1] | X[i]) of
    `text`: -sum p(a, b) log2(p(a, b) / p(a)), with p(a) the marginal of the
    first element of each pair.

    With a `condition` text, pairs are drawn from `text + condition` and each
    pair is conditioned on the probability of its second letter within
    `condition`. Pairs whose second letter never occurs in `condition` are
    skipped. This value may be negative.
    """
    if condition is None:
        pairs = ngram_probabilities(text, 2)
        if not pairs:
            return 0.0
        first: Dict[str, float] = {}
        for pair, p in pairs.items():
            first[pair[0]] = first.get(pair[0], 0.0) + p
        h = 0.0
        for pair, p in pairs.items():
            h -= p * math.log2(p / first[pair[0]])
        # clamp float noise around zero for fully predictable sequences
        return max(0.0, h)

    joint = ngram_probabilities(normalize(text) + normalize(condition), 2)
    cond = character_probabilities(condition)
    h = 0.0
    for pair, p in joint.items():
        q = cond.get(pair[1], 0.0)
        if q > 0 and p > 0:
            h -= p * math.log2(p / q)
    return h


def joint_entropy(a: str, b: str) -> float:
    """Entropy of the aligned letter pairs (a[i], b[i]) over the common length."""
    na, nb = normalize(a), normalize(b)
    m = min(len(na), len(nb))
    if m == 0:
        return 0.0
    counts = Counter(zip(na[:m], nb[:m]))
    return _entropy(c / m for c in counts.values())


def mutual_information(a: str, b: str) -> float:
    """I(A;B) = H(A) + H(B) - H(A,B), all taken over the common aligned length."""
    na, nb = normalize(a), normalize(b)
    m = min(len(na), len(nb))
    if m == 0:
        return 0.0
    mi = shannon_entropy(na[:m]) + shannon_entropy(nb[:m]) - joint_entropy(na, nb)
    return max(0.0, mi)


def _as_distribution(d: Union[Distribution, LanguageProfile]) -> Mapping[str, float]:
    if isinstance(d, LanguageProfile):
        return d.letter_frequencies
    if isinstance(d, str):
        return character_probabilities(d)
    return {str(k).upper(): float(v) for k, v in d.items()}


def relative_entropy(p: Union[Distribution, LanguageProfile], q: Union[Distribution, LanguageProfile]) -> float:
    """Kullback-Leibler divergence D(p || q) in bits over the support of p.

    `p` and `q` may be texts, letter->probability mappings or profiles.
    Terms where q(x) == 0 are skipped: this is a known approximation rather
    than an error, so the result stays finite.
    """
    pd = _as_distribution(p)
    qd = _as_distribution(q)
    d = 0.0
    for sym, px in pd.items():
        qx = qd.get(sym, 0.0)
        if px > 0 and qx > 0:
            d += px * math.log2(px / qx)
    return max(0.0, d)


def cross_entropy(p: Union[Distribution, LanguageProfile], q: Union[Distribution, LanguageProfile]) -> float:
    """-sum p(x) log2 q(x) over the support of p, skipping q(x) == 0."""
    pd = _as_distribution(p)
    qd = _as_distribution(q)
    h = 0.0
    for sym, px in pd.items():
        qx = qd.get(sym, 0.0)
        if px > 0 and qx > 0:
            h -= px * math.log2(qx)
    return h


def markov_entropy(text: str, order: int) -> float:
    """Entropy of (order + 1)-grams."""
    return ngram_entropy(text, order + 1)


def entropy_spectrum(text: str, max_order: int) -> List[float]:
    return [markov_entropy(text, i) for i in range(1, max_order + 1)]


def index_of_coincidence(text: str) -> float:
    """IC = sum f(f-1) / (N(N-1)) over 26 letters; 0.0 when N <= 1."""
    counts = letter_counts(text)
    n = int(counts.sum())
    if n <= 1:
        return 0.0
    return float(np.sum(counts * (counts - 1))) / float(n * (n - 1))


def chi_squared(text: str, reference: Union[Mapping[str, float], LanguageProfile, None] = None) -> float:
    """Chi-squared distance of the text's letter counts from a reference profile.

    expected = reference[c] * N for each of the 26 letters. Letters with a zero
    reference frequency are skipped. Returns 0.0 when the text has no letters.
    """
    ref = _as_distribution(reference if reference is not None else ENGLISH)
    counts = letter_counts(text)
    n = int(counts.sum())
    if n == 0:
        return 0.0
    expected = np.array([ref.get(c, 0.0) for c in ALPHABET], dtype=np.float64) * n
    mask = expected > 0
    diff = counts[mask] - expected[mask]
    return float(np.sum(diff * diff / expected[mask]))


def chi_squared_p_value(statistic: float, dof: int = 25) -> float:
    """Probability of a chi-squared value at least this large under the reference."""
    if statistic <= 0:
        return 1.0
    return float(stats.chi2.sf(statistic, dof))


def average_ioc_by_period(text: str, period: int) -> float:
    """Mean IC of the `period` interleaved columns of the normalized text."""
    if period < 1:
        raise ValueError("period must be >= 1")
    norm = normalize(text)
    cols = [norm[i::period] for i in range(period)]
    return sum(index_of_coincidence(c) for c in cols) / period


def ioc_key_length_candidates(text: str, max_key_length: int = 20, top_n: int = 6) -> List[int]:
    """Rank key lengths by average column IC (highest first).

    For a periodic polyalphabetic cipher the columns at the true period are
    monoalphabetic, so their IC approaches the plaintext language's.
    """
    norm = normalize(text)
    if len(norm) < 10:
        return []
    scores = []
    for k in range(1, min(max_key_length, len(norm) // 2) + 1):
        scores.append((k, average_ioc_by_period(norm, k)))
    scores.sort(key=lambda x: (-x[1], x[0]))
    return [k for k, _ in scores[:top_n]]


def character_frequency_table(text: str,
                              profile: Optional[LanguageProfile] = None) -> List[Dict[str, object]]:
    """Per-letter count, observed and expected frequency, and their absolute deviation.

    Only letters that occur are listed, most frequent first (ties alphabetical).
    """
    profile = profile or ENGLISH
    counts = letter_counts(text)
    total = int(counts.sum())
    rows = []
    for i, count in enumerate(counts):
        if count == 0:
            continue
        letter = ALPHABET[i]
        frequency = float(count) / total
        expected = profile.frequency(letter)
        rows.append({
            "letter": letter,
            "count": int(count),
            "frequency": frequency,
            "expected": expected,
            "deviation": abs(frequency - expected),
        })
    rows.sort(key=lambda r: (-r["count"], r["letter"]))
    return rows


def suggest_substitutions(text: str, profile: Optional[LanguageProfile] = None) -> List[Tuple[str, str]]:
    """Pair observed letters with profile letters of the same frequency rank.

    A first guess at a monoalphabetic substitution key: the most frequent
    ciphertext letter maps to the profile's most frequent letter, and so on.
    """
    profile = profile or ENGLISH
    observed = [row["letter"] for row in character_frequency_table(text, profile)]
    expected = sorted(ALPHABET, key=lambda c: (-profile.frequency(c), c))
    return list(zip(observed, expected))


def profile_distance(text: str, profile: Union[Mapping[str, float], LanguageProfile, None] = None) -> float:
    """Sum over A..Z of |observed frequency - reference frequency|.

    Ranges from 0.0 (identical distributions) to 2.0. A text without letters
    is compared as an all-zero distribution.
    """
    ref = _as_distribution(profile if profile is not None else ENGLISH)
    observed = character_probabilities(text)
    return float(sum(abs(observed.get(c, 0.0) - ref.get(c, 0.0)) for c in ALPHABET))


def detect_probable_language(text: str, profiles: Sequence[LanguageProfile]) -> Optional[str]:
    """Name of the profile whose letter distribution is closest to the text."""
    if not profiles or not normalize(text):
        return None
    best = min(profiles, key=lambda p: profile_distance(text, p))
    return best.name


def text_statistics(text: str, profile: Optional[LanguageProfile] = None) -> Dict[str, object]:
    """Collect every primitive into one JSON-friendly report."""
    profile = profile or ENGLISH
    norm = normalize(text)
    try:
        norm_ent: Optional[float] = normalized_entropy(norm)
    except DegenerateInputError:
        norm_ent = None
    half = len(norm) // 2
    chi = chi_squared(norm, profile)
    return {
        "letters": len(norm),
        "character_probabilities": character_probabilities(norm),
        "shannon_entropy": shannon_entropy(norm),
        "normalized_entropy": norm_ent,
        "conditional_entropy": conditional_entropy(norm),
        "joint_entropy": joint_entropy(norm[:half], norm[half:]),
        "mutual_information": mutual_information(norm[:half], norm[half:]),
        "relative_entropy": relative_entropy(norm, profile),
        "ngram_entropies": {f"{n}-gram": ngram_entropy(norm, n) for n in (1, 2, 3)},
        "index_of_coincidence": index_of_coincidence(norm),
        "chi_squared": chi,
        "chi_squared_p_value": chi_squared_p_value(chi) if norm else None,
    }
