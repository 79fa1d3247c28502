"""Finite, ordered candidate-key sequences per cipher family.

Each keyspace is an iterable object: every call to `iter()` starts a fresh
generator, so a keyspace can be enumerated again after a cancelled search.
Enumeration never decrypts nor scores; the order it yields keys in is the
ranker's tie-break.
"""
from __future__ import annotations

import math
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import InvalidKeyError

MODULUS = 26
DEFAULT_VIGENERE_MAX_LENGTH = 3


def mod_inverse(a: int, m: int = MODULUS) -> int:
    """Multiplicative inverse of `a` modulo `m`; InvalidKeyError when none exists."""
    if math.gcd(a, m) != 1:
        raise InvalidKeyError(f"{a} has no inverse modulo {m}")
    return pow(a, -1, m)


def is_valid_affine_key(a: int, b: int) -> bool:
    return 1 <= a < MODULUS and math.gcd(a, MODULUS) == 1 and 0 <= b < MODULUS


def increment_key(key: str) -> Optional[str]:
    """Next key of the same length in odometer order, or None after 'ZZ..Z'."""
    chars = list(key)
    for i in range(len(chars) - 1, -1, -1):
        if chars[i] < "Z":
            chars[i] = chr(ord(chars[i]) + 1)
            return "".join(chars)
        chars[i] = "A"
    return None


class CaesarKeyspace:
    """Shifts 0..25 ascending."""

    def __iter__(self) -> Iterator[int]:
        return iter(range(MODULUS))

    def __len__(self) -> int:
        return MODULUS


class AffineKeyspace:
    """(a, b) pairs with a a unit mod 26; 12 * 26 = 312 keys, a-major."""

    def __init__(self):
        self.multipliers = [a for a in range(1, MODULUS) if math.gcd(a, MODULUS) == 1]

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        for a in self.multipliers:
            for b in range(MODULUS):
                yield (a, b)

    def __len__(self) -> int:
        return len(self.multipliers) * MODULUS


class VigenereKeyspace:
    """Every uppercase key of length 1..max_key_length.

    Lengths listed in `preferred_lengths` (e.g. a Kasiski ranking) are
    enumerated first, in the given order; the remaining lengths follow in
    ascending order. Within one length keys run AA..A -> ZZ..Z. The size grows
    as 26**L, so callers keep max_key_length small or bound the search.
    """

    def __init__(self, max_key_length: int, preferred_lengths: Sequence[int] = ()):
        if max_key_length < 1:
            raise ValueError("max_key_length must be >= 1")
        self.max_key_length = int(max_key_length)
        order: List[int] = []
        for length in preferred_lengths:
            length = int(length)
            if 1 <= length <= self.max_key_length and length not in order:
                order.append(length)
        for length in range(1, self.max_key_length + 1):
            if length not in order:
                order.append(length)
        self.length_order: Tuple[int, ...] = tuple(order)

    def __iter__(self) -> Iterator[str]:
        for length in self.length_order:
            key: Optional[str] = "A" * length
            while key is not None:
                yield key
                key = increment_key(key)

    def __len__(self) -> int:
        return sum(MODULUS ** length for length in self.length_order)


class TranspositionKeyspace:
    """Column counts 2..max_columns."""

    def __init__(self, max_columns: int):
        self.max_columns = int(max_columns)

    def __iter__(self) -> Iterator[int]:
        return iter(range(2, self.max_columns + 1))

    def __len__(self) -> int:
        return max(0, self.max_columns - 1)


class KeywordKeyspace:
    """Caller-supplied keywords, normalized to letters and deduplicated."""

    def __init__(self, keywords: Iterable[str]):
        seen: List[str] = []
        for kw in keywords:
            k = "".join(c for c in str(kw).upper() if "A" <= c <= "Z")
            if k and k not in seen:
                seen.append(k)
        self.keywords: Tuple[str, ...] = tuple(seen)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keywords)

    def __len__(self) -> int:
        return len(self.keywords)


def default_transposition_bound(ciphertext: str, cap: int = 20) -> int:
    return min(len(ciphertext), cap)


def preferred_vigenere_lengths(ciphertext: str, max_key_length: int, top_n: int = 3,
                               kasiski=None) -> List[int]:
    """Most likely key lengths from Kasiski, topped up with the IoC ranking.

    Pass an existing KasiskiResult as `kasiski` to avoid re-examining the text.
    """
    from .patterns import PatternFinder
    from .statistics import ioc_key_length_candidates

    if kasiski is None:
        kasiski = PatternFinder(ciphertext).kasiski_examination()
    ranked = [k for k in kasiski.ranked_key_lengths() if k <= max_key_length]
    out = ranked[:top_n]
    for k in ioc_key_length_candidates(ciphertext, max_key_length=max_key_length, top_n=top_n):
        if k not in out:
            out.append(k)
    return out
