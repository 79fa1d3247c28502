"""Immutable word dictionary and the word-level scoring signals built on it.

Words are normalized to lower-case letters only, so "Hello," and "HELLO"
both match "hello". A Dictionary never changes after construction; derive a
new one with `with_words` instead. That makes a single instance safe to share
by reference across concurrent candidate evaluations.
"""
from __future__ import annotations

import concurrent.futures
import logging
import os
import re
from collections import Counter
from typing import FrozenSet, Iterable, List, Optional, Tuple

from .language import ENGLISH_COMMON_WORDS

logger = logging.getLogger("cipheranalyzer.dictionary")

# Small built-in vocabulary so the engine works without a word file.
DEFAULT_WORDS = """
a about above across act add after again against age ago agree air all almost
alone along already also always am among an and animal another answer any
are area arm around art as ask at attack away back bad ball bank base be bear
beat beautiful because become bed been before began begin behind being believe
below best better between big bird black blue board boat body book both box
boy bring brother brought build business but buy by call came can car care
carry case cat cause center certain change check child children city class
clear close cold color come common company complete could country course cover
cross cry cut dark day dead deal dear decide deep did die different direct do
doctor does dog done door down draw dream drive drop during each early earth
east easy eat edge effect eight either end enemy enough even evening ever every
example eye face fact fall family far farm fast father fear feel feet few field
fight figure fill final find fine fire first fish five floor fly follow food
foot for force form found four free friend from front full game gave general
get girl give glass go god gold good got government great green ground group
grow had half hand happen happy hard has have he head hear heard heart heat
held hello help her here high hill him his history hold home hope horse hot
hour house how however hundred i idea if important in inside into is island
it its job just keep key kill kind king knew know land language large last
late later laugh law lay lead learn leave left less let letter life light like
line list listen little live long look lost lot love low machine made main
make man many map mark master may me mean measure meet men message middle might
mile mind minute miss money month moon more morning most mother mountain move
much music must my name nation near need never new next night nine no north
not note nothing now number object of off office often oh old on once one only
open or order other our out over own page paper part party pass past pay people
perhaps person picture piece place plan plant play point power present
president problem public pull put question quick quite rain ran reach read
ready real reason red remember rest right river road rock room round rule run
said same saw say school sea second secret see seem self send sense sent set
seven several shall she ship short should show side sign simple since sing sir
sit six size sleep small snow so some something son song soon sound south
space speak special stand star start state stay step still stood stop story
street strong study such summer sun sure system table take talk tell ten test
than that the their them then there these they thing think this those though
thought thousand three through time to today together told too took top
toward town tree true try turn two under understand until up upon us use usual
very voice wait walk wall want war warm was watch water way we weather week
well went were west what when where whether which while white who whole why
wide wife will wind window winter wish with within without woman women wonder
word work world would write wrong year yes yet you young your
"""


COMMON_PHRASES = (
    "of the", "in the", "to the", "on the", "and the", "at the", "for the",
    "from the", "by the", "with the", "it is", "it was", "to be", "there is",
    "there was", "one of the",
)

# Shallow English surface patterns; grammar_score counts their matches.
GRAMMAR_PATTERNS = {
    "article_noun": re.compile(r"\b(the|a|an)\s+\w+", re.IGNORECASE),
    "be_verb": re.compile(r"\b(is|are|was|were)\s+\w+", re.IGNORECASE),
    "present_participle": re.compile(r"\b\w+ing\b", re.IGNORECASE),
    "past_tense": re.compile(r"\b\w+ed\b", re.IGNORECASE),
    "intensifier": re.compile(r"\b(very|quite|rather)\s+\w+", re.IGNORECASE),
}


def grammar_score(text: str) -> float:
    """Total pattern matches divided by the number of patterns (may exceed 1.0)."""
    matches = sum(len(p.findall(text)) for p in GRAMMAR_PATTERNS.values())
    return matches / len(GRAMMAR_PATTERNS)


def clean_word(word: str) -> str:
    """Lower-case letters only: punctuation, digits and whitespace are dropped."""
    return "".join(c for c in word.lower() if "a" <= c <= "z")


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def word_similarity(a: str, b: str) -> float:
    """1 - distance / max(len); 1.0 for two empty words."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def _similar_in_slice(word: str, candidates: List[str], threshold: float) -> List[Tuple[str, float]]:
    out = []
    for cand in candidates:
        sim = word_similarity(word, cand)
        if sim >= threshold:
            out.append((cand, sim))
    return out


class Dictionary:
    """Read-only set of known words plus word-level scoring helpers."""

    def __init__(self, words: Optional[Iterable[str]] = None,
                 common_words: Optional[Iterable[str]] = None):
        source = DEFAULT_WORDS.split() if words is None else words
        cleaned = (clean_word(w) for w in source)
        self._words: FrozenSet[str] = frozenset(w for w in cleaned if w)
        common = ENGLISH_COMMON_WORDS if common_words is None else common_words
        self._common: FrozenSet[str] = frozenset(clean_word(w) for w in common if clean_word(w))

    @classmethod
    def from_file(cls, path: str, delimiter: Optional[str] = None, **kwargs) -> "Dictionary":
        """Load one or more words per line; `delimiter` splits lines (default whitespace)."""
        if not os.path.isfile(path):
            raise FileNotFoundError(f"dictionary file not found: {path}")
        words: List[str] = []
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                words.extend(line.split(delimiter) if delimiter else line.split())
        d = cls(words, **kwargs)
        logger.info("loaded %d words from %s", len(d), path)
        return d

    def with_words(self, words: Iterable[str]) -> "Dictionary":
        """Return a new dictionary holding these words as well."""
        return Dictionary(list(self._words) + list(words), common_words=self._common)

    @property
    def words(self) -> FrozenSet[str]:
        return self._words

    @property
    def common_words(self) -> FrozenSet[str]:
        return self._common

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and self.is_word(word)

    def __reduce__(self):
        return (Dictionary, (sorted(self._words), sorted(self._common)))

    # -- lookups -------------------------------------------------------------

    def is_word(self, word: str) -> bool:
        w = clean_word(word)
        return bool(w) and w in self._words

    def _tokens(self, text: str) -> List[str]:
        return [w for w in (clean_word(t) for t in text.split()) if w]

    def count_matches(self, text: str) -> int:
        """Number of whitespace-separated tokens that are dictionary words."""
        return sum(1 for w in self._tokens(text) if w in self._words)

    def score_common_words(self, text: str) -> int:
        """Number of tokens that are among the most common English words."""
        return sum(1 for w in self._tokens(text) if w in self._common)

    def average_word_length(self, text: str) -> float:
        tokens = self._tokens(text)
        if not tokens:
            return 0.0
        return sum(len(w) for w in tokens) / len(tokens)

    def word_frequency(self, text: str) -> Counter:
        """Counts of the dictionary words found in `text`."""
        return Counter(w for w in self._tokens(text) if w in self._words)

    def top_words(self, text: str, n: int) -> List[str]:
        freq = self.word_frequency(text)
        return [w for w, _ in sorted(freq.items(), key=lambda x: (-x[1], x[0]))[:n]]

    def suggest_by_prefix(self, prefix: str) -> List[str]:
        p = clean_word(prefix)
        return sorted(w for w in self._words if w.startswith(p))

    def suggest_corrections(self, word: str, limit: int = 5) -> List[str]:
        """Closest words by edit distance, ties broken alphabetically."""
        w = clean_word(word)
        ranked = sorted((levenshtein_distance(w, d), d) for d in self._words)
        return [d for _, d in ranked[:limit]]

    def find_similar_words(self, word: str, threshold: float = 0.8,
                           workers: int = 4) -> List[Tuple[str, float]]:
        """Dictionary words whose similarity to `word` is at least `threshold`.

        The sorted word list is cut into `workers` disjoint slices, each scanned
        by its own thread; the partial results are merged here.
        """
        if workers < 1:
            raise ValueError("workers must be >= 1")
        target = clean_word(word)
        ordered = sorted(self._words)
        if not ordered:
            return []
        size = max(1, -(-len(ordered) // workers))
        slices = [ordered[i:i + size] for i in range(0, len(ordered), size)]
        merged: List[Tuple[str, float]] = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(_similar_in_slice, target, s, threshold) for s in slices]
            for fut in futures:
                merged.extend(fut.result())
        merged.sort(key=lambda x: (-x[1], x[0]))
        return merged

    # -- language signals ----------------------------------------------------

    def identify_valid_words(self, text: str) -> List[str]:
        """Whitespace-separated tokens of `text`, as written, that are dictionary words."""
        return [t for t in text.split() if self.is_word(t)]

    def find_common_phrases(self, text: str, phrases: Optional[Iterable[str]] = None) -> List[str]:
        """Common phrases and words that occur in `text` on word boundaries.

        Defaults to COMMON_PHRASES followed by the common-word list. Results are
        normalized and ordered by first position in the text.
        """
        joined = " " + " ".join(self._tokens(text)) + " "
        source = list(COMMON_PHRASES) + sorted(self._common) if phrases is None else phrases
        found = {}
        for phrase in source:
            key = " ".join(w for w in (clean_word(p) for p in phrase.split()) if w)
            if not key or key in found:
                continue
            pos = joined.find(f" {key} ")
            if pos >= 0:
                found[key] = pos
        return [k for k, _ in sorted(found.items(), key=lambda x: (x[1], x[0]))]

    def language_confidence(self, text: str) -> float:
        """Percentage blend of the valid-word ratio (70%) and grammar_score (30%)."""
        tokens = self._tokens(text)
        if not tokens:
            return 0.0
        ratio = sum(1 for w in tokens if w in self._words) / len(tokens)
        return (0.7 * ratio + 0.3 * min(1.0, grammar_score(text))) * 100.0
