"""Total ordering and truncation of scored candidates."""
from __future__ import annotations

from typing import Iterable, List, Optional

from .plugin_api import Candidate

DEFAULT_TOP_N = 5


def rank(candidates: Iterable[Candidate], top_n: Optional[int] = DEFAULT_TOP_N) -> List[Candidate]:
    """Sort by descending score, ties by enumeration index, and keep the first `top_n`.

    Returns a new list; the input is not modified. `top_n=None` keeps all.
    """
    if top_n is not None and top_n < 0:
        raise ValueError("top_n must be >= 0")
    ordered = sorted(candidates, key=lambda c: (-c.score, c.index))
    if top_n is None:
        return ordered
    return ordered[:top_n]


def is_ranked(candidates: List[Candidate]) -> bool:
    """True when scores never increase along the list."""
    return all(a.score >= b.score for a, b in zip(candidates, candidates[1:]))
