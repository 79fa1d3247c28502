"""Playfair digraph substitution plugin.

The key is a keyword; the 5x5 square is the keyword's letters (first
occurrence) followed by the rest of the alphabet, with J folded into I.
Plaintext is prepared before encryption: letters only, upper-case, J -> I,
split into digraphs with an X inserted between doubled letters (Q when the
doubled letter is X) and a final filler when the length is odd. The cipher
is therefore a bijection on prepared text only:
decrypt(encrypt(t, k), k) == prepare_text(t).
"""

from typing import Any, Dict, Iterable, List, Tuple

from ..errors import InvalidKeyError
from ..keyspace import KeywordKeyspace
from ..plugin_api import CipherPlugin

SQUARE_ALPHABET = "ABCDEFGHIKLMNOPQRSTUVWXYZ"


def _letters(text: str) -> str:
    return "".join(c for c in text.upper() if "A" <= c <= "Z").replace("J", "I")


def _filler(letter: str) -> str:
    return "Q" if letter == "X" else "X"


def build_square(keyword: str) -> str:
    """Return the 25-letter square in row-major order."""
    seen: List[str] = []
    for c in _letters(keyword) + SQUARE_ALPHABET:
        if c not in seen:
            seen.append(c)
    return "".join(seen)


def prepare_text(text: str) -> str:
    s = _letters(text)
    out: List[str] = []
    i = 0
    while i < len(s):
        a = s[i]
        b = s[i + 1] if i + 1 < len(s) else None
        if b is None or a == b:
            out.append(a + _filler(a))
            i += 1
        else:
            out.append(a + b)
            i += 2
    return "".join(out)


class PlayfairCipher(CipherPlugin):
    name = "playfair"

    def describe(self) -> str:
        return "Playfair digraph cipher (keyword keys from a supplied list)"

    def parse_key(self, raw: Any) -> str:
        return str(raw)

    def validate_key(self, key: Any) -> None:
        if not isinstance(key, str) or not _letters(key):
            raise InvalidKeyError(f"playfair key must contain letters, got {key!r}")

    def _positions(self, square: str) -> Dict[str, Tuple[int, int]]:
        return {c: divmod(i, 5) for i, c in enumerate(square)}

    def _transform(self, digraphs: str, key: str, step: int) -> str:
        square = build_square(key)
        pos = self._positions(square)
        out: List[str] = []
        for i in range(0, len(digraphs), 2):
            r1, c1 = pos[digraphs[i]]
            r2, c2 = pos[digraphs[i + 1]]
            if r1 == r2:
                c1, c2 = (c1 + step) % 5, (c2 + step) % 5
            elif c1 == c2:
                r1, r2 = (r1 + step) % 5, (r2 + step) % 5
            else:
                c1, c2 = c2, c1
            out.append(square[r1 * 5 + c1] + square[r2 * 5 + c2])
        return "".join(out)

    def encrypt(self, text: str, key: str) -> str:
        self.validate_key(key)
        return self._transform(prepare_text(text), key, 1)

    def decrypt(self, text: str, key: str) -> str:
        self.validate_key(key)
        s = _letters(text)
        if len(s) % 2:
            s += _filler(s[-1])
        return self._transform(s, key, -1)

    def keyspace(self, ciphertext: str, params: Dict[str, Any]) -> Iterable[str]:
        return KeywordKeyspace(params.get("keywords") or ())
