"""Columnar transposition cipher plugin.

Encryption writes the text row by row into `key` columns and reads it column
by column. No padding is added: the last row may be short, and decryption
accounts for the short columns so the round trip is exact for any length.
"""

from typing import Any, Dict, Iterable

from ..errors import InvalidKeyError
from ..keyspace import TranspositionKeyspace, default_transposition_bound
from ..plugin_api import CipherPlugin


class TranspositionCipher(CipherPlugin):
    name = "transposition"

    def describe(self) -> str:
        return "Columnar transposition (key = number of columns)"

    def parse_key(self, raw: Any) -> int:
        return int(raw)

    def validate_key(self, key: Any) -> None:
        if isinstance(key, bool) or not isinstance(key, int) or key < 1:
            raise InvalidKeyError(f"transposition key must be a positive integer, got {key!r}")

    def encrypt(self, text: str, key: int) -> str:
        self.validate_key(key)
        return "".join(text[col::key] for col in range(key))

    def decrypt(self, text: str, key: int) -> str:
        self.validate_key(key)
        n = len(text)
        if key >= n:
            return text
        rows, long_cols = divmod(n, key)
        # the first `long_cols` columns hold one extra character
        columns = []
        pos = 0
        for col in range(key):
            size = rows + 1 if col < long_cols else rows
            columns.append(text[pos:pos + size])
            pos += size
        out = []
        for r in range(rows + 1):
            for col in columns:
                if r < len(col):
                    out.append(col[r])
        return "".join(out)

    def keyspace(self, ciphertext: str, params: Dict[str, Any]) -> Iterable[int]:
        bound = params.get("max_columns")
        if bound is None:
            bound = default_transposition_bound(ciphertext)
        return TranspositionKeyspace(int(bound))
