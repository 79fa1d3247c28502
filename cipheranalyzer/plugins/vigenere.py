from __future__ import annotations
from typing import Dict, Any, Iterable
import logging

from ..errors import InvalidKeyError
from ..keyspace import DEFAULT_VIGENERE_MAX_LENGTH, VigenereKeyspace, preferred_vigenere_lengths
from ..plugin_api import CipherPlugin
from .caesar import shift_letter

logger = logging.getLogger("cipheranalyzer.plugins.vigenere")


class VigenereCipher(CipherPlugin):
    """
    Vigenère cipher over A-Z.
    Key: non-empty string of letters; letter i shifts by key[i % len(key)].
    The key position only advances on letters, so spaces and punctuation
    pass through without consuming key material.
    Keyspace params:
      - max_key_length: int (default 3)
      - use_kasiski: bool (default True) try Kasiski/IoC lengths first
    """
    name = "vigenere"
    polyalphabetic = True

    def describe(self) -> str:
        return "Vigenère polyalphabetic cipher (keys A..Z up to max_key_length)"

    def parse_key(self, raw: Any) -> str:
        return str(raw).upper()

    def validate_key(self, key: Any) -> None:
        if not isinstance(key, str) or not key or not all("A" <= c <= "Z" for c in key.upper()):
            raise InvalidKeyError(f"vigenere key must be a non-empty string of letters, got {key!r}")

    def _run(self, text: str, key: str, sign: int) -> str:
        self.validate_key(key)
        shifts = [ord(c) - 65 for c in key.upper()]
        klen = len(shifts)
        out = []
        i = 0
        for ch in text:
            if ch.isascii() and ch.isalpha():
                out.append(shift_letter(ch, sign * shifts[i % klen]))
                i += 1
            else:
                out.append(ch)
        return "".join(out)

    def encrypt(self, text: str, key: str) -> str:
        return self._run(text, key, 1)

    def decrypt(self, text: str, key: str) -> str:
        return self._run(text, key, -1)

    def keyspace(self, ciphertext: str, params: Dict[str, Any]) -> Iterable[str]:
        max_len = int(params.get("max_key_length", DEFAULT_VIGENERE_MAX_LENGTH))
        preferred = params.get("preferred_lengths")
        if preferred is None and params.get("use_kasiski", True):
            preferred = preferred_vigenere_lengths(ciphertext, max_len)
            logger.debug("kasiski/ioc preferred lengths: %s", preferred)
        return VigenereKeyspace(max_len, preferred or ())
