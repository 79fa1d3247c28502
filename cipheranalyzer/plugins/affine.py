"""Affine cipher plugin: E(x) = (a*x + b) mod 26."""

from typing import Any, Dict, Iterable, Tuple

from ..errors import InvalidKeyError
from ..keyspace import AffineKeyspace, is_valid_affine_key, mod_inverse
from ..plugin_api import CipherPlugin


def _map_letters(text: str, fn) -> str:
    out = []
    for c in text:
        if "A" <= c <= "Z":
            out.append(chr(fn(ord(c) - 65) + 65))
        elif "a" <= c <= "z":
            out.append(chr(fn(ord(c) - 97) + 97))
        else:
            out.append(c)
    return "".join(out)


class AffineCipher(CipherPlugin):
    """Key is (a, b) with gcd(a, 26) == 1."""

    name = "affine"

    def describe(self) -> str:
        return "Affine cipher (312 keys with invertible multiplier)"

    def parse_key(self, raw: Any) -> Tuple[int, int]:
        if isinstance(raw, str):
            raw = raw.replace(":", ",").split(",")
        a, b = raw
        return (int(a), int(b))

    def validate_key(self, key: Any) -> None:
        try:
            a, b = key
        except (TypeError, ValueError):
            raise InvalidKeyError(f"affine key must be an (a, b) pair, got {key!r}")
        if not is_valid_affine_key(a, b):
            raise InvalidKeyError(f"affine key ({a}, {b}) is invalid: a must be coprime with 26 and 0 <= b < 26")

    def encrypt(self, text: str, key: Tuple[int, int]) -> str:
        self.validate_key(key)
        a, b = key
        return _map_letters(text, lambda x: (a * x + b) % 26)

    def decrypt(self, text: str, key: Tuple[int, int]) -> str:
        self.validate_key(key)
        a, b = key
        a_inv = mod_inverse(a)
        return _map_letters(text, lambda y: (a_inv * (y - b)) % 26)

    def keyspace(self, ciphertext: str, params: Dict[str, Any]) -> Iterable[Tuple[int, int]]:
        return AffineKeyspace()
