"""Caesar shift cipher plugin."""

from typing import Any, Dict, Iterable

from ..errors import InvalidKeyError
from ..keyspace import CaesarKeyspace
from ..plugin_api import CipherPlugin


def shift_letter(ch: str, shift: int) -> str:
    """Shift an ASCII letter by `shift` places, keeping case; other chars unchanged."""
    if "A" <= ch <= "Z":
        return chr((ord(ch) - 65 + shift) % 26 + 65)
    if "a" <= ch <= "z":
        return chr((ord(ch) - 97 + shift) % 26 + 97)
    return ch


class CaesarCipher(CipherPlugin):
    """Monoalphabetic shift by a fixed integer."""

    name = "caesar"

    def describe(self) -> str:
        return "Caesar shift cipher (26 keys)"

    def parse_key(self, raw: Any) -> int:
        return int(raw)

    def validate_key(self, key: Any) -> None:
        if isinstance(key, bool) or not isinstance(key, int):
            raise InvalidKeyError(f"caesar key must be an integer, got {key!r}")

    def encrypt(self, text: str, key: int) -> str:
        self.validate_key(key)
        return "".join(shift_letter(c, key) for c in text)

    def decrypt(self, text: str, key: int) -> str:
        self.validate_key(key)
        return "".join(shift_letter(c, -key) for c in text)

    def keyspace(self, ciphertext: str, params: Dict[str, Any]) -> Iterable[int]:
        return CaesarKeyspace()
