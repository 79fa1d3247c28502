"""Plugin API definitions for Cipher Analyzer."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, Optional

from .errors import InvalidKeyError


@dataclass(frozen=True)
class FeatureSet:
    """Per-candidate feature values, all pure functions of the decrypted text."""
    dictionary_match_count: int = 0
    average_word_length: float = 0.0
    common_word_score: int = 0
    index_of_coincidence: float = 0.0
    chi_squared: float = 0.0
    shannon_entropy: float = 0.0
    conditional_entropy: float = 0.0
    relative_entropy: float = 0.0
    bigram_entropy: float = 0.0

    def __post_init__(self):
        if self.dictionary_match_count < 0 or self.common_word_score < 0:
            raise ValueError("word counts must be non-negative")
        if not (0.0 <= self.index_of_coincidence <= 1.0):
            raise ValueError("index_of_coincidence must be between 0 and 1")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Candidate:
    """One scored decryption.

    `index` is the key's position in the enumerator order and is the
    tie-break when two candidates score the same.
    """
    family: str
    key: Any
    plaintext: str
    features: FeatureSet
    score: float
    index: int = 0


def jsonable_key(key: Any) -> Any:
    if isinstance(key, tuple):
        return [jsonable_key(k) for k in key]
    return key


def serialize_candidate(candidate: Candidate, preview_len: Optional[int] = None) -> Dict[str, Any]:
    """Serialize a Candidate into a JSON-compatible dict."""
    text = candidate.plaintext
    if preview_len is not None and len(text) > preview_len:
        text = text[:preview_len]
    return {
        "cipher": candidate.family,
        "key": jsonable_key(candidate.key),
        "score": candidate.score,
        "index": candidate.index,
        "plaintext": text,
        "features": candidate.features.to_dict(),
    }


class BasePlugin(ABC):
    """Base class for all plugins."""

    @abstractmethod
    def describe(self) -> str:
        """Return plugin description."""
        pass


class CipherPlugin(BasePlugin):
    """Base class for cipher-family plugins.

    A plugin supplies the forward/inverse transforms and the finite keyspace of
    its family. `decrypt(encrypt(text, k), k) == text` must hold for every
    valid key (on the plugin's normalized input, for ciphers that normalize).
    """

    name: str = ""
    polyalphabetic: bool = False

    @abstractmethod
    def encrypt(self, text: str, key: Any) -> str:
        pass

    @abstractmethod
    def decrypt(self, text: str, key: Any) -> str:
        pass

    @abstractmethod
    def keyspace(self, ciphertext: str, params: Dict[str, Any]) -> Iterable[Any]:
        """Return the ordered, restartable candidate-key sequence."""
        pass

    def parse_key(self, raw: Any) -> Any:
        """Convert a CLI/config key value into this family's key type."""
        return raw

    def validate_key(self, key: Any) -> None:
        """Raise InvalidKeyError when `key` cannot be used."""
        if key is None:
            raise InvalidKeyError(f"{self.name}: key is required")

    def safe_decrypt(self, text: str, key: Any):
        """Decrypt and convert unexpected exceptions into a structured error dict.

        InvalidKeyError propagates so callers can skip the key instead of
        recording a failure.
        """
        try:
            self.validate_key(key)
            return self.decrypt(text, key)
        except InvalidKeyError:
            raise
        except Exception as e:
            return {"status": "error", "reason": str(e)}
